from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.core.errors import translate_store_errors
from app.stores import AttendanceStore, MatchStore


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


@translate_store_errors
def venue_dashboard(db: Session, venue_id: int, *, now: datetime, hours: int = 24) -> dict:
    """Numbers for the admin home: who is in, entries per hour, matches today."""
    attendance = AttendanceStore(db)

    # computed once for this call only
    venue_attendance_ids = attendance.ids_for_venue(venue_id)

    matches_today = sum(
        1
        for m in MatchStore(db).created_since(_start_of_day(now))
        if m.interaction is not None and m.interaction.attendance_id in venue_attendance_ids
    )

    since = now - timedelta(hours=hours)
    entries = attendance.entered_since(venue_id, since)
    series = []
    for i in range(hours, 0, -1):
        bucket_start = now - timedelta(hours=i)
        bucket_end = bucket_start + timedelta(hours=1)
        # the newest bucket is closed at now
        last = i == 1
        series.append(
            {
                "start": bucket_start.isoformat(),
                "count": sum(1 for t in entries if bucket_start <= t and (t < bucket_end or (last and t == now))),
            }
        )

    return {
        "venue_id": venue_id,
        "attendance": attendance.count_active(venue_id),
        "matches_today": matches_today,
        "entries_by_hour": series,
    }
