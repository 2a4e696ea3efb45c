from __future__ import annotations

from datetime import datetime

from app.models import Attendance, Interaction, Match, Profile, SessionMetadata, Venue
from app.services.feed import ProfileSummary


def iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def venue_out(v: Venue) -> dict:
    return {"id": v.id, "name": v.name, "slug": v.slug}


def session_out(s: SessionMetadata | None) -> dict | None:
    if s is None:
        return None
    return {
        "id": s.id,
        "venue_id": s.venue_id,
        "session_name": s.session_name,
        "session_type": s.session_type,
        "duration_hours": s.duration_hours,
        "start_time": iso(s.start_time),
        "end_time": iso(s.end_time),
        "is_active": bool(s.is_active),
    }


def attendance_out(a: Attendance) -> dict:
    return {
        "id": a.id,
        "venue_id": a.venue_id,
        "session_id": a.session_id,
        "status": a.status,
        "entered_at": iso(a.entered_at),
        "exited_at": iso(a.exited_at),
    }


def profile_out(p: Profile) -> dict:
    return {
        "id": p.id,
        "display_name": p.display_name,
        "bio": p.bio,
        "phone_number": p.phone_number,
        "is_private": bool(p.is_private),
        "system_role": p.system_role,
        "is_deactivated": bool(p.is_deactivated),
        "blocked_until": iso(p.blocked_until),
        "blocked_permanently": bool(p.blocked_permanently),
        "blocked_reason": p.blocked_reason,
    }


def summary_out(s: ProfileSummary) -> dict:
    return {
        "profile_id": s.profile_id,
        "display_name": s.display_name,
        "bio": s.bio,
        "is_staff": s.is_staff,
        "entered_at": iso(s.entered_at),
        "liked_by_viewer": s.liked_by_viewer,
        "invited_by_viewer": s.invited_by_viewer,
        "they_liked_viewer": s.they_liked_viewer,
        "is_matched": s.is_matched,
    }


def interaction_out(i: Interaction) -> dict:
    return {
        "id": i.id,
        "sender_id": i.sender_id,
        "receiver_id": i.receiver_id,
        "type": i.interaction_type,
        "status": i.status,
        "message": i.message,
        "created_at": iso(i.created_at),
        "responded_at": iso(i.responded_at),
    }


def match_out(m: Match | None, viewer_id: str | None = None) -> dict | None:
    if m is None:
        return None
    out = {
        "id": m.id,
        "profile_a": m.profile_a,
        "profile_b": m.profile_b,
        "interaction_id": m.interaction_id,
        "contact_link": m.contact_link,
        "created_at": iso(m.created_at),
    }
    if viewer_id is not None:
        out["other_profile_id"] = m.profile_b if m.profile_a == viewer_id else m.profile_a
    return out
