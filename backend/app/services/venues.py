from __future__ import annotations

import logging
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import InvalidTarget, VenueNotFound, translate_store_errors
from app.models import Profile, Venue, VenueMember

log = logging.getLogger("social.venues")


def slugify(value: str) -> str:
    v = re.sub(r"[^a-z0-9]+", "-", (value or "").strip().lower())
    return v.strip("-") or "venue"


def _unique_slug(db: Session, base: str) -> str:
    slug = base
    n = 2
    while db.execute(select(Venue.id).where(Venue.slug == slug)).first() is not None:
        slug = f"{base}-{n}"
        n += 1
    return slug


def _upsert_member(db: Session, *, venue_id: int, profile_id: str, venue_role: str) -> VenueMember:
    mem = (
        db.query(VenueMember)
        .filter(VenueMember.venue_id == venue_id, VenueMember.profile_id == profile_id)
        .one_or_none()
    )
    if mem:
        mem.venue_role = venue_role
        mem.is_active = True
    else:
        mem = VenueMember(venue_id=venue_id, profile_id=profile_id, venue_role=venue_role, is_active=True)
        db.add(mem)
    return mem


#создает заведение и назначает владельцев из уже известных профилей
@translate_store_errors
def create_venue(db: Session, *, name: str, slug: str | None = None, owner_ids: list[str] | None = None) -> Venue:
    venue = Venue(name=name.strip(), slug=_unique_slug(db, slugify(slug or name)))
    db.add(venue)
    db.flush()  # чтобы venue.id появился

    # уникализируем, сохраняя порядок
    for profile_id in dict.fromkeys(owner_ids or []):
        if db.get(Profile, profile_id) is None:
            log.warning("owner %s skipped for venue %s: no such profile", profile_id, venue.id)
            continue
        _upsert_member(db, venue_id=venue.id, profile_id=profile_id, venue_role="OWNER")

    db.commit()
    db.refresh(venue)
    return venue


@translate_store_errors
def get_venue_by_slug(db: Session, slug: str) -> Venue:
    venue = db.execute(select(Venue).where(Venue.slug == slug)).scalar_one_or_none()
    if venue is None:
        raise VenueNotFound()
    return venue


@translate_store_errors
def add_member(
    db: Session,
    venue_id: int,
    profile_id: str,
    *,
    venue_role: str = "STAFF",
    show_in_guest_feed: bool | None = None,
) -> VenueMember:
    if db.get(Venue, venue_id) is None:
        raise VenueNotFound()
    if db.get(Profile, profile_id) is None:
        raise InvalidTarget()

    mem = _upsert_member(db, venue_id=venue_id, profile_id=profile_id, venue_role=venue_role)
    if show_in_guest_feed is not None:
        mem.show_in_guest_feed = show_in_guest_feed
    db.commit()
    db.refresh(mem)
    return mem


@translate_store_errors
def update_member(
    db: Session,
    venue_id: int,
    profile_id: str,
    *,
    show_in_guest_feed: bool | None = None,
    is_active: bool | None = None,
) -> VenueMember:
    mem = db.execute(
        select(VenueMember).where(VenueMember.venue_id == venue_id, VenueMember.profile_id == profile_id)
    ).scalar_one_or_none()
    if mem is None:
        raise InvalidTarget("member not found")

    if show_in_guest_feed is not None:
        mem.show_in_guest_feed = show_in_guest_feed
    if is_active is not None:
        mem.is_active = is_active
    db.commit()
    db.refresh(mem)
    return mem
