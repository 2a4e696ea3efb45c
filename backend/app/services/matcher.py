from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from app.core.errors import (
    InteractionNotFound,
    InvalidTarget,
    MatchNotFound,
    NoActiveSession,
    NotMatchParty,
    NotReceiver,
    PhoneNumberRequired,
    ProfileSuspended,
    translate_store_errors,
)
from app.models import Block, Decision, Interaction, InteractionType, Match, Venue
from app.services.access import canonical_pair, is_blocked_pair, is_suspended
from app.services.contact_links import build_contact_link, match_message
from app.services.sessions import get_active_session
from app.stores import AttendanceStore, BlockStore, InteractionStore, MatchStore, ProfileStore

log = logging.getLogger("social.matcher")

LinkBuilder = Callable[..., str]  # (message, phone_number) -> url


@dataclass
class RespondOutcome:
    interaction: Interaction
    match: Match | None = None
    already_resolved: bool = False
    match_created: bool = False


@translate_store_errors
def send_interaction(
    db: Session,
    sender_id: str,
    receiver_id: str,
    interaction_type: str,
    attendance_id: int,
    *,
    now: datetime,
    message: str | None = None,
    require_phone: bool = False,
) -> Interaction:
    try:
        interaction_type = InteractionType(interaction_type).value
    except ValueError:
        raise InvalidTarget("unknown interaction type")

    if sender_id == receiver_id:
        raise InvalidTarget("cannot send to yourself")

    attendance = AttendanceStore(db).get(attendance_id)
    if (
        attendance is None
        or attendance.profile_id != sender_id
        or attendance.status != "active"
        or attendance.exited_at is not None
    ):
        raise NoActiveSession()
    if get_active_session(db, attendance.venue_id, now=now) is None:
        raise NoActiveSession()

    profiles = ProfileStore(db)
    sender = profiles.get(sender_id)
    receiver = profiles.get(receiver_id)
    if sender is None or receiver is None:
        raise InvalidTarget()
    if is_suspended(sender, now):
        raise ProfileSuspended()
    if require_phone and not (sender.phone_number or "").strip():
        raise PhoneNumberRequired()
    if is_suspended(receiver, now) or is_blocked_pair(db, sender_id, receiver_id):
        raise InvalidTarget()

    store = InteractionStore(db)
    existing = store.pending(sender_id, receiver_id, interaction_type)
    if existing is not None:
        return existing

    row, created = store.insert_pending(
        Interaction(
            attendance_id=attendance.id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            interaction_type=interaction_type,
            status="pending",
            message=message,
            created_at=now,
        )
    )
    db.commit()
    if created:
        log.info("interaction %s %s %s -> %s", row.id, interaction_type, sender_id, receiver_id)
    return row


def _contact_link(db: Session, it: Interaction, link_builder: LinkBuilder) -> str | None:
    # best-effort: a failing link generator must not block the match
    try:
        names = ProfileStore(db).get_many([it.sender_id, it.receiver_id])
        venue_name = None
        if it.attendance is not None:
            venue = db.get(Venue, it.attendance.venue_id)
            venue_name = venue.name if venue else None
        text = match_message(
            names[it.receiver_id].display_name if it.receiver_id in names else "Guest",
            names[it.sender_id].display_name if it.sender_id in names else "Guest",
            venue_name,
        )
        return link_builder(text, None)
    except Exception as e:
        log.exception("contact link generation failed for interaction %s: %s", it.id, e)
        return None


def _match_if_reciprocal(
    db: Session,
    it: Interaction,
    *,
    now: datetime,
    link_builder: LinkBuilder,
) -> tuple[Match | None, bool]:
    back = InteractionStore(db).latest_accepted(it.receiver_id, it.sender_id)
    if back is None:
        return None, False
    if is_blocked_pair(db, it.sender_id, it.receiver_id):
        return None, False

    a, b = canonical_pair(it.sender_id, it.receiver_id)
    matches = MatchStore(db)
    existing = matches.for_pair(a, b)
    if existing is not None:
        return existing, False

    match, created = matches.insert_once(
        interaction_id=it.id,
        profile_a=a,
        profile_b=b,
        contact_link=_contact_link(db, it, link_builder),
        now=now,
    )
    if created:
        log.info("match %s created %s <-> %s via interaction %s", match.id, a, b, it.id)
    return match, created


@translate_store_errors
def respond_to_interaction(
    db: Session,
    receiver_id: str,
    interaction_id: int,
    decision: str,
    *,
    now: datetime,
    link_builder: LinkBuilder = build_contact_link,
) -> RespondOutcome:
    try:
        decision = Decision(decision)
    except ValueError:
        raise InvalidTarget("unknown decision")

    store = InteractionStore(db)
    it = store.get(interaction_id)
    if it is None:
        raise InteractionNotFound()
    if it.receiver_id != receiver_id:
        raise NotReceiver()
    if it.status != "pending":
        return RespondOutcome(interaction=it, already_resolved=True)

    accept = decision is Decision.ACCEPT
    if accept:
        # serialise accepts of the same pair so the reciprocity check sees the other side
        ProfileStore(db).lock_pair(it.sender_id, it.receiver_id)

    status = "accepted" if accept else "declined"
    responded_at = max(now, it.created_at)
    if not store.resolve(it.id, status=status, responded_at=responded_at):
        db.rollback()
        return RespondOutcome(interaction=store.get(interaction_id), already_resolved=True)
    db.refresh(it)

    match, created = None, False
    if accept:
        match, created = _match_if_reciprocal(db, it, now=now, link_builder=link_builder)
    db.commit()
    return RespondOutcome(interaction=it, match=match, match_created=created)


@translate_store_errors
def unmatch(db: Session, match_id: int, requester_id: str) -> None:
    matches = MatchStore(db)
    m = matches.get(match_id)
    if m is None:
        raise MatchNotFound()
    if requester_id not in (m.profile_a, m.profile_b):
        raise NotMatchParty()

    matches.delete(m)
    db.commit()
    log.info("match %s removed by %s", match_id, requester_id)


@translate_store_errors
def block_profile(db: Session, blocker_id: str, blocked_id: str, *, now: datetime) -> Block:
    if blocker_id == blocked_id:
        raise InvalidTarget("cannot block yourself")
    if ProfileStore(db).get(blocked_id) is None:
        raise InvalidTarget()

    block, created = BlockStore(db).insert_once(blocker_id=blocker_id, blocked_id=blocked_id, now=now)
    removed = MatchStore(db).delete_pair(*canonical_pair(blocker_id, blocked_id))
    db.commit()

    if created or removed:
        log.info("block %s -> %s (matches removed=%s)", blocker_id, blocked_id, removed)
    return block


@translate_store_errors
def list_interactions(db: Session, profile_id: str) -> dict[str, list[Interaction]]:
    store = InteractionStore(db)
    return {"incoming": store.incoming(profile_id), "outgoing": store.outgoing(profile_id)}


@translate_store_errors
def list_matches(db: Session, profile_id: str) -> list[Match]:
    return MatchStore(db).for_profile(profile_id)
