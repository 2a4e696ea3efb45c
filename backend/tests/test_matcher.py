"""
Tests for interactions and reciprocal matching.

Tests:
- Sending is idempotent per (sender, receiver, type) while pending
- A match needs both directions accepted, exactly once, in canonical order
- Resolved interactions stay resolved
- Blocks and unmatch
"""

import pytest
from sqlalchemy import func, select

from app.core.errors import (
    InteractionNotFound,
    InvalidTarget,
    MatchNotFound,
    NoActiveSession,
    NotMatchParty,
    NotReceiver,
    PhoneNumberRequired,
    ProfileSuspended,
)
from app.models import Interaction, Match
from app.services import matcher, sessions
from app.services.moderation import set_guest_status
from app.stores import InteractionStore, MatchStore

from conftest import add_profile


@pytest.fixture
def inside(db, venue, night, guests, clock):
    """Attendance ids of alice, bob and carol, all checked in tonight."""
    return {pid: sessions.ensure_attendance(db, venue.id, pid, now=clock()).id for pid in guests}


def _like(db, clock, inside, sender, receiver, kind="like"):
    return matcher.send_interaction(db, sender, receiver, kind, inside[sender], now=clock())


def _match_count(db):
    return db.execute(select(func.count(Match.id))).scalar_one()


class TestSend:
    def test_send_is_idempotent(self, db, inside, clock):
        first = _like(db, clock, inside, "alice", "bob")
        again = _like(db, clock, inside, "alice", "bob")

        assert first.id == again.id
        assert first.status == "pending"
        count = db.execute(select(func.count(Interaction.id))).scalar_one()
        assert count == 1

    def test_like_and_invite_are_separate(self, db, inside, clock):
        like = _like(db, clock, inside, "alice", "bob")
        invite = _like(db, clock, inside, "alice", "bob", kind="invite")
        assert like.id != invite.id

    def test_lost_pending_race_absorbed(self, db, inside, clock):
        winner = _like(db, clock, inside, "alice", "bob")

        row, created = InteractionStore(db).insert_pending(
            Interaction(
                attendance_id=inside["alice"],
                sender_id="alice",
                receiver_id="bob",
                interaction_type="like",
                status="pending",
                created_at=clock(),
            )
        )
        db.commit()

        assert created is False
        assert row.id == winner.id

    def test_self(self, db, inside, clock):
        with pytest.raises(InvalidTarget):
            _like(db, clock, inside, "alice", "alice")

    def test_unknown_type(self, db, inside, clock):
        with pytest.raises(InvalidTarget):
            _like(db, clock, inside, "alice", "bob", kind="poke")

    def test_unknown_receiver(self, db, inside, clock):
        with pytest.raises(InvalidTarget):
            _like(db, clock, inside, "alice", "nobody")

    def test_someone_elses_attendance(self, db, inside, clock):
        with pytest.raises(NoActiveSession):
            matcher.send_interaction(db, "alice", "bob", "like", inside["carol"], now=clock())

    def test_after_session_ended(self, db, inside, clock):
        clock.advance(hours=6)
        with pytest.raises(NoActiveSession):
            _like(db, clock, inside, "alice", "bob")

    def test_suspended_sender(self, db, venue, inside, clock):
        set_guest_status(db, venue.id, "alice", action="block", duration="1h", now=clock())
        with pytest.raises(ProfileSuspended):
            _like(db, clock, inside, "alice", "bob")

        clock.advance(hours=1, minutes=1)
        assert _like(db, clock, inside, "alice", "bob").status == "pending"

    def test_suspended_receiver(self, db, venue, inside, clock):
        set_guest_status(db, venue.id, "bob", action="block", now=clock())
        with pytest.raises(InvalidTarget):
            _like(db, clock, inside, "alice", "bob")

    def test_blocked_pair(self, db, inside, clock):
        matcher.block_profile(db, "bob", "alice", now=clock())
        with pytest.raises(InvalidTarget):
            _like(db, clock, inside, "alice", "bob")

    def test_phone_required(self, db, venue, inside, clock):
        with pytest.raises(PhoneNumberRequired):
            matcher.send_interaction(
                db, "alice", "bob", "like", inside["alice"], now=clock(), require_phone=True
            )

        add_profile(db, "dave", phone_number="+44 20 7946 0958")
        dave_att = sessions.ensure_attendance(db, venue.id, "dave", now=clock()).id
        row = matcher.send_interaction(
            db, "dave", "bob", "like", dave_att, now=clock(), require_phone=True
        )
        assert row.sender_id == "dave"


class TestRespond:
    @pytest.mark.parametrize("first_accepter", ["alice", "bob"])
    def test_reciprocal_accepts_make_one_match(self, db, inside, clock, first_accepter):
        a_to_b = _like(db, clock, inside, "alice", "bob")
        b_to_a = _like(db, clock, inside, "bob", "alice")
        # the receiver accepts the interaction sent to them
        order = [(a_to_b, "bob"), (b_to_a, "alice")]
        if first_accepter == "alice":
            order.reverse()

        (it1, r1), (it2, r2) = order
        first = matcher.respond_to_interaction(db, r1, it1.id, "accept", now=clock.advance(minutes=1))
        assert first.match is None

        second = matcher.respond_to_interaction(db, r2, it2.id, "accept", now=clock.advance(minutes=1))
        assert second.match_created is True
        assert (second.match.profile_a, second.match.profile_b) == ("alice", "bob")
        assert second.match.contact_link.startswith("https://wa.me/?text=")
        assert "Night%20Owl" in second.match.contact_link
        assert _match_count(db) == 1

    def test_one_sided_accept_is_no_match(self, db, inside, clock):
        it = _like(db, clock, inside, "alice", "bob")
        out = matcher.respond_to_interaction(db, "bob", it.id, "accept", now=clock())

        assert out.interaction.status == "accepted"
        assert out.match is None
        assert _match_count(db) == 0

    def test_existing_match_is_returned(self, db, inside, clock):
        a_to_b = _like(db, clock, inside, "alice", "bob")
        b_to_a = _like(db, clock, inside, "bob", "alice")
        matcher.respond_to_interaction(db, "bob", a_to_b.id, "accept", now=clock())

        # another writer got the pair in first
        pre, _ = MatchStore(db).insert_once(
            interaction_id=a_to_b.id, profile_a="alice", profile_b="bob", contact_link=None, now=clock()
        )
        db.commit()

        out = matcher.respond_to_interaction(db, "alice", b_to_a.id, "accept", now=clock())
        assert out.match.id == pre.id
        assert out.match_created is False
        assert _match_count(db) == 1

    def test_accept_twice(self, db, inside, clock):
        it = _like(db, clock, inside, "alice", "bob")
        matcher.respond_to_interaction(db, "bob", it.id, "accept", now=clock())
        again = matcher.respond_to_interaction(db, "bob", it.id, "accept", now=clock())

        assert again.already_resolved is True
        assert again.interaction.status == "accepted"

    def test_accept_after_decline(self, db, inside, clock):
        matcher.respond_to_interaction(
            db, "alice", _like(db, clock, inside, "bob", "alice").id, "accept", now=clock()
        )
        it = _like(db, clock, inside, "alice", "bob")
        declined = matcher.respond_to_interaction(db, "bob", it.id, "decline", now=clock())
        assert declined.interaction.status == "declined"

        out = matcher.respond_to_interaction(db, "bob", it.id, "accept", now=clock())
        assert out.already_resolved is True
        assert out.interaction.status == "declined"
        assert out.match is None
        assert _match_count(db) == 0

    def test_responded_at_never_before_created(self, db, inside, clock):
        it = _like(db, clock, inside, "alice", "bob")
        out = matcher.respond_to_interaction(db, "bob", it.id, "decline", now=clock.advance(minutes=-5))
        assert out.interaction.responded_at == out.interaction.created_at

    def test_not_receiver(self, db, inside, clock):
        it = _like(db, clock, inside, "alice", "bob")
        with pytest.raises(NotReceiver):
            matcher.respond_to_interaction(db, "carol", it.id, "accept", now=clock())

    def test_unknown_interaction(self, db, inside, clock):
        with pytest.raises(InteractionNotFound):
            matcher.respond_to_interaction(db, "bob", 404, "accept", now=clock())

    def test_bad_decision(self, db, inside, clock):
        it = _like(db, clock, inside, "alice", "bob")
        with pytest.raises(InvalidTarget):
            matcher.respond_to_interaction(db, "bob", it.id, "maybe", now=clock())

    def test_link_failure_still_matches(self, db, inside, clock):
        def broken(message, phone_number=None):
            raise RuntimeError("link service down")

        a_to_b = _like(db, clock, inside, "alice", "bob")
        b_to_a = _like(db, clock, inside, "bob", "alice")
        matcher.respond_to_interaction(db, "bob", a_to_b.id, "accept", now=clock(), link_builder=broken)
        out = matcher.respond_to_interaction(db, "alice", b_to_a.id, "accept", now=clock(), link_builder=broken)

        assert out.match_created is True
        assert out.match.contact_link is None

    def test_blocked_pair_at_accept(self, db, inside, clock):
        a_to_b = _like(db, clock, inside, "alice", "bob")
        b_to_a = _like(db, clock, inside, "bob", "alice")
        matcher.respond_to_interaction(db, "bob", a_to_b.id, "accept", now=clock())
        matcher.block_profile(db, "bob", "alice", now=clock())

        out = matcher.respond_to_interaction(db, "alice", b_to_a.id, "accept", now=clock())
        assert out.interaction.status == "accepted"
        assert out.match is None


class TestMatchesAndBlocks:
    @pytest.fixture
    def match(self, db, inside, clock):
        a_to_b = _like(db, clock, inside, "alice", "bob")
        b_to_a = _like(db, clock, inside, "bob", "alice")
        matcher.respond_to_interaction(db, "bob", a_to_b.id, "accept", now=clock())
        return matcher.respond_to_interaction(db, "alice", b_to_a.id, "accept", now=clock()).match

    def test_block_removes_match(self, db, match, clock):
        matcher.block_profile(db, "bob", "alice", now=clock())
        assert _match_count(db) == 0
        assert matcher.list_matches(db, "alice") == []

    def test_block_twice(self, db, match, clock):
        first = matcher.block_profile(db, "bob", "alice", now=clock())
        again = matcher.block_profile(db, "bob", "alice", now=clock())
        assert first.id == again.id

    def test_block_self(self, db, inside, clock):
        with pytest.raises(InvalidTarget):
            matcher.block_profile(db, "alice", "alice", now=clock())

    def test_unmatch(self, db, match):
        matcher.unmatch(db, match.id, "bob")
        assert _match_count(db) == 0

    def test_unmatch_not_party(self, db, match):
        with pytest.raises(NotMatchParty):
            matcher.unmatch(db, match.id, "carol")

    def test_unmatch_unknown(self, db, inside):
        with pytest.raises(MatchNotFound):
            matcher.unmatch(db, 12345, "alice")

    def test_listings(self, db, match, inside, clock):
        _like(db, clock, inside, "carol", "alice", kind="invite")

        grouped = matcher.list_interactions(db, "alice")
        assert [i.sender_id for i in grouped["incoming"]] == ["carol", "bob"]
        assert [i.receiver_id for i in grouped["outgoing"]] == ["bob"]
        assert [m.id for m in matcher.list_matches(db, "bob")] == [match.id]
