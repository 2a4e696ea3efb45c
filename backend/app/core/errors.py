from __future__ import annotations

import functools
import logging

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

log = logging.getLogger("social.errors")


class CoreError(Exception):
    """Recoverable, typed outcome surfaced to the caller.

    `code` is stable and machine readable, `message` is safe to show a guest.
    """

    code = "error"
    status_code = 400
    message = "Something went wrong."

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.message)
        self.detail = detail


class NoActiveSession(CoreError):
    code = "session_ended"
    status_code = 409
    message = "There is no live session at this venue."


class SessionNotFound(CoreError):
    code = "session_not_found"
    status_code = 404
    message = "Session not found."


class VenueNotFound(CoreError):
    code = "venue_not_found"
    status_code = 404
    message = "Venue not found."


class ActiveElsewhere(CoreError):
    code = "active_session_exists"
    status_code = 409
    message = "You are still checked in at another venue."


class InteractionNotFound(CoreError):
    code = "interaction_not_found"
    status_code = 404
    message = "Invite not found."


class NotReceiver(CoreError):
    code = "not_receiver"
    status_code = 403
    message = "This invite was not sent to you."


class InvalidTarget(CoreError):
    code = "invalid_target"
    status_code = 400
    message = "That guest is not available."


class MatchNotFound(CoreError):
    code = "match_not_found"
    status_code = 404
    message = "Match not found."


class NotMatchParty(CoreError):
    code = "not_match_party"
    status_code = 403
    message = "You can only unmatch your own matches."


class ProfileSuspended(CoreError):
    code = "profile_suspended"
    status_code = 403
    message = "Your profile is temporarily blocked by the venue."


class PhoneNumberRequired(CoreError):
    code = "phone_required"
    status_code = 400
    message = "Add your phone number in Profile to send vibes and unlock matching."


class StoreUnavailable(CoreError):
    code = "try_again"
    status_code = 503
    message = "Try again in a moment."


_TRANSIENT = (OperationalError, InterfaceError, PoolTimeoutError)


def translate_store_errors(fn):
    """Turn driver/connection failures into StoreUnavailable."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except _TRANSIENT as e:
            log.exception("store failure in %s: %s", fn.__name__, e)
            raise StoreUnavailable() from e

    return wrapper
