from .enums import (
    Decision,
    InteractionType,
    SessionType,
    VenueRole,
)
from .profile import Profile
from .venue import Venue
from .venue_member import VenueMember
from .session_metadata import SessionMetadata
from .attendance import Attendance
from .interaction import Interaction
from .match import Match
from .block import Block

__all__ = [
    "Decision",
    "InteractionType",
    "SessionType",
    "VenueRole",
    "Profile",
    "Venue",
    "VenueMember",
    "SessionMetadata",
    "Attendance",
    "Interaction",
    "Match",
    "Block",
]
