from .attendance import AttendanceStore
from .blocks import BlockStore
from .interactions import InteractionStore
from .matches import MatchStore
from .profiles import ProfileStore
from .sessions import SessionStore

__all__ = [
    "AttendanceStore",
    "BlockStore",
    "InteractionStore",
    "MatchStore",
    "ProfileStore",
    "SessionStore",
]
