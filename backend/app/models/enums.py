import enum


class VenueRole(str, enum.Enum):
    OWNER = "OWNER"
    STAFF = "STAFF"


class SessionType(str, enum.Enum):
    EVENT = "event"
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"


class InteractionType(str, enum.Enum):
    LIKE = "like"
    INVITE = "invite"


class Decision(str, enum.Enum):
    ACCEPT = "accept"
    DECLINE = "decline"
