"""Domain enums — pure Python, no external dependencies."""

from enum import Enum


class TicketStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Availability(str, Enum):
    FREE = "free"
    BUSY = "busy"
    OFFLINE = "offline"


class SkillLevel(str, Enum):
    NOVICE = "novice"
    ADVANCED = "advanced"
    EXPERT = "expert"


class Role(str, Enum):
    """User roles, declared in ascending order of authority."""

    ENGINEER = "engineer"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def rank(self) -> int:
        return _ROLE_ORDER.index(self)

    def at_least(self, other: "Role") -> bool:
        return self.rank >= other.rank

    def is_manager_tier(self) -> bool:
        return self.at_least(Role.MANAGER)


_ROLE_ORDER = list(Role)


class TicketOperation(str, Enum):
    ASSIGN = "assign"
    UNASSIGN = "unassign"
    UPDATE_STATUS = "update_status"
    COMPLETE = "complete"
    CLOSE = "close"
    AUTO_ASSIGN = "auto_assign"
    SUGGEST = "suggest"


class HistoryAction(str, Enum):
    COMPLETED = "completed"
    CLOSED = "closed"
