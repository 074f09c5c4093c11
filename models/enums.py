"""Enumerations for access tiers and run outcomes."""

from enum import Enum


class AccessType(str, Enum):
    FREE = "free"
    ADVANCE = "advance"
    UNKNOWN = "unknown"

    @property
    def term_name(self) -> str:
        """Display name of the taxonomy term for this tier."""
        return self.value.capitalize()


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StepStatus(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunStatus(str, Enum):
    UNLOCKED = "unlocked"
    WILL_UNLOCK = "will-unlock"
    NOT_DUE = "not-due"
    NO_EPISODE_FOUND = "no-episode-found"
    FAILED = "unlock-failed"


class SyncStatus(str, Enum):
    ALREADY_SET = "already-set"
    UPDATED = "updated"
    WILL_UPDATE = "will-update"
    NO_NUMBER = "no-number"
