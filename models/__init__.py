"""Models package: content store, data models, and enums."""

from models.database import Database
from models.novel import Novel
from models.episode import Episode, Term
from models.schedule import UnlockSchedule
from models.store import ContentStore
from models.enums import (
    AccessType,
    Confidence,
    StepStatus,
    RunStatus,
    SyncStatus,
)

__all__ = [
    "Database",
    "ContentStore",
    "Novel",
    "Episode",
    "Term",
    "UnlockSchedule",
    "AccessType",
    "Confidence",
    "StepStatus",
    "RunStatus",
    "SyncStatus",
]
