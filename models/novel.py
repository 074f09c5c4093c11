"""Novel data model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Novel:
    """Represents a series whose episodes are unlocked on a schedule."""
    id: Optional[int] = None
    title: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
