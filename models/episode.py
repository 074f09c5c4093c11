"""Episode and taxonomy term data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.enums import AccessType


@dataclass
class Episode:
    """Represents a single episode as seen through the content store."""
    id: Optional[int] = None
    title: str = ""
    content: str = ""
    episode_number: Optional[int] = None  # From the configured numeric field
    access: AccessType = AccessType.UNKNOWN  # Derived from the access taxonomy
    patreon_post_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Term:
    """Represents a taxonomy term (e.g. 'Advance' in chapter-categories)."""
    id: Optional[int] = None
    name: str = ""
    slug: str = ""
    taxonomy: str = ""
