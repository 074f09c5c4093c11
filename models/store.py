"""Capability interface the unlock engine expects from a content store."""

from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from models.episode import Episode, Term
from models.novel import Novel


@runtime_checkable
class ContentStore(Protocol):
    """Query and mutation surface of the CMS.

    The engine only depends on these methods; ``models.database.Database``
    is the SQLite implementation.
    """

    supports_custom_fields: bool

    # Novels
    def get_novel(self, novel_id: int) -> Optional[Novel]: ...
    def get_novel_meta(self, novel_id: int, key: str) -> Optional[str]: ...
    def set_novel_meta(self, novel_id: int, key: str, value: str) -> None: ...
    def delete_novel_meta(self, novel_id: int, key: str) -> None: ...

    # Episodes
    def get_episode(self, episode_id: int) -> Optional[Episode]: ...
    def list_episodes(self) -> list[Episode]: ...
    def find_episodes_by_meta(self, key: str, value: str, limit: Optional[int] = None) -> list[Episode]: ...
    def get_episodes_by_term(self, slug: str) -> list[Episode]: ...
    def search_episodes(self, text: str, limit: int = 5) -> list[Episode]: ...
    def get_episode_meta(self, episode_id: int, key: str) -> Optional[str]: ...
    def set_episode_meta(self, episode_id: int, key: str, value: str) -> None: ...
    def delete_episode_meta(self, episode_id: int, key: str) -> None: ...

    # Taxonomy
    def get_term_by(self, field: str, value: str) -> Optional[Term]: ...
    def insert_term(self, name: str) -> Term: ...
    def set_episode_terms(self, episode_id: int, term_ids: list[int]) -> None: ...
    def get_episode_terms(self, episode_id: int) -> list[Term]: ...

    # Custom fields
    def get_custom_field(self, episode_id: int, field_name: str) -> Optional[str]: ...
    def set_custom_field(self, episode_id: int, field_name: str, value: str) -> None: ...

    # Options and locks
    def get_option(self, name: str, default: Any = None) -> Any: ...
    def set_option(self, name: str, value: Any) -> None: ...
    def try_acquire_lock(self, name: str, stale_after_seconds: int, now: Optional[datetime] = None) -> bool: ...
    def release_lock(self, name: str, acquired_at: Optional[datetime] = None) -> None: ...
