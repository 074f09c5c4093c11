"""Fills the episode-number field from numbers found in episode titles."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from config.settings import Settings
from models.enums import SyncStatus
from models.store import ContentStore
from tools.text_utils import extract_episode_number

logger = logging.getLogger(__name__)


@dataclass
class SyncRow:
    episode_id: int
    title: str
    current_number: Optional[int]
    detected_number: Optional[int]
    status: SyncStatus


@dataclass
class SyncReport:
    saved: bool
    rows: list[SyncRow] = field(default_factory=list)

    def count(self, *statuses: SyncStatus) -> int:
        return sum(1 for r in self.rows if r.status in statuses)

    @property
    def updated_count(self) -> int:
        return self.count(SyncStatus.UPDATED, SyncStatus.WILL_UPDATE)

    @property
    def already_set_count(self) -> int:
        return self.count(SyncStatus.ALREADY_SET)

    @property
    def no_number_count(self) -> int:
        return self.count(SyncStatus.NO_NUMBER)


def sync_episode_numbers(
    store: ContentStore,
    settings: Optional[Settings] = None,
    save: bool = False,
) -> SyncReport:
    """Detect a number in every episode title and compare it with the stored one.

    Only writes when ``save`` is true; otherwise reports what would change.
    """
    settings = settings or Settings()
    field_name = settings.episode_number_field
    report = SyncReport(saved=save)

    for episode in store.list_episodes():
        detected = extract_episode_number(episode.title)
        current = episode.episode_number
        if not detected:
            status = SyncStatus.NO_NUMBER
        elif current == detected:
            status = SyncStatus.ALREADY_SET
        elif save:
            store.set_episode_meta(episode.id, field_name, str(detected))
            status = SyncStatus.UPDATED
        else:
            status = SyncStatus.WILL_UPDATE
        report.rows.append(SyncRow(episode.id, episode.title, current, detected, status))

    logger.info(
        "Episode number sync (save=%s): %d to update, %d already set, %d without number",
        save, report.updated_count, report.already_set_count, report.no_number_count,
    )
    return report
