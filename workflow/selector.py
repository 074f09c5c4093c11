"""Picks the next advance episode of a novel to unlock."""

import logging
from typing import Optional

from models.enums import AccessType
from models.episode import Episode
from models.novel import Novel
from models.store import ContentStore
from tools.text_utils import title_contains

logger = logging.getLogger(__name__)


def resolve_search_term(novel: Novel, search_term: Optional[str] = None) -> str:
    """Schedule override if given, otherwise the novel title."""
    return (search_term or "").strip() or novel.title


def select_next_episode(
    store: ContentStore,
    novel: Novel,
    search_term: Optional[str] = None,
) -> Optional[Episode]:
    """Return the advance episode with the lowest episode number for ``novel``.

    Candidates are advance episodes whose title contains the search term
    (case-insensitive) and whose episode number is set. Ties are broken by
    episode id. Returns None when nothing qualifies.
    """
    term = resolve_search_term(novel, search_term)
    candidates = [
        ep for ep in store.get_episodes_by_term(AccessType.ADVANCE.value)
        if ep.episode_number is not None and title_contains(ep.title, term)
    ]
    if not candidates:
        logger.info("No advance episodes matching '%s' for novel %s", term, novel.id)
        return None

    episode = min(candidates, key=lambda ep: (ep.episode_number, ep.id))
    logger.debug(
        "Selected episode %s (#%s) for novel %s out of %d candidates",
        episode.id, episode.episode_number, novel.id, len(candidates),
    )
    return episode
