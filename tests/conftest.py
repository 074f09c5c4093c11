"""Shared pytest fixtures for the novelgate test suite."""

from datetime import datetime
from unittest.mock import MagicMock

import httpx
import pytest


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    """Return a Settings instance with all paths pointing to tmp_path."""
    from config.settings import Settings
    return Settings(
        _env_file=None,
        sqlite_db_path=tmp_path / "novelgate.db",
        log_dir=tmp_path / "logs",
        gemini_api_key="test-gemini-key",
        patreon_access_token="test-patreon-token",
        patreon_paid_tier_id="tier-123",
    )


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db(settings):
    """Return an initialized Database backed by a temp file."""
    from models.database import Database
    return Database.from_settings(settings)


# ---------------------------------------------------------------------------
# Remote client mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_patreon():
    """Return a MagicMock standing in for PatreonClient."""
    from publisher.patreon_client import PatreonClient, PatreonResponse
    patreon = MagicMock(spec=PatreonClient)
    patreon.set_post_visibility.return_value = PatreonResponse(status_code=200, body="{}")
    return patreon


@pytest.fixture
def applier(db, settings, mock_patreon):
    from workflow.access import AccessApplier
    return AccessApplier(db, settings, patreon=mock_patreon)


@pytest.fixture
def mock_http():
    """Factory for httpx clients whose requests are answered by ``handler``.

    Every request is recorded in the returned list.
    """
    def factory(handler, base_url="https://api.test"):
        requests = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(recording_handler), base_url=base_url)
        return client, requests

    return factory


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

NOVEL_TITLE = "Surviving The Game As A Barbarian"


@pytest.fixture
def sample_novel(db):
    """Insert and return a sample Novel record."""
    from models.novel import Novel
    novel = Novel(title=NOVEL_TITLE)
    novel.id = db.create_novel(novel)
    return novel


@pytest.fixture
def make_episode(db):
    """Factory that inserts an episode and returns it as read back from the store."""
    from models.enums import AccessType
    from models.episode import Episode

    def factory(number, access=AccessType.ADVANCE, title=None, patreon_post_id=None, content=""):
        episode = Episode(
            title=title or f"{NOVEL_TITLE} Episode {number}",
            content=content,
            episode_number=number,
            access=access,
            patreon_post_id=patreon_post_id,
        )
        episode_id = db.create_episode(episode)
        return db.get_episode(episode_id)

    return factory


@pytest.fixture
def advance_episodes(make_episode):
    """Three advance episodes numbered 12, 5 and 8."""
    return [make_episode(n, patreon_post_id=f"post-{n}") for n in (12, 5, 8)]


@pytest.fixture
def monday_morning():
    """Monday 2024-01-15 01:30."""
    return datetime(2024, 1, 15, 1, 30)
