"""Tests for applying access tiers to episodes."""

from unittest.mock import MagicMock

import pytest

from config.exceptions import RemoteCallFailedError
from models.enums import AccessType, StepStatus
from workflow.access import (
    TIER_LEVEL_KEY,
    TIER_LEVEL_PRIVATE_KEY,
    AccessApplier,
)


class TestApplyFree:
    def test_advance_to_free_sets_every_layer(self, db, applier, mock_patreon, make_episode):
        ep = make_episode(5, patreon_post_id="post-5")
        db.set_episode_meta(ep.id, TIER_LEVEL_PRIVATE_KEY, "tier-123")
        db.set_episode_meta(ep.id, TIER_LEVEL_KEY, "tier-123")

        outcome = applier.apply(ep, AccessType.FREE)

        assert outcome.success
        assert outcome.previous_access == AccessType.ADVANCE
        assert [t.name for t in db.get_episode_terms(ep.id)] == ["Free"]
        assert db.get_episode_meta(ep.id, TIER_LEVEL_KEY) == "0"
        assert db.get_episode_meta(ep.id, TIER_LEVEL_PRIVATE_KEY) is None
        assert db.get_custom_field(ep.id, "section") == "free"
        mock_patreon.set_post_visibility.assert_called_once_with("post-5", is_public=True)
        assert [s.status for s in outcome.steps] == [StepStatus.APPLIED] * 4

    def test_advance_then_free_clears_tier_gate(self, db, applier, make_episode):
        ep = make_episode(5, access=AccessType.FREE)

        applier.apply(ep, "advance")
        assert db.get_episode_meta(ep.id, TIER_LEVEL_KEY) == "tier-123"
        assert db.get_episode_meta(ep.id, TIER_LEVEL_PRIVATE_KEY) == "tier-123"

        outcome = applier.apply(db.get_episode(ep.id), "free")

        assert outcome.success
        assert outcome.previous_access == AccessType.ADVANCE
        assert db.get_episode_meta(ep.id, TIER_LEVEL_KEY) == "0"
        assert db.get_episode_meta(ep.id, TIER_LEVEL_PRIVATE_KEY) is None
        assert [t.name for t in db.get_episode_terms(ep.id)] == ["Free"]
        assert db.get_custom_field(ep.id, "section") == "free"

    def test_free_is_idempotent(self, db, applier, make_episode):
        ep = make_episode(5)
        applier.apply(ep, AccessType.FREE)
        snapshot = (
            [t.name for t in db.get_episode_terms(ep.id)],
            db.get_episode_meta(ep.id, TIER_LEVEL_KEY),
            db.get_episode_meta(ep.id, TIER_LEVEL_PRIVATE_KEY),
            db.get_custom_field(ep.id, "section"),
        )

        outcome = applier.apply(db.get_episode(ep.id), AccessType.FREE)

        assert outcome.success
        assert snapshot == (
            [t.name for t in db.get_episode_terms(ep.id)],
            db.get_episode_meta(ep.id, TIER_LEVEL_KEY),
            db.get_episode_meta(ep.id, TIER_LEVEL_PRIVATE_KEY),
            db.get_custom_field(ep.id, "section"),
        )
        assert snapshot == (["Free"], "0", None, "free")

    def test_missing_term_is_created(self, db, applier, make_episode):
        ep = make_episode(5)
        assert db.get_term_by("name", "Free") is None
        outcome = applier.apply(ep, AccessType.FREE)
        assert db.get_term_by("name", "Free") is not None
        assert "term created" in outcome.step("taxonomy").detail

    def test_existing_term_found_by_slug(self, db, applier, make_episode):
        ep = make_episode(5)
        existing = db.insert_term("Free Access")
        with db._get_conn() as conn:
            conn.execute("UPDATE terms SET slug = 'free' WHERE id = ?", (existing.id,))
        applier.apply(ep, AccessType.FREE)
        assert [t.id for t in db.get_episode_terms(ep.id)] == [existing.id]


class TestApplyAdvance:
    def test_sets_tier_gate_to_paid_tier(self, db, applier, mock_patreon, make_episode):
        ep = make_episode(5, access=AccessType.FREE, patreon_post_id="post-5")
        outcome = applier.apply(ep, AccessType.ADVANCE)

        assert outcome.success
        assert db.get_episode(ep.id).access == AccessType.ADVANCE
        assert db.get_episode_meta(ep.id, TIER_LEVEL_KEY) == "tier-123"
        assert db.get_episode_meta(ep.id, TIER_LEVEL_PRIVATE_KEY) == "tier-123"
        mock_patreon.set_post_visibility.assert_called_once_with("post-5", is_public=False)

    def test_without_paid_tier_gate_is_skipped(self, db, settings, mock_patreon, make_episode):
        no_tier = settings.model_copy(update={"patreon_paid_tier_id": ""})
        ep = make_episode(5, access=AccessType.FREE)
        outcome = AccessApplier(db, no_tier, patreon=mock_patreon).apply(ep, AccessType.ADVANCE)

        assert outcome.success
        assert outcome.step("tier_gate").status == StepStatus.SKIPPED
        assert db.get_episode_meta(ep.id, TIER_LEVEL_KEY) is None

    def test_unknown_access_rejected(self, applier, make_episode):
        with pytest.raises(ValueError):
            applier.apply(make_episode(5), AccessType.UNKNOWN)

    def test_string_access_type_accepted(self, applier, make_episode):
        assert applier.apply(make_episode(5), "free").access_type == AccessType.FREE


class TestStepIsolation:
    def test_no_patreon_post_skips_mirror(self, applier, mock_patreon, make_episode):
        outcome = applier.apply(make_episode(5), AccessType.FREE)
        assert outcome.step("patreon").status == StepStatus.SKIPPED
        assert "No Patreon post ID" in outcome.step("patreon").detail
        mock_patreon.set_post_visibility.assert_not_called()

    def test_patreon_failure_keeps_cms_changes(self, db, applier, mock_patreon, make_episode):
        mock_patreon.set_post_visibility.side_effect = RemoteCallFailedError(
            "Patreon API returned status 401", status_code=401,
        )
        ep = make_episode(5, patreon_post_id="post-5")
        outcome = applier.apply(ep, AccessType.FREE)

        assert outcome.success
        assert outcome.step("patreon").status == StepStatus.FAILED
        assert "401" in outcome.step("patreon").detail
        assert db.get_episode(ep.id).access == AccessType.FREE
        assert db.get_custom_field(ep.id, "section") == "free"

    def test_taxonomy_failure_marks_outcome_failed_but_runs_other_steps(
        self, db, settings, mock_patreon, make_episode,
    ):
        ep = make_episode(5, patreon_post_id="post-5")
        store = MagicMock(wraps=db)
        store.supports_custom_fields = True
        store.set_episode_terms.side_effect = RuntimeError("disk full")

        outcome = AccessApplier(store, settings, patreon=mock_patreon).apply(ep, AccessType.FREE)

        assert not outcome.success
        assert outcome.step("taxonomy").status == StepStatus.FAILED
        assert outcome.step("custom_field").status == StepStatus.APPLIED
        mock_patreon.set_post_visibility.assert_called_once()

    def test_store_without_custom_fields_skips_step(self, db, settings, mock_patreon, make_episode):
        ep = make_episode(5)
        store = MagicMock(wraps=db)
        store.supports_custom_fields = False
        outcome = AccessApplier(store, settings, patreon=mock_patreon).apply(ep, AccessType.FREE)
        assert outcome.step("custom_field").status == StepStatus.SKIPPED
        store.set_custom_field.assert_not_called()
