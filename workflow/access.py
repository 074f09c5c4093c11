"""Applies an access tier to an episode in the CMS and on Patreon.

The four steps run in order and each one reports its own result; a failing
step never stops the ones after it. CMS-side steps are authoritative, the
Patreon mirror is best effort.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from config.exceptions import NovelGateError
from config.settings import Settings
from models.database import slugify
from models.enums import AccessType, StepStatus
from models.episode import Episode
from models.store import ContentStore
from publisher.patreon_client import PatreonClient

logger = logging.getLogger(__name__)

# Tier-gate metadata written by the Patreon WordPress plugin
TIER_LEVEL_KEY = "patreon-level"
TIER_LEVEL_PRIVATE_KEY = "_ppwp_patreon_level"
UNGATED_LEVEL = "0"


@dataclass
class StepResult:
    name: str
    status: StepStatus
    detail: str

    @property
    def ok(self) -> bool:
        return self.status != StepStatus.FAILED


@dataclass
class AccessOutcome:
    """Aggregated result of one apply_access call."""
    episode_id: int
    access_type: AccessType
    previous_access: AccessType = AccessType.UNKNOWN
    steps: list[StepResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True when the taxonomy term, the authoritative tier, was set."""
        taxonomy = self.step("taxonomy")
        return taxonomy is not None and taxonomy.status == StepStatus.APPLIED

    @property
    def failures(self) -> list[StepResult]:
        return [s for s in self.steps if s.status == StepStatus.FAILED]

    def step(self, name: str) -> Optional[StepResult]:
        for s in self.steps:
            if s.name == name:
                return s
        return None


class AccessApplier:
    """Sets an episode's tier across taxonomy, tier gate, custom field and Patreon."""

    def __init__(
        self,
        store: ContentStore,
        settings: Optional[Settings] = None,
        patreon: Optional[PatreonClient] = None,
    ):
        self.store = store
        self.settings = settings or Settings()
        self.patreon = patreon or PatreonClient(self.settings)

    def apply(self, episode: Episode, access_type: AccessType | str) -> AccessOutcome:
        access_type = AccessType(access_type)
        if access_type == AccessType.UNKNOWN:
            raise ValueError("access_type must be 'free' or 'advance'")

        outcome = AccessOutcome(
            episode_id=episode.id,
            access_type=access_type,
            previous_access=episode.access,
        )
        steps: list[tuple[str, Callable[[Episode, AccessType], StepResult]]] = [
            ("taxonomy", self._set_taxonomy),
            ("tier_gate", self._set_tier_gate),
            ("custom_field", self._set_custom_field),
            ("patreon", self._mirror_to_patreon),
        ]
        for name, step in steps:
            try:
                outcome.steps.append(step(episode, access_type))
            except NovelGateError as e:
                logger.warning("Step '%s' failed for episode %s: %s", name, episode.id, e)
                outcome.steps.append(StepResult(name, StepStatus.FAILED, str(e)))
            except Exception as e:
                logger.exception("Step '%s' crashed for episode %s", name, episode.id)
                outcome.steps.append(StepResult(name, StepStatus.FAILED, f"Unexpected error: {e}"))

        logger.info(
            "Episode %s: %s -> %s (%s)",
            episode.id, episode.access.value, access_type.value,
            ", ".join(f"{s.name}={s.status.value}" for s in outcome.steps),
        )
        return outcome

    # ---- Steps ----------------------------------------------------------

    def _set_taxonomy(self, episode: Episode, access_type: AccessType) -> StepResult:
        name = access_type.term_name
        term = self.store.get_term_by("name", name) or self.store.get_term_by("slug", slugify(name))
        created = term is None
        if created:
            term = self.store.insert_term(name)

        self.store.set_episode_terms(episode.id, [term.id])
        current = ", ".join(t.name for t in self.store.get_episode_terms(episode.id)) or "none"
        detail = f'Set to "{term.name}" category; episode now has: {current}'
        if created:
            detail = f'"{name}" term created. ' + detail
        return StepResult("taxonomy", StepStatus.APPLIED, detail)

    def _set_tier_gate(self, episode: Episode, access_type: AccessType) -> StepResult:
        if access_type == AccessType.FREE:
            self.store.delete_episode_meta(episode.id, TIER_LEVEL_PRIVATE_KEY)
            self.store.delete_episode_meta(episode.id, TIER_LEVEL_KEY)
            self.store.set_episode_meta(episode.id, TIER_LEVEL_KEY, UNGATED_LEVEL)
            return StepResult(
                "tier_gate", StepStatus.APPLIED,
                "Removed Patreon tier restriction (available to everyone)",
            )

        tier_id = self.settings.patreon_paid_tier_id
        if not tier_id:
            logger.warning("Paid tier id not configured; tier gate unchanged for episode %s", episode.id)
            return StepResult(
                "tier_gate", StepStatus.SKIPPED,
                "Paid tier ID not configured; tier gate left unchanged",
            )
        self.store.set_episode_meta(episode.id, TIER_LEVEL_PRIVATE_KEY, tier_id)
        self.store.set_episode_meta(episode.id, TIER_LEVEL_KEY, tier_id)
        return StepResult("tier_gate", StepStatus.APPLIED, f"Set Patreon tier requirement to tier {tier_id}")

    def _set_custom_field(self, episode: Episode, access_type: AccessType) -> StepResult:
        field_name = self.settings.access_type_field
        if not getattr(self.store, "supports_custom_fields", False):
            return StepResult("custom_field", StepStatus.SKIPPED, "Content store has no custom fields")
        self.store.set_custom_field(episode.id, field_name, access_type.value)
        return StepResult(
            "custom_field", StepStatus.APPLIED,
            f'Updated field "{field_name}" to "{access_type.value}"',
        )

    def _mirror_to_patreon(self, episode: Episode, access_type: AccessType) -> StepResult:
        if not episode.patreon_post_id:
            return StepResult("patreon", StepStatus.SKIPPED, "No Patreon post ID found for this episode.")
        self.patreon.set_post_visibility(episode.patreon_post_id, is_public=access_type == AccessType.FREE)
        return StepResult(
            "patreon", StepStatus.APPLIED,
            f"Patreon post {episode.patreon_post_id} updated to '{access_type.value}' access.",
        )
