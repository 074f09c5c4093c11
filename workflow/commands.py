"""Executes structured access commands, typed or interpreted from free text."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from agents.command_agent import CommandInterpreter, CommandIntent
from config.exceptions import InvalidCommandError, NotFoundError, NovelGateError
from config.settings import Settings
from models.enums import AccessType
from models.episode import Episode
from models.store import ContentStore
from workflow.access import AccessApplier, AccessOutcome

logger = logging.getLogger(__name__)

NEAR_MATCH_LIMIT = 5


@dataclass
class CommandResult:
    success: bool
    message: str
    messages: list[str] = field(default_factory=list)
    intent: Optional[CommandIntent] = None
    outcome: Optional[AccessOutcome] = None
    near_matches: list[Episode] = field(default_factory=list)


def validate_command(data: Any) -> tuple[int, AccessType]:
    """Return ``(episode_number, access_type)`` from a structured command.

    Raises:
        InvalidCommandError: On missing fields, a non-integer number or an unknown access type.
    """
    if not isinstance(data, dict) or data.get("episode_number") is None or data.get("access_type") is None:
        raise InvalidCommandError("Invalid data structure. Missing episode_number or access_type.")

    raw_number = data["episode_number"]
    if isinstance(raw_number, bool):
        raise InvalidCommandError("episode_number must be an integer", {"episode_number": raw_number})
    try:
        episode_number = int(str(raw_number).strip())
    except ValueError:
        raise InvalidCommandError(
            "episode_number must be an integer", {"episode_number": raw_number}
        ) from None

    access = str(data["access_type"]).strip().lower()
    if access not in (AccessType.FREE.value, AccessType.ADVANCE.value):
        raise InvalidCommandError('Invalid access type. Must be "free" or "advance".', {"access_type": access})
    return episode_number, AccessType(access)


class CommandExecutor:
    """Resolves an episode by its number and applies the requested access tier."""

    def __init__(
        self,
        store: ContentStore,
        settings: Optional[Settings] = None,
        interpreter: Optional[CommandInterpreter] = None,
        applier: Optional[AccessApplier] = None,
    ):
        self.store = store
        self.settings = settings or Settings()
        self._interpreter = interpreter
        self.applier = applier or AccessApplier(store, self.settings)

    @property
    def interpreter(self) -> CommandInterpreter:
        if self._interpreter is None:
            self._interpreter = CommandInterpreter(settings=self.settings)
        return self._interpreter

    def execute(self, text: str) -> CommandResult:
        """Interpret ``text`` with the model, then execute the resulting intent."""
        try:
            intent = self.interpreter.interpret(text)
        except NovelGateError as e:
            logger.warning("Could not interpret command %r: %s", text, e)
            return CommandResult(False, f"Failed to get a usable response from Gemini: {e}")

        result = self.execute_intent(intent.as_dict())
        result.intent = intent
        return result

    def execute_intent(self, data: Any) -> CommandResult:
        """Validate ``data`` and apply it. Never raises for domain errors."""
        try:
            episode_number, access_type = validate_command(data)
        except InvalidCommandError as e:
            return CommandResult(False, e.message)

        field_name = self.settings.episode_number_field
        messages = [f'Searching for episode number {episode_number} using field "{field_name}"']
        found = self.store.find_episodes_by_meta(field_name, str(episode_number), limit=1)
        messages.append(f"Found {len(found)} episode(s)")

        near_matches = self.store.search_episodes(str(episode_number), NEAR_MATCH_LIMIT)
        for ep in near_matches:
            messages.append(
                f'Near match: {ep.title} (ID: {ep.id}, {field_name}: {ep.episode_number if ep.episode_number is not None else ""})'
            )

        if not found:
            error = NotFoundError(
                f"Episode {episode_number} not found. Make sure its '{field_name}' field is set to {episode_number}."
            )
            logger.info(error.message)
            return CommandResult(False, error.message, messages, near_matches=near_matches)

        episode = found[0]
        messages.append(f"Found episode: {episode.title} (ID: {episode.id})")
        current = ", ".join(f"{t.name} (ID: {t.id})" for t in self.store.get_episode_terms(episode.id))
        messages.append(f"Current terms: {current or 'None'}")
        messages.append(f"Current access: {episode.access.value}")

        outcome = self.applier.apply(episode, access_type)
        messages.extend(f"[{s.status.value}] {s.name}: {s.detail}" for s in outcome.steps)

        if not outcome.success:
            return CommandResult(
                False,
                f"Failed to update episode {episode_number} to '{access_type.value}' access.",
                messages, outcome=outcome, near_matches=near_matches,
            )
        return CommandResult(
            True,
            f"Episode {episode_number} successfully updated to '{access_type.value}' access!",
            messages, outcome=outcome, near_matches=near_matches,
        )
