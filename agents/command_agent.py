"""Command Interpreter: turns a free-text instruction into a structured intent."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from agents.base_agent import BaseAgent
from config.exceptions import MalformedResponseError
from config.settings import Settings
from models.enums import Confidence
from tools.gemini_client import GeminiClient
from tools.llm_client import extract_first_object, parse_json_response

logger = logging.getLogger(__name__)


@dataclass
class CommandIntent:
    """What the model understood. Number and access are passed through unvalidated."""
    episode_number: Any = None
    access_type: Any = None
    confidence: Confidence = Confidence.LOW
    raw_text: str = ""

    def as_dict(self) -> dict:
        return {
            "episode_number": self.episode_number,
            "access_type": self.access_type,
            "confidence": self.confidence.value,
        }


def _parse_confidence(value) -> Confidence:
    try:
        return Confidence(str(value).strip().lower())
    except ValueError:
        return Confidence.LOW


class CommandInterpreter(BaseAgent):
    """Asks Gemini to extract ``episode_number`` / ``access_type`` from a command.

    Examples it understands: "Make episode 5 free for everyone",
    "Change episode 12 to advance access", "Unlock episode 8".
    """

    def __init__(
        self,
        llm_client: Optional[GeminiClient] = None,
        settings: Optional[Settings] = None,
    ):
        super().__init__(llm_client, settings)
        self._template = self._load_prompt("command_interpreter")

    def build_prompt(self, text: str) -> str:
        system_prompt = self._extract_section(self._template, "System Prompt")
        user_prompt = self._extract_section(self._template, "User Prompt").replace("{command}", text.strip())
        return f"{system_prompt}\n\n{user_prompt}"

    def interpret(self, text: str) -> CommandIntent:
        """Interpret ``text``.

        Raises:
            ConfigMissingError: If no Gemini API key is configured.
            RemoteCallFailedError: If the Gemini call fails.
            MalformedResponseError: If no JSON object can be recovered from the reply.
        """
        raw = self.llm.generate(self.build_prompt(text))
        logger.info("Gemini interpretation: %s", raw.strip()[:200])

        # First brace-delimited object wins; whole-text parse is the fallback
        data = extract_first_object(raw)
        if data is None:
            try:
                data = parse_json_response(raw)
            except ValueError as e:
                raise MalformedResponseError(
                    "Could not read a JSON object from the Gemini reply", raw_response=raw
                ) from e

        return CommandIntent(
            episode_number=data.get("episode_number"),
            access_type=data.get("access_type"),
            confidence=_parse_confidence(data.get("confidence")),
            raw_text=raw,
        )
