"""Base agent class with common LLM and prompt utilities."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from config.settings import Settings
from tools.gemini_client import GeminiClient

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"


@lru_cache(maxsize=8)
def _read_prompt_file(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


class BaseAgent:
    """Base class for agents that talk to the language model."""

    def __init__(
        self,
        llm_client: Optional[GeminiClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.llm = llm_client or GeminiClient(self.settings)

    def _load_prompt(self, template_name: str) -> str:
        """Load a prompt template from config/prompts/ (cached after first read).

        Args:
            template_name: Filename without extension, e.g. 'command_interpreter'.
        """
        path = _PROMPTS_DIR / f"{template_name}.md"
        if not path.exists():
            raise FileNotFoundError(f"Prompt template not found: {path}")
        return _read_prompt_file(str(path))

    def _extract_section(self, template: str, section_header: str) -> str:
        """Extract one '## ' section from a markdown prompt template."""
        capturing = False
        result = []
        for line in template.split("\n"):
            is_header = line.strip().startswith("## ")
            if is_header and section_header in line:
                capturing = True
                continue
            if is_header and capturing:
                break
            if capturing:
                result.append(line)
        return "\n".join(result).strip()
