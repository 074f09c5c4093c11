"""Tools package: Gemini client, JSON parsing, and text utilities."""

from tools.gemini_client import GeminiClient
from tools.llm_client import parse_json_response, extract_first_object
from tools.text_utils import (
    extract_episode_number,
    title_contains,
    humanize_delta,
)

__all__ = [
    "GeminiClient",
    "parse_json_response",
    "extract_first_object",
    "extract_episode_number",
    "title_contains",
    "humanize_delta",
]
