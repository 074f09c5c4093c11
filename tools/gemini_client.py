"""Synchronous Gemini generateContent client used for command interpretation."""

import logging
from typing import Optional

import httpx

from config.exceptions import ConfigMissingError, MalformedResponseError, RemoteCallFailedError
from config.settings import Settings

logger = logging.getLogger(__name__)

GENERATION_CONFIG = {
    "temperature": 0.1,
    "topP": 0.95,
    "topK": 40,
}


class GeminiClient:
    """Sends a single prompt to Gemini and returns the text of the first candidate.

    One attempt per call with the configured timeout; no retries.
    """

    def __init__(self, settings: Optional[Settings] = None, http_client: Optional[httpx.Client] = None):
        self.settings = settings or Settings()
        self._client = http_client
        self.total_calls = 0

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialized httpx client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.settings.gemini_api_base,
                timeout=self.settings.http_timeout,
            )
        return self._client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """Send ``prompt`` and return the model's free-form text.

        Raises:
            ConfigMissingError: If no Gemini API key is configured.
            RemoteCallFailedError: On transport errors or non-2xx responses.
            MalformedResponseError: If the response has no candidate text.
        """
        if not self.settings.gemini_api_key:
            raise ConfigMissingError("gemini_api_key", "Gemini API key is not set")

        model = model or self.settings.gemini_model
        self.total_calls += 1
        logger.debug("Gemini call: model=%s, prompt=%d chars", model, len(prompt))

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
        }
        try:
            response = self.client.post(
                f"/models/{model}:generateContent",
                params={"key": self.settings.gemini_api_key},
                json=body,
                timeout=self.settings.http_timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Gemini transport error: %s", e)
            raise RemoteCallFailedError(f"Gemini request failed: {e}") from e

        if not response.is_success:
            logger.warning("Gemini returned %d: %s", response.status_code, response.text[:200])
            raise RemoteCallFailedError(
                f"Gemini API returned status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(
                "Unexpected Gemini response format", raw_response=response.text,
            ) from e

        logger.debug("Gemini result: %d chars", len(text))
        return text
