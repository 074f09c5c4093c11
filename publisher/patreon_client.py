"""Patreon API v2 client for mirroring episode access to Patreon posts.

Base URL : https://www.patreon.com/api/oauth2/v2
Auth     : Bearer creator access token (static; never refreshed here)
Encoding : JSON:API document, ``{"data": {"type": "post", "id", "attributes"}}``
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from config.exceptions import ConfigMissingError, RemoteCallFailedError
from config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class PatreonResponse:
    status_code: int
    body: str


class PatreonClient:
    """Updates the public/private flag of Patreon posts.

    Each call is a single attempt; callers decide what a failure means.
    """

    def __init__(self, settings: Optional[Settings] = None, http_client: Optional[httpx.Client] = None):
        self.settings = settings or Settings()
        self._client = http_client

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialized httpx client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.settings.patreon_api_base,
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

    def set_post_visibility(self, post_id: str, is_public: bool) -> PatreonResponse:
        """PATCH a post's ``is_public`` attribute.

        Raises:
            ConfigMissingError: If no access token is configured.
            RemoteCallFailedError: On transport errors or non-2xx responses.
        """
        token = self.settings.patreon_access_token
        if not token:
            raise ConfigMissingError("patreon_access_token", "Patreon access token not configured.")

        document = {
            "data": {
                "type": "post",
                "id": str(post_id),
                "attributes": {"is_public": is_public},
            }
        }
        logger.info("Patreon PATCH post %s is_public=%s", post_id, is_public)
        try:
            response = self.client.patch(
                f"/posts/{post_id}",
                json=document,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.settings.http_timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Patreon transport error for post %s: %s", post_id, e)
            raise RemoteCallFailedError(f"Patreon API error: {e}") from e

        result = PatreonResponse(status_code=response.status_code, body=response.text)
        if not response.is_success:
            logger.warning("Patreon returned %d for post %s", response.status_code, post_id)
            raise RemoteCallFailedError(
                f"Patreon API returned status {response.status_code}. "
                f"Response: {response.text[:200]}",
                status_code=response.status_code,
                body=response.text,
            )
        return result
