"""GitHub service for subscribing repositories to webhook deliveries.

Hooks are registered through GitHub's PubSubHubbub endpoint rather than the
REST hooks API, one request per event type.
"""

import logging
from typing import Iterable
from urllib.parse import urlsplit

import httpx

from webhooks_extension.config import settings

logger = logging.getLogger(__name__)

DEFAULT_EVENTS = ("push", "pull_request")

SUBSCRIBE = "subscribe"
UNSUBSCRIBE = "unsubscribe"


class GitHubHubError(Exception):
    """Raised when a PubSubHubbub request is rejected or cannot be sent"""


class GitHubService:
    """Service for GitHub PubSubHubbub operations."""

    HUB_URL = "https://api.github.com/hub"

    def __init__(self, verify_ssl: bool = None):
        self._verify_ssl = verify_ssl

    @property
    def verify_ssl(self) -> bool:
        if self._verify_ssl is not None:
            return self._verify_ssl
        return settings.ssl_verification_enabled

    def get_hub_url(self, repo_url: str) -> str:
        """Get the hub endpoint for a repository.

        Public GitHub uses https://api.github.com/hub, Enterprise hosts
        expose it at <scheme>://<host>/api/v3/hub.
        """
        url = urlsplit(repo_url)
        if url.netloc == "github.com":
            return self.HUB_URL
        return f"{url.scheme}://{url.netloc}/api/v3/hub"

    def _get_headers(self, access_token: str) -> dict:
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {access_token}",
        }

    async def subscribe(
        self,
        repo_url: str,
        callback_url: str,
        access_token: str,
        secret_token: str,
        events: Iterable[str] = DEFAULT_EVENTS,
    ) -> None:
        """Subscribe the callback URL to events on a repository.

        Raises:
            GitHubHubError: If any subscription request fails
        """
        await self._hub_request(SUBSCRIBE, repo_url, callback_url, access_token, secret_token, events)

    async def unsubscribe(
        self,
        repo_url: str,
        callback_url: str,
        access_token: str,
        secret_token: str,
        events: Iterable[str] = DEFAULT_EVENTS,
    ) -> None:
        """Remove the callback URL's subscriptions on a repository.

        Raises:
            GitHubHubError: If any unsubscribe request fails
        """
        await self._hub_request(UNSUBSCRIBE, repo_url, callback_url, access_token, secret_token, events)

    async def _hub_request(
        self,
        mode: str,
        repo_url: str,
        callback_url: str,
        access_token: str,
        secret_token: str,
        events: Iterable[str],
    ) -> None:
        hub_url = self.get_hub_url(repo_url)

        async with httpx.AsyncClient(verify=self.verify_ssl) as client:
            for event in events:
                data = {
                    "hub.mode": mode,
                    "hub.topic": f"{repo_url}/events/{event}",
                    "hub.callback": callback_url,
                    "hub.secret": secret_token,
                }
                try:
                    response = await client.post(
                        hub_url,
                        headers=self._get_headers(access_token),
                        data=data,
                        timeout=30.0
                    )
                except httpx.HTTPError as e:
                    logger.error(f"PubSubHubbub {mode} ({event}) request to {hub_url} failed: {e}")
                    raise GitHubHubError(
                        f"error sending PubSubHubbub {mode} ({event}) request: {e}"
                    ) from e

                # 204 No Content on success
                if response.status_code != 204:
                    logger.error(
                        f"PubSubHubbub {mode} ({event}) for {repo_url} returned "
                        f"{response.status_code} - {response.text}"
                    )
                    raise GitHubHubError(
                        f"error sending PubSubHubbub {mode} ({event}) request. "
                        f"Status: {response.status_code}"
                    )

                logger.info(f"PubSubHubbub {mode} ({event}) succeeded for {repo_url}")


# Singleton instance
github_service = GitHubService()
