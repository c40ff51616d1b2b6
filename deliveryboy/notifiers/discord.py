"""Discord webhook notifier implementation."""

import logging
from typing import Any, Dict

import requests

from ..digest import Digest
from .base import DispatchError

logger = logging.getLogger(__name__)


class DiscordWebhookNotifier:
    """Sends digests to a Discord channel via an incoming webhook URL."""

    def __init__(
        self,
        webhook_url: str,
        username: str = "Delivery Boy",
        timeout: float = 30.0,
    ):
        """Initialize Discord notifier.

        Args:
            webhook_url: Discord incoming webhook URL
            username: Display name the message is posted under
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.username = username
        self.timeout = timeout

    def send(self, digest: Digest) -> None:
        """Post the digest as a single embed.

        Args:
            digest: Formatted digest to send

        Raises:
            DispatchError: If the request fails or the webhook rejects it
        """
        payload: Dict[str, Any] = {
            "username": self.username,
            "embeds": [digest.to_embed()],
        }

        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()

            logger.info(f"Sent webhook to {self.webhook_url}")

        except requests.exceptions.RequestException as e:
            logger.error(f"Could not send webhook to {self.webhook_url}: {e}")
            raise DispatchError(f"Webhook delivery failed: {e}") from e
