"""Concurrent fan-out of one digest to every configured webhook."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from ..digest import Digest
from .base import DispatchError, Notifier
from .discord import DiscordWebhookNotifier

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Outcome of one dispatch across all endpoints."""

    delivered: List[str] = field(default_factory=list)
    failures: Dict[str, DispatchError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def partial(self) -> bool:
        """Some, but not all, endpoints failed."""
        return bool(self.failures) and bool(self.delivered)

    def raise_first_error(self) -> None:
        """Raise the first endpoint failure, in configuration order."""
        for error in self.failures.values():
            raise error


class WebhookDispatcher:
    """Sends a digest to every endpoint concurrently.

    Endpoints are independent: a failing webhook never stops the others
    from being attempted. There is no retry.
    """

    def __init__(self, notifiers: Sequence[Notifier]):
        if not notifiers:
            raise ValueError("At least one webhook endpoint is required")
        self.notifiers = list(notifiers)

    @classmethod
    def from_urls(
        cls, webhook_urls: str, username: str = "Delivery Boy", timeout: float = 30.0
    ) -> "WebhookDispatcher":
        """Build a dispatcher from a comma-separated URL list."""
        urls = [url.strip() for url in webhook_urls.split(",") if url.strip()]
        return cls(
            [DiscordWebhookNotifier(url, username=username, timeout=timeout) for url in urls]
        )

    @classmethod
    def from_settings(cls, settings) -> "WebhookDispatcher":
        return cls.from_urls(
            settings.discord_webhook_url or "",
            username=settings.webhook_username,
            timeout=settings.http_timeout_seconds,
        )

    def send(self, digest: Digest) -> DispatchResult:
        """Fire all, await all, collect every failure."""
        result = DispatchResult()

        with ThreadPoolExecutor(max_workers=len(self.notifiers)) as pool:
            futures = [
                (notifier.webhook_url, pool.submit(notifier.send, digest))
                for notifier in self.notifiers
            ]

        for url, future in futures:
            try:
                future.result()
                result.delivered.append(url)
            except DispatchError as e:
                result.failures[url] = e
            except Exception as e:
                logger.exception(f"Unexpected error sending webhook to {url}")
                result.failures[url] = DispatchError(str(e))

        if result.failures:
            logger.error(
                f"Digest delivery failed for {len(result.failures)} of "
                f"{len(self.notifiers)} webhook(s)"
            )
        else:
            logger.info(f"Digest delivered to {len(result.delivered)} webhook(s)")
        return result
