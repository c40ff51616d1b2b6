"""Base notifier interface."""

from typing import Protocol

from ..digest import Digest


class Notifier(Protocol):
    """Protocol for notification services."""

    webhook_url: str

    def send(self, digest: Digest) -> None:
        """Send a formatted digest.

        Args:
            digest: The digest to deliver

        Raises:
            DispatchError: If the digest fails to send
        """
        ...


class DispatchError(Exception):
    """Raised when a digest fails to reach an endpoint."""

    pass
