"""Feed entry data model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlparse

REQUIRED_FIELDS = ("link", "title", "feed")


class EntryValidationError(ValueError):
    """Raised when a submitted feed entry is missing or has an invalid field."""

    pass


@dataclass(frozen=True)
class FeedEntry:
    """A single article queued for the next digest.

    Equality is structural over link, title and feed; the submission
    timestamp is bookkeeping for range queries only.
    """

    link: str
    title: str
    feed: str
    submitted_at: Optional[datetime] = field(default=None, compare=False)

    @classmethod
    def from_payload(
        cls, payload: Any, submitted_at: Optional[datetime] = None
    ) -> "FeedEntry":
        """Build an entry from a decoded JSON request body.

        Raises:
            EntryValidationError: On the first missing field or a bad link.
        """
        if not isinstance(payload, dict):
            raise EntryValidationError("Request body must be a JSON object!")

        values: Dict[str, str] = {}
        for name in REQUIRED_FIELDS:
            value = payload.get(name)
            if not isinstance(value, str) or not value.strip():
                raise EntryValidationError(f"Missing {name} field!")
            values[name] = value

        parsed = urlparse(values["link"].strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise EntryValidationError(f"Invalid link URL: {values['link']}")

        return cls(submitted_at=submitted_at, **values)

    def to_dict(self) -> Dict[str, str]:
        """Serialize to the API's JSON shape."""
        return {"link": self.link, "title": self.title, "feed": self.feed}
