"""
Delivery Boy Digest - feed entry digest formatting

Turns the ordered entries of one bucket into a single webhook embed:
a numbered list of articles plus a remark when the count is off target.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .buckets import DAILY, WEEKLY, Bucket
from .models import FeedEntry

# Constants
DAILY_TOO_FEW_BELOW = 5
DAILY_TOO_MANY_ABOVE = 5
WEEKLY_TOO_MANY_ABOVE = 10

SORT_DISCLAIMER = "Disclaimer: This is not sorted in any particular order of interest."
MISSED_DISCLAIMER = "Disclaimer: It's possible I missed all of {curator}'s messages. Oops."

EMPTY_TITLES = {
    DAILY: "Nothing today! Sorry! 😅",
    WEEKLY: "Nothing this week! 😅",
}
EMPTY_BODIES = {
    DAILY: "{curator} be slacking today smh",
    WEEKLY: "{curator} be slacking all week smh",
}
TOO_FEW_REMARK = "{curator} was quite lazy today. Not even {minimum} articles! 🙄"
TOO_MANY_REMARK = "Sorry for the amount! Just a few more!"


class DigestColor(Enum):
    """Embed colors; values are Discord's BLUE and RED."""

    NORMAL = 0x3498DB
    ALERT = 0xE74C3C


@dataclass(frozen=True)
class Digest:
    """A formatted digest, ready for any webhook notifier."""

    title: str
    color: DigestColor
    body: str
    footer: str

    def to_embed(self) -> Dict[str, Any]:
        """Render as a Discord embed object."""
        return {
            "title": self.title,
            "description": self.body,
            "color": self.color.value,
            "footer": {"text": self.footer},
        }

    def to_text(self) -> str:
        """Render as plain text for previews and dry runs."""
        return f"{self.title}\n\n{self.body}\n\n{self.footer}"


class DigestFormatter:
    """Formats the entries of one bucket.

    Daily digests comment on both too few and too many entries; weekly
    digests only on too many.
    """

    def __init__(
        self,
        period: str = DAILY,
        too_few_below: Optional[int] = DAILY_TOO_FEW_BELOW,
        too_many_above: Optional[int] = None,
        curator_name: str = "Matei",
    ):
        self.period = period
        self.too_few_below = too_few_below if period == DAILY else None
        if too_many_above is None:
            too_many_above = (
                WEEKLY_TOO_MANY_ABOVE if period == WEEKLY else DAILY_TOO_MANY_ABOVE
            )
        self.too_many_above = too_many_above
        self.curator_name = curator_name

    @classmethod
    def from_settings(cls, settings) -> "DigestFormatter":
        if settings.digest_period == WEEKLY:
            return cls(
                period=WEEKLY,
                too_few_below=None,
                too_many_above=settings.weekly_too_many_above,
                curator_name=settings.curator_name,
            )
        return cls(
            period=DAILY,
            too_few_below=settings.too_few_below,
            too_many_above=settings.too_many_above,
            curator_name=settings.curator_name,
        )

    def format(self, entries: Optional[Sequence[FeedEntry]], bucket: Bucket) -> Digest:
        """Format ``entries`` (arrival order) for ``bucket``."""
        if not entries:
            return self._format_empty_digest()

        lines: List[str] = []
        for index, entry in enumerate(entries, start=1):
            lines.append(f"**{index}.** _{entry.title}_: {entry.link}\n")
            lines.append(f"_Feed:_ `{entry.feed}`\n")

        remark = self._remark(len(entries))
        if remark:
            lines.append(f"\n{remark}\n")

        # Drop the trailing line break.
        body = "".join(lines)[:-1]

        return Digest(
            title=f"Posts for {bucket.label}",
            color=DigestColor.NORMAL,
            body=body,
            footer=SORT_DISCLAIMER,
        )

    def _remark(self, count: int) -> Optional[str]:
        if self.too_few_below is not None and count < self.too_few_below:
            return TOO_FEW_REMARK.format(
                curator=self.curator_name, minimum=self.too_few_below
            )
        if count > self.too_many_above:
            return TOO_MANY_REMARK
        return None

    def _format_empty_digest(self) -> Digest:
        return Digest(
            title=EMPTY_TITLES[self.period],
            color=DigestColor.ALERT,
            body=EMPTY_BODIES[self.period].format(curator=self.curator_name),
            footer=MISSED_DISCLAIMER.format(curator=self.curator_name),
        )
