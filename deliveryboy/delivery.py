"""The digest pipeline shared by the scheduler, the API and the CLI."""

import logging
from datetime import date, datetime
from typing import Any, List, Optional, Tuple

from .buckets import Bucket, BucketResolver
from .digest import Digest, DigestFormatter
from .models import FeedEntry
from .notifiers.dispatcher import WebhookDispatcher
from .store import EntryStore

logger = logging.getLogger(__name__)


class DigestDelivery:
    """Resolve → read → format → dispatch, plus the ingest write path.

    Scheduled and manual sends go through :meth:`send_digest`, so both
    produce the same message for the same bucket contents. Sending never
    clears the bucket.
    """

    def __init__(
        self,
        store: EntryStore,
        resolver: BucketResolver,
        formatter: DigestFormatter,
        dispatcher: Optional[WebhookDispatcher],
        dry_run: bool = False,
    ):
        self.store = store
        self.resolver = resolver
        self.formatter = formatter
        self.dispatcher = dispatcher
        self.dry_run = dry_run

    def add_entry(self, payload: Any, now: Optional[datetime] = None) -> FeedEntry:
        """Validate a submission and queue it for the next digest.

        Raises:
            EntryValidationError: If a field is missing or invalid; nothing
                is stored in that case.
        """
        local_now = self.resolver.local_now(now)
        entry = FeedEntry.from_payload(payload, submitted_at=local_now)
        bucket = self.resolver.ingest_bucket(local_now)
        self.store.append(bucket, entry)
        logger.info(
            f"Saved feed entry '{entry.title}' with URL '{entry.link}' "
            f"from feed '{entry.feed}' for {bucket.key}!"
        )
        return entry

    def pending_entries(
        self, now: Optional[datetime] = None
    ) -> Tuple[Bucket, Optional[List[FeedEntry]]]:
        """Entries queued for the next digest.

        Returns None for the entries when the bucket had never been touched;
        the bucket is recorded as empty so the next read finds it.
        """
        bucket = self.resolver.ingest_bucket(now)
        entries = self.store.read(bucket)
        if entries is None:
            self.store.ensure(bucket)
        return bucket, entries

    def build_digest(
        self, now: Optional[datetime] = None, day: Optional[date] = None
    ) -> Tuple[Bucket, Digest]:
        """Format the digest for the bucket a send at ``now`` covers.

        ``day`` picks a bucket by its date instead (weekly mode requires a
        boundary weekday).
        """
        if day is not None:
            bucket = self.resolver.bucket_for(day)
        else:
            bucket = self.resolver.current_bucket(now)
        entries = self.store.read(bucket)
        logger.info(f"Building digest for {bucket.key} with {len(entries or [])} entries")
        return bucket, self.formatter.format(entries, bucket)

    def send_digest(self, now: Optional[datetime] = None) -> str:
        """Build and dispatch the current digest.

        Raises:
            DispatchError: The first endpoint failure, after every endpoint
                has been attempted.
        """
        logger.info("Sending feed digest!")
        bucket, digest = self.build_digest(now)

        if self.dry_run or self.dispatcher is None:
            logger.info(f"DRY RUN - would send digest for {bucket.key}:\n{digest.to_text()}")
            return "Done!"

        result = self.dispatcher.send(digest)
        if result.partial:
            logger.warning(
                f"Digest for {bucket.key} reached {len(result.delivered)} webhook(s), "
                f"failed for {len(result.failures)}"
            )
        elif not result.ok:
            logger.error(f"Digest for {bucket.key} reached no webhook")
        result.raise_first_error()
        logger.info("Done with sending digest!")
        return "Done!"
