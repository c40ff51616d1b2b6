"""Main entry point for Delivery Boy."""

import json
import logging
import sys
from datetime import date
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from .buckets import BucketResolver
from .config import ConfigError, Settings, settings
from .delivery import DigestDelivery
from .digest import DigestFormatter
from .notifiers.base import DispatchError
from .notifiers.dispatcher import WebhookDispatcher
from .scheduler import DigestScheduler
from .store import create_entry_store
from .utils import parse_short_date

console = Console()


# Configure logging
def setup_logging(level: str) -> None:
    """Set up logging with Rich handler or JSON lines."""
    log_level = getattr(logging, level.upper())
    if settings.log_json:

        class JsonFormatter(logging.Formatter):
            def format(self, record: logging.LogRecord) -> str:
                payload = {
                    "level": record.levelname,
                    "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
                    "message": record.getMessage(),
                    "name": record.name,
                }
                return json.dumps(payload)

        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=log_level, handlers=[handler], force=True)
    else:
        logging.basicConfig(
            level=log_level,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=console, rich_tracebacks=True)],
            force=True,
        )


logger = logging.getLogger(__name__)


def build_delivery(config: Optional[Settings] = None) -> DigestDelivery:
    """Wire store, resolver, formatter and dispatcher from settings.

    Raises:
        ConfigError: If webhook URLs or the API key are missing.
    """
    config = config or settings
    config.validate_required()

    return DigestDelivery(
        store=create_entry_store(config.database_url),
        resolver=BucketResolver.from_settings(config),
        formatter=DigestFormatter.from_settings(config),
        dispatcher=WebhookDispatcher.from_settings(config),
        dry_run=config.dry_run,
    )


def parse_day(
    ctx: click.Context, param: click.Parameter, value: Optional[str]
) -> Optional[date]:
    """Parse a --date value in ISO or bucket-key form."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return parse_short_date(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def serve(delivery: DigestDelivery, host: str, port: int) -> None:
    """Start the scheduler, then block serving the API."""
    from .web_server import create_web_server

    scheduler = DigestScheduler.from_settings(
        settings, delivery.resolver, delivery.send_digest
    )
    scheduler.start()

    app = create_web_server(delivery)
    logger.info(f"🚀 Ready. Listening on {host}:{port}")
    try:
        app.run(host=host, port=port, debug=False, threaded=True)
    except KeyboardInterrupt:
        logger.info("Web server stopped")
    finally:
        scheduler.stop(timeout=5)


@click.command()
@click.option(
    "--mode",
    type=click.Choice(["server", "send", "preview"]),
    default="server",
    help="Run mode: API server with scheduler, send digest once, or preview it",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Build digests but don't send them",
)
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Set logging level",
)
@click.option("--host", default=None, help="Bind address for server mode")
@click.option("--port", default=None, type=int, help="Port for server mode")
@click.option(
    "--date",
    "day",
    default=None,
    callback=parse_day,
    help="Preview the bucket for this date (YYYY-MM-DD or \"Oct 18, 2026\")",
)
def main(
    mode: str,
    dry_run: bool,
    log_level: Optional[str],
    host: Optional[str],
    port: Optional[int],
    day: Optional[date],
) -> None:
    """Collect feed entries and deliver them as a digest to webhooks."""
    # Override config with CLI options
    if dry_run or mode == "preview":
        settings.dry_run = True
    if log_level:
        settings.log_level = log_level

    setup_logging(settings.log_level)

    logger.info(f"📬 Starting Delivery Boy in {mode} mode...")

    try:
        delivery = build_delivery(settings)
    except ConfigError as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.error(f"Failed to initialize entry store: {e}")
        sys.exit(1)

    if mode == "server":
        serve(delivery, host or settings.host, port or settings.port)
        return

    if mode == "preview":
        try:
            bucket, digest = delivery.build_digest(day=day)
        except ValueError as e:
            console.print(f"[red]❌ {e}[/red]")
            sys.exit(1)
        console.print(f"\n[yellow]Digest for {bucket.key}:[/yellow]")
        console.print("\n" + "=" * 50)
        console.print(digest.to_text(), markup=False)
        console.print("=" * 50 + "\n")
        return

    try:
        delivery.send_digest()
        logger.info("✅ Digest sent successfully")
    except DispatchError as e:
        logger.error(f"Failed to send digest: {e}")
        console.print(f"[red]❌ Delivery failed:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
