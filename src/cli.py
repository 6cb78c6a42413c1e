"""
Command-line interface for article-tracker.

Provides commands to log in, manage subscriptions, run crawl passes,
schedule them, and serve the API.

Usage:
    article-tracker init-db              # Create tables
    article-tracker login                # Cookie or QR-code login
    article-tracker subscribe NAME       # Track a remote source
    article-tracker crawl                # Run one crawl pass
    article-tracker schedule             # Run passes on the interval schedule
    article-tracker serve                # API server (optionally with scheduler)
"""

import asyncio
import os
import signal
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import click

from src.config.settings import get_settings
from src.observability.logging import setup_logging
from src.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--interactive",
    is_flag=True,
    help="Interactive mode: no browser timeouts, browser left open on exit",
)
def main(debug: bool, interactive: bool) -> None:
    """Article Tracker - collect published items of subscribed sources."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()
    if interactive:
        os.environ["SESSION_INTERACTIVE_MODE"] = "true"

    setup_logging()


@asynccontextmanager
async def _runtime() -> AsyncIterator[dict[str, Any]]:
    """Connect the database and build the session and orchestrator."""
    from src.crawler.orchestrator import CrawlOrchestrator
    from src.items.repository import ItemRepository
    from src.session.config import SessionConfig
    from src.session.driver import PlaywrightDriver
    from src.session.manager import SessionManager
    from src.session.store import SessionStore
    from src.sources.repository import SourcesRepository
    from src.storage.database import Database

    db = Database()
    await db.connect()

    config = SessionConfig()
    session = SessionManager(
        PlaywrightDriver(headless=config.headless, user_agent=config.user_agent),
        SessionStore(config.cookie_file),
        config,
    )
    sources = SourcesRepository(db)
    items = ItemRepository(db)
    orchestrator = CrawlOrchestrator(session, sources, items)

    try:
        yield {
            "db": db,
            "session": session,
            "sources": sources,
            "items": items,
            "orchestrator": orchestrator,
        }
    finally:
        try:
            await session.close()
        finally:
            await db.close()


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from src.items.repository import ItemRepository
    from src.notifications.repository import NotifierConfigRepository
    from src.sources.repository import SourcesRepository
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            await SourcesRepository(db).create_table()
            await ItemRepository(db).create_table()
            await NotifierConfigRepository(db).create_table()
            click.echo("Database initialized successfully")
        finally:
            await db.close()

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check database connectivity and the stored session file."""
    import structlog

    from src.session.config import SessionConfig
    from src.session.store import SessionStore
    from src.storage.database import Database

    logger = structlog.get_logger()

    async def check():
        results: dict[str, bool] = {}

        try:
            db = Database()
            await db.connect()
            results["postgres"] = await db.health_check()
            await db.close()
        except Exception as e:
            results["postgres"] = False
            logger.error("Postgres health check failed", error=str(e))

        try:
            bundle = SessionStore(SessionConfig().cookie_file).load()
            results["session_stored"] = bundle is not None and bool(bundle.cookies)
        except Exception as e:
            results["session_stored"] = False
            logger.error("Session file unreadable", error=str(e))

        click.echo("\nHealth Check Results:")
        click.echo("-" * 40)
        for name, status in results.items():
            icon = "✓" if status else "✗"
            color = "green" if status else "red"
            click.echo(click.style(f"  {icon} {name}: {status}", fg=color))
        click.echo("-" * 40)

        if results["postgres"]:
            click.echo(click.style("Database healthy!", fg="green"))
            sys.exit(0)
        click.echo(click.style("Database unhealthy!", fg="red"))
        sys.exit(1)

    asyncio.run(check())


@main.command()
def login() -> None:
    """Log in with stored cookies, falling back to QR-code login."""
    from src.crawler.errors import LoginTimeout
    from src.session.config import SessionConfig
    from src.session.driver import PlaywrightDriver
    from src.session.manager import SessionManager
    from src.session.store import SessionStore

    async def run():
        config = SessionConfig()
        session = SessionManager(
            PlaywrightDriver(headless=config.headless, user_agent=config.user_agent),
            SessionStore(config.cookie_file),
            config,
        )

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, session.cancel)

        try:
            await session.login()
        except LoginTimeout as e:
            click.echo(click.style(f"Login failed: {e}", fg="red"))
            sys.exit(1)
        finally:
            await session.close()

        click.echo(click.style("Logged in", fg="green"))
        if session.token:
            click.echo(f"  Session saved to {config.cookie_file}")
        else:
            click.echo(click.style("  Warning: no auth token was recovered", fg="yellow"))

    asyncio.run(run())


@main.command()
@click.argument("name")
@click.option("--alias", default="", help="Display alias for the source")
def subscribe(name: str, alias: str) -> None:
    """Start tracking the remote source NAME."""
    from src.crawler.errors import CrawlerError

    async def run():
        async with _runtime() as rt:
            try:
                source = await rt["orchestrator"].subscribe(name, alias)
            except CrawlerError as e:
                click.echo(click.style(f"Subscribe failed: {e}", fg="red"))
                sys.exit(1)

        click.echo(f"Subscribed {source.name} ({source.source_id})")
        click.echo(f"  Remote ID: {source.remote_id}")

    asyncio.run(run())


@main.command()
@click.argument("source_id")
def unsubscribe(source_id: str) -> None:
    """Stop tracking SOURCE_ID (soft-disable)."""
    from src.sources.repository import SourcesRepository
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            changed = await SourcesRepository(db).deactivate(source_id)
        finally:
            await db.close()

        if changed:
            click.echo(f"Unsubscribed {source_id}")
        else:
            click.echo(click.style(f"No active source {source_id}", fg="yellow"))
            sys.exit(1)

    asyncio.run(run())


@main.command()
@click.option("--all", "show_all", is_flag=True, help="Include unsubscribed sources")
def sources(show_all: bool) -> None:
    """List tracked sources."""
    from src.sources.repository import SourcesRepository
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            rows, total = await SourcesRepository(db).list_sources(
                active_only=not show_all, limit=500
            )
        finally:
            await db.close()

        if not rows:
            click.echo("No sources tracked")
            return

        click.echo(f"\n{'Source ID':<18} {'Name':<30} {'Active':<7} Watermark")
        click.echo("-" * 80)
        for s in rows:
            watermark = s.watermark[:40] + "..." if len(s.watermark) > 40 else s.watermark
            click.echo(
                f"{s.source_id:<18} {s.name[:30]:<30} {'yes' if s.is_active else 'no':<7} "
                f"{watermark or '-'}"
            )
        click.echo(f"\n{total} source(s)")

    asyncio.run(run())


def _echo_pass_result(result: Any) -> None:
    click.echo(f"\nCrawl Pass Results ({result.status}):")
    click.echo(f"  Sources:         {result.sources_total}")
    click.echo(f"  Sources failed:  {result.sources_failed}")
    click.echo(f"  Items collected: {result.items_collected}")
    click.echo(f"  Elapsed:         {result.elapsed_seconds:.2f}s")

    if result.errors:
        click.echo("\nErrors:")
        for err in result.errors:
            click.echo(click.style(f"  - {err}", fg="red"))


@main.command()
@click.option("--metrics/--no-metrics", default=False, help="Enable metrics server")
def crawl(metrics: bool) -> None:
    """Run one crawl pass over all active sources."""

    async def run():
        if metrics:
            get_metrics().start_server()

        async with _runtime() as rt:
            result = await rt["orchestrator"].fetch_all()

        _echo_pass_result(result)

    asyncio.run(run())


@main.command()
@click.option("--interval", type=int, default=None, help="Crawl interval in minutes (5-1440)")
@click.option("--exact", is_flag=True, help="Fire every N minutes instead of the cron mapping")
@click.option("--run-now", is_flag=True, help="Run one pass immediately on start")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def schedule(interval: int | None, exact: bool, run_now: bool, metrics: bool) -> None:
    """Run crawl passes (and digests) on a schedule until stopped."""
    from src.crawler.errors import InvalidInterval
    from src.items.repository import ItemRepository
    from src.notifications.repository import NotifierConfigRepository
    from src.notifications.service import NotificationService
    from src.scheduling.config import SchedulerConfig
    from src.scheduling.scheduler import CrawlScheduler

    config = SchedulerConfig()
    if interval is not None:
        config.interval_minutes = interval
    if exact:
        config.exact_interval = True
    if run_now:
        config.run_on_start = True

    async def run():
        if metrics:
            get_metrics().start_server()

        async with _runtime() as rt:
            notifications = NotificationService(
                NotifierConfigRepository(rt["db"]), ItemRepository(rt["db"])
            )
            scheduler = CrawlScheduler(rt["orchestrator"], notifications, config)

            stop_event = asyncio.Event()
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, stop_event.set)

            try:
                await scheduler.start()
            except InvalidInterval as e:
                click.echo(click.style(f"Invalid schedule: {e}", fg="red"))
                sys.exit(1)

            click.echo(f"Scheduler running (every {config.interval_minutes} min). Ctrl+C to stop.")
            await stop_event.wait()
            await scheduler.stop()

    asyncio.run(run())


@main.group()
def notify() -> None:
    """Digest webhook settings and delivery."""


@notify.command("config")
@click.option("--enable/--disable", default=None, help="Turn digests on or off")
@click.option("--period", type=click.Choice(["daily", "hourly"]), default=None)
@click.option("--time", "notify_time", default=None, help="Daily send time, HH:MM")
@click.option("--webhook", default=None, help="Webhook URL")
@click.option("--title", default=None, help="Digest title")
def notify_config(
    enable: bool | None,
    period: str | None,
    notify_time: str | None,
    webhook: str | None,
    title: str | None,
) -> None:
    """Show or update notifier settings."""
    from src.items.repository import ItemRepository
    from src.notifications.repository import NotifierConfigRepository
    from src.notifications.service import NotificationService
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            service = NotificationService(NotifierConfigRepository(db), ItemRepository(db))
            current = await service.get_config()
            changes = {
                "enabled": enable,
                "period": period,
                "notify_time": notify_time,
                "webhook_url": webhook,
                "title": title,
            }
            if any(v is not None for v in changes.values()):
                for key, value in changes.items():
                    if value is not None:
                        setattr(current, key, value)
                try:
                    current = await service.update_config(current)
                except ValueError as e:
                    click.echo(click.style(f"Invalid settings: {e}", fg="red"))
                    sys.exit(1)
                click.echo("Notifier settings saved")
        finally:
            await db.close()

        click.echo(f"  Enabled: {current.enabled}")
        click.echo(f"  Period:  {current.period}")
        click.echo(f"  Time:    {current.notify_time}")
        click.echo(f"  Webhook: {current.webhook_url or '-'}")
        click.echo(f"  Title:   {current.title}")

    asyncio.run(run())


@notify.command("test")
def notify_test() -> None:
    """Send a test message to the configured webhook."""
    from src.items.repository import ItemRepository
    from src.notifications.repository import NotifierConfigRepository
    from src.notifications.service import NotificationService
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            service = NotificationService(NotifierConfigRepository(db), ItemRepository(db))
            delivered = await service.send_test()
        finally:
            await db.close()

        if delivered:
            click.echo(click.style("Test message delivered", fg="green"))
        else:
            click.echo(click.style("Test message not delivered", fg="red"))
            sys.exit(1)

    asyncio.run(run())


@notify.command("send")
def notify_send() -> None:
    """Send the digest for the current window now."""
    from src.items.repository import ItemRepository
    from src.notifications.repository import NotifierConfigRepository
    from src.notifications.service import NotificationService
    from src.storage.database import Database

    async def run():
        db = Database()
        await db.connect()

        try:
            service = NotificationService(NotifierConfigRepository(db), ItemRepository(db))
            sent = await service.send_digest()
        finally:
            await db.close()

        click.echo(f"Digest sent with {sent} item(s)" if sent else "Nothing sent")

    asyncio.run(run())


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--with-scheduler", is_flag=True, help="Run the crawl/notify schedule in-process")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, with_scheduler: bool, metrics_port: int | None) -> None:
    """Start the API server."""
    import uvicorn

    from src.api.app import create_app

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    if settings.metrics_enabled:
        metrics_port = metrics_port or settings.metrics_port
        get_metrics().start_server(port=metrics_port)
        click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        create_app(start_scheduler=with_scheduler),
        host=host,
        port=port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
