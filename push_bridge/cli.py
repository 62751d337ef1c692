"""
Command-line interface for the push bridge.

Provides commands to run the API server with the poller, run the
poller alone, trigger a single cycle, and manage registered tokens.

Usage:
    push-bridge serve           # API server + poller
    push-bridge poll            # Poller without the HTTP API
    push-bridge run-once        # One poll cycle, then exit
    push-bridge health          # Show registry/ledger state
    push-bridge tokens list     # List registered tokens
"""

import asyncio
import json
import signal
import sys

import click

from push_bridge.config.settings import get_settings
from push_bridge.observability.logging import setup_logging
from push_bridge.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Ads Push Bridge - Expo notifications for notification ads."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics/--no-metrics", default=False, help="Enable metrics server")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(
    host: str | None,
    port: int | None,
    reload: bool,
    metrics: bool,
    metrics_port: int | None,
) -> None:
    """Start the API server and the poller."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    if metrics:
        get_metrics().start_server(port=metrics_port)

    click.echo(f"Push Notification Bridge Server running on {host}:{port}")
    click.echo(f"Polling ads API: {settings.ads_api_url}")
    click.echo(f"Interval: {settings.polling_interval_label}")

    uvicorn.run(
        "push_bridge.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


@main.command()
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def poll(metrics: bool, metrics_port: int | None) -> None:
    """Run the poller without the HTTP API."""
    from push_bridge.services.poller import Poller

    async def run():
        poller = Poller()

        if metrics:
            get_metrics().start_server(port=metrics_port)

        scheduler = poller.start_background()

        # Handle shutdown signals
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, scheduler.cancel)

        await scheduler

    asyncio.run(run())


@main.command("run-once")
def run_once() -> None:
    """Run a single poll cycle and print its report."""
    from push_bridge.services.poller import Poller

    async def run():
        poller = Poller()
        return await poller.tick()

    report = asyncio.run(run())
    click.echo(json.dumps(report.to_dict(), indent=2))
    if report.error:
        sys.exit(1)


@main.command()
def health() -> None:
    """Show registry and ledger state."""
    from push_bridge.storage.ledger import ProcessedLedger
    from push_bridge.storage.tokens import TokenRegistry

    settings = get_settings()

    async def check():
        return await TokenRegistry().count(), await ProcessedLedger().count()

    devices, processed = asyncio.run(check())

    click.echo("\nPush Bridge Status:")
    click.echo("-" * 40)
    click.echo(f"  Feed URL:            {settings.ads_api_url}")
    click.echo(f"  Polling interval:    {settings.polling_interval_label}")
    click.echo(f"  Registered devices:  {devices}")
    click.echo(f"  Processed ads:       {processed}")
    click.echo(f"  Tokens file:         {settings.push_tokens_path}")
    click.echo(f"  Ledger file:         {settings.processed_ads_path}")
    click.echo("-" * 40)


@main.group()
def tokens() -> None:
    """Manage registered push tokens."""


@tokens.command("list")
def tokens_list() -> None:
    """List registered tokens."""
    from push_bridge.storage.tokens import TokenRegistry

    for token in asyncio.run(TokenRegistry().tokens()):
        click.echo(token)


@tokens.command("add")
@click.argument("token")
def tokens_add(token: str) -> None:
    """Register a token."""
    from push_bridge.errors import InvalidPushTokenError
    from push_bridge.storage.tokens import TokenRegistry

    try:
        added = asyncio.run(TokenRegistry().register(token))
    except InvalidPushTokenError:
        click.echo(click.style(f"Invalid push token: {token}", fg="red"), err=True)
        sys.exit(1)

    click.echo("Registered" if added else "Already registered")


@tokens.command("remove")
@click.argument("token")
def tokens_remove(token: str) -> None:
    """Unregister a token."""
    from push_bridge.storage.tokens import TokenRegistry

    removed = asyncio.run(TokenRegistry().unregister(token))
    click.echo("Unregistered" if removed else "Not registered")


if __name__ == "__main__":
    main()
