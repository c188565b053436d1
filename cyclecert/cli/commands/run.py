"""``cycle-certs run`` — start the certificate loop.

Loads and validates the configuration (exit code 1 if it is unusable),
then fetches, writes and refreshes the certificate until the process
receives SIGINT or SIGTERM.
"""

from __future__ import annotations

import logging
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from cyclecert import __version__
from cyclecert.cli.logging_setup import configure_logging
from cyclecert.config import load_config, validate_config
from cyclecert.core.client import CertificateClient
from cyclecert.core.errors import StartupConfigError
from cyclecert.core.scheduler import CertificateScheduler

console = Console()
logger = logging.getLogger(__name__)


def print_welcome_message() -> None:
    console.print(f"[bold #2aa7ff]Cycle Certificate Manager v{__version__}[/]")
    console.print()


def _install_signal_handlers(scheduler: CertificateScheduler) -> None:
    def _handle(signum: int, _frame: object) -> None:
        logger.info("Received %s, shutting down.", signal.Signals(signum).name)
        scheduler.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def run_cmd(
    config_file: Path = typer.Option(
        None,
        "--config",
        "-c",
        metavar="FILE",
        help="Sets a custom config file (TOML). Defaults to ./config.toml if present.",
    ),
    domain: str = typer.Option(
        None, "--domain", "-d", help="The hostname of the desired certificate."
    ),
    wildcard: bool = typer.Option(
        None, "--wildcard/--no-wildcard", help="Fetch the wildcard certificate for the domain."
    ),
    zone_id: str = typer.Option(
        None, "--zone-id", help="DNS zone ID, used with --record-id instead of --domain."
    ),
    record_id: str = typer.Option(
        None, "--record-id", help="DNS record ID, used with --zone-id instead of --domain."
    ),
    target: Path = typer.Option(
        None,
        "--target",
        "-t",
        help="Directory to write the certificate bundle and key to. Defaults to the current directory.",
    ),
    filename: str = typer.Option(
        None,
        "--filename",
        "-f",
        help="Overrides the filename of the certificate. By default it is derived from the domains.",
    ),
    cluster: str = typer.Option(
        None, "--cluster", help="The API host of the cluster. Defaults to api.cycle.io."
    ),
    hub: str = typer.Option(None, "--hub", help="The ID of the hub the certificate belongs to."),
    api_key: str = typer.Option(
        None, "--api-key", "-a", help="Your Cycle API key."
    ),
    refresh_days: int = typer.Option(
        None,
        "--refresh-days",
        "-r",
        min=0,
        help="Days before expiration to refresh the certificate. Defaults to 14.",
    ),
    post_fetch_command: str = typer.Option(
        None,
        "--exec",
        "-e",
        help="Command to run after each successful write, e.g. 'nginx -s reload'.",
    ),
    retry_interval: float = typer.Option(
        None, "--retry-interval", help="Seconds to wait before retrying a failed cycle."
    ),
    log_level: str = typer.Option(None, "--log-level", help="Logging level (DEBUG, INFO, ...)."),
    once: bool = typer.Option(
        False, "--once", help="Run a single cycle and exit instead of looping."
    ),
) -> None:
    """Fetch the certificate, write it to disk, and refetch before it expires."""
    print_welcome_message()
    configure_logging(log_level or "INFO")

    # Partial record: pydantic-settings deep-merges it over the file/env table.
    record = {
        key: value
        for key, value in (("zone_id", zone_id), ("record_id", record_id))
        if value
    } or None

    try:
        config = load_config(
            config_file,
            domain=domain,
            wildcard=wildcard,
            record=record,
            certificate_path=target,
            filename=filename,
            cluster=cluster,
            hub_id=hub,
            api_key=api_key,
            refresh_days=refresh_days,
            post_fetch_command=post_fetch_command,
            retry_interval_seconds=retry_interval,
            log_level=log_level,
        )
        if log_level is None:
            configure_logging(config.log_level)
        validate_config(config)

        with CertificateClient(config) as client:
            scheduler = CertificateScheduler(config, client)
            if once:
                report = scheduler.run_cycle()
                raise typer.Exit(code=0 if report.succeeded else 1)

            _install_signal_handlers(scheduler)
            scheduler.run_forever()
    except StartupConfigError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
