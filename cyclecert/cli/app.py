"""Main Typer application — registers the CLI commands.

Entry point: ``cycle-certs`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer
from rich.console import Console

from cyclecert import __version__
from cyclecert.cli.commands.run import run_cmd

console = Console()

app = typer.Typer(
    name="cycle-certs",
    help="Cycle Certificate Manager: keeps a TLS certificate and key on disk up to date.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(name="run", help="Fetch the certificate and keep it refreshed.")(run_cmd)


@app.command(name="version", help="Print the installed version.")
def version_cmd() -> None:
    console.print(f"cyclecert {__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
