"""CLI entry point serving the CourseReg API with uvicorn."""

from __future__ import annotations

import sys

import click
import uvicorn

from coursereg import __version__
from coursereg.api.app import create_app
from coursereg.config import ConfigError, Settings
from coursereg.logging import setup_logging


@click.command()
@click.version_option(__version__)
@click.option("--host", default="127.0.0.1", show_default=True, help="Interface to bind")
@click.option("--port", type=int, default=8000, show_default=True, help="Port to listen on")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for rotating log files (default: $COURSEREG_LOG_DIR or ./logs)",
)
def main(host: str, port: int, log_dir: str | None) -> None:
    """Serve the CourseReg registration API."""
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(log_dir=log_dir, level=settings.log_level)
    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
