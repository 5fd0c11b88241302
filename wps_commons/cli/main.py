"""
Command-line entry point.

Configures logging once and registers the sub-commands.
"""

import logging
import sys
from typing import Optional

import click

from wps_commons import __version__
from wps_commons.cli.commands.formats import formats
from wps_commons.cli.commands.serve import serve
from wps_commons.server.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@click.group("wps-commons")
@click.version_option(__version__, prog_name="wps-commons")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: WPS_LOG_LEVEL or INFO).",
)
@click.pass_context
def app(ctx, log_level: Optional[str]):
    """Format negotiation tools and an embeddable Web Processing Service."""
    level = log_level.upper() if log_level else get_settings().log_level.value
    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = level


app.add_command(serve)
app.add_command(formats)


def main() -> None:
    app(obj={})


if __name__ == "__main__":
    main()
