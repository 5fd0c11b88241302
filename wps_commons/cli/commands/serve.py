"""
Serve Command - Boot the embedded Web Processing Service.

Usage:
    wps-commons serve --port 8080 --algorithm mypkg.algorithms.Buffer
    wps-commons serve --parser "mypkg.io.GMLParser=text/xml;UTF-8,application/gml+xml"
"""

import logging
import time
from typing import List, Optional, Tuple

import click

from wps_commons.cli.commands.formats import parse_format
from wps_commons.format import Format
from wps_commons.server.config import LogLevel, get_settings
from wps_commons.server.lifecycle import LifecycleError
from wps_commons.server.wps import WPS

logger = logging.getLogger("wps_commons.cli.serve")

POLL_SECONDS = 0.5


def parse_datahandler(text: str) -> Tuple[str, List[Format]]:
    """
    Parse "class.Name[=format,format,...]".

    Each format uses the mime_type[;encoding[;schema]] notation.
    """
    name, _, formats = text.partition("=")
    name = name.strip()
    if not name:
        raise click.BadParameter(f"missing class name in {text!r}")
    return name, [parse_format(f) for f in formats.split(",") if f.strip()]


@click.command("serve")
@click.option("--host", "-h", default=None, help="Host name (default: WPS_HOST or localhost).")
@click.option("--port", "-p", type=int, default=None, help="Port (default: WPS_PORT or 8080).")
@click.option("--https", is_flag=True, default=False, help="Advertise https.")
@click.option(
    "--algorithm",
    "-a",
    "algorithms",
    multiple=True,
    help="Algorithm class name (repeatable).",
)
@click.option(
    "--parser",
    "parsers",
    multiple=True,
    help="Parser as class[=mime;encoding;schema,...] (repeatable).",
)
@click.option(
    "--generator",
    "generators",
    multiple=True,
    help="Generator as class[=mime;encoding;schema,...] (repeatable).",
)
@click.pass_context
def serve(
    ctx,
    host: Optional[str],
    port: Optional[int],
    https: bool,
    algorithms: Tuple[str, ...],
    parsers: Tuple[str, ...],
    generators: Tuple[str, ...],
):
    """
    Start a WPS with the given registrations and serve until interrupted.
    """
    settings = get_settings()
    level = (ctx.obj or {}).get("log_level")
    if level:
        settings = settings.model_copy(update={"log_level": LogLevel(level)})
    try:
        wps = WPS(
            host or settings.host,
            port or settings.port,
            https=https or settings.https,
            settings=settings,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    for algorithm in algorithms:
        wps.add_algorithm(algorithm)
    for entry in parsers:
        name, formats = parse_datahandler(entry)
        wps.add_parser(name, formats or None)
    for entry in generators:
        name, formats = parse_datahandler(entry)
        wps.add_generator(name, formats or None)

    try:
        wps.start()
    except LifecycleError as e:
        raise click.ClickException(f"Could not start WPS: {e}") from e

    click.echo(f"Serving WPS on port {wps.configuration.port} (Ctrl+C to stop)")
    try:
        while wps.is_started:
            time.sleep(POLL_SECONDS)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        if wps.is_running:
            wps.stop()

    if wps.is_failed:
        raise click.ClickException("WPS server failed")
