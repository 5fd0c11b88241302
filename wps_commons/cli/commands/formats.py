"""
Formats Command - Check candidate formats against a constraint.

Usage:
    wps-commons formats --format "text/xml;UTF-8" --format application/json
    wps-commons formats -f "text/xml;Base64" --constraint "text/xml" --json
"""

import json
import logging
from typing import List, Optional, Tuple

import click

from wps_commons.format import Format

logger = logging.getLogger("wps_commons.cli.formats")

FIELD_SEPARATOR = ";"


def parse_format(text: str) -> Format:
    """
    Parse "mime_type[;encoding[;schema]]" into a Format.

    Empty positions are absent, so ";UTF-8" is an encoding-only Format.
    """
    parts = [part.strip() for part in text.split(FIELD_SEPARATOR, 2)]
    parts += [None] * (3 - len(parts))
    return Format(*parts)


class FormatParamType(click.ParamType):
    name = "format"

    def convert(self, value, param, ctx):
        if isinstance(value, Format):
            return value
        return parse_format(value)


FORMAT = FormatParamType()


@click.command("formats")
@click.option(
    "--format",
    "-f",
    "candidates",
    type=FORMAT,
    multiple=True,
    required=True,
    help="Candidate format as mime_type[;encoding[;schema]] (repeatable).",
)
@click.option(
    "--constraint",
    "-c",
    type=FORMAT,
    default=None,
    help="Constraint format; absent fields accept anything.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit JSON.")
def formats(candidates: Tuple[Format, ...], constraint: Optional[Format], as_json: bool):
    """
    Show candidate formats and whether they satisfy a constraint.

    Without --constraint every candidate matches.
    """
    constraint = constraint or Format()
    rows: List[dict] = []
    for candidate in candidates:
        rows.append(
            {
                "mime_type": candidate.mime_type,
                "encoding": candidate.encoding,
                "schema": candidate.schema,
                "matches": constraint.matches(candidate),
            }
        )
    logger.debug("Checked %d formats against %r", len(rows), constraint)

    if as_json:
        click.echo(json.dumps({"constraint": repr(constraint), "formats": rows}, indent=2))
        return

    click.echo(f"Constraint: {constraint!r}")
    for candidate, row in zip(candidates, rows):
        marker = "match" if row["matches"] else "no match"
        click.echo(f"  {candidate!r}: {marker}")
