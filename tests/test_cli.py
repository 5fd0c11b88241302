"""
Tests for CLI Commands.

Tests the commands using Click's CliRunner:
- TestParsing: format and data handler notation
- TestFormatsCommand: constraint matching output
- TestServeCommand: registration and lifecycle wiring (WPS mocked)
"""

import json
from unittest.mock import MagicMock, patch

import click
import pytest
from click.testing import CliRunner

from wps_commons.cli.commands.formats import parse_format
from wps_commons.cli.commands.serve import parse_datahandler
from wps_commons.cli.main import app
from wps_commons.format import Format
from wps_commons.server.config import LogLevel, get_settings
from wps_commons.server.lifecycle import StartupError


@pytest.fixture
def runner():
    """Create a CLI runner instance."""
    return CliRunner()


# =============================================================================
# Parsing
# =============================================================================


class TestParsing:
    @pytest.mark.parametrize("text,expected", [
        ("text/xml", Format("text/xml")),
        ("text/xml;UTF-8", Format("text/xml", "UTF-8")),
        ("text/xml;UTF-8;http://x/y.xsd", Format("text/xml", "UTF-8", "http://x/y.xsd")),
        (";Base64", Format(None, "Base64")),
        ("text/xml;;a.xsd", Format("text/xml", None, "a.xsd")),
        ("", Format()),
    ])
    def test_parse_format(self, text, expected):
        assert parse_format(text) == expected

    def test_parse_datahandler_without_formats(self):
        assert parse_datahandler("io.XmlParser") == ("io.XmlParser", [])

    def test_parse_datahandler_with_formats(self):
        name, formats = parse_datahandler("io.XmlParser=text/xml;UTF-8,application/json")
        assert name == "io.XmlParser"
        assert formats == [Format("text/xml", "UTF-8"), Format("application/json")]

    def test_parse_datahandler_requires_name(self):
        with pytest.raises(click.BadParameter):
            parse_datahandler("=text/xml")


# =============================================================================
# formats
# =============================================================================


class TestFormatsCommand:
    def test_without_constraint_everything_matches(self, runner):
        result = runner.invoke(app, ["formats", "-f", "text/xml", "-f", "application/json"])
        assert result.exit_code == 0
        assert result.output.count(": match") == 2

    def test_with_constraint(self, runner):
        result = runner.invoke(
            app,
            ["formats", "-f", "text/xml;UTF-8", "-f", "application/json", "-c", "TEXT/XML"],
        )
        assert result.exit_code == 0
        assert "Format(mime_type='text/xml', encoding='UTF-8'): match" in result.output
        assert "Format(mime_type='application/json'): no match" in result.output

    def test_json_output(self, runner):
        result = runner.invoke(
            app,
            ["formats", "-f", "text/xml;Base64", "-c", "text/xml;UTF-8", "--json"],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["formats"] == [
            {"mime_type": "text/xml", "encoding": "Base64", "schema": None, "matches": False}
        ]

    def test_requires_format(self, runner):
        result = runner.invoke(app, ["formats"])
        assert result.exit_code != 0


# =============================================================================
# serve
# =============================================================================


def _stopped_wps() -> MagicMock:
    wps = MagicMock()
    wps.is_started = False
    wps.is_running = False
    wps.is_failed = False
    wps.configuration.port = 8080
    return wps


class TestServeCommand:
    def test_registers_components(self, runner):
        wps = _stopped_wps()
        with patch("wps_commons.cli.commands.serve.WPS", return_value=wps) as factory:
            result = runner.invoke(
                app,
                [
                    "serve",
                    "--host", "localhost",
                    "--port", "8080",
                    "-a", "algorithms.Buffer",
                    "--parser", "io.XmlParser=text/xml;UTF-8",
                    "--generator", "io.JsonGenerator",
                ],
            )

        assert result.exit_code == 0, result.output
        factory.assert_called_once()
        args, kwargs = factory.call_args
        assert args == ("localhost", 8080)
        assert kwargs["https"] is False
        wps.add_algorithm.assert_called_once_with("algorithms.Buffer")
        wps.add_parser.assert_called_once_with("io.XmlParser", [Format("text/xml", "UTF-8")])
        wps.add_generator.assert_called_once_with("io.JsonGenerator", None)
        wps.start.assert_called_once()
        assert "Serving WPS on port 8080" in result.output

    def test_log_level_reaches_server_settings(self, runner):
        wps = _stopped_wps()
        with patch("wps_commons.cli.commands.serve.WPS", return_value=wps) as factory:
            result = runner.invoke(app, ["--log-level", "warning", "serve", "--port", "8080"])

        assert result.exit_code == 0, result.output
        settings = factory.call_args.kwargs["settings"]
        assert settings.log_level == LogLevel.WARNING

    def test_log_level_does_not_touch_cached_settings(self, runner):
        wps = _stopped_wps()
        with patch("wps_commons.cli.commands.serve.WPS", return_value=wps) as factory:
            runner.invoke(app, ["--log-level", "ERROR", "serve", "--port", "8080"])

        assert factory.call_args.kwargs["settings"] is not get_settings()

    def test_startup_failure(self, runner):
        wps = _stopped_wps()
        wps.start.side_effect = StartupError("address in use")
        with patch("wps_commons.cli.commands.serve.WPS", return_value=wps):
            result = runner.invoke(app, ["serve", "--port", "8080"])

        assert result.exit_code != 0
        assert "Could not start WPS" in result.output

    def test_invalid_address(self, runner):
        with patch("wps_commons.cli.commands.serve.WPS", side_effect=ValueError("bad port")):
            result = runner.invoke(app, ["serve", "--port", "8080"])
        assert result.exit_code != 0

    def test_failed_server_exits_nonzero(self, runner):
        wps = _stopped_wps()
        wps.is_failed = True
        with patch("wps_commons.cli.commands.serve.WPS", return_value=wps):
            result = runner.invoke(app, ["serve", "--port", "8080"])
        assert result.exit_code != 0
        assert "failed" in result.output


def test_version(runner):
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "wps-commons" in result.output
