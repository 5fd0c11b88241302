"""
wps-commons CLI Package

Usage:
    wps-commons serve --port 8080 --algorithm mypkg.algorithms.Buffer
    wps-commons formats --format "text/xml;UTF-8" --constraint text/xml
"""

from wps_commons.cli.main import app

__all__ = ["app"]
