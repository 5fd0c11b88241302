"""
wps-commons: format negotiation and an embeddable WPS server.

Provides the Format value type used to describe and negotiate complex
data formats, adapters between Formats and external WPS descriptors, and
the WPS wrapper that boots a configured Web Processing Service.
"""

__version__ = "0.1.0"

from wps_commons.format import BASE64_ENCODING, UTF8_ENCODING, Format

__all__ = ["Format", "BASE64_ENCODING", "UTF8_ENCODING", "__version__"]
