"""
Embedded Web Processing Service.

Builds the service configuration document from registered algorithms,
parsers and generators and serves it with uvicorn.
"""

from wps_commons.server.app import (
    ConfiguredService,
    OWSException,
    ProcessingService,
    ServiceResponse,
    create_application,
)
from wps_commons.server.config import WPSSettings, get_settings
from wps_commons.server.configuration import WPSConfiguration, create_capabilities_skeleton
from wps_commons.server.lifecycle import (
    EmbeddedServer,
    IllegalStateError,
    LifecycleError,
    LifecycleState,
    StartupError,
)
from wps_commons.server.wps import WPS

__all__ = [
    "WPS",
    "WPSSettings",
    "get_settings",
    "WPSConfiguration",
    "create_capabilities_skeleton",
    "ConfiguredService",
    "OWSException",
    "ProcessingService",
    "ServiceResponse",
    "create_application",
    "EmbeddedServer",
    "LifecycleError",
    "LifecycleState",
    "IllegalStateError",
    "StartupError",
]
