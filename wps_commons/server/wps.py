"""
Embedded Web Processing Service.

WPS collects algorithm, repository, parser and generator registrations
into a configuration document and serves it on an embedded HTTP server.
Registrations are only accepted while the server is not running.

Example:
    wps = WPS("localhost", 8080)
    wps.add_algorithm(MyAlgorithm)
    wps.add_parser(MyParser, [Format("text/xml").with_utf8_encoding()])
    wps.start()
    ...
    wps.stop()
"""

import logging
import threading
from typing import Iterable, Optional, Union

from wps_commons.format import Format
from wps_commons.server.app import ServiceFactory, create_application
from wps_commons.server.config import WPSSettings, get_settings
from wps_commons.server.configuration import Properties, WPSConfiguration
from wps_commons.server.lifecycle import EmbeddedServer, IllegalStateError, LifecycleState

logger = logging.getLogger(__name__)

ClassRef = Union[type, str]


def class_name(cls: ClassRef) -> str:
    """Qualified name of a class, or the string itself if given one."""
    if isinstance(cls, str):
        if not cls:
            raise ValueError("class name must not be empty")
        return cls
    return f"{cls.__module__}.{cls.__qualname__}"


class WPS:
    """
    Configurable embedded WPS server.

    A single re-entrant lock serializes every registration, lifecycle
    transition and status query.
    """

    def __init__(
        self,
        host: str,
        port: int,
        https: bool = False,
        settings: Optional[WPSSettings] = None,
        service_factory: Optional[ServiceFactory] = None,
    ):
        if not host or port is None or port <= 0:
            raise ValueError(f"invalid listener address {host!r}:{port!r}")
        self.settings = settings or get_settings()
        self.service_factory = service_factory
        self._lock = threading.RLock()
        self._config = WPSConfiguration(self.settings, host=host, port=port, https=https)
        self._server = self.create_server(host, port)

    def create_server(self, host: str, port: int) -> EmbeddedServer:
        return EmbeddedServer(host, port, log_level=self.settings.log_level.value.lower())

    @property
    def configuration(self) -> WPSConfiguration:
        """A snapshot of the current configuration document."""
        with self._lock:
            return self._config.snapshot()

    def _check_not_running(self) -> None:
        if self._server.is_running:
            raise IllegalStateError("WPS configuration cannot change while running")

    # ------------------------------------------------------------------
    # Server settings
    # ------------------------------------------------------------------

    def set_min_pool_size(self, size: int) -> "WPS":
        with self._lock:
            self._check_not_running()
            self._config.set_min_pool_size(size)
            return self

    def set_max_pool_size(self, size: int) -> "WPS":
        with self._lock:
            self._check_not_running()
            self._config.set_max_pool_size(size)
            return self

    def set_include_data_inputs_in_response(self, include: bool) -> "WPS":
        with self._lock:
            self._check_not_running()
            self._config.set_include_data_inputs_in_response(include)
            return self

    def set_keep_alive(self, seconds: int) -> "WPS":
        with self._lock:
            self._check_not_running()
            self._config.set_keep_alive(seconds)
            return self

    def set_computation_timeout(self, milliseconds: int) -> "WPS":
        with self._lock:
            self._check_not_running()
            self._config.set_computation_timeout(milliseconds)
            return self

    def set_max_queued_tasks(self, maximum: int) -> "WPS":
        with self._lock:
            self._check_not_running()
            self._config.set_max_queued_tasks(maximum)
            return self

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def add_algorithm_repository(
        self,
        repo_class: ClassRef,
        properties: Optional[Properties] = None,
    ) -> "WPS":
        """
        Register an algorithm repository.

        Args:
            repo_class: Repository class or its qualified name
            properties: Property name -> values passed to the repository

        Raises:
            IllegalStateError: If the server is running
        """
        with self._lock:
            self._check_not_running()
            self._config.add_repository(class_name(repo_class), properties)
            return self

    def add_algorithm(self, algo_class: ClassRef) -> "WPS":
        """Register an algorithm with the local algorithm repository."""
        with self._lock:
            self._check_not_running()
            self._config.add_algorithm(class_name(algo_class))
            return self

    def add_parser(
        self,
        cls: ClassRef,
        formats: Optional[Iterable[Format]] = None,
        properties: Optional[Properties] = None,
    ) -> "WPS":
        """
        Register an input parser.

        Args:
            cls: Parser class or its qualified name
            formats: Formats the parser accepts
            properties: Property name -> values passed to the parser

        Raises:
            IllegalStateError: If the server is running
        """
        with self._lock:
            self._check_not_running()
            self._config.add_parser(class_name(cls), formats, properties)
            return self

    def add_generator(
        self,
        cls: ClassRef,
        formats: Optional[Iterable[Format]] = None,
        properties: Optional[Properties] = None,
    ) -> "WPS":
        """Register an output generator. See add_parser()."""
        with self._lock:
            self._check_not_running()
            self._config.add_generator(class_name(cls), formats, properties)
            return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Materialize the configuration and start serving.

        Blocks until the listener is bound.

        Raises:
            IllegalStateError: If the server is already running
            StartupError: If the listener cannot be bound
        """
        with self._lock:
            self._check_not_running()
            config = self._config.snapshot()
            service = self.service_factory(config) if self.service_factory else None
            app = create_application(config, service)
            self._server.start(app, timeout=self.settings.startup_timeout)
            logger.info(
                "WPS available at %s://%s:%d",
                config.protocol,
                config.hostname,
                config.port,
            )

    def stop(self) -> None:
        """
        Stop serving.

        Raises:
            IllegalStateError: If the server is not running
        """
        with self._lock:
            if not self._server.is_running:
                raise IllegalStateError("WPS is not running")
            self._server.stop()

    def __enter__(self) -> "WPS":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.is_running:
            self.stop()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        with self._lock:
            return self._server.state

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._server.is_running

    @property
    def is_started(self) -> bool:
        with self._lock:
            return self._server.is_started

    @property
    def is_starting(self) -> bool:
        with self._lock:
            return self._server.is_starting

    @property
    def is_stopping(self) -> bool:
        with self._lock:
            return self._server.is_stopping

    @property
    def is_stopped(self) -> bool:
        with self._lock:
            return self._server.is_stopped

    @property
    def is_failed(self) -> bool:
        with self._lock:
            return self._server.is_failed
