"""
Embedded HTTP server lifecycle.

Runs a uvicorn server on a background thread and tracks its state as
STOPPED -> STARTING -> STARTED -> STOPPING -> STOPPED, with FAILED
reached when the listener cannot be bound or the server dies.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Optional

import uvicorn

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.01


class LifecycleError(RuntimeError):
    """Base error for server lifecycle problems."""


class IllegalStateError(LifecycleError):
    """Operation is not allowed in the server's current state."""


class StartupError(LifecycleError):
    """The embedded server could not be started."""


class LifecycleState(Enum):
    """Embedded server states."""

    STOPPED = "stopped"
    STARTING = "starting"
    STARTED = "started"
    STOPPING = "stopping"
    FAILED = "failed"


class EmbeddedServer:
    """
    uvicorn server running on a daemon thread.

    Not synchronized on its own; callers serialize start() and stop().
    State reads are safe from any thread.
    """

    def __init__(self, host: str, port: int, log_level: str = "info"):
        self.host = host
        self.port = port
        self.log_level = log_level
        self._state = LifecycleState.STOPPED
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """The exception that moved the server to FAILED, if any."""
        return self._error

    def _run(self) -> None:
        try:
            self._server.run()
        except (SystemExit, Exception) as e:
            # uvicorn exits the process on bind failure; keep it in the thread
            self._error = e
            logger.error("Embedded server on %s:%d failed: %r", self.host, self.port, e)
        if self._state is LifecycleState.STARTING or (
            self._state is LifecycleState.STARTED and self._error is not None
        ):
            self._state = LifecycleState.FAILED

    def start(self, app: Any, timeout: float = 10.0) -> None:
        """
        Serve app and block until the listener is bound.

        Args:
            app: ASGI application
            timeout: Seconds to wait for the listener

        Raises:
            IllegalStateError: If the server is already running
            StartupError: If the listener did not come up in time
        """
        if self.is_running:
            raise IllegalStateError(f"server is already {self._state.value}")

        config = uvicorn.Config(
            app,
            host=self.host,
            port=self.port,
            log_level=self.log_level,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._error = None
        self._state = LifecycleState.STARTING
        logger.info("Starting embedded server on %s:%d", self.host, self.port)

        self._thread = threading.Thread(
            target=self._run, name=f"wps-server-{self.port}", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + timeout
        while not self._server.started:
            if not self._thread.is_alive() or time.monotonic() > deadline:
                self._abort()
                raise StartupError(
                    f"could not start server on {self.host}:{self.port}"
                ) from self._error
            time.sleep(POLL_INTERVAL)

        self._state = LifecycleState.STARTED
        logger.info("Embedded server started on %s:%d", self.host, self.port)

    def _abort(self) -> None:
        self._server.should_exit = True
        self._thread.join(timeout=1.0)
        self._state = LifecycleState.FAILED

    def stop(self, timeout: float = 10.0) -> None:
        """
        Request shutdown and wait for the server thread to finish.

        Raises:
            IllegalStateError: If the server is not running
        """
        if not self.is_running:
            raise IllegalStateError(f"server is {self._state.value}, not running")

        self._state = LifecycleState.STOPPING
        logger.info("Stopping embedded server on %s:%d", self.host, self.port)
        self._server.should_exit = True
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("Embedded server did not stop within %.1fs, forcing exit", timeout)
            self._server.force_exit = True
            self._thread.join(timeout=timeout)
        self._state = LifecycleState.STOPPED
        logger.info("Embedded server stopped")

    @property
    def is_running(self) -> bool:
        return self._state in (LifecycleState.STARTING, LifecycleState.STARTED)

    @property
    def is_started(self) -> bool:
        return self._state is LifecycleState.STARTED

    @property
    def is_starting(self) -> bool:
        return self._state is LifecycleState.STARTING

    @property
    def is_stopping(self) -> bool:
        return self._state is LifecycleState.STOPPING

    @property
    def is_stopped(self) -> bool:
        return self._state is LifecycleState.STOPPED

    @property
    def is_failed(self) -> bool:
        return self._state is LifecycleState.FAILED
