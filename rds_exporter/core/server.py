"""Scrape listener hosting the Flask app on a waitress server."""

import logging
import threading
from collections.abc import Callable
from typing import Any

from paste.translogger import TransLogger  # type: ignore[import-untyped]
from waitress.server import create_server

logger = logging.getLogger(__name__)


class ScrapeServer:
    """Waitress server running in its own daemon thread.

    The socket is bound eagerly in bind() so that a port conflict is reported
    at startup rather than from the background thread. A failure while
    serving calls on_failure; the runner treats that as fatal.
    """

    def __init__(
        self,
        app: Any,
        host: str,
        port: int,
        threads: int = 4,
        on_failure: Callable[[Exception], None] | None = None,
    ) -> None:
        self.app = app
        self.host = host
        self.port = port
        self.threads = threads
        self._on_failure = on_failure
        self._server: Any = None
        self._thread: threading.Thread | None = None
        self._closing = False

    @property
    def effective_port(self) -> int:
        """Port actually bound, which differs from port when port is 0."""
        if self._server is None:
            return self.port
        return int(self._server.effective_port)

    def bind(self) -> None:
        """Bind the listening socket.

        Raises:
            OSError: If the address cannot be bound.
        """
        wsgi = TransLogger(self.app, setup_console_handler=False)
        self._server = create_server(
            wsgi, host=self.host, port=self.port, threads=self.threads
        )
        logger.info(
            f"Listening on {self.host}:{self.effective_port} "
            f"with {self.threads} threads"
        )

    def start(self) -> None:
        """Serve requests in a background daemon thread."""
        if self._server is None:
            self.bind()

        self._thread = threading.Thread(
            target=self._serve, daemon=True, name="ScrapeServer"
        )
        self._thread.start()

    def close(self) -> None:
        self._closing = True
        if self._server is not None:
            self._server.close()

    def _serve(self) -> None:
        try:
            self._server.run()
        except Exception as e:
            if self._closing:
                return
            logger.error("Scrape listener failed", exc_info=True)
            self._fail(e)
            return

        if not self._closing:
            logger.error("Scrape listener stopped unexpectedly")
            self._fail(RuntimeError("scrape listener stopped"))

    def _fail(self, error: Exception) -> None:
        if self._on_failure is not None:
            self._on_failure(error)
