"""Server entry point.

Starts a pounce ASGI server with the live perch App object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from perch.app import App

logger = logging.getLogger("perch.server")


@dataclass(frozen=True, slots=True)
class ServerHandle:
    """The server ``run_server`` started, and the address it was bound to."""

    host: str
    port: int
    server: Any = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


def run_server(
    app: App,
    host: str,
    port: int,
    *,
    debug: bool = False,
    workers: int = 1,
) -> ServerHandle:
    """Start a pounce server with the given perch App.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but perch has a live ``App`` object. We use ``pounce.Server``
    directly with the ASGI callable.

    Blocks until the server stops, then returns its handle.

    Args:
        app: ASGI callable (perch App instance).
        host: Bind host address.
        port: Bind port number.
        debug: Log at DEBUG level and include error detail in responses.
        workers: Worker count passed to pounce.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "app.run() needs the pounce server: pip install 'perch[server]'"
        raise RuntimeError(msg) from exc

    if debug:
        logging.basicConfig(level=logging.DEBUG)

    config = ServerConfig(host=host, port=port, workers=workers)
    handle = ServerHandle(host=host, port=port, server=Server(config, app))
    logger.info("Listening on %s", handle.url)
    handle.server.run()
    return handle
