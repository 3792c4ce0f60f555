"""Runs the review server on the first free port at or above the requested one."""

from __future__ import annotations

import logging
import socket
from pathlib import Path

import uvicorn

from witness.models.config import WitnessConfig
from witness.server.app import create_app

logger = logging.getLogger(__name__)

MAX_PORT_ATTEMPTS = 100


def bind_first_free_port(
    host: str, port: int, max_attempts: int = MAX_PORT_ATTEMPTS,
) -> tuple[socket.socket, int]:
    """Bind a listening socket, trying ``port``, ``port + 1``, ... until one is free.

    The bound socket is handed to uvicorn as-is, so the chosen port cannot be
    taken by someone else between probing and serving.
    """
    for candidate in range(port, port + max_attempts):
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((host, candidate))
        except OSError as e:
            sock.close()
            logger.debug("Port %d unavailable: %s", candidate, e)
            continue
        return sock, sock.getsockname()[1]
    raise OSError(f"No free port between {port} and {port + max_attempts - 1}")


def serve_report(config: WitnessConfig, cwd: Path | None = None, port: int | None = None) -> None:
    """Serve the dashboard until interrupted (Ctrl+C closes the listener and returns)."""
    host = config.server.host
    requested = port if port is not None else config.server.port
    app = create_app(config, cwd)

    sock, actual = bind_first_free_port(host, requested)
    if actual != requested:
        logger.warning("Port %d is in use, using port %d instead", requested, actual)
    logger.info("Dashboard: http://%s:%d", host, actual)
    logger.info("Serving %s", app.state.report_root)

    # log_config=None keeps the handlers configured by the CLI
    server = uvicorn.Server(uvicorn.Config(app, log_config=None, log_level="info"))
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()
        logger.info("Server stopped")
