"""Ephemeral port allocation.

The port is released before the engine binds it, so another process may grab
it in between. That window is accepted; there is no retry.
"""

from __future__ import annotations

import logging
import socket

from .errors import PortAllocationError


log = logging.getLogger("embedded_mock.ports")

LOOPBACK_HOST = "127.0.0.1"


def allocate_port(host: str = LOOPBACK_HOST) -> int:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, 0))
            port = sock.getsockname()[1]
    except OSError as exc:
        raise PortAllocationError(f"Unable to find a free port on {host}") from exc

    log.debug("Allocated port %s on %s", port, host)
    return port
