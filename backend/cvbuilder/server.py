"""``cvbuilder-server`` entry point: uvicorn on the first free port."""

import errno
import logging
import socket

import uvicorn

from .config import settings, setup_logging

logger = logging.getLogger(__name__)


class NoFreePort(RuntimeError):
    pass


def port_is_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            if e.errno in (errno.EADDRINUSE, errno.EACCES):
                return False
            raise
    return True


def find_available_port(host: str, start: int, attempts: int) -> int:
    """First bindable port in ``start .. start + attempts - 1``."""
    for port in range(start, start + attempts):
        if port_is_free(host, port):
            if port != start:
                logger.warning("Port %d is in use, using %d instead", start, port)
            return port
    raise NoFreePort(f"No free port in {start}-{start + attempts - 1}")


def run() -> None:
    setup_logging()
    port = find_available_port(settings.host, settings.port, max(1, settings.port_retry_attempts))
    logger.info("Starting server on %s:%d", settings.host, port)
    uvicorn.run("cvbuilder.main:app", host=settings.host, port=port, log_config=None, proxy_headers=True)


if __name__ == "__main__":
    run()
