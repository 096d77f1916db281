"""
TCP connect liveness probe.

A bare connection attempt; nothing is written or read once connected.
"""
import logging
import socket

from .address import IPv4AddressPort
from .errors import ProbeFailure

logger = logging.getLogger(__name__)


def connect(target: IPv4AddressPort, timeout_ms: int):
    """Open and immediately close a TCP connection, raising ProbeFailure if that is not possible."""
    try:
        with socket.create_connection((target.address.address, target.port), timeout=timeout_ms / 1000):
            pass
    except socket.timeout as e:
        raise ProbeFailure(target.full_address, "timed out") from e
    except OSError as e:
        raise ProbeFailure(target.full_address, e.strerror or str(e)) from e


def is_port_open(target: IPv4AddressPort, timeout_ms: int = 300) -> bool:
    try:
        connect(target, timeout_ms)
    except ProbeFailure as e:
        logger.debug("%s", e)
        return False
    return True
