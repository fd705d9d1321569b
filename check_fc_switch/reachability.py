"""Host pre-check: name resolution and ICMP ping before any SNMP traffic."""

from __future__ import annotations

import logging
import re
import socket
import subprocess
from dataclasses import dataclass

from check_fc_switch.errors import UnreachableError

log = logging.getLogger(__name__)

PING_PACKETS = 2
PING_WAIT = 2  # seconds per reply


@dataclass(frozen=True)
class PingResult:
    """Packets sent and received; truthy when at least one reply came back."""

    transmitted: int
    received: int

    def __bool__(self) -> bool:
        return self.received >= 1


def resolve(host: str) -> str:
    try:
        infos = socket.getaddrinfo(host, None)
    except socket.gaierror as e:
        raise UnreachableError(f"cannot resolve {host} ({e.strerror})") from e
    address = infos[0][4][0]
    log.debug("resolved %s -> %s", host, address)
    return address


def ping(address: str, packets: int = PING_PACKETS) -> PingResult:
    try:
        result = subprocess.run(
            ["ping", "-n", "-c", str(packets), "-W", str(PING_WAIT), address],
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return PingResult(0, 0)
    match = re.search(r"(\d+) packets transmitted, (\d+) (?:packets )?received", result.stdout)
    if match is None:
        log.debug("unparsable ping output: %r", result.stdout + result.stderr)
        return PingResult(packets, 0)
    return PingResult(int(match.group(1)), int(match.group(2)))


def check_host(host: str) -> str:
    """Resolve and ping ``host``; return its address or raise UnreachableError."""
    address = resolve(host)
    result = ping(address)
    log.debug("ping %s: %d/%d replies", address, result.received, result.transmitted)
    if not result:
        raise UnreachableError(f"{host} ({address}) does not answer ping")
    return address
