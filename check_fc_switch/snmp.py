"""SNMP client adapter.

Two backends share one contract:

- ``PysnmpClient`` talks to the agent through pysnmp (v7, asyncio API); each
  request runs in its own ``asyncio.run()``.
- ``NetSnmpClient`` shells out to net-snmp's ``snmpget``/``snmpwalk`` and
  parses their ``OID = TAG: value`` lines.

Both return ``RawResponse`` values tagged with the SNMP value type and never
interpret the payload. A request that gets no answer raises ``SnmpTimeout``.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass

from check_fc_switch.errors import SnmpError, SnmpTimeout

log = logging.getLogger(__name__)

SNMP_PORT = 161
SNMP_TIMEOUT = 5  # seconds
SNMP_RETRIES = 2

# net-snmp writes this on stderr when the agent never answered
TIMEOUT_MARKER = "Timeout: No Response from"

SNMP_BINARY_PATHS = ("/usr/bin", "/usr/local/bin", "/opt/local/bin", "/usr/sbin")


class ValueKind(enum.Enum):
    STRING = "STRING"
    INTEGER = "INTEGER"
    COUNTER32 = "Counter32"
    OTHER = "OTHER"


# pysnmp value classes -> kind
_PYSNMP_KINDS = {
    "OctetString": ValueKind.STRING,
    "DisplayString": ValueKind.STRING,
    "Integer": ValueKind.INTEGER,
    "Integer32": ValueKind.INTEGER,
    "Counter32": ValueKind.COUNTER32,
}

# net-snmp output tags -> kind
_NETSNMP_KINDS = {
    "STRING": ValueKind.STRING,
    "INTEGER": ValueKind.INTEGER,
    "Counter32": ValueKind.COUNTER32,
}

_LINE_RE = re.compile(r"^\s*(?P<oid>\S+)\s+=\s+(?P<tag>[A-Za-z][\w-]*):\s?(?P<text>.*)$")


@dataclass(frozen=True)
class SnmpEndpoint:
    host: str
    community: str = "public"


@dataclass(frozen=True)
class RawResponse:
    """One SNMP value with its type tag, payload kept as text."""

    kind: ValueKind
    text: str


def parse_response_line(line):
    """Parse one line of net-snmp output into ``(oid, RawResponse)``.

    Returns None for lines that are not a typed ``OID = TAG: value`` pair,
    e.g. ``No Such Object available on this agent at this OID``.
    """
    match = _LINE_RE.match(line)
    if match is None:
        return None
    kind = _NETSNMP_KINDS.get(match.group("tag"), ValueKind.OTHER)
    return match.group("oid").lstrip("."), RawResponse(kind, match.group("text").strip())


def locate_snmp_binary(name, search_paths=SNMP_BINARY_PATHS):
    """Return the full path of a net-snmp tool, trying the usual install dirs first."""
    for directory in search_paths:
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    found = shutil.which(name)
    if found is None:
        raise SnmpError(f"{name} not found (searched {', '.join(search_paths)} and $PATH)")
    return found


class PysnmpClient:
    """SNMPv2c requests through pysnmp."""

    def __init__(self, endpoint: SnmpEndpoint, timeout=SNMP_TIMEOUT, retries=SNMP_RETRIES):
        self.endpoint = endpoint
        self.timeout = timeout
        self.retries = retries

    def fetch(self, oid: str) -> list[RawResponse]:
        log.debug("GET %s %s", self.endpoint.host, oid)
        rows = asyncio.run(self._get(oid))
        log.debug("GET-RESULT %s %r", oid, rows)
        return rows

    def walk(self, oid_prefix: str) -> list[tuple[str, RawResponse]]:
        log.debug("WALK %s %s", self.endpoint.host, oid_prefix)
        rows = asyncio.run(self._walk(oid_prefix))
        log.debug("WALK-RESULT %s: %d rows", oid_prefix, len(rows))
        return rows

    @staticmethod
    def _to_raw(value) -> RawResponse:
        kind = _PYSNMP_KINDS.get(type(value).__name__, ValueKind.OTHER)
        return RawResponse(kind, value.prettyPrint())

    async def _target(self):
        from pysnmp.hlapi.v3arch.asyncio import UdpTransportTarget

        try:
            return await UdpTransportTarget.create(
                (self.endpoint.host, SNMP_PORT), timeout=self.timeout, retries=self.retries
            )
        except Exception as e:
            raise SnmpError(f"cannot open SNMP transport to {self.endpoint.host} ({e})") from e

    @staticmethod
    def _check(error_indication, error_status):
        if error_indication:
            raise SnmpTimeout(str(error_indication))
        if error_status:
            raise SnmpError(error_status.prettyPrint())

    async def _get(self, oid):
        from pysnmp.hlapi.v3arch.asyncio import (
            CommunityData,
            ContextData,
            ObjectIdentity,
            ObjectType,
            SnmpEngine,
            get_cmd,
        )

        engine = SnmpEngine()
        try:
            target = await self._target()
            error_indication, error_status, _error_index, var_binds = await get_cmd(
                engine,
                CommunityData(self.endpoint.community, mpModel=1),
                target,
                ContextData(),
                ObjectType(ObjectIdentity(oid)),
            )
            self._check(error_indication, error_status)
            return [self._to_raw(value) for _name, value in var_binds]
        finally:
            engine.close_dispatcher()

    async def _walk(self, oid_prefix):
        from pysnmp.hlapi.v3arch.asyncio import (
            CommunityData,
            ContextData,
            ObjectIdentity,
            ObjectType,
            SnmpEngine,
            walk_cmd,
        )

        engine = SnmpEngine()
        try:
            target = await self._target()
            rows = []
            async for error_indication, error_status, _error_index, var_binds in walk_cmd(
                engine,
                CommunityData(self.endpoint.community, mpModel=1),
                target,
                ContextData(),
                ObjectType(ObjectIdentity(oid_prefix)),
                lexicographicMode=False,
            ):
                self._check(error_indication, error_status)
                for name, value in var_binds:
                    rows.append((str(name), self._to_raw(value)))
            return rows
        finally:
            engine.close_dispatcher()


class NetSnmpClient:
    """SNMPv2c requests through the net-snmp command line tools."""

    def __init__(self, endpoint: SnmpEndpoint, snmpget=None, snmpwalk=None):
        self.endpoint = endpoint
        self.snmpget = snmpget or locate_snmp_binary("snmpget")
        self.snmpwalk = snmpwalk or locate_snmp_binary("snmpwalk")

    def fetch(self, oid: str) -> list[RawResponse]:
        return [raw for _oid, raw in self._run(self.snmpget, oid)]

    def walk(self, oid_prefix: str) -> list[tuple[str, RawResponse]]:
        return self._run(self.snmpwalk, oid_prefix)

    def _run(self, binary, oid):
        cmd = [
            binary, "-v2c", "-c", self.endpoint.community, "-One",
            "-t", str(SNMP_TIMEOUT), "-r", str(SNMP_RETRIES),
            self.endpoint.host, oid,
        ]
        log.debug("EXEC %s", " ".join(cmd[:3] + ["****"] + cmd[4:]))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise SnmpError(f"cannot run {binary} ({e})") from e

        if TIMEOUT_MARKER in result.stdout or TIMEOUT_MARKER in result.stderr:
            raise SnmpTimeout(f"{TIMEOUT_MARKER} {self.endpoint.host}")

        rows = []
        for line in result.stdout.splitlines():
            parsed = parse_response_line(line)
            if parsed is None:
                log.debug("SKIP %r", line)
                continue
            rows.append(parsed)

        if result.returncode != 0 and not rows:
            raise SnmpError(result.stderr.strip() or f"{binary} exited with {result.returncode}")
        return rows


BACKENDS = {
    "pysnmp": PysnmpClient,
    "net-snmp": NetSnmpClient,
}


def make_client(endpoint: SnmpEndpoint, backend="pysnmp"):
    try:
        factory = BACKENDS[backend]
    except KeyError:
        raise SnmpError(f"unknown SNMP backend {backend!r}") from None
    return factory(endpoint)
