"""Metric extraction from raw SNMP responses.

Extractors are pure: they take what the SNMP client returned and produce a
typed value, falling back to a default when the expected value type is absent.
Only ``probe_session`` may end the check, because without a working SNMP
session no other metric means anything.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field

from check_fc_switch.errors import SnmpError, SnmpTimeout
from check_fc_switch.snmp import TIMEOUT_MARKER, ValueKind

log = logging.getLogger(__name__)

# ENTITY-MIB
OID_ENT_PHYSICAL_DESCR = "1.3.6.1.2.1.47.1.1.1.1.2"
OID_SWITCH_TYPE = OID_ENT_PHYSICAL_DESCR + ".1"
OID_FIRMWARE = "1.3.6.1.2.1.47.1.1.1.1.9.1"
# IF-MIB ifDescr
OID_IF_DESCR = "1.3.6.1.2.1.2.2.1.2"
# Brocade SW-MIB
OID_SWITCH_STATUS = "1.3.6.1.4.1.1588.2.1.1.1.1.7.0"
OID_CPU_USAGE = "1.3.6.1.4.1.1588.2.1.1.1.26.1.0"
OID_MEM_USAGE = "1.3.6.1.4.1.1588.2.1.1.1.26.6.0"
OID_TEMPERATURE = "1.3.6.1.4.1.1588.2.1.1.1.1.22.1.4.1"
OID_C3_DISCARDS = "1.3.6.1.4.1.1588.2.1.1.1.6.2.1.28"

SCALAR_OIDS = {
    "switch_type": OID_SWITCH_TYPE,
    "status": OID_SWITCH_STATUS,
    "firmware": OID_FIRMWARE,
    "cpu": OID_CPU_USAGE,
    "ram": OID_MEM_USAGE,
    "temperature": OID_TEMPERATURE,
}

WALK_OIDS = {
    "ports": OID_IF_DESCR,
    "entities": OID_ENT_PHYSICAL_DESCR,
    "c3_discards": OID_C3_DISCARDS,
}

C3_DISCARD_THRESHOLD = 1000
FC_PORT_PREFIX = "FC port"
FAN_NAME = "FAN"
PSU_NAME = "POWER SUPPLY"


class SwitchStatus(enum.Enum):
    OK = "ok"
    UNKNOWN_FAULT = "unknown fault"
    EMBEDDED_PORT_FAULT = "embedded port fault"
    UNSET = "unset"


STATUS_CODES = {
    1: SwitchStatus.OK,
    2: SwitchStatus.UNKNOWN_FAULT,
    3: SwitchStatus.EMBEDDED_PORT_FAULT,
}


@dataclass(frozen=True)
class PortError:
    port_index: int
    c3_discards: int

    @property
    def label(self):
        return f"Port{self.port_index}_C3discards={self.c3_discards}"


@dataclass(frozen=True)
class SwitchMetrics:
    switch_type: str = "unknown"
    status: SwitchStatus = SwitchStatus.UNSET
    port_count: int = 0
    firmware: str = "unknown"
    cpu_percent: int = 0
    ram_percent: int = 0
    temperature: int = 0
    fan_count: int = 0
    psu_count: int = 0
    port_errors: tuple[PortError, ...] = field(default_factory=tuple)


def _first(responses, kind):
    for raw in responses:
        if raw.kind is kind:
            return raw.text
    return None


def _strip_quotes(text):
    return text.strip().strip('"')


def _to_int(text):
    """int() that also accepts net-snmp enum rendering such as ``online(1)``."""
    if text is None:
        return None
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        match = re.search(r"\((-?\d+)\)$", text)
        return int(match.group(1)) if match else None


def _int_metric(responses, default=0):
    value = _to_int(_first(responses, ValueKind.INTEGER))
    return default if value is None else value


def _table_index(oid):
    try:
        return int(oid.rsplit(".", 1)[-1])
    except ValueError:
        return None


def extract_switch_type(responses):
    text = _first(responses, ValueKind.STRING)
    return "unknown" if text is None else _strip_quotes(text)


def extract_status(responses):
    code = _to_int(_first(responses, ValueKind.INTEGER))
    return STATUS_CODES.get(code, SwitchStatus.UNSET)


def extract_port_count(walk):
    return sum(
        1 for _oid, raw in walk
        if raw.kind is ValueKind.STRING and _strip_quotes(raw.text).startswith(FC_PORT_PREFIX)
    )


def extract_firmware(responses):
    text = _first(responses, ValueKind.STRING)
    return "unknown" if text is None else _strip_quotes(text)


def extract_cpu(responses):
    return _int_metric(responses)


def extract_ram(responses):
    return _int_metric(responses)


def extract_temperature(responses):
    return _int_metric(responses)


def _count_entities(walk, name):
    return sum(
        1 for _oid, raw in walk
        if raw.kind is ValueKind.STRING and _strip_quotes(raw.text) == name
    )


def extract_fan_count(walk):
    return _count_entities(walk, FAN_NAME)


def extract_psu_count(walk):
    return _count_entities(walk, PSU_NAME)


def port_discards(walk):
    """Map port index to Class-3 discard count.

    The SNMP table numbers ports from 1 while ``portErrShow`` numbers them
    from 0; the map uses the ``portErrShow`` numbering.
    """
    discards = {}
    for oid, raw in walk:
        if raw.kind is not ValueKind.COUNTER32:
            continue
        index = _table_index(oid)
        value = _to_int(raw.text)
        if index is None or value is None:
            continue
        discards[index - 1] = value
    return discards


def aggregate_port_errors(walk, threshold=C3_DISCARD_THRESHOLD):
    return tuple(
        PortError(port_index, count)
        for port_index, count in port_discards(walk).items()
        if count > threshold
    )


def probe_session(client):
    """Fetch the switch description, proving the SNMP session works.

    Raises SnmpTimeout when the agent gives no usable answer.
    """
    responses = client.fetch(OID_SWITCH_TYPE)
    text = _first(responses, ValueKind.STRING)
    if text is None:
        raise SnmpTimeout(f"no valid response for {OID_SWITCH_TYPE}")
    if _strip_quotes(text).startswith(TIMEOUT_MARKER):
        raise SnmpTimeout(_strip_quotes(text))
    return responses


def collect_raw(client, known=None):
    """Run every SNMP request, returning raw responses keyed by metric.

    Entries already present in ``known`` are not fetched again. A failed
    request leaves an empty list so its metric falls back to the default.
    """
    raw = dict(known or {})
    for key, oid in SCALAR_OIDS.items():
        if key in raw:
            continue
        try:
            raw[key] = client.fetch(oid)
        except SnmpError as e:
            log.debug("%s (%s) unavailable: %s", key, oid, e)
            raw[key] = []
    for key, oid in WALK_OIDS.items():
        if key in raw:
            continue
        try:
            raw[key] = client.walk(oid)
        except SnmpError as e:
            log.debug("%s (%s) unavailable: %s", key, oid, e)
            raw[key] = []
    return raw


def build_metrics(raw):
    """Turn a bundle from ``collect_raw`` into ``SwitchMetrics``."""
    metrics = SwitchMetrics(
        switch_type=extract_switch_type(raw.get("switch_type", ())),
        status=extract_status(raw.get("status", ())),
        port_count=extract_port_count(raw.get("ports", ())),
        firmware=extract_firmware(raw.get("firmware", ())),
        cpu_percent=extract_cpu(raw.get("cpu", ())),
        ram_percent=extract_ram(raw.get("ram", ())),
        temperature=extract_temperature(raw.get("temperature", ())),
        fan_count=extract_fan_count(raw.get("entities", ())),
        psu_count=extract_psu_count(raw.get("entities", ())),
        port_errors=aggregate_port_errors(raw.get("c3_discards", ())),
    )
    log.debug("metrics: %s", metrics)
    return metrics
