"""Shared test fixtures for check_fc_switch."""

import pytest

from check_fc_switch.errors import SnmpTimeout
from check_fc_switch.metrics import (
    OID_C3_DISCARDS,
    OID_CPU_USAGE,
    OID_ENT_PHYSICAL_DESCR,
    OID_FIRMWARE,
    OID_IF_DESCR,
    OID_MEM_USAGE,
    OID_SWITCH_STATUS,
    OID_SWITCH_TYPE,
    OID_TEMPERATURE,
)
from check_fc_switch.snmp import RawResponse, ValueKind


def string(text):
    return RawResponse(ValueKind.STRING, text)


def integer(value):
    return RawResponse(ValueKind.INTEGER, str(value))


def counter(value):
    return RawResponse(ValueKind.COUNTER32, str(value))


class FakeClient:
    """Stands in for an SNMP client, answering from canned responses."""

    def __init__(self, scalars, walks, failing=()):
        self.scalars = scalars
        self.walks = walks
        self.failing = set(failing)
        self.calls = []

    def fetch(self, oid):
        self.calls.append(("fetch", oid))
        if oid in self.failing:
            raise SnmpTimeout(f"no response for {oid}")
        return list(self.scalars.get(oid, []))

    def walk(self, oid_prefix):
        self.calls.append(("walk", oid_prefix))
        if oid_prefix in self.failing:
            raise SnmpTimeout(f"no response for {oid_prefix}")
        return list(self.walks.get(oid_prefix, []))


def healthy_scalars():
    return {
        OID_SWITCH_TYPE: [string('"Brocade 6510"')],
        OID_SWITCH_STATUS: [integer(1)],
        OID_FIRMWARE: [string('"v8.2.1c"')],
        OID_CPU_USAGE: [integer(12)],
        OID_MEM_USAGE: [integer(41)],
        OID_TEMPERATURE: [integer(34)],
    }


def healthy_walks():
    return {
        OID_IF_DESCR: [
            (f"{OID_IF_DESCR}.{i}", string(f'"FC port 0/{i - 1}"')) for i in range(1, 5)
        ] + [(f"{OID_IF_DESCR}.1073741824", string('"Ethernet mgmt"'))],
        OID_ENT_PHYSICAL_DESCR: [
            (f"{OID_ENT_PHYSICAL_DESCR}.1", string('"Brocade 6510"')),
            (f"{OID_ENT_PHYSICAL_DESCR}.2", string('"FAN"')),
            (f"{OID_ENT_PHYSICAL_DESCR}.3", string('"FAN"')),
            (f"{OID_ENT_PHYSICAL_DESCR}.4", string('"POWER SUPPLY"')),
            (f"{OID_ENT_PHYSICAL_DESCR}.5", string('"POWER SUPPLY"')),
        ],
        OID_C3_DISCARDS: [
            (f"{OID_C3_DISCARDS}.{i}", counter(0)) for i in range(1, 5)
        ],
    }


@pytest.fixture
def fake_client():
    """Factory for FakeClient, defaulting to a healthy switch."""

    def make(scalars=None, walks=None, failing=()):
        return FakeClient(
            healthy_scalars() if scalars is None else scalars,
            healthy_walks() if walks is None else walks,
            failing,
        )

    return make
