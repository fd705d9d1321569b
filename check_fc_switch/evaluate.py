"""Health decision for a fibre-channel switch.

The verdict comes from an ordered rule table: the first rule whose condition
holds decides the state and the reason. Device faults are reported as
WARNING; CRITICAL only comes from a broken SNMP session, handled before any
metric is evaluated.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from check_fc_switch.metrics import SwitchMetrics, SwitchStatus
from check_fc_switch.report import State, Verdict, fmt_perf

CPU_WARNING_PERCENT = 50


class Rule(NamedTuple):
    matches: Callable[[SwitchMetrics], bool]
    state: State
    reason: Callable[[SwitchMetrics], str]


def _cpu_high(m):
    return m.cpu_percent >= CPU_WARNING_PERCENT


def _port_list(m):
    return " ".join(err.label for err in m.port_errors)


def _is_ok(m):
    return m.status is SwitchStatus.OK


DECISION_TABLE = (
    Rule(
        lambda m: _is_ok(m) and not _cpu_high(m) and not m.port_errors,
        State.OK,
        lambda m: "Switch is healthy",
    ),
    Rule(
        lambda m: _is_ok(m) and _cpu_high(m) and not m.port_errors,
        State.WARNING,
        lambda m: f"CPU utilization is elevated ({m.cpu_percent}%)",
    ),
    Rule(
        lambda m: m.status is SwitchStatus.UNKNOWN_FAULT,
        State.WARNING,
        lambda m: "Switch reports an unknown fault",
    ),
    Rule(
        lambda m: _is_ok(m) and not _cpu_high(m) and bool(m.port_errors),
        State.WARNING,
        lambda m: f"Port errors detected ({_port_list(m)}), check optics and cables",
    ),
    Rule(
        lambda m: _is_ok(m) and _cpu_high(m) and bool(m.port_errors),
        State.WARNING,
        lambda m: (
            f"Port errors detected ({_port_list(m)}), check optics and cables; "
            f"CPU utilization is elevated ({m.cpu_percent}%)"
        ),
    ),
    Rule(
        lambda m: m.status is SwitchStatus.EMBEDDED_PORT_FAULT,
        State.WARNING,
        lambda m: "Switch reports an embedded port fault",
    ),
    Rule(
        lambda m: m.status is SwitchStatus.UNSET,
        State.WARNING,
        lambda m: "Switch status could not be determined",
    ),
)

FALLBACK = Rule(lambda m: True, State.WARNING, lambda m: "Unable to determine switch state")


def perfdata(metrics):
    return " ".join([
        fmt_perf("temperature", metrics.temperature, "C"),
        fmt_perf("cpu", metrics.cpu_percent, "%"),
        fmt_perf("ram", metrics.ram_percent, "%"),
    ])


def evaluate(metrics, rules=DECISION_TABLE):
    rule = next((r for r in rules if r.matches(metrics)), FALLBACK)
    return Verdict(rule.state, rule.reason(metrics), perfdata(metrics))
