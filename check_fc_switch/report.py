"""Nagios/Centreon output: one status line and the matching exit code."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass

CHECK_NAME = "FC_SWITCH"

# Nagios/Centreon plugin return codes
NAGIOS_OK = 0
NAGIOS_WARNING = 1
NAGIOS_CRITICAL = 2
NAGIOS_UNKNOWN = 3


class State(enum.IntEnum):
    OK = NAGIOS_OK
    WARNING = NAGIOS_WARNING
    CRITICAL = NAGIOS_CRITICAL
    UNKNOWN = NAGIOS_UNKNOWN


@dataclass(frozen=True)
class Verdict:
    state: State
    reason: str
    perfdata: str = ""


def fmt_perf(name, value, unit="", warn="", crit="", minv="", maxv=""):
    metric = name.replace(" ", "_")
    return f"{metric}={value}{unit};{warn};{crit};{minv};{maxv}"


def summarize(metrics):
    return (
        f"Type: {metrics.switch_type}, Firmware: {metrics.firmware}, "
        f"FC ports: {metrics.port_count}, CPU: {metrics.cpu_percent}%, "
        f"RAM: {metrics.ram_percent}%, Temperature: {metrics.temperature}C, "
        f"Fans: {metrics.fan_count}, Power supplies: {metrics.psu_count}"
    )


def format_line(verdict, metrics=None, label=None):
    """Render the single status line.

    ``label`` overrides the state name shown, for failures reported under one
    label but exiting with another code.
    """
    line = f"{CHECK_NAME} {label or verdict.state.name} - {verdict.reason}."
    if metrics is not None:
        line += f" {summarize(metrics)}"
    if verdict.perfdata:
        line += f" | {verdict.perfdata}"
    # the monitoring system only reads the first line
    return " ".join(line.split())


def exit_with(verdict, metrics=None, label=None):
    print(format_line(verdict, metrics, label))
    sys.exit(int(verdict.state))
