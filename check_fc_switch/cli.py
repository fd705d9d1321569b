"""Command line entry point: ``check_fc_switch -H <host> [-c <community>] [-v]``."""

from __future__ import annotations

import argparse
import logging
import sys

from check_fc_switch.errors import SnmpError, UnreachableError
from check_fc_switch.evaluate import evaluate
from check_fc_switch.metrics import build_metrics, collect_raw, probe_session
from check_fc_switch.reachability import check_host
from check_fc_switch.report import State, Verdict, exit_with
from check_fc_switch.snmp import BACKENDS, SnmpEndpoint, make_client

log = logging.getLogger("check_fc_switch")


class PluginArgumentParser(argparse.ArgumentParser):
    """argparse reports usage errors as UNKNOWN (exit 3) instead of exit 2."""

    def error(self, message):
        exit_with(Verdict(State.UNKNOWN, f"Invalid arguments: {message}"))


def build_parser():
    parser = PluginArgumentParser(
        prog="check_fc_switch",
        description="Nagios/Centreon plugin: health of a fibre-channel switch over SNMP v2c",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Checked values:
  switch status, CPU, RAM, temperature, FC port count, firmware,
  fans, power supplies, Class-3 discards per port (> 1000 = WARNING)

Examples:
  check_fc_switch -H 10.0.0.20
  check_fc_switch -H san-sw01 -c monitoring -v
        """,
    )
    parser.add_argument("-H", "--host", help="Switch IP address or hostname (required)")
    parser.add_argument("-c", "--community", default="public",
                        help="SNMP v2c community (default: public)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Trace SNMP requests and extracted values on stderr")
    parser.add_argument("--snmp-backend", choices=sorted(BACKENDS), default="pysnmp",
                        help="SNMP implementation (default: pysnmp)")
    return parser


def configure_logging(verbose):
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[DEBUG] %(name)s: %(message)s"))
    log.handlers[:] = [handler]
    log.setLevel(logging.DEBUG if verbose else logging.WARNING)
    log.propagate = False


def run(args):
    if not args.host:
        exit_with(Verdict(State.UNKNOWN, "No host given, use -H <address>"))

    try:
        check_host(args.host)
    except UnreachableError as e:
        exit_with(Verdict(State.UNKNOWN, str(e)))

    endpoint = SnmpEndpoint(args.host, args.community)
    try:
        client = make_client(endpoint, args.snmp_backend)
    except SnmpError as e:
        exit_with(Verdict(State.UNKNOWN, str(e)))

    try:
        probe = probe_session(client)
    except SnmpError as e:
        exit_with(
            Verdict(State.UNKNOWN, f"No SNMP response from {args.host} ({e})"),
            label=State.CRITICAL.name,
        )

    metrics = build_metrics(collect_raw(client, known={"switch_type": probe}))
    exit_with(evaluate(metrics), metrics)


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        run(args)
    except Exception as e:
        log.debug("unexpected error", exc_info=True)
        exit_with(Verdict(State.UNKNOWN, f"Unexpected error: {e}"))


if __name__ == "__main__":
    main()
