"""Nagios/Centreon plugin: health check for fibre-channel switches over SNMP."""

__version__ = "1.0.0"
