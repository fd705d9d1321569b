"""Exceptions raised while probing a switch."""


class CheckError(Exception):
    """Base class for errors that end the check with a single status line."""


class SnmpError(CheckError):
    """An SNMP request could not be completed."""


class SnmpTimeout(SnmpError):
    """No valid response arrived before the timeout/retry budget ran out."""


class UnreachableError(CheckError):
    """The host failed the name resolution or ping pre-check."""
