"""
Exception types raised by ipsweep.
"""


class FormatError(ValueError):
    """Address, CIDR or range text that does not follow the expected shape."""


class ConfigurationError(ValueError):
    """A scan was set up in a way that cannot run."""


class ProbeFailure(OSError):
    """
    A TCP connect attempt did not succeed.

    This is an expected outcome (closed, filtered, unreachable) and is
    absorbed by the scanner rather than reported to the caller.
    """

    def __init__(self, target: str, reason: str = ""):
        super().__init__(f"{target} not reachable" + (f": {reason}" if reason else ""))
        self.target = target
        self.reason = reason
