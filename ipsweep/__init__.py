"""
ipsweep - multithreaded IPv4 block and port scanner.

Walks a block, a list, or an endless run of IPv4 addresses (optionally paired
with ports) through a bounded producer/consumer queue and hands the items
that pass a TCP connect check to a caller-supplied callback.
"""
from .address import IPv4Address, IPv4AddressPort
from .block import IPv4AddressBlock
from .errors import ConfigurationError, FormatError, ProbeFailure
from .executor import ExecutorGroup
from .scanner import BlockScan, ScanMethod, ScanState, ScanTarget, address_scan, port_scan

__all__ = [
    "IPv4Address", "IPv4AddressPort", "IPv4AddressBlock",
    "ConfigurationError", "FormatError", "ProbeFailure",
    "ExecutorGroup",
    "BlockScan", "ScanMethod", "ScanState", "ScanTarget", "address_scan", "port_scan",
]
