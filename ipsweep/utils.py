from typing import List, Optional

from .address import IPv4Address
from .block import IPv4AddressBlock
from .errors import FormatError
from .scanner import ScanMethod, ScanTarget


def parse_ports(port_input: str) -> List[int]:
    """
    Parses a string of ports (spaces, commas, ranges) into a list of integers.
    Example: "80 443 1000-1005" -> [80, 443, 1000, 1001, 1002, 1003, 1004, 1005]
    """
    ports = set()
    # Replace commas with spaces to handle both formats
    port_input = port_input.replace(',', ' ')
    tokens = port_input.split()

    for token in tokens:
        if '-' in token:
            try:
                start, end = map(int, token.split('-'))
            except ValueError:
                continue
            # Clamp to valid range 1-65535
            start = max(1, start)
            end = min(65535, end)
            if start <= end:
                ports.update(range(start, end + 1))
        else:
            try:
                p = int(token)
            except ValueError:
                continue
            if 1 <= p <= 65535:
                ports.add(p)
    return sorted(ports)


def infer_method(target: str) -> ScanMethod:
    """
    Guess the scan method from target text:
    "a,b,c" -> multi, "x/24" or "a-b" -> range, "x.x.x.x" -> single.
    """
    target = target.strip()
    if ',' in target:
        return ScanMethod.MULTI_ADDRESS
    if IPv4AddressBlock.matches_cidr(target) or '-' in target:
        return ScanMethod.RANGE_ADDRESS
    return ScanMethod.SINGLE_ADDRESS


def parse_target(target: str, method: Optional[ScanMethod] = None) -> ScanTarget:
    """Turn CLI target text into a ScanTarget. Raises FormatError on malformed text."""
    method = method or infer_method(target)
    target = target.strip()

    if method is ScanMethod.MULTI_ADDRESS:
        scan_target = ScanTarget.for_addresses(target.split(','))
        if not scan_target.addresses:
            raise FormatError(f"No IPv4 addresses found in {target!r}")
        return scan_target

    if method is ScanMethod.RANGE_ADDRESS:
        if IPv4AddressBlock.matches_cidr(target):
            block = IPv4AddressBlock.parse(target)
        else:
            block = IPv4AddressBlock.from_range(target)
        return ScanTarget.for_block(block)

    return ScanTarget.for_start(IPv4Address.parse(target), method)
