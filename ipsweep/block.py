import re
from dataclasses import dataclass
from typing import Optional, Union

from .address import IPv4Address
from .errors import FormatError

_PATTERN_CIDR = re.compile(r"(\d{1,3}\.){3}\d{1,3}[/\\]\d{1,2}")
_PATTERN_RANGE = re.compile(r"\s*((?:\d{1,3}\.){3}\d{1,3})\s*-\s*((?:\d{1,3}\.){3}\d{1,3})\s*")

AddressLike = Union[IPv4Address, str, int]


@dataclass(frozen=True, init=False)
class IPv4AddressBlock:
    """
    An inclusive range of IPv4 addresses, expressible in range and CIDR notation.

    The two endpoints are accepted in any order. CIDR fields are only present
    when the distance between them is a positive power of two:

        >>> IPv4AddressBlock.parse("192.168.1.0/24").last_address.address
        '192.168.2.0'
    """
    first_address: IPv4Address
    last_address: IPv4Address

    def __init__(self, address1: AddressLike, address2: AddressLike):
        a, b = IPv4Address.of(address1), IPv4Address.of(address2)
        if b.decimal < a.decimal:
            a, b = b, a
        object.__setattr__(self, "first_address", a)
        object.__setattr__(self, "last_address", b)

    @classmethod
    def from_cidr(cls, address: AddressLike, cidr_value: int) -> "IPv4AddressBlock":
        """Block spanning 2^(32 - length) addresses from `address`; length is taken modulo 33."""
        base = IPv4Address.of(address)
        distance = 2 ** (32 - (cidr_value % 33))
        return cls(base, base.traverse(distance))

    @classmethod
    def parse(cls, cidr_notation: str) -> "IPv4AddressBlock":
        """Parse x.x.x.x/y (a backslash separator is accepted too)."""
        if not cls.matches_cidr(cidr_notation):
            raise FormatError(f"Value did not follow a valid CIDR notation: {cidr_notation!r}")
        address, length = re.split(r"[/\\]", cidr_notation)
        return cls.from_cidr(IPv4Address.parse(address), int(length))

    @classmethod
    def from_range(cls, range_notation: str) -> "IPv4AddressBlock":
        """Parse x.x.x.x-y.y.y.y"""
        m = _PATTERN_RANGE.fullmatch(range_notation)
        if not m:
            raise FormatError(f"Value did not follow a valid range notation: {range_notation!r}")
        return cls(m.group(1), m.group(2))

    @staticmethod
    def matches_cidr(text: str) -> bool:
        return bool(_PATTERN_CIDR.fullmatch(text))

    @property
    def size(self) -> int:
        return self.last_address.decimal - self.first_address.decimal

    @property
    def valid_cidr(self) -> bool:
        size = self.size
        return size > 0 and (size & (size - 1)) == 0

    @property
    def cidr_length(self) -> Optional[int]:
        if not self.valid_cidr:
            return None
        return 32 - (self.size.bit_length() - 1)

    @property
    def cidr_notation(self) -> Optional[str]:
        if not self.valid_cidr:
            return None
        return f"{self.first_address.address}/{self.cidr_length}"

    @property
    def range_notation(self) -> str:
        return f"{self.first_address.address}-{self.last_address.address}"

    def contains(self, address: AddressLike) -> bool:
        decimal = IPv4Address.of(address).decimal
        return self.first_address.decimal <= decimal <= self.last_address.decimal

    def __contains__(self, address):
        return self.contains(address)

    def __str__(self):
        return self.cidr_notation or self.range_notation
