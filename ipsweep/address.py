import re
from dataclasses import dataclass, field
from typing import Union

from .errors import FormatError

UNSIGNED_MAX_INT = 2 ** 32

_PATTERN_IPV4 = re.compile(r"(\d{1,3}\.){3}\d{1,3}")

# Ordered the way segments appear in x.x.x.x
_SEGMENT_MULTIPLIER = (256 ** 3, 256 ** 2, 256, 1)


@dataclass(frozen=True)
class IPv4Address:
    """
    An IPv4 address that converts freely between decimal and dotted-quad text.

    Text input is forgiving: a segment that overflows 255 is folded into the
    decimal value and the canonical text is regenerated from it, so
    "10.0.0.256" becomes "10.0.1.0". Decimal input wraps modulo 2^32.
    """
    decimal: int
    address: str = field(init=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "decimal", self.decimal % UNSIGNED_MAX_INT)
        object.__setattr__(self, "address", self.to_text(self.decimal))

    @classmethod
    def parse(cls, text: str) -> "IPv4Address":
        return cls(cls.to_decimal(text))

    @classmethod
    def of(cls, value: Union["IPv4Address", str, int]) -> "IPv4Address":
        """Accept an address, dotted-quad text or a decimal."""
        if isinstance(value, IPv4Address):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        try:
            return cls(int(value))
        except (TypeError, ValueError) as e:
            raise FormatError(f"Cannot interpret {value!r} as an IPv4 address") from e

    @staticmethod
    def matches_pattern(text: str) -> bool:
        return bool(_PATTERN_IPV4.fullmatch(text))

    @staticmethod
    def to_decimal(text: str) -> int:
        if not IPv4Address.matches_pattern(text):
            raise FormatError(f"Value did not follow a valid IPv4 format: {text!r}")
        return sum(int(segment) * mult for segment, mult in zip(text.split("."), _SEGMENT_MULTIPLIER))

    @staticmethod
    def to_text(decimal: int) -> str:
        decimal %= UNSIGNED_MAX_INT
        return ".".join(str((decimal >> shift) & 0xFF) for shift in (24, 16, 8, 0))

    def traverse(self, distance: int) -> "IPv4Address":
        return IPv4Address(self.decimal + distance)

    def next_address(self) -> "IPv4Address":
        return self.traverse(1)

    def prev_address(self) -> "IPv4Address":
        return self.traverse(-1)

    def __str__(self):
        return self.address


@dataclass(frozen=True, init=False)
class IPv4AddressPort:
    """
    An (address, port) pair. Any integer port is folded into 0-65535 with
    port % 65536 (so -1 is 65535) rather than rejected.
    """
    address: IPv4Address
    port: int

    def __init__(self, address: Union[IPv4Address, str, int], port: int):
        object.__setattr__(self, "address", IPv4Address.of(address))
        object.__setattr__(self, "port", int(port) % 65536)

    @property
    def full_address(self) -> str:
        return f"{self.address.address}:{self.port}"

    def __str__(self):
        return self.full_address
