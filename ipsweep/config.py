from typing import List, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

# Queue capacity is this value multiplied by the thread count, so memory stays
# bounded during endless scans and scales with the number of consumers.
MAX_QUEUE_SIZE_MULTIPLIER = 16


class ScanConfig(BaseModel):
    """
    Validation model for scan parameters.
    Normalizes lenient input (negative thread counts, out-of-range ports)
    and rejects what cannot be made to work.
    """
    thread_count: int = Field(1, ge=1)
    ports: Optional[List[int]] = None
    check_port_open: bool = True
    check_timeout: int = Field(300, gt=0)

    @field_validator('thread_count', mode='before')
    @classmethod
    def absolute_thread_count(cls, v):
        return abs(int(v))

    @field_validator('ports')
    @classmethod
    def normalize_ports(cls, v):
        # Same folding as IPv4AddressPort, order kept
        if v is None:
            return v
        if not v:
            raise ValueError("Ports list should not be empty.")
        return [p % 65536 for p in v]

    @property
    def max_queue_size(self) -> int:
        return MAX_QUEUE_SIZE_MULTIPLIER * self.thread_count


def build_config(**kwargs) -> ScanConfig:
    """Build a ScanConfig, reporting validation problems as ConfigurationError."""
    try:
        return ScanConfig(**kwargs)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
