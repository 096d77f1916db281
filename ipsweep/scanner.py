import logging
import queue
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable, Dict, Generic, Iterable, Iterator, List, Optional, Tuple, TypeVar, Union

from .address import IPv4Address, IPv4AddressPort
from .block import IPv4AddressBlock
from .config import ScanConfig, build_config
from .errors import ConfigurationError
from .executor import ExecutorGroup
from .probe import is_port_open

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Seconds a blocked producer / idle consumer waits before re-checking for shutdown
PRODUCER_POLL_INTERVAL = 0.1
CONSUMER_POLL_INTERVAL = 0.025


class ScanMethod(Enum):
    SINGLE_ADDRESS = "single"      # x.x.x.x
    MULTI_ADDRESS = "multi"        # x.x.x.x,x.x.x.y
    RANGE_ADDRESS = "range"        # x.x.x.x/16 or x.x.x.x-y.y.y.y
    ENDLESS_INCREASE = "up"        # x.x.x.x
    ENDLESS_DECREASE = "down"      # x.x.x.x


START_METHODS = (ScanMethod.SINGLE_ADDRESS, ScanMethod.ENDLESS_INCREASE, ScanMethod.ENDLESS_DECREASE)


class ScanState(Enum):
    CONFIGURED = "configured"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ScanTarget:
    """
    Which addresses a scan walks through: a block, a start address with a
    direction (or a single address), or an explicit list.
    """
    method: ScanMethod
    block: Optional[IPv4AddressBlock] = None
    start_address: Optional[IPv4Address] = None
    addresses: Optional[Tuple[IPv4Address, ...]] = None

    @classmethod
    def for_block(cls, block: IPv4AddressBlock) -> "ScanTarget":
        return cls(ScanMethod.RANGE_ADDRESS, block=block)

    @classmethod
    def for_start(cls, address: Union[IPv4Address, str, int], method: ScanMethod) -> "ScanTarget":
        if method not in START_METHODS:
            raise ConfigurationError(
                "Invalid scan method. Must be ENDLESS_DECREASE, ENDLESS_INCREASE, or SINGLE_ADDRESS")
        return cls(method, start_address=IPv4Address.of(address))

    @classmethod
    def for_addresses(cls, addresses: Iterable[Union[IPv4Address, str, int]]) -> "ScanTarget":
        """
        Addresses and decimals are taken as-is. Text entries are trimmed;
        blank entries and ones that are not x.x.x.x are skipped.
        """
        parsed = []
        for entry in addresses:
            if not isinstance(entry, str):
                parsed.append(IPv4Address.of(entry))
                continue
            entry = entry.strip()
            if entry and IPv4Address.matches_pattern(entry):
                parsed.append(IPv4Address.parse(entry))
            else:
                logger.debug("Skipping %r, not an IPv4 address", entry)
        return cls(ScanMethod.MULTI_ADDRESS, addresses=tuple(parsed))

    @classmethod
    def coerce(cls, target) -> "ScanTarget":
        if isinstance(target, ScanTarget):
            return target
        if isinstance(target, IPv4AddressBlock):
            return cls.for_block(target)
        if isinstance(target, (list, tuple, set, frozenset)):
            return cls.for_addresses(target)
        raise ConfigurationError(f"Cannot scan {target!r}; expected a ScanTarget, block or address list")

    def validate(self):
        if not isinstance(self.method, ScanMethod):
            raise ConfigurationError("Could not determine which scan method to perform.")
        if self.method is ScanMethod.RANGE_ADDRESS and self.block is None:
            raise ConfigurationError("Range scans need an address block")
        if self.method is ScanMethod.MULTI_ADDRESS and self.addresses is None:
            raise ConfigurationError("Multi-address scans need an address list")
        if self.method in START_METHODS and self.start_address is None:
            raise ConfigurationError(f"{self.method.name} scans need a start address")

    def iter_addresses(self) -> Iterator[IPv4Address]:
        """
        Addresses in scan order. Endless methods never stop on their own,
        wrapping around the address space.
        """
        method = self.method
        if method is ScanMethod.SINGLE_ADDRESS:
            yield self.start_address
        elif method is ScanMethod.RANGE_ADDRESS:
            last = self.block.last_address.decimal
            address = self.block.first_address
            while True:
                yield address
                address = address.next_address()
                if address.decimal >= last:
                    break
        elif method is ScanMethod.MULTI_ADDRESS:
            yield from self.addresses
        elif method in (ScanMethod.ENDLESS_INCREASE, ScanMethod.ENDLESS_DECREASE):
            step = 1 if method is ScanMethod.ENDLESS_INCREASE else -1
            address = self.start_address
            while True:
                yield address
                address = address.traverse(step)
        else:
            raise ConfigurationError("Could not determine which scan method to perform.")


class BlockScan(Generic[T]):
    """
    Multithreaded producer/consumer walk over a ScanTarget.

    One producer thread turns every address into payloads with `generate`
    and offers them to a bounded queue, blocking while the queue is full.
    `thread_count` consumer threads drain the queue, report every payload to
    `progress_method`, and hand the ones `accept` lets through (all of them
    when `accept` is None) to `consuming_method`.

    `execute()` returns immediately; `await_completion()` blocks until both
    sides finish, either naturally or after `shutdown()`.
    """

    def __init__(self, target, generate: Callable[[IPv4Address], Iterable[T]],
                 consuming_method: Callable[[T], None] = None,
                 accept: Callable[[T], bool] = None,
                 progress_method: Callable[[T], None] = None,
                 thread_count: int = 1,
                 config: ScanConfig = None):
        self.target = ScanTarget.coerce(target)
        self.config = config or build_config(thread_count=thread_count)
        self.generate = generate
        self.accept = accept
        self.consuming_method = consuming_method
        self.progress_method = progress_method

        self._queue: "queue.Queue[T]" = queue.Queue(maxsize=self.max_queue_size)
        self._shutdown = threading.Event()
        self._producer: Optional[ExecutorGroup] = None
        self._consumers: Optional[ExecutorGroup] = None
        self._produced = 0
        self._callback_errors = 0

        self._telemetry_lock = threading.Lock()
        self._thread_times: Dict[str, float] = {}
        self._quickest: Optional[float] = None
        self._longest: Optional[float] = None

    @property
    def thread_count(self) -> int:
        return self.config.thread_count

    @property
    def max_queue_size(self) -> int:
        return self.config.max_queue_size

    @property
    def queue_size(self) -> int:
        return self._queue.qsize()

    @property
    def produced_count(self) -> int:
        return self._produced

    @property
    def callback_errors(self) -> int:
        """Number of payloads whose progress/consuming callback raised."""
        return self._callback_errors

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown.is_set()

    @property
    def state(self) -> ScanState:
        if self._consumers is None:
            return ScanState.CONFIGURED
        if self._producer.is_still_working() or self._consumers.is_still_working():
            return ScanState.RUNNING
        return ScanState.COMPLETED

    @property
    def errors(self) -> List[BaseException]:
        """Unexpected exceptions that ended a producer or consumer thread."""
        groups = [g for g in (self._producer, self._consumers) if g is not None]
        return [e for g in groups for e in g.errors]

    def shutdown(self) -> "BlockScan[T]":
        """Signal producer and consumers to stop early. Safe to call from any thread."""
        self._shutdown.set()
        return self

    def execute(self) -> "BlockScan[T]":
        if self._consumers is not None:
            raise ConfigurationError("Scan has already been executed")
        if self.consuming_method is None:
            raise ConfigurationError("A consuming method is required")
        self.target.validate()

        logger.info("Starting %s scan with %d threads (queue limit %d)",
                    self.target.method.name, self.thread_count, self.max_queue_size)

        self._producer = ExecutorGroup(1, "ipsweep-producer")
        self._producer.submit_all(self._produce)

        self._consumers = ExecutorGroup(self.thread_count, "ipsweep-consumer")
        self._consumers.submit_all(self._consume)
        return self

    def await_completion(self) -> "BlockScan[T]":
        if self._consumers is None:
            raise ConfigurationError("Scan has not been executed")
        self._producer.await_all()
        self._consumers.await_all()
        return self

    def execute_and_await(self) -> "BlockScan[T]":
        return self.execute().await_completion()

    def _produce(self):
        for address in self.target.iter_addresses():
            for item in self.generate(address):
                if self._shutdown.is_set() or not self._offer(item):
                    logger.debug("Producer stopped by shutdown after %d items", self._produced)
                    return
        logger.debug("Producer finished after %d items", self._produced)

    def _offer(self, item: T) -> bool:
        """Wait for room in the queue, then add the item. False if shutdown came first."""
        while not self._shutdown.is_set():
            try:
                self._queue.put(item, timeout=PRODUCER_POLL_INTERVAL)
            except queue.Full:
                continue
            self._produced += 1
            self._update_thread_time()
            return True
        return False

    def _consume(self):
        while self._producer.is_still_working() or not self._queue.empty():
            try:
                item = self._queue.get(timeout=CONSUMER_POLL_INTERVAL)
            except queue.Empty:
                item = None

            if item is not None:
                self._handle(item)
            # Idle passes count too, so a polling consumer is never reported as hanging
            self._update_thread_time()

            if self._shutdown.is_set():
                break

    def _handle(self, item: T):
        try:
            if self.progress_method is not None:
                self.progress_method(item)
            if self.accept is None or self.accept(item):
                self.consuming_method(item)
        except Exception:
            with self._telemetry_lock:
                self._callback_errors += 1
            logger.exception("Callback failed for %s", item)

    def _update_thread_time(self):
        name = threading.current_thread().name
        now = time.monotonic()
        with self._telemetry_lock:
            previous = self._thread_times.get(name)
            self._thread_times[name] = now
            if previous is None:
                return
            elapsed = now - previous
            if self._quickest is None or elapsed < self._quickest:
                self._quickest = elapsed
            if self._longest is None or elapsed > self._longest:
                self._longest = elapsed

    @property
    def quickest(self) -> Optional[float]:
        """Shortest time in seconds between two consecutive loop passes of one thread."""
        return self._quickest

    @property
    def longest(self) -> Optional[float]:
        return self._longest

    def hanging_threads(self, threshold: Union[float, timedelta]) -> Dict[str, float]:
        """Threads whose last activity is at least `threshold` seconds ago, with that elapsed time."""
        if isinstance(threshold, timedelta):
            threshold = threshold.total_seconds()
        now = time.monotonic()
        with self._telemetry_lock:
            times = dict(self._thread_times)
        return {name: now - seen for name, seen in times.items() if now - seen >= threshold}

    def hanging_thread_times(self, threshold: Union[float, timedelta]) -> List[float]:
        return list(self.hanging_threads(threshold).values())

    def average_thread_time(self) -> Optional[float]:
        """Mean seconds since last activity across tracked threads, None before any activity."""
        now = time.monotonic()
        with self._telemetry_lock:
            times = list(self._thread_times.values())
        if not times:
            return None
        return sum(now - seen for seen in times) / len(times)


def address_scan(target, consuming_method: Callable[[IPv4Address], None] = None,
                 thread_count: int = 1,
                 progress_method: Callable[[IPv4Address], None] = None) -> BlockScan[IPv4Address]:
    """Scan that hands every generated address to `consuming_method`; no liveness check."""
    return BlockScan(target, generate=lambda address: (address,),
                     consuming_method=consuming_method,
                     progress_method=progress_method,
                     thread_count=thread_count)


def port_scan(target, ports: Iterable[int],
              consuming_method: Callable[[IPv4AddressPort], None] = None,
              thread_count: int = 1,
              check_port_open: bool = True,
              check_timeout: int = 300,
              progress_method: Callable[[IPv4AddressPort], None] = None) -> BlockScan[IPv4AddressPort]:
    """
    Scan every address:port combination, ports cycled in the given order per address.

    With `check_port_open` only pairs that accept a TCP connection within
    `check_timeout` milliseconds reach `consuming_method`; otherwise every
    generated pair does. `progress_method` sees every generated pair either way.
    """
    config = build_config(thread_count=thread_count,
                          ports=list(ports) if ports is not None else None,
                          check_port_open=check_port_open,
                          check_timeout=check_timeout)
    if not config.ports:
        raise ConfigurationError("Ports list should not be empty.")

    def generate(address: IPv4Address):
        return (IPv4AddressPort(address, port) for port in config.ports)

    accept = None
    if config.check_port_open:
        def accept(pair: IPv4AddressPort) -> bool:
            return is_port_open(pair, config.check_timeout)

    return BlockScan(target, generate=generate,
                     consuming_method=consuming_method,
                     accept=accept,
                     progress_method=progress_method,
                     config=config)
