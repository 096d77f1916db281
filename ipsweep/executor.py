import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class ExecutorGroup:
    """
    A fixed-size group of threads all running the same stateless task.

    Exceptions escaping a task are logged and kept in `errors` instead of
    being re-raised, so `await_all()` always returns once every copy of the
    task has ended.
    """

    def __init__(self, thread_count: int, name: str = "ipsweep"):
        self.thread_count = thread_count
        self.name = name
        self.errors: List[BaseException] = []
        self._futures: List[Future] = []
        self._service = ThreadPoolExecutor(max_workers=thread_count, thread_name_prefix=name)
        self._submitted = False

    def _guard(self, task: Callable[[], None]):
        try:
            task()
        except Exception as e:
            logger.exception("Task in %s failed", self.name)
            self.errors.append(e)

    def submit_all(self, task: Callable[[], None]):
        """Submit `task` once per thread and close the group to further submissions."""
        if self._submitted:
            raise ConfigurationError(f"Executor group {self.name} has already been submitted to")
        self._submitted = True

        for _ in range(self.thread_count):
            self._futures.append(self._service.submit(self._guard, task))
        # Threads are released as soon as the submitted tasks finish
        self._service.shutdown(wait=False)

    def await_all(self, timeout: float = None) -> bool:
        """Block until every submitted task has finished. Returns False on timeout."""
        _, not_done = wait(self._futures, timeout=timeout)
        return not not_done

    def is_still_working(self) -> bool:
        return any(not future.done() for future in self._futures)
