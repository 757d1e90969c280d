"""Run blocking calls off the UI thread and hand the outcome back to it."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar, Union

from sage_desk.errors import SageError, UnexpectedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    error: SageError


Result = Union[Success[Any], Failure]
Scheduler = Callable[[Callable[[], None]], None]


def call_now(callback: Callable[[], None]) -> None:
    """Scheduler that runs the callback on whichever thread completed the work."""
    callback()


class Generation:
    """
    Monotonic ticket counter.

    Every new request takes a ticket; only the holder of the latest ticket
    is allowed to update the screen.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current = 0

    def next(self) -> int:
        with self._lock:
            self._current += 1
            return self._current

    def is_current(self, ticket: int) -> bool:
        with self._lock:
            return ticket == self._current


class BackgroundRunner:
    def __init__(self, schedule: Scheduler = call_now, executor: Executor | None = None) -> None:
        self.schedule = schedule
        self.executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="sage")

    def run(self, fn: Callable[[], Any], on_done: Callable[[Result], None] | None = None) -> Future:
        """
        Submit ``fn`` to the executor and return a Future resolving to a Result.

        ``SageError`` raised by ``fn`` becomes ``Failure``. Any other exception
        is logged with its traceback and delivered as ``Failure(UnexpectedError)``
        so the caller always hears back. ``on_done`` is invoked through the
        scheduler, i.e. on the UI thread in the app.
        """

        def _task() -> Result:
            try:
                result: Result = Success(fn())
            except SageError as exc:
                result = Failure(exc)
            except Exception as exc:
                logger.exception("Background task crashed")
                result = Failure(UnexpectedError(f"Unexpected error: {exc}"))
            if on_done is not None:
                self.schedule(lambda: on_done(result))
            return result

        return self.executor.submit(_task)

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)
