"""
Scheduling primitives built on the Tk event loop.

Everything the controller owns is mutated on the Tk main thread. Two helpers
keep it that way while still letting slow work and timed work happen:

- `TaskDispatcher` runs blocking I/O (folder scans, image decoding, EXIF reads)
  on a thread pool and hands each result back to the Tk thread. Work is
  grouped into named channels: submitting to a channel cancels whatever was
  still pending on it, so a stale result can never land after a newer one.
- `RepeatingTimer` fires a callback every N seconds with `after`/`after_cancel`.
  A generation counter makes cancel-and-rearm atomic: a firing that belongs to
  a cancelled generation is ignored.

Both only need an object with Tk's `after(ms, func, *args)` and
`after_cancel(id)` methods, so tests can drive them with a fake clock.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from collections import deque
from typing import Any, Callable, Protocol

from .config import DISPATCH_POLL_MS, IO_WORKERS

logger = logging.getLogger(__name__)

# Completion callback: receives (result, error); exactly one of them is meaningful.
DoneCallback = Callable[[Any, "BaseException | None"], None]


class Scheduler(Protocol):
    """The subset of the Tk widget API used for scheduling."""

    def after(self, ms: int, func: Callable[..., Any], *args: Any) -> str:  # pragma: no cover - protocol
        ...

    def after_cancel(self, id: str) -> None:  # pragma: no cover - protocol
        ...


class Job:
    """Handle for one unit of work submitted to a `TaskDispatcher`."""

    def __init__(self, channel: str):
        self.channel = channel
        self.cancelled = False
        self.future: concurrent.futures.Future | None = None

    def cancel(self) -> None:
        """Drop the result of this job. Pending work is also removed from the pool."""
        self.cancelled = True
        if self.future is not None:
            self.future.cancel()

    def __repr__(self) -> str:
        return f"Job(channel={self.channel!r}, cancelled={self.cancelled})"


class TaskDispatcher:
    """
    Runs callables off the Tk thread and delivers their outcome back onto it.

    Parameters
    ----------
    window:
        Tk widget (or anything with ``after``/``after_cancel``) owning the
        event loop. The dispatcher must be created on that loop's thread.
    executor:
        Optional executor. Defaults to a small ``ThreadPoolExecutor``.
    poll_interval_ms:
        How often queued completions are drained while work is outstanding.
    """

    def __init__(
        self,
        window: Scheduler,
        executor: concurrent.futures.Executor | None = None,
        *,
        poll_interval_ms: int = DISPATCH_POLL_MS,
    ) -> None:
        self._window = window
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=IO_WORKERS, thread_name_prefix="picshow-io"
        )
        self._poll_interval_ms = poll_interval_ms
        self._owner_thread = threading.get_ident()
        self._channels: dict[str, Job] = {}
        self._completed: deque[tuple[Job, DoneCallback, Any, BaseException | None]] = deque()
        # Owner-thread completions waiting for the current delivery to return.
        self._ready: deque[tuple[Job, DoneCallback, Any, BaseException | None]] = deque()
        self._delivering = False
        self._lock = threading.Lock()
        self._outstanding = 0
        self._pump_id: str | None = None
        self._closed = False

    # ------------------------------------------------------------------
    def submit(self, channel: str, func: Callable[..., Any], *args: Any, on_done: DoneCallback) -> Job:
        """
        Run ``func(*args)`` in the pool and call ``on_done(result, error)`` on the Tk thread.

        Any job still pending on ``channel`` is cancelled first.
        """
        if self._closed:
            raise RuntimeError("TaskDispatcher is closed")
        self.cancel(channel)
        job = Job(channel)
        self._channels[channel] = job
        self._outstanding += 1
        job.future = self._executor.submit(func, *args)
        job.future.add_done_callback(lambda future: self._on_future_done(job, on_done, future))
        self._ensure_pump()
        return job

    def cancel(self, channel: str) -> None:
        """Cancel the pending job on ``channel``, if any."""
        job = self._channels.pop(channel, None)
        if job is not None:
            logger.debug(f"Cancelling {job}")
            job.cancel()

    def busy(self, channel: str) -> bool:
        return channel in self._channels

    def shutdown(self) -> None:
        """Cancel everything and stop the pool. Later completions are dropped."""
        self._closed = True
        for channel in list(self._channels):
            self.cancel(channel)
        if self._pump_id is not None:
            self._window.after_cancel(self._pump_id)
            self._pump_id = None
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    def _on_future_done(self, job: Job, on_done: DoneCallback, future: concurrent.futures.Future) -> None:
        # Runs on whichever thread completed the future.
        if future.cancelled():
            result, error = None, None
        else:
            result, error = None, future.exception()
            if error is None:
                result = future.result()
        if threading.get_ident() == self._owner_thread:
            self._ready.append((job, on_done, result, error))
            if not self._delivering:
                self._drain()
        else:
            with self._lock:
                self._completed.append((job, on_done, result, error))

    def _ensure_pump(self) -> None:
        if self._delivering:
            return
        if self._pump_id is None and self._outstanding > 0 and not self._closed:
            self._pump_id = self._window.after(self._poll_interval_ms, self._pump)

    def _pump(self) -> None:
        self._pump_id = None
        with self._lock:
            ready = list(self._completed)
            self._completed.clear()
        self._ready.extend(ready)
        self._drain()

    def _drain(self) -> None:
        """
        Deliver queued completions one after the other.

        Work submitted from an ``on_done`` callback may complete immediately;
        its result is appended to the queue and handled by this loop once the
        callback has returned, so chained submissions never nest.
        """
        self._delivering = True
        try:
            while self._ready:
                self._deliver(*self._ready.popleft())
        finally:
            self._delivering = False
        self._ensure_pump()

    def _deliver(self, job: Job, on_done: DoneCallback, result: Any, error: BaseException | None) -> None:
        self._outstanding -= 1
        if self._channels.get(job.channel) is job:
            del self._channels[job.channel]
        if job.cancelled or self._closed:
            logger.debug(f"Dropping result of {job}")
            return
        try:
            on_done(result, error)
        except Exception:
            logger.exception(f"Completion callback of {job} failed")


class RepeatingTimer:
    """
    Calls ``callback`` every ``interval`` seconds until cancelled.

    The next firing is armed before ``callback`` runs, so a callback that
    cancels the timer also cancels that firing.
    """

    def __init__(self, window: Scheduler, callback: Callable[[], None]):
        self._window = window
        self._callback = callback
        self._after_id: str | None = None
        self._generation = 0
        self.interval: float | None = None

    @property
    def active(self) -> bool:
        return self._after_id is not None

    def start(self, interval: float) -> None:
        """Cancel any running schedule and arm a new one with ``interval`` seconds."""
        self.cancel()
        self.interval = float(interval)
        self._arm(self._generation)
        logger.debug(f"Timer armed every {self.interval:.1f}s (generation {self._generation})")

    def cancel(self) -> None:
        self._generation += 1
        if self._after_id is not None:
            self._window.after_cancel(self._after_id)
            self._after_id = None
        self.interval = None

    def _arm(self, generation: int) -> None:
        self._after_id = self._window.after(int(self.interval * 1000), self._fire, generation)

    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Ignoring firing from a cancelled timer")
            return
        self._arm(generation)
        self._callback()
