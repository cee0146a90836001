"""
Paced transmission of a script in bounded slices.

The raw REPL offers no flow control, so a long script is cut into slices of
at most `slice_size` bytes written one pacing unit apart, followed by a
single end-of-transmission byte. Completion means every write has been
issued, not that the board has finished running the code.
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, List, Tuple

from . import config
from .raw_repl import CTRL_D

logger = logging.getLogger(__name__)


def slice_count(length: int, slice_size: int = config.SLICE_SIZE) -> int:
    return -(-length // slice_size)


def schedule_duration(length: int, slice_size: int = config.SLICE_SIZE,
                      unit: float = config.PACING_UNIT) -> float:
    """Time occupied by the schedule: one unit per slice plus one for the EOT."""
    return (slice_count(length, slice_size) + 1) * unit


def plan(data: bytes, slice_size: int = config.SLICE_SIZE,
         unit: float = config.PACING_UNIT) -> List[Tuple[float, bytes]]:
    """Return the (offset, payload) writes for `data`, in order."""
    count = slice_count(len(data), slice_size)
    steps = [(i * unit, data[i * slice_size:(i + 1) * slice_size]) for i in range(count)]
    steps.append((count * unit, CTRL_D))
    return steps


class PendingExecution:
    """One in-flight transmission.

    `future` resolves with the number of writes issued once the end of
    transmission byte is out. It is cancelled by `cancel()` and carries the
    exception if a write fails.
    """

    def __init__(self, source: str, write: Callable[[bytes], None],
                 slice_size: int = config.SLICE_SIZE, unit: float = config.PACING_UNIT,
                 clock: Callable[[], float] = time.monotonic):
        self.source = source
        self.slice_size = slice_size
        self.unit = unit
        self.steps = plan(source.encode("utf-8"), slice_size, unit)
        self.cursor = 0
        self.future = Future()
        self.thread = None
        self._write = write
        self._clock = clock
        self._lock = threading.Lock()
        self._wakeup = threading.Event()
        self._settled = False

    @property
    def slices(self):
        return len(self.steps) - 1

    @property
    def duration(self):
        return (self.slices + 1) * self.unit

    def done(self):
        return self.future.done()

    def cancel(self):
        """Stop writing. Returns False if the schedule had already settled."""
        if not self._settle():
            return False
        self._wakeup.set()
        logger.debug("transmission cancelled at write %d of %d", self.cursor, len(self.steps))
        return self.future.cancel()

    def join(self, timeout=None):
        if self.thread is not None:
            self.thread.join(timeout)

    def _settle(self):
        # Future callbacks must run outside self._lock
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            return True

    def run(self):
        """Issue every write at its offset. Blocks until done or cancelled."""
        start = self._clock()
        for offset, payload in self.steps:
            delay = start + offset - self._clock()
            if delay > 0:
                self._wakeup.wait(delay)
            with self._lock:
                if self._settled:
                    return
                try:
                    self._write(payload)
                except Exception as e:
                    error = e
                else:
                    self.cursor += 1
                    continue
            if self._settle():
                self.future.set_exception(error)
            return
        if self._settle():
            self.future.set_result(self.cursor)


class ChunkedExecutor:
    def __init__(self, write: Callable[[bytes], None], slice_size: int = config.SLICE_SIZE,
                 unit: float = config.PACING_UNIT):
        self._write = write
        self.slice_size = slice_size
        self.unit = unit

    def submit(self, source: str) -> PendingExecution:
        """Start transmitting `source` on a worker thread and return at once."""
        pending = PendingExecution(source, self._write, self.slice_size, self.unit)
        logger.debug("transmitting %d slices over %.3fs", pending.slices, pending.duration)
        pending.thread = threading.Thread(target=pending.run, daemon=True,
                                          name="upyserial-transmit")
        pending.thread.start()
        return pending
