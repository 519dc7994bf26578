"""Time ordered flake identifiers.

Layout of the 64-bit value: 42 bits of milliseconds since ``EPOCH_MS``,
10 bits of worker id and 12 bits of per-millisecond sequence.
"""

import os
import threading
import time
from typing import Final

EPOCH_MS: Final = 1_640_995_200_000  # 2022-01-01T00:00:00Z

_WORKER_BITS: Final = 10
_SEQUENCE_BITS: Final = 12
_MAX_WORKER_ID: Final = (1 << _WORKER_BITS) - 1
_MAX_SEQUENCE: Final = (1 << _SEQUENCE_BITS) - 1


class FlakeIdGenerator:
    """Thread-safe generator of unique, time ordered ids."""

    def __init__(self, worker_id: int = 0):
        if not 0 <= worker_id <= _MAX_WORKER_ID:
            raise ValueError(f"worker_id must be between 0 and {_MAX_WORKER_ID}")
        self._worker_id = worker_id
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def _now_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def next_id(self) -> int:
        with self._lock:
            now = self._now_ms()
            # Never go backwards, even if the wall clock does
            if now < self._last_ms:
                now = self._last_ms

            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & _MAX_SEQUENCE
                if self._sequence == 0:
                    # Sequence exhausted for this millisecond
                    while now <= self._last_ms:
                        time.sleep(0.0001)
                        now = self._now_ms()
            else:
                self._sequence = 0

            self._last_ms = now
            return (
                ((now - EPOCH_MS) << (_WORKER_BITS + _SEQUENCE_BITS))
                | (self._worker_id << _SEQUENCE_BITS)
                | self._sequence
            )


_generator: Final = FlakeIdGenerator(worker_id=os.getpid() & _MAX_WORKER_ID)


def generate_id() -> str:
    """Generate a new unique id as a decimal string."""
    return str(_generator.next_id())
