"""A restartable stopwatch based on the monotonic clock."""

from __future__ import annotations

import time


class Timer:
    """Measures seconds elapsed since it was created or last restarted."""

    def __init__(self) -> None:
        self._start = 0.0
        self.start()

    def start(self) -> None:
        """Restart the measurement from now."""
        self._start = time.monotonic()

    def elapsed(self) -> float:
        """Return the seconds elapsed since the last start."""
        return time.monotonic() - self._start