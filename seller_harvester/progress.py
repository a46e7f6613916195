"""Per-run seller counters and ETA for the log status line"""

import time
from collections import deque

# Recent per-seller durations used for the ETA
ETA_WINDOW = 20


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class ProgressTracker:
    """Counts sellers committed in the current run and how many yielded an email"""

    def __init__(self, clock=time.monotonic):
        self.clock = clock
        self.total = 0
        self.done = 0
        self.found = 0
        self.durations = deque(maxlen=ETA_WINDOW)
        self.started_at = None
        self._last_commit = None

    def start(self, total: int):
        self.total = total
        self.done = 0
        self.found = 0
        self.durations.clear()
        self.started_at = self._last_commit = self.clock()

    def record(self, found: bool):
        now = self.clock()
        if self._last_commit is not None:
            self.durations.append(now - self._last_commit)
        self._last_commit = now
        self.done += 1
        if found:
            self.found += 1

    @property
    def missing(self) -> int:
        return self.done - self.found

    @property
    def found_rate(self) -> float:
        return 100.0 * self.found / self.done if self.done else 0.0

    def eta_seconds(self):
        """None until the first seller is committed"""
        if not self.durations:
            return None
        remaining = max(self.total - self.done, 0)
        return remaining * sum(self.durations) / len(self.durations)

    def status_line(self) -> str:
        eta = self.eta_seconds()
        elapsed = self.clock() - self.started_at if self.started_at is not None else 0
        return (
            f"{self.done}/{self.total} sellers | "
            f"emails {self.found} ({self.found_rate:.0f}%), missing {self.missing} | "
            f"ETA {format_duration(eta) if eta is not None else 'calculating...'} | "
            f"elapsed {format_duration(elapsed)}"
        )
