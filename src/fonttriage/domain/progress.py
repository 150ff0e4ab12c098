"""Progress reporting and cooperative cancellation for long-running passes."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Progress:
    processed_count: int
    total_count: int
    current_label: str = ""

    @property
    def done(self) -> bool:
        return self.processed_count >= self.total_count


type ProgressCallback = Callable[[Progress], None]


class CancellationToken:
    """Thread-safe flag checked between items, never during one."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def report(callback: ProgressCallback | None, processed: int, total: int, label: str = "") -> None:
    if callback is not None:
        callback(Progress(processed_count=processed, total_count=total, current_label=label))
