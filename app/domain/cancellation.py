"""
app/domain/cancellation.py

Cooperative cancellation shared by every pipeline phase.
"""

from __future__ import annotations

import threading


class ProcessingCancelledError(RuntimeError):
    """
    Raised at a checkpoint once cancellation has been requested.
    """


class CancellationToken:
    """
    Thin wrapper over ``threading.Event``.

    Work checks ``raise_if_cancelled()`` at its checkpoints; backoff waits go
    through ``wait()`` so a cancel request ends them immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ProcessingCancelledError("Processing was cancelled.")

    def wait(self, seconds: float) -> None:
        if self._event.wait(timeout=max(0.0, seconds)):
            raise ProcessingCancelledError("Processing was cancelled.")
