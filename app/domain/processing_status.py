"""
app/domain/processing_status.py

Closed set of pipeline run states and the allowed transitions between them.
"""

from __future__ import annotations

from enum import Enum


class ProcessingStatus(str, Enum):
    STARTED = "Started"
    DOWNLOADING = "Downloading"
    PARSING = "Parsing"
    AGGREGATING = "Aggregating"
    SAVING = "Saving"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


class InvalidStatusTransitionError(RuntimeError):
    """
    Raised when a run attempts a transition the state machine forbids.
    """

    def __init__(self, current: ProcessingStatus, target: ProcessingStatus) -> None:
        super().__init__(f"Invalid processing status transition {current.value} -> {target.value}.")
        self.current = current
        self.target = target


_TERMINAL_STATUSES = frozenset({ProcessingStatus.COMPLETED, ProcessingStatus.FAILED})

# Linear happy path; Failed is reachable from every non-terminal state.
_NEXT_STATUS: dict[ProcessingStatus, ProcessingStatus] = {
    ProcessingStatus.STARTED: ProcessingStatus.DOWNLOADING,
    ProcessingStatus.DOWNLOADING: ProcessingStatus.PARSING,
    ProcessingStatus.PARSING: ProcessingStatus.AGGREGATING,
    ProcessingStatus.AGGREGATING: ProcessingStatus.SAVING,
    ProcessingStatus.SAVING: ProcessingStatus.COMPLETED,
}


def can_transition(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    if current.is_terminal:
        return False
    if target is ProcessingStatus.FAILED:
        return True
    return _NEXT_STATUS.get(current) is target


def ensure_transition(current: ProcessingStatus, target: ProcessingStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current, target)
