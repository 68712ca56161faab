"""Domain models describing how a command ended and how a file is accessed."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

Status = int
"""The result code of running a command (exit code, or signal number when signaled)."""


class TerminationReason(StrEnum):
    """Why a process stopped running."""

    EXIT = "exit"
    UNCAUGHT_SIGNAL = "uncaught_signal"


class ProcessState(StrEnum):
    """Lifecycle state of a process-backed command.

    Interrupt and terminate requests are not states: they deliver a signal
    and leave the command RUNNING until the operating system reports exit.
    """

    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    TERMINATED = "terminated"


class FileMode(StrEnum):
    """Access mode of a file endpoint."""

    READ = "read"
    WRITE = "write"
    APPEND = "append"

    @property
    def open_mode(self) -> str:
        """Binary mode string understood by :func:`open`."""
        return {"read": "rb", "write": "wb", "append": "ab"}[self.value]


class ProcessOutcome(BaseModel):
    """Terminal status of a process-backed command.

    Attributes
    ----------
    status : int
        Exit code for a normal exit, signal number when the process was killed
    reason : TerminationReason
        Whether the process exited or was terminated by a signal
    """

    model_config = ConfigDict(frozen=True)

    status: Status = 0
    reason: TerminationReason = TerminationReason.EXIT

    @property
    def signaled(self) -> bool:
        """Whether the process was killed by a signal."""
        return self.reason == TerminationReason.UNCAUGHT_SIGNAL

    @classmethod
    def from_returncode(cls, returncode: int) -> ProcessOutcome:
        """Translate an asyncio/subprocess return code.

        Negative return codes denote termination by signal ``-returncode``.
        """
        if returncode < 0:
            return cls(status=-returncode, reason=TerminationReason.UNCAUGHT_SIGNAL)
        return cls(status=returncode, reason=TerminationReason.EXIT)


__all__ = ["FileMode", "ProcessOutcome", "ProcessState", "Status", "TerminationReason"]
