"""Domain types shared by every executable."""

from scripting.kernel.domain.status import (
    FileMode,
    ProcessOutcome,
    ProcessState,
    Status,
    TerminationReason,
)

__all__ = ["FileMode", "ProcessOutcome", "ProcessState", "Status", "TerminationReason"]
