"""Scripting kernel.

Everything the drivers and the API layer build on:

- Exceptions (error codes)
- Logging
- Domain types (termination status, process state, file modes)
- Configuration
- Command line tokenizer
- Port protocols
"""

# ============================================================================
# Exceptions
# ============================================================================
from scripting.kernel.exceptions import (
    AlreadyInProgressError,
    BadFileModeError,
    CommandOSError,
    CommandStateError,
    ConfigurationError,
    FileOpenError,
    InvalidArgumentError,
    NoChildProcessError,
    OperationCanceledError,
    ProcessLaunchError,
    ScriptingError,
    SignalDeliveryError,
    StreamIOError,
    ValidationError,
)

# ============================================================================
# Logging
# ============================================================================
from scripting.kernel.logging import configure_logging, get_logger

# ============================================================================
# Domain types
# ============================================================================
from scripting.kernel.domain import (
    FileMode,
    ProcessOutcome,
    ProcessState,
    Status,
    TerminationReason,
)

# ============================================================================
# Configuration
# ============================================================================
from scripting.kernel.config import ScriptingConfig, get_config, load_config, set_config

# ============================================================================
# Tokenizer and ports
# ============================================================================
from scripting.kernel.command_parser import parse
from scripting.kernel.ports import Executable, IOHandle, OpenableFile

__all__ = [
    # Exceptions
    "AlreadyInProgressError",
    "BadFileModeError",
    "CommandOSError",
    "CommandStateError",
    "ConfigurationError",
    "FileOpenError",
    "InvalidArgumentError",
    "NoChildProcessError",
    "OperationCanceledError",
    "ProcessLaunchError",
    "ScriptingError",
    "SignalDeliveryError",
    "StreamIOError",
    "ValidationError",
    # Logging
    "configure_logging",
    "get_logger",
    # Domain
    "FileMode",
    "ProcessOutcome",
    "ProcessState",
    "Status",
    "TerminationReason",
    # Configuration
    "ScriptingConfig",
    "get_config",
    "load_config",
    "set_config",
    # Tokenizer and ports
    "Executable",
    "IOHandle",
    "OpenableFile",
    "parse",
]
