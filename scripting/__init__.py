"""Scripting: shell-style command composition for asyncio programs.

Run external commands, pipe them into each other and redirect their streams
to files or buffers, with every stream available to Python handlers.

>>> from scripting import Command, arun_returning_standard_output
>>> await arun_returning_standard_output(Command.parse("echo hello"))  # doctest: +SKIP
b'hello\\n'
"""

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("scripting")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from scripting.api import Command, Failed, Runnable, pipe
from scripting.drivers.file_io import FileIO
from scripting.drivers.process import ShellCommand
from scripting.kernel import (
    AlreadyInProgressError,
    BadFileModeError,
    CommandOSError,
    CommandStateError,
    ConfigurationError,
    Executable,
    FileMode,
    FileOpenError,
    InvalidArgumentError,
    NoChildProcessError,
    OperationCanceledError,
    ProcessLaunchError,
    ProcessOutcome,
    ProcessState,
    ScriptingError,
    SignalDeliveryError,
    Status,
    StreamIOError,
    TerminationReason,
    ValidationError,
    configure_logging,
    get_logger,
    parse,
)
from scripting.kernel.ports import (
    arun_returning_all_output,
    arun_returning_all_output_string,
    arun_returning_error_output,
    arun_returning_error_output_string,
    arun_returning_output,
    arun_returning_standard_output,
    arun_returning_standard_output_string,
    arun_returning_string_output,
    arun_with_input,
    provide_input,
    redirect_error_to_file,
    redirect_input_from_file,
    redirect_output_to_file,
)
from scripting.kernel.utils.path_search import resolve_executable, search

__all__ = [
    "__version__",
    # Commands
    "Command",
    "Failed",
    "Runnable",
    "pipe",
    # Executables
    "Executable",
    "FileIO",
    "ShellCommand",
    # Convenience operations
    "arun_returning_all_output",
    "arun_returning_all_output_string",
    "arun_returning_error_output",
    "arun_returning_error_output_string",
    "arun_returning_output",
    "arun_returning_standard_output",
    "arun_returning_standard_output_string",
    "arun_returning_string_output",
    "arun_with_input",
    "provide_input",
    "redirect_error_to_file",
    "redirect_input_from_file",
    "redirect_output_to_file",
    # Tokenizer and PATH search
    "parse",
    "resolve_executable",
    "search",
    # Domain
    "FileMode",
    "ProcessOutcome",
    "ProcessState",
    "Status",
    "TerminationReason",
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
]
