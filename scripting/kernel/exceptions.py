"""Core exception hierarchy for the scripting engine.

All engine errors inherit from ScriptingError. Every error class carries an
``errno`` attribute naming the equivalent POSIX condition, so callers that
think in terms of system errors can map them without string matching.

The hierarchy mirrors the three failure families of the engine:

- CommandStateError: a stream binding, file mode or launch precondition
  was violated while configuring or starting a command.
- CommandOSError: the operating system refused to start a process, open a
  file or deliver a signal.
- StreamIOError: a read or write failed while data was flowing.

A process killed by a signal is not an error; it is reported through
``TerminationReason.UNCAUGHT_SIGNAL``.
"""

from __future__ import annotations

import errno as _errno

# ============================================================================
# Base Exception
# ============================================================================


class ScriptingError(Exception):
    """Base exception for all scripting engine errors.

    Catch this to handle every error raised by the engine itself.
    """

    errno: int = _errno.EIO


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(ScriptingError):
    """Raised when a configuration file or section is invalid.

    Examples
    --------
    Example usage::

        raise ConfigurationError("scripting.yaml", "expected kind: Config")
    """

    errno = _errno.EINVAL

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(ScriptingError):
    """Raised when a configuration value fails validation.

    Examples
    --------
    Example usage::

        raise ValidationError("read_chunk_size", "must be positive", value=0)
    """

    errno = _errno.EINVAL

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


# ============================================================================
# Command State Errors
# ============================================================================


class CommandStateError(ScriptingError):
    """Raised when a command is configured or started in an invalid state."""

    errno = _errno.EINVAL


class AlreadyInProgressError(CommandStateError):
    """Raised on a re-entrant launch or when a file is re-opened in another mode.

    Examples
    --------
    Example usage::

        raise AlreadyInProgressError("/bin/cat")
    """

    errno = _errno.EALREADY

    def __init__(self, subject: str) -> None:
        """Initialize already-in-progress error.

        Args
        ----
            subject: The command path or file path that is already active
        """
        super().__init__(f"Operation already in progress for '{subject}'")
        self.subject = subject


class InvalidArgumentError(CommandStateError):
    """Raised when an operation receives an argument it cannot accept.

    Examples
    --------
    Example usage::

        raise InvalidArgumentError("pipe", "upstream output is already bound")
    """

    errno = _errno.EINVAL

    def __init__(self, subject: str, reason: str) -> None:
        """Initialize invalid argument error.

        Args
        ----
            subject: The operation or object that rejected the argument
            reason: Explanation of what was wrong
        """
        super().__init__(f"Invalid argument for '{subject}': {reason}")
        self.subject = subject
        self.reason = reason


class NoChildProcessError(CommandStateError):
    """Raised when a file endpoint is launched without any handler to stream to."""

    errno = _errno.ECHILD

    def __init__(self, subject: str) -> None:
        super().__init__(f"Nothing to run for '{subject}': no input, output or error handler")
        self.subject = subject


class BadFileModeError(CommandStateError):
    """Raised when a file endpoint is used as both a source and a sink.

    Examples
    --------
    Example usage::

        raise BadFileModeError("out.txt", "read", "an input provider is registered")
    """

    errno = _errno.EINVAL

    def __init__(self, path: str, mode: str, reason: str) -> None:
        """Initialize bad file mode error.

        Args
        ----
            path: The file path
            mode: The mode the file was about to be opened in
            reason: Explanation of the conflict
        """
        super().__init__(f"Cannot open '{path}' for {mode}: {reason}")
        self.path = path
        self.mode = mode
        self.reason = reason


class OperationCanceledError(CommandStateError):
    """Raised when a run has no streaming task left to wait for."""

    errno = _errno.ECANCELED

    def __init__(self, subject: str) -> None:
        super().__init__(f"Operation canceled for '{subject}'")
        self.subject = subject


# ============================================================================
# Operating System Errors
# ============================================================================


class CommandOSError(ScriptingError):
    """Raised when the operating system rejects a request.

    The originating OSError is always chained as ``__cause__``.
    """


class ProcessLaunchError(CommandOSError):
    """Raised when a process cannot be started.

    Examples
    --------
    Example usage::

        raise ProcessLaunchError("/no/such/tool", "No such file or directory")
    """

    errno = _errno.ENOENT

    def __init__(self, path: str, reason: str) -> None:
        """Initialize process launch error.

        Args
        ----
            path: Executable path that failed to start
            reason: Explanation from the operating system
        """
        super().__init__(f"Cannot launch '{path}': {reason}")
        self.path = path
        self.reason = reason


class FileOpenError(CommandOSError):
    """Raised when a file endpoint cannot open its file."""

    errno = _errno.ENOENT

    def __init__(self, path: str, mode: str, reason: str) -> None:
        super().__init__(f"Cannot open '{path}' for {mode}: {reason}")
        self.path = path
        self.mode = mode
        self.reason = reason


class SignalDeliveryError(CommandOSError):
    """Raised when a signal cannot be delivered to a running process."""

    errno = _errno.ESRCH

    def __init__(self, pid: int, signal: int, reason: str) -> None:
        super().__init__(f"Cannot deliver signal {signal} to process {pid}: {reason}")
        self.pid = pid
        self.signal = signal
        self.reason = reason


# ============================================================================
# Stream Errors
# ============================================================================


class StreamIOError(ScriptingError):
    """Raised when reading from or writing to a pipe or file fails mid-stream.

    Examples
    --------
    Example usage::

        raise StreamIOError("/bin/cat stdin", "Broken pipe")
    """

    errno = _errno.EIO

    def __init__(self, subject: str, reason: str) -> None:
        """Initialize stream I/O error.

        Args
        ----
            subject: The stream that failed (command path plus stream name, or file path)
            reason: Explanation of what went wrong
        """
        super().__init__(f"I/O error on '{subject}': {reason}")
        self.subject = subject
        self.reason = reason


__all__ = [
    # Base
    "ScriptingError",
    # Configuration
    "ConfigurationError",
    "ValidationError",
    # Command state
    "CommandStateError",
    "AlreadyInProgressError",
    "InvalidArgumentError",
    "NoChildProcessError",
    "BadFileModeError",
    "OperationCanceledError",
    # Operating system
    "CommandOSError",
    "ProcessLaunchError",
    "FileOpenError",
    "SignalDeliveryError",
    # Streams
    "StreamIOError",
]
