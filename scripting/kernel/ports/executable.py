"""Executable port: the streaming and lifecycle contract of anything runnable.

Both process-backed commands and file endpoints implement this port, which
lets the composition layer connect them without knowing which is which.

**Streams:** every executable has three optional stream handles. A handle
is either a raw file descriptor or a binary file object. When a handle is
unset but a handler is registered for that stream, the executable allocates
an OS pipe on launch and pumps data between the pipe and the handler.

**Handlers:** ``on_input``/``on_output``/``on_error`` register stream
handlers. Registering again composes with the earlier handler instead of
replacing it (see :mod:`scripting.kernel.utils.handlers`).

The module-level helpers below (``arun_returning_standard_output``,
``provide_input``, ...) are written against the port only, so they work for
every implementation alike.

Drivers
-------
- ``ShellCommand``: an OS process.
- ``FileIO``: a file opened for read, write or append.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import IO, TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

from scripting.kernel.config import get_config
from scripting.kernel.domain.status import FileMode
from scripting.kernel.exceptions import FileOpenError, InvalidArgumentError
from scripting.kernel.utils.handlers import one_shot_provider

if TYPE_CHECKING:
    from scripting.kernel.domain.status import Status
    from scripting.kernel.utils.handlers import InputProvider, OutputConsumer

IOHandle = int | IO[bytes] | None
"""A stream handle: raw file descriptor, binary file object, or unset."""


@runtime_checkable
class Executable(Protocol):
    """Port interface for runnable, stream-backed things.

    Stream handles may only be changed before launch. Changing them while
    the executable is running is undefined.
    """

    standard_input: IOHandle
    standard_output: IOHandle
    standard_error: IOHandle

    @abstractmethod
    async def alaunch(self) -> None:
        """Start the underlying work without waiting for it to complete.

        Raises
        ------
        AlreadyInProgressError
            If the executable is already running
        """
        ...

    @abstractmethod
    async def arun(self) -> Status:
        """Run to completion, launching first if necessary.

        Returns
        -------
            The completion status (``0`` on success).
        """
        ...

    @abstractmethod
    def on_input(self, provider: InputProvider) -> None:
        """Register an input provider.

        The provider is called repeatedly until it returns ``None``.
        """
        ...

    @abstractmethod
    def on_output(self, consumer: OutputConsumer) -> None:
        """Register a consumer for standard output data."""
        ...

    @abstractmethod
    def on_error(self, consumer: OutputConsumer) -> None:
        """Register a consumer for standard error data."""
        ...


@runtime_checkable
class OpenableFile(Protocol):
    """A file that can be opened and then handed out as a stream handle."""

    path: object

    @abstractmethod
    def open(self, mode: FileMode = FileMode.READ) -> None:
        """Open the file in the given mode (no-op if already open in that mode)."""
        ...

    @property
    @abstractmethod
    def handle(self) -> IO[bytes] | None:
        """The open file object, or None while closed."""
        ...


# ============================================================================
# Conversions
# ============================================================================


def encode_input(text: str, encoding: str | None = None) -> bytes:
    """Encode a string for use as process input.

    Raises
    ------
    InvalidArgumentError
        If the string cannot be represented in the encoding
    """
    encoding = encoding or get_config().execution.encoding
    try:
        return text.encode(encoding)
    except UnicodeEncodeError as e:
        raise InvalidArgumentError("input", f"cannot encode as {encoding}: {e}") from e


def decode_output(data: bytes, encoding: str | None = None) -> str:
    """Decode captured output, falling back to UTF-16, then to an empty string."""
    encoding = encoding or get_config().execution.encoding
    for candidate in (encoding, "utf-16"):
        try:
            return data.decode(candidate)
        except UnicodeDecodeError:
            continue
    return ""


_E = TypeVar("_E", bound=Executable)


# ============================================================================
# Redirection (configure only)
# ============================================================================


def provide_input(executable: _E, data: bytes | str) -> _E:
    """Feed ``data`` to the executable's standard input exactly once."""
    if isinstance(data, str):
        data = encode_input(data)
    executable.on_input(one_shot_provider(data))
    return executable


def _opened_handle(file: OpenableFile, mode: FileMode) -> IO[bytes]:
    file.open(mode)
    handle = file.handle
    if handle is None:
        raise FileOpenError(str(file.path), mode, "no handle after open")
    return handle


def redirect_input_from_file(executable: _E, file: OpenableFile) -> _E:
    """Read the executable's standard input from ``file``."""
    executable.standard_input = _opened_handle(file, FileMode.READ)
    return executable


def redirect_output_to_file(
    executable: _E, file: OpenableFile, *, append: bool = False
) -> _E:
    """Write the executable's standard output to ``file``, truncating unless appending."""
    mode = FileMode.APPEND if append else FileMode.WRITE
    executable.standard_output = _opened_handle(file, mode)
    return executable


def redirect_error_to_file(
    executable: _E, file: OpenableFile, *, append: bool = False
) -> _E:
    """Write the executable's standard error to ``file``, truncating unless appending."""
    mode = FileMode.APPEND if append else FileMode.WRITE
    executable.standard_error = _opened_handle(file, mode)
    return executable


# ============================================================================
# Run and capture
# ============================================================================


async def arun_returning_output(executable: Executable) -> tuple[bytes, bytes]:
    """Run, returning both standard output and standard error data."""
    stdout_data = bytearray()
    stderr_data = bytearray()

    async def collect_stdout(data: bytes) -> None:
        stdout_data.extend(data)

    async def collect_stderr(data: bytes) -> None:
        stderr_data.extend(data)

    executable.on_output(collect_stdout)
    executable.on_error(collect_stderr)
    await executable.arun()
    return bytes(stdout_data), bytes(stderr_data)


async def arun_returning_standard_output(executable: Executable) -> bytes:
    """Run, returning standard output data."""
    data = bytearray()

    async def collect(chunk: bytes) -> None:
        data.extend(chunk)

    executable.on_output(collect)
    await executable.arun()
    return bytes(data)


async def arun_returning_error_output(executable: Executable) -> bytes:
    """Run, returning standard error data."""
    data = bytearray()

    async def collect(chunk: bytes) -> None:
        data.extend(chunk)

    executable.on_error(collect)
    await executable.arun()
    return bytes(data)


async def arun_returning_all_output(executable: Executable) -> bytes:
    """Run, returning standard output and standard error data in arrival order.

    The interleaving of the two streams is not specified.
    """
    data = bytearray()

    async def collect(chunk: bytes) -> None:
        data.extend(chunk)

    executable.on_output(collect)
    executable.on_error(collect)
    await executable.arun()
    return bytes(data)


async def arun_returning_string_output(executable: Executable) -> tuple[str, str]:
    """Run, returning standard output and standard error as strings."""
    stdout, stderr = await arun_returning_output(executable)
    return decode_output(stdout), decode_output(stderr)


async def arun_returning_standard_output_string(executable: Executable) -> str:
    """Run, returning standard output as a string."""
    return decode_output(await arun_returning_standard_output(executable))


async def arun_returning_error_output_string(executable: Executable) -> str:
    """Run, returning standard error as a string."""
    return decode_output(await arun_returning_error_output(executable))


async def arun_returning_all_output_string(executable: Executable) -> str:
    """Run, returning all output as a string."""
    return decode_output(await arun_returning_all_output(executable))


async def arun_with_input(executable: Executable, data: bytes | str) -> Status:
    """Run with ``data`` as standard input."""
    return await provide_input(executable, data).arun()


__all__ = [
    "Executable",
    "IOHandle",
    "OpenableFile",
    "arun_returning_all_output",
    "arun_returning_all_output_string",
    "arun_returning_error_output",
    "arun_returning_error_output_string",
    "arun_returning_output",
    "arun_returning_standard_output",
    "arun_returning_standard_output_string",
    "arun_returning_string_output",
    "arun_with_input",
    "decode_output",
    "encode_input",
    "provide_input",
    "redirect_error_to_file",
    "redirect_input_from_file",
    "redirect_output_to_file",
]
