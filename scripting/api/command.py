"""Caller-facing command values.

A :class:`Command` is either :class:`Runnable`, wrapping an executable
(a :class:`ShellCommand` or a :class:`FileIO`), or :class:`Failed`, carrying
the error that stopped it from being built or composed. Every operation on
a ``Failed`` command is a no-op returning the same command, so a chain of
compositions can be written without checking each step:

.. code-block:: python

    output = bytearray()
    result = await Command.parse("sort -u").redirect_input(b"b\\na\\nb\\n").aredirect_output_to(output)
    if isinstance(result, Failed):
        raise result.error

Errors raised by ``arun()`` itself are not folded into the command: the
command that was built stays ``Runnable`` and the caller sees the exception.
The ``a*_to`` run-and-capture helpers do fold them into a ``Failed`` result.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from scripting.drivers.file_io.file_io import FileIO
from scripting.drivers.process.shell_command import ShellCommand
from scripting.kernel.ports.executable import (
    Executable,
    arun_returning_all_output,
    arun_returning_error_output,
    arun_returning_standard_output,
    arun_with_input,
    provide_input,
    redirect_error_to_file,
    redirect_input_from_file,
    redirect_output_to_file,
)

if TYPE_CHECKING:
    from scripting.kernel.domain.status import Status
    from scripting.kernel.ports.executable import IOHandle
    from scripting.kernel.utils.handlers import InputProvider, OutputConsumer

Action = Callable[[Executable], object]
AsyncAction = Callable[[Executable], Awaitable[object]]


def _buffer_consumer(buffer: bytearray) -> Callable[[bytes], Awaitable[None]]:
    async def consume(data: bytes) -> None:
        buffer.extend(data)

    return consume


class Command(ABC):
    """A runnable executable, or the error that prevents running it."""

    __slots__ = ()

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @staticmethod
    def shell(
        command: str | os.PathLike[str],
        *arguments: str,
        environment: Mapping[str, str] | None = None,
    ) -> Command:
        """A process command; a bare name is searched in ``PATH``."""
        return Runnable(ShellCommand.from_name(os.fspath(command), arguments, environment))

    @staticmethod
    def parse(command_line: str, environment: Mapping[str, str] | None = None) -> Command:
        """A process command built from one command line string.

        Returns a :class:`Failed` command when the line holds no program name.
        """
        try:
            return Runnable(ShellCommand.from_command_line(command_line, environment))
        except Exception as e:
            return Failed(e)

    @staticmethod
    def file(path: str | os.PathLike[str]) -> Command:
        """A file endpoint."""
        return Runnable(FileIO(path))

    @staticmethod
    def failed(error: Exception) -> Command:
        """A command that already carries ``error``."""
        return Failed(error)

    # ------------------------------------------------------------------
    # Combinators
    # ------------------------------------------------------------------

    @abstractmethod
    def perform(self, action: Action) -> Command:
        """Apply ``action`` to the executable unless this command has failed.

        An exception raised by ``action`` turns the result into ``Failed``. A
        ``Command`` returned by ``action`` replaces this one; any other
        return value is ignored.
        """
        ...

    @abstractmethod
    async def aperform(self, action: AsyncAction) -> Command:
        """Async variant of :meth:`perform`."""
        ...

    # ------------------------------------------------------------------
    # Executable conformance
    # ------------------------------------------------------------------

    @property
    def standard_input(self) -> IOHandle:
        return self._get_handle("standard_input")

    @standard_input.setter
    def standard_input(self, value: IOHandle) -> None:
        self._set_handle("standard_input", value)

    @property
    def standard_output(self) -> IOHandle:
        return self._get_handle("standard_output")

    @standard_output.setter
    def standard_output(self, value: IOHandle) -> None:
        self._set_handle("standard_output", value)

    @property
    def standard_error(self) -> IOHandle:
        return self._get_handle("standard_error")

    @standard_error.setter
    def standard_error(self, value: IOHandle) -> None:
        self._set_handle("standard_error", value)

    @abstractmethod
    def _get_handle(self, name: str) -> IOHandle:
        ...

    @abstractmethod
    def _set_handle(self, name: str, value: IOHandle) -> None:
        ...

    @abstractmethod
    async def alaunch(self) -> None:
        ...

    @abstractmethod
    async def arun(self) -> Status:
        ...

    @abstractmethod
    def on_input(self, provider: InputProvider) -> None:
        ...

    @abstractmethod
    def on_output(self, consumer: OutputConsumer) -> None:
        ...

    @abstractmethod
    def on_error(self, consumer: OutputConsumer) -> None:
        ...

    def interrupt(self) -> bool:
        """Send SIGINT to a running process command.

        Returns False for file endpoints, failed commands and processes that
        are not running.
        """
        return False

    def terminate(self) -> bool:
        """Ask a running process command to terminate.

        Returns False for file endpoints, failed commands and processes that
        are not running.
        """
        return False

    # ------------------------------------------------------------------
    # Configure-only redirection
    # ------------------------------------------------------------------

    def provide_input(self, data: bytes | str) -> Command:
        """Feed ``data`` to standard input once the command runs."""
        return self.perform(lambda executable: provide_input(executable, data))

    def redirect_input(self, source: bytes | str | FileIO) -> Command:
        """Take standard input from ``source``: literal data or a file."""
        if isinstance(source, FileIO):
            return self.perform(lambda executable: redirect_input_from_file(executable, source))
        return self.provide_input(source)

    def redirect_output(self, target: FileIO | bytearray) -> Command:
        """Send standard output to a file (truncated) or into a cleared buffer."""
        return self._redirect(target, error=False, append=False)

    def append_output(self, target: FileIO | bytearray) -> Command:
        """Append standard output to a file or a buffer."""
        return self._redirect(target, error=False, append=True)

    def redirect_error(self, target: FileIO | bytearray) -> Command:
        """Send standard error to a file (truncated) or into a cleared buffer."""
        return self._redirect(target, error=True, append=False)

    def append_error(self, target: FileIO | bytearray) -> Command:
        """Append standard error to a file or a buffer."""
        return self._redirect(target, error=True, append=True)

    def _redirect(self, target: FileIO | bytearray, *, error: bool, append: bool) -> Command:
        def bind(executable: Executable) -> None:
            if isinstance(target, FileIO):
                redirect = redirect_error_to_file if error else redirect_output_to_file
                redirect(executable, target, append=append)
                return
            if not append:
                target.clear()
            consumer = _buffer_consumer(target)
            if error:
                executable.on_error(consumer)
            else:
                executable.on_output(consumer)

        return self.perform(bind)

    # ------------------------------------------------------------------
    # Run and capture
    # ------------------------------------------------------------------

    async def arun_with_input(self, data: bytes | str) -> Command:
        """Run with ``data`` as standard input."""
        return await self.aperform(lambda executable: arun_with_input(executable, data))

    async def aredirect_output_to(self, buffer: bytearray) -> Command:
        """Run, replacing the contents of ``buffer`` with standard output."""
        return await self._acapture(arun_returning_standard_output, buffer, append=False)

    async def aappend_output_to(self, buffer: bytearray) -> Command:
        """Run, appending standard output to ``buffer``."""
        return await self._acapture(arun_returning_standard_output, buffer, append=True)

    async def aredirect_error_to(self, buffer: bytearray) -> Command:
        """Run, replacing the contents of ``buffer`` with standard error."""
        return await self._acapture(arun_returning_error_output, buffer, append=False)

    async def aappend_error_to(self, buffer: bytearray) -> Command:
        """Run, appending standard error to ``buffer``."""
        return await self._acapture(arun_returning_error_output, buffer, append=True)

    async def aredirect_all_output_to(self, buffer: bytearray) -> Command:
        """Run, replacing the contents of ``buffer`` with all output."""
        return await self._acapture(arun_returning_all_output, buffer, append=False)

    async def aappend_all_output_to(self, buffer: bytearray) -> Command:
        """Run, appending all output to ``buffer``."""
        return await self._acapture(arun_returning_all_output, buffer, append=True)

    async def _acapture(
        self,
        run: Callable[[Executable], Awaitable[bytes]],
        buffer: bytearray,
        *,
        append: bool,
    ) -> Command:
        # The buffer is only touched once the run has succeeded.
        async def capture(executable: Executable) -> None:
            data = await run(executable)
            if append:
                buffer.extend(data)
            else:
                buffer[:] = data

        return await self.aperform(capture)


@dataclass(slots=True, eq=False)
class Runnable(Command):
    """A command wrapping an executable.

    The executable is shared, not copied: operations on the command act on
    the same underlying process or file.
    """

    executable: Executable

    def perform(self, action: Action) -> Command:
        try:
            result = action(self.executable)
        except Exception as e:
            return Failed(e)
        return result if isinstance(result, Command) else self

    async def aperform(self, action: AsyncAction) -> Command:
        try:
            result = await action(self.executable)
        except Exception as e:
            return Failed(e)
        return result if isinstance(result, Command) else self

    def _get_handle(self, name: str) -> IOHandle:
        return getattr(self.executable, name)

    def _set_handle(self, name: str, value: IOHandle) -> None:
        setattr(self.executable, name, value)

    async def alaunch(self) -> None:
        await self.executable.alaunch()

    async def arun(self) -> Status:
        return await self.executable.arun()

    def on_input(self, provider: InputProvider) -> None:
        self.executable.on_input(provider)

    def on_output(self, consumer: OutputConsumer) -> None:
        self.executable.on_output(consumer)

    def on_error(self, consumer: OutputConsumer) -> None:
        self.executable.on_error(consumer)

    def interrupt(self) -> bool:
        if isinstance(self.executable, ShellCommand):
            return self.executable.interrupt()
        return False

    def terminate(self) -> bool:
        if isinstance(self.executable, ShellCommand):
            return self.executable.terminate()
        return False


@dataclass(slots=True, eq=False)
class Failed(Command):
    """A command that could not be built or composed.

    The error is sticky: every operation returns this same command.
    """

    error: Exception

    def perform(self, action: Action) -> Command:
        return self

    async def aperform(self, action: AsyncAction) -> Command:
        return self

    def _get_handle(self, name: str) -> IOHandle:
        return None

    def _set_handle(self, name: str, value: IOHandle) -> None:
        pass

    async def alaunch(self) -> None:
        raise self.error

    async def arun(self) -> Status:
        raise self.error

    def on_input(self, provider: InputProvider) -> None:
        pass

    def on_output(self, consumer: OutputConsumer) -> None:
        pass

    def on_error(self, consumer: OutputConsumer) -> None:
        pass


__all__ = ["Command", "Failed", "Runnable"]
