"""Process-backed executable.

Runs an external program through :mod:`asyncio` subprocesses and streams
its standard streams through registered handlers.

Lifecycle
---------
``IDLE`` → ``LAUNCHING`` → ``RUNNING`` → ``TERMINATED``. ``alaunch()`` starts
a fresh process from ``IDLE`` or ``TERMINATED`` and fails with
:class:`AlreadyInProgressError` while one is active. ``arun()`` launches
when idle, then waits for the current execution; once terminated it returns
the cached status (or re-raises the same failure) without relaunching.

Streams
-------
For each standard stream, an explicitly assigned handle (file descriptor or
file object) wins. Otherwise a registered handler makes the launch allocate
a pipe, pumped by one background task per direction. Unset streams without
a handler are inherited from the parent. Raw file descriptors are owned by
the command: the parent's copy is closed right after the launch, or when
the launch fails.

Example
-------
.. code-block:: python

    echo = ShellCommand.from_name("echo", ["hello"])
    output = await arun_returning_standard_output(echo)   # b"hello\\n"
"""

from __future__ import annotations

import asyncio
import os
import signal
from contextlib import suppress
from pathlib import Path
from typing import TYPE_CHECKING

from scripting.kernel.command_parser import parse
from scripting.kernel.config import get_config
from scripting.kernel.domain.status import ProcessOutcome, ProcessState, TerminationReason
from scripting.kernel.exceptions import (
    AlreadyInProgressError,
    InvalidArgumentError,
    ProcessLaunchError,
    SignalDeliveryError,
    StreamIOError,
)
from scripting.kernel.logging import get_logger
from scripting.kernel.utils.handlers import (
    ainvoke,
    chain_input_providers,
    chain_output_consumers,
)
from scripting.kernel.utils.path_search import resolve_executable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping, Sequence

    from scripting.kernel.domain.status import Status
    from scripting.kernel.ports.executable import IOHandle
    from scripting.kernel.utils.handlers import InputProvider, OutputConsumer

logger = get_logger(__name__)

# Errors meaning the child stopped reading its input
_READER_GONE = (BrokenPipeError, ConnectionResetError)


class ShellCommand:
    """An executable shell command backed by an OS process.

    Parameters
    ----------
    path : str | os.PathLike[str]
        Verbatim path of the executable; no PATH search is performed
    arguments : Sequence[str]
        Arguments passed to the process (without the program name)
    environment : Mapping[str, str] | None
        Environment of the process; None inherits the parent's environment
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        arguments: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
    ) -> None:
        self.path = Path(path)
        self.arguments = list(arguments)
        self.environment = dict(environment) if environment is not None else None
        self.termination_status: Status = 0
        self.termination_reason = TerminationReason.EXIT
        self.state = ProcessState.IDLE

        self.standard_input: IOHandle = None
        self.standard_output: IOHandle = None
        self.standard_error: IOHandle = None

        self._input_handler: InputProvider | None = None
        self._output_handler: OutputConsumer | None = None
        self._error_handler: OutputConsumer | None = None

        self._process: asyncio.subprocess.Process | None = None
        self._completion: asyncio.Task[Status] | None = None
        self._launched = asyncio.Event()
        self._launch_error: ProcessLaunchError | InvalidArgumentError | None = None
        self._upstream: list[asyncio.Task[Status]] = []

    @classmethod
    def from_name(
        cls,
        command: str,
        arguments: Sequence[str] = (),
        environment: Mapping[str, str] | None = None,
    ) -> ShellCommand:
        """Create a command, resolving a bare name through ``PATH``.

        The ``PATH`` of ``environment`` is searched when it has one, the
        inherited ``PATH`` otherwise. Unresolvable names are kept verbatim
        and will fail at launch.
        """
        return cls(resolve_executable(command, environment), arguments, environment)

    @classmethod
    def from_command_line(
        cls, command_line: str, environment: Mapping[str, str] | None = None
    ) -> ShellCommand:
        """Create a command from a single command line string.

        ``$NAME`` references are expanded from ``environment`` when given,
        from the current process environment otherwise.

        Raises
        ------
        InvalidArgumentError
            If the command line contains no program name
        """
        arguments = parse(command_line, environment if environment is not None else os.environ)
        if not arguments:
            raise InvalidArgumentError("command line", f"no command in {command_line!r}")
        return cls.from_name(arguments[0], arguments[1:], environment)

    def __repr__(self) -> str:
        return f"ShellCommand(path={str(self.path)!r}, arguments={self.arguments!r}, state={self.state})"

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        """Whether a process is being launched or is alive."""
        return self.state in (ProcessState.LAUNCHING, ProcessState.RUNNING)

    @property
    def pid(self) -> int | None:
        """Process id of the current or last process."""
        return self._process.pid if self._process is not None else None

    @property
    def outcome(self) -> ProcessOutcome:
        """Termination status and reason of the last completed run."""
        return ProcessOutcome(status=self.termination_status, reason=self.termination_reason)

    @property
    def input_handler(self) -> InputProvider | None:
        """The registered (possibly chained) input provider."""
        return self._input_handler

    @property
    def output_handler(self) -> OutputConsumer | None:
        """The registered (possibly chained) standard output consumer."""
        return self._output_handler

    @property
    def error_handler(self) -> OutputConsumer | None:
        """The registered (possibly chained) standard error consumer."""
        return self._error_handler

    # ------------------------------------------------------------------
    # Handler registration
    # ------------------------------------------------------------------

    def on_input(self, provider: InputProvider) -> None:
        """Register an input provider, layered after any existing one."""
        if self._input_handler is None:
            self._input_handler = provider
        else:
            self._input_handler = chain_input_providers(self._input_handler, provider)

    def on_output(self, consumer: OutputConsumer) -> None:
        """Register a standard output consumer, called after any existing one."""
        if self._output_handler is None:
            self._output_handler = consumer
        else:
            self._output_handler = chain_output_consumers(self._output_handler, consumer)

    def on_error(self, consumer: OutputConsumer) -> None:
        """Register a standard error consumer, called after any existing one."""
        if self._error_handler is None:
            self._error_handler = consumer
        else:
            self._error_handler = chain_output_consumers(self._error_handler, consumer)

    def attach_upstream(self, task: asyncio.Task[Status]) -> None:
        """Make this command own the execution of a command piping into it.

        The upstream task is awaited once this command's own process has
        terminated, and its failure is re-raised from :meth:`arun`.
        """
        self._upstream.append(task)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def alaunch(self) -> None:
        """Start a fresh process without waiting for it to finish.

        Raises
        ------
        AlreadyInProgressError
            If a process is already being launched or running
        ProcessLaunchError
            If the operating system cannot start the process
        InvalidArgumentError
            If the arguments or environment cannot be passed to a process
        """
        if self.is_running:
            raise AlreadyInProgressError(str(self.path))
        previous_state = self.state
        self.state = ProcessState.LAUNCHING
        self._launched = asyncio.Event()
        self._launch_error = None
        try:
            process = await self._spawn()
        except OSError as e:
            error = self._launch_error = ProcessLaunchError(str(self.path), e.strerror or str(e))
            await self._abandon_launch(previous_state, e)
            raise error from e
        except Exception as e:
            # Arguments or environment the OS call rejects (NUL bytes, bad types)
            error = self._launch_error = InvalidArgumentError(str(self.path), str(e))
            await self._abandon_launch(previous_state, e)
            raise error from e
        finally:
            self._launched.set()

        self._process = process
        self.state = ProcessState.RUNNING
        pumps = self._start_pumps(process)
        self._completion = asyncio.get_running_loop().create_task(
            self._supervise(process, pumps), name=f"scripting:{self.path.name}:{process.pid}"
        )

    async def arun(self) -> Status:
        """Run the process to completion, launching it first if idle.

        Returns
        -------
        Status
            The exit code, or the signal number when the process was killed
            (see :attr:`termination_reason`)

        Raises
        ------
        ProcessLaunchError
            If the process could not be started
        StreamIOError
            If reading or writing one of the pipes failed
        """
        if self.state is ProcessState.IDLE:
            await self.alaunch()
        elif self.state is ProcessState.LAUNCHING:
            await self._launched.wait()
            if self._launch_error is not None:
                raise self._launch_error
        if self._completion is None:
            raise AlreadyInProgressError(str(self.path))
        return await asyncio.shield(self._completion)

    def interrupt(self) -> bool:
        """Send SIGINT to the running process.

        Returns
        -------
        bool
            True if the signal was sent, False if no process is running
        """
        return self._send_signal(signal.SIGINT)

    def terminate(self) -> bool:
        """Ask the running process to terminate (SIGTERM).

        There is no guarantee that the process honours the request; await
        :meth:`arun` to observe the exit.

        Returns
        -------
        bool
            True if the signal was sent, False if no process is running
        """
        return self._send_signal(signal.SIGTERM)

    async def _abandon_launch(self, previous_state: ProcessState, error: Exception) -> None:
        """Undo a launch that never produced a process.

        Raw descriptors were never handed to a child, so they are closed
        here. Commands piping into this one lose their reader and are
        collected before the launch error propagates.
        """
        self.state = previous_state
        logger.debug("Launch of {path} failed: {error}", path=self.path, error=error)
        self._release_descriptors()

        upstream, self._upstream = self._upstream, []
        for result in await asyncio.gather(*upstream, return_exceptions=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "Upstream of {path} failed after its reader could not start: {error}",
                    path=self.path,
                    error=result,
                )

    def _send_signal(self, signum: signal.Signals) -> bool:
        process = self._process
        if self.state is not ProcessState.RUNNING or process is None:
            return False
        if process.returncode is not None:
            return False
        try:
            process.send_signal(signum)
        except ProcessLookupError:
            return False
        except OSError as e:
            logger.warning(
                "Cannot send {sig} to {pid}: {error}", sig=signum.name, pid=process.pid, error=e
            )
            raise SignalDeliveryError(process.pid, int(signum), e.strerror or str(e)) from e
        logger.debug("Sent {sig} to {path} ({pid})", sig=signum.name, path=self.path, pid=process.pid)
        return True

    # ------------------------------------------------------------------
    # Process plumbing
    # ------------------------------------------------------------------

    def _stream_target(self, handle: IOHandle, has_handler: bool) -> IOHandle:
        if handle is not None:
            return handle
        return asyncio.subprocess.PIPE if has_handler else None

    def _effective_environment(self) -> dict[str, str] | None:
        if self.environment is not None:
            return self.environment
        return None if get_config().execution.inherit_environment else {}

    async def _spawn(self) -> asyncio.subprocess.Process:
        stdin = self._stream_target(self.standard_input, self._input_handler is not None)
        stdout = self._stream_target(self.standard_output, self._output_handler is not None)
        stderr = self._stream_target(self.standard_error, self._error_handler is not None)
        logger.debug("Launching {path} {args}", path=self.path, args=self.arguments)
        process = await asyncio.create_subprocess_exec(
            str(self.path),
            *self.arguments,
            stdin=stdin,
            stdout=stdout,
            stderr=stderr,
            env=self._effective_environment(),
        )
        self._release_descriptors()
        return process

    def _release_descriptors(self) -> None:
        """Close raw descriptors now owned by the child."""
        for name in ("standard_input", "standard_output", "standard_error"):
            handle = getattr(self, name)
            if isinstance(handle, int):
                with suppress(OSError):
                    os.close(handle)
                setattr(self, name, None)

    def _start_pumps(self, process: asyncio.subprocess.Process) -> list[asyncio.Task[None]]:
        loop = asyncio.get_running_loop()
        pumps: list[asyncio.Task[None]] = []
        if process.stdin is not None:
            pumps.append(loop.create_task(self._feed(process.stdin)))
        if process.stdout is not None:
            pumps.append(
                loop.create_task(self._drain(process.stdout, lambda: self._output_handler, "stdout"))
            )
        if process.stderr is not None:
            pumps.append(
                loop.create_task(self._drain(process.stderr, lambda: self._error_handler, "stderr"))
            )
        return pumps

    async def _feed(self, stdin: asyncio.StreamWriter) -> None:
        """Write provider data to the child until the provider returns None.

        Closing the pipe afterwards is the end-of-file signal to the child.
        """
        written = 0
        try:
            while (provider := self._input_handler) is not None:
                data = await ainvoke(provider)
                if data is None:
                    break
                stdin.write(data)
                await stdin.drain()
                written += len(data)
        except _READER_GONE:
            logger.debug("{path} closed its input after {n} bytes", path=self.path, n=written)
        except OSError as e:
            raise StreamIOError(f"{self.path} stdin", e.strerror or str(e)) from e
        finally:
            stdin.close()
            with suppress(*_READER_GONE):
                await stdin.wait_closed()

    async def _drain(
        self,
        stream: asyncio.StreamReader,
        current_handler: Callable[[], OutputConsumer | None],
        name: str,
    ) -> None:
        """Deliver pipe data to the current handler until end of file.

        If the handler fails, the pipe is still drained (and the data
        dropped) so the child never blocks on a full pipe; the failure is
        re-raised at end of file.
        """
        chunk_size = get_config().execution.read_chunk_size
        failure: Exception | None = None
        received = 0
        while True:
            try:
                chunk = await stream.read(chunk_size)
            except OSError as e:
                raise StreamIOError(f"{self.path} {name}", e.strerror or str(e)) from e
            if not chunk:
                break
            received += len(chunk)
            handler = current_handler()
            if failure is None and handler is not None:
                try:
                    await ainvoke(handler, chunk)
                except Exception as e:
                    failure = e
        logger.debug("{path} {name} closed after {n} bytes", path=self.path, name=name, n=received)
        if failure is not None:
            raise failure

    async def _supervise(
        self, process: asyncio.subprocess.Process, pumps: list[asyncio.Task[None]]
    ) -> Status:
        """Wait for exit and for every pump, then record the outcome."""
        try:
            results = await asyncio.gather(process.wait(), *pumps, return_exceptions=True)
        except asyncio.CancelledError:
            if process.returncode is None:
                with suppress(ProcessLookupError):
                    process.kill()
            raise

        returncode = results[0]
        if isinstance(returncode, BaseException):
            raise returncode
        outcome = ProcessOutcome.from_returncode(returncode)
        self.termination_status = outcome.status
        self.termination_reason = outcome.reason
        self.state = ProcessState.TERMINATED
        logger.info(
            "{path} terminated: status={status} reason={reason}",
            path=self.path,
            status=outcome.status,
            reason=outcome.reason,
        )

        upstream, self._upstream = self._upstream, []
        upstream_results = await asyncio.gather(*upstream, return_exceptions=True)

        for result in (*results[1:], *upstream_results):
            if isinstance(result, BaseException):
                raise result
        return outcome.status


__all__ = ["ShellCommand"]
