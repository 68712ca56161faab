"""File-backed executable.

A :class:`FileIO` lets a stream end in a file instead of another process.
It implements the same streaming contract as a process: register an input
provider to write into the file, or an output consumer to read from it,
then ``await arun()``.

A file endpoint is either a source or a sink during its lifetime, never
both. The mode is chosen at open time, explicitly or inferred on launch
from the registered handlers:

- ``read``: stream the file to the output consumer
- ``write``: truncate (creating if missing) and write provider data
- ``append``: create if missing and write at the end

Its open file object can also be handed to a process as a stream handle
(see :func:`~scripting.kernel.ports.executable.redirect_output_to_file`).
The endpoint keeps ownership of the file object in that case; call
:meth:`FileIO.close` once the process is done with it.

Example
-------
.. code-block:: python

    log = FileIO("build.log")
    log.on_input(one_shot_provider(b"started\\n"))
    log.open(FileMode.APPEND)
    await log.arun()
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import IO, TYPE_CHECKING, TypeVar

from scripting.kernel.config import get_config
from scripting.kernel.domain.status import FileMode
from scripting.kernel.exceptions import (
    AlreadyInProgressError,
    BadFileModeError,
    FileOpenError,
    NoChildProcessError,
    OperationCanceledError,
    StreamIOError,
)
from scripting.kernel.logging import get_logger
from scripting.kernel.utils.handlers import (
    ainvoke,
    arun_blocking,
    chain_input_providers,
    chain_output_consumers,
)

_E = TypeVar("_E", bound=Exception)

if TYPE_CHECKING:
    from scripting.kernel.domain.status import Status
    from scripting.kernel.ports.executable import IOHandle
    from scripting.kernel.utils.handlers import InputProvider, OutputConsumer

logger = get_logger(__name__)


class FileIO:
    """A file exposed through the executable streaming contract.

    Parameters
    ----------
    path : str | os.PathLike[str]
        The file to read from or write to
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self.mode: FileMode | None = None
        self.error: Exception | None = None

        self._handle: IO[bytes] | None = None
        self._task: asyncio.Task[Status] | None = None
        self._reports: set[asyncio.Task[None]] = set()

        self._input_handler: InputProvider | None = None
        self._output_handler: OutputConsumer | None = None
        self._error_handler: OutputConsumer | None = None

    def __repr__(self) -> str:
        return f"FileIO(path={str(self.path)!r}, mode={self.mode}, open={self.is_open})"

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        """Whether the file is currently open."""
        return self._handle is not None

    @property
    def is_active(self) -> bool:
        """Whether a streaming task is in flight."""
        return self._task is not None and not self._task.done()

    @property
    def handle(self) -> IO[bytes] | None:
        """The open file object, or None while closed."""
        return self._handle

    # All three standard streams of a file endpoint are the file itself.

    @property
    def standard_input(self) -> IOHandle:
        return self._handle

    @standard_input.setter
    def standard_input(self, value: IOHandle) -> None:
        self._set_handle(value)

    @property
    def standard_output(self) -> IOHandle:
        return self._handle

    @standard_output.setter
    def standard_output(self, value: IOHandle) -> None:
        self._set_handle(value)

    @property
    def standard_error(self) -> IOHandle:
        return self._handle

    @standard_error.setter
    def standard_error(self, value: IOHandle) -> None:
        self._set_handle(value)

    def _set_handle(self, value: IOHandle) -> None:
        if isinstance(value, int):
            raise BadFileModeError(str(self.path), "handle", "raw descriptors are not supported")
        self._handle = value

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------

    def open(self, mode: FileMode = FileMode.READ) -> None:
        """Open the file, a no-op when it is already open in ``mode``.

        Raises
        ------
        AlreadyInProgressError
            If the file is already open in a different mode
        BadFileModeError
            If the mode contradicts a registered handler (reading while an
            input provider is registered, writing while an output consumer is)
        FileOpenError
            If the operating system refuses to open the file
        """
        if self._handle is not None:
            if mode == self.mode:
                return
            raise self.record(AlreadyInProgressError(str(self.path)))

        if mode is FileMode.READ and self._input_handler is not None:
            raise self.record(
                BadFileModeError(str(self.path), mode, "an input provider is registered")
            )
        if mode is not FileMode.READ and self._output_handler is not None:
            raise self.record(
                BadFileModeError(str(self.path), mode, "an output consumer is registered")
            )

        try:
            self._handle = self.path.open(mode.open_mode)
        except OSError as e:
            raise self.record(FileOpenError(str(self.path), mode, e.strerror or str(e))) from e
        self.mode = mode
        logger.debug("Opened {path} for {mode}", path=self.path, mode=mode)

    def close(self) -> None:
        """Close the file if it is open. The last mode is kept."""
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()

    # ------------------------------------------------------------------
    # Handler registration
    # ------------------------------------------------------------------

    def on_input(self, provider: InputProvider) -> None:
        """Register an input provider; its data is written to the file."""
        if self._input_handler is None:
            self._input_handler = provider
        else:
            self._input_handler = chain_input_providers(self._input_handler, provider)

    def on_output(self, consumer: OutputConsumer) -> None:
        """Register a consumer for the file's contents."""
        if self._output_handler is None:
            self._output_handler = consumer
        else:
            self._output_handler = chain_output_consumers(self._output_handler, consumer)

    def on_error(self, consumer: OutputConsumer) -> None:
        """Register a consumer for human-readable error reports."""
        if self._error_handler is None:
            self._error_handler = consumer
        else:
            self._error_handler = chain_output_consumers(self._error_handler, consumer)

    # ------------------------------------------------------------------
    # Error recording
    # ------------------------------------------------------------------

    def record(self, error: _E) -> _E:
        """Remember ``error`` as the last error and report it.

        The report (``"<path>: <description>\\n"``) is delivered to the
        error consumer in the background when an event loop is running.

        Returns
        -------
        E
            The same error, so that callers can ``raise self.record(...)``
        """
        self.error = error
        logger.warning("{path}: {error}", path=self.path, error=error)
        if self._error_handler is None:
            return error
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, report for {path} not delivered", path=self.path)
            return error
        task = loop.create_task(self._areport(self._error_handler, error))
        self._reports.add(task)
        task.add_done_callback(self._reports.discard)
        return error

    async def _areport(self, consumer: OutputConsumer, error: Exception) -> None:
        report = f"{self.path}: {error}\n".encode(get_config().execution.encoding, "replace")
        try:
            await ainvoke(consumer, report)
        except Exception as e:
            logger.warning("Error consumer of {path} failed: {error}", path=self.path, error=e)

    async def _aflush_reports(self) -> None:
        if self._reports:
            await asyncio.gather(*self._reports)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def alaunch(self) -> None:
        """Open the file if needed and start streaming in the background.

        Without an explicit :meth:`open`, the mode is ``read`` unless an
        input provider is registered, in which case it is ``write``.

        Raises
        ------
        AlreadyInProgressError
            If a streaming task is already in flight
        NoChildProcessError
            If no handler is registered, so there is nothing to stream
        """
        if self.is_active:
            raise self.record(AlreadyInProgressError(str(self.path)))
        if self._input_handler is None and self._output_handler is None and self._error_handler is None:
            raise self.record(NoChildProcessError(str(self.path)))

        if self.mode is None:
            self.mode = FileMode.READ if self._input_handler is None else FileMode.WRITE
        opened_here = not self.is_open
        self.open(self.mode)

        handle = self._handle
        assert handle is not None
        loop = asyncio.get_running_loop()
        if self.mode is FileMode.READ and self._output_handler is not None:
            self._task = loop.create_task(self._aread_loop(handle), name=f"scripting:read:{self.path}")
        elif self.mode is not FileMode.READ and self._input_handler is not None:
            self._task = loop.create_task(self._awrite_loop(handle), name=f"scripting:write:{self.path}")
        else:
            # Nothing to stream in this mode
            self._task = None
            if opened_here:
                self.close()

    async def arun(self) -> Status:
        """Stream the file to completion, launching first if never launched.

        A completed endpoint is not restarted: the status of the finished
        streaming task is returned again (or its failure raised again).

        Raises
        ------
        OperationCanceledError
            If there is no streaming task to wait for
        StreamIOError
            If reading or writing the file failed
        """
        if self._task is None:
            try:
                await self.alaunch()
            except Exception:
                await self._aflush_reports()
                raise
        task = self._task
        if task is None:
            error = self.record(OperationCanceledError(str(self.path)))
            await self._aflush_reports()
            raise error
        try:
            return await asyncio.shield(task)
        except Exception as e:
            self.record(e)
            await self._aflush_reports()
            raise

    async def _aread_loop(self, handle: IO[bytes]) -> Status:
        chunk_size = get_config().execution.read_chunk_size
        received = 0
        try:
            while chunk := await arun_blocking(handle.read, chunk_size):
                received += len(chunk)
                if (consumer := self._output_handler) is not None:
                    await ainvoke(consumer, chunk)
        except OSError as e:
            raise StreamIOError(str(self.path), e.strerror or str(e)) from e
        finally:
            self.close()
        logger.debug("Read {n} bytes from {path}", n=received, path=self.path)
        return 0

    async def _awrite_loop(self, handle: IO[bytes]) -> Status:
        written = 0
        try:
            while (provider := self._input_handler) is not None:
                data = await ainvoke(provider)
                if data is None:
                    break
                await arun_blocking(handle.write, data)
                written += len(data)
            await arun_blocking(handle.flush)
        except OSError as e:
            raise StreamIOError(str(self.path), e.strerror or str(e)) from e
        finally:
            self.close()
        logger.debug("Wrote {n} bytes to {path}", n=written, path=self.path)
        return 0


__all__ = ["FileIO"]
