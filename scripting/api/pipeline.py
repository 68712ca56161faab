"""Pipes between process commands.

:func:`pipe` connects the standard output of one process command to the
standard input of another through an OS pipe and launches the upstream
side. The returned command is the downstream side, not yet run; running it
drives the whole chain, and its ``arun()`` also waits for (and re-raises
failures of) every upstream command. If the downstream side cannot be
launched, the upstream loses its reader and is collected before the launch
error is raised.

The connected streams must be free: an upstream with an output consumer or
a downstream with an input provider is rejected.

Pipes compose to the left:

.. code-block:: python

    chain = await pipe(await pipe(Command.shell("echo", "no"), Command.parse("sed -e s/no/yes/")),
                       Command.shell("cat"))
    output = await arun_returning_standard_output(chain)   # b"yes\\n"
"""

from __future__ import annotations

import asyncio
import os

from scripting.api.command import Command, Failed, Runnable
from scripting.drivers.process.shell_command import ShellCommand
from scripting.kernel.exceptions import (
    AlreadyInProgressError,
    CommandStateError,
    InvalidArgumentError,
)
from scripting.kernel.logging import get_logger

logger = get_logger(__name__)


def _check_edge(upstream: Command, downstream: Command) -> tuple[ShellCommand, ShellCommand]:
    """Return both process commands or raise if they cannot be connected."""
    source = upstream.executable if isinstance(upstream, Runnable) else None
    sink = downstream.executable if isinstance(downstream, Runnable) else None
    if not isinstance(source, ShellCommand) or not isinstance(sink, ShellCommand):
        raise InvalidArgumentError("pipe", "both sides must be shell commands")
    if source.is_running:
        raise AlreadyInProgressError(str(source.path))
    if source.standard_output is not None:
        raise InvalidArgumentError("pipe", f"output of {source.path} is already bound")
    if sink.standard_input is not None:
        raise InvalidArgumentError("pipe", f"input of {sink.path} is already bound")
    if source.output_handler is not None:
        raise InvalidArgumentError("pipe", f"output of {source.path} already has a consumer")
    if sink.input_handler is not None:
        raise InvalidArgumentError("pipe", f"input of {sink.path} already has a provider")
    return source, sink


async def pipe(upstream: Command, downstream: Command) -> Command:
    """Pipe the standard output of ``upstream`` into ``downstream``.

    The upstream process is launched immediately; run the returned command
    to drive the pipeline to completion.

    Returns
    -------
    Command
        ``downstream``, or a :class:`Failed` command when either side had
        already failed, the sides cannot be connected, or the upstream
        process cannot be launched
    """
    if isinstance(upstream, Failed):
        return upstream
    if isinstance(downstream, Failed):
        return downstream
    try:
        source, sink = _check_edge(upstream, downstream)
    except CommandStateError as e:
        return Failed(e)

    read_fd, write_fd = os.pipe()
    source.standard_output = write_fd
    sink.standard_input = read_fd
    logger.debug("Pipe {source} -> {sink}", source=source.path, sink=sink.path)

    try:
        await source.alaunch()
    except Exception as e:
        # The failed launch has already closed the write end
        sink.standard_input = None
        os.close(read_fd)
        return Failed(e)

    sink.attach_upstream(
        asyncio.get_running_loop().create_task(source.arun(), name=f"scripting:pipe:{source.path.name}")
    )
    return downstream


__all__ = ["pipe"]
