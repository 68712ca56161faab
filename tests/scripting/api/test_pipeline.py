"""Tests for piping process commands into each other."""

from __future__ import annotations

import asyncio
import io
from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest

from scripting.api.command import Command, Failed, Runnable
from scripting.api.pipeline import pipe
from scripting.drivers.process.shell_command import ShellCommand
from scripting.kernel.domain.status import ProcessState
from scripting.kernel.exceptions import InvalidArgumentError, ProcessLaunchError
from scripting.kernel.ports.executable import arun_returning_standard_output

if TYPE_CHECKING:
    from pathlib import Path

Tool = Callable[[str], str]


def process(command: Command) -> ShellCommand:
    assert isinstance(command, Runnable)
    assert isinstance(command.executable, ShellCommand)
    return command.executable


class TestPipe:
    @pytest.mark.asyncio()
    async def test_echo_into_cat(self, require_tool: Tool) -> None:
        echo = Command.shell(require_tool("echo"), "hello")
        cat = Command.shell(require_tool("cat"))

        piped = await pipe(echo, cat)

        assert piped is cat
        assert await arun_returning_standard_output(piped) == b"hello\n"
        assert process(echo).state is ProcessState.TERMINATED

    @pytest.mark.asyncio()
    async def test_chained_pipes(self, require_tool: Tool) -> None:
        require_tool("sed")
        echo = Command.shell(require_tool("echo"), "no")
        sed = Command.parse("sed -e s/no/yes/")
        cat = Command.shell(require_tool("cat"))

        chain = await pipe(await pipe(echo, sed), cat)

        assert await arun_returning_standard_output(chain) == b"yes\n"
        assert process(sed).state is ProcessState.TERMINATED
        assert process(echo).state is ProcessState.TERMINATED

    @pytest.mark.asyncio()
    async def test_large_stream_through_pipe(self, require_tool: Tool) -> None:
        payload = b"0123456789abcdef" * 65536
        upstream = Command.shell(require_tool("cat")).provide_input(payload)
        downstream = Command.shell(require_tool("cat"))

        output = await arun_returning_standard_output(await pipe(upstream, downstream))

        assert output == payload

    @pytest.mark.asyncio()
    async def test_downstream_status_is_its_own(self, require_tool: Tool) -> None:
        upstream = Command.shell(require_tool("sh"), "-c", "echo a; exit 5")
        downstream = Command.shell(require_tool("cat"))

        assert await (await pipe(upstream, downstream)).arun() == 0
        assert process(upstream).termination_status == 5

    @pytest.mark.asyncio()
    async def test_upstream_failure_surfaces_from_downstream(self, require_tool: Tool) -> None:
        upstream = Command.shell(require_tool("sh"), "-c", "echo out; echo err >&2")

        def fail(data: bytes) -> None:
            raise RuntimeError("upstream consumer broke")

        upstream.on_error(fail)
        piped = await pipe(upstream, Command.shell(require_tool("cat")))

        with pytest.raises(RuntimeError, match="upstream consumer broke"):
            await arun_returning_standard_output(piped)


class TestPreconditions:
    @pytest.mark.asyncio()
    async def test_failed_upstream_short_circuits(self, require_tool: Tool) -> None:
        failed = Command.failed(ProcessLaunchError("/spy", "never started"))
        cat = Command.shell(require_tool("cat"))

        assert await pipe(failed, cat) is failed
        assert process(cat).state is ProcessState.IDLE
        assert process(cat).standard_input is None

    @pytest.mark.asyncio()
    async def test_failed_downstream_short_circuits(self, require_tool: Tool) -> None:
        echo = Command.shell(require_tool("echo"), "x")
        failed = Command.failed(ProcessLaunchError("/spy", "never started"))

        assert await pipe(echo, failed) is failed
        assert process(echo).state is ProcessState.IDLE
        assert process(echo).standard_output is None

    @pytest.mark.asyncio()
    async def test_file_endpoints_cannot_be_piped(self, require_tool: Tool, tmp_path: Path) -> None:
        result = await pipe(Command.shell(require_tool("echo")), Command.file(tmp_path / "f"))

        assert isinstance(result, Failed)
        assert isinstance(result.error, InvalidArgumentError)

    @pytest.mark.asyncio()
    async def test_bound_upstream_output_is_not_overwritten(self, require_tool: Tool) -> None:
        echo = Command.shell(require_tool("echo"))
        bound = io.BytesIO()
        echo.standard_output = bound

        result = await pipe(echo, Command.shell(require_tool("cat")))

        assert isinstance(result, Failed)
        assert isinstance(result.error, InvalidArgumentError)
        assert echo.standard_output is bound
        assert process(echo).state is ProcessState.IDLE

    @pytest.mark.asyncio()
    async def test_bound_downstream_input_is_not_overwritten(self, require_tool: Tool) -> None:
        cat = Command.shell(require_tool("cat"))
        bound = io.BytesIO()
        cat.standard_input = bound

        result = await pipe(Command.shell(require_tool("echo")), cat)

        assert isinstance(result, Failed)
        assert isinstance(result.error, InvalidArgumentError)
        assert cat.standard_input is bound

    @pytest.mark.asyncio()
    async def test_upstream_launch_failure(self, require_tool: Tool, tmp_path: Path) -> None:
        missing = Command.shell(str(tmp_path / "missing"))
        cat = Command.shell(require_tool("cat"))

        result = await pipe(missing, cat)

        assert isinstance(result, Failed)
        assert isinstance(result.error, ProcessLaunchError)
        assert process(cat).standard_input is None
        assert process(missing).standard_output is None

    @pytest.mark.asyncio()
    async def test_upstream_consumer_is_not_overwritten(self, require_tool: Tool) -> None:
        echo = Command.shell(require_tool("echo"), "hi")
        echo.on_output(lambda data: None)

        result = await pipe(echo, Command.shell(require_tool("cat")))

        assert isinstance(result, Failed)
        assert isinstance(result.error, InvalidArgumentError)
        assert process(echo).state is ProcessState.IDLE
        assert process(echo).standard_output is None

    @pytest.mark.asyncio()
    async def test_downstream_provider_is_not_overwritten(self, require_tool: Tool) -> None:
        cat = Command.shell(require_tool("cat")).provide_input(b"data")

        result = await pipe(Command.shell(require_tool("echo"), "hi"), cat)

        assert isinstance(result, Failed)
        assert isinstance(result.error, InvalidArgumentError)
        assert process(cat).standard_input is None


class TestDownstreamLaunchFailure:
    @pytest.mark.asyncio()
    async def test_upstream_is_collected(self, require_tool: Tool, tmp_path: Path) -> None:
        require_tool("head")
        # Writes far more than a pipe buffer holds
        producer = Command.shell(require_tool("sh"), "-c", "head -c 1000000 /dev/zero")
        missing = Command.shell(str(tmp_path / "missing"))

        chain = await pipe(producer, missing)
        assert chain is missing

        with pytest.raises(ProcessLaunchError):
            await asyncio.wait_for(chain.arun(), timeout=10)

        assert process(producer).state is ProcessState.TERMINATED
        assert process(missing).state is ProcessState.IDLE
        assert process(missing).standard_input is None
