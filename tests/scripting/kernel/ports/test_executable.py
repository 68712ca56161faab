"""Tests for the executable port and its convenience operations.

The operations are exercised against an in-memory executable to show that
they only rely on the port contract.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING

import pytest

from scripting.kernel.domain.status import FileMode
from scripting.kernel.exceptions import FileOpenError, InvalidArgumentError
from scripting.kernel.ports.executable import (
    Executable,
    OpenableFile,
    arun_returning_all_output,
    arun_returning_error_output,
    arun_returning_output,
    arun_returning_standard_output,
    arun_returning_standard_output_string,
    arun_returning_string_output,
    arun_with_input,
    decode_output,
    encode_input,
    provide_input,
    redirect_error_to_file,
    redirect_input_from_file,
    redirect_output_to_file,
)
from scripting.kernel.utils.handlers import (
    ainvoke,
    chain_input_providers,
    chain_output_consumers,
)

if TYPE_CHECKING:
    from scripting.kernel.ports.executable import IOHandle
    from scripting.kernel.utils.handlers import InputProvider, OutputConsumer


class EchoExecutable:
    """Copies its input to standard output and reports the byte count on standard error."""

    def __init__(self) -> None:
        self.standard_input: IOHandle = None
        self.standard_output: IOHandle = None
        self.standard_error: IOHandle = None
        self.runs = 0
        self._input: InputProvider | None = None
        self._output: OutputConsumer | None = None
        self._error: OutputConsumer | None = None

    async def alaunch(self) -> None:
        pass

    async def arun(self) -> int:
        self.runs += 1
        total = 0
        while self._input is not None and (data := await ainvoke(self._input)) is not None:
            total += len(data)
            if self._output is not None:
                await ainvoke(self._output, data)
        if self._error is not None:
            await ainvoke(self._error, f"{total} bytes".encode())
        return 0

    def on_input(self, provider: InputProvider) -> None:
        self._input = provider if self._input is None else chain_input_providers(self._input, provider)

    def on_output(self, consumer: OutputConsumer) -> None:
        self._output = (
            consumer if self._output is None else chain_output_consumers(self._output, consumer)
        )

    def on_error(self, consumer: OutputConsumer) -> None:
        self._error = consumer if self._error is None else chain_output_consumers(self._error, consumer)


class StubFile:
    def __init__(self, handle: io.BytesIO | None = None) -> None:
        self.path = "stub.bin"
        self.opened: list[FileMode] = []
        self._handle = handle

    def open(self, mode: FileMode = FileMode.READ) -> None:
        self.opened.append(mode)

    @property
    def handle(self) -> io.BytesIO | None:
        return self._handle


class TestProtocol:
    def test_echo_executable_satisfies_protocol(self) -> None:
        assert isinstance(EchoExecutable(), Executable)

    def test_stub_file_satisfies_openable_protocol(self) -> None:
        assert isinstance(StubFile(), OpenableFile)


class TestConversions:
    def test_encode_uses_configured_encoding(self) -> None:
        assert encode_input("héllo") == "héllo".encode()

    def test_encode_rejects_unrepresentable_text(self) -> None:
        with pytest.raises(InvalidArgumentError, match="ascii"):
            encode_input("héllo", "ascii")

    def test_decode_utf8(self) -> None:
        assert decode_output("héllo".encode()) == "héllo"

    def test_decode_falls_back_to_utf16(self) -> None:
        assert decode_output("hi".encode("utf-16")) == "hi"

    def test_decode_gives_up_with_empty_string(self) -> None:
        assert decode_output(b"\xff") == ""


class TestCapture:
    @pytest.mark.asyncio()
    async def test_standard_output(self) -> None:
        executable = provide_input(EchoExecutable(), b"hello\n")
        assert await arun_returning_standard_output(executable) == b"hello\n"

    @pytest.mark.asyncio()
    async def test_error_output(self) -> None:
        executable = provide_input(EchoExecutable(), "four")
        assert await arun_returning_error_output(executable) == b"4 bytes"

    @pytest.mark.asyncio()
    async def test_both_outputs(self) -> None:
        executable = provide_input(EchoExecutable(), b"ab")
        assert await arun_returning_output(executable) == (b"ab", b"2 bytes")

    @pytest.mark.asyncio()
    async def test_all_output(self) -> None:
        executable = provide_input(EchoExecutable(), b"ab")
        assert await arun_returning_all_output(executable) == b"ab2 bytes"

    @pytest.mark.asyncio()
    async def test_string_variants(self) -> None:
        assert await arun_returning_standard_output_string(provide_input(EchoExecutable(), "é")) == "é"
        assert await arun_returning_string_output(provide_input(EchoExecutable(), "é")) == (
            "é",
            "2 bytes",
        )

    @pytest.mark.asyncio()
    async def test_capture_keeps_existing_consumers(self) -> None:
        seen = bytearray()
        executable = provide_input(EchoExecutable(), b"data")
        executable.on_output(seen.extend)

        assert await arun_returning_standard_output(executable) == b"data"
        assert seen == b"data"

    @pytest.mark.asyncio()
    async def test_run_with_input(self) -> None:
        executable = EchoExecutable()
        collected = bytearray()
        executable.on_output(collected.extend)

        assert await arun_with_input(executable, "text") == 0
        assert collected == b"text"
        assert executable.runs == 1


class TestRedirection:
    def test_input_from_file_opens_for_reading(self) -> None:
        handle = io.BytesIO(b"x")
        file = StubFile(handle)
        executable = redirect_input_from_file(EchoExecutable(), file)

        assert executable.standard_input is handle
        assert file.opened == [FileMode.READ]

    @pytest.mark.parametrize(("append", "mode"), [(False, FileMode.WRITE), (True, FileMode.APPEND)])
    def test_output_to_file(self, append: bool, mode: FileMode) -> None:
        file = StubFile(io.BytesIO())
        executable = redirect_output_to_file(EchoExecutable(), file, append=append)

        assert executable.standard_output is file.handle
        assert file.opened == [mode]

    def test_error_to_file(self) -> None:
        file = StubFile(io.BytesIO())
        executable = redirect_error_to_file(EchoExecutable(), file, append=True)

        assert executable.standard_error is file.handle
        assert file.opened == [FileMode.APPEND]

    def test_file_without_handle_is_an_error(self) -> None:
        with pytest.raises(FileOpenError, match="stub.bin"):
            redirect_output_to_file(EchoExecutable(), StubFile(None))
