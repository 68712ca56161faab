"""Invocation and chaining of stream handlers.

Handlers are user callables attached to a stream. They may be plain
functions or coroutine functions:

- an *input provider* takes no argument and returns the next chunk of
  bytes to write, or ``None`` once it has nothing more to give
- an *output consumer* takes a chunk of bytes and returns nothing

Registering a second handler on the same stream composes it with the first
one through :func:`chain_input_providers` / :func:`chain_output_consumers`
instead of replacing it. The composed handler is itself a coroutine
function that captures the previous one, so call order always follows
registration order.

Synchronous handlers and blocking file operations run on a small shared
thread pool so that the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
import inspect
import threading
from collections.abc import Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from scripting.kernel.config import get_config

_T = TypeVar("_T")

InputProvider = Callable[[], Awaitable[bytes | None]] | Callable[[], bytes | None]
OutputConsumer = Callable[[bytes], Awaitable[None]] | Callable[[bytes], None]

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def get_io_executor() -> ThreadPoolExecutor:
    """Return the shared worker pool, creating it on first use."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=get_config().execution.io_workers,
                thread_name_prefix="scripting-io",
            )
        return _executor


def shutdown_io_executor(wait: bool = True) -> None:
    """Shut down the shared worker pool; the next use creates a fresh one."""
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=wait)
            _executor = None


async def arun_blocking(func: Callable[..., _T], *args: Any) -> _T:
    """Run a blocking callable on the shared worker pool.

    ContextVars are copied so that the callable sees the caller's context.
    """
    ctx = contextvars.copy_context()
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_io_executor(), functools.partial(ctx.run, func, *args))


async def ainvoke(handler: Callable[..., Any], *args: Any) -> Any:
    """Call a handler and wait for its result, whatever its flavour.

    Coroutine functions are awaited on the event loop. Plain callables run on
    the worker pool; if they return an awaitable, it is awaited as well.
    """
    if inspect.iscoroutinefunction(handler):
        return await handler(*args)
    result = await arun_blocking(handler, *args)
    if inspect.isawaitable(result):
        return await result
    return result


def chain_input_providers(
    first: InputProvider, second: InputProvider
) -> Callable[[], Awaitable[bytes | None]]:
    """Compose two input providers.

    The first provider is drained until it returns ``None``; from then on
    only the second one is consulted.
    """
    first_exhausted = False

    async def chained() -> bytes | None:
        nonlocal first_exhausted
        if not first_exhausted:
            data = await ainvoke(first)
            if data is not None:
                return data
            first_exhausted = True
        return await ainvoke(second)

    return chained


def chain_output_consumers(
    first: OutputConsumer, second: OutputConsumer
) -> Callable[[bytes], Awaitable[None]]:
    """Compose two output consumers; each chunk goes to ``first``, then ``second``."""

    async def chained(data: bytes) -> None:
        await ainvoke(first, data)
        await ainvoke(second, data)

    return chained


def one_shot_provider(data: bytes) -> Callable[[], Awaitable[bytes | None]]:
    """Create an input provider that yields ``data`` once and then ``None``."""
    pending: bytes | None = data

    async def provide() -> bytes | None:
        nonlocal pending
        chunk, pending = pending, None
        return chunk

    return provide


__all__ = [
    "InputProvider",
    "OutputConsumer",
    "ainvoke",
    "arun_blocking",
    "chain_input_providers",
    "chain_output_consumers",
    "get_io_executor",
    "one_shot_provider",
    "shutdown_io_executor",
]
