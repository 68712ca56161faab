"""Command line tokenizer.

Turns a single command string into an argument vector the way a shell
would, without invoking one:

- whitespace separates arguments, except inside single or double quotes
- ``$NAME`` is replaced by the value of ``NAME`` from the given environment
  (missing names expand to an empty string); single quotes suppress this
- a backslash takes the next character literally; ``\\0``, ``\\n``, ``\\r``
  and ``\\t`` become NUL, newline, carriage return and tab

Closing a quoted run ends the argument at that point, so ``"a"b`` yields
``["a", "b"]`` and ``''`` yields an empty argument.

Examples
--------
>>> parse('Hello "world out there"')
['Hello', 'world out there']
>>> parse("$CMD '$VAR'", {"CMD": "cmd", "VAR": "val"})
['cmd', '$VAR']
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

_ESCAPES = {"0": "\0", "n": "\n", "r": "\r", "t": "\t"}


def _is_name_char(c: str) -> bool:
    return c.isalnum() or c == "_"


def parse(command: str, environment: Mapping[str, str] | None = None) -> list[str]:
    """Split a command string into its arguments.

    Parameters
    ----------
    command : str
        The command line to tokenize
    environment : Mapping[str, str] | None
        Variables available for ``$NAME`` substitution (none when omitted)

    Returns
    -------
    list[str]
        The arguments in order; the first one is the program name.
        Unterminated quotes and a trailing backslash are accepted.
    """
    env = environment or {}
    arguments: list[str] = []
    argument: list[str] = []
    in_quotes = False
    in_double_quotes = False
    escape_next = False
    variable: str | None = None

    def expand() -> None:
        nonlocal variable
        if variable is not None:
            argument.append(env.get(variable, ""))
            variable = None

    def flush() -> None:
        arguments.append("".join(argument))
        argument.clear()

    for c in command:
        if escape_next:
            argument.append(_ESCAPES.get(c, c))
            escape_next = False
        elif c == "\\":
            expand()
            escape_next = True
        elif c == "$":
            if in_quotes:
                argument.append(c)
            else:
                expand()
                variable = ""
        elif _is_name_char(c):
            if variable is not None:
                variable += c
            else:
                argument.append(c)
        else:
            expand()
            if c.isspace():
                if in_quotes or in_double_quotes:
                    argument.append(c)
                elif any(argument):
                    flush()
            elif c == '"':
                if in_quotes:
                    argument.append(c)
                else:
                    if in_double_quotes:
                        flush()
                    in_double_quotes = not in_double_quotes
            elif c == "'":
                if in_double_quotes:
                    argument.append(c)
                else:
                    if in_quotes:
                        flush()
                    in_quotes = not in_quotes
            else:
                argument.append(c)

    expand()
    if any(argument):
        flush()
    return arguments


__all__ = ["parse"]
