"""Executable lookup along a colon-separated search path."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


def search(command: str, search_path: str) -> Path | None:
    """Find an executable command in a search path.

    Parameters
    ----------
    command : str
        The command base name to search for
    search_path : str
        Colon-separated list of directories, as found in ``PATH``

    Returns
    -------
    Path | None
        Path of the first matching executable file, or None if not found
    """
    for directory in search_path.split(os.pathsep):
        if not directory:
            continue
        candidate = Path(directory) / command
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
    return None


def resolve_executable(command: str, environment: Mapping[str, str] | None = None) -> str:
    """Resolve a bare command name to a full executable path.

    The ``PATH`` entry of ``environment`` is searched when given, otherwise
    the one inherited from the current process. Names containing a path
    separator are returned verbatim, as are names that cannot be found.
    """
    if os.sep in command:
        return command
    if environment is not None and "PATH" in environment:
        search_path = environment["PATH"]
    else:
        search_path = os.environ.get("PATH", "")
    found = search(command, search_path)
    return str(found) if found is not None else command


__all__ = ["resolve_executable", "search"]
