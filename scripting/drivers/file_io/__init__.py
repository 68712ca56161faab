"""File driver: executables backed by a file opened for read, write or append."""

from scripting.drivers.file_io.file_io import FileIO

__all__ = ["FileIO"]
