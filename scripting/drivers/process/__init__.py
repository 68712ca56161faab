"""Process driver: executables backed by OS processes."""

from scripting.drivers.process.shell_command import ShellCommand

__all__ = ["ShellCommand"]
