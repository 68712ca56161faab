"""Caller-facing API: command values and their composition."""

from scripting.api.command import Command, Failed, Runnable
from scripting.api.pipeline import pipe

__all__ = ["Command", "Failed", "Runnable", "pipe"]
