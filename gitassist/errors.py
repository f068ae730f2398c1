"""
Error taxonomy.

ConfigurationError ends the session. ToolFailure ends the operation chain
(only the current operation in loop mode). ValidationError aborts the
current step. A declined confirmation is not an error at all: steps
return an ``aborted`` StepResult for it.
"""

from __future__ import annotations


class GitAssistError(Exception):
    """Base class for every error raised by a step."""


class ConfigurationError(GitAssistError):
    """A required external tool is missing or the config is unusable."""


class ToolFailure(GitAssistError):
    """An external tool exited non-zero or produced unusable output."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class ValidationError(GitAssistError):
    """Operator input or selection cannot be used. Aborts only this step."""
