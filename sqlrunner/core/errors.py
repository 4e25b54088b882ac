"""Error taxonomy raised by metadata extraction, synthesis, and execution."""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple


class SqlRunnerError(Exception):
    """Base class for every error raised by sqlrunner."""


class ModelDefinitionError(SqlRunnerError):
    """Raised when a model type cannot be mapped to a table."""


class ArgumentError(SqlRunnerError, ValueError):
    """Raised when a caller passes an invalid argument."""

    def __init__(self, message: str, param_name: Optional[str] = None):
        super().__init__(message)
        self.param_name = param_name


class ArgumentNullError(ArgumentError):
    """Raised when a required argument is `None`."""


class InvalidOperationError(SqlRunnerError, RuntimeError):
    """Raised when an operation is not valid for the current object state."""


class SqlBuilderError(SqlRunnerError):
    """Raised when a well-formed request cannot produce a SQL command."""


class DataExecutionError(SqlRunnerError):
    """Raised when the backend rejects a command.

    Attributes:
        command_text: SQL text or procedure name that was executed.
        parameters: `(name, value)` pairs bound to the command.
        original: Exception raised by the driver (also `__cause__`).
        detail: Human-readable diagnostic block.
    """

    def __init__(
        self,
        message: str,
        *,
        command_text: Optional[str] = None,
        parameters: Sequence[Tuple[str, Any]] = (),
        original: Optional[BaseException] = None,
        detail: str = "",
    ):
        super().__init__(message)
        self.command_text = command_text
        self.parameters = list(parameters)
        self.original = original
        self.detail = detail
