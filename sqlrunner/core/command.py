"""Command data contract shared by query synthesis and execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Tuple

from .errors import ArgumentError
from .metadata import SqlDbType


class CommandType(str, Enum):
    """How the command text is interpreted."""

    TEXT = "text"
    STORED_PROCEDURE = "stored_procedure"
    TABLE_DIRECT = "table_direct"


class ParameterDirection(str, Enum):
    """Data flow of a parameter relative to the command."""

    INPUT = "input"
    OUTPUT = "output"
    INPUT_OUTPUT = "input_output"
    RETURN_VALUE = "return_value"


@dataclass
class Parameter:
    """Named command parameter.

    Non-input parameters are updated in place after execution with the
    value returned by the backend.
    """

    name: str
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    sql_db_type: Optional[SqlDbType] = None
    size: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None

    @property
    def is_input_only(self) -> bool:
        return self.direction is ParameterDirection.INPUT


@dataclass(frozen=True)
class CommandSpec:
    """Command text, command type, and ordered parameters to execute.

    Raises:
        ArgumentError: For `TABLE_DIRECT`, unknown command types, or blank
            command text.
    """

    command_text: str
    parameters: Tuple[Parameter, ...] = field(default=())
    command_type: CommandType = CommandType.TEXT

    def __post_init__(self) -> None:
        command_type = self.command_type
        if not isinstance(command_type, CommandType):
            try:
                command_type = CommandType(command_type)
            except ValueError as exc:
                raise ArgumentError(
                    f"Unsupported command type {self.command_type!r}.", "command_type"
                ) from exc
        if command_type is CommandType.TABLE_DIRECT:
            raise ArgumentError(
                "CommandType.TABLE_DIRECT is not supported.", "command_type"
            )
        if not isinstance(self.command_text, str) or not self.command_text.strip():
            raise ArgumentError("Command text is required.", "command_text")

        parameters: Iterable[Parameter] = self.parameters or ()
        object.__setattr__(self, "command_type", command_type)
        object.__setattr__(self, "parameters", tuple(parameters))

    @classmethod
    def stored_procedure(
        cls, name: str, parameters: Iterable[Parameter] = ()
    ) -> CommandSpec:
        return cls(name, tuple(parameters), CommandType.STORED_PROCEDURE)
