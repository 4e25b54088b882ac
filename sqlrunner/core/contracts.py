"""Core port contracts used by adapters, query builder, and runner."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, Sequence, Tuple

from .command import CommandType, Parameter
from .types import RowMapping


class DialectPort(Protocol):
    """Dialect behavior required by query synthesis and command binding."""

    name: str
    paramstyle: str
    param_marker: str

    def q(self, ident: str) -> str: ...

    def table(self, name: str, schema: Optional[str] = None) -> str: ...

    def param_name(self, base: str) -> str: ...

    def param_key(self, name: str) -> str: ...

    def placeholder(self, key: str) -> str: ...

    def insert_sql(
        self,
        table_sql: str,
        columns_sql: str,
        values_sql: str,
        identity_column: Optional[str] = None,
    ) -> str: ...

    def procedure_call_sql(
        self, procedure: str, arguments: Sequence[Tuple[str, str]]
    ) -> str: ...


class CommandPort(Protocol):
    """Executable command created by a unit of work.

    `parameters` holds the command's own copies of bound parameters, keyed
    by parameter name; output values are read back from there.
    """

    command_type: CommandType
    command_text: str
    parameters: Mapping[str, Parameter]

    def add_parameter(self, parameter: Parameter) -> None: ...

    def execute_non_query(self) -> int: ...

    def execute_scalar(self) -> Any: ...

    def execute_reader(self) -> List[RowMapping]: ...

    def close(self) -> None: ...


class UnitOfWorkPort(Protocol):
    """Connection and transaction owner consumed by `SqlRunner`."""

    def create_command(self) -> CommandPort: ...

    def begin_transaction(self) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...
