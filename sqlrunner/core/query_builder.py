"""SQL command synthesis for one model type and one query type.

`QueryBuilder` is single-use: construct it, populate it once with either
primary key values or an entity instance, then call `make_command_spec()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from .command import CommandSpec, Parameter
from .contracts import DialectPort
from .errors import (
    ArgumentError,
    ArgumentNullError,
    InvalidOperationError,
    ModelDefinitionError,
    SqlBuilderError,
)
from .metadata import Column, build_model_metadata
from .models import DataclassModel, field_values
from .types import to_storage_null

T = TypeVar("T", bound=DataclassModel)


class QueryType(str, Enum):
    """Kind of statement a `QueryBuilder` produces."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class _BuilderState(Enum):
    CREATED = "created"
    POPULATED = "populated"
    FINALIZED = "finalized"


@dataclass
class CompiledFragment:
    """A compiled SQL fragment with its bound parameters."""

    sql: str
    params: List[Parameter] = field(default_factory=list)


class QueryBuilder(Generic[T]):
    """Builds CRUD command text and parameters from model metadata."""

    def __init__(
        self,
        model: Type[T],
        query_type: QueryType,
        *,
        dialect: Optional[DialectPort] = None,
    ):
        """Create a builder and resolve model metadata.

        Args:
            model: Dataclass model type.
            query_type: Statement kind to build.
            dialect: SQL dialect; defaults to `SqlServerDialect`.

        Raises:
            ModelDefinitionError: If the model has no public fields or
                inconsistent annotations.
        """

        if dialect is None:
            from ..ports.db_api.dialects import SqlServerDialect

            dialect = SqlServerDialect()

        self.model = model
        self.query_type = QueryType(query_type)
        self.d = dialect
        self.meta = build_model_metadata(model)
        self._table_sql = self.d.table(self.meta.table.name, self.meta.table.schema)
        self._state = _BuilderState.CREATED
        self._entity_values: Dict[str, Any] = {}
        self._primary_key_values: Dict[str, Any] = {}
        self._where: Optional[CompiledFragment] = None

    def set_primary_key_values(self, *primary_key_values: Any) -> None:
        """Set key values for `SELECT`/`DELETE`, in key declaration order.

        Raises:
            InvalidOperationError: For `INSERT`/`UPDATE` or a populated builder.
            ArgumentError: If no values are given or the count does not match.
            ModelDefinitionError: If the model declares no primary key.
        """

        if self.query_type in (QueryType.INSERT, QueryType.UPDATE):
            raise InvalidOperationError(
                "set_primary_key_values() is not valid for Insert and Update. "
                "Use set_entity_instance() instead."
            )
        self._require_state(_BuilderState.CREATED)

        if not primary_key_values:
            raise ArgumentError(
                "At least one primary key value is required.", "primary_key_values"
            )

        primary_keys = self.meta.primary_keys
        if not primary_keys:
            raise ModelDefinitionError("The model does not contain any primary keys.")
        if len(primary_keys) != len(primary_key_values):
            raise ArgumentError(
                "The number of primary key values supplied does not match the "
                "number of primary keys in the model.",
                "primary_key_values",
            )

        self._primary_key_values = {
            col.id: value for col, value in zip(primary_keys, primary_key_values)
        }
        self._where = self._compile_where()
        self._state = _BuilderState.POPULATED

    def set_entity_instance(self, entity_instance: T) -> None:
        """Set the entity for `INSERT`/`UPDATE`/`DELETE`.

        Raises:
            InvalidOperationError: For `SELECT` or a populated builder.
            ArgumentNullError: If the instance is `None`.
            ArgumentError: If the instance is not of the builder's model type.
        """

        if self.query_type is QueryType.SELECT:
            raise InvalidOperationError(
                "set_entity_instance() is not valid for Select. "
                "Use set_primary_key_values() instead."
            )
        self._require_state(_BuilderState.CREATED)

        if entity_instance is None:
            raise ArgumentNullError(
                "A non-null entity instance is required.", "entity_instance"
            )
        if not isinstance(entity_instance, self.model):
            raise ArgumentError(
                f"Expected an instance of {self.model.__name__}, got "
                f"{type(entity_instance).__name__}.",
                "entity_instance",
            )

        self._entity_values = field_values(entity_instance)
        self._primary_key_values = {
            col.id: self._entity_values[col.id] for col in self.meta.primary_keys
        }
        self._where = self._compile_where()
        self._state = _BuilderState.POPULATED

    def make_command_spec(self) -> CommandSpec:
        """Build command text and parameters for the configured query type."""

        if self._state is _BuilderState.FINALIZED:
            raise InvalidOperationError("The command has already been built.")

        if self.query_type is QueryType.SELECT:
            spec = self._make_select()
        elif self.query_type is QueryType.DELETE:
            spec = self._make_delete()
        elif self.query_type is QueryType.UPDATE:
            spec = self._make_update()
        elif self.query_type is QueryType.INSERT:
            spec = self._make_insert()
        else:  # pragma: no cover - QueryType() rejects other values
            raise SqlBuilderError("Query type is not supported.")

        self._state = _BuilderState.FINALIZED
        return spec

    def _make_select(self) -> CommandSpec:
        col_names = ", ".join(self.d.q(col.name) for col in self.meta.columns)
        sql = f"SELECT {col_names} FROM {self._table_sql}"

        if not self._primary_key_values or self._where is None:
            return CommandSpec(f"{sql};")

        return CommandSpec(f"{sql} WHERE {self._where.sql};", tuple(self._where.params))

    def _make_delete(self) -> CommandSpec:
        if not self._primary_key_values or self._where is None:
            raise SqlBuilderError("Delete requires primary key columns and their values.")

        return CommandSpec(
            f"DELETE FROM {self._table_sql} WHERE {self._where.sql};",
            tuple(self._where.params),
        )

    def _make_update(self) -> CommandSpec:
        if not self._primary_key_values or self._where is None:
            raise SqlBuilderError("Update requires primary key columns and their values.")

        set_fragment = self._compile_set()
        params = set_fragment.params + self._where.params
        return CommandSpec(
            f"UPDATE {self._table_sql} SET {set_fragment.sql} WHERE {self._where.sql};",
            tuple(params),
        )

    def _make_insert(self) -> CommandSpec:
        if self._state is not _BuilderState.POPULATED:
            raise SqlBuilderError("Insert requires an entity instance.")

        columns = self.meta.insertable_columns
        if not columns:
            raise SqlBuilderError("The model does not contain any insertable columns.")

        params = [self._make_parameter(col, self._entity_values[col.id]) for col in columns]
        columns_sql = ", ".join(self.d.q(col.name) for col in columns)
        values_sql = ", ".join(param.name for param in params)

        identity = self.meta.identity_key
        sql = self.d.insert_sql(
            self._table_sql,
            columns_sql,
            values_sql,
            identity.name if identity is not None else None,
        )
        return CommandSpec(sql, tuple(params))

    def _compile_set(self) -> CompiledFragment:
        """Compile `col = @param` pairs for every updatable column."""

        columns = self.meta.updatable_columns
        if not columns:
            raise SqlBuilderError("The model does not contain any updateable columns.")

        params = [self._make_parameter(col, self._entity_values[col.id]) for col in columns]
        clause = ", ".join(
            f"{self.d.q(col.name)} = {param.name}" for col, param in zip(columns, params)
        )
        return CompiledFragment(clause, params)

    def _compile_where(self) -> CompiledFragment:
        """Compile the primary key condition, combined using `AND`."""

        clauses: List[str] = []
        params: List[Parameter] = []
        for member, value in self._primary_key_values.items():
            col = self.meta.column(member)
            param = self._make_parameter(col, value)
            clauses.append(f"{self.d.q(col.name)} = {param.name}")
            params.append(param)
        return CompiledFragment(" AND ".join(clauses), params)

    def _make_parameter(self, col: Column, value: Any) -> Parameter:
        return Parameter(
            name=self.d.param_name(col.name),
            value=to_storage_null(value),
            sql_db_type=col.sql_db_type,
        )

    def _require_state(self, expected: _BuilderState) -> None:
        if self._state is not expected:
            raise InvalidOperationError(
                f"The query builder is {self._state.value}; it can only be "
                "populated once."
            )

