"""Command execution, row mapping, and CRUD helpers over a unit of work."""

from __future__ import annotations

import logging
import traceback
from typing import Any, Callable, List, Optional, Sequence, Tuple, Type, TypeVar

from .command import CommandSpec, Parameter
from .contracts import CommandPort, UnitOfWorkPort
from .errors import ArgumentNullError, DataExecutionError, SqlBuilderError
from .models import DataclassModel, row_accessors, row_to_model
from .query_builder import QueryBuilder, QueryType

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=DataclassModel)
R = TypeVar("R")


class SqlRunner:
    """Executes `CommandSpec`s through a unit of work and maps result rows.

    Every command is created, bound, executed, and closed within one call.
    Failures raised while binding, executing, or mapping are re-raised as
    `DataExecutionError` carrying the command text, the bound parameters,
    and a diagnostic `detail` block.
    """

    def __init__(self, unit_of_work: UnitOfWorkPort):
        if unit_of_work is None:
            raise ArgumentNullError("A unit of work is required.", "unit_of_work")
        self.uow = unit_of_work
        self.d = getattr(unit_of_work, "dialect", None)

    def execute_non_query(self, spec: CommandSpec) -> int:
        """Execute a command and return the number of affected rows."""

        return self._execute(spec, lambda cmd: cmd.execute_non_query())

    def execute_scalar(self, spec: CommandSpec) -> Any:
        """Execute a command and return the first column of the first row."""

        return self._execute(spec, lambda cmd: cmd.execute_scalar())

    def execute_reader(self, model: Type[T], spec: CommandSpec) -> List[T]:
        """Execute a command and map every result row to `model`."""

        accessors = row_accessors(model)

        def read(cmd: CommandPort) -> List[T]:
            return [row_to_model(model, row, accessors) for row in cmd.execute_reader()]

        return self._execute(spec, read)

    def execute_reader_first(self, model: Type[T], spec: CommandSpec) -> Optional[T]:
        rows = self.execute_reader(model, spec)
        return rows[0] if rows else None

    def get(self, model: Type[T], *primary_key_values: Any) -> Optional[T]:
        """Select one row by primary key values, in key declaration order."""

        builder = self._builder(model, QueryType.SELECT)
        builder.set_primary_key_values(*primary_key_values)
        return self.execute_reader_first(model, builder.make_command_spec())

    def get_all(self, model: Type[T]) -> List[T]:
        builder = self._builder(model, QueryType.SELECT)
        return self.execute_reader(model, builder.make_command_spec())

    def delete(self, model: Type[T], *primary_key_values: Any) -> int:
        """Delete one row by primary key values, in key declaration order."""

        builder = self._builder(model, QueryType.DELETE)
        builder.set_primary_key_values(*primary_key_values)
        return self.execute_non_query(builder.make_command_spec())

    def insert(self, entity: T) -> int:
        builder = self._builder(type(entity), QueryType.INSERT)
        builder.set_entity_instance(entity)
        return self.execute_non_query(builder.make_command_spec())

    def insert_for_id(self, entity: T) -> int:
        """Insert a row and return the generated identity value.

        Raises:
            SqlBuilderError: If the insert returns no identity value.
        """

        builder = self._builder(type(entity), QueryType.INSERT)
        builder.set_entity_instance(entity)
        scalar = self.execute_scalar(builder.make_command_spec())
        if scalar is None:
            raise SqlBuilderError(
                f"{type(entity).__name__} has no identity key; the insert "
                "did not return an id."
            )
        return int(scalar)

    def update(self, entity: T) -> int:
        builder = self._builder(type(entity), QueryType.UPDATE)
        builder.set_entity_instance(entity)
        return self.execute_non_query(builder.make_command_spec())

    def _builder(self, model: Type[T], query_type: QueryType) -> QueryBuilder[T]:
        if model is None:
            raise ArgumentNullError("A model type is required.", "model")
        return QueryBuilder(model, query_type, dialect=self.d)

    def _execute(self, spec: CommandSpec, run: Callable[[CommandPort], R]) -> R:
        cmd = self._create_command(spec)
        try:
            for param in spec.parameters:
                cmd.add_parameter(param)
            result = run(cmd)
            _set_output_parameters(cmd, spec.parameters)
            return result
        except DataExecutionError:
            raise
        except Exception as exc:
            raise _wrap_exception(cmd, exc) from exc
        finally:
            cmd.close()

    def _create_command(self, spec: CommandSpec) -> CommandPort:
        if spec is None:
            raise ArgumentNullError("A command spec is required.", "spec")
        cmd = self.uow.create_command()
        cmd.command_type = spec.command_type
        cmd.command_text = spec.command_text
        return cmd


def _set_output_parameters(cmd: CommandPort, parameters: Sequence[Parameter]) -> None:
    """Copy output values from the command's parameters back to the caller's."""

    for param in parameters:
        if param.is_input_only:
            continue
        bound = cmd.parameters.get(param.name)
        if bound is not None:
            param.value = bound.value


def _bound_parameters(cmd: CommandPort) -> List[Tuple[str, Any]]:
    return [(name, param.value) for name, param in cmd.parameters.items()]


def _wrap_exception(cmd: CommandPort, exc: Exception) -> DataExecutionError:
    parameters = _bound_parameters(cmd)
    logger.error("Command failed: %s: %s", type(exc).__name__, exc)
    return DataExecutionError(
        str(exc) or type(exc).__name__,
        command_text=cmd.command_text,
        parameters=parameters,
        original=exc,
        detail=_format_detail(cmd.command_text, parameters, exc),
    )


def _format_detail(
    command_text: str, parameters: Sequence[Tuple[str, Any]], exc: BaseException
) -> str:
    """Render the diagnostic block attached to `DataExecutionError.detail`."""

    lines = [
        "***** Exception Type *****",
        f"{type(exc).__module__}.{type(exc).__qualname__}",
        "",
        "***** Message *****",
        str(exc),
        "",
        "***** Stack Trace *****",
        "".join(traceback.format_tb(exc.__traceback__)).rstrip(),
        "",
    ]

    seen = {id(exc)}
    inner = exc.__cause__ or exc.__context__
    while inner is not None and id(inner) not in seen:
        seen.add(id(inner))
        lines += ["***** Inner Exception *****", f"{type(inner).__name__}: {inner}", ""]
        inner = inner.__cause__ or inner.__context__

    if command_text and command_text.strip():
        lines += ["***** Query *****", command_text, "", "***** Parameters *****"]
        lines += [f"{name}: {value}" for name, value in parameters]

    return "\n".join(lines) + "\n"
