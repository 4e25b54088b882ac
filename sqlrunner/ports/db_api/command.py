"""DB-API command object created by `UnitOfWork.create_command()`."""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Tuple

from ...core.command import CommandType, Parameter
from ...core.errors import InvalidOperationError
from ...core.query_helpers import TableValue
from ...core.types import RowMapping, Rows, from_storage_null
from .dialects import Dialect

logger = logging.getLogger(__name__)

DriverParams = Dict[str, Any] | List[Any] | None


class DbApiCommand:
    """Binds parameters and runs one command on a DB-API cursor.

    Parameter names in the command text carry the dialect marker (for
    example `@Name`); they are rewritten to the driver placeholder style
    when the command executes.
    """

    def __init__(
        self,
        conn: Any,
        dialect: Dialect,
        *,
        enlisted: bool = False,
    ):
        """Create a command.

        Args:
            conn: Open DB-API connection.
            dialect: Dialect used for marker and placeholder translation.
            enlisted: Whether the command runs inside an active transaction.
                Commands that are not enlisted commit on success and roll
                back on failure.
        """

        self.conn = conn
        self.dialect = dialect
        self.enlisted = enlisted
        self.command_type = CommandType.TEXT
        self.command_text = ""
        self.parameters: Dict[str, Parameter] = {}
        self._cursor: Any | None = None
        self._closed = False

    def add_parameter(self, parameter: Parameter) -> None:
        """Bind a copy of `parameter`; output values are written to the copy."""

        if parameter.name in self.parameters:
            raise InvalidOperationError(
                f"Parameter {parameter.name!r} is already bound to this command."
            )
        self.parameters[parameter.name] = replace(parameter)

    def execute_non_query(self) -> int:
        """Execute the command and return the affected row count."""

        def affected(cur: Any) -> int:
            # Statements with RETURNING/OUTPUT must be fetched before commit.
            rows = _fetch_all(cur)
            rowcount = getattr(cur, "rowcount", -1)
            if not isinstance(rowcount, int):
                rowcount = -1
            if rowcount == -1 and rows:
                return len(rows)
            return rowcount

        return self._run(affected)

    def execute_scalar(self) -> Any:
        """Execute the command and return the first column of the first row."""

        def first(cur: Any) -> Any:
            rows = _fetch_all(cur)
            return _first_value(cur, rows[0]) if rows else None

        return self._run(first)

    def execute_reader(self) -> Rows:
        """Execute the command and return all rows as normalized mappings."""

        return self._run(lambda cur: [_row_to_mapping(cur, row) for row in _fetch_all(cur)])

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        cur = self._cursor
        self._cursor = None
        close = getattr(cur, "close", None)
        if callable(close):
            close()

    def compile(self) -> Tuple[str, DriverParams]:
        """Translate command text into driver SQL and driver parameters."""

        if self.command_type is CommandType.STORED_PROCEDURE:
            return self._compile_procedure_call()
        return self._compile_text(self.command_text)

    def _execute(self) -> Any:
        if self._closed:
            raise InvalidOperationError("command is closed")
        if self.command_type is CommandType.TABLE_DIRECT:
            raise InvalidOperationError("CommandType.TABLE_DIRECT is not supported.")

        cur = self.conn.cursor()
        self._cursor = cur
        logger.debug(
            "Executing %s command: %s", self.command_type.value, self.command_text
        )

        if self.command_type is CommandType.STORED_PROCEDURE and callable(
            getattr(cur, "callproc", None)
        ):
            values = [_driver_value(p.value) for p in self.parameters.values()]
            returned = cur.callproc(self.command_text, values)
            self._read_output_values(returned)
            return cur

        sql, params = self.compile()
        if params is None:
            cur.execute(sql)
        else:
            cur.execute(sql, params)
        return cur

    def _run(self, fetch: Callable[[Any], Any]) -> Any:
        try:
            result = fetch(self._execute())
        except BaseException:
            self._end_implicit_transaction(commit=False)
            raise
        self._end_implicit_transaction(commit=True)
        return result

    def _end_implicit_transaction(self, *, commit: bool) -> None:
        if self.enlisted:
            return
        end = getattr(self.conn, "commit" if commit else "rollback", None)
        if callable(end):
            end()

    def _read_output_values(self, returned: Any) -> None:
        """Copy values returned by `callproc` into non-input parameters."""

        if returned is None:
            return
        values = list(returned)
        if len(values) != len(self.parameters):
            return
        for param, value in zip(self.parameters.values(), values):
            if not param.is_input_only:
                param.value = value

    def _compile_text(self, sql: str) -> Tuple[str, DriverParams]:
        if not self.parameters:
            return sql, None

        by_key = {self.dialect.param_key(name): p for name, p in self.parameters.items()}
        marker = re.escape(self.dialect.param_marker)
        pattern = re.compile(rf"(?<![\w{marker}]){marker}([A-Za-z_]\w*)")
        style = self.dialect.paramstyle
        named: Dict[str, Any] = {}
        positional: List[Any] = []

        if style in ("format", "pyformat"):
            sql = sql.replace("%", "%%")

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            param = by_key.get(key)
            if param is None:
                return match.group(0)
            value = _driver_value(param.value)
            if style in ("named", "pyformat"):
                named[key] = value
            else:
                positional.append(value)
            return self.dialect.placeholder(key)

        compiled = pattern.sub(substitute, sql)
        if style in ("named", "pyformat"):
            return compiled, named
        return compiled, positional

    def _compile_procedure_call(self) -> Tuple[str, DriverParams]:
        style = self.dialect.paramstyle
        arguments = []
        named: Dict[str, Any] = {}
        positional: List[Any] = []
        for name, param in self.parameters.items():
            key = self.dialect.param_key(name)
            arguments.append((self.dialect.param_name(key), self.dialect.placeholder(key)))
            if style in ("named", "pyformat"):
                named[key] = _driver_value(param.value)
            else:
                positional.append(_driver_value(param.value))

        sql = self.dialect.procedure_call_sql(self.command_text, arguments)
        if not arguments:
            return sql, None
        if style in ("named", "pyformat"):
            return sql, named
        return sql, positional


def _fetch_all(cursor: Any) -> List[Any]:
    if not getattr(cursor, "description", None):
        return []
    return list(cursor.fetchall())


def _driver_value(value: Any) -> Any:
    value = from_storage_null(value)
    if isinstance(value, TableValue):
        return list(value.rows)
    return value


def _first_value(cursor: Any, row: Any) -> Any:
    if isinstance(row, Mapping):
        desc = getattr(cursor, "description", None)
        if desc:
            return row[desc[0][0]]
        return next(iter(row.values()), None)
    return row[0]


def _row_to_mapping(cursor: Any, row: Any) -> RowMapping:
    """Normalize row object to mapping.

    Supports mapping rows directly and tuple/list rows via
    `cursor.description`.
    """

    if isinstance(row, Mapping):
        return dict(row)

    desc = getattr(cursor, "description", None)
    if not desc:
        raise TypeError("Cursor has no description; cannot map rows to dict.")
    cols = [d[0] for d in desc]
    try:
        values = list(row)
    except TypeError as exc:
        raise TypeError(f"Unsupported row type: {type(row)}") from exc
    return dict(zip(cols, values))
