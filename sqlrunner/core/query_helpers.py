"""Helpers for building table-valued and `IN (...)` clause parameters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Type

from .command import Parameter
from .contracts import DialectPort
from .errors import ArgumentError
from .metadata import SqlDbType
from .models import field_names, is_record_type
from .types import to_storage_null

DEFAULT_VALUE_COLUMN = "Value"
IN_CLAUSE_PLACEHOLDER = "{0}"
IN_CLAUSE_PARAM_PREFIX = "paramtag"

_IN_CLAUSE_RE = re.compile(r"in \(\{0\}\)", re.IGNORECASE)


@dataclass(frozen=True)
class TableValue:
    """In-memory table bound to a structured (table-valued) parameter.

    Attributes:
        columns: Column names in binding order.
        rows: One tuple per row, values in `columns` order.
    """

    columns: Tuple[str, ...]
    rows: List[Tuple[Any, ...]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class InClauseQuery:
    """Query text with one generated parameter per `IN` clause value."""

    text: str
    parameters: Tuple[Parameter, ...]


def make_table_valued_parameter(
    param_name: str,
    items: Iterable[Any],
    *column_names: str,
    model: Optional[Type[Any]] = None,
) -> Parameter:
    """Convert a sequence into a structured (table-valued) parameter.

    Scalars produce a single column named by the first column name or
    `"Value"`. Dataclass records use `column_names` when given, otherwise
    every public field in declaration order.

    Args:
        param_name: Parameter name, e.g. `"@Ids"`.
        items: Scalars or dataclass instances.
        column_names: Optional column names.
        model: Element type; inferred from the first item when omitted.

    Returns:
        Parameter with `SqlDbType.STRUCTURED` and a `TableValue` value.
    """

    data = list(items)
    element_type = model
    if element_type is None and data:
        element_type = type(data[0])

    if element_type is None or not is_record_type(element_type):
        column = column_names[0] if column_names else DEFAULT_VALUE_COLUMN
        table = TableValue(columns=(column,), rows=[(item,) for item in data])
    else:
        columns = tuple(column_names) if column_names else tuple(field_names(element_type))
        table = TableValue(columns=columns, rows=[_record_row(item, columns) for item in data])

    return Parameter(name=param_name, value=table, sql_db_type=SqlDbType.STRUCTURED)


def parameterize_in_clause_query(
    query: str,
    in_clause_data: Optional[Sequence[Any]],
    *,
    dialect: Optional[DialectPort] = None,
) -> InClauseQuery:
    """Replace the `in ({0})` placeholder with generated parameters.

    Args:
        query: Query such as `"select * from t where c in ({0});"`.
        in_clause_data: Values for the `IN` clause, in order.
        dialect: Dialect providing the parameter marker.

    Returns:
        Terminated query text and one parameter per value, in input order.

    Raises:
        ArgumentError: For a blank query, a query without `in ({0})`, or
            missing values.
    """

    if query is None or not query.strip():
        raise ArgumentError("A query is required.", "query")
    if not _IN_CLAUSE_RE.search(query):
        raise ArgumentError("The query does not contain an IN clause.", "query")
    values = list(in_clause_data) if in_clause_data is not None else []
    if not values:
        raise ArgumentError("Data for the IN clause is required.", "in_clause_data")

    marker = dialect.param_marker if dialect is not None else "@"
    param_names = [f"{marker}{IN_CLAUSE_PARAM_PREFIX}{i}" for i in range(len(values))]

    text = query.replace(IN_CLAUSE_PLACEHOLDER, ",".join(param_names)).rstrip()
    if not text.endswith(";"):
        text += ";"

    parameters = tuple(
        Parameter(name=name, value=to_storage_null(value))
        for name, value in zip(param_names, values)
    )
    return InClauseQuery(text=text, parameters=parameters)


def _record_row(item: Any, columns: Sequence[str]) -> Tuple[Any, ...]:
    row = []
    for col in columns:
        try:
            row.append(getattr(item, col))
        except AttributeError as exc:
            raise ArgumentError(
                f"{type(item).__name__} has no member named {col!r}.", "column_names"
            ) from exc
    return tuple(row)
