"""Model metadata extraction used by SQL command synthesis."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, List, Optional, Type, TypeVar

from .errors import ModelDefinitionError
from .models import (
    DataclassModel,
    class_option,
    column_name,
    field_option,
    field_type_hints,
    is_optional_hint,
    model_fields,
    require_dataclass_model,
)

T = TypeVar("T", bound=DataclassModel)

TABLE_NAME_SUFFIX = "dto"

# Storage names double as parameter names (`@Name`).
_PARAMETER_NAME_RE = re.compile(r"[A-Za-z_]\w*\Z")


class SqlDbType(str, Enum):
    """Storage types a column or parameter can be pinned to."""

    BIGINT = "bigint"
    BINARY = "binary"
    BIT = "bit"
    CHAR = "char"
    DATE = "date"
    DATETIME = "datetime"
    DATETIME2 = "datetime2"
    DATETIMEOFFSET = "datetimeoffset"
    DECIMAL = "decimal"
    FLOAT = "float"
    IMAGE = "image"
    INT = "int"
    MONEY = "money"
    NCHAR = "nchar"
    NTEXT = "ntext"
    NVARCHAR = "nvarchar"
    REAL = "real"
    SMALLDATETIME = "smalldatetime"
    SMALLINT = "smallint"
    SMALLMONEY = "smallmoney"
    STRUCTURED = "structured"
    TEXT = "text"
    TIME = "time"
    TIMESTAMP = "timestamp"
    TINYINT = "tinyint"
    UDT = "udt"
    UNIQUEIDENTIFIER = "uniqueidentifier"
    VARBINARY = "varbinary"
    VARCHAR = "varchar"
    VARIANT = "variant"
    XML = "xml"


class DatabaseGenerated(str, Enum):
    """How the database produces a column value."""

    NONE = "none"
    IDENTITY = "identity"
    COMPUTED = "computed"


@dataclass(frozen=True)
class Column:
    """One mapped column of a model.

    Attributes:
        id: Member name on the model.
        name: Storage (column) name in the table.
    """

    id: str
    name: str
    is_primary_key: bool = False
    is_identity: bool = False
    is_computed: bool = False
    sql_db_type: Optional[SqlDbType] = None


@dataclass(frozen=True)
class TableName:
    """Table identifier with optional schema."""

    name: str
    schema: Optional[str] = None


@dataclass(frozen=True)
class ModelMetadata(Generic[T]):
    """Normalized model description used by the query builder."""

    model: Type[T]
    table: TableName
    columns: List[Column]

    @property
    def primary_keys(self) -> List[Column]:
        return [c for c in self.columns if c.is_primary_key]

    @property
    def identity_key(self) -> Optional[Column]:
        """Primary key column generated by the database, if any."""

        return next(
            (c for c in self.columns if c.is_primary_key and c.is_identity), None
        )

    @property
    def updatable_columns(self) -> List[Column]:
        return [
            c
            for c in self.columns
            if not (c.is_identity or c.is_computed or c.is_primary_key)
        ]

    @property
    def insertable_columns(self) -> List[Column]:
        return [c for c in self.columns if not (c.is_identity or c.is_computed)]

    def column(self, member: str) -> Column:
        return next(c for c in self.columns if c.id == member)


def parse_sql_db_type(raw: Any) -> Optional[SqlDbType]:
    """Parse a storage type name case-insensitively.

    Unknown names yield `None` so the driver infers the type.
    """

    if raw is None or isinstance(raw, SqlDbType):
        return raw
    if isinstance(raw, str):
        try:
            return SqlDbType(raw.strip().lower())
        except ValueError:
            return None
    return None


def parse_database_generated(raw: Any, *, context: str) -> DatabaseGenerated:
    if raw is None:
        return DatabaseGenerated.NONE
    if isinstance(raw, DatabaseGenerated):
        return raw
    if isinstance(raw, str):
        try:
            return DatabaseGenerated(raw.strip().lower())
        except ValueError as exc:
            raise ModelDefinitionError(
                f"{context} has unsupported 'generated' option {raw!r}. "
                "Use 'identity', 'computed', or 'none'."
            ) from exc
    raise ModelDefinitionError(
        f"{context} has unsupported 'generated' option {raw!r}."
    )


def get_table_name(model: Type[DataclassModel]) -> TableName:
    """Resolve the table identifier of a model.

    Uses `__table__` / `__schema__` when present, otherwise the class name
    with a trailing "Dto" removed (case-insensitive).
    """

    name = class_option(model, "__table__")
    schema = class_option(model, "__schema__")

    if not isinstance(name, str):
        name = _strip_suffix(model.__name__, TABLE_NAME_SUFFIX)

    return TableName(name=name, schema=schema if isinstance(schema, str) else None)


def get_table_columns(model: Type[DataclassModel]) -> List[Column]:
    """Build column descriptors from dataclass fields and their metadata.

    Args:
        model: Dataclass model type.

    Returns:
        Columns in field declaration order. Empty when the model has no
        public fields.

    Raises:
        ModelDefinitionError: For nullable keys, multiple identity keys,
            duplicate column names, or column names that cannot be bound
            as parameter names.
    """

    require_dataclass_model(model)
    hints = field_type_hints(model)
    columns: List[Column] = []

    for field in model_fields(model):
        context = f"{model.__name__}.{field.name}"
        is_pk = bool(field_option(field, "pk", False))
        if is_pk and is_optional_hint(hints.get(field.name, field.type)):
            raise ModelDefinitionError("The model has a nullable primary key.")

        name = column_name(field)
        if not _PARAMETER_NAME_RE.match(name):
            raise ModelDefinitionError(
                f"{context} uses column name {name!r}, which is not a valid "
                "parameter name."
            )

        generated = parse_database_generated(
            field.metadata.get("generated"), context=context
        )

        columns.append(
            Column(
                id=field.name,
                name=name,
                is_primary_key=is_pk,
                is_identity=generated is DatabaseGenerated.IDENTITY,
                is_computed=generated is DatabaseGenerated.COMPUTED,
                sql_db_type=parse_sql_db_type(field_option(field, "type")),
            )
        )

    if sum(1 for c in columns if c.is_primary_key and c.is_identity) > 1:
        raise ModelDefinitionError("The model has multiple identity primary keys.")

    name_counts = Counter(c.name for c in columns)
    if any(count > 1 for count in name_counts.values()):
        raise ModelDefinitionError(
            "The model uses the same column name for multiple properties."
        )

    return columns


def build_model_metadata(model: Type[T]) -> ModelMetadata[T]:
    """Build model metadata from dataclass annotations and field metadata.

    Metadata is recomputed on every call.

    Raises:
        ModelDefinitionError: If the model is not a dataclass, has no public
            fields, or its annotations are inconsistent.
    """

    columns = get_table_columns(model)
    if not columns:
        raise ModelDefinitionError("The model does not contain any public properties.")

    return ModelMetadata(model=model, table=get_table_name(model), columns=columns)


def _strip_suffix(name: str, suffix: str) -> str:
    if len(name) > len(suffix) and name.lower().endswith(suffix.lower()):
        return name[: -len(suffix)]
    return name
