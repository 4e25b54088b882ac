"""Model utilities for reading dataclass annotations and member values."""

from __future__ import annotations

import types
from dataclasses import MISSING, Field, fields, is_dataclass
from typing import (
    Any,
    ClassVar,
    Dict,
    List,
    Optional,
    Protocol,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from .errors import ArgumentNullError, ModelDefinitionError
from .types import is_storage_null


class DataclassModel(Protocol):
    """Protocol for supported dataclass model types."""

    __dataclass_fields__: ClassVar[dict[str, Any]]


T = TypeVar("T", bound=DataclassModel)


def require_dataclass_model(cls: Type[Any]) -> None:
    """Validate that a class is a dataclass model."""

    if not isinstance(cls, type) or not is_dataclass(cls):
        name = getattr(cls, "__name__", type(cls).__name__)
        raise ModelDefinitionError(f"{name} must be a dataclass.")


def class_option(model_or_cls: Any, name: str, default: Any = None) -> Any:
    """Read a class-level model annotation such as `__table__`.

    Blank strings are treated as absent.
    """

    cls = model_or_cls if isinstance(model_or_cls, type) else type(model_or_cls)
    value = getattr(cls, name, default)
    if isinstance(value, str) and not value.strip():
        return default
    return value


def field_option(field: Field[Any], key: str, default: Any = None) -> Any:
    """Read one field metadata value, treating blank strings as absent."""

    value = field.metadata.get(key, default)
    if isinstance(value, str) and not value.strip():
        return default
    return value


def model_fields(cls: Type[DataclassModel]) -> List[Field[Any]]:
    """Return public dataclass fields in declaration order."""

    require_dataclass_model(cls)
    return [f for f in fields(cls) if not f.name.startswith("_")]


def field_names(cls: Type[DataclassModel]) -> List[str]:
    return [f.name for f in model_fields(cls)]


def get_field(cls: Type[DataclassModel], name: str) -> Optional[Field[Any]]:
    """Look up a public field by name, ignoring case.

    Raises:
        ArgumentNullError: If `name` is `None`.
    """

    if name is None:
        raise ArgumentNullError("A member name is required.", "name")
    wanted = name.lower()
    for f in model_fields(cls):
        if f.name.lower() == wanted:
            return f
    return None


def field_values(obj: DataclassModel) -> Dict[str, Any]:
    """Return public member values of a model instance, keyed by member name.

    Values are read as-is (no recursive conversion like `asdict`).
    """

    return {f.name: getattr(obj, f.name) for f in model_fields(type(obj))}


def column_name(field: Field[Any]) -> str:
    """Storage name of a member: `metadata['column']` or the member name."""

    name = field_option(field, "column")
    return name if isinstance(name, str) else field.name


def field_column_names(cls: Type[DataclassModel]) -> Dict[str, str]:
    """Map member name to storage name for every public field."""

    return {f.name: column_name(f) for f in model_fields(cls)}


def field_type_hints(cls: Type[DataclassModel]) -> Dict[str, Any]:
    """Resolve field annotations, falling back to raw annotations."""

    try:
        return get_type_hints(cls)
    except (NameError, TypeError):
        return {f.name: f.type for f in fields(cls)}


def is_optional_hint(annotation: Any) -> bool:
    """Return whether a type hint admits `None`."""

    if annotation is None or annotation is type(None):
        return True
    if isinstance(annotation, str):
        text = annotation.replace(" ", "")
        if text.startswith(("Union[", "typing.Union[")) and text.endswith("]"):
            args = text[text.index("[") + 1 : -1].split(",")
            return "None" in args or "NoneType" in args
        return (
            text.startswith(("Optional[", "typing.Optional["))
            or "|None" in text
            or "None|" in text
        )
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        return type(None) in get_args(annotation)
    return False


def is_record_type(value_or_cls: Any) -> bool:
    """Return whether a value or class is a dataclass record (not a scalar)."""

    return is_dataclass(value_or_cls)


def row_to_model(
    cls: Type[T],
    row: Dict[str, Any],
    accessors: Dict[str, Field[Any]],
) -> T:
    """Map one row mapping to a model instance.

    Args:
        cls: Dataclass model type.
        row: Column name to value mapping from the driver.
        accessors: Storage name to field table (see `row_accessors`).

    Columns without a matching member and `NULL` values are skipped, so
    the member keeps its dataclass default. Constructor fields that are
    still unset get their default, their `default_factory()`, or `None`.
    """

    init_values: Dict[str, Any] = {}
    late_values: Dict[str, Any] = {}
    for col, value in row.items():
        field = accessors.get(col)
        if field is None or is_storage_null(value):
            continue
        if field.init:
            init_values[field.name] = value
        else:
            late_values[field.name] = value

    for f in fields(cls):
        if f.init and f.name not in init_values:
            init_values[f.name] = _field_default(f)

    obj = cls(**init_values)
    for name, value in late_values.items():
        setattr(obj, name, value)
    return obj


def _field_default(field: Field[Any]) -> Any:
    if field.default is not MISSING:
        return field.default
    if field.default_factory is not MISSING:
        return field.default_factory()
    return None


def row_accessors(cls: Type[DataclassModel]) -> Dict[str, Field[Any]]:
    """Build the storage name to field table used for row mapping."""

    return {column_name(f): f for f in model_fields(cls)}
