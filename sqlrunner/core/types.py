"""Shared core type aliases and the database-null sentinel."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]


class DBNull:
    """Marker for an explicit SQL `NULL` bound to a parameter."""

    _instance: Optional[DBNull] = None

    def __new__(cls) -> DBNull:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "DBNull"


DB_NULL = DBNull()


def to_storage_null(value: Any) -> Any:
    """Return `DB_NULL` for `None`, otherwise the value unchanged."""

    return DB_NULL if value is None else value


def from_storage_null(value: Any) -> Any:
    """Return `None` for `DB_NULL`, otherwise the value unchanged."""

    return None if value is DB_NULL else value


def is_storage_null(value: Any) -> bool:
    return value is None or value is DB_NULL
