"""Public port exports for concrete adapter implementations."""

from .db_api import DbApiCommand, Dialect, SQLiteDialect, SqlServerDialect, UnitOfWork

__all__ = [
    "DbApiCommand",
    "Dialect",
    "SQLiteDialect",
    "SqlServerDialect",
    "UnitOfWork",
]
