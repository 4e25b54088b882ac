"""DB-API unit of work, command, and dialect exports."""

from .command import DbApiCommand
from .dialects import Dialect, SQLiteDialect, SqlServerDialect
from .unit_of_work import UnitOfWork

__all__ = [
    "DbApiCommand",
    "Dialect",
    "SQLiteDialect",
    "SqlServerDialect",
    "UnitOfWork",
]
