"""Metadata-driven CRUD command synthesis and execution over DB-API drivers."""

from .core import (
    DB_NULL,
    ArgumentError,
    ArgumentNullError,
    CommandSpec,
    CommandType,
    DataExecutionError,
    DatabaseGenerated,
    DBNull,
    InClauseQuery,
    InvalidOperationError,
    ModelDefinitionError,
    Parameter,
    ParameterDirection,
    QueryBuilder,
    QueryType,
    SqlBuilderError,
    SqlDbType,
    SqlRunner,
    SqlRunnerError,
    TableValue,
    build_model_metadata,
    get_table_columns,
    get_table_name,
    make_table_valued_parameter,
    parameterize_in_clause_query,
)
from .ports import DbApiCommand, Dialect, SQLiteDialect, SqlServerDialect, UnitOfWork

__all__ = [
    "ArgumentError",
    "ArgumentNullError",
    "CommandSpec",
    "CommandType",
    "DB_NULL",
    "DBNull",
    "DataExecutionError",
    "DatabaseGenerated",
    "DbApiCommand",
    "Dialect",
    "InClauseQuery",
    "InvalidOperationError",
    "ModelDefinitionError",
    "Parameter",
    "ParameterDirection",
    "QueryBuilder",
    "QueryType",
    "SQLiteDialect",
    "SqlBuilderError",
    "SqlDbType",
    "SqlRunner",
    "SqlRunnerError",
    "SqlServerDialect",
    "TableValue",
    "UnitOfWork",
    "build_model_metadata",
    "get_table_columns",
    "get_table_name",
    "make_table_valued_parameter",
    "parameterize_in_clause_query",
]
