"""Public core API for model metadata, command synthesis, and execution."""

from .command import CommandSpec, CommandType, Parameter, ParameterDirection
from .contracts import CommandPort, DialectPort, UnitOfWorkPort
from .errors import (
    ArgumentError,
    ArgumentNullError,
    DataExecutionError,
    InvalidOperationError,
    ModelDefinitionError,
    SqlBuilderError,
    SqlRunnerError,
)
from .metadata import (
    Column,
    DatabaseGenerated,
    ModelMetadata,
    SqlDbType,
    TableName,
    build_model_metadata,
    get_table_columns,
    get_table_name,
)
from .models import DataclassModel, get_field, model_fields, row_to_model
from .query_builder import QueryBuilder, QueryType
from .query_helpers import (
    InClauseQuery,
    TableValue,
    make_table_valued_parameter,
    parameterize_in_clause_query,
)
from .runner import SqlRunner
from .types import DB_NULL, DBNull

__all__ = [
    "ArgumentError",
    "ArgumentNullError",
    "Column",
    "CommandPort",
    "CommandSpec",
    "CommandType",
    "DB_NULL",
    "DBNull",
    "DataExecutionError",
    "DataclassModel",
    "DatabaseGenerated",
    "DialectPort",
    "InClauseQuery",
    "InvalidOperationError",
    "ModelDefinitionError",
    "ModelMetadata",
    "Parameter",
    "ParameterDirection",
    "QueryBuilder",
    "QueryType",
    "SqlBuilderError",
    "SqlDbType",
    "SqlRunner",
    "SqlRunnerError",
    "TableName",
    "TableValue",
    "UnitOfWorkPort",
    "build_model_metadata",
    "get_field",
    "get_table_columns",
    "get_table_name",
    "make_table_valued_parameter",
    "model_fields",
    "parameterize_in_clause_query",
    "row_to_model",
]
