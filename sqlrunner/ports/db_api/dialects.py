"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple


class Dialect:
    """Base dialect that defines quoting, parameter, and identity behavior.

    `param_marker` prefixes parameter names in generated SQL text, while
    `paramstyle` is the placeholder style the DB-API driver expects when the
    command is bound.
    """

    name: str = "generic"
    paramstyle: str = "named"
    quote_open: str = '"'
    quote_close: str = '"'
    param_marker: str = "@"
    supports_returning: bool = False

    def q(self, ident: str) -> str:
        """Quote SQL identifier."""

        escaped = ident.replace(self.quote_close, self.quote_close * 2)
        return f"{self.quote_open}{escaped}{self.quote_close}"

    def table(self, name: str, schema: Optional[str] = None) -> str:
        """Quote a table name, prefixed by its schema when present."""

        if schema is None or not schema.strip():
            return self.q(name)
        return f"{self.q(schema)}.{self.q(name)}"

    def param_name(self, base: str) -> str:
        """Return the parameter name used in generated SQL text."""

        return f"{self.param_marker}{base}"

    def param_key(self, name: str) -> str:
        """Strip the parameter marker from a parameter name."""

        if name.startswith(self.param_marker):
            return name[len(self.param_marker):]
        return name

    def placeholder(self, key: str) -> str:
        """Return driver parameter placeholder for current param style."""

        if self.paramstyle == "named":
            return f":{key}"
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        if self.paramstyle == "pyformat":
            return f"%({key})s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def returning_clause(self, column_name: str) -> str:
        """Return `RETURNING` clause when dialect supports it."""

        if self.supports_returning:
            return f" RETURNING {self.q(column_name)}"
        return ""

    def insert_sql(
        self,
        table_sql: str,
        columns_sql: str,
        values_sql: str,
        identity_column: Optional[str] = None,
    ) -> str:
        """Build an `INSERT` statement, returning the identity when given."""

        returning = self.returning_clause(identity_column) if identity_column else ""
        return (
            f"INSERT INTO {table_sql} ({columns_sql}) VALUES ({values_sql})"
            f"{returning};"
        )

    def procedure_call_sql(
        self, procedure: str, arguments: Sequence[Tuple[str, str]]
    ) -> str:
        """Build the statement used when the driver has no `callproc`.

        Args:
            procedure: Procedure name, used as given.
            arguments: `(parameter name, driver placeholder)` pairs.
        """

        args = ", ".join(placeholder for _, placeholder in arguments)
        return f"CALL {procedure}({args});"


class SqlServerDialect(Dialect):
    """SQL Server dialect (`[name]` identifiers, `@name` parameters).

    Identity values are returned with `OUTPUT INSERTED.[col]`. Binding uses
    `?` placeholders, as expected by ODBC drivers.
    """

    name = "sqlserver"
    paramstyle = "qmark"
    quote_open = "["
    quote_close = "]"
    supports_returning = False

    def insert_sql(
        self,
        table_sql: str,
        columns_sql: str,
        values_sql: str,
        identity_column: Optional[str] = None,
    ) -> str:
        if identity_column is None:
            return f"INSERT INTO {table_sql} ({columns_sql}) VALUES ({values_sql});"
        return (
            f"INSERT INTO {table_sql} ({columns_sql}) "
            f"OUTPUT INSERTED.{self.q(identity_column)} VALUES ({values_sql});"
        )

    def procedure_call_sql(
        self, procedure: str, arguments: Sequence[Tuple[str, str]]
    ) -> str:
        if not arguments:
            return f"EXEC {procedure};"
        args = ", ".join(f"{name} = {placeholder}" for name, placeholder in arguments)
        return f"EXEC {procedure} {args};"


class SQLiteDialect(Dialect):
    """SQLite dialect (`:name` binding, identity through `RETURNING`)."""

    name = "sqlite"
    paramstyle = "named"
    quote_open = '"'
    quote_close = '"'
    supports_returning = True
