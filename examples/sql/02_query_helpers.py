"""Raw commands, IN clauses, table-valued parameters, and error details."""

from __future__ import annotations

import logging
import sqlite3
import sys
from dataclasses import dataclass, field
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlrunner").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlrunner import (
    CommandSpec,
    DataExecutionError,
    Parameter,
    SQLiteDialect,
    SqlRunner,
    UnitOfWork,
    make_table_valued_parameter,
    parameterize_in_clause_query,
)


@dataclass
class Genre:
    GenreId: int = field(default=0, metadata={"pk": True})
    Name: str = ""


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    conn = sqlite3.connect(":memory:")
    conn.executescript(
        'CREATE TABLE "Genre" ("GenreId" INTEGER PRIMARY KEY, "Name" TEXT NOT NULL);'
    )

    with UnitOfWork(conn, SQLiteDialect()) as uow:
        runner = SqlRunner(uow)

        # 1) Insert through generated commands.
        for genre_id, name in enumerate(["Rock", "Jazz", "Blues", "Pop"], start=1):
            runner.insert(Genre(genre_id, name))

        # 2) Raw command with named parameters.
        spec = CommandSpec(
            'SELECT "GenreId", "Name" FROM "Genre" WHERE "Name" LIKE @Pattern;',
            [Parameter("@Pattern", "%o%")],
        )
        print("LIKE '%o%':", runner.execute_reader(Genre, spec))

        # 3) One parameter per IN clause value.
        query = parameterize_in_clause_query(
            'SELECT "GenreId", "Name" FROM "Genre" WHERE "GenreId" IN ({0})', [1, 3]
        )
        print("IN clause text:", query.text)
        print("IN clause rows:", runner.execute_reader(Genre, CommandSpec(query.text, query.parameters)))

        # 4) Table-valued parameters are built for servers that accept them.
        tvp = make_table_valued_parameter("@Genres", [Genre(5, "Folk"), Genre(6, "Soul")])
        print("Table-valued columns:", tvp.value.columns, "rows:", tvp.value.rows)

        # 5) Backend failures carry the command and a diagnostic block.
        try:
            runner.execute_scalar(CommandSpec('SELECT COUNT(*) FROM "Missing";'))
        except DataExecutionError as exc:
            print("Failed command:", exc.command_text)
            print(exc.detail)


if __name__ == "__main__":
    main()
