"""Basic CRUD example for sqlrunner's SqlRunner."""

from __future__ import annotations

import sqlite3
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "sqlrunner").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from sqlrunner import QueryBuilder, QueryType, SQLiteDialect, SqlRunner, UnitOfWork


@dataclass
class AlbumDto:
    # Identity key: the database generates it and insert_for_id returns it.
    AlbumId: int = field(default=0, metadata={"pk": True, "generated": "identity"})
    Title: str = field(default="", metadata={"type": "nvarchar"})
    Price: Optional[float] = None


SCHEMA = """
CREATE TABLE "Album" (
    "AlbumId" INTEGER PRIMARY KEY AUTOINCREMENT,
    "Title" TEXT NOT NULL,
    "Price" REAL
);
"""


def main() -> None:
    # 1) Open a unit of work and create the table.
    conn = sqlite3.connect(":memory:")
    conn.executescript(SCHEMA)

    with UnitOfWork(conn, SQLiteDialect()) as uow:
        runner = SqlRunner(uow)

        # 2) Preview the generated SQL (AlbumDto maps to table "Album").
        builder = QueryBuilder(AlbumDto, QueryType.SELECT)
        builder.set_primary_key_values(1)
        print("SQL Server text:", builder.make_command_spec().command_text)

        # 3) Insert rows and read back identities.
        blue_id = runner.insert_for_id(AlbumDto(Title="Blue Train", Price=9.99))
        steps_id = runner.insert_for_id(AlbumDto(Title="Giant Steps"))
        print("Inserted ids:", blue_id, steps_id)

        # 4) Get by primary key.
        album = runner.get(AlbumDto, blue_id)
        print("Fetched by key:", album)

        # 5) Update (the instance carries its key).
        album.Price = 7.99
        print("Updated row count:", runner.update(album))

        # 6) Changes inside a transaction are discarded on rollback.
        uow.begin_transaction()
        runner.delete(AlbumDto, steps_id)
        print("Inside transaction:", runner.get_all(AlbumDto))
        uow.rollback()

        # 7) List all rows.
        print("All albums:", runner.get_all(AlbumDto))


if __name__ == "__main__":
    main()
