from __future__ import annotations

import unittest
from dataclasses import dataclass, field

from sqlrunner.core.errors import ArgumentError
from sqlrunner.core.metadata import SqlDbType
from sqlrunner.core.query_helpers import (
    TableValue,
    make_table_valued_parameter,
    parameterize_in_clause_query,
)
from sqlrunner.core.types import DB_NULL


@dataclass
class Track:
    TrackId: int = 0
    Name: str = ""
    Seconds: int = 0
    _cache: str = field(default="", repr=False)


@dataclass
class Empty:
    _unused: int = 0


class _AtDialect:
    param_marker = "@"


class _ColonDialect:
    param_marker = ":"


class TableValuedParameterTests(unittest.TestCase):
    def test_scalars_use_default_column(self) -> None:
        param = make_table_valued_parameter("@Ids", [3, 1, 2])

        self.assertEqual(param.name, "@Ids")
        self.assertEqual(param.sql_db_type, SqlDbType.STRUCTURED)
        self.assertEqual(param.value, TableValue(columns=("Value",), rows=[(3,), (1,), (2,)]))
        self.assertEqual(len(param.value), 3)

    def test_scalars_use_first_column_name(self) -> None:
        param = make_table_valued_parameter("@Names", ["a", "b"], "Name", "Ignored")
        self.assertEqual(param.value.columns, ("Name",))
        self.assertEqual(param.value.rows, [("a",), ("b",)])

    def test_records_use_public_fields_in_order(self) -> None:
        tracks = [Track(1, "Intro", 60), Track(2, "Outro", 90)]

        param = make_table_valued_parameter("@Tracks", tracks)

        self.assertEqual(param.value.columns, ("TrackId", "Name", "Seconds"))
        self.assertEqual(param.value.rows, [(1, "Intro", 60), (2, "Outro", 90)])

    def test_records_use_selected_columns(self) -> None:
        param = make_table_valued_parameter("@Tracks", [Track(1, "Intro", 60)], "Name", "TrackId")

        self.assertEqual(param.value.columns, ("Name", "TrackId"))
        self.assertEqual(param.value.rows, [("Intro", 1)])

    def test_unknown_record_column_raises(self) -> None:
        with self.assertRaises(ArgumentError):
            make_table_valued_parameter("@Tracks", [Track()], "Missing")

    def test_empty_input_keeps_columns(self) -> None:
        scalar = make_table_valued_parameter("@Ids", [])
        records = make_table_valued_parameter("@Tracks", [], model=Track)

        self.assertEqual(scalar.value, TableValue(columns=("Value",), rows=[]))
        self.assertEqual(records.value, TableValue(columns=("TrackId", "Name", "Seconds"), rows=[]))

    def test_record_without_public_fields_has_no_columns(self) -> None:
        param = make_table_valued_parameter("@Rows", [Empty(), Empty()])

        self.assertEqual(param.value.columns, ())
        self.assertEqual(param.value.rows, [(), ()])

    def test_input_iterable_is_consumed_once(self) -> None:
        param = make_table_valued_parameter("@Ids", (i * 2 for i in range(3)))
        self.assertEqual(param.value.rows, [(0,), (2,), (4,)])


class InClauseTests(unittest.TestCase):
    def test_parameters_replace_placeholder(self) -> None:
        result = parameterize_in_clause_query("select * from T where C in ({0})", [1, 2, None])

        self.assertEqual(
            result.text, "select * from T where C in (@paramtag0,@paramtag1,@paramtag2);"
        )
        self.assertEqual(
            [(p.name, p.value) for p in result.parameters],
            [("@paramtag0", 1), ("@paramtag1", 2), ("@paramtag2", DB_NULL)],
        )

    def test_terminated_query_is_not_terminated_twice(self) -> None:
        result = parameterize_in_clause_query("SELECT Id FROM T WHERE Id IN ({0});", ["x"])
        self.assertEqual(result.text, "SELECT Id FROM T WHERE Id IN (@paramtag0);")

    def test_dialect_marker_is_used(self) -> None:
        at = parameterize_in_clause_query("select 1 where 1 in ({0})", [1], dialect=_AtDialect())
        colon = parameterize_in_clause_query(
            "select 1 where 1 in ({0})", [1], dialect=_ColonDialect()
        )

        self.assertEqual(at.parameters[0].name, "@paramtag0")
        self.assertEqual(colon.text, "select 1 where 1 in (:paramtag0);")

    def test_invalid_input_raises(self) -> None:
        cases = [
            ("blank", "  ", [1], "A query is required."),
            ("none", None, [1], "A query is required."),
            ("no_in_clause", "select * from T where C = {0}", [1], "does not contain an IN clause"),
            ("empty_data", "select * from T where C in ({0})", [], "Data for the IN clause"),
            ("no_data", "select * from T where C in ({0})", None, "Data for the IN clause"),
        ]
        for name, query, data, message in cases:
            with self.subTest(name=name):
                with self.assertRaisesRegex(ArgumentError, message):
                    parameterize_in_clause_query(query, data)


if __name__ == "__main__":
    unittest.main()
