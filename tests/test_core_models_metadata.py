from __future__ import annotations

import unittest
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Union

from sqlrunner.core.errors import ArgumentNullError, ModelDefinitionError
from sqlrunner.core.metadata import (
    Column,
    DatabaseGenerated,
    SqlDbType,
    TableName,
    build_model_metadata,
    get_table_columns,
    get_table_name,
    parse_sql_db_type,
)
from sqlrunner.core.models import (
    field_column_names,
    field_values,
    get_field,
    is_optional_hint,
    model_fields,
    require_dataclass_model,
    row_accessors,
    row_to_model,
)
from sqlrunner.core.types import DB_NULL


@dataclass
class Album:
    AlbumId: int = field(default=0, metadata={"pk": True, "generated": "identity"})
    GenreId: int = 0
    ArtistId: int = 0
    Title: str = ""
    Price: Optional[Decimal] = None


@dataclass
class ArtistDto:
    ArtistId: int = field(default=0, metadata={"pk": True})
    Name: str = ""


@dataclass
class Dto:
    Id: int = field(default=0, metadata={"pk": True})


@dataclass
class SomeModel:
    __table__ = "Album"
    __schema__ = "music"

    MemberA: int = field(
        default=0,
        metadata={"pk": True, "generated": "identity", "column": "AlbumId"},
    )
    MemberB: int = field(default=0, metadata={"column": "GenreId"})
    MemberC: str = field(default="", metadata={"column": "Title", "type": "NVarChar"})
    MemberD: int = field(default=0, metadata={"generated": DatabaseGenerated.COMPUTED})


@dataclass
class BlankOptions:
    __table__ = "   "
    __schema__ = ""

    Id: int = field(default=0, metadata={"pk": True, "column": " "})


@dataclass
class Rating:
    AlbumId: int = field(default=0, metadata={"pk": True})
    RatingDate: str = field(default="", metadata={"pk": True})
    Stars: Decimal = Decimal("0")


@dataclass
class NullableKey:
    Id: Optional[int] = field(default=None, metadata={"pk": True})


@dataclass
class UnionNullableKey:
    Id: Union[int, None] = field(default=None, metadata={"pk": True})


@dataclass
class PipeNullableKey:
    Id: int | None = field(default=None, metadata={"pk": True})


@dataclass
class TwoIdentities:
    Id1: int = field(default=0, metadata={"pk": True, "generated": "identity"})
    Id2: int = field(default=0, metadata={"pk": True, "generated": "identity"})


@dataclass
class DuplicateColumns:
    Id: int = field(default=0, metadata={"pk": True})
    Name: str = field(default="", metadata={"column": "Id"})


@dataclass
class BadGenerated:
    Id: int = field(default=0, metadata={"generated": "sometimes"})


@dataclass
class OnlyPrivate:
    _hidden: int = 0


@dataclass
class WithLateField:
    Id: int = 0
    Label: str = field(default="", init=False)


@dataclass
class NoDefaults:
    Id: int = field(metadata={"pk": True, "generated": "identity"})
    Name: str
    Note: Optional[str]
    Tags: list[str] = field(default_factory=list)
    Rank: int = 5


@dataclass
class HyphenColumn:
    Id: int = field(default=0, metadata={"pk": True})
    UnitPrice: float = field(default=0.0, metadata={"column": "Unit-Price"})


@dataclass
class UnresolvedUnionKey:
    Id: Union[int, None] = field(default=None, metadata={"pk": True})
    Owner: UnknownOwner = None  # noqa: F821


class PlainModel:
    pass


class TableNameTests(unittest.TestCase):
    def test_class_name_is_table_name(self) -> None:
        self.assertEqual(get_table_name(Album), TableName("Album"))

    def test_dto_suffix_is_removed(self) -> None:
        self.assertEqual(get_table_name(ArtistDto).name, "Artist")

    def test_name_equal_to_suffix_is_kept(self) -> None:
        self.assertEqual(get_table_name(Dto).name, "Dto")

    def test_explicit_table_and_schema(self) -> None:
        self.assertEqual(get_table_name(SomeModel), TableName("Album", "music"))

    def test_blank_table_options_are_ignored(self) -> None:
        self.assertEqual(get_table_name(BlankOptions), TableName("BlankOptions"))


class TableColumnsTests(unittest.TestCase):
    def test_columns_follow_declaration_order(self) -> None:
        columns = get_table_columns(Album)

        self.assertEqual(
            [c.name for c in columns], ["AlbumId", "GenreId", "ArtistId", "Title", "Price"]
        )
        self.assertEqual(
            columns[0],
            Column(id="AlbumId", name="AlbumId", is_primary_key=True, is_identity=True),
        )
        self.assertFalse(any(c.is_primary_key for c in columns[1:]))

    def test_storage_names_and_types(self) -> None:
        columns = {c.id: c for c in get_table_columns(SomeModel)}

        self.assertEqual(columns["MemberA"].name, "AlbumId")
        self.assertTrue(columns["MemberA"].is_identity)
        self.assertEqual(columns["MemberC"].name, "Title")
        self.assertEqual(columns["MemberC"].sql_db_type, SqlDbType.NVARCHAR)
        self.assertEqual(columns["MemberD"].name, "MemberD")
        self.assertTrue(columns["MemberD"].is_computed)

    def test_blank_column_name_falls_back_to_member(self) -> None:
        self.assertEqual(get_table_columns(BlankOptions)[0].name, "Id")

    def test_composite_key(self) -> None:
        columns = get_table_columns(Rating)
        self.assertEqual([c.id for c in columns if c.is_primary_key], ["AlbumId", "RatingDate"])

    def test_nullable_primary_key_raises(self) -> None:
        for model in (NullableKey, UnionNullableKey, PipeNullableKey):
            with self.subTest(model=model.__name__):
                with self.assertRaisesRegex(ModelDefinitionError, "nullable primary key"):
                    get_table_columns(model)

    def test_multiple_identity_keys_raise(self) -> None:
        with self.assertRaisesRegex(ModelDefinitionError, "multiple identity primary keys"):
            get_table_columns(TwoIdentities)

    def test_duplicate_column_names_raise(self) -> None:
        with self.assertRaisesRegex(ModelDefinitionError, "same column name"):
            get_table_columns(DuplicateColumns)

    def test_column_name_must_be_a_parameter_name(self) -> None:
        with self.assertRaisesRegex(ModelDefinitionError, "Unit-Price"):
            get_table_columns(HyphenColumn)

    def test_nullable_key_is_detected_from_unresolved_hints(self) -> None:
        with self.assertRaisesRegex(ModelDefinitionError, "nullable primary key"):
            get_table_columns(UnresolvedUnionKey)

    def test_unknown_generated_option_raises(self) -> None:
        with self.assertRaises(ModelDefinitionError):
            get_table_columns(BadGenerated)

    def test_private_fields_are_not_columns(self) -> None:
        self.assertEqual(get_table_columns(OnlyPrivate), [])

    def test_non_dataclass_raises(self) -> None:
        with self.assertRaises(ModelDefinitionError):
            get_table_columns(PlainModel)
        with self.assertRaises(ModelDefinitionError):
            require_dataclass_model(Album(Title="x"))

    def test_unknown_type_name_is_none(self) -> None:
        self.assertIsNone(parse_sql_db_type("geography"))
        self.assertEqual(parse_sql_db_type(" INT "), SqlDbType.INT)
        self.assertEqual(parse_sql_db_type(SqlDbType.BIT), SqlDbType.BIT)


class ModelMetadataTests(unittest.TestCase):
    def test_derived_column_views(self) -> None:
        meta = build_model_metadata(SomeModel)

        self.assertEqual(meta.table, TableName("Album", "music"))
        self.assertEqual([c.id for c in meta.primary_keys], ["MemberA"])
        self.assertEqual(meta.identity_key.id, "MemberA")
        self.assertEqual([c.id for c in meta.updatable_columns], ["MemberB", "MemberC"])
        self.assertEqual([c.id for c in meta.insertable_columns], ["MemberB", "MemberC"])

    def test_model_without_identity(self) -> None:
        meta = build_model_metadata(Rating)

        self.assertIsNone(meta.identity_key)
        self.assertEqual([c.id for c in meta.updatable_columns], ["Stars"])
        self.assertEqual(
            [c.id for c in meta.insertable_columns], ["AlbumId", "RatingDate", "Stars"]
        )

    def test_model_without_public_fields_raises(self) -> None:
        with self.assertRaisesRegex(ModelDefinitionError, "any public properties"):
            build_model_metadata(OnlyPrivate)


class ReflectionHelperTests(unittest.TestCase):
    def test_get_field_ignores_case(self) -> None:
        self.assertEqual(get_field(Album, "title").name, "Title")
        self.assertIsNone(get_field(Album, "Missing"))

    def test_get_field_requires_name(self) -> None:
        with self.assertRaises(ArgumentNullError):
            get_field(Album, None)

    def test_field_values_and_column_names(self) -> None:
        album = Album(AlbumId=3, GenreId=1, ArtistId=2, Title="Blue")

        self.assertEqual(
            field_values(album),
            {"AlbumId": 3, "GenreId": 1, "ArtistId": 2, "Title": "Blue", "Price": None},
        )
        self.assertEqual(
            field_column_names(SomeModel),
            {"MemberA": "AlbumId", "MemberB": "GenreId", "MemberC": "Title", "MemberD": "MemberD"},
        )
        self.assertEqual([f.name for f in model_fields(OnlyPrivate)], [])

    def test_optional_hints(self) -> None:
        self.assertTrue(is_optional_hint(Optional[int]))
        self.assertTrue(is_optional_hint(int | None))
        self.assertTrue(is_optional_hint("Optional[int]"))
        self.assertTrue(is_optional_hint("int | None"))
        self.assertTrue(is_optional_hint("Union[int, None]"))
        self.assertTrue(is_optional_hint("typing.Union[None, str]"))
        self.assertFalse(is_optional_hint("Union[int, str]"))
        self.assertFalse(is_optional_hint(int))
        self.assertFalse(is_optional_hint("int"))


class RowMappingTests(unittest.TestCase):
    def test_row_to_model_uses_storage_names(self) -> None:
        row = {"AlbumId": 7, "GenreId": 1, "Title": "Kind of Blue", "MemberD": 9}

        obj = row_to_model(SomeModel, row, row_accessors(SomeModel))

        self.assertEqual(obj, SomeModel(MemberA=7, MemberB=1, MemberC="Kind of Blue", MemberD=9))

    def test_null_and_unknown_columns_are_skipped(self) -> None:
        row = {"AlbumId": 1, "Title": None, "Price": DB_NULL, "Extra": "ignored"}

        obj = row_to_model(Album, row, row_accessors(Album))

        self.assertEqual(obj.AlbumId, 1)
        self.assertEqual(obj.Title, "")
        self.assertIsNone(obj.Price)

    def test_storage_name_match_is_case_sensitive(self) -> None:
        obj = row_to_model(Album, {"albumid": 5}, row_accessors(Album))
        self.assertEqual(obj.AlbumId, 0)

    def test_non_init_fields_are_assigned_after_construction(self) -> None:
        obj = row_to_model(
            WithLateField, {"Id": 2, "Label": "late"}, row_accessors(WithLateField)
        )

        self.assertEqual(obj.Id, 2)
        self.assertEqual(obj.Label, "late")

    def test_missing_and_null_columns_fill_fields_without_defaults(self) -> None:
        obj = row_to_model(
            NoDefaults, {"Id": 4, "Note": None, "Tags": DB_NULL}, row_accessors(NoDefaults)
        )

        self.assertEqual(obj, NoDefaults(Id=4, Name=None, Note=None, Tags=[], Rank=5))


if __name__ == "__main__":
    unittest.main()
