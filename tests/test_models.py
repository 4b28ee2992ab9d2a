"""
tests/test_models.py
Unit tests for blockschema.models.

Tests cover:
- TableDefinition construction, immutability of the name, serialization
- ElementDefinition aliases
- PackageDeclaration name handling and derived properties
- CompilerConfig naming policy and bounds
"""

from __future__ import annotations

from typing import Any, Dict

import pytest
from pydantic import ValidationError as PydanticValidationError

from blockschema.models import (
    BlockDeclaration,
    CompilerConfig,
    ElementDefinition,
    FieldDefinition,
    PackageDeclaration,
    TableDefinition,
)


# ===========================================================================
# FieldDefinition
# ===========================================================================


class TestFieldDefinition:

    def test_collection_detection(self) -> None:
        field = FieldDefinition(identifier="slides", config={"type": "Collection"})
        assert field.is_collection
        assert field.field_type == "Collection"

    def test_plain_field(self) -> None:
        field = FieldDefinition(identifier="header", config={"type": "Text"})
        assert not field.is_collection
        assert field.to_dict() == {"identifier": "header", "config": {"type": "Text"}}

    def test_empty_identifier_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            FieldDefinition(identifier="")


# ===========================================================================
# TableDefinition
# ===========================================================================


class TestTableDefinition:

    def test_defaults(self) -> None:
        definition = TableDefinition(table="tt_content")
        assert definition.fields == {}
        assert definition.elements == []
        assert definition.type_field is None
        assert definition.is_root_table is True
        assert definition.is_aggregate_root is None

    def test_create_from_table_dict(self) -> None:
        definition = TableDefinition.create_from_table_dict(
            "tt_content",
            {
                "fields": {
                    "cb_foo-bar_header": {
                        "identifier": "cb_foo-bar_header",
                        "config": {"identifier": "header", "type": "Text"},
                    }
                },
                "typeField": "CType",
                "isRootTable": True,
                "isAggregateRoot": True,
            },
        )
        assert definition.table == "tt_content"
        assert definition.column_names == ["cb_foo-bar_header"]
        assert definition.has_field("cb_foo-bar_header")
        assert definition.get_field("missing") is None
        assert definition.type_field == "CType"

    def test_create_from_empty_dict(self) -> None:
        definition = TableDefinition.create_from_table_dict("empty")
        assert definition.table == "empty"
        assert definition.fields == {}

    def test_name_argument_wins_over_payload(self) -> None:
        definition = TableDefinition.create_from_table_dict("a", {"table": "b"})
        assert definition.table == "a"

    def test_table_name_is_immutable(self) -> None:
        definition = TableDefinition(table="tt_content")
        with pytest.raises(PydanticValidationError):
            definition.table = "pages"

    def test_table_name_whitespace_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            TableDefinition(table=" tt_content")

    def test_field_key_must_match_identifier(self) -> None:
        with pytest.raises(PydanticValidationError):
            TableDefinition(
                table="t",
                fields={"a": {"identifier": "b", "config": {}}},
            )

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            TableDefinition.create_from_table_dict("t", {"colour": "blue"})

    def test_field_order_is_preserved(self) -> None:
        fields: Dict[str, Any] = {
            name: {"identifier": name, "config": {}} for name in ("z", "a", "m")
        }
        definition = TableDefinition(table="t", fields=fields)
        assert definition.column_names == ["z", "a", "m"]
        assert list(definition.to_dict()["fields"]) == ["z", "a", "m"]

    def test_to_dict_child_table(self) -> None:
        definition = TableDefinition.create_from_table_dict(
            "child",
            {
                "fields": {"a": {"identifier": "a", "config": {"identifier": "a"}}},
                "isRootTable": False,
                "isAggregateRoot": False,
            },
        )
        assert definition.to_dict() == {
            "fields": {"a": {"identifier": "a", "config": {"identifier": "a"}}},
            "isRootTable": False,
            "isAggregateRoot": False,
        }

    def test_to_dict_omits_unset_keys(self) -> None:
        data = TableDefinition(table="t").to_dict()
        assert data == {"fields": {}, "isRootTable": True}

    def test_to_dict_includes_elements(self) -> None:
        definition = TableDefinition(
            table="tt_content",
            elements=[ElementDefinition(composer_name="foo/bar", identifier="foo/bar")],
        )
        elements = definition.to_dict()["elements"]
        assert elements[0]["composerName"] == "foo/bar"
        assert elements[0]["columns"] == []


# ===========================================================================
# ElementDefinition
# ===========================================================================


class TestElementDefinition:

    def test_populate_by_alias_and_name(self) -> None:
        by_alias = ElementDefinition.model_validate(
            {"composerName": "foo/bar", "identifier": "foo/bar", "wizardGroup": "common"}
        )
        by_name = ElementDefinition(
            composer_name="foo/bar", identifier="foo/bar", wizard_group="common"
        )
        assert by_alias == by_name

    def test_to_dict_uses_wire_names(self) -> None:
        element = ElementDefinition(
            composer_name="foo/bar",
            identifier="foo/bar",
            public_path="p/",
            private_path="q/",
            icon_provider="svg",
        )
        data = element.to_dict()
        assert data["publicPath"] == "p/"
        assert data["privatePath"] == "q/"
        assert data["iconProvider"] == "svg"
        assert "public_path" not in data


# ===========================================================================
# PackageDeclaration
# ===========================================================================


class TestPackageDeclaration:

    def test_derived_names(self) -> None:
        package = PackageDeclaration.model_validate({"composerName": "t3ce/example"})
        assert package.vendor == "t3ce"
        assert package.package == "example"
        assert package.normalized_name == "t3ce-example"
        assert package.fields == []

    def test_name_aliases(self) -> None:
        for key in ("composerName", "composer_name", "name"):
            package = PackageDeclaration.model_validate({key: "foo/bar"})
            assert package.composer_name == "foo/bar"

    def test_composer_json(self) -> None:
        package = PackageDeclaration.model_validate({"composerJson": {"name": "foo/bar"}})
        assert package.composer_name == "foo/bar"

    def test_name_required(self) -> None:
        with pytest.raises(PydanticValidationError):
            PackageDeclaration.model_validate({"icon": "x.svg"})

    def test_null_icon_metadata(self) -> None:
        package = PackageDeclaration.model_validate(
            {"composerName": "foo/bar", "icon": None, "iconProvider": None}
        )
        assert package.icon == ""
        assert package.icon_provider == ""

    def test_extra_keys_tolerated(self) -> None:
        package = PackageDeclaration.model_validate(
            {"composerName": "foo/bar", "extPath": "EXT:foo/ContentBlocks/bar"}
        )
        assert package.composer_name == "foo/bar"

    def test_yaml_block(self) -> None:
        package = PackageDeclaration.model_validate(
            {
                "composerName": "foo/bar",
                "yaml": {
                    "table": "tt_content",
                    "typeField": "CType",
                    "group": "common",
                    "fields": None,
                    "prefixFields": True,
                },
            }
        )
        assert package.yaml.table == "tt_content"
        assert package.yaml.type_field == "CType"
        assert package.yaml.group == "common"
        assert package.fields == []

    def test_block_declaration_defaults(self) -> None:
        block = BlockDeclaration()
        assert block.table is None
        assert block.type_field is None
        assert block.fields == []


# ===========================================================================
# CompilerConfig
# ===========================================================================


class TestCompilerConfig:

    @pytest.fixture()
    def package(self) -> PackageDeclaration:
        return PackageDeclaration.model_validate({"composerName": "foo/bar"})

    def test_defaults(self) -> None:
        config = CompilerConfig()
        assert config.root_table == "tt_content"
        assert config.collection_table_prefix == "cb_"
        assert config.root_column_prefix == "cb_"
        assert config.strict is False

    def test_prefixes(self, package: PackageDeclaration) -> None:
        config = CompilerConfig(collection_table_prefix="x_", root_column_prefix="y_")
        assert config.collection_table_prefix_for(package) == "x_foo-bar"
        assert config.root_column_prefix_for(package) == "y_foo-bar"

    def test_paths(self, package: PackageDeclaration) -> None:
        config = CompilerConfig()
        assert config.package_path(package) == "ContentBlocks/bar/"
        assert config.public_path_for(package) == "ContentBlocks/bar/Resources/Public/"
        assert config.private_path_for(package) == "ContentBlocks/bar/Resources/Private/"

    def test_base_path_without_trailing_slash(self, package: PackageDeclaration) -> None:
        config = CompilerConfig(base_path="packages")
        assert config.package_path(package) == "packages/bar/"

    @pytest.mark.parametrize("depth", [0, 257])
    def test_max_depth_bounds(self, depth: int) -> None:
        with pytest.raises(PydanticValidationError):
            CompilerConfig(max_depth=depth)

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            CompilerConfig.model_validate({"root_tabel": "pages"})

    def test_empty_root_table_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            CompilerConfig(root_table="")
