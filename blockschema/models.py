# File: blockschema/models.py
"""
Content Block Schema - Core Data Models
=========================================
Pydantic V2 models for the table-definition compiler.  They cover both
sides of the pipeline:

    Package declarations (input) → Table definitions (output)

plus ``CompilerConfig``, the explicit naming policy handed to the compiler.
Wire names are camelCase (``composerName``, ``typeField``...) and are
accepted or emitted through aliases; Python attributes stay snake_case.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from blockschema.utils import normalize_package_name, split_package_name

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("blockschema.models")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

COLLECTION_TYPE: str = "Collection"
DEFAULT_ROOT_TABLE: str = "tt_content"

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Output side: field, element, table
# ---------------------------------------------------------------------------


class FieldDefinition(BaseModel):
    """One column of a table: its identifier and the raw field config."""

    model_config = _SHARED_CONFIG

    identifier: str = Field(..., min_length=1, description="Column name.")
    config: Dict[str, Any] = Field(
        default_factory=dict,
        description="Field declaration, including linkage keys for collections.",
    )

    @property
    def field_type(self) -> Optional[str]:
        return self.config.get("type")

    @property
    def is_collection(self) -> bool:
        return self.field_type == COLLECTION_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return {"identifier": self.identifier, "config": self.config}

    def __repr__(self) -> str:
        return f"<Field {self.identifier} ({self.field_type})>"


class ElementDefinition(BaseModel):
    """
    Per-package metadata attached to the root table.

    ``columns`` is the cumulative list of root-table columns registered up
    to and including this package, not the package's own delta.
    """

    model_config = _SHARED_CONFIG

    composer_name: str = Field(..., alias="composerName", min_length=1)
    identifier: str = Field(..., min_length=1)
    columns: List[str] = Field(default_factory=list)
    vendor: str = Field(default="")
    package: str = Field(default="")
    public_path: str = Field(default="", alias="publicPath")
    private_path: str = Field(default="", alias="privatePath")
    wizard_group: str = Field(default="", alias="wizardGroup")
    icon: str = Field(default="")
    icon_provider: str = Field(default="", alias="iconProvider")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def __repr__(self) -> str:
        return f"<Element {self.composer_name} ({len(self.columns)} cols)>"


class TableDefinition(BaseModel):
    """
    A single table to be materialised.

    The table name is fixed once created; ``fields`` keeps insertion order,
    which is the order consumers render columns in.
    """

    model_config = _SHARED_CONFIG

    table: str = Field(..., min_length=1, frozen=True, description="Table name.")
    fields: Dict[str, FieldDefinition] = Field(default_factory=dict)
    elements: List[ElementDefinition] = Field(default_factory=list)
    type_field: Optional[str] = Field(default=None, alias="typeField")
    is_root_table: bool = Field(default=True, alias="isRootTable")
    is_aggregate_root: Optional[bool] = Field(default=None, alias="isAggregateRoot")

    @field_validator("table")
    @classmethod
    def _no_surrounding_whitespace(cls, v: str) -> str:
        if v != v.strip():
            raise ValueError(f"Table name '{v}' has leading/trailing whitespace.")
        return v

    @model_validator(mode="after")
    def _keys_match_identifiers(self) -> "TableDefinition":
        for key, field_def in self.fields.items():
            if key != field_def.identifier:
                raise ValueError(
                    f"Field key '{key}' on table '{self.table}' does not match "
                    f"its identifier '{field_def.identifier}'."
                )
        return self

    @classmethod
    def create_from_table_dict(
        cls, table: str, data: Optional[Dict[str, Any]] = None
    ) -> "TableDefinition":
        """Build a definition from the raw nested ``{fields, elements, ...}`` mapping."""
        data = data or {}
        payload: Dict[str, Any] = {key: val for key, val in data.items() if key != "table"}
        payload["table"] = table
        payload["fields"] = dict(data.get("fields") or {})
        payload["elements"] = list(data.get("elements") or [])
        return cls.model_validate(payload)

    @property
    def column_names(self) -> List[str]:
        return list(self.fields.keys())

    def has_field(self, identifier: str) -> bool:
        return identifier in self.fields

    def get_field(self, identifier: str) -> Optional[FieldDefinition]:
        return self.fields.get(identifier)

    def to_dict(self) -> Dict[str, Any]:
        """Nested mapping used for serialization; optional keys only when set."""
        data: Dict[str, Any] = {
            "fields": {key: f.to_dict() for key, f in self.fields.items()},
        }
        if self.elements:
            data["elements"] = [e.to_dict() for e in self.elements]
        if self.type_field is not None:
            data["typeField"] = self.type_field
        data["isRootTable"] = self.is_root_table
        if self.is_aggregate_root is not None:
            data["isAggregateRoot"] = self.is_aggregate_root
        return data

    def __repr__(self) -> str:
        return (
            f"<Table {self.table} ({len(self.fields)} fields, "
            f"{len(self.elements)} elements)>"
        )


# ---------------------------------------------------------------------------
# Input side: package declarations
# ---------------------------------------------------------------------------


class BlockDeclaration(BaseModel):
    """The ``yaml`` block of a content block package."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    table: Optional[str] = Field(default=None)
    type_field: Optional[str] = Field(default=None, alias="typeField")
    group: Optional[str] = Field(default=None)
    fields: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class PackageDeclaration(BaseModel):
    """One content block package as handed to the compiler."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    composer_name: str = Field(
        ...,
        validation_alias=AliasChoices("composerName", "composer_name", "name"),
        serialization_alias="composerName",
    )
    icon: str = Field(default="")
    icon_provider: str = Field(
        default="",
        validation_alias=AliasChoices("iconProvider", "icon_provider"),
        serialization_alias="iconProvider",
    )
    yaml: BlockDeclaration = Field(default_factory=BlockDeclaration)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_composer_json(cls, data: Any) -> Any:
        if isinstance(data, dict) and "composerJson" in data:
            data = dict(data)
            composer_json = data.pop("composerJson") or {}
            data.setdefault("composerName", composer_json.get("name", ""))
        return data

    @field_validator("icon", "icon_provider", mode="before")
    @classmethod
    def _none_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v

    @property
    def fields(self) -> List[Dict[str, Any]]:
        return self.yaml.fields

    @property
    def vendor(self) -> str:
        return split_package_name(self.composer_name)[0]

    @property
    def package(self) -> str:
        return split_package_name(self.composer_name)[1]

    @property
    def normalized_name(self) -> str:
        """Composer name with slashes replaced, e.g. ``foo/bar`` → ``foo-bar``."""
        return normalize_package_name(self.composer_name)

    def __repr__(self) -> str:
        return f"<Package {self.composer_name} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# Naming policy
# ---------------------------------------------------------------------------


class CompilerConfig(BaseModel):
    """
    Naming policy and limits for one compilation run.

    Passed explicitly to ``TableDefinitionCompiler``; nothing is looked up
    from a global service.
    """

    model_config = _SHARED_CONFIG

    root_table: str = Field(
        default=DEFAULT_ROOT_TABLE,
        min_length=1,
        description="Shared table receiving every package's top-level fields.",
    )
    collection_table_prefix: str = Field(
        default="cb_", description="Prefix for generated collection table names."
    )
    root_column_prefix: str = Field(
        default="cb_", description="Prefix for generated root-table column names."
    )
    base_path: str = Field(
        default="ContentBlocks/", description="Base path of all content block packages."
    )
    public_path: str = Field(
        default="Resources/Public", description="Public assets path inside a package."
    )
    private_path: str = Field(
        default="Resources/Private", description="Private templates path inside a package."
    )
    max_depth: int = Field(
        default=16, ge=1, le=256, description="Maximum collection nesting depth."
    )
    strict: bool = Field(
        default=False, description="Raise on name collisions instead of warning."
    )

    def collection_table_prefix_for(self, package: PackageDeclaration) -> str:
        return self.collection_table_prefix + package.normalized_name

    def root_column_prefix_for(self, package: PackageDeclaration) -> str:
        return self.root_column_prefix + package.normalized_name

    def package_path(self, package: PackageDeclaration) -> str:
        return posixpath.join(self.base_path, package.package, "")

    def public_path_for(self, package: PackageDeclaration) -> str:
        return posixpath.join(self.package_path(package), self.public_path, "")

    def private_path_for(self, package: PackageDeclaration) -> str:
        return posixpath.join(self.package_path(package), self.private_path, "")


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "COLLECTION_TYPE",
    "DEFAULT_ROOT_TABLE",
    "FieldDefinition",
    "ElementDefinition",
    "TableDefinition",
    "BlockDeclaration",
    "PackageDeclaration",
    "CompilerConfig",
]

logger.debug("blockschema.models loaded — %d public symbols.", len(__all__))
