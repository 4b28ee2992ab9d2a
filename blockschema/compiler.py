# File: blockschema/compiler.py
"""
Content Block Schema - Table Definition Compiler
==================================================

Turns a list of content block package declarations into a closed
``TableDefinitionCollection``::

    1. Validate all declarations (validators.py).
    2. For every package, prefix its top-level fields and merge them into
       the shared root table.
    3. Every non-empty ``Collection`` field gets linkage keys and spawns a
       child table, built recursively and registered depth-first.
    4. Record one element per package, then register the root table last.

Pieces, leaves first:

    process_collections()       one field → field with linkage keys
    create_collection_tables()  one child table, recursing via the above
    TableDefinitionCompiler     the per-package aggregation loop

Error handling strategy:
    - Malformed declarations (no identifier, bad package name) fail fast
      with ``DeclarationError`` naming the package and field.
    - Name collisions resolve deterministically (first table wins, last
      column wins) and are recorded as warnings, or raised in strict mode.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from blockschema.models import (
    COLLECTION_TYPE,
    CompilerConfig,
    ElementDefinition,
    PackageDeclaration,
    TableDefinition,
)
from blockschema.registry import TableDefinitionCollection
from blockschema.utils import Timer, collection_table_name, root_column_name
from blockschema.validators import (
    CollectionDepthError,
    DeclarationError,
    ValidationResult,
    validate_declarations,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("blockschema.compiler")

PackageInput = Union[PackageDeclaration, Dict[str, Any]]


# ---------------------------------------------------------------------------
# Compilation context
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CompilationContext:
    """State shared by one compilation run: the sink and the collected warnings."""

    collection: TableDefinitionCollection
    result: ValidationResult = field(default_factory=ValidationResult)
    package: str = ""
    max_depth: int = 16
    strict: bool = False
    path: List[str] = field(default_factory=list)

    def report_collision(self, code: str, message: str, **context: Any) -> None:
        context.setdefault("package", self.package)
        self.result.add_warning(code, message, context)
        if self.strict:
            raise DeclarationError(
                message,
                package=context.get("package"),
                field=context.get("field"),
                result=self.result,
            )
        logger.warning("[%s] %s", code, message)


def _has_collection_fields(field_decl: Dict[str, Any]) -> bool:
    if field_decl.get("type") != COLLECTION_TYPE:
        return False
    properties: Any = field_decl.get("properties")
    if not isinstance(properties, dict):
        return False
    nested: Any = properties.get("fields")
    return isinstance(nested, list) and len(nested) > 0


def _require_identifier(
    field_decl: Any, table: str, context: CompilationContext
) -> str:
    if not isinstance(field_decl, dict):
        raise DeclarationError(
            f"A field of table '{table}' is not a mapping", package=context.package
        )
    identifier: Any = field_decl.get("identifier")
    if not isinstance(identifier, str) or not identifier.strip():
        raise DeclarationError(
            f"A field of table '{table}' has no identifier", package=context.package
        )
    return identifier


def _detached(original: Dict[str, Any], processed: Dict[str, Any]) -> Dict[str, Any]:
    """Stored configs never share nested values with the caller's declarations."""
    return copy.deepcopy(processed) if processed is original else processed


# ---------------------------------------------------------------------------
# Field processor
# ---------------------------------------------------------------------------


def process_collections(
    field_decl: Dict[str, Any],
    table: str,
    column_name: str,
    context: CompilationContext,
    collection_table_prefix: str = "",
) -> Dict[str, Any]:
    """
    Give a collection field its linkage keys and build its child table.

    Anything that is not a ``Collection`` with a non-empty
    ``properties.fields`` list is returned as is.  Otherwise a copy of the
    field is returned whose ``properties`` gain:

    - ``foreign_table``: the generated child table
    - ``foreign_field``: child column holding the parent row uid
    - ``foreign_table_field``: child column holding the parent table name
    - ``foreign_match_fields``: ``{table: column_name}``

    The input mapping is never modified.
    """
    if not _has_collection_fields(field_decl):
        return field_decl

    identifier: str = _require_identifier(field_decl, table, context)
    child_table: str = collection_table_name(collection_table_prefix, table, identifier)

    processed: Dict[str, Any] = copy.deepcopy(field_decl)
    properties: Dict[str, Any] = processed["properties"]
    properties["foreign_table"] = child_table
    properties["foreign_field"] = column_name
    properties["foreign_table_field"] = table
    properties["foreign_match_fields"] = {table: column_name}

    # Child tables already carry the package prefix in their name.
    create_collection_tables(child_table, properties["fields"], context)
    return processed


# ---------------------------------------------------------------------------
# Collection table builder
# ---------------------------------------------------------------------------


def create_collection_tables(
    table: str,
    fields_list: List[Dict[str, Any]],
    context: CompilationContext,
    collection_table_prefix: str = "",
) -> TableDefinition:
    """
    Build the table for one collection and register it.

    Nested collections are built (and registered) while this table's fields
    are processed, so grandchildren always precede their parents in the
    registry.  Returns the built definition even when an earlier table of
    the same name keeps the registry slot.
    """
    if table in context.path:
        raise CollectionDepthError(
            f"Collection table '{table}' contains itself "
            f"(path: {' → '.join(context.path)})",
            package=context.package,
        )
    if len(context.path) >= context.max_depth:
        raise CollectionDepthError(
            f"Collection table '{table}' exceeds the maximum nesting depth "
            f"of {context.max_depth}",
            package=context.package,
        )

    fields: Dict[str, Dict[str, Any]] = {}
    context.path.append(table)
    try:
        for field_decl in fields_list:
            identifier: str = _require_identifier(field_decl, table, context)
            fields[identifier] = {
                "identifier": identifier,
                "config": _detached(
                    field_decl,
                    process_collections(
                        field_decl,
                        table,
                        identifier,
                        context,
                        collection_table_prefix,
                    ),
                ),
            }
    finally:
        context.path.pop()

    definition: TableDefinition = TableDefinition.create_from_table_dict(
        table,
        {"fields": fields, "isRootTable": False, "isAggregateRoot": False},
    )
    if not context.collection.add_table(definition):
        context.report_collision(
            "DUPLICATE_COLLECTION_TABLE",
            f"Collection table '{table}' is generated more than once; "
            f"the first definition is kept.",
            table=table,
        )
    return definition


# ---------------------------------------------------------------------------
# Compilation report
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CompilationReport:
    """Outcome of ``TableDefinitionCompiler.compile_with_report()``."""

    success: bool = False
    collection: Optional[TableDefinitionCollection] = None
    result: ValidationResult = field(default_factory=ValidationResult)
    package_count: int = 0
    error: str = ""
    elapsed_seconds: float = 0.0

    @property
    def table_count(self) -> int:
        return len(self.collection) if self.collection is not None else 0

    def summary(self) -> str:
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append("=" * 60)
        lines.append("  Content Block Schema — Compilation Report")
        lines.append("=" * 60)
        lines.append(f"  Status:    {status}")
        lines.append(f"  Packages:  {self.package_count}")
        lines.append(f"  Tables:    {self.table_count}")
        lines.append(f"  Time:      {self.elapsed_seconds:.3f}s")
        if self.collection is not None:
            lines.append("─" * 60)
            for definition in self.collection:
                lines.append(
                    f"    {definition.table:<44s} {len(definition.fields):>4d} fields"
                )
        if self.error:
            lines.append("─" * 60)
            lines.append(f"  Error: {self.error}")
        if len(self.result):
            lines.append("─" * 60)
            lines.append(self.result.format_report())
        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Aggregation driver
# ---------------------------------------------------------------------------


class TableDefinitionCompiler:
    """
    Compiles package declarations into table definitions.

    Usage::

        compiler = TableDefinitionCompiler(CompilerConfig())
        collection = compiler.compile(packages)
        collection.get_table("tt_content")

    The compiler keeps no state between runs; every call builds into the
    collection it is given, or a new one.
    """

    def __init__(self, config: Optional[CompilerConfig] = None) -> None:
        self._config: CompilerConfig = config if config is not None else CompilerConfig()
        logger.debug(
            "TableDefinitionCompiler initialised: root=%s, strict=%s.",
            self._config.root_table,
            self._config.strict,
        )

    @property
    def config(self) -> CompilerConfig:
        return self._config

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def compile(
        self,
        packages: Iterable[PackageInput],
        collection: Optional[TableDefinitionCollection] = None,
        result: Optional[ValidationResult] = None,
    ) -> TableDefinitionCollection:
        """
        Compile *packages* into *collection* (a new one when omitted).

        Warnings are appended to *result* when one is passed.

        Raises:
            DeclarationError: on malformed declarations, or on any name
                collision when the config is strict.
        """
        declarations: List[PackageDeclaration] = coerce_packages(packages)
        if collection is None:
            collection = TableDefinitionCollection()
        if result is None:
            result = ValidationResult()

        validation: ValidationResult = validate_declarations(declarations, self._config)
        result.merge(validation)
        for err in validation.errors:
            logger.error("  ✗ %s", err)
        for warn in validation.warnings:
            logger.warning("  ⚠ %s", warn)
        if validation.has_errors or (self._config.strict and validation.has_warnings):
            raise DeclarationError.from_result(validation)

        context: CompilationContext = CompilationContext(
            collection=collection,
            result=result,
            max_depth=self._config.max_depth,
            strict=self._config.strict,
        )
        self._compile_root_table(declarations, context)

        logger.info(
            "Compiled %d package(s) into %d table(s).",
            len(declarations),
            len(collection),
        )
        return collection

    def compile_with_report(
        self,
        packages: Iterable[PackageInput],
        collection: Optional[TableDefinitionCollection] = None,
    ) -> CompilationReport:
        """Like ``compile()`` but never raises for bad declarations."""
        report: CompilationReport = CompilationReport()

        with Timer("compile") as t:
            try:
                declarations: List[PackageDeclaration] = coerce_packages(packages)
                report.package_count = len(declarations)
                report.collection = self.compile(declarations, collection, report.result)
                report.success = True
            except DeclarationError as exc:
                report.error = str(exc)
                logger.error("Compilation failed: %s", exc)

        report.elapsed_seconds = t.elapsed
        return report

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    def _compile_root_table(
        self,
        declarations: List[PackageDeclaration],
        context: CompilationContext,
    ) -> None:
        config: CompilerConfig = self._config
        root_table: str = config.root_table
        root_fields: Dict[str, Dict[str, Any]] = {}
        elements: List[ElementDefinition] = []
        type_field: Optional[str] = None

        for package in declarations:
            context.package = package.composer_name
            collection_prefix: str = config.collection_table_prefix_for(package)
            column_prefix: str = config.root_column_prefix_for(package)

            if type_field is None and package.yaml.type_field is not None:
                type_field = package.yaml.type_field

            for field_decl in package.fields:
                identifier: str = _require_identifier(field_decl, root_table, context)
                column_name: str = root_column_name(column_prefix, identifier)
                if column_name in root_fields:
                    context.report_collision(
                        "DUPLICATE_ROOT_COLUMN",
                        f"Column '{column_name}' on '{root_table}' is derived "
                        f"more than once; the last declaration wins.",
                        table=root_table,
                        field=identifier,
                    )
                root_fields[column_name] = {
                    "identifier": column_name,
                    "config": _detached(
                        field_decl,
                        process_collections(
                            field_decl,
                            root_table,
                            column_name,
                            context,
                            collection_prefix,
                        ),
                    ),
                }

            elements.append(
                ElementDefinition(
                    composer_name=package.composer_name,
                    identifier=package.composer_name,
                    columns=list(root_fields.keys()),
                    vendor=package.vendor,
                    package=package.package,
                    public_path=config.public_path_for(package),
                    private_path=config.private_path_for(package),
                    wizard_group=package.yaml.group or "",
                    icon=package.icon,
                    icon_provider=package.icon_provider,
                )
            )
            logger.debug(
                "Package '%s' contributed %d field(s).",
                package.composer_name,
                len(package.fields),
            )

        context.package = ""
        definition: TableDefinition = TableDefinition.create_from_table_dict(
            root_table,
            {
                "fields": root_fields,
                "elements": elements,
                "typeField": type_field,
                "isRootTable": True,
                "isAggregateRoot": True,
            },
        )
        if not context.collection.add_table(definition):
            context.report_collision(
                "DUPLICATE_ROOT_TABLE",
                f"Root table '{root_table}' was already registered; "
                f"the compiled root definition is discarded.",
                table=root_table,
            )


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------


def coerce_packages(packages: Iterable[PackageInput]) -> List[PackageDeclaration]:
    """Accept models or raw mappings; raw mappings are validated here."""
    declarations: List[PackageDeclaration] = []
    for position, package in enumerate(packages):
        if isinstance(package, PackageDeclaration):
            declarations.append(package)
            continue
        try:
            declarations.append(PackageDeclaration.model_validate(package))
        except PydanticValidationError as exc:
            name: Any = None
            if isinstance(package, dict):
                name = package.get("composerName") or package.get("name")
            raise DeclarationError(
                f"Package declaration #{position} is invalid: {exc}",
                package=name if isinstance(name, str) else None,
            ) from exc
    return declarations


def load_declarations_file(path: Path) -> Any:
    """
    Load a declarations file (JSON or YAML), dispatching on the extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Declarations file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Declarations path is not a file: {path}")

    text: str = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

    # YAML is a superset of JSON, so every other extension goes through it.
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc


def parse_raw_declarations(
    raw: Any,
) -> Tuple[List[PackageDeclaration], CompilerConfig]:
    """
    Split loaded file content into package declarations and a config.

    Accepts either a bare list of packages, or a mapping with the list
    under ``contentBlocks`` / ``packages`` and an optional ``config``.

    Raises:
        ValueError: If the packages can't be found or fail validation.
    """
    config_data: Dict[str, Any] = {}
    if isinstance(raw, list):
        packages_data: Any = raw
    elif isinstance(raw, dict):
        packages_data = None
        for key in ("contentBlocks", "content_blocks", "packages"):
            if key in raw:
                packages_data = raw[key]
                break
        if packages_data is None:
            raise ValueError(
                "Cannot find package declarations in input. "
                "Expected top-level key: 'contentBlocks' or 'packages'."
            )
        config_data = raw.get("config") or {}
    else:
        raise ValueError(
            f"Expected a list or mapping at top level, got {type(raw).__name__}."
        )

    if not isinstance(packages_data, list):
        raise ValueError("Package declarations must be a list.")

    try:
        config: CompilerConfig = CompilerConfig.model_validate(config_data)
    except PydanticValidationError as exc:
        raise ValueError(f"Config validation failed: {exc}") from exc

    return coerce_packages(packages_data), config


__all__: List[str] = [
    "CompilationContext",
    "CompilationReport",
    "TableDefinitionCompiler",
    "process_collections",
    "create_collection_tables",
    "coerce_packages",
    "load_declarations_file",
    "parse_raw_declarations",
]

logger.debug("blockschema.compiler loaded.")
