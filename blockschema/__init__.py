# File: blockschema/__init__.py
"""
Content Block Schema — Table Definition Compiler
==================================================

Compiles independently authored content block packages (field lists,
nested collections) into one consistent set of table definitions: a
shared root table that receives every package's top-level fields, plus a
child table per collection, with generated table names, column names and
parent/child linkage keys.

Architecture overview::

    ┌──────────────┐     ┌─────────────────────────┐     ┌──────────────────────────┐
    │  CLI / Entry │────▶│ TableDefinitionCompiler │────▶│ TableDefinitionCollection│
    │   (cli.py)   │     │      (compiler.py)      │     │       (registry.py)      │
    └──────────────┘     └────────────┬────────────┘     └──────────────────────────┘
                                      │
                       ┌──────────────┼──────────────┐
                       ▼              ▼              ▼
                 ┌──────────┐   ┌──────────┐   ┌───────────┐
                 │validators│   │  models  │   │ exporters │
                 └──────────┘   └──────────┘   └───────────┘

Usage::

    from blockschema import CompilerConfig, TableDefinitionCompiler
    collection = TableDefinitionCompiler(CompilerConfig()).compile(packages)
    collection.get_table("tt_content").column_names

    python -m blockschema --input content_blocks.yaml --output tables.json
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from blockschema.models import (
    COLLECTION_TYPE,
    DEFAULT_ROOT_TABLE,
    BlockDeclaration,
    CompilerConfig,
    ElementDefinition,
    FieldDefinition,
    PackageDeclaration,
    TableDefinition,
)
from blockschema.registry import TableDefinitionCollection, TableNotFoundError
from blockschema.validators import (
    CollectionDepthError,
    DeclarationError,
    ValidationResult,
    validate_declarations,
)
from blockschema.compiler import (
    CompilationContext,
    CompilationReport,
    TableDefinitionCompiler,
    create_collection_tables,
    load_declarations_file,
    parse_raw_declarations,
    process_collections,
)
from blockschema.services import get_content_block_parent_field_names
from blockschema.exporters import CollectionExporter, ExportResult, render_collection

__all__: list[str] = [
    "__version__",
    "__license__",
    # Models
    "COLLECTION_TYPE",
    "DEFAULT_ROOT_TABLE",
    "BlockDeclaration",
    "CompilerConfig",
    "ElementDefinition",
    "FieldDefinition",
    "PackageDeclaration",
    "TableDefinition",
    # Registry
    "TableDefinitionCollection",
    "TableNotFoundError",
    # Validation
    "CollectionDepthError",
    "DeclarationError",
    "ValidationResult",
    "validate_declarations",
    # Compiler
    "CompilationContext",
    "CompilationReport",
    "TableDefinitionCompiler",
    "create_collection_tables",
    "load_declarations_file",
    "parse_raw_declarations",
    "process_collections",
    # Services / export
    "get_content_block_parent_field_names",
    "CollectionExporter",
    "ExportResult",
    "render_collection",
]
