# File: blockschema/services.py
"""
Content Block Schema - Read-only services over a compiled collection.

Consumers only ever read the compiled model; nothing in here mutates it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from blockschema.models import COLLECTION_TYPE, DEFAULT_ROOT_TABLE, TableDefinition
from blockschema.registry import TableDefinitionCollection

logger: logging.Logger = logging.getLogger("blockschema.services")

DEFAULT_PARENT_FIELD: str = "foreign_table_parent_uid"


def get_content_block_parent_field_names(
    collection: TableDefinitionCollection,
    root_table: str = DEFAULT_ROOT_TABLE,
) -> List[str]:
    """
    Columns on *root_table* that point at a parent row of the same table.

    A root-table ``Collection`` whose ``foreign_table`` is the root table
    itself nests content elements inside content elements; each such
    relation needs a parent column on the root table.  Its name is the
    field's ``foreign_field``, or ``foreign_table_parent_uid`` when the
    author gave none.  Names are unique, in first-seen order.
    """
    if not collection.has_table(root_table):
        return []

    definition: TableDefinition = collection.get_table(root_table)
    names: List[str] = []
    for field_def in definition.fields.values():
        config: Dict[str, Any] = field_def.config
        if config.get("type") != COLLECTION_TYPE:
            continue
        if config.get("foreign_table") != root_table:
            continue
        name: str = config.get("foreign_field") or DEFAULT_PARENT_FIELD
        if name not in names:
            names.append(name)

    logger.debug("Parent field names on '%s': %s", root_table, names)
    return names


__all__: List[str] = [
    "DEFAULT_PARENT_FIELD",
    "get_content_block_parent_field_names",
]
