# File: blockschema/registry.py
"""
Content Block Schema - Table Definition Registry
==================================================
``TableDefinitionCollection`` owns every ``TableDefinition`` produced by one
compilation run.  It is an explicit value: the caller creates it (or lets
the compiler create it) and passes it on; there is no shared instance.

Registration is first-wins: adding a table whose name is already present
is a no-op.  Collection tables register themselves while their parent's
fields are still being processed, so by the time the root table is added
every child it references is already there.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterator, List

from blockschema.models import TableDefinition

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("blockschema.registry")


class TableNotFoundError(LookupError):
    """Raised when a table name is not registered."""

    def __init__(self, table: str) -> None:
        self.table: str = table
        super().__init__(f'The table "{table}" does not exist.')


class TableDefinitionCollection:
    """
    Ordered registry of table definitions keyed by table name.

    Usage::

        collection = TableDefinitionCollection()
        collection.add_table(TableDefinition(table="tt_content"))
        collection.get_table("tt_content")
        collection.to_dict()   # {"tables": {"tt_content": {...}}}
    """

    __slots__ = ("_definitions",)

    def __init__(self) -> None:
        self._definitions: Dict[str, TableDefinition] = {}

    # -- Mutation -----------------------------------------------------------

    def add_table(self, definition: TableDefinition) -> bool:
        """Register *definition* unless its name is taken. Returns True if added."""
        if self.has_table(definition.table):
            logger.debug(
                "Table '%s' already registered — keeping the first definition.",
                definition.table,
            )
            return False
        self._definitions[definition.table] = definition
        logger.debug(
            "Registered table '%s' (%d fields).",
            definition.table,
            len(definition.fields),
        )
        return True

    # -- Query --------------------------------------------------------------

    def get_table(self, table: str) -> TableDefinition:
        if self.has_table(table):
            return self._definitions[table]
        raise TableNotFoundError(table)

    def has_table(self, table: str) -> bool:
        return table in self._definitions

    @property
    def table_names(self) -> List[str]:
        return list(self._definitions.keys())

    def __contains__(self, table: object) -> bool:
        return table in self._definitions

    def __iter__(self) -> Iterator[TableDefinition]:
        return iter(list(self._definitions.values()))

    def __len__(self) -> int:
        return len(self._definitions)

    # -- Serialization ------------------------------------------------------

    def tables_as_dicts(self) -> Iterator[Dict[str, Dict[str, Any]]]:
        """Yield one ``{name: table_dict}`` mapping per table, in order."""
        for definition in self._definitions.values():
            yield {definition.table: definition.to_dict()}

    def to_dict(self) -> Dict[str, Any]:
        tables: Dict[str, Any] = {}
        for entry in self.tables_as_dicts():
            tables.update(entry)
        return {"tables": tables}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableDefinitionCollection":
        """Rebuild a collection from the output of ``to_dict()``."""
        if "tables" not in data or not isinstance(data["tables"], dict):
            raise ValueError("Expected a mapping with a 'tables' key.")
        collection: TableDefinitionCollection = cls()
        for name, table_data in data["tables"].items():
            collection.add_table(
                TableDefinition.create_from_table_dict(name, table_data)
            )
        return collection

    # -- Copying ------------------------------------------------------------

    def clone(self) -> "TableDefinitionCollection":
        """Independent copy; mutating it never touches this collection."""
        return copy.deepcopy(self)

    def __deepcopy__(self, memo: Dict[int, Any]) -> "TableDefinitionCollection":
        duplicate: TableDefinitionCollection = TableDefinitionCollection()
        duplicate._definitions = {
            name: definition.model_copy(deep=True)
            for name, definition in self._definitions.items()
        }
        return duplicate

    def __copy__(self) -> "TableDefinitionCollection":
        return self.__deepcopy__({})

    def __repr__(self) -> str:
        return f"<TableDefinitionCollection {len(self)} tables: {self.table_names}>"


__all__: List[str] = [
    "TableNotFoundError",
    "TableDefinitionCollection",
]

logger.debug("blockschema.registry loaded.")
