# File: blockschema/validators.py
"""
Content Block Schema - Declaration Validators
===============================================
Cross-package checks that run before compilation, on top of the structural
validation Pydantic already performs in ``blockschema.models``.

Each check is a pure function returning a ``ValidationResult``.  Errors
abort compilation (``DeclarationError``); warnings describe anomalies the
compiler tolerates, such as two declarations landing on the same column,
where the later one silently replaces the earlier one.

Usage by downstream modules:
    from blockschema.validators import validate_declarations
    result = validate_declarations(packages, config)
    if not result.is_valid:
        raise DeclarationError.from_result(result)
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set

from blockschema.models import (
    COLLECTION_TYPE,
    CompilerConfig,
    PackageDeclaration,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("blockschema.validators")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DeclarationError(ValueError):
    """A package declaration cannot be compiled."""

    def __init__(
        self,
        message: str,
        *,
        package: Optional[str] = None,
        field: Optional[str] = None,
        result: Optional["ValidationResult"] = None,
    ) -> None:
        self.package: Optional[str] = package
        self.field: Optional[str] = field
        self.result: ValidationResult = result if result is not None else ValidationResult()
        context: List[str] = []
        if package:
            context.append(f"package '{package}'")
        if field:
            context.append(f"field '{field}'")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)

    @classmethod
    def from_result(cls, result: "ValidationResult") -> "DeclarationError":
        first: ValidationError = (result.errors or result.warnings)[0]
        return cls(
            f"{result.summary()} First: {first.message}",
            package=first.context.get("package"),
            field=first.context.get("field"),
            result=result,
        )


class CollectionDepthError(DeclarationError):
    """Collection nesting is too deep or refers back to one of its ancestors."""


# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class ValidationResult:
    """Accumulates ``ValidationError`` items produced by checks and the compiler."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def has_warnings(self) -> bool:
        return any(e.is_warning for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> List[str]:
        return [e.code for e in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "✗",
                "warning": "⚠",
                "info": "ℹ",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_COMPOSER_NAME_RE: re.Pattern[str] = re.compile(r"^[a-z0-9][a-z0-9_.-]*/[a-z0-9][a-z0-9_.-]*$")
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

# Identifiers that collide with SQL keywords once prefixes are stripped
_SQL_RESERVED_WORDS: FrozenSet[str] = frozenset(
    {
        "select", "insert", "update", "delete", "drop", "create", "alter",
        "table", "column", "index", "from", "where", "join", "order",
        "group", "having", "limit", "offset", "union", "distinct", "key",
        "primary", "foreign", "references", "constraint", "default",
        "unique", "values", "into", "user", "uid", "pid",
    }
)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_package_names(packages: Sequence[PackageDeclaration]) -> ValidationResult:
    """
    Package names must be ``vendor/package``; a repeated name is a warning
    since its columns would be re-derived onto the same root columns.
    """
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for package in packages:
        name: str = package.composer_name
        ctx: Dict[str, Any] = {"package": name}

        if not name or "/" not in name or not package.vendor or not package.package:
            result.add_error(
                "INVALID_PACKAGE_NAME",
                f"Package name '{name}' is not of the form 'vendor/package'.",
                ctx,
            )
            continue

        if not _COMPOSER_NAME_RE.match(name):
            result.add_warning(
                "PACKAGE_NAME_NOT_NORMALIZED",
                f"Package name '{name}' contains characters composer would reject.",
                ctx,
            )

        if name in seen:
            result.add_warning(
                "DUPLICATE_PACKAGE",
                f"Package '{name}' is declared more than once; "
                f"its root columns will be overwritten.",
                ctx,
            )
        seen.add(name)

    return result


def _validate_field_list(
    fields: Sequence[Any],
    package: str,
    path: str,
    result: ValidationResult,
    depth: int,
    max_depth: int,
) -> None:
    seen: Set[str] = set()
    for position, field in enumerate(fields):
        ctx: Dict[str, Any] = {"package": package, "path": path, "position": position}

        if not isinstance(field, dict):
            result.add_error(
                "INVALID_FIELD",
                f"Field #{position} in '{path}' is not a mapping.",
                ctx,
            )
            continue

        identifier: Any = field.get("identifier")
        if not isinstance(identifier, str) or not identifier.strip():
            result.add_error(
                "MISSING_IDENTIFIER",
                f"Field #{position} in '{path}' has no identifier.",
                ctx,
            )
            continue

        ctx["field"] = identifier

        if identifier in seen:
            result.add_warning(
                "DUPLICATE_FIELD_IDENTIFIER",
                f"Identifier '{identifier}' appears more than once in '{path}'; "
                f"the last declaration wins.",
                ctx,
            )
        seen.add(identifier)

        if not _IDENTIFIER_RE.match(identifier):
            result.add_warning(
                "INVALID_IDENTIFIER",
                f"Identifier '{identifier}' in '{path}' is not a valid column name.",
                ctx,
            )
        elif identifier.lower() in _SQL_RESERVED_WORDS:
            result.add_info(
                "IDENTIFIER_SQL_RESERVED",
                f"Identifier '{identifier}' in '{path}' is an SQL keyword; "
                f"it is only safe behind a prefix.",
                ctx,
            )

        if field.get("type") != COLLECTION_TYPE:
            continue

        properties: Any = field.get("properties")
        if properties is None:
            continue
        if not isinstance(properties, dict):
            result.add_error(
                "INVALID_PROPERTIES",
                f"Collection '{identifier}' in '{path}' has non-mapping properties.",
                ctx,
            )
            continue

        nested: Any = properties.get("fields")
        if not nested:
            continue
        if not isinstance(nested, list):
            result.add_error(
                "INVALID_COLLECTION_FIELDS",
                f"Collection '{identifier}' in '{path}' has non-list properties.fields.",
                ctx,
            )
            continue
        if depth + 1 > max_depth:
            result.add_error(
                "COLLECTION_TOO_DEEP",
                f"Collection '{identifier}' in '{path}' exceeds the maximum "
                f"nesting depth of {max_depth}.",
                ctx,
            )
            continue
        _validate_field_list(
            nested, package, f"{path}.{identifier}", result, depth + 1, max_depth
        )


def validate_package_fields(
    packages: Sequence[PackageDeclaration],
    config: CompilerConfig,
) -> ValidationResult:
    """Check every field (recursively through collections) of every package."""
    result: ValidationResult = ValidationResult()
    for package in packages:
        _validate_field_list(
            package.fields,
            package.composer_name,
            package.composer_name,
            result,
            0,
            config.max_depth,
        )
    return result


def validate_type_fields(packages: Sequence[PackageDeclaration]) -> ValidationResult:
    """All packages compiled into one root table should agree on its type field."""
    result: ValidationResult = ValidationResult()
    first: Optional[PackageDeclaration] = None
    for package in packages:
        type_field: Optional[str] = package.yaml.type_field
        if type_field is None:
            continue
        if first is None:
            first = package
            continue
        if type_field != first.yaml.type_field:
            result.add_warning(
                "TYPE_FIELD_MISMATCH",
                f"Package '{package.composer_name}' declares typeField "
                f"'{type_field}' but '{first.composer_name}' already set "
                f"'{first.yaml.type_field}'.",
                {"package": package.composer_name},
            )
    return result


def validate_target_tables(
    packages: Sequence[PackageDeclaration],
    config: CompilerConfig,
) -> ValidationResult:
    """Packages naming a different table are still compiled into the root table."""
    result: ValidationResult = ValidationResult()
    for package in packages:
        table: Optional[str] = package.yaml.table
        if table and table != config.root_table:
            result.add_info(
                "TABLE_OVERRIDDEN",
                f"Package '{package.composer_name}' targets '{table}'; "
                f"its fields are compiled into '{config.root_table}'.",
                {"package": package.composer_name},
            )
    return result


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


def validate_declarations(
    packages: Sequence[PackageDeclaration],
    config: CompilerConfig,
) -> ValidationResult:
    """Run every declaration check and merge the results."""
    result: ValidationResult = ValidationResult()
    checks: List[ValidationResult] = [
        validate_package_names(packages),
        validate_package_fields(packages, config),
        validate_type_fields(packages),
        validate_target_tables(packages, config),
    ]
    for check in checks:
        result.merge(check)

    logger.debug(
        "Validated %d package(s): %s", len(packages), result.summary()
    )
    return result


__all__: List[str] = [
    "DeclarationError",
    "CollectionDepthError",
    "ValidationError",
    "ValidationResult",
    "validate_package_names",
    "validate_package_fields",
    "validate_type_fields",
    "validate_target_tables",
    "validate_declarations",
]

logger.debug("blockschema.validators loaded.")
