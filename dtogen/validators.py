# File: dtogen/validators.py
"""
DTOGen - Schema Validators
============================
Pure-function semantic checks over a ``DTOSchema``.

Pydantic handles structural correctness when a schema is parsed.  This
module adds the **cross-field** checks Pydantic cannot express: identity
uniqueness across the whole tree, sibling name clashes, enum fields without
members, index entries naming unknown fields, and so on.

The code generator never depends on these results: generation tolerates
every shape gap.  The pipeline runs validation first and decides, based on
its strictness settings, whether to continue.

Usage:
    from dtogen.validators import validate_full
    result = validate_full(schema)
    if not result:
        print(result.format_report())
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from dtogen.models import DTOSchema, FieldType, SchemaField
from dtogen.tree import iter_fields_with_path
from dtogen.utils import is_ts_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.validators")

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
    """Accumulates ``ValidationError`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(self, code: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
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
    def infos(self) -> List[ValidationError]:
        return [e for e in self._items if e.level == "info"]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def codes(self) -> List[str]:
        return [e.code for e in self._items]

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

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
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
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            for k, v in item.context.items():
                lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][A-Za-z0-9]*$")


def _field_label(field: SchemaField) -> str:
    return field.name or f"<unnamed {field.id}>"


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_schema_name(schema: DTOSchema) -> ValidationResult:
    """The schema name drives every generated identifier and file name."""
    result: ValidationResult = ValidationResult()
    name: str = schema.name
    ctx: Dict[str, Any] = {"schema": name}

    if not name:
        result.add_error("EMPTY_SCHEMA_NAME", "Schema name must not be empty.", ctx)
        return result

    if not is_ts_identifier(name):
        result.add_error(
            "INVALID_SCHEMA_NAME",
            f"Schema name '{name}' is not a valid TypeScript identifier.",
            ctx,
        )
    elif not _PASCAL_CASE_RE.match(name):
        result.add_warning(
            "SCHEMA_NAME_NOT_PASCAL_CASE",
            f"Schema name '{name}' is not PascalCase. Generated type names may look odd.",
            ctx,
        )
    return result


def validate_field_ids(schema: DTOSchema) -> ValidationResult:
    """Every id must be non-empty and unique across the whole tree."""
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for path, field in iter_fields_with_path(schema):
        ctx: Dict[str, Any] = {"field": _field_label(field), "path": list(path)}
        if not field.id:
            result.add_error("EMPTY_FIELD_ID", "Field has no id; it cannot be edited.", ctx)
            continue
        if field.id in seen:
            result.add_error(
                "DUPLICATE_FIELD_ID",
                f"Field id '{field.id}' is used more than once.",
                {**ctx, "id": field.id},
            )
        seen.add(field.id)

    logger.debug("validate_field_ids: %d distinct id(s).", len(seen))
    return result


def _check_sibling_names(
    siblings: Sequence[SchemaField],
    path: Tuple[str, ...],
    result: ValidationResult,
) -> None:
    names: Set[str] = set()
    for field in siblings:
        ctx: Dict[str, Any] = {"field": field.name, "id": field.id, "path": list(path)}
        if not field.name:
            result.add_warning(
                "EMPTY_FIELD_NAME",
                f"Field '{field.id}' has no name and will render as an empty property.",
                ctx,
            )
            continue
        if not is_ts_identifier(field.name):
            result.add_error(
                "INVALID_FIELD_NAME",
                f"Field name '{field.name}' is not a valid identifier.",
                ctx,
            )
        if field.name in names:
            result.add_error(
                "DUPLICATE_FIELD_NAME",
                f"Field name '{field.name}' is declared more than once in the same object.",
                ctx,
            )
        names.add(field.name)


def validate_field_names(schema: DTOSchema) -> ValidationResult:
    """Names must be identifiers and unique among their siblings."""
    result: ValidationResult = ValidationResult()
    _check_sibling_names(schema.fields, (), result)
    for path, field in iter_fields_with_path(schema):
        if field.nested_fields:
            _check_sibling_names(field.nested_fields, path + (field.id,), result)
    return result


def validate_field_shapes(schema: DTOSchema) -> ValidationResult:
    """Type-specific attribute consistency."""
    result: ValidationResult = ValidationResult()

    for path, field in iter_fields_with_path(schema):
        label: str = _field_label(field)
        ctx: Dict[str, Any] = {"field": label, "type": field.type}

        if field.type == FieldType.ENUM:
            members = [m for m in (field.enum or []) if m.key or m.value]
            if not members:
                result.add_warning(
                    "ENUM_WITHOUT_VALUES",
                    f"Enum field '{label}' has no members.",
                    ctx,
                )
            keys: List[str] = [m.key for m in members if m.key]
            if len(keys) != len(set(keys)):
                result.add_error(
                    "DUPLICATE_ENUM_KEY",
                    f"Enum field '{label}' repeats a member key.",
                    ctx,
                )

        if field.nested_fields and field.nested_shape is None:
            result.add_warning(
                "NESTED_FIELDS_IGNORED",
                f"Field '{label}' of type '{field.type}' carries nested fields "
                f"that are not rendered.",
                ctx,
            )

        if field.type == FieldType.OBJECT_ID and not (field.ref or field.ref_path):
            result.add_info(
                "OBJECT_ID_WITHOUT_REF",
                f"ObjectId field '{label}' has no ref; it cannot be populated.",
                ctx,
            )

        if field.type == FieldType.ARRAY and field.array_type is None:
            result.add_info(
                "ARRAY_WITHOUT_ITEM_TYPE",
                f"Array field '{label}' has no item type; it renders as any[].",
                ctx,
            )

        if (
            field.array_min_items is not None
            and field.array_max_items is not None
            and field.array_min_items > field.array_max_items
        ):
            result.add_error(
                "ARRAY_BOUNDS_INVERTED",
                f"Array field '{label}' has arrayMinItems > arrayMaxItems.",
                ctx,
            )

    return result


def validate_indexes(schema: DTOSchema) -> ValidationResult:
    """Index entries should name declared top-level fields."""
    result: ValidationResult = ValidationResult()
    known: Set[str] = {f.name for f in schema.fields if f.name}

    for position, index in enumerate(schema.indexes or []):
        ctx: Dict[str, Any] = {"index": position, "fields": list(index.fields)}
        if not index.fields:
            result.add_warning("EMPTY_INDEX", f"Index #{position} lists no fields.", ctx)
            continue
        for name in index.fields:
            # Dotted paths address nested documents.
            if name.split(".", 1)[0] not in known:
                result.add_warning(
                    "INDEX_UNKNOWN_FIELD",
                    f"Index #{position} references unknown field '{name}'.",
                    ctx,
                )
    return result


def validate_members(schema: DTOSchema) -> ValidationResult:
    """Hooks, virtuals, methods and statics must not be declared twice."""
    result: ValidationResult = ValidationResult()
    groups: Dict[str, List[str]] = {
        "pre hook": schema.hooks.pre,
        "post hook": schema.hooks.post,
        "virtual": schema.virtuals,
        "method": schema.methods,
        "static": schema.statics,
    }
    for kind, names in groups.items():
        seen: Set[str] = set()
        for name in names:
            if name in seen:
                result.add_warning(
                    "DUPLICATE_MEMBER",
                    f"The {kind} '{name}' is declared more than once.",
                    {"kind": kind, "name": name},
                )
            seen.add(name)

    field_names: Set[str] = {f.name for f in schema.fields}
    for name in schema.virtuals:
        if name in field_names:
            result.add_error(
                "VIRTUAL_SHADOWS_FIELD",
                f"Virtual '{name}' has the same name as a stored field.",
                {"name": name},
            )
    return result


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


def validate_full(schema: DTOSchema) -> ValidationResult:
    """
    Run every check and return the merged result.

    This is the single function ``generator.py`` and ``cli.py`` call before
    code generation.
    """
    logger.info("Starting validation of schema '%s'.", schema.name)

    result: ValidationResult = ValidationResult()
    result.merge(validate_schema_name(schema))
    result.merge(validate_field_ids(schema))
    result.merge(validate_field_names(schema))
    result.merge(validate_field_shapes(schema))
    result.merge(validate_indexes(schema))
    result.merge(validate_members(schema))

    if result.has_errors:
        logger.error("Validation FAILED with %d error(s). %s", result.error_count, result.summary())
    else:
        logger.info("Validation PASSED. %s", result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_schema_name",
    "validate_field_ids",
    "validate_field_names",
    "validate_field_shapes",
    "validate_indexes",
    "validate_members",
    "validate_full",
]

logger.debug("dtogen.validators loaded — %d public symbols.", len(__all__))
