# File: dtogen/tree.py
"""
DTOGen - Tree Editing Operations
==================================
Pure, immutable-update functions over the recursive field forest of a
``DTOSchema``.  The input is never mutated: every operation returns a new
schema, reusing untouched subtrees as-is.

Addressing rules:
    - ``id`` is the only key used to target a field for update, whatever
      its depth.
    - Sibling lists are addressed by an *ancestor path*: the ordered list of
      ids from the top level down to the direct parent.  An empty or missing
      path means the top-level field list.

Not-found targets (unknown id, broken path) are no-ops, never errors: a
stale id coming from a concurrent UI edit must not break the editor.
"""

from __future__ import annotations

import logging
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from dtogen.models import DTOSchema, EnumValue, FieldType, SchemaField
from dtogen.utils import IdFactory, random_id

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.tree")

FieldForest = Union[DTOSchema, Sequence[SchemaField]]

# camelCase wire key → Python attribute name
_ALIAS_TO_ATTR: Dict[str, str] = {
    info.alias: name
    for name, info in SchemaField.model_fields.items()
    if info.alias
}


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def create_field(id_factory: Optional[IdFactory] = None) -> SchemaField:
    """
    Return a fresh default field, independent of any tree.

    New fields have a generated id, an empty name, type ``string``, every
    flag off, ``is_expanded`` on and no nested structure.
    """
    make_id: IdFactory = id_factory or random_id
    return SchemaField(
        id=make_id(),
        name="",
        type=FieldType.STRING,
        required=False,
        unique=False,
        is_expanded=True,
    )


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def _fields_of(forest: FieldForest) -> Sequence[SchemaField]:
    if isinstance(forest, DTOSchema):
        return forest.fields
    return forest


def iter_fields(forest: FieldForest) -> Iterator[SchemaField]:
    """Yield every field in pre-order (explicit stack, no recursion)."""
    for _, field in iter_fields_with_path(forest):
        yield field


def iter_fields_with_path(
    forest: FieldForest,
) -> Iterator[Tuple[Tuple[str, ...], SchemaField]]:
    """Yield ``(ancestor_ids, field)`` pairs in pre-order."""
    stack: List[Tuple[Tuple[str, ...], SchemaField]] = [
        ((), f) for f in reversed(_fields_of(forest))
    ]
    while stack:
        path, current = stack.pop()
        yield path, current
        if current.nested_fields:
            child_path: Tuple[str, ...] = path + (current.id,)
            stack.extend((child_path, c) for c in reversed(current.nested_fields))


def iter_shaped_fields(forest: FieldForest) -> Iterator[SchemaField]:
    """Pre-order walk that only descends into object and object-array shapes."""
    stack: List[SchemaField] = list(reversed(_fields_of(forest)))
    while stack:
        current: SchemaField = stack.pop()
        yield current
        if current.nested_shape:
            stack.extend(reversed(current.nested_shape))


def find_field(forest: FieldForest, field_id: str) -> Optional[SchemaField]:
    """Return the field with *field_id* anywhere in the forest, or None."""
    for field in iter_fields(forest):
        if field.id == field_id:
            return field
    return None


def find_path(forest: FieldForest, field_id: str) -> Optional[List[str]]:
    """Return the ancestor-id path of *field_id* (``[]`` for top level)."""
    for path, field in iter_fields_with_path(forest):
        if field.id == field_id:
            return list(path)
    return None


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def _normalise_changes(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Accept both wire (camelCase) and attribute spellings."""
    normalised: Dict[str, Any] = {}
    for key, value in changes.items():
        attr: str = _ALIAS_TO_ATTR.get(key, key)
        if attr not in SchemaField.model_fields:
            logger.debug("Ignoring unknown field attribute %r in update.", key)
            continue
        normalised[attr] = value
    return normalised


def _merge_field(field: SchemaField, changes: Dict[str, Any]) -> SchemaField:
    data: Dict[str, Any] = dict(field)
    data.update(changes)

    new_type: Any = changes.get("type")
    if new_type == FieldType.OBJECT and data.get("nested_fields") is None:
        data["nested_fields"] = []
    if new_type == FieldType.ENUM and data.get("enum") is None:
        data["enum"] = [EnumValue(key="", value="")]
    if (
        new_type == FieldType.ARRAY
        and data.get("array_type") == FieldType.OBJECT
        and data.get("nested_fields") is None
    ):
        data["nested_fields"] = []

    return SchemaField.model_validate(data)


def _update_in(
    fields: List[SchemaField],
    field_id: str,
    changes: Dict[str, Any],
) -> List[SchemaField]:
    result: List[SchemaField] = []
    changed: bool = False
    for field in fields:
        if field.id == field_id:
            result.append(_merge_field(field, changes))
            changed = True
            continue
        if field.nested_fields:
            nested: List[SchemaField] = _update_in(field.nested_fields, field_id, changes)
            if nested is not field.nested_fields:
                result.append(field.model_copy(update={"nested_fields": nested}))
                changed = True
                continue
        result.append(field)
    return result if changed else fields


def update_fields(
    fields: List[SchemaField],
    field_id: str,
    changes: Mapping[str, Any],
) -> List[SchemaField]:
    """List-level form of :func:`update_field`."""
    return _update_in(fields, field_id, _normalise_changes(changes))


def update_field(
    schema: DTOSchema,
    field_id: str,
    changes: Mapping[str, Any],
) -> DTOSchema:
    """
    Merge *changes* into the field with *field_id*, wherever it lives.

    Switching a field to ``object`` (or ``array`` of ``object``) gives it an
    empty child list when it has none; switching to ``enum`` seeds one empty
    ``(key, value)`` member.  Unknown ids return *schema* unchanged.
    """
    new_fields: List[SchemaField] = update_fields(schema.fields, field_id, changes)
    if new_fields is schema.fields:
        logger.debug("update_field: id %r not found — no-op.", field_id)
        return schema
    return schema.model_copy(update={"fields": new_fields})


# ---------------------------------------------------------------------------
# Sibling-list addressing
# ---------------------------------------------------------------------------

SiblingEdit = Callable[[List[SchemaField]], List[SchemaField]]


def _edit_siblings(
    fields: List[SchemaField],
    parent_path: Sequence[str],
    edit: SiblingEdit,
) -> List[SchemaField]:
    """
    Apply *edit* to the sibling list at *parent_path*, copying the spine.

    Returns *fields* itself when the path is broken or *edit* is a no-op.
    """
    if not parent_path:
        return edit(fields)

    head: str = parent_path[0]
    for position, field in enumerate(fields):
        if field.id != head:
            continue
        if field.nested_fields is None:
            return fields
        nested: List[SchemaField] = _edit_siblings(field.nested_fields, parent_path[1:], edit)
        if nested is field.nested_fields:
            return fields
        result: List[SchemaField] = list(fields)
        result[position] = field.model_copy(update={"nested_fields": nested})
        return result
    return fields


def _apply_to_siblings(
    schema: DTOSchema,
    parent_path: Optional[Sequence[str]],
    edit: SiblingEdit,
) -> DTOSchema:
    new_fields: List[SchemaField] = _edit_siblings(schema.fields, parent_path or (), edit)
    if new_fields is schema.fields:
        return schema
    return schema.model_copy(update={"fields": new_fields})


# ---------------------------------------------------------------------------
# Remove / add / move
# ---------------------------------------------------------------------------


def remove_field(
    schema: DTOSchema,
    field_id: str,
    parent_path: Optional[Sequence[str]] = None,
) -> DTOSchema:
    """
    Remove *field_id* from the sibling list addressed by *parent_path*.

    Without a path the top-level list is filtered.  A missing id or an
    unresolvable path leaves the schema unchanged.
    """

    def _drop(siblings: List[SchemaField]) -> List[SchemaField]:
        kept: List[SchemaField] = [f for f in siblings if f.id != field_id]
        return kept if len(kept) != len(siblings) else siblings

    result: DTOSchema = _apply_to_siblings(schema, parent_path, _drop)
    if result is schema:
        logger.debug(
            "remove_field: id %r not found under path %r — no-op.",
            field_id,
            list(parent_path or ()),
        )
    return result


def add_field(
    schema: DTOSchema,
    field: Optional[SchemaField] = None,
    parent_path: Optional[Sequence[str]] = None,
    *,
    id_factory: Optional[IdFactory] = None,
) -> DTOSchema:
    """Append *field* (or a fresh default one) to the addressed sibling list."""
    new_field: SchemaField = field if field is not None else create_field(id_factory)

    def _append(siblings: List[SchemaField]) -> List[SchemaField]:
        return [*siblings, new_field]

    return _apply_to_siblings(schema, parent_path, _append)


def move_field(
    schema: DTOSchema,
    field_id: str,
    offset: int,
    parent_path: Optional[Sequence[str]] = None,
) -> DTOSchema:
    """
    Move *field_id* by *offset* positions inside its sibling list.

    The target position is clamped to the list bounds.
    """

    def _move(siblings: List[SchemaField]) -> List[SchemaField]:
        ids: List[str] = [f.id for f in siblings]
        if field_id not in ids:
            return siblings
        start: int = ids.index(field_id)
        target: int = max(0, min(len(siblings) - 1, start + offset))
        if target == start:
            return siblings
        reordered: List[SchemaField] = list(siblings)
        reordered.insert(target, reordered.pop(start))
        return reordered

    return _apply_to_siblings(schema, parent_path, _move)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldForest",
    "create_field",
    "iter_fields",
    "iter_fields_with_path",
    "iter_shaped_fields",
    "find_field",
    "find_path",
    "update_field",
    "update_fields",
    "remove_field",
    "add_field",
    "move_field",
]
