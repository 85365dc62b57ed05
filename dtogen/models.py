# File: dtogen/models.py
"""
DTOGen - Core Data Models
==========================
Pydantic V2 models describing a document schema as a recursive field tree,
plus the configuration that controls how generated files are named and laid
out.  These models are the single source of truth for the pipeline:

    Schema Input → Tree Editing → Validation → Code Generation → Export

Wire format: keys are camelCase (``nestedFields``, ``arrayType``, ...) so a
schema round-trips through JSON exactly as the editor and the assistant
exchange it.  Python attributes are snake_case; both spellings are accepted
on input.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.models")

# ---------------------------------------------------------------------------
# Enums — fixed sets used across the entire project
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    """Supported field kinds (wire values match the editor's vocabulary)."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "Date"
    OBJECT_ID = "ObjectId"
    ARRAY = "array"
    OBJECT = "object"
    ENUM = "enum"
    MIXED = "mixed"
    BUFFER = "Buffer"
    MAP = "Map"
    DECIMAL128 = "Decimal128"


class ValidationRuleType(str, Enum):
    """Kinds of per-field validation rules."""

    MIN = "min"
    MAX = "max"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    MATCH = "match"
    VALIDATE = "validate"
    CUSTOM = "custom"


class IndexType(str, Enum):
    """Index kind tags carried on schema-level index definitions."""

    SINGLE = "single"
    COMPOUND = "compound"
    TEXT = "text"
    GEO_2DSPHERE = "2dsphere"
    HASHED = "hashed"


# Sentinel default that renders as a bare function reference.
CURRENT_TIME_DEFAULT: str = "Date.now"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    validate_default=True,
    frozen=False,
    extra="ignore",
)


# ---------------------------------------------------------------------------
# Field-level primitives
# ---------------------------------------------------------------------------


class ValidationRule(BaseModel):
    """A single validation rule; duplicates of the same kind are legal."""

    model_config = _SHARED_CONFIG

    type: ValidationRuleType = Field(..., description="Rule kind.")
    value: Union[int, float, str] = Field(..., description="Rule operand.")
    message: Optional[str] = Field(default=None, description="Custom message.")

    def __repr__(self) -> str:
        return f"<ValidationRule {self.type}={self.value!r}>"


class EnumValue(BaseModel):
    """One ``KEY = "value"`` member of an enumeration."""

    model_config = _SHARED_CONFIG

    key: str = Field(default="", description="Member identifier.")
    value: str = Field(default="", description="Stored string value.")
    description: Optional[str] = Field(default=None)


class IndexDefinition(BaseModel):
    """Schema-level index registration."""

    model_config = _SHARED_CONFIG

    fields: List[str] = Field(default_factory=list, description="Ordered field names.")
    type: IndexType = Field(default=IndexType.SINGLE, description="Index kind tag.")
    unique: Optional[bool] = Field(default=None)
    sparse: Optional[bool] = Field(default=None)
    background: Optional[bool] = Field(default=None)


class SchemaField(BaseModel):
    """
    One property definition in a schema, possibly containing nested fields.

    ``id`` is the sole addressing key for tree edits, independent of the
    field's position.  ``nested_fields`` only carries a shape when ``type``
    is ``object``, or ``array`` with ``array_type`` ``object``; every other
    combination is treated as having no nested shape.
    """

    model_config = _SHARED_CONFIG

    id: str = Field(default="", description="Stable identity, unique in the whole tree.")
    name: str = Field(default="", description="Property name (may be empty while editing).")
    type: FieldType = Field(default=FieldType.STRING)

    # -- Flags --------------------------------------------------------------
    required: bool = Field(default=False)
    unique: bool = Field(default=False)
    index: Optional[bool] = Field(default=None)
    sparse: Optional[bool] = Field(default=None)
    immutable: Optional[bool] = Field(default=None)
    deprecated: Optional[bool] = Field(default=None)

    # -- Storage options ----------------------------------------------------
    default: Optional[str] = Field(
        default=None,
        description="Literal or sentinel (e.g. 'Date.now') default value.",
    )
    ref: Optional[str] = Field(default=None, description="Referenced model name.")
    ref_path: Optional[str] = Field(default=None, alias="refPath")
    populate: Optional[bool] = Field(default=None)
    select: Optional[bool] = Field(default=None)
    transform: Optional[str] = Field(default=None)
    alias: Optional[str] = Field(default=None)
    validation: Optional[List[ValidationRule]] = Field(default=None)
    enum: Optional[List[EnumValue]] = Field(default=None)

    # -- Arrays & nesting ---------------------------------------------------
    array_type: Optional[FieldType] = Field(default=None, alias="arrayType")
    array_ref: Optional[str] = Field(default=None, alias="arrayRef")
    array_min_items: Optional[int] = Field(default=None, alias="arrayMinItems")
    array_max_items: Optional[int] = Field(default=None, alias="arrayMaxItems")
    nested_fields: Optional[List[SchemaField]] = Field(default=None, alias="nestedFields")

    # -- Documentation ------------------------------------------------------
    description: Optional[str] = Field(default=None)
    example: Optional[str] = Field(default=None)
    virtual: Optional[bool] = Field(default=None)
    getter: Optional[str] = Field(default=None)
    setter: Optional[str] = Field(default=None)

    # UI-only presentation state, ignored by generation.
    is_expanded: Optional[bool] = Field(default=None, alias="isExpanded")

    @field_validator("default", mode="before")
    @classmethod
    def _stringify_default(cls, v: Any) -> Any:
        # Assistant payloads carry bare JSON literals; keep their source text.
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @property
    def is_object(self) -> bool:
        return self.type == FieldType.OBJECT

    @property
    def is_object_array(self) -> bool:
        return self.type == FieldType.ARRAY and self.array_type == FieldType.OBJECT

    @property
    def nested_shape(self) -> Optional[List[SchemaField]]:
        """Children that define a nested shape, or None for scalar fields."""
        if self.is_object or self.is_object_array:
            return self.nested_fields
        return None

    def __repr__(self) -> str:
        req: str = " required" if self.required else ""
        return f"<SchemaField {self.name!r} {self.type}{req} id={self.id}>"


# ---------------------------------------------------------------------------
# Schema-level aggregates
# ---------------------------------------------------------------------------


class SchemaOptions(BaseModel):
    """Options object of the generated schema declaration."""

    model_config = _SHARED_CONFIG

    timestamps: bool = Field(default=True)
    version_key: bool = Field(default=False, alias="versionKey")
    collection: Optional[str] = Field(default=None, description="Custom collection name.")
    discriminator_key: Optional[str] = Field(default=None, alias="discriminatorKey")
    strict: bool = Field(default=True)
    validate_before_save: bool = Field(default=True, alias="validateBeforeSave")
    auto_index: bool = Field(default=True, alias="autoIndex")


class SchemaHooks(BaseModel):
    """Lifecycle hook stage names (e.g. 'save', 'remove')."""

    model_config = _SHARED_CONFIG

    pre: List[str] = Field(default_factory=list)
    post: List[str] = Field(default_factory=list)


class EnumDeclaration(BaseModel):
    """Schema-level enum, kept separately from per-field enums."""

    model_config = _SHARED_CONFIG

    name: str = Field(default="")
    values: List[EnumValue] = Field(default_factory=list)
    description: Optional[str] = Field(default=None)


class DTOSchema(BaseModel):
    """
    The root aggregate: a complete document type.

    The generation engine only ever reads a snapshot of this model; edits go
    through ``dtogen.tree`` and always return a new instance.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(default="User", description="Drives type, model and file names.")
    fields: List[SchemaField] = Field(default_factory=list)
    imports: List[str] = Field(default_factory=list, description="Raw import lines.")
    enums: List[EnumDeclaration] = Field(default_factory=list)
    indexes: Optional[List[IndexDefinition]] = Field(default_factory=list)
    options: SchemaOptions = Field(default_factory=SchemaOptions)
    hooks: SchemaHooks = Field(default_factory=SchemaHooks)
    virtuals: List[str] = Field(default_factory=list)
    methods: List[str] = Field(default_factory=list)
    statics: List[str] = Field(default_factory=list)

    @classmethod
    def new(cls, name: str = "User") -> DTOSchema:
        """Return the starting state of the editor: no fields, default options."""
        return cls(name=name)

    def field_count(self) -> int:
        """Number of fields in the whole tree."""
        from dtogen.tree import iter_fields

        return sum(1 for _ in iter_fields(self))

    def to_wire(self) -> Dict[str, Any]:
        """camelCase dict without absent keys (the JSON exchange format)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def __repr__(self) -> str:
        return (
            f"<DTOSchema {self.name!r} "
            f"{len(self.fields)} top-level fields, "
            f"{self.field_count()} total>"
        )


# ---------------------------------------------------------------------------
# Code Generation Configuration
# ---------------------------------------------------------------------------


class GenerationConfig(BaseModel):
    """Naming and layout conventions for generated files."""

    model_config = ConfigDict(
        strict=False,
        populate_by_name=True,
        validate_assignment=True,
        extra="forbid",
    )

    indent_size: int = Field(default=2, ge=1, le=8, description="Indent width.")
    dto_import_dir: str = Field(
        default="../dtos",
        description="Relative module directory the model file imports DTOs from.",
    )
    dto_subdir: str = Field(default="dtos", description="Output folder for DTO files.")
    model_subdir: str = Field(default="models", description="Output folder for model files.")
    dto_suffix: str = Field(default=".dto.ts")
    model_suffix: str = Field(default=".model.ts")

    def dto_file_name(self, schema_name: str) -> str:
        return f"{schema_name.lower()}{self.dto_suffix}"

    def model_file_name(self, schema_name: str) -> str:
        return f"{schema_name.lower()}{self.model_suffix}"


SchemaField.model_rebuild()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "FieldType",
    "ValidationRuleType",
    "IndexType",
    "CURRENT_TIME_DEFAULT",
    "ValidationRule",
    "EnumValue",
    "IndexDefinition",
    "SchemaField",
    "SchemaOptions",
    "SchemaHooks",
    "EnumDeclaration",
    "DTOSchema",
    "GenerationConfig",
]

logger.debug("dtogen.models loaded — %d public symbols.", len(__all__))
