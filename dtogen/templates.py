# File: dtogen/templates.py
"""
DTOGen - Code Template Engine
===============================
Pure-Python code generation engine.

This module is the **heart** of DTOGen — it walks a ``DTOSchema`` field tree
and renders two TypeScript artifacts:
    1. A type-definition module: enums, nested interfaces, the root
       ``<Name>Dto`` type, four derived aliases and one export list.
    2. A Mongoose schema module: ``new Schema<...>(...)`` with per-field
       definitions and options, indexes, virtual/method/static/hook stubs,
       model registration and export.

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()`` pattern.
    - Template methods are stateless — safe for concurrent use.

**Determinism contract:**
    - Output depends only on the schema snapshot and the config.
    - Field order, enum order and declaration order follow the tree's
      pre-order traversal; nothing is sorted or de-duplicated.
    - Malformed input (empty names, dangling refs) is rendered as given.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from dtogen.models import (
    CURRENT_TIME_DEFAULT,
    DTOSchema,
    FieldType,
    GenerationConfig,
    IndexDefinition,
    SchemaField,
    ValidationRuleType,
)
from dtogen.tree import iter_shaped_fields
from dtogen.utils import (
    enum_type_name,
    format_bool,
    format_literal,
    join_sections,
    nested_type_name,
    wrap_in_quotes,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("dtogen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_DTO_BASE_IMPORT: str = 'import { Document, Types } from "mongoose";'
_SCHEMA_BASE_IMPORT: str = 'import { Model, Schema, model } from "mongoose";'

# Fields omitted from the Create variant (identity + timestamps).
_CREATE_OMITTED_KEYS: str = "'_id' | 'createdAt' | 'updatedAt'"

# FieldType → TypeScript type expression (scalar kinds only)
_TS_TYPE_MAP: Dict[str, str] = {
    "string": "string",
    "number": "number",
    "boolean": "boolean",
    "Date": "Date",
    "ObjectId": "Types.ObjectId",
    "Buffer": "Buffer",
    "mixed": "any",
    "Map": "Map<string, any>",
    "Decimal128": "Types.Decimal128",
}

# Element types that need mapping inside ``T[]``; others render literally.
_TS_ARRAY_ELEMENT_MAP: Dict[str, str] = {
    "ObjectId": "Types.ObjectId",
    "Decimal128": "Types.Decimal128",
}

# FieldType → Mongoose SchemaType tag (scalar kinds only)
_MONGOOSE_TYPE_MAP: Dict[str, str] = {
    "string": "String",
    "number": "Number",
    "boolean": "Boolean",
    "Date": "Date",
    "ObjectId": "Schema.Types.ObjectId",
    "Buffer": "Buffer",
    "mixed": "Schema.Types.Mixed",
    "Map": "Map",
    "Decimal128": "Schema.Types.Decimal128",
    "enum": "String",
}

# Array element tags; anything not listed is stored as Mixed.
_MONGOOSE_ARRAY_ELEMENT_MAP: Dict[str, str] = {
    "ObjectId": "Schema.Types.ObjectId",
    "string": "String",
    "number": "Number",
    "boolean": "Boolean",
    "Date": "Date",
    "Decimal128": "Schema.Types.Decimal128",
}

_WILDCARD_TAG: str = "Schema.Types.Mixed"

# Validation rule kinds rendered as schema options, in rule order.
_RENDERED_RULES: Dict[str, str] = {
    ValidationRuleType.MIN.value: "min",
    ValidationRuleType.MAX.value: "max",
    ValidationRuleType.MIN_LENGTH.value: "minLength",
    ValidationRuleType.MAX_LENGTH.value: "maxLength",
    ValidationRuleType.MATCH.value: "match",
}


def _kind(value: Any) -> Optional[str]:
    """Plain string value of a FieldType (or None)."""
    if isinstance(value, Enum):
        return value.value
    return value


# ---------------------------------------------------------------------------
# Tree queries shared by both emitters
# ---------------------------------------------------------------------------


def collect_enum_fields(schema: DTOSchema) -> List[SchemaField]:
    """
    Every enum-typed field reachable through a nested shape, in pre-order.

    Nested enum fields are included: their declarations are referenced by
    inline member types.  Fields without a member list still get an empty
    declaration so the member type resolves.
    """
    return [f for f in iter_shaped_fields(schema) if _kind(f.type) == FieldType.ENUM.value]


def collect_enum_names(schema: DTOSchema) -> List[str]:
    """Enum declaration names in emission order."""
    return [enum_type_name(f.name) for f in collect_enum_fields(schema)]


# ---------------------------------------------------------------------------
# TemplateGenerator class
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless code-generation engine.

    Accepts a ``GenerationConfig`` and produces TypeScript source strings
    from ``DTOSchema`` snapshots.  Each ``generate_*`` method returns a
    complete, self-contained file content string.

    Thread-safe: no mutable instance state.
    """

    def __init__(self, config: Optional[GenerationConfig] = None) -> None:
        self._config: GenerationConfig = config or GenerationConfig()
        self._indent: str = " " * self._config.indent_size
        self._double_indent: str = self._indent * 2
        self._triple_indent: str = self._indent * 3
        logger.debug(
            "TemplateGenerator initialised (indent=%d, dto_import_dir=%s).",
            self._config.indent_size,
            self._config.dto_import_dir,
        )

    # ===================================================================
    # Type mapping
    # ===================================================================

    def ts_type(self, field: SchemaField) -> str:
        """
        Render the TypeScript type expression of *field*.

        Object shapes are rendered inline; named interfaces are emitted
        separately by :meth:`generate_dto`.
        """
        kind: Optional[str] = _kind(field.type)

        if kind == FieldType.ARRAY.value:
            if _kind(field.array_type) == FieldType.OBJECT.value and field.nested_fields is not None:
                return f"{self._inline_ts_object(field.nested_fields)}[]"
            element: Optional[str] = _kind(field.array_type)
            if element is None:
                return "any[]"
            return f"{_TS_ARRAY_ELEMENT_MAP.get(element, element)}[]"

        if kind == FieldType.OBJECT.value:
            if field.nested_fields is not None:
                return self._inline_ts_object(field.nested_fields)
            return "object"

        if kind == FieldType.ENUM.value:
            return enum_type_name(field.name)

        return _TS_TYPE_MAP.get(kind or "", "any")

    def _inline_ts_object(self, children: Sequence[SchemaField]) -> str:
        if not children:
            return "{}"
        members: List[str] = [
            f"{self._double_indent}{self._ts_member(child)}" for child in children
        ]
        return "{\n" + "\n".join(members) + f"\n{self._indent}}}"

    def _ts_member(self, field: SchemaField) -> str:
        optional: str = "" if field.required else "?"
        return f"{field.name}{optional}: {self.ts_type(field)};"

    def _ts_member_line(self, field: SchemaField, *, mark_deprecated: bool = False) -> str:
        line: str = f"{self._indent}{self._ts_member(field)}"
        if field.description:
            line += f" // {field.description}"
        if mark_deprecated and field.deprecated:
            line += " @deprecated"
        return line

    def mongoose_type(self, field: SchemaField) -> str:
        """Render the Mongoose type tag (or structural expression) of *field*."""
        kind: Optional[str] = _kind(field.type)

        if kind == FieldType.ARRAY.value:
            if _kind(field.array_type) == FieldType.OBJECT.value and field.nested_fields is not None:
                return self._mongoose_subdocument_array(field.nested_fields)
            element: str = _kind(field.array_type) or ""
            return f"[{_MONGOOSE_ARRAY_ELEMENT_MAP.get(element, _WILDCARD_TAG)}]"

        if kind == FieldType.OBJECT.value:
            if field.nested_fields is not None:
                return self._mongoose_nested_object(field.nested_fields)
            return _WILDCARD_TAG

        return _MONGOOSE_TYPE_MAP.get(kind or "", _WILDCARD_TAG)

    def _mongoose_children(self, children: Sequence[SchemaField]) -> List[str]:
        return [
            f"{self._double_indent}{child.name}: {self.field_definition(child)}"
            for child in children
        ]

    def _mongoose_nested_object(self, children: Sequence[SchemaField]) -> str:
        if not children:
            return "{}"
        body: str = ",\n".join(self._mongoose_children(children))
        return "{\n" + body + f"\n{self._indent}}}"

    def _mongoose_subdocument_array(self, children: Sequence[SchemaField]) -> str:
        entries: List[str] = self._mongoose_children(children)
        entries.append(f"{self._double_indent}_id: false")
        return "[{\n" + ",\n".join(entries) + f"\n{self._indent}}}]"

    # ===================================================================
    # Field-definition rendering
    # ===================================================================

    def _default_literal(self, field: SchemaField) -> str:
        value: str = field.default or ""
        if _kind(field.type) == FieldType.STRING.value:
            return wrap_in_quotes(value)
        if value == CURRENT_TIME_DEFAULT:
            return CURRENT_TIME_DEFAULT
        return value

    def field_options(self, field: SchemaField) -> List[str]:
        """
        Ordered ``key: value`` option entries for a scalar field.

        The first entry is always the type tag.  Validation rules are emitted
        one per rule in their original order; duplicates are kept.
        """
        options: List[str] = [f"type: {self.mongoose_type(field)}"]

        if field.required:
            options.append("required: true")
        if field.unique:
            options.append("unique: true")
        if field.index:
            options.append("index: true")
        if field.sparse:
            options.append("sparse: true")
        if field.immutable:
            options.append("immutable: true")
        if field.default:
            options.append(f"default: {self._default_literal(field)}")
        if field.ref:
            options.append(f"ref: {wrap_in_quotes(field.ref)}")
        if field.ref_path:
            options.append(f"refPath: {wrap_in_quotes(field.ref_path)}")
        if field.alias:
            options.append(f"alias: {wrap_in_quotes(field.alias)}")
        if field.select is False:
            options.append("select: false")

        for rule in field.validation or ():
            key: Optional[str] = _RENDERED_RULES.get(_kind(rule.type) or "")
            if key is not None:
                options.append(f"{key}: {format_literal(rule.value)}")

        if _kind(field.type) == FieldType.ENUM.value and field.enum is not None:
            options.append(f"enum: Object.values({enum_type_name(field.name)})")

        return options

    def field_definition(self, field: SchemaField) -> str:
        """
        Render the right-hand side of ``name: <definition>`` for *field*.

        Arrays and plain objects are rendered structurally.  A scalar field
        with nothing but its type renders as the bare type tag.
        """
        if _kind(field.type) in (FieldType.ARRAY.value, FieldType.OBJECT.value):
            return self.mongoose_type(field)

        options: List[str] = self.field_options(field)
        if len(options) == 1:
            return self.mongoose_type(field)

        separator: str = f",\n{self._triple_indent}"
        return (
            "{\n"
            f"{self._triple_indent}{separator.join(options)}\n"
            f"{self._double_indent}}}"
        )

    # ===================================================================
    # 1. Type definition module
    # ===================================================================

    def _enum_declarations(self, schema: DTOSchema) -> List[str]:
        declarations: List[str] = []
        for field in collect_enum_fields(schema):
            members: str = ",\n".join(
                f"{self._indent}{member.key} = {wrap_in_quotes(member.value)}"
                for member in field.enum or ()
            )
            body: str = f"\n{members}\n" if members else "\n"
            declarations.append(f"enum {enum_type_name(field.name)} {{{body}}}")
        return declarations

    def _interface_declarations(
        self, fields: Sequence[SchemaField], prefix: str
    ) -> List[str]:
        """Pre-order: each interface precedes its descendants' interfaces."""
        interfaces: List[str] = []
        for field in fields:
            children: Optional[List[SchemaField]] = field.nested_fields
            if children is None:
                continue
            if field.is_object:
                name: str = nested_type_name(prefix, field.name)
            elif field.is_object_array:
                name = nested_type_name(prefix, field.name, is_array_item=True)
            else:
                continue

            members: List[str] = [self._ts_member_line(child) for child in children]
            body: str = "\n".join(members)
            interfaces.append(
                f"interface {name} {{\n{body}\n}}" if body else f"interface {name} {{\n}}"
            )
            interfaces.extend(self._interface_declarations(children, name))
        return interfaces

    def generate_dto(self, schema: DTOSchema) -> str:
        """
        Generate the TypeScript type-definition module for *schema*.

        Layout: imports, enums, nested interfaces, root type, derived
        aliases, export list.
        """
        name: str = schema.name
        root: str = f"{name}Dto"
        document: str = f"{name}SchemaDto"
        create: str = f"Create{name}Dto"
        update: str = f"Update{name}Dto"
        populated: str = f"{name}PopulatedDto"

        # --- Imports ---
        imports: List[str] = [_DTO_BASE_IMPORT]
        imports.extend(line for line in schema.imports if line.strip())

        # --- Enums & nested interfaces ---
        enums: List[str] = self._enum_declarations(schema)
        interfaces: List[str] = self._interface_declarations(schema.fields, name)

        # --- Root type ---
        root_lines: List[str] = [f"type {root} = {{"]
        root_lines.extend(
            self._ts_member_line(field, mark_deprecated=True) for field in schema.fields
        )
        root_lines.append("};")

        # --- Derived aliases ---
        derived: List[str] = [
            f"type {document} = {root} & Document;",
            f"type {create} = Omit<{root}, {_CREATE_OMITTED_KEYS}>;",
            f"type {update} = Partial<{create}>;",
            f"type {populated} = {root}; // Add populated field types as needed",
        ]

        # --- Export list ---
        exported: List[str] = [root, document, create, update, populated]
        exported.extend(collect_enum_names(schema))
        export_statement: str = (
            "export {\n"
            + ",\n".join(f"{self._indent}{n}" for n in exported)
            + "\n};"
        )

        content: str = join_sections([
            "\n".join(imports),
            "\n\n".join(enums),
            "\n\n".join(interfaces),
            "\n".join(root_lines),
            "\n".join(derived),
            export_statement,
        ])
        logger.debug(
            "Generated DTO for '%s': %d enums, %d interfaces.",
            name,
            len(enums),
            len(interfaces),
        )
        return content

    # ===================================================================
    # 2. Mongoose schema module
    # ===================================================================

    def dto_module_path(self, schema: DTOSchema) -> str:
        """Import specifier of the DTO module, e.g. ``../dtos/user.dto``."""
        file_name: str = self._config.dto_file_name(schema.name)
        if file_name.endswith(".ts"):
            file_name = file_name[: -len(".ts")]
        return f"{self._config.dto_import_dir.rstrip('/')}/{file_name}"

    def _options_block(self, schema: DTOSchema) -> List[str]:
        opts = schema.options
        entries: List[str] = [
            f"timestamps: {format_bool(opts.timestamps)},",
            f"versionKey: {format_bool(opts.version_key)},",
            f"strict: {format_bool(opts.strict)},",
            f"validateBeforeSave: {format_bool(opts.validate_before_save)},",
            f"autoIndex: {format_bool(opts.auto_index)},",
        ]
        if opts.collection:
            entries.append(f"collection: {wrap_in_quotes(opts.collection)},")
        if opts.discriminator_key:
            entries.append(f"discriminatorKey: {wrap_in_quotes(opts.discriminator_key)},")
        return [f"{self._double_indent}{entry}" for entry in entries]

    def _index_statement(self, schema_var: str, index: IndexDefinition) -> str:
        keys: str = ", ".join(f"{f}: 1" for f in index.fields)
        flags: List[str] = []
        if index.unique:
            flags.append("unique: true")
        if index.sparse:
            flags.append("sparse: true")
        if index.background:
            flags.append("background: true")
        flags_str: str = f", {{ {', '.join(flags)} }}" if flags else ""
        return f"{schema_var}.index({{ {keys} }}{flags_str});"

    def _stub(self, head: str, comment: str, extra: Sequence[str] = ()) -> str:
        lines: List[str] = [head, f"{self._indent}// {comment}"]
        lines.extend(f"{self._indent}{line}" for line in extra)
        return "\n".join(lines)

    def generate_schema(self, schema: DTOSchema) -> str:
        """
        Generate the Mongoose schema/model module for *schema*.

        Layout: imports, schema construction, indexes, virtuals, methods,
        statics, hooks, model registration, export.
        """
        name: str = schema.name
        schema_var: str = f"{name}Schema"
        document: str = f"{name}SchemaDto"

        # --- Imports ---
        dto_names: List[str] = [document] + collect_enum_names(schema)
        imports: List[str] = [
            _SCHEMA_BASE_IMPORT,
            f"import {{ {', '.join(dto_names)} }} from "
            f"{wrap_in_quotes(self.dto_module_path(schema))};",
        ]

        # --- Schema construction ---
        field_lines: List[str] = [
            f"{self._double_indent}{field.name}: {self.field_definition(field)}"
            for field in schema.fields
        ]
        construction: List[str] = [f"const {schema_var} = new Schema<{document}>("]
        construction.append(f"{self._indent}{{")
        if field_lines:
            construction.append(",\n".join(field_lines))
        construction.append(f"{self._indent}}},")
        construction.append(f"{self._indent}{{")
        construction.extend(self._options_block(schema))
        construction.append(f"{self._indent}}}")
        construction.append(");")

        # --- Indexes ---
        indexes: List[str] = [
            self._index_statement(schema_var, index) for index in schema.indexes or ()
        ]

        # --- Virtuals / methods / statics ---
        virtuals: List[str] = [
            self._stub(
                f"{schema_var}.virtual('{v}').get(function() {{",
                "Add virtual logic here",
            ) + "\n});"
            for v in schema.virtuals
        ]
        methods: List[str] = [
            self._stub(
                f"{schema_var}.methods.{m} = function() {{",
                "Add method logic here",
            ) + "\n};"
            for m in schema.methods
        ]
        statics: List[str] = [
            self._stub(
                f"{schema_var}.statics.{s} = function() {{",
                "Add static method logic here",
            ) + "\n};"
            for s in schema.statics
        ]

        # --- Lifecycle hooks (pre first, then post) ---
        hooks: List[str] = [
            self._stub(
                f"{schema_var}.pre('{hook}', function(next) {{",
                "Add pre-hook logic here",
                extra=("next();",),
            ) + "\n});"
            for hook in schema.hooks.pre
        ]
        hooks.extend(
            self._stub(
                f"{schema_var}.post('{hook}', function(doc) {{",
                "Add post-hook logic here",
            ) + "\n});"
            for hook in schema.hooks.post
        )

        # --- Model registration & export ---
        model_line: str = (
            f"const {name}: Model<{document}> = model({wrap_in_quotes(name)}, {schema_var});"
        )
        export_line: str = f"export {{ {name} }};"

        content: str = join_sections([
            "\n".join(imports),
            "\n".join(construction),
            "\n".join(indexes),
            "\n\n".join(virtuals),
            "\n\n".join(methods),
            "\n\n".join(statics),
            "\n\n".join(hooks),
            model_line,
            export_line,
        ])
        logger.debug(
            "Generated schema for '%s': %d fields, %d indexes, %d hooks.",
            name,
            len(schema.fields),
            len(indexes),
            len(hooks),
        )
        return content

    # ===================================================================
    # Aggregate
    # ===================================================================

    def generate_all(self, schema: DTOSchema) -> Dict[str, str]:
        """
        Generate both artifacts, keyed by relative output path.

        Returns:
            ``{"dtos/<name>.dto.ts": ..., "models/<name>.model.ts": ...}``
        """
        cfg: GenerationConfig = self._config
        return {
            f"{cfg.dto_subdir}/{cfg.dto_file_name(schema.name)}": self.generate_dto(schema),
            f"{cfg.model_subdir}/{cfg.model_file_name(schema.name)}": self.generate_schema(schema),
        }


# ---------------------------------------------------------------------------
# Functional entry points (default config)
# ---------------------------------------------------------------------------

_DEFAULT_GENERATOR: TemplateGenerator = TemplateGenerator()


def generate_dto(schema: DTOSchema) -> str:
    """Type-definition text for *schema* with default conventions."""
    return _DEFAULT_GENERATOR.generate_dto(schema)


def generate_mongoose_schema(schema: DTOSchema) -> str:
    """Schema-declaration text for *schema* with default conventions."""
    return _DEFAULT_GENERATOR.generate_schema(schema)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TemplateGenerator",
    "collect_enum_fields",
    "collect_enum_names",
    "generate_dto",
    "generate_mongoose_schema",
]
