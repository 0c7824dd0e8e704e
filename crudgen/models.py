# File: crudgen/models.py
"""
crudgen - Core Data Models
===========================
Pydantic V2 models for every value that flows through the pipeline:

    Raw catalog descriptors → TableMetadata / ColumnMetadata
        → ClassifiedColumns → TemplateContext → GeneratedFile → GenerateResult

Everything from ``TableMetadata`` onwards is frozen: a context handed to
a render function cannot be mutated by it. Raw descriptors are the only
models that tolerate unknown keys, since catalog drivers routinely return
bookkeeping columns the pipeline does not use.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from enum import Enum
from typing import (
    Annotated,
    Any,
    Dict,
    FrozenSet,
    List,
    Literal,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from crudgen.errors import ValidationError
from crudgen.utils import count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class TplCategory(str, Enum):
    """Structural variant of the generated module."""

    CRUD = "crud"
    TREE = "tree"
    SUB = "sub"


class GenType(str, Enum):
    """Output delivery mode."""

    ZIP = "ZIP"
    PATH = "PATH"


class FileType(str, Enum):
    """Category of a generated file."""

    BACKEND = "backend"
    FRONTEND = "frontend"
    SQL = "sql"


class DataScopeType(str, Enum):
    """Row-level access-control classification for generated list queries."""

    ALL = "ALL"
    CUSTOM = "CUSTOM"
    DEPT = "DEPT"
    DEPT_AND_CHILD = "DEPT_AND_CHILD"
    SELF = "SELF"


class QueryType(str, Enum):
    """Comparison operator used by a generated query field."""

    EQ = "EQ"
    NE = "NE"
    GT = "GT"
    GE = "GE"
    LT = "LT"
    LE = "LE"
    LIKE = "LIKE"
    BETWEEN = "BETWEEN"
    IN = "IN"
    NOT_IN = "NOT_IN"


class HtmlType(str, Enum):
    """UI control kind rendered for a column."""

    INPUT = "input"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    UPLOAD = "upload"
    EDITOR = "editor"
    NUMBER = "number"
    IMAGE_UPLOAD = "imageUpload"
    FILE_UPLOAD = "fileUpload"
    SWITCH = "switch"
    SLIDER = "slider"
    RATE = "rate"
    COLOR_PICKER = "colorPicker"
    TREE_SELECT = "treeSelect"
    CASCADER = "cascader"
    TRANSFER = "transfer"


class PipelineStage(str, Enum):
    """Per-table pipeline states."""

    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    CLASSIFYING = "classifying"
    BUILDING_CONTEXT = "building_context"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_FROZEN_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=True,
    extra="forbid",
    alias_generator=to_camel,
)

_RAW_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    extra="ignore",
    alias_generator=to_camel,
)

_RESULT_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    frozen=False,
    extra="forbid",
    alias_generator=to_camel,
)


# ---------------------------------------------------------------------------
# Raw catalog descriptors
# ---------------------------------------------------------------------------


class RawTable(BaseModel):
    """
    A table record as returned by the catalog accessor.

    Carries the catalog facts (name, comment, timestamps) and the stored
    generation configuration for the table (category, options, per-column
    options, sub-table link, naming overrides).
    """

    model_config = _RAW_CONFIG

    table_id: Optional[int] = None
    table_name: str = Field(..., min_length=1)
    table_comment: Optional[str] = None
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None

    tpl_category: str = Field(default=TplCategory.CRUD.value)
    options: Union[str, Dict[str, Any], None] = None
    column_options: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    sub_table_name: Optional[str] = None
    sub_table_fk_name: Optional[str] = None

    # Naming overrides (fall back to derived values when absent)
    class_name: Optional[str] = None
    package_name: Optional[str] = None
    module_name: Optional[str] = None
    business_name: Optional[str] = None
    function_name: Optional[str] = None
    function_author: Optional[str] = None


class RawColumn(BaseModel):
    """A column record as returned by the catalog accessor."""

    model_config = _RAW_CONFIG

    column_name: str = Field(..., min_length=1)
    column_comment: Optional[str] = None
    column_type: str = Field(default="")
    is_nullable: Any = None
    is_required: Any = None
    is_pk: Any = Field(
        default=False,
        validation_alias=AliasChoices("isPk", "isPrimaryKey", "is_pk", "is_primary_key"),
    )
    is_increment: Any = Field(
        default=False,
        validation_alias=AliasChoices(
            "isIncrement", "isAutoIncrement", "is_increment", "is_auto_increment"
        ),
    )
    column_default: Any = Field(
        default=None,
        validation_alias=AliasChoices(
            "columnDefault", "defaultValue", "column_default", "default_value"
        ),
    )
    max_length: Optional[int] = None
    sort: Optional[int] = None
    dict_type: Optional[str] = None


class RawTableBundle(BaseModel):
    """What ``fetch_table`` returns: one raw table plus its raw columns."""

    model_config = _RAW_CONFIG

    raw_table: RawTable = Field(
        ..., validation_alias=AliasChoices("rawTable", "raw_table", "table")
    )
    raw_columns: List[RawColumn] = Field(
        default_factory=list,
        validation_alias=AliasChoices("rawColumns", "raw_columns", "columns"),
    )


# ---------------------------------------------------------------------------
# Normalized metadata
# ---------------------------------------------------------------------------


class TableMetadata(BaseModel):
    """Catalog facts about one source table, immutable once normalized."""

    model_config = _FROZEN_CONFIG

    table_name: str = Field(..., min_length=1)
    table_comment: Optional[str] = None
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None

    def __repr__(self) -> str:
        return f"<Table {self.table_name}>"


class ColumnMetadata(BaseModel):
    """
    One normalized column.

    The catalog facts (name, type, flags, default, length, sort) are
    joined by the values resolved during normalization: the language
    type and HTML control from the type map, the camelCase field name,
    the default query operator and the dictionary type.
    """

    model_config = _FROZEN_CONFIG

    table_name: str
    column_name: str = Field(..., min_length=1)
    column_comment: Optional[str] = None
    column_type: str
    is_nullable: bool = True
    is_primary_key: bool = False
    is_auto_increment: bool = False
    default_value: Optional[str] = None
    max_length: Optional[int] = None
    sort: int = 0

    language_type: str = "string"
    html_type: HtmlType = HtmlType.INPUT
    field_name: str
    query_type: QueryType = QueryType.EQ
    dict_type: Optional[str] = None

    @property
    def label(self) -> str:
        """Display label: the comment when present, else the column name."""
        return self.column_comment or self.column_name

    @property
    def is_string(self) -> bool:
        return self.language_type == "string"

    @property
    def is_dict(self) -> bool:
        return bool(self.dict_type)

    def __repr__(self) -> str:
        pk_flag: str = " PK" if self.is_primary_key else ""
        null_flag: str = " NULL" if self.is_nullable else " NOT NULL"
        return f"<Column {self.table_name}.{self.column_name} {self.column_type}{pk_flag}{null_flag}>"


# ---------------------------------------------------------------------------
# Generation options (grouped, strongly typed)
# ---------------------------------------------------------------------------


class TreeOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    tree_code: Optional[str] = None
    tree_parent_code: Optional[str] = None
    tree_name: Optional[str] = None
    parent_menu_id: Optional[int] = None
    parent_menu_name: Optional[str] = None


class DataScopeOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    enable_data_scope: bool = False
    data_scope_column: Optional[str] = None
    data_scope_type: Optional[DataScopeType] = None


class ImportExportOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    enable_export: bool = False
    enable_import: bool = False
    export_fields: Tuple[str, ...] = ()
    import_fields: Tuple[str, ...] = ()
    export_file_name: Optional[str] = None


class TenantOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    enable_tenant: bool = False
    tenant_column: str = "tenant_id"


class AuditOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    enable_operlog: bool = False
    operlog_title: Optional[str] = None


class SearchOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    enable_advanced_search: bool = False
    default_sort_field: Optional[str] = None
    default_sort_order: Literal["asc", "desc"] = "desc"


class FrontendOptions(BaseModel):
    """UX toggles interpreted only by the frontend template bodies."""

    model_config = _FROZEN_CONFIG

    enable_column_resize: bool = False
    enable_column_toggle: bool = False
    enable_inline_edit: bool = False
    enable_batch_edit: bool = False
    table_height: Optional[int] = Field(default=None, ge=1)


class ApiOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    api_group: Optional[str] = None
    api_description: Optional[str] = None


class QualityOptions(BaseModel):
    model_config = _FROZEN_CONFIG

    enable_unit_test: bool = False
    enable_e2e_test: bool = Field(default=False, alias="enableE2ETest")


# Group attribute name → group model; order is the documented group order.
_OPTION_GROUPS: Dict[str, type] = {
    "tree": TreeOptions,
    "data_scope": DataScopeOptions,
    "import_export": ImportExportOptions,
    "tenant": TenantOptions,
    "audit": AuditOptions,
    "search": SearchOptions,
    "frontend": FrontendOptions,
    "api": ApiOptions,
    "quality": QualityOptions,
}


def _build_flat_key_index() -> Dict[str, Tuple[str, str]]:
    """Map every accepted flat option key (alias or field name) to (group, field)."""
    index: Dict[str, Tuple[str, str]] = {}
    for group_name, group_model in _OPTION_GROUPS.items():
        for field_name, info in group_model.model_fields.items():
            index[field_name] = (group_name, field_name)
            if info.alias:
                index[info.alias] = (group_name, field_name)
    return index


_FLAT_OPTION_KEYS: Dict[str, Tuple[str, str]] = _build_flat_key_index()
_GROUP_KEYS: Dict[str, str] = {
    **{name: name for name in _OPTION_GROUPS},
    **{to_camel(name): name for name in _OPTION_GROUPS},
}


class GenOptions(BaseModel):
    """
    Every recognized generation toggle, grouped by concern.

    Build from stored/request data with :meth:`from_raw`, which accepts
    the flat camelCase form (``{"treeCode": "dept_id"}``), the grouped
    form (``{"tree": {"treeCode": "dept_id"}}``) or a JSON string of
    either, and rejects keys it does not recognize.
    """

    model_config = _FROZEN_CONFIG

    tree: TreeOptions = Field(default_factory=TreeOptions)
    data_scope: DataScopeOptions = Field(default_factory=DataScopeOptions)
    import_export: ImportExportOptions = Field(default_factory=ImportExportOptions)
    tenant: TenantOptions = Field(default_factory=TenantOptions)
    audit: AuditOptions = Field(default_factory=AuditOptions)
    search: SearchOptions = Field(default_factory=SearchOptions)
    frontend: FrontendOptions = Field(default_factory=FrontendOptions)
    api: ApiOptions = Field(default_factory=ApiOptions)
    quality: QualityOptions = Field(default_factory=QualityOptions)

    @classmethod
    def from_raw(
        cls, raw: Union[str, Mapping[str, Any], "GenOptions", None]
    ) -> "GenOptions":
        """
        Parse options from a stored JSON string or a mapping.

        Raises:
            ValidationError: on malformed JSON, unrecognized keys or
                values of the wrong type.
        """
        if raw is None:
            return cls()
        if isinstance(raw, GenOptions):
            return raw
        if isinstance(raw, str):
            if not raw.strip():
                return cls()
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ValidationError(f"Options are not valid JSON: {exc}") from exc
            if not isinstance(raw, dict):
                raise ValidationError(
                    f"Options must be a JSON object, got {type(raw).__name__}."
                )

        grouped: Dict[str, Dict[str, Any]] = {}
        unknown: List[str] = []
        for key, value in raw.items():
            if key in _GROUP_KEYS and isinstance(value, Mapping):
                grouped.setdefault(_GROUP_KEYS[key], {}).update(value)
            elif key in _FLAT_OPTION_KEYS:
                group_name, field_name = _FLAT_OPTION_KEYS[key]
                grouped.setdefault(group_name, {})[field_name] = value
            else:
                unknown.append(key)

        if unknown:
            raise ValidationError(
                f"Unrecognized generation option(s): {sorted(unknown)}"
            )

        try:
            return cls.model_validate(grouped)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid generation options: {exc}") from exc

    def enabled_flags(self) -> FrozenSet[str]:
        """Names of every boolean toggle that is switched on (``enable_*``)."""
        flags: List[str] = []
        for group_name in _OPTION_GROUPS:
            group: BaseModel = getattr(self, group_name)
            for field_name in type(group).model_fields:
                if field_name.startswith("enable_") and getattr(group, field_name):
                    flags.append(field_name)
        return frozenset(flags)


class ColumnOptions(BaseModel):
    """
    Per-column overrides.

    Role flags and the html/query/dict overrides are interpreted by the
    normalizer and classifier. Everything else (display, form layout,
    linkage, validation bounds) is carried to template bodies untouched.
    """

    model_config = _FROZEN_CONFIG

    # Role flags
    is_list: Optional[bool] = None
    is_query: Optional[bool] = None
    is_insert: Optional[bool] = None
    is_edit: Optional[bool] = None
    is_required: Optional[bool] = None
    immutable: bool = False

    # Resolved-value overrides
    html_type: Optional[HtmlType] = None
    query_type: Optional[QueryType] = None
    dict_type: Optional[str] = None

    # Import / export
    is_export: Optional[bool] = None
    is_import: Optional[bool] = None
    export_format: Optional[str] = None
    import_validation: Optional[str] = None

    # Table display
    column_width: Optional[int] = Field(default=None, ge=1)
    column_align: Optional[Literal["left", "center", "right"]] = None
    column_fixed: Optional[Literal["left", "right"]] = None
    column_sortable: Optional[bool] = None
    column_ellipsis: Optional[bool] = None

    # Form layout
    form_col_span: Optional[int] = Field(default=None, ge=1, le=24)
    form_placeholder: Optional[str] = None
    form_default_value: Optional[str] = None
    form_disabled: Optional[bool] = None
    form_readonly: Optional[bool] = None

    # Linkage
    linkage_field: Optional[str] = None
    linkage_type: Optional[Literal["show", "hide", "enable", "disable"]] = None
    linkage_value: Optional[str] = None

    # Validation bounds
    validation_min: Optional[float] = None
    validation_max: Optional[float] = None
    validation_pattern: Optional[str] = None
    validation_message: Optional[str] = None


class TableGenConfig(BaseModel):
    """The generation configuration stored alongside a table, normalized."""

    model_config = _FROZEN_CONFIG

    table_id: Optional[int] = None
    tpl_category: TplCategory = TplCategory.CRUD
    options: GenOptions = Field(default_factory=GenOptions)
    column_options: Dict[str, ColumnOptions] = Field(default_factory=dict)
    sub_table_name: Optional[str] = None
    sub_table_fk_name: Optional[str] = None

    class_name: Optional[str] = None
    package_name: Optional[str] = None
    module_name: Optional[str] = None
    business_name: Optional[str] = None
    function_name: Optional[str] = None
    function_author: Optional[str] = None


class NormalizedTable(BaseModel):
    """Normalizer output: table facts, ordered columns, generation config."""

    model_config = _FROZEN_CONFIG

    table: TableMetadata
    columns: Tuple[ColumnMetadata, ...]
    config: TableGenConfig = Field(default_factory=TableGenConfig)
    warnings: Tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Classification & context
# ---------------------------------------------------------------------------


class ClassifiedColumns(BaseModel):
    """
    The five role subsets plus primary-key and dictionary facts.

    ``columns`` is the full ordered column set with dictionary types
    resolved; every subset holds members of it.
    """

    model_config = _FROZEN_CONFIG

    columns: Tuple[ColumnMetadata, ...] = ()
    pk_column: Optional[ColumnMetadata] = None
    list_columns: Tuple[ColumnMetadata, ...] = ()
    query_columns: Tuple[ColumnMetadata, ...] = ()
    form_columns: Tuple[ColumnMetadata, ...] = ()
    insert_columns: Tuple[ColumnMetadata, ...] = ()
    edit_columns: Tuple[ColumnMetadata, ...] = ()
    has_dict: bool = False
    dict_types: Tuple[str, ...] = ()


class SubTableContext(BaseModel):
    """Naming and classified columns of the detail table in a master/detail pair."""

    model_config = _FROZEN_CONFIG

    table: TableMetadata
    class_name: str
    class_name_lower: str
    business_name: str
    business_pascal: str
    columns: Tuple[ColumnMetadata, ...]
    classified: ClassifiedColumns


class CrudVariant(BaseModel):
    model_config = _FROZEN_CONFIG

    category: Literal["crud"] = "crud"


class TreeVariant(BaseModel):
    model_config = _FROZEN_CONFIG

    category: Literal["tree"] = "tree"
    tree_code: str = Field(..., min_length=1)
    tree_parent_code: str = Field(..., min_length=1)
    tree_name: Optional[str] = None


class SubVariant(BaseModel):
    model_config = _FROZEN_CONFIG

    category: Literal["sub"] = "sub"
    sub_table: SubTableContext
    fk_column: ColumnMetadata


TplVariant = Annotated[
    Union[CrudVariant, TreeVariant, SubVariant],
    Field(discriminator="category"),
]


class TemplateContext(BaseModel):
    """
    The single value handed to every render function.

    Built once per table per run and frozen; render functions receive
    it read-only.
    """

    model_config = _FROZEN_CONFIG

    # Table
    table: TableMetadata
    table_name: str
    table_comment: str
    class_name: str
    class_name_lower: str
    kebab_name: str

    # Module
    module_name: str
    business_name: str
    business_pascal: str
    function_name: str
    function_author: str
    package_name: str
    api_path: str

    # Columns
    columns: Tuple[ColumnMetadata, ...]
    pk_column: Optional[ColumnMetadata] = None
    primary_key: Optional[str] = None
    list_columns: Tuple[ColumnMetadata, ...] = ()
    query_columns: Tuple[ColumnMetadata, ...] = ()
    form_columns: Tuple[ColumnMetadata, ...] = ()
    insert_columns: Tuple[ColumnMetadata, ...] = ()
    edit_columns: Tuple[ColumnMetadata, ...] = ()

    # Auxiliary
    generated_at: str = Field(..., alias="datetime")
    has_dict: bool = False
    dict_types: Tuple[str, ...] = ()

    # Pass-through configuration
    options: GenOptions = Field(default_factory=GenOptions)
    column_options: Tuple[Tuple[str, ColumnOptions], ...] = ()

    variant: TplVariant = Field(default_factory=CrudVariant)

    @property
    def tpl_category(self) -> str:
        return self.variant.category

    @property
    def tree(self) -> Optional[TreeVariant]:
        return self.variant if isinstance(self.variant, TreeVariant) else None

    @property
    def sub(self) -> Optional[SubVariant]:
        return self.variant if isinstance(self.variant, SubVariant) else None

    @property
    def pk_field(self) -> str:
        """camelCase primary-key field for generated code; ``id`` when keyless."""
        return self.pk_column.field_name if self.pk_column else "id"

    @field_validator("column_options", mode="before")
    @classmethod
    def _freeze_column_options(cls, v: Any) -> Any:
        # (column_name, options) pairs in insertion order
        return tuple(v.items()) if isinstance(v, Mapping) else v

    def column_option(self, column: ColumnMetadata) -> ColumnOptions:
        for column_name, opt in self.column_options:
            if column_name == column.column_name:
                return opt
        return ColumnOptions()


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class GeneratedFile(BaseModel):
    """A single file produced by the renderer."""

    model_config = _FROZEN_CONFIG

    file_name: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    content: str
    file_type: FileType
    table_name: Optional[str] = None
    template_key: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        return count_lines(self.content)

    def __repr__(self) -> str:
        return f"<GeneratedFile {self.file_path} ({self.file_type})>"


class GenerateError(BaseModel):
    """Structured error entry returned in ``GenerateResult.errors``."""

    model_config = _FROZEN_CONFIG

    kind: str
    message: str
    table_id: Optional[int] = None
    table_name: Optional[str] = None
    template_key: Optional[str] = None
    stage: Optional[str] = None

    @classmethod
    def from_exception(cls, exc: BaseException, **context: Any) -> "GenerateError":
        """Build an entry from any exception; explicit *context* wins over the exception's."""
        fields: Dict[str, Any] = {
            "kind": getattr(exc, "kind", type(exc).__name__),
            "message": getattr(exc, "message", None) or str(exc) or type(exc).__name__,
        }
        for name in ("table_id", "table_name", "template_key", "stage"):
            value: Any = context.get(name)
            if value is None:
                value = getattr(exc, name, None)
            fields[name] = value
        return cls(**fields)

    def __str__(self) -> str:
        where: List[str] = []
        if self.table_name:
            where.append(f"table {self.table_name}")
        elif self.table_id is not None:
            where.append(f"table #{self.table_id}")
        if self.template_key:
            where.append(f"template {self.template_key}")
        if self.stage:
            where.append(f"stage {self.stage}")
        location: str = f" ({', '.join(where)})" if where else ""
        return f"[{self.kind}]{location} {self.message}"


class GenerateRequest(BaseModel):
    """One batch generation request."""

    model_config = _FROZEN_CONFIG

    table_ids: Tuple[int, ...] = Field(..., min_length=1)
    gen_type: GenType = GenType.ZIP
    gen_path: Optional[str] = None

    @field_validator("table_ids")
    @classmethod
    def _no_duplicate_ids(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        if len(v) != len(set(v)):
            dupes: List[int] = sorted({x for x in v if v.count(x) > 1})
            raise ValueError(f"Duplicate table ids in request: {dupes}")
        return v


class TableOutcome(BaseModel):
    """Terminal state of one table's pipeline."""

    model_config = _FROZEN_CONFIG

    table_id: int
    table_name: Optional[str] = None
    stage: PipelineStage
    failed_stage: Optional[PipelineStage] = None
    file_count: int = 0
    elapsed_seconds: float = 0.0


class GenerateResult(BaseModel):
    """
    Terminal value of a batch call.

    ``success`` is derived from ``errors`` alone: a result can carry a
    usable, non-empty ``files`` list while ``success`` is False, so
    callers must inspect both.
    """

    model_config = _RESULT_CONFIG

    files: List[GeneratedFile] = Field(default_factory=list)
    zip_buffer: Optional[bytes] = None
    errors: List[GenerateError] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    gen_type: GenType = GenType.ZIP
    gen_path: Optional[str] = None
    tables: List[TableOutcome] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    @property
    def error_messages(self) -> List[str]:
        return [str(err) for err in self.errors]

    def files_for(self, table_name: str) -> List[GeneratedFile]:
        return [f for f in self.files if f.table_name == table_name]

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append("=" * 60)
        lines.append("  crudgen: Generation Result")
        lines.append("=" * 60)
        lines.append(f"  Status:           {status}")
        lines.append(f"  Delivery:         {self.gen_type}")
        if self.gen_path:
            lines.append(f"  Path:             {self.gen_path}")
        lines.append(f"  Files generated:  {len(self.files)}")
        if self.zip_buffer is not None:
            lines.append(f"  Archive size:     {len(self.zip_buffer):,} bytes")
        if self.tables:
            lines.append("-" * 60)
            lines.append("  Tables:")
            for outcome in self.tables:
                icon: str = "✓" if outcome.stage == PipelineStage.DONE.value else "✗"
                label: str = outcome.table_name or f"#{outcome.table_id}"
                detail: str = (
                    f"{outcome.file_count} files"
                    if outcome.failed_stage is None
                    else f"failed at {outcome.failed_stage}"
                )
                lines.append(
                    f"    {icon} {label:<28s} {outcome.elapsed_seconds:>7.3f}s  {detail}"
                )
        if self.errors:
            lines.append("-" * 60)
            lines.append(f"  Errors ({len(self.errors)}):")
            for err in self.errors:
                lines.append(f"    ✗ {err}")
        if self.warnings:
            lines.append("-" * 60)
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ⚠ {warn}")
        lines.append("=" * 60)
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TplCategory",
    "GenType",
    "FileType",
    "DataScopeType",
    "QueryType",
    "HtmlType",
    "PipelineStage",
    "RawTable",
    "RawColumn",
    "RawTableBundle",
    "TableMetadata",
    "ColumnMetadata",
    "TreeOptions",
    "DataScopeOptions",
    "ImportExportOptions",
    "TenantOptions",
    "AuditOptions",
    "SearchOptions",
    "FrontendOptions",
    "ApiOptions",
    "QualityOptions",
    "GenOptions",
    "ColumnOptions",
    "TableGenConfig",
    "NormalizedTable",
    "ClassifiedColumns",
    "SubTableContext",
    "CrudVariant",
    "TreeVariant",
    "SubVariant",
    "TplVariant",
    "TemplateContext",
    "GeneratedFile",
    "GenerateError",
    "GenerateRequest",
    "TableOutcome",
    "GenerateResult",
]
