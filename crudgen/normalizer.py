# File: crudgen/normalizer.py
"""
crudgen - Schema Metadata Normalizer
=====================================
Turns the raw catalog descriptors of one table into ``TableMetadata`` plus
an ordered tuple of ``ColumnMetadata``, and normalizes the generation
configuration stored with the table.

Resolution order for each column's UI control and query operator:

    1. type map            (``crudgen.typemap.map_type``)
    2. length rule         (long varchar → textarea)
    3. name heuristics     (status → radio, *_time → datetime/BETWEEN, ...)
    4. ``ColumnOptions``   (explicit overrides always win)

``diff_columns`` compares a stored column set with a fresh catalog read
so a caller can resynchronise its persisted configuration.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from crudgen.errors import NotFoundError, ValidationError
from crudgen.models import (
    ColumnMetadata,
    ColumnOptions,
    GenOptions,
    HtmlType,
    NormalizedTable,
    QueryType,
    RawColumn,
    RawTable,
    RawTableBundle,
    TableGenConfig,
    TableMetadata,
    TplCategory,
)
from crudgen.typemap import is_string_type, map_type
from crudgen.utils import to_camel_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.normalizer")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

LONG_TEXT_THRESHOLD: int = 500

_TRUE_FLAGS = frozenset({"1", "y", "yes", "true", "t", "on"})
_FALSE_FLAGS = frozenset({"0", "n", "no", "false", "f", "off", ""})

# 'abc'::character varying  /  (0)::numeric  /  'x'::text[]
_PG_CAST_RE: re.Pattern[str] = re.compile(r"::[a-zA-Z_][\w\s]*(\[\])?(\(\d+(,\s*\d+)?\))?$")
_NEXTVAL_RE: re.Pattern[str] = re.compile(r"^\s*nextval\(", re.IGNORECASE)

# Name fragments, checked against the lowercased column name.
_STATUS_HINTS: Tuple[str, ...] = ("status",)
_SELECT_HINTS: Tuple[str, ...] = ("type", "sex")
_TIME_HINTS: Tuple[str, ...] = ("time", "_date")
_IMAGE_HINTS: Tuple[str, ...] = ("image", "avatar", "logo")
_FILE_HINTS: Tuple[str, ...] = ("file", "attachment")
_EDITOR_HINTS: Tuple[str, ...] = ("content", "description")
_LIKE_HINTS: Tuple[str, ...] = ("name",)


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def parse_flag(value: Any) -> Optional[bool]:
    """
    Coerce the catalog's many boolean spellings into ``bool``.

    Accepts real booleans, ints, and the strings ``'1'/'0'``,
    ``'YES'/'NO'``, ``'Y'/'N'``, ``'true'/'false'``. ``None`` stays ``None``.

    Raises:
        ValueError: for any other value.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text: str = str(value).strip().lower()
    if text in _TRUE_FLAGS:
        return True
    if text in _FALSE_FLAGS:
        return False
    raise ValueError(f"Unrecognized boolean flag value: {value!r}")


def clean_default(value: Any) -> Optional[str]:
    """
    Normalize a catalog column default to a plain literal string.

    Examples:
        >>> clean_default("'0'::character varying")
        '0'
        >>> clean_default("''::text")
        >>> clean_default(1)
        '1'
    """
    if value is None:
        return None
    text: str = str(value).strip()
    if _NEXTVAL_RE.match(text):
        return None
    text = _PG_CAST_RE.sub("", text).strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1].replace("''", "'")
    return text or None


def _resolve_nullable(column: RawColumn) -> bool:
    nullable: Optional[bool] = parse_flag(column.is_nullable)
    if nullable is not None:
        return nullable
    required: Optional[bool] = parse_flag(column.is_required)
    if required is not None:
        return not required
    return True


# ---------------------------------------------------------------------------
# Control / operator resolution
# ---------------------------------------------------------------------------


def _contains_any(name: str, hints: Tuple[str, ...]) -> bool:
    return any(hint in name for hint in hints)


def apply_name_heuristics(
    column_name: str, html_type: str, query_type: str
) -> Tuple[str, str]:
    """
    Adjust control and query operator from the column name.

    The operator rule (``name`` → LIKE) is independent; the control
    rules are evaluated as an ordered chain where the first match wins.
    """
    lower: str = column_name.lower()

    if _contains_any(lower, _LIKE_HINTS):
        query_type = QueryType.LIKE.value

    if _contains_any(lower, _STATUS_HINTS):
        html_type = HtmlType.RADIO.value
    elif _contains_any(lower, _SELECT_HINTS):
        html_type = HtmlType.SELECT.value
    elif _contains_any(lower, _TIME_HINTS) or lower == "date" or column_name.endswith("Date"):
        html_type = HtmlType.DATETIME.value
        query_type = QueryType.BETWEEN.value
    elif _contains_any(lower, _IMAGE_HINTS):
        html_type = HtmlType.IMAGE_UPLOAD.value
    elif _contains_any(lower, _FILE_HINTS):
        html_type = HtmlType.FILE_UPLOAD.value
    elif _contains_any(lower, _EDITOR_HINTS):
        html_type = HtmlType.EDITOR.value

    return html_type, query_type


def _normalize_column(
    table_name: str,
    raw: RawColumn,
    position: int,
    override: Optional[ColumnOptions],
) -> ColumnMetadata:
    language_type, html_type = map_type(raw.column_type)
    query_type: str = QueryType.EQ.value

    if (
        is_string_type(raw.column_type)
        and raw.max_length is not None
        and raw.max_length >= LONG_TEXT_THRESHOLD
    ):
        html_type = HtmlType.TEXTAREA.value

    html_type, query_type = apply_name_heuristics(raw.column_name, html_type, query_type)

    dict_type: Optional[str] = raw.dict_type or None
    is_auto_increment: bool = bool(parse_flag(raw.is_increment))
    if isinstance(raw.column_default, str) and _NEXTVAL_RE.match(raw.column_default):
        is_auto_increment = True

    if override is not None:
        if override.html_type:
            html_type = override.html_type
        if override.query_type:
            query_type = override.query_type
        if override.dict_type is not None:
            dict_type = override.dict_type or None

    return ColumnMetadata(
        table_name=table_name,
        column_name=raw.column_name,
        column_comment=(raw.column_comment or "").strip() or None,
        column_type=raw.column_type,
        is_nullable=_resolve_nullable(raw),
        is_primary_key=bool(parse_flag(raw.is_pk)),
        is_auto_increment=is_auto_increment,
        default_value=clean_default(raw.column_default),
        max_length=raw.max_length,
        sort=raw.sort if raw.sort is not None else position + 1,
        language_type=language_type,
        html_type=html_type,
        field_name=to_camel_case(raw.column_name) or raw.column_name,
        query_type=query_type,
        dict_type=dict_type,
    )


# ---------------------------------------------------------------------------
# Table-level configuration
# ---------------------------------------------------------------------------


def _parse_tpl_category(value: Optional[str], table_name: str) -> TplCategory:
    text: str = (value or TplCategory.CRUD.value).strip().lower()
    try:
        return TplCategory(text)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown template category {value!r}; expected one of "
            f"{[c.value for c in TplCategory]}",
            table_name=table_name,
        ) from exc


def _parse_column_options(
    raw_options: Mapping[str, Mapping[str, Any]],
    raw_columns: Sequence[RawColumn],
    table_name: str,
    warnings: List[str],
) -> Dict[str, ColumnOptions]:
    """Validate per-column overrides; keys may be column names or camelCase field names."""
    by_field: Dict[str, str] = {
        to_camel_case(col.column_name): col.column_name for col in raw_columns
    }
    known: set = {col.column_name for col in raw_columns}
    parsed: Dict[str, ColumnOptions] = {}

    for key, payload in raw_options.items():
        column_name: str = key if key in known else by_field.get(key, key)
        if column_name not in known:
            warnings.append(
                f"{table_name}: column options given for unknown column '{key}'"
            )
            continue
        try:
            parsed[column_name] = ColumnOptions.model_validate(dict(payload))
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Invalid options for column '{key}': {exc}",
                table_name=table_name,
            ) from exc
    return parsed


def normalize_config(
    raw_table: RawTable,
    raw_columns: Sequence[RawColumn] = (),
    warnings: Optional[List[str]] = None,
) -> TableGenConfig:
    """
    Normalize the generation configuration stored with a table.

    Raises:
        ValidationError: unknown category, malformed or unrecognized
            options, or invalid column options.
    """
    sink: List[str] = warnings if warnings is not None else []
    table_name: str = raw_table.table_name

    try:
        options: GenOptions = GenOptions.from_raw(raw_table.options)
    except ValidationError as exc:
        exc.table_name = exc.table_name or table_name
        exc.table_id = exc.table_id if exc.table_id is not None else raw_table.table_id
        raise

    return TableGenConfig(
        table_id=raw_table.table_id,
        tpl_category=_parse_tpl_category(raw_table.tpl_category, table_name),
        options=options,
        column_options=_parse_column_options(
            raw_table.column_options, raw_columns, table_name, sink
        ),
        sub_table_name=(raw_table.sub_table_name or "").strip() or None,
        sub_table_fk_name=(raw_table.sub_table_fk_name or "").strip() or None,
        class_name=raw_table.class_name or None,
        package_name=raw_table.package_name or None,
        module_name=raw_table.module_name or None,
        business_name=raw_table.business_name or None,
        function_name=raw_table.function_name or None,
        function_author=raw_table.function_author or None,
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def normalize_table(
    bundle: RawTableBundle | Mapping[str, Any],
    table_id: Optional[int] = None,
) -> NormalizedTable:
    """
    Normalize one raw table bundle.

    Columns come back sorted by physical sort order (stable on ties).
    Only the first primary-key column keeps the flag; extras are demoted
    and reported as warnings.

    Raises:
        NotFoundError: the table has zero columns.
        ValidationError: duplicate column names or invalid configuration.
    """
    if not isinstance(bundle, RawTableBundle):
        try:
            bundle = RawTableBundle.model_validate(bundle)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Malformed catalog descriptor: {exc}", table_id=table_id
            ) from exc

    raw_table: RawTable = bundle.raw_table
    table_name: str = raw_table.table_name
    if table_id is None:
        table_id = raw_table.table_id

    if not bundle.raw_columns:
        raise NotFoundError(
            f"Table '{table_name}' has no columns",
            table_id=table_id,
            table_name=table_name,
        )

    seen: set = set()
    for raw_col in bundle.raw_columns:
        if raw_col.column_name in seen:
            raise ValidationError(
                f"Duplicate column '{raw_col.column_name}'",
                table_id=table_id,
                table_name=table_name,
            )
        seen.add(raw_col.column_name)

    warnings: List[str] = []
    config: TableGenConfig = normalize_config(raw_table, bundle.raw_columns, warnings)

    try:
        columns: List[ColumnMetadata] = [
            _normalize_column(
                table_name,
                raw_col,
                position,
                config.column_options.get(raw_col.column_name),
            )
            for position, raw_col in enumerate(bundle.raw_columns)
        ]
    except ValueError as exc:
        raise ValidationError(
            str(exc), table_id=table_id, table_name=table_name
        ) from exc

    indexed = sorted(enumerate(columns), key=lambda pair: (pair[1].sort, pair[0]))
    ordered: List[ColumnMetadata] = [col for _, col in indexed]

    pk_seen: bool = False
    for i, col in enumerate(ordered):
        if not col.is_primary_key:
            continue
        if pk_seen:
            warnings.append(
                f"{table_name}: composite primary key, '{col.column_name}' "
                "treated as a regular column"
            )
            ordered[i] = col.model_copy(update={"is_primary_key": False})
        pk_seen = True

    table = TableMetadata(
        table_name=table_name,
        table_comment=(raw_table.table_comment or "").strip() or None,
        create_time=raw_table.create_time,
        update_time=raw_table.update_time,
    )
    logger.debug("Normalized table '%s' (%d columns)", table_name, len(ordered))
    return NormalizedTable(
        table=table,
        columns=tuple(ordered),
        config=config,
        warnings=tuple(warnings),
    )


# ---------------------------------------------------------------------------
# Structure sync
# ---------------------------------------------------------------------------

# Catalog-owned fields refreshed on a changed column; everything else is
# user customization and is kept from the stored copy.
_CATALOG_FIELDS: Tuple[str, ...] = (
    "column_type",
    "is_primary_key",
    "is_auto_increment",
    "is_nullable",
    "default_value",
    "max_length",
    "sort",
    "language_type",
)


@dataclass(frozen=True, slots=True)
class ColumnDiff:
    """Outcome of comparing stored columns with a fresh catalog read."""

    added: Tuple[ColumnMetadata, ...] = field(default_factory=tuple)
    changed: Tuple[ColumnMetadata, ...] = field(default_factory=tuple)
    removed: Tuple[ColumnMetadata, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.changed or self.removed)


def diff_columns(
    stored: Sequence[ColumnMetadata],
    fresh: Sequence[ColumnMetadata],
) -> ColumnDiff:
    """
    Compare a stored column set with a fresh catalog read.

    A column counts as changed when its native type, primary-key flag or
    auto-increment flag differs. The changed entry carries the fresh
    catalog facts merged over the stored copy, so comment, field name,
    control, operator and dictionary type survive the sync.
    """
    stored_by_name: Dict[str, ColumnMetadata] = {c.column_name: c for c in stored}
    fresh_names: set = {c.column_name for c in fresh}

    added: List[ColumnMetadata] = []
    changed: List[ColumnMetadata] = []
    for col in fresh:
        previous: Optional[ColumnMetadata] = stored_by_name.get(col.column_name)
        if previous is None:
            added.append(col)
            continue
        if (
            previous.column_type != col.column_type
            or previous.is_primary_key != col.is_primary_key
            or previous.is_auto_increment != col.is_auto_increment
        ):
            changed.append(
                previous.model_copy(
                    update={name: getattr(col, name) for name in _CATALOG_FIELDS}
                )
            )

    removed: List[ColumnMetadata] = [c for c in stored if c.column_name not in fresh_names]
    return ColumnDiff(added=tuple(added), changed=tuple(changed), removed=tuple(removed))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "LONG_TEXT_THRESHOLD",
    "parse_flag",
    "clean_default",
    "apply_name_heuristics",
    "normalize_config",
    "normalize_table",
    "ColumnDiff",
    "diff_columns",
]
