# File: crudgen/classifier.py
"""
crudgen - Column Classifier
============================
Partitions a table's normalized columns into the role subsets used by
the templates (list / query / form / insert / edit), picks the primary
key and resolves dictionary-backed columns.

A single pass over the columns; every subset preserves column order and
a column may belong to several subsets. Explicit ``ColumnOptions`` role
flags always win over the defaults below.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence

from crudgen.models import (
    ClassifiedColumns,
    ColumnMetadata,
    ColumnOptions,
    GenOptions,
    HtmlType,
)
from crudgen.utils import to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.classifier")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Soft-delete / audit bookkeeping, compared after snake-casing.
BOOKKEEPING_COLUMNS: FrozenSet[str] = frozenset(
    {"create_by", "create_time", "update_by", "update_time", "del_flag"}
)

_NON_QUERY_CONTROLS: FrozenSet[str] = frozenset(
    {
        HtmlType.TEXTAREA.value,
        HtmlType.EDITOR.value,
        HtmlType.IMAGE_UPLOAD.value,
        HtmlType.FILE_UPLOAD.value,
        HtmlType.UPLOAD.value,
    }
)

_EMPTY_OPTIONS: ColumnOptions = ColumnOptions()


def is_bookkeeping(column_name: str) -> bool:
    return to_snake_case(column_name) in BOOKKEEPING_COLUMNS


def _resolve_dict(
    column: ColumnMetadata, dict_type_names: FrozenSet[str]
) -> ColumnMetadata:
    """Attach a dictionary type to a column whose name is a declared dictionary."""
    if column.dict_type:
        return column
    for candidate in (column.column_name, to_snake_case(column.column_name)):
        if candidate in dict_type_names:
            return column.model_copy(update={"dict_type": candidate})
    return column


def classify_columns(
    columns: Sequence[ColumnMetadata],
    options: Optional[GenOptions] = None,
    column_options: Optional[Mapping[str, ColumnOptions]] = None,
    dict_type_names: Iterable[str] = (),
) -> ClassifiedColumns:
    """
    Classify normalized columns into role subsets.

    Default rules (before explicit overrides):

    * ``list``:   everything except the primary key, bookkeeping columns
      and the tenant column when tenancy is on.
    * ``query``:  string columns with a plain-text control, plus
      dictionary and status-like columns, minus the exclusions above.
    * ``insert``: not the primary key, not auto-generated, not
      bookkeeping, not the tenant column.
    * ``edit``:   as ``insert``; columns marked ``immutable`` never appear.
    * ``form``:   ordered union of ``insert`` and ``edit``.

    A table without a primary key is not an error: ``pk_column`` is None.
    """
    options = options or GenOptions()
    overrides: Mapping[str, ColumnOptions] = column_options or {}
    declared: FrozenSet[str] = frozenset(dict_type_names)

    tenant_column: Optional[str] = None
    if options.tenant.enable_tenant:
        tenant_column = to_snake_case(options.tenant.tenant_column)

    resolved: List[ColumnMetadata] = []
    pk_column: Optional[ColumnMetadata] = None
    list_cols: List[ColumnMetadata] = []
    query_cols: List[ColumnMetadata] = []
    insert_cols: List[ColumnMetadata] = []
    edit_cols: List[ColumnMetadata] = []
    form_cols: List[ColumnMetadata] = []
    dict_types: Dict[str, None] = {}

    for raw_col in columns:
        col: ColumnMetadata = _resolve_dict(raw_col, declared)
        resolved.append(col)
        opt: ColumnOptions = overrides.get(col.column_name, _EMPTY_OPTIONS)

        is_pk: bool = col.is_primary_key
        if is_pk and pk_column is None:
            pk_column = col

        snake: str = to_snake_case(col.column_name)
        excluded: bool = (
            is_pk
            or snake in BOOKKEEPING_COLUMNS
            or (tenant_column is not None and snake == tenant_column)
        )

        if col.dict_type:
            dict_types.setdefault(col.dict_type, None)

        # list
        in_list: bool = opt.is_list if opt.is_list is not None else not excluded
        if in_list:
            list_cols.append(col)

        # query
        if opt.is_query is not None:
            in_query = opt.is_query
        elif opt.query_type is not None:
            in_query = True
        else:
            in_query = not excluded and (
                (col.is_string and col.html_type not in _NON_QUERY_CONTROLS)
                or col.is_dict
                or "status" in snake
            )
        if in_query:
            query_cols.append(col)

        # insert / edit / form
        writable: bool = not (excluded or col.is_auto_increment)
        in_insert: bool = opt.is_insert if opt.is_insert is not None else writable
        in_edit: bool = opt.is_edit if opt.is_edit is not None else writable
        if opt.immutable:
            in_edit = False
        if in_insert:
            insert_cols.append(col)
        if in_edit:
            edit_cols.append(col)
        if in_insert or in_edit:
            form_cols.append(col)

    result = ClassifiedColumns(
        columns=tuple(resolved),
        pk_column=pk_column,
        list_columns=tuple(list_cols),
        query_columns=tuple(query_cols),
        form_columns=tuple(form_cols),
        insert_columns=tuple(insert_cols),
        edit_columns=tuple(edit_cols),
        has_dict=bool(dict_types),
        dict_types=tuple(dict_types),
    )
    logger.debug(
        "Classified %d columns: pk=%s list=%d query=%d form=%d dict=%s",
        len(resolved),
        pk_column.column_name if pk_column else None,
        len(list_cols),
        len(query_cols),
        len(form_cols),
        list(dict_types),
    )
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "BOOKKEEPING_COLUMNS",
    "is_bookkeeping",
    "classify_columns",
]
