# File: crudgen/context.py
"""
crudgen - Template Context Builder
===================================
Assembles the single frozen ``TemplateContext`` every render function
receives:

    1. naming derivatives    (``derive_naming``: pure and total)
    2. classified columns    (from ``crudgen.classifier``)
    3. variant resolution    (crud / tree / sub)
    4. option cross-checks   (``crudgen.validators``: warnings only)

The generation date is captured here, once, so rendering the same
context twice is byte-identical.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Union

from crudgen.classifier import classify_columns
from crudgen.config import GeneratorConfig
from crudgen.errors import ValidationError
from crudgen.models import (
    ClassifiedColumns,
    ColumnMetadata,
    CrudVariant,
    NormalizedTable,
    PipelineStage,
    SubTableContext,
    SubVariant,
    TableGenConfig,
    TemplateContext,
    TplCategory,
    TreeVariant,
)
from crudgen.utils import (
    lower_first,
    sha256_hex,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
    upper_first,
)
from crudgen.validators import options_summary, validate_context

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.context")

_STAGE: str = PipelineStage.BUILDING_CONTEXT.value

# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Naming:
    """Every identifier derived from one table name."""

    class_name: str
    class_name_lower: str
    kebab_name: str
    business_name: str
    business_pascal: str
    module_name: str
    package_name: str
    function_name: str
    function_author: str
    api_path: str


def strip_prefix(table_name: str, prefixes: Sequence[str]) -> str:
    """Remove the longest matching prefix; keep the full name if nothing would remain."""
    for prefix in sorted((p for p in prefixes if p), key=len, reverse=True):
        if table_name.startswith(prefix) and len(table_name) > len(prefix):
            return table_name[len(prefix):]
    return table_name


def _fallback_identifier(table_name: str) -> str:
    return "Table" + sha256_hex(table_name)[:8]


def derive_naming(
    table_name: str,
    config: Optional[GeneratorConfig] = None,
    overrides: Optional[TableGenConfig] = None,
    table_comment: Optional[str] = None,
) -> Naming:
    """
    Derive class, business, module and path names from a table name.

    Stored overrides (``TableGenConfig.class_name`` etc.) win over
    derived values. Total over any non-empty string: a name with no
    alphanumeric words maps to a stable ``Table<hash>`` identifier.

    Examples:
        >>> n = derive_naming("sys_post")
        >>> (n.class_name, n.business_name, n.api_path)
        ('SysPost', 'post', '/system/post')
    """
    config = config or GeneratorConfig()
    overrides = overrides or TableGenConfig()

    base: str = table_name
    if config.auto_remove_prefix:
        base = strip_prefix(table_name, config.table_prefixes)

    class_name: str = (
        overrides.class_name
        or to_pascal_case(base)
        or to_pascal_case(table_name)
        or _fallback_identifier(table_name)
    )
    class_name_lower: str = lower_first(class_name)

    business_name: str = overrides.business_name or to_camel_case(
        table_name[table_name.rfind("_") + 1:]
    )
    if not business_name:
        business_name = class_name_lower

    module_name: str = overrides.module_name or config.module_name
    return Naming(
        class_name=class_name,
        class_name_lower=class_name_lower,
        kebab_name=to_kebab_case(class_name) or class_name.lower(),
        business_name=business_name,
        business_pascal=upper_first(business_name),
        module_name=module_name,
        package_name=overrides.package_name or config.package_name,
        function_name=overrides.function_name or (table_comment or "").strip() or table_name,
        function_author=overrides.function_author or config.author,
        api_path=f"/{module_name}/{business_name}",
    )


# ---------------------------------------------------------------------------
# Variant resolution
# ---------------------------------------------------------------------------


def _resolve_tree(normalized: NormalizedTable) -> TreeVariant:
    tree = normalized.config.options.tree
    missing: List[str] = [
        name
        for name, value in (("treeCode", tree.tree_code), ("treeParentCode", tree.tree_parent_code))
        if not (value or "").strip()
    ]
    if missing:
        raise ValidationError(
            f"Tree table requires {' and '.join(missing)} in generation options",
            table_id=normalized.config.table_id,
            table_name=normalized.table.table_name,
            stage=_STAGE,
        )
    return TreeVariant(
        tree_code=tree.tree_code.strip(),
        tree_parent_code=tree.tree_parent_code.strip(),
        tree_name=(tree.tree_name or "").strip() or None,
    )


def _find_column(columns: Sequence[ColumnMetadata], ref: str) -> Optional[ColumnMetadata]:
    snake: str = to_snake_case(ref)
    for col in columns:
        if col.column_name == ref or col.field_name == ref:
            return col
    for col in columns:
        if to_snake_case(col.column_name) == snake:
            return col
    return None


def resolve_sub_fk(
    parent_pk: Optional[ColumnMetadata],
    sub_columns: Sequence[ColumnMetadata],
    configured_fk: Optional[str],
    warnings: Optional[List[str]] = None,
) -> Optional[ColumnMetadata]:
    """
    Find the sub-table column referencing the parent's primary key.

    Tries the configured FK name first, then a column named like the
    parent PK (snake or camel). Returns None when neither resolves.
    """
    if configured_fk:
        found: Optional[ColumnMetadata] = _find_column(sub_columns, configured_fk)
        if found is not None:
            return found
        if warnings is not None:
            warnings.append(
                f"configured sub-table FK '{configured_fk}' not found, "
                "falling back to the parent primary-key name"
            )
    if parent_pk is not None:
        for ref in (parent_pk.column_name, parent_pk.field_name):
            found = _find_column(sub_columns, ref)
            if found is not None:
                return found
    return None


def _resolve_sub(
    normalized: NormalizedTable,
    classified: ClassifiedColumns,
    sub_table: Optional[NormalizedTable],
    config: GeneratorConfig,
    naming: Naming,
    warnings: List[str],
) -> SubVariant:
    table_name: str = normalized.table.table_name
    table_id: Optional[int] = normalized.config.table_id
    sub_name: Optional[str] = normalized.config.sub_table_name

    if not sub_name:
        raise ValidationError(
            "Sub table requires 'subTableName'",
            table_id=table_id,
            table_name=table_name,
            stage=_STAGE,
        )
    if sub_table is None:
        raise ValidationError(
            f"Sub-table '{sub_name}' was not supplied",
            table_id=table_id,
            table_name=table_name,
            stage=_STAGE,
        )

    sub_classified: ClassifiedColumns = classify_columns(
        sub_table.columns,
        sub_table.config.options,
        sub_table.config.column_options,
        config.dict_type_names,
    )
    fk_column: Optional[ColumnMetadata] = resolve_sub_fk(
        classified.pk_column,
        sub_classified.columns,
        normalized.config.sub_table_fk_name,
        warnings,
    )
    if fk_column is None:
        raise ValidationError(
            f"No column in sub-table '{sub_name}' references the primary key of '{table_name}'",
            table_id=table_id,
            table_name=table_name,
            stage=_STAGE,
        )

    sub_naming: Naming = derive_naming(
        sub_table.table.table_name,
        config,
        sub_table.config,
        sub_table.table.table_comment,
    )
    # Sub DTO file and class live beside the master ones.
    if sub_naming.business_name == naming.business_name or sub_naming.class_name == naming.class_name:
        raise ValidationError(
            f"Sub-table '{sub_name}' derives the same business or class name as '{table_name}' "
            f"('{sub_naming.business_name}' / '{sub_naming.class_name}'); "
            "set a distinct businessName or className on the sub-table",
            table_id=table_id,
            table_name=table_name,
            stage=_STAGE,
        )
    return SubVariant(
        sub_table=SubTableContext(
            table=sub_table.table,
            class_name=sub_naming.class_name,
            class_name_lower=sub_naming.class_name_lower,
            business_name=sub_naming.business_name,
            business_pascal=sub_naming.business_pascal,
            columns=sub_classified.columns,
            classified=sub_classified,
        ),
        fk_column=fk_column,
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def build_context(
    normalized: NormalizedTable,
    classified: ClassifiedColumns,
    config: Optional[GeneratorConfig] = None,
    sub_table: Optional[NormalizedTable] = None,
    now: Optional[datetime] = None,
    warnings: Optional[List[str]] = None,
) -> TemplateContext:
    """
    Build the frozen render context for one table.

    Args:
        normalized: Normalizer output for the table.
        classified: Classifier output for the same columns.
        config: Run-wide settings; defaults apply when omitted.
        sub_table: The normalized detail table, required for ``sub``.
        now: Generation timestamp; captured here when omitted.
        warnings: Optional sink for non-fatal findings.

    Raises:
        ValidationError: tree without both codes, or sub without a
            resolvable sub-table and FK column, or whose sub-table
            derives the master's business or class name.
    """
    config = config or GeneratorConfig()
    sink: List[str] = warnings if warnings is not None else []
    table = normalized.table
    gen = normalized.config
    naming: Naming = derive_naming(table.table_name, config, gen, table.table_comment)

    variant: Union[CrudVariant, TreeVariant, SubVariant]
    category: str = gen.tpl_category
    if category == TplCategory.TREE.value:
        variant = _resolve_tree(normalized)
    elif category == TplCategory.SUB.value:
        variant = _resolve_sub(normalized, classified, sub_table, config, naming, sink)
    else:
        variant = CrudVariant()

    pk: Optional[ColumnMetadata] = classified.pk_column
    ctx = TemplateContext(
        table=table,
        table_name=table.table_name,
        table_comment=table.table_comment or table.table_name,
        class_name=naming.class_name,
        class_name_lower=naming.class_name_lower,
        kebab_name=naming.kebab_name,
        module_name=naming.module_name,
        business_name=naming.business_name,
        business_pascal=naming.business_pascal,
        function_name=naming.function_name,
        function_author=naming.function_author,
        package_name=naming.package_name,
        api_path=naming.api_path,
        columns=classified.columns,
        pk_column=pk,
        primary_key=pk.column_name if pk else None,
        list_columns=classified.list_columns,
        query_columns=classified.query_columns,
        form_columns=classified.form_columns,
        insert_columns=classified.insert_columns,
        edit_columns=classified.edit_columns,
        generated_at=(now or datetime.now()).strftime("%Y-%m-%d"),
        has_dict=classified.has_dict,
        dict_types=classified.dict_types,
        options=gen.options,
        column_options=gen.column_options,
        variant=variant,
    )

    for issue in validate_context(ctx).warnings:
        sink.append(issue.message)

    logger.debug(
        "Built context for '%s' (%s, class %s, api %s, options: %s)",
        table.table_name,
        ctx.tpl_category,
        ctx.class_name,
        ctx.api_path,
        options_summary(ctx.options),
    )
    return ctx


__all__: List[str] = [
    "Naming",
    "strip_prefix",
    "derive_naming",
    "resolve_sub_fk",
    "build_context",
]
