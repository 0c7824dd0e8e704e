# File: crudgen/validators.py
"""
crudgen - Option & Column Cross-Validators
===========================================
Pydantic handles the structure of ``GenOptions`` and ``ColumnOptions``.
This module adds the cross-entity checks: does every column an option
refers to actually exist in the table?

Nothing here is fatal. Every finding is a warning or an info item; the
context builder copies warnings into ``GenerateResult.warnings`` and
generation proceeds. Fatal configuration problems (missing tree codes,
unresolvable sub-table FK) are raised by ``crudgen.context`` instead.

Usage:
    from crudgen.validators import validate_context
    result = validate_context(ctx)
    for item in result.warnings:
        print(item)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from crudgen.models import (
    ColumnMetadata,
    GenOptions,
    TemplateContext,
)
from crudgen.utils import to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.validators")

# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight finding descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_warning]

    @property
    def has_warnings(self) -> bool:
        return any(i.is_warning for i in self._items)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self._items if i.is_warning)

    def codes(self) -> List[str]:
        return [i.code for i in self._items]

    def summary(self) -> str:
        return (
            f"Validation: {self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = "⚠" if item.is_warning else "ℹ"
            lines.append(f"  {prefix} [{item.code}] {item.message}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Column lookup
# ---------------------------------------------------------------------------


class _ColumnIndex:
    """Resolves a reference given as column name, snake_case or camelCase field."""

    __slots__ = ("_names",)

    def __init__(self, columns: Sequence[ColumnMetadata]) -> None:
        self._names: Dict[str, ColumnMetadata] = {}
        for col in columns:
            self._names[col.column_name] = col
            self._names[to_snake_case(col.column_name)] = col
            self._names[col.field_name] = col

    def get(self, ref: str) -> Optional[ColumnMetadata]:
        return self._names.get(ref) or self._names.get(to_snake_case(ref))

    def __contains__(self, ref: str) -> bool:
        return self.get(ref) is not None


def _check_ref(
    result: ValidationResult,
    index: _ColumnIndex,
    table_name: str,
    option: str,
    ref: Optional[str],
) -> None:
    if ref and ref not in index:
        result.add_warning(
            "UNKNOWN_COLUMN_REF",
            f"{table_name}: option '{option}' refers to unknown column '{ref}'",
            {"table": table_name, "option": option, "column": ref},
        )


# ---------------------------------------------------------------------------
# Individual checks, each O(number of references)
# ---------------------------------------------------------------------------


def validate_tree_options(ctx: TemplateContext, index: _ColumnIndex) -> ValidationResult:
    result = ValidationResult()
    if ctx.tree is None:
        return result
    tree = ctx.options.tree
    _check_ref(result, index, ctx.table_name, "treeCode", tree.tree_code)
    _check_ref(result, index, ctx.table_name, "treeParentCode", tree.tree_parent_code)
    _check_ref(result, index, ctx.table_name, "treeName", tree.tree_name)
    return result


def validate_data_scope(ctx: TemplateContext, index: _ColumnIndex) -> ValidationResult:
    result = ValidationResult()
    scope = ctx.options.data_scope
    if not scope.enable_data_scope:
        return result
    if not scope.data_scope_column:
        result.add_warning(
            "DATA_SCOPE_NO_COLUMN",
            f"{ctx.table_name}: data scope enabled without 'dataScopeColumn'",
        )
    _check_ref(result, index, ctx.table_name, "dataScopeColumn", scope.data_scope_column)
    if scope.data_scope_type is None:
        result.add_info(
            "DATA_SCOPE_DEFAULT_TYPE",
            f"{ctx.table_name}: no 'dataScopeType', generated code resolves it per user",
        )
    return result


def validate_tenant(ctx: TemplateContext, index: _ColumnIndex) -> ValidationResult:
    result = ValidationResult()
    tenant = ctx.options.tenant
    if tenant.enable_tenant:
        _check_ref(result, index, ctx.table_name, "tenantColumn", tenant.tenant_column)
    return result


def validate_import_export(ctx: TemplateContext, index: _ColumnIndex) -> ValidationResult:
    result = ValidationResult()
    io = ctx.options.import_export
    for ref in io.export_fields:
        _check_ref(result, index, ctx.table_name, "exportFields", ref)
    for ref in io.import_fields:
        _check_ref(result, index, ctx.table_name, "importFields", ref)
    if io.export_fields and not io.enable_export:
        result.add_info(
            "EXPORT_FIELDS_UNUSED",
            f"{ctx.table_name}: 'exportFields' set but export is disabled",
        )
    return result


def validate_search(ctx: TemplateContext, index: _ColumnIndex) -> ValidationResult:
    result = ValidationResult()
    _check_ref(
        result, index, ctx.table_name, "defaultSortField", ctx.options.search.default_sort_field
    )
    return result


def validate_primary_key(ctx: TemplateContext, index: _ColumnIndex) -> ValidationResult:
    result = ValidationResult()
    if ctx.pk_column is None:
        result.add_warning(
            "NO_PRIMARY_KEY",
            f"{ctx.table_name}: no primary key, generated detail/update/delete use '{ctx.pk_field}'",
        )
        if ctx.options.frontend.enable_inline_edit or ctx.options.frontend.enable_batch_edit:
            result.add_warning(
                "EDIT_WITHOUT_PRIMARY_KEY",
                f"{ctx.table_name}: inline/batch edit needs a primary key to address rows",
            )
    return result


def validate_column_options(ctx: TemplateContext, index: _ColumnIndex) -> ValidationResult:
    result = ValidationResult()
    for column_name, opt in ctx.column_options:
        if opt.linkage_field:
            _check_ref(result, index, ctx.table_name, f"{column_name}.linkageField", opt.linkage_field)
        if (
            opt.validation_min is not None
            and opt.validation_max is not None
            and opt.validation_min > opt.validation_max
        ):
            result.add_warning(
                "INVERTED_BOUNDS",
                f"{ctx.table_name}.{column_name}: validationMin > validationMax",
                {"min": opt.validation_min, "max": opt.validation_max},
            )
    return result


_CONTEXT_CHECKS: List[Callable[[TemplateContext, _ColumnIndex], ValidationResult]] = [
    validate_primary_key,
    validate_tree_options,
    validate_data_scope,
    validate_tenant,
    validate_import_export,
    validate_search,
    validate_column_options,
]


# ---------------------------------------------------------------------------
# Aggregate entry point
# ---------------------------------------------------------------------------


def validate_context(ctx: TemplateContext) -> ValidationResult:
    """Run every cross-reference check against a built context."""
    index = _ColumnIndex(ctx.columns)
    combined = ValidationResult()
    for check in _CONTEXT_CHECKS:
        combined.merge(check(ctx, index))
    if len(combined):
        logger.debug("%s: %s", ctx.table_name, combined.format_report(include_info=True))
    return combined


def options_summary(options: GenOptions) -> str:
    """One-line listing of the enabled toggles, for logs and the CLI."""
    flags: List[str] = sorted(options.enabled_flags())
    return ", ".join(flags) if flags else "(none)"


__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_context",
    "options_summary",
]
