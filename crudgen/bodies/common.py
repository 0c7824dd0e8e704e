# File: crudgen/bodies/common.py
"""
crudgen - Shared helpers for template bodies
=============================================
Column → TypeScript type, form component and Prisma operator lookups,
plus the small line-assembly helpers every body module uses.

All helpers are pure; bodies build ``List[str]`` and join once.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from crudgen.models import ColumnMetadata, HtmlType, QueryType, TemplateContext
from crudgen.utils import to_snake_case, ts_string

INDENT: str = "  "  # generated TS/Vue uses 2-space indent

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

_FORM_COMPONENTS: Dict[str, str] = {
    HtmlType.INPUT.value: "NInput",
    HtmlType.TEXTAREA.value: "NInput",
    HtmlType.SELECT.value: "NSelect",
    HtmlType.RADIO.value: "NRadioGroup",
    HtmlType.CHECKBOX.value: "NCheckboxGroup",
    HtmlType.DATETIME.value: "NDatePicker",
    HtmlType.DATE.value: "NDatePicker",
    HtmlType.TIME.value: "NTimePicker",
    HtmlType.NUMBER.value: "NInputNumber",
    HtmlType.SWITCH.value: "NSwitch",
    HtmlType.SLIDER.value: "NSlider",
    HtmlType.RATE.value: "NRate",
    HtmlType.COLOR_PICKER.value: "NColorPicker",
    HtmlType.TREE_SELECT.value: "NTreeSelect",
    HtmlType.CASCADER.value: "NCascader",
    HtmlType.TRANSFER.value: "NTransfer",
    HtmlType.IMAGE_UPLOAD.value: "ImageUpload",
    HtmlType.FILE_UPLOAD.value: "FileUpload",
    HtmlType.UPLOAD.value: "FileUpload",
    HtmlType.EDITOR.value: "Editor",
}

_PRISMA_OPERATORS: Dict[str, str] = {
    QueryType.EQ.value: "equals",
    QueryType.NE.value: "not",
    QueryType.GT.value: "gt",
    QueryType.GE.value: "gte",
    QueryType.LT.value: "lt",
    QueryType.LE.value: "lte",
    QueryType.LIKE.value: "contains",
    QueryType.IN.value: "in",
    QueryType.NOT_IN.value: "notIn",
}


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------


def ts_type(col: ColumnMetadata, frontend: bool = False) -> str:
    """TypeScript type for a column; dates travel as strings on the frontend."""
    if col.language_type == "Date":
        return "string" if frontend else "Date"
    if col.language_type == "object":
        return "Record<string, any>"
    return col.language_type


def form_component(col: ColumnMetadata) -> str:
    return _FORM_COMPONENTS.get(col.html_type, "NInput")


def prisma_operator(col: ColumnMetadata) -> str:
    return _PRISMA_OPERATORS.get(col.query_type, "equals")


def is_range_query(col: ColumnMetadata) -> bool:
    return col.query_type == QueryType.BETWEEN.value


def is_option_control(col: ColumnMetadata) -> bool:
    """Controls that render a fixed option list (dictionary-backed when possible)."""
    return col.html_type in (
        HtmlType.SELECT.value,
        HtmlType.RADIO.value,
        HtmlType.CHECKBOX.value,
    )


def find_column(ctx: TemplateContext, name: Optional[str]) -> Optional[ColumnMetadata]:
    """Look a column up by column name or camelCase field name."""
    if not name:
        return None
    for col in ctx.columns:
        if name in (col.column_name, col.field_name):
            return col
    snake: str = to_snake_case(name)
    for col in ctx.columns:
        if to_snake_case(col.column_name) == snake:
            return col
    return None


def has_column(ctx: TemplateContext, name: str) -> bool:
    return find_column(ctx, name) is not None


def label(col: ColumnMetadata) -> str:
    return ts_string(col.label)


# ---------------------------------------------------------------------------
# Naming helpers shared across bodies
# ---------------------------------------------------------------------------


def permission(ctx: TemplateContext, action: str) -> str:
    return f"{ctx.module_name}:{ctx.business_name}:{action}"


def route_path(ctx: TemplateContext) -> str:
    """Controller route without the leading slash."""
    return ctx.api_path.lstrip("/")


def prisma_delegate(ctx: TemplateContext) -> str:
    return ctx.class_name_lower


def dict_call(ctx: TemplateContext) -> str:
    """``useDict('a', 'b')`` for every dictionary the table references."""
    return "useDict(" + ", ".join(ts_string(d) for d in ctx.dict_types) + ")"


# ---------------------------------------------------------------------------
# Line assembly
# ---------------------------------------------------------------------------


def file_header(ctx: TemplateContext, what: str) -> List[str]:
    """JSDoc banner shared by every generated TS file."""
    return [
        "/**",
        f" * {ctx.function_name} {what}",
        f" * @author {ctx.function_author}",
        f" * @date {ctx.generated_at}",
        " */",
    ]


def indent(lines: Iterable[str], level: int = 1) -> List[str]:
    """Indent non-blank lines by *level* steps."""
    pad: str = INDENT * level
    return [f"{pad}{line}" if line else line for line in lines]


def finish(lines: List[str]) -> str:
    """Join lines into file content ending with exactly one newline."""
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines) + "\n"


__all__: List[str] = [
    "INDENT",
    "ts_type",
    "form_component",
    "prisma_operator",
    "is_range_query",
    "is_option_control",
    "find_column",
    "has_column",
    "label",
    "permission",
    "route_path",
    "prisma_delegate",
    "dict_call",
    "file_header",
    "indent",
    "finish",
]
