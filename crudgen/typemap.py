# File: crudgen/typemap.py
"""
crudgen - Type Mapping Tables
==============================
Static lookup from a native (PostgreSQL) column type to the TypeScript
language type and the default UI control used by generated code.

Lookup is a case-insensitive exact match on the whitespace-trimmed type
name. Anything not in the table resolves to ``("string", "input")``.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Tuple

from crudgen.models import HtmlType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.typemap")

# ---------------------------------------------------------------------------
# Language types
# ---------------------------------------------------------------------------

TYPE_STRING: str = "string"
TYPE_NUMBER: str = "number"
TYPE_BOOLEAN: str = "boolean"
TYPE_DATE: str = "Date"
TYPE_OBJECT: str = "object"

_FALLBACK: Tuple[str, str] = (TYPE_STRING, HtmlType.INPUT.value)

_NUMBER: Tuple[str, str] = (TYPE_NUMBER, HtmlType.NUMBER.value)
_STRING: Tuple[str, str] = (TYPE_STRING, HtmlType.INPUT.value)
_TEXT: Tuple[str, str] = (TYPE_STRING, HtmlType.TEXTAREA.value)
_BOOLEAN: Tuple[str, str] = (TYPE_BOOLEAN, HtmlType.RADIO.value)
_TIMESTAMP: Tuple[str, str] = (TYPE_DATE, HtmlType.DATETIME.value)
_DATE: Tuple[str, str] = (TYPE_DATE, HtmlType.DATE.value)
_TIME: Tuple[str, str] = (TYPE_STRING, HtmlType.INPUT.value)
_JSON: Tuple[str, str] = (TYPE_OBJECT, HtmlType.TEXTAREA.value)

# ---------------------------------------------------------------------------
# Native type → (language type, html control)
# ---------------------------------------------------------------------------

TYPE_MAP: Dict[str, Tuple[str, str]] = {
    # Integer family
    "int2": _NUMBER,
    "int4": _NUMBER,
    "int8": _NUMBER,
    "smallint": _NUMBER,
    "integer": _NUMBER,
    "int": _NUMBER,
    "bigint": _NUMBER,
    "serial": _NUMBER,
    "serial4": _NUMBER,
    "bigserial": _NUMBER,
    "serial8": _NUMBER,
    "smallserial": _NUMBER,
    # Decimal family
    "decimal": _NUMBER,
    "numeric": _NUMBER,
    "real": _NUMBER,
    "float4": _NUMBER,
    "float8": _NUMBER,
    "double precision": _NUMBER,
    "money": _NUMBER,
    # Character family
    "varchar": _STRING,
    "character varying": _STRING,
    "char": _STRING,
    "character": _STRING,
    "bpchar": _STRING,
    "uuid": _STRING,
    "text": _TEXT,
    # Boolean
    "bool": _BOOLEAN,
    "boolean": _BOOLEAN,
    # Temporal
    "timestamp": _TIMESTAMP,
    "timestamptz": _TIMESTAMP,
    "timestamp without time zone": _TIMESTAMP,
    "timestamp with time zone": _TIMESTAMP,
    "date": _DATE,
    "time": _TIME,
    "timetz": _TIME,
    "time without time zone": _TIME,
    "time with time zone": _TIME,
    # JSON
    "json": _JSON,
    "jsonb": _JSON,
}

# ---------------------------------------------------------------------------
# Type families used by the normalizer's length and query rules
# ---------------------------------------------------------------------------

STRING_TYPES: FrozenSet[str] = frozenset(
    {"varchar", "character varying", "char", "character", "bpchar"}
)


def canonical_type(native_type: str) -> str:
    """Lowercase and whitespace-collapse a native type name for lookup."""
    return " ".join((native_type or "").lower().split())


def map_type(native_type: str) -> Tuple[str, str]:
    """
    Map a native column type to ``(language_type, html_control)``.

    Examples:
        >>> map_type("int4")
        ('number', 'number')
        >>> map_type("  BOOL ")
        ('boolean', 'radio')
        >>> map_type("tsvector")
        ('string', 'input')
    """
    key: str = canonical_type(native_type)
    mapped = TYPE_MAP.get(key)
    if mapped is None:
        logger.debug("Unmapped column type %r, falling back to %s", native_type, _FALLBACK)
        return _FALLBACK
    return mapped


def is_string_type(native_type: str) -> bool:
    return canonical_type(native_type) in STRING_TYPES


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TYPE_STRING",
    "TYPE_NUMBER",
    "TYPE_BOOLEAN",
    "TYPE_DATE",
    "TYPE_OBJECT",
    "TYPE_MAP",
    "STRING_TYPES",
    "canonical_type",
    "map_type",
    "is_string_type",
]
