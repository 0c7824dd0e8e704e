# File: crudgen/errors.py
"""
crudgen - Error Taxonomy
=========================

Every failure the pipeline can report is a ``CrudgenError`` subclass
carrying the structured context needed to build a ``GenerateError``
entry (table id/name, template key, pipeline stage).

Scope of each error:

    NotFoundError        table absent or has no columns     -> fatal for the table
    ValidationError      tree/sub/options misconfiguration  -> fatal for the table
    TemplateRenderError  one render function raised         -> isolated to one file
    PackagingError       archive creation failed            -> fatal for the ZIP step only
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CrudgenError(Exception):
    """Base class for every error raised by the generation pipeline."""

    kind: str = "CrudgenError"

    def __init__(
        self,
        message: str,
        *,
        table_id: Optional[int] = None,
        table_name: Optional[str] = None,
        template_key: Optional[str] = None,
        stage: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.table_id: Optional[int] = table_id
        self.table_name: Optional[str] = table_name
        self.template_key: Optional[str] = template_key
        self.stage: Optional[str] = stage

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "table_id": self.table_id,
            "table_name": self.table_name,
            "template_key": self.template_key,
            "stage": self.stage,
        }

    def __repr__(self) -> str:
        return f"<{self.kind} {self.message!r}>"


class NotFoundError(CrudgenError):
    """The requested table does not exist in the catalog, or has no columns."""

    kind = "NotFoundError"


class ValidationError(CrudgenError):
    """The table's generation configuration is invalid for its template category."""

    kind = "ValidationError"


class TemplateRenderError(CrudgenError):
    """A single render function raised while producing one output file."""

    kind = "TemplateRenderError"


class PackagingError(CrudgenError):
    """The archive could not be built from the already-rendered files."""

    kind = "PackagingError"


__all__: List[str] = [
    "CrudgenError",
    "NotFoundError",
    "ValidationError",
    "TemplateRenderError",
    "PackagingError",
]
