# File: crudgen/catalog.py
"""
crudgen - Catalog Accessors
============================
The orchestrator reads table definitions through a small protocol:

    fetch_table(table_id)         -> RawTableBundle (or mapping)
    fetch_table_by_name(name)     -> RawTableBundle (or mapping)

Either method may be a plain function or a coroutine function. A table
the catalog does not know surfaces as ``NotFoundError``.

``InMemoryCatalog`` is the reference implementation, loadable from a
YAML/JSON file of the form::

    generator:            # optional, read by crudgen.config
      author: admin
    tables:
      - tableId: 1
        tableName: sys_post
        tableComment: Post
        columns:
          - columnName: post_id
            columnType: int8
            isPk: "1"
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import (
    Any,
    Awaitable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from pydantic import ValidationError as PydanticValidationError

from crudgen.config import load_mapping_file
from crudgen.errors import NotFoundError, ValidationError
from crudgen.models import PipelineStage, RawTableBundle

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.catalog")

_STAGE: str = PipelineStage.FETCHING.value

BundleLike = Union[RawTableBundle, Mapping[str, Any]]


@runtime_checkable
class CatalogAccessor(Protocol):
    """Anything that can hand out raw table bundles by id and by name."""

    def fetch_table(
        self, table_id: int
    ) -> Union[BundleLike, None, Awaitable[Optional[BundleLike]]]:
        ...

    def fetch_table_by_name(
        self, table_name: str
    ) -> Union[BundleLike, None, Awaitable[Optional[BundleLike]]]:
        ...


def coerce_bundle(raw: Any, table_id: Optional[int] = None) -> RawTableBundle:
    """Validate a catalog payload into a ``RawTableBundle``."""
    if isinstance(raw, RawTableBundle):
        return raw
    if not isinstance(raw, Mapping):
        raise ValidationError(
            f"Catalog returned {type(raw).__name__}, expected a table mapping",
            table_id=table_id,
            stage=_STAGE,
        )
    try:
        return RawTableBundle.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Malformed catalog descriptor: {exc}",
            table_id=table_id,
            stage=_STAGE,
        ) from exc


def _split_entry(entry: Mapping[str, Any]) -> Dict[str, Any]:
    """Accept both ``{table: {...}, columns: [...]}`` and a flat table with ``columns``."""
    if any(key in entry for key in ("rawTable", "raw_table", "table")):
        return dict(entry)
    table: Dict[str, Any] = {k: v for k, v in entry.items() if k not in ("columns", "rawColumns", "raw_columns")}
    columns: Any = entry.get("columns", entry.get("rawColumns", entry.get("raw_columns", [])))
    return {"table": table, "columns": columns}


# ---------------------------------------------------------------------------
# In-memory catalog
# ---------------------------------------------------------------------------


class InMemoryCatalog:
    """
    Dictionary-backed catalog.

    Tables without an explicit ``tableId`` get the next free id in
    insertion order, so file-based catalogs need not number them.
    """

    def __init__(self, bundles: Iterable[BundleLike] = ()) -> None:
        self._by_id: Dict[int, RawTableBundle] = {}
        self._by_name: Dict[str, int] = {}
        for bundle in bundles:
            self.add(bundle)

    def add(self, bundle: BundleLike) -> int:
        """Register a table and return its id."""
        if not isinstance(bundle, RawTableBundle):
            bundle = coerce_bundle(_split_entry(bundle))
        table_id: Optional[int] = bundle.raw_table.table_id
        if table_id is None:
            table_id = max(self._by_id, default=0) + 1
            bundle = bundle.model_copy(
                update={"raw_table": bundle.raw_table.model_copy(update={"table_id": table_id})}
            )
        if table_id in self._by_id:
            raise ValueError(f"Duplicate table id {table_id} in catalog")
        name: str = bundle.raw_table.table_name
        if name in self._by_name:
            raise ValueError(f"Duplicate table name '{name}' in catalog")
        self._by_id[table_id] = bundle
        self._by_name[name] = table_id
        logger.debug("Catalog: registered '%s' as #%d (%d columns)", name, table_id, len(bundle.raw_columns))
        return table_id

    def fetch_table(self, table_id: int) -> RawTableBundle:
        try:
            return self._by_id[table_id]
        except KeyError:
            raise NotFoundError(
                f"Table #{table_id} does not exist",
                table_id=table_id,
                stage=_STAGE,
            ) from None

    def fetch_table_by_name(self, table_name: str) -> RawTableBundle:
        table_id: Optional[int] = self._by_name.get(table_name)
        if table_id is None:
            raise NotFoundError(
                f"Table '{table_name}' does not exist",
                table_name=table_name,
                stage=_STAGE,
            )
        return self._by_id[table_id]

    def table_ids(self) -> List[int]:
        return list(self._by_id)

    def id_for(self, table_name: str) -> Optional[int]:
        return self._by_name.get(table_name)

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, table_id: object) -> bool:
        return table_id in self._by_id

    def __repr__(self) -> str:
        return f"<InMemoryCatalog {len(self)} table(s)>"

    # -----------------------------------------------------------------
    # Loaders
    # -----------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InMemoryCatalog":
        """Build from a parsed document with a top-level ``tables`` list."""
        tables: Any = data.get("tables")
        if not isinstance(tables, list):
            raise ValueError("Catalog document needs a top-level 'tables' list.")
        catalog = cls()
        for index, entry in enumerate(tables):
            if not isinstance(entry, Mapping):
                raise ValueError(f"tables[{index}] must be a mapping, got {type(entry).__name__}.")
            catalog.add(_split_entry(entry))
        return catalog

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InMemoryCatalog":
        """
        Load a YAML or JSON catalog file.

        Raises:
            FileNotFoundError: the file does not exist.
            ValueError: the file cannot be parsed or has no ``tables``.
        """
        catalog = cls.from_mapping(load_mapping_file(path))
        logger.info("Loaded catalog %s (%d tables).", path, len(catalog))
        return catalog


__all__: List[str] = [
    "BundleLike",
    "CatalogAccessor",
    "InMemoryCatalog",
    "coerce_bundle",
]
