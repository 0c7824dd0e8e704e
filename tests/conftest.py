"""
tests/conftest.py
Shared fixtures for the crudgen test suite.

Catalog fixtures are plain dicts in the catalog's camelCase form, so
every test goes through the same validation path as a YAML file does.
No external mocking libraries are used; file I/O happens inside
pytest's tmp_path directories.
"""

from __future__ import annotations

import copy
import pathlib
from datetime import datetime
from typing import Any, Dict, List

import pytest
import yaml

from crudgen.catalog import InMemoryCatalog
from crudgen.classifier import classify_columns
from crudgen.config import GeneratorConfig
from crudgen.context import build_context
from crudgen.exporters import build_zip
from crudgen.generator import CodeGenerator
from crudgen.models import NormalizedTable, TemplateContext
from crudgen.normalizer import normalize_table


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
CATALOG_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "catalog_example.yaml"

FIXED_NOW: datetime = datetime(2024, 5, 1, 12, 0, 0)

POST_ID: int = 1
DEPT_ID: int = 2
ORDER_ID: int = 3
ORDER_ITEM_ID: int = 4


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def column(name: str, column_type: str = "varchar", **extra: Any) -> Dict[str, Any]:
    """One raw catalog column in camelCase form."""
    data: Dict[str, Any] = {"columnName": name, "columnType": column_type}
    data.update(extra)
    return data


def bookkeeping_columns() -> List[Dict[str, Any]]:
    return [
        column("del_flag", "char", maxLength=1, columnDefault="'0'::bpchar"),
        column("create_by", maxLength=64),
        column("create_time", "timestamp"),
        column("update_by", maxLength=64),
        column("update_time", "timestamp"),
    ]


def build_test_context(
    bundle: Dict[str, Any],
    config: GeneratorConfig,
    sub_bundle: Dict[str, Any] | None = None,
) -> TemplateContext:
    """Run normalize → classify → build_context the way the orchestrator does."""
    normalized: NormalizedTable = normalize_table(bundle)
    classified = classify_columns(
        normalized.columns,
        normalized.config.options,
        normalized.config.column_options,
        config.dict_type_names,
    )
    sub_normalized = normalize_table(sub_bundle) if sub_bundle is not None else None
    return build_context(normalized, classified, config, sub_table=sub_normalized, now=FIXED_NOW)


# ---------------------------------------------------------------------------
# Raw catalog fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def post_bundle() -> Dict[str, Any]:
    """sys_post: the canonical plain CRUD table."""
    return {
        "table": {
            "tableId": POST_ID,
            "tableName": "sys_post",
            "tableComment": "Post",
            "tplCategory": "crud",
        },
        "columns": [
            column("post_id", "int8", columnComment="Post ID", isPk="1", isIncrement="1", isNullable="NO"),
            column("post_code", maxLength=64, columnComment="Post code", isNullable="NO"),
            column("post_name", maxLength=50, columnComment="Post name", isNullable="NO"),
            column("post_sort", "int4", columnComment="Display order", columnDefault="0"),
            column("status", "char", maxLength=1, columnComment="Status", columnDefault="'0'::bpchar"),
            *bookkeeping_columns(),
        ],
    }


@pytest.fixture()
def dept_bundle() -> Dict[str, Any]:
    """sys_dept: tree table keyed on dept_id / parent_id."""
    return {
        "table": {
            "tableId": DEPT_ID,
            "tableName": "sys_dept",
            "tableComment": "Department",
            "tplCategory": "tree",
            "options": {"treeCode": "dept_id", "treeParentCode": "parent_id", "treeName": "dept_name"},
        },
        "columns": [
            column("dept_id", "int8", isPk="1", columnDefault="nextval('sys_dept_dept_id_seq'::regclass)"),
            column("parent_id", "int8", columnDefault="0"),
            column("dept_name", maxLength=30, columnComment="Department name"),
            column("order_num", "int4"),
            column("status", "char", maxLength=1),
        ],
    }


@pytest.fixture()
def order_bundle() -> Dict[str, Any]:
    """biz_order: master side of a master/detail pair."""
    return {
        "table": {
            "tableId": ORDER_ID,
            "tableName": "biz_order",
            "tableComment": "Order",
            "tplCategory": "sub",
            "subTableName": "biz_order_item",
            "subTableFkName": "order_id",
        },
        "columns": [
            column("order_id", "int8", isPk="1", isIncrement="1"),
            column("order_no", maxLength=32, columnComment="Order number"),
            column("amount", "numeric"),
        ],
    }


@pytest.fixture()
def order_item_bundle() -> Dict[str, Any]:
    """biz_order_item: detail side, references biz_order.order_id."""
    return {
        "table": {"tableId": ORDER_ITEM_ID, "tableName": "biz_order_item", "tableComment": "Order item"},
        "columns": [
            column("item_id", "int8", isPk="1", isIncrement="1"),
            column("order_id", "int8", isNullable="NO"),
            column("product_name", maxLength=100),
            column("quantity", "int4"),
        ],
    }


# ---------------------------------------------------------------------------
# Pipeline fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> GeneratorConfig:
    return GeneratorConfig(author="admin", dict_type_names=("status",))


@pytest.fixture()
def catalog(
    post_bundle: Dict[str, Any],
    dept_bundle: Dict[str, Any],
    order_bundle: Dict[str, Any],
    order_item_bundle: Dict[str, Any],
) -> InMemoryCatalog:
    return InMemoryCatalog([post_bundle, dept_bundle, order_bundle, order_item_bundle])


@pytest.fixture()
def generator(catalog: InMemoryCatalog, config: GeneratorConfig) -> CodeGenerator:
    return CodeGenerator(catalog, config, packager=build_zip, clock=lambda: FIXED_NOW)


@pytest.fixture()
def post_context(post_bundle: Dict[str, Any], config: GeneratorConfig) -> TemplateContext:
    return build_test_context(post_bundle, config)


@pytest.fixture()
def dept_context(dept_bundle: Dict[str, Any], config: GeneratorConfig) -> TemplateContext:
    return build_test_context(dept_bundle, config)


@pytest.fixture()
def order_context(
    order_bundle: Dict[str, Any],
    order_item_bundle: Dict[str, Any],
    config: GeneratorConfig,
) -> TemplateContext:
    return build_test_context(order_bundle, config, sub_bundle=order_item_bundle)


# ---------------------------------------------------------------------------
# Example file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_catalog_dict() -> Dict[str, Any]:
    """Load catalog_example.yaml once per session."""
    assert CATALOG_EXAMPLE_PATH.exists(), (
        f"Reference catalog not found at {CATALOG_EXAMPLE_PATH}. "
        "Make sure catalog_example.yaml is in the project root."
    )
    with open(CATALOG_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def catalog_dict(raw_catalog_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_catalog_dict)


@pytest.fixture()
def catalog_yaml_path(catalog_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the catalog dict to a temporary YAML file and return its path."""
    path = tmp_path / "catalog.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(catalog_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


# ---------------------------------------------------------------------------
# Helper fixtures (tests/ is not a package, so helpers are handed out here)
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_column():
    """The ``column(name, column_type, **extra)`` builder."""
    return column


@pytest.fixture()
def context_builder(config: GeneratorConfig):
    """``build(bundle, sub_bundle=None)`` with the shared config bound."""

    def build(bundle: Dict[str, Any], sub_bundle: Dict[str, Any] | None = None) -> TemplateContext:
        return build_test_context(bundle, config, sub_bundle)

    return build


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW
