"""
tests/test_catalog.py
Unit tests for crudgen.catalog and crudgen.config.

Tests cover:
- InMemoryCatalog registration, id assignment and lookups
- Loading the reference catalog_example.yaml (and a JSON copy)
- Bundle coercion errors
- GeneratorConfig parsing and file loading
"""

from __future__ import annotations

import json
import pathlib
from typing import Any, Dict

import pydantic
import pytest

from crudgen.catalog import CatalogAccessor, InMemoryCatalog, coerce_bundle
from crudgen.config import GeneratorConfig, load_config, load_mapping_file
from crudgen.errors import NotFoundError, ValidationError


# ===========================================================================
# InMemoryCatalog
# ===========================================================================


class TestInMemoryCatalog:
    def test_lookup_by_id_and_name(self, catalog: InMemoryCatalog) -> None:
        assert len(catalog) == 4
        assert catalog.fetch_table(1).raw_table.table_name == "sys_post"
        assert catalog.fetch_table_by_name("sys_dept").raw_table.table_id == 2
        assert catalog.id_for("biz_order") == 3
        assert 4 in catalog
        assert catalog.table_ids() == [1, 2, 3, 4]

    def test_satisfies_protocol(self, catalog: InMemoryCatalog) -> None:
        assert isinstance(catalog, CatalogAccessor)

    def test_unknown_id(self, catalog: InMemoryCatalog) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            catalog.fetch_table(77)
        assert exc_info.value.table_id == 77
        assert exc_info.value.stage == "fetching"

    def test_unknown_name(self, catalog: InMemoryCatalog) -> None:
        with pytest.raises(NotFoundError, match="ghost"):
            catalog.fetch_table_by_name("ghost")

    def test_ids_assigned_in_order(self, make_column) -> None:
        catalog = InMemoryCatalog()
        first = catalog.add({"tableName": "a", "columns": [make_column("id", "int4")]})
        second = catalog.add({"tableName": "b", "columns": [make_column("id", "int4")]})
        assert (first, second) == (1, 2)
        assert catalog.fetch_table(2).raw_table.table_id == 2

    def test_duplicate_id_rejected(self, catalog: InMemoryCatalog, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["tableName"] = "sys_post_2"
        with pytest.raises(ValueError, match="Duplicate table id 1"):
            catalog.add(post_bundle)

    def test_duplicate_name_rejected(self, catalog: InMemoryCatalog, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["tableId"] = 50
        with pytest.raises(ValueError, match="Duplicate table name 'sys_post'"):
            catalog.add(post_bundle)


class TestCatalogFiles:
    def test_example_catalog_loads(self, catalog_yaml_path: pathlib.Path) -> None:
        catalog = InMemoryCatalog.from_file(catalog_yaml_path)
        assert catalog.table_ids() == [1, 2, 3, 4]
        post = catalog.fetch_table_by_name("sys_post")
        assert len(post.raw_columns) == 11

    def test_json_catalog(self, catalog_dict: Dict[str, Any], tmp_path: pathlib.Path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(catalog_dict), encoding="utf-8")
        assert len(InMemoryCatalog.from_file(path)) == 4

    def test_missing_tables_list(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("generator:\n  author: x\n", encoding="utf-8")
        with pytest.raises(ValueError, match="'tables' list"):
            InMemoryCatalog.from_file(path)

    def test_non_mapping_entry(self) -> None:
        with pytest.raises(ValueError, match=r"tables\[0\]"):
            InMemoryCatalog.from_mapping({"tables": ["sys_post"]})

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(FileNotFoundError):
            InMemoryCatalog.from_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("tables: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_mapping_file(path)


class TestCoerceBundle:
    def test_passes_models_through(self, catalog: InMemoryCatalog) -> None:
        bundle = catalog.fetch_table(1)
        assert coerce_bundle(bundle) is bundle

    def test_rejects_non_mapping(self) -> None:
        with pytest.raises(ValidationError, match="expected a table mapping"):
            coerce_bundle(["not", "a", "table"], table_id=3)

    def test_rejects_malformed(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            coerce_bundle({"columns": []}, table_id=3)
        assert exc_info.value.table_id == 3
        assert exc_info.value.stage == "fetching"


# ===========================================================================
# GeneratorConfig
# ===========================================================================


class TestGeneratorConfig:
    def test_defaults(self) -> None:
        config = GeneratorConfig()
        assert config.author == "crudgen"
        assert config.module_name == "system"
        assert config.max_concurrency == 4
        assert config.fetch_timeout_seconds is None
        assert config.default_gen_path == "/"

    def test_csv_fields(self) -> None:
        config = GeneratorConfig(table_prefixes="sys_, biz_", dict_type_names="status,sex")
        assert config.table_prefixes == ("sys_", "biz_")
        assert config.dict_type_names == ("status", "sex")

    @pytest.mark.parametrize(
        "field,value",
        [("max_concurrency", 0), ("max_concurrency", 65), ("fetch_timeout_seconds", 0), ("author", "")],
    )
    def test_bounds(self, field: str, value: Any) -> None:
        with pytest.raises(pydantic.ValidationError):
            GeneratorConfig(**{field: value})

    def test_unknown_setting_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            GeneratorConfig(colour="blue")

    def test_load_from_catalog_file(self, catalog_yaml_path: pathlib.Path) -> None:
        config = load_config(catalog_yaml_path)
        assert config.author == "admin"
        assert config.table_prefixes == ("sys_", "biz_")
        assert "status" in config.dict_type_names

    def test_load_top_level_settings(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"author": "ops", "max_concurrency": 2}), encoding="utf-8")
        config = load_config(path)
        assert (config.author, config.max_concurrency) == ("ops", 2)

    def test_none_means_defaults(self) -> None:
        assert load_config(None) == GeneratorConfig()
