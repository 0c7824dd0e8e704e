"""
tests/test_context.py
Unit tests for crudgen.context.

Tests cover:
- Naming derivation (class, business, module, api path, prefixes)
- Stored naming overrides
- Context building for crud / tree / sub variants
- Tree and sub misconfiguration
- Sub-table foreign-key resolution
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from crudgen.classifier import classify_columns
from crudgen.config import GeneratorConfig
from crudgen.context import build_context, derive_naming, resolve_sub_fk, strip_prefix
from crudgen.errors import ValidationError
from crudgen.models import TableGenConfig, TemplateContext
from crudgen.normalizer import normalize_table


# ===========================================================================
# Naming
# ===========================================================================


class TestNaming:
    def test_sys_post(self) -> None:
        naming = derive_naming("sys_post")
        assert naming.class_name == "SysPost"
        assert naming.class_name_lower == "sysPost"
        assert naming.kebab_name == "sys-post"
        assert naming.business_name == "post"
        assert naming.business_pascal == "Post"
        assert naming.module_name == "system"
        assert naming.api_path == "/system/post"
        assert naming.function_name == "sys_post"

    def test_prefix_removal(self) -> None:
        config = GeneratorConfig(auto_remove_prefix=True, table_prefixes=("sys_", "biz_"))
        assert derive_naming("sys_post", config).class_name == "Post"
        assert derive_naming("biz_order_item", config).class_name == "OrderItem"

    def test_prefix_kept_when_nothing_remains(self) -> None:
        assert strip_prefix("sys_", ["sys_"]) == "sys_"
        assert strip_prefix("sys_user", ["sys_", "sys_u"]) == "ser"

    def test_business_name_is_last_segment(self) -> None:
        assert derive_naming("biz_order_item").business_name == "item"
        assert derive_naming("orders").business_name == "orders"

    def test_overrides_win(self) -> None:
        overrides = TableGenConfig(
            class_name="Job",
            business_name="job",
            module_name="monitor",
            function_author="ops",
            function_name="Scheduled jobs",
        )
        naming = derive_naming("sys_job_table", GeneratorConfig(author="admin"), overrides)
        assert naming.class_name == "Job"
        assert naming.api_path == "/monitor/job"
        assert naming.function_author == "ops"
        assert naming.function_name == "Scheduled jobs"

    def test_comment_used_as_function_name(self) -> None:
        assert derive_naming("sys_post", table_comment=" Post ").function_name == "Post"

    def test_unwordy_name_gets_stable_identifier(self) -> None:
        first = derive_naming("___")
        second = derive_naming("___")
        assert first.class_name.startswith("Table")
        assert first.class_name == second.class_name


# ===========================================================================
# Context building
# ===========================================================================


class TestCrudContext:
    def test_fields(self, post_context: TemplateContext) -> None:
        ctx = post_context
        assert ctx.tpl_category == "crud"
        assert ctx.tree is None and ctx.sub is None
        assert ctx.class_name == "SysPost"
        assert ctx.business_name == "post"
        assert ctx.primary_key == "post_id"
        assert ctx.pk_field == "postId"
        assert ctx.function_author == "admin"
        assert ctx.generated_at == "2024-05-01"
        assert ctx.dict_types == ("status",)

    def test_context_is_frozen(self, post_context: TemplateContext) -> None:
        with pytest.raises(Exception):
            post_context.class_name = "Other"  # type: ignore[misc]

    def test_column_options_are_immutable(
        self, post_bundle: Dict[str, Any], context_builder
    ) -> None:
        post_bundle["table"]["columnOptions"] = {"post_code": {"columnWidth": 120}}
        ctx = context_builder(post_bundle)
        assert isinstance(ctx.column_options, tuple)
        assert [name for name, _ in ctx.column_options] == ["post_code"]
        with pytest.raises(AttributeError):
            ctx.column_options.append(("post_name", None))  # type: ignore[attr-defined]

    def test_column_option_lookup(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["columnOptions"] = {"post_code": {"columnWidth": 120}}
        ctx = context_builder(post_bundle)
        by_name = {col.column_name: col for col in ctx.columns}
        assert ctx.column_option(by_name["post_code"]).column_width == 120
        assert ctx.column_option(by_name["post_name"]).column_width is None

    def test_keyless_table_warns(
        self, post_bundle: Dict[str, Any], config: GeneratorConfig
    ) -> None:
        for col in post_bundle["columns"]:
            col.pop("isPk", None)
        normalized = normalize_table(post_bundle)
        warnings: List[str] = []
        ctx = build_context(
            normalized, classify_columns(normalized.columns), config, warnings=warnings
        )
        assert ctx.pk_column is None
        assert ctx.pk_field == "id"
        assert any("no primary key" in w for w in warnings)


class TestTreeContext:
    def test_variant(self, dept_context: TemplateContext) -> None:
        assert dept_context.tpl_category == "tree"
        assert dept_context.tree is not None
        assert dept_context.tree.tree_code == "dept_id"
        assert dept_context.tree.tree_parent_code == "parent_id"
        assert dept_context.tree.tree_name == "dept_name"

    @pytest.mark.parametrize("missing", ["treeCode", "treeParentCode"])
    def test_missing_code_is_validation_error(
        self, dept_bundle: Dict[str, Any], context_builder, missing: str
    ) -> None:
        del dept_bundle["table"]["options"][missing]
        with pytest.raises(ValidationError, match=missing) as exc_info:
            context_builder(dept_bundle)
        assert exc_info.value.table_name == "sys_dept"
        assert exc_info.value.stage == "building_context"

    def test_unknown_tree_column_warns(
        self, dept_bundle: Dict[str, Any], config: GeneratorConfig
    ) -> None:
        dept_bundle["table"]["options"]["treeName"] = "label"
        normalized = normalize_table(dept_bundle)
        warnings: List[str] = []
        build_context(normalized, classify_columns(normalized.columns), config, warnings=warnings)
        assert any("'label'" in w for w in warnings)


class TestSubContext:
    def test_variant(self, order_context: TemplateContext) -> None:
        sub = order_context.sub
        assert sub is not None
        assert sub.fk_column.column_name == "order_id"
        assert sub.sub_table.class_name == "BizOrderItem"
        assert sub.sub_table.business_name == "item"
        assert sub.sub_table.classified.pk_column is not None
        assert sub.sub_table.classified.pk_column.column_name == "item_id"

    def test_missing_sub_table_name(self, order_bundle: Dict[str, Any], context_builder) -> None:
        del order_bundle["table"]["subTableName"]
        with pytest.raises(ValidationError, match="subTableName"):
            context_builder(order_bundle)

    def test_sub_table_not_supplied(self, order_bundle: Dict[str, Any], context_builder) -> None:
        with pytest.raises(ValidationError, match="not supplied"):
            context_builder(order_bundle)

    def test_fk_falls_back_to_parent_pk_name(
        self,
        order_bundle: Dict[str, Any],
        order_item_bundle: Dict[str, Any],
        config: GeneratorConfig,
    ) -> None:
        order_bundle["table"]["subTableFkName"] = "parent_ref"
        normalized = normalize_table(order_bundle)
        warnings: List[str] = []
        ctx = build_context(
            normalized,
            classify_columns(normalized.columns),
            config,
            sub_table=normalize_table(order_item_bundle),
            warnings=warnings,
        )
        assert ctx.sub is not None
        assert ctx.sub.fk_column.column_name == "order_id"
        assert any("parent_ref" in w for w in warnings)

    def test_unresolvable_fk(
        self, order_bundle: Dict[str, Any], order_item_bundle: Dict[str, Any], context_builder
    ) -> None:
        order_item_bundle["columns"][1]["columnName"] = "master_ref"
        order_bundle["table"].pop("subTableFkName")
        with pytest.raises(ValidationError, match="references the primary key"):
            context_builder(order_bundle, order_item_bundle)

    def test_sub_sharing_business_name_rejected(
        self, order_bundle: Dict[str, Any], order_item_bundle: Dict[str, Any], context_builder
    ) -> None:
        order_bundle["table"]["subTableName"] = "sys_order"
        order_item_bundle["table"]["tableName"] = "sys_order"
        with pytest.raises(ValidationError, match="same business or class name") as exc_info:
            context_builder(order_bundle, order_item_bundle)
        assert "'order'" in exc_info.value.message

    def test_distinct_business_name_override_accepted(
        self, order_bundle: Dict[str, Any], order_item_bundle: Dict[str, Any], context_builder
    ) -> None:
        order_bundle["table"]["subTableName"] = "sys_order"
        order_item_bundle["table"]["tableName"] = "sys_order"
        order_item_bundle["table"]["businessName"] = "orderLine"
        ctx = context_builder(order_bundle, order_item_bundle)
        assert ctx.sub is not None
        assert ctx.sub.sub_table.business_name == "orderLine"


class TestResolveSubFk:
    def test_camel_case_reference(
        self, order_bundle: Dict[str, Any], order_item_bundle: Dict[str, Any]
    ) -> None:
        parent_pk = normalize_table(order_bundle).columns[0]
        sub_columns = normalize_table(order_item_bundle).columns
        found = resolve_sub_fk(parent_pk, sub_columns, "orderId")
        assert found is not None and found.column_name == "order_id"

    def test_nothing_to_match(self, order_item_bundle: Dict[str, Any]) -> None:
        sub_columns = normalize_table(order_item_bundle).columns
        assert resolve_sub_fk(None, sub_columns, None) is None
