"""
tests/test_templates.py
Unit tests for crudgen.templates and the render bodies.

Tests cover:
- Registry shape and key stability
- Variant and option gating
- Output paths
- Deterministic rendering
- Render-error isolation
- Spot checks of generated backend / frontend / SQL content
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, List

import pytest

from crudgen import templates
from crudgen.errors import TemplateRenderError
from crudgen.models import FileType, TemplateContext
from crudgen.templates import (
    REGISTRY,
    applicable_templates,
    registry_keys,
    render_context,
    render_entry,
)

BASE_NAMES: List[str] = [
    "entity",
    "dto",
    "controller",
    "service",
    "module",
    "api",
    "types",
    "index",
    "dialog",
    "search",
    "menu-sql",
]


def _names(entries) -> List[str]:
    return [e.name for e in entries]


def _by_name(ctx: TemplateContext, name: str) -> str:
    entry = next(e for e in REGISTRY if e.name == name)
    return render_entry(entry, ctx).content


# ===========================================================================
# Registry
# ===========================================================================


class TestRegistry:
    def test_keys_are_unique(self) -> None:
        keys = registry_keys()
        assert len(keys) == len(set(keys))
        assert len({e.name for e in REGISTRY}) == len(REGISTRY)

    def test_base_entries_come_first(self) -> None:
        assert _names(REGISTRY[:11]) == BASE_NAMES

    def test_key_is_output_path_pattern(self) -> None:
        assert "nestjs/{business_pascal}/{business_name}.service.ts" in registry_keys()
        assert "sql/{business_name}_menu.sql" in registry_keys()

    def test_option_flags_exist_on_gen_options(self, post_context: TemplateContext) -> None:
        every_flag = {
            name
            for group in type(post_context.options).model_fields
            for name in type(getattr(post_context.options, group)).model_fields
            if name.startswith("enable_")
        }
        for entry in REGISTRY:
            if entry.option_flag is not None:
                assert entry.option_flag in every_flag


# ===========================================================================
# Gating
# ===========================================================================


class TestApplicability:
    def test_plain_crud_gets_base_set(self, post_context: TemplateContext) -> None:
        assert _names(applicable_templates(post_context)) == BASE_NAMES

    def test_tree_adds_tree_entries(self, dept_context: TemplateContext) -> None:
        assert _names(applicable_templates(dept_context)) == BASE_NAMES + ["tree-util", "tree-select"]

    def test_sub_adds_sub_entries(self, order_context: TemplateContext) -> None:
        assert _names(applicable_templates(order_context)) == BASE_NAMES + ["sub-dto", "sub-table"]

    @pytest.mark.parametrize(
        "option,expected",
        [
            ("enableAdvancedSearch", ["advanced-search"]),
            ("enableColumnToggle", ["column-setting"]),
            ("enableInlineEdit", ["inline-edit"]),
            ("enableBatchEdit", ["batch-edit"]),
            ("enableImport", ["import-modal"]),
            ("enableUnitTest", ["service-spec", "controller-spec", "test-factory"]),
            ("enableE2ETest", ["e2e-spec"]),
            ("enableExport", []),
        ],
    )
    def test_option_gated_entries(
        self,
        post_bundle: Dict[str, Any],
        context_builder,
        option: str,
        expected: List[str],
    ) -> None:
        post_bundle["table"]["options"] = {option: True}
        names = _names(applicable_templates(context_builder(post_bundle)))
        assert names == BASE_NAMES + expected


# ===========================================================================
# Rendering
# ===========================================================================


class TestRenderContext:
    def test_crud_paths(self, post_context: TemplateContext) -> None:
        files, errors = render_context(post_context)
        assert errors == []
        assert [f.file_path for f in files] == [
            "nestjs/Post/entities/post.entity.ts",
            "nestjs/Post/dto/post.dto.ts",
            "nestjs/Post/post.controller.ts",
            "nestjs/Post/post.service.ts",
            "nestjs/Post/post.module.ts",
            "vue/Post/api/post.ts",
            "vue/Post/types/post.d.ts",
            "vue/Post/post/index.vue",
            "vue/Post/post/modules/drawer.vue",
            "vue/Post/post/modules/search.vue",
            "sql/post_menu.sql",
        ]
        assert files[0].file_name == "post.entity.ts"
        assert all(f.table_name == "sys_post" for f in files)
        assert [f.file_type for f in files].count(FileType.SQL.value) == 1

    def test_sub_dto_path(self, order_context: TemplateContext) -> None:
        files, _ = render_context(order_context)
        assert "nestjs/Order/dto/item.dto.ts" in [f.file_path for f in files]

    def test_every_file_ends_with_single_newline(self, order_context: TemplateContext) -> None:
        files, _ = render_context(order_context)
        for f in files:
            assert f.content.endswith("\n")
            assert not f.content.endswith("\n\n")

    def test_deterministic(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["options"] = {"enableExport": True, "enableImport": True, "enableUnitTest": True}
        first, _ = render_context(context_builder(post_bundle))
        second, _ = render_context(context_builder(post_bundle))
        assert [(f.file_path, f.content) for f in first] == [(f.file_path, f.content) for f in second]

    def test_failure_is_isolated(self, post_context: TemplateContext) -> None:
        def boom(ctx: TemplateContext) -> str:
            raise KeyError("missing_field")

        entries = [
            dataclasses.replace(e, render=boom) if e.name == "controller" else e
            for e in applicable_templates(post_context)
        ]
        files, errors = render_context(post_context, entries)
        assert len(files) == 10
        assert len(errors) == 1
        err = errors[0]
        assert isinstance(err, TemplateRenderError)
        assert err.template_key == "nestjs/{business_pascal}/{business_name}.controller.ts"
        assert err.table_name == "sys_post"
        assert err.stage == "rendering"
        assert "KeyError" in err.message

    def test_registry_is_read_at_call_time(
        self, post_context: TemplateContext, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(templates, "REGISTRY", REGISTRY[:2])
        files, _ = render_context(post_context)
        assert len(files) == 2


# ===========================================================================
# Content spot checks
# ===========================================================================


class TestBackendBodies:
    def test_entity(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "entity")
        assert "export class SysPost {" in content
        assert "@author admin" in content
        assert "@date 2024-05-01" in content

    def test_controller_routes_and_permissions(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "controller")
        assert "@Controller('system/post')" in content
        assert "@RequirePermission('system:post:list')" in content
        assert "@RequirePermission('system:post:remove')" in content
        assert "@Get(':postId')" in content
        assert "ids.split(',').map((id) => +id)" in content
        assert "export(" not in content

    def test_controller_export_endpoint(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["options"] = {"enableExport": True}
        content = _by_name(context_builder(post_bundle), "controller")
        assert "@RequirePermission('system:post:export')" in content
        assert "import { Response } from 'express';" in content

    def test_service_uses_prisma_delegate(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "service")
        assert "export class SysPostService {" in content
        assert "this.prisma.sysPost.create" in content

    def test_tree_service_builds_tree(self, dept_context: TemplateContext) -> None:
        content = _by_name(dept_context, "service")
        assert "import { buildSysDeptTree } from './utils/dept-tree.util';" in content
        util = _by_name(dept_context, "tree-util")
        assert "export function buildSysDeptTree" in util

    def test_sub_service_nests_detail_rows(self, order_context: TemplateContext) -> None:
        content = _by_name(order_context, "service")
        assert "bizOrderItemList" in content


class TestFrontendBodies:
    def test_api_functions(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "api")
        for fn in ("fetchGetSysPostList", "fetchGetSysPost", "fetchCreateSysPost",
                   "fetchUpdateSysPost", "fetchBatchDeleteSysPost"):
            assert fn in content
        assert "fetchExportSysPost" not in content
        assert "@/service/request" in content

    def test_index_imports_api_module(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "index")
        assert "../api/post" in content
        assert "useDict('status')" in content

    def test_index_delegates_to_search_module(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "index")
        assert "import SysPostSearch from './modules/search.vue';" in content
        assert '<SysPostSearch v-model:model="searchParams" @search="getData" @reset="getData" />' in content
        assert "<NForm inline" not in content

    def test_search_binds_model(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "search")
        assert "defineModel<SysPostSearchParams>('model', { required: true });" in content
        assert "import type { SysPostSearchParams } from '../../api/post';" in content
        assert 'v-model:value="model.postCode"' in content
        assert "useDict('status')" in content
        assert "Range" not in content

    def test_search_range_columns(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["columnOptions"] = {"create_time": {"isQuery": True}}
        content = _by_name(context_builder(post_bundle), "search")
        assert "const createTimeRange = ref<[number, number] | null>(null);" in content
        assert "model.value.beginCreateTime = toIso(createTimeRange.value?.[0]);" in content
        assert "createTimeRange.value = null;" in content

    def test_search_hosts_advanced_search(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["options"] = {"enableAdvancedSearch": True}
        content = _by_name(context_builder(post_bundle), "index")
        assert '      <AdvancedSearch @search="getData" />' in content
        assert "    </SysPostSearch>" in content

    def test_types_namespace(self, order_context: TemplateContext) -> None:
        content = _by_name(order_context, "types")
        assert "declare namespace Api {" in content
        assert "  namespace Order {" in content
        assert "export interface BizOrder {" in content
        assert "export interface BizOrderItem {" in content
        assert "export interface BizOrderSearchParams {" in content
        assert not content.endswith("\n\n")

    def test_types_match_api_interfaces(self, post_context: TemplateContext) -> None:
        api = _by_name(post_context, "api")
        types = _by_name(post_context, "types")
        assert "export interface SysPostList {" in api
        assert "export interface SysPostList {" in types

    def test_tree_dialog_uses_tree_select(self, dept_context: TemplateContext) -> None:
        content = _by_name(dept_context, "dialog")
        assert "import SysDeptTreeSelect from './tree-select.vue';" in content
        assert "<SysDeptTreeSelect" in content

    def test_attribute_text_is_escaped(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["columns"][1]["columnComment"] = 'Code "A" <main>'
        content = _by_name(context_builder(post_bundle), "dialog")
        assert 'label="Code &quot;A&quot; &lt;main&gt;"' in content


class TestMenuSql:
    def test_page_and_buttons(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "menu-sql")
        assert content.count("INSERT INTO sys_menu") == 5
        assert "'system/post/index'" in content
        assert "'system:post:list'" in content
        assert "FROM sys_menu WHERE perms = 'system:post:list' AND menu_type = 'C'" in content
        assert "'system:post:export'" not in content

    def test_export_import_buttons(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["options"] = {"enableExport": True, "enableImport": True}
        content = _by_name(context_builder(post_bundle), "menu-sql")
        assert content.count("INSERT INTO sys_menu") == 7

    def test_parent_menu(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["options"] = {"parentMenuId": 42}
        content = _by_name(context_builder(post_bundle), "menu-sql")
        assert "'Post', 42, 1," in content

    def test_quotes_are_escaped(self, post_bundle: Dict[str, Any], context_builder) -> None:
        post_bundle["table"]["tableComment"] = "Admin's posts"
        content = _by_name(context_builder(post_bundle), "menu-sql")
        assert "'Admin''s posts'" in content

    def test_buttons_attach_to_one_parent_row(self, post_context: TemplateContext) -> None:
        content = _by_name(post_context, "menu-sql")
        button_rows = content.count("SELECT 'Post ")
        assert button_rows == 4
        assert content.count("ORDER BY menu_id DESC LIMIT 1;") == button_rows
        assert "perms = 'system:post:list';" not in content
