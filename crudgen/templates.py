# File: crudgen/templates.py
"""
crudgen - Template Registry & Renderer
=======================================
The registry is one module-level tuple of ``TemplateEntry`` values. The
entry key is the output-path pattern and doubles as the stable public
identifier of the template (``crudgen templates`` lists them).

    base       11 entries, every variant
    tree       tree utility + tree-select
    sub        detail DTO + sub-table view
    optional   gated on one ``enable_*`` flag of ``GenOptions``

**Rendering contract:**
    - Every render function receives the same frozen ``TemplateContext``.
    - A raising render function becomes one ``TemplateRenderError``;
      the remaining entries still render.
    - Output order follows registry order, so results are deterministic.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import Callable, FrozenSet, List, Optional, Tuple

from crudgen.bodies import backend, frontend, menu, testing
from crudgen.errors import TemplateRenderError
from crudgen.models import (
    FileType,
    GeneratedFile,
    PipelineStage,
    TemplateContext,
    TplCategory,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.templates")

RenderFn = Callable[[TemplateContext], str]

ALL_VARIANTS: FrozenSet[str] = frozenset(c.value for c in TplCategory)
TREE_ONLY: FrozenSet[str] = frozenset({TplCategory.TREE.value})
SUB_ONLY: FrozenSet[str] = frozenset({TplCategory.SUB.value})

# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TemplateEntry:
    """One output file: where it goes, who renders it, when it applies."""

    key: str
    name: str
    category: FileType
    render: RenderFn
    variants: FrozenSet[str] = ALL_VARIANTS
    option_flag: Optional[str] = None

    def applies_to(self, ctx: TemplateContext) -> bool:
        if ctx.tpl_category not in self.variants:
            return False
        return self.option_flag is None or self.option_flag in ctx.options.enabled_flags()

    def output_path(self, ctx: TemplateContext) -> str:
        sub = ctx.sub
        return self.key.format(
            business_pascal=ctx.business_pascal,
            business_name=ctx.business_name,
            sub_business_name=sub.sub_table.business_name if sub else "",
        )


_NEST: str = "nestjs/{business_pascal}"
_VUE: str = "vue/{business_pascal}"
_VIEW: str = _VUE + "/{business_name}"

REGISTRY: Tuple[TemplateEntry, ...] = (
    # base
    TemplateEntry(
        _NEST + "/entities/{business_name}.entity.ts", "entity", FileType.BACKEND, backend.render_entity
    ),
    TemplateEntry(_NEST + "/dto/{business_name}.dto.ts", "dto", FileType.BACKEND, backend.render_dto),
    TemplateEntry(
        _NEST + "/{business_name}.controller.ts", "controller", FileType.BACKEND, backend.render_controller
    ),
    TemplateEntry(_NEST + "/{business_name}.service.ts", "service", FileType.BACKEND, backend.render_service),
    TemplateEntry(_NEST + "/{business_name}.module.ts", "module", FileType.BACKEND, backend.render_module),
    TemplateEntry(_VUE + "/api/{business_name}.ts", "api", FileType.FRONTEND, frontend.render_api),
    TemplateEntry(_VUE + "/types/{business_name}.d.ts", "types", FileType.FRONTEND, frontend.render_types),
    TemplateEntry(_VIEW + "/index.vue", "index", FileType.FRONTEND, frontend.render_index),
    TemplateEntry(_VIEW + "/modules/drawer.vue", "dialog", FileType.FRONTEND, frontend.render_dialog),
    TemplateEntry(_VIEW + "/modules/search.vue", "search", FileType.FRONTEND, frontend.render_search),
    TemplateEntry("sql/{business_name}_menu.sql", "menu-sql", FileType.SQL, menu.render_menu_sql),
    # tree
    TemplateEntry(
        _NEST + "/utils/{business_name}-tree.util.ts",
        "tree-util",
        FileType.BACKEND,
        backend.render_tree_util,
        variants=TREE_ONLY,
    ),
    TemplateEntry(
        _VIEW + "/modules/tree-select.vue",
        "tree-select",
        FileType.FRONTEND,
        frontend.render_tree_select,
        variants=TREE_ONLY,
    ),
    # sub
    TemplateEntry(
        _NEST + "/dto/{sub_business_name}.dto.ts",
        "sub-dto",
        FileType.BACKEND,
        backend.render_sub_dto,
        variants=SUB_ONLY,
    ),
    TemplateEntry(
        _VIEW + "/modules/sub-table.vue",
        "sub-table",
        FileType.FRONTEND,
        frontend.render_sub_table,
        variants=SUB_ONLY,
    ),
    # optional
    TemplateEntry(
        _VIEW + "/modules/advanced-search.vue",
        "advanced-search",
        FileType.FRONTEND,
        frontend.render_advanced_search,
        option_flag="enable_advanced_search",
    ),
    TemplateEntry(
        _VIEW + "/modules/column-setting.vue",
        "column-setting",
        FileType.FRONTEND,
        frontend.render_column_setting,
        option_flag="enable_column_toggle",
    ),
    TemplateEntry(
        _VIEW + "/modules/inline-edit.vue",
        "inline-edit",
        FileType.FRONTEND,
        frontend.render_inline_edit,
        option_flag="enable_inline_edit",
    ),
    TemplateEntry(
        _VIEW + "/modules/batch-edit.vue",
        "batch-edit",
        FileType.FRONTEND,
        frontend.render_batch_edit,
        option_flag="enable_batch_edit",
    ),
    TemplateEntry(
        _VIEW + "/modules/import-modal.vue",
        "import-modal",
        FileType.FRONTEND,
        frontend.render_import_modal,
        option_flag="enable_import",
    ),
    TemplateEntry(
        _NEST + "/test/{business_name}.service.spec.ts",
        "service-spec",
        FileType.BACKEND,
        testing.render_service_spec,
        option_flag="enable_unit_test",
    ),
    TemplateEntry(
        _NEST + "/test/{business_name}.controller.spec.ts",
        "controller-spec",
        FileType.BACKEND,
        testing.render_controller_spec,
        option_flag="enable_unit_test",
    ),
    TemplateEntry(
        _NEST + "/test/factory.ts",
        "test-factory",
        FileType.BACKEND,
        testing.render_factory,
        option_flag="enable_unit_test",
    ),
    TemplateEntry(
        _NEST + "/test/{business_name}.e2e-spec.ts",
        "e2e-spec",
        FileType.BACKEND,
        testing.render_e2e_spec,
        option_flag="enable_e2e_test",
    ),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def registry_keys() -> List[str]:
    """Every registry key in registry order."""
    return [entry.key for entry in REGISTRY]


def applicable_templates(ctx: TemplateContext) -> List[TemplateEntry]:
    """Registry entries that apply to *ctx*'s variant and enabled options."""
    return [entry for entry in REGISTRY if entry.applies_to(ctx)]


def render_entry(entry: TemplateEntry, ctx: TemplateContext) -> GeneratedFile:
    """
    Render one entry.

    Raises:
        TemplateRenderError: wrapping whatever the render function raised.
    """
    path: str = entry.output_path(ctx)
    try:
        content: str = entry.render(ctx)
    except Exception as exc:
        raise TemplateRenderError(
            f"{type(exc).__name__}: {exc}",
            table_name=ctx.table_name,
            template_key=entry.key,
            stage=PipelineStage.RENDERING.value,
        ) from exc
    return GeneratedFile(
        file_name=posixpath.basename(path),
        file_path=path,
        content=content,
        file_type=entry.category,
        table_name=ctx.table_name,
        template_key=entry.key,
    )


def render_context(
    ctx: TemplateContext,
    entries: Optional[List[TemplateEntry]] = None,
) -> Tuple[List[GeneratedFile], List[TemplateRenderError]]:
    """
    Render every applicable entry against one context.

    Returns:
        ``(files, errors)``. A failing entry contributes one error and
        no file; its siblings are unaffected.
    """
    files: List[GeneratedFile] = []
    errors: List[TemplateRenderError] = []
    for entry in entries if entries is not None else applicable_templates(ctx):
        try:
            files.append(render_entry(entry, ctx))
        except TemplateRenderError as exc:
            logger.error(
                "Render failed for '%s' template '%s': %s",
                ctx.table_name,
                entry.key,
                exc.message,
            )
            errors.append(exc)
    logger.debug(
        "Rendered %d file(s) for '%s' (%d failed).",
        len(files),
        ctx.table_name,
        len(errors),
    )
    return files, errors


__all__: List[str] = [
    "RenderFn",
    "TemplateEntry",
    "REGISTRY",
    "registry_keys",
    "applicable_templates",
    "render_entry",
    "render_context",
]
