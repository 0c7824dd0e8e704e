# File: crudgen/bodies/menu.py
"""
crudgen - Menu registration SQL body
=====================================
One PostgreSQL script per table: a ``C`` (page) menu row under the
configured parent plus one ``F`` (button) row per permission. Button
rows find their page through the page's unique ``perms`` value, so the
script never depends on sequence state.
"""

from __future__ import annotations

from typing import List, Tuple

from crudgen.bodies.common import finish, permission
from crudgen.models import TemplateContext
from crudgen.utils import sql_string

_MENU_COLUMNS: str = (
    "menu_name, parent_id, order_num, path, component, is_frame, is_cache, "
    "menu_type, visible, status, perms, icon, create_by, create_time, remark"
)

_DEFAULT_PARENT_ID: int = 1


def _buttons(ctx: TemplateContext) -> List[Tuple[str, str]]:
    io = ctx.options.import_export
    buttons: List[Tuple[str, str]] = [
        ("Query", "query"),
        ("Add", "add"),
        ("Edit", "edit"),
        ("Remove", "remove"),
    ]
    if io.enable_export:
        buttons.append(("Export", "export"))
    if io.enable_import:
        buttons.append(("Import", "import"))
    return buttons


def render_menu_sql(ctx: TemplateContext) -> str:
    tree = ctx.options.tree
    parent_id: int = tree.parent_menu_id if tree.parent_menu_id is not None else _DEFAULT_PARENT_ID
    list_perm: str = permission(ctx, "list")
    component: str = f"{ctx.module_name}/{ctx.business_name}/index"
    author: str = sql_string(ctx.function_author)

    lines: List[str] = [
        f"-- {ctx.function_name} menu ({ctx.table_name})",
        f"-- author: {ctx.function_author}  date: {ctx.generated_at}",
    ]
    if tree.parent_menu_name:
        lines.append(f"-- parent menu: {tree.parent_menu_name}")
    lines.append("")
    lines.append(f"INSERT INTO sys_menu ({_MENU_COLUMNS})")
    lines.append(
        "VALUES ("
        f"{sql_string(ctx.function_name)}, {parent_id}, 1, {sql_string(ctx.business_name)}, "
        f"{sql_string(component)}, '1', '0', 'C', '0', '0', {sql_string(list_perm)}, '#', "
        f"{author}, now(), {sql_string(ctx.function_name + ' menu')});"
    )
    lines.append("")

    for order, (title, action) in enumerate(_buttons(ctx), start=1):
        lines.append(f"INSERT INTO sys_menu ({_MENU_COLUMNS})")
        lines.append(
            f"SELECT {sql_string(ctx.function_name + ' ' + title)}, menu_id, {order}, '#', '', "
            f"'1', '0', 'F', '0', '0', {sql_string(permission(ctx, action))}, '#', {author}, now(), ''"
        )
        lines.append(f"FROM sys_menu WHERE perms = {sql_string(list_perm)} AND menu_type = 'C'")
        # newest page row only
        lines.append("ORDER BY menu_id DESC LIMIT 1;")
        lines.append("")
    return finish(lines)


__all__: List[str] = ["render_menu_sql"]
