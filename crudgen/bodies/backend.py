# File: crudgen/bodies/backend.py
"""
crudgen - Backend template bodies (NestJS + Prisma)
====================================================
One render function per backend output file. Each takes the frozen
``TemplateContext`` and returns the file content; none of them touch
anything but the context.

Generated layout::

    nestjs/<Business>/
        <business>.module.ts
        <business>.controller.ts
        <business>.service.ts
        dto/<business>.dto.ts
        entities/<business>.entity.ts
        utils/<business>-tree.util.ts     (tree)
        dto/<sub>.dto.ts                  (sub)
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

from crudgen.bodies.common import (
    file_header,
    find_column,
    finish,
    has_column,
    indent,
    is_range_query,
    permission,
    prisma_delegate,
    prisma_operator,
    route_path,
    ts_type,
)
from crudgen.models import ColumnMetadata, ColumnOptions, SubTableContext, TemplateContext
from crudgen.utils import to_camel_case, ts_string, upper_first

# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

_VALIDATORS_BY_TYPE = {
    "string": "IsString",
    "number": "IsNumber",
    "boolean": "IsBoolean",
    "Date": "IsDateString",
    "object": "IsObject",
}


def _pk_type(ctx: TemplateContext) -> str:
    return ts_type(ctx.pk_column) if ctx.pk_column else "number"


def _id_parser(ctx: TemplateContext, expr: str) -> str:
    return f"+{expr}" if _pk_type(ctx) == "number" else expr


def _is_required(col: ColumnMetadata, opt: ColumnOptions) -> bool:
    if opt.is_required is not None:
        return opt.is_required
    return not col.is_nullable and col.default_value is None


def _dto_field(
    col: ColumnMetadata,
    opt: ColumnOptions,
    used: Set[str],
    force_optional: bool = False,
) -> List[str]:
    """Decorated DTO property for one column; records decorator names in *used*."""
    lines: List[str] = []
    required: bool = _is_required(col, opt) and not force_optional
    swagger: str = "ApiProperty" if required else "ApiPropertyOptional"
    used.add(swagger)
    lines.append(f"@{swagger}({{ description: {ts_string(col.label)} }})")
    if not required:
        used.add("IsOptional")
        lines.append("@IsOptional()")

    validator: str = _VALIDATORS_BY_TYPE.get(col.language_type, "IsString")
    used.add(validator)
    lines.append(f"@{validator}()")

    if col.language_type == "string" and col.max_length:
        used.add("Length")
        lines.append(f"@Length(0, {col.max_length})")
    if col.language_type == "number":
        if opt.validation_min is not None:
            used.add("Min")
            lines.append(f"@Min({opt.validation_min:g})")
        if opt.validation_max is not None:
            used.add("Max")
            lines.append(f"@Max({opt.validation_max:g})")
    if opt.validation_pattern:
        used.add("Matches")
        message: str = (
            f", {{ message: {ts_string(opt.validation_message)} }}"
            if opt.validation_message
            else ""
        )
        pattern: str = opt.validation_pattern.replace("/", "\\/")
        lines.append(f"@Matches(/{pattern}/{message})")

    marker: str = "" if required else "?"
    lines.append(f"{col.field_name}{marker}: {ts_type(col)};")
    lines.append("")
    return lines


def _import_line(names: Set[str], module: str) -> List[str]:
    if not names:
        return []
    return [f"import {{ {', '.join(sorted(names))} }} from {ts_string(module)};"]


def _sub_list_field(sub: SubTableContext) -> str:
    return f"{sub.class_name_lower}List"


def _tree_field(ctx: TemplateContext, ref: Optional[str]) -> str:
    col: Optional[ColumnMetadata] = find_column(ctx, ref)
    return col.field_name if col else to_camel_case(ref or "")


def _soft_delete(ctx: TemplateContext) -> bool:
    return has_column(ctx, "del_flag")


# ---------------------------------------------------------------------------
# entities/<business>.entity.ts
# ---------------------------------------------------------------------------


def render_entity(ctx: TemplateContext) -> str:
    lines: List[str] = file_header(ctx, "entity")
    lines.append("import { ApiProperty } from '@nestjs/swagger';")
    lines.append("")
    lines.append(f"export class {ctx.class_name} {{")
    for col in ctx.columns:
        lines.append(f"  @ApiProperty({{ description: {ts_string(col.label)} }})")
        marker: str = "?" if col.is_nullable and not col.is_primary_key else ""
        lines.append(f"  {col.field_name}{marker}: {ts_type(col)};")
        lines.append("")
    if ctx.sub is not None:
        sub = ctx.sub.sub_table
        lines.append(f"  @ApiProperty({{ description: {ts_string(sub.table.table_comment or sub.table.table_name)} }})")
        lines.append(f"  {_sub_list_field(sub)}?: {sub.class_name}[];")
        lines.append("")
    while lines[-1] == "":
        lines.pop()
    lines.append("}")
    if ctx.sub is not None:
        sub = ctx.sub.sub_table
        lines.append("")
        lines.append(f"export class {sub.class_name} {{")
        for col in sub.columns:
            marker = "?" if col.is_nullable and not col.is_primary_key else ""
            lines.append(f"  {col.field_name}{marker}: {ts_type(col)};")
        lines.append("}")
    return finish(lines)


# ---------------------------------------------------------------------------
# dto/<business>.dto.ts
# ---------------------------------------------------------------------------


def render_dto(ctx: TemplateContext) -> str:
    used: Set[str] = set()
    body: List[str] = []
    c: str = ctx.class_name

    # Create
    body.append(f"export class Create{c}Dto {{")
    for col in ctx.insert_columns:
        body.extend(indent(_dto_field(col, ctx.column_option(col), used)))
    if ctx.sub is not None:
        sub = ctx.sub.sub_table
        used.update({"ApiPropertyOptional", "IsOptional", "IsArray", "ValidateNested"})
        body.append(f"  @ApiPropertyOptional({{ type: [Create{sub.class_name}Dto] }})")
        body.append("  @IsOptional()")
        body.append("  @IsArray()")
        body.append("  @ValidateNested({ each: true })")
        body.append(f"  @Type(() => Create{sub.class_name}Dto)")
        body.append(f"  {_sub_list_field(sub)}?: Create{sub.class_name}Dto[];")
        body.append("")
    while body[-1] == "":
        body.pop()
    body.append("}")
    body.append("")

    # Update
    body.append(f"export class Update{c}Dto {{")
    if ctx.pk_column is not None:
        pk_opt = ctx.column_option(ctx.pk_column)
        body.extend(
            indent(_dto_field(ctx.pk_column, pk_opt.model_copy(update={"is_required": True}), used))
        )
    for col in ctx.edit_columns:
        if col.is_primary_key:
            continue
        body.extend(indent(_dto_field(col, ctx.column_option(col), used, force_optional=True)))
    if ctx.sub is not None:
        sub = ctx.sub.sub_table
        body.append("  @IsOptional()")
        body.append("  @ValidateNested({ each: true })")
        body.append(f"  @Type(() => Create{sub.class_name}Dto)")
        body.append(f"  {_sub_list_field(sub)}?: Create{sub.class_name}Dto[];")
        body.append("")
    while body[-1] == "":
        body.pop()
    body.append("}")
    body.append("")

    # List / query
    base: str = "" if ctx.tree is not None else " extends PageQueryDto"
    body.append(f"export class List{c}Dto{base} {{")
    for col in ctx.query_columns:
        if is_range_query(col):
            pascal: str = upper_first(col.field_name)
            used.update({"ApiPropertyOptional", "IsOptional", "IsDateString"})
            for bound in ("begin", "end"):
                body.append(f"  @ApiPropertyOptional({{ description: {ts_string(f'{col.label} ({bound})')} }})")
                body.append("  @IsOptional()")
                body.append("  @IsDateString()")
                body.append(f"  {bound}{pascal}?: string;")
                body.append("")
        else:
            body.extend(indent(_dto_field(col, ColumnOptions(), used, force_optional=True)))
    sort = ctx.options.search
    if sort.default_sort_field:
        used.update({"ApiPropertyOptional", "IsOptional", "IsString"})
        body.append("  @ApiPropertyOptional({ description: 'Sort field' })")
        body.append("  @IsOptional()")
        body.append("  @IsString()")
        body.append("  orderByColumn?: string;")
        body.append("")
        body.append("  @ApiPropertyOptional({ enum: ['asc', 'desc'] })")
        body.append("  @IsOptional()")
        body.append("  @IsString()")
        body.append("  isAsc?: 'asc' | 'desc';")
        body.append("")
    while body[-1] == "":
        body.pop()
    body.append("}")

    swagger: Set[str] = {n for n in used if n.startswith("Api")}
    validators: Set[str] = used - swagger
    lines: List[str] = file_header(ctx, "DTOs")
    lines.extend(_import_line(swagger, "@nestjs/swagger"))
    lines.extend(_import_line(validators, "class-validator"))
    if ctx.sub is not None:
        lines.append("import { Type } from 'class-transformer';")
        lines.append(
            f"import {{ Create{ctx.sub.sub_table.class_name}Dto }} from "
            f"'./{ctx.sub.sub_table.business_name}.dto';"
        )
    if ctx.tree is None:
        lines.append("import { PageQueryDto } from 'src/common/dto/base.dto';")
    lines.append("")
    lines.extend(body)
    return finish(lines)


# ---------------------------------------------------------------------------
# <business>.controller.ts
# ---------------------------------------------------------------------------


def render_controller(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    svc: str = f"{ctx.class_name_lower}Service"
    pk: str = ctx.pk_field
    io = ctx.options.import_export
    audited: bool = ctx.options.audit.enable_operlog
    title: str = ctx.options.audit.operlog_title or ctx.function_name

    nest: Set[str] = {"Body", "Controller", "Delete", "Get", "Param", "Post", "Put", "Query"}
    if io.enable_export:
        nest.add("Res")
    if io.enable_import:
        nest.update({"UploadedFile", "UseInterceptors"})

    lines: List[str] = file_header(ctx, "controller")
    lines.extend(_import_line(nest, "@nestjs/common"))
    lines.append("import { ApiOperation, ApiTags } from '@nestjs/swagger';")
    if io.enable_export:
        lines.append("import { Response } from 'express';")
    if io.enable_import:
        lines.append("import { FileInterceptor } from '@nestjs/platform-express';")
    lines.append("import { RequirePermission } from 'src/common/decorators/require-premission.decorator';")
    if audited:
        lines.append("import { Operlog } from 'src/common/decorators/operlog.decorator';")
        lines.append("import { BusinessType } from 'src/common/constant/business.constant';")
    lines.append(f"import {{ {c}Service }} from './{ctx.business_name}.service';")
    lines.append(f"import {{ Create{c}Dto, List{c}Dto, Update{c}Dto }} from './dto/{ctx.business_name}.dto';")
    lines.append("")

    tag: str = ctx.options.api.api_group or ctx.function_name
    lines.append(f"@ApiTags({ts_string(tag)})")
    lines.append(f"@Controller({ts_string(route_path(ctx))})")
    lines.append(f"export class {c}Controller {{")
    lines.append(f"  constructor(private readonly {svc}: {c}Service) {{}}")
    lines.append("")

    def endpoint(
        summary: str,
        action: str,
        business_type: Optional[str],
        decorator: str,
        signature: str,
        call: str,
        extra: Sequence[str] = (),
    ) -> None:
        lines.append(f"  @ApiOperation({{ summary: {ts_string(summary)} }})")
        lines.append(f"  @RequirePermission({ts_string(permission(ctx, action))})")
        if audited and business_type:
            lines.append(f"  @Operlog({{ title: {ts_string(title)}, businessType: BusinessType.{business_type} }})")
        for deco in extra:
            lines.append(f"  {deco}")
        lines.append(f"  {decorator}")
        lines.append(f"  {signature} {{")
        lines.append(f"    return {call};")
        lines.append("  }")
        lines.append("")

    endpoint(
        f"Create {ctx.function_name}", "add", "INSERT", "@Post()",
        f"create(@Body() dto: Create{c}Dto)", f"this.{svc}.create(dto)",
    )
    if ctx.tree is not None:
        endpoint(
            f"{ctx.function_name} tree", "list", None, "@Get('list')",
            f"findAll(@Query() query: List{c}Dto)", f"this.{svc}.findAll(query)",
        )
    else:
        endpoint(
            f"List {ctx.function_name}", "list", None, "@Get('list')",
            f"findAll(@Query() query: List{c}Dto)", f"this.{svc}.findAll(query)",
        )
    endpoint(
        f"{ctx.function_name} detail", "query", None, f"@Get(':{pk}')",
        f"findOne(@Param('{pk}') {pk}: string)", f"this.{svc}.findOne({_id_parser(ctx, pk)})",
    )
    endpoint(
        f"Update {ctx.function_name}", "edit", "UPDATE", "@Put()",
        f"update(@Body() dto: Update{c}Dto)", f"this.{svc}.update(dto)",
    )
    id_map: str = ".map((id) => +id)" if _pk_type(ctx) == "number" else ""
    endpoint(
        f"Delete {ctx.function_name}", "remove", "DELETE", "@Delete(':ids')",
        "remove(@Param('ids') ids: string)", f"this.{svc}.remove(ids.split(','){id_map})",
    )
    if io.enable_export:
        endpoint(
            f"Export {ctx.function_name}", "export", "EXPORT", "@Post('export')",
            f"export(@Res() res: Response, @Body() query: List{c}Dto)",
            f"this.{svc}.export(res, query)",
        )
    if io.enable_import:
        endpoint(
            f"Import {ctx.function_name}", "import", "IMPORT", "@Post('import')",
            "importData(@UploadedFile() file: Express.Multer.File)",
            f"this.{svc}.importData(file)",
            extra=("@UseInterceptors(FileInterceptor('file'))",),
        )
    while lines[-1] == "":
        lines.pop()
    lines.append("}")
    return finish(lines)


# ---------------------------------------------------------------------------
# <business>.service.ts
# ---------------------------------------------------------------------------


def _where_lines(ctx: TemplateContext) -> List[str]:
    lines: List[str] = [f"const where: Prisma.{ctx.class_name}WhereInput = {{}};"]
    if _soft_delete(ctx):
        lines.append("where.delFlag = '0';")
    tenant = ctx.options.tenant
    if tenant.enable_tenant:
        field: str = _tree_field(ctx, tenant.tenant_column)
        lines.append(f"where.{field} = TenantContext.getTenantId();")
    scope = ctx.options.data_scope
    if scope.enable_data_scope and scope.data_scope_column:
        scope_type: str = ts_string(scope.data_scope_type or "ALL")
        field = _tree_field(ctx, scope.data_scope_column)
        lines.append(f"Object.assign(where, DataScope.buildWhere('{field}', {scope_type}));")
    for col in ctx.query_columns:
        f: str = col.field_name
        if is_range_query(col):
            pascal: str = upper_first(f)
            lines.append(f"if (query.begin{pascal} && query.end{pascal}) {{")
            lines.append(f"  where.{f} = {{ gte: new Date(query.begin{pascal}), lte: new Date(query.end{pascal}) }};")
            lines.append("}")
        else:
            lines.append(f"if (query.{f} !== undefined && query.{f} !== null && query.{f} !== '') {{")
            lines.append(f"  where.{f} = {{ {prisma_operator(col)}: query.{f} }};")
            lines.append("}")
    return lines


def _order_by(ctx: TemplateContext) -> str:
    search = ctx.options.search
    field: Optional[str] = None
    if search.default_sort_field:
        field = _tree_field(ctx, search.default_sort_field)
    elif ctx.pk_column is not None:
        field = ctx.pk_column.field_name
    if field is None:
        return "undefined"
    if search.default_sort_field:
        return f"{{ [query.orderByColumn ?? '{field}']: query.isAsc ?? '{search.default_sort_order}' }}"
    return f"{{ {field}: '{search.default_sort_order}' }}"


def render_service(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    d: str = prisma_delegate(ctx)
    pk: str = ctx.pk_field
    pk_type: str = _pk_type(ctx)
    io = ctx.options.import_export
    sub = ctx.sub
    tree = ctx.tree

    lines: List[str] = file_header(ctx, "service")
    lines.append("import { Injectable } from '@nestjs/common';")
    lines.append("import { Prisma } from '@prisma/client';")
    if io.enable_export:
        lines.append("import { Response } from 'express';")
        lines.append("import { ExportTable } from 'src/common/utils/export';")
    if io.enable_import:
        lines.append("import { ImportTable } from 'src/common/utils/import';")
    lines.append("import { PrismaService } from 'src/prisma/prisma.service';")
    lines.append("import { Result } from 'src/common/response';")
    if ctx.options.tenant.enable_tenant:
        lines.append("import { TenantContext } from 'src/common/tenant/tenant.context';")
    if ctx.options.data_scope.enable_data_scope and ctx.options.data_scope.data_scope_column:
        lines.append("import { DataScope } from 'src/common/decorators/data-scope.decorator';")
    if tree is not None:
        lines.append(f"import {{ build{c}Tree }} from './utils/{ctx.business_name}-tree.util';")
    lines.append(f"import {{ Create{c}Dto, List{c}Dto, Update{c}Dto }} from './dto/{ctx.business_name}.dto';")
    lines.append("")
    lines.append("@Injectable()")
    lines.append(f"export class {c}Service {{")
    lines.append("  constructor(private readonly prisma: PrismaService) {}")
    lines.append("")

    # create
    lines.append(f"  async create(dto: Create{c}Dto) {{")
    if sub is not None:
        sl: str = _sub_list_field(sub.sub_table)
        lines.append(f"    const {{ {sl}, ...data }} = dto;")
        lines.append(f"    const created = await this.prisma.{d}.create({{")
        lines.append("      data: {")
        lines.append("        ...data,")
        lines.append(f"        {sl}: {sl}?.length ? {{ create: {sl} }} : undefined,")
        lines.append("      },")
        lines.append("    });")
    else:
        lines.append(f"    const created = await this.prisma.{d}.create({{ data: dto }});")
    lines.append("    return Result.ok(created);")
    lines.append("  }")
    lines.append("")

    # findAll
    lines.append(f"  async findAll(query: List{c}Dto) {{")
    lines.extend(indent(_where_lines(ctx), 2))
    order: str = _order_by(ctx)
    if tree is not None:
        lines.append(f"    const rows = await this.prisma.{d}.findMany({{ where, orderBy: {order} }});")
        lines.append(f"    return Result.ok(build{c}Tree(rows));")
    else:
        lines.append("    const pageSize = Number(query.pageSize ?? 10);")
        lines.append("    const pageNum = Number(query.pageNum ?? 1);")
        lines.append("    const [rows, total] = await this.prisma.$transaction([")
        lines.append(f"      this.prisma.{d}.findMany({{")
        lines.append("        where,")
        lines.append("        skip: (pageNum - 1) * pageSize,")
        lines.append("        take: pageSize,")
        lines.append(f"        orderBy: {order},")
        lines.append("      }),")
        lines.append(f"      this.prisma.{d}.count({{ where }}),")
        lines.append("    ]);")
        lines.append("    return Result.ok({ rows, total });")
    lines.append("  }")
    lines.append("")

    # findOne
    lines.append(f"  async findOne({pk}: {pk_type}) {{")
    if sub is not None:
        lines.append(f"    const row = await this.prisma.{d}.findUnique({{")
        lines.append(f"      where: {{ {pk} }},")
        lines.append(f"      include: {{ {_sub_list_field(sub.sub_table)}: true }},")
        lines.append("    });")
    else:
        lines.append(f"    const row = await this.prisma.{d}.findUnique({{ where: {{ {pk} }} }});")
    lines.append("    return Result.ok(row);")
    lines.append("  }")
    lines.append("")

    # update
    lines.append(f"  async update(dto: Update{c}Dto) {{")
    if sub is not None:
        sl = _sub_list_field(sub.sub_table)
        sd: str = sub.sub_table.class_name_lower
        fk: str = sub.fk_column.field_name
        lines.append(f"    const {{ {pk}, {sl}, ...data }} = dto;")
        lines.append("    const updated = await this.prisma.$transaction(async (tx) => {")
        lines.append(f"      if ({sl}) {{")
        lines.append(f"        await tx.{sd}.deleteMany({{ where: {{ {fk}: {pk} }} }});")
        lines.append(f"        await tx.{sd}.createMany({{ data: {sl}.map((item) => ({{ ...item, {fk}: {pk} }})) }});")
        lines.append("      }")
        lines.append(f"      return tx.{d}.update({{ where: {{ {pk} }}, data }});")
        lines.append("    });")
    else:
        lines.append(f"    const {{ {pk}, ...data }} = dto;")
        lines.append(f"    const updated = await this.prisma.{d}.update({{ where: {{ {pk} }}, data }});")
    lines.append("    return Result.ok(updated);")
    lines.append("  }")
    lines.append("")

    # remove
    lines.append(f"  async remove(ids: {pk_type}[]) {{")
    if sub is not None:
        sd = sub.sub_table.class_name_lower
        fk = sub.fk_column.field_name
        lines.append(f"    await this.prisma.{sd}.deleteMany({{ where: {{ {fk}: {{ in: ids }} }} }});")
    if _soft_delete(ctx):
        lines.append(f"    const removed = await this.prisma.{d}.updateMany({{")
        lines.append(f"      where: {{ {pk}: {{ in: ids }} }},")
        lines.append("      data: { delFlag: '1' },")
        lines.append("    });")
    else:
        lines.append(f"    const removed = await this.prisma.{d}.deleteMany({{ where: {{ {pk}: {{ in: ids }} }} }});")
    lines.append("    return Result.ok(removed.count);")
    lines.append("  }")

    if io.enable_export:
        fields: List[ColumnMetadata] = [
            col for col in (find_column(ctx, ref) for ref in io.export_fields) if col is not None
        ] or list(ctx.list_columns)
        sheet: str = io.export_file_name or ctx.function_name
        lines.append("")
        lines.append(f"  async export(res: Response, query: List{c}Dto) {{")
        lines.extend(indent(_where_lines(ctx), 2))
        lines.append(f"    const rows = await this.prisma.{d}.findMany({{ where, orderBy: {order} }});")
        lines.append("    return ExportTable(")
        lines.append("      {")
        lines.append(f"        sheetName: {ts_string(sheet)},")
        lines.append("        data: rows,")
        lines.append("        header: [")
        for col in fields:
            lines.append(f"          {{ title: {ts_string(col.label)}, dataIndex: '{col.field_name}' }},")
        lines.append("        ],")
        lines.append("      },")
        lines.append("      res,")
        lines.append("    );")
        lines.append("  }")

    if io.enable_import:
        fields = [
            col for col in (find_column(ctx, ref) for ref in io.import_fields) if col is not None
        ] or list(ctx.insert_columns)
        lines.append("")
        lines.append("  async importData(file: Express.Multer.File) {")
        lines.append("    const rows = await ImportTable(file.buffer, [")
        for col in fields:
            lines.append(f"      {{ title: {ts_string(col.label)}, dataIndex: '{col.field_name}' }},")
        lines.append("    ]);")
        lines.append(f"    const result = await this.prisma.{d}.createMany({{ data: rows }});")
        lines.append("    return Result.ok(result.count);")
        lines.append("  }")

    lines.append("}")
    return finish(lines)


# ---------------------------------------------------------------------------
# <business>.module.ts
# ---------------------------------------------------------------------------


def render_module(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    lines: List[str] = file_header(ctx, "module")
    lines.append("import { Module } from '@nestjs/common';")
    lines.append(f"import {{ {c}Controller }} from './{ctx.business_name}.controller';")
    lines.append(f"import {{ {c}Service }} from './{ctx.business_name}.service';")
    lines.append("")
    lines.append("@Module({")
    lines.append(f"  controllers: [{c}Controller],")
    lines.append(f"  providers: [{c}Service],")
    lines.append(f"  exports: [{c}Service],")
    lines.append("})")
    lines.append(f"export class {c}Module {{}}")
    return finish(lines)


# ---------------------------------------------------------------------------
# utils/<business>-tree.util.ts
# ---------------------------------------------------------------------------


def render_tree_util(ctx: TemplateContext) -> str:
    tree = ctx.tree
    assert tree is not None
    c: str = ctx.class_name
    code: str = _tree_field(ctx, tree.tree_code)
    parent: str = _tree_field(ctx, tree.tree_parent_code)
    name: str = _tree_field(ctx, tree.tree_name) if tree.tree_name else code

    lines: List[str] = file_header(ctx, "tree utilities")
    lines.append(f"export type {c}TreeNode<T = Record<string, any>> = T & {{")
    lines.append("  label: string;")
    lines.append(f"  children?: {c}TreeNode<T>[];")
    lines.append("};")
    lines.append("")
    lines.append(f"export function build{c}Tree<T extends Record<string, any>>(rows: T[]): {c}TreeNode<T>[] {{")
    lines.append(f"  const nodes = new Map<unknown, {c}TreeNode<T>>();")
    lines.append("  for (const row of rows) {")
    lines.append(f"    nodes.set(row.{code}, {{ ...row, label: String(row.{name}) }});")
    lines.append("  }")
    lines.append(f"  const roots: {c}TreeNode<T>[] = [];")
    lines.append("  for (const node of nodes.values()) {")
    lines.append(f"    const parent = nodes.get(node.{parent});")
    lines.append("    if (parent && parent !== node) {")
    lines.append("      (parent.children ??= []).push(node);")
    lines.append("    } else {")
    lines.append("      roots.push(node);")
    lines.append("    }")
    lines.append("  }")
    lines.append("  return roots;")
    lines.append("}")
    lines.append("")
    lines.append(f"export function collect{c}Descendants<T extends Record<string, any>>(")
    lines.append(f"  node: {c}TreeNode<T>,")
    lines.append("): unknown[] {")
    lines.append(f"  const ids: unknown[] = [node.{code}];")
    lines.append("  for (const child of node.children ?? []) {")
    lines.append(f"    ids.push(...collect{c}Descendants(child));")
    lines.append("  }")
    lines.append("  return ids;")
    lines.append("}")
    return finish(lines)


# ---------------------------------------------------------------------------
# dto/<sub>.dto.ts
# ---------------------------------------------------------------------------


def render_sub_dto(ctx: TemplateContext) -> str:
    sub = ctx.sub
    assert sub is not None
    used: Set[str] = set()
    body: List[str] = [f"export class Create{sub.sub_table.class_name}Dto {{"]
    for col in sub.sub_table.classified.insert_columns:
        if col.column_name == sub.fk_column.column_name:
            continue
        body.extend(indent(_dto_field(col, ColumnOptions(), used)))
    while body[-1] == "":
        body.pop()
    body.append("}")

    swagger: Set[str] = {n for n in used if n.startswith("Api")}
    lines: List[str] = file_header(ctx, f"detail DTO ({sub.sub_table.table.table_name})")
    lines.extend(_import_line(swagger, "@nestjs/swagger"))
    lines.extend(_import_line(used - swagger, "class-validator"))
    lines.append("")
    lines.extend(body)
    return finish(lines)


__all__: List[str] = [
    "render_entity",
    "render_dto",
    "render_controller",
    "render_service",
    "render_module",
    "render_tree_util",
    "render_sub_dto",
]
