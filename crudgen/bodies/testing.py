# File: crudgen/bodies/testing.py
"""
crudgen - Generated test bodies (Jest)
=======================================
Unit specs for the generated service and controller, a shared row
factory, and a supertest e2e spec. Only rendered when the table's
quality options ask for them.
"""

from __future__ import annotations

from typing import Dict, List

from crudgen.bodies.common import file_header, finish, indent, route_path
from crudgen.models import ColumnMetadata, TemplateContext
from crudgen.utils import ts_string

_SAMPLE_BY_TYPE: Dict[str, str] = {
    "number": "1",
    "boolean": "true",
    "Date": "new Date('2024-01-01T00:00:00Z')",
    "object": "{}",
}


def _sample(col: ColumnMetadata) -> str:
    if col.language_type in _SAMPLE_BY_TYPE:
        return _SAMPLE_BY_TYPE[col.language_type]
    value: str = col.field_name
    if col.max_length:
        value = value[: col.max_length]
    return ts_string(value)


def _pk_sample(ctx: TemplateContext) -> str:
    if ctx.pk_column is None or ctx.pk_column.language_type == "number":
        return "1"
    return "'1'"


def render_factory(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    lines: List[str] = file_header(ctx, "test factory")
    lines.append(f"export function build{c}(overrides: Record<string, any> = {{}}) {{")
    lines.append("  return {")
    for col in ctx.columns:
        lines.append(f"    {col.field_name}: {_sample(col)},")
    lines.append("    ...overrides,")
    lines.append("  };")
    lines.append("}")
    return finish(lines)


def _prisma_mock(ctx: TemplateContext) -> List[str]:
    d: str = ctx.class_name_lower
    lines: List[str] = ["const prisma = {"]
    lines.append(f"  {d}: {{")
    for method in ("create", "findMany", "findUnique", "count", "update", "updateMany", "deleteMany", "createMany"):
        lines.append(f"    {method}: jest.fn(),")
    lines.append("  },")
    if ctx.sub is not None:
        sd: str = ctx.sub.sub_table.class_name_lower
        lines.append(f"  {sd}: {{ deleteMany: jest.fn(), createMany: jest.fn() }},")
    lines.append("  $transaction: jest.fn((arg: any) => (Array.isArray(arg) ? Promise.all(arg) : arg(prisma))),")
    lines.append("};")
    return lines


def render_service_spec(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    d: str = ctx.class_name_lower
    pk: str = ctx.pk_field
    b: str = ctx.business_name

    lines: List[str] = file_header(ctx, "service spec")
    lines.append("import { Test } from '@nestjs/testing';")
    lines.append("import { PrismaService } from 'src/prisma/prisma.service';")
    lines.append(f"import {{ {c}Service }} from '../{b}.service';")
    lines.append(f"import {{ build{c} }} from './factory';")
    lines.append("")
    lines.append(f"describe('{c}Service', () => {{")
    lines.append(f"  let service: {c}Service;")
    lines.extend(indent(_prisma_mock(ctx)))
    lines.append("")
    lines.append("  beforeEach(async () => {")
    lines.append("    jest.clearAllMocks();")
    lines.append("    const moduleRef = await Test.createTestingModule({")
    lines.append(f"      providers: [{c}Service, {{ provide: PrismaService, useValue: prisma }}],")
    lines.append("    }).compile();")
    lines.append(f"    service = moduleRef.get({c}Service);")
    lines.append("  });")
    lines.append("")
    lines.append("  it('creates a row', async () => {")
    lines.append(f"    const row = build{c}();")
    lines.append(f"    prisma.{d}.create.mockResolvedValue(row);")
    lines.append("    const result = await service.create(row as any);")
    lines.append(f"    expect(prisma.{d}.create).toHaveBeenCalled();")
    lines.append("    expect(result.data).toEqual(row);")
    lines.append("  });")
    lines.append("")
    if ctx.tree is not None:
        lines.append("  it('returns rows as a tree', async () => {")
        lines.append(f"    prisma.{d}.findMany.mockResolvedValue([build{c}()]);")
        lines.append("    const result = await service.findAll({} as any);")
        lines.append("    expect(Array.isArray(result.data)).toBe(true);")
        lines.append("  });")
    else:
        lines.append("  it('lists a page of rows', async () => {")
        lines.append(f"    prisma.{d}.findMany.mockResolvedValue([build{c}()]);")
        lines.append(f"    prisma.{d}.count.mockResolvedValue(1);")
        lines.append("    const result = await service.findAll({ pageNum: 1, pageSize: 10 } as any);")
        lines.append("    expect(result.data.total).toBe(1);")
        lines.append("  });")
    lines.append("")
    lines.append("  it('finds one row by key', async () => {")
    lines.append(f"    prisma.{d}.findUnique.mockResolvedValue(build{c}());")
    lines.append(f"    await service.findOne({_pk_sample(ctx)});")
    lines.append(f"    expect(prisma.{d}.findUnique).toHaveBeenCalledWith(")
    lines.append(f"      expect.objectContaining({{ where: {{ {pk}: {_pk_sample(ctx)} }} }}),")
    lines.append("    );")
    lines.append("  });")
    lines.append("")
    lines.append("  it('removes rows', async () => {")
    lines.append(f"    prisma.{d}.deleteMany.mockResolvedValue({{ count: 1 }});")
    lines.append(f"    prisma.{d}.updateMany.mockResolvedValue({{ count: 1 }});")
    lines.append(f"    const result = await service.remove([{_pk_sample(ctx)}]);")
    lines.append("    expect(result.data).toBe(1);")
    lines.append("  });")
    lines.append("});")
    return finish(lines)


def render_controller_spec(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    b: str = ctx.business_name
    lines: List[str] = file_header(ctx, "controller spec")
    lines.append("import { Test } from '@nestjs/testing';")
    lines.append(f"import {{ {c}Controller }} from '../{b}.controller';")
    lines.append(f"import {{ {c}Service }} from '../{b}.service';")
    lines.append("")
    lines.append(f"describe('{c}Controller', () => {{")
    lines.append(f"  let controller: {c}Controller;")
    lines.append("  const service = {")
    for method in ("create", "findAll", "findOne", "update", "remove"):
        lines.append(f"    {method}: jest.fn().mockResolvedValue({{ code: 200 }}),")
    lines.append("  };")
    lines.append("")
    lines.append("  beforeEach(async () => {")
    lines.append("    const moduleRef = await Test.createTestingModule({")
    lines.append(f"      controllers: [{c}Controller],")
    lines.append(f"      providers: [{{ provide: {c}Service, useValue: service }}],")
    lines.append("    }).compile();")
    lines.append(f"    controller = moduleRef.get({c}Controller);")
    lines.append("  });")
    lines.append("")
    lines.append("  it('delegates list to the service', async () => {")
    lines.append("    await controller.findAll({} as any);")
    lines.append("    expect(service.findAll).toHaveBeenCalled();")
    lines.append("  });")
    lines.append("")
    lines.append("  it('splits ids on delete', async () => {")
    lines.append("    await controller.remove('1,2');")
    lines.append("    expect(service.remove).toHaveBeenCalledWith(")
    expected: str = "[1, 2]" if _pk_sample(ctx) == "1" else "['1', '2']"
    lines.append(f"      {expected},")
    lines.append("    );")
    lines.append("  });")
    lines.append("});")
    return finish(lines)


def render_e2e_spec(ctx: TemplateContext) -> str:
    c: str = ctx.class_name
    url: str = "/" + route_path(ctx)
    lines: List[str] = file_header(ctx, "e2e spec")
    lines.append("import { INestApplication } from '@nestjs/common';")
    lines.append("import { Test } from '@nestjs/testing';")
    lines.append("import request from 'supertest';")
    lines.append("import { AppModule } from 'src/app.module';")
    lines.append("")
    lines.append(f"describe('{c} (e2e)', () => {{")
    lines.append("  let app: INestApplication;")
    lines.append("")
    lines.append("  beforeAll(async () => {")
    lines.append("    const moduleRef = await Test.createTestingModule({ imports: [AppModule] }).compile();")
    lines.append("    app = moduleRef.createNestApplication();")
    lines.append("    await app.init();")
    lines.append("  });")
    lines.append("")
    lines.append("  afterAll(async () => {")
    lines.append("    await app.close();")
    lines.append("  });")
    lines.append("")
    lines.append(f"  it('GET {url}/list', () => {{")
    lines.append(f"    return request(app.getHttpServer()).get('{url}/list').expect(200);")
    lines.append("  });")
    lines.append("});")
    return finish(lines)


__all__: List[str] = [
    "render_factory",
    "render_service_spec",
    "render_controller_spec",
    "render_e2e_spec",
]
