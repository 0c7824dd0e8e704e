# File: crudgen/__init__.py
"""
crudgen - Table-driven CRUD Code Generator
===========================================

Turns normalized database table metadata into a complete set of NestJS
backend files, Vue 3 + Naive UI frontend files and a menu SQL script.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ CodeGenerator  │────▶│ catalog accessor │
    │   (cli.py)   │     │ (generator.py) │     └──────────────────┘
    └──────────────┘     └───────┬────────┘
                                 │ per table
          ┌─────────────┬────────┴─────┬──────────────┬──────────────┐
          ▼             ▼              ▼              ▼              ▼
     ┌──────────┐ ┌────────────┐ ┌───────────┐ ┌────────────┐ ┌───────────┐
     │normalizer│ │ classifier │ │  context  │ │ templates  │ │ exporters │
     │ typemap  │ │            │ │validators │ │  bodies/*  │ │ (ZIP/PATH)│
     └──────────┘ └────────────┘ └───────────┘ └────────────┘ └───────────┘

Usage::

    from crudgen import CodeGenerator, GenerateRequest, InMemoryCatalog, build_zip
    catalog = InMemoryCatalog.from_file("tables.yaml")
    result = CodeGenerator(catalog, packager=build_zip).generate_sync(
        GenerateRequest(table_ids=(1,))
    )
    print(result.summary())
"""

from __future__ import annotations

from typing import List

__version__: str = "1.0.0"

from crudgen.catalog import CatalogAccessor, InMemoryCatalog
from crudgen.classifier import classify_columns
from crudgen.config import GeneratorConfig, load_config
from crudgen.context import build_context, derive_naming
from crudgen.errors import (
    CrudgenError,
    NotFoundError,
    PackagingError,
    TemplateRenderError,
    ValidationError,
)
from crudgen.exporters import PathExporter, build_zip
from crudgen.generator import CodeGenerator
from crudgen.models import (
    ColumnMetadata,
    ColumnOptions,
    GeneratedFile,
    GenerateError,
    GenerateRequest,
    GenerateResult,
    GenOptions,
    GenType,
    TableMetadata,
    TemplateContext,
    TplCategory,
)
from crudgen.normalizer import diff_columns, normalize_table
from crudgen.templates import REGISTRY, applicable_templates, registry_keys, render_context
from crudgen.typemap import map_type

__all__: List[str] = [
    "__version__",
    # Orchestration
    "CodeGenerator",
    "GenerateRequest",
    "GenerateResult",
    "GenerateError",
    "GenType",
    # Pipeline stages
    "map_type",
    "normalize_table",
    "diff_columns",
    "classify_columns",
    "derive_naming",
    "build_context",
    "REGISTRY",
    "registry_keys",
    "applicable_templates",
    "render_context",
    # Models
    "ColumnMetadata",
    "ColumnOptions",
    "GeneratedFile",
    "GenOptions",
    "TableMetadata",
    "TemplateContext",
    "TplCategory",
    # Configuration
    "GeneratorConfig",
    "load_config",
    # Collaborators
    "CatalogAccessor",
    "InMemoryCatalog",
    "build_zip",
    "PathExporter",
    # Errors
    "CrudgenError",
    "NotFoundError",
    "ValidationError",
    "TemplateRenderError",
    "PackagingError",
]
