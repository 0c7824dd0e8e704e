# File: crudgen/bodies/__init__.py
"""
crudgen.bodies - Literal template bodies
=========================================
One pure function per output file: ``render_x(ctx) -> str``. The
registry in ``crudgen.templates`` decides which of them run.

    backend   NestJS entity / DTO / controller / service / module
    frontend  Vue 3 + Naive UI API client, list view, drawer, modules
    menu      sys_menu registration SQL
    testing   Jest specs and factory for the generated backend
"""

from __future__ import annotations

from typing import List

from crudgen.bodies import backend, frontend, menu, testing

__all__: List[str] = ["backend", "frontend", "menu", "testing"]
