"""
tests/test_models.py
Unit tests for crudgen.models and crudgen.errors.

Tests cover:
- GenOptions parsing (flat, grouped, JSON) and enabled flags
- GeneratedFile derived fields
- GenerateError construction and formatting
- GenerateResult success / summary
"""

from __future__ import annotations

import pytest

from crudgen.errors import NotFoundError, TemplateRenderError, ValidationError
from crudgen.models import (
    GeneratedFile,
    GenerateError,
    GenerateResult,
    GenOptions,
    PipelineStage,
    TableOutcome,
)


class TestGenOptions:
    def test_empty_inputs(self) -> None:
        for raw in (None, "", "   ", {}):
            assert GenOptions.from_raw(raw) == GenOptions()

    def test_flat_and_grouped_keys_merge(self) -> None:
        options = GenOptions.from_raw(
            {"enableExport": True, "importExport": {"exportFileName": "posts"}, "tenant_column": "org_id"}
        )
        assert options.import_export.enable_export
        assert options.import_export.export_file_name == "posts"
        assert options.tenant.tenant_column == "org_id"

    def test_enabled_flags(self) -> None:
        options = GenOptions.from_raw('{"enableOperlog": true, "enableBatchEdit": true, "enableImport": false}')
        assert options.enabled_flags() == frozenset({"enable_operlog", "enable_batch_edit"})

    def test_wrong_value_type(self) -> None:
        with pytest.raises(ValidationError, match="Invalid generation options"):
            GenOptions.from_raw({"tableHeight": "tall"})

    def test_json_array_rejected(self) -> None:
        with pytest.raises(ValidationError, match="JSON object"):
            GenOptions.from_raw("[1, 2]")

    def test_sort_order_literal(self) -> None:
        with pytest.raises(ValidationError):
            GenOptions.from_raw({"defaultSortOrder": "sideways"})


class TestGeneratedFile:
    def test_derived_fields(self) -> None:
        f = GeneratedFile(
            file_name="a.ts", file_path="x/a.ts", content="é\nb\n", file_type="backend"
        )
        assert f.line_count == 2
        assert f.size_bytes == 5
        assert "x/a.ts" in repr(f)

    def test_unknown_file_type(self) -> None:
        with pytest.raises(Exception):
            GeneratedFile(file_name="a", file_path="a", content="", file_type="docs")


class TestGenerateError:
    def test_from_crudgen_error(self) -> None:
        exc = TemplateRenderError("boom", table_name="sys_post", template_key="k", stage="rendering")
        err = GenerateError.from_exception(exc, table_id=1)
        assert err.kind == "TemplateRenderError"
        assert (err.table_id, err.table_name, err.template_key, err.stage) == (1, "sys_post", "k", "rendering")
        assert str(err) == "[TemplateRenderError] (table sys_post, template k, stage rendering) boom"

    def test_explicit_context_wins(self) -> None:
        exc = NotFoundError("gone", table_id=5, stage="fetching")
        err = GenerateError.from_exception(exc, stage="normalizing")
        assert err.table_id == 5
        assert err.stage == "normalizing"

    def test_plain_exception(self) -> None:
        err = GenerateError.from_exception(RuntimeError(), table_id=3)
        assert err.kind == "RuntimeError"
        assert err.message == "RuntimeError"
        assert str(err) == "[RuntimeError] (table #3) RuntimeError"

    def test_error_to_dict(self) -> None:
        exc = ValidationError("bad", table_name="t")
        assert exc.to_dict()["kind"] == "ValidationError"
        assert repr(exc) == "<ValidationError 'bad'>"


class TestGenerateResult:
    def test_success_follows_errors(self) -> None:
        result = GenerateResult()
        assert result.success
        result.errors.append(GenerateError(kind="X", message="y"))
        assert not result.success

    def test_summary(self) -> None:
        result = GenerateResult(
            gen_type="PATH",
            gen_path="/admin",
            tables=[
                TableOutcome(table_id=1, table_name="sys_post", stage=PipelineStage.DONE, file_count=9),
                TableOutcome(
                    table_id=2,
                    stage=PipelineStage.FAILED,
                    failed_stage=PipelineStage.FETCHING,
                ),
            ],
            errors=[GenerateError(kind="NotFoundError", message="Table #2 does not exist", table_id=2)],
            warnings=["sys_post: something odd"],
        )
        text = result.summary()
        assert "FAILED" in text
        assert "/admin" in text
        assert "sys_post" in text and "9 files" in text
        assert "failed at fetching" in text
        assert "Table #2 does not exist" in text
        assert "something odd" in text

    def test_serializes_by_alias(self) -> None:
        dumped = GenerateResult(gen_type="ZIP").model_dump(by_alias=True)
        assert dumped["genType"] == "ZIP"
        assert dumped["success"] is True
