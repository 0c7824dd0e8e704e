"""
tests/test_normalizer.py
Unit tests for crudgen.normalizer.

Tests cover:
- Boolean flag coercion and default-value cleanup
- Name heuristics for controls and query operators
- Column normalization (types, nullability, auto-increment, ordering)
- Table-level failures (no columns, duplicates, bad category/options)
- Column option overrides
- Structure diff between stored and fresh columns
"""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, Optional

import pytest

from crudgen.errors import NotFoundError, ValidationError
from crudgen.models import ColumnMetadata, NormalizedTable
from crudgen.normalizer import (
    apply_name_heuristics,
    clean_default,
    diff_columns,
    normalize_table,
    parse_flag,
)


def _by_name(normalized: NormalizedTable, name: str) -> ColumnMetadata:
    return next(c for c in normalized.columns if c.column_name == name)


# ===========================================================================
# Scalar coercion
# ===========================================================================


class TestParseFlag:
    @pytest.mark.parametrize("value", [True, 1, "1", "YES", "y", "true", "T", " on "])
    def test_true_spellings(self, value: Any) -> None:
        assert parse_flag(value) is True

    @pytest.mark.parametrize("value", [False, 0, "0", "NO", "n", "false", ""])
    def test_false_spellings(self, value: Any) -> None:
        assert parse_flag(value) is False

    def test_none_stays_none(self) -> None:
        assert parse_flag(None) is None

    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError, match="Unrecognized"):
            parse_flag("maybe")


class TestCleanDefault:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("'0'::bpchar", "0"),
            ("'abc'::character varying", "abc"),
            ("(0)::numeric", "0"),
            ("'it''s'::text", "it's"),
            ("42", "42"),
            (7, "7"),
            ("CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP"),
        ],
    )
    def test_cleans_literals(self, raw: Any, expected: str) -> None:
        assert clean_default(raw) == expected

    @pytest.mark.parametrize(
        "raw", [None, "''::text", "nextval('sys_post_post_id_seq'::regclass)", "   "]
    )
    def test_empty_and_sequence_defaults_are_none(self, raw: Any) -> None:
        assert clean_default(raw) is None


# ===========================================================================
# Heuristics
# ===========================================================================


class TestNameHeuristics:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("status", ("radio", "EQ")),
            ("user_type", ("select", "EQ")),
            ("sex", ("select", "EQ")),
            ("create_time", ("datetime", "BETWEEN")),
            ("begin_date", ("datetime", "BETWEEN")),
            ("birthDate", ("datetime", "BETWEEN")),
            ("avatar", ("imageUpload", "EQ")),
            ("attachment", ("fileUpload", "EQ")),
            ("content", ("editor", "EQ")),
            ("post_code", ("input", "EQ")),
        ],
    )
    def test_control_chain(self, name: str, expected: tuple) -> None:
        assert apply_name_heuristics(name, "input", "EQ") == expected

    def test_name_columns_use_like(self) -> None:
        assert apply_name_heuristics("post_name", "input", "EQ") == ("input", "LIKE")

    def test_like_rule_is_independent_of_control_chain(self) -> None:
        # "file_name" hits both the LIKE rule and the file-upload control
        assert apply_name_heuristics("file_name", "input", "EQ") == ("fileUpload", "LIKE")

    def test_first_matching_control_wins(self) -> None:
        html, _ = apply_name_heuristics("status_type", "input", "EQ")
        assert html == "radio"


# ===========================================================================
# normalize_table
# ===========================================================================


class TestNormalizeTable:
    def test_post_table(self, post_bundle: Dict[str, Any]) -> None:
        normalized = normalize_table(post_bundle)
        assert normalized.table.table_name == "sys_post"
        assert normalized.table.table_comment == "Post"
        assert [c.column_name for c in normalized.columns][:5] == [
            "post_id",
            "post_code",
            "post_name",
            "post_sort",
            "status",
        ]
        assert normalized.warnings == ()

    def test_column_facts(self, post_bundle: Dict[str, Any]) -> None:
        normalized = normalize_table(post_bundle)
        pk = _by_name(normalized, "post_id")
        assert pk.is_primary_key
        assert pk.is_auto_increment
        assert pk.language_type == "number"
        assert not pk.is_nullable

        code = _by_name(normalized, "post_code")
        assert code.field_name == "postCode"
        assert code.html_type == "input"
        assert code.query_type == "EQ"

        name = _by_name(normalized, "post_name")
        assert name.query_type == "LIKE"

        status = _by_name(normalized, "status")
        assert status.html_type == "radio"
        assert status.default_value == "0"
        assert status.is_nullable

        created = _by_name(normalized, "create_time")
        assert created.language_type == "Date"
        assert created.query_type == "BETWEEN"

    def test_nextval_marks_auto_increment(self, dept_bundle: Dict[str, Any]) -> None:
        dept_id = _by_name(normalize_table(dept_bundle), "dept_id")
        assert dept_id.is_auto_increment
        assert dept_id.default_value is None

    def test_long_varchar_becomes_textarea(
        self, post_bundle: Dict[str, Any], make_column
    ) -> None:
        post_bundle["columns"].append(make_column("remark", maxLength=500))
        post_bundle["columns"].append(make_column("short_note", maxLength=499))
        normalized = normalize_table(post_bundle)
        assert _by_name(normalized, "remark").html_type == "textarea"
        assert _by_name(normalized, "short_note").html_type == "input"

    def test_required_flag_fallback(self, post_bundle: Dict[str, Any], make_column) -> None:
        post_bundle["columns"].append(make_column("leader", isRequired="1"))
        assert not _by_name(normalize_table(post_bundle), "leader").is_nullable

    def test_columns_sorted_by_sort_then_position(
        self, post_bundle: Dict[str, Any], make_column
    ) -> None:
        post_bundle["columns"] = [
            make_column("c", sort=2),
            make_column("a", sort=1),
            make_column("b", sort=2),
        ]
        normalized = normalize_table(post_bundle)
        assert [c.column_name for c in normalized.columns] == ["a", "c", "b"]

    def test_implicit_sort_is_position(self, post_bundle: Dict[str, Any]) -> None:
        normalized = normalize_table(post_bundle)
        assert [c.sort for c in normalized.columns] == list(range(1, len(normalized.columns) + 1))

    def test_no_columns_is_not_found(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["columns"] = []
        with pytest.raises(NotFoundError) as exc_info:
            normalize_table(post_bundle)
        assert exc_info.value.table_name == "sys_post"

    def test_duplicate_column_rejected(self, post_bundle: Dict[str, Any], make_column) -> None:
        post_bundle["columns"].append(make_column("post_code"))
        with pytest.raises(ValidationError, match="Duplicate column 'post_code'"):
            normalize_table(post_bundle)

    def test_composite_key_demoted_with_warning(
        self, post_bundle: Dict[str, Any]
    ) -> None:
        post_bundle["columns"][1]["isPk"] = "1"
        normalized = normalize_table(post_bundle)
        pks = [c.column_name for c in normalized.columns if c.is_primary_key]
        assert pks == ["post_id"]
        assert any("composite primary key" in w for w in normalized.warnings)

    def test_bad_flag_becomes_validation_error(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["columns"][0]["isPk"] = "perhaps"
        with pytest.raises(ValidationError):
            normalize_table(post_bundle)

    def test_malformed_descriptor(self) -> None:
        with pytest.raises(ValidationError, match="Malformed"):
            normalize_table({"table": {"tableName": ""}, "columns": []}, table_id=9)


class TestNormalizeConfig:
    def test_defaults(self, post_bundle: Dict[str, Any]) -> None:
        cfg = normalize_table(post_bundle).config
        assert cfg.table_id == 1
        assert cfg.tpl_category == "crud"
        assert cfg.options.enabled_flags() == frozenset()
        assert cfg.sub_table_name is None

    def test_category_is_case_insensitive(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["tplCategory"] = " CRUD "
        assert normalize_table(post_bundle).config.tpl_category == "crud"

    def test_unknown_category(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["tplCategory"] = "kanban"
        with pytest.raises(ValidationError, match="Unknown template category"):
            normalize_table(post_bundle)

    def test_options_from_json_string(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["options"] = json.dumps(
            {"enableExport": True, "enableUnitTest": True, "treeCode": "post_id"}
        )
        options = normalize_table(post_bundle).config.options
        assert options.enabled_flags() == frozenset({"enable_export", "enable_unit_test"})
        assert options.tree.tree_code == "post_id"

    def test_grouped_options(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["options"] = {"frontend": {"enableInlineEdit": True}}
        options = normalize_table(post_bundle).config.options
        assert options.frontend.enable_inline_edit

    def test_malformed_options_json(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["options"] = "{not json"
        with pytest.raises(ValidationError) as exc_info:
            normalize_table(post_bundle)
        assert exc_info.value.table_name == "sys_post"
        assert exc_info.value.table_id == 1

    def test_unknown_option_key(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["options"] = {"enableTeleport": True}
        with pytest.raises(ValidationError, match="enableTeleport"):
            normalize_table(post_bundle)

    def test_column_options_override_controls(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["columnOptions"] = {
            "postCode": {"htmlType": "select", "queryType": "LIKE", "dictType": "post_kind"},
        }
        code = _by_name(normalize_table(post_bundle), "post_code")
        assert code.html_type == "select"
        assert code.query_type == "LIKE"
        assert code.dict_type == "post_kind"

    def test_column_options_for_unknown_column_warn(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["columnOptions"] = {"ghost": {"isList": False}}
        normalized = normalize_table(post_bundle)
        assert "ghost" not in normalized.config.column_options
        assert any("ghost" in w for w in normalized.warnings)

    def test_invalid_column_options(self, post_bundle: Dict[str, Any]) -> None:
        post_bundle["table"]["columnOptions"] = {"post_code": {"formColSpan": 99}}
        with pytest.raises(ValidationError, match="post_code"):
            normalize_table(post_bundle)


# ===========================================================================
# diff_columns
# ===========================================================================


class TestDiffColumns:
    @staticmethod
    def _fresh(bundle: Dict[str, Any], mutate: Optional[Any] = None) -> NormalizedTable:
        data = copy.deepcopy(bundle)
        if mutate is not None:
            mutate(data)
        return normalize_table(data)

    def test_identical_is_empty(self, post_bundle: Dict[str, Any]) -> None:
        stored = normalize_table(post_bundle).columns
        assert diff_columns(stored, self._fresh(post_bundle).columns).is_empty

    def test_added_and_removed(self, post_bundle: Dict[str, Any], make_column) -> None:
        stored = normalize_table(post_bundle).columns

        def mutate(data: Dict[str, Any]) -> None:
            data["columns"] = [c for c in data["columns"] if c["columnName"] != "post_sort"]
            data["columns"].append(make_column("leader"))

        diff = diff_columns(stored, self._fresh(post_bundle, mutate).columns)
        assert [c.column_name for c in diff.added] == ["leader"]
        assert [c.column_name for c in diff.removed] == ["post_sort"]
        assert diff.changed == ()

    def test_changed_keeps_customizations(self, post_bundle: Dict[str, Any]) -> None:
        stored = tuple(
            c.model_copy(update={"column_comment": "Custom label", "html_type": "select"})
            if c.column_name == "post_code"
            else c
            for c in normalize_table(post_bundle).columns
        )

        def mutate(data: Dict[str, Any]) -> None:
            data["columns"][1]["columnType"] = "text"

        diff = diff_columns(stored, self._fresh(post_bundle, mutate).columns)
        assert [c.column_name for c in diff.changed] == ["post_code"]
        changed = diff.changed[0]
        assert changed.column_type == "text"
        assert changed.column_comment == "Custom label"
        assert changed.html_type == "select"

    def test_comment_only_change_is_not_reported(self, post_bundle: Dict[str, Any]) -> None:
        stored = normalize_table(post_bundle).columns

        def mutate(data: Dict[str, Any]) -> None:
            data["columns"][1]["columnComment"] = "Renamed"

        assert diff_columns(stored, self._fresh(post_bundle, mutate).columns).is_empty
