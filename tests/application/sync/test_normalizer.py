"""Tests for field schema normalization."""

import pytest

from pulsegh.application.sync import normalize_field, normalize_fields, to_raw_field
from pulsegh.core.domain import Field, FieldCategory
from pulsegh.core.exceptions import DuplicateFieldError
from pulsegh.core.ports import RawField


class TestNormalizeField:
    def test_plain_field(self):
        field = normalize_field(RawField(id="F1", name="Estimate", data_type="NUMBER"))

        assert field.category is FieldCategory.PLAIN
        assert field.to_dict() == {"id": "F1", "type": "number"}

    def test_single_select(self, sample_raw_fields):
        field = normalize_field(sample_raw_fields[1])

        assert field.category is FieldCategory.SINGLE_SELECT
        assert field.to_dict() == {
            "id": "F_status",
            "type": "single_select",
            "options": {"Todo": "O_todo", "In Progress": "O_doing", "Done": "O_done"},
        }

    def test_iteration(self, sample_raw_fields):
        field = normalize_field(sample_raw_fields[2])

        assert field.category is FieldCategory.ITERATION
        assert dict(field.iterations) == {"Sprint 1": "I_1", "Sprint 2": "I_2"}

    def test_single_select_without_options(self):
        field = normalize_field(RawField(id="F2", name="Empty", data_type="SINGLE_SELECT"))
        assert field.options == {}


class TestNormalizeFields:
    def test_keeps_remote_order(self, sample_raw_fields):
        fields = normalize_fields(sample_raw_fields, project=1)
        assert list(fields) == ["Title", "Status", "Sprint", "Points"]

    def test_duplicate_name(self, sample_raw_fields):
        duplicate = RawField(id="F_other", name="Status", data_type="TEXT")

        with pytest.raises(DuplicateFieldError) as exc_info:
            normalize_fields([*sample_raw_fields, duplicate], project=7)

        assert exc_info.value.field_name == "Status"
        assert "project 7" in str(exc_info.value)

    def test_empty(self):
        assert normalize_fields([]) == {}


class TestOptionReplacement:
    """Option sets are replaced whole, never merged."""

    def test_replacement_drops_unlisted_options(self, sample_raw_fields):
        status = normalize_field(sample_raw_fields[1])

        updated = status.with_options({"Blocked": ""})

        assert dict(updated.options) == {"Blocked": ""}
        assert "Todo" not in updated.options

    def test_read_modify_write_keeps_options(self, sample_raw_fields):
        status = normalize_field(sample_raw_fields[1])

        updated = status.with_option_added("Blocked")

        assert list(updated.options) == ["Todo", "In Progress", "Done", "Blocked"]

    def test_renormalizing_reflects_remote_exactly(self, sample_raw_fields):
        before = normalize_field(sample_raw_fields[1])
        after_overwrite = RawField(
            id="F_status",
            name="Status",
            data_type="SINGLE_SELECT",
            options=[{"id": "O_blocked", "name": "Blocked"}],
        )

        after = normalize_field(after_overwrite)

        assert "Todo" in before.options
        assert dict(after.options) == {"Blocked": "O_blocked"}

    def test_with_options_on_plain_field(self):
        with pytest.raises(ValueError):
            Field.plain("F1", "text").with_options({"a": "b"})


class TestToRawField:
    def test_inverse_for_select_and_iteration(self, sample_raw_fields):
        for raw in sample_raw_fields[1:3]:
            assert to_raw_field(raw.name, normalize_field(raw)) == raw

    def test_plain_type_uppercased(self):
        raw = to_raw_field("Due", Field.plain("F_due", "date"))
        assert raw.data_type == "DATE"
