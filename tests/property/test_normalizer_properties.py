"""
Property-based tests for field normalization.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pulsegh.application.sync import normalize_field, normalize_fields, to_raw_field
from pulsegh.core.domain import Field
from pulsegh.core.ports import RawField


pytestmark = pytest.mark.property

names = st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZ abcdefghij", min_size=1, max_size=12)
option_maps = st.dictionaries(names, st.text(alphabet="0123456789abcdef", min_size=4, max_size=8), max_size=10)


class TestNormalizerProperties:
    @given(option_maps)
    def test_single_select_options_reflect_remote(self, options):
        raw = RawField(
            id="F_status",
            name="Status",
            data_type="SINGLE_SELECT",
            options=[{"id": oid, "name": name} for name, oid in options.items()],
        )

        field = normalize_field(raw)

        assert dict(field.options) == options
        assert list(field.options) == list(options)

    @given(option_maps, option_maps)
    def test_with_options_replaces_whole_set(self, before, after):
        field = Field.single_select("F1", before).with_options(after)
        assert dict(field.options) == after

    @given(option_maps)
    def test_document_round_trip(self, options):
        field = Field.single_select("F1", options)
        assert Field.from_dict(field.to_dict()) == field

    @given(st.lists(names, min_size=0, max_size=15, unique=True))
    def test_one_entry_per_field_name(self, field_names):
        raws = [RawField(id=f"F{i}", name=n, data_type="TEXT") for i, n in enumerate(field_names)]

        fields = normalize_fields(raws)

        assert list(fields) == field_names
        assert all(to_raw_field(n, fields[n]).data_type == "TEXT" for n in field_names)
