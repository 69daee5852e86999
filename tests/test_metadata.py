"""Tests for specledger.lib.metadata and the metadata value types."""

import pytest

from specledger.lib.metadata import MetadataDraft, canonical_field, extract_spec_id_from_title
from specledger.lib.types import SpecStatus, StableId, WarningSeverity


class TestCanonicalField:
    """Test canonical_field synonym table."""

    @pytest.mark.parametrize("name,expected", [
        ("Spec ID", "spec_id"),
        ("spec-id", "spec_id"),
        ("SPECID", "spec_id"),
        ("Depends On", "dependencies"),
        ("deps", "dependencies"),
        ("Context  Estimate", "estimated_context"),
        ("Phase", "phase"),
    ])
    def test_synonyms(self, name, expected):
        assert canonical_field(name) == expected

    def test_unknown_field(self):
        assert canonical_field("Owner") is None


class TestExtractSpecIdFromTitle:
    """Test extract_spec_id_from_title function."""

    def test_extracts_id(self):
        assert extract_spec_id_from_title("Spec 116: Spec Directory") == 116

    def test_lowercase_and_no_space(self):
        assert extract_spec_id_from_title("spec42 draft") == 42

    def test_no_id(self):
        assert extract_spec_id_from_title("Directory Layout") is None


class TestMetadataDraft:
    """Test MetadataDraft apply/freeze."""

    def test_phase_with_name(self):
        draft = MetadataDraft()
        warnings = []
        draft.apply("Phase", "6 - Tooling", 3, warnings)
        assert (draft.phase, draft.phase_name) == (6, "Tooling")
        assert warnings == []

    def test_phase_without_name(self):
        draft = MetadataDraft()
        draft.apply("Phase", "2", 3, [])
        assert (draft.phase, draft.phase_name) == (2, None)

    def test_malformed_phase_warns(self):
        draft = MetadataDraft()
        warnings = []
        draft.apply("Phase", "soon", 4, warnings)
        assert draft.phase == 0
        assert warnings[0].line == 4
        assert warnings[0].severity is WarningSeverity.WARNING

    def test_spec_id_with_hash(self):
        draft = MetadataDraft()
        draft.apply("Spec ID", "#007", 2, [])
        assert draft.spec_id == 7

    def test_malformed_spec_id_warns(self):
        draft = MetadataDraft()
        warnings = []
        draft.apply("ID", "abc", 2, warnings)
        assert draft.spec_id is None
        assert "Malformed spec id" in warnings[0].message

    def test_unknown_status_falls_back(self):
        draft = MetadataDraft()
        warnings = []
        draft.apply("Status", "Someday", 5, warnings)
        assert draft.status is SpecStatus.PLANNED
        assert "Unknown status" in warnings[0].message

    def test_dependencies_split(self):
        draft = MetadataDraft()
        draft.apply("Dependencies", "101, 102,,103 ", 5, [])
        assert draft.dependencies == ["101", "102", "103"]

    def test_custom_fields_kept_verbatim(self):
        draft = MetadataDraft()
        draft.apply("Owner", "alice", 5, [])
        metadata = draft.freeze(1, [])
        assert metadata.custom == {"Owner": "alice"}

    def test_freeze_uses_title_id(self):
        metadata = MetadataDraft(status=SpecStatus.DRAFT).freeze(12, [])
        assert metadata.spec_id == 12

    def test_freeze_defaults(self):
        warnings = []
        metadata = MetadataDraft().freeze(None, warnings)
        assert metadata.spec_id == 0
        assert metadata.status is SpecStatus.PLANNED
        assert [w.severity for w in warnings] == [WarningSeverity.WARNING, WarningSeverity.INFO]


class TestSpecStatus:
    """Test SpecStatus.from_string and properties."""

    @pytest.mark.parametrize("value,expected", [
        ("In Progress", SpecStatus.IN_PROGRESS),
        ("wip", SpecStatus.IN_PROGRESS),
        ("  DONE ", SpecStatus.COMPLETE),
        ("Deprecated", SpecStatus.DEPRECATED),
    ])
    def test_from_string(self, value, expected):
        assert SpecStatus.from_string(value) is expected

    def test_unknown(self):
        assert SpecStatus.from_string("eventually") is None


class TestStableId:
    """Test StableId formatting and parsing."""

    def test_str(self):
        assert str(StableId(116, "Acceptance Criteria", 2)) == "116:Acceptance Criteria:2"

    def test_parse(self):
        assert StableId.parse("116:Acceptance Criteria:2") == StableId(116, "Acceptance Criteria", 2)

    def test_parse_section_with_colon(self):
        assert StableId.parse("1:Step 1: Setup:3") == StableId(1, "Step 1: Setup", 3)

    @pytest.mark.parametrize("value", ["", "116", "Tasks:1", "x:Tasks:1", "1:Tasks:one"])
    def test_parse_invalid(self, value):
        assert StableId.parse(value) is None

    def test_ordering(self):
        ids = [StableId(2, "A", 1), StableId(1, "B", 2), StableId(1, "B", 1)]
        assert sorted(ids) == [StableId(1, "B", 1), StableId(1, "B", 2), StableId(2, "A", 1)]
