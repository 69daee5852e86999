"""Tests for specledger.lib.references module."""

from specledger.lib.references import extract_references, referenced_spec_ids
from specledger.lib.types import ReferenceFormat


class TestExtractReferences:
    """Test extract_references function."""

    def test_colon_format(self):
        refs = extract_references("see spec:116 for details")
        assert len(refs) == 1
        assert refs[0].target_spec_id == 116
        assert refs[0].format is ReferenceFormat.COLON
        assert refs[0].matched_text == "spec:116"

    def test_filename_format(self):
        refs = extract_references("defined in 042-layout-rules.md")
        assert [(r.target_spec_id, r.format) for r in refs] == [(42, ReferenceFormat.FILENAME)]

    def test_hash_format(self):
        refs = extract_references("follow-up of #120.")
        assert [(r.target_spec_id, r.format) for r in refs] == [(120, ReferenceFormat.HASH)]

    def test_hash_needs_three_digits(self):
        assert extract_references("issue #12 and #1234") == []

    def test_html_entity_is_not_a_reference(self):
        assert extract_references("&#123;") == []

    def test_markdown_link_also_matches_filename(self):
        refs = extract_references("[Spec 7](007-intro.md)")
        assert [r.format for r in refs] == [ReferenceFormat.FILENAME, ReferenceFormat.MARKDOWN_LINK]
        assert {r.target_spec_id for r in refs} == {7}

    def test_source_lines(self):
        refs = extract_references("# Title\n\nspec:001\n```\nspec:002\n```\n")
        assert [(r.target_spec_id, r.source_line) for r in refs] == [(1, 3), (2, 5)]

    def test_no_references(self):
        assert extract_references("plain text\nnothing here\n") == []


class TestReferencedSpecIds:
    """Test referenced_spec_ids function."""

    def test_distinct_in_first_seen_order(self):
        refs = extract_references("spec:003 then #001 then spec:003")
        assert referenced_spec_ids(refs) == [3, 1]
