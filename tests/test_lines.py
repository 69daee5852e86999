"""Tests for specledger.diff.lines module."""

import pytest

from specledger.diff.lines import LineTag, compute_hunks


class TestComputeHunks:
    """Test compute_hunks function."""

    def test_identical_texts(self):
        assert compute_hunks("a\nb\nc", "a\nb\nc") == []

    def test_single_replacement(self):
        hunks = compute_hunks("a\nb\nc", "a\nB\nc")
        assert len(hunks) == 1
        hunk = hunks[0]
        assert hunk.header == "@@ -1,3 +1,3 @@"
        assert [(l.tag, l.text) for l in hunk.lines] == [
            (LineTag.CONTEXT, "a"),
            (LineTag.DELETION, "b"),
            (LineTag.ADDITION, "B"),
            (LineTag.CONTEXT, "c"),
        ]
        assert (hunk.additions, hunk.deletions) == (1, 1)

    def test_line_numbers(self):
        hunk = compute_hunks("a\nb\nc", "a\nx\nb\nc")[0]
        added = [l for l in hunk.lines if l.tag is LineTag.ADDITION][0]
        assert (added.old_line, added.new_line) == (None, 2)
        context = [l for l in hunk.lines if l.tag is LineTag.CONTEXT]
        assert [(l.old_line, l.new_line) for l in context] == [(1, 1), (2, 3), (3, 4)]

    def test_context_window(self):
        old = "\n".join(str(i) for i in range(1, 21))
        new = old.replace("10", "ten")
        hunk = compute_hunks(old, new, context=2)[0]
        assert hunk.header == "@@ -8,5 +8,5 @@"
        assert [l.text for l in hunk.lines if l.tag is LineTag.CONTEXT] == ["8", "9", "11", "12"]

    def test_distant_changes_make_separate_hunks(self):
        old = "\n".join(str(i) for i in range(1, 31))
        new = old.replace("2\n", "two\n", 1).replace("29", "twenty-nine")
        assert len(compute_hunks(old, new, context=3)) == 2

    def test_insert_into_empty(self):
        hunk = compute_hunks("", "a\nb")[0]
        assert hunk.header == "@@ -0,0 +1,2 @@"
        assert [l.prefix for l in hunk.lines] == ["+", "+"]

    def test_delete_everything(self):
        hunk = compute_hunks("a\nb", "")[0]
        assert hunk.header == "@@ -1,2 +0,0 @@"
        assert hunk.deletions == 2

    def test_negative_context_is_rejected(self):
        with pytest.raises(ValueError):
            compute_hunks("a\nb\nc\nd\ne\n", "a\nb\nX\nd\ne\n", -1)
