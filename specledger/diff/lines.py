"""
Line-level diff hunks.

Alignment comes from difflib.SequenceMatcher; grouped opcodes give hunks with
`context` unchanged lines around each changed run.
"""

from dataclasses import dataclass
from difflib import SequenceMatcher
from enum import Enum
from typing import Optional

DEFAULT_CONTEXT_LINES = 3


class LineTag(Enum):
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"


@dataclass(frozen=True)
class DiffLine:
    tag: LineTag
    text: str
    old_line: Optional[int]  # 1-based, None for additions
    new_line: Optional[int]  # 1-based, None for deletions

    @property
    def prefix(self) -> str:
        return {LineTag.CONTEXT: " ", LineTag.ADDITION: "+", LineTag.DELETION: "-"}[self.tag]


@dataclass(frozen=True)
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[DiffLine, ...]

    @property
    def header(self) -> str:
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"

    @property
    def additions(self) -> int:
        return sum(1 for line in self.lines if line.tag is LineTag.ADDITION)

    @property
    def deletions(self) -> int:
        return sum(1 for line in self.lines if line.tag is LineTag.DELETION)


def _range_start(start: int, count: int) -> int:
    # unified diff convention: an empty range names the line before it
    return start + 1 if count else start


def compute_hunks(old_text: str, new_text: str, context: int = DEFAULT_CONTEXT_LINES) -> list[Hunk]:
    """Diff two texts line by line. Identical texts give no hunks.

    Raises ValueError if `context` is negative.
    """
    if context < 0:
        raise ValueError(f"context must be >= 0, got {context}")
    old_lines = old_text.splitlines()
    new_lines = new_text.splitlines()
    matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    hunks = []
    for group in matcher.get_grouped_opcodes(context):
        lines = []
        for tag, i1, i2, j1, j2 in group:
            if tag == "equal":
                for offset in range(i2 - i1):
                    lines.append(DiffLine(LineTag.CONTEXT, old_lines[i1 + offset], i1 + offset + 1, j1 + offset + 1))
                continue
            if tag in ("replace", "delete"):
                for i in range(i1, i2):
                    lines.append(DiffLine(LineTag.DELETION, old_lines[i], i + 1, None))
            if tag in ("replace", "insert"):
                for j in range(j1, j2):
                    lines.append(DiffLine(LineTag.ADDITION, new_lines[j], None, j + 1))

        first, last = group[0], group[-1]
        old_count = last[2] - first[1]
        new_count = last[4] - first[3]
        hunks.append(Hunk(
            old_start=_range_start(first[1], old_count),
            old_count=old_count,
            new_start=_range_start(first[3], new_count),
            new_count=new_count,
            lines=tuple(lines),
        ))
    return hunks
