"""
Line classifier for spec documents.

Maps one raw line plus the current ClassifierState to a LineKind. The walker
iter_lines() is shared by the parser and by checkbox persistence so that both
derive the same (section, ordinal) for every checklist line.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, Optional

HEADING_RE = re.compile(r'^(#{1,6})\s+(.+?)\s*$')
METADATA_RE = re.compile(r'^\s*[-*]\s*\*\*([^*]+)\*\*:\s*(.*?)\s*$')
CHECKBOX_RE = re.compile(r'^(\s*)([-*])(\s*)\[([ xX])\](?=\s|$)(.*)$')
FENCE_OPEN_RE = re.compile(r'^\s{0,3}```\s*([\w+#.-]*)\s*$')
FENCE_CLOSE_RE = re.compile(r'^\s{0,3}```\s*$')

METADATA_SECTION = "metadata"
DEFAULT_METADATA_SCAN_LINES = 20


class LineKind(Enum):
    HEADING = "heading"
    METADATA_FIELD = "metadata_field"
    CHECKLIST_ITEM = "checklist_item"
    CODE_FENCE = "code_fence"
    CODE_CONTENT = "code_content"
    TEXT = "text"


@dataclass(frozen=True)
class ClassifierState:
    """Parse state carried between lines."""
    line_number: int = 1
    section: str = ""
    seen_section: bool = False
    in_code_block: bool = False
    metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES

    @property
    def in_metadata_zone(self) -> bool:
        if self.seen_section:
            return self.section.lower() == METADATA_SECTION
        return self.line_number <= self.metadata_scan_lines

    def advance(self, classified: "ClassifiedLine") -> "ClassifierState":
        """Return the state for the line after `classified`."""
        state = replace(self, line_number=self.line_number + 1)
        if classified.kind is LineKind.CODE_FENCE:
            return replace(state, in_code_block=not self.in_code_block)
        if classified.kind is LineKind.HEADING and classified.heading_level == 2:
            return replace(state, section=classified.heading_text, seen_section=True)
        return state


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    text: str
    match: Optional[re.Match] = None

    @property
    def heading_level(self) -> int:
        return len(self.match.group(1)) if self.kind is LineKind.HEADING else 0

    @property
    def heading_text(self) -> str:
        return self.match.group(2) if self.kind is LineKind.HEADING else ""

    @property
    def checked(self) -> bool:
        return self.kind is LineKind.CHECKLIST_ITEM and self.match.group(4) != " "

    @property
    def item_text(self) -> str:
        return self.match.group(5).strip() if self.kind is LineKind.CHECKLIST_ITEM else ""

    @property
    def fence_language(self) -> Optional[str]:
        if self.kind is LineKind.CODE_FENCE and self.match.lastindex:
            return self.match.group(1) or None
        return None


def classify_line(line: str, state: ClassifierState) -> ClassifiedLine:
    """Classify a single line (without its line terminator)."""
    if state.in_code_block:
        close = FENCE_CLOSE_RE.match(line)
        if close:
            return ClassifiedLine(LineKind.CODE_FENCE, line, close)
        return ClassifiedLine(LineKind.CODE_CONTENT, line)

    fence = FENCE_OPEN_RE.match(line)
    if fence:
        return ClassifiedLine(LineKind.CODE_FENCE, line, fence)

    heading = HEADING_RE.match(line)
    if heading:
        return ClassifiedLine(LineKind.HEADING, line, heading)

    if state.in_metadata_zone:
        field_match = METADATA_RE.match(line)
        if field_match:
            return ClassifiedLine(LineKind.METADATA_FIELD, line, field_match)

    checkbox = CHECKBOX_RE.match(line)
    if checkbox:
        return ClassifiedLine(LineKind.CHECKLIST_ITEM, line, checkbox)

    return ClassifiedLine(LineKind.TEXT, line)


@dataclass(frozen=True)
class WalkedLine:
    """A classified line with its position in the document."""
    number: int
    raw: str  # including line terminator
    classified: ClassifiedLine
    section: str
    in_preamble: bool
    ordinal: int = 0  # checklist ordinal within section, 0 for other kinds

    @property
    def kind(self) -> LineKind:
        return self.classified.kind


def split_lines(content: str) -> list[str]:
    """Split on LF only, keeping terminators, so "".join() restores the input."""
    parts = content.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def strip_eol(line: str) -> str:
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def iter_lines(
    lines: Iterable[str],
    metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES,
) -> Iterator[WalkedLine]:
    """Classify lines in document order, numbering checklist items per section.

    Lines may carry their terminators (see split_lines()); the
    terminator is kept on WalkedLine.raw and stripped before classification.
    """
    state = ClassifierState(metadata_scan_lines=metadata_scan_lines)
    ordinals: dict[str, int] = {}

    for raw in lines:
        classified = classify_line(strip_eol(raw), state)
        ordinal = 0
        if classified.kind is LineKind.CHECKLIST_ITEM:
            ordinal = ordinals.get(state.section, 0) + 1
            ordinals[state.section] = ordinal
        yield WalkedLine(
            number=state.line_number,
            raw=raw,
            classified=classified,
            section=state.section,
            in_preamble=not state.seen_section,
            ordinal=ordinal,
        )
        state = state.advance(classified)


def iter_checklist_lines(
    lines: Iterable[str],
    metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES,
) -> Iterator[WalkedLine]:
    """Only the checklist lines of iter_lines()."""
    for walked in iter_lines(lines, metadata_scan_lines):
        if walked.kind is LineKind.CHECKLIST_ITEM:
            yield walked
