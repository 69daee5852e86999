"""
Value objects for parsed spec documents.

Everything here is produced by a single parse call and never mutated afterwards.
The checkbox tracker keeps its own mutable view keyed by StableId.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Optional


def to_plain(value: Any) -> Any:
    """Convert dataclasses, enums and tuples into JSON-compatible data."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


class SpecStatus(Enum):
    """Lifecycle status of a spec."""

    PLANNED = "Planned"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    COMPLETE = "Complete"
    BLOCKED = "Blocked"
    DRAFT = "Draft"
    DEPRECATED = "Deprecated"

    @classmethod
    def from_string(cls, value: str) -> Optional["SpecStatus"]:
        """Map a free-form status string to a SpecStatus, or None if unknown."""
        return _STATUS_SYNONYMS.get(value.strip().lower())

    @property
    def is_active(self) -> bool:
        return self in (SpecStatus.PLANNED, SpecStatus.IN_PROGRESS, SpecStatus.REVIEW)

    @property
    def is_terminal(self) -> bool:
        return self in (SpecStatus.COMPLETE, SpecStatus.DEPRECATED)


_STATUS_SYNONYMS = {
    "planned": SpecStatus.PLANNED,
    "in progress": SpecStatus.IN_PROGRESS,
    "inprogress": SpecStatus.IN_PROGRESS,
    "in-progress": SpecStatus.IN_PROGRESS,
    "wip": SpecStatus.IN_PROGRESS,
    "review": SpecStatus.REVIEW,
    "in review": SpecStatus.REVIEW,
    "complete": SpecStatus.COMPLETE,
    "completed": SpecStatus.COMPLETE,
    "done": SpecStatus.COMPLETE,
    "blocked": SpecStatus.BLOCKED,
    "draft": SpecStatus.DRAFT,
    "deprecated": SpecStatus.DEPRECATED,
}


class WarningSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"  # only produced by parse_safe


class ReferenceFormat(Enum):
    """How a cross-reference to another spec was written."""

    COLON = "colon"  # spec:116
    FILENAME = "filename"  # 116-spec-directory.md
    MARKDOWN_LINK = "markdown_link"  # [Spec 116](path)
    HASH = "hash"  # #116


@dataclass(frozen=True, order=True)
class StableId:
    """Positional identity of a checklist item.

    The ordinal counts checklist lines within the section (1-based), so the id
    survives text and state edits as long as the section's checklist lines keep
    their count and order.
    """
    spec_id: int
    section: str
    ordinal: int

    def __str__(self) -> str:
        return f"{self.spec_id}:{self.section}:{self.ordinal}"

    @classmethod
    def parse(cls, value: str) -> Optional["StableId"]:
        """Parse "<spec_id>:<section>:<ordinal>". Section names may contain ':'."""
        head, sep, ordinal = value.rpartition(":")
        if not sep:
            return None
        spec_id, sep, section = head.partition(":")
        if not sep:
            return None
        try:
            return cls(int(spec_id), section, int(ordinal))
        except ValueError:
            return None


@dataclass(frozen=True)
class SpecMetadata:
    phase: int = 0
    phase_name: Optional[str] = None
    spec_id: int = 0
    status: SpecStatus = SpecStatus.PLANNED
    dependencies: tuple[str, ...] = ()
    estimated_context: Optional[str] = None
    custom: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Section:
    name: str
    raw_content: str
    ordinal: int


@dataclass(frozen=True)
class ChecklistItem:
    id: StableId
    text: str
    checked: bool
    source_line: int
    section: str


@dataclass(frozen=True)
class CodeBlock:
    language: Optional[str]
    content: str
    line_range: tuple[int, int]  # [open fence, close fence + 1)
    section: str


@dataclass(frozen=True)
class CrossReference:
    target_spec_id: int
    format: ReferenceFormat
    source_line: int
    matched_text: str


@dataclass(frozen=True)
class ParseWarning:
    message: str
    line: int
    severity: WarningSeverity


@dataclass(frozen=True)
class LineMap:
    """Source positions. Used for reporting, never for identity."""
    section_starts: dict[str, int] = field(default_factory=dict)
    metadata_range: Optional[tuple[int, int]] = None  # line numbers, half open
    metadata_span: Optional[tuple[int, int]] = None  # byte offsets, half open
    total_lines: int = 0


@dataclass(frozen=True)
class SpecDocument:
    """Result of one parse."""
    title: str
    metadata: SpecMetadata
    sections: tuple[Section, ...] = ()
    checklist_items: tuple[ChecklistItem, ...] = ()
    code_blocks: tuple[CodeBlock, ...] = ()
    references: tuple[CrossReference, ...] = ()
    warnings: tuple[ParseWarning, ...] = ()
    line_map: LineMap = field(default_factory=LineMap)

    def get_section(self, name: str) -> Optional[Section]:
        for section in self.sections:
            if section.name == name:
                return section
        return None

    def section_names(self) -> list[str]:
        return [s.name for s in self.sections]

    def items_in_section(self, name: str) -> list[ChecklistItem]:
        return [item for item in self.checklist_items if item.section == name]

    def to_dict(self) -> dict:
        return to_plain(self)
