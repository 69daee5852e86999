"""
Spec document parser.

Builds a SpecDocument from markdown spec text: title, metadata block, ordered
sections, checklist items, code blocks, cross-references and a line map.
Malformed content produces ParseWarnings; only a missing title is fatal.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from specledger.lib.classify import (
    DEFAULT_METADATA_SCAN_LINES,
    LineKind,
    iter_lines,
    split_lines,
    strip_eol,
)
from specledger.lib.errors import MissingTitle, ParseError
from specledger.lib.metadata import MetadataDraft, extract_spec_id_from_title
from specledger.lib.references import extract_references
from specledger.lib.types import (
    ChecklistItem,
    CodeBlock,
    LineMap,
    ParseWarning,
    Section,
    SpecDocument,
    SpecMetadata,
    StableId,
    WarningSeverity,
)

logger = logging.getLogger(__name__)


@dataclass
class _SectionDraft:
    name: str
    ordinal: int
    start_line: int
    lines: list[str] = field(default_factory=list)


@dataclass
class _CodeDraft:
    start_line: int
    language: Optional[str]
    section: str
    lines: list[str] = field(default_factory=list)

    def close(self, end_line: int) -> CodeBlock:
        return CodeBlock(
            language=self.language,
            content="".join(self.lines),
            line_range=(self.start_line, end_line),
            section=self.section,
        )


def parse(content: str, metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES) -> SpecDocument:
    """Parse spec text into a SpecDocument.

    Raises:
        MissingTitle: if no level-1 heading appears before the first section
    """
    lines = split_lines(content)
    warnings: list[ParseWarning] = []
    draft = MetadataDraft()

    title: Optional[str] = None
    sections: dict[str, _SectionDraft] = {}
    current: Optional[_SectionDraft] = None
    checklist_lines = []
    code_blocks: list[CodeBlock] = []
    open_block: Optional[_CodeDraft] = None

    metadata_range: Optional[tuple[int, int]] = None
    metadata_span: Optional[tuple[int, int]] = None
    offset = 0

    for walked in iter_lines(lines, metadata_scan_lines):
        line_start = offset
        offset += len(walked.raw.encode("utf-8"))
        classified = walked.classified
        kind = walked.kind

        if kind is LineKind.HEADING:
            level = classified.heading_level
            if level == 1 and title is None:
                title = classified.heading_text
                continue
            if level == 2:
                if title is None:
                    raise MissingTitle(walked.number)
                name = classified.heading_text
                if name in sections:
                    warnings.append(ParseWarning(
                        f"Duplicate section '{name}' merged into the first occurrence",
                        walked.number,
                        WarningSeverity.WARNING,
                    ))
                    current = sections[name]
                else:
                    current = _SectionDraft(name, len(sections) + 1, walked.number)
                    sections[name] = current
                continue
            if level == 1:
                warnings.append(ParseWarning(
                    f"Additional top-level heading '{classified.heading_text}' treated as text",
                    walked.number,
                    WarningSeverity.INFO,
                ))

        if current is not None:
            current.lines.append(walked.raw)

        if kind is LineKind.CODE_FENCE:
            if open_block is None:
                open_block = _CodeDraft(walked.number, classified.fence_language, walked.section)
            else:
                code_blocks.append(open_block.close(walked.number + 1))
                open_block = None
        elif kind is LineKind.CODE_CONTENT:
            open_block.lines.append(strip_eol(walked.raw) + "\n")
        elif kind is LineKind.METADATA_FIELD:
            name, value = classified.match.group(1), classified.match.group(2)
            draft.apply(name, value, walked.number, warnings)
            if metadata_range is None:
                metadata_range = (walked.number, walked.number + 1)
                metadata_span = (line_start, offset)
            else:
                metadata_range = (metadata_range[0], walked.number + 1)
                metadata_span = (metadata_span[0], offset)
        elif kind is LineKind.CHECKLIST_ITEM:
            checklist_lines.append(walked)
        elif kind is LineKind.TEXT and _looks_like_metadata(walked):
            warnings.append(ParseWarning(
                f"Malformed metadata line: {classified.text.strip()}",
                walked.number,
                WarningSeverity.WARNING,
            ))

    total_lines = len(lines)

    if open_block is not None:
        warnings.append(ParseWarning(
            "Unclosed code block at end of document",
            open_block.start_line,
            WarningSeverity.WARNING,
        ))
        code_blocks.append(open_block.close(total_lines + 1))

    if title is None:
        raise MissingTitle()

    metadata = draft.freeze(extract_spec_id_from_title(title), warnings)

    items = tuple(
        ChecklistItem(
            id=StableId(metadata.spec_id, walked.section, walked.ordinal),
            text=walked.classified.item_text,
            checked=walked.classified.checked,
            source_line=walked.number,
            section=walked.section,
        )
        for walked in checklist_lines
    )

    document = SpecDocument(
        title=title,
        metadata=metadata,
        sections=tuple(
            Section(name=s.name, raw_content="".join(s.lines).strip(), ordinal=s.ordinal)
            for s in sections.values()
        ),
        checklist_items=items,
        code_blocks=tuple(code_blocks),
        references=tuple(extract_references(content)),
        warnings=tuple(warnings),
        line_map=LineMap(
            section_starts={s.name: s.start_line for s in sections.values()},
            metadata_range=metadata_range,
            metadata_span=metadata_span,
            total_lines=total_lines,
        ),
    )
    logger.debug(
        f"Parsed '{title}': {len(document.sections)} sections, "
        f"{len(items)} checklist items, {len(warnings)} warnings"
    )
    return document


def _looks_like_metadata(walked) -> bool:
    """A list line inside the Metadata section that isn't a `**Field**: value` pair."""
    if walked.in_preamble or walked.section.lower() != "metadata":
        return False
    stripped = walked.classified.text.lstrip()
    return stripped.startswith("- ") or stripped.startswith("* ")


def parse_safe(content: str, metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES) -> SpecDocument:
    """Parse, never raising. Failures become a minimal document with an ERROR warning."""
    try:
        return parse(content, metadata_scan_lines)
    except ParseError as e:
        logger.warning(f"Failed to parse document: {e}")
        title = "Parse Error"
        for raw in split_lines(content):
            line = strip_eol(raw)
            if line.startswith("# "):
                title = line[2:].strip()
                break
        return SpecDocument(
            title=title,
            metadata=SpecMetadata(),
            warnings=(ParseWarning(f"Failed to parse document: {e}", e.line, WarningSeverity.ERROR),),
            line_map=LineMap(total_lines=len(split_lines(content))),
        )


def parse_file(filepath, metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES) -> SpecDocument:
    """Read a UTF-8 spec file and parse it."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Spec file not found: {filepath}")
    return parse(path.read_bytes().decode("utf-8"), metadata_scan_lines)
