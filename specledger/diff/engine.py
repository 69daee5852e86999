"""
Structural diff between two SpecDocuments.

Compares title, metadata, sections, checklist items and code blocks. Checklist
items are matched by exact text within a section, not by StableId: the two
documents are independent parses with no shared identity space, so an edited
item shows up as one removal plus one addition.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from specledger.diff.lines import DEFAULT_CONTEXT_LINES, Hunk, compute_hunks
from specledger.lib.specparse import parse, parse_file
from specledger.lib.types import ChecklistItem, CodeBlock, SpecDocument, to_plain

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"
    STATE_CHANGED = "state_changed"


@dataclass(frozen=True)
class StringChange:
    old: str
    new: str


@dataclass(frozen=True)
class MetadataChange:
    field: str
    old: Optional[str]
    new: Optional[str]


@dataclass(frozen=True)
class DependencyChange:
    kind: ChangeKind
    value: str


@dataclass(frozen=True)
class SectionChange:
    kind: ChangeKind
    name: str
    hunks: tuple[Hunk, ...] = ()


@dataclass(frozen=True)
class ChecklistChange:
    kind: ChangeKind
    section: str
    text: str
    old_checked: Optional[bool]
    new_checked: Optional[bool]


@dataclass(frozen=True)
class CodeBlockChange:
    kind: ChangeKind
    section: str
    language: Optional[str]
    hunks: tuple[Hunk, ...] = ()


@dataclass(frozen=True)
class DiffStats:
    """Counts across every category, for quick summaries."""
    title_changed: int = 0
    metadata_changes: int = 0
    dependencies_added: int = 0
    dependencies_removed: int = 0
    sections_added: int = 0
    sections_removed: int = 0
    sections_modified: int = 0
    items_added: int = 0
    items_removed: int = 0
    items_state_changed: int = 0
    code_blocks_added: int = 0
    code_blocks_removed: int = 0
    code_blocks_modified: int = 0
    lines_added: int = 0
    lines_removed: int = 0

    @property
    def additions(self) -> int:
        return self.dependencies_added + self.sections_added + self.items_added + self.code_blocks_added

    @property
    def removals(self) -> int:
        return self.dependencies_removed + self.sections_removed + self.items_removed + self.code_blocks_removed

    @property
    def modifications(self) -> int:
        return (self.title_changed + self.metadata_changes + self.sections_modified
                + self.items_state_changed + self.code_blocks_modified)

    @property
    def is_empty(self) -> bool:
        return self.additions == 0 and self.removals == 0 and self.modifications == 0


@dataclass(frozen=True)
class SpecDiff:
    title_change: Optional[StringChange]
    metadata_changes: tuple[MetadataChange, ...]
    dependency_changes: tuple[DependencyChange, ...]
    section_changes: tuple[SectionChange, ...]
    checklist_changes: tuple[ChecklistChange, ...]
    code_block_changes: tuple[CodeBlockChange, ...]
    stats: DiffStats

    @property
    def is_empty(self) -> bool:
        return self.stats.is_empty

    def changed_section_names(self) -> set[str]:
        return {change.name for change in self.section_changes}

    def to_dict(self) -> dict:
        return to_plain(self)


def diff(old: SpecDocument, new: SpecDocument, context_lines: int = DEFAULT_CONTEXT_LINES) -> SpecDiff:
    """Compute the structural difference between two documents.

    Never fails on document content. A negative `context_lines` raises ValueError.
    """
    if context_lines < 0:
        raise ValueError(f"context_lines must be >= 0, got {context_lines}")
    title_change = StringChange(old.title, new.title) if old.title != new.title else None
    metadata_changes = _diff_metadata(old, new)
    dependency_changes = _diff_dependencies(old, new)
    section_changes = _diff_sections(old, new, context_lines)
    checklist_changes = _diff_checklist(old, new)
    code_block_changes = _diff_code_blocks(old, new, context_lines)

    all_hunks = [h for c in section_changes for h in c.hunks] + [h for c in code_block_changes for h in c.hunks]

    def count(changes, kind):
        return sum(1 for c in changes if c.kind is kind)

    stats = DiffStats(
        title_changed=1 if title_change else 0,
        metadata_changes=len(metadata_changes),
        dependencies_added=count(dependency_changes, ChangeKind.ADDED),
        dependencies_removed=count(dependency_changes, ChangeKind.REMOVED),
        sections_added=count(section_changes, ChangeKind.ADDED),
        sections_removed=count(section_changes, ChangeKind.REMOVED),
        sections_modified=count(section_changes, ChangeKind.MODIFIED),
        items_added=count(checklist_changes, ChangeKind.ADDED),
        items_removed=count(checklist_changes, ChangeKind.REMOVED),
        items_state_changed=count(checklist_changes, ChangeKind.STATE_CHANGED),
        code_blocks_added=count(code_block_changes, ChangeKind.ADDED),
        code_blocks_removed=count(code_block_changes, ChangeKind.REMOVED),
        code_blocks_modified=count(code_block_changes, ChangeKind.MODIFIED),
        lines_added=sum(h.additions for h in all_hunks),
        lines_removed=sum(h.deletions for h in all_hunks),
    )
    logger.debug(f"Diffed '{old.title}' -> '{new.title}': {stats}")

    return SpecDiff(
        title_change=title_change,
        metadata_changes=tuple(metadata_changes),
        dependency_changes=tuple(dependency_changes),
        section_changes=tuple(section_changes),
        checklist_changes=tuple(checklist_changes),
        code_block_changes=tuple(code_block_changes),
        stats=stats,
    )


def diff_text(old_text: str, new_text: str, context_lines: int = DEFAULT_CONTEXT_LINES) -> SpecDiff:
    """Parse both texts and diff them. Raises ParseError if either has no title."""
    return diff(parse(old_text), parse(new_text), context_lines)


def diff_files(old_path: Path, new_path: Path, context_lines: int = DEFAULT_CONTEXT_LINES) -> SpecDiff:
    return diff(parse_file(old_path), parse_file(new_path), context_lines)


def _diff_metadata(old: SpecDocument, new: SpecDocument) -> list[MetadataChange]:
    changes = []
    if old.metadata.phase != new.metadata.phase:
        changes.append(MetadataChange("phase", str(old.metadata.phase), str(new.metadata.phase)))
    if old.metadata.status != new.metadata.status:
        changes.append(MetadataChange("status", old.metadata.status.value, new.metadata.status.value))
    return changes


def _diff_dependencies(old: SpecDocument, new: SpecDocument) -> list[DependencyChange]:
    old_deps = set(old.metadata.dependencies)
    new_deps = set(new.metadata.dependencies)
    # keep document order for stable output
    removed = [d for d in dict.fromkeys(old.metadata.dependencies) if d not in new_deps]
    added = [d for d in dict.fromkeys(new.metadata.dependencies) if d not in old_deps]
    return ([DependencyChange(ChangeKind.REMOVED, d) for d in removed]
            + [DependencyChange(ChangeKind.ADDED, d) for d in added])


def _diff_sections(old: SpecDocument, new: SpecDocument, context_lines: int) -> list[SectionChange]:
    old_sections = {s.name: s for s in old.sections}
    new_sections = {s.name: s for s in new.sections}

    changes = [SectionChange(ChangeKind.REMOVED, name) for name in old_sections if name not in new_sections]
    changes += [SectionChange(ChangeKind.ADDED, name) for name in new_sections if name not in old_sections]

    for name, old_section in old_sections.items():
        new_section = new_sections.get(name)
        if new_section is None or new_section.raw_content == old_section.raw_content:
            continue
        hunks = compute_hunks(old_section.raw_content, new_section.raw_content, context_lines)
        changes.append(SectionChange(ChangeKind.MODIFIED, name, tuple(hunks)))
    return changes


def _group_by_section(items) -> dict[str, list]:
    grouped = defaultdict(list)
    for item in items:
        grouped[item.section].append(item)
    return grouped


def _diff_checklist(old: SpecDocument, new: SpecDocument) -> list[ChecklistChange]:
    old_by_section = _group_by_section(old.checklist_items)
    new_by_section = _group_by_section(new.checklist_items)
    sections = list(dict.fromkeys(list(old_by_section) + list(new_by_section)))

    changes = []
    for section in sections:
        old_items: list[ChecklistItem] = old_by_section.get(section, [])
        unmatched_new: list[Optional[ChecklistItem]] = list(new_by_section.get(section, []))

        for old_item in old_items:
            match_index = next(
                (i for i, n in enumerate(unmatched_new) if n is not None and n.text == old_item.text),
                None,
            )
            if match_index is None:
                changes.append(ChecklistChange(ChangeKind.REMOVED, section, old_item.text, old_item.checked, None))
                continue
            new_item = unmatched_new[match_index]
            unmatched_new[match_index] = None
            if new_item.checked != old_item.checked:
                changes.append(ChecklistChange(
                    ChangeKind.STATE_CHANGED, section, old_item.text, old_item.checked, new_item.checked))

        for new_item in unmatched_new:
            if new_item is not None:
                changes.append(ChecklistChange(ChangeKind.ADDED, section, new_item.text, None, new_item.checked))
    return changes


def _diff_code_blocks(old: SpecDocument, new: SpecDocument, context_lines: int) -> list[CodeBlockChange]:
    def keyed(blocks: tuple[CodeBlock, ...]) -> dict[tuple[str, Optional[str]], list[CodeBlock]]:
        grouped = defaultdict(list)
        for block in blocks:
            grouped[(block.section, block.language)].append(block)
        return grouped

    old_blocks = keyed(old.code_blocks)
    new_blocks = keyed(new.code_blocks)
    keys = list(dict.fromkeys(list(old_blocks) + list(new_blocks)))

    changes = []
    for key in keys:
        section, language = key
        olds = old_blocks.get(key, [])
        news = new_blocks.get(key, [])
        # blocks sharing a key pair up in document order
        for old_block, new_block in zip(olds, news):
            if old_block.content != new_block.content:
                hunks = compute_hunks(old_block.content, new_block.content, context_lines)
                changes.append(CodeBlockChange(ChangeKind.MODIFIED, section, language, tuple(hunks)))
        for _ in olds[len(news):]:
            changes.append(CodeBlockChange(ChangeKind.REMOVED, section, language))
        for _ in news[len(olds):]:
            changes.append(CodeBlockChange(ChangeKind.ADDED, section, language))
    return changes
