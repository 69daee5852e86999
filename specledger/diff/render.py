"""
Diff rendering.

Unified text for files and pipes, rich Text for terminals. The serializable
form is SpecDiff.to_dict().
"""

from rich.text import Text

from specledger.diff.engine import ChangeKind, DiffStats, SpecDiff
from specledger.diff.lines import Hunk, LineTag

LINE_STYLES = {
    LineTag.CONTEXT: "dim",
    LineTag.ADDITION: "green",
    LineTag.DELETION: "red",
}

KIND_SYMBOLS = {
    ChangeKind.ADDED: "+",
    ChangeKind.REMOVED: "-",
    ChangeKind.MODIFIED: "~",
    ChangeKind.STATE_CHANGED: "~",
}


def _checkbox(checked: bool | None) -> str:
    if checked is None:
        return ""
    return "[x]" if checked else "[ ]"


def _summary_lines(spec_diff: SpecDiff) -> list[tuple[str, str]]:
    """(line, style) pairs for everything that isn't a line hunk."""
    lines = []
    if spec_diff.title_change:
        lines.append((f"~ title: {spec_diff.title_change.old!r} -> {spec_diff.title_change.new!r}", "yellow"))
    for change in spec_diff.metadata_changes:
        lines.append((f"~ {change.field}: {change.old} -> {change.new}", "yellow"))
    for change in spec_diff.dependency_changes:
        symbol = KIND_SYMBOLS[change.kind]
        lines.append((f"{symbol} dependency: {change.value}", "green" if change.kind is ChangeKind.ADDED else "red"))
    for change in spec_diff.section_changes:
        if change.kind is not ChangeKind.MODIFIED:
            symbol = KIND_SYMBOLS[change.kind]
            lines.append((f"{symbol} section: {change.name}", "green" if change.kind is ChangeKind.ADDED else "red"))
    for change in spec_diff.checklist_changes:
        symbol = KIND_SYMBOLS[change.kind]
        if change.kind is ChangeKind.STATE_CHANGED:
            text = f"{symbol} [{change.section}] {change.text}: {_checkbox(change.old_checked)} -> {_checkbox(change.new_checked)}"
            lines.append((text, "yellow"))
        else:
            checked = change.new_checked if change.kind is ChangeKind.ADDED else change.old_checked
            text = f"{symbol} [{change.section}] {_checkbox(checked)} {change.text}"
            lines.append((text, "green" if change.kind is ChangeKind.ADDED else "red"))
    for change in spec_diff.code_block_changes:
        if change.kind is not ChangeKind.MODIFIED:
            symbol = KIND_SYMBOLS[change.kind]
            language = change.language or "plain"
            text = f"{symbol} code block: {change.section} ({language})"
            lines.append((text, "green" if change.kind is ChangeKind.ADDED else "red"))
    return lines


def _hunk_sections(spec_diff: SpecDiff, old_label: str, new_label: str) -> list[tuple[str, list[Hunk]]]:
    """(file header, hunks) for every modified section and code block."""
    blocks = []
    for change in spec_diff.section_changes:
        if change.kind is ChangeKind.MODIFIED:
            blocks.append((f"--- {old_label}/{change.name}\n+++ {new_label}/{change.name}", list(change.hunks)))
    for change in spec_diff.code_block_changes:
        if change.kind is ChangeKind.MODIFIED:
            name = f"{change.section}/```{change.language or ''}"
            blocks.append((f"--- {old_label}/{name}\n+++ {new_label}/{name}", list(change.hunks)))
    return blocks


def render_unified(spec_diff: SpecDiff, old_label: str = "old", new_label: str = "new") -> str:
    """Render as unified-diff style text. Empty diffs render as an empty string."""
    out = [line for line, _ in _summary_lines(spec_diff)]
    for header, hunks in _hunk_sections(spec_diff, old_label, new_label):
        out.append(header)
        for hunk in hunks:
            out.append(hunk.header)
            out.extend(f"{line.prefix}{line.text}" for line in hunk.lines)
    return "\n".join(out) + "\n" if out else ""


def render_rich(spec_diff: SpecDiff, old_label: str = "old", new_label: str = "new") -> Text:
    """Render as colored rich Text for terminal output."""
    text = Text()
    for line, style in _summary_lines(spec_diff):
        text.append(line + "\n", style=style)
    for header, hunks in _hunk_sections(spec_diff, old_label, new_label):
        text.append(header + "\n", style="bold")
        for hunk in hunks:
            text.append(hunk.header + "\n", style="cyan")
            for line in hunk.lines:
                text.append(f"{line.prefix}{line.text}\n", style=LINE_STYLES[line.tag])
    return text


def render_summary(stats: DiffStats) -> str:
    """One-line summary, e.g. "2 additions, 1 removal, 3 modifications (+10 -4 lines)"."""
    if stats.is_empty:
        return "No changes"

    def plural(count: int, word: str) -> str:
        return f"{count} {word}" + ("" if count == 1 else "s")

    return (
        f"{plural(stats.additions, 'addition')}, {plural(stats.removals, 'removal')}, "
        f"{plural(stats.modifications, 'modification')} "
        f"(+{stats.lines_added} -{stats.lines_removed} lines)"
    )
