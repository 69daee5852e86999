"""Structural diffing of spec documents.

    from specledger.diff import diff, render_unified

    result = diff(old_document, new_document)
    print(render_unified(result))
"""

from specledger.diff.engine import (
    ChangeKind,
    ChecklistChange,
    CodeBlockChange,
    DependencyChange,
    DiffStats,
    MetadataChange,
    SectionChange,
    SpecDiff,
    StringChange,
    diff,
    diff_files,
    diff_text,
)
from specledger.diff.lines import DiffLine, Hunk, LineTag, compute_hunks
from specledger.diff.render import render_rich, render_summary, render_unified
