"""
Cross-reference extraction.

Runs over the full raw text, not per section, since references can appear
anywhere (prose before the first section, metadata values, code blocks).
"""

import re

from specledger.lib.classify import split_lines, strip_eol
from specledger.lib.types import CrossReference, ReferenceFormat

# Checked in this order on every line
REFERENCE_PATTERNS = [
    (ReferenceFormat.COLON, re.compile(r'spec:(\d{3})')),
    (ReferenceFormat.FILENAME, re.compile(r'(\d{3})-[\w-]+\.md')),
    (ReferenceFormat.MARKDOWN_LINK, re.compile(r'\[[^\]]*?[Ss]pec\s*(\d+)[^\]]*?\]\([^)]+\)')),
    (ReferenceFormat.HASH, re.compile(r'(?<![\w&])#(\d{3})\b')),
]


def extract_references(content: str) -> list[CrossReference]:
    """Find every reference to another spec, ordered by line then format."""
    references = []
    for lineno, raw in enumerate(split_lines(content), 1):
        line = strip_eol(raw)
        for ref_format, pattern in REFERENCE_PATTERNS:
            for match in pattern.finditer(line):
                references.append(CrossReference(
                    target_spec_id=int(match.group(1)),
                    format=ref_format,
                    source_line=lineno,
                    matched_text=match.group(0),
                ))
    return references


def referenced_spec_ids(references: list[CrossReference]) -> list[int]:
    """Distinct target ids in first-seen order."""
    seen = []
    for ref in references:
        if ref.target_spec_id not in seen:
            seen.append(ref.target_spec_id)
    return seen
