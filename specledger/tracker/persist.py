"""
Byte-preserving checkbox persistence.

Re-reads the file, walks it with the same classifier the parser uses, and for
every checklist line whose tracked state differs from the token on disk
rewrites that one character. Every other byte passes through untouched.
"""

import logging
from pathlib import Path
from typing import Mapping

from specledger.lib.classify import DEFAULT_METADATA_SCAN_LINES, iter_lines, LineKind, split_lines
from specledger.lib.locking import file_lock
from specledger.lib.types import StableId

logger = logging.getLogger(__name__)

CHECKED_TOKEN = "x"
UNCHECKED_TOKEN = " "


def render_checklist(
    content: str,
    spec_id: int,
    states: Mapping[StableId, bool],
    metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES,
) -> str:
    """Return `content` with checklist tokens set from `states`.

    Lines with no entry in `states` (or whose state already matches) are kept
    exactly, including an existing 'X' token.
    """
    out = []
    for walked in iter_lines(split_lines(content), metadata_scan_lines):
        if walked.kind is LineKind.CHECKLIST_ITEM:
            desired = states.get(StableId(spec_id, walked.section, walked.ordinal))
            if desired is not None and desired != walked.classified.checked:
                pos = walked.classified.match.start(4)
                token = CHECKED_TOKEN if desired else UNCHECKED_TOKEN
                out.append(walked.raw[:pos] + token + walked.raw[pos + 1:])
                continue
        out.append(walked.raw)
    return "".join(out)


def persist_checklist(
    path: Path,
    spec_id: int,
    states: Mapping[StableId, bool],
    lock_timeout: float = 10.0,
    metadata_scan_lines: int = DEFAULT_METADATA_SCAN_LINES,
) -> bool:
    """Rewrite checklist tokens in `path` under an exclusive file lock.

    Returns True if the file content changed.

    Raises:
        OSError: if the file cannot be read or written
        LockTimeout: if the file lock is held elsewhere for too long
    """
    with open(path, "r+", encoding="utf-8", newline="") as f:
        with file_lock(f, lock_timeout, f"file lock for {path}"):
            content = f.read()
            updated = render_checklist(content, spec_id, states, metadata_scan_lines)
            if updated == content:
                logger.debug(f"{path}: checklist already up to date")
                return False
            f.seek(0)
            f.write(updated)
            f.truncate()
            f.flush()
    logger.debug(f"{path}: checklist state written")
    return True
