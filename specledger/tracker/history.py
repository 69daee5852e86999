"""
Change records and the undo log.

The undo log is one list ordered by operation time across all documents. It
only ever grows: undo and redo move cursors over it instead of popping stacks.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from specledger.lib.types import StableId, to_plain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModificationSource:
    """Who changed a checkbox: user, ai (model), automated (process) or sync."""
    kind: str
    detail: Optional[str] = None

    @classmethod
    def user(cls) -> "ModificationSource":
        return cls("user")

    @classmethod
    def ai(cls, model: str) -> "ModificationSource":
        return cls("ai", model)

    @classmethod
    def automated(cls, process: str) -> "ModificationSource":
        return cls("automated", process)

    @classmethod
    def sync(cls) -> "ModificationSource":
        return cls("sync")

    def __str__(self) -> str:
        return f"{self.kind}:{self.detail}" if self.detail else self.kind


@dataclass(frozen=True)
class Change:
    """One committed checkbox state transition."""
    id: StableId
    old_state: bool
    new_state: bool
    timestamp: datetime
    source: ModificationSource

    @classmethod
    def now(cls, checkbox_id: StableId, old_state: bool, new_state: bool,
            source: ModificationSource) -> "Change":
        return cls(checkbox_id, old_state, new_state, datetime.now(timezone.utc), source)

    def to_dict(self) -> dict:
        data = to_plain(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass(frozen=True)
class LogEntry:
    change: Change
    generation: int  # load generation of the document the change applies to
    parent: int  # index of the entry that was committed head when this one was recorded
    index: int


class UndoLog:
    """Append-only undo/redo log shared by every loaded document.

    Entries are never removed. `_head` is the committed boundary (last applied
    entry, -1 for none) and `_tip` the redo boundary (newest entry that redo
    can reach). Recording a change from a non-tip head starts a new branch, so
    the old redo tail becomes unreachable without being deleted.

    Entries for a document that has since been reloaded or unloaded are skipped
    by undo() and redo(); `is_live` decides which entries still apply.
    """

    def __init__(self):
        self._entries: list[LogEntry] = []
        self._head = -1
        self._tip = -1
        self._lock = threading.Lock()

    def push(self, change: Change, generation: int) -> None:
        with self._lock:
            self._entries.append(LogEntry(change, generation, self._head, len(self._entries)))
            self._head = self._tip = len(self._entries) - 1

    def undo(self, is_live: Callable[[LogEntry], bool]) -> Optional[LogEntry]:
        """Move the committed boundary back past the next live entry and return it."""
        with self._lock:
            while self._head >= 0:
                entry = self._entries[self._head]
                self._head = entry.parent
                if is_live(entry):
                    return entry
                logger.debug(f"Skipping stale undo entry for {entry.change.id}")
            return None

    def redo(self, is_live: Callable[[LogEntry], bool]) -> Optional[LogEntry]:
        """Move the committed boundary forward to the next live entry and return it."""
        with self._lock:
            while self._head != self._tip:
                self._head = self._child_of(self._head)
                entry = self._entries[self._head]
                if is_live(entry):
                    return entry
                logger.debug(f"Skipping stale redo entry for {entry.change.id}")
            return None

    def cancel_undo(self, entry: LogEntry) -> None:
        """Put `entry` back on the undo path after its replay failed."""
        with self._lock:
            if self._head == entry.parent:
                self._head = entry.index

    def cancel_redo(self, entry: LogEntry) -> None:
        """Put `entry` back on the redo path after its replay failed."""
        with self._lock:
            if self._head == entry.index:
                self._head = entry.parent

    def _child_of(self, index: int) -> int:
        """Entry on the head-to-tip path whose parent is `index`."""
        current = self._tip
        while self._entries[current].parent != index:
            current = self._entries[current].parent
        return current

    def __len__(self) -> int:
        return len(self._entries)
