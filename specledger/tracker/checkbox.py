"""
Checkbox state tracker.

Owns the authoritative checked/unchecked state of every checklist item in the
loaded spec files and writes changes back to disk without touching any other
byte of the file.

Locking:
    - Each document has its own lock (DocumentLocks). Every mutation of a
      document, including its broadcast and persist, runs under that lock.
    - The document registry, the undo log and the history each have a short
      lock that is never held while waiting for a document lock.
    - Readers take no lock. A document's item map is replaced as a whole, so a
      reader sees either all of a batch or none of it.
"""

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from specledger.lib.config import TrackerConfig, ParserConfig
from specledger.lib.errors import (
    CheckboxNotFound,
    LockTimeout,
    ParseError,
    PersistError,
    SpecNotLoaded,
    TrackerIOError,
)
from specledger.lib.locking import DocumentLocks
from specledger.lib.specparse import parse
from specledger.lib.types import SpecDocument, StableId
from specledger.tracker.broadcast import ChangeBroadcaster, Subscription
from specledger.tracker.history import Change, LogEntry, ModificationSource, UndoLog
from specledger.tracker.persist import persist_checklist, render_checklist

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrackedCheckbox:
    id: StableId
    text: str
    checked: bool
    source_line: int
    section: str
    modified_at: Optional[datetime] = None
    modified_by: Optional[ModificationSource] = None


@dataclass(frozen=True)
class CheckboxStats:
    total: int
    checked: int
    percentage: int  # floor of checked * 100 / total, 0 when empty
    by_section: dict[str, tuple[int, int]]  # section -> (total, checked), document order

    @property
    def unchecked(self) -> int:
        return self.total - self.checked


@dataclass
class _LoadedSpec:
    spec_id: int
    path: Path
    items: dict[StableId, TrackedCheckbox]
    generation: int
    dirty: bool = False

    def states(self) -> dict[StableId, bool]:
        return {checkbox_id: item.checked for checkbox_id, item in self.items.items()}


class CheckboxTracker:
    """Tracks checklist state for loaded spec files.

    Construct one per application and pass it to whatever needs to mutate
    checklists:

        tracker = CheckboxTracker()
        tracker.load(116, Path("specs/116-parser.md"))
        tracker.set_checked(StableId(116, "Tasks", 1), True)
    """

    def __init__(self, config: Optional[TrackerConfig] = None, parser_config: Optional[ParserConfig] = None):
        self.config = config or TrackerConfig()
        self.metadata_scan_lines = (parser_config or ParserConfig()).metadata_scan_lines
        self._specs: dict[int, _LoadedSpec] = {}
        self._registry_lock = threading.Lock()
        self._locks = DocumentLocks(timeout=self.config.lock_timeout)
        self._undo_log = UndoLog()
        self._history: deque[Change] = deque(maxlen=self.config.history_limit)
        self._history_lock = threading.Lock()
        self._broadcaster = ChangeBroadcaster(self.config.subscriber_buffer)
        self._generations = itertools.count(1)

    # Loading

    def load(self, spec_id: int, path: Path) -> SpecDocument:
        """Parse `path` and track its checklist items under `spec_id`.

        Loading an id that is already loaded replaces it; undo history for
        the previous load is no longer reachable.

        Raises:
            TrackerIOError: if the file cannot be read
            ParseError: if the content cannot be parsed
        """
        path = Path(path)
        try:
            content = path.read_bytes().decode("utf-8")
        except OSError as e:
            raise TrackerIOError(spec_id, path, e) from e
        except UnicodeDecodeError as e:
            raise ParseError(f"{path} is not valid UTF-8: {e}") from e

        document = parse(content, self.metadata_scan_lines)
        items = {}
        for item in document.checklist_items:
            checkbox_id = StableId(spec_id, item.section, item.id.ordinal)
            items[checkbox_id] = TrackedCheckbox(
                id=checkbox_id,
                text=item.text,
                checked=item.checked,
                source_line=item.source_line,
                section=item.section,
            )

        with self._locks.hold(spec_id):
            with self._registry_lock:
                replaced = spec_id in self._specs
                self._specs[spec_id] = _LoadedSpec(spec_id, path, items, next(self._generations))

        if replaced:
            logger.info(f"Reloaded spec {spec_id} from {path} ({len(items)} checkboxes)")
        else:
            logger.debug(f"Loaded spec {spec_id} from {path} ({len(items)} checkboxes)")
        return document

    def unload(self, spec_id: int) -> None:
        """Stop tracking `spec_id`. Its undo history becomes unreachable."""
        with self._locks.hold(spec_id):
            with self._registry_lock:
                if self._specs.pop(spec_id, None) is None:
                    raise SpecNotLoaded(spec_id)
        logger.debug(f"Unloaded spec {spec_id}")

    def loaded_specs(self) -> list[int]:
        return sorted(self._specs)

    def path_for(self, spec_id: int) -> Path:
        return self._require(spec_id).path

    def _require(self, spec_id: int) -> _LoadedSpec:
        spec = self._specs.get(spec_id)
        if spec is None:
            raise SpecNotLoaded(spec_id)
        return spec

    def _lookup(self, checkbox_id: StableId) -> tuple[_LoadedSpec, TrackedCheckbox]:
        spec = self._require(checkbox_id.spec_id)
        item = spec.items.get(checkbox_id)
        if item is None:
            raise CheckboxNotFound(checkbox_id)
        return spec, item

    # Reads

    def get(self, checkbox_id: StableId) -> Optional[TrackedCheckbox]:
        spec = self._specs.get(checkbox_id.spec_id)
        if spec is None:
            return None
        return spec.items.get(checkbox_id)

    def get_spec_checkboxes(self, spec_id: int) -> list[TrackedCheckbox]:
        """All checkboxes of a spec in document order."""
        items = self._require(spec_id).items
        return sorted(items.values(), key=lambda item: item.source_line)

    def get_section_checkboxes(self, spec_id: int, section: str) -> list[TrackedCheckbox]:
        return [item for item in self.get_spec_checkboxes(spec_id) if item.section == section]

    def get_stats(self, spec_id: int) -> CheckboxStats:
        items = self.get_spec_checkboxes(spec_id)
        by_section: dict[str, tuple[int, int]] = {}
        for item in items:
            total, checked = by_section.get(item.section, (0, 0))
            by_section[item.section] = (total + 1, checked + int(item.checked))

        total = len(items)
        checked = sum(1 for item in items if item.checked)
        percentage = checked * 100 // total if total else 0
        return CheckboxStats(total, checked, percentage, by_section)

    def get_history(self, limit: Optional[int] = None) -> list[Change]:
        """Most recent changes, oldest first."""
        with self._history_lock:
            changes = list(self._history)
        if limit is not None:
            changes = changes[-limit:] if limit > 0 else []
        return changes

    def is_dirty(self, spec_id: int) -> bool:
        """True if the last write for this spec failed and memory is ahead of disk."""
        return self._require(spec_id).dirty

    def subscribe(self, maxsize: Optional[int] = None) -> Subscription:
        return self._broadcaster.subscribe(maxsize)

    # Mutations

    def set_checked(self, checkbox_id: StableId, checked: bool, source: Optional[ModificationSource] = None) -> None:
        """Set one checkbox and write it to disk.

        Does nothing if the checkbox already has this state.

        Raises:
            SpecNotLoaded / CheckboxNotFound: nothing was changed
            PersistError: memory was updated but the file write failed
        """
        source = source or ModificationSource.user()
        with self._locks.hold(checkbox_id.spec_id):
            spec, item = self._lookup(checkbox_id)
            if item.checked == checked:
                return
            change = Change.now(checkbox_id, item.checked, checked, source)
            self._apply(spec, [change])
            self._undo_log.push(change, spec.generation)
            self._persist_locked(spec)

    def toggle(self, checkbox_id: StableId, source: Optional[ModificationSource] = None) -> bool:
        """Flip one checkbox. Returns the new state."""
        source = source or ModificationSource.user()
        with self._locks.hold(checkbox_id.spec_id):
            spec, item = self._lookup(checkbox_id)
            change = Change.now(checkbox_id, item.checked, not item.checked, source)
            self._apply(spec, [change])
            self._undo_log.push(change, spec.generation)
            self._persist_locked(spec)
        return change.new_state

    def batch_update(self, updates: Iterable[tuple[StableId, bool]], source: Optional[ModificationSource] = None) -> None:
        """Apply several updates, writing each affected file once.

        Every id is checked before anything is applied. If several writes fail
        the first PersistError is raised after all files were attempted.
        """
        source = source or ModificationSource.user()
        updates = list(updates)
        spec_ids = {checkbox_id.spec_id for checkbox_id, _ in updates}

        with self._locks.hold_many(spec_ids):
            specs = {spec_id: self._require(spec_id) for spec_id in spec_ids}
            for checkbox_id, _ in updates:
                if checkbox_id not in specs[checkbox_id.spec_id].items:
                    raise CheckboxNotFound(checkbox_id)

            pending: dict[StableId, bool] = {}
            changes: dict[int, list[Change]] = {}
            for checkbox_id, checked in updates:
                current = pending.get(checkbox_id, specs[checkbox_id.spec_id].items[checkbox_id].checked)
                if current == checked:
                    continue
                pending[checkbox_id] = checked
                changes.setdefault(checkbox_id.spec_id, []).append(Change.now(checkbox_id, current, checked, source))

            for spec_id in sorted(changes):
                spec = specs[spec_id]
                self._apply(spec, changes[spec_id])
                for change in changes[spec_id]:
                    self._undo_log.push(change, spec.generation)

            errors = []
            for spec_id in sorted(changes):
                try:
                    self._persist_locked(specs[spec_id])
                except PersistError as e:
                    errors.append(e)

        logger.debug(f"Batch update: {sum(len(c) for c in changes.values())} changes across {len(changes)} specs")
        if errors:
            for error in errors[1:]:
                logger.warning(str(error))
            raise errors[0]

    def undo(self) -> Optional[Change]:
        """Revert the most recent change still applicable. Returns it, or None."""
        entry = self._undo_log.undo(self._is_live)
        if entry is None:
            return None
        try:
            self._replay(entry, entry.change.old_state)
        except LockTimeout:
            self._undo_log.cancel_undo(entry)
            raise
        return entry.change

    def redo(self) -> Optional[Change]:
        """Re-apply the most recently undone change. Returns it, or None."""
        entry = self._undo_log.redo(self._is_live)
        if entry is None:
            return None
        try:
            self._replay(entry, entry.change.new_state)
        except LockTimeout:
            self._undo_log.cancel_redo(entry)
            raise
        return entry.change

    def _is_live(self, entry: LogEntry) -> bool:
        spec = self._specs.get(entry.change.id.spec_id)
        return spec is not None and spec.generation == entry.generation

    def _replay(self, entry: LogEntry, state: bool) -> None:
        checkbox_id = entry.change.id
        with self._locks.hold(checkbox_id.spec_id):
            spec = self._specs.get(checkbox_id.spec_id)
            if spec is None or spec.generation != entry.generation:
                logger.warning(f"Spec {checkbox_id.spec_id} was reloaded, discarding history entry for {checkbox_id}")
                return
            item = spec.items.get(checkbox_id)
            if item is None or item.checked == state:
                return
            self._apply(spec, [Change.now(checkbox_id, item.checked, state, ModificationSource.user())])
            self._persist_locked(spec)

    def _apply(self, spec: _LoadedSpec, changes: list[Change]) -> None:
        """Swap in a new item map, then record and broadcast. Caller holds the document lock."""
        items = dict(spec.items)
        for change in changes:
            items[change.id] = replace(
                items[change.id],
                checked=change.new_state,
                modified_at=change.timestamp,
                modified_by=change.source,
            )
        spec.items = items

        with self._history_lock:
            self._history.extend(changes)
        for change in changes:
            self._broadcaster.publish(change)

    # Persistence

    def persist(self, spec_id: int) -> None:
        """Write the current state of `spec_id` to disk, e.g. after a PersistError."""
        with self._locks.hold(spec_id):
            self._persist_locked(self._require(spec_id))

    def _persist_locked(self, spec: _LoadedSpec) -> None:
        try:
            persist_checklist(
                spec.path,
                spec.spec_id,
                spec.states(),
                lock_timeout=self.config.lock_timeout,
                metadata_scan_lines=self.metadata_scan_lines,
            )
        except (OSError, LockTimeout) as e:
            spec.dirty = True
            logger.warning(f"Failed to write spec {spec.spec_id} to {spec.path}: {e}")
            raise PersistError(spec.spec_id, spec.path, e) from e
        spec.dirty = False

    def render(self, spec_id: int) -> str:
        """The spec file's content with current checkbox state, without writing it."""
        spec = self._require(spec_id)
        try:
            content = spec.path.read_bytes().decode("utf-8")
        except OSError as e:
            raise TrackerIOError(spec_id, spec.path, e) from e
        return render_checklist(content, spec_id, spec.states(), self.metadata_scan_lines)

    def snapshot(self, spec_id: int) -> SpecDocument:
        """Parse of render(): the document as it would be after a successful persist."""
        return parse(self.render(spec_id), self.metadata_scan_lines)
