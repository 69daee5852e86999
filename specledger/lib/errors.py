"""
Error types for specledger.

Parse errors are fatal for a single parse call. Tracker errors carry the spec id
(and path where relevant) so callers can act on them without re-parsing.
"""


class SpecLedgerError(Exception):
    """Base class for all specledger errors."""
    pass


class ParseError(SpecLedgerError):
    """Document could not be parsed."""

    def __init__(self, message: str, line: int = 0):
        self.line = line
        super().__init__(message + (f" (line {line})" if line else ""))


class MissingTitle(ParseError):
    """No level-1 heading before the first section."""

    def __init__(self, line: int = 0):
        super().__init__("Missing document title", line)


class TrackerError(SpecLedgerError):
    """Checkbox tracker operation failed."""

    def __init__(self, message: str, spec_id: int | None = None):
        self.spec_id = spec_id
        super().__init__(message)


class CheckboxNotFound(TrackerError):
    """No tracked checkbox with this id."""

    def __init__(self, checkbox_id):
        self.checkbox_id = checkbox_id
        super().__init__(f"Checkbox not found: {checkbox_id}", checkbox_id.spec_id)


class SpecNotLoaded(TrackerError):
    """Operation on a spec id that was never loaded (or was unloaded)."""

    def __init__(self, spec_id: int):
        super().__init__(f"Spec not loaded: {spec_id}", spec_id)


class TrackerIOError(TrackerError):
    """Reading or writing a spec file failed."""

    def __init__(self, spec_id: int, path, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"I/O error on spec {spec_id} ({path}): {cause}", spec_id)


class PersistError(TrackerIOError):
    """Writing a spec back to disk failed.

    The cause is either an OSError or a LockTimeout on the file lock. In-memory
    state has already been updated and is NOT rolled back, so memory and disk
    disagree until CheckboxTracker.persist() succeeds.
    """
    pass


class LockTimeout(SpecLedgerError):
    """Lock acquisition timed out."""
    pass
