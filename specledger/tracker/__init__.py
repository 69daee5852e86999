from specledger.tracker.broadcast import ChangeBroadcaster, Subscription
from specledger.tracker.checkbox import CheckboxStats, CheckboxTracker, TrackedCheckbox
from specledger.tracker.history import Change, ModificationSource, UndoLog
from specledger.tracker.persist import persist_checklist, render_checklist
