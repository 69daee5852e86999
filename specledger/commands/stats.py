"""
specledger stats - Show checklist completion for a spec.
"""

from pathlib import Path

from specledger.lib.config import SpecLedgerConfig
from specledger.lib.errors import SpecLedgerError
from specledger.lib.specparse import parse_file
from specledger.tracker import CheckboxTracker


def cmd_stats(args, config: SpecLedgerConfig) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: File not found: {path}")
        return 2

    try:
        spec_id = parse_file(path, config.parser.metadata_scan_lines).metadata.spec_id
        tracker = CheckboxTracker(config.tracker, config.parser)
        tracker.load(spec_id, path)
        stats = tracker.get_stats(spec_id)
    except SpecLedgerError as e:
        print(f"ERROR: {path}: {e}")
        return 1

    print(f"Spec {spec_id}: {stats.checked}/{stats.total} complete ({stats.percentage}%)")
    for section, (total, checked) in stats.by_section.items():
        print(f"  {section:<30} {checked}/{total}")
    return 0
