"""
specledger check - Check, uncheck or toggle one checklist item in place.
"""

from pathlib import Path
from typing import Optional

from specledger.lib.config import SpecLedgerConfig
from specledger.lib.errors import ParseError, SpecLedgerError
from specledger.lib.specparse import parse_file
from specledger.lib.types import StableId
from specledger.tracker import CheckboxTracker, ModificationSource


def resolve_item_id(value: str, spec_id: int) -> Optional[StableId]:
    """Accept "Section:N" or a full "<spec>:Section:N" id."""
    full = StableId.parse(value)
    if full is not None:
        return full
    section, sep, ordinal = value.rpartition(":")
    if not sep or not section:
        return None
    try:
        return StableId(spec_id, section, int(ordinal))
    except ValueError:
        return None


def cmd_check(args, config: SpecLedgerConfig) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: File not found: {path}")
        return 2

    try:
        spec_id = parse_file(path, config.parser.metadata_scan_lines).metadata.spec_id
    except ParseError as e:
        print(f"ERROR: {path}: {e}")
        return 1

    checkbox_id = resolve_item_id(args.id, spec_id)
    if checkbox_id is None:
        print(f"ERROR: Invalid item id '{args.id}'. Use Section:N or <spec>:Section:N")
        return 2
    if checkbox_id.spec_id != spec_id:
        print(f"ERROR: {path} is spec {spec_id}, not {checkbox_id.spec_id}")
        return 1

    tracker = CheckboxTracker(config.tracker, config.parser)
    source = ModificationSource.automated("specledger-cli")
    try:
        tracker.load(spec_id, path)
        if args.toggle:
            tracker.toggle(checkbox_id, source)
        else:
            tracker.set_checked(checkbox_id, not args.uncheck, source)
    except SpecLedgerError as e:
        print(f"ERROR: {e}")
        return 1

    item = tracker.get(checkbox_id)
    mark = "x" if item.checked else " "
    print(f"[{mark}] {checkbox_id}: {item.text}")
    return 0
