"""
specledger diff - Structural diff of two versions of a spec.
"""

from pathlib import Path

from rich.console import Console

from specledger.diff import diff, render_rich, render_summary, render_unified
from specledger.lib.config import SpecLedgerConfig
from specledger.lib.errors import ParseError
from specledger.lib.specparse import parse_file
from specledger.lib.validate import dump_json, ValidationError


def cmd_diff(args, config: SpecLedgerConfig) -> int:
    old_path, new_path = Path(args.old), Path(args.new)
    for path in (old_path, new_path):
        if not path.exists():
            print(f"ERROR: File not found: {path}")
            return 2

    scan_lines = config.parser.metadata_scan_lines
    try:
        old = parse_file(old_path, scan_lines)
        new = parse_file(new_path, scan_lines)
    except ParseError as e:
        print(f"ERROR: {e}")
        return 1

    context = args.context if args.context is not None else config.diff.context_lines
    result = diff(old, new, context)

    if args.json:
        try:
            print(dump_json(result.to_dict(), "spec_diff"))
        except ValidationError as e:
            print(f"ERROR: {e}")
            return 1
    elif args.no_color:
        print(render_unified(result, str(old_path), str(new_path)), end="")
        print(render_summary(result.stats))
    else:
        console = Console()
        console.print(render_rich(result, str(old_path), str(new_path)), end="")
        console.print(render_summary(result.stats), style="bold")

    return 0
