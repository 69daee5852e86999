"""
specledger show - Show the parsed structure of a spec.
"""

from pathlib import Path

from specledger.lib.config import SpecLedgerConfig
from specledger.lib.errors import ParseError
from specledger.lib.specparse import parse_file
from specledger.lib.validate import dump_json, ValidationError


def cmd_show(args, config: SpecLedgerConfig) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"ERROR: File not found: {path}")
        return 2

    try:
        document = parse_file(path, config.parser.metadata_scan_lines)
    except ParseError as e:
        print(f"ERROR: {path}: {e}")
        return 1

    if args.json:
        try:
            print(dump_json(document.to_dict(), "spec_document"))
        except ValidationError as e:
            print(f"ERROR: {e}")
            return 1
        return 0

    metadata = document.metadata
    phase = f"{metadata.phase} - {metadata.phase_name}" if metadata.phase_name else str(metadata.phase)

    # Header
    print(document.title)
    print("=" * 60)
    print(f"Spec ID:      {metadata.spec_id}")
    print(f"Status:       {metadata.status.value}")
    print(f"Phase:        {phase}")
    if metadata.dependencies:
        print(f"Dependencies: {', '.join(metadata.dependencies)}")
    if metadata.estimated_context:
        print(f"Context:      {metadata.estimated_context}")
    for name, value in metadata.custom.items():
        print(f"{name}: {value}")
    print()

    print("Sections")
    print("-" * 40)
    for section in document.sections:
        items = document.items_in_section(section.name)
        done = sum(1 for item in items if item.checked)
        progress = f" [{done}/{len(items)}]" if items else ""
        line = document.line_map.section_starts.get(section.name, 0)
        print(f"  {section.name}{progress} (line {line})")
        for item in items:
            mark = "x" if item.checked else " "
            print(f"    [{mark}] {item.id.ordinal}. {item.text}")
    print()

    if document.code_blocks:
        print("Code blocks")
        print("-" * 40)
        for block in document.code_blocks:
            start, end = block.line_range
            print(f"  {block.section}: {block.language or 'plain'} (lines {start}-{end - 1})")
        print()

    if document.references:
        targets = sorted({ref.target_spec_id for ref in document.references})
        print(f"References: {', '.join(f'{t:03d}' for t in targets)}")
        print()

    if document.warnings:
        print("Warnings")
        print("-" * 40)
        for warning in document.warnings:
            print(f"  {warning.severity.value.upper()} line {warning.line}: {warning.message}")

    return 0
