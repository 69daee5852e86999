#!/usr/bin/env python3
"""specledger CLI entrypoint."""

import sys
import argparse
import logging
from pathlib import Path

from specledger.lib.config import load_config, SpecLedgerConfig
from specledger.lib.validate import ValidationError
from specledger.commands import show as cmd_show_module
from specledger.commands import check as cmd_check_module
from specledger.commands import stats as cmd_stats_module
from specledger.commands import diff as cmd_diff_module


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return number


def get_config(args) -> SpecLedgerConfig:
    """Load specledger.yaml from --config or the current directory."""
    location = Path(args.config) if args.config else Path.cwd()
    try:
        return load_config(location)
    except ValidationError as e:
        print(f"ERROR: Invalid config: {e}")
        sys.exit(2)


def cmd_show(args):
    return cmd_show_module.cmd_show(args, get_config(args))


def cmd_check(args):
    return cmd_check_module.cmd_check(args, get_config(args))


def cmd_stats(args):
    return cmd_stats_module.cmd_stats(args, get_config(args))


def cmd_diff(args):
    return cmd_diff_module.cmd_diff(args, get_config(args))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='specledger', description='Parse, track and diff spec documents')
    parser.add_argument('--config', '-c', help='Path to specledger.yaml (or a directory containing it)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # specledger show
    p_show = subparsers.add_parser('show', help='Show the parsed structure of a spec')
    p_show.add_argument('file', help='Spec file')
    p_show.add_argument('--json', action='store_true', help='Emit the parsed document as JSON')
    p_show.set_defaults(func=cmd_show)

    # specledger check
    p_check = subparsers.add_parser('check', help='Check, uncheck or toggle a checklist item')
    p_check.add_argument('file', help='Spec file')
    p_check.add_argument('id', help='Item id: "Section:N" or "<spec>:Section:N"')
    mode = p_check.add_mutually_exclusive_group()
    mode.add_argument('--uncheck', action='store_true', help='Uncheck instead of check')
    mode.add_argument('--toggle', action='store_true', help='Flip the current state')
    p_check.set_defaults(func=cmd_check)

    # specledger stats
    p_stats = subparsers.add_parser('stats', help='Show checklist completion')
    p_stats.add_argument('file', help='Spec file')
    p_stats.set_defaults(func=cmd_stats)

    # specledger diff
    p_diff = subparsers.add_parser('diff', help='Structural diff of two spec versions')
    p_diff.add_argument('old', help='Old version')
    p_diff.add_argument('new', help='New version')
    p_diff.add_argument('--json', action='store_true', help='Emit the diff as JSON')
    p_diff.add_argument('--context', type=non_negative_int, help='Context lines around each hunk')
    p_diff.add_argument('--no-color', action='store_true', help='Plain unified output')
    p_diff.set_defaults(func=cmd_diff)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
