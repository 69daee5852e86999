"""
Configuration for specledger.

Loads specledger.yaml. If no config file exists, returns defaults.

Example specledger.yaml:

    parser:
      metadata_scan_lines: 20   # lines before the first section searched for metadata
    diff:
      context_lines: 3          # unchanged lines shown around each hunk
    tracker:
      subscriber_buffer: 100    # per-subscriber queue size; oldest dropped when full
      lock_timeout: 10          # seconds to wait for a document or file lock
      history_limit: 1000       # change records kept for get_history()
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from specledger.lib import validate

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "specledger.yaml"


@dataclass
class ParserConfig:
    metadata_scan_lines: int = 20


@dataclass
class DiffConfig:
    context_lines: int = 3


@dataclass
class TrackerConfig:
    subscriber_buffer: int = 100
    lock_timeout: float = 10.0
    history_limit: int = 1000


@dataclass
class SpecLedgerConfig:
    """Top-level configuration from specledger.yaml."""
    parser: ParserConfig = field(default_factory=ParserConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)


def load_config(location: Optional[Path]) -> SpecLedgerConfig:
    """Load specledger.yaml and return SpecLedgerConfig.

    `location` may be the YAML file itself or a directory containing it. If it
    is None or nothing is found, returns defaults. Malformed YAML is logged and
    ignored; well-formed YAML that violates the schema raises ValidationError.
    """
    if location is None:
        return SpecLedgerConfig()

    config_path = Path(location)
    if config_path.is_dir():
        config_path = config_path / CONFIG_FILENAME
    if not config_path.exists():
        return SpecLedgerConfig()

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return SpecLedgerConfig()

    if not data:
        return SpecLedgerConfig()

    validate.validate(data, "config")

    return SpecLedgerConfig(
        parser=ParserConfig(**data.get("parser", {})),
        diff=DiffConfig(**data.get("diff", {})),
        tracker=TrackerConfig(**data.get("tracker", {})),
    )
