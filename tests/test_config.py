"""Tests for specledger.lib.config module."""

import pytest

from specledger.lib.config import CONFIG_FILENAME, SpecLedgerConfig, load_config
from specledger.lib.validate import ValidationError


class TestLoadConfig:
    """Tests for load_config()."""

    def test_returns_defaults_when_no_location(self):
        assert load_config(None) == SpecLedgerConfig()

    def test_returns_defaults_when_file_missing(self, tmp_path):
        assert load_config(tmp_path) == SpecLedgerConfig()

    def test_loads_from_directory(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("diff:\n  context_lines: 5\n")
        config = load_config(tmp_path)
        assert config.diff.context_lines == 5
        # Other sections keep defaults
        assert config.parser.metadata_scan_lines == 20
        assert config.tracker.subscriber_buffer == 100

    def test_loads_from_file_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(
            "parser:\n"
            "  metadata_scan_lines: 40\n"
            "tracker:\n"
            "  lock_timeout: 2.5\n"
            "  history_limit: 50\n"
        )
        config = load_config(path)
        assert config.parser.metadata_scan_lines == 40
        assert config.tracker.lock_timeout == 2.5
        assert config.tracker.history_limit == 50

    def test_empty_file(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert load_config(tmp_path) == SpecLedgerConfig()

    def test_handles_invalid_yaml(self, tmp_path, caplog):
        (tmp_path / CONFIG_FILENAME).write_text("parser: [unclosed\n")
        assert load_config(tmp_path) == SpecLedgerConfig()
        assert "Failed to parse" in caplog.text

    def test_unknown_key_is_rejected(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("tracker:\n  buffer: 10\n")
        with pytest.raises(ValidationError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.schema_name == "config"

    def test_wrong_type_is_rejected(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("diff:\n  context_lines: lots\n")
        with pytest.raises(ValidationError) as exc_info:
            load_config(tmp_path)
        assert exc_info.value.path == "diff.context_lines"
