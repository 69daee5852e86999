"""Tests for the specledger CLI and its commands."""

import json
import pytest

from specledger.cli import main


SPEC = """# Spec 1: X

- **Status**: In Progress

## Acceptance Criteria

- [ ] a
- [x] b

## Testing

See spec:002.
"""


@pytest.fixture
def spec_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "001-x.md"
    path.write_text(SPEC)
    return path


class TestShow:
    """Tests for specledger show."""

    def test_text_output(self, spec_file, capsys):
        assert main(["show", str(spec_file)]) == 0
        out = capsys.readouterr().out
        assert "Spec 1: X" in out
        assert "In Progress" in out
        assert "Acceptance Criteria [1/2]" in out
        assert "[x] 2. b" in out
        assert "References: 002" in out

    def test_json_output(self, spec_file, capsys):
        assert main(["show", "--json", str(spec_file)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["metadata"]["spec_id"] == 1
        assert len(data["checklist_items"]) == 2

    def test_missing_file(self, tmp_path, capsys):
        assert main(["show", str(tmp_path / "missing.md")]) == 2
        assert "File not found" in capsys.readouterr().out

    def test_parse_error(self, tmp_path, capsys):
        path = tmp_path / "bad.md"
        path.write_text("## No title\n")
        assert main(["show", str(path)]) == 1
        assert "Missing document title" in capsys.readouterr().out


class TestCheck:
    """Tests for specledger check."""

    def test_check_by_section_and_ordinal(self, spec_file, capsys):
        assert main(["check", str(spec_file), "Acceptance Criteria:1"]) == 0
        assert "- [x] a\n- [x] b\n" in spec_file.read_text()
        assert "[x] 1:Acceptance Criteria:1: a" in capsys.readouterr().out

    def test_uncheck_by_full_id(self, spec_file):
        assert main(["check", str(spec_file), "1:Acceptance Criteria:2", "--uncheck"]) == 0
        assert "- [ ] a\n- [ ] b\n" in spec_file.read_text()

    def test_toggle(self, spec_file):
        assert main(["check", str(spec_file), "Acceptance Criteria:2", "--toggle"]) == 0
        assert main(["check", str(spec_file), "Acceptance Criteria:2", "--toggle"]) == 0
        assert spec_file.read_text() == SPEC

    def test_invalid_id(self, spec_file, capsys):
        assert main(["check", str(spec_file), "nonsense"]) == 2
        assert "Invalid item id" in capsys.readouterr().out

    def test_unknown_item(self, spec_file, capsys):
        assert main(["check", str(spec_file), "Acceptance Criteria:7"]) == 1
        assert "Checkbox not found" in capsys.readouterr().out
        assert spec_file.read_text() == SPEC

    def test_wrong_spec(self, spec_file, capsys):
        assert main(["check", str(spec_file), "5:Acceptance Criteria:1"]) == 1
        assert "is spec 1, not 5" in capsys.readouterr().out


class TestStats:
    """Tests for specledger stats."""

    def test_stats(self, spec_file, capsys):
        assert main(["stats", str(spec_file)]) == 0
        out = capsys.readouterr().out
        assert "Spec 1: 1/2 complete (50%)" in out
        assert "Acceptance Criteria" in out


class TestDiff:
    """Tests for specledger diff."""

    @pytest.fixture
    def new_file(self, tmp_path):
        path = tmp_path / "001-x-new.md"
        path.write_text(SPEC.replace("- [ ] a", "- [x] a").replace("## Testing", "## Notes"))
        return path

    def test_plain(self, spec_file, new_file, capsys):
        assert main(["diff", "--no-color", str(spec_file), str(new_file)]) == 0
        out = capsys.readouterr().out
        assert "- section: Testing" in out
        assert "+ section: Notes" in out
        assert "~ [Acceptance Criteria] a: [ ] -> [x]" in out
        assert "1 addition, 1 removal, 2 modifications" in out

    def test_json(self, spec_file, new_file, capsys):
        assert main(["diff", "--json", str(spec_file), str(new_file)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["stats"]["sections_added"] == 1
        assert data["stats"]["items_state_changed"] == 1

    def test_identical(self, spec_file, capsys):
        assert main(["diff", str(spec_file), str(spec_file)]) == 0
        assert "No changes" in capsys.readouterr().out

    def test_context_option(self, spec_file, new_file, capsys):
        assert main(["diff", "--no-color", "--context", "0", str(spec_file), str(new_file)]) == 0
        out = capsys.readouterr().out
        assert " - [x] b" not in out

    def test_negative_context_is_usage_error(self, spec_file, new_file, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["diff", "--context", "-1", str(spec_file), str(new_file)])
        assert exc_info.value.code == 2
        assert "must be >= 0" in capsys.readouterr().err


class TestConfigOption:
    """Tests for --config handling."""

    def test_invalid_config_exits_2(self, spec_file, tmp_path, capsys):
        config = tmp_path / "specledger.yaml"
        config.write_text("tracker:\n  lock_timeout: -1\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(config), "stats", str(spec_file)])
        assert exc_info.value.code == 2
        assert "Invalid config" in capsys.readouterr().out

    def test_config_from_working_directory(self, spec_file, tmp_path, capsys):
        (tmp_path / "specledger.yaml").write_text("diff:\n  context_lines: 0\n")
        new_file = tmp_path / "new.md"
        new_file.write_text(SPEC.replace("- [ ] a", "- [x] a"))
        assert main(["diff", "--no-color", str(spec_file), str(new_file)]) == 0
        assert " - [x] b" not in capsys.readouterr().out
