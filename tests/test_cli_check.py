"""Tests for `pwrules check` and `pwrules parse` CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from pwrules import __version__
from pwrules.cli import main

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    WriteQuirks = Callable[[str, dict[str, str]], Path]


class TestCliCheckSingleFile:
    def test_all_parsed(self, write_quirks: WriteQuirks) -> None:
        path = write_quirks("rules.json", {"a.com": "minlength: 8; required: upper"})
        result = CliRunner().invoke(main, ["check", str(path)])
        assert result.exit_code == 0, result.output
        assert "All password rules parsed successfully!" in result.output

    def test_shortening_suggestion(self, write_quirks: WriteQuirks) -> None:
        path = write_quirks(
            "rules.json", {"a.com": "minlength: 8; required: upper; allowed: upper, lower, digit"}
        )
        result = CliRunner().invoke(main, ["check", str(path)])
        assert result.exit_code == 0, result.output
        assert "a.com: the `allowed` property for this rule can be shortened to: " in (
            result.output
        )
        assert "lower, digit" in result.output

    def test_parse_failure_reported_not_fatal(self, write_quirks: WriteQuirks) -> None:
        path = write_quirks(
            "rules.json", {"broken.com": "required: uper", "ok.com": "minlength: 8"}
        )
        result = CliRunner().invoke(main, ["check", str(path)])
        assert result.exit_code == 0, result.output
        assert "broken.com:" in result.output
        assert "unknown character class 'uper'" in result.output
        assert "1 of 2 password rules failed to parse" in result.output
        assert "All password rules parsed successfully!" not in result.output

    def test_fail_on_parse_error(self, write_quirks: WriteQuirks) -> None:
        path = write_quirks("rules.json", {"broken.com": "required: uper"})
        result = CliRunner().invoke(main, ["check", str(path), "--fail-on-parse-error"])
        assert result.exit_code == 1

    def test_missing_file_exit_2(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["check", str(tmp_path / "missing.json")])
        assert result.exit_code == 2
        assert "Failed to read file" in result.output

    def test_bad_json_exit_2(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("{")
        result = CliRunner().invoke(main, ["check", str(path)])
        assert result.exit_code == 2
        assert "Failed to parse JSON" in result.output

    def test_json_output(self, write_quirks: WriteQuirks) -> None:
        path = write_quirks(
            "rules.json",
            {"a.com": "required: upper; allowed: upper, lower", "b.com": "required: uper"},
        )
        result = CliRunner().invoke(main, ["check", str(path), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["validation"]["failed_count"] == 1
        assert data["validation"]["suggestions"] == [
            {"site": "a.com", "allowed": ["upper", "lower"], "shortened": ["lower"]}
        ]
        assert data["validation"]["failures"][0]["site"] == "b.com"
        assert data["diff"] is None


class TestCliCheckDiff:
    def test_equivalent(self, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "minlength: 8; required: upper, lower"})
        secondary = write_quirks("b.json", {"a.com": "minlength: 8; required: lower, upper"})
        result = CliRunner().invoke(
            main, ["check", str(primary), "--diff-against", str(secondary)]
        )
        assert result.exit_code == 0, result.output
        assert "Diffing against the rules loaded from" in result.output
        assert "Checking a.com" in result.output
        assert "All rules were semantically equivalent!" in result.output

    def test_not_equivalent(self, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "allowed: lower, digit"})
        secondary = write_quirks("b.json", {"a.com": "allowed: digit, lower"})
        result = CliRunner().invoke(
            main, ["check", str(primary), "--diff-against", str(secondary)]
        )
        assert result.exit_code == 1
        assert "not semantically equivalent" in result.output
        assert "allowed differs" in result.output

    def test_count_mismatch(self, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "minlength: 8", "b.com": "minlength: 8"})
        secondary = write_quirks("b.json", {"a.com": "minlength: 8"})
        result = CliRunner().invoke(
            main, ["check", str(primary), "--diff-against", str(secondary)]
        )
        assert result.exit_code == 1
        assert "number of quirks is different" in result.output
        assert "Checking" not in result.output

    def test_secondary_parse_failure(self, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "required: upper"})
        secondary = write_quirks("b.json", {"a.com": "required: uper"})
        result = CliRunner().invoke(
            main, ["check", str(primary), "--diff-against", str(secondary)]
        )
        assert result.exit_code == 1
        assert "unknown character class 'uper'" in result.output
        assert "failed to parse" in result.output

    def test_diff_not_attempted_after_parse_failure(self, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "required: uper"})
        secondary = write_quirks("b.json", {"a.com": "required: upper", "b.com": "minlength: 1"})
        result = CliRunner().invoke(
            main, ["check", str(primary), "--diff-against", str(secondary)]
        )
        assert result.exit_code == 0, result.output
        assert "Diffing against" not in result.output

    def test_config_allowed_as_set(self, tmp_path: Path, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "allowed: lower, digit"})
        secondary = write_quirks("b.json", {"a.com": "allowed: digit, lower"})
        config = tmp_path / "pwrules.yml"
        config.write_text("compare_allowed_as_set: true\n")
        result = CliRunner().invoke(
            main,
            ["check", str(primary), "--diff-against", str(secondary), "--config", str(config)],
        )
        assert result.exit_code == 0, result.output
        assert "All rules were semantically equivalent!" in result.output

    def test_bad_config_exit_2(self, tmp_path: Path, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "minlength: 8"})
        result = CliRunner().invoke(
            main, ["check", str(primary), "--config", str(tmp_path / "missing.yml")]
        )
        assert result.exit_code == 2
        assert "Config file not found" in result.output

    def test_json_mismatch(self, write_quirks: WriteQuirks) -> None:
        primary = write_quirks("a.json", {"a.com": "minlength: 8"})
        secondary = write_quirks("b.json", {"a.com": "minlength: 9"})
        result = CliRunner().invoke(
            main, ["check", str(primary), "--diff-against", str(secondary), "--json"]
        )
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["diff"]["equivalent"] is False
        assert data["diff"]["mismatch"] == {
            "site": "a.com",
            "field": "min_length",
            "left": "8",
            "right": "9",
        }


class TestCliParse:
    def test_parse_prints_canonical_form(self) -> None:
        result = CliRunner().invoke(main, ["parse", "required: upper, upper; minlength: 8"])
        assert result.exit_code == 0, result.output
        assert "minlength: 8; required: upper;" in result.output

    def test_parse_suggests_shortening(self) -> None:
        result = CliRunner().invoke(main, ["parse", "required: upper; allowed: upper, lower"])
        assert result.exit_code == 0, result.output
        assert "allowed can be shortened to: lower" in result.output

    def test_parse_error(self) -> None:
        result = CliRunner().invoke(main, ["parse", "required: uper"])
        assert result.exit_code == 1
        assert "error: unknown character class 'uper'" in result.output

    def test_parse_lenient(self) -> None:
        result = CliRunner().invoke(main, ["parse", "--lenient", "required: upper, emoji"])
        assert result.exit_code == 0, result.output
        assert "required: upper;" in result.output

    def test_parse_json(self) -> None:
        result = CliRunner().invoke(main, ["parse", "--json", "maxlength: 20"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["max_length"] == 20


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
