"""Tests for pwrules.report — Rich rendering and JSON serialization."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console

from pwrules.report import render_diff, render_report, render_validation, report_to_dict
from pwrules.rules.equivalence import FieldMismatch
from pwrules.rules.model import CharacterClass, RuleEntry
from pwrules.validation import (
    CheckReport,
    DiffError,
    DiffResult,
    SiteMismatch,
    ValidationResult,
    validate_rules,
)

LOWER = CharacterClass.named("lower")
DIGIT = CharacterClass.named("digit")


def _console() -> tuple[Console, StringIO]:
    output = StringIO()
    return Console(file=output, force_terminal=False, width=200), output


def _validate(rules: dict[str, str]) -> ValidationResult:
    return validate_rules({site: RuleEntry(site=site, raw_rule=raw) for site, raw in rules.items()})


class TestRenderValidation:
    def test_success(self) -> None:
        console, output = _console()
        render_validation(_validate({"a.com": "minlength: 8"}), console)
        assert "All password rules parsed successfully!" in output.getvalue()

    def test_suggestion_lists_shortened_classes(self) -> None:
        console, output = _console()
        render_validation(_validate({"a.com": "required: upper; allowed: upper, [-_]"}), console)
        text = output.getvalue()
        assert "a.com: the `allowed` property for this rule can be shortened to: [_-]" in text

    def test_suggestion_when_allowed_fully_redundant(self) -> None:
        console, output = _console()
        render_validation(_validate({"a.com": "required: upper; allowed: upper"}), console)
        assert "can be removed" in output.getvalue()

    def test_failures(self) -> None:
        console, output = _console()
        render_validation(
            _validate({"a.com": "required: uper", "b.com": "minlength: 4"}), console
        )
        text = output.getvalue()
        assert "a.com:" in text
        assert "1 | required: uper" in text
        assert "^^^^" in text
        assert "1 of 2 password rules failed to parse" in text


class TestRenderDiff:
    def test_equivalent(self) -> None:
        console, output = _console()
        render_diff(DiffResult(compared=["a.com", "b.com"]), console)
        text = output.getvalue()
        assert "Checking a.com" in text
        assert "Checking b.com" in text
        assert "All rules were semantically equivalent!" in text

    def test_mismatch(self) -> None:
        console, output = _console()
        diff = DiffResult(
            compared=["a.com"],
            mismatch=SiteMismatch(
                site="a.com",
                mismatch=FieldMismatch(field="allowed", left=(LOWER, DIGIT), right=(DIGIT, LOWER)),
            ),
        )
        render_diff(diff, console)
        text = output.getvalue()
        assert "a.com" in text
        assert "[lower, digit]" in text
        assert "[digit, lower]" in text
        assert "semantically equivalent" not in text


class TestRenderReport:
    def test_no_diff_section_without_secondary(self) -> None:
        console, output = _console()
        report = CheckReport(primary_path=Path("a.json"), validation=_validate({}))
        render_report(report, console)
        assert "Diffing against" not in output.getvalue()

    def test_diff_section(self) -> None:
        console, output = _console()
        report = CheckReport(
            primary_path=Path("a.json"),
            secondary_path=Path("b.json"),
            validation=_validate({"a.com": "minlength: 8"}),
            diff=DiffResult(compared=["a.com"]),
        )
        render_report(report, console)
        text = output.getvalue()
        assert "Diffing against the rules loaded from b.json" in text
        assert "All rules were semantically equivalent!" in text


class TestReportToDict:
    def test_validation_only(self) -> None:
        report = CheckReport(
            primary_path=Path("a.json"),
            validation=_validate({"a.com": "required: uper"}),
        )
        data = report_to_dict(report)
        assert data["file"] == "a.json"
        assert data["diff"] is None
        validation = data["validation"]
        assert isinstance(validation, dict)
        assert validation["ok"] is False
        assert validation["failures"] == [
            {
                "site": "a.com",
                "raw_rule": "required: uper",
                "message": "unknown character class 'uper'",
                "position": 10,
            }
        ]

    def test_diff_error(self) -> None:
        report = CheckReport(
            primary_path=Path("a.json"),
            secondary_path=Path("b.json"),
            validation=_validate({"a.com": "minlength: 8"}),
            diff_error=DiffError("counts differ"),
        )
        diff = report_to_dict(report)["diff"]
        assert isinstance(diff, dict)
        assert diff["ran"] is False
        assert diff["equivalent"] is False
        assert diff["error"] == {"message": "counts differ", "parse_failure": None}
