"""Render check results with Rich, or serialize them for ``--json``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from pwrules.rules.model import format_classes
from pwrules.rules.normalizer import normalize_allowed

if TYPE_CHECKING:
    from rich.console import Console

    from pwrules.rules.model import ParsedRule
    from pwrules.validation import (
        CheckReport,
        DiffError,
        DiffResult,
        ParseFailure,
        Suggestion,
        ValidationResult,
    )


# ---------------------------------------------------------------------------
# Rich rendering
# ---------------------------------------------------------------------------


def _render_suggestion(suggestion: Suggestion, console: Console) -> None:
    site = escape(suggestion.site)
    if suggestion.shortened:
        shortened = escape(format_classes(suggestion.shortened))
        console.print(
            f"[yellow]{site}[/yellow]: the `allowed` property for this rule "
            f"can be shortened to: {shortened}"
        )
    else:
        console.print(
            f"[yellow]{site}[/yellow]: the `allowed` property for this rule can be removed"
        )


def render_parse_failure(failure: ParseFailure, console: Console) -> None:
    """Print a site name followed by its position-annotated parse diagnostic."""
    console.print(f"[bold red]{escape(failure.site)}[/bold red]:")
    console.print()
    console.print(failure.render(), markup=False, highlight=False, emoji=False)
    console.print()


def render_validation(result: ValidationResult, console: Console) -> None:
    """Print suggestions, parse diagnostics, and the validation summary."""
    for suggestion in result.suggestions:
        _render_suggestion(suggestion, console)

    for failure in result.failures:
        render_parse_failure(failure, console)

    if result.ok:
        console.print("[green]All password rules parsed successfully![/green]")
    else:
        console.print(
            f"[red]{result.failed_count} of {result.sites_checked} password rules "
            "failed to parse[/red]"
        )


def render_diff(diff: DiffResult, console: Console) -> None:
    """Print the sites compared and the outcome of the diff."""
    for site in diff.compared:
        console.print(f"Checking {escape(site)}")

    if diff.mismatch is None:
        console.print("[green]All rules were semantically equivalent![/green]")
        return

    mismatch = diff.mismatch.mismatch
    console.print()
    console.print(f"[bold red]✗ {escape(diff.mismatch.site)}[/bold red]")
    console.print(f"  {escape(mismatch.field)}:")
    console.print(f"    [dim]-[/dim] {escape(mismatch.left_text)}")
    console.print(f"    [bold]+[/bold] {escape(mismatch.right_text)}")


def render_report(report: CheckReport, console: Console) -> None:
    """Render a full check run: validation, then the diff if one ran."""
    render_validation(report.validation, console)

    if report.secondary_path is None or not report.validation.ok:
        return

    console.print(f"Diffing against the rules loaded from {escape(str(report.secondary_path))}")
    if report.diff is not None:
        render_diff(report.diff, console)
    if report.diff_error is not None and report.diff_error.failure is not None:
        render_parse_failure(report.diff_error.failure, console)


def render_rule(rule: ParsedRule, console: Console) -> None:
    """Print one parsed rule in canonical form with its normalized ``allowed``."""
    console.print(escape(rule.to_rule_string()) or "(empty rule)")
    shortened = normalize_allowed(rule)
    if shortened != rule.allowed:
        console.print(
            f"[yellow]allowed can be shortened to:[/yellow] "
            f"{escape(format_classes(shortened)) or '(nothing)'}"
        )


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _failure_to_dict(failure: ParseFailure) -> dict[str, object]:
    return {
        "site": failure.site,
        "raw_rule": failure.raw_rule,
        "message": failure.error.message,
        "position": failure.error.position,
    }


def _diff_error_to_dict(error: DiffError) -> dict[str, object]:
    return {
        "message": str(error),
        "parse_failure": _failure_to_dict(error.failure) if error.failure else None,
    }


def report_to_dict(report: CheckReport) -> dict[str, object]:
    """Serialize a CheckReport to a JSON-compatible dict."""
    validation = report.validation
    output: dict[str, object] = {
        "file": str(report.primary_path),
        "validation": {
            "ok": validation.ok,
            "sites_checked": validation.sites_checked,
            "failed_count": validation.failed_count,
            "suggestions": [
                {
                    "site": s.site,
                    "allowed": [str(cls) for cls in s.rule.allowed],
                    "shortened": [str(cls) for cls in s.shortened],
                }
                for s in validation.suggestions
            ],
            "failures": [_failure_to_dict(f) for f in validation.failures],
        },
        "diff": None,
    }

    if report.secondary_path is not None:
        diff = report.diff
        output["diff"] = {
            "against": str(report.secondary_path),
            "ran": diff is not None,
            "equivalent": diff.equivalent if diff is not None else False,
            "compared": list(diff.compared) if diff is not None else [],
            "mismatch": (
                {"site": diff.mismatch.site, **diff.mismatch.mismatch.to_dict()}
                if diff is not None and diff.mismatch is not None
                else None
            ),
            "error": _diff_error_to_dict(report.diff_error) if report.diff_error else None,
        }

    return output
