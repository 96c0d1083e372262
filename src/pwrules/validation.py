"""Check orchestrator: bulk-validate a quirks file and diff it against another."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pwrules.infrastructure.config import CheckConfig
from pwrules.infrastructure.loader import load_rules_map
from pwrules.rules.equivalence import FieldMismatch, compare_rules
from pwrules.rules.normalizer import normalize, normalize_allowed
from pwrules.rules.parser import PasswordRulesError, parse_password_rules

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from pwrules.rules.model import CharacterClass, ParsedRule, RuleEntry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DiffError(Exception):
    """Raised when two quirks files cannot be diffed at all.

    ``failure`` is set when the cause is a rule that does not parse, so the
    caller can render its diagnostic.
    """

    def __init__(self, message: str, *, failure: ParseFailure | None = None) -> None:
        super().__init__(message)
        self.failure = failure


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Suggestion:
    """A rule whose ``allowed`` list names classes already required."""

    site: str
    rule: ParsedRule
    shortened: tuple[CharacterClass, ...]


@dataclass(frozen=True)
class ParseFailure:
    """A rule string that failed to parse."""

    site: str
    raw_rule: str
    error: PasswordRulesError

    def render(self) -> str:
        return self.error.render(self.raw_rule)


@dataclass
class ValidationResult:
    """Result of bulk-validating one quirks file."""

    sites_checked: int = 0
    suggestions: list[Suggestion] = field(default_factory=list)
    failures: list[ParseFailure] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass(frozen=True)
class SiteMismatch:
    """The first site whose rules were not equivalent."""

    site: str
    mismatch: FieldMismatch


@dataclass
class DiffResult:
    """Result of diffing two quirks files."""

    compared: list[str] = field(default_factory=list)
    mismatch: SiteMismatch | None = None

    @property
    def equivalent(self) -> bool:
        return self.mismatch is None


@dataclass
class CheckReport:
    """Everything a ``check`` run produced, in pipeline order."""

    primary_path: Path
    validation: ValidationResult
    secondary_path: Path | None = None
    diff: DiffResult | None = None
    diff_error: DiffError | None = None

    @property
    def diff_failed(self) -> bool:
        """True if a requested diff could not run or found a difference."""
        if self.diff_error is not None:
            return True
        return self.diff is not None and not self.diff.equivalent


# ---------------------------------------------------------------------------
# Bulk validation
# ---------------------------------------------------------------------------


def validate_rules(entries: Mapping[str, RuleEntry]) -> ValidationResult:
    """Parse every rule and collect shortening suggestions and parse failures.

    A parse failure is recorded and the loop moves on, so a single run
    reports every broken rule in the file.
    """
    result = ValidationResult()
    for site, entry in entries.items():
        result.sites_checked += 1
        try:
            rule = parse_password_rules(entry.raw_rule, strict=True)
        except PasswordRulesError as exc:
            logger.debug("Rule for %s failed to parse: %s", site, exc)
            result.failures.append(ParseFailure(site=site, raw_rule=entry.raw_rule, error=exc))
            continue

        shortened = normalize_allowed(rule)
        if shortened != rule.allowed:
            result.suggestions.append(Suggestion(site=site, rule=rule, shortened=shortened))

    return result


# ---------------------------------------------------------------------------
# Diff
# ---------------------------------------------------------------------------


def _parse_for_diff(entry: RuleEntry, *, which: str) -> ParsedRule:
    try:
        return parse_password_rules(entry.raw_rule, strict=True)
    except PasswordRulesError as exc:
        failure = ParseFailure(site=entry.site, raw_rule=entry.raw_rule, error=exc)
        msg = f"The password rule for {entry.site} in the {which} quirks failed to parse"
        raise DiffError(msg, failure=failure) from exc


def diff_rules(
    primary: Mapping[str, RuleEntry],
    secondary: Mapping[str, RuleEntry],
    *,
    allowed_as_set: bool = False,
) -> DiffResult:
    """Assert that every site's rule is equivalent in both mappings.

    Sites are visited in *primary* order.  Both rules of a site are
    normalized before being compared.  The first inequivalent site ends the
    diff and is reported in :attr:`DiffResult.mismatch`.

    Raises:
        DiffError: If the mappings hold a different number of sites, a site
            is missing from *secondary*, or a rule on either side does not
            parse.  No comparison result is produced in these cases.
    """
    if len(primary) != len(secondary):
        msg = (
            "The number of quirks is different between the two files being compared "
            f"({len(primary)} vs {len(secondary)}); they must have the same number of rules"
        )
        raise DiffError(msg)

    result = DiffResult()
    for site, entry in primary.items():
        other_entry = secondary.get(site)
        if other_entry is None:
            msg = f"The quirks being diffed against didn't contain an entry for {site}"
            raise DiffError(msg)

        rule = normalize(_parse_for_diff(entry, which="primary"))
        other_rule = normalize(_parse_for_diff(other_entry, which="diffed-against"))

        logger.debug("Checking %s", site)
        result.compared.append(site)

        mismatch = compare_rules(rule, other_rule, allowed_as_set=allowed_as_set)
        if mismatch is not None:
            result.mismatch = SiteMismatch(site=site, mismatch=mismatch)
            break

    return result


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def check_files(
    primary_path: Path,
    secondary_path: Path | None = None,
    *,
    config: CheckConfig | None = None,
) -> CheckReport:
    """Load, validate and optionally diff quirks files.

    Both files are loaded before anything is parsed.  The diff only runs
    when every rule of the primary file parsed successfully.

    Raises:
        RulesFileError: If either file cannot be loaded.
    """
    config = config or CheckConfig()

    primary = load_rules_map(primary_path, property_name=config.property_name)
    secondary = (
        load_rules_map(secondary_path, property_name=config.property_name)
        if secondary_path is not None
        else None
    )

    report = CheckReport(
        primary_path=primary_path,
        secondary_path=secondary_path,
        validation=validate_rules(primary),
    )
    if not report.validation.ok or secondary is None:
        return report

    try:
        report.diff = diff_rules(
            primary, secondary, allowed_as_set=config.compare_allowed_as_set
        )
    except DiffError as exc:
        report.diff_error = exc

    return report
