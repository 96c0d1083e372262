"""pwrules CLI entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

from pwrules import __version__


@click.group()
@click.version_option(version=__version__, prog_name="pwrules")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """pwrules - validate and diff password rule quirk files."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("pwrules").setLevel(level)


@main.command()
@click.argument(
    "file_name",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--diff-against",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to a password rules JSON file to diff against.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./pwrules.yml if present).",
)
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
@click.option(
    "--fail-on-parse-error",
    is_flag=True,
    default=False,
    help="Exit 1 if any rule fails to parse.",
)
def check(
    file_name: Path,
    *,
    diff_against: Path | None,
    config_path: Path | None,
    as_json: bool,
    fail_on_parse_error: bool,
) -> None:
    """Validate every rule in FILE_NAME and optionally diff against another file.

    FILE_NAME is a JSON object mapping site names to objects holding a
    ``password-rules`` string.  Rules whose ``allowed`` property repeats
    required classes are reported as shortenable.

    Exit codes: 0 = validated (parse failures are reported, not fatal, unless
    --fail-on-parse-error), 1 = diff failed or rules not equivalent,
    2 = file or config error.
    """
    from pwrules.infrastructure.config import ConfigError, load_config
    from pwrules.infrastructure.loader import RulesFileError
    from pwrules.report import render_report, report_to_dict
    from pwrules.validation import check_files

    try:
        config = load_config(config_path)
        report = check_files(file_name, diff_against, config=config)
    except (ConfigError, RulesFileError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(report_to_dict(report), ensure_ascii=False, indent=2))
    else:
        from rich.console import Console

        console = Console(soft_wrap=True)
        render_report(report, console)

    if report.diff_error is not None:
        click.echo(f"Error: {report.diff_error}", err=True)
        sys.exit(1)

    if report.diff is not None and report.diff.mismatch is not None:
        site_mismatch = report.diff.mismatch
        click.echo(
            f"Error: The rules for {site_mismatch.site} are not semantically equivalent "
            f"({site_mismatch.mismatch.describe()})",
            err=True,
        )
        sys.exit(1)

    if fail_on_parse_error and not report.validation.ok:
        sys.exit(1)


@main.command()
@click.argument("rule")
@click.option(
    "--lenient",
    is_flag=True,
    default=False,
    help="Skip unknown properties and classes instead of failing.",
)
@click.option("--json", "as_json", is_flag=True, help="JSON output.")
def parse(rule: str, *, lenient: bool, as_json: bool) -> None:
    """Parse a single RULE string and print its canonical form."""
    from rich.console import Console

    from pwrules.report import render_rule
    from pwrules.rules.parser import PasswordRulesError, parse_password_rules

    try:
        parsed = parse_password_rules(rule, strict=not lenient)
    except PasswordRulesError as exc:
        click.echo(exc.render(rule), err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(parsed.to_dict(), ensure_ascii=False, indent=2))
    else:
        render_rule(parsed, Console(soft_wrap=True))
