"""Load quirks files: JSON objects mapping site names to password rule strings."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pwrules.rules.model import RuleEntry

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PROPERTY_NAME = "password-rules"


class RulesFileError(Exception):
    """Raised when a quirks file cannot be read or has the wrong shape."""


def load_rules_map(
    path: Path,
    *,
    property_name: str = DEFAULT_PROPERTY_NAME,
) -> dict[str, RuleEntry]:
    """Load a quirks file into an ordered ``site -> RuleEntry`` mapping.

    Expected layout::

        {
            "example.com": {"password-rules": "minlength: 8; required: upper;"},
            "example.org": {"password-rules": "allowed: ascii-printable;"}
        }

    Sites keep the order they have in the file.  Keys other than
    *property_name* inside a site object are ignored.

    Raises:
        RulesFileError: If the file is unreadable, not valid JSON, or any
            entry lacks a string *property_name* value.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read file at {path}: {exc}"
        raise RulesFileError(msg) from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        msg = f"Failed to parse JSON loaded from {path}: {exc}"
        raise RulesFileError(msg) from exc

    if not isinstance(data, dict):
        msg = f"Failed to parse JSON loaded from {path}: top level must be an object"
        raise RulesFileError(msg)

    entries: dict[str, RuleEntry] = {}
    for site, quirk in data.items():
        raw_rule = quirk.get(property_name) if isinstance(quirk, dict) else None
        if not isinstance(raw_rule, str):
            msg = (
                f"Failed to parse JSON loaded from {path}: "
                f"entry '{site}' must be an object with a string '{property_name}' field"
            )
            raise RulesFileError(msg)
        entries[site] = RuleEntry(site=site, raw_rule=raw_rule)

    logger.debug("Loaded %d rules from %s", len(entries), path)
    return entries
