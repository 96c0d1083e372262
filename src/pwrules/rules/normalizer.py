"""Strip ``allowed`` classes that a rule's ``required`` groups already imply."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pwrules.rules.model import CharacterClass, ParsedRule


def normalize_allowed(rule: ParsedRule) -> tuple[CharacterClass, ...]:
    """Return ``rule.allowed`` without the classes named in any required group.

    The result keeps the original relative order (it is shown to users as
    the shortened ``allowed`` value) and the input rule is left untouched.
    Re-applying the filter to its own output against the same ``required``
    changes nothing.
    """
    required = rule.required_classes()
    return tuple(cls for cls in rule.allowed if cls not in required)


def normalize(rule: ParsedRule) -> ParsedRule:
    """Return a copy of *rule* whose ``allowed`` has been normalized."""
    return rule.with_allowed(normalize_allowed(rule))


def is_shortenable(rule: ParsedRule) -> bool:
    """Return True if normalizing would drop at least one ``allowed`` class."""
    return normalize_allowed(rule) != rule.allowed
