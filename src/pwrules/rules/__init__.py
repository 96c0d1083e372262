"""Rules domain: data model, parser, normalizer, equivalence checker."""

from pwrules.rules.equivalence import (
    FieldMismatch,
    are_equivalent,
    compare_rules,
    required_signature,
)
from pwrules.rules.model import (
    CharacterClass,
    ParsedRule,
    RuleEntry,
    format_classes,
)
from pwrules.rules.normalizer import (
    is_shortenable,
    normalize,
    normalize_allowed,
)
from pwrules.rules.parser import (
    PasswordRulesError,
    parse_password_rules,
)

__all__ = [
    "CharacterClass",
    "FieldMismatch",
    "ParsedRule",
    "PasswordRulesError",
    "RuleEntry",
    "are_equivalent",
    "compare_rules",
    "format_classes",
    "is_shortenable",
    "normalize",
    "normalize_allowed",
    "parse_password_rules",
    "required_signature",
]
