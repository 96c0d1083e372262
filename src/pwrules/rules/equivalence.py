"""Semantic equivalence of two parsed password rules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, cast

from pwrules.rules.model import format_classes

if TYPE_CHECKING:
    from pwrules.rules.model import CharacterClass, ParsedRule

# Order in which fields are checked; the first difference is reported.
COMPARED_FIELDS: tuple[str, ...] = (
    "min_length",
    "max_length",
    "max_consecutive",
    "allowed",
    "required",
)


@dataclass(frozen=True)
class FieldMismatch:
    """The first field on which two rules disagree."""

    field: str  # one of COMPARED_FIELDS
    left: object
    right: object

    @property
    def left_text(self) -> str:
        return _format_value(self.field, self.left)

    @property
    def right_text(self) -> str:
        return _format_value(self.field, self.right)

    def describe(self) -> str:
        """Return a one-line human-readable explanation."""
        return f"{self.field} differs: {self.left_text} != {self.right_text}"

    def to_dict(self) -> dict[str, object]:
        return {"field": self.field, "left": self.left_text, "right": self.right_text}


def _format_value(field: str, value: object) -> str:
    if value is None:
        return "(none)"
    if field == "required":
        groups = cast("tuple[tuple[CharacterClass, ...], ...]", value)
        return " & ".join(f"({format_classes(group)})" for group in groups) or "(none)"
    if field == "allowed":
        classes = cast("tuple[CharacterClass, ...]", value)
        return f"[{format_classes(classes)}]" if classes else "(none)"
    return str(value)


def required_signature(
    rule: ParsedRule,
) -> frozenset[frozenset[CharacterClass]]:
    """Return ``rule.required`` as a set of class sets.

    Neither the order of the groups nor the order of classes inside a group
    carries meaning, so two rules whose signatures are equal require the same
    thing.
    """
    return frozenset(frozenset(group) for group in rule.required)


def compare_rules(
    a: ParsedRule,
    b: ParsedRule,
    *,
    allowed_as_set: bool = False,
) -> FieldMismatch | None:
    """Compare two rules field by field and return the first mismatch.

    Both rules must already have gone through
    :func:`pwrules.rules.normalizer.normalize`; each rule's ``allowed`` is
    only meaningful relative to its own ``required`` groups, so comparing
    unnormalized rules reports differences that are not real.

    ``allowed`` is compared as an ordered sequence unless *allowed_as_set*
    is given.  ``required`` is always compared as a set of sets.

    Returns:
        ``None`` when the rules are equivalent, otherwise a
        :class:`FieldMismatch` naming the first differing field.
    """
    for name in ("min_length", "max_length", "max_consecutive"):
        left = getattr(a, name)
        right = getattr(b, name)
        if left != right:
            return FieldMismatch(field=name, left=left, right=right)

    if allowed_as_set:
        allowed_equal = frozenset(a.allowed) == frozenset(b.allowed)
    else:
        allowed_equal = a.allowed == b.allowed
    if not allowed_equal:
        return FieldMismatch(field="allowed", left=a.allowed, right=b.allowed)

    if required_signature(a) != required_signature(b):
        return FieldMismatch(field="required", left=a.required, right=b.required)

    return None


def are_equivalent(a: ParsedRule, b: ParsedRule, *, allowed_as_set: bool = False) -> bool:
    """Return True if two normalized rules denote the same password policy."""
    return compare_rules(a, b, allowed_as_set=allowed_as_set) is None
