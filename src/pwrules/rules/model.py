"""Data model for password rules: character classes, parsed rules, file entries."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

NAMED_CLASSES: tuple[str, ...] = (
    "upper",
    "lower",
    "digit",
    "special",
    "ascii-printable",
    "unicode",
)
CUSTOM = "custom"

# Display order of the named classes; custom classes sort after them.
_KIND_ORDER: dict[str, int] = {name: idx for idx, name in enumerate((*NAMED_CLASSES, CUSTOM))}

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CharacterClass:
    """A named character class or an explicit custom set of characters.

    Two classes are equal when their kind matches and, for custom classes,
    their character sets match exactly.
    """

    kind: str
    chars: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.kind != CUSTOM and self.kind not in NAMED_CLASSES:
            msg = f"Unknown character class kind '{self.kind}'"
            raise ValueError(msg)
        if self.kind != CUSTOM and self.chars:
            msg = f"Named class '{self.kind}' cannot carry explicit characters"
            raise ValueError(msg)

    @classmethod
    def named(cls, name: str) -> CharacterClass:
        return cls(kind=name)

    @classmethod
    def custom(cls, chars: str | frozenset[str] | set[str]) -> CharacterClass:
        return cls(kind=CUSTOM, chars=frozenset(chars))

    @property
    def is_custom(self) -> bool:
        return self.kind == CUSTOM

    def sort_key(self) -> tuple[int, str]:
        """Return a key giving a stable, canonical ordering of classes."""
        return (_KIND_ORDER[self.kind], "".join(sorted(self.chars)))

    def __str__(self) -> str:
        if not self.is_custom:
            return self.kind
        # ']' may only open a custom class and '-' may only close it.
        body = sorted(self.chars - {"]", "-"})
        if "]" in self.chars:
            # A separator right after the leading ']' would read as an empty class.
            plain = next((ch for ch in body if ch not in ",;" and not ch.isspace()), None)
            if plain is not None:
                body.remove(plain)
                body.insert(0, plain)
            body.insert(0, "]")
        if "-" in self.chars:
            body.append("-")
        return "[" + "".join(body) + "]"


@dataclass(frozen=True)
class ParsedRule:
    """Structured form of one password rule string.

    ``required`` is a sequence of alternative groups: a password needs at
    least one class from every group.  ``allowed`` is the universe of
    characters permitted anywhere in the password.
    """

    min_length: int | None = None
    max_length: int | None = None
    max_consecutive: int | None = None
    required: tuple[tuple[CharacterClass, ...], ...] = ()
    allowed: tuple[CharacterClass, ...] = ()

    def with_allowed(self, allowed: tuple[CharacterClass, ...]) -> ParsedRule:
        """Return a copy of this rule with ``allowed`` replaced."""
        return replace(self, allowed=tuple(allowed))

    def required_classes(self) -> set[CharacterClass]:
        """Return every class mentioned by any required group."""
        return {cls for group in self.required for cls in group}

    def to_rule_string(self) -> str:
        """Render the rule back into the compact rule grammar.

        Properties are emitted in the conventional order used by published
        quirk files: lengths first, then required groups, then allowed.
        """
        parts: list[str] = []
        if self.min_length is not None:
            parts.append(f"minlength: {self.min_length};")
        if self.max_length is not None:
            parts.append(f"maxlength: {self.max_length};")
        for group in self.required:
            parts.append(f"required: {format_classes(group)};")
        if self.allowed:
            parts.append(f"allowed: {format_classes(self.allowed)};")
        if self.max_consecutive is not None:
            parts.append(f"max-consecutive: {self.max_consecutive};")
        return " ".join(parts)

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-compatible dict."""
        return {
            "min_length": self.min_length,
            "max_length": self.max_length,
            "max_consecutive": self.max_consecutive,
            "required": [[str(cls) for cls in group] for group in self.required],
            "allowed": [str(cls) for cls in self.allowed],
        }


@dataclass(frozen=True)
class RuleEntry:
    """One site's raw rule string as loaded from a quirks file."""

    site: str
    raw_rule: str


def format_classes(classes: tuple[CharacterClass, ...] | list[CharacterClass]) -> str:
    """Format classes as a comma-separated list, as written in rule strings."""
    return ", ".join(str(cls) for cls in classes)
