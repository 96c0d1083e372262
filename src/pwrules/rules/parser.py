"""Parser for the compact password rule grammar.

A rule string is a ``;``-separated list of ``name: value`` properties::

    minlength: 8; maxlength: 64; required: upper, lower; required: digit;
    allowed: [-_.!]; max-consecutive: 3

``required`` and ``allowed`` take a comma-separated list of named classes
(``upper``, ``lower``, ``digit``, ``special``, ``ascii-printable``,
``unicode``) and custom classes written in brackets.  The length properties
take a non-negative integer.
"""

from __future__ import annotations

import logging
import re

from pwrules.rules.model import NAMED_CLASSES, CharacterClass, ParsedRule

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CLASS_PROPERTIES: frozenset[str] = frozenset({"required", "allowed"})
INTEGER_PROPERTIES: frozenset[str] = frozenset({"minlength", "maxlength", "max-consecutive"})

_IDENTIFIER_RE = re.compile(r"[A-Za-z][A-Za-z-]*")
_INTEGER_RE = re.compile(r"[0-9]+")

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PasswordRulesError(ValueError):
    """Raised when a rule string does not conform to the grammar.

    ``position`` is the offset into the parsed string where the problem
    starts and ``length`` the number of characters it spans.
    """

    def __init__(self, message: str, position: int, length: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.length = max(length, 1)

    def __str__(self) -> str:
        return f"{self.message} (at offset {self.position})"

    def render(self, source: str) -> str:
        """Render a diagnostic pointing into *source*, the string that was parsed.

        Example::

            error: unknown character class 'uper'
              --> 1:25
               |
             1 | minlength: 8; required: uper
               |                         ^^^^
        """
        position = min(self.position, len(source))
        line_start = source.rfind("\n", 0, position) + 1
        line_end = source.find("\n", position)
        if line_end == -1:
            line_end = len(source)
        line_no = source.count("\n", 0, position) + 1
        column = position - line_start
        line = source[line_start:line_end]
        underline = "^" * min(self.length, max(len(line) - column, 1))

        gutter = " " * len(str(line_no))
        return "\n".join(
            [
                f"error: {self.message}",
                f"{gutter}--> {line_no}:{column + 1}",
                f"{gutter} |",
                f"{line_no} | {line}",
                f"{gutter} | {' ' * column}{underline}",
            ]
        )


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    """Single-pass cursor over one rule string."""

    def __init__(self, source: str, *, strict: bool) -> None:
        self.source = source
        self.strict = strict
        self.pos = 0
        self.integers: dict[str, list[int]] = {name: [] for name in INTEGER_PROPERTIES}
        self.required: list[list[CharacterClass]] = []
        self.allowed: list[CharacterClass] = []

    # -- cursor helpers -----------------------------------------------------

    def _at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _peek(self) -> str:
        return self.source[self.pos] if not self._at_end() else ""

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self.source[self.pos].isspace():
            self.pos += 1

    def _error(
        self, message: str, position: int | None = None, length: int = 1
    ) -> PasswordRulesError:
        return PasswordRulesError(message, self.pos if position is None else position, length)

    def _read_identifier(self) -> str:
        match = _IDENTIFIER_RE.match(self.source, self.pos)
        if match is None:
            return ""
        self.pos = match.end()
        return match.group(0)

    def _skip_to_rule_end(self) -> None:
        end = self.source.find(";", self.pos)
        self.pos = len(self.source) if end == -1 else end

    # -- grammar ------------------------------------------------------------

    def parse(self) -> ParsedRule:
        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            if self._peek() == ";":
                self.pos += 1
                continue

            self._parse_property()

            self._skip_whitespace()
            if self._at_end():
                break
            if self._peek() != ";":
                raise self._error(f"expected ';' but found '{self._peek()}'")
            self.pos += 1

        return self._build()

    def _parse_property(self) -> None:
        name_start = self.pos
        raw_name = self._read_identifier()
        if not raw_name:
            raise self._error("expected a property name")
        name = raw_name.lower()

        self._skip_whitespace()
        if self._peek() != ":":
            raise self._error(f"expected ':' after property name '{raw_name}'")
        self.pos += 1
        self._skip_whitespace()

        if name in INTEGER_PROPERTIES:
            self.integers[name].append(self._parse_integer(name))
        elif name in CLASS_PROPERTIES:
            classes = self._parse_class_list()
            if name == "required":
                if classes:
                    self.required.append(classes)
            else:
                self.allowed.extend(classes)
        elif self.strict:
            raise self._error(f"unknown property '{raw_name}'", name_start, len(raw_name))
        else:
            logger.warning("Ignoring unknown property '%s' at offset %d", raw_name, name_start)
            self._skip_to_rule_end()

    def _parse_integer(self, name: str) -> int:
        match = _INTEGER_RE.match(self.source, self.pos)
        if match is None:
            raise self._error(f"expected a non-negative integer value for '{name}'")
        self.pos = match.end()
        return int(match.group(0))

    def _parse_class_list(self) -> list[CharacterClass]:
        classes: list[CharacterClass] = []
        while True:
            self._skip_whitespace()
            start = self.pos
            cls: CharacterClass | None
            if self._peek() == "[":
                cls = self._parse_custom_class()
            else:
                raw_ident = self._read_identifier()
                if not raw_ident:
                    raise self._error("expected a character class")
                ident = raw_ident.lower()
                if ident in NAMED_CLASSES:
                    cls = CharacterClass.named(ident)
                elif self.strict:
                    msg = f"unknown character class '{raw_ident}'"
                    raise self._error(msg, start, len(raw_ident))
                else:
                    logger.warning(
                        "Ignoring unknown character class '%s' at offset %d", raw_ident, start
                    )
                    cls = None
            if cls is not None:
                classes.append(cls)

            self._skip_whitespace()
            if self._peek() != ",":
                return classes
            self.pos += 1

    def _leading_bracket_is_literal(self) -> bool:
        """Decide whether the ']' right after '[' is a member or closes an empty class.

        It is a member when followed by anything other than a list separator,
        or when a later ']' closes the class with no '[' in between (so
        ``[],;]`` holds ']', ',' and ';' while ``[], [a]`` is an empty class).
        """
        following = self.source[self.pos + 1 : self.pos + 2]
        if following and following not in ",;" and not following.isspace():
            return True
        close = self.source.find("]", self.pos + 1)
        return close != -1 and "[" not in self.source[self.pos + 1 : close]

    def _parse_custom_class(self) -> CharacterClass | None:
        start = self.pos
        self.pos += 1  # '['
        chars: list[str] = []

        if self._peek() == "]" and self._leading_bracket_is_literal():
            chars.append("]")
            self.pos += 1

        while not self._at_end() and self._peek() != "]":
            ch = self._peek()
            if not " " <= ch <= "~":
                msg = (
                    "custom character classes may only contain ASCII-printable characters, "
                    f"found {ch!r}"
                )
                raise self._error(msg)
            chars.append(ch)
            self.pos += 1

        if self._at_end():
            raise self._error("unterminated custom character class", start, self.pos - start)
        self.pos += 1  # ']'

        if not chars:
            if self.strict:
                raise self._error("empty custom character class", start, 2)
            logger.warning("Ignoring empty custom character class at offset %d", start)
            return None

        for idx, ch in enumerate(chars):
            if ch == "-" and 0 < idx < len(chars) - 1 and self.strict:
                raise self._error(
                    "'-' may only appear at the start or end of a custom character class",
                    start + 1 + idx,
                )

        return CharacterClass.custom(chars)

    # -- canonicalization ---------------------------------------------------

    def _build(self) -> ParsedRule:
        min_lengths = self.integers["minlength"]
        max_lengths = self.integers["maxlength"]
        max_consecutives = self.integers["max-consecutive"]
        return ParsedRule(
            min_length=max(min_lengths) if min_lengths else None,
            max_length=min(max_lengths) if max_lengths else None,
            max_consecutive=min(max_consecutives) if max_consecutives else None,
            required=tuple(_dedupe_classes(group) for group in self.required),
            allowed=_dedupe_classes(self.allowed),
        )


def _dedupe_classes(classes: list[CharacterClass]) -> tuple[CharacterClass, ...]:
    """Drop repeated classes and fold all custom classes into the first one."""
    result: list[CharacterClass] = []
    seen: set[CharacterClass] = set()
    custom_index: int | None = None
    for cls in classes:
        if cls.is_custom:
            if custom_index is None:
                custom_index = len(result)
                result.append(cls)
            else:
                merged = result[custom_index].chars | cls.chars
                result[custom_index] = CharacterClass.custom(merged)
            continue
        if cls not in seen:
            seen.add(cls)
            result.append(cls)
    return tuple(result)


def parse_password_rules(raw: str, *, strict: bool = True) -> ParsedRule:
    """Parse a rule string into a :class:`ParsedRule`.

    With *strict* (the default) any non-conforming syntax raises; otherwise
    unknown properties, unknown class names and empty custom classes are
    skipped with a logged warning.

    Raises:
        PasswordRulesError: If the string cannot be parsed.
    """
    return _Parser(raw, strict=strict).parse()
