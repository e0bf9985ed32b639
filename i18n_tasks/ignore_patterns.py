"""Ignore patterns: glob-like exemptions over dotted key paths.

Pattern syntax, one dotted segment at a time:

- ``*`` as a whole segment matches exactly one segment, except as the last
  segment, where it matches the rest of the key (one or more segments).
- ``*`` inside a segment matches any run of characters other than ``.``.
- ``{a,b}`` inside a segment matches either alternative.
- anything else matches literally.

A pattern whose last segment is a plural category (``*.plural_key.two``)
exempts only that category of the plural key.
"""

import re
from enum import Enum
from typing import Iterable, List, Optional

from i18n_tasks.errors import InvalidIgnorePattern
from i18n_tasks.key_tree import join_key, split_key
from i18n_tasks.utils.logging_setup import get_logger

logger = get_logger("ignore_patterns")

_SEGMENT_RE = r"[^.]+"
_REST_RE = r"[^.]+(?:\.[^.]+)*"


class MatchScope(Enum):
    """What an ignore pattern is matched against.

    KEY: the key relative to its locale (``plural_key.two`` for ``ar.plural_key.two``).
    LOCALE_QUALIFIED: the key including its locale segment.
    """
    KEY = "key"
    LOCALE_QUALIFIED = "locale_qualified"

    @classmethod
    def from_value(cls, value) -> "MatchScope":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(f"Ignore scope must be one of {valid}, got {value!r}")


def compile_key_pattern(pattern: str) -> "re.Pattern":
    """Compile one ignore pattern into a regular expression for ``fullmatch``.

    Raises:
        InvalidIgnorePattern: For empty patterns, empty segments, and unbalanced
            or empty braces
    """
    if not isinstance(pattern, str) or not pattern.strip():
        raise InvalidIgnorePattern(pattern, "pattern is empty")
    segments = pattern.strip().split(".")
    parts = []
    for index, segment in enumerate(segments):
        if segment == "":
            raise InvalidIgnorePattern(pattern, "empty segment")
        if segment == "*":
            parts.append(_REST_RE if index == len(segments) - 1 else _SEGMENT_RE)
        else:
            parts.append(_compile_segment(pattern, segment))
    return re.compile(r"\.".join(parts))


def _compile_segment(pattern, segment):
    out = []
    i = 0
    while i < len(segment):
        c = segment[i]
        if c == "*":
            out.append(r"[^.]*")
        elif c == "{":
            end = segment.find("}", i)
            if end == -1:
                raise InvalidIgnorePattern(pattern, "unbalanced '{'")
            body = segment[i + 1:end]
            if "{" in body:
                raise InvalidIgnorePattern(pattern, "nested braces are not supported")
            alternatives = [a.strip() for a in body.split(",")]
            if any(not a for a in alternatives):
                raise InvalidIgnorePattern(pattern, "empty alternative in braces")
            out.append("(?:" + "|".join(re.escape(a) for a in alternatives) + ")")
            i = end
        elif c == "}":
            raise InvalidIgnorePattern(pattern, "unbalanced '}'")
        else:
            out.append(re.escape(c))
        i += 1
    return "".join(out)


class IgnorePatternMatcher:
    """Tests locale-qualified keys against a list of ignore patterns.

    All patterns are compiled up front, so a bad configuration fails before any
    analysis runs.
    """

    def __init__(self, patterns: Iterable[str] = (), scope=MatchScope.KEY):
        self.patterns: List[str] = [p.strip() if isinstance(p, str) else p for p in patterns]
        self.scope = MatchScope.from_value(scope)
        self._compiled = [compile_key_pattern(p) for p in self.patterns]
        if self.patterns:
            logger.debug(f"Compiled {len(self.patterns)} ignore patterns with scope {self.scope.value}")

    def matches(self, key: str, category: Optional[str] = None) -> bool:
        """Whether ``key`` (or the ``category`` form of it) is exempted.

        Args:
            key: Locale-qualified key, e.g. "ar.nested.plural_key"
            category: A plural category, to test the "<key>.<category>" form

        Returns:
            bool: True if any pattern matches
        """
        if not self._compiled:
            return False
        candidate = self._scoped(key)
        if category is not None:
            candidate = join_key(candidate, category)
        if not candidate:
            return False
        return any(regex.fullmatch(candidate) for regex in self._compiled)

    def _scoped(self, key):
        if self.scope is MatchScope.KEY:
            return join_key(*split_key(key)[1:])
        return key

    def extended(self, patterns: Iterable[str]) -> "IgnorePatternMatcher":
        """Return a matcher with additional patterns and the same scope."""
        return IgnorePatternMatcher(self.patterns + list(patterns), self.scope)

    @property
    def is_empty(self) -> bool:
        return not self._compiled

    def __repr__(self):
        return f"IgnorePatternMatcher({self.patterns!r}, scope={self.scope.value!r})"
