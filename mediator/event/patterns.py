"""
Pattern compiler: wildcard and regex event-name matching for the mediator.

Purpose
-------
Turns a caller-supplied pattern (a wildcard string or a compiled regular
expression) into a `Matcher`, the single interface the registry uses to
decide whether a published event name is of interest.

Responsibilities
----------------
- Normalize caller input into a tagged spec (`WildcardSpec` / `RegexSpec`)
- Reject malformed wildcard strings (three or more consecutive ``*``)
- Translate ``*`` and ``**`` into an anchored regular expression
- Use caller regular expressions verbatim
- Provide a canonical key so equal patterns share one registry entry

Supported Patterns
------------------
Separators are exactly ``: / . ? _ & ;``.

- Literal:      "event:login"        -> prefix match, also "event:login:success"
- Wildcard:     "*:login:success"    -> one separator-free run, then literal text
- Globstar:     "**:success"         -> any run of characters, separators included
- Mixed:        "event:*:**"         -> "event:" + one segment + anything
- Regex:        re.compile(":success$") -> the expression's own semantics

Notes
-----
- Wildcard matchers are anchored at the start of the event name only; a
  pattern matches when the event name *starts with* a satisfying prefix.
- Literal characters in wildcard strings are escaped; "." is a literal dot.
- Matching is case-sensitive for wildcard strings. Regex flags are honored.
- Compilation is pure, so wildcard compilation is memoized per source.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from mediator.exceptions import InvalidPatternError

SEPARATORS = ":/.?_&;"

GLOBSTAR_REGEX = ".*"
WILDCARD_REGEX = f"[^{re.escape(SEPARATORS)}]*"

_MALFORMED_RUN = re.compile(r"\*{3,}")
_WILDCARD_TOKENS = re.compile(r"(\*\*|\*)")


@dataclass(frozen=True, slots=True)
class WildcardSpec:
    """A wildcard pattern string, e.g. ``"user:*:success"``."""

    source: str


@dataclass(frozen=True, slots=True)
class RegexSpec:
    """A caller-supplied regular expression, used verbatim."""

    regex: re.Pattern[str]


PatternSpec = Union[WildcardSpec, RegexSpec]


@dataclass(frozen=True, slots=True)
class Matcher:
    """
    A compiled pattern.

    Attributes
    ----------
    kind:
        ``"wildcard"`` or ``"regex"``.
    source:
        The pattern as the caller wrote it (wildcard text or regex source).
    regex:
        The compiled expression used for matching.

    Examples
    --------
    >>> matcher = compile_pattern("*:login:success")
    >>> matcher.test("event:login:success")
    True
    >>> matcher.test("user:event:login:success")
    False
    """

    kind: str
    source: str
    regex: re.Pattern[str]

    @property
    def key(self) -> str:
        """Canonical identity used by the registry to dedupe entries."""
        if self.kind == "regex":
            return f"regex:/{self.source}/{self.regex.flags}"
        return f"wildcard:{self.source}"

    def test(self, event_name: str) -> bool:
        return self.regex.search(event_name) is not None

    def __str__(self) -> str:
        if self.kind == "regex":
            return f"/{self.source}/"
        return self.source


def to_pattern_spec(pattern: object) -> PatternSpec:
    """
    Normalize caller input into a tagged pattern spec.

    Raises
    ------
    InvalidPatternError:
        If ``pattern`` is neither a string nor a compiled regular expression.
    """
    if isinstance(pattern, (WildcardSpec, RegexSpec)):
        return pattern
    if isinstance(pattern, str):
        return WildcardSpec(pattern)
    if isinstance(pattern, re.Pattern):
        if not isinstance(pattern.pattern, str):
            raise InvalidPatternError(pattern, "byte-string expressions cannot match event names")
        return RegexSpec(pattern)
    raise InvalidPatternError(
        pattern,
        f"expected a wildcard string or compiled regular expression, got {type(pattern).__name__}",
    )


def wildcard_to_regex(source: str) -> str:
    """
    Translate a wildcard string into regular expression text.

    Raises
    ------
    InvalidPatternError:
        If the string contains three or more consecutive ``*``.

    Examples
    --------
    >>> wildcard_to_regex("**:success")
    '^.*:success'
    >>> wildcard_to_regex("event")
    '^event'
    """
    # Checked before any other transformation.
    if _MALFORMED_RUN.search(source):
        raise InvalidPatternError(source, "three or more consecutive '*' are not allowed")

    parts = []
    for token in _WILDCARD_TOKENS.split(source):
        if token == "**":
            parts.append(GLOBSTAR_REGEX)
        elif token == "*":
            parts.append(WILDCARD_REGEX)
        elif token:
            parts.append(re.escape(token))

    return "^" + "".join(parts)


@lru_cache(maxsize=1024)
def _compile_wildcard(source: str) -> Matcher:
    return Matcher(kind="wildcard", source=source, regex=re.compile(wildcard_to_regex(source)))


def compile_pattern(pattern: object) -> Matcher:
    """
    Compile a wildcard string, regex, or tagged spec into a `Matcher`.

    An existing `Matcher` is returned unchanged.

    Raises
    ------
    InvalidPatternError:
        For malformed wildcard strings or unsupported pattern types.

    Examples
    --------
    >>> compile_pattern("**:success").test("anything:goes:here:success")
    True
    >>> compile_pattern(re.compile(":success$")).test("user:login:success:extra")
    False
    """
    if isinstance(pattern, Matcher):
        return pattern

    spec = to_pattern_spec(pattern)
    if isinstance(spec, RegexSpec):
        return Matcher(kind="regex", source=spec.regex.pattern, regex=spec.regex)
    return _compile_wildcard(spec.source)
