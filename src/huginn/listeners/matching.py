"""
Pattern matching engine for listener paths.

Listener patterns are separator-delimited segments, e.g. "players/:id/x".
Each segment compiles to a regular expression:
- Literal segments ("players") match exactly
- Placeholder segments (":id") match via the PlaceholderRegistry and
  capture the segment text under the placeholder name ("id")
- Unknown placeholders fall back to the unconstrained wildcard (":*")
"""

from __future__ import annotations

import dataclasses as _dataclasses
import logging as _logging
import re as _re
import typing as _typing

import huginn.constants as constants
import huginn.tree.values as values

_logger = _logging.getLogger(__name__)

SegmentMatcher: _typing.TypeAlias = _re.Pattern[str]
"""A compiled expression tested against one path segment."""

BUILTIN_PLACEHOLDERS: dict[str, str] = {
    "id": r"^([a-zA-Z0-9\-_]+)$",
    "number": r"^([0-9]+)$",
    "string": r"^(\w+)$",
    "axis": r"^([xyz])$",
    constants.WILDCARD_NAME: r"(.*)",
}
"""Placeholder names (without marker) to expressions registered by default."""


def match_segment(matcher: SegmentMatcher, segment: str) -> str | None:
    """
    Match one path segment.

    The matcher must find exactly one match in the segment, with at most
    one capture group. Several distinct matches mean the matcher is
    ambiguous for this segment and count as no match. A zero-length match
    right where the previous match ended (what "(.*)" produces at the end
    of the input) is not a distinct match.

    Returns:
        The captured text (group 1, or the whole match when the matcher
        has no group), or None when the segment does not match.
    """
    if matcher.groups > 1:
        return None

    found: _re.Match[str] | None = None
    last_end = -1
    for match in matcher.finditer(segment):
        if match.start() == match.end() == last_end:
            continue
        if found is not None:
            return None
        found = match
        last_end = match.end()

    if found is None:
        return None
    if matcher.groups == 1:
        return found.group(1) or ""
    return found.group(0)


def split_pattern(pattern: str, separator: str = constants.DEFAULT_SEPARATOR) -> tuple[str, ...]:
    """Split a listener pattern into raw segments."""
    return tuple(pattern.split(separator))


@_dataclasses.dataclass(frozen=True, slots=True)
class CompiledPattern:
    """
    A listener pattern compiled into one matcher per segment.

    Attributes:
        raw_segments: The pattern segments as written.
        matchers: One compiled matcher per segment.
        marker: Prefix identifying placeholder segments.
        separator: Separator the pattern was split on.
    """

    raw_segments: tuple[str, ...]
    matchers: tuple[SegmentMatcher, ...]
    marker: str = constants.DEFAULT_MARKER
    separator: str = constants.DEFAULT_SEPARATOR

    @property
    def pattern(self) -> str:
        """The pattern as written."""
        return self.separator.join(self.raw_segments)

    def __len__(self) -> int:
        return len(self.matchers)

    def match(self, path: values.Path) -> dict[str, str] | None:
        """
        Match a patch path against this pattern.

        Args:
            path: Segments of the changed node.

        Returns:
            Placeholder name -> captured segment for a match (empty dict
            for patterns without placeholders), or None.
        """
        if len(path) != len(self.matchers):
            return None

        variables: dict[str, str] = {}
        for raw, matcher, segment in zip(self.raw_segments, self.matchers, path, strict=True):
            captured = match_segment(matcher, segment)
            if captured is None:
                return None
            if raw.startswith(self.marker):
                variables[raw[len(self.marker) :]] = captured

        return variables


class PlaceholderRegistry:
    """
    Table of placeholder tokens to segment matchers.

    Tokens include the marker (":id"). Registering an existing token
    overwrites it for patterns compiled afterwards; patterns already
    compiled keep the matcher they were built with.

    One registry can be shared by several containers.
    """

    def __init__(
        self,
        *,
        marker: str = constants.DEFAULT_MARKER,
        include_builtins: bool = True,
    ) -> None:
        """
        Initialize the registry.

        Args:
            marker: Prefix identifying placeholder segments.
            include_builtins: Register BUILTIN_PLACEHOLDERS. The wildcard
                is always registered.
        """
        if not marker:
            raise ValueError("Placeholder marker must not be empty")
        self._marker = marker
        self._matchers: dict[str, SegmentMatcher] = {}

        for name, expression in BUILTIN_PLACEHOLDERS.items():
            if include_builtins or name == constants.WILDCARD_NAME:
                self._matchers[marker + name] = _re.compile(expression)

    @classmethod
    def from_placeholders(
        cls,
        placeholders: _typing.Mapping[str, str],
        *,
        marker: str = constants.DEFAULT_MARKER,
    ) -> PlaceholderRegistry:
        """Create a registry with the built-ins plus extra token -> expression entries."""
        registry = cls(marker=marker)
        for token, expression in placeholders.items():
            registry.register(token, expression)
        return registry

    @property
    def marker(self) -> str:
        return self._marker

    @property
    def wildcard_token(self) -> str:
        return self._marker + constants.WILDCARD_NAME

    def _normalize(self, token: str) -> str:
        return token if token.startswith(self._marker) else self._marker + token

    def register(self, token: str, matcher: str | SegmentMatcher) -> None:
        """
        Register or overwrite a placeholder.

        Args:
            token: Placeholder token; the marker is added if missing
                ("slot" and ":slot" are the same token).
            matcher: Regular expression, as a string or compiled.

        Raises:
            re.error: If a string matcher is not a valid expression.
        """
        token = self._normalize(token)
        compiled = _re.compile(matcher) if isinstance(matcher, str) else matcher
        if token in self._matchers:
            _logger.debug("Overwriting placeholder %s with %s", token, compiled.pattern)
        else:
            _logger.debug("Registering placeholder %s as %s", token, compiled.pattern)
        self._matchers[token] = compiled

    def get(self, token: str) -> SegmentMatcher | None:
        """Get the matcher for a token, or None if not registered."""
        return self._matchers.get(self._normalize(token))

    def tokens(self) -> list[str]:
        """List registered tokens in registration order."""
        return list(self._matchers)

    def is_placeholder(self, segment: str) -> bool:
        return segment.startswith(self._marker)

    def compile_segment(self, segment: str) -> SegmentMatcher:
        """Compile one raw pattern segment."""
        if not self.is_placeholder(segment):
            return _re.compile(f"^{_re.escape(segment)}\\Z")

        matcher = self._matchers.get(segment)
        if matcher is None:
            _logger.debug("Unknown placeholder %s, using %s", segment, self.wildcard_token)
            matcher = self._matchers[self.wildcard_token]
        return matcher

    def compile(
        self,
        raw_segments: _typing.Sequence[str],
        *,
        separator: str = constants.DEFAULT_SEPARATOR,
    ) -> CompiledPattern:
        """
        Compile raw pattern segments.

        Args:
            raw_segments: Segments as written, e.g. ("players", ":id").
            separator: Separator the segments were split on.

        Returns:
            CompiledPattern with one matcher per segment.
        """
        return CompiledPattern(
            raw_segments=tuple(raw_segments),
            matchers=tuple(self.compile_segment(segment) for segment in raw_segments),
            marker=self._marker,
            separator=separator,
        )

    def __len__(self) -> int:
        return len(self._matchers)

    def __contains__(self, token: str) -> bool:
        return self._normalize(token) in self._matchers

    def __iter__(self) -> _typing.Iterator[tuple[str, SegmentMatcher]]:
        return iter(list(self._matchers.items()))
