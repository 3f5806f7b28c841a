from __future__ import annotations

import collections
import re
from typing import Callable, Optional, Union

from .errors import StructuralError
from .types import Span

Matched = collections.namedtuple("Matched", ("text", "span", "match"))

Pattern = Union[str, re.Pattern]

WHITESPACE_CHARS = " \t"
WHITESPACE_OR_NEWLINE_CHARS = " \t\r\n"


class OrgInput:
    """
    Read position over an org text.

    The text is never modified. Rules look ahead with `try_match` and only
    move the cursor with `advance` once they know they succeeded.
    """

    def __init__(self, text: str, cursor: int = 0):
        self.text = text
        self._cursor = min(max(cursor, 0), len(text))

    def __len__(self):
        return len(self.text)

    def __repr__(self):
        return "OrgInput(cursor={}, rest={!r})".format(self._cursor, self.rest()[:20])

    @property
    def cursor(self) -> int:
        return self._cursor

    def rest(self) -> str:
        return self.text[self._cursor:]

    def at_end(self) -> bool:
        return self._cursor >= len(self.text)

    def at_line_start(self, offset: Optional[int] = None) -> bool:
        if offset is None:
            offset = self._cursor
        return offset == 0 or self.text[offset - 1] == "\n"

    def try_match(self, pattern: Pattern, offset: Optional[int] = None) -> Optional[Matched]:
        if offset is None:
            offset = self._cursor
        if offset > len(self.text):
            return None

        if isinstance(pattern, str):
            if not self.text.startswith(pattern, offset):
                return None
            return Matched(pattern, Span(offset, offset + len(pattern)), None)

        m = pattern.match(self.text, offset)
        if m is None:
            return None
        return Matched(m.group(0), Span(m.start(), m.end()), m)

    def advance(self, amount: int) -> bool:
        """Move the cursor forward. Returns True if it had to stop at the end of the text."""
        target = self._cursor + amount
        overflowed = target > len(self.text)
        self._cursor = min(target, len(self.text))
        return overflowed

    def expect(self, pattern: Pattern, what: str) -> Matched:
        matched = self.try_match(pattern)
        if matched is None:
            raise StructuralError("Expected {} at offset {}".format(what, self._cursor), self._cursor)
        self.advance(len(matched.text))
        return matched

    def skip(self, pattern: Pattern) -> bool:
        """Consume `pattern` if it's next. Returns whether it was found."""
        matched = self.try_match(pattern)
        if matched is None:
            return False
        self.advance(len(matched.text))
        return True

    def count_whitespace(self, offset: Optional[int] = None) -> int:
        return self._count_chars(WHITESPACE_CHARS, offset)

    def count_whitespace_or_newline(self, offset: Optional[int] = None) -> int:
        return self._count_chars(WHITESPACE_OR_NEWLINE_CHARS, offset)

    def _count_chars(self, chars: str, offset: Optional[int]) -> int:
        if offset is None:
            offset = self._cursor
        end = offset
        while end < len(self.text) and self.text[end] in chars:
            end += 1
        return end - offset

    def span_from(self, start: int) -> Span:
        return Span(start, self._cursor)

    def fork(self) -> OrgInput:
        return OrgInput(self.text, self._cursor)

    def commit(self, other: OrgInput):
        assert other.text is self.text
        assert other.cursor >= self._cursor
        self.advance(other.cursor - self._cursor)


def attempt(rule: Callable, inp: OrgInput, *args):
    """
    Run an optional rule. On a structural failure the input is left where
    it was and None is returned; semantic errors are raised.
    """
    sub = inp.fork()
    try:
        value = rule(sub, *args)
    except StructuralError:
        return None
    inp.commit(sub)
    return value


def preceded(inp: OrgInput, prefix: Pattern, rule: Callable, *args):
    """Consume `prefix`, then run `rule`."""
    inp.expect(prefix, repr(prefix))
    return rule(inp, *args)
