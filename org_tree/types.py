from __future__ import annotations

import collections
import logging
from enum import Enum
from typing import Dict, Iterator, List, Optional, Protocol, Tuple


class Span(collections.namedtuple("Span", ("start", "end"))):
    """Half-open range of offsets on the source text."""

    __slots__ = ()

    def __new__(cls, start: int, end: int):
        if end < start:
            raise ValueError("Span end ({}) before its start ({})".format(end, start))
        return super().__new__(cls, start, end)

    @property
    def length(self) -> int:
        return self.end - self.start

    def slice(self, text: str) -> str:
        return text[self.start:self.end]

    def contains(self, other: Span) -> bool:
        return self.start <= other.start and other.end <= self.end


EMPTY_SPAN = Span(0, 0)

NodeData = collections.namedtuple("NodeData", ("span", "post_blank"))
ContentData = collections.namedtuple("ContentData", ("span", "content"))
SpannedValue = collections.namedtuple("SpannedValue", ("span", "value"))

EMPTY_NODE_DATA = NodeData(EMPTY_SPAN, 0)


class AffiliatedKeywordKind(Enum):
    CAPTION = 1
    HEADER = 2
    NAME = 3
    PLOT = 4
    RESULTS = 5
    ATTR = 6


AFFILIATED_KEYWORD_NAMES = ("CAPTION", "HEADER", "NAME", "PLOT", "RESULTS")
AFFILIATED_ATTR_PREFIX = "ATTR_"

AffiliatedKeyword = collections.namedtuple(
    "AffiliatedKeyword", ("kind", "value", "optional", "backend", "span")
)


class AffiliatedKeywords:
    """
    Affiliated keywords attached to an element, grouped by kind.

    CAPTION, HEADER and each ATTR_ backend may repeat. NAME, PLOT and
    RESULTS keep only the last one found.
    """

    def __init__(self, keywords=()):
        self.captions: List[AffiliatedKeyword] = []
        self.headers: List[AffiliatedKeyword] = []
        self.name: Optional[AffiliatedKeyword] = None
        self.plot: Optional[AffiliatedKeyword] = None
        self.results: Optional[AffiliatedKeyword] = None
        self.attrs: Dict[str, List[AffiliatedKeyword]] = {}

        for keyword in keywords:
            self.push(keyword)

    def push(self, keyword: AffiliatedKeyword):
        if keyword.kind == AffiliatedKeywordKind.CAPTION:
            self.captions.append(keyword)
        elif keyword.kind == AffiliatedKeywordKind.HEADER:
            self.headers.append(keyword)
        elif keyword.kind == AffiliatedKeywordKind.ATTR:
            self.attrs.setdefault(keyword.backend, []).append(keyword)
        elif keyword.kind in (AffiliatedKeywordKind.NAME, AffiliatedKeywordKind.PLOT, AffiliatedKeywordKind.RESULTS):
            attr = keyword.kind.name.lower()
            previous = getattr(self, attr)
            if previous is not None:
                logging.warning("Replacing #+{}: {} with {} (offset {})".format(
                    keyword.kind.name, previous.value, keyword.value, keyword.span.start))
            setattr(self, attr, keyword)
        else:
            raise Exception("Unknown affiliated keyword kind: {}".format(keyword.kind))

    def is_empty(self) -> bool:
        return len(self) == 0

    def __iter__(self) -> Iterator[AffiliatedKeyword]:
        yield from self.captions
        yield from self.headers
        for single in (self.name, self.plot, self.results):
            if single is not None:
                yield single
        for entries in self.attrs.values():
            yield from entries

    def __len__(self):
        return sum(1 for _ in self)

    def __repr__(self):
        return "<AffiliatedKeywords: {}>".format(len(self))


# Capabilities shared by the syntax tree nodes. Nodes embed a NodeData as
# `shared` instead of inheriting from a common base.
class SharedBehavior(Protocol):
    shared: NodeData


class HasContent(Protocol):
    def content_data(self) -> ContentData:
        ...


class HasAffiliatedKeywords(Protocol):
    affiliated_keywords: Tuple[AffiliatedKeyword, ...]


def span_of(node: SharedBehavior) -> Span:
    return node.shared.span


def post_blank_of(node: SharedBehavior) -> int:
    return node.shared.post_blank


def content_of(node: HasContent):
    return node.content_data().content


def content_span_of(node: HasContent) -> Span:
    return node.content_data().span


def affiliated_keywords_of(node: HasAffiliatedKeywords) -> AffiliatedKeywords:
    return AffiliatedKeywords(node.affiliated_keywords)
