from __future__ import annotations

import collections
from enum import Enum
from typing import Generator, Optional, Tuple

from .timestamp import Timestamp
from .types import (EMPTY_NODE_DATA, AffiliatedKeywords, ContentData,
                    NodeData, Span)

TODO_KEYWORDS = ("TODO", "NEXT")
DONE_KEYWORDS = ("DONE",)

COMMENT_KEYWORD = "COMMENT"
ARCHIVE_TAG = "ARCHIVE"
FOOTNOTE_SECTION_TITLE = "Footnotes"


class KeywordKind(Enum):
    TODO = 1
    DONE = 2


class TodoKeyword(collections.namedtuple("TodoKeyword", ("kind", "value"))):
    __slots__ = ()

    @classmethod
    def todo(cls, value: str) -> TodoKeyword:
        return cls(KeywordKind.TODO, value)

    @classmethod
    def done(cls, value: str) -> TodoKeyword:
        return cls(KeywordKind.DONE, value)

    @classmethod
    def from_str(cls, value: str) -> Optional[TodoKeyword]:
        if value in TODO_KEYWORDS:
            return cls.todo(value)
        if value in DONE_KEYWORDS:
            return cls.done(value)
        return None

    def __repr__(self):
        return "<{}: {}>".format(self.kind.name, self.value)


class Planning(collections.namedtuple("Planning", ("deadline", "scheduled", "closed", "shared"))):
    __slots__ = ()

    @classmethod
    def new(cls, *, deadline: Optional[Timestamp] = None, scheduled: Optional[Timestamp] = None,
            closed: Optional[Timestamp] = None, shared: NodeData = EMPTY_NODE_DATA) -> Planning:
        return cls(deadline, scheduled, closed, shared)

    def is_empty(self) -> bool:
        return self.deadline is None and self.scheduled is None and self.closed is None

    def to_raw(self) -> str:
        entries = []
        for name, value in (("DEADLINE", self.deadline), ("SCHEDULED", self.scheduled), ("CLOSED", self.closed)):
            if value is not None:
                entries.append("{}: {}".format(name, value.to_raw()))
        return " ".join(entries)


class PropertyKind(Enum):
    KEY_VALUE = 1
    KEY_PLUS_VALUE = 2
    KEY = 3
    KEY_PLUS = 4


class NodeProperty(collections.namedtuple("NodeProperty", ("kind", "name", "value", "shared"))):
    """
    Line of a property drawer: `:NAME: value`, `:NAME+: value`, `:NAME:` or `:NAME+:`.
    """

    __slots__ = ()

    @classmethod
    def new(cls, name: str, value: Optional[str] = None, *, plus: bool = False,
            shared: NodeData = EMPTY_NODE_DATA) -> NodeProperty:
        if not name or name.upper() == "END":
            raise ValueError("Invalid property name: {!r}".format(name))
        if value is None:
            kind = PropertyKind.KEY_PLUS if plus else PropertyKind.KEY
        else:
            kind = PropertyKind.KEY_PLUS_VALUE if plus else PropertyKind.KEY_VALUE
        return cls(kind, name, value, shared)

    @property
    def is_plus(self) -> bool:
        return self.kind in (PropertyKind.KEY_PLUS, PropertyKind.KEY_PLUS_VALUE)

    def __repr__(self):
        return "{{{}{}: {}}}".format(self.name, "+" if self.is_plus else "", self.value)


class PropertyDrawer(collections.namedtuple("PropertyDrawer", ("content", "shared"))):
    __slots__ = ()

    @property
    def properties(self) -> Tuple[NodeProperty, ...]:
        return self.content.content

    def content_data(self) -> ContentData:
        return self.content

    def get(self, name: str, default=None):
        """
        Value of a property, looked up ignoring case. `NAME+` lines extend
        the value with a space, like org does.
        """
        value = None
        for prop in self.properties:
            if prop.name.upper() != name.upper():
                continue
            if prop.is_plus and value is not None:
                if prop.value is not None:
                    value = value + " " + prop.value
            else:
                value = prop.value if prop.value is not None else ""
        if value is None:
            return default
        return value

    def __repr__(self):
        return "<Properties: {}>".format(len(self.properties))


class Section(collections.namedtuple("Section", ("value", "shared"))):
    __slots__ = ()

    @classmethod
    def new(cls, value: str, shared: NodeData = EMPTY_NODE_DATA) -> Section:
        return cls(value, shared)

    def content_data(self) -> ContentData:
        return ContentData(self.shared.span, (self.value,))


class Headline(
    collections.namedtuple(
        "Headline",
        (
            "level",
            "keyword",
            "priority",
            "title",
            "tags",
            "planning",
            "property_drawer",
            "section",
            "sub_headlines",
            "affiliated_keywords",
            "pre_blank",
            "shared",
        ),
    )
):
    __slots__ = ()

    @classmethod
    def new(cls, level: int, title: str = "", **fields) -> Headline:
        if level < 1:
            raise ValueError("Headline level must be at least 1, found {}".format(level))
        values = dict(
            level=level,
            keyword=None,
            priority=None,
            title=title,
            tags=(),
            planning=None,
            property_drawer=None,
            section=None,
            sub_headlines=(),
            affiliated_keywords=(),
            pre_blank=0,
            shared=EMPTY_NODE_DATA,
        )
        values.update(fields)
        return cls(**values)

    @property
    def commented(self) -> bool:
        return self.title == COMMENT_KEYWORD or self.title.startswith(COMMENT_KEYWORD + " ")

    def is_archived(self) -> bool:
        return ARCHIVE_TAG in self.tags

    def is_footnote_section(self) -> bool:
        return self.title == FOOTNOTE_SECTION_TITLE

    @property
    def is_todo(self) -> bool:
        return self.keyword is not None and self.keyword.kind == KeywordKind.TODO

    @property
    def is_done(self) -> bool:
        return self.keyword is not None and self.keyword.kind == KeywordKind.DONE

    def get_property(self, name: str, default=None):
        if self.property_drawer is None:
            return default
        return self.property_drawer.get(name, default)

    def get_affiliated_keywords(self) -> AffiliatedKeywords:
        return AffiliatedKeywords(self.affiliated_keywords)

    def with_sub_headlines(self, sub_headlines) -> Headline:
        sub_headlines = tuple(sub_headlines)
        span = self.shared.span
        if sub_headlines:
            span = Span(span.start, max(span.end, sub_headlines[-1].shared.span.end))
        return self._replace(
            sub_headlines=sub_headlines,
            shared=self.shared._replace(span=span),
        )

    def content_data(self) -> ContentData:
        children = ((self.section,) if self.section is not None else ()) + self.sub_headlines
        if not children:
            end = self.shared.span.end
            return ContentData(Span(end, end), ())
        return ContentData(
            Span(children[0].shared.span.start, children[-1].shared.span.end),
            children,
        )

    def get_all_headlines(self) -> Generator[Headline, None, None]:
        todo = list(reversed(self.sub_headlines))
        while todo:
            hl = todo.pop()
            yield hl
            todo.extend(reversed(hl.sub_headlines))

    def __repr__(self):
        return "<Headline {}: {}>".format(self.level, self.title)


Keyword = collections.namedtuple("Keyword", ("key", "value", "shared"))


class Document(
    collections.namedtuple("Document", ("settings", "keywords", "preface", "headlines", "shared"))
):
    __slots__ = ()

    @classmethod
    def new(cls, *, settings: Optional[str] = None, keywords=(), preface: Optional[Section] = None,
            headlines=(), shared: NodeData = EMPTY_NODE_DATA) -> Document:
        return cls(settings, tuple(keywords), preface, tuple(headlines), shared)

    def get_keyword(self, key: str, default=None):
        for keyword in self.keywords:
            if keyword.key.upper() == key.upper():
                return keyword.value
        return default

    @property
    def title(self) -> Optional[str]:
        return self.get_keyword("TITLE")

    def get_top_headlines(self) -> Tuple[Headline, ...]:
        return self.headlines

    def get_all_headlines(self) -> Generator[Headline, None, None]:
        todo = list(reversed(self.headlines))
        while todo:
            hl = todo.pop()
            yield hl
            todo.extend(reversed(hl.sub_headlines))

    def content_data(self) -> ContentData:
        children = ((self.preface,) if self.preface is not None else ()) + self.headlines
        if not children:
            end = self.shared.span.end
            return ContentData(Span(end, end), ())
        return ContentData(
            Span(children[0].shared.span.start, children[-1].shared.span.end),
            children,
        )
