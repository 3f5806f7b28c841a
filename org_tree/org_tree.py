from __future__ import annotations

import logging
import re
from typing import List, Tuple

from .dom import (Document, Headline, Keyword, NodeProperty, Planning,
                  PropertyDrawer, Section, TodoKeyword)
from .errors import (DocumentParseError, SemanticError, StructuralError,
                     TooMuchInput)
from .input import OrgInput, attempt, preceded
from .timestamp import read_timestamp
from .types import (AFFILIATED_ATTR_PREFIX, AFFILIATED_KEYWORD_NAMES,
                    AffiliatedKeyword, AffiliatedKeywordKind, ContentData,
                    NodeData, Span)
from .utils import get_line, get_line_column

STARS_RE = re.compile(r"\*+(?= |\n|$)")
HEADLINE_LINE_RE = re.compile(r"^\*+(?= |$)", re.M)
TODO_KEYWORD_RE = re.compile(r" (?P<keyword>[^ \n]+)(?= |\n|$)")
PRIORITY_RE = re.compile(r" \[#(?P<priority>[A-Z])\](?= |\n|$)")
REST_OF_LINE_RE = re.compile(r"[^\n]*")

PLANNING_KEYWORD_RE = re.compile(r"(?P<keyword>DEADLINE|SCHEDULED|CLOSED):[ \t]*")

PROPERTIES_START_RE = re.compile(r"[ \t]*:PROPERTIES:[ \t]*(?=\n|$)", re.I)
DRAWER_END_RE = re.compile(r"[ \t]*:END:[ \t]*(?=\n|$)", re.I)
NODE_PROPERTY_RE = re.compile(
    r"[ \t]*:(?P<name>[^\s:]+?)(?P<plus>\+)?:(?P<rest>(?:[ \t][^\n]*)?)(?=\n|$)"
)

AFFILIATED_KEYWORD_RE = re.compile(
    r"#\+(?:(?P<dual>CAPTION|RESULTS)(?:\[(?P<optional>[^\]\n]*)\])?"
    r"|(?P<single>HEADER|NAME|PLOT)"
    r"|ATTR_(?P<backend>[A-Za-z0-9_-]+)"
    r"): (?P<value>[^\n]*)"
)
FILE_KEYWORD_RE = re.compile(
    r"#\+(?P<key>[^\s\[]+?)(?P<options>\[[^\]\n]*\])?:(?:[ \t]+(?P<value>[^\n]*))?(?=\n|$)"
)
SETTINGS_RE = re.compile(r"#[^\n]*-\*-[^\n]*-\*-[^\n]*")
BABEL_CALL_KEYWORD = "CALL"

TAG_CHARS = "_@#%"

# Tag locator states
OUTSIDE, INSIDE_RUN, ON_COLON = range(3)


def is_tag_char(char: str) -> bool:
    return char.isalnum() or char in TAG_CHARS


def split_tags(line: str) -> Tuple[str, Tuple[str, ...]]:
    """
    Split the end of a headline line in title and tags.

    Only a `:tag:tag:` run reaching the end of the line (trailing whitespace
    allowed) is taken as tags, colon runs found earlier stay in the title.
    """
    state = OUTSIDE
    run_start = None
    run_has_tags = False
    complete = None  # (start, end) of the last finished run

    for i, char in enumerate(line):
        if state == OUTSIDE:
            if char.isspace():
                continue
            complete = None
            if char == ":":
                state, run_start, run_has_tags = ON_COLON, i, False
        elif state == ON_COLON:
            if char == ":":
                # Empty tag, the run can only start again from here
                run_start, run_has_tags = i, False
            elif is_tag_char(char):
                state = INSIDE_RUN
            elif char.isspace() and run_has_tags:
                state, complete = OUTSIDE, (run_start, i)
            else:
                state = OUTSIDE
        elif state == INSIDE_RUN:
            if char == ":":
                state, run_has_tags = ON_COLON, True
            elif not is_tag_char(char):
                state = OUTSIDE

    if state == ON_COLON and run_has_tags:
        complete = (run_start, len(line))

    if complete is None:
        return line.rstrip(), ()

    start, end = complete
    tags = tuple(line[start:end].strip(":").split(":"))
    return line[:start].rstrip(), tags


def _trailing_blank_lines(text: str, at_end: bool) -> int:
    lines = text.split("\n")
    if at_end and len(lines) > 1 and lines[-1] == "":
        # A final newline ends the last line, it doesn't add a blank one
        lines.pop()

    count = 0
    for line in reversed(lines):
        if line.strip():
            break
        count += 1
    return count


def read_blank_lines(inp: OrgInput) -> int:
    """
    Consume the blank lines ahead of the cursor, leaving in place the
    newline that precedes the next non-blank line.
    """
    start = inp.cursor
    run = inp.count_whitespace_or_newline()
    segment = inp.text[start:start + run]

    if start + run == len(inp):
        inp.advance(run)
        count = segment.count("\n")
        if segment.endswith("\n"):
            count -= 1
        return max(count, 0)

    last_newline = segment.rfind("\n")
    if last_newline <= 0:
        return 0
    inp.advance(last_newline)
    return segment[:last_newline].count("\n")


## Affiliated keywords
def read_affiliated_keyword(inp: OrgInput) -> AffiliatedKeyword:
    start = inp.cursor
    if not inp.at_line_start():
        raise StructuralError("Affiliated keywords start a line (offset {})".format(start), start)

    m = inp.expect(AFFILIATED_KEYWORD_RE, "affiliated keyword").match
    optional = backend = None
    if m.group("dual"):
        kind = AffiliatedKeywordKind[m.group("dual")]
        optional = m.group("optional")
    elif m.group("single"):
        kind = AffiliatedKeywordKind[m.group("single")]
    else:
        kind = AffiliatedKeywordKind.ATTR
        backend = m.group("backend")

    return AffiliatedKeyword(kind, m.group("value"), optional, backend, inp.span_from(start))


def read_affiliated_keywords(inp: OrgInput) -> Tuple[AffiliatedKeyword, ...]:
    keywords = [read_affiliated_keyword(inp)]
    while (keyword := attempt(preceded, inp, "\n", read_affiliated_keyword)) is not None:
        keywords.append(keyword)
    return tuple(keywords)


def _is_affiliated_keyword_line(line: str) -> bool:
    m = AFFILIATED_KEYWORD_RE.match(line)
    return m is not None and m.end() == len(line)


## Headline
def read_todo_keyword(inp: OrgInput) -> TodoKeyword:
    matched = inp.try_match(TODO_KEYWORD_RE)
    if matched is None:
        raise StructuralError("Expected todo keyword at offset {}".format(inp.cursor), inp.cursor)

    keyword = TodoKeyword.from_str(matched.match.group("keyword"))
    if keyword is None:
        raise StructuralError("Not a todo keyword: {}".format(matched.text.strip()), inp.cursor)

    inp.advance(len(matched.text))
    return keyword


def read_priority(inp: OrgInput) -> str:
    return inp.expect(PRIORITY_RE, "priority").match.group("priority")


def read_rest_of_line(inp: OrgInput) -> str:
    return inp.expect(REST_OF_LINE_RE, "line").text


def read_planning(inp: OrgInput) -> Planning:
    start = inp.cursor
    if not inp.at_line_start():
        raise StructuralError("Planning starts a line (offset {})".format(start), start)
    inp.advance(inp.count_whitespace())

    entries = {}
    while True:
        offset = inp.cursor
        # Entries are separated by at most one space
        if entries and inp.try_match(" "):
            offset += 1

        matched = inp.try_match(PLANNING_KEYWORD_RE, offset)
        if matched is None:
            break
        name = matched.match.group("keyword").lower()
        if name in entries:
            break

        sub = OrgInput(inp.text, matched.span.end)
        try:
            value = read_timestamp(sub)
        except (StructuralError, SemanticError) as err:
            logging.debug("Ignoring {} entry: {}".format(name.upper(), err.message))
            break

        inp.commit(sub)
        entries[name] = value

    if not entries:
        raise StructuralError("Expected planning at offset {}".format(start), start)

    trailing = inp.count_whitespace()
    inp.advance(trailing)
    if not (inp.at_end() or inp.try_match("\n")):
        raise StructuralError("Unexpected text after planning at offset {}".format(inp.cursor), inp.cursor)

    return Planning.new(**entries, shared=NodeData(inp.span_from(start), trailing))


def read_node_property(inp: OrgInput) -> NodeProperty:
    start = inp.cursor
    matched = inp.try_match(NODE_PROPERTY_RE)
    if matched is None:
        raise StructuralError("Expected node property at offset {}".format(start), start)

    m = matched.match
    if m.group("name").upper() == "END":
        raise StructuralError("Property can't be named END (offset {})".format(start), start)

    rest = m.group("rest")
    value = rest.strip() or None
    if value is None:
        trailing = len(rest)
    else:
        trailing = len(rest) - len(rest.rstrip())

    inp.advance(len(matched.text))
    return NodeProperty.new(
        m.group("name"),
        value,
        plus=m.group("plus") is not None,
        shared=NodeData(inp.span_from(start), trailing),
    )


def read_property_drawer(inp: OrgInput) -> PropertyDrawer:
    start = inp.cursor
    if not inp.at_line_start():
        raise StructuralError("Property drawer starts a line (offset {})".format(start), start)
    inp.expect(PROPERTIES_START_RE, ":PROPERTIES:")

    properties: List[NodeProperty] = []
    while True:
        inp.expect("\n", "':END:' closing the property drawer")
        if inp.try_match(DRAWER_END_RE):
            content_end = inp.cursor
            break
        properties.append(read_node_property(inp))

    inp.expect(DRAWER_END_RE, ":END:")

    if properties:
        content_span = Span(properties[0].shared.span.start, properties[-1].shared.span.end)
    else:
        content_span = Span(content_end, content_end)

    return PropertyDrawer(
        ContentData(content_span, tuple(properties)),
        NodeData(inp.span_from(start), 0),
    )


## Section
def _section_end(text: str, start: int) -> int:
    """
    Offset where a section starting on `start` ends: the newline before
    the next headline, or before the affiliated keywords right above it.
    """
    m = HEADLINE_LINE_RE.search(text, start)
    if m is None:
        return len(text)
    if m.start() == start:
        return start

    lines = text[start:m.start() - 1].split("\n")
    while lines and _is_affiliated_keyword_line(lines[-1]):
        lines.pop()
    if not lines:
        return start
    return start + len("\n".join(lines))


def read_section(inp: OrgInput) -> Section:
    start = inp.cursor
    if not inp.at_line_start():
        raise StructuralError("Section starts a line (offset {})".format(start), start)

    end = _section_end(inp.text, start)
    if end == start:
        raise StructuralError("Expected section at offset {}".format(start), start)

    inp.advance(end - start)
    value = inp.text[start:end]
    return Section(value, NodeData(Span(start, end), _trailing_blank_lines(value, inp.at_end())))


def read_headline(inp: OrgInput) -> Headline:
    """
    Reads a single headline, with its planning, property drawer and section.

    Deeper headlines that follow are not read here, the document puts them
    under their parent.
    """
    start = inp.cursor
    affiliated = attempt(read_affiliated_keywords, inp) or ()
    if affiliated:
        inp.skip("\n")

    if not inp.at_line_start():
        raise StructuralError("Headlines start a line (offset {})".format(inp.cursor), inp.cursor)
    stars = inp.expect(STARS_RE, "headline")

    keyword = attempt(read_todo_keyword, inp)
    priority = attempt(read_priority, inp)
    title, tags = "", ()
    line = attempt(preceded, inp, " ", read_rest_of_line)
    if line is not None:
        title, tags = split_tags(line)

    headline = Headline.new(
        len(stars.text),
        title,
        keyword=keyword,
        priority=priority,
        tags=tags,
        affiliated_keywords=affiliated,
    )

    headline = headline._replace(
        planning=attempt(preceded, inp, "\n", read_planning),
    )
    headline = headline._replace(
        property_drawer=attempt(preceded, inp, "\n", read_property_drawer),
    )

    blank_lines = read_blank_lines(inp)
    section = attempt(preceded, inp, "\n", read_section)
    if section is not None:
        headline = headline._replace(section=section, pre_blank=blank_lines)
        post_blank = section.shared.post_blank
    else:
        post_blank = blank_lines

    return headline._replace(shared=NodeData(inp.span_from(start), post_blank))


## Document
def read_settings_line(inp: OrgInput) -> str:
    settings = inp.expect(SETTINGS_RE, "file settings").text
    if not inp.at_end():
        inp.expect("\n", "end of line")
    return settings


def read_file_keyword(inp: OrgInput) -> Keyword:
    start = inp.cursor
    if not inp.at_line_start():
        raise StructuralError("Keywords start a line (offset {})".format(start), start)

    matched = inp.try_match(FILE_KEYWORD_RE)
    if matched is None:
        raise StructuralError("Expected keyword at offset {}".format(start), start)

    key = matched.match.group("key")
    if key.upper() == BABEL_CALL_KEYWORD:
        raise StructuralError("#+{} is a babel call".format(key), start)
    if key.upper() in AFFILIATED_KEYWORD_NAMES or key.upper().startswith(AFFILIATED_ATTR_PREFIX):
        raise StructuralError("#+{} is an affiliated keyword".format(key), start)

    value = matched.match.group("value") or ""
    inp.advance(len(matched.text))
    return Keyword(key, value.rstrip(), NodeData(inp.span_from(start), len(value) - len(value.rstrip())))


def read_file_keywords(inp: OrgInput) -> Tuple[Keyword, ...]:
    keywords = [read_file_keyword(inp)]
    while (keyword := attempt(preceded, inp, "\n", read_file_keyword)) is not None:
        keywords.append(keyword)
    return tuple(keywords)


def nest_headlines(flat: List[Headline]) -> List[Headline]:
    """
    Place every headline under the closest previous one with a lower level.
    """
    top: List[Headline] = []
    hierarchy: List[Tuple[Headline, List[Headline]]] = []

    def close_last():
        headline, children = hierarchy.pop()
        headline = headline.with_sub_headlines(children)
        if hierarchy:
            hierarchy[-1][1].append(headline)
        else:
            top.append(headline)

    for headline in flat:
        while hierarchy and hierarchy[-1][0].level >= headline.level:
            close_last()

        parent_level = hierarchy[-1][0].level if hierarchy else 0
        if headline.level > parent_level + 1:
            logging.debug("Headline {!r} skips {} level(s)".format(
                headline.title, headline.level - parent_level - 1))
        hierarchy.append((headline, []))

    while hierarchy:
        close_last()

    return top


def read_document(inp: OrgInput) -> Document:
    start = inp.cursor
    settings = attempt(read_settings_line, inp)

    keywords = attempt(read_file_keywords, inp) or ()
    if keywords:
        inp.skip("\n")

    preface = attempt(read_section, inp)
    inp.skip("\n")

    flat = []
    if (headline := attempt(read_headline, inp)) is not None:
        flat.append(headline)
        while (headline := attempt(preceded, inp, "\n", read_headline)) is not None:
            flat.append(headline)

    return Document.new(
        settings=settings,
        keywords=keywords,
        preface=preface,
        headlines=nest_headlines(flat),
        shared=NodeData(inp.span_from(start), 0),
    )


def _parse_complete(rule, text: str):
    inp = OrgInput(text)
    try:
        value = rule(inp)
    except (StructuralError, SemanticError) as err:
        linenum, _ = get_line_column(text, err.position or 0)
        logging.error("Error line {}: {}".format(linenum, get_line(text, err.position or 0)))
        raise DocumentParseError(err.message, err.position, nested=err) from err

    if not inp.at_end():
        linenum, column = get_line_column(text, inp.cursor)
        logging.error("Error line {}, column {}: {}".format(linenum, column, get_line(text, inp.cursor)))
        raise TooMuchInput(inp.rest(), inp.cursor)
    return value


def parse_document(text: str) -> Document:
    return _parse_complete(read_document, text)


def parse_headline(text: str) -> Headline:
    return _parse_complete(read_headline, text)


def parse_section(text: str) -> Section:
    return _parse_complete(read_section, text)


def parse_planning(text: str) -> Planning:
    return _parse_complete(read_planning, text)


def parse_property_drawer(text: str) -> PropertyDrawer:
    return _parse_complete(read_property_drawer, text)


def parse_affiliated_keywords(text: str) -> Tuple[AffiliatedKeyword, ...]:
    return _parse_complete(read_affiliated_keywords, text)


def loads(s: str) -> Document:
    return parse_document(s)


def load(f) -> Document:
    return loads(f.read())
