from typing import Generator, Tuple

from .dom import Document, Headline, PropertyDrawer


def get_raw_contents(node, source: str) -> str:
    """Text of the source that `node` was read from."""
    if isinstance(node, (list, tuple)) and not hasattr(node, "shared"):
        return "".join([get_raw_contents(chunk, source) for chunk in node])
    return node.shared.span.slice(source)


def get_line_column(text: str, offset: int) -> Tuple[int, int]:
    """1-based line and column of `offset` on `text`."""
    offset = min(max(offset, 0), len(text))
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def get_line(text: str, offset: int) -> str:
    start = text.rfind("\n", 0, offset) + 1
    end = text.find("\n", offset)
    if end < 0:
        end = len(text)
    return text[start:end]


def walk(node) -> Generator:
    """Depth-first iteration over a node and every node below it."""
    yield node

    if isinstance(node, Document):
        if node.preface is not None:
            yield node.preface
        for hl in node.headlines:
            yield from walk(hl)
    elif isinstance(node, Headline):
        if node.planning is not None:
            yield node.planning
        if node.property_drawer is not None:
            yield from walk(node.property_drawer)
        if node.section is not None:
            yield node.section
        for hl in node.sub_headlines:
            yield from walk(hl)
    elif isinstance(node, PropertyDrawer):
        yield from node.properties
