import logging
import unittest

from org_tree import (AffiliatedKeyword, AffiliatedKeywordKind,
                      AffiliatedKeywords, ContentData, Headline, NodeData,
                      NodeProperty, Planning, PropertyKind, Section, Span,
                      affiliated_keywords_of, content_of, content_span_of,
                      parse_headline, parse_property_drawer, post_blank_of,
                      span_of)


def keyword(kind, value, start=0, optional=None, backend=None):
    return AffiliatedKeyword(kind, value, optional, backend, Span(start, start + 10))


class TestSpan(unittest.TestCase):
    def test_reversed_span(self):
        with self.assertRaises(ValueError):
            Span(5, 4)

    def test_slice(self):
        span = Span(2, 5)
        self.assertEqual(span.slice("abcdefg"), "cde")
        self.assertEqual(span.length, 3)
        self.assertTrue(Span(0, 10).contains(span))
        self.assertFalse(span.contains(Span(0, 10)))

    def test_empty_span(self):
        self.assertEqual(Span(3, 3).slice("abcdef"), "")


class TestAffiliatedKeywords(unittest.TestCase):
    def test_repeatable_kinds_accumulate(self):
        keywords = AffiliatedKeywords([
            keyword(AffiliatedKeywordKind.CAPTION, "one"),
            keyword(AffiliatedKeywordKind.CAPTION, "two", optional="2"),
            keyword(AffiliatedKeywordKind.HEADER, ":var x=1"),
            keyword(AffiliatedKeywordKind.ATTR, ":width 3", backend="html"),
            keyword(AffiliatedKeywordKind.ATTR, ":alt x", backend="html"),
            keyword(AffiliatedKeywordKind.ATTR, ":float t", backend="latex"),
        ])
        self.assertEqual([k.value for k in keywords.captions], ["one", "two"])
        self.assertEqual(len(keywords.headers), 1)
        self.assertEqual(sorted(keywords.attrs), ["html", "latex"])
        self.assertEqual(len(keywords.attrs["html"]), 2)
        self.assertEqual(len(keywords), 6)
        self.assertIsNone(keywords.name)

    def test_unique_kinds_keep_last(self):
        with self.assertLogs(level=logging.WARNING) as cm:
            keywords = AffiliatedKeywords([
                keyword(AffiliatedKeywordKind.NAME, "first"),
                keyword(AffiliatedKeywordKind.NAME, "second", start=11),
                keyword(AffiliatedKeywordKind.PLOT, "plot"),
            ])
        self.assertEqual(keywords.name.value, "second")
        self.assertEqual(keywords.plot.value, "plot")
        self.assertEqual(len(keywords), 2)
        self.assertEqual(len(cm.output), 1)

    def test_empty(self):
        self.assertTrue(AffiliatedKeywords().is_empty())
        self.assertEqual(list(AffiliatedKeywords()), [])


class TestNodes(unittest.TestCase):
    def test_headline_defaults(self):
        hl = Headline.new(2, "Title")
        self.assertEqual(hl.level, 2)
        self.assertIsNone(hl.keyword)
        self.assertEqual(hl.tags, ())
        self.assertIsNone(hl.planning)
        self.assertEqual(hl.sub_headlines, ())
        self.assertEqual(hl.shared, NodeData(Span(0, 0), 0))

        with self.assertRaises(ValueError):
            Headline.new(0, "No level")

    def test_replace_keeps_other_fields(self):
        hl = Headline.new(1, "Title", tags=("a",))
        changed = hl._replace(title="COMMENT Other")
        self.assertEqual(changed.tags, ("a",))
        self.assertTrue(changed.commented)
        self.assertFalse(hl.commented)

    def test_footnote_section(self):
        self.assertTrue(Headline.new(1, "Footnotes").is_footnote_section())
        self.assertFalse(Headline.new(1, "Notes").is_footnote_section())

    def test_with_sub_headlines(self):
        parent = Headline.new(1, "Parent", shared=NodeData(Span(0, 8), 0))
        child = Headline.new(2, "Child", shared=NodeData(Span(9, 20), 1))
        nested = parent.with_sub_headlines([child])
        self.assertEqual(nested.sub_headlines, (child,))
        self.assertEqual(span_of(nested), Span(0, 20))
        self.assertEqual(content_span_of(nested), Span(9, 20))
        self.assertEqual(span_of(parent), Span(0, 8))

    def test_empty_and_missing_planning(self):
        self.assertTrue(Planning.new().is_empty())
        self.assertIsNone(parse_headline("* H").planning)

    def test_property_names(self):
        self.assertEqual(NodeProperty.new("ID", "x").kind, PropertyKind.KEY_VALUE)
        self.assertEqual(NodeProperty.new("ID", plus=True).kind, PropertyKind.KEY_PLUS)
        for name in ("", "END", "end"):
            with self.assertRaises(ValueError):
                NodeProperty.new(name)


class TestAccessors(unittest.TestCase):
    def test_shared_accessors(self):
        text = "* Headline\nBody\n\n"
        hl = parse_headline(text)
        self.assertEqual(span_of(hl), Span(0, len(text)))
        self.assertEqual(post_blank_of(hl), 1)
        self.assertEqual(post_blank_of(hl.section), 1)

    def test_content_accessors(self):
        text = ":PROPERTIES:\n:A: 1\n:END:"
        drawer = parse_property_drawer(text)
        self.assertEqual([p.name for p in content_of(drawer)], ["A"])
        self.assertEqual(content_span_of(drawer).slice(text), ":A: 1")

        section = Section.new("text", NodeData(Span(4, 8), 0))
        self.assertEqual(section.content_data(), ContentData(Span(4, 8), ("text",)))

    def test_affiliated_keywords_accessor(self):
        hl = parse_headline("#+CAPTION: Caption\n#+HEADER: :var y=2\n* H")
        keywords = affiliated_keywords_of(hl)
        self.assertEqual(keywords.captions[0].value, "Caption")
        self.assertEqual(keywords.headers[0].value, ":var y=2")
        self.assertTrue(affiliated_keywords_of(Headline.new(1, "Bare")).is_empty())
