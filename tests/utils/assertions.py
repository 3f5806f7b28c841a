import unittest

from org_tree import get_raw_contents


class Doc:
    def __init__(self, *, keywords=None, preface=None, children=None):
        self.keywords = keywords
        self.preface = preface
        self.children = children
        if isinstance(self.children, HL):
            self.children = [self.children]

    def assert_matches(self, test_case: unittest.TestCase, doc, source: str = None):
        # Check keywords
        if self.keywords is None:
            test_case.assertEqual(len(doc.keywords), 0)
        else:
            test_case.assertEqual(len(doc.keywords), len(self.keywords))
            for i, (key, value) in enumerate(self.keywords):
                test_case.assertEqual(doc.keywords[i].key, key)
                test_case.assertEqual(doc.keywords[i].value, value)

        # Check preface
        if self.preface is None:
            test_case.assertIsNone(doc.preface)
        else:
            test_case.assertIsNotNone(doc.preface)
            test_case.assertEqual(doc.preface.value, self.preface)

        if source is not None:
            test_case.assertEqual(get_raw_contents(doc, source), source)

        # Check children
        if self.children is None:
            test_case.assertEqual(len(doc.headlines), 0, "Top")
        else:
            test_case.assertEqual(len(doc.headlines), len(self.children), "Top")

            for i, children in enumerate(self.children):
                children.assert_matches(test_case, doc.headlines[i], source)


class HL:
    def __init__(self, title, *, level=None, keyword=None, priority=None, tags=(),
                 props=None, content=None, children=None):
        self.title = title
        self.level = level
        self.keyword = keyword
        self.priority = priority
        self.tags = tuple(tags)
        self.props = props
        self.content = content
        self.children = children

    def assert_matches(self, test_case: unittest.TestCase, hl, source: str = None):
        test_case.assertEqual(self.title, hl.title)
        if self.level is not None:
            test_case.assertEqual(self.level, hl.level)

        if self.keyword is None:
            test_case.assertIsNone(hl.keyword)
        else:
            test_case.assertIsNotNone(hl.keyword, hl.title)
            test_case.assertEqual(self.keyword, hl.keyword.value)

        test_case.assertEqual(self.priority, hl.priority)
        test_case.assertEqual(self.tags, hl.tags)

        # Check properties
        if self.props is None:
            test_case.assertIsNone(hl.property_drawer)
        else:
            props = hl.property_drawer.properties
            test_case.assertEqual(len(props), len(self.props))

            for i, (name, value) in enumerate(self.props):
                test_case.assertEqual(props[i].name, name)
                test_case.assertEqual(props[i].value, value)

        if self.content is None:
            test_case.assertIsNone(hl.section)
        else:
            test_case.assertIsNotNone(hl.section, hl.title)
            test_case.assertEqual(self.content, hl.section.value)
            if source is not None:
                test_case.assertEqual(get_raw_contents(hl.section, source), self.content)

        # Check children
        if self.children is None:
            test_case.assertEqual(len(hl.sub_headlines), 0)
        else:
            test_case.assertEqual(len(hl.sub_headlines), len(self.children))

            for i, children in enumerate(self.children):
                children.assert_matches(test_case, hl.sub_headlines[i], source)
