"""
Unit tests for heading/time metadata extraction.

Extraction contract:
- every heading appears in the outline, in document order
- a valid time value becomes the estimate
- a present but invalid value gives no estimate and exactly one warning
- a heading without time metadata is plain (no warning)
"""

import logging
import unittest

from bs4 import BeautifulSoup

from didact.headings import extract_headings, parse_time_estimate, total_time
from didact.markup import parse
from didact.model import DocumentFormat, HeadingNode, format_minutes
from didact.tree import get_node_from_adoc_div


class TestParseTimeEstimate(unittest.TestCase):
    def test_numbers(self) -> None:
        self.assertEqual(parse_time_estimate("5"), 5.0)
        self.assertEqual(parse_time_estimate(" 2.5 "), 2.5)
        self.assertEqual(parse_time_estimate("0"), 0.0)

    def test_rejects_non_numbers(self) -> None:
        for raw in (None, "", "  ", "abc", "5min", "nan", "inf"):
            self.assertIsNone(parse_time_estimate(raw), raw)

    def test_format_minutes(self) -> None:
        self.assertEqual(format_minutes(5.0), "(~5 mins)")
        self.assertEqual(format_minutes(2.5), "(~2.5 mins)")


class TestMarkdownHeadings(unittest.TestCase):
    def test_outline_keeps_every_heading(self) -> None:
        tree = parse(
            "# Title\n\n## One {time=5}\n\ntext\n\n## Two\n\n### Three {time=2.5}\n",
            DocumentFormat.MARKDOWN,
        )
        headings = extract_headings(tree, DocumentFormat.MARKDOWN)
        self.assertEqual(
            [(h.title, h.time_estimate, h.level) for h in headings],
            [("Title", None, 1), ("One", 5.0, 2), ("Two", None, 2), ("Three", 2.5, 3)],
        )
        self.assertEqual(total_time(headings), 7.5)

    def test_invalid_time_warns_once(self) -> None:
        tree = parse("## Setup {time=abc}\n\n## Run {time=5}\n", DocumentFormat.MARKDOWN)
        with self.assertLogs("didact.headings", level=logging.WARNING) as cm:
            headings = extract_headings(tree, DocumentFormat.MARKDOWN)

        self.assertEqual(len(cm.output), 1)
        self.assertIn('Heading node "Setup" has an invalid time value set to "abc"', cm.output[0])
        self.assertIsNone(headings[0].time_estimate)
        self.assertEqual(headings[1].time_estimate, 5.0)

    def test_empty_time_value_warns(self) -> None:
        tree = parse('## Setup {time=""}\n', DocumentFormat.MARKDOWN)
        with self.assertLogs("didact.headings", level=logging.WARNING) as cm:
            headings = extract_headings(tree, DocumentFormat.MARKDOWN)
        self.assertEqual(len(cm.output), 1)
        self.assertIsNone(headings[0].time_estimate)

    def test_heading_without_time_does_not_warn(self) -> None:
        tree = parse("# Just a title\n\n---\n\n## Plain\n", DocumentFormat.MARKDOWN)
        with self.assertNoLogs("didact.headings", level=logging.WARNING):
            headings = extract_headings(tree, DocumentFormat.MARKDOWN)
        self.assertEqual([h.title for h in headings], ["Just a title", "Plain"])

    def test_no_headings(self) -> None:
        tree = parse("Only a paragraph.\n", DocumentFormat.MARKDOWN)
        self.assertEqual(extract_headings(tree, DocumentFormat.MARKDOWN), [])
        self.assertEqual(total_time([]), 0)


class TestAsciiDocHeadings(unittest.TestCase):
    def test_section_roles(self) -> None:
        tree = parse(
            "= Doc\n\n[.time=5]\n== One\n\ntext\n\n[#two.time=abc]\n== Two\n\n== Three\n",
            DocumentFormat.ASCIIDOC,
        )
        with self.assertLogs("didact.headings", level=logging.WARNING) as cm:
            headings = extract_headings(tree, DocumentFormat.ASCIIDOC)
        self.assertEqual(len(cm.output), 1)
        self.assertEqual(
            [(h.title, h.time_estimate) for h in headings],
            [("One", 5.0), ("Two", None), ("Three", None)],
        )
        self.assertEqual(headings[1].element_id, "two")

    def test_node_from_div_with_time_role(self) -> None:
        div = BeautifulSoup('<div class="time=10 foo"><h2>Step One</h2></div>', "html.parser").div
        node = get_node_from_adoc_div(div, "t.didact.adoc", "Basics")
        self.assertEqual(node.label, "Step One")
        self.assertEqual(node.description, "(~10 mins)")

    def test_node_from_div_without_estimate(self) -> None:
        plain = BeautifulSoup('<div class="sect1"><h2>Step One</h2></div>', "html.parser").div
        self.assertIsNone(get_node_from_adoc_div(plain, "t.didact.adoc", "Basics"))
        empty = BeautifulSoup('<div class="time=10"><p>no heading</p></div>', "html.parser").div
        self.assertIsNone(get_node_from_adoc_div(empty, "t.didact.adoc", "Basics"))

    def test_heading_node_label(self) -> None:
        self.assertIsNone(HeadingNode("x").time_label)
        self.assertEqual(HeadingNode("x", 3.0).time_label, "(~3 mins)")


if __name__ == "__main__":
    unittest.main()
