"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import logging
import unittest

from md2cfl.frontmatter import FrontMatter, InvalidMetadata, MissingMetadata, extract_frontmatter
from tests.utility import TypedTestCase

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(funcName)s [%(lineno)d] - %(message)s",
)

YAML_DOCUMENT = """---
title: Release notes
tags:
  - release
  - changelog
confluence:
  base: https://example.atlassian.net/wiki
  page: "1933314"
  format: xml
---
# Heading

Body text.
"""

TOML_DOCUMENT = """+++
title = "Release notes"
tags = ["release", "changelog"]

[confluence]
base = "https://example.atlassian.net/wiki"
page = "1933314"
format = "xml"
+++
# Heading

Body text.
"""


class TestFrontMatter(TypedTestCase):
    def test_yaml(self) -> None:
        front_matter, body = extract_frontmatter(YAML_DOCUMENT)
        self.assertEqual(front_matter.syntax, "yaml")
        self.assertEqual(front_matter.title("Page"), "Release notes")
        self.assertListEqual(front_matter.tags(), ["release", "changelog"])
        self.assertEqual(front_matter.confluence_page(""), "1933314")
        self.assertEqual(front_matter.confluence_format(), "xml")
        self.assertEqual(body, "# Heading\n\nBody text.\n")

    def test_toml(self) -> None:
        front_matter, body = extract_frontmatter(TOML_DOCUMENT)
        self.assertEqual(front_matter.syntax, "toml")
        self.assertEqual(body, "# Heading\n\nBody text.\n")

    def test_equivalent_syntax(self) -> None:
        yaml_matter, _ = extract_frontmatter(YAML_DOCUMENT)
        toml_matter, _ = extract_frontmatter(TOML_DOCUMENT)

        for key in ["title", "missing"]:
            self.assertEqual(yaml_matter.string_field(key, "default"), toml_matter.string_field(key, "default"))
        for key in ["base", "page", "format", "missing"]:
            self.assertEqual(
                yaml_matter.nested_string_field("confluence", key, "default"),
                toml_matter.nested_string_field("confluence", key, "default"),
            )
        self.assertListEqual(yaml_matter.string_list_field("tags"), toml_matter.string_list_field("tags"))

    def test_toml_in_dashes(self) -> None:
        front_matter, body = extract_frontmatter('---\ntitle = "Title"\n---\nText\n')
        self.assertEqual(front_matter.syntax, "toml")
        self.assertEqual(front_matter.title("Page"), "Title")
        self.assertEqual(body, "Text\n")

    def test_defaults(self) -> None:
        front_matter, body = extract_frontmatter("---\n---\nText\n")
        self.assertEqual(front_matter.data, {})
        self.assertEqual(front_matter.title("Page"), "Page")
        self.assertEqual(front_matter.confluence_base("https://example.com"), "https://example.com")
        self.assertEqual(front_matter.confluence_page(""), "")
        self.assertEqual(front_matter.confluence_format(), "wiki")
        self.assertListEqual(front_matter.tags(), [])
        self.assertEqual(body, "Text\n")

    def test_not_a_string(self) -> None:
        front_matter = FrontMatter({"title": 42, "confluence": {"page": 1933314}})
        self.assertEqual(front_matter.title("Page"), "Page")
        self.assertEqual(front_matter.confluence_page("default"), "default")

    def test_not_a_group(self) -> None:
        front_matter = FrontMatter({"confluence": "page"})
        self.assertEqual(front_matter.confluence_page("default"), "default")

    def test_syntax(self) -> None:
        yaml_front_matter, yaml_body = extract_frontmatter(YAML_DOCUMENT)
        toml_front_matter, toml_body = extract_frontmatter(TOML_DOCUMENT)
        self.assertEqual(yaml_front_matter.syntax, "yaml")
        self.assertEqual(toml_front_matter.syntax, "toml")
        self.assertEqual(yaml_body, "# Heading\n\nBody text.\n")
        self.assertEqual(toml_body, yaml_body)

    def test_byte_order_mark(self) -> None:
        front_matter, _ = extract_frontmatter("\ufeff---\ntitle: Title\n---\n")
        self.assertEqual(front_matter.title("Page"), "Title")

    def test_missing(self) -> None:
        with self.assertRaises(MissingMetadata):
            extract_frontmatter("# Heading\n\nBody text.\n")
        with self.assertRaises(MissingMetadata):
            extract_frontmatter("Text\n---\ntitle: Title\n---\n")
        with self.assertRaises(MissingMetadata):
            extract_frontmatter("---\ntitle: Title\n")

    def test_invalid(self) -> None:
        with self.assertRaises(InvalidMetadata):
            extract_frontmatter("---\n[unbalanced\n---\n")
        with self.assertRaises(InvalidMetadata):
            extract_frontmatter("+++\n= value\n+++\n")

    def test_invalid_tags(self) -> None:
        with self.assertRaises(InvalidMetadata):
            FrontMatter({"tags": "release"}).tags()
        with self.assertRaises(InvalidMetadata):
            FrontMatter({"tags": ["release", 1]}).tags()

    def test_invalid_format(self) -> None:
        with self.assertRaises(InvalidMetadata):
            FrontMatter({"confluence": {"format": "html"}}).confluence_format()


if __name__ == "__main__":
    unittest.main()
