"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import logging
from pathlib import Path

from .collector import collect_images, collect_links
from .frontmatter import FrontMatter, MarkupFormat, extract_frontmatter
from .renderer import RenderFlags, render
from .shortcode import strip_shortcodes
from .tree import Node, parse_document

LOGGER = logging.getLogger(__name__)


class ConfluenceDocument:
    """
    A Markdown document prepared for publishing to Confluence.

    :param front_matter: Metadata extracted from the document preamble.
    :param root: Document tree built from the document body.
    """

    front_matter: FrontMatter
    root: Node

    def __init__(self, front_matter: FrontMatter, root: Node) -> None:
        self.front_matter = front_matter
        self.root = root

    @classmethod
    def parse(cls, text: str) -> "ConfluenceDocument":
        """
        Parses a Markdown document with a metadata preamble.

        :raises MissingMetadata: The document has no preamble.
        :raises InvalidMetadata: The preamble cannot be parsed.
        """

        front_matter, body = extract_frontmatter(text)
        body = strip_shortcodes(body)
        return cls(front_matter, parse_document(body))

    @classmethod
    def read(cls, path: Path) -> "ConfluenceDocument":
        "Reads and parses a Markdown document from a file."

        LOGGER.info("Reading Markdown document: %s", path)
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()

        return cls.parse(text)

    @property
    def dialect(self) -> MarkupFormat:
        return self.front_matter.confluence_format()

    def render(self, flags: RenderFlags = RenderFlags(0)) -> bytes:
        "Renders the document in the dialect selected in the preamble."

        return render(self.root, self.dialect, flags)

    def images(self) -> list[str]:
        return collect_images(self.root)

    def links(self) -> list[str]:
        return collect_links(self.root)
