"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import re
import xml.etree.ElementTree

import markdown
from markdown.blockparser import BlockParser
from markdown.blockprocessors import BlockProcessor
from markdown.extensions import Extension
from markdown.util import AtomicString

from .compatibility import override

# e.g. {{< panel title="Release notes" bgColor="#FFFAE6" >}}
_MACRO_REGEXP = re.compile(r'^\{\{<\s*([A-Za-z][\w-]*)((?:\s+[\w-]+="[^"]*")*)\s*>\}\}\s*$')
_PARAMETER_REGEXP = re.compile(r'([\w-]+)="([^"]*)"')

# placeholders for a table of contents and a listing of child pages, as supported by GitLab
_PLACEHOLDER_MACROS = {
    "[[_TOC_]]": "toc",
    "[[_LISTING_]]": "children",
}


def parse_macro(line: str) -> tuple[str, dict[str, str]] | None:
    """
    Parses a stand-alone macro invocation such as `{{< info title="Note" >}}`.

    :returns: A tuple of (1) the macro name and (2) the named parameters, or `None` if the line is not a macro.
    """

    line = line.strip()
    if (name := _PLACEHOLDER_MACROS.get(line)) is not None:
        return name, {}

    m = _MACRO_REGEXP.match(line)
    if m is None:
        return None

    return m.group(1), dict(_PARAMETER_REGEXP.findall(m.group(2)))


class MacroBlockProcessor(BlockProcessor):
    """
    Turns a paragraph that consists of a single macro invocation into an element
    `<x-macro data-name="...">` with `<x-parameter data-name="...">` children.
    """

    @override
    def test(self, parent: xml.etree.ElementTree.Element, block: str) -> bool:
        return parse_macro(block) is not None

    @override
    def run(self, parent: xml.etree.ElementTree.Element, blocks: list[str]) -> bool | None:
        macro = parse_macro(blocks.pop(0))
        if macro is None:
            return False

        name, parameters = macro
        elem = xml.etree.ElementTree.SubElement(parent, "x-macro", {"data-name": name})
        for key, value in parameters.items():
            param = xml.etree.ElementTree.SubElement(elem, "x-parameter", {"data-name": key})
            param.text = AtomicString(value)
        return None


class MacroExtension(Extension):
    "Recognizes stand-alone macro invocations in Markdown."

    @override
    def extendMarkdown(self, md: markdown.Markdown) -> None:
        parser: BlockParser = md.parser
        parser.blockprocessors.register(MacroBlockProcessor(parser), "confluence_macro", 16)


_CONVERTER = markdown.Markdown(
    extensions=[
        "admonition",
        "markdown.extensions.tables",
        "pymdownx.highlight",  # required by `pymdownx.superfences`
        "pymdownx.magiclink",
        "pymdownx.superfences",
        "pymdownx.tilde",
        "sane_lists",
        MacroExtension(),
    ],
    extension_configs={
        "pymdownx.highlight": {
            "use_pygments": False,
        },
        "pymdownx.tilde": {
            "subscript": False,
        },
    },
)


def markdown_to_html(content: str) -> str:
    """
    Converts a Markdown document into XHTML with Python-Markdown.

    :param content: Markdown input as a string.
    :returns: XHTML output as a string.
    :see: https://python-markdown.github.io/
    """

    _CONVERTER.reset()
    html = _CONVERTER.convert(content)
    return html
