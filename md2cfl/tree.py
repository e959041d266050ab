"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import enum
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field

import lxml.html
from lxml.html import HtmlElement

from .markdown import markdown_to_html

LOGGER = logging.getLogger(__name__)


@enum.unique
class NodeKind(enum.Enum):
    "Closed set of node types that make up a document tree."

    DOCUMENT = "document"
    TEXT = "text"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    EMPH = "emph"
    STRONG = "strong"
    DEL = "del"
    CODE = "code"
    CODE_BLOCK = "code_block"
    BLOCK_QUOTE = "block_quote"
    LIST = "list"
    ITEM = "item"
    LINK = "link"
    IMAGE = "image"
    HTML_SPAN = "html_span"
    HTML_BLOCK = "html_block"
    HORIZONTAL_RULE = "horizontal_rule"
    TABLE = "table"
    TABLE_HEAD = "table_head"
    TABLE_BODY = "table_body"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    SOFT_BREAK = "soft_break"
    HARD_BREAK = "hard_break"
    MACRO = "macro"


# node types visited only once in a walk, they never have children
LEAF_KINDS = frozenset(
    [
        NodeKind.TEXT,
        NodeKind.CODE,
        NodeKind.CODE_BLOCK,
        NodeKind.IMAGE,
        NodeKind.HTML_SPAN,
        NodeKind.HTML_BLOCK,
        NodeKind.HORIZONTAL_RULE,
        NodeKind.SOFT_BREAK,
        NodeKind.HARD_BREAK,
        NodeKind.MACRO,
    ]
)


@dataclass
class Node:
    """
    A node in a document tree.

    :param kind: Node type.
    :param children: Child nodes in document order.
    :param literal: Text content of text, code and raw HTML nodes.
    :param level: Heading level between 1 and 6.
    :param ordered: Whether a list is numbered.
    :param info: Language of a code block.
    :param destination: Target of a link or an image, as authored.
    :param title: Title of a link, image or admonition.
    :param name: Macro name.
    :param parameters: Named macro parameters.
    :param admonition: Information macro type of a block quote, e.g. `info`, `note`, `tip` or `warning`.
    """

    kind: NodeKind
    children: list["Node"] = field(default_factory=list)
    literal: str = ""
    level: int = 0
    ordered: bool = False
    info: str | None = None
    destination: str = ""
    title: str | None = None
    name: str = ""
    parameters: dict[str, str] = field(default_factory=dict)
    admonition: str | None = None

    @property
    def is_leaf(self) -> bool:
        return self.kind in LEAF_KINDS

    def walk(self) -> Iterator[tuple["Node", bool]]:
        """
        Traverses the sub-tree rooted at this node.

        :returns: Pairs of (1) a node and (2) whether the node is being entered (as opposed to exited).
            Leaf nodes are entered only.
        """

        yield self, True
        if self.is_leaf:
            return

        for child in self.children:
            yield from child.walk()
        yield self, False


# maps admonition types to the information macros available in Confluence
_ADMONITION_TYPES = {
    "attention": "note",
    "caution": "warning",
    "danger": "warning",
    "error": "warning",
    "hint": "tip",
    "important": "note",
    "info": "info",
    "note": "info",
    "tip": "tip",
    "warning": "note",
}

_SIMPLE_KINDS = {
    "p": NodeKind.PARAGRAPH,
    "em": NodeKind.EMPH,
    "i": NodeKind.EMPH,
    "strong": NodeKind.STRONG,
    "b": NodeKind.STRONG,
    "del": NodeKind.DEL,
    "s": NodeKind.DEL,
    "table": NodeKind.TABLE,
    "thead": NodeKind.TABLE_HEAD,
    "tbody": NodeKind.TABLE_BODY,
    "tr": NodeKind.TABLE_ROW,
    "th": NodeKind.TABLE_CELL,
    "td": NodeKind.TABLE_CELL,
}

# node types whose children are blocks, and thus ignore whitespace between child elements
_BLOCK_CONTAINER_KINDS = frozenset(
    [
        NodeKind.DOCUMENT,
        NodeKind.BLOCK_QUOTE,
        NodeKind.LIST,
        NodeKind.TABLE,
        NodeKind.TABLE_HEAD,
        NodeKind.TABLE_BODY,
        NodeKind.TABLE_ROW,
    ]
)

_BLOCK_KINDS = frozenset(
    [
        NodeKind.PARAGRAPH,
        NodeKind.HEADING,
        NodeKind.CODE_BLOCK,
        NodeKind.BLOCK_QUOTE,
        NodeKind.LIST,
        NodeKind.HTML_BLOCK,
        NodeKind.HORIZONTAL_RULE,
        NodeKind.TABLE,
        NodeKind.MACRO,
    ]
)

# raw HTML elements that start a block of their own
_HTML_BLOCK_TAGS = frozenset(
    [
        "address",
        "article",
        "aside",
        "center",
        "details",
        "dialog",
        "div",
        "dl",
        "fieldset",
        "figure",
        "footer",
        "form",
        "header",
        "iframe",
        "nav",
        "pre",
        "section",
        "summary",
        "video",
    ]
)

_HEADING_REGEXP = re.compile(r"^h([1-6])$")
_LANGUAGE_REGEXP = re.compile(r"^language-(.+)$")
_ALERT_REGEXP = re.compile(r"^\[!([A-Z]+)\]\s*")


class TreeBuilder:
    "Builds a document tree from the XHTML output of the Markdown parser."

    def build(self, html: str) -> Node:
        root = lxml.html.fragment_fromstring(html, create_parent="div")
        return Node(NodeKind.DOCUMENT, self._children(root, NodeKind.DOCUMENT))

    def _children(self, elem: HtmlElement, kind: NodeKind) -> list[Node]:
        "Converts the text and child elements of an element into a list of nodes."

        nodes: list[Node] = []
        self._append_text(nodes, elem.text)
        for child in elem:
            if isinstance(child.tag, str):
                nodes.append(self._convert(child, kind))
            self._append_text(nodes, child.tail)

        if kind in _BLOCK_CONTAINER_KINDS or any(node.kind in _BLOCK_KINDS for node in nodes):
            nodes = [node for node in nodes if node.kind is not NodeKind.TEXT or node.literal.strip()]
        return nodes

    def _append_text(self, nodes: list[Node], text: str | None) -> None:
        if text:
            nodes.append(Node(NodeKind.TEXT, literal=text.replace("\n", " ")))

    def _convert(self, elem: HtmlElement, parent_kind: NodeKind) -> Node:
        "Converts a single element (and its descendants) into a node."

        tag: str = elem.tag

        if (kind := _SIMPLE_KINDS.get(tag)) is not None:
            return Node(kind, self._children(elem, kind))

        if m := _HEADING_REGEXP.match(tag):
            return Node(NodeKind.HEADING, self._children(elem, NodeKind.HEADING), level=int(m.group(1)))

        if tag == "ul" or tag == "ol":
            return Node(NodeKind.LIST, self._children(elem, NodeKind.LIST), ordered=tag == "ol")

        if tag == "li":
            return Node(NodeKind.ITEM, self._children(elem, NodeKind.ITEM))

        if tag == "a":
            return Node(
                NodeKind.LINK,
                self._children(elem, NodeKind.LINK),
                destination=elem.get("href", ""),
                title=elem.get("title"),
            )

        if tag == "img":
            return Node(NodeKind.IMAGE, destination=elem.get("src", ""), title=elem.get("title") or elem.get("alt"))

        if tag == "code":
            return Node(NodeKind.CODE, literal=elem.text_content().replace("\n", " "))

        if tag == "pre" and len(elem) == 1 and elem[0].tag == "code" and not (elem.text or "").strip():
            return self._code_block(elem[0])

        if tag == "hr":
            return Node(NodeKind.HORIZONTAL_RULE)

        if tag == "br":
            return Node(NodeKind.HARD_BREAK)

        if tag == "blockquote":
            return self._block_quote(elem)

        if tag == "div" and "admonition" in elem.get("class", "").split():
            return self._admonition(elem)

        if tag == "x-macro":
            return self._macro(elem)

        # raw HTML embedded by the author
        literal = lxml.html.tostring(elem, encoding="unicode", with_tail=False)
        if tag in _HTML_BLOCK_TAGS or parent_kind in _BLOCK_CONTAINER_KINDS:
            return Node(NodeKind.HTML_BLOCK, literal=literal)
        else:
            return Node(NodeKind.HTML_SPAN, literal=literal)

    def _code_block(self, code: HtmlElement) -> Node:
        # <pre><code class="language-java"> ... </code></pre>
        language: str | None = None
        for class_name in code.get("class", "").split():
            if m := _LANGUAGE_REGEXP.match(class_name):
                language = m.group(1)
                break

        content: str = code.text_content()
        return Node(NodeKind.CODE_BLOCK, literal=content.rstrip(), info=language)

    def _block_quote(self, elem: HtmlElement) -> Node:
        """
        Creates a block quote, recognizing GitHub alerts.

        A GitHub alert is a block quote whose first paragraph starts with a capitalized string such as `[!TIP]`.
        """

        admonition: str | None = None
        if len(elem) > 0 and elem[0].tag == "p" and elem[0].text is not None:
            if m := _ALERT_REGEXP.match(elem[0].text):
                alert = m.group(1)
                admonition = _ADMONITION_TYPES.get(alert.lower())
                if admonition is not None:
                    # remove alert indicator prefix
                    first = elem[0]
                    first.text = first.text[len(m.group(0)) :]
                    if not first.text and len(first) == 0:
                        elem.remove(first)
                else:
                    LOGGER.debug("Unsupported GitHub alert: %s", alert)

        return Node(NodeKind.BLOCK_QUOTE, self._children(elem, NodeKind.BLOCK_QUOTE), admonition=admonition)

    def _admonition(self, elem: HtmlElement) -> Node:
        """
        Creates a block quote with an admonition type.

        Transforms [Python-Markdown admonition](https://python-markdown.github.io/extensions/admonition/) syntax.
        """

        # <div class="admonition note">
        class_list = [class_name for class_name in elem.get("class", "").split() if class_name != "admonition"]
        admonition: str | None = None
        if class_list:
            admonition = _ADMONITION_TYPES.get(class_list[0])
            if admonition is None:
                LOGGER.debug("Unsupported admonition type: %s", class_list[0])

        # <p class="admonition-title">Note</p>
        title: str | None = None
        if len(elem) > 0 and "admonition-title" in elem[0].get("class", "").split():
            title = elem[0].text_content().strip() or None
            elem.remove(elem[0])

        return Node(NodeKind.BLOCK_QUOTE, self._children(elem, NodeKind.BLOCK_QUOTE), title=title, admonition=admonition)

    def _macro(self, elem: HtmlElement) -> Node:
        # <x-macro data-name="info"><x-parameter data-name="title">Note</x-parameter></x-macro>
        parameters: dict[str, str] = {}
        for param in elem:
            if param.tag == "x-parameter":
                parameters[param.get("data-name", "")] = param.text_content()

        return Node(NodeKind.MACRO, name=elem.get("data-name", ""), parameters=parameters)


def parse_document(text: str) -> Node:
    """
    Parses a Markdown document into a document tree.

    :param text: Markdown document body, without metadata preamble.
    :returns: Root node of kind *document*.
    """

    html = markdown_to_html(text)
    return TreeBuilder().build(html)
