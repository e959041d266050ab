"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import enum
import logging
from dataclasses import dataclass

from .dialect import MarkupWriter, StorageFormatWriter, WikiMarkupWriter
from .frontmatter import MarkupFormat
from .tree import Node, NodeKind

LOGGER = logging.getLogger(__name__)


class UnknownNodeKind(RuntimeError):
    "Raised when a document tree has a node whose type the renderer does not recognize."


class RenderFlags(enum.Flag):
    """
    Options that alter how certain nodes are rendered.

    :cvar INFO_MACROS: Render admonitions and alerts as information macros (info, note, tip, warning).
    :cvar RAW_WIKI: Write text verbatim in wiki markup, without escaping special characters.
    """

    INFO_MACROS = enum.auto()
    RAW_WIKI = enum.auto()


@dataclass
class RenderContext:
    """
    State maintained while walking a document tree.

    :param in_table_header: True while in the header section of a table.
    """

    in_table_header: bool = False


def create_writer(dialect: MarkupFormat, flags: RenderFlags = RenderFlags(0)) -> MarkupWriter:
    "Instantiates a markup writer for a dialect."

    if dialect == "wiki":
        return WikiMarkupWriter(escape_text=RenderFlags.RAW_WIKI not in flags)
    elif dialect == "xml":
        return StorageFormatWriter()
    else:
        raise ValueError(f"unrecognized markup dialect: {dialect}")


class DocumentRenderer:
    """
    Transforms a document tree into Confluence markup.

    :param writer: Emits markup in the target dialect.
    :param flags: Options that alter how certain nodes are rendered.
    """

    writer: MarkupWriter
    flags: RenderFlags

    def __init__(self, writer: MarkupWriter, flags: RenderFlags = RenderFlags(0)) -> None:
        self.writer = writer
        self.flags = flags

    def render(self, tree: Node) -> None:
        context = RenderContext()
        for node, entering in tree.walk():
            if entering:
                self.enter(node, context)
            else:
                self.exit(node, context)

    def enter(self, node: Node, context: RenderContext) -> None:
        "Emits output when a node is entered, and all output for a leaf node."

        w = self.writer
        match node.kind:
            case NodeKind.DOCUMENT | NodeKind.TABLE_BODY | NodeKind.SOFT_BREAK | NodeKind.HARD_BREAK:
                pass
            case NodeKind.TEXT:
                w.text(node.literal)
            case NodeKind.PARAGRAPH:
                w.open_tag("p")
            case NodeKind.HEADING:
                w.open_tag(f"h{node.level}")
            case NodeKind.EMPH:
                w.open_tag("em")
            case NodeKind.STRONG:
                w.open_tag("strong")
            case NodeKind.DEL:
                w.open_tag("del")
            case NodeKind.CODE:
                w.open_tag("code")
                w.text(node.literal)
                w.close_tag("code")
            case NodeKind.CODE_BLOCK:
                self._code_block(node)
            case NodeKind.BLOCK_QUOTE:
                self._enter_block_quote(node)
            case NodeKind.LIST:
                w.open_tag("ol" if node.ordered else "ul")
            case NodeKind.ITEM:
                w.open_tag("li")
            case NodeKind.LINK:
                w.open_tag("a", {"href": node.destination})
            case NodeKind.IMAGE:
                w.image(node.destination)
            case NodeKind.HTML_SPAN:
                w.literal(node.literal)
            case NodeKind.HTML_BLOCK:
                w.raw_block(node.literal)
                w.line_break()
            case NodeKind.HORIZONTAL_RULE:
                w.empty_tag("hr")
                w.line_break()
            case NodeKind.TABLE:
                w.open_tag("table")
            case NodeKind.TABLE_HEAD:
                context.in_table_header = True
            case NodeKind.TABLE_ROW:
                w.open_tag("tr")
            case NodeKind.TABLE_CELL:
                w.open_tag("th" if context.in_table_header else "td")
            case NodeKind.MACRO:
                self._macro(node)
            case _:
                raise UnknownNodeKind(f"unrecognized node type: {node.kind}")

    def exit(self, node: Node, context: RenderContext) -> None:
        "Emits output when a (non-leaf) node is exited."

        w = self.writer
        match node.kind:
            case NodeKind.DOCUMENT | NodeKind.TABLE_BODY:
                pass
            case NodeKind.PARAGRAPH:
                w.close_tag("p")
                w.line_break()
            case NodeKind.HEADING:
                w.close_tag(f"h{node.level}")
                w.line_break()
            case NodeKind.EMPH:
                w.close_tag("em")
            case NodeKind.STRONG:
                w.close_tag("strong")
            case NodeKind.DEL:
                w.close_tag("del")
            case NodeKind.BLOCK_QUOTE:
                self._exit_block_quote(node)
            case NodeKind.LIST:
                w.close_tag("ol" if node.ordered else "ul")
                w.line_break()
            case NodeKind.ITEM:
                w.close_tag("li")
            case NodeKind.LINK:
                w.close_tag("a")
            case NodeKind.TABLE:
                w.close_tag("table")
                w.line_break()
            case NodeKind.TABLE_HEAD:
                context.in_table_header = False
            case NodeKind.TABLE_ROW:
                w.close_tag("tr")
            case NodeKind.TABLE_CELL:
                w.close_tag("th" if context.in_table_header else "td")
            case _:
                raise UnknownNodeKind(f"unrecognized node type: {node.kind}")

    def _code_block(self, node: Node) -> None:
        if not node.info:
            LOGGER.debug("Skipping code block without language")
            return

        w = self.writer
        w.open_macro("code")
        w.parameter("language", node.info)
        w.open_macro_body(rich=False)
        w.guarded(node.literal)
        w.close_macro_body(rich=False)
        w.close_macro("code")
        w.line_break()

    def _enter_block_quote(self, node: Node) -> None:
        w = self.writer
        if node.admonition is not None and RenderFlags.INFO_MACROS in self.flags:
            w.open_macro(node.admonition)
            if node.title:
                w.parameter("title", node.title)
            w.open_macro_body(rich=True)
            return

        w.open_tag("blockquote")
        if node.title:
            w.open_tag("p")
            w.open_tag("strong")
            w.text(node.title)
            w.close_tag("strong")
            w.close_tag("p")
            w.line_break()

    def _exit_block_quote(self, node: Node) -> None:
        w = self.writer
        if node.admonition is not None and RenderFlags.INFO_MACROS in self.flags:
            w.close_macro_body(rich=True)
            w.close_macro(node.admonition)
        else:
            w.close_tag("blockquote")
        w.line_break()

    def _macro(self, node: Node) -> None:
        w = self.writer
        w.open_macro(node.name)
        for key in sorted(node.parameters):
            w.parameter(key, node.parameters[key], guarded=True)
        w.close_macro(node.name)
        w.line_break()


def render(tree: Node, dialect: MarkupFormat, flags: RenderFlags = RenderFlags(0)) -> bytes:
    """
    Renders a document tree as Confluence markup.

    :param tree: Root of the document tree.
    :param dialect: Target markup dialect, `wiki` for wiki markup or `xml` for Confluence Storage Format.
    :param flags: Options that alter how certain nodes are rendered.
    :returns: Markup encoded in UTF-8.
    """

    writer = create_writer(dialect, flags)
    DocumentRenderer(writer, flags).render(tree)
    return writer.getvalue().encode("utf-8")
