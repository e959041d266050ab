"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import logging
import typing
import unittest

from md2cfl.renderer import RenderFlags, UnknownNodeKind, render
from md2cfl.tree import Node, NodeKind, parse_document
from tests.utility import TypedTestCase

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(funcName)s [%(lineno)d] - %(message)s",
)


def text(literal: str) -> Node:
    return Node(NodeKind.TEXT, literal=literal)


def paragraph(*children: Node) -> Node:
    return Node(NodeKind.PARAGRAPH, list(children))


def document(*children: Node) -> Node:
    return Node(NodeKind.DOCUMENT, list(children))


def cell(literal: str) -> Node:
    return Node(NodeKind.TABLE_CELL, [text(literal)])


def row(*cells: Node) -> Node:
    return Node(NodeKind.TABLE_ROW, list(cells))


def wiki(tree: Node, flags: RenderFlags = RenderFlags(0)) -> str:
    return render(tree, "wiki", flags).decode("utf-8")


def xml(tree: Node, flags: RenderFlags = RenderFlags(0)) -> str:
    return render(tree, "xml", flags).decode("utf-8")


class TestRenderer(TypedTestCase):
    def test_paragraph(self) -> None:
        tree = document(paragraph(text("hello")))
        self.assertEqual(wiki(tree), "hello\n\n")
        self.assertEqual(xml(tree), "<p>hello</p>\n")

    def test_bytes(self) -> None:
        tree = document(paragraph(text("árvíztűrő")))
        self.assertEqual(render(tree, "xml"), "<p>árvíztűrő</p>\n".encode("utf-8"))

    def test_heading(self) -> None:
        tree = document(Node(NodeKind.HEADING, [text("Title")], level=2), paragraph(text("body")))
        self.assertEqual(wiki(tree), "h2. Title\n\nbody\n\n")
        self.assertEqual(xml(tree), "<h2>Title</h2>\n<p>body</p>\n")

    def test_inline(self) -> None:
        tree = document(
            paragraph(
                Node(NodeKind.EMPH, [text("a")]),
                text(" "),
                Node(NodeKind.STRONG, [text("b")]),
                text(" "),
                Node(NodeKind.DEL, [text("c")]),
                text(" "),
                Node(NodeKind.CODE, literal="d"),
            )
        )
        self.assertEqual(wiki(tree), "_a_ *b* -c- {{d}}\n\n")
        self.assertEqual(
            xml(tree),
            '<p><em>a</em> <strong>b</strong> <span style="text-decoration: line-through;">c</span> <code>d</code></p>\n',
        )

    def test_escape(self) -> None:
        tree = document(paragraph(text("a*b_c [x] {y} |z| 1-2 <&>")))
        self.assertEqual(wiki(tree), "a\\*b\\_c \\[x\\] \\{y\\} \\|z\\| 1\\-2 <&>\n\n")
        self.assertEqual(xml(tree), "<p>a*b_c [x] {y} |z| 1-2 &lt;&amp;&gt;</p>\n")

    def test_invalid_xml_character(self) -> None:
        tree = document(paragraph(text("vertical\x0btab")))
        self.assertEqual(wiki(tree), "vertical\x0btab\n\n")
        with self.assertRaises(ValueError):
            xml(tree)

    def test_raw_wiki(self) -> None:
        tree = document(paragraph(text("*bold* and {color:red}text{color}")))
        self.assertEqual(wiki(tree, RenderFlags.RAW_WIKI), "*bold* and {color:red}text{color}\n\n")
        self.assertEqual(xml(tree, RenderFlags.RAW_WIKI), "<p>*bold* and {color:red}text{color}</p>\n")

    def test_code_block(self) -> None:
        tree = document(Node(NodeKind.CODE_BLOCK, literal="echo hi", info="bash"))
        self.assertEqual(wiki(tree), "{code:language=bash}\necho hi\n{code}\n\n")
        self.assertEqual(
            xml(tree),
            '<ac:structured-macro ac:name="code">'
            '<ac:parameter ac:name="language">bash</ac:parameter>'
            "<ac:plain-text-body><![CDATA[echo hi]]></ac:plain-text-body>"
            "</ac:structured-macro>\n",
        )

    def test_code_block_cdata_terminator(self) -> None:
        tree = document(Node(NodeKind.CODE_BLOCK, literal="a]]>b", info="xml"))
        self.assertIn("<ac:plain-text-body>a]]&gt;b</ac:plain-text-body>", xml(tree))

    def test_code_block_terminator_in_wiki(self) -> None:
        tree = document(Node(NodeKind.CODE_BLOCK, literal="{code}", info="text"))
        with self.assertLogs("md2cfl.dialect", level=logging.DEBUG):
            self.assertEqual(wiki(tree), "{code:language=text}\n{code}\n{code}\n\n")

    def test_code_block_without_language(self) -> None:
        tree = document(Node(NodeKind.CODE_BLOCK, literal="echo hi"))
        self.assertEqual(render(tree, "wiki"), b"")
        self.assertEqual(render(tree, "xml"), b"")

    def test_table(self) -> None:
        tree = document(
            Node(
                NodeKind.TABLE,
                [
                    Node(NodeKind.TABLE_HEAD, [row(cell("A"), cell("B"))]),
                    Node(NodeKind.TABLE_BODY, [row(cell("1"), cell("2"))]),
                ],
            ),
            Node(NodeKind.TABLE, [Node(NodeKind.TABLE_BODY, [row(cell("3"), cell("4"))])]),
        )
        self.assertEqual(wiki(tree), "||A||B||\n|1|2|\n\n|3|4|\n\n")
        self.assertEqual(
            xml(tree),
            "<table><tbody><tr><th>A</th><th>B</th></tr><tr><td>1</td><td>2</td></tr></tbody></table>\n"
            "<table><tbody><tr><td>3</td><td>4</td></tr></tbody></table>\n",
        )

    def test_list(self) -> None:
        tree = document(
            Node(
                NodeKind.LIST,
                [
                    Node(NodeKind.ITEM, [text("a")]),
                    Node(NodeKind.ITEM, [text("b"), Node(NodeKind.LIST, [Node(NodeKind.ITEM, [text("c")])], ordered=True)]),
                ],
            )
        )
        self.assertEqual(wiki(tree), "* a\n* b\n*# c\n\n")
        self.assertEqual(xml(tree), "<ul><li>a</li><li>b<ol><li>c</li></ol>\n</li></ul>\n")

    def test_loose_list(self) -> None:
        tree = document(Node(NodeKind.LIST, [Node(NodeKind.ITEM, [paragraph(text("a"))]), Node(NodeKind.ITEM, [paragraph(text("b"))])]))
        self.assertEqual(wiki(tree), "* a\n* b\n\n")

    def test_link_and_image(self) -> None:
        tree = document(
            paragraph(
                Node(NodeKind.LINK, [text("text")], destination="c.md"),
                text(" "),
                Node(NodeKind.IMAGE, destination="a.png", title="alt"),
            )
        )
        self.assertEqual(wiki(tree), "[text|c.md] !a.png!\n\n")
        self.assertEqual(xml(tree), '<p><a href="c.md">text</a> <ac:image><ri:url ri:value="a.png"/></ac:image></p>\n')

    def test_link_destination_escape(self) -> None:
        tree = document(paragraph(Node(NodeKind.LINK, [text("a")], destination="x|y]z")))
        self.assertEqual(wiki(tree), "[a|x%7Cy%5Dz]\n\n")
        self.assertEqual(xml(tree), '<p><a href="x|y]z">a</a></p>\n')

    def test_horizontal_rule(self) -> None:
        tree = document(paragraph(text("a")), Node(NodeKind.HORIZONTAL_RULE), paragraph(text("b")))
        self.assertEqual(wiki(tree), "a\n\n----\n\nb\n\n")
        self.assertEqual(xml(tree), "<p>a</p>\n<hr/>\n<p>b</p>\n")

    def test_block_quote(self) -> None:
        tree = document(Node(NodeKind.BLOCK_QUOTE, [paragraph(text("q"))]))
        self.assertEqual(wiki(tree), "{quote}\nq\n\n{quote}\n\n")
        self.assertEqual(xml(tree), "<blockquote><p>q</p>\n</blockquote>\n")

    def test_admonition(self) -> None:
        tree = document(Node(NodeKind.BLOCK_QUOTE, [paragraph(text("body"))], title="Note", admonition="info"))
        self.assertEqual(wiki(tree), "{quote}\n*Note*\n\nbody\n\n{quote}\n\n")
        self.assertEqual(xml(tree), "<blockquote><p><strong>Note</strong></p>\n<p>body</p>\n</blockquote>\n")

    def test_admonition_info_macro(self) -> None:
        tree = document(Node(NodeKind.BLOCK_QUOTE, [paragraph(text("body"))], title="Note", admonition="info"))
        self.assertEqual(wiki(tree, RenderFlags.INFO_MACROS), "{info:title=Note}\nbody\n\n{info}\n\n")
        self.assertEqual(
            xml(tree, RenderFlags.INFO_MACROS),
            '<ac:structured-macro ac:name="info">'
            '<ac:parameter ac:name="title">Note</ac:parameter>'
            "<ac:rich-text-body><p>body</p>\n</ac:rich-text-body>"
            "</ac:structured-macro>\n",
        )

    def test_block_quote_info_macro(self) -> None:
        tree = document(Node(NodeKind.BLOCK_QUOTE, [paragraph(text("q"))]))
        self.assertEqual(wiki(tree, RenderFlags.INFO_MACROS), "{quote}\nq\n\n{quote}\n\n")

    def test_macro(self) -> None:
        tree = document(Node(NodeKind.MACRO, name="info", parameters={"title": "Note"}))
        self.assertEqual(wiki(tree), "{info:title=Note}\n\n")
        self.assertEqual(
            xml(tree),
            '<ac:structured-macro ac:name="info"><ac:parameter ac:name="title"><![CDATA[Note]]></ac:parameter></ac:structured-macro>\n',
        )

    def test_macro_parameter_order(self) -> None:
        tree = document(Node(NodeKind.MACRO, name="panel", parameters={"title": "T", "bgColor": "#FFF", "borderStyle": "solid"}))
        self.assertEqual(wiki(tree), "{panel:bgColor=#FFF|borderStyle=solid|title=T}\n\n")
        output = xml(tree)
        self.assertLess(output.index('"bgColor"'), output.index('"borderStyle"'))
        self.assertLess(output.index('"borderStyle"'), output.index('"title"'))

    def test_macro_parameter_escape(self) -> None:
        tree = document(Node(NodeKind.MACRO, name="info", parameters={"title": "a|b}"}))
        self.assertEqual(wiki(tree), "{info:title=a\\|b\\}}\n\n")

    def test_macro_without_parameters(self) -> None:
        tree = document(Node(NodeKind.MACRO, name="toc"))
        self.assertEqual(wiki(tree), "{toc}\n\n")
        self.assertEqual(xml(tree), '<ac:structured-macro ac:name="toc"/>\n')

    def test_html(self) -> None:
        tree = document(
            Node(NodeKind.HTML_BLOCK, literal="<section>raw</section>"),
            paragraph(text("a "), Node(NodeKind.HTML_SPAN, literal="<kbd>Ctrl</kbd>")),
        )
        self.assertEqual(wiki(tree), "<section>raw</section>\n\na <kbd>Ctrl</kbd>\n\n")
        self.assertEqual(xml(tree), "<div><section>raw</section></div>\n<p>a <kbd>Ctrl</kbd></p>\n")

    def test_html_attributes(self) -> None:
        tree = document(paragraph(text("a "), Node(NodeKind.HTML_SPAN, literal='<span class="x" title="a &amp; b">b</span>'), text(" c")))
        self.assertEqual(xml(tree), '<p>a <span class="x" title="a &amp; b">b</span> c</p>\n')

    def test_breaks(self) -> None:
        tree = document(paragraph(text("a"), Node(NodeKind.SOFT_BREAK), Node(NodeKind.HARD_BREAK), text("b")))
        self.assertEqual(wiki(tree), "ab\n\n")
        self.assertEqual(xml(tree), "<p>ab</p>\n")

    def test_unknown_kind(self) -> None:
        tree = document(Node(typing.cast(NodeKind, "footnote")))
        with self.assertRaises(UnknownNodeKind):
            render(tree, "wiki")
        with self.assertRaises(UnknownNodeKind):
            render(tree, "xml")

    def test_unknown_dialect(self) -> None:
        with self.assertRaises(ValueError):
            render(document(), typing.cast(typing.Any, "html"))

    def test_repeated(self) -> None:
        tree = parse_document("| A |\n|---|\n| 1 |\n")
        self.assertEqual(wiki(tree), wiki(tree))
        self.assertEqual(wiki(tree), "||A||\n|1|\n\n")

    def test_tree_unchanged(self) -> None:
        tree = parse_document("# Title\n\n* item\n\n![image](a.png)")
        before = repr(tree)
        wiki(tree)
        xml(tree)
        self.assertEqual(repr(tree), before)


class TestMarkdownRendering(TypedTestCase):
    def test_wiki(self) -> None:
        tree = parse_document("# Title\n\nSome *emphasis* and a [link](https://example.com).\n\n```python\nprint(1)\n```\n")
        self.assertEqual(
            wiki(tree),
            "h1. Title\n\nSome _emphasis_ and a [link|https://example.com].\n\n{code:language=python}\nprint(1)\n{code}\n\n",
        )

    def test_xml(self) -> None:
        tree = parse_document("# Title\n\nSome *emphasis*.\n")
        self.assertEqual(xml(tree), "<h1>Title</h1>\n<p>Some <em>emphasis</em>.</p>\n")

    def test_alert(self) -> None:
        tree = parse_document("> [!WARNING]\n> Be careful.\n")
        self.assertEqual(wiki(tree, RenderFlags.INFO_MACROS), "{note}\nBe careful.\n\n{note}\n\n")


if __name__ == "__main__":
    unittest.main()
