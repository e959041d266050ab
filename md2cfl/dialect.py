"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import io
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

import lxml.etree as ET
import lxml.html

from .compatibility import override

LOGGER = logging.getLogger(__name__)


class MarkupWriter(ABC):
    """
    Emits markup in a Confluence dialect.

    Tags are identified by their HTML name (e.g. `p`, `h2`, `em`, `ul`, `li`, `th`), irrespective of the dialect.
    """

    @abstractmethod
    def getvalue(self) -> str:
        "Returns the markup written so far."
        ...

    @abstractmethod
    def open_tag(self, tag: str, attrs: dict[str, str] | None = None) -> None:
        "Writes the opening marker of a construct."
        ...

    @abstractmethod
    def close_tag(self, tag: str) -> None:
        "Writes the closing marker of a construct."
        ...

    @abstractmethod
    def empty_tag(self, tag: str) -> None:
        "Writes a self-closing construct such as a horizontal rule."
        ...

    @abstractmethod
    def image(self, destination: str) -> None: ...

    @abstractmethod
    def text(self, text: str) -> None:
        "Writes text, escaping characters that have a special meaning in the dialect."
        ...

    @abstractmethod
    def literal(self, text: str) -> None:
        "Writes inline raw HTML embedded by the author."
        ...

    @abstractmethod
    def guarded(self, text: str) -> None:
        "Writes text in a raw-text-safe wrapper."
        ...

    @abstractmethod
    def raw_block(self, text: str) -> None:
        "Writes a block of raw HTML embedded by the author."
        ...

    @abstractmethod
    def line_break(self) -> None:
        "Separates a block from the next block."
        ...

    @abstractmethod
    def open_macro(self, name: str) -> None: ...

    @abstractmethod
    def parameter(self, name: str, value: str, *, guarded: bool = False) -> None: ...

    @abstractmethod
    def open_macro_body(self, *, rich: bool) -> None: ...

    @abstractmethod
    def close_macro_body(self, *, rich: bool) -> None: ...

    @abstractmethod
    def close_macro(self, name: str) -> None: ...


# XML namespaces associated with Confluence Storage Format documents
_namespaces = {
    "ac": "http://atlassian.com/content",
    "ri": "http://atlassian.com/resource/identifier",
}


def AC(name: str) -> str:
    return ET.QName(_namespaces["ac"], name).text


def RI(name: str) -> str:
    return ET.QName(_namespaces["ri"], name).text


# HTML tags that map to a nested sequence of elements in Confluence Storage Format
_STORAGE_ELEMENTS: dict[str, list[tuple[str, dict[str, str]]]] = {
    "del": [("span", {"style": "text-decoration: line-through;"})],
    "table": [("table", {}), ("tbody", {})],
}

_ROOT_REGEXP = re.compile(r"^<root\s+[^>]*>(.*)</root>\s*$", re.DOTALL)


class StorageFormatWriter(MarkupWriter):
    """
    Emits Confluence Storage Format, an XHTML-based dialect with structured macros.

    Output is built as an element tree, and serialized when the value is requested.
    """

    _root: ET._Element
    _stack: list[ET._Element]

    def __init__(self) -> None:
        self._root = ET.Element("root", nsmap=_namespaces)
        self._stack = [self._root]

    @override
    def getvalue(self) -> str:
        if len(self._root) == 0 and not self._root.text:
            return ""

        xml = ET.tostring(self._root, encoding="unicode", method="xml")
        m = _ROOT_REGEXP.match(xml)
        if m:
            return m.group(1)
        else:
            raise ValueError("expected: Confluence content")

    def _append_text(self, text: str) -> None:
        "Appends text after the last child of the current element, or inside the current element if it has none."

        parent = self._stack[-1]
        if len(parent) > 0:
            last = parent[-1]
            last.tail = (last.tail or "") + text
        else:
            parent.text = (parent.text or "") + text

    def _open(self, tag: str, attrs: dict[str, str] | None = None) -> ET._Element:
        elem = ET.SubElement(self._stack[-1], tag, attrs or {})
        self._stack.append(elem)
        return elem

    def _close(self) -> None:
        self._stack.pop()

    def _append_html(self, text: str) -> None:
        fragments = lxml.html.fragments_fromstring(text)
        for fragment in fragments:
            if isinstance(fragment, str):
                self._append_text(fragment)
            else:
                self._stack[-1].append(fragment)

    @override
    def open_tag(self, tag: str, attrs: dict[str, str] | None = None) -> None:
        if (elements := _STORAGE_ELEMENTS.get(tag)) is not None:
            for name, element_attrs in elements:
                self._open(name, element_attrs)
        else:
            self._open(tag, attrs)

    @override
    def close_tag(self, tag: str) -> None:
        if (elements := _STORAGE_ELEMENTS.get(tag)) is not None:
            for _ in elements:
                self._close()
        else:
            self._close()

    @override
    def empty_tag(self, tag: str) -> None:
        ET.SubElement(self._stack[-1], tag)

    @override
    def image(self, destination: str) -> None:
        image = ET.SubElement(self._stack[-1], AC("image"))
        ET.SubElement(image, RI("url"), {RI("value"): destination})

    @override
    def text(self, text: str) -> None:
        self._append_text(text)

    @override
    def literal(self, text: str) -> None:
        self._append_html(text)

    @override
    def guarded(self, text: str) -> None:
        elem = self._stack[-1]
        if "]]>" in text:
            # a CDATA section cannot contain its own terminator
            elem.text = (elem.text or "") + text
        else:
            elem.text = ET.CDATA((elem.text or "") + text)

    @override
    def raw_block(self, text: str) -> None:
        self._open("div")
        self._append_html(text)
        self._close()

    @override
    def line_break(self) -> None:
        self._append_text("\n")

    @override
    def open_macro(self, name: str) -> None:
        self._open(AC("structured-macro"), {AC("name"): name})

    @override
    def parameter(self, name: str, value: str, *, guarded: bool = False) -> None:
        self._open(AC("parameter"), {AC("name"): name})
        if guarded:
            self.guarded(value)
        else:
            self.text(value)
        self._close()

    @override
    def open_macro_body(self, *, rich: bool) -> None:
        self._open(AC("rich-text-body" if rich else "plain-text-body"))

    @override
    def close_macro_body(self, *, rich: bool) -> None:
        self._close()

    @override
    def close_macro(self, name: str) -> None:
        self._close()


# characters that would otherwise start or end a wiki markup construct
_WIKI_SPECIAL_REGEXP = re.compile(r"([\\{}\[\]|*_+^~!#-])")
_WIKI_PARAMETER_SPECIAL_REGEXP = re.compile(r"([\\|}])")

# characters that would end a link prematurely
_WIKI_LINK_SPECIAL = {"|": "%7C", "[": "%5B", "]": "%5D"}

_WIKI_INLINE_MARKERS = {
    "em": ("_", "_"),
    "strong": ("*", "*"),
    "del": ("-", "-"),
    "code": ("{{", "}}"),
}


@dataclass
class _WikiMacro:
    "State of a macro being written in wiki markup."

    has_parameters: bool = False
    has_body: bool = False


class WikiMarkupWriter(MarkupWriter):
    """
    Emits Confluence wiki markup, a line-oriented dialect.

    :param escape_text: Whether to escape characters with a special meaning in wiki markup.
    """

    escape_text: bool
    _buffer: io.StringIO
    _tail: str
    _list_markers: list[str]
    _link_destinations: list[str]
    _cell_marker: str
    _macros: list[_WikiMacro]

    def __init__(self, *, escape_text: bool = True) -> None:
        self.escape_text = escape_text
        self._buffer = io.StringIO()
        self._tail = ""
        self._list_markers = []
        self._link_destinations = []
        self._cell_marker = "|"
        self._macros = []

    @override
    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def _write(self, text: str) -> None:
        if not text:
            return

        self._buffer.write(text)
        self._tail = (self._tail + text)[-2:]

    def _ends_with(self, suffix: str) -> bool:
        "Checks the last (at most two) characters written."

        return self._tail.endswith(suffix)

    def _ensure_newline(self) -> None:
        "Starts a new line unless the output is empty or already ends with a line feed."

        if self._tail and not self._ends_with("\n"):
            self._write("\n")

    @property
    def in_list(self) -> bool:
        return len(self._list_markers) > 0

    @override
    def open_tag(self, tag: str, attrs: dict[str, str] | None = None) -> None:
        if (markers := _WIKI_INLINE_MARKERS.get(tag)) is not None:
            self._write(markers[0])
        elif tag == "p":
            pass
        elif len(tag) == 2 and tag[0] == "h" and tag[1].isdigit():
            self._ensure_newline()
            self._write(f"{tag}. ")
        elif tag == "blockquote":
            self._ensure_newline()
            self._write("{quote}\n")
        elif tag == "ul" or tag == "ol":
            self._ensure_newline()
            self._list_markers.append("*" if tag == "ul" else "#")
        elif tag == "li":
            self._ensure_newline()
            self._write("".join(self._list_markers) + " ")
        elif tag == "a":
            self._link_destinations.append((attrs or {}).get("href", ""))
            self._write("[")
        elif tag == "table" or tag == "tr":
            self._ensure_newline()
        elif tag == "th":
            self._cell_marker = "||"
            self._write("||")
        elif tag == "td":
            self._cell_marker = "|"
            self._write("|")
        else:
            raise NotImplementedError(f"tag not supported in wiki markup: {tag}")

    @override
    def close_tag(self, tag: str) -> None:
        if (markers := _WIKI_INLINE_MARKERS.get(tag)) is not None:
            self._write(markers[1])
        elif tag == "blockquote":
            self._ensure_newline()
            self._write("{quote}")
        elif tag == "ul" or tag == "ol":
            self._list_markers.pop()
        elif tag == "a":
            destination = "".join(_WIKI_LINK_SPECIAL.get(c, c) for c in self._link_destinations.pop())
            self._write(f"|{destination}]")
        elif tag == "tr":
            # a row ends with the marker of its last cell
            self._write(self._cell_marker)
        else:
            # paragraphs, headings, list items, tables and cells have no closing marker
            pass

    @override
    def empty_tag(self, tag: str) -> None:
        if tag != "hr":
            raise NotImplementedError(f"tag not supported in wiki markup: {tag}")

        self._ensure_newline()
        self._write("----")

    @override
    def image(self, destination: str) -> None:
        self._write(f"!{destination}!")

    @override
    def text(self, text: str) -> None:
        if self.escape_text:
            text = _WIKI_SPECIAL_REGEXP.sub(r"\\\1", text)
        self._write(text)

    @override
    def literal(self, text: str) -> None:
        self._write(text)

    @override
    def guarded(self, text: str) -> None:
        # content of a plain-text macro body is not interpreted, but there is no way to escape its terminator
        if "{code}" in text:
            LOGGER.debug("Code block contains `{code}`, which ends the macro body early")
        self._write(text)

    @override
    def raw_block(self, text: str) -> None:
        self._ensure_newline()
        self._write(text)

    @override
    def line_break(self) -> None:
        # list items start on a new line on their own, blocks in a list must not be separated by blank lines
        if self.in_list:
            return

        self._ensure_newline()
        if not self._ends_with("\n\n"):
            self._write("\n")

    @override
    def open_macro(self, name: str) -> None:
        self._ensure_newline()
        self._macros.append(_WikiMacro())
        self._write("{" + name)

    @override
    def parameter(self, name: str, value: str, *, guarded: bool = False) -> None:
        macro = self._macros[-1]
        self._write("|" if macro.has_parameters else ":")
        macro.has_parameters = True
        value = _WIKI_PARAMETER_SPECIAL_REGEXP.sub(r"\\\1", value)
        self._write(f"{name}={value}")

    @override
    def open_macro_body(self, *, rich: bool) -> None:
        self._macros[-1].has_body = True
        self._write("}\n")

    @override
    def close_macro_body(self, *, rich: bool) -> None:
        self._ensure_newline()

    @override
    def close_macro(self, name: str) -> None:
        macro = self._macros.pop()
        if macro.has_body:
            self._write("{" + name + "}")
        else:
            self._write("}")
