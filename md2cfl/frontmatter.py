"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import logging
import re
import typing
from dataclasses import dataclass, field
from typing import Literal

import yaml

from .compatibility import tomllib
from .serializer import JsonType

LOGGER = logging.getLogger(__name__)

MarkupFormat = Literal["wiki", "xml"]


class MetadataError(ValueError):
    "Raised when the metadata preamble of a Markdown document cannot be used."


class MissingMetadata(MetadataError):
    "Raised when a Markdown document does not start with a metadata preamble."


class InvalidMetadata(MetadataError):
    "Raised when the metadata preamble is malformed, or a field does not have the expected shape."


def extract_value(expr: re.Pattern[str], text: str) -> tuple[str | None, str]:
    """
    Extracts the value captured by the first group in a regular expression.

    :returns: A tuple of (1) the value extracted and (2) remaining text without the captured text.
    """

    if expr.groups != 1:
        raise ValueError("expected: a single group whose value to extract")

    class _Matcher:
        value: str | None = None

        def __call__(self, match: re.Match[str]) -> str:
            self.value = match.group(1)
            return ""

    matcher = _Matcher()
    text = expr.sub(matcher, text, count=1)
    return matcher.value, text


@dataclass
class FrontMatter:
    """
    Structured data captured in the metadata preamble of a Markdown document.

    Lookups never fail on absent keys; they fall back to a caller-supplied default instead.

    :param data: Key-value pairs de-serialized from the preamble.
    :param syntax: Serialization format the preamble was successfully parsed with.
    """

    data: dict[str, JsonType] = field(default_factory=dict)
    syntax: Literal["yaml", "toml"] = "yaml"

    def string_field(self, key: str, default: str) -> str:
        "Returns a top-level string value, or the default if the key is absent or its value is not a string."

        return _string_or_default(self.data, key, default)

    def nested_string_field(self, group: str, key: str, default: str) -> str:
        "Returns a string value nested in a group (e.g. `confluence.page`), or the default."

        group_data = self.data.get(group)
        if not isinstance(group_data, dict):
            return default
        return _string_or_default(group_data, key, default, prefix=f"{group}.")

    def string_list_field(self, key: str) -> list[str]:
        """
        Returns a top-level list of strings, or an empty list if the key is absent.

        :raises InvalidMetadata: The value is not a list, or it has a non-string item.
        """

        value = self.data.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise InvalidMetadata(f"expected: list of strings for `{key}`; got: {type(value).__name__}")

        items: list[str] = []
        for item in value:
            if not isinstance(item, str):
                raise InvalidMetadata(f"expected: list of strings for `{key}`; got item: {item!r}")
            items.append(item)
        return items

    def title(self, default: str) -> str:
        return self.string_field("title", default)

    def tags(self) -> list[str]:
        return self.string_list_field("tags")

    def confluence_base(self, default: str) -> str:
        return self.nested_string_field("confluence", "base", default)

    def confluence_page(self, default: str) -> str:
        return self.nested_string_field("confluence", "page", default)

    def confluence_format(self, default: MarkupFormat = "wiki") -> MarkupFormat:
        "Target markup dialect, `wiki` for Confluence wiki markup or `xml` for Confluence Storage Format."

        value = self.nested_string_field("confluence", "format", default)
        if value not in ("wiki", "xml"):
            raise InvalidMetadata(f"expected: `wiki` or `xml` for `confluence.format`; got: {value}")
        return typing.cast(MarkupFormat, value)


def _string_or_default(data: dict[str, JsonType], key: str, default: str, *, prefix: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        LOGGER.warning("Ignoring front-matter field `%s%s` of type %s; expected: string", prefix, key, type(value).__name__)
        return default
    return value


_YAML_FENCE_REGEXP = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", flags=re.DOTALL | re.MULTILINE)
_TOML_FENCE_REGEXP = re.compile(r"\A\+\+\+[ \t]*\r?\n(.*?)^\+\+\+[ \t]*(?:\r?\n|\Z)", flags=re.DOTALL | re.MULTILINE)


def _deserialize(block: str) -> tuple[dict[str, JsonType], Literal["yaml", "toml"]]:
    "Parses a preamble as YAML, falling back to TOML."

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as ex:
        LOGGER.debug("Front-matter is not valid YAML: %s", ex)
    else:
        if data is None:
            return {}, "yaml"
        if isinstance(data, dict):
            return typing.cast(dict[str, JsonType], data), "yaml"

    try:
        return typing.cast(dict[str, JsonType], tomllib.loads(block)), "toml"
    except tomllib.TOMLDecodeError as ex:
        raise InvalidMetadata("front-matter is neither a YAML mapping nor a TOML document") from ex


def extract_frontmatter(text: str) -> tuple[FrontMatter, str]:
    """
    Splits a Markdown document into its metadata preamble and body.

    The preamble is enclosed in `---` or `+++` fences on the very first line of the document.

    :param text: Markdown document with a preamble.
    :returns: A tuple of (1) the de-serialized preamble and (2) the remaining document body.
    :raises MissingMetadata: The document has no preamble.
    :raises InvalidMetadata: The preamble cannot be parsed.
    """

    text = text.removeprefix("\ufeff")

    block, body = extract_value(_YAML_FENCE_REGEXP, text)
    if block is None:
        block, body = extract_value(_TOML_FENCE_REGEXP, text)
    if block is None:
        raise MissingMetadata("expected: metadata preamble enclosed in `---` or `+++` at the start of the document")

    data, syntax = _deserialize(block)
    return FrontMatter(data, syntax), body
