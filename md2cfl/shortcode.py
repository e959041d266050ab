"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import re

# matches both opening and closing tags of a Hugo shortcode, e.g. `{{% note %}}` and `{{% /note %}}`
_SHORTCODE_REGEXP = re.compile(r"{{%\s*/?([^\s%]+)\s*%}}")


def strip_shortcodes(text: str) -> str:
    """
    Removes Hugo shortcode tags such as `{{% note %}} ... {{% /note %}}`, keeping the enclosed content.

    Shortcodes are a convention of the static site generator the Markdown source is written for, and carry no meaning
    in Confluence.
    """

    return _SHORTCODE_REGEXP.sub("", text)
