"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

from urllib.parse import urlparse


def is_absolute_url(url: str) -> bool:
    "True if the URL has a scheme or a network location, e.g. `http://example.com/image.png` or `//cdn/image.png`."

    urlparts = urlparse(url)
    return bool(urlparts.scheme) or bool(urlparts.netloc)


def is_local_reference(url: str) -> bool:
    """
    True if the URL refers to a file relative to the Markdown document.

    Same-page anchors (`#section`) and absolute file system paths are not local references.
    """

    if is_absolute_url(url):
        return False

    urlparts = urlparse(url)
    return bool(urlparts.path) and not urlparts.path.startswith("/")
