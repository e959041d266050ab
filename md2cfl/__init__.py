"""
Publish Markdown files to Confluence wiki.

Parses Markdown files with a metadata preamble, converts Markdown content into Confluence wiki markup or the Confluence
Storage Format (XHTML), and invokes Confluence API endpoints to update page content, images and labels.
"""

from ._version import __version__

__all__ = ["__version__"]

__author__ = "Levente Hunyadi"
__copyright__ = "Copyright 2022-2026, Levente Hunyadi"
__license__ = "MIT"
__maintainer__ = "Levente Hunyadi"
__status__ = "Production"
