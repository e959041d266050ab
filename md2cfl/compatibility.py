"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import sys

if sys.version_info >= (3, 12):
    from typing import override as override  # noqa: F401
else:
    from typing_extensions import override as override  # noqa: F401

if sys.version_info >= (3, 11):
    import tomllib as tomllib  # noqa: F401
else:
    import tomli as tomllib  # noqa: F401
