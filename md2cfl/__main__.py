"""
Publish Markdown files to Confluence wiki.

Parses a Markdown file with a metadata preamble, converts its content into Confluence wiki markup or Confluence
Storage Format (XHTML), and invokes Confluence API endpoints to update a page, and upload images and labels.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import argparse
import logging
import os.path
import sys
import typing
from pathlib import Path
from typing import Any, Sequence

from . import __version__
from .compatibility import override
from .environment import ArgumentError, ConnectionProperties, PageError
from .frontmatter import MetadataError, extract_frontmatter
from .renderer import RenderFlags


class Arguments(argparse.Namespace):
    command: str
    base: str | None
    user: str | None
    api_key: str | None
    loglevel: str
    headers: dict[str, str] | None
    mdpath: Path
    page: str | None
    title: str | None
    output: Path | None
    info_macros: bool
    raw_wiki: bool


class KwargsAppendAction(argparse.Action):
    """Append key-value pairs to a dictionary."""

    @override
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: None | str | Sequence[Any],
        option_string: str | None = None,
    ) -> None:
        try:
            d = dict(map(lambda x: x.split("=", 1), typing.cast(Sequence[str], values)))
        except ValueError:
            raise argparse.ArgumentError(
                self,
                f'Could not parse argument "{values}". It should follow the format: k1=v1 k2=v2 ...',
            ) from None
        setattr(namespace, self.dest, d)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser()
    parser.prog = os.path.basename(os.path.dirname(__file__))
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-b",
        "--base",
        help="Confluence site URL, e.g. 'https://example.atlassian.net/wiki'. Overridden by `confluence.base` in front matter.",
    )
    parser.add_argument("-u", "--user", help="Confluence user name. If omitted, the API key is used as a bearer token.")
    parser.add_argument(
        "-a",
        "--api-key",
        dest="api_key",
        help="Confluence API key (or password).",
    )
    parser.add_argument(
        "-l",
        "--loglevel",
        choices=[
            logging.getLevelName(level).lower()
            for level in (
                logging.DEBUG,
                logging.INFO,
                logging.WARN,
                logging.ERROR,
                logging.CRITICAL,
            )
        ],
        default=logging.getLevelName(logging.INFO),
        help="Use this option to set the log verbosity.",
    )
    parser.add_argument(
        "--headers",
        nargs="+",
        required=False,
        action=KwargsAppendAction,
        metavar="KEY=VALUE",
        help="Apply custom headers to all Confluence API requests.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    upload = subparsers.add_parser("upload", help="Upload a Markdown file to a Confluence page.")
    upload.add_argument("mdpath", type=Path, help="Path to Markdown file with a metadata preamble.")
    upload.add_argument("-P", "--page", help="Confluence page ID. Overridden by `confluence.page` in front matter.")
    upload.add_argument("-t", "--title", help="Page title. Overridden by `title` in front matter.")
    upload.add_argument("-o", "--output", type=Path, help="Write rendered markup to this file too.")
    upload.add_argument(
        "--info-macros",
        dest="info_macros",
        action="store_true",
        default=False,
        help="Render admonitions and alerts as info, note, tip or warning macros instead of block quotes.",
    )
    upload.add_argument(
        "--raw-wiki",
        dest="raw_wiki",
        action="store_true",
        default=False,
        help="Write text verbatim in wiki markup, without escaping special characters.",
    )
    return parser


def get_flags(args: Arguments) -> RenderFlags:
    flags = RenderFlags(0)
    if args.info_macros:
        flags |= RenderFlags.INFO_MACROS
    if args.raw_wiki:
        flags |= RenderFlags.RAW_WIKI
    return flags


def get_properties(args: Arguments) -> ConnectionProperties:
    "Collects connection properties from command-line arguments, front matter and environment."

    with open(args.mdpath, "r", encoding="utf-8") as f:
        front_matter, _ = extract_frontmatter(f.read())

    return ConnectionProperties(
        base_url=front_matter.confluence_base(args.base or "") or None,
        user_name=args.user,
        api_key=args.api_key,
        headers=args.headers,
    )


def main() -> None:
    parser = get_parser()
    args = Arguments()
    parser.parse_args(namespace=args)

    logging.basicConfig(
        level=getattr(logging, args.loglevel.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(funcName)s [%(lineno)d] - %(message)s",
    )

    from requests import HTTPError, JSONDecodeError

    from .api import ConfluenceAPI
    from .publisher import Publisher

    try:
        properties = get_properties(args)
    except (ArgumentError, MetadataError, OSError) as e:
        parser.error(str(e))

    try:
        with ConfluenceAPI(properties) as api:
            Publisher(api, get_flags(args)).publish(args.mdpath, page_id=args.page, title=args.title, output=args.output)
    except (MetadataError, PageError) as e:
        parser.error(str(e))
    except HTTPError as err:
        logging.error(err)

        # print details for a response with JSON body
        if err.response is not None:
            try:
                logging.error(err.response.json())
            except JSONDecodeError:
                pass

        sys.exit(1)


if __name__ == "__main__":
    main()
