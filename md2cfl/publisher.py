"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import logging
from pathlib import Path

import requests

from .api import ConfluenceSession
from .api_types import ConfluenceLabel, ConfluenceRepresentation
from .document import ConfluenceDocument
from .environment import ConfluenceError, PageError
from .renderer import RenderFlags
from .uri import is_local_reference

LOGGER = logging.getLogger(__name__)


def resolve_images(document_dir: Path, destinations: list[str]) -> list[Path]:
    """
    Maps image destinations to files on the local file system.

    Remote URLs and absolute paths are skipped.

    :param document_dir: Directory of the Markdown document, relative destinations are resolved against.
    :param destinations: Image destinations, as authored.
    :returns: Paths to images to upload as attachments, in document order.
    """

    paths: list[Path] = []
    for destination in destinations:
        if not is_local_reference(destination):
            LOGGER.debug("Skipping image that is not relative to document: %s", destination)
            continue

        paths.append(document_dir / destination)
    return paths


class Publisher:
    """
    Publishes a Markdown document to an existing Confluence page.

    :param api: An open session to a Confluence server.
    :param flags: Options that alter how the document is rendered.
    """

    api: ConfluenceSession
    flags: RenderFlags

    def __init__(self, api: ConfluenceSession, flags: RenderFlags = RenderFlags(0)) -> None:
        self.api = api
        self.flags = flags

    def publish(self, path: Path, *, page_id: str | None = None, title: str | None = None, output: Path | None = None) -> None:
        """
        Replaces the body of a Confluence page with the rendered Markdown document, and uploads images and labels.

        :param path: Markdown document with a metadata preamble.
        :param page_id: Confluence page ID, unless given in the preamble.
        :param title: Page title, unless given in the preamble.
        :param output: File to write the rendered markup to.
        """

        document = ConfluenceDocument.read(path)

        target_id = document.front_matter.confluence_page(page_id or "")
        if not target_id:
            raise PageError(
                f"no Confluence page ID given for document: {path}; pass `--page` or set `confluence.page` to a string, "
                "quoting numeric IDs in YAML"
            )

        LOGGER.info("Rendering document %s in %s dialect", path, document.dialect)
        markup = document.render(self.flags)
        if output is not None:
            with open(output, "wb") as f:
                f.write(markup)

        self.update_page(target_id, document, markup, title=title)
        self.upload_images(target_id, path.parent, document.images())

        tags = document.front_matter.tags()
        if tags:
            self.api.update_labels(target_id, [ConfluenceLabel(name=tag) for tag in tags], keep_existing=True)

    def update_page(self, page_id: str, document: ConfluenceDocument, markup: bytes, *, title: str | None = None) -> None:
        "Replaces the body of a page, and increments its version."

        page = self.api.get_page(page_id)
        page_title = document.front_matter.title(title or page.title)

        if document.dialect == "wiki":
            representation = ConfluenceRepresentation.WIKI
        else:
            representation = ConfluenceRepresentation.STORAGE

        self.api.update_page(
            page_id,
            markup.decode("utf-8"),
            title=page_title,
            version=page.version.number + 1,
            representation=representation,
        )

    def upload_images(self, page_id: str, document_dir: Path, destinations: list[str]) -> None:
        "Uploads local images as page attachments, logging (but otherwise ignoring) failures."

        for image_path in resolve_images(document_dir, destinations):
            try:
                self.api.upload_attachment(page_id, image_path)
            except (requests.RequestException, ConfluenceError, PageError) as ex:
                LOGGER.error("Failed to upload attachment %s: %s", image_path, ex)
