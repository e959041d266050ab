"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import enum
from dataclasses import dataclass


@enum.unique
class ConfluenceRepresentation(enum.Enum):
    STORAGE = "storage"
    WIKI = "wiki"


@enum.unique
class ConfluenceStatus(enum.Enum):
    CURRENT = "current"
    DRAFT = "draft"
    ARCHIVED = "archived"
    TRASHED = "trashed"


@dataclass(frozen=True)
class ConfluenceContentVersion:
    """
    Version information of a page or attachment.

    :param number: Version number, incremented on each update.
    :param minorEdit: Whether watchers are to be notified of the change.
    """

    number: int
    minorEdit: bool = False


@dataclass(frozen=True)
class ConfluencePageStorage:
    """
    Holds Confluence page content.

    :param representation: Type of content representation used (e.g. Confluence Storage Format or wiki markup).
    :param value: Body of the content, in the format found in the representation field.
    """

    representation: ConfluenceRepresentation
    value: str


@dataclass(frozen=True)
class ConfluencePageBody:
    """
    Holds Confluence page content.

    :param storage: Encapsulates content with meta-information about its representation.
    """

    storage: ConfluencePageStorage


@dataclass(frozen=True)
class ConfluenceContent:
    """
    Content of a Confluence page as returned by `GET /content/{id}?expand=body.storage,version`.

    :param id: Confluence page ID.
    :param type: Content type, e.g. `page`.
    :param status: Page status.
    :param title: Page title.
    :param version: Current version of the page.
    :param body: Page body in Confluence Storage Format.
    """

    id: str
    type: str
    status: ConfluenceStatus
    title: str
    version: ConfluenceContentVersion
    body: ConfluencePageBody


@dataclass(frozen=True)
class ConfluenceUpdateContentRequest:
    id: str
    type: str
    title: str
    body: ConfluencePageBody
    version: ConfluenceContentVersion


@dataclass(frozen=True)
class ConfluenceAttachmentExtensions:
    mediaType: str = "application/octet-stream"
    fileSize: int = 0
    comment: str | None = None


@dataclass(frozen=True)
class ConfluenceAttachment:
    """
    Holds data for an object uploaded to Confluence as a page attachment.

    :param id: Unique ID for the attachment, e.g. `att123456`.
    :param title: Title (file name) of the attachment.
    :param status: Attachment status.
    :param extensions: Media type and file size.
    """

    id: str
    title: str
    status: ConfluenceStatus = ConfluenceStatus.CURRENT
    extensions: ConfluenceAttachmentExtensions = ConfluenceAttachmentExtensions()


@dataclass(frozen=True, eq=True, order=True)
class ConfluenceLabel:
    """
    Holds information about a single label.

    :param name: Name of the label.
    :param prefix: Prefix of the label.
    """

    name: str
    prefix: str = "global"


@dataclass(frozen=True, eq=True, order=True)
class ConfluenceIdentifiedLabel(ConfluenceLabel):
    """
    Holds information about a single label.

    :param id: ID of the label.
    """

    id: str = ""
