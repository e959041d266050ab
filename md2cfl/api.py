"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

import logging
import mimetypes
import typing
from pathlib import Path
from types import TracebackType
from typing import Any, TypeVar, overload
from urllib.parse import urlencode, urlparse, urlunparse

import requests

from .api_types import (
    ConfluenceAttachment,
    ConfluenceContent,
    ConfluenceContentVersion,
    ConfluenceIdentifiedLabel,
    ConfluenceLabel,
    ConfluencePageBody,
    ConfluencePageStorage,
    ConfluenceRepresentation,
    ConfluenceUpdateContentRequest,
)
from .environment import ConfluenceError, ConnectionProperties, PageError
from .serializer import JsonType, json_to_object, object_to_json_payload

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def build_url(base_url: str, query: dict[str, str] | None = None) -> str:
    "Builds a URL with scheme, host, port, path and query string parameters."

    scheme, netloc, path, params, query_str, fragment = urlparse(base_url)

    if params:
        raise ValueError("expected: url with no parameters")
    if query_str:
        raise ValueError("expected: url with no query string")
    if fragment:
        raise ValueError("expected: url with no fragment")

    url_parts = (scheme, netloc, path, None, urlencode(query) if query else None, None)
    return urlunparse(url_parts)


@overload
def response_cast(response_type: None, response: requests.Response) -> None: ...


@overload
def response_cast(response_type: type[T], response: requests.Response) -> T: ...


def response_cast(response_type: type[T] | None, response: requests.Response) -> T | None:
    "Converts a response body into the expected type."

    if response.text:
        LOGGER.debug("Received HTTP payload:\n%s", response.text)
    response.raise_for_status()
    if response_type is None:
        return None
    else:
        return json_to_object(response_type, response.json())


class ConfluenceAPI:
    """
    Represents an active connection to a Confluence server.

    Use as a context manager, which yields a session:
    ```
    with ConfluenceAPI(properties) as api:
        page = api.get_page("1933314")
    ```
    """

    properties: ConnectionProperties
    session: "ConfluenceSession | None" = None

    def __init__(self, properties: ConnectionProperties | None = None) -> None:
        self.properties = properties or ConnectionProperties()

    def __enter__(self) -> "ConfluenceSession":
        session = requests.Session()
        if self.properties.user_name:
            session.auth = (self.properties.user_name, self.properties.api_key)
        else:
            session.headers.update({"Authorization": f"Bearer {self.properties.api_key}"})

        if self.properties.headers:
            session.headers.update(self.properties.headers)

        self.session = ConfluenceSession(session, api_url=f"{self.properties.base_url}/rest/api")
        return self.session

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None


class ConfluenceSession:
    """
    Information about an open session to a Confluence server, using REST API v1.

    :param session: HTTP session with authentication set up.
    :param api_url: REST API root, e.g. `https://example.atlassian.net/wiki/rest/api`.
    """

    _session: requests.Session
    api_url: str

    def __init__(self, session: requests.Session, *, api_url: str) -> None:
        self._session = session
        self.api_url = api_url.rstrip("/")
        LOGGER.info("Configured Confluence REST API URL: %s", self.api_url)

    def close(self) -> None:
        self._session.close()
        self._session = requests.Session()

    def _build_url(self, path: str, query: dict[str, str] | None = None) -> str:
        """
        Builds a full URL for invoking the Confluence API.

        :param path: Path of API endpoint to invoke.
        :param query: Query parameters to pass to the API endpoint.
        :returns: A full URL.
        """

        return build_url(f"{self.api_url}{path}", query)

    def _get(self, path: str, response_type: type[T], *, query: dict[str, str] | None = None) -> T:
        "Executes an HTTP request via Confluence API."

        url = self._build_url(path, query)
        response = self._session.get(url, headers={"Accept": "application/json"}, verify=True)
        return response_cast(response_type, response)

    def _build_request(self, path: str, body: Any, response_type: type[T] | None) -> tuple[str, dict[str, str], bytes]:
        "Generates URL, headers and raw payload for a typed request/response."

        url = self._build_url(path)
        headers = {"Content-Type": "application/json"}
        if response_type is not None:
            headers["Accept"] = "application/json"
        data = object_to_json_payload(body)
        return url, headers, data

    @overload
    def _post(self, path: str, body: Any, response_type: None) -> None: ...

    @overload
    def _post(self, path: str, body: Any, response_type: type[T]) -> T: ...

    def _post(self, path: str, body: Any, response_type: type[T] | None) -> T | None:
        "Creates a new object via Confluence REST API."

        url, headers, data = self._build_request(path, body, response_type)
        response = self._session.post(url, data=data, headers=headers, verify=True)
        return response_cast(response_type, response)

    @overload
    def _put(self, path: str, body: Any, response_type: None) -> None: ...

    @overload
    def _put(self, path: str, body: Any, response_type: type[T]) -> T: ...

    def _put(self, path: str, body: Any, response_type: type[T] | None) -> T | None:
        "Updates an existing object via Confluence REST API."

        url, headers, data = self._build_request(path, body, response_type)
        response = self._session.put(url, data=data, headers=headers, verify=True)
        return response_cast(response_type, response)

    def _delete(self, path: str, *, query: dict[str, str] | None = None) -> None:
        "Deletes an existing object via Confluence REST API."

        url = self._build_url(path, query)
        response = self._session.delete(url, verify=True)
        response_cast(None, response)

    def get_page(self, page_id: str) -> ConfluenceContent:
        """
        Retrieves Confluence wiki page details and content.

        :param page_id: The Confluence page ID.
        :returns: Confluence page info and content.
        """

        path = f"/content/{page_id}"
        query = {"expand": "body.storage,version"}
        return self._get(path, ConfluenceContent, query=query)

    def update_page(
        self,
        page_id: str,
        content: str,
        *,
        title: str,
        version: int,
        representation: ConfluenceRepresentation = ConfluenceRepresentation.STORAGE,
    ) -> None:
        """
        Updates a page using the Confluence REST API v1.

        :param page_id: The Confluence page ID.
        :param content: Page body, either Confluence Storage Format XHTML or wiki markup.
        :param title: New title to assign to the page. Needs to be unique within a space.
        :param version: New version to assign to the page.
        :param representation: Format of the page body.
        """

        LOGGER.info("Updating page: %s", page_id)
        path = f"/content/{page_id}"
        body = ConfluenceUpdateContentRequest(
            id=page_id,
            type="page",
            title=title,
            body=ConfluencePageBody(storage=ConfluencePageStorage(representation=representation, value=content)),
            version=ConfluenceContentVersion(number=version),
        )
        self._put(path, body, None)

    def get_attachment_by_name(self, page_id: str, filename: str) -> ConfluenceAttachment:
        """
        Retrieves a Confluence page attachment by file name.

        :param page_id: The Confluence page ID.
        :param filename: The attachment file name to search for.
        :returns: Confluence attachment information.
        :raises ConfluenceError: There is no such attachment on the page.
        """

        path = f"/content/{page_id}/child/attachment"
        query = {"filename": filename}
        data = self._get(path, dict[str, JsonType], query=query)

        results = typing.cast(list[JsonType], data["results"])
        if len(results) != 1:
            raise ConfluenceError(f"no such attachment on page {page_id}: {filename}")
        return json_to_object(ConfluenceAttachment, results[0])

    def upload_attachment(self, page_id: str, attachment_path: Path, *, attachment_name: str | None = None, comment: str | None = None) -> None:
        """
        Uploads a new attachment to a Confluence page, or a new version of an existing attachment.

        :param page_id: Confluence page ID.
        :param attachment_path: Path to the file to upload as an attachment.
        :param attachment_name: Name unique to the page, defaults to the file name.
        :param comment: Attachment description.
        """

        if not attachment_path.is_file():
            raise PageError(f"file not found: {attachment_path}")

        name = attachment_name or attachment_path.name
        content_type, _ = mimetypes.guess_type(name, strict=True)
        if content_type is None:
            content_type = "application/octet-stream"

        try:
            attachment = self.get_attachment_by_name(page_id, name)
            id = attachment.id.removeprefix("att")
            path = f"/content/{page_id}/child/attachment/{id}/data"
        except ConfluenceError:
            path = f"/content/{page_id}/child/attachment"

        url = self._build_url(path)

        with open(attachment_path, "rb") as attachment_file:
            file_to_upload: dict[str, tuple[str | None, Any, str, dict[str, str]]] = {
                "comment": (
                    None,
                    comment or "",
                    "text/plain; charset=utf-8",
                    {},
                ),
                "minorEdit": (
                    None,
                    "true",
                    "text/plain; charset=utf-8",
                    {},
                ),
                "file": (
                    name,  # will truncate path component
                    attachment_file,
                    content_type,
                    {"Expires": "0"},
                ),
            }
            LOGGER.info("Uploading attachment: %s", name)
            response = self._session.post(
                url,
                files=file_to_upload,
                headers={
                    "X-Atlassian-Token": "no-check",
                    "Accept": "application/json",
                },
                verify=True,
            )

        response_cast(None, response)

    def get_labels(self, page_id: str) -> list[ConfluenceIdentifiedLabel]:
        """
        Retrieves labels for a Confluence page.

        :param page_id: The Confluence page ID.
        :returns: A list of page labels.
        """

        path = f"/content/{page_id}/label"
        data = self._get(path, dict[str, JsonType])
        results = typing.cast(list[JsonType], data["results"])
        return [json_to_object(ConfluenceIdentifiedLabel, result) for result in results]

    def add_labels(self, page_id: str, labels: list[ConfluenceLabel]) -> None:
        """
        Adds labels to a Confluence page.

        :param page_id: The Confluence page ID.
        :param labels: A list of page labels to add.
        """

        path = f"/content/{page_id}/label"
        self._post(path, labels, None)

    def remove_labels(self, page_id: str, labels: list[ConfluenceLabel]) -> None:
        """
        Removes labels from a Confluence page.

        :param page_id: The Confluence page ID.
        :param labels: A list of page labels to remove.
        """

        path = f"/content/{page_id}/label"
        for label in labels:
            self._delete(path, query={"name": label.name})

    def update_labels(self, page_id: str, labels: list[ConfluenceLabel], *, keep_existing: bool = True) -> None:
        """
        Assigns the specified labels to a Confluence page.

        :param page_id: The Confluence page ID.
        :param labels: A list of page labels to assign.
        :param keep_existing: Whether to keep labels on the page that are not in the list.
        """

        new_labels = set(labels)
        old_labels = set(ConfluenceLabel(name=label.name, prefix=label.prefix) for label in self.get_labels(page_id))

        add_labels = list(new_labels - old_labels)
        remove_labels = list(old_labels - new_labels)

        if add_labels:
            add_labels.sort()
            self.add_labels(page_id, add_labels)
        if not keep_existing and remove_labels:
            remove_labels.sort()
            self.remove_labels(page_id, remove_labels)
