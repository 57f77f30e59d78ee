"""Sync backend that talks to the Memos HTTP API.

The create endpoint ignores timestamps, pin and archive state, so every
note takes two calls: create the memo with its content, then patch the
created memo with the remaining metadata. Attachments are uploaded
afterwards as base64 resources linked to the memo.
"""
import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import requests

from keep2memos.exceptions import (AttachmentError, ErrorCode,
                                   TransportError)
from keep2memos.models.schema import KeepNote, RenderedNote
from keep2memos.observability import timed_operation
from keep2memos.storage.attachments import AttachmentFile, NoteHandle
from keep2memos.storage.base import SyncBackend
from keep2memos.utils import to_rfc3339

logger = logging.getLogger(__name__)

MEMOS_PATH = "api/v1/memos"
RESOURCES_PATH = "api/v1/resources"


def _body_lines(response: requests.Response) -> str:
    """Response body on one line, for diagnostics."""
    return " | ".join((response.text or "").splitlines())


class MemosApiBackend(SyncBackend):
    """Create memos through ``/api/v1`` with a bearer token."""

    name = "api"

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the backend.

        Args:
            base_url: Memos server URL, optionally with a sub-path
            token: Access token of the importing user
            timeout: Seconds allowed for connecting and for reading each response
            session: Session to reuse; a new one is created if omitted
        """
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            }
        )

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path)

    def _send(self, step: str, method: str, path: str, payload: Dict[str, Any]) -> requests.Response:
        """Send one request; anything but HTTP 200 raises TransportError."""
        try:
            response = self.session.request(
                method, self._url(path), json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TransportError(
                f"{method} {path} failed",
                step=step,
                original_error=e,
            ) from e

        if response.status_code != 200:
            raise TransportError(
                f"{method} {path} returned {response.status_code}",
                step=step,
                status_code=response.status_code,
                body=_body_lines(response),
                code=ErrorCode.TRANSPORT_UNEXPECTED_STATUS,
            )
        return response

    def create_note(self, note: KeepNote, rendered: RenderedNote) -> str:
        payload = {"content": rendered.content, "visibility": "PRIVATE"}

        with timed_operation("create_note") as op:
            response = self._send("create_note", "POST", MEMOS_PATH, payload)
            try:
                data = response.json()
            except ValueError as e:
                raise TransportError(
                    "Create memo response is not JSON",
                    step="create_note",
                    status_code=response.status_code,
                    body=_body_lines(response),
                    code=ErrorCode.TRANSPORT_INVALID_RESPONSE,
                    original_error=e,
                ) from e

            name = data.get("name") if isinstance(data, dict) else None
            if not name:
                raise TransportError(
                    "Create memo response has no memo name",
                    step="create_note",
                    status_code=response.status_code,
                    body=_body_lines(response),
                    code=ErrorCode.TRANSPORT_INVALID_RESPONSE,
                )
            op["name"] = name

        logger.debug(f"Created memo {name}")
        return name

    def patch_note(self, handle: NoteHandle, note: KeepNote, rendered: RenderedNote) -> None:
        payload: Dict[str, Any] = {
            "createTime": to_rfc3339(note.created_at),
            "updateTime": to_rfc3339(note.updated_at),
            "pinned": note.is_pinned,
        }
        if note.is_archived:
            payload["state"] = "ARCHIVED"

        with timed_operation("patch_note", name=handle):
            self._send("patch_note", "PATCH", f"api/v1/{handle}", payload)

    def store_attachment(self, handle: NoteHandle, note: KeepNote, attachment: AttachmentFile) -> None:
        payload = {
            "memo": handle,
            "filename": attachment.filename,
            "content": attachment.read_base64(),
            "type": attachment.mimetype,
            "size": attachment.size,
        }

        with timed_operation("store_attachment", name=handle, file=attachment.filename):
            try:
                self._send("store_attachment", "POST", RESOURCES_PATH, payload)
            except TransportError as e:
                raise AttachmentError(
                    f"Failed to create resource: {e}",
                    path=attachment.filename,
                    original_error=e,
                ) from e

        logger.info(f"Stored resource {attachment.filename} for {handle}")

    def close(self) -> None:
        if self._owns_session:
            self.session.close()
