"""Attachment transfer shared by both sync backends.

Attachments are resolved against the export directory, filtered down to
files that exist and are not empty, and handed one by one to a backend
``store`` callable. A failure on one attachment is logged and never
affects the note or the remaining attachments.
"""
import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from keep2memos.exceptions import AttachmentError, ErrorCode
from keep2memos.models.schema import KeepAttachment, KeepNote

logger = logging.getLogger(__name__)

NoteHandle = Union[str, int]


@dataclass(frozen=True)
class AttachmentFile:
    """An attachment that exists on disk and has content."""

    path: Path
    mimetype: str
    size: int

    @property
    def filename(self) -> str:
        return self.path.name

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise AttachmentError(
                f"Failed to read attachment {self.filename}",
                path=self.filename,
                code=ErrorCode.ATTACHMENT_UNREADABLE,
                original_error=e,
            ) from e

    def read_base64(self) -> str:
        return base64.b64encode(self.read_bytes()).decode("ascii")


def resolve_attachment(source_dir: Path, attachment: KeepAttachment) -> Optional[AttachmentFile]:
    """Locate an attachment inside the export directory.

    Returns:
        The attachment, or None if the file is missing or empty.

    Raises:
        AttachmentError: If the path points outside the export directory.
    """
    try:
        root = source_dir.resolve()
        path = (root / attachment.file_path).resolve()
    except (OSError, ValueError, RuntimeError) as e:
        # NUL bytes, symlink loops
        raise AttachmentError(
            "Attachment path cannot be resolved",
            path=attachment.file_path,
            code=ErrorCode.ATTACHMENT_UNREADABLE,
            original_error=e,
        ) from e
    if not path.is_relative_to(root):
        raise AttachmentError(
            "Attachment path escapes the export directory",
            path=attachment.file_path,
            code=ErrorCode.PATH_TRAVERSAL_DETECTED,
        )

    try:
        size = path.stat().st_size if path.is_file() else None
    except (OSError, ValueError):
        size = None
    if size is None:
        logger.warning(f"Attachment {attachment.file_path} not found, skipping")
        return None
    if size <= 0:
        logger.warning(f"Attachment {attachment.file_path} is empty, skipping")
        return None

    return AttachmentFile(path=path, mimetype=attachment.mimetype, size=size)


def collect_attachments(source_dir: Path, note: KeepNote) -> List[AttachmentFile]:
    """Resolve every attachment of a note, dropping the unusable ones."""
    files = []
    for attachment in note.attachments:
        try:
            resolved = resolve_attachment(source_dir, attachment)
        except AttachmentError as e:
            logger.error(f"Skipping attachment: {e}")
            continue
        if resolved is not None:
            files.append(resolved)
    return files


def transfer_attachments(
    source_dir: Path,
    note: KeepNote,
    handle: NoteHandle,
    store: Callable[[NoteHandle, AttachmentFile], None],
) -> int:
    """Persist a note's attachments against the created note.

    Args:
        source_dir: Export directory the attachment paths are relative to
        note: The source note
        handle: Identifier of the created memo
        store: Backend callable persisting one attachment; raises
            AttachmentError on failure

    Returns:
        Number of attachments stored.
    """
    stored = 0
    for attachment in collect_attachments(source_dir, note):
        try:
            store(handle, attachment)
            stored += 1
        except AttachmentError as e:
            logger.error(f"Failed to store attachment {attachment.filename} for {handle}: {e}")
    return stored
