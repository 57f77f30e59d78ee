"""Base class for sync backends."""
from abc import ABC, abstractmethod
from pathlib import Path

from keep2memos.models.schema import KeepNote, RenderedNote
from keep2memos.storage.attachments import (AttachmentFile, NoteHandle,
                                            transfer_attachments)


class SyncBackend(ABC):
    """Turns a rendered Keep note into persisted Memos state.

    The import service calls ``create_note``, then ``patch_note`` with the
    returned handle, then ``attach_note``. A backend that can write all
    metadata at creation time implements ``patch_note`` as a no-op.
    """

    name = "backend"

    @abstractmethod
    def create_note(self, note: KeepNote, rendered: RenderedNote) -> NoteHandle:
        """Create the memo and return its handle.

        Raises:
            ImporterError: The memo was not created.
        """

    @abstractmethod
    def patch_note(self, handle: NoteHandle, note: KeepNote, rendered: RenderedNote) -> None:
        """Apply timestamps, pin and archive state to a created memo.

        Raises:
            ImporterError: The metadata was not applied. The memo still exists.
        """

    @abstractmethod
    def store_attachment(self, handle: NoteHandle, note: KeepNote, attachment: AttachmentFile) -> None:
        """Persist one attachment against a created memo.

        Raises:
            AttachmentError: This attachment was not stored.
        """

    def attach_note(self, handle: NoteHandle, note: KeepNote, source_dir: Path) -> int:
        """Store all usable attachments of a note. Returns how many were stored."""
        return transfer_attachments(
            source_dir,
            note,
            handle,
            lambda h, attachment: self.store_attachment(h, note, attachment),
        )

    def close(self) -> None:
        """Release connections held by the backend."""

    def __enter__(self) -> "SyncBackend":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
