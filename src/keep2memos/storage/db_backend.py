"""Sync backend that writes straight into the Memos database.

Each note is inserted in one transaction: the memo row and, for pinned
notes, its organizer row. Attachments are copied into the Memos resources
directory and recorded with one transaction per attachment, so a note's
row stays committed whatever happens to its attachments.
"""
import json
import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from keep2memos.config import ImporterConfig
from keep2memos.exceptions import (AttachmentError, ErrorCode,
                                   PersistenceError)
from keep2memos.models.db_models import (DBMemo, DBMemoOrganizer, DBResource,
                                         create_store_engine,
                                         get_session_factory)
from keep2memos.models.schema import KeepNote, RenderedNote
from keep2memos.observability import timed_operation
from keep2memos.storage.attachments import AttachmentFile, NoteHandle
from keep2memos.storage.base import SyncBackend
from keep2memos.utils import random_token, sanitize_filename, to_naive_utc

logger = logging.getLogger(__name__)


class MemosDatabaseBackend(SyncBackend):
    """Insert memos, organizer rows and resources with SQLAlchemy."""

    name = "db"

    def __init__(
        self,
        session_factory: sessionmaker,
        user_id: int,
        memos_dir: Path,
        resources_path: str = "assets",
        engine: Optional[Engine] = None,
    ):
        """Initialize the backend.

        Args:
            session_factory: Sessions bound to the Memos database
            user_id: Memos user that owns the imported rows
            memos_dir: Memos data directory
            resources_path: Resources directory, relative to memos_dir
            engine: Engine to dispose of on close, if owned by the backend
        """
        self.session_factory = session_factory
        self.user_id = user_id
        self.resources_path = resources_path
        self.resources_dir = Path(memos_dir) / resources_path
        self._engine = engine

    @classmethod
    def from_config(cls, cfg: ImporterConfig) -> "MemosDatabaseBackend":
        engine = create_store_engine(cfg)
        return cls(
            session_factory=get_session_factory(engine),
            user_id=cfg.memos_user_id,
            memos_dir=cfg.memos_dir,
            resources_path=cfg.memos_resources_path,
            engine=engine,
        )

    def create_note(self, note: KeepNote, rendered: RenderedNote) -> int:
        memo = DBMemo(
            uid=random_token(),
            creator_id=self.user_id,
            created_ts=to_naive_utc(note.created_at),
            updated_ts=to_naive_utc(note.updated_at),
            row_status="ARCHIVED" if note.is_archived else "NORMAL",
            content=rendered.content,
            visibility="PRIVATE",
            tags="[]",
            payload=json.dumps(rendered.property_payload()),
        )

        try:
            with timed_operation("create_note") as op:
                with self.session_factory.begin() as session:
                    session.add(memo)
                    session.flush()
                    memo_id = memo.id

                    if note.is_pinned:
                        session.add(
                            DBMemoOrganizer(memo_id=memo_id, user_id=self.user_id, pinned=1)
                        )
                op["memo_id"] = memo_id
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to insert memo",
                operation="create_note",
                original_error=e,
            ) from e

        logger.info(f"Created memo: {memo_id}")
        return memo_id

    def patch_note(self, handle: NoteHandle, note: KeepNote, rendered: RenderedNote) -> None:
        # Timestamps, pin and archive state were written with the row.
        return None

    def store_attachment(self, handle: NoteHandle, note: KeepNote, attachment: AttachmentFile) -> None:
        target_name = f"{handle}-{sanitize_filename(attachment.filename)}"
        target = self.resources_dir / target_name

        with timed_operation("store_attachment", memo_id=handle, file=attachment.filename):
            self._copy(attachment, target)

            resource = DBResource(
                uid=random_token(),
                creator_id=self.user_id,
                created_ts=to_naive_utc(note.created_at),
                updated_ts=to_naive_utc(note.updated_at),
                filename=attachment.filename,
                type=attachment.mimetype,
                size=attachment.size,
                memo_id=handle,
                storage_type="LOCAL",
                reference=str(PurePosixPath(self.resources_path) / target_name),
                payload="{}",
            )
            try:
                with self.session_factory.begin() as session:
                    session.add(resource)
            except SQLAlchemyError as e:
                try:
                    target.unlink()
                except OSError as cleanup_error:
                    logger.warning(f"Failed to remove copied file {target}: {cleanup_error}")
                raise AttachmentError(
                    "Failed to insert resource row",
                    path=attachment.filename,
                    original_error=e,
                ) from e

        logger.info(f"Stored resource {target_name} for memo {handle}.")

    def _copy(self, attachment: AttachmentFile, target: Path) -> None:
        """Copy an attachment, never overwriting an existing file."""
        created = False
        try:
            self.resources_dir.mkdir(parents=True, exist_ok=True)
            with open(attachment.path, "rb") as src, open(target, "xb") as dst:
                created = True
                shutil.copyfileobj(src, dst)
        except FileExistsError as e:
            raise AttachmentError(
                f"Resource file {target.name} already exists",
                path=attachment.filename,
                code=ErrorCode.ATTACHMENT_COPY_FAILED,
                original_error=e,
            ) from e
        except OSError as e:
            if created:
                # A partial copy would block the next run
                try:
                    target.unlink(missing_ok=True)
                except OSError as cleanup_error:
                    logger.warning(f"Failed to remove partial copy {target}: {cleanup_error}")
            raise AttachmentError(
                f"Failed to copy attachment to {target.name}",
                path=attachment.filename,
                code=ErrorCode.ATTACHMENT_COPY_FAILED,
                original_error=e,
            ) from e

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
