"""Import service: drives a whole Keep export through a sync backend."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

from pydantic import ValidationError as PydanticValidationError

from keep2memos.exceptions import (ErrorCode, ImporterError, ParseError,
                                   ReadError, SourceDirectoryError)
from keep2memos.models.schema import (KeepNote, NoteOutcome, RenderedNote,
                                      RunCounters)
from keep2memos.services.renderer import accept, render
from keep2memos.storage.base import SyncBackend

logger = logging.getLogger(__name__)

NOTE_FILE_SUFFIX = ".json"


class ImportService:
    """Imports every note file of an export directory.

    Each file ends in exactly one of succeeded, failed or skipped; a failing
    note never stops the run. Only an unreadable export directory aborts,
    and it does so before any note is processed.
    """

    def __init__(self, backend: SyncBackend, source_dir: Path, workers: int = 1):
        """Initialize the service.

        Args:
            backend: Where the notes are written
            source_dir: Directory of Keep JSON files and attachments
            workers: Number of notes processed in parallel
        """
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.backend = backend
        self.source_dir = Path(source_dir)
        self.workers = workers

    def list_note_files(self) -> List[Path]:
        """List candidate note files in name order.

        Raises:
            SourceDirectoryError: If the directory cannot be listed.
        """
        try:
            entries = list(self.source_dir.iterdir())
        except OSError as e:
            raise SourceDirectoryError(str(self.source_dir), original_error=e) from e

        return sorted(
            (
                path
                for path in entries
                if path.name.lower().endswith(NOTE_FILE_SUFFIX) and path.is_file()
            ),
            key=lambda path: path.name,
        )

    def read_note(self, path: Path) -> KeepNote:
        """Read and parse one note file.

        Raises:
            ReadError: The file cannot be read or is empty.
            ParseError: The content is not a Keep note.
        """
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ReadError(
                f"Failed to read file {path.name}", file_name=path.name, original_error=e
            ) from e

        if not data:
            raise ReadError(
                f"File {path.name} is empty",
                file_name=path.name,
                code=ErrorCode.SOURCE_FILE_EMPTY,
            )

        try:
            return KeepNote.model_validate_json(data)
        except PydanticValidationError as e:
            raise ParseError(
                f"Failed to parse file {path.name}", file_name=path.name, original_error=e
            ) from e

    def process_file(self, path: Path) -> NoteOutcome:
        """Take one file from discovery to a terminal outcome."""
        logger.info(f"Processing file: {path.name}")

        try:
            note = self.read_note(path)

            if not accept(note):
                logger.info(f"Skipping trashed note {path.name}.")
                return NoteOutcome.SKIPPED

            return self.dispatch(path, note, render(note))
        except ImporterError as e:
            logger.error(f"Failed to import {path.name}: {e}")
            return NoteOutcome.FAILED
        except Exception:
            logger.exception(f"Unexpected error while importing {path.name}")
            return NoteOutcome.FAILED

    def dispatch(self, path: Path, note: KeepNote, rendered: RenderedNote) -> NoteOutcome:
        """Run the backend protocol for one accepted note.

        Create failures propagate. A patch failure marks the note failed but
        its attachments are still stored. Attachment failures only get logged.
        """
        handle = self.backend.create_note(note, rendered)

        patched = True
        try:
            self.backend.patch_note(handle, note, rendered)
        except ImporterError as e:
            patched = False
            logger.error(
                f"Created {handle} from {path.name} but failed to update it: {e}"
            )

        if note.attachments:
            stored = self.backend.attach_note(handle, note, self.source_dir)
            logger.debug(
                f"Stored {stored}/{len(note.attachments)} attachments for {handle}"
            )

        return NoteOutcome.SUCCEEDED if patched else NoteOutcome.FAILED

    def run(self) -> RunCounters:
        """Import the whole directory and return the run counters.

        Raises:
            SourceDirectoryError: If the directory cannot be listed.
        """
        files = self.list_note_files()
        logger.info(f"Directory: {self.source_dir} ({len(files)} note files)")

        counters = RunCounters()
        if self.workers == 1:
            for path in files:
                counters.record(self.process_file(path))
        else:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="keep2memos"
            ) as pool:
                for outcome in pool.map(self.process_file, files):
                    counters.record(outcome)

        logger.info(f"Imported {counters.succeeded}/{counters.files}.")
        return counters
