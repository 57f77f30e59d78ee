"""Data models for the Keep to Memos importer."""

import datetime
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from keep2memos.utils import micros_to_datetime


class KeepLabel(BaseModel):
    """A Keep label attached to a note."""

    name: str = Field(..., description="Label name")

    model_config = {"frozen": True, "extra": "ignore"}

    def __str__(self) -> str:
        """Return string representation of label."""
        return self.name


class ListEntry(BaseModel):
    """One checklist item."""

    text: str = Field(default="", description="Item text")
    is_checked: bool = Field(default=False, alias="isChecked")

    model_config = {"frozen": True, "extra": "ignore", "populate_by_name": True}

    @field_validator("text", mode="before")
    @classmethod
    def _null_text(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("is_checked", mode="before")
    @classmethod
    def _null_checked(cls, v: Any) -> Any:
        return False if v is None else v


class KeepAttachment(BaseModel):
    """Reference to an attachment file inside the export directory."""

    file_path: str = Field(..., alias="filePath", description="Path relative to the export dir")
    mimetype: str = Field(default="", description="MIME type reported by Keep")

    model_config = {"frozen": True, "extra": "ignore", "populate_by_name": True}

    @field_validator("mimetype", mode="before")
    @classmethod
    def _null_mimetype(cls, v: Any) -> Any:
        return "" if v is None else v


class KeepNote(BaseModel):
    """A single note as exported by Google Keep.

    Unknown keys (``color``, ``annotations``, ...) are ignored. Missing or
    null collections become empty lists, missing flags are False and
    missing timestamps are 0.
    """

    title: Optional[str] = Field(default=None)
    text_content: Optional[str] = Field(default=None, alias="textContent")
    list_content: List[ListEntry] = Field(default_factory=list, alias="listContent")
    labels: List[KeepLabel] = Field(default_factory=list)
    is_trashed: bool = Field(default=False, alias="isTrashed")
    is_pinned: bool = Field(default=False, alias="isPinned")
    is_archived: bool = Field(default=False, alias="isArchived")
    created_timestamp_usec: int = Field(default=0, alias="createdTimestampUsec")
    user_edited_timestamp_usec: int = Field(default=0, alias="userEditedTimestampUsec")
    attachments: List[KeepAttachment] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "ignore", "populate_by_name": True}

    @field_validator("list_content", "labels", "attachments", mode="before")
    @classmethod
    def _null_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("is_trashed", "is_pinned", "is_archived", mode="before")
    @classmethod
    def _null_flag(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("created_timestamp_usec", "user_edited_timestamp_usec", mode="before")
    @classmethod
    def _null_timestamp(cls, v: Any) -> Any:
        return 0 if v is None else v

    @property
    def created_at(self) -> datetime.datetime:
        """Creation time (UTC)."""
        return micros_to_datetime(self.created_timestamp_usec)

    @property
    def updated_at(self) -> datetime.datetime:
        """Last user edit time (UTC)."""
        return micros_to_datetime(self.user_edited_timestamp_usec)


@dataclass(frozen=True)
class RenderedNote:
    """Markdown content and metadata derived from a KeepNote.

    Attributes:
        content: Memo body.
        tag_names: Label names, ordered and de-duplicated.
        has_checklist: The note had at least one checklist entry.
        has_incomplete_checklist: At least one entry was unchecked.
    """

    content: str
    tag_names: List[str] = field(default_factory=list)
    has_checklist: bool = False
    has_incomplete_checklist: bool = False

    def property_payload(self) -> Dict[str, Any]:
        """The ``payload`` column value for a memo row, before JSON encoding."""
        return {
            "property": {
                "tags": list(self.tag_names),
                "hasTaskList": self.has_checklist,
                "hasIncompleteTasks": self.has_incomplete_checklist,
            }
        }


class NoteOutcome(str, Enum):
    """Terminal state of one note file."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class RunCounters:
    """Run-wide tallies. Safe to update from several threads.

    Every recorded outcome also counts one file seen, so
    ``files == succeeded + failed + skipped`` holds at all times.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.files = 0
        self.succeeded = 0
        self.failed = 0
        self.skipped = 0

    def record(self, outcome: NoteOutcome) -> None:
        with self._lock:
            self.files += 1
            if outcome is NoteOutcome.SUCCEEDED:
                self.succeeded += 1
            elif outcome is NoteOutcome.SKIPPED:
                self.skipped += 1
            else:
                self.failed += 1

    def to_dict(self) -> Dict[str, int]:
        with self._lock:
            return {
                "files": self.files,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "skipped": self.skipped,
            }

    def summary_lines(self) -> List[str]:
        """Human-readable end-of-run report."""
        counts = self.to_dict()
        return [
            f"Files: {counts['files']}",
            f"Successful: {counts['succeeded']}",
            f"Failed: {counts['failed']}",
            f"Skipped: {counts['skipped']}",
        ]
