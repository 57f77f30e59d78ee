"""Turn a Keep note into Memos Markdown.

The memo body is built from up to four sections, in this order and joined
with newlines:

1. ``# <title>``
2. the free text
3. the checklist, one ``- [x] item`` / ``- [ ] item`` line per entry
4. one line of ``#label`` tokens

Sections with nothing to show are left out entirely.
"""
from typing import List

from keep2memos.models.schema import KeepNote, ListEntry, RenderedNote


def _is_blank(value) -> bool:
    return value is None or not value.strip()


def render_checklist(entries: List[ListEntry]) -> str:
    """Render checklist entries as Markdown task items.

    Entries with blank text are dropped.
    """
    lines = []
    for entry in entries:
        if _is_blank(entry.text):
            continue
        marker = "x" if entry.is_checked else " "
        lines.append(f"- [{marker}] {entry.text}")
    return "\n".join(lines)


def render_labels(note: KeepNote) -> str:
    """Render labels as space-separated hashtags, in their given order."""
    return " ".join(f"#{label.name}" for label in note.labels)


def tag_names(note: KeepNote) -> List[str]:
    """Label names for the memo payload, de-duplicated, blank names dropped."""
    seen = []
    for label in note.labels:
        if not _is_blank(label.name) and label.name not in seen:
            seen.append(label.name)
    return seen


def render(note: KeepNote) -> RenderedNote:
    """Render a note. Never fails; missing fields are simply omitted."""
    sections = []

    if not _is_blank(note.title):
        sections.append(f"# {note.title}")

    if not _is_blank(note.text_content):
        sections.append(note.text_content)

    checklist = render_checklist(note.list_content)
    if checklist:
        sections.append(checklist)

    labels = render_labels(note)
    if labels:
        sections.append(labels)

    return RenderedNote(
        content="\n".join(sections),
        tag_names=tag_names(note),
        has_checklist=bool(note.list_content),
        has_incomplete_checklist=any(
            not entry.is_checked for entry in note.list_content
        ),
    )


def accept(note: KeepNote) -> bool:
    """Whether a note should be imported. Trashed notes are not."""
    return not note.is_trashed
