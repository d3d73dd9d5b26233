"""Notes and per-actor flags attached to an application.

Notes are edited in place by their author only. Flags are advisory and
last-write-wins.
"""

import logging

from talentflow.core.exceptions import NotAuthorError, NotFoundError
from talentflow.models import (
    ApplicationFlag,
    ApplicationNote,
    FlagType,
    NoteVisibility,
)
from talentflow.services.stores import PipelineStores
from talentflow.utils.time import Clock, utc_now

logger = logging.getLogger(__name__)


def _clean_content(content: str) -> str:
    content = content.strip()
    if not content:
        raise ValueError("Note content cannot be empty")
    return content


class NoteKeeper:
    """Writes notes and flags inside the caller's transaction."""

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    async def add(
        self,
        stores: PipelineStores,
        application_id: int,
        author_id: str,
        content: str,
        visibility: str = NoteVisibility.SHARED.value,
    ) -> ApplicationNote:
        now = self.clock()
        note = ApplicationNote(
            application_id=application_id,
            author_id=author_id,
            content=_clean_content(content),
            visibility=NoteVisibility(visibility).value,
            created_at=now,
            updated_at=now,
        )
        await stores.notes.add(note)
        logger.debug(f"Note {note.id} added to application {application_id} by {author_id}")
        return note

    async def update(
        self,
        stores: PipelineStores,
        note_id: int,
        author_id: str,
        content: str,
    ) -> ApplicationNote:
        """Replace a note's content.

        Raises:
            NotFoundError: No such note
            NotAuthorError: ``author_id`` did not write the note
        """
        content = _clean_content(content)
        note = await stores.notes.get(note_id)
        if note is None:
            raise NotFoundError("note", note_id)
        if note.author_id != author_id:
            raise NotAuthorError(note_id, author_id)

        note.content = content
        note.updated_at = self.clock()
        await stores.notes.save(note)
        return note

    async def visible_notes(
        self, stores: PipelineStores, application_id: int, actor_id: str
    ) -> list[ApplicationNote]:
        notes = await stores.notes.list_for_application(application_id)
        return [note for note in notes if note.is_visible_to(actor_id)]

    async def set_bookmark(
        self,
        stores: PipelineStores,
        application_id: int,
        actor_id: str,
        value: bool,
    ) -> ApplicationFlag:
        return await stores.flags.upsert(
            application_id, actor_id, FlagType.BOOKMARK.value, value, self.clock()
        )

    async def mark_viewed(
        self, stores: PipelineStores, application_id: int, actor_id: str
    ) -> ApplicationFlag:
        """Set the viewed flag once; later calls keep the first timestamp."""
        flag = await stores.flags.get(application_id, actor_id, FlagType.VIEWED.value)
        if flag is not None and flag.value:
            return flag
        return await stores.flags.upsert(
            application_id, actor_id, FlagType.VIEWED.value, True, self.clock()
        )
