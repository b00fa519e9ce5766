"""
Helpers shared by the track and event services: turning image payloads into
column values, turning a sparse change-set into a single UPDATE, and keeping
stored image files in step with the rows that point at them.
"""

from functools import partial
from typing import Any, Iterable, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.db.session import on_commit, on_rollback
from app.schemas.patch import Patch
from app.services.interfaces.image_store import ImageStore, StoredImage


def _references(references: Iterable[Optional[str]]) -> list[str]:
    return [r for r in references if r]


def release_images(db: AsyncSession, images: ImageStore, references: Iterable[Optional[str]]) -> None:
    """Discard images once the change that orphaned them has committed."""
    references = _references(references)
    if references:
        on_commit(db, partial(images.discard, references))


def discard_on_rollback(db: AsyncSession, images: ImageStore, stored: StoredImage) -> None:
    """A freshly stored image belongs to nothing if its row never commits."""
    references = _references([stored.reference])
    if references:
        on_rollback(db, partial(images.discard, references))


async def image_columns(db: AsyncSession, images: ImageStore, slot: str, payload: Optional[str]) -> dict[str, Any]:
    """Column values for one image slot on insert. Bad payloads leave it unset."""
    stored = await images.store(payload)
    if stored is None:
        return {slot: None, f"{slot}_data": None}
    discard_on_rollback(db, images, stored)
    return {slot: stored.reference, f"{slot}_data": stored.data}


async def patch_image_columns(
    db: AsyncSession,
    images: ImageStore,
    row: Any,
    changes: dict[str, Any],
    slots: tuple[str, ...],
) -> dict[str, Any]:
    """
    Replace image payloads in a change-set with their column values.

    Explicit null clears the slot. A payload the store rejects is dropped from
    the change-set, so the slot keeps its previous image. Images that a slot
    no longer points at are released after commit.
    """
    changes = dict(changes)
    replaced = []
    for slot in slots:
        if slot not in changes:
            continue
        payload = changes.pop(slot)
        if payload is None:
            changes.update({slot: None, f"{slot}_data": None})
            replaced.append(getattr(row, slot))
            continue
        stored = await images.store(payload)
        if stored is not None:
            discard_on_rollback(db, images, stored)
            changes.update({slot: stored.reference, f"{slot}_data": stored.data})
            replaced.append(getattr(row, slot))
    release_images(db, images, replaced)
    return changes


def stored_image(row: Any, slot: str) -> StoredImage:
    return StoredImage(reference=getattr(row, slot), data=getattr(row, f"{slot}_data"))


def require_changes(patch: Patch) -> dict[str, Any]:
    """The fields the client sent. Raises ValidationError when there are none."""
    changes = patch.changes()
    if not changes:
        raise ValidationError("No fields supplied for update")
    return changes


async def apply_patch(db: AsyncSession, model: Any, row_id: int, changes: dict[str, Any]) -> None:
    """Emit `UPDATE <table> SET <only the given columns> WHERE id = :row_id`."""
    if not changes:
        return
    await db.execute(
        update(model)
        .where(model.id == row_id)
        .values(**changes)
        .execution_options(synchronize_session="fetch")
    )
