"""Children router.

Parents manage their own children.  Other users' children are reported as
not found.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import require_parent
from cuidoteca.core.errors import NotFound
from cuidoteca.database import get_db
from cuidoteca.models.child import Child
from cuidoteca.models.cuidoteca import CuidotecaEnrollment
from cuidoteca.models.event import EventParticipation
from cuidoteca.models.user import User
from cuidoteca.schemas.child import ChildCreate, ChildResponse, ChildUpdate

router = APIRouter(prefix="/children", tags=["Children"])


async def _get_own_child(db: AsyncSession, child_id: uuid.UUID, parent: User) -> Child:
    result = await db.execute(
        select(Child).where(Child.id == child_id, Child.parent_id == parent.id)
    )
    child = result.scalar_one_or_none()
    if child is None:
        raise NotFound("Criança não encontrada")
    return child


@router.get("/", response_model=list[ChildResponse])
async def list_children(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """List the caller's children."""
    result = await db.execute(
        select(Child).where(Child.parent_id == current_user.id).order_by(Child.created_at)
    )
    return result.scalars().all()


@router.post("/", response_model=ChildResponse, status_code=status.HTTP_201_CREATED)
async def create_child(
    body: ChildCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    child = Child(parent_id=current_user.id, **body.model_dump())
    db.add(child)
    await db.flush()
    await db.refresh(child)
    return child


@router.get("/{child_id}", response_model=ChildResponse)
async def get_child(
    child_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    return await _get_own_child(db, child_id, current_user)


@router.put("/{child_id}", response_model=ChildResponse)
async def update_child(
    child_id: uuid.UUID,
    body: ChildUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    child = await _get_own_child(db, child_id, current_user)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        # name and age are required; null leaves them as they are
        if value is None and field != "special_needs":
            continue
        setattr(child, field, value)

    await db.flush()
    await db.refresh(child)
    return child


@router.delete("/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_child(
    child_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_parent),
):
    """Delete a child with its enrollments and event check-ins."""
    child = await _get_own_child(db, child_id, current_user)

    await db.execute(delete(CuidotecaEnrollment).where(CuidotecaEnrollment.child_id == child.id))
    await db.execute(delete(EventParticipation).where(EventParticipation.child_id == child.id))
    await db.delete(child)
    await db.flush()
    return None
