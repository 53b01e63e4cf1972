"""Documents router.

Institutions share documents (public or members-only) with their community.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user, require_institution
from cuidoteca.core.errors import Forbidden, NotFound
from cuidoteca.database import get_db
from cuidoteca.models.document import InstitutionDocument
from cuidoteca.models.user import User
from cuidoteca.schemas.document import (
    DocumentCreate,
    DocumentResponse,
    DocumentUpdate,
    PublicDocumentResponse,
)

router = APIRouter(prefix="/documents", tags=["Documents"])


async def _get_owned_document(
    db: AsyncSession, document_id: uuid.UUID, institution: User
) -> InstitutionDocument:
    document = await db.get(InstitutionDocument, document_id)
    if document is None:
        raise NotFound("Documento não encontrado")
    if document.institution_id != institution.id:
        raise Forbidden("Este documento pertence a outra instituição")
    return document


@router.get("/public", response_model=list[PublicDocumentResponse])
async def list_public_documents(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Every public document, with the name of its institution."""
    result = await db.execute(
        select(InstitutionDocument, User)
        .join(User, User.id == InstitutionDocument.institution_id)
        .where(InstitutionDocument.is_public.is_(True))
        .order_by(InstitutionDocument.created_at.desc())
    )
    return [
        PublicDocumentResponse(
            **DocumentResponse.model_validate(document).model_dump(),
            institution_name=institution.display_name,
        )
        for document, institution in result.all()
    ]


@router.get("/institution/{institution_id}", response_model=list[DocumentResponse])
async def list_documents(
    institution_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Documents of one institution. Private ones only for the owner."""
    query = (
        select(InstitutionDocument)
        .where(InstitutionDocument.institution_id == institution_id)
        .order_by(InstitutionDocument.created_at.desc())
    )
    if current_user.id != institution_id:
        query = query.where(InstitutionDocument.is_public.is_(True))
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    body: DocumentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    document = InstitutionDocument(institution_id=current_user.id, **body.model_dump())
    db.add(document)
    await db.flush()
    await db.refresh(document)
    return document


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: uuid.UUID,
    body: DocumentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    document = await _get_owned_document(db, document_id, current_user)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field != "description":
            continue
        setattr(document, field, value)

    await db.flush()
    await db.refresh(document)
    return document


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(require_institution),
):
    document = await _get_owned_document(db, document_id, current_user)
    await db.delete(document)
    await db.flush()
    return None
