"""Posts router.

Community feed: posts, votes and institution moderation.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cuidoteca.core.dependencies import get_current_user
from cuidoteca.database import get_db
from cuidoteca.models.user import User
from cuidoteca.schemas.post import (
    FeedPostResponse,
    MyVoteResponse,
    PostCreate,
    PostResponse,
    VoteRequest,
    VoteResponse,
)
from cuidoteca.schemas.user import UserSummary
from cuidoteca.services import post_service

router = APIRouter(prefix="/posts", tags=["Posts"])


@router.get("/", response_model=list[FeedPostResponse])
async def list_posts(
    db: Annotated[AsyncSession, Depends(get_db)],
    institution_id: uuid.UUID | None = Query(default=None),
    current_user: User = Depends(get_current_user),
):
    """Feed of every community the caller belongs to, or of one community."""
    rows = await post_service.list_posts(db, current_user, institution_id)
    votes = await post_service.user_votes(db, current_user.id, [post.id for post, _ in rows])
    return [
        FeedPostResponse(
            **PostResponse.model_validate(post).model_dump(),
            author=UserSummary.model_validate(author),
            my_vote=votes.get(post.id),
        )
        for post, author in rows
    ]


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await post_service.create_post(
        db, current_user, body.content, body.image_url, body.institution_id
    )


@router.get("/{post_id}/my-vote", response_model=MyVoteResponse)
async def my_vote(
    post_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    vote = await post_service.get_user_vote(db, post_id, current_user.id)
    return MyVoteResponse(vote_type=vote.vote_type if vote is not None else None)


@router.post("/{post_id}/vote", response_model=VoteResponse)
async def vote(
    post_id: uuid.UUID,
    body: VoteRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    """Vote on a post. Repeating the same vote removes it."""
    post, current = await post_service.vote(db, post_id, current_user, body.vote_type)
    return VoteResponse(post=PostResponse.model_validate(post), my_vote=current)


@router.post("/{post_id}/pin", response_model=PostResponse)
async def toggle_pin(
    post_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await post_service.toggle_pin(db, post_id, current_user)


@router.post("/{post_id}/flag", response_model=PostResponse)
async def toggle_flag(
    post_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    return await post_service.toggle_flag(db, post_id, current_user)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: User = Depends(get_current_user),
):
    await post_service.delete_post(db, post_id, current_user)
    return None
