import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cuidoteca.models.post import VoteType
from cuidoteca.schemas.user import UserSummary


class PostCreate(BaseModel):
    content: str = Field(min_length=1, max_length=5000)
    image_url: str | None = None
    institution_id: uuid.UUID | None = None


class VoteRequest(BaseModel):
    vote_type: VoteType


class PostResponse(BaseModel):
    id: uuid.UUID
    author_id: uuid.UUID
    institution_id: uuid.UUID
    content: str
    image_url: str | None = None
    upvotes: int
    downvotes: int
    pinned: bool
    flagged: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class FeedPostResponse(PostResponse):
    author: UserSummary
    my_vote: VoteType | None = None


class VoteResponse(BaseModel):
    post: PostResponse
    my_vote: VoteType | None = None


class MyVoteResponse(BaseModel):
    vote_type: VoteType | None = None
