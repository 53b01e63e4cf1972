import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChildCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age: int = Field(ge=0, le=18)
    special_needs: str | None = None


class ChildUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    age: int | None = Field(default=None, ge=0, le=18)
    special_needs: str | None = None


class ChildResponse(BaseModel):
    id: uuid.UUID
    parent_id: uuid.UUID
    name: str
    age: int
    special_needs: str | None = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ChildSummary(BaseModel):
    id: uuid.UUID
    name: str
    age: int
    model_config = ConfigDict(from_attributes=True)
