import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class DocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    file_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1)
    file_size: int | None = Field(default=None, ge=0)
    file_type: str | None = Field(default=None, max_length=100)
    is_public: bool = True


class DocumentUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    is_public: bool | None = None


class DocumentResponse(BaseModel):
    id: uuid.UUID
    institution_id: uuid.UUID
    title: str
    description: str | None = None
    file_name: str
    file_url: str
    file_size: int | None = None
    file_type: str | None = None
    is_public: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PublicDocumentResponse(DocumentResponse):
    institution_name: str


class UploadResponse(BaseModel):
    url: str
    file_name: str
    file_size: int
    file_type: str
