"""Pydantic models for the document knowledge base."""

from typing import List, Optional

from pydantic import BaseModel, Field


class DocumentFile(BaseModel):
    id: int
    name: str
    owner: str
    number_of_pages: int = Field(..., ge=1)
    file_path: str
    folder_id: Optional[str] = None
    created_at: str


class DocumentFolder(BaseModel):
    id: str
    name: str
    created_at: str
    owner: str


class FolderCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Folder name")


class DeleteResult(BaseModel):
    success: bool
    message: Optional[str] = None


class RagQuery(BaseModel):
    query: str = Field(..., min_length=1)
    user_email: Optional[str] = Field(None, alias="userEmail")


class RagAnswer(BaseModel):
    answer: str
    citations: List[dict] = Field(default_factory=list)
    sources: List[dict] = Field(default_factory=list)
