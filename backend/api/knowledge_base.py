"""Knowledge base documents and folders. Storage and retrieval are mocked."""

import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from core.errors import UnsupportedDocumentType
from models.knowledge_base import (
    DeleteResult,
    DocumentFile,
    DocumentFolder,
    FolderCreate,
    RagAnswer,
    RagQuery,
)
from services.database.local_store import (
    answer_query,
    create_document_folder,
    delete_document_file,
    delete_document_folder,
    fetch_document_files,
    fetch_documents_folders,
)
from services.knowledge_base import process_and_upload_document_file

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/knowledge-base", tags=["knowledge base"])


@router.get("/documents", response_model=List[DocumentFile])
async def list_documents() -> List[DocumentFile]:
    return await fetch_document_files()


@router.post("/documents", response_model=DocumentFile)
async def upload_document(
    file: UploadFile = File(...), folder_id: Optional[str] = Form(None, alias="folderId")
) -> DocumentFile:
    """Count the pages of a PDF, DOCX or text upload and register it."""
    try:
        data = await file.read()
        return await process_and_upload_document_file(
            file.filename, file.content_type, data, folder_id
        )
    except UnsupportedDocumentType as e:
        raise HTTPException(status_code=415, detail=str(e))
    finally:
        await file.close()


@router.delete("/documents/{document_id}", response_model=DeleteResult)
async def delete_document(document_id: int) -> DeleteResult:
    return await delete_document_file(document_id)


@router.get("/folders", response_model=List[DocumentFolder])
async def list_folders() -> List[DocumentFolder]:
    return await fetch_documents_folders()


@router.post("/folders", response_model=DocumentFolder)
async def create_folder(payload: FolderCreate) -> DocumentFolder:
    return await create_document_folder(payload.name)


@router.delete("/folders/{folder_id}", response_model=DeleteResult)
async def delete_folder(folder_id: str) -> DeleteResult:
    return await delete_document_folder(folder_id)


@router.post("/query", response_model=RagAnswer)
async def query(payload: RagQuery) -> RagAnswer:
    return await answer_query(payload.query, payload.user_email)
