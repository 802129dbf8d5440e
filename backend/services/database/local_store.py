"""
Local persistence layer.

Chat2Geo runs without a database in local mode. These coroutines keep the
interface of the persistence layer (chats, usage, knowledge base documents)
but only log the call and return fixed values. Nothing is stored.
"""

import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from core.config import LOCAL_USER_ID
from models.chat import Chat, GeeDataset
from models.knowledge_base import DeleteResult, DocumentFile, DocumentFolder, RagAnswer
from models.user import Role, SubscriptionTier, UsageRecord, UserProfile, UserRoleRecord

logger = logging.getLogger(__name__)

LOCAL_USER_NAME = "Local User"
LOCAL_USER_EMAIL = "local@test.com"
LOCAL_ORGANIZATION = "Local Testing"

LOCAL_MODE_ANSWER = (
    "I'm running in local mode without access to your knowledge base documents. "
    "To use the RAG (Retrieval-Augmented Generation) feature, you would need to set up "
    "a database and upload documents to your knowledge base."
)

GEE_DATASETS: List[GeeDataset] = [
    GeeDataset(
        id=1,
        dataset_id="LANDSAT/LC08/C02/T1_L2",
        asset_url=(
            "https://developers.google.com/earth-engine/datasets/catalog/LANDSAT_LC08_C02_T1_L2"
        ),
        type="ImageCollection",
        start_date="2013-04-11",
        end_date=None,
        title="USGS Landsat 8 Level 2, Collection 2, Tier 1",
        rank=1.0,
    ),
    GeeDataset(
        id=2,
        dataset_id="COPERNICUS/S2_SR_HARMONIZED",
        asset_url=(
            "https://developers.google.com/earth-engine/datasets/catalog/"
            "COPERNICUS_S2_SR_HARMONIZED"
        ),
        type="ImageCollection",
        start_date="2017-03-28",
        end_date=None,
        title="Harmonized Sentinel-2 MSI: MultiSpectral Instrument, Level-2A",
        rank=0.9,
    ),
    GeeDataset(
        id=3,
        dataset_id="GOOGLE/DYNAMICWORLD/V1",
        asset_url="https://developers.google.com/earth-engine/datasets/catalog/GOOGLE_DYNAMICWORLD_V1",
        type="ImageCollection",
        start_date="2015-06-27",
        end_date=None,
        title="Dynamic World V1",
        rank=0.8,
    ),
]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _license_window() -> Dict[str, str]:
    today = date.today()
    return {
        "start": today.isoformat(),
        "end": (today + timedelta(days=365)).isoformat(),
    }


# ========== Chats ==========


async def get_chats_by_user(user_id: str) -> List[Chat]:
    logger.info(f"Mock: Getting chats for user {user_id}")
    return []


async def save_chat(chat_id: str, title: str) -> Chat:
    logger.info(f"Mock: Saving chat {chat_id} with title: {title}")
    return Chat(id=chat_id, title=title)


async def get_chat_by_id(chat_id: str) -> Optional[Chat]:
    logger.info(f"Mock: Getting chat by id {chat_id}")
    return None


async def save_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    logger.info(f"Mock: Saving {len(messages)} messages")
    return messages


async def get_messages_by_chat_id(chat_id: str) -> List[Dict[str, Any]]:
    logger.info(f"Mock: Getting messages for chat {chat_id}")
    return []


async def delete_chat_by_id(chat_id: str, user_id: str) -> Dict[str, bool]:
    logger.info(f"Mock: Deleting chat {chat_id} for user {user_id}")
    return {"success": True}


async def delete_chats_by_user(user_id: str) -> Dict[str, bool]:
    logger.info(f"Mock: Deleting all chats for user {user_id}")
    return {"success": True}


async def search_gee_datasets(query: str) -> List[GeeDataset]:
    """Match datasets by title or asset id; every dataset is returned when none match."""
    logger.info(f"Mock: Searching GEE datasets for query: {query}")
    needle = (query or "").lower()
    matches = [
        dataset
        for dataset in GEE_DATASETS
        if needle in dataset.title.lower() or needle in dataset.dataset_id.lower()
    ]
    return matches if matches else list(GEE_DATASETS)


# ========== Usage and users ==========


async def increment_request_count(user_id: str) -> int:
    logger.info(f"Mock: Incrementing request count for user {user_id}")
    return 1


async def get_usage_for_user(user_id: str) -> UsageRecord:
    logger.info(f"Mock: Getting usage for user {user_id}")
    return UsageRecord(requests_count=0, knowledge_base_docs_count=0)


async def get_user_role_and_tier(user_id: str) -> Optional[UserRoleRecord]:
    """Local mode grants every user the ADMIN role on the Enterprise tier."""
    logger.info(f"Mock: Getting role and tier for user {user_id}")
    window = _license_window()
    return UserRoleRecord(
        id=user_id,
        name=LOCAL_USER_NAME,
        email=LOCAL_USER_EMAIL,
        organization=LOCAL_ORGANIZATION,
        role=Role.ADMIN,
        subscription_tier=SubscriptionTier.ENTERPRISE,
        license_start=window["start"],
        license_end=window["end"],
        created_at=_now_iso(),
    )


async def get_user_profile() -> UserProfile:
    window = _license_window()
    return UserProfile(
        email=LOCAL_USER_EMAIL,
        name=LOCAL_USER_NAME,
        role=Role.USER,
        organization=LOCAL_ORGANIZATION,
        license_start=window["start"],
        license_end=window["end"],
    )


# ========== Knowledge base ==========


async def save_rag_document(
    file_name: str, number_of_pages: int, folder_id: Optional[str]
) -> DocumentFile:
    logger.info(f"Mock: Saving RAG document {file_name} with {number_of_pages} pages")
    return DocumentFile(
        id=int(time.time() * 1000),
        name=file_name,
        owner=LOCAL_USER_ID,
        number_of_pages=number_of_pages,
        file_path=f"mock-path/{file_name}",
        folder_id=folder_id,
        created_at=_now_iso(),
    )


async def answer_query(query: str, user_email: Optional[str] = None) -> RagAnswer:
    logger.info(f"Mock: Answering RAG query: {query}")
    return RagAnswer(answer=LOCAL_MODE_ANSWER, citations=[], sources=[])


async def fetch_document_files() -> List[DocumentFile]:
    logger.info("Mock: Fetching document files")
    return []


async def fetch_by_document_name(file_name: str) -> Optional[DocumentFile]:
    logger.info(f"Mock: Fetching document by name: {file_name}")
    return None


async def delete_document_file(document_id: int) -> DeleteResult:
    logger.info(f"Mock: Deleting document file {document_id}")
    return DeleteResult(success=True, message="Document deleted successfully (mock)")


async def fetch_documents_folders() -> List[DocumentFolder]:
    logger.info("Mock: Fetching document folders")
    return []


async def create_document_folder(folder_name: str) -> DocumentFolder:
    logger.info(f"Mock: Creating document folder: {folder_name}")
    return DocumentFolder(
        id=str(int(time.time() * 1000)),
        name=folder_name,
        created_at=_now_iso(),
        owner=LOCAL_USER_ID,
    )


async def delete_document_folder(folder_id: str) -> DeleteResult:
    logger.info(f"Mock: Deleting document folder {folder_id}")
    return DeleteResult(success=True)
