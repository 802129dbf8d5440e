"""Chat history of the local user. Persistence is mocked."""

import logging
from types import SimpleNamespace
from typing import List

from fastapi import APIRouter, Depends

from api.deps import get_current_user
from models.chat import Chat
from services.database.local_store import delete_chat_by_id, get_chats_by_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/chat-history", response_model=List[Chat])
async def chat_history(current_user: SimpleNamespace = Depends(get_current_user)) -> List[Chat]:
    """List the chats of the current user."""
    return await get_chats_by_user(current_user.id)


@router.delete("/{chat_id}")
async def delete_chat(chat_id: str, current_user: SimpleNamespace = Depends(get_current_user)):
    return await delete_chat_by_id(chat_id, current_user.id)
