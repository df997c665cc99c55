"""
Room chat API endpoints
"""

from fastapi import APIRouter, HTTPException, Query
from typing import Optional
from utils.logger import log_info
from model import ChatMessageRequest, ChatMessage

router = APIRouter(prefix="/chat", tags=["Chat"])


# Global variable (to be injected)
chat_history = None


def init_chat_router(history):
    """Initialize the router with the chat history store."""
    global chat_history
    chat_history = history


@router.get("/history", response_model=list[ChatMessage])
async def get_chat_history(roomName: Optional[str] = Query(None)):
    """Retrieve chat history for a room."""
    if not roomName:
        raise HTTPException(status_code=400, detail="roomName query parameter is required")

    return chat_history.history(roomName)


@router.post("/messages", response_model=ChatMessage, status_code=201)
async def post_chat_message(request: ChatMessageRequest):
    """
    Persist a new chat message.

    Args:
        request: ChatMessageRequest containing:
            - roomName, senderIdentity, senderName (required)
            - text (optional)
            - attachments: list of {url, type, name}; entries without url are dropped
    """
    if not request.roomName or not request.senderIdentity or not request.senderName:
        raise HTTPException(
            status_code=400,
            detail="roomName, senderIdentity, and senderName are required"
        )

    message = chat_history.append(
        request.roomName,
        request.senderIdentity,
        request.senderName,
        text=request.text,
        attachments=request.attachments,
    )
    log_info(f"Chat message {message['id']} stored for room '{request.roomName}'")
    return message
