from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.messaging.schemas import ConversationCreate, ConversationResponse, MessageCreate, MessageResponse
from app.modules.messaging.service import MessagingService
from app.modules.messaging.realtime import (
    ChangeSource, RealtimeSubscription, SupabaseChangeSource, extract_record
)
from app.core.dependencies import require_permission
from supabase import Client
from typing import List, Dict
import asyncio
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])

# Close code for policy violations (bad token, not a participant)
WS_POLICY_VIOLATION = 1008


def get_messaging_service(supabase: Client = Depends(get_supabase)) -> MessagingService:
    return MessagingService(supabase)


def get_change_source() -> ChangeSource:
    return SupabaseChangeSource(event="INSERT")


@router.post("/conversations", response_model=ConversationResponse, status_code=201)
async def create_conversation(
    conversation_data: ConversationCreate,
    user_data: Dict = Depends(require_permission("messages:create")),
    service: MessagingService = Depends(get_messaging_service)
):
    """Start a conversation; the caller is always a participant"""
    return service.create_conversation(conversation_data, user_data["id"])


@router.get("/conversations", response_model=List[ConversationResponse])
async def list_conversations(
    user_data: Dict = Depends(require_permission("messages:read")),
    service: MessagingService = Depends(get_messaging_service)
):
    return service.list_conversations(user_data["id"])


@router.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: str,
    user_data: Dict = Depends(require_permission("messages:read")),
    service: MessagingService = Depends(get_messaging_service)
):
    return service.get_conversation_for_user(conversation_id, user_data)


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: str,
    user_data: Dict = Depends(require_permission("messages:read")),
    service: MessagingService = Depends(get_messaging_service)
):
    return service.list_messages(conversation_id, user_data)


@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    message_data: MessageCreate,
    user_data: Dict = Depends(require_permission("messages:create")),
    service: MessagingService = Depends(get_messaging_service)
):
    return service.send_message(message_data, user_data["id"])


@router.patch("/{message_id}/read", response_model=MessageResponse)
async def mark_message_read(
    message_id: str,
    user_data: Dict = Depends(require_permission("messages:read")),
    service: MessagingService = Depends(get_messaging_service)
):
    return service.mark_message_read(message_id, user_data)


@router.websocket("/conversations/{conversation_id}/ws")
async def conversation_feed(
    websocket: WebSocket,
    conversation_id: str,
    token: str,
    supabase: Client = Depends(get_supabase),
    source: ChangeSource = Depends(get_change_source)
):
    """Push new messages of a conversation to a participant as they are inserted"""
    service = MessagingService(supabase)
    try:
        user_data = AuthService(supabase).get_current_user(token)
        service.get_conversation_for_user(conversation_id, user_data)
    except HTTPException as e:
        logger.info(f"Rejected message feed for conversation {conversation_id}: {e.detail}")
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue: asyncio.Queue = asyncio.Queue()

    def on_change(payload: Dict):
        record = extract_record(payload)
        if record:
            queue.put_nowait(record)

    subscription = RealtimeSubscription(
        source, "messages", on_change, filter=f"conversation_id=eq.{conversation_id}"
    )

    async def relay():
        while True:
            record = await queue.get()
            await websocket.send_json(MessageResponse(**record).model_dump(mode="json"))

    async def wait_disconnect():
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass

    tasks = [
        asyncio.create_task(subscription.run()),
        asyncio.create_task(relay()),
        asyncio.create_task(wait_disconnect()),
    ]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        await subscription.stop()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Message feed for conversation {conversation_id} closed for user {user_data['id']}")
