from supabase import Client
from app.core.exceptions import NotFound, Forbidden
from app.modules.messaging.schemas import (
    ConversationCreate, ConversationResponse, ParticipantResponse, MessageCreate, MessageResponse
)
from typing import List, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50


def message_preview(content: str) -> str:
    if len(content) > PREVIEW_LENGTH:
        return content[:PREVIEW_LENGTH] + "..."
    return content


class MessagingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _get_participants(self, conversation_id: str) -> List[ParticipantResponse]:
        members = self.supabase.table("conversation_participants")\
            .select("user_id")\
            .eq("conversation_id", conversation_id)\
            .execute()
        user_ids = [m["user_id"] for m in (members.data or [])]
        if not user_ids:
            return []
        users = self.supabase.table("users")\
            .select("id, full_name, username, email, role")\
            .in_("id", user_ids)\
            .execute()
        return [ParticipantResponse(**u) for u in (users.data or [])]

    def is_participant(self, user_id: str, conversation_id: str) -> bool:
        result = self.supabase.table("conversation_participants")\
            .select("id")\
            .eq("conversation_id", conversation_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def _ensure_access(self, conversation_id: str, user_data: Dict[str, Any], allow_admin: bool = True):
        if allow_admin and user_data.get("role") == "admin":
            return
        if not self.is_participant(user_data["id"], conversation_id):
            raise Forbidden("You are not part of this conversation")

    def get_conversation(self, conversation_id: str) -> ConversationResponse:
        try:
            result = self.supabase.table("conversations")\
                .select("*")\
                .eq("id", conversation_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise NotFound("Conversation not found")
            conversation = result.data
            conversation["participants"] = self._get_participants(conversation_id)
            return ConversationResponse(**conversation)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def create_conversation(self, conversation_data: ConversationCreate, creator_id: str) -> ConversationResponse:
        """Create a conversation; the creator is always a participant"""
        try:
            participant_ids = list(dict.fromkeys(conversation_data.participant_ids))
            if creator_id not in participant_ids:
                participant_ids.append(creator_id)

            result = self.supabase.table("conversations").insert({
                "title": conversation_data.title or "New Conversation",
                "last_message_preview": "",
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create conversation")
            conversation_id = result.data[0]["id"]

            self.supabase.table("conversation_participants").insert([
                {"conversation_id": conversation_id, "user_id": user_id}
                for user_id in participant_ids
            ]).execute()

            return self.get_conversation(conversation_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_conversations(self, user_id: str) -> List[ConversationResponse]:
        """Conversations the user takes part in, most recently active first"""
        try:
            memberships = self.supabase.table("conversation_participants")\
                .select("conversation_id")\
                .eq("user_id", user_id)\
                .execute()
            conversation_ids = [m["conversation_id"] for m in (memberships.data or [])]
            if not conversation_ids:
                return []
            result = self.supabase.table("conversations")\
                .select("*")\
                .in_("id", conversation_ids)\
                .order("updated_at", desc=True)\
                .execute()
            conversations = []
            for conversation in result.data or []:
                conversation["participants"] = self._get_participants(conversation["id"])
                conversations.append(ConversationResponse(**conversation))
            return conversations
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def send_message(self, message_data: MessageCreate, sender_id: str) -> MessageResponse:
        """Append a message and refresh the conversation's preview"""
        if not self.is_participant(sender_id, message_data.conversation_id):
            raise Forbidden("You are not part of this conversation")
        try:
            result = self.supabase.table("messages").insert({
                "conversation_id": message_data.conversation_id,
                "sender_id": sender_id,
                "content": message_data.content,
                "attachments": message_data.attachments,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")

            self.supabase.table("conversations")\
                .update({
                    "last_message_preview": message_preview(message_data.content),
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })\
                .eq("id", message_data.conversation_id)\
                .execute()

            return MessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_messages(self, conversation_id: str, user_data: Dict[str, Any]) -> List[MessageResponse]:
        """Messages of a conversation in send order (participants or admin)"""
        self._ensure_access(conversation_id, user_data)
        try:
            result = self.supabase.table("messages")\
                .select("*")\
                .eq("conversation_id", conversation_id)\
                .order("created_at")\
                .execute()
            return [MessageResponse(**m) for m in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_message_read(self, message_id: str, user_data: Dict[str, Any]) -> MessageResponse:
        """Set read_at unless the reader is the sender or it is already read"""
        try:
            result = self.supabase.table("messages")\
                .select("*")\
                .eq("id", message_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise NotFound("Message not found")
        message = MessageResponse(**result.data)
        self._ensure_access(message.conversation_id, user_data)

        if message.sender_id == user_data["id"] or message.read_at:
            return message
        try:
            updated = self.supabase.table("messages")\
                .update({"read_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", message_id)\
                .execute()
            return MessageResponse(**updated.data[0]) if updated.data else message
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_conversation_for_user(self, conversation_id: str, user_data: Dict[str, Any]) -> ConversationResponse:
        conversation = self.get_conversation(conversation_id)
        self._ensure_access(conversation_id, user_data)
        return conversation
