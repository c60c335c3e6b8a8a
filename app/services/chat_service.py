"""Chat persistence and real-time relay.

Conversations and messages live in the database; the WebSocket relay is a
thin fan-out over connections held in process memory. Messages are always
persisted before they are broadcast.
"""

import logging
from collections import defaultdict
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from fastapi import WebSocket, WebSocketDisconnect
from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidRequest, NotFoundError, PermissionDenied
from app.models.message import Conversation, Message

logger = logging.getLogger(__name__)


class ChatService:
    """Conversation and message operations shared by REST and WebSocket."""

    async def get_conversation_for(
        self, db: AsyncSession, conversation_id: UUID, user_id: UUID
    ) -> Conversation:
        result = await db.execute(
            select(Conversation).where(Conversation.id == conversation_id)
        )
        conversation = result.scalar_one_or_none()
        if not conversation:
            raise NotFoundError("Conversation", str(conversation_id))
        if not conversation.has_participant(user_id):
            raise PermissionDenied("You are not a participant in this conversation")
        return conversation

    async def get_or_create_conversation(
        self,
        db: AsyncSession,
        customer_id: UUID,
        chef_id: UUID,
        booking_id: UUID | None = None,
    ) -> Conversation:
        """Reuse the thread for this customer, chef and booking, or open one."""
        if customer_id == chef_id:
            raise InvalidRequest("You cannot message yourself")

        query = select(Conversation).where(
            Conversation.customer_id == customer_id,
            Conversation.chef_id == chef_id,
        )
        if booking_id is None:
            query = query.where(Conversation.booking_id.is_(None))
        else:
            query = query.where(Conversation.booking_id == booking_id)
        result = await db.execute(query)
        conversation = result.scalar_one_or_none()
        if conversation:
            return conversation

        conversation = Conversation(
            customer_id=customer_id,
            chef_id=chef_id,
            booking_id=booking_id,
            last_message_at=datetime.now(UTC),
        )
        db.add(conversation)
        await db.flush()
        await db.refresh(conversation)
        return conversation

    async def post_message(
        self,
        db: AsyncSession,
        conversation: Conversation,
        sender_id: UUID,
        content: str,
        message_type: str = "text",
    ) -> Message:
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            content=content,
            message_type=message_type,
        )
        db.add(message)
        conversation.last_message_at = datetime.now(UTC)
        await db.flush()
        await db.refresh(message)
        return message

    async def list_conversations(
        self, db: AsyncSession, user_id: UUID, page: int, page_size: int
    ) -> tuple[list[Conversation], int]:
        query = select(Conversation).where(
            or_(Conversation.customer_id == user_id, Conversation.chef_id == user_id)
        )
        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        offset = (page - 1) * page_size
        result = await db.execute(
            query.order_by(Conversation.last_message_at.desc()).offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def unread_count(self, db: AsyncSession, conversation_id: UUID, user_id: UUID) -> int:
        result = await db.execute(
            select(func.count(Message.id)).where(
                Message.conversation_id == conversation_id,
                Message.sender_id != user_id,
                Message.is_read.is_(False),
            )
        )
        return result.scalar() or 0

    async def list_messages(
        self, db: AsyncSession, conversation_id: UUID, page: int, page_size: int
    ) -> tuple[list[Message], int]:
        """Newest page first from the database, returned oldest first."""
        query = select(Message).where(Message.conversation_id == conversation_id)
        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0

        offset = (page - 1) * page_size
        result = await db.execute(
            query.order_by(Message.created_at.desc()).offset(offset).limit(page_size)
        )
        return list(reversed(result.scalars().all())), total

    async def mark_read(self, db: AsyncSession, conversation_id: UUID, reader_id: UUID) -> int:
        result = await db.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation_id,
                Message.sender_id != reader_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(UTC))
        )
        return result.rowcount or 0


class ConnectionManager:
    """In-memory registry of chat sockets, by user and by joined conversation."""

    def __init__(self) -> None:
        self.user_sockets: dict[UUID, set[WebSocket]] = defaultdict(set)
        self.rooms: dict[UUID, set[WebSocket]] = defaultdict(set)

    def register(self, user_id: UUID, websocket: WebSocket) -> None:
        self.user_sockets[user_id].add(websocket)
        logger.info(f"Chat socket connected for user {user_id}")

    def join(self, conversation_id: UUID, websocket: WebSocket) -> None:
        self.rooms[conversation_id].add(websocket)

    def disconnect(self, user_id: UUID, websocket: WebSocket) -> None:
        self.user_sockets[user_id].discard(websocket)
        if not self.user_sockets[user_id]:
            del self.user_sockets[user_id]
        for conversation_id in [cid for cid, sockets in self.rooms.items() if websocket in sockets]:
            self.rooms[conversation_id].discard(websocket)
            if not self.rooms[conversation_id]:
                del self.rooms[conversation_id]
        logger.info(f"Chat socket disconnected for user {user_id}")

    def is_online(self, user_id: UUID) -> bool:
        return bool(self.user_sockets.get(user_id))

    async def broadcast(
        self,
        conversation_id: UUID,
        payload: dict[str, Any],
        exclude: WebSocket | None = None,
    ) -> None:
        for websocket in list(self.rooms.get(conversation_id, ())):
            if websocket is exclude:
                continue
            try:
                await websocket.send_json(payload)
            except (WebSocketDisconnect, RuntimeError):
                # Socket closed between the snapshot and the send
                self.rooms[conversation_id].discard(websocket)


chat_service = ChatService()
connection_manager = ConnectionManager()
