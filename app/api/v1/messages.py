"""Messaging endpoints and the chat WebSocket."""

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import active_user_from_token, get_current_active_user, get_db
from app.core.exceptions import AppException, AuthenticationError, InvalidRequest, NotFoundError
from app.core.middleware import message_limiter
from app.database import get_db_context
from app.domain.actor import CHEF, CUSTOMER, Actor
from app.models.user import User
from app.schemas.message import (
    ConversationCreate,
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationResponse,
    MessageCreate,
    MessageResponse,
)
from app.services.chat_service import chat_service, connection_manager
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def _to_response(db: AsyncSession, conversation, user_id: UUID) -> ConversationResponse:
    response = ConversationResponse.model_validate(conversation)
    response.unread_count = await chat_service.unread_count(db, conversation.id, user_id)
    return response


async def _deliver(db: AsyncSession, conversation, message) -> None:
    """Commit the message, then push it to the room.

    Recipients who are not connected get an in-app notification instead.
    """
    recipient_id = conversation.other_party(message.sender_id)
    if not connection_manager.is_online(recipient_id):
        await notification_service.notify_message_received(db, recipient_id)
    await db.commit()
    payload = MessageResponse.model_validate(message).model_dump(mode="json")
    await connection_manager.broadcast(conversation.id, {"type": "new_message", "message": payload})


@router.get("/", response_model=ConversationListResponse)
async def get_conversations(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> ConversationListResponse:
    """Get user's conversations, most recently active first."""
    conversations, total = await chat_service.list_conversations(
        db, current_user.id, page, page_size
    )
    return ConversationListResponse(
        conversations=[await _to_response(db, c, current_user.id) for c in conversations],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("/", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def start_conversation(
    data: ConversationCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ConversationResponse:
    """Open (or reuse) a thread between a customer and a chef."""
    other_role = CHEF if current_user.role == CUSTOMER else CUSTOMER
    result = await db.execute(
        select(User).where(
            User.id == data.participant_id,
            User.role == other_role,
            User.is_active.is_(True),
        )
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError(other_role.capitalize(), str(data.participant_id))

    if current_user.role == CUSTOMER:
        customer_id, chef_id = current_user.id, data.participant_id
    else:
        customer_id, chef_id = data.participant_id, current_user.id

    conversation = await chat_service.get_or_create_conversation(
        db, customer_id, chef_id, data.booking_id
    )
    if data.message:
        message = await chat_service.post_message(
            db, conversation, current_user.id, data.message.content
        )
        await _deliver(db, conversation, message)
    return await _to_response(db, conversation, current_user.id)


@router.get("/{conversation_id}/messages", response_model=ConversationMessagesResponse)
async def get_messages(
    conversation_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=100),
) -> ConversationMessagesResponse:
    """Get a page of messages, oldest first."""
    conversation = await chat_service.get_conversation_for(db, conversation_id, current_user.id)
    messages, total = await chat_service.list_messages(db, conversation.id, page, page_size)
    return ConversationMessagesResponse(
        conversation=await _to_response(db, conversation, current_user.id),
        messages=[MessageResponse.model_validate(m) for m in messages],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(message_limiter)],
)
async def send_message(
    conversation_id: UUID,
    message_data: MessageCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    """Send a message in a conversation."""
    conversation = await chat_service.get_conversation_for(db, conversation_id, current_user.id)
    message = await chat_service.post_message(
        db, conversation, current_user.id, message_data.content
    )
    await _deliver(db, conversation, message)
    return MessageResponse.model_validate(message)


@router.post("/{conversation_id}/read")
async def mark_as_read(
    conversation_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, int]:
    """Mark the other party's messages as read."""
    await chat_service.get_conversation_for(db, conversation_id, current_user.id)
    updated = await chat_service.mark_read(db, conversation_id, current_user.id)
    return {"marked_read": updated}


# ==================== WEBSOCKET ====================


def _conversation_id(event: dict[str, Any]) -> UUID:
    try:
        return UUID(str(event["conversation_id"]))
    except (KeyError, ValueError):
        raise InvalidRequest("conversation_id is required")


async def _handle_event(websocket: WebSocket, actor: Actor, event: dict[str, Any]) -> None:
    """Apply one client frame."""
    event_type = event.get("type")

    if event_type == "ping":
        await websocket.send_json({"type": "pong"})
        return

    if event_type == "join_chat":
        conversation_id = _conversation_id(event)
        async with get_db_context() as db:
            await chat_service.get_conversation_for(db, conversation_id, actor.id)
        connection_manager.join(conversation_id, websocket)
        await websocket.send_json({"type": "joined", "conversation_id": str(conversation_id)})
        return

    if event_type == "send_message":
        conversation_id = _conversation_id(event)
        content = MessageCreate(content=event.get("content") or "").content
        async with get_db_context() as db:
            conversation = await chat_service.get_conversation_for(db, conversation_id, actor.id)
            message = await chat_service.post_message(db, conversation, actor.id, content)
            connection_manager.join(conversation_id, websocket)
            await _deliver(db, conversation, message)
        return

    if event_type == "typing":
        conversation_id = _conversation_id(event)
        if websocket not in connection_manager.rooms.get(conversation_id, ()):
            raise InvalidRequest("Join the conversation first")
        await connection_manager.broadcast(
            conversation_id,
            {"type": "typing", "conversation_id": str(conversation_id), "user_id": str(actor.id)},
            exclude=websocket,
        )
        return

    raise InvalidRequest(f"Unknown message type: {event_type}")


async def _authenticate_socket(token: str) -> Actor:
    async with get_db_context() as db:
        user = await active_user_from_token(db, token)
    return Actor(id=user.id, role=user.role)


@router.websocket("/ws")
async def chat_socket(websocket: WebSocket, token: str = Query(...)) -> None:
    """Real-time chat relay. Authenticates with an access token in the query string."""
    try:
        actor = await _authenticate_socket(token)
    except AuthenticationError as e:
        logger.info(f"Chat socket rejected: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection_manager.register(actor.id, websocket)
    try:
        while True:
            try:
                event = await websocket.receive_json()
                if not isinstance(event, dict):
                    raise InvalidRequest("Frames must be JSON objects")
                await _handle_event(websocket, actor, event)
            except AppException as e:
                await websocket.send_json({"type": "error", "code": e.code, "detail": e.detail})
            except ValueError as e:
                # malformed JSON or invalid message content
                await websocket.send_json(
                    {"type": "error", "code": InvalidRequest.code, "detail": str(e)}
                )
    except WebSocketDisconnect:
        pass
    finally:
        connection_manager.disconnect(actor.id, websocket)
