# src/travel_threads/api/v1/endpoints/messages.py
"""Direct message endpoints for the Travel Threads API."""

from fastapi import APIRouter, HTTPException, status

from travel_threads.api.v1.dependencies import ContextDep, CurrentUserDep
from travel_threads.schemas.messaging import (
    Conversation,
    ConversationCreate,
    Message,
    MessageCreate,
    ReactionCreate,
)
from travel_threads.schemas.user import UserProfile
from travel_threads.services import messaging
from travel_threads.services.context import ServiceContext

router = APIRouter(prefix="/messages", tags=["messages"])


async def _load_conversation(
    ctx: ServiceContext,
    conversation_id: str,
    user: UserProfile,
) -> Conversation:
    conversation = await messaging.get_conversation(ctx, conversation_id)
    if conversation is None or user.id not in conversation.participants:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found",
        )
    return conversation


@router.get("/conversations", response_model=list[Conversation])
async def list_conversations(current_user: CurrentUserDep, ctx: ContextDep) -> list[Conversation]:
    """List the caller's conversations, most recently active first."""
    return await messaging.get_conversations(ctx, current_user.id)


@router.post("/conversations", response_model=Conversation)
async def open_conversation(
    payload: ConversationCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> Conversation:
    """Return the conversation with another user, creating it on first contact."""
    conversation_id = await messaging.get_or_create_conversation(
        ctx, [current_user.id, payload.participant_id]
    )
    return await _load_conversation(ctx, conversation_id, current_user)


@router.get("/conversations/{conversation_id}", response_model=list[Message])
async def list_messages(
    conversation_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> list[Message]:
    """Return a conversation's messages, oldest first."""
    await _load_conversation(ctx, conversation_id, current_user)
    return await messaging.get_messages(ctx, conversation_id)


@router.post("/conversations/{conversation_id}", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    payload: MessageCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> dict[str, str]:
    """Send a message into a conversation."""
    message_id = await messaging.send_message(
        ctx,
        conversation_id,
        current_user.id,
        payload.text,
        media_url=payload.media_url,
        shared_post=payload.shared_post,
        shared_event=payload.shared_event,
    )
    return {"id": message_id}


@router.post("/conversations/{conversation_id}/read")
async def mark_read(
    conversation_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> dict[str, int]:
    """Mark every message sent to the caller in a conversation as read."""
    await _load_conversation(ctx, conversation_id, current_user)
    updated = await messaging.mark_messages_as_read(ctx, conversation_id, current_user.id)
    return {"updated": updated}


@router.put("/{message_id}/reaction", status_code=status.HTTP_204_NO_CONTENT)
async def add_reaction(
    message_id: str,
    payload: ReactionCreate,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> None:
    """Set the caller's reaction on a message."""
    await messaging.add_reaction(ctx, message_id, current_user.id, payload.emoji)


@router.delete("/{message_id}/reaction", status_code=status.HTTP_204_NO_CONTENT)
async def remove_reaction(
    message_id: str,
    current_user: CurrentUserDep,
    ctx: ContextDep,
) -> None:
    """Remove the caller's reaction from a message."""
    await messaging.remove_reaction(ctx, message_id, current_user.id)
