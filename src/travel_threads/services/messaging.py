"""Two-party conversations and their messages."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from travel_threads.errors import InvalidOperationError, NotFoundError, PermissionDeniedError
from travel_threads.schemas.messaging import Conversation, Message
from travel_threads.services.collections import CONVERSATIONS, MESSAGES
from travel_threads.services.context import ServiceContext
from travel_threads.services.notifications import notify
from travel_threads.store.base import DELETE_FIELD, Query, new_document_id

logger = logging.getLogger(__name__)

__all__ = [
    "get_or_create_conversation",
    "get_conversation",
    "send_message",
    "get_conversations",
    "get_messages",
    "mark_messages_as_read",
    "add_reaction",
    "remove_reaction",
]


def _preview(text: str, length: int) -> str:
    return text[:length] + ("..." if len(text) > length else "")


async def get_or_create_conversation(ctx: ServiceContext, user_ids: Sequence[str]) -> str:
    """Return the conversation between two users, creating it on first contact.

    Participants are stored sorted, so the pair may be given in either order.
    Two simultaneous first contacts can still create two conversations; the
    store offers no uniqueness constraint to prevent it.

    Raises:
        InvalidOperationError: Unless exactly two distinct user ids are given
    """
    participants = sorted(set(user_ids))
    if len(participants) != 2 or len(user_ids) != 2:
        raise InvalidOperationError("A conversation needs exactly two distinct participants")

    query = Query(CONVERSATIONS).where("participants", "array-contains", participants[0])
    for snapshot in await ctx.store.query(query):
        existing = snapshot.get("participants") or []
        if len(existing) == len(participants) and set(existing) == set(participants):
            return snapshot.id

    now = ctx.timestamp()
    conversation_id = new_document_id()
    await ctx.store.set(
        CONVERSATIONS,
        conversation_id,
        {
            "participants": participants,
            "createdAt": now,
            "updatedAt": now,
            "lastMessage": None,
        },
    )
    logger.info("Opened conversation %s between %s", conversation_id, participants)
    return conversation_id


async def get_conversation(ctx: ServiceContext, conversation_id: str) -> Conversation | None:
    """Return one conversation, or None if it does not exist."""
    snapshot = await ctx.store.get(CONVERSATIONS, conversation_id)
    return Conversation.from_snapshot(snapshot) if snapshot.exists else None


async def send_message(
    ctx: ServiceContext,
    conversation_id: str,
    sender_id: str,
    text: str,
    media_url: str | None = None,
    shared_post: dict[str, Any] | None = None,
    shared_event: dict[str, Any] | None = None,
) -> str:
    """Append a message and refresh the conversation's ``lastMessage`` preview.

    The message and the preview are written in one batch; the other
    participant is then notified with a shortened preview of the text.

    Raises:
        NotFoundError: If the conversation does not exist
        PermissionDeniedError: If the sender is not a participant
        InvalidOperationError: If the message carries no content at all
    """
    if not text and not media_url and not shared_post and not shared_event:
        raise InvalidOperationError("A message needs text, media or shared content")
    conversation = await ctx.store.get(CONVERSATIONS, conversation_id)
    if not conversation.exists:
        raise NotFoundError(CONVERSATIONS, conversation_id)
    participants = conversation.get("participants") or []
    if sender_id not in participants:
        raise PermissionDeniedError(f"{sender_id} is not part of conversation {conversation_id}")

    timestamp = ctx.timestamp()
    message: dict[str, Any] = {
        "conversationId": conversation_id,
        "senderId": sender_id,
        "text": text,
        "timestamp": timestamp,
        "read": False,
        "mediaUrl": media_url,
        "reactions": {},
    }
    if shared_post:
        message["sharedPost"] = shared_post
    if shared_event:
        message["sharedEvent"] = shared_event

    message_id = new_document_id()
    batch = ctx.store.batch()
    batch.set(MESSAGES, message_id, message)
    batch.update(
        CONVERSATIONS,
        conversation_id,
        {
            "lastMessage": {
                "text": text,
                "timestamp": timestamp,
                "senderId": sender_id,
                "read": False,
                "mediaUrl": media_url,
                "hasSharedContent": bool(shared_post or shared_event),
            },
            "updatedAt": timestamp,
        },
    )
    await batch.commit()

    recipient = next((uid for uid in participants if uid != sender_id), None)
    if recipient:
        await notify(
            ctx,
            recipient,
            "message_received",
            "You received a new message",
            actor_id=sender_id,
            entity_id=conversation_id,
            entity_type="message",
            data={
                "preview": _preview(text, ctx.settings.preview_length),
                "conversationId": conversation_id,
            },
        )
    return message_id


async def get_conversations(ctx: ServiceContext, user_id: str) -> list[Conversation]:
    """Return the conversations ``user_id`` takes part in, most recently active first."""
    query = (
        Query(CONVERSATIONS)
        .where("participants", "array-contains", user_id)
        .order_by("updatedAt", descending=True)
    )
    return [Conversation.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def get_messages(ctx: ServiceContext, conversation_id: str) -> list[Message]:
    """Return the full history of a conversation, oldest first."""
    query = (
        Query(MESSAGES)
        .where("conversationId", "==", conversation_id)
        .order_by("timestamp")
    )
    return [Message.from_snapshot(snapshot) for snapshot in await ctx.store.query(query)]


async def mark_messages_as_read(ctx: ServiceContext, conversation_id: str, user_id: str) -> int:
    """Mark every unread message sent to ``user_id`` in a conversation as read.

    All messages, plus the conversation's ``lastMessage`` when it came from the
    other participant, are updated in one batch.

    Returns:
        The number of messages marked as read
    """
    query = (
        Query(MESSAGES)
        .where("conversationId", "==", conversation_id)
        .where("read", "==", False)
        .where("senderId", "!=", user_id)
    )
    unread = await ctx.store.query(query)
    if not unread:
        return 0

    batch = ctx.store.batch()
    for snapshot in unread:
        batch.update(MESSAGES, snapshot.id, {"read": True})
    conversation = await ctx.store.get(CONVERSATIONS, conversation_id)
    last_message = conversation.get("lastMessage")
    if (
        isinstance(last_message, dict)
        and not last_message.get("read")
        and last_message.get("senderId") != user_id
    ):
        batch.update(CONVERSATIONS, conversation_id, {"lastMessage.read": True})
    await batch.commit()
    return len(unread)


async def add_reaction(ctx: ServiceContext, message_id: str, user_id: str, emoji: str) -> None:
    """Set ``user_id``'s reaction on a message, replacing any previous one.

    Raises:
        NotFoundError: If the message does not exist
    """
    await ctx.store.update(MESSAGES, message_id, {f"reactions.{user_id}": emoji})


async def remove_reaction(ctx: ServiceContext, message_id: str, user_id: str) -> None:
    """Remove ``user_id``'s reaction from a message."""
    await ctx.store.update(MESSAGES, message_id, {f"reactions.{user_id}": DELETE_FIELD})
