"""Conversation and message schemas."""
from __future__ import annotations

from typing import Any

from pydantic import Field

from .common import CamelModel, Record, Timestamp


class LastMessage(CamelModel):
    """Preview of the newest message, kept on the conversation document."""

    text: str
    timestamp: Timestamp
    sender_id: str
    read: bool = False
    media_url: str | None = None
    has_shared_content: bool = False


class Conversation(Record):
    """A two-party conversation; ``participants`` is stored sorted."""

    participants: list[str]
    last_message: LastMessage | None = None
    created_at: Timestamp | None = None
    updated_at: Timestamp


class Message(Record):
    """A single message within a conversation."""

    conversation_id: str
    sender_id: str
    text: str = ""
    timestamp: Timestamp
    read: bool = False
    media_url: str | None = None
    reactions: dict[str, str] = Field(default_factory=dict)
    shared_post: dict[str, Any] | None = None
    shared_event: dict[str, Any] | None = None


class ConversationCreate(CamelModel):
    """Request body for opening a conversation with another user."""

    participant_id: str = Field(..., min_length=1)


class MessageCreate(CamelModel):
    """Request body for sending a message."""

    text: str = Field("", max_length=5000)
    media_url: str | None = None
    shared_post: dict[str, Any] | None = None
    shared_event: dict[str, Any] | None = None


class ReactionCreate(CamelModel):
    """Request body for reacting to a message."""

    emoji: str = Field(..., min_length=1, max_length=16)
