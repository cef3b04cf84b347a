"""Pydantic models for conversations, messages and session documents.

Provides type safety and validation for backend payloads and the
client-side timeline.

Models:
    - Conversation / ConversationDetail: conversation records and history
    - Message: a timeline entry, with its transient kind
    - DocumentSource / Expert: citations attached to assistant messages
    - SessionDocument: an uploaded document scoped to a session
    - SendMessageRequest / SendMessageResult: message endpoint payloads
"""

from nfrs_assistant.models.schemas import (
    ALL_TRANSIENT,
    Conversation,
    ConversationDetail,
    DocumentSource,
    Expert,
    Language,
    LastMessage,
    Message,
    MessageRole,
    SendMessageRequest,
    SendMessageResult,
    SessionDocument,
    TransientKind,
    UserInfo,
    utc_now,
)

__all__ = [
    "ALL_TRANSIENT",
    "Conversation",
    "ConversationDetail",
    "DocumentSource",
    "Expert",
    "Language",
    "LastMessage",
    "Message",
    "MessageRole",
    "SendMessageRequest",
    "SendMessageResult",
    "SessionDocument",
    "TransientKind",
    "UserInfo",
    "utc_now",
]
