"""Builders for client-synthesized timeline messages."""

import uuid

from nfrs_assistant.models import Message, MessageRole, TransientKind

ERROR_DETAIL_LIMIT = 100


def new_message_id(prefix: str) -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def truncate_detail(detail: str, limit: int = ERROR_DETAIL_LIMIT) -> str:
    return detail[:limit] + ("..." if len(detail) > limit else "")


def error_message(conversation_id: int | None, text: str) -> Message:
    """A confirmed assistant message standing in for a failed request."""
    return Message(
        id=new_message_id("error-"),
        conversation_id=conversation_id,
        role=MessageRole.ASSISTANT,
        content=text,
    )


def send_failure_text(detail: str) -> str:
    return (
        "⚠️ Sorry, I encountered an issue processing your message: "
        f"{truncate_detail(detail)}. Please try again."
    )


def upload_failure_text(detail: str) -> str:
    return (
        f"⚠️ Error uploading document: {truncate_detail(detail)}. "
        "Please try again or contact support if this issue persists."
    )


def thinking_message(conversation_id: int | None, caption: str) -> Message:
    return Message(
        id=new_message_id("thinking-"),
        conversation_id=conversation_id,
        role=MessageRole.ASSISTANT,
        content=caption,
        transient=TransientKind.THINKING,
    )
