from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Language = Literal["en", "ne"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_id(v: Any) -> Any:
    """Backend ids arrive as integers or strings; the client keys on strings."""
    if isinstance(v, int) and not isinstance(v, bool):
        return str(v)
    return v


class MessageRole(str, Enum):
    """Role of the message sender."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class TransientKind(str, Enum):
    """Lifetime marker for timeline messages.

    Anything other than NONE must be gone by the end of the turn that
    created it.
    """

    NONE = "none"
    TEMP = "temp"
    THINKING = "thinking"
    TYPING = "typing"


ALL_TRANSIENT = frozenset({TransientKind.TEMP, TransientKind.THINKING, TransientKind.TYPING})


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UserInfo(_Record):
    """Owner of a conversation."""

    id: int = 0
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""


class LastMessage(_Record):
    """Preview of the latest message in a conversation."""

    id: str = "0"
    role: MessageRole = MessageRole.USER
    content_preview: str = ""
    created_at: datetime = Field(default_factory=utc_now)

    coerce_ids = field_validator("id", mode="before")(_coerce_id)


class Expert(_Record):
    """A domain expert persona the backend consulted for an answer."""

    name: str
    title: str
    description: str | None = None


class DocumentSource(_Record):
    """A document cited by an assistant message.

    Attributes:
        id: Source identifier.
        title: Display title.
        description: Short description or preview.
        relevance_score: Relevance in [0, 1].
    """

    id: str
    title: str = "Document Reference"
    description: str = "Referenced content"
    relevance_score: float = Field(default=1.0, ge=0.0, le=1.0)

    coerce_ids = field_validator("id", mode="before")(_coerce_id)


class Conversation(_Record):
    """A conversation as listed by the conversation service."""

    id: int
    title: str
    language: Language = "en"
    created_at: datetime
    updated_at: datetime | None = None
    is_active: bool = True
    message_count: int = Field(default=0, ge=0)
    owner: UserInfo | None = Field(default=None, alias="user")
    last_message: LastMessage | None = None
    last_activity: datetime | None = None

    @model_validator(mode="after")
    def fill_activity_defaults(self) -> "Conversation":
        """Partial backend replies leave timestamps out; derive them from created_at."""
        if self.updated_at is None:
            self.updated_at = self.created_at
        if self.last_activity is None:
            self.last_activity = self.created_at
        return self


class Message(_Record):
    """A single message in the active conversation's timeline."""

    id: str
    conversation_id: int | None = Field(default=None, alias="conversation")
    role: MessageRole
    content: str
    created_at: datetime = Field(default_factory=utc_now)
    sources: list[DocumentSource] | None = None
    experts: list[Expert] | None = Field(default=None, alias="experts_used")
    transient: TransientKind = TransientKind.NONE

    coerce_ids = field_validator("id", mode="before")(_coerce_id)

    @property
    def is_transient(self) -> bool:
        return self.transient is not TransientKind.NONE

    def __str__(self) -> str:
        return f"{self.role.value}: {self.content[:50]}..."


class ConversationDetail(Conversation):
    """A conversation together with its full message history."""

    messages: list[Message] = Field(default_factory=list)


class SendMessageRequest(_Record):
    """Payload for the conversation service's message endpoint.

    The backend reads the text from either ``content`` or ``message``.
    """

    conversation_id: int
    content: str = Field(..., min_length=1)
    message: str = ""
    role: Literal["user", "assistant"] = "user"
    language: Language = "en"

    @model_validator(mode="after")
    def mirror_message(self) -> "SendMessageRequest":
        self.message = self.content
        return self


class SendMessageResult(_Record):
    """The assistant reply returned by the message endpoint."""

    id: str | None = None
    content: str
    sources: list[DocumentSource] | None = None
    experts_used: list[Expert] | None = None

    coerce_ids = field_validator("id", mode="before")(_coerce_id)

    @model_validator(mode="before")
    @classmethod
    def accept_message_field(cls, data: Any) -> Any:
        """Older backends return the text under ``message``."""
        if isinstance(data, dict) and data.get("message") and not data.get("content"):
            data = {**data, "content": data["message"]}
        return data


class SessionDocument(_Record):
    """A document uploaded under a session, optionally attached to a chat."""

    id: str | None = None
    title: str
    content_preview: str = ""
    session_id: str
    chat_id: str | None = None
    file_type: str
    created_at: datetime = Field(default_factory=utc_now)
    summary: str | None = None
    experts_used: list[Expert] | None = None

    coerce_ids = field_validator("id", "chat_id", mode="before")(_coerce_id)

    @model_validator(mode="before")
    @classmethod
    def prefer_document_summary(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("document_summary"):
            data = {**data, "summary": data["document_summary"]}
        return data
