"""Pytest fixtures and shared test configuration.

Integration tests run the real chat client against an in-memory FastAPI
stand-in for the conversation and document services, reached through
httpx's ASGI transport.

Fixtures:
    - backend: mutable state of the fake services (records and failure switches)
    - backend_app: FastAPI app serving the fake services under /api/v1
    - client_config: ClientConfig pointed at the fake services, zero-delay animation
    - http_client: HTTPX client bound to the fake services
    - service: fully wired ChatService
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest
from fastapi import APIRouter, FastAPI, File, Form, Header, HTTPException, Response, UploadFile
from httpx import ASGITransport, AsyncClient

from nfrs_assistant.chat import ChatService
from nfrs_assistant.config import AnimationConfig, ClientConfig

BASE_TIME = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
TEST_TOKEN = "test-token"
TEST_USER = {"id": 7, "username": "auditor", "first_name": "Sita", "last_name": "Rai", "email": "sita@example.com"}

NO_DELAY = AnimationConfig(start_delay=0.0, step_delay=0.0, sentence_pause=0.0, finish_delay=0.0, safety_timeout=5.0)


class BackendState:
    """In-memory records and failure switches for the fake services."""

    def __init__(self) -> None:
        self.conversations: dict[int, dict[str, Any]] = {}
        self.messages: dict[int, list[dict[str, Any]]] = {}
        self.documents: list[dict[str, Any]] = []
        self.created_sessions: list[str] = []
        self.sent: list[dict[str, Any]] = []
        self.uploads: list[dict[str, Any]] = []
        self.next_id = 100
        self.reply = "Under NFRS 9, financial assets are measured at amortised cost or fair value. Check the business model."
        self.sources = [{"id": 3, "title": "NFRS 9", "description": "Classification", "relevance_score": 0.9}]
        self.experts = [{"name": "Ram", "title": "IFRS Specialist"}]
        self.summary: str | None = "This document explains revenue recognition under NFRS 15."
        self.send_error: tuple[int, str] | None = None
        self.create_error: tuple[int, str] | None = None
        self.upload_error: tuple[int, str] | None = None
        self.minimal_upload_reply = False
        self.cleanups: list[dict[str, Any]] = []

    def new_id(self) -> int:
        self.next_id += 1
        return self.next_id

    def add_conversation(self, title: str, minutes_ago: int = 0, owner: dict[str, Any] | None = None) -> dict[str, Any]:
        """Seed a conversation whose last activity was ``minutes_ago`` before BASE_TIME."""
        conversation_id = self.new_id()
        moment = (BASE_TIME - timedelta(minutes=minutes_ago)).isoformat()
        record = {
            "id": conversation_id,
            "title": title,
            "language": "en",
            "created_at": (BASE_TIME - timedelta(days=1)).isoformat(),
            "updated_at": moment,
            "is_active": True,
            "message_count": 0,
            "user": owner or TEST_USER,
            "last_activity": moment,
        }
        self.conversations[conversation_id] = record
        self.messages[conversation_id] = []
        return record


def create_backend(state: BackendState) -> FastAPI:
    """Build a FastAPI app imitating the chat and knowledge endpoints."""
    router = APIRouter(prefix="/api/v1")

    def require_token(authorization: str | None) -> None:
        if authorization != f"Bearer {TEST_TOKEN}":
            raise HTTPException(status_code=401, detail="Authentication credentials were not provided.")

    def fail_with(error: tuple[int, str] | None) -> None:
        if error is not None:
            raise HTTPException(status_code=error[0], detail=error[1])

    @router.get("/chat/user-conversations/")
    async def user_conversations(authorization: str | None = Header(default=None)) -> dict[str, Any]:
        require_token(authorization)
        results = list(state.conversations.values())
        return {"count": len(results), "next": None, "previous": None, "results": results}

    @router.post("/chat/conversations/", status_code=201)
    async def create_conversation(body: dict[str, Any], authorization: str | None = Header(default=None)) -> dict:
        require_token(authorization)
        fail_with(state.create_error)
        conversation_id = state.new_id()
        state.created_sessions.append(body["session_id"])
        record = {
            "id": conversation_id,
            "title": body["title"],
            "language": body["language"],
            "created_at": datetime.now(timezone.utc).isoformat(),
            "user": TEST_USER,
        }
        state.conversations[conversation_id] = record
        state.messages[conversation_id] = []
        # Partial reply: no updated_at, last_activity or message_count
        return record

    @router.get("/chat/conversations/{conversation_id}/")
    async def conversation_detail(conversation_id: int, authorization: str | None = Header(default=None)) -> dict:
        require_token(authorization)
        if conversation_id not in state.conversations:
            raise HTTPException(status_code=404, detail="Not found.")
        return {**state.conversations[conversation_id], "messages": state.messages[conversation_id]}

    @router.put("/chat/conversations/{conversation_id}/")
    async def update_conversation(
        conversation_id: int, body: dict[str, Any], authorization: str | None = Header(default=None)
    ) -> dict:
        require_token(authorization)
        if conversation_id not in state.conversations:
            raise HTTPException(status_code=404, detail="Not found.")
        record = state.conversations[conversation_id]
        record.update(title=body["title"], language=body["language"], updated_at=datetime.now(timezone.utc).isoformat())
        return record

    @router.delete("/chat/conversations/{conversation_id}/", status_code=204)
    async def delete_conversation(conversation_id: int, authorization: str | None = Header(default=None)) -> Response:
        require_token(authorization)
        if state.conversations.pop(conversation_id, None) is None:
            raise HTTPException(status_code=404, detail="Not found.")
        state.messages.pop(conversation_id, None)
        return Response(status_code=204)

    @router.post("/chat/messages/")
    async def send_message(body: dict[str, Any], authorization: str | None = Header(default=None)) -> dict:
        require_token(authorization)
        state.sent.append(body)
        fail_with(state.send_error)
        conversation_id = body["conversation_id"]
        now = datetime.now(timezone.utc).isoformat()
        for role, content in (("user", body["content"]), ("assistant", state.reply)):
            state.messages.setdefault(conversation_id, []).append(
                {
                    "id": state.new_id(),
                    "conversation": conversation_id,
                    "role": role,
                    "content": content,
                    "created_at": now,
                }
            )
        return {"id": state.new_id(), "content": state.reply, "sources": state.sources, "experts_used": state.experts}

    @router.post("/chat/translate/")
    async def translate(body: dict[str, Any], authorization: str | None = Header(default=None)) -> dict:
        require_token(authorization)
        return {"translated_text": f"[{body['target_language']}] {body['text']}"}

    @router.post("/knowledge/session-documents/", status_code=201)
    async def upload_document(
        file: UploadFile = File(...),
        session_id: str = Form(...),
        title: str = Form(...),
        file_type: str = Form(...),
        chat_id: str | None = Form(default=None),
    ) -> dict:
        content = await file.read()
        state.uploads.append(
            {"filename": file.filename, "session_id": session_id, "title": title, "file_type": file_type, "chat_id": chat_id}
        )
        fail_with(state.upload_error)
        record = {
            "id": state.new_id(),
            "title": title,
            "content_preview": content[:40].decode(errors="ignore"),
            "session_id": session_id,
            "chat_id": int(chat_id) if chat_id else None,
            "file_type": file_type,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "document_summary": state.summary,
            "experts_used": state.experts if state.summary else None,
        }
        state.documents.append(record)
        if state.minimal_upload_reply:
            return {
                "title": title,
                "content_preview": record["content_preview"],
                "summary": state.summary,
                "experts_used": record["experts_used"],
            }
        return record

    @router.get("/knowledge/session-documents/")
    async def session_documents(session_id: str, chat_id: str | None = None) -> list[dict]:
        return [
            d
            for d in state.documents
            if d["session_id"] == session_id and (chat_id is None or str(d["chat_id"]) == chat_id)
        ]

    @router.delete("/knowledge/session-documents/{document_id}/", status_code=204)
    async def delete_document(document_id: int) -> Response:
        remaining = [d for d in state.documents if d["id"] != document_id]
        if len(remaining) == len(state.documents):
            raise HTTPException(status_code=404, detail="Not found.")
        state.documents = remaining
        return Response(status_code=204)

    @router.post("/knowledge/session-documents/cleanup/")
    async def cleanup_documents(body: dict[str, Any]) -> dict:
        state.cleanups.append(body)
        session_id = body.get("session_id")
        before = len(state.documents)
        if body.get("older_than_days") is None:
            state.documents = [d for d in state.documents if d["session_id"] != session_id]
        return {"deleted": before - len(state.documents)}

    app = FastAPI(title="Fake NFRS backend")
    app.include_router(router)
    return app


@pytest.fixture
def backend() -> BackendState:
    """Return fresh fake service state."""
    return BackendState()


@pytest.fixture
def backend_app(backend: BackendState) -> FastAPI:
    return create_backend(backend)


@pytest.fixture
def client_config(tmp_path: Path) -> ClientConfig:
    """Return client configuration pointed at the fake services.

    Args:
        tmp_path: Per-test directory holding the session id file.
    """
    return ClientConfig(
        api_base_url="http://test/",
        api_prefix="/api/v1",
        access_token=TEST_TOKEN,
        language="en",
        request_timeout=5.0,
        data_dir=tmp_path,
        animation=NO_DELAY,
    )


@pytest.fixture
async def http_client(backend_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client bound to the fake services.

    Yields:
        Configured AsyncClient for the chat client to use.
    """
    transport = ASGITransport(app=backend_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def service(client_config: ClientConfig, http_client: AsyncClient) -> AsyncGenerator[ChatService]:
    """Create a wired ChatService talking to the fake services."""
    chat = ChatService(client_config, http_client=http_client)
    yield chat
    await chat.aclose()
