"""HTTP client for the conversation and document services.

Thin async wrapper around httpx. Every transport or HTTP failure is raised as
ServiceUnavailableError carrying the backend's ``detail`` text when it sent
one; callers translate it into the operation-specific error.
"""

import logging
from typing import Any

import httpx

from nfrs_assistant.config import ClientConfig, get_client_config
from nfrs_assistant.exceptions import ServiceUnavailableError
from nfrs_assistant.models import (
    Conversation,
    ConversationDetail,
    SendMessageRequest,
    SendMessageResult,
    SessionDocument,
)

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    """Extract a human-readable error from a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return f"HTTP {response.status_code}"


def _json(response: httpx.Response) -> Any:
    """Decode a successful response body.

    Raises:
        ServiceUnavailableError: If the body is not JSON, e.g. a proxy's
                                 HTML page served with a 2xx status.
    """
    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Non-JSON body from {response.request.url}: {response.text[:200]!r}")
        raise ServiceUnavailableError("Invalid response from service", status_code=response.status_code) from e


def _json_object(response: httpx.Response) -> dict[str, Any]:
    body = _json(response)
    if not isinstance(body, dict):
        logger.error(f"Expected a JSON object from {response.request.url}, got {type(body).__name__}")
        raise ServiceUnavailableError("Invalid response from service", status_code=response.status_code)
    return body


def _results(body: Any) -> list[dict[str, Any]]:
    """Unwrap a paginated ``{count, next, previous, results}`` body."""
    if isinstance(body, dict):
        return list(body.get("results") or [])
    if isinstance(body, list):
        return body
    raise ServiceUnavailableError("Invalid response from service")


class ChatApiClient:
    """Client for the backend's chat and knowledge endpoints."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Optional client configuration.
                    Loads from environment if not provided.
            http_client: Optional preconfigured httpx client (tests pass one
                         bound to an ASGI transport).
        """
        self._config = config or get_client_config()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self._config.request_timeout)

    @property
    def is_authenticated(self) -> bool:
        return bool(self._config.access_token)

    @property
    def _headers(self) -> dict[str, str]:
        token = self._config.access_token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._config.api_url}{path}"
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = _error_detail(e.response)
            logger.warning(f"{method} {path} failed with HTTP {e.response.status_code}: {detail}")
            raise ServiceUnavailableError(detail, status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise ServiceUnavailableError(f"Connection failed: {e}") from e
        return response

    # Conversation service

    async def list_conversations(self) -> list[Conversation]:
        """Fetch the authenticated user's conversations."""
        response = await self._request("GET", "/chat/user-conversations/")
        return [Conversation.model_validate(item) for item in _results(_json(response))]

    async def create_conversation(self, title: str, language: str, session_id: str) -> dict[str, Any]:
        """Create a conversation linked to ``session_id``.

        Returns:
            The raw backend reply, which may omit fields of a full
            Conversation.
        """
        response = await self._request(
            "POST",
            "/chat/conversations/",
            json={"title": title, "language": language, "session_id": session_id},
        )
        return _json_object(response)

    async def get_conversation_detail(self, conversation_id: int) -> ConversationDetail:
        response = await self._request("GET", f"/chat/conversations/{conversation_id}/")
        return ConversationDetail.model_validate(_json_object(response))

    async def update_conversation(self, conversation_id: int, title: str, language: str) -> Conversation:
        response = await self._request(
            "PUT",
            f"/chat/conversations/{conversation_id}/",
            json={"title": title, "language": language},
        )
        return Conversation.model_validate(_json_object(response))

    async def delete_conversation(self, conversation_id: int) -> None:
        await self._request("DELETE", f"/chat/conversations/{conversation_id}/")

    async def send_message(self, request: SendMessageRequest) -> SendMessageResult:
        """Post a user message and return the complete assistant reply."""
        response = await self._request("POST", "/chat/messages/", json=request.model_dump())
        return SendMessageResult.model_validate(_json_object(response))

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        response = await self._request(
            "POST",
            "/chat/translate/",
            json={
                "text": text,
                "source_language": source_language,
                "target_language": target_language,
            },
        )
        translated = _json_object(response).get("translated_text")
        if not isinstance(translated, str):
            raise ServiceUnavailableError("Invalid response from service", status_code=response.status_code)
        return translated

    # Document service

    async def upload_session_document(
        self,
        *,
        filename: str,
        content: bytes,
        content_type: str,
        session_id: str,
        title: str,
        file_type: str,
        chat_id: str | None = None,
    ) -> SessionDocument:
        """Upload a document scoped to a session and, optionally, a chat.

        The reply may carry only the title, preview and summary; the
        session, chat and file type fall back to the values sent.
        """
        data = {"session_id": session_id, "title": title, "file_type": file_type}
        if chat_id:
            data["chat_id"] = chat_id
        response = await self._request(
            "POST",
            "/knowledge/session-documents/",
            data=data,
            files={"file": (filename, content, content_type)},
        )
        body = {k: v for k, v in _json_object(response).items() if v is not None}
        return SessionDocument.model_validate({**data, **body})

    async def list_session_documents(self, session_id: str, chat_id: str | None = None) -> list[SessionDocument]:
        params = {"session_id": session_id}
        if chat_id:
            params["chat_id"] = chat_id
        response = await self._request("GET", "/knowledge/session-documents/", params=params)
        return [SessionDocument.model_validate(item) for item in _results(_json(response))]

    async def delete_session_document(self, document_id: str) -> None:
        await self._request("DELETE", f"/knowledge/session-documents/{document_id}/")

    async def cleanup_session_documents(
        self,
        session_id: str | None = None,
        chat_id: str | None = None,
        older_than_days: int | None = None,
    ) -> None:
        """Ask the document service to drop documents matching the filters."""
        body = {"session_id": session_id, "chat_id": chat_id, "older_than_days": older_than_days}
        await self._request(
            "POST",
            "/knowledge/session-documents/cleanup/",
            json={k: v for k, v in body.items() if v is not None},
        )
