"""Document upload into the active conversation.

Validates the file locally, uploads it under the current session (and the
current conversation, when there is one), then records the upload in the
timeline: a user "uploaded" entry followed by the backend's summary, revealed
through the animator, or a short acknowledgment when there is no summary.
"""

import asyncio
import logging

from pydantic import ValidationError

from nfrs_assistant.chat.animator import AnimationHandle, ResponseAnimator, thinking_caption
from nfrs_assistant.chat.conversation_store import ConversationStore
from nfrs_assistant.chat.message_factory import (
    error_message,
    new_message_id,
    thinking_message,
    upload_failure_text,
)
from nfrs_assistant.chat.session_identity import SessionIdentity
from nfrs_assistant.chat.timeline import MessageTimeline
from nfrs_assistant.client import ChatApiClient
from nfrs_assistant.exceptions import ServiceUnavailableError, UnsupportedTypeError, UploadFailedError
from nfrs_assistant.models import DocumentSource, Message, MessageRole, SessionDocument, TransientKind
from nfrs_assistant.parsing import MAX_FILE_SIZE, DocumentInfo, inspect_document

logger = logging.getLogger(__name__)

UPLOAD_ACKNOWLEDGMENT = "Document was uploaded successfully. I'll reference it when answering your questions."


def upload_entry_text(title: str) -> str:
    return f"📄 Uploaded document: {title}"


class DocumentIngestionPipeline:
    """Uploads session documents and narrates them in the timeline."""

    def __init__(
        self,
        client: ChatApiClient,
        store: ConversationStore,
        timeline: MessageTimeline,
        animator: ResponseAnimator,
        session: SessionIdentity,
        turn_lock: asyncio.Lock | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._timeline = timeline
        self._animator = animator
        self._session = session
        self._lock = turn_lock or asyncio.Lock()
        self.documents: list[SessionDocument] = []
        self.thinking_caption: str | None = None
        self.last_error: str | None = None
        self.animation: AnimationHandle | None = None

    async def upload(self, filename: str, content: bytes, title: str | None = None) -> SessionDocument:
        """Upload a document and add it to the conversation.

        Args:
            filename: Original file name; its extension selects the file type.
            content: Raw file bytes.
            title: Optional display title; defaults to the PDF title or the
                   file name without extension.

        Returns:
            The stored session document.

        Raises:
            UnsupportedTypeError: If the file is rejected locally. Nothing is
                                  sent and the timeline is unchanged.
            UploadFailedError: If the upload fails. An inline error message
                               has already been added to the timeline.
        """
        self.last_error = None
        try:
            info = inspect_document(filename, content)
        except UnsupportedTypeError as e:
            self.last_error = e.message
            logger.warning(f"Rejected {filename}: {e.message}")
            raise

        title = (title or "").strip() or info.title
        async with self._lock:
            return await self._ingest(filename, content, info, title)

    async def refresh_documents(self) -> list[SessionDocument]:
        """Reload documents for the current session and conversation."""
        chat_id = str(self._store.current.id) if self._store.current else None
        self.documents = await self._client.list_session_documents(self._session.current_id(), chat_id)
        return list(self.documents)

    async def remove_document(self, document_id: str) -> None:
        """Delete one session document.

        Raises:
            ServiceUnavailableError: If the document service call fails.
        """
        self.last_error = None
        try:
            await self._client.delete_session_document(document_id)
        except ServiceUnavailableError as e:
            self.last_error = e.message
            logger.error(f"Could not delete document {document_id}: {e.message}")
            raise
        self.documents = [d for d in self.documents if d.id != document_id]
        logger.info(f"Deleted session document {document_id}")

    async def cleanup_session(self, older_than_days: int | None = None) -> None:
        """Drop this session's documents on the service, optionally only old ones.

        Raises:
            ServiceUnavailableError: If the document service call fails.
        """
        self.last_error = None
        session_id = self._session.current_id()
        try:
            await self._client.cleanup_session_documents(session_id=session_id, older_than_days=older_than_days)
        except ServiceUnavailableError as e:
            self.last_error = e.message
            logger.error(f"Could not clean up documents for session {session_id}: {e.message}")
            raise
        if older_than_days is None:
            self.documents = []
        else:
            await self.refresh_documents()

    async def _ingest(self, filename: str, content: bytes, info: DocumentInfo, title: str) -> SessionDocument:
        conversation_id = self._store.current.id if self._store.current else None
        if conversation_id is not None:
            self._timeline.append(thinking_message(conversation_id, thinking_caption(0)))

        try:
            try:
                document = await self._send(filename, content, info, title, conversation_id)
            except UploadFailedError as e:
                raise self._fail(conversation_id, e)

            try:
                await self.refresh_documents()
            except ServiceUnavailableError as e:
                logger.warning(f"Could not refresh session documents: {e.message}")

            if conversation_id is None:
                logger.info(f"Uploaded {document.title} to session only; no active conversation")
                return document

            self._timeline.remove_transient({TransientKind.THINKING})
            self._timeline.append(
                Message(
                    id=new_message_id("upload-"),
                    conversation_id=conversation_id,
                    role=MessageRole.USER,
                    content=upload_entry_text(document.title),
                    created_at=document.created_at,
                )
            )
            if document.summary and document.summary.strip():
                await self._reveal_summary(conversation_id, document)
            else:
                self._timeline.append(
                    Message(
                        id=new_message_id("summary-"),
                        conversation_id=conversation_id,
                        role=MessageRole.ASSISTANT,
                        content=UPLOAD_ACKNOWLEDGMENT,
                    )
                )
            self._store.touch(conversation_id, added_messages=2)
            return document
        finally:
            self._timeline.remove_transient({TransientKind.THINKING, TransientKind.TYPING})
            self.thinking_caption = None
            self.animation = None

    async def _send(
        self,
        filename: str,
        content: bytes,
        info: DocumentInfo,
        title: str,
        conversation_id: int | None,
    ) -> SessionDocument:
        if len(content) > MAX_FILE_SIZE:
            size_mb = len(content) / (1024 * 1024)
            raise UploadFailedError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)")
        try:
            document = await self._client.upload_session_document(
                filename=filename,
                content=content,
                content_type=info.content_type,
                session_id=self._session.current_id(),
                title=title,
                file_type=info.file_type,
                chat_id=str(conversation_id) if conversation_id is not None else None,
            )
        except ServiceUnavailableError as e:
            raise UploadFailedError(e.message) from e
        except ValidationError as e:
            raise UploadFailedError(f"Invalid document returned by service: {e}") from e
        logger.info(f"Uploaded {filename} as '{document.title}' ({info.file_type}, pages={info.pages})")
        return document

    async def _reveal_summary(self, conversation_id: int, document: SessionDocument) -> None:
        assistant = Message(
            id=new_message_id("summary-"),
            conversation_id=conversation_id,
            role=MessageRole.ASSISTANT,
            content=document.summary,
            sources=[
                DocumentSource(
                    id=document.id or new_message_id("document-"),
                    title=document.title,
                    description=document.content_preview or "Document preview",
                    relevance_score=1.0,
                )
            ],
            experts=document.experts_used,
        )

        def on_stage_change(stage: int) -> None:
            self.thinking_caption = thinking_caption(stage)

        def on_complete(full_text: str) -> None:
            self.thinking_caption = None
            if not self._store.is_current(conversation_id):
                logger.warning(f"Dropping summary for conversation {conversation_id}; it is no longer open")
                return
            self._timeline.append(assistant.model_copy(update={"content": full_text}))
            self._timeline.remove_transient()

        self.animation = self._animator.start(assistant.content, on_complete, on_stage_change)
        await self.animation.wait()

    def _fail(self, conversation_id: int | None, error: UploadFailedError) -> UploadFailedError:
        self.last_error = error.message
        logger.error(f"Document upload failed: {error.message}")
        self._timeline.remove_transient({TransientKind.THINKING, TransientKind.TYPING})
        if conversation_id is not None:
            self._timeline.append(error_message(conversation_id, upload_failure_text(error.message)))
        return error
