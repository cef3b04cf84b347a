"""Wiring for one chat client instance.

Builds the API client, session identity, timeline, conversation store,
animator, turn orchestrator and document pipeline around a shared turn lock,
so message turns and document uploads never interleave.
"""

import asyncio
import logging

import httpx

from nfrs_assistant.chat.animator import ResponseAnimator
from nfrs_assistant.chat.conversation_store import ConversationStore
from nfrs_assistant.chat.ingestion import DocumentIngestionPipeline
from nfrs_assistant.chat.orchestrator import TurnOrchestrator
from nfrs_assistant.chat.session_identity import SessionIdentity
from nfrs_assistant.chat.timeline import MessageTimeline
from nfrs_assistant.client import ChatApiClient
from nfrs_assistant.config import ClientConfig, get_client_config
from nfrs_assistant.models import UserInfo

logger = logging.getLogger(__name__)


class ChatService:
    """Everything one user's chat view needs, sharing a single timeline."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        owner: UserInfo | None = None,
    ) -> None:
        self.config = config or get_client_config()
        self.client = ChatApiClient(self.config, http_client=http_client)
        self.session = SessionIdentity(self.config.data_dir)
        self.timeline = MessageTimeline()
        self.animator = ResponseAnimator(self.timeline, self.config.animation)
        self.store = ConversationStore(
            self.client,
            self.timeline,
            self.session,
            owner=owner,
            language=self.config.language,
            animator=self.animator,
        )
        turn_lock = asyncio.Lock()
        self.orchestrator = TurnOrchestrator(
            self.client,
            self.store,
            self.timeline,
            self.animator,
            turn_lock=turn_lock,
            language=self.config.language,
        )
        self.documents = DocumentIngestionPipeline(
            self.client,
            self.store,
            self.timeline,
            self.animator,
            self.session,
            turn_lock=turn_lock,
        )
        logger.debug(f"Chat service ready for {self.config.api_url}")

    def set_language(self, language: str) -> None:
        """Switch the language used for new conversations and messages."""
        self.config = self.config.model_copy(update={"language": language})
        self.store.language = language
        self.orchestrator.language = language

    async def aclose(self) -> None:
        """Finish any running reveal and release the HTTP client."""
        if self.animator.active is not None:
            self.animator.active.cancel()
        await self.client.aclose()
