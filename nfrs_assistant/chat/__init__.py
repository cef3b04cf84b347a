"""Client-side chat orchestration.

Components:
    - MessageTimeline: ordered messages of the active conversation
    - ResponseAnimator: progressive reveal of complete replies
    - ConversationStore: conversation list and current selection
    - TurnOrchestrator: submit -> send -> reveal -> finalize
    - DocumentIngestionPipeline: session document uploads
    - ChatService: wires the above around one shared timeline
"""

from nfrs_assistant.chat.animator import AnimationHandle, ResponseAnimator, THINKING_STAGES
from nfrs_assistant.chat.conversation_store import ConversationStore
from nfrs_assistant.chat.ingestion import DocumentIngestionPipeline
from nfrs_assistant.chat.orchestrator import TurnOrchestrator, TurnState
from nfrs_assistant.chat.service import ChatService
from nfrs_assistant.chat.session_identity import SessionIdentity
from nfrs_assistant.chat.timeline import MessageTimeline, dedupe

__all__ = [
    "THINKING_STAGES",
    "AnimationHandle",
    "ChatService",
    "ConversationStore",
    "DocumentIngestionPipeline",
    "MessageTimeline",
    "ResponseAnimator",
    "SessionIdentity",
    "TurnOrchestrator",
    "TurnState",
    "dedupe",
]
