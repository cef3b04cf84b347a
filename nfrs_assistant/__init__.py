"""NFRS Assistant - conversational client for the NFRS knowledge assistant.

Combines httpx for backend calls, asyncio for turn orchestration and
simulated response reveal, NiceGUI for visualization, FastAPI as the host
application, and Pydantic for data validation.

Components:
    - chat: turn orchestration, message timeline, response animation
    - client: HTTP client for the conversation and document services
    - parsing: local document inspection before upload
    - ui: Web interface for chat interactions
    - api: host application and health endpoint
    - models: conversation, message and document schemas
"""

__version__ = "0.1.0"
