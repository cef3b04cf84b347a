"""Integration tests for components working together.

The real client talks HTTP to a FastAPI fake of the backend through
httpx.ASGITransport, so requests, multipart uploads and error bodies are
exercised end to end without external services.

Coverage:
    - Conversation store CRUD and ordering
    - Message turns: success, failure, missing conversation
    - Document uploads: summary reveal, rejection, failure
    - API client error mapping and the host health endpoint
"""
