"""Backend access for the chat client.

Wraps the conversation service (conversations, messages, translation) and
the document service (session documents) behind one async httpx client.
"""

from nfrs_assistant.client.api_client import ChatApiClient

__all__ = ["ChatApiClient"]
