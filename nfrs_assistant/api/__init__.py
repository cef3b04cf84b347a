"""FastAPI host application for the NFRS assistant.

Serves the NiceGUI chat page and a health endpoint. The conversation and
document services themselves are remote; this app never proxies them.

Endpoints:
    - GET /health: Host status
"""

from nfrs_assistant.api.app import create_app

__all__ = ["create_app"]
