"""Test package for the NFRS assistant chat client.

Structure:
    - unit/: Timeline, animator, session identity, config, schemas, inspector
    - integration/: Store, turns, uploads, API client and host app against
      an in-memory fake of the conversation and document services

Leverages pytest with pytest-asyncio and pytest-check for soft assertions.
"""
