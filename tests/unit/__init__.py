"""Unit tests for individual components in isolation.

Coverage:
    - chat/: timeline bookkeeping, response animator, session identity
    - models/: Pydantic validation of backend payloads
    - parsing/: document inspection with generated PDFs
    - config: environment defaults and validation

No network access. Animation timings are shrunk through AnimationConfig.
"""
