"""NiceGUI interface - thin presentation layer over the chat service.

Responsibilities:
    - Render timeline snapshots and the text being revealed
    - Conversation list with select, delete and new chat
    - Document upload (PDF, TXT, DOCX)
    - Language toggle (English / Nepali)

Mutates state only through TurnOrchestrator.submit, the conversation store
and DocumentIngestionPipeline.upload.
"""
