from .base import Base, async_engine, async_session_factory
from .document import Document, DocumentFormat, DocumentType, GenerationStatus

__all__ = [
    "Base",
    "async_engine",
    "async_session_factory",
    "Document",
    "DocumentFormat",
    "DocumentType",
    "GenerationStatus",
]
