"""Generated document record: one row per generation request."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, DateTime, Enum, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class DocumentType(str, enum.Enum):
    BOOK_SMALL = "book_small"
    BOOK_MEDIUM = "book_medium"
    BOOK_LONG = "book_long"
    RESEARCH_LONG = "research_long"


class DocumentFormat(str, enum.Enum):
    PDF = "pdf"
    DOCX = "docx"


class GenerationStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = (GenerationStatus.COMPLETED, GenerationStatus.FAILED)


def _values(enum_cls):
    return [member.value for member in enum_cls]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, name="document_type", native_enum=False, values_callable=_values),
        nullable=False,
    )
    format: Mapped[DocumentFormat] = mapped_column(
        Enum(DocumentFormat, name="document_format", native_enum=False, values_callable=_values),
        nullable=False,
        default=DocumentFormat.PDF,
    )
    file_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    file_size: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    share_token: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    generation_status: Mapped[GenerationStatus] = mapped_column(
        Enum(GenerationStatus, name="generation_status", native_enum=False, values_callable=_values),
        nullable=False,
        default=GenerationStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "user_id": self.user_id,
            "title": self.title,
            "type": self.type.value,
            "format": self.format.value,
            "file_url": self.file_url,
            "file_size": self.file_size,
            "share_token": self.share_token,
            "is_public": self.is_public,
            "generation_status": self.generation_status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
