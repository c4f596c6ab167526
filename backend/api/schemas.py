"""Response models shared by the document routers."""

from pydantic import BaseModel

from models.document import Document


class DocumentOut(BaseModel):
    id: str
    user_id: str
    title: str
    type: str
    format: str
    file_url: str | None
    file_size: int | None
    share_token: str | None
    is_public: bool
    generation_status: str
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_row(cls, doc: Document) -> "DocumentOut":
        return cls(**doc.to_dict())


class SharedDocumentOut(BaseModel):
    """Public view of a shared document; omits the owner and token."""

    id: str
    title: str
    type: str
    format: str
    file_url: str | None
    file_size: int | None
    created_at: str | None

    @classmethod
    def from_row(cls, doc: Document) -> "SharedDocumentOut":
        data = doc.to_dict()
        return cls(**{name: data[name] for name in cls.model_fields})
