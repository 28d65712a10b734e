from datetime import datetime, timezone
from typing import Callable

from bson import ObjectId
from pydantic import BaseModel, Field, ConfigDict

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(ObjectId())


def normalize_email(email: str) -> str:
    """Canonical form used wherever an email is stored or compared."""
    return email.strip().lower()


class DocumentModel(BaseModel):
    """Base for stored records: string id exposed as ``_id`` to MongoDB."""
    id: str = Field(default_factory=new_id, alias="_id")
    created_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)
