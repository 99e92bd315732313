from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field, ConfigDict


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


class StoredModel(BaseModel):
    """A record persisted in one RecordStore collection."""

    id: str = Field(default_factory=new_id, alias="_id")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True
    )

    def to_record(self) -> dict:
        """Document shape written to the store.

        JSON mode: dates become ISO strings, enums their values.
        """
        return self.model_dump(by_alias=True, mode="json")
