from typing import Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookmarkNode(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    parent_id: Optional[int] = Field(default=None, index=True)
    title: str = Field(default="", index=True)
    url: Optional[str] = None
    position: int = 0
    date_added: datetime = Field(default_factory=_utcnow)
