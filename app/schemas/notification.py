from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    person_id: UUID
    title: str
    body: str
    category: str
    entity_type: str
    entity_id: str
    notify_date: date
    is_read: bool
    read_at: datetime | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UnreadCountResponse(BaseModel):
    count: int
