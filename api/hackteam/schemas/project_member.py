from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class ProjectMemberResponse(BaseModel):
    id: int
    profile_id: UUID
    project_id: int
    invite_id: int | None = None
    joined_at: datetime

    # Dados do perfil (join)
    username: str | None = None
    display_name: str | None = None

    class Config:
        from_attributes = True
