from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class ProfileResponse(BaseModel):
    id: UUID
    username: str | None = None
    display_name: str
    role: str
    allow_invites: bool

    class Config:
        from_attributes = True


class InviteCandidateResponse(BaseModel):
    id: UUID
    display_name: str
    username: str | None = None

    class Config:
        from_attributes = True


class AccountDeletionResponse(BaseModel):
    profile_id: UUID
    deleted_projects: int
    memberships_removed: int
    invites_removed: int
