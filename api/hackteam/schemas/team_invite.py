from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class TeamInviteResponse(BaseModel):
    id: int
    project_id: int
    sender_id: UUID
    recipient_id: UUID | None = None
    invite_type: str
    status: str
    created_at: datetime
    responded_at: datetime | None = None

    class Config:
        from_attributes = True


class ReceivedInviteResponse(BaseModel):
    """Convite pendente recebido, com dados do projeto e de quem convidou."""

    id: int
    project_id: int
    project_name: str | None = None
    project_slug: str | None = None
    sender_id: UUID
    sender_name: str | None = None
    sender_username: str | None = None
    created_at: datetime


class ProjectInviteListResponse(BaseModel):
    id: int
    invite_type: str
    status: str
    recipient_id: UUID | None = None
    recipient_name: str | None = None
    recipient_username: str | None = None
    created_at: datetime


class DirectInviteCreateRequest(BaseModel):
    username: str = Field(description="Username do usuário a ser convidado")


class InviteRespondRequest(BaseModel):
    accept: bool = Field(description="True para aceitar, False para recusar")


class InviteTransitionResponse(BaseModel):
    id: int
    project_id: int
    status: str


class InviteLinkResponse(BaseModel):
    invite_id: int
    token: str
    url: str


class InviteLinkAcceptResponse(BaseModel):
    project_slug: str | None = None


class InviteLinkPreviewResponse(BaseModel):
    """Dados exibidos na página do link antes do aceite."""

    invite_id: int
    project_id: int
    project_name: str
    project_slug: str | None = None
    owner_display_name: str
    owner_username: str | None = None
    sender_display_name: str
    sender_username: str | None = None
    is_owner: bool
