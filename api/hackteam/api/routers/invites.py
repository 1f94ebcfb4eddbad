from __future__ import annotations

import dataclasses

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.api import deps
from hackteam.api.responses import unwrap
from hackteam.schemas.team_invite import (
    InviteLinkAcceptResponse,
    InviteLinkPreviewResponse,
    InviteRespondRequest,
    InviteTransitionResponse,
    ReceivedInviteResponse,
)
from hackteam.services import invitations
from hackteam.services.identity import CallerIdentity

router = APIRouter(prefix="/invites", tags=["invites"])


@router.get("/received", response_model=list[ReceivedInviteResponse])
async def list_received_invites(
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> list[ReceivedInviteResponse]:
    """Lista os convites diretos pendentes do usuário logado."""
    invites = unwrap(await invitations.list_received_invites(db, identity))
    return [
        ReceivedInviteResponse(
            id=invite.id,
            project_id=invite.project_id,
            project_name=invite.project.name if invite.project else None,
            project_slug=invite.project.slug if invite.project else None,
            sender_id=invite.sender_id,
            sender_name=invite.sender.display_name if invite.sender else None,
            sender_username=invite.sender.username if invite.sender else None,
            created_at=invite.created_at,
        )
        for invite in invites
    ]


@router.post("/{invite_id}/respond", response_model=InviteTransitionResponse)
async def respond_to_invite(
    invite_id: int,
    payload: InviteRespondRequest,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> InviteTransitionResponse:
    """Aceita ou recusa um convite direto."""
    claimed = unwrap(await invitations.respond_to_invite(db, invite_id, identity, payload.accept))
    return InviteTransitionResponse(id=claimed.id, project_id=claimed.project_id, status=claimed.status)


@router.post("/{invite_id}/revoke", response_model=InviteTransitionResponse)
async def revoke_invite(
    invite_id: int,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> InviteTransitionResponse:
    """
    Revoga um convite pendente.

    **Permissão:** quem enviou o convite
    """
    revoked = unwrap(await invitations.revoke_invite(db, invite_id, identity))
    return InviteTransitionResponse(id=revoked.id, project_id=revoked.project_id, status=revoked.status)


@router.get("/links/{token}", response_model=InviteLinkPreviewResponse)
async def preview_invite_link(
    token: str,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> InviteLinkPreviewResponse:
    """
    Mostra projeto, dono e remetente de um link pendente antes do aceite.

    Exige sessão: detalhes do convite não são revelados a anônimos.
    """
    preview = unwrap(await invitations.get_invite_link_preview(db, token, identity))
    return InviteLinkPreviewResponse(**dataclasses.asdict(preview))


@router.post("/links/{token}/accept", response_model=InviteLinkAcceptResponse)
async def accept_invite_link(
    token: str,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> InviteLinkAcceptResponse:
    """Entra na equipe usando um link de convite."""
    project_slug = unwrap(await invitations.accept_invite_link(db, token, identity))
    return InviteLinkAcceptResponse(project_slug=project_slug)
