from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.api import deps
from hackteam.api.responses import unwrap
from hackteam.schemas.profile import InviteCandidateResponse
from hackteam.schemas.project_member import ProjectMemberResponse
from hackteam.schemas.team_invite import (
    DirectInviteCreateRequest,
    InviteLinkResponse,
    ProjectInviteListResponse,
    TeamInviteResponse,
)
from hackteam.services import cascade, invitations
from hackteam.services.candidate_search import search_invite_candidates
from hackteam.services.identity import CallerIdentity

router = APIRouter(prefix="/projects", tags=["projects"])


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: int,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> Response:
    """
    Exclui o projeto com membros, convites e vínculos com eventos.

    **Permissão:** dono do projeto
    """
    unwrap(await cascade.delete_project(db, project_id, identity))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Team Invites
# ============================================================================


@router.post("/{project_id}/invites", response_model=TeamInviteResponse, status_code=status.HTTP_201_CREATED)
async def create_direct_invite(
    project_id: int,
    payload: DirectInviteCreateRequest,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> TeamInviteResponse:
    """
    Convida um usuário para a equipe pelo username.

    **Permissão:** dono do projeto
    """
    invite = unwrap(await invitations.send_direct_invite(db, project_id, identity, payload.username))
    return TeamInviteResponse.model_validate(invite)


@router.get("/{project_id}/invites", response_model=list[ProjectInviteListResponse])
async def list_project_invites(
    project_id: int,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> list[ProjectInviteListResponse]:
    """Lista os convites pendentes do projeto, mais recentes primeiro."""
    invites = unwrap(await invitations.list_project_invites(db, project_id, identity))
    return [
        ProjectInviteListResponse(
            id=invite.id,
            invite_type=invite.invite_type,
            status=invite.status,
            recipient_id=invite.recipient_id,
            recipient_name=invite.recipient.display_name if invite.recipient else None,
            recipient_username=invite.recipient.username if invite.recipient else None,
            created_at=invite.created_at,
        )
        for invite in invites
    ]


@router.post("/{project_id}/invite-links", response_model=InviteLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_invite_link(
    project_id: int,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> InviteLinkResponse:
    """
    Gera um link de convite de uso único.

    **Permissão:** dono do projeto
    """
    link = unwrap(await invitations.generate_invite_link(db, project_id, identity))
    return InviteLinkResponse(invite_id=link.invite_id, token=link.token, url=link.url)


@router.get("/{project_id}/invite-candidates", response_model=list[InviteCandidateResponse])
async def list_invite_candidates(
    project_id: int,
    q: str = Query(default="", description="Trecho do username ou nome"),
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> list[InviteCandidateResponse]:
    profiles = unwrap(await search_invite_candidates(db, project_id, identity, q))
    return [InviteCandidateResponse.model_validate(profile) for profile in profiles]


# ============================================================================
# Team Members
# ============================================================================


@router.get("/{project_id}/members", response_model=list[ProjectMemberResponse])
async def list_project_members(
    project_id: int,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> list[ProjectMemberResponse]:
    """Lista os membros da equipe (perfis banidos ou ocultos ficam de fora)."""
    rows = unwrap(await invitations.list_project_members(db, project_id))
    return [
        ProjectMemberResponse(
            id=member.id,
            profile_id=member.profile_id,
            project_id=member.project_id,
            invite_id=member.invite_id,
            joined_at=member.joined_at,
            username=profile.username,
            display_name=profile.display_name,
        )
        for member, profile in rows
    ]


@router.delete("/{project_id}/members/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_team_member(
    project_id: int,
    member_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> Response:
    """
    Remove um membro da equipe. Remover quem não é membro não é erro.

    **Permissão:** dono do projeto
    """
    unwrap(await invitations.remove_team_member(db, project_id, member_id, identity))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_project(
    project_id: int,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> Response:
    """Sai da equipe do projeto. O dono não pode sair."""
    unwrap(await invitations.leave_project(db, project_id, identity))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
