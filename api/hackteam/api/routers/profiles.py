from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.api import deps
from hackteam.api.responses import unwrap
from hackteam.core.security import clear_session
from hackteam.models.profile import Profile
from hackteam.schemas.profile import AccountDeletionResponse, ProfileResponse
from hackteam.services import cascade
from hackteam.services.identity import CallerIdentity

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _deletion_response(summary: cascade.ProfileCascadeSummary) -> AccountDeletionResponse:
    return AccountDeletionResponse(
        profile_id=summary.profile_id,
        deleted_projects=len(summary.deleted_project_ids),
        memberships_removed=summary.memberships_removed,
        invites_removed=summary.invites_removed,
    )


@router.get("/me", response_model=ProfileResponse)
async def read_me(profile: Profile = Depends(deps.get_caller_profile)) -> ProfileResponse:
    return ProfileResponse.model_validate(profile)


@router.delete("/me", response_model=AccountDeletionResponse)
async def delete_my_account(
    request: Request,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> AccountDeletionResponse:
    """Exclui a conta do usuário logado com todos os dados relacionados."""
    summary = unwrap(await cascade.delete_account(db, identity))
    clear_session(request)
    return _deletion_response(summary)


@router.delete("/{profile_id}", response_model=AccountDeletionResponse)
async def delete_account(
    profile_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
    identity: CallerIdentity = Depends(deps.get_caller_identity),
) -> AccountDeletionResponse:
    """
    Exclui a conta de outro usuário.

    **Permissão:** admin
    """
    summary = unwrap(await cascade.delete_account(db, identity, profile_id))
    return _deletion_response(summary)
