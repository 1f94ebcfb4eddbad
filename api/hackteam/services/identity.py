"""Resolução do chamador e da posse de projetos."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.models.profile import Profile
from hackteam.models.project import Project
from hackteam.services import results
from hackteam.services.results import Failure, FailureKind, Result, Success


@dataclass(frozen=True)
class CallerIdentity:
    """Identidade resolvida uma única vez na borda e passada a cada chamada de serviço."""

    profile_id: uuid.UUID


async def resolve_caller_profile(db: AsyncSession, identity: CallerIdentity) -> Optional[Profile]:
    return await db.get(Profile, identity.profile_id)


async def get_profile_by_username(db: AsyncSession, username: str) -> Optional[Profile]:
    stmt = select(Profile).where(Profile.username == username)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_project(db: AsyncSession, project_id: int) -> Optional[Project]:
    return await db.get(Project, project_id)


def is_project_owner(project: Project, profile_id: uuid.UUID) -> bool:
    return project.owner_profile_id == profile_id


async def resolve_owned_project(
    db: AsyncSession,
    identity: CallerIdentity,
    project_id: int,
) -> Result[tuple[Profile, Project]]:
    """
    Garante que o chamador existe e é dono do projeto.

    Returns:
        Success((perfil, projeto)) ou Failure NotFound / PermissionDenied
    """
    profile = await resolve_caller_profile(db, identity)
    if profile is None:
        return Failure(FailureKind.PERMISSION_DENIED, results.PROFILE_REQUIRED)

    project = await get_project(db, project_id)
    if project is None:
        return Failure(FailureKind.NOT_FOUND, results.PROJECT_NOT_FOUND)
    if not is_project_owner(project, profile.id):
        return Failure(FailureKind.PERMISSION_DENIED, results.NOT_PROJECT_OWNER)

    return Success((profile, project))
