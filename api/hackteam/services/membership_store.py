from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.models.profile import Profile
from hackteam.models.project_member import ProjectMember

logger = logging.getLogger("hackteam.membership")


class DuplicateMembershipError(Exception):
    """O perfil já tem uma linha de participação neste projeto."""

    def __init__(self, project_id: int, profile_id: uuid.UUID):
        super().__init__(f"Perfil {profile_id} já é membro do projeto {project_id}")
        self.project_id = project_id
        self.profile_id = profile_id


async def get_membership(
    db: AsyncSession,
    project_id: int,
    profile_id: uuid.UUID,
) -> Optional[ProjectMember]:
    stmt = select(ProjectMember).where(
        ProjectMember.project_id == project_id,
        ProjectMember.profile_id == profile_id,
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


def _insert_for(db: AsyncSession):
    """INSERT do dialeto em uso; ambos suportam ON CONFLICT DO NOTHING ... RETURNING."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert
    return pg_insert


async def add_member(
    db: AsyncSession,
    *,
    project_id: int,
    profile_id: uuid.UUID,
    invite_id: int | None,
) -> ProjectMember:
    """
    Insere e confirma a participação.

    A unicidade (projeto, perfil) é decidida pelo índice único do banco, não por
    leitura prévia: o INSERT usa ON CONFLICT DO NOTHING sobre esse índice e
    nenhuma linha devolvida significa que a participação já existia. Nada é
    revertido, então as instâncias já carregadas na sessão continuam válidas.

    Raises:
        DuplicateMembershipError: se outra requisição criou a participação antes
    """
    stmt = (
        _insert_for(db)(ProjectMember)
        .values(project_id=project_id, profile_id=profile_id, invite_id=invite_id)
        .on_conflict_do_nothing(index_elements=[ProjectMember.project_id, ProjectMember.profile_id])
        .returning(ProjectMember)
    )
    result = await db.scalars(stmt)
    member = result.one_or_none()
    await db.commit()

    if member is None:
        logger.info(
            "Participação duplicada bloqueada pelo índice único (projeto=%s, perfil=%s)",
            project_id,
            profile_id,
        )
        raise DuplicateMembershipError(project_id, profile_id)
    return member


async def remove_member(db: AsyncSession, project_id: int, profile_id: uuid.UUID) -> int:
    """Remove a participação; remover linha inexistente não é erro. Retorna linhas afetadas."""
    stmt = delete(ProjectMember).where(
        ProjectMember.project_id == project_id,
        ProjectMember.profile_id == profile_id,
    )
    result = await db.execute(stmt)
    await db.commit()
    return result.rowcount or 0


async def list_members(db: AsyncSession, project_id: int) -> Sequence[tuple[ProjectMember, Profile]]:
    stmt = (
        select(ProjectMember, Profile)
        .join(Profile, ProjectMember.profile_id == Profile.id)
        .where(
            ProjectMember.project_id == project_id,
            Profile.banned_at.is_(None),
            Profile.hidden_at.is_(None),
        )
        .order_by(ProjectMember.joined_at, ProjectMember.id)
    )
    result = await db.execute(stmt)
    return [(member, profile) for member, profile in result.all()]


async def member_profile_ids(db: AsyncSession, project_id: int) -> set[uuid.UUID]:
    stmt = select(ProjectMember.profile_id).where(ProjectMember.project_id == project_id)
    result = await db.execute(stmt)
    return {row[0] for row in result.all()}
