"""
Coordenador de cascatas de exclusão.

Exclusão de projeto e de conta removem ou anulam toda referência dependente em
uma única transação, na ordem exigida pelas chaves estrangeiras. Qualquer erro
no meio desfaz tudo; não existe estado parcial observável.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.core.observability import report_exception
from hackteam.db.session import atomic
from hackteam.models.event import EventProject, EventRegistration
from hackteam.models.moderation import AdminAuditLog, MentorApplication, SponsorshipInquiry
from hackteam.models.profile import Profile
from hackteam.models.project import Project
from hackteam.models.project_member import ProjectMember
from hackteam.models.team_invite import TeamInvite
from hackteam.services import results
from hackteam.services.audit import record_audit
from hackteam.services.identity import CallerIdentity, get_project, is_project_owner, resolve_caller_profile
from hackteam.services.results import Failure, FailureKind, Result, Success

logger = logging.getLogger("hackteam.cascade")

AUDIT_ACTION_DELETE_ACCOUNT = "delete_account"


@dataclass
class ProfileCascadeSummary:
    profile_id: uuid.UUID
    deleted_project_ids: list[int] = field(default_factory=list)
    memberships_removed: int = 0
    invites_removed: int = 0


async def _delete_projects(db: AsyncSession, project_ids: list[int]) -> tuple[int, int]:
    """Apaga participações, convites, vínculos com eventos e os projetos. Não faz commit."""
    await db.execute(
        update(ProjectMember)
        .where(ProjectMember.project_id.in_(project_ids))
        .values(invite_id=None)
    )
    members = await db.execute(delete(ProjectMember).where(ProjectMember.project_id.in_(project_ids)))
    invites = await db.execute(delete(TeamInvite).where(TeamInvite.project_id.in_(project_ids)))
    await db.execute(delete(EventProject).where(EventProject.project_id.in_(project_ids)))
    await db.execute(delete(Project).where(Project.id.in_(project_ids)))
    return members.rowcount or 0, invites.rowcount or 0


async def cascade_delete_project(db: AsyncSession, project_id: int) -> None:
    """Exclui o projeto e tudo que depende dele em uma transação."""
    async with atomic(db):
        await _delete_projects(db, [project_id])
    logger.info("Projeto %s excluído em cascata", project_id)


async def cascade_delete_profile(db: AsyncSession, profile_id: uuid.UUID) -> ProfileCascadeSummary:
    """
    Exclui um perfil e todos os dados relacionados em uma transação.

    Ordem:
        1. projetos do perfil (participações, convites, vínculos com eventos)
        2. participações do perfil em projetos de terceiros
        3. convites enviados ou recebidos pelo perfil
        4. inscrições em eventos
        5. referências em registros de moderação e auditoria são anuladas
        6. o próprio perfil

    Não grava auditoria; quem chama é responsável por isso.
    """
    summary = ProfileCascadeSummary(profile_id=profile_id)

    async with atomic(db):
        owned = await db.execute(select(Project.id).where(Project.owner_profile_id == profile_id))
        summary.deleted_project_ids = list(owned.scalars().all())
        if summary.deleted_project_ids:
            members, invites = await _delete_projects(db, summary.deleted_project_ids)
            summary.memberships_removed += members
            summary.invites_removed += invites

        memberships = await db.execute(delete(ProjectMember).where(ProjectMember.profile_id == profile_id))
        summary.memberships_removed += memberships.rowcount or 0

        involves_profile = or_(TeamInvite.sender_id == profile_id, TeamInvite.recipient_id == profile_id)
        invite_ids = select(TeamInvite.id).where(involves_profile)
        await db.execute(
            update(ProjectMember)
            .where(ProjectMember.invite_id.in_(invite_ids))
            .values(invite_id=None)
            .execution_options(synchronize_session=False)
        )
        invites = await db.execute(delete(TeamInvite).where(involves_profile))
        summary.invites_removed += invites.rowcount or 0

        await db.execute(delete(EventRegistration).where(EventRegistration.profile_id == profile_id))

        await db.execute(
            update(MentorApplication).where(MentorApplication.reviewed_by == profile_id).values(reviewed_by=None)
        )
        await db.execute(
            update(SponsorshipInquiry).where(SponsorshipInquiry.reviewed_by == profile_id).values(reviewed_by=None)
        )
        await db.execute(
            update(AdminAuditLog)
            .where(AdminAuditLog.target_profile_id == profile_id)
            .values(target_profile_id=None)
        )
        await db.execute(
            update(AdminAuditLog)
            .where(AdminAuditLog.actor_profile_id == profile_id)
            .values(actor_profile_id=None)
        )
        await db.execute(update(Profile).where(Profile.banned_by == profile_id).values(banned_by=None))
        await db.execute(update(Profile).where(Profile.hidden_by == profile_id).values(hidden_by=None))

        await db.execute(delete(Profile).where(Profile.id == profile_id))

    logger.info(
        "Perfil %s excluído em cascata: %s projeto(s), %s participação(ões), %s convite(s)",
        profile_id,
        len(summary.deleted_project_ids),
        summary.memberships_removed,
        summary.invites_removed,
    )
    return summary


async def delete_project(
    db: AsyncSession,
    project_id: int,
    identity: CallerIdentity,
) -> Result[None]:
    """Exclui um projeto do chamador com todas as dependências."""
    try:
        project = await get_project(db, project_id)
        if project is None:
            return Failure(FailureKind.NOT_FOUND, results.PROJECT_NOT_FOUND)
        if not is_project_owner(project, identity.profile_id):
            return Failure(FailureKind.PERMISSION_DENIED, results.NOT_PROJECT_OWNER)

        await cascade_delete_project(db, project_id)
        return Success(None)
    except Exception as exc:
        await db.rollback()
        report_exception(exc, action="delete_project", project_id=project_id, profile_id=identity.profile_id)
        return Failure(FailureKind.INTERNAL, "Falha ao excluir projeto")


async def delete_account(
    db: AsyncSession,
    identity: CallerIdentity,
    target_profile_id: uuid.UUID | None = None,
) -> Result[ProfileCascadeSummary]:
    """
    Exclui uma conta e todos os dados relacionados.

    O próprio dono pode excluir a conta; administradores podem excluir qualquer
    conta. Depois da cascata grava uma entrada de auditoria; falha na auditoria
    é reportada mas não altera o resultado.

    Args:
        db: Sessão do banco
        identity: Chamador
        target_profile_id: Conta a excluir (padrão: a do chamador)
    """
    target_id = target_profile_id or identity.profile_id
    try:
        caller = await resolve_caller_profile(db, identity)
        if caller is None:
            return Failure(FailureKind.PERMISSION_DENIED, results.PROFILE_REQUIRED)
        self_service = target_id == caller.id
        if not self_service and not caller.is_admin:
            return Failure(FailureKind.PERMISSION_DENIED, results.CANNOT_DELETE_ACCOUNT)

        target = await db.get(Profile, target_id)
        if target is None:
            return Failure(FailureKind.NOT_FOUND, results.ACCOUNT_NOT_FOUND)
        username = target.username

        summary = await cascade_delete_profile(db, target_id)
    except Exception as exc:
        await db.rollback()
        report_exception(exc, action="delete_account", target_profile_id=target_id, profile_id=identity.profile_id)
        return Failure(FailureKind.INTERNAL, "Falha ao excluir conta")

    # Fora da transação: a conta já foi excluída e as referências ao perfil
    # apagado só podem ir nos metadados
    await record_audit(
        db,
        actor_profile_id=None if self_service else identity.profile_id,
        action=AUDIT_ACTION_DELETE_ACCOUNT,
        details={
            "deleted_profile_id": str(target_id),
            "username": username,
            "self_service": self_service,
            "deleted_projects": len(summary.deleted_project_ids),
        },
    )
    return Success(summary)
