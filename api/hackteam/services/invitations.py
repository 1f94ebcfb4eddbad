"""
Serviço de convites de equipe.

Criação de convites (diretos e por link), reivindicação, revogação, remoção de
membros e saída de projeto. Cada operação recebe a identidade do chamador
explicitamente e devolve um Result tipado.

Protocolo de reivindicação: a transição pending -> terminal é um único UPDATE
condicional com RETURNING. As leituras anteriores servem apenas para mensagens
amigáveis; quem decide o vencedor é a linha devolvida pelo banco. A transição é
confirmada isoladamente e só então a participação é inserida, com o índice
único (projeto, perfil) como rede de segurança.
"""

from __future__ import annotations

import functools
import inspect
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.core.config import settings
from hackteam.core.observability import report_exception
from hackteam.core.security import generate_invite_token
from hackteam.models.profile import Profile
from hackteam.models.project import Project
from hackteam.models.project_member import ProjectMember
from hackteam.models.team_invite import PENDING_DIRECT_INDEX, TeamInvite
from hackteam.services import email as email_service
from hackteam.services import invite_store, membership_store, results
from hackteam.services.identity import (
    CallerIdentity,
    get_profile_by_username,
    get_project,
    is_project_owner,
    resolve_caller_profile,
    resolve_owned_project,
)
from hackteam.services.membership_store import DuplicateMembershipError
from hackteam.services.rate_limit import is_rate_limited
from hackteam.services.results import Failure, FailureKind, Result, Success
from hackteam.utils.db_errors import is_unique_violation

logger = logging.getLogger("hackteam.invitations")


@dataclass(frozen=True)
class InviteLink:
    invite_id: int
    token: str
    url: str


@dataclass(frozen=True)
class InviteLinkPreview:
    """O que a página do link mostra antes de o convidado aceitar."""

    invite_id: int
    project_id: int
    project_name: str
    project_slug: Optional[str]
    owner_display_name: str
    owner_username: Optional[str]
    sender_display_name: str
    sender_username: Optional[str]
    is_owner: bool


def _guard_internal(action: str, message: str, *report_fields: str):
    """
    Converte qualquer exceção inesperada em Failure(INTERNAL).

    A sessão é revertida e a exceção vai para o sink de observabilidade junto
    com os identificadores listados em report_fields.
    """

    def decorator(func: Callable[..., Awaitable[Result]]):
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(db: AsyncSession, *args, **kwargs) -> Result:
            try:
                return await func(db, *args, **kwargs)
            except Exception as exc:
                try:
                    await db.rollback()
                except Exception:
                    logger.warning("Rollback falhou após erro em %s", action, exc_info=True)

                bound = signature.bind_partial(db, *args, **kwargs).arguments
                extra = {}
                for field in report_fields:
                    value = bound.get(field)
                    if isinstance(value, CallerIdentity):
                        value = value.profile_id
                    elif field == "token" and isinstance(value, str):
                        value = value[:8]
                    extra[field] = value
                report_exception(exc, action=action, **extra)
                return Failure(FailureKind.INTERNAL, message)

        return wrapper

    return decorator


def _rate_limited() -> Failure:
    return Failure(FailureKind.RATE_LIMITED, results.rate_limited_message(settings.max_pending_invites))


async def _notify_member_joined(db: AsyncSession, project: Project, member: Profile) -> None:
    owner = await db.get(Profile, project.owner_profile_id)
    if owner is None or not owner.email:
        return
    await email_service.dispatch_notification(
        "member_joined",
        email_service.send_member_joined_email(
            to_email=owner.email,
            member_name=member.display_name,
            project_name=project.name,
            project_slug=project.slug,
        ),
    )


# ============================================================================
# Criação
# ============================================================================


@_guard_internal("send_direct_invite", "Falha ao enviar convite", "project_id", "identity")
async def send_direct_invite(
    db: AsyncSession,
    project_id: int,
    identity: CallerIdentity,
    recipient_username: str,
) -> Result[TeamInvite]:
    """
    Envia um convite direto para um usuário pelo username.

    Args:
        db: Sessão do banco
        project_id: Projeto do convite
        identity: Chamador (precisa ser o dono do projeto)
        recipient_username: Username do convidado

    Returns:
        Success(convite) ou Failure com o motivo
    """
    owned = await resolve_owned_project(db, identity, project_id)
    if not owned.ok:
        return owned
    sender, project = owned.value

    username = (recipient_username or "").strip()
    if not username or len(username) > settings.username_max_length:
        return Failure(FailureKind.NOT_FOUND, results.USER_NOT_FOUND)

    recipient = await get_profile_by_username(db, username)
    # Banido ou oculto aparece como inexistente para não vazar estado de moderação
    if recipient is None or not recipient.is_visible:
        return Failure(FailureKind.NOT_FOUND, results.USER_NOT_FOUND)
    if recipient.id == sender.id:
        return Failure(FailureKind.INVALID_TARGET, results.CANNOT_INVITE_SELF)
    if not recipient.allow_invites:
        return Failure(FailureKind.INVALID_TARGET, results.USER_NOT_ACCEPTING_INVITES)

    if await membership_store.get_membership(db, project.id, recipient.id) is not None:
        return Failure(FailureKind.CONFLICT, results.USER_ALREADY_MEMBER)
    if await invite_store.get_pending_direct_invite(db, project.id, recipient.id) is not None:
        return Failure(FailureKind.CONFLICT, results.INVITE_ALREADY_SENT)

    if await is_rate_limited(db, sender.id):
        return _rate_limited()

    # rollback expira as instâncias da sessão; guarda os ids antes
    recipient_id = recipient.id
    try:
        invite = await invite_store.create_direct_invite(
            db,
            project_id=project_id,
            sender_id=sender.id,
            recipient_id=recipient_id,
        )
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc, PENDING_DIRECT_INDEX, "team_invite.project_id", "team_invite.recipient_id"):
            logger.info(
                "Convite pendente duplicado bloqueado pelo índice (projeto=%s, destinatário=%s)",
                project_id,
                recipient_id,
            )
            return Failure(FailureKind.CONFLICT, results.INVITE_ALREADY_SENT)
        raise

    await db.refresh(invite)
    logger.info("Convite direto %s enviado: projeto=%s destinatário=%s", invite.id, project.id, recipient.id)

    if recipient.email:
        await email_service.dispatch_notification(
            "team_invite",
            email_service.send_team_invite_email(
                to_email=recipient.email,
                inviter_name=sender.display_name,
                project_name=project.name,
            ),
        )

    return Success(invite)


@_guard_internal("generate_invite_link", "Falha ao gerar link de convite", "project_id", "identity")
async def generate_invite_link(
    db: AsyncSession,
    project_id: int,
    identity: CallerIdentity,
) -> Result[InviteLink]:
    """Cria um convite por link com token novo e devolve a URL compartilhável."""
    owned = await resolve_owned_project(db, identity, project_id)
    if not owned.ok:
        return owned
    sender, project = owned.value

    if await is_rate_limited(db, sender.id):
        return _rate_limited()

    token = generate_invite_token()
    invite = await invite_store.create_link_invite(
        db,
        project_id=project.id,
        sender_id=sender.id,
        token=token,
    )
    await db.commit()

    logger.info("Link de convite %s gerado para o projeto %s", invite.id, project.id)
    return Success(InviteLink(invite_id=invite.id, token=token, url=settings.invite_link_url(token)))


# ============================================================================
# Reivindicação
# ============================================================================


@_guard_internal("respond_to_invite", "Falha ao responder convite", "invite_id", "identity")
async def respond_to_invite(
    db: AsyncSession,
    invite_id: int,
    identity: CallerIdentity,
    accept: bool,
) -> Result[invite_store.ClaimedInvite]:
    """
    Aceita ou recusa um convite direto recebido.

    Chamadas repetidas ou concorrentes: só uma encontra o convite pendente, as
    demais recebem NOT_FOUND.
    """
    claimed = await invite_store.claim_direct_invite(db, invite_id, identity.profile_id, accept)
    if claimed is None:
        # Nada foi gravado; commit encerra a transação sem expirar as instâncias do chamador
        await db.commit()
        return Failure(FailureKind.NOT_FOUND, results.INVITE_NOT_FOUND)
    await db.commit()

    logger.info("Convite %s respondido: %s", claimed.id, claimed.status)

    if not accept:
        return Success(claimed)

    try:
        await membership_store.add_member(
            db,
            project_id=claimed.project_id,
            profile_id=identity.profile_id,
            invite_id=claimed.id,
        )
    except DuplicateMembershipError:
        # A transição já confirmada permanece: o convite foi de fato consumido
        return Failure(FailureKind.ALREADY_MEMBER, results.YOU_ARE_ALREADY_MEMBER)

    project = await get_project(db, claimed.project_id)
    member = await resolve_caller_profile(db, identity)
    if project is not None and member is not None:
        await _notify_member_joined(db, project, member)

    return Success(claimed)


@_guard_internal("accept_invite_link", "Falha ao aceitar convite", "token", "identity")
async def accept_invite_link(
    db: AsyncSession,
    token: str,
    identity: CallerIdentity,
) -> Result[Optional[str]]:
    """
    Reivindica um convite por link.

    Returns:
        Success(slug do projeto) ou Failure
    """
    claimant = await resolve_caller_profile(db, identity)
    if claimant is None:
        return Failure(FailureKind.PERMISSION_DENIED, results.PROFILE_REQUIRED)

    invite = await invite_store.get_pending_link_invite(db, token) if token else None
    if invite is None:
        return Failure(FailureKind.NOT_FOUND, results.INVITE_LINK_INVALID)

    project = await get_project(db, invite.project_id)
    if project is None:
        return Failure(FailureKind.NOT_FOUND, results.INVITE_LINK_INVALID)
    if is_project_owner(project, claimant.id):
        return Failure(FailureKind.INVALID_TARGET, results.ALREADY_PROJECT_OWNER)
    if await membership_store.get_membership(db, project.id, claimant.id) is not None:
        return Failure(FailureKind.ALREADY_MEMBER, results.YOU_ARE_ALREADY_MEMBER)

    claimed = await invite_store.claim_link_invite(db, invite.id, claimant.id)
    if claimed is None:
        await db.commit()
        return Failure(FailureKind.ALREADY_USED, results.INVITE_LINK_USED)
    await db.commit()

    try:
        await membership_store.add_member(
            db,
            project_id=claimed.project_id,
            profile_id=claimant.id,
            invite_id=claimed.id,
        )
    except DuplicateMembershipError:
        return Failure(FailureKind.ALREADY_MEMBER, results.YOU_ARE_ALREADY_MEMBER)

    logger.info("Link de convite %s aceito por %s", claimed.id, claimant.id)
    await _notify_member_joined(db, project, claimant)
    return Success(project.slug)


# ============================================================================
# Revogação e remoção
# ============================================================================


@_guard_internal("revoke_invite", "Falha ao revogar convite", "invite_id", "identity")
async def revoke_invite(
    db: AsyncSession,
    invite_id: int,
    identity: CallerIdentity,
) -> Result[invite_store.ClaimedInvite]:
    invite = await invite_store.get_invite(db, invite_id)
    if invite is None or invite.sender_id != identity.profile_id:
        return Failure(FailureKind.NOT_FOUND, results.INVITE_NOT_FOUND)
    if not invite.is_pending:
        return Failure(FailureKind.CONFLICT, results.ONLY_PENDING_CAN_BE_REVOKED)

    revoked = await invite_store.revoke_pending_invite(db, invite_id, identity.profile_id)
    if revoked is None:
        # Resolvido entre a leitura e a escrita
        await db.commit()
        return Failure(FailureKind.CONFLICT, results.ONLY_PENDING_CAN_BE_REVOKED)
    await db.commit()

    logger.info("Convite %s revogado", revoked.id)
    return Success(revoked)


@_guard_internal("remove_team_member", "Falha ao remover membro", "project_id", "member_id", "identity")
async def remove_team_member(
    db: AsyncSession,
    project_id: int,
    member_id: uuid.UUID,
    identity: CallerIdentity,
) -> Result[int]:
    owned = await resolve_owned_project(db, identity, project_id)
    if not owned.ok:
        return owned
    _, project = owned.value

    removed = await membership_store.remove_member(db, project.id, member_id)
    logger.info("Membro %s removido do projeto %s (%s linha(s))", member_id, project.id, removed)
    return Success(removed)


@_guard_internal("leave_project", "Falha ao sair do projeto", "project_id", "identity")
async def leave_project(
    db: AsyncSession,
    project_id: int,
    identity: CallerIdentity,
) -> Result[None]:
    project = await get_project(db, project_id)
    if project is None:
        return Failure(FailureKind.NOT_FOUND, results.PROJECT_NOT_FOUND)
    if is_project_owner(project, identity.profile_id):
        return Failure(FailureKind.PERMISSION_DENIED, results.OWNER_CANNOT_LEAVE)

    await membership_store.remove_member(db, project.id, identity.profile_id)
    logger.info("Perfil %s saiu do projeto %s", identity.profile_id, project.id)
    return Success(None)


# ============================================================================
# Leitura
# ============================================================================


@_guard_internal("list_received_invites", "Falha ao listar convites", "identity")
async def list_received_invites(
    db: AsyncSession,
    identity: CallerIdentity,
) -> Result[Sequence[TeamInvite]]:
    return Success(await invite_store.list_pending_for_recipient(db, identity.profile_id))


@_guard_internal("list_project_invites", "Falha ao listar convites", "project_id", "identity")
async def list_project_invites(
    db: AsyncSession,
    project_id: int,
    identity: CallerIdentity,
) -> Result[Sequence[TeamInvite]]:
    owned = await resolve_owned_project(db, identity, project_id)
    if not owned.ok:
        return owned
    return Success(await invite_store.list_pending_for_project(db, project_id))


@_guard_internal("list_project_members", "Falha ao listar membros", "project_id")
async def list_project_members(
    db: AsyncSession,
    project_id: int,
) -> Result[Sequence[tuple[ProjectMember, Profile]]]:
    project = await get_project(db, project_id)
    if project is None:
        return Failure(FailureKind.NOT_FOUND, results.PROJECT_NOT_FOUND)
    return Success(await membership_store.list_members(db, project_id))


@_guard_internal("get_invite_link_preview", "Falha ao carregar convite", "token", "identity")
async def get_invite_link_preview(
    db: AsyncSession,
    token: str,
    identity: CallerIdentity,
) -> Result[InviteLinkPreview]:
    """
    Resumo de um link de convite pendente para quem o abriu.

    Links usados, revogados ou inexistentes são indistinguíveis: todos viram
    NOT_FOUND com a mesma mensagem do aceite.
    """
    invite = await invite_store.get_link_invite_preview(db, token) if token else None
    if invite is None:
        return Failure(FailureKind.NOT_FOUND, results.INVITE_LINK_INVALID)

    project, owner, sender = invite.project, invite.project.owner, invite.sender
    return Success(
        InviteLinkPreview(
            invite_id=invite.id,
            project_id=project.id,
            project_name=project.name,
            project_slug=project.slug,
            owner_display_name=owner.display_name,
            owner_username=owner.username,
            sender_display_name=sender.display_name,
            sender_username=sender.username,
            is_owner=is_project_owner(project, identity.profile_id),
        )
    )
