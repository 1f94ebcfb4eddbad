"""
Persistência de convites e as transições atômicas da máquina de estados.

As funções claim_* e revoke_* executam um único UPDATE condicionado a
status = 'pending'. A linha devolvida pelo RETURNING é o único sinal de sucesso:
leituras anteriores podem estar desatualizadas quando a escrita acontece.
"""

from __future__ import annotations

import uuid
from typing import NamedTuple, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hackteam.models.project import Project
from hackteam.models.team_invite import (
    INVITE_TYPE_DIRECT,
    INVITE_TYPE_LINK,
    STATUS_ACCEPTED,
    STATUS_DECLINED,
    STATUS_PENDING,
    STATUS_REVOKED,
    TeamInvite,
)


class ClaimedInvite(NamedTuple):
    id: int
    project_id: int
    status: str


async def get_invite(db: AsyncSession, invite_id: int) -> Optional[TeamInvite]:
    return await db.get(TeamInvite, invite_id)


async def get_pending_link_invite(db: AsyncSession, token: str) -> Optional[TeamInvite]:
    stmt = select(TeamInvite).where(
        TeamInvite.token == token,
        TeamInvite.invite_type == INVITE_TYPE_LINK,
        TeamInvite.status == STATUS_PENDING,
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_link_invite_preview(db: AsyncSession, token: str) -> Optional[TeamInvite]:
    """Convite por link pendente com projeto, dono do projeto e remetente já carregados."""
    stmt = (
        select(TeamInvite)
        .options(
            selectinload(TeamInvite.project).selectinload(Project.owner),
            selectinload(TeamInvite.sender),
        )
        .where(
            TeamInvite.token == token,
            TeamInvite.invite_type == INVITE_TYPE_LINK,
            TeamInvite.status == STATUS_PENDING,
        )
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_pending_direct_invite(
    db: AsyncSession,
    project_id: int,
    recipient_id: uuid.UUID,
) -> Optional[TeamInvite]:
    stmt = select(TeamInvite).where(
        TeamInvite.project_id == project_id,
        TeamInvite.recipient_id == recipient_id,
        TeamInvite.invite_type == INVITE_TYPE_DIRECT,
        TeamInvite.status == STATUS_PENDING,
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_direct_invite(
    db: AsyncSession,
    *,
    project_id: int,
    sender_id: uuid.UUID,
    recipient_id: uuid.UUID,
) -> TeamInvite:
    invite = TeamInvite(
        project_id=project_id,
        sender_id=sender_id,
        recipient_id=recipient_id,
        invite_type=INVITE_TYPE_DIRECT,
        status=STATUS_PENDING,
    )
    db.add(invite)
    await db.flush()
    return invite


async def create_link_invite(
    db: AsyncSession,
    *,
    project_id: int,
    sender_id: uuid.UUID,
    token: str,
) -> TeamInvite:
    invite = TeamInvite(
        project_id=project_id,
        sender_id=sender_id,
        invite_type=INVITE_TYPE_LINK,
        status=STATUS_PENDING,
        token=token,
    )
    db.add(invite)
    await db.flush()
    return invite


async def claim_direct_invite(
    db: AsyncSession,
    invite_id: int,
    recipient_id: uuid.UUID,
    accept: bool,
) -> Optional[ClaimedInvite]:
    """
    Aceita ou recusa um convite direto em um único UPDATE condicional.

    Devolve None quando nenhuma linha casou: id errado, destinatário errado ou
    convite já resolvido (inclusive por uma chamada concorrente).
    """
    new_status = STATUS_ACCEPTED if accept else STATUS_DECLINED
    stmt = (
        update(TeamInvite)
        .where(
            TeamInvite.id == invite_id,
            TeamInvite.recipient_id == recipient_id,
            TeamInvite.invite_type == INVITE_TYPE_DIRECT,
            TeamInvite.status == STATUS_PENDING,
        )
        .values(status=new_status, responded_at=func.now())
        .returning(TeamInvite.id, TeamInvite.project_id, TeamInvite.status)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    row = result.one_or_none()
    return ClaimedInvite(*row) if row is not None else None


async def claim_link_invite(
    db: AsyncSession,
    invite_id: int,
    claimant_id: uuid.UUID,
) -> Optional[ClaimedInvite]:
    """
    Aceita um convite por link e vincula o destinatário no mesmo comando.

    Com dois reivindicantes concorrentes só o primeiro a gravar ainda casa
    status = 'pending'; o segundo recebe None.
    """
    stmt = (
        update(TeamInvite)
        .where(
            TeamInvite.id == invite_id,
            TeamInvite.invite_type == INVITE_TYPE_LINK,
            TeamInvite.status == STATUS_PENDING,
        )
        .values(status=STATUS_ACCEPTED, recipient_id=claimant_id, responded_at=func.now())
        .returning(TeamInvite.id, TeamInvite.project_id, TeamInvite.status)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    row = result.one_or_none()
    return ClaimedInvite(*row) if row is not None else None


async def revoke_pending_invite(
    db: AsyncSession,
    invite_id: int,
    sender_id: uuid.UUID,
) -> Optional[ClaimedInvite]:
    stmt = (
        update(TeamInvite)
        .where(
            TeamInvite.id == invite_id,
            TeamInvite.sender_id == sender_id,
            TeamInvite.status == STATUS_PENDING,
        )
        .values(status=STATUS_REVOKED, responded_at=func.now())
        .returning(TeamInvite.id, TeamInvite.project_id, TeamInvite.status)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    row = result.one_or_none()
    return ClaimedInvite(*row) if row is not None else None


async def list_pending_for_recipient(db: AsyncSession, recipient_id: uuid.UUID) -> Sequence[TeamInvite]:
    stmt = (
        select(TeamInvite)
        .options(selectinload(TeamInvite.project), selectinload(TeamInvite.sender))
        .where(
            TeamInvite.recipient_id == recipient_id,
            TeamInvite.invite_type == INVITE_TYPE_DIRECT,
            TeamInvite.status == STATUS_PENDING,
        )
        .order_by(TeamInvite.created_at.desc(), TeamInvite.id.desc())
    )
    result = await db.execute(stmt)
    return result.scalars().all()


async def list_pending_for_project(db: AsyncSession, project_id: int) -> Sequence[TeamInvite]:
    stmt = (
        select(TeamInvite)
        .options(selectinload(TeamInvite.recipient))
        .where(
            TeamInvite.project_id == project_id,
            TeamInvite.status == STATUS_PENDING,
        )
        .order_by(TeamInvite.created_at.desc(), TeamInvite.id.desc())
    )
    result = await db.execute(stmt)
    return result.scalars().all()
