"""
Limite de convites pendentes por remetente.

É uma checagem antes da inserção, não uma reserva atômica: sob concorrência um
remetente pode passar do teto por uma pequena margem. Resolver um convite
(aceitar, recusar, revogar) libera espaço automaticamente.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.core.config import settings
from hackteam.models.team_invite import STATUS_PENDING, TeamInvite


async def count_pending_invites_sent(db: AsyncSession, sender_id: uuid.UUID) -> int:
    stmt = select(func.count(TeamInvite.id)).where(
        TeamInvite.sender_id == sender_id,
        TeamInvite.status == STATUS_PENDING,
    )
    result = await db.execute(stmt)
    return int(result.scalar_one())


async def is_rate_limited(db: AsyncSession, sender_id: uuid.UUID, limit: int | None = None) -> bool:
    ceiling = settings.max_pending_invites if limit is None else limit
    return await count_pending_invites_sent(db, sender_id) >= ceiling
