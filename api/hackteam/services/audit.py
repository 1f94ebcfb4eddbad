from __future__ import annotations

import logging
import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.core.observability import report_exception
from hackteam.models.moderation import AdminAuditLog

logger = logging.getLogger("hackteam.audit")


async def record_audit(
    db: AsyncSession,
    *,
    actor_profile_id: Optional[uuid.UUID],
    action: str,
    target_profile_id: Optional[uuid.UUID] = None,
    details: Optional[dict[str, Any]] = None,
) -> bool:
    """
    Grava uma entrada no log de auditoria em transação própria.

    Falhas são reportadas e engolidas: a operação auditada já foi concluída.

    Returns:
        True se a entrada foi gravada
    """
    entry = AdminAuditLog(
        actor_profile_id=actor_profile_id,
        action=action,
        target_profile_id=target_profile_id,
        details=details,
    )
    db.add(entry)
    try:
        await db.commit()
    except Exception as exc:
        await db.rollback()
        report_exception(exc, action=f"audit:{action}", actor=actor_profile_id, target=target_profile_id)
        return False

    logger.info("Auditoria registrada: %s (ator=%s, alvo=%s)", action, actor_profile_id, target_profile_id)
    return True
