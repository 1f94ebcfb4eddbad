"""Busca de perfis convidáveis para a equipe de um projeto."""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.core.config import settings
from hackteam.core.observability import report_exception
from hackteam.models.profile import Profile
from hackteam.services.identity import CallerIdentity, resolve_owned_project
from hackteam.services.membership_store import member_profile_ids
from hackteam.services.results import Failure, FailureKind, Result, Success

logger = logging.getLogger("hackteam.candidate_search")

LIKE_ESCAPE_CHAR = "\\"


def escape_like(value: str) -> str:
    """Escapa curingas do LIKE (%, _ e a própria barra) para busca literal."""
    return (
        value.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace("%", LIKE_ESCAPE_CHAR + "%")
        .replace("_", LIKE_ESCAPE_CHAR + "_")
    )


async def search_invite_candidates(
    db: AsyncSession,
    project_id: int,
    identity: CallerIdentity,
    query: str,
) -> Result[Sequence[Profile]]:
    """
    Busca perfis por username ou nome de exibição.

    Consultas curtas ou longas demais devolvem lista vazia. Ficam de fora o
    próprio chamador, membros atuais, perfis sem username, perfis que não
    aceitam convites e perfis banidos ou ocultos. Sem garantia de ordem.

    Args:
        db: Sessão do banco
        project_id: Projeto para o qual se busca candidatos
        identity: Chamador (precisa ser o dono do projeto)
        query: Texto digitado

    Returns:
        Success(lista de até search_result_limit perfis) ou Failure
    """
    try:
        owned = await resolve_owned_project(db, identity, project_id)
        if not owned.ok:
            return owned

        trimmed = (query or "").strip()
        if len(trimmed) < settings.search_min_query_length:
            return Success([])
        if len(trimmed) > settings.search_max_query_length:
            return Success([])

        excluded = await member_profile_ids(db, project_id)
        excluded.add(identity.profile_id)

        pattern = f"%{escape_like(trimmed)}%"
        stmt = (
            select(Profile)
            .where(
                or_(
                    Profile.username.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                    Profile.display_name.ilike(pattern, escape=LIKE_ESCAPE_CHAR),
                ),
                Profile.username.is_not(None),
                Profile.allow_invites.is_(True),
                Profile.banned_at.is_(None),
                Profile.hidden_at.is_(None),
                Profile.id.not_in(excluded),
            )
            .limit(settings.search_result_limit)
        )
        result = await db.execute(stmt)
        return Success(result.scalars().all())
    except Exception as exc:
        await db.rollback()
        report_exception(exc, action="search_invite_candidates", project_id=project_id)
        return Failure(FailureKind.INTERNAL, "Falha na busca")
