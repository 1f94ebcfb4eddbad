from __future__ import annotations

import uuid
from typing import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hackteam.core.security import current_session_profile_id
from hackteam.db.session import SessionLocal
from hackteam.models.profile import Profile
from hackteam.services.identity import CallerIdentity, resolve_caller_profile


async def get_db() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


async def get_caller_identity(request: Request) -> CallerIdentity:
    """Resolve o chamador uma única vez a partir da sessão assinada."""
    raw_profile_id = current_session_profile_id(request)
    if not raw_profile_id:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Sessão inválida")
    try:
        profile_id = uuid.UUID(str(raw_profile_id))
    except ValueError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Sessão inválida")
    return CallerIdentity(profile_id=profile_id)


async def get_caller_profile(
    identity: CallerIdentity = Depends(get_caller_identity),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    profile = await resolve_caller_profile(db, identity)
    if not profile:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Perfil não encontrado")
    return profile
