from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from hackteam.core.config import settings


def _create_engine() -> AsyncEngine:
    return create_async_engine(str(settings.database_url), echo=settings.debug)


def _create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


engine: AsyncEngine = _create_engine()
SessionLocal = _create_session_factory(engine)


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Escopo transacional explícito: commit ao sair normalmente, rollback em qualquer erro.

    Usado pelas operações de múltiplos comandos (cascatas), que não podem
    deixar resultado parcial observável.
    """
    try:
        yield db
        await db.commit()
    except BaseException:
        await db.rollback()
        raise
