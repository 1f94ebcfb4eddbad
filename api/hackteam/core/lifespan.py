import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text

from hackteam.core.config import settings
from hackteam.db.session import engine

logger = logging.getLogger("hackteam.lifespan")


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Banco indisponível em %s", engine.url.render_as_string(hide_password=True))
        raise
    logger.info("Banco conectado (%s)", engine.url.get_backend_name())

    if not settings.resend_api_key:
        logger.warning("Envio de emails desabilitado; convites continuam funcionando sem notificação")

    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Pool de conexões encerrado")
