"""
Integração com Sentry para rastreamento de erros inesperados.

O engine de convites nunca expõe erros crus do banco aos chamadores: falhas
esperadas viram resultados tipados e apenas o inesperado chega aqui.
"""

from __future__ import annotations

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration, ignore_logger
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from hackteam.core.config import Settings

logger = logging.getLogger("hackteam.observability")


def init_sentry(settings: Settings) -> bool:
    """
    Inicializa o Sentry se houver DSN configurado.

    Returns:
        True se o Sentry foi habilitado
    """
    if not settings.sentry_dsn:
        logger.info("Sentry desabilitado (HACKTEAM_SENTRY_DSN não configurado)")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
        attach_stacktrace=True,
    )
    # report_exception já captura explicitamente; evita evento duplicado via logging
    ignore_logger(logger.name)
    logger.info("Sentry inicializado", extra={"environment": settings.environment})
    return True


def report_exception(exc: BaseException, *, action: str, **extra: Any) -> None:
    """
    Envia uma falha inesperada para o sink de observabilidade.

    Nunca levanta exceção: reportar um erro não pode derrubar a resposta.
    """
    logger.error("Falha inesperada em %s", action, exc_info=exc, extra={"action": action})
    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("component", "team-service")
            scope.set_tag("action", action)
            for key, value in extra.items():
                scope.set_extra(key, str(value) if value is not None else None)
            sentry_sdk.capture_exception(exc)
    except Exception:  # pragma: no cover - o sink não pode falhar a requisição
        logger.warning("Não foi possível enviar exceção ao Sentry", exc_info=True)
