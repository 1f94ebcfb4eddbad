"""Tradução de resultados tipados em respostas HTTP."""

from __future__ import annotations

from typing import TypeVar

from fastapi import HTTPException, status

from hackteam.services.results import Failure, FailureKind, Result

T = TypeVar("T")

FAILURE_STATUS_CODES: dict[FailureKind, int] = {
    FailureKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    FailureKind.ALREADY_MEMBER: status.HTTP_409_CONFLICT,
    FailureKind.ALREADY_USED: status.HTTP_409_CONFLICT,
    FailureKind.INVALID_TARGET: status.HTTP_400_BAD_REQUEST,
    FailureKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def unwrap(result: Result[T]) -> T:
    """
    Devolve o valor de um Success ou levanta HTTPException para um Failure.

    Raises:
        HTTPException: com o status correspondente ao tipo da falha e a
            mensagem da falha como detail
    """
    if isinstance(result, Failure):
        raise HTTPException(FAILURE_STATUS_CODES[result.kind], detail=result.message)
    return result.value
