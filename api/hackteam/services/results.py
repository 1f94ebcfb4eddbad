"""
Resultados tipados das operações de equipe.

Toda operação pública devolve Success com o valor ou Failure com um tipo do
vocabulário fixo e uma mensagem pronta para exibir. Nenhum erro cru do banco
atravessa essa fronteira.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMITED = "rate_limited"
    ALREADY_MEMBER = "already_member"
    ALREADY_USED = "already_used"
    INVALID_TARGET = "invalid_target"
    INTERNAL = "internal"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T = None  # type: ignore[assignment]

    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str

    ok: ClassVar[bool] = False


Result = Union[Success[T], Failure]


# Mensagens exibidas diretamente pela camada de páginas
PROFILE_REQUIRED = "Perfil não encontrado. Faça login novamente."
PROJECT_NOT_FOUND = "Projeto não encontrado"
NOT_PROJECT_OWNER = "Você não é o dono deste projeto"
USER_NOT_FOUND = "Usuário não encontrado"
USER_NOT_ACCEPTING_INVITES = "Este usuário não está aceitando convites"
CANNOT_INVITE_SELF = "Você não pode convidar a si mesmo"
USER_ALREADY_MEMBER = "Usuário já é membro da equipe"
INVITE_ALREADY_SENT = "Convite já enviado para este usuário"
INVITE_NOT_FOUND = "Convite não encontrado"
INVITE_LINK_INVALID = "Este link de convite é inválido ou expirou"
INVITE_LINK_USED = "Este convite já foi utilizado"
ALREADY_PROJECT_OWNER = "Você é o dono deste projeto"
YOU_ARE_ALREADY_MEMBER = "Você já é membro da equipe"
ONLY_PENDING_CAN_BE_REVOKED = "Apenas convites pendentes podem ser revogados"
OWNER_CANNOT_LEAVE = "Donos não podem sair do próprio projeto"
CANNOT_DELETE_ACCOUNT = "Você não tem permissão para excluir esta conta"
ACCOUNT_NOT_FOUND = "Conta não encontrada"


def rate_limited_message(limit: int) -> str:
    return f"Você pode ter no máximo {limit} convites pendentes"
