"""Sessão assinada: o provedor de autenticação grava o profile_id, a API só lê e limpa."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Request

SESSION_PROFILE_KEY = "profile_id"
INVITE_TOKEN_BYTES = 32


def clear_session(request: Request) -> None:
    request.session.pop(SESSION_PROFILE_KEY, None)


def current_session_profile_id(request: Request) -> Optional[str]:
    return request.session.get(SESSION_PROFILE_KEY)


def generate_invite_token() -> str:
    """Token opaco e não adivinhável usado nos links de convite."""
    return secrets.token_urlsafe(INVITE_TOKEN_BYTES)
