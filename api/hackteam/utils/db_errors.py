from __future__ import annotations

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError, constraint_name: str, *columns: str) -> bool:
    """
    Verifica se o IntegrityError veio de uma violação de unicidade específica.

    No PostgreSQL (asyncpg) compara SQLSTATE e nome da constraint. O SQLite não
    informa o nome do índice, então compara as colunas citadas na mensagem
    ("UNIQUE constraint failed: tabela.coluna, ...").
    """
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate is not None:
        if sqlstate != UNIQUE_VIOLATION_SQLSTATE:
            return False
        cause = orig.__cause__ or orig
        return getattr(cause, "constraint_name", None) == constraint_name

    message = str(orig)
    if "UNIQUE constraint failed" not in message:
        return False
    return all(column in message for column in columns)
