"""Utilitário de linha de comando da API do Hackteam.

Subcomandos:
    check     confere dependências e configuração (banco, email, Sentry)
    migrate   aplica as migrações Alembic até a revisão pedida
    serve     migra e sobe o FastAPI via uvicorn (padrão quando nenhum é informado)

Exemplos:
    python run.py check
    python run.py migrate --revision 20261019_01
    python run.py serve --port 8080 --skip-migrations
"""

from __future__ import annotations

import argparse
import importlib
import logging
import pathlib
import sys
from typing import Sequence

from alembic import command
from alembic.config import Config

BASE_DIR = pathlib.Path(__file__).resolve().parent

# nome de import -> nome no índice de pacotes
REQUIRED_MODULES: dict[str, str] = {
    "fastapi": "fastapi",
    "uvicorn": "uvicorn",
    "sqlalchemy": "sqlalchemy",
    "asyncpg": "asyncpg",
    "alembic": "alembic",
    "pydantic_settings": "pydantic-settings",
    "itsdangerous": "itsdangerous",
    "resend": "resend",
    "sentry_sdk": "sentry-sdk",
}

logger = logging.getLogger("hackteam.run")
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Checagens, migrações e servidor da API do Hackteam.")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Nível de log (padrão: INFO).",
    )
    subcommands = parser.add_subparsers(dest="command")

    subcommands.add_parser("check", help="Confere dependências e configuração e encerra.")

    migrate = subcommands.add_parser("migrate", help="Aplica as migrações Alembic.")
    migrate.add_argument("--revision", default="head", help="Revisão alvo (padrão: head).")

    serve = subcommands.add_parser("serve", help="Aplica as migrações e sobe o uvicorn.")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--no-reload", action="store_true", help="Desativa o recarregamento automático.")
    serve.add_argument("--skip-migrations", action="store_true")
    return parser


def verify_dependencies() -> None:
    missing = []
    for module_name, distribution in REQUIRED_MODULES.items():
        try:
            importlib.import_module(module_name)
        except ModuleNotFoundError:
            missing.append(distribution)

    if missing:
        raise RuntimeError(
            "Dependências ausentes: "
            + ", ".join(sorted(missing))
            + ". Execute `pip install -e .` no seu venv antes de continuar."
        )
    logger.info("Dependências OK (%d pacotes).", len(REQUIRED_MODULES))


def _load_settings():
    try:
        from hackteam.core.config import settings  # import tardio para validar a configuração em runtime
    except Exception as exc:
        raise RuntimeError(
            "Falha ao carregar configurações. Verifique HACKTEAM_SESSION_SECRET "
            "(mínimo 16 caracteres) e HACKTEAM_DATABASE_URL."
        ) from exc
    return settings


def report_configuration() -> None:
    """Resume o que está ligado; envio de email e Sentry são opcionais."""
    settings = _load_settings()
    logger.info("Ambiente: %s (debug=%s)", settings.environment, settings.debug)
    logger.info("Limite de convites pendentes por remetente: %d", settings.max_pending_invites)
    logger.info("Links de convite apontam para %s", settings.invite_link_url("<token>"))
    if not settings.resend_api_key:
        logger.warning("HACKTEAM_RESEND_API_KEY vazio: emails de convite não serão enviados.")
    if not settings.sentry_dsn:
        logger.warning("HACKTEAM_SENTRY_DSN vazio: erros inesperados só vão para o log.")


def run_migrations(revision: str = "head") -> None:
    alembic_ini = BASE_DIR / "alembic.ini"
    if not alembic_ini.exists():
        raise FileNotFoundError(f"Arquivo Alembic não encontrado: {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(BASE_DIR / "alembic"))
    config.set_main_option("sqlalchemy.url", str(_load_settings().database_url))

    logger.info("Aplicando migrações até %s...", revision)
    command.upgrade(config, revision)
    logger.info("Migrações aplicadas.")


def start_server(*, host: str, port: int, reload: bool, log_level: str) -> None:
    import uvicorn

    logger.info("Subindo uvicorn em http://%s:%s", host, port)
    reload_options: dict[str, object] = {}
    if reload:
        reload_options = {"reload": True, "reload_dirs": [str(BASE_DIR / "hackteam")]}

    uvicorn.run(
        "main:app",
        app_dir=str(BASE_DIR),
        host=host,
        port=port,
        log_level=log_level.lower(),
        **reload_options,
    )


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    if args.command is None:
        args = parser.parse_args([*(argv or sys.argv[1:]), "serve"])

    if args.command == "check":
        verify_dependencies()
        report_configuration()
    elif args.command == "migrate":
        run_migrations(args.revision)
    else:
        verify_dependencies()
        if not args.skip_migrations:
            run_migrations()
        start_server(host=args.host, port=args.port, reload=not args.no_reload, log_level=args.log_level)


if __name__ == "__main__":
    try:
        main()
    except RuntimeError as exc:
        logger.error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Execução interrompida.")
        sys.exit(130)
