from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from hackteam.api.router import api_router
from hackteam.core.config import Settings, settings
from hackteam.core.lifespan import lifespan
from hackteam.core.observability import init_sentry


def create_app(config: Settings = settings) -> FastAPI:
    # Sentry precisa estar ativo antes da primeira requisição
    init_sentry(config)

    application = FastAPI(
        title=config.app_name,
        debug=config.debug,
        docs_url=config.docs_url,
        openapi_url=config.openapi_url,
        lifespan=lifespan,
    )

    # Identidade do chamador vive no cookie de sessão assinado
    application.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        session_cookie=config.session_cookie_name,
        max_age=config.session_max_age_seconds,
        same_site="lax",
        https_only=not config.debug,
    )
    if config.enable_cors:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    application.include_router(api_router, prefix="/api")

    @application.get("/")
    async def root() -> dict[str, str]:
        return {"message": config.app_name}

    return application


app = create_app()
