from fastapi import APIRouter

from hackteam.api.routers import invites, profiles, projects

api_router = APIRouter()


@api_router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


api_router.include_router(projects.router)
api_router.include_router(invites.router)
api_router.include_router(profiles.router)
