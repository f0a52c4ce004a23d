from fastapi import APIRouter

from hyprism_content.routers.curseforge import router as curseforge_router
from hyprism_content.routers.mods import router as mods_router
from hyprism_content.routers.worlds import backups_router, worlds_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(worlds_router)
api_router.include_router(backups_router)
api_router.include_router(mods_router)
api_router.include_router(curseforge_router)
