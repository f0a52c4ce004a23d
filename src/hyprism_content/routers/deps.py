"""Shared FastAPI dependencies used across routers."""

from collections.abc import AsyncIterator

from hyprism_content.config import settings
from hyprism_content.curseforge.client import CurseForgeClient
from hyprism_content.store.catalog_store import CatalogStore


def get_store() -> CatalogStore:
    return CatalogStore(settings.content_paths())


async def get_curseforge() -> AsyncIterator[CurseForgeClient]:
    async with CurseForgeClient(
        settings.curseforge_api_key,
        base_url=settings.curseforge_base_url,
        game_id=settings.curseforge_game_id,
        timeout=settings.request_timeout,
    ) as client:
        yield client
