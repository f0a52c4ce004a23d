"""Endpoints for installed mods: listing, toggling, removal, install and updates."""

import functools
import logging

from fastapi import APIRouter, Depends

from hyprism_content.config import settings
from hyprism_content.curseforge.client import CurseForgeClient
from hyprism_content.routers.deps import get_curseforge, get_store
from hyprism_content.schemas.catalog import ModEntry
from hyprism_content.schemas.install import InstallRequest, ToggleRequest
from hyprism_content.services import install_service, mod_service
from hyprism_content.services.download_service import Downloader
from hyprism_content.store.catalog_store import CatalogStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mods", tags=["mods"])


def _log_progress(pct: float, msg: str) -> None:
    logger.debug("%5.1f%% %s", pct, msg)


def _downloader() -> Downloader:
    return functools.partial(install_service.download_file, timeout=settings.download_timeout)


@router.get("/", response_model=list[ModEntry])
def list_mods(store: CatalogStore = Depends(get_store)) -> list[ModEntry]:
    """Reconcile the mods directory and return the installed mods."""
    return mod_service.reconcile_mods(store)


@router.get("/updates", response_model=list[ModEntry])
async def check_updates(
    store: CatalogStore = Depends(get_store),
    client: CurseForgeClient = Depends(get_curseforge),
) -> list[ModEntry]:
    return await install_service.check_updates(store, client)


@router.post("/install", response_model=ModEntry, status_code=201)
async def install_mod(
    data: InstallRequest,
    store: CatalogStore = Depends(get_store),
    client: CurseForgeClient = Depends(get_curseforge),
) -> ModEntry:
    item = await client.get_mod(data.remote_id)
    return await install_service.install_mod(
        store, item, on_progress=_log_progress, downloader=_downloader()
    )


@router.post("/{entry_id}/update", response_model=ModEntry)
async def update_mod(
    entry_id: str,
    store: CatalogStore = Depends(get_store),
    client: CurseForgeClient = Depends(get_curseforge),
) -> ModEntry:
    return await install_service.update_mod(
        store, client, entry_id, on_progress=_log_progress, downloader=_downloader()
    )


@router.put("/{entry_id}/enabled", response_model=ModEntry)
def toggle_mod(
    entry_id: str,
    data: ToggleRequest,
    store: CatalogStore = Depends(get_store),
) -> ModEntry:
    return mod_service.toggle_mod(store, entry_id, data.enabled)


@router.delete("/{entry_id}", status_code=204)
def delete_mod(entry_id: str, store: CatalogStore = Depends(get_store)) -> None:
    mod_service.delete_mod(store, entry_id)
