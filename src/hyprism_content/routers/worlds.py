"""Endpoints for world listing, edits, deletion, backup and restore."""

import asyncio

from fastapi import APIRouter, Depends

from hyprism_content.routers.deps import get_store
from hyprism_content.schemas.catalog import WorldEntry, WorldUpdate
from hyprism_content.services import backup_service, world_service
from hyprism_content.store.catalog_store import CatalogStore

worlds_router = APIRouter(prefix="/worlds", tags=["worlds"])
backups_router = APIRouter(prefix="/backups", tags=["backups"])


@worlds_router.get("/", response_model=list[WorldEntry])
def list_worlds(store: CatalogStore = Depends(get_store)) -> list[WorldEntry]:
    """Rescan the worlds directory and return the live worlds."""
    return world_service.scan_worlds(store)


@worlds_router.get("/{world_id}", response_model=WorldEntry)
def get_world(world_id: str, store: CatalogStore = Depends(get_store)) -> WorldEntry:
    return world_service.get_world(store, world_id)


@worlds_router.patch("/{world_id}", response_model=WorldEntry)
def update_world(
    world_id: str,
    data: WorldUpdate,
    store: CatalogStore = Depends(get_store),
) -> WorldEntry:
    return world_service.update_world(
        store,
        world_id,
        display_name=data.display_name,
        game_mode=data.game_mode,
    )


@worlds_router.delete("/{world_id}", status_code=204)
def delete_world(world_id: str, store: CatalogStore = Depends(get_store)) -> None:
    world_service.delete_world(store, world_id)


@worlds_router.post("/{world_id}/backup", response_model=WorldEntry, status_code=201)
async def backup_world(world_id: str, store: CatalogStore = Depends(get_store)) -> WorldEntry:
    return await asyncio.to_thread(backup_service.backup_world, store, world_id)


@backups_router.get("/", response_model=list[WorldEntry])
def list_backups(store: CatalogStore = Depends(get_store)) -> list[WorldEntry]:
    return backup_service.list_backups(store)


@backups_router.post("/{backup_id}/restore", response_model=WorldEntry, status_code=201)
async def restore_backup(backup_id: str, store: CatalogStore = Depends(get_store)) -> WorldEntry:
    return await asyncio.to_thread(backup_service.restore_backup, store, backup_id)


@backups_router.delete("/{backup_id}", status_code=204)
def delete_backup(backup_id: str, store: CatalogStore = Depends(get_store)) -> None:
    backup_service.delete_backup(store, backup_id)
