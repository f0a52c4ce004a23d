"""World discovery, reconciliation against the manifest, and user edits.

A scan re-derives the world catalog from the worlds directory: the
filesystem decides which worlds exist and how large they are, while the
previous manifest only contributes fields the user can edit.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from hyprism_content.constants import RESERVED_WORLD_DIRS, WORLD_MARKER_FILES
from hyprism_content.errors import IOFailure, NotFoundError
from hyprism_content.schemas.catalog import WorldCatalog, WorldEntry
from hyprism_content.store.catalog_store import CatalogKind, CatalogStore
from hyprism_content.utils.fs import dir_size
from hyprism_content.utils.timestamps import from_mtime

logger = logging.getLogger(__name__)


def is_world_dir(path: Path) -> bool:
    return any((path / marker).is_file() for marker in WORLD_MARKER_FILES)


def _list_candidate_dirs(root: Path) -> list[Path]:
    try:
        root.mkdir(parents=True, exist_ok=True)
        return [p for p in root.iterdir() if p.name not in RESERVED_WORLD_DIRS]
    except OSError as e:
        raise IOFailure("Cannot read worlds directory", root) from e


def _build_entry(world_dir: Path, prior: WorldEntry | None) -> WorldEntry | None:
    try:
        if not world_dir.is_dir() or not is_world_dir(world_dir):
            return None
        mtime = from_mtime(world_dir.stat().st_mtime)
    except OSError:
        logger.debug("World directory vanished during scan: %s", world_dir)
        return None

    entry = WorldEntry(
        id=world_dir.name,
        display_name=world_dir.name,
        path=str(world_dir),
        created_at=mtime,
        updated_at=mtime,
        size_bytes=dir_size(world_dir),
    )
    if prior is not None:
        entry.display_name = prior.display_name
        entry.game_mode = prior.game_mode
        entry.seed = prior.seed
        entry.thumbnail_url = prior.thumbnail_url
        if prior.created_at:
            entry.created_at = prior.created_at
    return entry


def sort_worlds(worlds: list[WorldEntry]) -> list[WorldEntry]:
    """Most recently used first; ties broken by id ascending."""
    ordered = sorted(worlds, key=lambda w: w.id)
    ordered.sort(key=lambda w: w.updated_at, reverse=True)
    return ordered


def scan_worlds(store: CatalogStore) -> list[WorldEntry]:
    """Reconcile the world catalog with the worlds directory and persist it.

    Raises:
        IOFailure: If the worlds directory cannot be created or listed, or the
            merged catalog cannot be written.
    """
    root = store.paths.worlds_dir
    with store.lock(CatalogKind.WORLDS):
        candidates = _list_candidate_dirs(root)
        try:
            previous = store.load(CatalogKind.WORLDS)
        except IOFailure:
            logger.warning("Discarding unreadable world manifest in %s", root, exc_info=True)
            previous = WorldCatalog()

        prior_by_path = {w.path: w for w in previous.worlds}
        worlds: list[WorldEntry] = []
        for world_dir in candidates:
            entry = _build_entry(world_dir, prior_by_path.get(str(world_dir)))
            if entry is not None:
                worlds.append(entry)

        dropped = len(prior_by_path.keys() - {w.path for w in worlds})
        if dropped:
            logger.info("Dropped %d world(s) no longer on disk", dropped)

        catalog = WorldCatalog(worlds=sort_worlds(worlds))
        store.save(CatalogKind.WORLDS, catalog)
    return catalog.worlds


def get_world(store: CatalogStore, world_id: str) -> WorldEntry:
    """Return a reconciliation-fresh live world.

    Raises:
        NotFoundError: If no live world has *world_id*.
    """
    for world in scan_worlds(store):
        if world.id == world_id:
            return world
    raise NotFoundError("world", world_id)


def update_world(
    store: CatalogStore,
    world_id: str,
    *,
    display_name: str | None = None,
    game_mode: str | None = None,
) -> WorldEntry:
    """Apply user edits to a world's display name and/or game mode."""
    with store.edit(CatalogKind.WORLDS) as catalog:
        world = catalog.find(world_id)
        if world is None:
            raise NotFoundError("world", world_id)
        if display_name is not None:
            world.display_name = display_name
        if game_mode is not None:
            world.game_mode = game_mode
    logger.info("Updated world '%s'", world_id)
    return world


def rename_world(store: CatalogStore, world_id: str, new_name: str) -> WorldEntry:
    return update_world(store, world_id, display_name=new_name)


def set_game_mode(store: CatalogStore, world_id: str, game_mode: str) -> WorldEntry:
    return update_world(store, world_id, game_mode=game_mode)


def delete_world(store: CatalogStore, world_id: str) -> None:
    """Remove a world's directory and its catalog row together."""
    with store.edit(CatalogKind.WORLDS) as catalog:
        world = catalog.find(world_id)
        if world is None:
            raise NotFoundError("world", world_id)
        path = Path(world.path)
        if path.exists():
            try:
                shutil.rmtree(path)
            except OSError as e:
                raise IOFailure("Failed to delete world", path) from e
        catalog.remove(world_id)
    logger.info("Deleted world '%s'", world_id)
