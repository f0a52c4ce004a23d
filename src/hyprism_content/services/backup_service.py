"""World backups: snapshot a live world, restore a snapshot as a new world.

Backups live in their own directory next to the worlds root and are never
registered in the world catalog. Copies are all-or-nothing: a failed or
cancelled copy removes whatever it had written before the error surfaces.
"""

from __future__ import annotations

import logging
import re
import shutil
import threading
from pathlib import Path

from hyprism_content.errors import IOFailure, NotFoundError
from hyprism_content.schemas.catalog import WorldEntry
from hyprism_content.store.catalog_store import CatalogKind, CatalogStore
from hyprism_content.utils.fs import copy_tree, dir_size, remove_tree
from hyprism_content.utils.timestamps import (
    backup_stamp,
    compact_stamp,
    format_size,
    from_mtime,
    now_iso,
    parse_backup_stamp,
)

logger = logging.getLogger(__name__)

BACKUP_MARKER = "_backup_"

_UNSAFE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def _safe_dir_name(name: str) -> str:
    cleaned = _UNSAFE_NAME_CHARS.sub("_", name).strip(" .")
    return cleaned or "world"


def _resolve_backup_dir(store: CatalogStore, backup_id: str) -> Path:
    if not backup_id or Path(backup_id).name != backup_id or backup_id in {".", ".."}:
        raise NotFoundError("backup", backup_id)
    return store.paths.backups_dir / backup_id


def _live_world(store: CatalogStore, world_id: str) -> WorldEntry:
    world = store.load(CatalogKind.WORLDS).find(world_id)
    if world is None or world.is_backup or not Path(world.path).is_dir():
        raise NotFoundError("world", world_id)
    return world


def backup_world(
    store: CatalogStore,
    world_id: str,
    cancel_event: threading.Event | None = None,
) -> WorldEntry:
    """Copy a live world into the backups directory.

    The returned entry describes the snapshot; the world catalog is unchanged.

    Raises:
        NotFoundError: If the world is unknown or its directory is gone.
        IOFailure: If the copy fails.
        OperationCancelled: If *cancel_event* is set before the copy finishes.
    """
    world = _live_world(store, world_id)
    backups_dir = store.paths.backups_dir
    try:
        backups_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailure("Cannot create backups directory", backups_dir) from e

    base_name = f"{_safe_dir_name(world.display_name)}{BACKUP_MARKER}{backup_stamp()}"
    backup_path = copy_tree(Path(world.path), backups_dir, base_name, cancel_event)

    size = dir_size(backup_path)
    logger.info("Backed up world '%s' to %s (%s)", world_id, backup_path.name, format_size(size))
    return WorldEntry(
        id=backup_path.name,
        display_name=backup_path.name,
        path=str(backup_path),
        created_at=now_iso(),
        updated_at=world.updated_at,
        size_bytes=size,
        game_mode=world.game_mode,
        seed=world.seed,
        is_backup=True,
        backup_of=world_id,
    )


def restore_backup(
    store: CatalogStore,
    backup_id: str,
    cancel_event: threading.Event | None = None,
) -> WorldEntry:
    """Copy a backup into the worlds directory and register it as a new live world.

    Raises:
        NotFoundError: If the backup does not exist.
        IOFailure: If the copy or the catalog write fails; nothing is left behind.
        OperationCancelled: If *cancel_event* is set before the copy finishes.
    """
    backup_path = _resolve_backup_dir(store, backup_id)
    if not backup_path.is_dir():
        raise NotFoundError("backup", backup_id)

    worlds_dir = store.paths.worlds_dir
    try:
        worlds_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailure("Cannot create worlds directory", worlds_dir) from e

    with store.lock(CatalogKind.WORLDS):
        world_path = copy_tree(backup_path, worlds_dir, f"restored_{compact_stamp()}", cancel_event)

        now = now_iso()
        world = WorldEntry(
            id=world_path.name,
            display_name=f"Restored - {backup_id}",
            path=str(world_path),
            created_at=now,
            updated_at=now,
            size_bytes=dir_size(world_path),
        )
        try:
            with store.edit(CatalogKind.WORLDS) as catalog:
                catalog.upsert(world)
        except Exception:
            remove_tree(world_path)
            raise

    logger.info("Restored backup %s as world '%s'", backup_id, world.id)
    return world


def list_backups(store: CatalogStore) -> list[WorldEntry]:
    """List backup snapshots, newest first."""
    backups_dir = store.paths.backups_dir
    try:
        backups_dir.mkdir(parents=True, exist_ok=True)
        candidates = [p for p in backups_dir.iterdir() if p.is_dir()]
    except OSError as e:
        raise IOFailure("Cannot read backups directory", backups_dir) from e

    backups: list[WorldEntry] = []
    for path in candidates:
        try:
            mtime = from_mtime(path.stat().st_mtime)
        except OSError:
            continue
        source, marker, _ = path.name.rpartition(BACKUP_MARKER)
        created = parse_backup_stamp(path.name) or mtime
        backups.append(
            WorldEntry(
                id=path.name,
                display_name=path.name,
                path=str(path),
                created_at=created,
                updated_at=mtime,
                size_bytes=dir_size(path),
                is_backup=True,
                backup_of=source if marker else None,
            )
        )

    backups.sort(key=lambda b: b.id)
    backups.sort(key=lambda b: b.created_at, reverse=True)
    return backups


def delete_backup(store: CatalogStore, backup_id: str) -> None:
    """Remove a backup directory; a backup that is already gone is not an error."""
    backup_path = _resolve_backup_dir(store, backup_id)
    if not backup_path.exists():
        return
    try:
        shutil.rmtree(backup_path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise IOFailure("Failed to delete backup", backup_path) from e
    logger.info("Deleted backup %s", backup_id)
