"""Installed mod bookkeeping: reconciliation, enable/disable toggle, removal.

A mod is disabled by renaming its file with a ``.disabled`` suffix. The
suffix on disk is authoritative: if a toggle's rename landed but the manifest
write did not, :func:`reconcile_mods` reads the suffix back into the
``enabled`` flag.
"""

from __future__ import annotations

import logging
from pathlib import Path

from hyprism_content.constants import (
    DISABLED_SUFFIX,
    MANIFEST_FILENAME,
    MOD_FILE_EXTENSIONS,
    PARTIAL_SUFFIX,
)
from hyprism_content.errors import IOFailure, NotFoundError
from hyprism_content.schemas.catalog import ModEntry
from hyprism_content.store.catalog_store import CatalogKind, CatalogStore
from hyprism_content.utils.timestamps import from_mtime

logger = logging.getLogger(__name__)


def is_disabled_path(path: Path) -> bool:
    return path.name.endswith(DISABLED_SUFFIX)


def enabled_path(path: Path) -> Path:
    if is_disabled_path(path):
        return path.with_name(path.name[: -len(DISABLED_SUFFIX)])
    return path


def disabled_path(path: Path) -> Path:
    if is_disabled_path(path):
        return path
    return path.with_name(path.name + DISABLED_SUFFIX)


def resolve_mod_file(mod: ModEntry) -> Path | None:
    """Locate a mod's file on disk under either suffix variant."""
    recorded = Path(mod.path)
    alternate = enabled_path(recorded) if is_disabled_path(recorded) else disabled_path(recorded)
    for candidate in (recorded, alternate):
        if candidate.is_file():
            return candidate
    return None


def _is_untracked_mod_file(path: Path) -> bool:
    name = path.name
    if name == MANIFEST_FILENAME or name.startswith(".") or name.endswith(PARTIAL_SUFFIX):
        return False
    return enabled_path(path).suffix.lower() in MOD_FILE_EXTENSIONS


def reconcile_mods(store: CatalogStore) -> list[ModEntry]:
    """Bring the mod catalog in line with the mods directory and persist it.

    Entries whose file is gone are dropped, ``enabled`` is re-derived from the
    ``.disabled`` suffix, sizes are recomputed, and mod files that no entry
    references are registered as local mods.
    """
    mods_dir = store.paths.mods_dir
    with store.edit(CatalogKind.MODS) as catalog:
        kept: list[ModEntry] = []
        for mod in catalog.mods:
            found = resolve_mod_file(mod)
            if found is None:
                logger.info("Dropping mod '%s': %s no longer exists", mod.id, mod.path)
                continue
            try:
                size = found.stat().st_size
            except OSError:
                continue
            enabled = not is_disabled_path(found)
            if enabled != mod.enabled:
                logger.warning("Repairing enabled flag of mod '%s' from file suffix", mod.id)
            mod.path = str(found)
            mod.enabled = enabled
            mod.size_bytes = size
            kept.append(mod)

        known_paths = {mod.path for mod in kept}
        known_ids = {mod.id for mod in kept}
        try:
            mods_dir.mkdir(parents=True, exist_ok=True)
            untracked = sorted(
                p
                for p in mods_dir.iterdir()
                if str(p) not in known_paths and p.is_file() and _is_untracked_mod_file(p)
            )
        except OSError as e:
            raise IOFailure("Cannot read mods directory", mods_dir) from e

        for path in untracked:
            mod_id = enabled_path(path).name
            if mod_id in known_ids:
                continue
            try:
                stat = path.stat()
            except OSError:
                continue
            mtime = from_mtime(stat.st_mtime)
            kept.append(
                ModEntry(
                    id=mod_id,
                    display_name=mod_id,
                    path=str(path),
                    created_at=mtime,
                    updated_at=mtime,
                    size_bytes=stat.st_size,
                    enabled=not is_disabled_path(path),
                )
            )
            known_ids.add(mod_id)
            logger.debug("Registered local mod file %s", path.name)

        catalog.mods = kept
    return kept


def get_mod(store: CatalogStore, entry_id: str) -> ModEntry:
    mod = store.load(CatalogKind.MODS).find(entry_id)
    if mod is None:
        raise NotFoundError("mod", entry_id)
    return mod


def toggle_mod(store: CatalogStore, entry_id: str, enabled: bool) -> ModEntry:
    """Enable or disable a mod by renaming its file and updating the flag together.

    Raises:
        NotFoundError: If the mod or its file does not exist.
        IOFailure: If the rename or the manifest write fails.
    """
    with store.edit(CatalogKind.MODS) as catalog:
        mod = catalog.find(entry_id)
        if mod is None:
            raise NotFoundError("mod", entry_id)
        current = resolve_mod_file(mod)
        if current is None:
            raise NotFoundError("mod file", mod.path)

        target = enabled_path(current) if enabled else disabled_path(current)
        if target != current:
            try:
                current.rename(target)
            except OSError as e:
                raise IOFailure(f"Could not rename {current.name}", target) from e
        mod.path = str(target)
        mod.enabled = enabled

    action = "Enabled" if enabled else "Disabled"
    logger.info("%s mod '%s'", action, entry_id)
    return mod


def delete_mod(store: CatalogStore, entry_id: str) -> None:
    """Delete a mod's file (whichever suffix it has) and its catalog row."""
    with store.edit(CatalogKind.MODS) as catalog:
        mod = catalog.find(entry_id)
        if mod is None:
            raise NotFoundError("mod", entry_id)
        recorded = Path(mod.path)
        for candidate in {enabled_path(recorded), disabled_path(recorded)}:
            try:
                candidate.unlink(missing_ok=True)
            except OSError as e:
                raise IOFailure("Failed to delete mod file", candidate) from e
        catalog.remove(entry_id)
    logger.info("Deleted mod '%s'", entry_id)
