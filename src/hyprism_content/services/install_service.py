"""Install, update and update-detection for CurseForge mods.

An install downloads the newest file of a remote mod into the mods directory
and registers it under ``cf-{remote_id}``, so reinstalling or updating a mod
replaces its catalog row instead of adding a second one. The download goes to
a ``.part`` file that is only moved into place once the transfer finished;
a failed or cancelled transfer leaves neither a file nor a catalog change.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from hyprism_content.constants import CURSEFORGE_SOURCE, PARTIAL_SUFFIX
from hyprism_content.curseforge.client import CurseForgeClient
from hyprism_content.errors import IOFailure, NotFoundError, RemoteAPIError, ValidationFailure
from hyprism_content.schemas.catalog import ModEntry
from hyprism_content.schemas.curseforge import CurseForgeMod, ModFile
from hyprism_content.services.download_service import Downloader, download_file
from hyprism_content.services.mod_service import (
    disabled_path,
    enabled_path,
    reconcile_mods,
)
from hyprism_content.services.progress import ProgressCallback, noop_progress
from hyprism_content.store.catalog_store import CatalogKind, CatalogStore
from hyprism_content.utils.timestamps import normalize_iso, now_iso

logger = logging.getLogger(__name__)

_MAX_CONCURRENT = 5


def remote_entry_id(remote_id: int) -> str:
    return f"{CURSEFORGE_SOURCE}-{remote_id}"


def _file_date(f: ModFile) -> str:
    try:
        return normalize_iso(f.file_date)
    except ValueError:
        return ""


def pick_latest_file(files: list[ModFile]) -> ModFile | None:
    """Return the file with the newest ``fileDate``; the first one wins a tie."""
    latest: ModFile | None = None
    for f in files:
        if latest is None or _file_date(f) > _file_date(latest):
            latest = f
    return latest


def has_newer_file(item: CurseForgeMod, installed_at: str) -> bool:
    return any(_file_date(f) > installed_at for f in item.latest_files)


def _build_entry(
    item: CurseForgeMod,
    latest: ModFile,
    dest: Path,
    previous: ModEntry | None,
) -> ModEntry:
    now = now_iso()
    return ModEntry(
        id=remote_entry_id(item.id),
        display_name=item.name,
        path=str(dest),
        created_at=previous.created_at if previous and previous.created_at else now,
        updated_at=now,
        size_bytes=dest.stat().st_size,
        author=item.authors[0].name if item.authors else "Unknown",
        version=latest.display_name or latest.file_name,
        enabled=True,
        remote_id=item.id,
        category=item.categories[0].name if item.categories else "General",
        icon_url=item.logo.thumbnail_url if item.logo else "",
        description=item.summary,
        download_url=latest.download_url or "",
        downloads=item.download_count,
    )


def _register(store: CatalogStore, item: CurseForgeMod, latest: ModFile, part: Path) -> ModEntry:
    dest = part.with_name(part.name[: -len(PARTIAL_SUFFIX)])
    entry_id = remote_entry_id(item.id)
    with store.lock(CatalogKind.MODS):
        previous = store.load(CatalogKind.MODS).find(entry_id)
        try:
            part.replace(dest)
        except OSError as e:
            part.unlink(missing_ok=True)
            raise IOFailure("Could not move download into place", dest) from e

        entry = _build_entry(item, latest, dest, previous)
        superseded: list[ModEntry] = []
        try:
            with store.edit(CatalogKind.MODS) as catalog:
                superseded = [
                    m
                    for m in catalog.mods
                    if m.id != entry_id and enabled_path(Path(m.path)) == dest
                ]
                for mod in superseded:
                    catalog.remove(mod.id)
                catalog.upsert(entry)
        except Exception:
            reinstall = previous is not None and enabled_path(Path(previous.path)) == dest
            if not (superseded or reinstall):
                dest.unlink(missing_ok=True)
            raise

        stale: set[Path] = set()
        for mod in [previous, *superseded]:
            if mod is not None:
                old = Path(mod.path)
                stale |= {enabled_path(old), disabled_path(old)}
        for path in stale - {dest}:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove previous file %s", path)
        for mod in superseded:
            logger.info("Install of '%s' replaced mod '%s' sharing its file", item.name, mod.id)
    return entry


async def install_mod(
    store: CatalogStore,
    item: CurseForgeMod,
    *,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
    downloader: Downloader | None = None,
) -> ModEntry:
    """Download the newest file of *item* and register it in the mod catalog.

    Raises:
        ValidationFailure: If the mod has no files or its author disabled
            third-party distribution.
        RemoteAPIError: If the transfer fails on the network side.
        IOFailure: If the file or the manifest cannot be written.
        asyncio.CancelledError: If the transfer was cancelled.
    """
    report = on_progress or noop_progress
    latest = pick_latest_file(item.latest_files)
    if latest is None:
        raise ValidationFailure(f"No files available for mod {item.name}")
    if not latest.download_url:
        raise ValidationFailure(
            f"Download not available for {item.name} (author disabled distribution)"
        )
    file_name = Path(latest.file_name).name
    if not file_name or file_name in {".", ".."}:
        raise ValidationFailure(f"Invalid file name for mod {item.name}: {latest.file_name!r}")

    mods_dir = store.paths.mods_dir
    try:
        mods_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise IOFailure("Cannot create mods directory", mods_dir) from e
    part = mods_dir / f"{file_name}{PARTIAL_SUFFIX}"

    def _progress(downloaded: int, total: int) -> None:
        if total > 0:
            pct = downloaded / total * 100
            report(pct, f"Downloading {item.name}... {pct:.1f}%")

    report(0, f"Downloading {item.name}...")
    fetch = downloader or download_file
    completed = False
    try:
        await fetch(
            latest.download_url,
            part,
            progress_callback=_progress,
            cancel_event=cancel_event,
        )
        completed = True
    finally:
        if not completed:
            part.unlink(missing_ok=True)
            logger.info("Install of '%s' did not complete; removed partial download", item.name)

    entry = await asyncio.to_thread(_register, store, item, latest, part)
    report(100, f"Installed {item.name} successfully!")
    logger.info("Installed '%s' %s as %s", item.name, entry.version, entry.id)
    return entry


async def update_mod(
    store: CatalogStore,
    client: CurseForgeClient,
    entry_id: str,
    *,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
    downloader: Downloader | None = None,
) -> ModEntry:
    """Reinstall an installed CurseForge mod from its current remote state."""
    mod = (await asyncio.to_thread(store.load, CatalogKind.MODS)).find(entry_id)
    if mod is None:
        raise NotFoundError("mod", entry_id)
    if not mod.remote_id:
        raise ValidationFailure(f"Mod '{entry_id}' was not installed from CurseForge")
    item = await client.get_mod(mod.remote_id)
    return await install_mod(
        store,
        item,
        on_progress=on_progress,
        cancel_event=cancel_event,
        downloader=downloader,
    )


async def check_updates(store: CatalogStore, client: CurseForgeClient) -> list[ModEntry]:
    """Return installed mods whose remote files are newer than the local install.

    Remote lookups that fail are logged and skipped.
    """
    mods = await asyncio.to_thread(reconcile_mods, store)
    candidates = [m for m in mods if m.remote_id]
    sem = asyncio.Semaphore(_MAX_CONCURRENT)

    async def _check(mod: ModEntry) -> bool:
        async with sem:
            try:
                item = await client.get_mod(mod.remote_id)  # type: ignore[arg-type]
            except (NotFoundError, RemoteAPIError) as e:
                logger.warning("Skipping update check for '%s': %s", mod.id, e)
                return False
        return has_newer_file(item, mod.updated_at)

    results = await asyncio.gather(*(_check(m) for m in candidates))
    updates = [m for m, newer in zip(candidates, results, strict=True) if newer]
    logger.info("Checked %d mod(s) for updates, %d available", len(candidates), len(updates))
    return updates
