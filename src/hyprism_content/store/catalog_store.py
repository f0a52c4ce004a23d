"""JSON manifest persistence for the world and mod catalogs.

Each catalog kind lives in a single ``manifest.json`` inside its content root.
Writes go through a temp file in the same directory followed by an atomic
replace, and every read-modify-write cycle runs under a lock keyed by the
manifest path, so concurrent operations on the same catalog cannot lose each
other's updates.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from enum import StrEnum
from pathlib import Path
from typing import Any, Literal, overload

from pydantic import ValidationError

from hyprism_content.config import ContentPaths
from hyprism_content.constants import MANIFEST_FILENAME, MANIFEST_VERSION
from hyprism_content.errors import IOFailure, ValidationFailure
from hyprism_content.schemas.catalog import Catalog, ModCatalog, WorldCatalog
from hyprism_content.utils.fs import atomic_write_text

logger = logging.getLogger(__name__)


class CatalogKind(StrEnum):
    WORLDS = "worlds"
    MODS = "mods"


_CATALOG_MODELS: dict[CatalogKind, type[Catalog]] = {
    CatalogKind.WORLDS: WorldCatalog,
    CatalogKind.MODS: ModCatalog,
}

# One lock per manifest file, shared by every CatalogStore in the process.
_locks: dict[Path, threading.RLock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    key = path.resolve()
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _locks[key] = lock
        return lock


class CatalogStore:
    def __init__(self, paths: ContentPaths) -> None:
        self.paths = paths

    def root_for(self, kind: CatalogKind) -> Path:
        if kind is CatalogKind.WORLDS:
            return self.paths.worlds_dir
        return self.paths.mods_dir

    def manifest_path(self, kind: CatalogKind) -> Path:
        return self.root_for(kind) / MANIFEST_FILENAME

    @overload
    def load(self, kind: Literal[CatalogKind.WORLDS]) -> WorldCatalog: ...
    @overload
    def load(self, kind: Literal[CatalogKind.MODS]) -> ModCatalog: ...
    @overload
    def load(self, kind: CatalogKind) -> Catalog: ...

    def load(self, kind: CatalogKind) -> Catalog:
        """Read the catalog for *kind*; a missing manifest yields an empty catalog.

        Raises:
            IOFailure: If the manifest exists but cannot be read or parsed.
        """
        model = _CATALOG_MODELS[kind]
        path = self.manifest_path(kind)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return model()
        except OSError as e:
            raise IOFailure("Cannot read manifest", path) from e
        try:
            catalog = model.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise IOFailure("Manifest is not a valid catalog", path) from e
        if catalog.version != MANIFEST_VERSION:
            logger.info(
                "Upgrading %s manifest from version %s to %s",
                kind,
                catalog.version,
                MANIFEST_VERSION,
            )
            catalog.version = MANIFEST_VERSION
        return catalog

    def save(self, kind: CatalogKind, catalog: Catalog) -> None:
        """Atomically persist *catalog* as the manifest for *kind*.

        Raises:
            ValidationFailure: If two entries share an id.
            IOFailure: If the manifest could not be written.
        """
        dupes = catalog.duplicate_ids()
        if dupes:
            raise ValidationFailure(f"Duplicate {kind} ids: {', '.join(sorted(dupes))}")
        payload = {
            kind.value: [e.to_json_dict() for e in catalog.entries],
            "version": MANIFEST_VERSION,
        }
        path = self.manifest_path(kind)
        try:
            atomic_write_text(path, json.dumps(payload, indent=2))
        except OSError as e:
            raise IOFailure("Cannot write manifest", path) from e
        logger.debug("Saved %s manifest (%d entries)", kind, len(catalog.entries))

    @contextmanager
    def lock(self, kind: CatalogKind) -> Iterator[None]:
        with _lock_for(self.manifest_path(kind)):
            yield

    @contextmanager
    def edit(self, kind: CatalogKind) -> Iterator[Any]:
        """Lock, load and yield the catalog; save it if the block exits normally."""
        with self.lock(kind):
            catalog = self.load(kind)
            yield catalog
            self.save(kind, catalog)
