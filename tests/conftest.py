from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hyprism_content.config import ContentPaths
from hyprism_content.main import app
from hyprism_content.routers.deps import get_store
from hyprism_content.schemas.curseforge import CurseForgeMod
from hyprism_content.store.catalog_store import CatalogStore


@pytest.fixture
def paths(tmp_path) -> ContentPaths:
    return ContentPaths.from_data_dir(tmp_path / "HyPrism")


@pytest.fixture
def store(paths) -> CatalogStore:
    return CatalogStore(paths)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
    app.dependency_overrides.clear()


@pytest.fixture
def make_world(paths):
    """Create a world directory with a save marker and some region data."""

    def _make(name: str = "Alpha", files: dict[str, bytes] | None = None) -> Path:
        world_dir = paths.worlds_dir / name
        world_dir.mkdir(parents=True, exist_ok=True)
        contents = files if files is not None else {
            "level.dat": b"level-data",
            "region/r.0.0.bin": b"\x01" * 100,
        }
        for rel, data in contents.items():
            target = world_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        return world_dir

    return _make


@pytest.fixture
def make_mod_file(paths):
    def _make(name: str = "example.jar", content: bytes = b"jar-bytes") -> Path:
        paths.mods_dir.mkdir(parents=True, exist_ok=True)
        target = paths.mods_dir / name
        target.write_bytes(content)
        return target

    return _make


@pytest.fixture
def make_remote_mod():
    """Build a CurseForgeMod the way the API returns it (camelCase payload)."""

    def _make(
        mod_id: int = 42,
        name: str = "Example Mod",
        files: list[dict] | None = None,
    ) -> CurseForgeMod:
        if files is None:
            files = [
                {
                    "id": 1001,
                    "modId": mod_id,
                    "displayName": "Example 1.0",
                    "fileName": "example.jar",
                    "fileLength": 9,
                    "downloadUrl": "https://edge.forgecdn.net/files/1001/example.jar",
                    "fileDate": "2024-05-01T12:00:00.000Z",
                    "releaseType": 1,
                }
            ]
        return CurseForgeMod.model_validate(
            {
                "id": mod_id,
                "gameId": 70216,
                "name": name,
                "summary": "Adds examples",
                "downloadCount": 1234,
                "logo": {"id": 5, "thumbnailUrl": "https://media.forgecdn.net/thumb.png"},
                "categories": [{"id": 7, "name": "Gameplay"}],
                "authors": [{"id": 9, "name": "modder"}],
                "latestFiles": files,
            }
        )

    return _make
