import asyncio
import json

import httpx
import pytest
import respx

from hyprism_content.constants import CURSEFORGE_BASE_URL
from hyprism_content.curseforge.client import CurseForgeClient
from hyprism_content.errors import NotFoundError, RemoteAPIError, ValidationFailure
from hyprism_content.schemas.catalog import ModEntry
from hyprism_content.schemas.curseforge import ModFile
from hyprism_content.services import install_service
from hyprism_content.services.install_service import (
    check_updates,
    install_mod,
    pick_latest_file,
    update_mod,
)
from hyprism_content.services.mod_service import delete_mod, reconcile_mods, toggle_mod
from hyprism_content.store.catalog_store import CatalogKind


def _file(file_id, date, name="example.jar"):
    return ModFile.model_validate(
        {"id": file_id, "fileName": name, "fileDate": date, "downloadUrl": f"https://cdn/{file_id}"}
    )


def _fake_downloader(content=b"jar-bytes"):
    calls = []

    async def _download(url, dest, *, progress_callback=None, cancel_event=None):
        calls.append(url)
        dest.write_bytes(content)
        if progress_callback:
            progress_callback(len(content), len(content))

    _download.calls = calls
    return _download


def _failing_downloader(exc):
    async def _download(url, dest, *, progress_callback=None, cancel_event=None):
        dest.write_bytes(b"half")
        raise exc

    return _download


def _mod_files(paths):
    if not paths.mods_dir.exists():
        return []
    return sorted(p.name for p in paths.mods_dir.iterdir() if p.name != "manifest.json")


class TestPickLatestFile:
    def test_newest_wins(self):
        files = [
            _file(1, "2024-01-01T00:00:00Z"),
            _file(2, "2024-03-01T00:00:00.000Z"),
            _file(3, "2024-02-01T00:00:00+00:00"),
        ]
        assert pick_latest_file(files).id == 2

    def test_offsets_are_compared_in_utc(self):
        files = [_file(1, "2024-01-01T12:00:00Z"), _file(2, "2024-01-01T13:00:00+02:00")]
        assert pick_latest_file(files).id == 1

    def test_tie_keeps_first(self):
        files = [_file(1, "2024-01-01T00:00:00Z"), _file(2, "2024-01-01T00:00:00Z")]
        assert pick_latest_file(files).id == 1

    def test_empty(self):
        assert pick_latest_file([]) is None


class TestInstallMod:
    @pytest.mark.asyncio
    async def test_installs_and_registers(self, store, paths, make_remote_mod):
        progress = []
        downloader = _fake_downloader()

        entry = await install_mod(
            store,
            make_remote_mod(),
            on_progress=lambda pct, msg: progress.append(pct),
            downloader=downloader,
        )

        assert entry.id == "cf-42"
        assert entry.remote_id == 42
        assert entry.enabled is True
        assert entry.author == "modder"
        assert entry.category == "Gameplay"
        assert entry.version == "Example 1.0"
        assert entry.size_bytes == len(b"jar-bytes")
        assert entry.path == str(paths.mods_dir / "example.jar")
        assert downloader.calls == ["https://edge.forgecdn.net/files/1001/example.jar"]
        assert progress[0] == 0
        assert progress[-1] == 100
        assert _mod_files(paths) == ["example.jar"]

        manifest = json.loads((paths.mods_dir / "manifest.json").read_text())
        assert manifest["version"] == "1.0"
        assert manifest["mods"][0]["id"] == "cf-42"
        assert manifest["mods"][0]["remoteId"] == 42

    @pytest.mark.asyncio
    async def test_picks_newest_file(self, store, make_remote_mod):
        item = make_remote_mod(
            files=[
                {"id": 1, "fileName": "old.jar", "downloadUrl": "https://cdn/1",
                 "fileDate": "2024-01-01T00:00:00Z"},
                {"id": 2, "fileName": "new.jar", "downloadUrl": "https://cdn/2",
                 "fileDate": "2024-06-01T00:00:00Z"},
            ]
        )
        downloader = _fake_downloader()
        entry = await install_mod(store, item, downloader=downloader)
        assert downloader.calls == ["https://cdn/2"]
        assert entry.path.endswith("new.jar")

    @pytest.mark.asyncio
    async def test_reinstall_replaces_entry(self, store, paths, make_remote_mod):
        first = await install_mod(store, make_remote_mod(), downloader=_fake_downloader())
        second = await install_mod(store, make_remote_mod(), downloader=_fake_downloader(b"v2"))

        mods = store.load(CatalogKind.MODS).mods
        assert [m.id for m in mods] == ["cf-42"]
        assert second.created_at == first.created_at
        assert (paths.mods_dir / "example.jar").read_bytes() == b"v2"

    @pytest.mark.asyncio
    async def test_new_file_name_removes_old_file(self, store, paths, make_remote_mod):
        await install_mod(store, make_remote_mod(), downloader=_fake_downloader())
        toggle_mod(store, "cf-42", enabled=False)
        item = make_remote_mod(
            files=[
                {"id": 2, "fileName": "example-2.0.jar", "downloadUrl": "https://cdn/2",
                 "fileDate": "2024-06-01T00:00:00Z"},
            ]
        )

        entry = await install_mod(store, item, downloader=_fake_downloader())

        assert entry.enabled is True
        assert _mod_files(paths) == ["example-2.0.jar"]

    @pytest.mark.asyncio
    async def test_no_files(self, store, paths, make_remote_mod):
        with pytest.raises(ValidationFailure):
            await install_mod(store, make_remote_mod(files=[]), downloader=_fake_downloader())
        assert _mod_files(paths) == []

    @pytest.mark.asyncio
    async def test_distribution_disabled(self, store, paths, make_remote_mod):
        item = make_remote_mod(
            files=[{"id": 1, "fileName": "a.jar", "fileDate": "2024-01-01T00:00:00Z"}]
        )
        with pytest.raises(ValidationFailure, match="disabled distribution"):
            await install_mod(store, item, downloader=_fake_downloader())
        assert _mod_files(paths) == []

    @pytest.mark.asyncio
    async def test_failed_download_leaves_nothing(self, store, paths, make_remote_mod):
        downloader = _failing_downloader(RemoteAPIError(503, "unavailable"))
        with pytest.raises(RemoteAPIError):
            await install_mod(store, make_remote_mod(), downloader=downloader)
        assert _mod_files(paths) == []
        assert store.load(CatalogKind.MODS).mods == []

    @pytest.mark.asyncio
    async def test_cancelled_download_leaves_nothing(self, store, paths, make_remote_mod):
        downloader = _failing_downloader(asyncio.CancelledError("Download cancelled"))
        with pytest.raises(asyncio.CancelledError):
            await install_mod(store, make_remote_mod(), downloader=downloader)
        assert _mod_files(paths) == []
        assert store.load(CatalogKind.MODS).mods == []

    @pytest.mark.asyncio
    async def test_failed_download_keeps_previous_install(self, store, paths, make_remote_mod):
        await install_mod(store, make_remote_mod(), downloader=_fake_downloader())
        with pytest.raises(RemoteAPIError):
            await install_mod(
                store,
                make_remote_mod(),
                downloader=_failing_downloader(RemoteAPIError(None, "reset")),
            )
        assert _mod_files(paths) == ["example.jar"]
        assert [m.id for m in store.load(CatalogKind.MODS).mods] == ["cf-42"]

    @pytest.mark.asyncio
    async def test_uses_module_downloader_by_default(self, store, make_remote_mod, monkeypatch):
        downloader = _fake_downloader()
        monkeypatch.setattr(install_service, "download_file", downloader)
        await install_mod(store, make_remote_mod())
        assert len(downloader.calls) == 1
    @pytest.mark.asyncio
    async def test_takes_over_local_file(self, store, paths, make_mod_file, make_remote_mod):
        make_mod_file("example.jar", b"local copy")
        reconcile_mods(store)

        await install_mod(store, make_remote_mod(), downloader=_fake_downloader())

        mods = reconcile_mods(store)
        assert [(m.id, m.path) for m in mods] == [("cf-42", str(paths.mods_dir / "example.jar"))]
        assert (paths.mods_dir / "example.jar").read_bytes() == b"jar-bytes"

    @pytest.mark.asyncio
    async def test_takes_over_disabled_file(self, store, paths, make_mod_file, make_remote_mod):
        make_mod_file("example.jar.disabled", b"local copy")
        reconcile_mods(store)

        await install_mod(store, make_remote_mod(), downloader=_fake_downloader())

        assert _mod_files(paths) == ["example.jar"]
        assert [m.id for m in reconcile_mods(store)] == ["cf-42"]

    @pytest.mark.asyncio
    async def test_no_orphan_row_after_takeover(self, store, make_mod_file, make_remote_mod):
        make_mod_file("example.jar")
        reconcile_mods(store)
        await install_mod(store, make_remote_mod(), downloader=_fake_downloader())

        with pytest.raises(NotFoundError):
            delete_mod(store, "example.jar")
        delete_mod(store, "cf-42")

        assert reconcile_mods(store) == []


def _installed(store, make_mod_file, name, remote_id, updated_at="2024-03-01T00:00:00Z"):
    path = make_mod_file(name)
    entry = ModEntry(
        id=f"cf-{remote_id}",
        display_name=name,
        path=str(path),
        created_at=updated_at,
        updated_at=updated_at,
        remote_id=remote_id,
    )
    with store.edit(CatalogKind.MODS) as catalog:
        catalog.upsert(entry)
    return entry


def _remote(mod_id, file_date):
    return {
        "data": {
            "id": mod_id,
            "name": f"Mod {mod_id}",
            "latestFiles": [
                {"id": mod_id * 10, "fileName": f"mod{mod_id}.jar",
                 "downloadUrl": f"https://cdn/{mod_id}", "fileDate": file_date}
            ],
        }
    }


class TestCheckUpdates:
    @respx.mock
    @pytest.mark.asyncio
    async def test_reports_only_newer_remote_files(self, store, make_mod_file):
        _installed(store, make_mod_file, "mod1.jar", 1)
        _installed(store, make_mod_file, "mod2.jar", 2)
        make_mod_file("local.jar")
        respx.get(f"{CURSEFORGE_BASE_URL}/mods/1").mock(
            return_value=httpx.Response(200, json=_remote(1, "2024-06-01T00:00:00.000Z"))
        )
        respx.get(f"{CURSEFORGE_BASE_URL}/mods/2").mock(
            return_value=httpx.Response(200, json=_remote(2, "2024-01-01T00:00:00.000Z"))
        )

        async with CurseForgeClient("key") as client:
            updates = await check_updates(store, client)

        assert [m.id for m in updates] == ["cf-1"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_sees_disabled_mods(self, store, make_mod_file):
        _installed(store, make_mod_file, "mod1.jar", 1)
        toggle_mod(store, "cf-1", enabled=False)
        respx.get(f"{CURSEFORGE_BASE_URL}/mods/1").mock(
            return_value=httpx.Response(200, json=_remote(1, "2024-06-01T00:00:00Z"))
        )

        async with CurseForgeClient("key") as client:
            updates = await check_updates(store, client)

        assert [m.id for m in updates] == ["cf-1"]
        assert updates[0].enabled is False

    @respx.mock
    @pytest.mark.asyncio
    async def test_failed_lookups_are_skipped(self, store, make_mod_file):
        _installed(store, make_mod_file, "mod1.jar", 1)
        _installed(store, make_mod_file, "mod2.jar", 2)
        _installed(store, make_mod_file, "mod3.jar", 3)
        respx.get(f"{CURSEFORGE_BASE_URL}/mods/1").mock(return_value=httpx.Response(404))
        respx.get(f"{CURSEFORGE_BASE_URL}/mods/2").mock(return_value=httpx.Response(500))
        respx.get(f"{CURSEFORGE_BASE_URL}/mods/3").mock(
            return_value=httpx.Response(200, json=_remote(3, "2024-06-01T00:00:00Z"))
        )

        async with CurseForgeClient("key") as client:
            updates = await check_updates(store, client)

        assert [m.id for m in updates] == ["cf-3"]

    @pytest.mark.asyncio
    async def test_no_remote_mods_makes_no_requests(self, store, make_mod_file):
        make_mod_file("local.jar")
        async with CurseForgeClient("key") as client:
            assert await check_updates(store, client) == []


class TestUpdateMod:
    @respx.mock
    @pytest.mark.asyncio
    async def test_reinstalls_from_remote(self, store, paths, make_mod_file):
        _installed(store, make_mod_file, "mod1.jar", 1)
        respx.get(f"{CURSEFORGE_BASE_URL}/mods/1").mock(
            return_value=httpx.Response(200, json=_remote(1, "2024-06-01T00:00:00Z"))
        )
        downloader = _fake_downloader(b"new")

        async with CurseForgeClient("key") as client:
            entry = await update_mod(store, client, "cf-1", downloader=downloader)

        assert downloader.calls == ["https://cdn/1"]
        assert entry.display_name == "Mod 1"
        assert entry.created_at == "2024-03-01T00:00:00Z"
        assert entry.updated_at > "2024-06-01T00:00:00Z"
        assert (paths.mods_dir / "mod1.jar").read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_unknown_mod(self, store):
        async with CurseForgeClient("key") as client:
            with pytest.raises(NotFoundError):
                await update_mod(store, client, "cf-9")

    @pytest.mark.asyncio
    async def test_local_mod_cannot_update(self, store, make_mod_file):
        make_mod_file("local.jar")
        reconcile_mods(store)
        async with CurseForgeClient("key") as client:
            with pytest.raises(ValidationFailure):
                await update_mod(store, client, "local.jar")
