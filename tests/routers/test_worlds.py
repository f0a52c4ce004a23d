import os


def _scan(client):
    r = client.get("/api/v1/worlds/")
    assert r.status_code == 200
    return r.json()


class TestListWorlds:
    def test_empty(self, client):
        assert _scan(client) == []

    def test_lists_with_camel_case_fields(self, client, make_world):
        make_world("Alpha")
        worlds = _scan(client)
        assert len(worlds) == 1
        world = worlds[0]
        assert world["id"] == "Alpha"
        assert world["displayName"] == "Alpha"
        assert world["gameMode"] == "Survival"
        assert world["isBackup"] is False
        assert world["sizeBytes"] == 110
        assert world["updatedAt"].endswith("Z")

    def test_sorted_most_recent_first(self, client, make_world):
        old = make_world("Old")
        new = make_world("New")
        os.utime(old, (1_600_000_000, 1_600_000_000))
        os.utime(new, (1_700_000_000, 1_700_000_000))
        assert [w["id"] for w in _scan(client)] == ["New", "Old"]


class TestWorldEdits:
    def test_get(self, client, make_world):
        make_world("Alpha")
        r = client.get("/api/v1/worlds/Alpha")
        assert r.status_code == 200
        assert r.json()["id"] == "Alpha"

    def test_get_unknown(self, client):
        r = client.get("/api/v1/worlds/nope")
        assert r.status_code == 404
        assert r.json()["kind"] == "NotFoundError"

    def test_rename_persists_across_scans(self, client, make_world):
        make_world("Alpha")
        _scan(client)
        r = client.patch("/api/v1/worlds/Alpha", json={"displayName": "My Castle"})
        assert r.status_code == 200
        assert r.json()["displayName"] == "My Castle"
        assert _scan(client)[0]["displayName"] == "My Castle"

    def test_set_game_mode(self, client, make_world):
        make_world("Alpha")
        _scan(client)
        r = client.patch("/api/v1/worlds/Alpha", json={"gameMode": "Creative"})
        assert r.json()["gameMode"] == "Creative"
        assert r.json()["displayName"] == "Alpha"

    def test_empty_name_rejected(self, client, make_world):
        make_world("Alpha")
        _scan(client)
        r = client.patch("/api/v1/worlds/Alpha", json={"displayName": ""})
        assert r.status_code == 422

    def test_patch_unknown(self, client):
        r = client.patch("/api/v1/worlds/nope", json={"displayName": "x"})
        assert r.status_code == 404

    def test_delete(self, client, make_world):
        world_dir = make_world("Alpha")
        _scan(client)
        r = client.delete("/api/v1/worlds/Alpha")
        assert r.status_code == 204
        assert not world_dir.exists()
        assert _scan(client) == []


class TestBackups:
    def test_backup_and_restore(self, client, make_world):
        make_world("Alpha")
        _scan(client)

        r = client.post("/api/v1/worlds/Alpha/backup")
        assert r.status_code == 201
        backup = r.json()
        assert backup["isBackup"] is True
        assert backup["backupOf"] == "Alpha"

        listed = client.get("/api/v1/backups/").json()
        assert [b["id"] for b in listed] == [backup["id"]]

        r = client.post(f"/api/v1/backups/{backup['id']}/restore")
        assert r.status_code == 201
        restored = r.json()
        assert restored["id"].startswith("restored_")
        assert restored["sizeBytes"] == backup["sizeBytes"]

        ids = {w["id"] for w in _scan(client)}
        assert ids == {"Alpha", restored["id"]}

    def test_backup_unknown_world(self, client):
        assert client.post("/api/v1/worlds/nope/backup").status_code == 404

    def test_restore_unknown_backup(self, client):
        assert client.post("/api/v1/backups/nope/restore").status_code == 404

    def test_delete_backup(self, client, make_world):
        make_world("Alpha")
        _scan(client)
        backup = client.post("/api/v1/worlds/Alpha/backup").json()

        assert client.delete(f"/api/v1/backups/{backup['id']}").status_code == 204
        assert client.get("/api/v1/backups/").json() == []
        assert client.delete(f"/api/v1/backups/{backup['id']}").status_code == 204


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
