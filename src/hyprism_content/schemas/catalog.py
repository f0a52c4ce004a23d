from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hyprism_content.constants import DEFAULT_GAME_MODE, MANIFEST_VERSION
from hyprism_content.utils.timestamps import normalize_iso

# Field names used by manifests written before the current schema.
_LEGACY_WORLD_KEYS = {"name": "displayName", "lastPlayed": "updatedAt"}
_LEGACY_MOD_KEYS = {
    "name": "displayName",
    "filePath": "path",
    "curseforgeId": "remoteId",
    "installedAt": "createdAt",
}


def _rename_legacy_keys(data: Any, mapping: dict[str, str]) -> Any:
    if not isinstance(data, dict):
        return data
    data = dict(data)
    for old, new in mapping.items():
        if old in data and new not in data:
            data[new] = data.pop(old)
    return data


class Entry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    id: str
    display_name: str = Field(alias="displayName")
    path: str
    created_at: str = Field("", alias="createdAt")
    updated_at: str = Field("", alias="updatedAt")
    size_bytes: int = Field(0, alias="sizeBytes")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, v: str) -> str:
        return normalize_iso(v)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class WorldEntry(Entry):
    game_mode: str = Field(DEFAULT_GAME_MODE, alias="gameMode")
    seed: str = ""
    is_backup: bool = Field(False, alias="isBackup")
    backup_of: str | None = Field(None, alias="backupOf")
    thumbnail_url: str = Field("", alias="thumbnailUrl")

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        return _rename_legacy_keys(data, _LEGACY_WORLD_KEYS)


class ModEntry(Entry):
    author: str = ""
    version: str = ""
    enabled: bool = True
    remote_id: int | None = Field(None, alias="remoteId")
    category: str = ""
    icon_url: str = Field("", alias="iconUrl")
    description: str = ""
    download_url: str = Field("", alias="downloadUrl")
    downloads: int = 0

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        return _rename_legacy_keys(data, _LEGACY_MOD_KEYS)

    @field_validator("remote_id")
    @classmethod
    def _zero_means_local(cls, v: int | None) -> int | None:
        return v or None


class Catalog(BaseModel, ABC):
    """Common operations over the ordered entry list of a manifest."""

    version: str = MANIFEST_VERSION

    @property
    @abstractmethod
    def entries(self) -> list[Any]:
        """The mutable entry list backing this catalog."""

    def find(self, entry_id: str) -> Any | None:
        return next((e for e in self.entries if e.id == entry_id), None)

    def upsert(self, entry: Entry) -> None:
        """Replace the entry with the same id in place, or append it."""
        for i, existing in enumerate(self.entries):
            if existing.id == entry.id:
                self.entries[i] = entry
                return
        self.entries.append(entry)

    def remove(self, entry_id: str) -> Any | None:
        for i, existing in enumerate(self.entries):
            if existing.id == entry_id:
                return self.entries.pop(i)
        return None

    def duplicate_ids(self) -> set[str]:
        seen: set[str] = set()
        dupes: set[str] = set()
        for e in self.entries:
            if e.id in seen:
                dupes.add(e.id)
            seen.add(e.id)
        return dupes


class WorldCatalog(Catalog):
    worlds: list[WorldEntry] = Field(default_factory=list)

    @field_validator("worlds", mode="before")
    @classmethod
    def _null_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def entries(self) -> list[WorldEntry]:
        return self.worlds


class ModCatalog(Catalog):
    mods: list[ModEntry] = Field(default_factory=list)

    @field_validator("mods", mode="before")
    @classmethod
    def _null_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def entries(self) -> list[ModEntry]:
        return self.mods


class WorldUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: str | None = Field(None, alias="displayName", min_length=1)
    game_mode: str | None = Field(None, alias="gameMode", min_length=1)
