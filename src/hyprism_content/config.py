import os
import sys
from dataclasses import dataclass
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hyprism_content.constants import (
    BACKUPS_DIR_NAME,
    CURSEFORGE_BASE_URL,
    HYTALE_GAME_ID,
    MODS_DIR_NAME,
    USER_DATA_DIR_NAME,
    WORLDS_DIR_NAME,
)


def _default_data_dir() -> Path:
    if env := os.environ.get("HYPRISM_DATA_DIR"):
        return Path(env)
    if sys.platform == "win32":
        base = Path(os.environ.get("APPDATA") or os.environ.get("USERPROFILE") or Path.home())
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"
    return base / "HyPrism"


@dataclass(frozen=True, slots=True)
class ContentPaths:
    """Directories the store operates on, resolved once and passed around explicitly."""

    worlds_dir: Path
    mods_dir: Path
    backups_dir: Path

    @classmethod
    def from_data_dir(cls, data_dir: Path) -> "ContentPaths":
        user_data = data_dir / USER_DATA_DIR_NAME
        return cls(
            worlds_dir=user_data / WORLDS_DIR_NAME,
            mods_dir=user_data / MODS_DIR_NAME,
            backups_dir=user_data / BACKUPS_DIR_NAME,
        )


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HYPRISM_",
        extra="ignore",
    )

    data_dir: Path = Path("")
    curseforge_api_key: str = ""
    curseforge_base_url: str = CURSEFORGE_BASE_URL
    curseforge_game_id: int = HYTALE_GAME_ID
    request_timeout: float = 30.0
    download_timeout: float = 300.0
    host: str = "127.0.0.1"
    port: int = 8426

    @model_validator(mode="after")
    def _resolve_data_dir(self) -> "Settings":
        if self.data_dir == Path(""):
            self.data_dir = _default_data_dir()
        return self

    def content_paths(self) -> ContentPaths:
        return ContentPaths.from_data_dir(self.data_dir)


settings = Settings()
