MANIFEST_VERSION = "1.0"
MANIFEST_FILENAME = "manifest.json"

USER_DATA_DIR_NAME = "UserData"
WORLDS_DIR_NAME = "worlds"
MODS_DIR_NAME = "Mods"
BACKUPS_DIR_NAME = "backups"

# Subdirectories of the worlds root that are never treated as worlds.
RESERVED_WORLD_DIRS = frozenset({BACKUPS_DIR_NAME})

# A directory is a world if it holds at least one of these save-data markers.
WORLD_MARKER_FILES = ("level.dat", "world.json")

DEFAULT_GAME_MODE = "Survival"

DISABLED_SUFFIX = ".disabled"
PARTIAL_SUFFIX = ".part"
MOD_FILE_EXTENSIONS = frozenset({".jar", ".zip"})

CURSEFORGE_BASE_URL = "https://api.curseforge.com/v1"
HYTALE_GAME_ID = 70216
CURSEFORGE_SOURCE = "cf"
DEFAULT_PAGE_SIZE = 20
