from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CurseForgeModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Pagination(_CurseForgeModel):
    index: int = 0
    page_size: int = 0
    result_count: int = 0
    total_count: int = 0


class ModLogo(_CurseForgeModel):
    id: int = 0
    mod_id: int = 0
    title: str = ""
    thumbnail_url: str = ""
    url: str = ""


class ModCategory(_CurseForgeModel):
    id: int
    name: str
    slug: str = ""
    url: str = ""
    icon_url: str = ""
    parent_category_id: int | None = None


class ModAuthor(_CurseForgeModel):
    id: int = 0
    name: str
    url: str = ""


class ModFile(_CurseForgeModel):
    id: int
    mod_id: int = 0
    display_name: str = ""
    file_name: str
    file_length: int = 0
    download_url: str | None = None
    file_date: str = ""
    release_type: int = 1  # 1=release, 2=beta, 3=alpha


class CurseForgeMod(_CurseForgeModel):
    id: int
    game_id: int = 0
    name: str
    slug: str = ""
    summary: str = ""
    download_count: int = 0
    date_created: str = ""
    date_modified: str = ""
    date_released: str = ""
    logo: ModLogo | None = None
    categories: list[ModCategory] = Field(default_factory=list)
    authors: list[ModAuthor] = Field(default_factory=list)
    latest_files: list[ModFile] = Field(default_factory=list)
    main_file_id: int = 0
    allow_mod_distribution: bool | None = None


class SearchResult(_CurseForgeModel):
    mods: list[CurseForgeMod]
    total_count: int
    page_index: int
    page_size: int
