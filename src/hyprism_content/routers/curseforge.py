"""Pass-through endpoints for browsing the CurseForge catalog."""

from fastapi import APIRouter, Depends, Query

from hyprism_content.constants import DEFAULT_PAGE_SIZE
from hyprism_content.curseforge.client import CurseForgeClient
from hyprism_content.routers.deps import get_curseforge
from hyprism_content.schemas.curseforge import CurseForgeMod, ModCategory, ModFile, SearchResult

router = APIRouter(prefix="/curseforge", tags=["curseforge"])


@router.get("/search", response_model=SearchResult)
async def search_mods(
    q: str = "",
    category_id: int = Query(0, ge=0),
    page: int = Query(0, ge=0),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=50),
    sort_field: int | None = None,
    sort_order: str | None = Query(None, pattern="^(asc|desc)$"),
    client: CurseForgeClient = Depends(get_curseforge),
) -> SearchResult:
    return await client.search(
        q,
        category_id,
        page,
        page_size=page_size,
        sort_field=sort_field,
        sort_order=sort_order,
    )


@router.get("/mods/{remote_id}", response_model=CurseForgeMod)
async def get_mod(
    remote_id: int,
    client: CurseForgeClient = Depends(get_curseforge),
) -> CurseForgeMod:
    return await client.get_mod(remote_id)


@router.get("/mods/{remote_id}/files", response_model=list[ModFile])
async def get_mod_files(
    remote_id: int,
    client: CurseForgeClient = Depends(get_curseforge),
) -> list[ModFile]:
    return await client.get_mod_files(remote_id)


@router.get("/categories", response_model=list[ModCategory])
async def get_categories(client: CurseForgeClient = Depends(get_curseforge)) -> list[ModCategory]:
    return await client.get_categories()
