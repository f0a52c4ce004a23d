import logging
from types import TracebackType
from typing import Any, Self

import httpx
from pydantic import TypeAdapter, ValidationError

from hyprism_content.constants import CURSEFORGE_BASE_URL, DEFAULT_PAGE_SIZE, HYTALE_GAME_ID
from hyprism_content.errors import NotFoundError, RemoteAPIError
from hyprism_content.schemas.curseforge import (
    CurseForgeMod,
    ModCategory,
    ModFile,
    Pagination,
    SearchResult,
)

logger = logging.getLogger(__name__)

_MODS = TypeAdapter(list[CurseForgeMod])
_FILES = TypeAdapter(list[ModFile])
_CATEGORIES = TypeAdapter(list[ModCategory])


class CurseForgeClient:
    """Read-only client for the CurseForge mod repository, scoped to one game.

    Every request is bounded by ``timeout`` and never retried here; failures
    surface as :class:`RemoteAPIError` with the status code and body.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = CURSEFORGE_BASE_URL,
        game_id: int = HYTALE_GAME_ID,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self.game_id = game_id
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Self:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"x-api-key": self._api_key, "Accept": "application/json"},
            timeout=self._timeout,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client:
            await self._client.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("CurseForgeClient not entered as context manager")
        return self._client

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """GET *path* and return the decoded ``{data, pagination?}`` envelope."""
        try:
            resp = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            raise RemoteAPIError(None, str(e) or type(e).__name__) from e
        if not resp.is_success:
            raise RemoteAPIError(resp.status_code, resp.text)
        try:
            envelope = resp.json()
        except ValueError as e:
            raise RemoteAPIError(resp.status_code, resp.text) from e
        if not isinstance(envelope, dict) or "data" not in envelope:
            raise RemoteAPIError(resp.status_code, resp.text)
        return envelope

    @staticmethod
    def _parse(adapter: TypeAdapter[Any], envelope: dict[str, Any]) -> Any:
        try:
            return adapter.validate_python(envelope["data"])
        except ValidationError as e:
            raise RemoteAPIError(200, f"Unexpected response shape: {e}") from e

    async def search(
        self,
        query: str = "",
        category_id: int = 0,
        page: int = 0,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        sort_field: int | None = None,
        sort_order: str | None = None,
    ) -> SearchResult:
        """Search mods. An empty *query* and ``category_id=0`` apply no filter.

        *page* is zero-based and translated to CurseForge's item offset.
        """
        params: dict[str, Any] = {"gameId": self.game_id, "pageSize": page_size}
        if query:
            params["searchFilter"] = query
        if category_id > 0:
            params["categoryId"] = category_id
        if sort_field is not None:
            params["sortField"] = sort_field
        if sort_order:
            params["sortOrder"] = sort_order
        if page > 0:
            params["index"] = page * page_size

        envelope = await self._get("/mods/search", params)
        mods = self._parse(_MODS, envelope)
        total = 0
        if envelope.get("pagination"):
            total = Pagination.model_validate(envelope["pagination"]).total_count
        return SearchResult(mods=mods, total_count=total, page_index=page, page_size=page_size)

    async def get_mod(self, remote_id: int) -> CurseForgeMod:
        try:
            envelope = await self._get(f"/mods/{remote_id}")
        except RemoteAPIError as e:
            if e.status_code == 404:
                raise NotFoundError("remote mod", remote_id) from e
            raise
        try:
            return CurseForgeMod.model_validate(envelope["data"])
        except ValidationError as e:
            raise RemoteAPIError(200, f"Unexpected response shape: {e}") from e

    async def get_mod_files(self, remote_id: int) -> list[ModFile]:
        envelope = await self._get(f"/mods/{remote_id}/files")
        return self._parse(_FILES, envelope)

    async def get_categories(self) -> list[ModCategory]:
        envelope = await self._get("/categories", {"gameId": self.game_id})
        return self._parse(_CATEGORIES, envelope)
