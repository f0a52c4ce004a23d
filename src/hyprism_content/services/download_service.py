"""Streaming file transfer used by the mod installer."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Protocol

import httpx

from hyprism_content.errors import IOFailure, RemoteAPIError

logger = logging.getLogger(__name__)

_STREAM_CHUNK_SIZE = 65_536  # 64 KB

TransferProgress = Callable[[int, int], None]


class Downloader(Protocol):
    def __call__(
        self,
        url: str,
        dest: Path,
        *,
        progress_callback: TransferProgress | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> Awaitable[None]: ...


async def download_file(
    url: str,
    dest: Path,
    *,
    progress_callback: TransferProgress | None = None,
    cancel_event: asyncio.Event | None = None,
    timeout: float = 300.0,
) -> None:
    """Stream *url* to *dest*, reporting ``(downloaded, total)`` after each chunk.

    *dest* is left as-is on failure; removing it is the caller's job.

    Raises:
        asyncio.CancelledError: If *cancel_event* is set mid-transfer.
        RemoteAPIError: On a non-2xx response or a transport error.
        IOFailure: If *dest* cannot be written.
    """
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        async with (
            httpx.AsyncClient(follow_redirects=True, timeout=timeout) as cdn_client,
            cdn_client.stream("GET", url) as resp,
        ):
            if not resp.is_success:
                await resp.aread()
                raise RemoteAPIError(resp.status_code, resp.text)
            total = int(resp.headers.get("Content-Length", 0))
            downloaded = 0
            with open(dest, "wb") as f:
                async for chunk in resp.aiter_bytes(chunk_size=_STREAM_CHUNK_SIZE):
                    if cancel_event and cancel_event.is_set():
                        raise asyncio.CancelledError("Download cancelled")
                    f.write(chunk)
                    downloaded += len(chunk)
                    if progress_callback:
                        progress_callback(downloaded, total)
    except httpx.HTTPError as e:
        raise RemoteAPIError(None, str(e) or type(e).__name__) from e
    except OSError as e:
        raise IOFailure("Failed to write download", dest) from e
    logger.debug("Downloaded %s (%d bytes)", dest.name, downloaded)
