"""Error taxonomy shared by the store, services and the CurseForge client.

Callers branch on the exception type rather than on message text; the HTTP
layer maps each type to a status code in ``hyprism_content.main``.
"""

from pathlib import Path


class ContentStoreError(Exception):
    pass


class NotFoundError(ContentStoreError):
    def __init__(self, kind: str, key: str | int) -> None:
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class IOFailure(ContentStoreError):
    def __init__(self, message: str, path: Path | str | None = None) -> None:
        self.path = str(path) if path is not None else None
        super().__init__(f"{message}: {path}" if path is not None else message)


class RemoteAPIError(ContentStoreError):
    def __init__(self, status_code: int | None, body: str) -> None:
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"CurseForge request failed: {body}")
        else:
            super().__init__(f"CurseForge API error: {status_code} - {body[:200]}")


class ValidationFailure(ContentStoreError):
    pass


class OperationCancelled(ContentStoreError):
    pass
