"""Entry point for the standalone content store process."""

import uvicorn

from hyprism_content.config import settings
from hyprism_content.main import app


def main() -> None:
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
