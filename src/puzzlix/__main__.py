"""Serve the API with uvicorn."""

from __future__ import annotations

import uvicorn

from puzzlix.config import get_settings
from puzzlix.utils.logger import set_level


def main() -> None:
    settings = get_settings()
    level = set_level(settings.log_level)
    uvicorn.run(
        "puzzlix.api:app",
        host=settings.host,
        port=settings.port,
        log_level=level,
    )


if __name__ == "__main__":
    main()
