"""Run the API with uvicorn: ``python -m scoreboard``."""

from __future__ import annotations

import uvicorn

from .core import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run(
        "scoreboard.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()
