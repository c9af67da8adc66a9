"""Run the Cinemate API with ``python -m cinemate``."""

from __future__ import annotations

import uvicorn

from app.config import settings


def main() -> None:
    """Serve ``cinemate:app``; auto-reload only while developing."""

    development = settings.environment == "development"
    uvicorn.run(
        "cinemate:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=development,
        log_level="debug" if development else "info",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
