"""Entry point for running the game via ``python -m tictactoe``."""

from __future__ import annotations

import logging

import uvicorn

from . import ui
from .config import Settings


def main() -> None:
    """Start the FastAPI-powered Tic-Tac-Toe web server."""

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ui.AI_THINK_DELAY = settings.ai_delay
    uvicorn.run(
        ui.app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
