"""FastAPI web server for the CRM task board."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..board.engine import BoardEngine
from ..board.store import StoreCorruptError
from .board_api import create_board_router


def create_app(
    project_dir: Optional[Path] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        project_dir: Default project directory.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="CRM Task Board",
        description="Kanban board with multi-select drag and drop reordering",
        version=__version__,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.default_project_dir = project_dir
    app.state.engines = {}

    def _get_project_dir(project_dir_param: Optional[str] = None) -> Path:
        """Get project directory from parameter or default."""
        if project_dir_param:
            return Path(project_dir_param)
        if app.state.default_project_dir:
            return app.state.default_project_dir
        return Path.cwd()

    def _get_engine(project_dir_param: Optional[str] = None) -> BoardEngine:
        path = _get_project_dir(project_dir_param).resolve()
        engine = app.state.engines.get(path)
        if engine is None:
            engine = BoardEngine(path)
            app.state.engines[path] = engine
            logger.info("Opened board for {}", path)
        return engine

    @app.exception_handler(StoreCorruptError)
    async def store_corrupt_handler(request, exc: StoreCorruptError):
        logger.error("Task store unreadable: {}", exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "CRM Task Board",
            "version": __version__,
            "status": "running",
        }

    app.include_router(create_board_router(_get_engine))
    return app
