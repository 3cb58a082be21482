from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, load_settings
from .errors import install_error_handlers
from .logging import install_app_logging, setup_logging
from .models.message import HealthResponse, ModelStatus
from .routers import api_router
from .services.llm import OllamaClient, describe
from .state import State


def create_app(settings: Optional[Settings] = None, model_client: Any = None) -> FastAPI:
    # Settings read IRIS_* env vars and the optional .env files
    repo_root = Path(__file__).resolve().parent.parent
    if settings is None:
        settings = load_settings()
    setup_logging(settings.log_level)
    log = logging.getLogger("app")

    if model_client is None:
        model_client = OllamaClient.from_settings(settings)
    state = State.create(settings, model_client, base_dir=repo_root)
    log.info(f"state ready (store={settings.store_backend}, model={describe(model_client)})")

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        state.close()

    app = FastAPI(title="IRIS Worker", version=__version__, lifespan=lifespan)

    # Attach config/state
    app.state.settings = settings
    app.state.state = state

    # CORS
    allow = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_app_logging(app)
    install_error_handlers(app)

    app.include_router(api_router, prefix="/api")

    @app.get("/api/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        status_of = getattr(state.model_client, "status", None)
        status = status_of() if callable(status_of) else {"available": False, "model_loaded": False, "error": "no model client"}
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            model=ModelStatus(**status),
        )

    return app


# Convenience for `uvicorn iris_worker.app:app`
app = create_app()
