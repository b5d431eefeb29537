import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from quizhub.config import Settings, settings
from quizhub.database.session import (
    build_sqlalchemy_database_url_from_settings,
    get_engine,
    get_local_session,
)
from quizhub.exceptions import register_exception_handlers
from quizhub.log import get_logger
from quizhub.router import quizz_router, users_router

log = get_logger("quizhub.api")


def create_app(_settings: Optional[Settings] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The database engine and session factory are created here, once per
    process, and handed to request handlers through ``app.state``.

    Parameters:
        _settings (Settings, optional): Defaults to the module-level settings.
        engine (Engine, optional): Pre-built engine, mainly for tests.

    Returns:
        FastAPI: The configured application.
    """
    _settings = _settings or settings
    if engine is None:
        engine = get_engine(build_sqlalchemy_database_url_from_settings(_settings))

    app = FastAPI(title=_settings.PROJECT_NAME, version=_settings.API_VERSION)
    app.state.settings = _settings
    app.state.engine = engine
    app.state.session_factory = get_local_session(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            _settings.FRONTEND_URL,
            "http://localhost:3000",
            "http://localhost:5173",  # For Vite development
        ],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "Origin", "X-Requested-With", "Accept"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        log.info("%s %s %s - %.0fms", request.method, request.url.path, response.status_code, duration_ms)
        return response

    register_exception_handlers(app)

    app.include_router(users_router, prefix=f"{_settings.API_PREFIX}/user", tags=["User"])
    app.include_router(quizz_router, prefix=f"{_settings.API_PREFIX}/quizz", tags=["Quiz"])

    #####################
    ### Root Endpoint ###
    #####################
    @app.get("/")
    def read_root():
        return {"name": _settings.PROJECT_NAME, "environment": _settings.ENV, "version": _settings.API_VERSION}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
