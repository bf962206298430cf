"""
api/main.py — punkt wejścia FastAPI.

Lifespan:
  - Tworzy DiceEngine z Settings (limity stałe przez całe życie aplikacji)
  - Otwiera JsonFileStore w settings.store_dir
  - Łączy oba w DiceCommands, współdzielone przez wszystkie routery

Każdy DiceError zamieniany jest na 422 z polami strukturalnymi błędu
(position / expected / found dla błędów składni, kind dla błędów liczenia).
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from adapters.dice_commands import DiceCommands
from adapters.store.json_file_store import JsonFileStore
from api.routers import history, macros, roll
from api.schemas import HealthResponse
from config import Settings
from dice_engine import DiceEngine
from errors import DiceError, EvalError, LexError, ParseError

logger = logging.getLogger("rollwright.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    app.state.engine = DiceEngine.from_settings(settings)
    app.state.store = JsonFileStore(settings.store_dir)
    app.state.commands = DiceCommands(
        engine=app.state.engine,
        settings=settings,
        store=app.state.store,
    )

    logger.info("Rollwright API ready (store: %s).", settings.store_dir)
    yield
    logger.info("Shutting down.")


def error_payload(exc: DiceError) -> dict:
    content: dict = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, LexError):
        content["position"] = exc.position
        content["unexpected_char"] = exc.unexpected_char
    elif isinstance(exc, ParseError):
        content["position"] = exc.position
        content["expected"] = list(exc.expected)
        content["found"] = exc.found
    elif isinstance(exc, EvalError):
        content["kind"] = exc.kind.value
        content["context"] = exc.context
    return content


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level.upper())

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Routers
    app.include_router(roll.router)
    app.include_router(macros.router)
    app.include_router(history.router)

    # Health
    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health(request: Request):
        store_status = "ok"
        if not request.app.state.store.root.is_dir():
            store_status = "not created yet"
        return HealthResponse(
            status="ok",
            store=store_status,
            version=settings.app_version,
        )

    # Globalny handler błędów
    @app.exception_handler(DiceError)
    async def dice_error_handler(request: Request, exc: DiceError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=422, content=error_payload(exc))

    return app


app = create_app()
