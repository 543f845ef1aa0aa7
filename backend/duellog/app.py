from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette import status
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from duellog.config import Environment, config, environment
from duellog.database import database
from duellog.routes import matches, sessions, users
from duellog.utils.alembic import run_migrations_to_head
from duellog.utils.errors import (
    DuplicateDeckError,
    LedgerError,
    MatchValidationError,
    NotFoundError,
    SessionVersionConflict,
)
from duellog.utils.logging import logger


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    await database.connect()
    if config.auto_run_migrations and environment is not Environment.CI:
        run_migrations_to_head()

    yield

    logger.info("Shutting down, disconnecting from database")
    await database.disconnect()


app = FastAPI(
    title="Duellog API",
    docs_url="/docs",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in config.cors_origins.split(",")],
    allow_origin_regex=config.cors_origin_regex or None,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/ping", summary="Healthcheck ping")
async def ping() -> str:
    return "ping"


@app.exception_handler(MatchValidationError)
async def match_validation_exception_handler(
    _: Request, exc: MatchValidationError
) -> JSONResponse:
    return JSONResponse(
        {"detail": str(exc), "fields": exc.fields},
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
    )


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(_: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_404_NOT_FOUND)


@app.exception_handler(SessionVersionConflict)
async def version_conflict_exception_handler(
    _: Request, exc: SessionVersionConflict
) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_409_CONFLICT)


@app.exception_handler(DuplicateDeckError)
async def duplicate_deck_exception_handler(_: Request, exc: DuplicateDeckError) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST)


@app.exception_handler(LedgerError)
async def ledger_exception_handler(_: Request, exc: LedgerError) -> JSONResponse:
    logger.error(f"Unhandled ledger error: {exc}")
    return JSONResponse({"detail": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST)


routers = {
    "Sessions": sessions.router,
    "Matches": matches.router,
    "Users": users.router,
}

for tag, router in routers.items():
    app.include_router(router, tags=[tag])
