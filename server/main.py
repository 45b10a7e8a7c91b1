"""
campusvote API Server

FastAPI application for the university voting backend. Routes are thin;
voting rules live in voting/ and storage in database/.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import config, get_logger
from database.db import Database
from exceptions import (
    CampusVoteError,
    DatabaseConnectionError,
    NotFoundError,
    ResultsNotAvailableError,
    ValidationError,
)
from identity.jwt import TokenIssuer
from server.metrics import metrics
from server.middleware.logging import log_requests
from server.middleware.metrics import metrics_middleware
from server.middleware.request_id import RequestIDMiddleware
from server.routes import admin, monitoring
from server.routes.ballots import elections_router, polls_router
from voting.guard import Clock, utc_clock
from voting.service import VotingService

logger = get_logger(__name__).bind(component="api")

RETRY_AFTER_SECONDS = 2


def _build_token_issuer() -> Optional[TokenIssuer]:
    if not config.JWT_SECRET:
        logger.warning("CAMPUSVOTE_JWT_SECRET not set, voter endpoints will return 503")
        return None
    return TokenIssuer(config.JWT_SECRET)


def _error_body(reason: str, message: str, **extra) -> dict:
    return {"accepted": False, "reason": reason, "message": message, **extra}


def register_exception_handlers(app: FastAPI) -> None:
    """Map the campusvote exception hierarchy onto HTTP responses"""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content=_error_body("not_found", exc.args[0]))

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content=_error_body("validation_error", exc.args[0], field=exc.field),
        )

    @app.exception_handler(ResultsNotAvailableError)
    async def results_hidden_handler(request: Request, exc: ResultsNotAvailableError):
        return JSONResponse(
            status_code=403,
            content=_error_body("results_not_available", exc.args[0], status=exc.status),
        )

    @app.exception_handler(DatabaseConnectionError)
    async def unavailable_handler(request: Request, exc: DatabaseConnectionError):
        metrics.record_error("store", exc)
        logger.warning("store unavailable", error=str(exc))
        return JSONResponse(
            status_code=503,
            content=_error_body(
                "unavailable",
                "The voting service is temporarily unavailable. Please try again.",
                retryable=True,
            ),
            headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
        )

    @app.exception_handler(CampusVoteError)
    async def campusvote_error_handler(request: Request, exc: CampusVoteError):
        metrics.record_error("api", exc)
        logger.error("unhandled campusvote error", error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content=_error_body("internal_error", "Something went wrong. Please try again later."),
        )


def create_app(
    database: Optional[Database] = None,
    token_issuer: Optional[TokenIssuer] = None,
    clock: Clock = utc_clock,
) -> FastAPI:
    """Build the API application

    Args:
        database: Pre-built database (tests); otherwise created from config at startup
        token_issuer: Voter token verifier; otherwise built from CAMPUSVOTE_JWT_SECRET
        clock: Current-time source shared by the voting core
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the database (unless injected) and the voting service"""
        owns_db = database is None
        db = await Database.from_config() if owns_db else database
        app.state.db = db
        app.state.voting = VotingService.build(db, metrics=metrics, clock=clock)
        app.state.token_issuer = token_issuer or _build_token_issuer()
        logger.info("api started", config_summary=config.summary())

        yield

        if owns_db:
            try:
                await db.close()
                logger.info("closed database")
            except Exception as e:
                # Don't crash on shutdown - log and continue
                logger.error("error closing database", error=str(e), exc_info=True)

    app = FastAPI(title="campusvote API", description="University e-voting", lifespan=lifespan)

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    # Request ID middleware (must be early in stack for tracing)
    app.add_middleware(RequestIDMiddleware)

    # FastAPI middleware stack: last registered runs first
    @app.middleware("http")
    async def log_requests_middleware(request, call_next):
        return await log_requests(request, call_next)

    @app.middleware("http")
    async def metrics_middleware_wrapper(request, call_next):
        return await metrics_middleware(request, call_next)

    register_exception_handlers(app)

    # Mount routers
    app.include_router(monitoring.router)  # Root, health and metrics
    app.include_router(elections_router)   # Voter election endpoints
    app.include_router(polls_router)       # Voter poll endpoints
    app.include_router(admin.router)       # Admin endpoints

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    if not config.ADMIN_TOKEN:
        logger.warning("no admin token configured, admin endpoints will not work")
        logger.warning("set CAMPUSVOTE_ADMIN_TOKEN to enable admin functionality")

    logger.info("starting campusvote API server", config_summary=config.summary())

    uvicorn.run(
        app,
        host=config.API_HOST,
        port=config.API_PORT,
        access_log=False,  # Request logging middleware replaces uvicorn access logs
    )
