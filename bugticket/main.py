"""
Bug Ticket Generator — FastAPI application entry point.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from structlog import get_logger

from bugticket.api.deps import GENERATE_LIMITER, PUSH_JIRA_LIMITER, TEST_JIRA_LIMITER
from bugticket.api.generate import router as generate_router
from bugticket.api.jira import router as jira_router
from bugticket.core.config import Settings, load_ticket_config, settings
from bugticket.core.exceptions import BugTicketError, ConfigurationError, RateLimitExceededError
from bugticket.core.logging import setup_logging
from bugticket.llm.client import TicketGenerator
from bugticket.models.domain import TicketConfig
from bugticket.security.rate_limiter import RateLimiter

logger = get_logger()

VERSION = "0.3.0"


def check_startup(app_settings: Settings) -> None:
    """Refuse to start without an LLM API key."""
    if not app_settings.llm_api_key:
        raise ConfigurationError(
            "Server configuration error: API key not set. "
            "Please configure OPENAI_API_KEY."
        )


def build_rate_limiters(app_settings: Settings) -> dict[str, RateLimiter]:
    window = app_settings.RATE_LIMIT_WINDOW_SECONDS
    return {
        GENERATE_LIMITER: RateLimiter(
            app_settings.GENERATE_RATE_LIMIT, window, name=GENERATE_LIMITER
        ),
        TEST_JIRA_LIMITER: RateLimiter(
            app_settings.JIRA_RATE_LIMIT, window, name=TEST_JIRA_LIMITER
        ),
        PUSH_JIRA_LIMITER: RateLimiter(
            app_settings.JIRA_RATE_LIMIT, window, name=PUSH_JIRA_LIMITER
        ),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup + shutdown hooks."""
    check_startup(app.state.settings)
    logger.info("startup", service="bug-ticket-generator", model=app.state.settings.LLM_MODEL)
    yield
    logger.info("shutdown", service="bug-ticket-generator")


async def handle_app_error(request: Request, exc: BugTicketError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitExceededError):
        headers = {"Retry-After": str(max(1, round(exc.retry_after)))}
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    missing = sorted({
        str(err["loc"][-1])
        for err in exc.errors()
        if err.get("type") == "missing" and err.get("loc")
    })
    message = (
        f"Missing required fields: {', '.join(missing)}"
        if missing
        else "Invalid request body"
    )
    details = [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse({"error": message, "details": details}, status_code=400)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(
    app_settings: Settings | None = None,
    ticket_config: TicketConfig | None = None,
) -> FastAPI:
    """Build the application with its own limiter state and LLM client."""
    app_settings = app_settings or settings
    setup_logging(app_settings.LOG_LEVEL, app_settings.LOG_JSON)

    app = FastAPI(
        title="Bug Ticket Generator",
        description=(
            "Turns a rough bug description and screenshots into a formatted "
            "ticket and optionally files it in Jira."
        ),
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.ticket_config = ticket_config or TicketConfig.model_validate(
        load_ticket_config(app_settings.TICKET_CONFIG_PATH)
    )
    app.state.rate_limiters = build_rate_limiters(app_settings)
    app.state.generator = TicketGenerator(app_settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["POST", "OPTIONS", "GET"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(BugTicketError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Routes
    app.include_router(generate_router)
    app.include_router(jira_router)

    @app.get("/")
    @app.get("/api/health")
    async def health():
        """Health check."""
        return {
            "status": "healthy",
            "service": "bug-ticket-generator",
            "version": VERSION,
        }

    return app


app = create_app()
