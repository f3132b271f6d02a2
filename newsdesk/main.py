import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newsdesk.config import settings
from newsdesk.database import engine
from newsdesk.exceptions import DuplicateError, ModerationConflictError, NewsdeskError, NotFoundError
from newsdesk.middleware import TimingMiddleware
from newsdesk.routers import articles, categories, comments, contact, dashboard, newsletter, users

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Newsdesk starting (env=%s)", settings.APP_ENV)
    yield
    await engine.dispose()


app = FastAPI(
    title="Newsdesk Admin API",
    description="Back-office API for a news site: articles, categories, comment moderation, "
    "users, newsletter and contact inbox",
    version=VERSION,
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Domain errors -> HTTP
_STATUS_BY_ERROR: dict[type[NewsdeskError], int] = {
    NotFoundError: 404,
    ModerationConflictError: 409,
    DuplicateError: 409,
}


@app.exception_handler(NewsdeskError)
async def newsdesk_error_handler(request: Request, exc: NewsdeskError) -> JSONResponse:
    status_code = next(
        (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)), 400
    )
    logger.warning(
        "%s %s failed with %s: %s", request.method, request.url.path, exc.code, exc.message
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# Routers
app.include_router(articles.router)
app.include_router(categories.router)
app.include_router(comments.router)
app.include_router(users.router)
app.include_router(newsletter.router)
app.include_router(contact.router)
app.include_router(dashboard.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": VERSION}
