import logging
import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Per-request SQL statement counter
# ---------------------------------------------------------------------------

query_count_var: ContextVar[int] = ContextVar("query_count", default=0)


def install_query_counter(engine) -> None:
    """
    Count every statement *engine* sends to the database into
    ``query_count_var``, including the savepoint and row-lock statements
    issued by the moderation helpers.

    Call once per engine (``database.py`` and ``tests/conftest.py``).
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        query_count_var.set(query_count_var.get() + 1)


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Pure ASGI middleware that reports per-request diagnostics.

    Adds ``X-Response-Time-Ms`` and ``X-Query-Count`` to every HTTP
    response and writes one DEBUG log line per request.  A pure ASGI
    class is used instead of ``BaseHTTPMiddleware`` so the handler runs in
    the same task and its ``ContextVar`` updates are visible here.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query_count_var.set(0)
        start = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(query_count_var.get()).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            logger.debug(
                "%s %s -> %s in %.2fms (%d queries)",
                scope.get("method"),
                scope.get("path"),
                status_code,
                (time.perf_counter() - start) * 1000,
                query_count_var.get(),
            )
