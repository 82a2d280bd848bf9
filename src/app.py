"""Storefront FastAPI application.

Serves the cart and order-submission engine over HTTP. Each request under
a storefront prefix runs inside the Ordering domain context, with the
session id bound to the structured log context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Logging & domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV selects the log renderer (JSON in production, console otherwise)
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.domain import ordering
from ordering.utils.logging import bind_session, clear_session, configure_logging

configure_logging()
ordering.init()

_STOREFRONT_PREFIXES = ("/sessions", "/orders", "/fakes")


def _session_id_from_path(path: str) -> str | None:
    parts = path.strip("/").split("/")
    if len(parts) >= 2 and parts[0] == "sessions":
        return parts[1]
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="B2B storefront — cart and order submission",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the Ordering domain context for storefront requests."""
    path = request.url.path
    if not path.startswith(_STOREFRONT_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    clear_session()
    session_id = _session_id_from_path(path)
    if session_id is not None:
        bind_session(session_id=session_id)
    try:
        with ordering.domain_context():
            return await call_next(request)
    finally:
        clear_session()


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import fake_router, order_router, session_router  # noqa: E402
from ordering.storefront import get_registry  # noqa: E402

app.include_router(session_router)
app.include_router(order_router)
app.include_router(fake_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"ordering": {"name": ordering.name}},
            "sessions": len(get_registry()),
        }
    )
