"""Storefront API package."""

from ordering.api.routes import fake_router, order_router, session_router

__all__ = ["session_router", "order_router", "fake_router"]
