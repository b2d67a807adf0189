"""
Security middleware and row-level security context helpers.
"""

import logging
import os
from typing import Callable, Optional

from fastapi import Request, Response
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

# JSON API: nothing to load, nothing may frame it
CSP_POLICY = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; form-action 'none'"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to all responses.

    Paths in ``exclude_paths`` (health checks, docs) are passed through untouched.
    """

    def __init__(self, app, exclude_paths: Optional[list[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or []

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        path = request.url.path
        if any(path.startswith(excluded) for excluded in self.exclude_paths):
            return response

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = CSP_POLICY
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"

        if IS_PRODUCTION:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        # Tenant data must not be cached by browsers or proxies
        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"

        return response


def set_rls_context(db: Session, tenant_id: Optional[str]) -> None:
    """
    Set the tenant for PostgreSQL row-level security policies on this session.

    Policies read ``current_setting('app.current_tenant_id')``. Other dialects
    (SQLite in tests) have no RLS; repositories filter on tenant_id regardless.
    """
    if not tenant_id or db.get_bind().dialect.name != "postgresql":
        return

    try:
        db.execute(
            text("SELECT set_config('app.current_tenant_id', :tenant_id, false)"),
            {"tenant_id": str(tenant_id)},
        )
        logger.debug(f"RLS context set for tenant_id={tenant_id}")
    except Exception as e:
        logger.error(f"Failed to set RLS context for tenant_id={tenant_id}: {e}")
        raise


def clear_rls_context(db: Session) -> None:
    """
    Clear the RLS context for a database session.
    """
    if db.get_bind().dialect.name != "postgresql":
        return

    try:
        db.execute(text("SELECT set_config('app.current_tenant_id', '', false)"))
        logger.debug("RLS context cleared")
    except Exception as e:
        logger.error(f"Failed to clear RLS context: {e}")
