from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.errors import ValidationFailed
from app.core.tenant import get_firm_id, set_firm_id


class FirmMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        firm_id = request.headers.get("X-Firm-Id") or None
        set_firm_id(firm_id)
        request.state.firm_id = firm_id
        return await call_next(request)


def require_firm_id(request: Request) -> str:
    """Dependency for firm-scoped endpoints."""
    firm_id = getattr(request.state, "firm_id", None) or get_firm_id()
    if not firm_id:
        raise ValidationFailed("Firm ID is required")
    return firm_id
