"""
Request audit middleware.
Attaches a correlation id to every request and logs access to patient endpoints.
"""
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from ..core.config import settings
from ..core.errors import unhandled_error_handler
from ..core.security import principal_from_token
from ..models.base import generate_uuid

logger = logging.getLogger(__name__)

# Endpoints that touch patient data - requests to these paths are logged
PHI_PATH_SEGMENTS = ("/patients",)


def get_correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or generate_uuid()


class AuditMiddleware(BaseHTTPMiddleware):
    """Propagates X-cdr-correlation-id and auto-logs access to patient endpoints."""

    async def dispatch(self, request: Request, call_next):
        header = settings.CORRELATION_ID_HEADER
        correlation_id = request.headers.get(header) or generate_uuid()
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
        except Exception as exc:
            # Unhandled errors still get the correlation header and an access line
            response = await unhandled_error_handler(request, exc)
        response.headers[header] = correlation_id

        path = request.url.path
        if not any(segment in path for segment in PHI_PATH_SEGMENTS):
            return response

        actor = "default"
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            principal = principal_from_token(auth_header[7:])
            actor = str(principal.person_id) if principal else "invalid-token"

        action_map = {
            "GET": "view",
            "POST": "create",
            "PUT": "update",
            "PATCH": "update",
            "DELETE": "void",
        }
        action = action_map.get(request.method, request.method.lower())
        ip_address = request.client.host if request.client else None

        logger.info(
            "access action=%s path=%s status=%s actor=%s ip=%s correlation_id=%s",
            action, path, response.status_code, actor, ip_address, correlation_id,
        )
        return response
