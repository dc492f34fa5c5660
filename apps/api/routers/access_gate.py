"""Access gate middleware: redirects requests according to the access policy."""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from routers.auth_scope import resolve_request_principal
from services.access_policy import DEFAULT_ACCESS_POLICY, AccessPolicy

logger = logging.getLogger(__name__)


class AccessGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, policy: Optional[AccessPolicy] = None):
        super().__init__(app)
        self.policy = policy or DEFAULT_ACCESS_POLICY

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if self.policy.is_exempt(path):
            return await call_next(request)

        principal_id = resolve_request_principal(request)
        decision = self.policy.evaluate(path, principal_id)
        if decision.allowed:
            return await call_next(request)

        logger.info(
            "access_gate redirect %s %s -> %s (%s)",
            request.method,
            path,
            decision.location,
            decision.reason,
        )
        return RedirectResponse(url=str(request.url.replace(path=decision.location, query="")))
