"""Route guard - the request-time enforcement point.

guard(path, session) = decide(classify(path), resolve(session))

Public paths short-circuit before any role lookup. Denials are returned, not
raised; the middleware turns a Redirect into an HTTP redirect so privileged
routes are never confirmed with an error page.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from vertex_access.core.decisions import ALLOW, Decision, Redirect, decide
from vertex_access.core.structured_logging import build_log_context
from vertex_access.core.zones import Zone, classify
from vertex_access.schemas.auth import SessionHandle
from vertex_access.services.identity_service import CookieSessionProvider, RoleResolver

logger = logging.getLogger(__name__)


def guard(request_path: str, session: SessionHandle | None, resolver: RoleResolver) -> Decision:
    """Synchronous guard for non-async callers (CLI, tests, other frameworks)."""
    zone = classify(request_path)
    if zone == Zone.PUBLIC:
        return ALLOW
    return decide(zone, resolver.resolve(session))


async def guard_async(
    request_path: str,
    session: SessionHandle | None,
    resolver: RoleResolver,
) -> Decision:
    """Guard with a bounded role lookup; timeouts deny."""
    zone = classify(request_path)
    if zone == Zone.PUBLIC:
        return ALLOW
    return decide(zone, await resolver.resolve_async(session))


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """
    Runs the guard on every request.

    The resolver is looked up on app.state at request time so tests can swap
    stores/caches without rebuilding the middleware stack.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        resolver: RoleResolver = request.app.state.role_resolver
        session = CookieSessionProvider(request.cookies).get_session()
        decision = await guard_async(request.url.path, session, resolver)

        if isinstance(decision, Redirect):
            logger.info(
                "Route guard redirect to %s",
                decision.target,
                extra=build_log_context(
                    subject_id=session.subject_id if session else None,
                    zone=classify(request.url.path),
                    path=request.url.path,
                    method=request.method,
                ),
            )
            return RedirectResponse(decision.target, status_code=303)

        request.state.session = session
        return await call_next(request)
