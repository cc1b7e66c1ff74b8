"""Request context middleware: request id, route-level latency metrics and access log"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from wallet_gateway.infrastructure.observability.logging import log_request
from wallet_gateway.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


def resolve_request_id(incoming: str | None) -> str:
    """Reuse a caller-supplied id when it is sane, otherwise mint one"""
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
        return incoming
    return str(uuid.uuid4())


def route_template(request: Request) -> str:
    # Unmatched paths (404) have no route; collapse them so label cardinality stays bounded
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Per-request context for the wallet API.

    Sets request.state.request_id for error mapping, echoes it in the
    response, and records latency and an access log keyed by route template
    so session ids never become metric label values.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        endpoint = route_template(request)
        request_duration_histogram.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).observe(duration)
        log_request(
            request_id,
            request.method,
            endpoint,
            response.status_code,
            duration * 1000,
            session_id=request.path_params.get("session_id"),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
