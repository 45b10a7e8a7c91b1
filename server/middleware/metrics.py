"""
Prometheus instrumentation for API requests

Counts requests by route template and status, and times them. Document
ids in paths are collapsed to :id so label cardinality stays bounded.
"""

import time

from fastapi import Request

from server.metrics import metrics

# Path segments that are followed by a document id
_ID_PARENTS = frozenset({"elections", "polls", "selections", "voters"})


async def metrics_middleware(request: Request, call_next):
    endpoint = route_template(request.url.path)
    started = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        metrics.api_requests.labels(
            endpoint=endpoint, method=request.method, status_code=status_code
        ).inc()
        metrics.api_request_duration.labels(
            endpoint=endpoint, method=request.method
        ).observe(time.perf_counter() - started)


def route_template(path: str) -> str:
    """Replace document ids in a request path

    /api/elections/3f9c0a1b2c3d4e5f6a7b/vote -> /api/elections/:id/vote
    /api/admin/polls/selections/9a8b -> /api/admin/polls/selections/:id
    """
    segments = [s for s in path.split("/") if s]
    templated = [
        ":id" if i > 0 and segments[i - 1] in _ID_PARENTS and segment != "selections" else segment
        for i, segment in enumerate(segments)
    ]
    return "/" + "/".join(templated)
