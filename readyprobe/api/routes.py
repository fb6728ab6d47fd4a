"""Readiness route.

Endpoints:
  GET /ready — 200 while the last successful probe is fresh, 500 otherwise
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

router = APIRouter()


@router.get("/ready")
def ready(request: Request) -> Response:
    """Empty-bodied readiness response; the status code carries the answer."""
    tracker = request.app.state.tracker
    return Response(status_code=200 if tracker.is_ready() else 500)
