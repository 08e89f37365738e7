"""
Metrics route exposing the pipeline's Prometheus registry.
"""

import logging

from fastapi import APIRouter, Response

from shared.metrics.prometheus import render_latest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["metrics"])


@router.get("/metrics", include_in_schema=False)
async def get_metrics() -> Response:
    """Prometheus exposition of plugin load, search, import and image metrics."""
    payload, content_type = render_latest()
    return Response(content=payload, media_type=content_type)
