"""
Prometheus registry shared by the application's metrics modules.
"""

import logging

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

logger = logging.getLogger(__name__)

# Dedicated registry so tests and multiple app instances do not collide with
# the prometheus_client default registry.
registry = CollectorRegistry()


def render_latest() -> tuple[bytes, str]:
    """Return the exposition payload and its content type."""
    return generate_latest(registry), CONTENT_TYPE_LATEST


__all__ = ["registry", "render_latest"]
