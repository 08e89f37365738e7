"""
Version 2 API modules.
"""

from webui.api.v2.plugins import router as plugins_router

__all__ = ["plugins_router"]
