"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.mapping import router as mapping_router
from routes.upc import router as upc_router

__all__ = [
    "mapping_router",
    "upc_router",
]
