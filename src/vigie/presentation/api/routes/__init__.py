"""
API routes module.

Exports all route routers for registration in main app.
"""

from vigie.presentation.api.routes.health import router as health_router
from vigie.presentation.api.routes.rpc_relay import router as rpc_relay_router

__all__ = [
    "health_router",
    "rpc_relay_router",
]
