"""
Routes package for API endpoints.

This module exports all route collections for the API.
"""
from wordswap.app.api.routes.status_routes import router as status_router
from wordswap.app.api.routes.pdf_routes import router as pdf_router

# Export all routers
__all__ = [
    "status_router",
    "pdf_router",
]
