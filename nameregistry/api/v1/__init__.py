"""
API v1 package.

Contains versioned API routes for the Name Registry API.
"""

from nameregistry.api.v1.routes import router

__all__ = ["router"]
