# src/sunex_gate/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import orders_router, system_router

__all__ = ["orders_router", "system_router"]
