"""
FastAPI dependencies for the Massava application.
"""

from .permissions import get_permission_service, require_any_permission, require_permission

__all__ = ["get_permission_service", "require_any_permission", "require_permission"]
