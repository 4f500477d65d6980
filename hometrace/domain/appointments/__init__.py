"""Appointments domain - the appointment record store and its HTTP surface"""

from .router import admin_router, router

__all__ = ["router", "admin_router"]
