"""
Auth router - /api/auth/*
"""

from .routes import router

__all__ = ["router"]
