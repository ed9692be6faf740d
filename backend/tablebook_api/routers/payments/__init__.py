"""
Payments routers - /api/payments/hitpay/*
"""

from .hitpay import router as hitpay_router, get_gateway

__all__ = ["hitpay_router", "get_gateway"]
