"""
Billing Module

Payments, subscriptions and revenue figures (amounts in pence)
"""

from .router import router as billing_router
from .service import billing_service, format_pence

__all__ = ["billing_router", "billing_service", "format_pence"]
