"""
Billing API Router
"""

from datetime import date
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from app.config import get_settings
from ..dependencies import ClubUserContext, get_current_user, require_admin
from ..models import (
    BillingStats,
    PaymentRecord,
    PaymentStatus,
    SubscriptionCancel,
    SubscriptionRecord
)
from .service import billing_service

router = APIRouter(prefix="/billing", tags=["Billing"])


def _page_size(limit: Optional[int]) -> int:
    settings = get_settings()
    return min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)


@router.get("/payments", response_model=List[PaymentRecord])
async def list_payments(
    status: Optional[PaymentStatus] = Query(None),
    days: int = Query(30, ge=1, le=365, description="Look-back window in days"),
    search: Optional[str] = Query(None, description="Guardian/player name or email"),
    limit: Optional[int] = Query(None, ge=1),
    user: ClubUserContext = Depends(require_admin)
):
    """Payments, newest first"""
    return await billing_service.list_payments(
        status.value if status else None, days, search, _page_size(limit)
    )


@router.get("/payments/export")
async def export_payments(
    status: Optional[PaymentStatus] = Query(None),
    days: int = Query(30, ge=1, le=365),
    search: Optional[str] = Query(None),
    user: ClubUserContext = Depends(require_admin)
):
    """Payments as a CSV download"""
    payments = await billing_service.list_payments(status.value if status else None, days, search)
    filename = f"payments-{date.today().isoformat()}.csv"
    return Response(
        content=billing_service.export_csv(payments),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/stats", response_model=BillingStats)
async def billing_stats(
    days: int = Query(30, ge=1, le=365),
    user: ClubUserContext = Depends(require_admin)
):
    """Revenue, active subscriptions and failed payments"""
    return await billing_service.get_stats(days)


@router.get("/subscriptions", response_model=List[SubscriptionRecord])
async def list_subscriptions(
    guardian_id: Optional[str] = Query(None),
    user: ClubUserContext = Depends(get_current_user)
):
    """Own subscriptions (admins: all, or one guardian's)"""
    if not user.is_admin():
        guardian_id = user.guardian_id
    return await billing_service.list_subscriptions(guardian_id)


@router.post("/subscriptions/{subscription_id}/cancel", response_model=SubscriptionRecord)
async def cancel_subscription(
    subscription_id: str,
    data: SubscriptionCancel,
    user: ClubUserContext = Depends(get_current_user)
):
    """Cancel a subscription"""
    try:
        subscription = await billing_service.get_subscription(subscription_id)
        if not user.is_admin() and subscription["guardian_id"] != user.guardian_id:
            raise HTTPException(status_code=403, detail="Not your subscription")
        return await billing_service.cancel_subscription(subscription_id, data.reason)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
