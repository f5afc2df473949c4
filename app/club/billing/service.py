"""
Billing Service

Read side of payments and subscriptions. Payment rows are written by the
hosted payment integration; this service lists, summarises and exports
them, and cancels subscriptions.
"""

import csv
import io
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta

from loguru import logger

from database.supabase_client import get_supabase_client

CSV_HEADER = ["Date", "Guardian", "Player", "Amount", "Currency", "Status"]


def format_pence(pence: Optional[int]) -> str:
    """1250 → "£12.50" """
    return f"£{(pence or 0) / 100:.2f}"


def _full_name(row: Optional[Dict[str, Any]]) -> str:
    if not row:
        return ""
    return f"{row.get('first_name') or ''} {row.get('last_name') or ''}".strip()


def subscription_view(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(row["id"]),
        "guardian_id": str(row["guardian_id"]) if row.get("guardian_id") else None,
        "player_id": str(row["player_id"]) if row.get("player_id") else None,
        "status": row.get("status") or "active",
        "amount_pence": row.get("amount_pence") or 0,
        "amount_display": format_pence(row.get("amount_pence")),
        "billing_cycle": row.get("billing_cycle"),
        "start_date": row.get("start_date"),
        "next_billing_date": row.get("next_billing_date"),
        "cancelled_at": row.get("cancelled_at"),
        "cancellation_reason": row.get("cancellation_reason"),
    }


class BillingService:
    """Billing service"""

    @property
    def supabase(self):
        return get_supabase_client()

    # =============================================
    # Payments
    # =============================================

    async def list_payments(
        self,
        status: Optional[str] = None,
        days: int = 30,
        search: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Payments in the last N days, newest first

        Each payment is joined through its subscription to the guardian and
        player. The search matches guardian name, player name or email.
        """
        since = (datetime.now() - timedelta(days=days)).isoformat()
        query = self.supabase.table("payments").select("*").gte("created_at", since)
        if status:
            query = query.eq("status", status)
        payments = query.order("created_at", desc=True).execute().data or []

        subscriptions = self._by_id("subscriptions", "id, guardian_id, player_id", [
            p.get("subscription_id") for p in payments
        ])
        guardians = self._by_id("guardians", "id, first_name, last_name, email", [
            s.get("guardian_id") for s in subscriptions.values()
        ] + [p.get("guardian_id") for p in payments])
        players = self._by_id("players", "id, first_name, last_name", [
            s.get("player_id") for s in subscriptions.values()
        ])

        records = []
        for payment in payments:
            subscription = subscriptions.get(str(payment.get("subscription_id")), {})
            guardian = guardians.get(str(subscription.get("guardian_id") or payment.get("guardian_id")))
            player = players.get(str(subscription.get("player_id")))
            records.append({
                "id": str(payment["id"]),
                "date": payment.get("created_at"),
                "guardian_name": _full_name(guardian),
                "guardian_email": (guardian or {}).get("email"),
                "player_name": _full_name(player),
                "amount_pence": payment.get("amount_pence") or 0,
                "amount_display": format_pence(payment.get("amount_pence")),
                "currency": (payment.get("currency") or "gbp").upper(),
                "status": payment.get("status") or "pending",
                "description": payment.get("description"),
                "failure_reason": payment.get("failure_reason"),
            })

        if search:
            needle = search.strip().lower()
            records = [
                r for r in records
                if needle in r["guardian_name"].lower()
                or needle in r["player_name"].lower()
                or needle in (r["guardian_email"] or "").lower()
            ]

        return records[:limit] if limit else records

    async def get_stats(self, days: int = 30) -> Dict[str, Any]:
        """
        Billing figures in pence

        total_revenue: paid payments in the window
        monthly_recurring_revenue: paid payments in the last 30 days
        failed_payments: failed payments in the window
        """
        now = datetime.now()
        since = (now - timedelta(days=days)).isoformat()
        month_ago = (now - timedelta(days=30)).isoformat()

        # One fetch covers both windows
        payments = self.supabase.table("payments").select(
            "amount_pence, status, created_at"
        ).gte("created_at", min(since, month_ago)).execute().data or []

        def created(p):
            return str(p.get("created_at") or "")

        paid = [p for p in payments if p.get("status") == "paid"]
        total_revenue = sum(p.get("amount_pence") or 0 for p in paid if created(p) >= since)
        monthly = sum(p.get("amount_pence") or 0 for p in paid if created(p) >= month_ago)
        failed = sum(1 for p in payments if p.get("status") == "failed" and created(p) >= since)

        active = self.supabase.table("subscriptions").select(
            "id", count="exact"
        ).eq("status", "active").execute()
        active_count = active.count if active.count is not None else len(active.data or [])

        return {
            "total_revenue": total_revenue,
            "monthly_recurring_revenue": monthly,
            "active_subscriptions": active_count,
            "failed_payments": failed,
            "total_revenue_display": format_pence(total_revenue),
            "monthly_recurring_revenue_display": format_pence(monthly),
        }

    def export_csv(self, payments: List[Dict[str, Any]]) -> str:
        """Payments as CSV (amounts in pounds)"""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for p in payments:
            writer.writerow([
                str(p.get("date") or "")[:10],
                p.get("guardian_name", ""),
                p.get("player_name", ""),
                f"{(p.get('amount_pence') or 0) / 100:.2f}",
                p.get("currency", "GBP"),
                p.get("status", ""),
            ])
        return buffer.getvalue()

    # =============================================
    # Subscriptions
    # =============================================

    async def list_subscriptions(self, guardian_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Subscriptions of one guardian, or all of them"""
        query = self.supabase.table("subscriptions").select("*")
        if guardian_id:
            query = query.eq("guardian_id", guardian_id)
        rows = query.order("created_at", desc=True).execute().data or []
        return [subscription_view(r) for r in rows]

    async def get_subscription(self, subscription_id: str) -> Dict[str, Any]:
        response = self.supabase.table("subscriptions").select("*").eq(
            "id", subscription_id
        ).maybe_single().execute()
        row = response.data if response else None
        if not row:
            raise LookupError("Subscription not found")
        return subscription_view(row)

    async def cancel_subscription(self, subscription_id: str, reason: Optional[str]) -> Dict[str, Any]:
        """Mark a subscription cancelled (ValueError when already cancelled)"""
        current = await self.get_subscription(subscription_id)
        if current["status"] == "cancelled":
            raise ValueError("Subscription is already cancelled")

        response = self.supabase.table("subscriptions").update({
            "status": "cancelled",
            "cancelled_at": datetime.now().isoformat(),
            "cancellation_reason": reason,
            "auto_renew": False,
        }).eq("id", subscription_id).execute()

        if not response.data:
            raise LookupError("Subscription not found")

        logger.info(f"Subscription {subscription_id} cancelled")
        return subscription_view(response.data[0])

    # =============================================
    # Helpers
    # =============================================

    def _by_id(self, table: str, columns: str, ids) -> Dict[str, Dict[str, Any]]:
        ids = sorted({str(i) for i in ids if i})
        if not ids:
            return {}
        rows = self.supabase.table(table).select(columns).in_("id", ids).execute().data or []
        return {str(r["id"]): r for r in rows}


billing_service = BillingService()
