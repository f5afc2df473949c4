"""
Billing tests
"""
import pytest
from datetime import datetime, timedelta

from app.club.billing.service import billing_service, format_pence


def _ago(days):
    return (datetime.now() - timedelta(days=days)).isoformat()


@pytest.fixture
def ledger(backend, sample_guardian, sample_player):
    """Two subscriptions and a handful of payments"""
    backend.seed("guardians", sample_guardian,
                 {"id": "g-kim", "first_name": "Kim", "last_name": "Lee", "email": "kim.lee@gmail.com"})
    backend.seed("players", sample_player,
                 {"id": "p-jo", "first_name": "Jo", "last_name": "Lee"})
    backend.seed("subscriptions",
                 {"id": "s-1", "guardian_id": "g-parent", "player_id": "p-amy", "status": "active",
                  "amount_pence": 2500, "created_at": _ago(90)},
                 {"id": "s-2", "guardian_id": "g-kim", "player_id": "p-jo", "status": "active",
                  "amount_pence": 2500, "created_at": _ago(60)},
                 {"id": "s-3", "guardian_id": "g-kim", "status": "cancelled", "created_at": _ago(400)})
    backend.seed("payments",
                 {"id": "pay-1", "subscription_id": "s-1", "amount_pence": 2500, "status": "paid",
                  "currency": "gbp", "created_at": _ago(2)},
                 {"id": "pay-2", "subscription_id": "s-2", "amount_pence": 2500, "status": "failed",
                  "failure_reason": "card_declined", "created_at": _ago(5)},
                 {"id": "pay-3", "subscription_id": "s-2", "amount_pence": 1250, "status": "paid",
                  "created_at": _ago(45)},
                 {"id": "pay-4", "subscription_id": "s-1", "amount_pence": 9999, "status": "paid",
                  "created_at": _ago(200)})
    return backend


class TestFormatting:

    def test_format_pence(self):
        assert format_pence(1250) == "£12.50"
        assert format_pence(None) == "£0.00"


class TestPayments:

    @pytest.mark.asyncio
    async def test_window_and_order(self, ledger):
        payments = await billing_service.list_payments()

        assert [p["id"] for p in payments] == ["pay-1", "pay-2"]
        assert payments[0]["guardian_name"] == "Pat Parent"
        assert payments[0]["player_name"] == "Amy Jones"
        assert payments[0]["currency"] == "GBP"
        assert payments[0]["amount_display"] == "£25.00"
        assert payments[1]["failure_reason"] == "card_declined"

    @pytest.mark.asyncio
    async def test_status_filter(self, ledger):
        payments = await billing_service.list_payments(status="paid", days=90)
        assert [p["id"] for p in payments] == ["pay-1", "pay-3"]

    @pytest.mark.asyncio
    async def test_search(self, ledger):
        by_player = await billing_service.list_payments(days=90, search="jo")
        by_email = await billing_service.list_payments(days=90, search="KIM.LEE@")

        assert [p["id"] for p in by_player] == ["pay-1", "pay-2", "pay-3"]
        assert [p["id"] for p in by_email] == ["pay-2", "pay-3"]

    @pytest.mark.asyncio
    async def test_limit(self, ledger):
        assert len(await billing_service.list_payments(days=90, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_stats(self, ledger):
        stats = await billing_service.get_stats(days=90)

        assert stats["total_revenue"] == 3750
        assert stats["monthly_recurring_revenue"] == 2500
        assert stats["failed_payments"] == 1
        assert stats["active_subscriptions"] == 2
        assert stats["total_revenue_display"] == "£37.50"

    @pytest.mark.asyncio
    async def test_short_window_keeps_monthly_revenue(self, backend):
        backend.seed("payments",
                     {"id": "pay-1", "amount_pence": 1000, "status": "paid", "created_at": _ago(2)},
                     {"id": "pay-2", "amount_pence": 5000, "status": "paid", "created_at": _ago(20)},
                     {"id": "pay-3", "amount_pence": 700, "status": "failed", "created_at": _ago(10)})

        stats = await billing_service.get_stats(days=7)

        assert stats["total_revenue"] == 1000
        assert stats["monthly_recurring_revenue"] == 6000
        assert stats["failed_payments"] == 0

    def test_csv(self):
        content = billing_service.export_csv([{
            "date": "2026-10-01T09:30:00", "guardian_name": "Pat Parent", "player_name": "Amy Jones",
            "amount_pence": 2500, "currency": "GBP", "status": "paid",
        }])
        assert content.splitlines() == [
            "Date,Guardian,Player,Amount,Currency,Status",
            "2026-10-01,Pat Parent,Amy Jones,25.00,GBP,paid",
        ]


class TestSubscriptions:

    @pytest.mark.asyncio
    async def test_list_for_guardian(self, ledger):
        subscriptions = await billing_service.list_subscriptions("g-kim")
        assert [s["id"] for s in subscriptions] == ["s-2", "s-3"]

    @pytest.mark.asyncio
    async def test_cancel(self, ledger):
        cancelled = await billing_service.cancel_subscription("s-1", "Moving away")

        assert cancelled["status"] == "cancelled"
        assert cancelled["cancellation_reason"] == "Moving away"
        assert cancelled["cancelled_at"]
        assert ledger.rows("subscriptions")[0]["auto_renew"] is False

    @pytest.mark.asyncio
    async def test_cancel_twice(self, ledger):
        with pytest.raises(ValueError):
            await billing_service.cancel_subscription("s-3", None)

    @pytest.mark.asyncio
    async def test_missing(self, ledger):
        with pytest.raises(LookupError):
            await billing_service.get_subscription("s-none")


class TestBillingRoutes:

    def test_export_csv(self, client, ledger):
        response = client.get("/api/club/billing/payments/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text.splitlines()[0] == "Date,Guardian,Player,Amount,Currency,Status"
        assert len(response.text.splitlines()) == 3

    def test_payments_admin_only(self, client_as, parent_user):
        assert client_as(parent_user).get("/api/club/billing/payments").status_code == 403

    def test_test_flag_does_not_bypass_login(self, anon_client, backend):
        assert anon_client.get("/api/club/billing/payments", params={"test": "1"}).status_code == 401

    def test_unknown_status_rejected(self, client, ledger):
        assert client.get("/api/club/billing/payments", params={"status": "lost"}).status_code == 422

    def test_parent_sees_only_own_subscriptions(self, client_as, parent_user, ledger):
        response = client_as(parent_user).get("/api/club/billing/subscriptions", params={"guardian_id": "g-kim"})
        assert [s["id"] for s in response.json()] == ["s-1"]

    def test_parent_cannot_cancel_others(self, client_as, parent_user, ledger):
        response = client_as(parent_user).post("/api/club/billing/subscriptions/s-2/cancel", json={})
        assert response.status_code == 403

    def test_cancel_conflict_and_missing(self, client, ledger):
        assert client.post("/api/club/billing/subscriptions/s-3/cancel", json={}).status_code == 409
        assert client.post("/api/club/billing/subscriptions/s-none/cancel", json={}).status_code == 404
