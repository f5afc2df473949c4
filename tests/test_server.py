"""
Server endpoint tests

Health, status and the sync routes
"""

from app.server import APP_VERSION
from app.offline.client import connectivity


class TestHealth:
    """/api/health"""

    def test_backend_reachable(self, client, backend):
        body = client.get("/api/health").json()
        assert body == {
            "status": "ok",
            "backend_connected": True,
            "offline_enabled": True,
            "offline_mode": False,
        }

    def test_backend_down_marks_offline(self, client, backend):
        backend.fail = True

        body = client.get("/api/health").json()

        assert body["status"] == "degraded"
        assert body["offline_mode"] is True
        assert connectivity.is_online is False


class TestStatus:
    """/api/status"""

    def test_status(self, client, offline_store):
        offline_store.save_local("teams", {"name": "U10 Bees"})

        body = client.get("/api/status").json()

        assert body["version"] == APP_VERSION
        assert body["sync"]["pending_changes"] == 1
        assert body["scheduler"] == {"running": False}


class TestSyncRoutes:
    """/api/sync"""

    def test_sync_status(self, client, offline_store):
        body = client.get("/api/sync/status").json()
        assert body["is_online"] is True
        assert body["pending_changes"] == 0

    def test_sync_status_requires_login(self, anon_client):
        assert anon_client.get("/api/sync/status").status_code == 401

    def test_manual_sync(self, client, backend, offline_store):
        offline_store.save_local("teams", {"name": "U10 Bees"})

        body = client.post("/api/sync").json()

        assert body["success"] is True
        assert body["pushed"]["teams"] == 1
        assert backend.rows("teams")[0]["name"] == "U10 Bees"

    def test_manual_sync_admin_only(self, client_as, parent_user):
        assert client_as(parent_user).post("/api/sync").status_code == 403
