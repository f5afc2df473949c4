"""
Pytest configuration and fixtures for the club manager tests
"""

import copy
import uuid
from datetime import datetime

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.offline.client import connectivity  # noqa: E402
from app.offline.store import OfflineStore, set_offline_store  # noqa: E402
from database.supabase_client import set_supabase_client  # noqa: E402


# =============================================================================
# In-memory Supabase client
# =============================================================================

class FakeResponse:
    def __init__(self, data=None, count=None):
        self.data = data
        self.count = count


def _same(left, right) -> bool:
    if left == right:
        return True
    return left is not None and right is not None and str(left) == str(right)


class FakeQuery:
    """Query builder over one in-memory table"""

    def __init__(self, client, table):
        self.client = client
        self.table_name = table
        self.filters = []
        self.action = "select"
        self.payload = None
        self.count_mode = None
        self.order_by = []
        self.limit_to = None
        self.single_mode = None

    # Actions
    def select(self, columns="*", count=None):
        self.action = "select"
        self.count_mode = count
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    # Filters
    def eq(self, column, value):
        self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: not _same(row.get(column), value))
        return self

    def in_(self, column, values):
        values = [str(v) for v in values]
        self.filters.append(lambda row: str(row.get(column)) in values)
        return self

    def is_(self, column, value):
        if value in ("null", None):
            self.filters.append(lambda row: row.get(column) is None)
        else:
            self.filters.append(lambda row: _same(row.get(column), value))
        return self

    def _compare(self, column, value, op):
        def check(row):
            current = row.get(column)
            if current is None:
                return False
            return op(str(current), str(value))
        self.filters.append(check)
        return self

    def gte(self, column, value):
        return self._compare(column, value, lambda a, b: a >= b)

    def gt(self, column, value):
        return self._compare(column, value, lambda a, b: a > b)

    def lte(self, column, value):
        return self._compare(column, value, lambda a, b: a <= b)

    def lt(self, column, value):
        return self._compare(column, value, lambda a, b: a < b)

    # Modifiers
    def order(self, column, desc=False):
        self.order_by.append((column, desc))
        return self

    def limit(self, size):
        self.limit_to = size
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def _matches(self, row):
        return all(check(row) for check in self.filters)

    def execute(self):
        self.client.calls.append((self.table_name, self.action))
        if self.client.fail:
            raise ConnectionError("backend unreachable")
        if self.client.fail_next:
            self.client.fail_next -= 1
            raise ConnectionError("backend unreachable")

        rows = self.client.tables.setdefault(self.table_name, [])

        if self.action == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = copy.deepcopy(item)
                row.setdefault("id", str(uuid.uuid4()))
                row.setdefault("created_at", datetime.now().isoformat())
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        matched = [row for row in rows if self._matches(row)]

        if self.action == "update":
            for row in matched:
                row.update(copy.deepcopy(self.payload))
            return FakeResponse(copy.deepcopy(matched))

        if self.action == "delete":
            self.client.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(matched))

        result = copy.deepcopy(matched)
        for column, desc in reversed(self.order_by):
            result.sort(key=lambda r: (r.get(column) is not None, str(r.get(column) or "")), reverse=desc)
        count = len(result) if self.count_mode else None
        if self.limit_to is not None:
            result = result[:self.limit_to]

        if self.single_mode:
            return FakeResponse(result[0] if result else None, count)
        return FakeResponse(result, count)


class FakeRpc:
    def __init__(self, client, name, params):
        self.client = client
        self.name = name
        self.params = params

    def execute(self):
        self.client.calls.append((self.name, "rpc"))
        if self.client.fail:
            raise ConnectionError("backend unreachable")
        handler = self.client.rpc_handlers.get(self.name)
        if handler is None:
            raise RuntimeError(f"rpc {self.name} not stubbed")
        return FakeResponse(handler(self.params))


class FakeSupabase:
    """Just enough of the supabase-py client for the services"""

    def __init__(self):
        self.tables = {}
        self.rpc_handlers = {}
        self.calls = []
        self.fail = False
        self.fail_next = 0
        self.auth = MagicMock()

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def seed(self, table, *rows):
        self.tables.setdefault(table, []).extend(copy.deepcopy(list(rows)))

    def rows(self, table):
        return self.tables.get(table, [])


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def fake_db():
    """Fresh in-memory backend shared by every service"""
    from app.club.permissions.service import permission_service

    db = FakeSupabase()
    set_supabase_client(db)
    connectivity.is_online = True
    permission_service.clear_cache()
    yield db
    set_supabase_client(None)
    connectivity.is_online = True


@pytest.fixture
def offline_store(tmp_path):
    """Temporary offline cache"""
    store = OfflineStore(str(tmp_path / "offline.db"))
    set_offline_store(store)
    yield store
    store.close()
    set_offline_store(None)


@pytest.fixture
def backend(fake_db, offline_store):
    """Fake backend plus offline cache"""
    return fake_db


@pytest.fixture
def admin_user():
    from app.club.dependencies import ClubUserContext, TEST_USER_CONFIG
    return ClubUserContext(**TEST_USER_CONFIG)


@pytest.fixture
def parent_user():
    from app.club.dependencies import ClubUserContext
    return ClubUserContext(
        guardian_id="g-parent",
        full_name="Pat Parent",
        email="pat.parent@gmail.com",
        roles=["parent"]
    )


@pytest.fixture
def client(backend, monkeypatch):
    """API client signed in as the test administrator"""
    from fastapi.testclient import TestClient
    from app.config import get_settings
    from app.server import app

    monkeypatch.setattr(get_settings(), "CLUB_TEST_MODE", True)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def anon_client(backend):
    """API client without credentials"""
    from fastapi.testclient import TestClient
    from app.server import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def sample_team():
    return {
        "id": "t-u12",
        "name": "U12 Hornets",
        "age_group": "U12",
        "season_year": 2026,
        "archived": False,
    }


@pytest.fixture
def sample_player():
    return {
        "id": "p-amy",
        "first_name": "Amy",
        "last_name": "Jones",
        "date_of_birth": "2015-03-14",
        "approval_status": "approved",
    }


@pytest.fixture
def sample_guardian():
    return {
        "id": "g-parent",
        "first_name": "Pat",
        "last_name": "Parent",
        "email": "pat.parent@gmail.com",
        "phone": "07700 900123",
        "approval_status": "approved",
    }


@pytest.fixture
def client_as(backend):
    """Factory: API client signed in as the given ClubUserContext"""
    from fastapi.testclient import TestClient
    from app.club.dependencies import get_current_user
    from app.server import app

    def _make(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
