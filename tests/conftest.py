"""Pytest configuration and fixtures."""

import os
import secrets
from datetime import datetime, timedelta, timezone

import pytest

# Generate a unique test secret for this test run to prevent token forgery
_TEST_JWT_SECRET = f"test-only-{secrets.token_urlsafe(32)}"

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", _TEST_JWT_SECRET)

from apna_backend.config import get_settings  # noqa: E402
from apna_backend.database import get_db  # noqa: E402
from apna_backend.main import app  # noqa: E402
from apna_backend.rate_limit import limiter  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

ADMIN_ID = "admin-1"
USER_ID = "usr-freelancer-1"
CLIENT_ID = "usr-client-1"


# =============================================================================
# In-memory Supabase fake
# =============================================================================


class FakeResult:
    """Mimics the object returned by ``execute()``."""

    def __init__(self, data: list, count: int | None = None):
        self.data = data
        self.count = count


def _ilike(cell, pattern: str) -> bool:
    needle = pattern.strip("%").replace("\\", "").lower()
    return needle in str(cell or "").lower()


class FakeQuery:
    """Chainable query builder over an in-memory table."""

    def __init__(self, db: "FakeSupabase", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload = None
        self._filters: list[tuple[str, str, object]] = []
        self._order: tuple[str, bool, bool | None] | None = None
        self._limit: int | None = None

    def select(self, columns: str = "*", count: str | None = None) -> "FakeQuery":
        self._op = "select"
        return self

    def insert(self, data: dict) -> "FakeQuery":
        self._op = "insert"
        self._payload = data
        return self

    def update(self, data: dict) -> "FakeQuery":
        self._op = "update"
        self._payload = data
        return self

    def eq(self, column: str, value) -> "FakeQuery":
        self._filters.append(("eq", column, value))
        return self

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        self._filters.append(("ilike", column, pattern))
        return self

    def or_(self, filters: str) -> "FakeQuery":
        # Only "col.ilike.pattern" terms joined by commas are understood
        terms = [term.split(".", 2) for term in filters.split(",")]
        self._filters.append(("or", "", [(column, pattern) for column, _, pattern in terms]))
        return self

    def order(
        self, column: str, desc: bool = False, nullsfirst: bool | None = None
    ) -> "FakeQuery":
        self._order = (column, desc, nullsfirst)
        return self

    def limit(self, n: int) -> "FakeQuery":
        self._limit = n
        return self

    def _matches(self, row: dict) -> bool:
        for op, column, value in self._filters:
            if op == "eq" and row.get(column) != value:
                return False
            if op == "ilike" and not _ilike(row.get(column), value):
                return False
            if op == "or" and not any(_ilike(row.get(c), p) for c, p in value):
                return False
        return True

    def execute(self) -> FakeResult:
        self._db.calls.append((self._table, self._op, self._payload, list(self._filters)))
        if (self._table, self._op) in self._db.failures:
            raise RuntimeError(f"simulated {self._op} failure on {self._table}")

        rows = self._db.tables.setdefault(self._table, [])

        if self._op == "insert":
            row = {
                "id": self._db.next_id(self._table),
                "created_at": datetime.now(timezone.utc).isoformat(),
                **self._payload,
            }
            rows.append(row)
            return FakeResult([dict(row)])

        matched = [row for row in rows if self._matches(row)]

        if self._op == "update":
            for row in matched:
                row.update(self._payload)
            return FakeResult([dict(row) for row in matched])

        if self._order:
            column, desc, nullsfirst = self._order
            present = sorted(
                (r for r in matched if r.get(column) is not None),
                key=lambda r: r[column],
                reverse=desc,
            )
            missing = [r for r in matched if r.get(column) is None]
            # Postgres puts NULLs first for DESC unless told otherwise
            nulls_first = desc if nullsfirst is None else nullsfirst
            matched = missing + present if nulls_first else present + missing
        if self._limit is not None:
            matched = matched[: self._limit]
        return FakeResult([dict(row) for row in matched], count=len(matched))


class FakeSupabase:
    """Stand-in for ``supabase.Client`` that records every executed query."""

    def __init__(self, tables: dict[str, list[dict]] | None = None):
        self.tables = tables or {}
        self.calls: list[tuple] = []
        self.failures: set[tuple[str, str]] = set()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def next_id(self, table: str) -> int:
        ids = [r["id"] for r in self.tables.get(table, []) if isinstance(r.get("id"), int)]
        return max(ids, default=0) + 1

    def fail(self, table: str, op: str) -> None:
        """Make every future ``op`` on ``table`` raise."""
        self.failures.add((table, op))

    def rows(self, table: str) -> list[dict]:
        return self.tables.get(table, [])

    def find(self, table: str, record_id) -> dict | None:
        return next((r for r in self.rows(table) if r.get("id") == record_id), None)

    def writes(self, table: str, op: str) -> list[dict]:
        return [payload for t, o, payload, _ in self.calls if t == table and o == op]


def _ts(minutes_ago: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)).isoformat()


def seed_tables() -> dict[str, list[dict]]:
    """A small marketplace with records in every moderation state."""
    return {
        "users": [
            {
                "id": ADMIN_ID,
                "email": "admin@example.com",
                "password": "$2b$12$never-returned",
                "is_admin": True,
                "status": "approved",
                "created_at": _ts(500),
            },
            {
                "id": USER_ID,
                "email": "freelancer@example.com",
                "first_name": "Asha",
                "is_freelancer": True,
                "bio": "Full stack developer, React and Django",
                "rating": 4.6,
                "is_admin": False,
                "status": "approved",
                "created_at": _ts(400),
            },
            {
                "id": CLIENT_ID,
                "email": "client@example.com",
                "is_client": True,
                "is_admin": False,
                "status": "approved",
                "created_at": _ts(300),
            },
            {
                "id": "usr-freelancer-2",
                "email": "vikram@example.com",
                "first_name": "Vikram",
                "bio": "Android and Flutter apps",
                "is_freelancer": True,
                "is_admin": False,
                "status": "approved",
                "rating": 4.9,
                "created_at": _ts(350),
            },
            {
                "id": "usr-freelancer-3",
                "email": "new-freelancer@example.com",
                "first_name": "Kabir",
                "is_freelancer": True,
                "is_admin": False,
                "status": "approved",
                "rating": None,
                "created_at": _ts(250),
            },
            {
                "id": "usr-pending-old",
                "email": "old@example.com",
                "first_name": "Meera",
                "bio": "Brand and logo designer",
                "is_freelancer": True,
                "is_admin": False,
                "status": "pending",
                "created_at": _ts(120),
            },
            {
                "id": "usr-pending-new",
                "email": "new@example.com",
                "is_admin": False,
                "status": "pending",
                "created_at": _ts(10),
            },
            {
                "id": "admin-pending",
                "email": "admin2@example.com",
                "is_admin": True,
                "status": "pending",
                "created_at": _ts(5),
            },
        ],
        "services": [
            {
                "id": 1,
                "freelancer_id": USER_ID,
                "category_id": 1,
                "title": "React website build",
                "price": 500,
                "delivery_time": 7,
                "status": "approved",
                "is_active": True,
                "created_at": _ts(200),
            },
            {
                "id": 2,
                "freelancer_id": USER_ID,
                "category_id": 3,
                "title": "Logo design",
                "price": 80,
                "delivery_time": 3,
                "status": "pending",
                "is_active": False,
                "created_at": _ts(60),
            },
            {
                "id": 3,
                "freelancer_id": USER_ID,
                "category_id": 1,
                "title": "Landing page",
                "price": 150,
                "delivery_time": 2,
                "status": "pending",
                "is_active": False,
                "created_at": _ts(30),
            },
            {
                "id": 4,
                "freelancer_id": USER_ID,
                "category_id": 1,
                "title": "Spam listing",
                "price": 1,
                "delivery_time": 1,
                "status": "rejected",
                "is_active": False,
                "rejection_reason": "spam",
                "created_at": _ts(90),
            },
        ],
        "jobs": [
            {
                "id": 42,
                "client_id": CLIENT_ID,
                "category_id": 1,
                "title": "Need a React website",
                "budget": 1000,
                "duration": "1 month",
                "experience_level": "intermediate",
                "status": "pending",
                "created_at": _ts(20),
            },
            {
                "id": 43,
                "client_id": CLIENT_ID,
                "category_id": 2,
                "title": "Android app",
                "budget": 3000,
                "duration": "3 months",
                "experience_level": "expert",
                "status": "open",
                "created_at": _ts(100),
            },
        ],
        "hire_requests": [
            {
                "id": 7,
                "client_id": CLIENT_ID,
                "freelancer_id": USER_ID,
                "project_title": "Portfolio site",
                "project_description": "Five pages",
                "budget": 400,
                "status": "pending",
                "created_at": _ts(15),
            },
            {
                "id": 8,
                "client_id": CLIENT_ID,
                "freelancer_id": USER_ID,
                "project_title": "Old request",
                "status": "completed",
                "created_at": _ts(1000),
            },
        ],
        "admin_actions": [],
    }


# =============================================================================
# Tokens
# =============================================================================


def make_token(
    user_id: str,
    *,
    secret: str | None = None,
    audience: str = "authenticated",
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Mint a Supabase-style access token."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user_id,
        "aud": audience,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + expires_in).timestamp()),
    }
    return jwt.encode(
        claims,
        secret or settings.supabase_jwt_secret,
        algorithm=settings.supabase_jwt_algorithm,
    )


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_db():
    """In-memory Supabase seeded with a small marketplace."""
    return FakeSupabase(seed_tables())


@pytest.fixture
def client(fake_db):
    """Create a test client wired to the in-memory database."""
    app.dependency_overrides[get_db] = lambda: fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return bearer(ADMIN_ID)


@pytest.fixture
def user_headers():
    return bearer(USER_ID)


@pytest.fixture
def client_headers():
    return bearer(CLIENT_ID)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Rate-limit counters are process-wide; start each test clean."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def token_factory():
    """Mint access tokens with custom claims."""
    return make_token
