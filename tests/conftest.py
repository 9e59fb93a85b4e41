import copy
import os
import re
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from postgrest.exceptions import APIError

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-32")
os.environ.setdefault("ALLOW_DEV_HEADER", "1")
os.environ.setdefault("ADMIN_TOKEN", "admin-secret")
os.environ.setdefault("RESEND_API_KEY", "re_test_key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

OWNER = "user-1"
OTHER_OWNER = "user-2"

_EMBED_RE = re.compile(r"(\w+):(\w+)\(([^)]*)\)")

_DEFAULTS = {
    "contacts": {"phone": None, "company": None, "notes": None, "is_favorite": False},
    "reminders": {"description": None, "contact_id": None, "completed": False},
}

# (table, columns) que no admiten duplicados
_UNIQUE = {"contacts": ("created_by", "email")}


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _coerce(a, b):
    if isinstance(a, str) and isinstance(b, str):
        try:
            return (
                datetime.fromisoformat(a.replace("Z", "+00:00")),
                datetime.fromisoformat(b.replace("Z", "+00:00")),
            )
        except ValueError:
            pass
    return a, b


def _ilike(value, pattern):
    if value is None:
        return False
    regex = ".*".join(re.escape(part) for part in pattern.split("%"))
    return re.fullmatch(regex, str(value), flags=re.IGNORECASE | re.DOTALL) is not None


class FakeQuery:
    """Imita el query builder síncrono de supabase-py sobre tablas en memoria."""

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.count_mode = None
        self.values = None
        self.filters = []
        self.orders = []
        self.window = None
        self.max_rows = None

    # --- operaciones
    def select(self, columns="*", count=None):
        self.op, self.columns, self.count_mode = "select", columns, count
        return self

    def insert(self, values):
        self.op, self.values = "insert", values
        return self

    def update(self, values):
        self.op, self.values = "update", values
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filtros
    def _cmp(self, column, fn):
        def check(row):
            return fn(row.get(column))
        self.filters.append(check)
        return self

    def eq(self, column, value):
        return self._cmp(column, lambda v: v == value)

    def neq(self, column, value):
        return self._cmp(column, lambda v: v != value)

    def gt(self, column, value):
        return self._cmp(column, lambda v: v is not None and _coerce(v, value)[0] > _coerce(v, value)[1])

    def gte(self, column, value):
        return self._cmp(column, lambda v: v is not None and _coerce(v, value)[0] >= _coerce(v, value)[1])

    def lt(self, column, value):
        return self._cmp(column, lambda v: v is not None and _coerce(v, value)[0] < _coerce(v, value)[1])

    def lte(self, column, value):
        return self._cmp(column, lambda v: v is not None and _coerce(v, value)[0] <= _coerce(v, value)[1])

    def in_(self, column, values):
        return self._cmp(column, lambda v: v in values)

    def ilike(self, column, pattern):
        return self._cmp(column, lambda v: _ilike(v, pattern))

    def or_(self, expression):
        clauses = []
        for part in expression.split(","):
            column, op, value = part.split(".", 2)
            assert op == "ilike", f"unsupported or_ operator {op}"
            clauses.append((column, value))
        self.filters.append(lambda row: any(_ilike(row.get(c), p) for c, p in clauses))
        return self

    def order(self, column, desc=False):
        self.orders.append((column, desc))
        return self

    def range(self, start, end):
        self.window = (start, end)
        return self

    def limit(self, n):
        self.max_rows = n
        return self

    # --- ejecución
    def _matching(self):
        return [r for r in self.db.tables.setdefault(self.table, []) if all(f(r) for f in self.filters)]

    def _project(self, row):
        cols = self.columns
        embeds = _EMBED_RE.findall(cols)
        plain = [c.strip() for c in _EMBED_RE.sub("", cols).split(",") if c.strip()]
        out = dict(row) if "*" in plain else {c: row.get(c) for c in plain}
        for alias, table, sub in embeds:
            fk = row.get(f"{alias}_id")
            target = next((r for r in self.db.tables.get(table, []) if r.get("id") == fk), None) if fk else None
            names = [s.strip() for s in sub.split(",") if s.strip()]
            out[alias] = {n: target.get(n) for n in names} if target else None
        return copy.deepcopy(out)

    def execute(self):
        failure = self.db.failures.get((self.table, self.op))
        if failure is not None:
            raise failure
        table = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            new_rows = self.values if isinstance(self.values, list) else [self.values]
            prepared = []
            for values in new_rows:
                row = {"id": str(uuid.uuid4()), "created_at": _now_iso(), **_DEFAULTS.get(self.table, {})}
                row.update(copy.deepcopy(values))
                prepared.append(row)
            self.db.check_unique(self.table, prepared)
            table.extend(prepared)
            return SimpleNamespace(data=copy.deepcopy(prepared), count=None)

        matched = self._matching()
        if self.op == "update":
            for row in matched:
                row.update(copy.deepcopy(self.values))
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)
        if self.op == "delete":
            self.db.tables[self.table] = [r for r in table if r not in matched]
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        for column, desc in reversed(self.orders):
            matched.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        total = len(matched)
        if self.window is not None:
            start, end = self.window
            matched = matched[start:end + 1]
        if self.max_rows is not None:
            matched = matched[: self.max_rows]
        count = total if self.count_mode == "exact" else None
        return SimpleNamespace(data=[self._project(r) for r in matched], count=count)


class FakeAdmin:
    def __init__(self, users):
        self.users = users
        self.calls = []

    def get_user_by_id(self, user_id):
        self.calls.append(user_id)
        user = self.users.get(user_id)
        if user is None:
            raise Exception(f"User not found: {user_id}")
        return SimpleNamespace(user=SimpleNamespace(id=user_id, **user))

    def update_user_by_id(self, user_id, attributes):
        user = self.users[user_id]
        if "user_metadata" in attributes:
            user["user_metadata"] = dict(attributes["user_metadata"])
        return SimpleNamespace(user=SimpleNamespace(id=user_id, **user))


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.failures = {}
        self.users = {}
        self.auth = SimpleNamespace(admin=FakeAdmin(self.users))
        self.postgrest = SimpleNamespace(auth=lambda token: None)

    def table(self, name):
        return FakeQuery(self, name)

    def check_unique(self, table, new_rows):
        columns = _UNIQUE.get(table)
        if not columns:
            return
        seen = {tuple(r.get(c) for c in columns) for r in self.tables.get(table, [])}
        for row in new_rows:
            key = tuple(row.get(c) for c in columns)
            if key in seen:
                raise APIError({
                    "message": "duplicate key value violates unique constraint",
                    "code": "23505",
                    "hint": None,
                    "details": None,
                })
            seen.add(key)

    def seed(self, table, row):
        created = FakeQuery(self, table).insert(row).execute().data[0]
        return created


@pytest.fixture
def fake_sb():
    return FakeSupabase()


@pytest.fixture
def client(fake_sb):
    from fastapi.testclient import TestClient

    from contact_manager.core.supabase_client import get_service_supabase, get_supabase_for_request
    from main import app

    app.dependency_overrides[get_supabase_for_request] = lambda: fake_sb
    app.dependency_overrides[get_service_supabase] = lambda: fake_sb
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return {"X-User-Id": OWNER}
