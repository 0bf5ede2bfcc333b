"""
Pytest fixtures.

FakeSupabase is an in-memory stand-in for the supabase-py client covering
the query-builder calls the app makes, so routes and the report store run
without a live project.
"""
import copy
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from caseload.main import app
from caseload.dependencies.auth import get_supabase

TEACHER_ID = "teacher-1"
OTHER_TEACHER_ID = "teacher-2"
TOKENS = {"valid-token": TEACHER_ID, "other-token": OTHER_TEACHER_ID}


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None
        self.max_rows = None
        self.on_conflict = None
        self.ignore_duplicates = False

    @property
    def rows(self):
        return self.db.setdefault(self.table_name, [])

    # -- operations --
    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, payload):
        self.op, self.payload = "insert", payload
        return self

    def upsert(self, payload, on_conflict=None, ignore_duplicates=False):
        self.op, self.payload = "upsert", payload
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def update(self, payload):
        self.op, self.payload = "update", payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    # -- filters --
    def _filter(self, column, test):
        self.filters.append(lambda row: test(row.get(column)))
        return self

    def eq(self, column, value):
        return self._filter(column, lambda v: v == value)

    def neq(self, column, value):
        return self._filter(column, lambda v: v != value)

    def lt(self, column, value):
        return self._filter(column, lambda v: v is not None and v < value)

    def gte(self, column, value):
        return self._filter(column, lambda v: v is not None and v >= value)

    def lte(self, column, value):
        return self._filter(column, lambda v: v is not None and v <= value)

    def in_(self, column, values):
        return self._filter(column, lambda v: v in values)

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        handler = getattr(self, f"_execute_{self.op}")
        return SimpleNamespace(data=copy.deepcopy(handler()))

    def _execute_select(self):
        found = [r for r in self.rows if self._matches(r)]
        if self.order_by:
            column, desc = self.order_by
            found.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if self.max_rows is not None:
            found = found[: self.max_rows]
        return found

    def _execute_insert(self):
        payloads = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = [copy.deepcopy(p) for p in payloads]
        self.rows.extend(inserted)
        return inserted

    def _execute_upsert(self):
        payloads = self.payload if isinstance(self.payload, list) else [self.payload]
        keys = (self.on_conflict or "id").split(",")
        written = []
        for payload in payloads:
            existing = next((r for r in self.rows if all(r.get(k) == payload.get(k) for k in keys)), None)
            if existing is None:
                row = copy.deepcopy(payload)
                self.rows.append(row)
                written.append(row)
            elif not self.ignore_duplicates:
                existing.update(copy.deepcopy(payload))
                written.append(existing)
        return written

    def _execute_update(self):
        updated = []
        for row in self.rows:
            if self._matches(row):
                row.update(copy.deepcopy(self.payload))
                updated.append(row)
        return updated

    def _execute_delete(self):
        deleted = [r for r in self.rows if self._matches(r)]
        self.db[self.table_name] = [r for r in self.rows if not self._matches(r)]
        return deleted


class FakeAuth:
    def get_user(self, token):
        if token not in TOKENS:
            raise Exception("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id=TOKENS[token]))


class FakeSupabase:
    def __init__(self):
        self.db = {}
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self.db, name)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def client(fake_supabase):
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer valid-token"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": "Bearer other-token"}
