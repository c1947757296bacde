"""Test configuration and fixtures: an in-memory stand-in for the Supabase query builder."""

import copy
import os
import uuid
from datetime import datetime, timezone

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789-abcdefghijklmnop")
os.environ.setdefault("JWT_MAXAGE", "3600")
os.environ.setdefault("RATE_LIMIT", "50/minute")
os.environ.setdefault("FRONTEND_BASE_URL", "http://frontend.test")

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from workspace_auth.config.permissions_config import ADMIN_ROLE_NAME, get_permission_seed_rows
from workspace_auth.config.settings import settings
from workspace_auth.core.tokens import issue_token
from workspace_auth.database.supabase_client import get_supabase
from workspace_auth.main import app, limiter


TABLES = [
    "users", "workspaces", "permissions", "roles", "role_permissions", "workspace_users",
    "email_verifications", "password_resets",
]

UNIQUE = {
    "users": [("id",), ("email",), ("pending_email_token",)],
    "workspaces": [("id",), ("name",), ("invite_code",)],
    "permissions": [("id",), ("name",)],
    "roles": [("id",), ("workspace_id", "name")],
    "role_permissions": [("role_id", "permission_id")],
    "workspace_users": [("workspace_id", "user_id")],
    "email_verifications": [("token",)],
    "password_resets": [("token",)],
}

# (child table, column) -> (parent table, on delete). Memberships are listed
# before roles so a workspace delete clears them before its roles.
FOREIGN_KEYS = {
    ("workspaces", "owner_user_id"): ("users", "set null"),
    ("workspace_users", "workspace_id"): ("workspaces", "cascade"),
    ("workspace_users", "user_id"): ("users", "cascade"),
    ("workspace_users", "role_id"): ("roles", "restrict"),
    ("roles", "workspace_id"): ("workspaces", "cascade"),
    ("role_permissions", "role_id"): ("roles", "cascade"),
    ("role_permissions", "permission_id"): ("permissions", "cascade"),
    ("email_verifications", "user_id"): ("users", "cascade"),
    ("password_resets", "user_id"): ("users", "cascade"),
}

WITH_ID = {"users", "workspaces", "permissions", "roles"}
WITH_TIMESTAMPS = {"users", "workspaces", "workspace_users"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _singular(table: str) -> str:
    return table[:-1] if table.endswith("s") else table


def parse_select(columns: str):
    """'a, b(c, d(e))' -> ['a', ('b', ['c', ('d', ['e'])])]"""
    items, _ = _parse_select(columns, 0)
    return items


def _parse_select(text, i):
    items, token = [], ""
    while i < len(text):
        char = text[i]
        if char == "(":
            sub, i = _parse_select(text, i + 1)
            items.append((token.strip(), sub))
            token = ""
            continue
        if char == ")":
            if token.strip():
                items.append(token.strip())
            return items, i + 1
        if char == ",":
            if token.strip():
                items.append(token.strip())
            token = ""
        else:
            token += char
        i += 1
    if token.strip():
        items.append(token.strip())
    return items, i


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.filters = []
        self.embedded_filters = []
        self.order_by = None
        self.limit_count = None
        self.on_conflict = ""
        self.ignore_duplicates = False

    def select(self, columns="*"):
        self.action = "select"
        self.columns = columns
        return self

    def insert(self, rows):
        self.action = "insert"
        self.payload = rows
        return self

    def upsert(self, rows, on_conflict="", ignore_duplicates=False):
        self.action = "upsert"
        self.payload = rows
        self.on_conflict = on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    def update(self, values):
        self.action = "update"
        self.payload = values
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        if "." in column:
            relation, embedded_column = column.split(".", 1)
            self.embedded_filters.append((relation, embedded_column, value))
            return self
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def _matching(self):
        return [row for row in self.db.tables[self.table] if all(f(row) for f in self.filters)]

    def execute(self):
        return self.db.run(self._execute)

    def _execute(self):
        db = self.db
        if self.action == "select":
            rows = self._matching()
            if self.order_by:
                column, desc = self.order_by
                rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
            items = parse_select(self.columns)
            projected = [db.project(self.table, row, items) for row in rows]
            inner = [
                item[0].split("!")[0] for item in items
                if isinstance(item, tuple) and item[0].endswith("!inner")
            ]
            projected = [row for row in projected if all(row.get(name) for name in inner)]
            for relation, column, value in self.embedded_filters:
                projected = [
                    row for row in projected
                    if row.get(relation) and row[relation].get(column) == value
                ]
            if self.limit_count is not None:
                projected = projected[: self.limit_count]
            return FakeResponse(projected)

        if self.action == "insert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            return FakeResponse([dict(db.insert(self.table, row)) for row in rows])

        if self.action == "upsert":
            rows = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [k.strip() for k in self.on_conflict.split(",") if k.strip()]
            written = []
            for row in rows:
                existing = [
                    r for r in db.tables[self.table]
                    if keys and all(r.get(k) == row.get(k) for k in keys)
                ]
                if existing:
                    if self.ignore_duplicates:
                        continue
                    written.append(dict(db.update_row(self.table, existing[0], row)))
                else:
                    written.append(dict(db.insert(self.table, row)))
            return FakeResponse(written)

        if self.action == "update":
            return FakeResponse([dict(db.update_row(self.table, row, self.payload)) for row in self._matching()])

        if self.action == "delete":
            rows = self._matching()
            deleted = [dict(row) for row in rows]
            db.delete_rows(self.table, rows)
            return FakeResponse(deleted)

        raise AssertionError(f"unsupported action {self.action}")


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        handler = getattr(self.db, f"rpc_{self.name}")
        return self.db.run(lambda: FakeResponse(handler(**self.params)))


class FakeSupabase:
    """Just enough of supabase.Client for the services: tables, constraints, embeds and rpc."""

    def __init__(self):
        self.tables = {name: [] for name in TABLES}
        for row in get_permission_seed_rows():
            self.insert("permissions", row)

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params):
        return FakeRpc(self, name, params)

    def run(self, operation):
        """Run one statement atomically: on error every table is restored"""
        snapshot = copy.deepcopy(self.tables)
        try:
            return operation()
        except Exception:
            self.tables = snapshot
            raise

    # constraint enforcement

    def _check_unique(self, table, row, ignore=None):
        for columns in UNIQUE[table]:
            if any(row.get(c) is None for c in columns):
                continue
            for other in self.tables[table]:
                if other is ignore:
                    continue
                if all(other.get(c) == row.get(c) for c in columns):
                    raise APIError({
                        "code": "23505",
                        "message": f"duplicate key value violates unique constraint on {table}{columns}",
                    })

    def _check_foreign_keys(self, table, row):
        for (child, column), (parent, _) in FOREIGN_KEYS.items():
            if child != table or row.get(column) is None:
                continue
            if not any(p.get("id") == row[column] for p in self.tables[parent]):
                raise APIError({
                    "code": "23503",
                    "message": f"insert or update on {table} violates foreign key on {column}",
                })

    def insert(self, table, values):
        row = dict(values)
        if table in WITH_ID:
            row.setdefault("id", str(uuid.uuid4()))
        if table in WITH_TIMESTAMPS:
            row.setdefault("created_at", _now())
            if table != "workspace_users":
                row.setdefault("updated_at", _now())
        if table == "workspaces":
            row.setdefault("invite_code", uuid.uuid4().hex)
            row.setdefault("is_default", False)
        if table == "users":
            row.setdefault("email_verified", False)
            for column in ("pending_email", "pending_email_token", "pending_email_expires_at"):
                row.setdefault(column, None)
        if table == "roles":
            row.setdefault("description", None)
        self._check_unique(table, row)
        self._check_foreign_keys(table, row)
        self.tables[table].append(row)
        return row

    def update_row(self, table, row, values):
        candidate = {**row, **values}
        self._check_unique(table, candidate, ignore=row)
        self._check_foreign_keys(table, candidate)
        row.update(values)
        return row

    def delete_rows(self, table, rows):
        if not rows:
            return
        ids = {row.get("id") for row in rows if row.get("id") is not None}
        for (child, column), (parent, action) in FOREIGN_KEYS.items():
            if parent != table or not ids:
                continue
            referencing = [c for c in self.tables[child] if c.get(column) in ids]
            if not referencing:
                continue
            if action == "restrict":
                raise APIError({
                    "code": "23503",
                    "message": f"update or delete on {table} violates foreign key on {child}.{column}",
                })
            if action == "cascade":
                self.delete_rows(child, referencing)
            else:
                for child_row in referencing:
                    child_row[column] = None
        doomed = {id(row) for row in rows}
        self.tables[table] = [row for row in self.tables[table] if id(row) not in doomed]

    # embedded selects

    def project(self, table, row, items):
        out = {}
        for item in items:
            if isinstance(item, tuple):
                relation, sub_items = item
                relation = relation.split("!")[0]
                out[relation] = self._embed(table, row, relation, sub_items)
            elif item == "*":
                out.update(row)
            else:
                out[item] = row.get(item)
        return out

    def _embed(self, table, row, relation, sub_items):
        forward = f"{_singular(relation)}_id"
        if (table, forward) in FOREIGN_KEYS:
            parent = next((p for p in self.tables[relation] if p.get("id") == row.get(forward)), None)
            return self.project(relation, parent, sub_items) if parent else None
        backward = f"{_singular(table)}_id"
        children = [c for c in self.tables[relation] if c.get(backward) == row.get("id")]
        return [self.project(relation, c, sub_items) for c in children]

    # SQL functions from supabase/migrations

    def rpc_register_user(self, p_name, p_email, p_password, p_token, p_expires_at):
        user = self.insert("users", {"name": p_name, "email": p_email, "password": p_password})
        self.insert("email_verifications", {"user_id": user["id"], "token": p_token, "expires_at": p_expires_at})
        return [dict(user)]

    def rpc_create_workspace(self, p_name, p_owner_user_id):
        is_default = not any(w.get("owner_user_id") == p_owner_user_id for w in self.tables["workspaces"])
        workspace = self.insert("workspaces", {
            "name": p_name,
            "owner_user_id": p_owner_user_id,
            "is_default": is_default,
        })
        admin = self.insert("roles", {"workspace_id": workspace["id"], "name": ADMIN_ROLE_NAME})
        self.insert("workspace_users", {
            "workspace_id": workspace["id"],
            "user_id": p_owner_user_id,
            "role_id": admin["id"],
        })
        return [dict(workspace)]

    def _link_permissions(self, role_id, names):
        for permission in self.tables["permissions"]:
            if permission["name"] not in (names or []):
                continue
            already = any(
                link["role_id"] == role_id and link["permission_id"] == permission["id"]
                for link in self.tables["role_permissions"]
            )
            if not already:
                self.insert("role_permissions", {"role_id": role_id, "permission_id": permission["id"]})

    def rpc_create_role(self, p_workspace_id, p_name, p_description, p_permissions):
        role = self.insert("roles", {
            "workspace_id": p_workspace_id,
            "name": p_name,
            "description": p_description,
        })
        self._link_permissions(role["id"], p_permissions)
        return [dict(role)]

    def rpc_update_role(self, p_workspace_id, p_role_id, p_name, p_description, p_permissions):
        role = next((
            r for r in self.tables["roles"]
            if r["id"] == p_role_id and r["workspace_id"] == p_workspace_id and r["name"] != ADMIN_ROLE_NAME
        ), None)
        if role is None:
            return []
        self.update_row("roles", role, {"name": p_name, "description": p_description})
        self.tables["role_permissions"] = [
            link for link in self.tables["role_permissions"] if link["role_id"] != role["id"]
        ]
        self._link_permissions(role["id"], p_permissions)
        return [dict(role)]

    # helpers for tests

    def role_permission_names(self, role_id):
        ids = {link["permission_id"] for link in self.tables["role_permissions"] if link["role_id"] == role_id}
        return {p["name"] for p in self.tables["permissions"] if p["id"] in ids}

    def memberships(self, workspace_id, user_id):
        return [
            m for m in self.tables["workspace_users"]
            if m["workspace_id"] == workspace_id and m["user_id"] == user_id
        ]


@pytest.fixture
def fake_db():
    return FakeSupabase()


@pytest.fixture
def client(fake_db):
    app.dependency_overrides[get_supabase] = lambda: fake_db
    limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(fake_db):
    """Insert a user row; the password column holds a placeholder unless a hash is given."""
    def _make_user(name="Ada", email=None, password_hash="not-a-real-hash"):
        return fake_db.insert("users", {
            "name": name,
            "email": email or f"{uuid.uuid4().hex[:8]}@example.com",
            "password": password_hash,
        })
    return _make_user


@pytest.fixture
def make_workspace(fake_db):
    def _make_workspace(owner, name=None):
        return fake_db.rpc("create_workspace", {
            "p_name": name or f"workspace-{uuid.uuid4().hex[:8]}",
            "p_owner_user_id": owner["id"],
        }).execute().data[0]
    return _make_workspace


@pytest.fixture
def make_role(fake_db):
    def _make_role(workspace, name, permissions=()):
        return fake_db.rpc("create_role", {
            "p_workspace_id": workspace["id"],
            "p_name": name,
            "p_description": None,
            "p_permissions": list(permissions),
        }).execute().data[0]
    return _make_role


@pytest.fixture
def add_member(fake_db):
    def _add_member(workspace, user, role):
        return fake_db.insert("workspace_users", {
            "workspace_id": workspace["id"],
            "user_id": user["id"],
            "role_id": role["id"],
        })
    return _add_member


@pytest.fixture
def sign_in(client):
    """Put the session cookies for user (and optionally workspace) on the test client."""
    def _sign_in(user, workspace=None):
        client.cookies.clear()
        client.cookies.set("token", issue_token(user["id"], settings.jwt_secret_key, 3600))
        if workspace is not None:
            client.cookies.set("workspace", workspace["id"])
        return client
    return _sign_in


def admin_role_of(fake_db, workspace):
    return next(
        r for r in fake_db.tables["roles"]
        if r["workspace_id"] == workspace["id"] and r["name"] == ADMIN_ROLE_NAME
    )


@pytest.fixture
def admin_role(fake_db):
    def _admin_role(workspace):
        return admin_role_of(fake_db, workspace)
    return _admin_role
