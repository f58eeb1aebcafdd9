import base64
from typing import Any, Callable, Dict, List, Optional

import pytest

from helmdesigner.modules.auth.service import clear_auth_cache
from helmdesigner.modules.templates.schemas import ChartVersion, Template

GOOD_KEY = "hd_live_good"
EMPTY_KEY = "hd_live_empty"


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Enough of the postgrest builder chain for the repository and registry queries."""

    def __init__(self, rows: List[Dict[str, Any]]):
        self._rows = list(rows)
        self._single = False

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._rows = [r for r in self._rows if r.get(column) == value]
        return self

    def order(self, column, desc=False):
        self._rows.sort(key=lambda r: r.get(column) or "", reverse=desc)
        return self

    def maybe_single(self):
        self._single = True
        return self

    def execute(self):
        if self._single:
            return FakeResult(self._rows[0]) if self._rows else None
        return FakeResult(list(self._rows))


class FakeRpc:
    def __init__(self, handler: Callable[[Dict[str, Any]], Any], params: Dict[str, Any]):
        self._handler = handler
        self._params = params

    def execute(self):
        return FakeResult(self._handler(self._params))


class FakeSupabase:
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None, rpcs=None):
        self.tables = tables or {}
        self.rpcs = rpcs or {}
        self.rpc_calls: List[tuple] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.tables.get(name, []))

    def rpc(self, name: str, params: Dict[str, Any]) -> FakeRpc:
        self.rpc_calls.append((name, params))
        return FakeRpc(self.rpcs.get(name, lambda p: None), params)


def demo_template_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": "tpl-1",
        "name": "Demo",
        "description": None,
        "shared_port": 8080,
        "registry_url": "reg.io",
        "registry_project": "team",
        "registry_secret": {"name": "registry-credentials", "username": "robot", "email": None},
        "enable_nginx_gateway": False,
        "enable_redis": False,
        "visibility": "private",
        "user_id": "user-1",
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def demo_service_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": "svc-1",
        "template_id": "tpl-1",
        "name": "api",
        "routes": [{"path": "/v1"}],
        "env_vars": [],
        "health_check_enabled": True,
        "liveness_path": "/health",
        "readiness_path": "/ready",
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def demo_version_row(**overrides) -> Dict[str, Any]:
    row = {
        "id": "ver-1",
        "template_id": "tpl-1",
        "version_name": "1.0.0",
        "app_version": None,
        "release_notes": None,
        "values": {"imageTags": {"api": "v3"}},
        "created_at": "2024-01-02T00:00:00+00:00",
    }
    row.update(overrides)
    return row


def make_template(**overrides) -> Template:
    data = {
        "id": "tpl-1",
        "name": "Demo",
        "shared_port": 8080,
        "registry_url": "reg.io",
        "registry_project": "team",
        "registry_secret": {"username": "robot"},
        "services": [{"name": "api", "routes": [{"path": "/v1"}]}],
    }
    data.update(overrides)
    return Template.model_validate(data)


def make_version(values: Optional[Dict[str, Any]] = None, **overrides) -> ChartVersion:
    data = {"version_name": "1.0.0", "values": {"imageTags": {"api": "v3"}} if values is None else values}
    data.update(overrides)
    return ChartVersion.model_validate(data)


def basic_auth(username: str, password: str) -> Dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def demo_template() -> Template:
    return make_template()


@pytest.fixture
def demo_version() -> ChartVersion:
    return make_version()


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    """Two templates; the registry's service account can reach tpl-1 and a since-deleted id."""
    access = {("sa-1", "tpl-1"), ("sa-1", "tpl-gone")}

    def validate_key(params):
        if params["p_api_key"] == GOOD_KEY:
            return [{"is_valid": True, "service_account_id": "sa-1", "user_id": "user-1"}]
        if params["p_api_key"] == EMPTY_KEY:
            return [{"is_valid": True, "service_account_id": "sa-empty", "user_id": "user-2"}]
        return []

    def check_access(params):
        return (params["p_service_account_id"], params["p_template_id"]) in access

    return FakeSupabase(
        tables={
            "templates": [
                demo_template_row(),
                demo_template_row(id="tpl-2", name="Other App", user_id="user-2"),
            ],
            "services": [demo_service_row(), demo_service_row(id="svc-2", template_id="tpl-2")],
            "chart_versions": [
                demo_version_row(),
                demo_version_row(id="ver-2", version_name="1.1.0", created_at="2024-02-01T00:00:00+00:00"),
                demo_version_row(id="ver-3", template_id="tpl-2"),
            ],
            "service_account_template_access": [
                {"service_account_id": "sa-1", "template_id": "tpl-1", "created_at": "2024-01-01"},
                {"service_account_id": "sa-1", "template_id": "tpl-gone", "created_at": "2024-01-02"},
            ],
        },
        rpcs={
            "validate_service_account_key": validate_key,
            "check_template_access": check_access,
            "update_service_account_last_used": lambda params: None,
        },
    )


@pytest.fixture(autouse=True)
def _reset_auth_cache():
    clear_auth_cache()
    yield
    clear_auth_cache()
