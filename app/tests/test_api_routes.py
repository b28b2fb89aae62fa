import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.exchange.coinstore.client import CoinstoreHTTPError
from app.exchange.coinstore.signing import ConfigurationError
from app.main import app, get_client, get_settings


class _FakeClient:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = []

    def _answer(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if self.error:
            raise self.error
        return {"code": 0, "data": name}

    def balances(self):
        return self._answer("balances")

    def current_orders(self, symbol=None):
        return self._answer("current_orders", symbol)

    def latest_trades(self, symbol=None, limit=None):
        return self._answer("latest_trades", symbol=symbol, limit=limit)

    def place_order(self, order):
        return self._answer("place_order", order)

    def cancel_order(self, cancel):
        return self._answer("cancel_order", cancel)


@pytest.fixture
def fake():
    return _FakeClient()


@pytest.fixture
def api(fake):
    cfg = Settings(CS_SYMBOL="PPOUSDT", _env_file=None)
    app.dependency_overrides[get_client] = lambda: fake
    app.dependency_overrides[get_settings] = lambda: cfg
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_and_health(api):
    r = api.get("/")
    assert r.status_code == 200
    assert r.json()["message"] == "Coinstore API Proxy"
    assert r.json()["api_secret_loaded"] is True

    r = api.get("/health")
    assert r.json()["status"] == "OK"


def test_balances(api, fake):
    r = api.get("/api/balances")
    assert r.status_code == 200
    assert r.json() == {"code": 0, "data": "balances"}


def test_orders_default_symbol(api, fake):
    api.get("/api/orders")
    api.get("/api/orders", params={"symbol": "BTCUSDT"})
    assert fake.calls == [
        ("current_orders", ("PPOUSDT",), {}),
        ("current_orders", ("BTCUSDT",), {}),
    ]


def test_trades_params(api, fake):
    api.get("/api/trades", params={"symbol": "PPOUSDT", "limit": 5})
    assert fake.calls == [("latest_trades", (), {"symbol": "PPOUSDT", "limit": 5})]


def test_place_and_cancel_relay_json_body(api, fake):
    order = {"symbol": "PPOUSDT", "side": "SELL", "ordType": "LIMIT", "ordPrice": "0.058", "ordQty": "20"}
    assert api.post("/api/order/place", json=order).status_code == 200
    assert api.post("/api/order/cancel", json={"symbol": "PPOUSDT", "ordId": 1}).status_code == 200

    assert fake.calls[0] == ("place_order", (order,), {})
    assert fake.calls[1] == ("cancel_order", ({"symbol": "PPOUSDT", "ordId": 1},), {})


def test_remote_error_becomes_500_with_payload(api, fake):
    fake.error = CoinstoreHTTPError(401, "/spot/accountList", {"code": 401, "message": "Signature-Failed"})
    r = api.get("/api/balances")

    assert r.status_code == 500
    assert r.json() == {
        "error": "Failed to fetch balances",
        "message": {"code": 401, "message": "Signature-Failed"},
    }


def test_missing_credentials_becomes_500(api, fake):
    fake.error = ConfigurationError("Missing CS_API_KEY/CS_API_SECRET")
    r = api.get("/api/orders")

    assert r.status_code == 500
    assert r.json()["message"] == "Missing CS_API_KEY/CS_API_SECRET"


def test_debug_config_masks_secrets(api):
    cfg = api.get("/debug/config").json()["config"]
    assert cfg["CS_API_SECRET"] == "***"
    assert cfg["CS_SYMBOL"] == "PPOUSDT"


def test_unexpected_error_becomes_json_500(fake):
    fake.error = TypeError("boom")
    app.dependency_overrides[get_client] = lambda: fake
    try:
        r = TestClient(app, raise_server_exceptions=False).get("/api/balances")
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"error": "Internal server error", "message": "boom"}


class _ClosingSession:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def test_client_dependency_closes_session():
    deps = get_client(Settings(_env_file=None))
    client = next(deps)
    session = _ClosingSession()
    client.session = session

    deps.close()
    assert session.closed is True
