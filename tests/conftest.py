import pytest

from storefront import config, gateway, main


class FakeUpstream:
    """Stands in for ``gateway.post_form``: canned replies per path, calls recorded."""

    def __init__(self):
        self.replies = {}
        self.calls = []

    def reply(self, path, payload):
        self.replies[path] = payload

    def params(self, path):
        return [p for (called, p) in self.calls if called == path][-1]

    def __call__(self, path, params=None):
        self.calls.append((path, dict(params or {})))
        reply = self.replies.get(path, {"status": True, "data": None})
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def orders_file(tmp_path, monkeypatch):
    path = tmp_path / "orders.json"
    monkeypatch.setattr(config, "ORDERS_FILE", str(path))
    return path


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr(gateway, "post_form", fake)
    return fake


@pytest.fixture
def client(orders_file, upstream, monkeypatch):
    monkeypatch.setattr(config, "ATLANTIC_PROFIT", 10.0)
    main.app.config["TESTING"] = True
    return main.app.test_client()


@pytest.fixture
def supplier_items():
    return [
        {"code": "FF140", "layanan": "FREE FIRE - 140 Diamonds", "provider": "FREE FIRE",
         "category": "Games", "price": "20000"},
        {"code": "FF70", "layanan": "FREE FIRE - 70 Diamonds", "provider": "FREE FIRE",
         "category": "Games", "price": "10000"},
        {"code": "PLN20", "layanan": "PLN - Token 20.000", "provider": "PLN",
         "category": "Token Listrik", "price": 20500},
        {"code": "NFX1", "layanan": "Netflix 1 Bulan", "provider": "Netflix",
         "category": "Akun Premium", "price": 35000},
        {"code": "DANA10", "layanan": "DANA TOPUP 10.000", "provider": "DANA TOPUP",
         "category": "E-Money", "price": 10500},
    ]
