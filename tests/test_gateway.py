import pytest
import requests

from storefront import config, gateway


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = "" if payload is None else str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.posts = []

    def post(self, url, data=None, timeout=None):
        self.posts.append({"url": url, "data": data, "timeout": timeout})
        return self.response


@pytest.fixture
def session(monkeypatch):
    monkeypatch.setattr(config, "ATLANTIC_BASE", "https://h2h.example")
    monkeypatch.setattr(config, "ATLANTIC_KEY", "secret")
    fake = FakeSession(FakeResponse({"status": True, "data": []}))
    monkeypatch.setattr(gateway, "_session", fake)
    return fake


def test_post_form_sends_api_key_and_skips_empty_params(session):
    gateway.deposit_methods("ewallet", "")

    post = session.posts[0]
    assert post["url"] == "https://h2h.example/deposit/metode"
    assert post["data"] == {"api_key": "secret", "type": "ewallet"}
    assert post["timeout"] == config.REQUEST_TIMEOUT


def test_create_transaction_upper_cases_code(session):
    gateway.create_transaction("REF1", "ff70", "08123")

    assert session.posts[0]["data"]["code"] == "FF70"
    assert session.posts[0]["url"].endswith("/transaksi/create")


def test_transaction_status_defaults_to_prepaid(session):
    gateway.transaction_status("TRX1")

    assert session.posts[0]["data"] == {"api_key": "secret", "id": "TRX1", "type": "prabayar"}


def test_fetch_price_list(session):
    session.response = FakeResponse({"status": True, "data": [{"code": "FF70"}]})
    assert gateway.fetch_price_list() == [{"code": "FF70"}]
    assert session.posts[0]["data"]["type"] == "prabayar"

    session.response = FakeResponse({"status": False, "message": "invalid key"})
    assert gateway.fetch_price_list() == []


def test_post_form_raises_on_http_error(session):
    session.response = FakeResponse({"message": "forbidden"}, status_code=403)

    with pytest.raises(requests.HTTPError) as exc:
        gateway.cancel_deposit("DEP1")

    assert gateway.error_detail(exc.value) == {"message": "forbidden"}


def test_error_detail_without_response():
    err = requests.ConnectionError("connection refused")
    assert gateway.error_detail(err) == {"message": "connection refused"}


def test_new_session_mounts_retry_adapter():
    session = gateway.new_session()
    adapter = session.get_adapter("https://h2h.example")
    assert adapter.max_retries.total == gateway.DEFAULT_RETRY_STRATEGY.total
