import pytest

from storefront import config


@pytest.mark.parametrize("raw, expected", [
    ("12.5", 12.5),
    ("0", 0.0),
    ("ten", 0.0),
    ("nan", 0.0),
    ("", 0.0),
])
def test_percent_env(monkeypatch, raw, expected):
    monkeypatch.setenv("ATLANTIC_PROFIT", raw)
    assert config._percent_env("ATLANTIC_PROFIT", "10") == expected


def test_percent_env_default(monkeypatch):
    monkeypatch.delenv("ATLANTIC_PROFIT", raising=False)
    assert config._percent_env("ATLANTIC_PROFIT", "10") == 10.0
