import pytest

from storefront import deposit_methods as dm


def _methods():
    return [
        {"metode": "BCA", "type": "bank", "name": "BCA Transfer", "min": 10000},
        {"metode": "QRIS", "type": "ewallet", "name": "QRIS", "min": 1000},
        {"metode": "BNIVA", "type": "va", "name": "BNI Virtual Account"},
        {"metode": "OVO", "type": "ewallet", "name": "OVO", "min": 1000},
        {"metode": "QRISFAST", "type": "ewallet", "name": "QRIS Fast", "min": 10000},
    ]


@pytest.mark.parametrize("item, rank", [
    ({"type": "ewallet"}, 0),
    ({"type": "E-Wallet"}, 0),
    ({"name": "GoPay"}, 0),
    ({"type": "bank transfer"}, 1),
    ({"type": "Virtual Account"}, 2),
    ({"metode": "BRI VA"}, 2),
    ({"name": "Alfamart"}, 3),
    ("not a dict", 3),
])
def test_type_rank(item, rank):
    assert dm.type_rank(item) == rank


def test_normalize_name_prefers_method_fields():
    assert dm.normalize_name({"type": "ewallet", "metode": "QRISFAST"}) == "qrisfast"
    assert dm.normalize_name({"code": "OVO"}) == "ovo"
    assert dm.normalize_name({}) == ""


def test_rank_methods_pins_qris_fast_and_drops_plain_qris():
    ranked = dm.rank_methods(_methods())

    assert [m["metode"] for m in ranked] == ["QRISFAST", "OVO", "BCA", "BNIVA"]
    assert ranked[0]["min"] == dm.QRIS_MIN_DEPOSIT
    assert ranked[1]["min"] == 1000


def test_rank_methods_pins_plain_qris_without_fast():
    methods = [{"metode": "BCA", "type": "bank"}, {"metode": "QRIS", "type": "qris"}]

    ranked = dm.rank_methods(methods)

    assert [m["metode"] for m in ranked] == ["QRIS", "BCA"]
    assert ranked[0]["min_deposit"] == 500


def test_rank_methods_without_qris_only_sorts():
    methods = [{"metode": "BNIVA", "type": "va"}, {"metode": "BCA", "type": "bank"}, {"metode": "DANA"}]

    ranked = dm.rank_methods(methods)

    assert [m["metode"] for m in ranked] == ["DANA", "BCA", "BNIVA"]
    assert all("min_deposit" not in m for m in ranked)


def test_apply_minimum_overwrites_nested_limits():
    method = {"limit": {"min": 10000, "max": 2000000}}
    dm.apply_minimum(method)
    assert method == {"limit": {"min": 500, "max": 2000000}}


def test_apply_minimum_adds_min_deposit_when_missing():
    method = {"limits": {"max": 1}}
    dm.apply_minimum(method)
    assert method["min_deposit"] == 500


def test_apply_minimum_top_level_field():
    method = {"minimum_deposit": 2000}
    dm.apply_minimum(method, minimum=750)
    assert method == {"minimum_deposit": 750}


def test_is_ok():
    assert dm.is_ok({"status": True})
    assert dm.is_ok({"success": True})
    assert not dm.is_ok({"status": "true"})
    assert not dm.is_ok({})
