"""Ordering of the provider's deposit methods for the checkout page.

E-wallets come first, then bank transfers, then virtual accounts. A single
QRIS method is pinned to the top with the storefront's own minimum.
"""
import re
from typing import Any, Dict, List

QRIS_MIN_DEPOSIT = 500

MIN_FIELDS = (
    "min_deposit", "minimum_deposit", "min", "minimum", "minimal", "min_amount",
    "minAmount", "minimumAmount", "min_deposit_amount",
)

_RANK_KEYS = ("type", "method", "metode", "category", "kategori", "name", "nama")
_NAME_KEYS = ("method", "metode", "name", "nama", "type", "code", "id")

_EWALLET_RE = re.compile(r"e-?wallet")
_EWALLET_BRAND_RE = re.compile(r"gopay|ovo|dana|linkaja|shopeepay")
_VA_RE = re.compile(r"va\b|virtual")
_QRIS_FAST_RE = re.compile(r"qris.*fast|qrisfast|qris-?fast")


def _first_truthy(item: Any, keys) -> str:
    if not isinstance(item, dict):
        return ""
    for key in keys:
        if item.get(key):
            return str(item[key])
    return ""


def type_rank(item: Any) -> int:
    s = _first_truthy(item, _RANK_KEYS).lower()
    if _EWALLET_RE.search(s) or _EWALLET_BRAND_RE.search(s):
        return 0
    if "bank" in s:
        return 1
    if _VA_RE.search(s):
        return 2
    return 3


def normalize_name(item: Any) -> str:
    return _first_truthy(item, _NAME_KEYS).lower()


def is_qris_fast(name: str) -> bool:
    return _QRIS_FAST_RE.search(name) is not None


def is_plain_qris(name: str) -> bool:
    return "qris" in name and not is_qris_fast(name)


def _set_min(obj: Dict[str, Any], minimum: int) -> None:
    for field in MIN_FIELDS:
        if field in obj:
            obj[field] = minimum


def apply_minimum(method: Any, minimum: int = QRIS_MIN_DEPOSIT) -> None:
    """Overwrite every minimum the method carries, in place.

    A method with no minimum at all gets ``min_deposit``.
    """
    if not isinstance(method, dict):
        return
    _set_min(method, minimum)
    nested = [method.get(k) for k in ("limit", "limits") if isinstance(method.get(k), dict)]
    for limits in nested:
        _set_min(limits, minimum)

    has_min = any(f in method for f in MIN_FIELDS) or any(
        limits.get("min") or limits.get("minimum") or limits.get("min_deposit") for limits in nested
    )
    if not has_min:
        method["min_deposit"] = minimum


def _pin_first(methods: List[Any], index: int, minimum: int) -> List[Any]:
    pinned = methods[index]
    apply_minimum(pinned, minimum)
    ordered = [pinned] + methods[:index] + methods[index + 1:]
    return [ordered[0]] + [
        m for m in ordered[1:]
        if m and not is_plain_qris(normalize_name(m))
    ]


def rank_methods(items: List[Any], minimum: int = QRIS_MIN_DEPOSIT) -> List[Any]:
    """Sort methods by type rank (stable) and pin the preferred QRIS method first.

    A QRIS-fast method wins over plain QRIS. Once one is pinned, every other
    plain QRIS entry is dropped.
    """
    methods = sorted(items or [], key=type_rank)
    names = [normalize_name(m) for m in methods]

    fast = next((i for i, n in enumerate(names) if is_qris_fast(n)), -1)
    if fast != -1:
        return _pin_first(methods, fast, minimum)
    plain = next((i for i, n in enumerate(names) if is_plain_qris(n)), -1)
    if plain != -1:
        return _pin_first(methods, plain, minimum)
    return methods


def is_ok(payload: Dict[str, Any]) -> bool:
    return any(payload.get(k) is True for k in ("status", "ok", "success"))
