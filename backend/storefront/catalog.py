"""Price-list normalization and storefront metadata.

Supplier items are loose dicts (``layanan``, ``provider``, ``category``,
``price``/``harga``/...). Nothing here talks to the network.
"""
import math
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

PRICE_KEYS = ("price", "harga", "amount", "nominal", "sell_price", "sellPrice", "value", "selling_price")

PROVIDER_KEYS = ("provider", "layanan", "service", "operator", "name", "title")
CATEGORY_KEYS = ("category", "type", "group", "service_type")
# provider/category keys used when filtering products for listing
LISTING_PROVIDER_KEYS = ("provider", "layanan", "service", "operator", "name")
LISTING_CATEGORY_KEYS = ("category", "type", "group")

MANUAL_PREFIXES = ("MOBILELEGENDS - ", "MOBILELEGEND - ", "MOBILELEGENDS-", "MOBILELEGEND-")
SEPARATORS = (" - ", "- ", " -", "-")

PRIORITY_CATEGORY_SLUGS = (
    "games",
    "voucher",
    "akun-premium",
    "data-internet",
    "pulsa-reguler",
    "pulsa-transfer",
)
ALL_CATEGORY_SLUG = "all"
ALL_CATEGORY_NAME = "Semua"
PLN_SLUG = "pln"
VOUCHER_SLUG = "voucher"

_TOPUP_RE = re.compile(r"\btopup\s*$", re.IGNORECASE)
_NON_SLUG_RE = re.compile(r"[^a-z0-9\s-]")
_NON_NUMERIC_RE = re.compile(r"[^0-9.-]+")


# ── string helpers ───────────────────────────────────────────────────────────
def _strip_accents(s: str) -> str:
    decomposed = unicodedata.normalize("NFKD", s)
    return "".join(ch for ch in decomposed if not "\u0300" <= ch <= "\u036f")


def slugify(s: Any) -> str:
    if s is None:
        return ""
    s = _strip_accents(str(s).lower())
    s = _NON_SLUG_RE.sub("", s).strip()
    return re.sub(r"\s+", "-", s)


def ends_with_topup(v: Any) -> bool:
    if v is None:
        return False
    return _TOPUP_RE.search(str(v).strip()) is not None


def sanitize_product_name(raw_name: Any) -> str:
    """Drop the supplier's "<brand> - " prefix from a product or group name.

    >>> sanitize_product_name("FREE FIRE - 70 Diamonds")
    '70 Diamonds'
    """
    if raw_name is None:
        return ""
    name = str(raw_name).strip()
    if not name:
        return ""

    lower = name.lower()
    for prefix in MANUAL_PREFIXES:
        if lower.startswith(prefix.lower()):
            return name[len(prefix):].strip()

    last_pos, sep_len = -1, 0
    for sep in SEPARATORS:
        pos = name.rfind(sep)
        if pos > last_pos:
            last_pos, sep_len = pos, len(sep)
    if last_pos >= 0:
        after = name[last_pos + sep_len:].strip()
        if after:
            return after
    return name


def collate_key(s: Any) -> str:
    """Accent- and case-insensitive sort key for display names."""
    return _strip_accents(str(s or "")).casefold()


# ── prices ───────────────────────────────────────────────────────────────────
def to_number(v: Any):
    """Parse a loosely formatted price ("Rp 15.000" style input keeps only digits, '.', '-').

    Returns ``0`` when nothing numeric is left and ``None`` when the rest
    does not parse.
    """
    cleaned = _NON_NUMERIC_RE.sub("", str(v))
    if not cleaned:
        return 0
    try:
        num = Decimal(cleaned)
    except InvalidOperation:
        return None
    if num == num.to_integral_value():
        return int(num)
    return float(num)


def _has_value(item: Dict[str, Any], key: str) -> bool:
    return item.get(key) is not None and item.get(key) != ""


def extract_item_price(item: Optional[Dict[str, Any]]):
    if not item:
        return 0
    for key in PRICE_KEYS:
        if _has_value(item, key):
            num = to_number(item[key])
            if num is not None:
                return num
    return 0


def apply_markup(item: Dict[str, Any], percent: float) -> Dict[str, Any]:
    """Raise every price field by ``percent`` and round up; originals go to ``_orig_<key>``."""
    if percent <= 0:
        return item
    factor = 1 + Decimal(str(percent)) / 100
    for key in PRICE_KEYS:
        if not _has_value(item, key):
            continue
        num = to_number(item[key])
        if num is None:
            continue
        item[f"_orig_{key}"] = num
        item[key] = math.ceil(Decimal(str(num)) * factor)
    return item


# ── items ────────────────────────────────────────────────────────────────────
def sanitize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    copy = dict(item)
    copy["layanan"] = sanitize_product_name(item.get("layanan") or item.get("name") or item.get("title") or "")
    for key in ("name", "title", "provider", "category"):
        if item.get(key):
            copy[key] = sanitize_product_name(item[key])
    return copy


def _candidates(item: Dict[str, Any], keys: Iterable[str]) -> List[Any]:
    return [item.get(k) for k in keys if item.get(k)]


def is_topup_item(item: Dict[str, Any], check_names: bool = False) -> bool:
    """True for wallet top-up entries, which the storefront never sells.

    ``check_names`` is the stricter listing variant: provider candidates
    skip ``title`` but ``name``/``title`` themselves are checked.
    """
    provider_keys = LISTING_PROVIDER_KEYS if check_names else PROVIDER_KEYS
    if any(ends_with_topup(p) for p in _candidates(item, provider_keys)):
        return True
    if any(ends_with_topup(c) for c in _candidates(item, CATEGORY_KEYS)):
        return True
    if check_names:
        return ends_with_topup(item.get("name")) or ends_with_topup(item.get("title"))
    return False


def clean_price_list(raw: Iterable[Dict[str, Any]], percent: float) -> List[Dict[str, Any]]:
    cleaned = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        copy = apply_markup(sanitize_item(item), percent)
        if not is_topup_item(copy):
            cleaned.append(copy)
    return cleaned


def listable_items(items: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [it for it in items or [] if not is_topup_item(it, check_names=True)]


# ── metadata ─────────────────────────────────────────────────────────────────
def _by_name(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(entries, key=lambda e: collate_key(e.get("name") or e.get("slug")))


def extract_meta(price_list: Any) -> Dict[str, List[Dict[str, Any]]]:
    """Group a cleaned price list into storefront categories and providers."""
    items = price_list if isinstance(price_list, list) else []
    sanitized = [sanitize_item(it) for it in items if isinstance(it, dict)]
    sanitized = [it for it in sanitized if not is_topup_item(it)]

    categories: Dict[str, Dict[str, Any]] = {}
    providers: Dict[str, Dict[str, Any]] = {}

    for item in sanitized:
        provider_raw = (item.get("provider") or item.get("layanan") or item.get("service")
                        or item.get("operator") or item.get("name") or "Unknown")
        provider_name = sanitize_product_name(provider_raw) or provider_raw or "Unknown"

        category_raw = item.get("category") or item.get("type") or item.get("group") or "Other"
        category_name = sanitize_product_name(category_raw) or category_raw or "Other"

        if ends_with_topup(provider_name) or ends_with_topup(category_name):
            continue

        p_slug = slugify(provider_name)
        c_slug = slugify(category_name)

        if p_slug not in providers:
            providers[p_slug] = {
                "slug": p_slug,
                "name": provider_name,
                "subtitle": item.get("subtitle") or item.get("provider") or item.get("layanan") or "",
                "img_url": (item.get("img_url") or item.get("img") or item.get("image")
                            or item.get("logo") or None),
                "img": item.get("img") or item.get("image") or item.get("logo") or None,
                "count": 0,
                "type": c_slug,
            }
        providers[p_slug]["count"] += 1

        if c_slug not in categories:
            categories[c_slug] = {"slug": c_slug, "name": category_name, "count": 0}
        categories[c_slug]["count"] += 1

    # PLN tokens are shown under vouchers
    if PLN_SLUG in providers:
        pln = providers[PLN_SLUG]
        pln["type"] = VOUCHER_SLUG
        if VOUCHER_SLUG in categories:
            categories[VOUCHER_SLUG]["count"] += pln["count"] or 0
        else:
            categories[VOUCHER_SLUG] = {"slug": VOUCHER_SLUG, "name": "Voucher", "count": pln["count"] or 0}

    remaining = {c["slug"]: c for c in _by_name(list(categories.values())) if c.get("slug")}
    ordered = [{"slug": ALL_CATEGORY_SLUG, "name": ALL_CATEGORY_NAME, "count": len(sanitized)}]
    for slug in PRIORITY_CATEGORY_SLUGS:
        if slug in remaining:
            ordered.append(remaining.pop(slug))
    ordered.extend(_by_name(list(remaining.values())))

    return {"categories": ordered, "providers": _by_name(list(providers.values()))}


def filter_providers(providers: List[Dict[str, Any]], category: str = ALL_CATEGORY_SLUG) -> List[Dict[str, Any]]:
    if category == ALL_CATEGORY_SLUG:
        return providers
    wanted = slugify(category)
    needle = str(category).lower()
    matched = [
        p for p in providers
        if p.get("type") == wanted or (p.get("name") and needle in p["name"].lower())
    ]
    return sorted(matched, key=lambda p: collate_key(p.get("name")))


# ── products ─────────────────────────────────────────────────────────────────
def slug_match(a: Any, b: Any) -> bool:
    sa, sb = slugify(a), slugify(b)
    return sb in sa or sa in sb


def _matches(item: Dict[str, Any], keys: Iterable[str], wanted: str) -> bool:
    return any(slug_match(v, wanted) for v in _candidates(item, keys))


def _by_price(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(items, key=extract_item_price)


def filter_products(items: Iterable[Dict[str, Any]], provider: str = "", category: str = "") -> List[Dict[str, Any]]:
    """Products of one provider/category, cheapest first. Empty filters match everything."""
    matched = []
    for item in listable_items(items):
        if provider and not _matches(item, LISTING_PROVIDER_KEYS, provider):
            continue
        if category and not _matches(item, LISTING_CATEGORY_KEYS, category):
            continue
        matched.append(item)
    return _by_price(matched)


def provider_page(items: Iterable[Dict[str, Any]], category: str, provider: str) -> Dict[str, Any]:
    """View model for ``/<category>/<provider>``.

    Items without any category field still match the category. When nothing
    matches both, the page lists every product of the provider.
    """
    listable = listable_items(items)

    def category_ok(item):
        cats = _candidates(item, CATEGORY_KEYS)
        return not cats or any(slug_match(c, category) for c in cats)

    products = [
        it for it in listable
        if _matches(it, LISTING_PROVIDER_KEYS, provider) and category_ok(it)
    ]
    if not products:
        products = [it for it in listable if _matches(it, LISTING_PROVIDER_KEYS, provider)]
    products = _by_price(products)

    if products:
        sample = next((p for p in products if p.get("provider")), products[0])
        provider_name = (sample.get("provider") or sample.get("layanan") or sample.get("service")
                         or sample.get("operator") or provider)
        cat_sample = next((p for p in products if _candidates(p, CATEGORY_KEYS)), products[0])
        category_name = (cat_sample.get("category") or cat_sample.get("type") or cat_sample.get("group")
                         or cat_sample.get("service_type") or category)
    else:
        provider_name, category_name = provider, category

    return {
        "category_slug": category,
        "provider_slug": provider,
        "products": products,
        "category_name": category_name,
        "provider_name": provider_name,
        "show_all_category": True,
    }
