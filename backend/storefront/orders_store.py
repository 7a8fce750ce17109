# backend/storefront/orders_store.py
"""Pending orders kept as one JSON list in ``ORDERS_FILE``.

Every mutation reads the whole file and writes it back. There is no locking.
"""
import json
import logging
import os
from typing import Any, Dict, List, Optional

from . import config
from .models import generate_ref

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("pending", "success")


def _path(path: Optional[str]) -> str:
    return path or config.ORDERS_FILE


def read_orders(path: Optional[str] = None) -> List[Dict[str, Any]]:
    p = _path(path)
    if not os.path.exists(p):
        return []
    try:
        with open(p, "r", encoding="utf-8") as f:
            raw = f.read().strip()
    except (OSError, UnicodeDecodeError):
        logger.exception("Error reading orders file %s", p)
        return []
    if not raw:
        return []

    try:
        parsed = json.loads(raw)
    except ValueError as e:
        logger.error("orders.json parse error, resetting to empty list: %s", e)
        return []

    if isinstance(parsed, list):
        items = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("orders"), list):
        items = parsed["orders"]
    elif isinstance(parsed, dict):
        items = list(parsed.values())
    else:
        items = []

    orders = []
    for o in items:
        if not isinstance(o, dict):
            continue
        copy = dict(o)
        if copy.get("id") is None or copy.get("id") == "":
            copy["id"] = generate_ref(12)
        else:
            copy["id"] = str(copy["id"])
        orders.append(copy)
    return orders


def write_orders(orders: Any, path: Optional[str] = None) -> None:
    p = _path(path)
    data = orders if isinstance(orders, list) else []
    try:
        os.makedirs(os.path.dirname(p), exist_ok=True)
        with open(p, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
    except OSError:
        logger.exception("Error writing orders file %s", p)


def put(order: Dict[str, Any], path: Optional[str] = None) -> None:
    orders = read_orders(path)
    orders.append(order)
    write_orders(orders, path)


def get(order_id: Any, path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    for o in read_orders(path):
        if o["id"] == str(order_id):
            return o
    return None


def pop(order_id: Any, path: Optional[str] = None) -> None:
    orders = read_orders(path)
    write_orders([o for o in orders if o["id"] != str(order_id)], path)


def update_status(order_id: Any, status: Optional[str], path: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Set an order's status; orders leaving pending/success are dropped.

    An empty ``status`` keeps the current one. Returns the updated order, or
    ``None`` when the id is unknown. The file is left untouched for unknown ids.
    """
    orders = read_orders(path)
    for i, o in enumerate(orders):
        if o["id"] != str(order_id):
            continue
        o["status"] = status or o.get("status")
        if o["status"] not in ACTIVE_STATUSES:
            del orders[i]
        write_orders(orders, path)
        return o
    return None
