import json
import logging
import os
import re
from typing import Any, Dict

import requests
from flask import Flask, jsonify, render_template, request
from flask_cors import CORS

# ── внутренние модули
from . import catalog, config, deposit_methods, gateway, orders_store
from .models import Order, generate_ref

config.setup_logging()
logger = logging.getLogger(__name__)

os.makedirs(config.TMP_DIR, exist_ok=True)

TERMINAL_TRX_STATUSES = (
    "success", "done", "paid", "completed",
    "failed", "error", "expired", "cancel", "cancelled",
)

app = Flask(__name__)
CORS(app, resources={r"/api/*": {"origins": "*"}})

UPSTREAM_ERRORS = (requests.RequestException, ValueError)


# ── helpers ──────────────────────────────────────────────────────────────────
def fetch_price_list():
    """Marked-up, sanitized supplier price list; ``[]`` when the provider is unreachable."""
    try:
        raw = gateway.fetch_price_list()
    except UPSTREAM_ERRORS as e:
        logger.error("fetch_price_list error: %s", e)
        return []
    return catalog.clean_price_list(raw, config.ATLANTIC_PROFIT)


_BRACKET_RE = re.compile(r"^(\w+)((?:\[\w*\])+)$")


def _set_nested(target: Dict[str, Any], key: str, value: Any) -> None:
    """``product[code]=X`` → ``{"product": {"code": "X"}}``."""
    m = _BRACKET_RE.match(key)
    if not m:
        target[key] = value
        return
    parts = [m.group(1)] + re.findall(r"\[(\w*)\]", m.group(2))
    node = target
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[parts[-1]] = value


def _read_body() -> dict:
    """
    Тело запроса: JSON, raw JSON (text/plain) или form-urlencoded,
    включая ключи со скобками (product[code]=...).
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict) and data:
        return data

    if request.data:
        try:
            parsed = json.loads(request.data.decode("utf-8"))
            if isinstance(parsed, dict):
                return parsed
        except ValueError:
            pass

    body: Dict[str, Any] = {}
    for k in request.form.keys():
        _set_nested(body, k, request.form.get(k))
    return body


def _upstream_failure(message: str, err: Exception, status: int = 500):
    logger.error("%s: %s", message, gateway.error_detail(err))
    return jsonify({"ok": False, "message": message, "error": str(err)}), status


# ── pages ────────────────────────────────────────────────────────────────────
@app.get("/")
def index():
    try:
        products = fetch_price_list()
        meta = catalog.extract_meta(products)
        return render_template(
            "index.html",
            categories=meta["categories"],
            providers=meta["providers"],
            raw_products_count=len(products),
        )
    except Exception:
        logger.exception("Error rendering home")
        return render_template("index.html", categories=[], providers=[], raw_products_count=0)


@app.get("/payment")
def payment():
    trx_id = request.args.get("trx_id")
    if not trx_id:
        return {"message": "Parameter trx_id diperlukan"}, 400
    order = orders_store.get(trx_id)
    return render_template("payment.html", trx_id=trx_id, order=order, notfound=order is None)


@app.get("/status")
def status():
    return render_template("status.html")


@app.get("/health")
def health():
    return {"ok": True}


# ── catalog API ──────────────────────────────────────────────────────────────
@app.get("/api/price-list")
def api_price_list():
    data = catalog.listable_items(fetch_price_list())
    return jsonify({"ok": True, "count": len(data), "data": data})


@app.get("/api/categories")
def api_categories():
    categories = catalog.extract_meta(fetch_price_list())["categories"]
    return jsonify({"ok": True, "count": len(categories), "data": categories})


@app.get("/api/providers")
def api_providers():
    category = request.args.get("category", catalog.ALL_CATEGORY_SLUG)
    providers = catalog.extract_meta(fetch_price_list())["providers"]
    data = catalog.filter_providers(providers, category)
    return jsonify({"ok": True, "count": len(data), "data": data})


@app.get("/api/products")
def api_products():
    provider = request.args.get("provider", "")
    category = request.args.get("category", "")
    data = catalog.filter_products(fetch_price_list(), provider=provider, category=category)
    return jsonify({"ok": True, "count": len(data), "data": data})


# ── deposits ─────────────────────────────────────────────────────────────────
@app.post("/api/deposit-methods")
def api_deposit_methods():
    body = _read_body()
    try:
        payload = gateway.deposit_methods(body.get("type") or "", body.get("method") or "")
    except UPSTREAM_ERRORS as e:
        logger.error("deposit-methods proxy error: %s", e)
        return jsonify({
            "ok": False,
            "message": "fetch deposit methods failed",
            "error": gateway.error_detail(e),
        }), 500

    items = payload.get("data") if isinstance(payload.get("data"), list) else []
    return jsonify({
        "ok": deposit_methods.is_ok(payload),
        "status": payload.get("status"),
        "code": payload.get("code") or 200,
        "data": deposit_methods.rank_methods(items),
        "raw": payload,
    })


@app.post("/api/create-deposit")
def api_create_deposit():
    body = _read_body()
    price = body.get("price")
    if not price:
        return jsonify({"ok": False, "message": "nominal required"}), 400
    type_ = body.get("type") or "ewallet"
    method = body.get("method") or "QRISFAST"

    reff_id = generate_ref(12)
    try:
        data = gateway.create_deposit(reff_id, price, type_, method, body.get("phone"))
    except UPSTREAM_ERRORS as e:
        return _upstream_failure("create deposit failed", e)

    deposit = data.get("data")
    if not deposit:
        return jsonify({
            "ok": False,
            "message": data.get("message") or "deposit create failed",
            "raw": data,
        }), 500

    # no digits at all: keep what the client sent rather than a made-up 0
    nominal = catalog.to_number(price) if re.search(r"\d", str(price)) else None
    order = Order.from_deposit(
        deposit if isinstance(deposit, dict) else {},
        reff_id=reff_id,
        nominal=nominal if nominal is not None else price,
        type_=type_,
        method=method,
        product=body.get("product"),
    )
    orders_store.put(order.to_dict())
    logger.info("deposit %s created (reff_id=%s, nominal=%s)", order.id, reff_id, order.nominal)

    return jsonify({"ok": True, "reff_id": reff_id, "price": price, "deposit": deposit, "order_id": order.id})


@app.post("/api/deposit-status")
def api_deposit_status():
    deposit_id = _read_body().get("id")
    if not deposit_id:
        return jsonify({"ok": False, "message": "id required"}), 400
    try:
        data = gateway.deposit_status(deposit_id)
    except UPSTREAM_ERRORS as e:
        return _upstream_failure("deposit status failed", e)

    if isinstance(data.get("data"), dict):
        orders_store.update_status(deposit_id, data["data"].get("status"))
    return jsonify({"ok": True, "data": data})


@app.post("/api/deposit-cancel")
def api_deposit_cancel():
    deposit_id = _read_body().get("id")
    if not deposit_id:
        return jsonify({"ok": False, "message": "id required"}), 400
    try:
        data = gateway.cancel_deposit(deposit_id)
    except UPSTREAM_ERRORS as e:
        return _upstream_failure("cancel failed", e)

    orders_store.pop(deposit_id)
    return jsonify({"ok": True, "data": data})


# ── transactions ─────────────────────────────────────────────────────────────
@app.post("/api/transaction-create")
def api_transaction_create():
    body = _read_body()
    reff_id, code, target = body.get("reff_id"), body.get("code"), body.get("target")
    if not reff_id or not code or not target:
        return jsonify({"ok": False, "message": "reff_id, code, target required"}), 400
    try:
        data = gateway.create_transaction(reff_id, code, target)
    except UPSTREAM_ERRORS as e:
        return _upstream_failure("transaksi create failed", e)

    if not data.get("data"):
        return jsonify({
            "ok": False,
            "message": data.get("message") or "transaksi create failed",
            "raw": data,
        }), 500
    return jsonify({"ok": True, "data": data["data"]})


@app.post("/api/transaction-status")
def api_transaction_status():
    body = _read_body()
    trx_id = body.get("id")
    if not trx_id:
        return jsonify({"ok": False, "message": "id required"}), 400
    try:
        data = gateway.transaction_status(trx_id, body.get("type") or "prabayar")
    except UPSTREAM_ERRORS as e:
        return _upstream_failure("transaksi status failed", e)

    trx = data.get("data")
    if isinstance(trx, dict):
        state = (trx.get("status") or trx.get("state") or trx.get("result")
                 or trx.get("transaction_status") or trx.get("tx_status"))
        if str(state or "").lower() in TERMINAL_TRX_STATUSES:
            orders_store.pop(trx_id)
            logger.info("transaction %s finished with status %s", trx_id, state)
    return jsonify({"ok": True, "data": data})


@app.get("/<category>/<provider>")
def provider_page(category: str, provider: str):
    page = catalog.provider_page(fetch_price_list(), category, provider)
    return render_template("provider.html", **page)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT)
