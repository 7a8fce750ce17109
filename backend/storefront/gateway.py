"""Client for the upstream H2H payment provider.

Every endpoint takes ``api_key`` plus its own fields as a form-encoded POST
and answers with JSON shaped like ``{"status": ..., "message": ..., "data": ...}``.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import config

logger = logging.getLogger(__name__)

# POST is not in Retry's allowed methods, so only failed connects are retried;
# a deposit is never created twice because of a 5xx.
DEFAULT_RETRY_STRATEGY = Retry(
    total=3,
    backoff_factor=0.5,
    status_forcelist=[429, 500, 502, 503, 504],
)

_session: Optional[requests.Session] = None


def new_session() -> requests.Session:
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=DEFAULT_RETRY_STRATEGY)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


def get_session() -> requests.Session:
    global _session
    if _session is None:
        _session = new_session()
    return _session


def post_form(path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """POST ``api_key`` + params to ``ATLANTIC_BASE + path`` and decode the JSON reply.

    Params whose value is ``None`` or ``""`` are left out of the form.

    Raises:
        requests.RequestException: transport errors and non-2xx replies
        ValueError: reply body is not JSON
    """
    form = {"api_key": config.ATLANTIC_KEY}
    for k, v in (params or {}).items():
        if v is None or v == "":
            continue
        form[k] = v
    url = f"{config.ATLANTIC_BASE}{path}"
    resp = get_session().post(url, data=form, timeout=config.REQUEST_TIMEOUT)
    resp.raise_for_status()
    payload = resp.json()
    logger.debug("POST %s -> %s", path, payload)
    return payload if isinstance(payload, dict) else {"data": payload}


def error_detail(exc: Exception) -> Any:
    """Upstream body of a failed call, or the exception message."""
    response = getattr(exc, "response", None)
    if response is not None:
        try:
            return response.json()
        except ValueError:
            if response.text:
                return response.text
    return {"message": str(exc)}


# ── endpoints ────────────────────────────────────────────────────────────────
def fetch_price_list() -> List[Dict[str, Any]]:
    payload = post_form("/layanan/price_list", {"type": "prabayar"})
    data = payload.get("data")
    return data if isinstance(data, list) else []


def deposit_methods(type_: str = "", method: str = "") -> Dict[str, Any]:
    return post_form("/deposit/metode", {"type": type_, "metode": method})


def create_deposit(reff_id: str, nominal: Any, type_: str, method: str,
                   phone: Optional[str] = None) -> Dict[str, Any]:
    return post_form("/deposit/create", {
        "reff_id": reff_id,
        "nominal": nominal,
        "type": type_,
        "metode": method,
        "phone": phone,
    })


def deposit_status(deposit_id: str) -> Dict[str, Any]:
    return post_form("/deposit/status", {"id": deposit_id})


def cancel_deposit(deposit_id: str) -> Dict[str, Any]:
    return post_form("/deposit/cancel", {"id": deposit_id})


def create_transaction(reff_id: str, code: str, target: str) -> Dict[str, Any]:
    return post_form("/transaksi/create", {
        "reff_id": reff_id,
        "code": str(code).upper(),
        "target": target,
    })


def transaction_status(trx_id: str, type_: str = "prabayar") -> Dict[str, Any]:
    return post_form("/transaksi/status", {"id": trx_id, "type": type_})
