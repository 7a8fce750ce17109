import json
import secrets
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

ORDER_TTL = timedelta(hours=1)

# provider field -> order field, copied only when the provider sent a value
PAYMENT_FIELDS = {
    "nomor_va": "account_number",
    "tujuan": "destination_number",
    "url": "url",
    "qr_string": "qr_string",
    "qr_image": "qr_image",
    "tambahan": "addition",
    "fee": "fee",
    "get_balance": "get_balance",
}


def generate_ref(length: int = 12) -> str:
    """Random upper-case hex reference, e.g. ``'3FA91C0B7D2E'``."""
    return secrets.token_hex((length + 1) // 2)[:length].upper()


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_product(product: Any) -> Any:
    """Form clients may send ``product`` as a JSON string."""
    if isinstance(product, str):
        try:
            product = json.loads(product)
        except ValueError:
            pass
    return product or {}


@dataclass
class Order:
    id: str
    reff_id: str
    nominal: Any
    type: str
    method: str
    status: str = "pending"
    created_at: str = ""
    expired_at: str = ""
    product: Any = field(default_factory=dict)  # usually a dict; kept as sent otherwise
    payment: Dict[str, Any] = field(default_factory=dict)  # instructions returned by the provider

    @classmethod
    def from_deposit(cls, deposit: Dict[str, Any], reff_id: str, nominal: Any, type_: str,
                     method: str, product: Any = None,
                     now: Optional[datetime] = None) -> "Order":
        now = now or datetime.now(timezone.utc)
        deposit_id = deposit.get("id")
        return cls(
            id=str(deposit_id) if deposit_id is not None else str(reff_id),
            reff_id=str(reff_id),
            nominal=nominal,
            type=type_,
            method=method,
            created_at=_iso(now),
            expired_at=_iso(now + ORDER_TTL),
            product=_parse_product(product),
            payment={dst: deposit[src] for src, dst in PAYMENT_FIELDS.items() if deposit.get(src)},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.update(data.pop("payment"))
        return data
