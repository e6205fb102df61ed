"""
Field resolution for heterogeneous API responses.

The same quantity shows up under different keys depending on the endpoint and
the trading pair (``remain_btc`` vs ``remain_idr``, ``price`` vs
``order_idr``...). Each report field declares its candidate keys below as
``(key template, currency template)`` pairs; templates are filled with the
pair's ``base``/``quote`` (or the group's ``currency``) and tried in order.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from exchanges.errors import MalformedResponseError
from formatters import format_amount

Candidate = Tuple[str, str]

# transHistory, per currency group
TRANSACTION_TOTAL: Sequence[Candidate] = (("{currency}", "{currency}"), ("rp", "{currency}"))
TRANSACTION_FEE: Sequence[Candidate] = (("fee", "{currency}"),)
TRANSACTION_NET: Sequence[Candidate] = (("amount", "{currency}"),)

# trade
TRADE_FEE: Sequence[Candidate] = (("fee", "{quote}"),)
TRADE_RECEIVED: Sequence[Candidate] = (
    ("receive_{base}", "{base}"),
    ("receive_rp", "{quote}"),
    ("receive_{quote}", "{quote}"),
)
TRADE_SPENT: Sequence[Candidate] = (
    ("spend_rp", "{quote}"),
    ("spend_{quote}", "{quote}"),
    ("spend_{base}", "{base}"),
)
TRADE_REMAINING: Sequence[Candidate] = (
    ("remain_rp", "{quote}"),
    ("remain_{quote}", "{quote}"),
    ("remain_{base}", "{base}"),
)

# tradeHistory
HISTORY_AMOUNT: Sequence[Candidate] = (("{base}", "{base}"), ("amount", "{base}"))
HISTORY_PRICE: Sequence[Candidate] = (("price", "{quote}"),)
HISTORY_FEE: Sequence[Candidate] = (("fee", "{quote}"),)

# openOrders
OPEN_ORDER_PRICE: Sequence[Candidate] = (("price", "{quote}"), ("order_{quote}", "{quote}"))
OPEN_ORDER_AMOUNT: Sequence[Candidate] = (("order_{base}", "{base}"),)
OPEN_ORDER_REMAINING: Sequence[Candidate] = (("remain_{base}", "{base}"), ("remain_{quote}", "{quote}"))

# orderHistory
ORDER_HISTORY_PRICE: Sequence[Candidate] = (("price", "{quote}"),)
ORDER_HISTORY_AMOUNT: Sequence[Candidate] = (("order_{quote}", "{quote}"), ("order_{base}", "{base}"))
ORDER_HISTORY_REMAINING: Sequence[Candidate] = (("remain_{quote}", "{quote}"), ("remain_{base}", "{base}"))

# getOrder
ORDER_PRICE: Sequence[Candidate] = (("price", "{quote}"),)
ORDER_AMOUNT: Sequence[Candidate] = (
    ("order_{quote}", "{quote}"),
    ("order_rp", "{quote}"),
    ("order_{base}", "{base}"),
)
ORDER_REMAINING: Sequence[Candidate] = (
    ("remain_{quote}", "{quote}"),
    ("remain_rp", "{quote}"),
    ("remain_{base}", "{base}"),
)
ORDER_REFUND: Sequence[Candidate] = (("refund_{quote}", "{quote}"), ("refund_rp", "{quote}"))


@dataclass(frozen=True)
class Amount:
    """A raw amount together with the currency it is denominated in."""

    value: Any
    currency: str

    def render(self) -> str:
        return format_amount(self.value, self.currency)


def split_pair(pair: str) -> Tuple[str, str]:
    """
    Split a trading pair into (base, quote).

    Examples:
        >>> split_pair("btc_idr")
        ('btc', 'idr')

    Raises:
        ValueError: If the pair is not in ``base_quote`` form
    """
    base, sep, quote = (pair or "").strip().lower().partition("_")
    if not sep or not base or not quote:
        raise ValueError(f"Invalid pair: {pair!r}. Expected format like 'btc_idr'")
    return base, quote


def resolve_field(record: Mapping[str, Any], keys: Sequence[str],
                  default: Any = "0") -> Tuple[Any, Optional[str]]:
    """
    Return the first present, non-empty value among ``keys``.

    Returns:
        Tuple of (value, matched key); (default, None) when nothing matched
    """
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value, key
    return default, None


def expand(candidates: Sequence[Candidate], **names: str) -> List[Candidate]:
    """Fill key and currency templates with the given names."""
    return [(key.format(**names), currency.format(**names)) for key, currency in candidates]


def resolve_amount(record: Mapping[str, Any], candidates: Sequence[Candidate],
                   default: Any = "0", **names: str) -> Optional[Amount]:
    """
    Resolve an amount field and tag it with the currency of the key that matched.

    When no candidate matches, the default is tagged with the first
    candidate's currency; a ``None`` default yields ``None``.
    """
    expanded = expand(candidates, **names)
    currencies: Dict[str, str] = {}
    for key, currency in expanded:
        currencies.setdefault(key, currency)

    value, key = resolve_field(record, [k for k, _ in expanded], default)
    if key is None:
        if default is None:
            return None
        return Amount(default, expanded[0][1])
    return Amount(value, currencies[key])


def require_mapping(value: Any, field: str) -> Mapping[str, Any]:
    """Return ``value`` if it is a JSON object, else raise MalformedResponseError."""
    if not isinstance(value, dict):
        raise MalformedResponseError(f"Expected '{field}' to be an object", field=field)
    return value


def require_list(value: Any, field: str) -> List[Any]:
    """Return ``value`` if it is a JSON array, else raise MalformedResponseError."""
    if not isinstance(value, list):
        raise MalformedResponseError(f"Expected '{field}' to be a list", field=field)
    return value


def text_or_placeholder(value: Any, placeholder: str = "-") -> str:
    if value is None or value == "":
        return placeholder
    return str(value)
