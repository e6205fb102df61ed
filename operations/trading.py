"""
Trading operations: order placement, trade/order history, open orders,
single-order lookup and cancellation.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from exchanges.indodax import IndodaxCredentials, call_private_api
from formatters import format_date, format_now, format_timestamp, parse_number, to_epoch_seconds

from .fields import (
    HISTORY_AMOUNT,
    HISTORY_FEE,
    HISTORY_PRICE,
    OPEN_ORDER_AMOUNT,
    OPEN_ORDER_PRICE,
    OPEN_ORDER_REMAINING,
    ORDER_AMOUNT,
    ORDER_HISTORY_AMOUNT,
    ORDER_HISTORY_PRICE,
    ORDER_HISTORY_REMAINING,
    ORDER_PRICE,
    ORDER_REFUND,
    ORDER_REMAINING,
    TRADE_FEE,
    TRADE_RECEIVED,
    TRADE_REMAINING,
    TRADE_SPENT,
    Amount,
    require_list,
    require_mapping,
    resolve_amount,
    resolve_field,
    split_pair,
    text_or_placeholder,
)
from .result import OperationResult, run_operation

TRADE_FAILURE = "Failed to Place Trading Order"
TRADE_HISTORY_FAILURE = "Failed to Retrieve Trading History"
OPEN_ORDERS_FAILURE = "Failed to Retrieve Open Orders"
ORDER_HISTORY_FAILURE = "Failed to Retrieve Order History"
GET_ORDER_FAILURE = "Failed to Retrieve Order Details"
CANCEL_ORDER_FAILURE = "Failed to Cancel Order"

SIDES = ("buy", "sell")
ORDER_TYPES = ("limit", "market")
SORT_ORDERS = ("asc", "desc")

TimeInput = Union[int, float, str, date, datetime]


def _validate_side(side: str) -> str:
    side = (side or "").lower()
    if side not in SIDES:
        raise ValueError(f"Invalid side: {side}. Must be 'buy' or 'sell'")
    return side


def _validate_order_type(order_type: str) -> str:
    order_type = (order_type or "").lower()
    if order_type not in ORDER_TYPES:
        raise ValueError(f"Invalid order_type: {order_type}. Must be 'limit' or 'market'")
    return order_type


def _positive_float(value: Any, name: str) -> float:
    number = parse_number(value)
    if number is None or number <= 0:
        raise ValueError(f"Field '{name}' must be a positive number")
    return float(number)


def _upper(value: Any) -> str:
    return text_or_placeholder(value).upper()


def _finish_time(value: Any) -> str:
    # open orders report a finish time of 0
    return format_timestamp(value) if parse_number(value) else "Not completed"


@dataclass
class TradeReceipt:
    pair: str
    side: str
    order_type: str
    price: Optional[Amount]
    amount: Amount
    order_id: Any
    client_order_id: Any
    fee: Amount
    received: Amount
    spent: Amount
    remaining: Amount
    created_at: str = field(default_factory=format_now)

    def render(self) -> str:
        lines = [
            "Trading Order Report",
            f"Time: {self.created_at}",
            f"Order Type: {self.side.upper()} {self.order_type.upper()}",
            f"Pair: {self.pair.upper()}",
        ]
        if self.price is not None:
            lines.append(f"Price: {self.price.render()}")
        lines += [
            f"Amount: {self.amount.render()}",
            f"Order ID: {text_or_placeholder(self.order_id)}",
            f"Client ID: {text_or_placeholder(self.client_order_id)}",
            f"Fee: {self.fee.render()}",
            f"Received: {self.received.render()}",
            f"Spent: {self.spent.render()}",
            f"Remaining: {self.remaining.render()}",
        ]
        return "\n".join(lines)


def build_trade_params(
    pair: str,
    side: str,
    amount: Any,
    price: Any = None,
    order_type: str = "limit",
    client_order_id: Optional[str] = None,
    time_in_force: str = "GTC"
) -> Dict[str, Any]:
    """
    Build the parameters of a ``trade`` call.

    Limit buys spend IDR, limit sells spend the base asset; market orders
    always send the IDR amount.

    Raises:
        ValueError: If any argument is invalid
    """
    base, _ = split_pair(pair)
    side = _validate_side(side)
    order_type = _validate_order_type(order_type)
    quantity = _positive_float(amount, "amount")

    params: Dict[str, Any] = {
        "pair": pair.lower(),
        "type": side,
        "order_type": order_type,
        "client_order_id": client_order_id or f"client-{int(time.time() * 1000)}",
        "time_in_force": time_in_force.upper(),
    }
    if order_type == "limit":
        params["price"] = _positive_float(price, "price")
        if side == "buy":
            params["idr"] = quantity
        else:
            params[base] = quantity
    else:
        params["idr"] = quantity
    return params


def parse_trade_receipt(raw: Any, params: Mapping[str, Any]) -> TradeReceipt:
    data = require_mapping(raw, "return")
    pair = params["pair"]
    base, quote = split_pair(pair)
    side = params["type"]
    price = params.get("price")
    # the quantity goes out under "idr" for buys and market orders, but buys
    # are denominated in the quote currency and sells in the base asset
    quantity = params["idr"] if "idr" in params else params[base]
    return TradeReceipt(
        pair=pair,
        side=side,
        order_type=params["order_type"],
        price=Amount(price, quote) if price is not None else None,
        amount=Amount(quantity, quote if side == "buy" else base),
        order_id=data.get("order_id"),
        client_order_id=data.get("client_order_id", params["client_order_id"]),
        fee=resolve_amount(data, TRADE_FEE, base=base, quote=quote),
        received=resolve_amount(data, TRADE_RECEIVED, base=base, quote=quote),
        spent=resolve_amount(data, TRADE_SPENT, base=base, quote=quote),
        remaining=resolve_amount(data, TRADE_REMAINING, base=base, quote=quote),
    )


async def trade(
    credentials: IndodaxCredentials,
    pair: str,
    side: str,
    amount: Any,
    price: Any = None,
    order_type: str = "limit",
    client_order_id: Optional[str] = None,
    time_in_force: str = "GTC",
    api_url: Optional[str] = None
) -> OperationResult[TradeReceipt]:
    """
    Place a buy or sell order.

    Args:
        credentials: API key pair
        pair: Trading pair (e.g. "btc_idr")
        side: "buy" or "sell"
        amount: IDR to spend when buying, base asset to sell when selling
        price: Limit price (required for limit orders)
        order_type: "limit" or "market"
        client_order_id: Reuse to make a resubmission idempotent;
            defaults to a timestamp-derived id
        time_in_force: "GTC" or "MOC"
        api_url: Override the endpoint (for testing)
    """
    async def fetch() -> TradeReceipt:
        params = build_trade_params(pair, side, amount, price, order_type, client_order_id, time_in_force)
        logging.info(f"Placing {params['type']} {params['order_type']} order for {params['pair']} "
                     f"(client_order_id={params['client_order_id']})")
        raw = await call_private_api("trade", params, credentials, api_url=api_url)
        return parse_trade_receipt(raw, params)

    return await run_operation("trade", TRADE_FAILURE, fetch)


@dataclass
class TradeFill:
    trade_id: Any
    order_id: Any
    type: str
    amount: Amount
    price: Amount
    fee: Amount
    trade_time: Any
    client_order_id: Any


@dataclass
class TradeHistory:
    pair: str
    order: str
    since: Optional[TimeInput] = None
    end: Optional[TimeInput] = None
    trades: List[TradeFill] = field(default_factory=list)
    updated_at: str = field(default_factory=format_now)

    def render(self) -> str:
        lines = [
            "Indodax Trading History",
            f"Updated At: {self.updated_at}",
            f"Total Transactions: {len(self.trades)}",
            f"Pair: {self.pair.upper()}",
        ]
        if self.since or self.end:
            start = format_date(self.since) if self.since else "Start"
            finish = format_date(self.end) if self.end else "Now"
            lines.append(f"Period: {start} to {finish}")
        lines += [f"Order: {self.order.upper()}", ""]

        if not self.trades:
            lines.append("No trading history.")
        for index, fill in enumerate(self.trades, start=1):
            lines += [
                f"Transaction {index}",
                f"Transaction ID: {text_or_placeholder(fill.trade_id)}",
                f"Order ID: {text_or_placeholder(fill.order_id)}",
                f"Type: {fill.type}",
                f"Amount: {fill.amount.render()}",
                f"Price: {fill.price.render()}",
                f"Fee: {fill.fee.render()}",
                f"Time: {format_timestamp(fill.trade_time)}",
                f"Client ID: {fill.client_order_id or 'Not available'}",
                "",
            ]
        return "\n".join(lines).strip()


def build_trade_history_params(
    pair: str,
    count: Any = 1000,
    from_id: Any = None,
    end_id: Any = None,
    order: str = "desc",
    since: Optional[TimeInput] = None,
    end: Optional[TimeInput] = None,
    order_id: Any = None
) -> Dict[str, Any]:
    split_pair(pair)
    order = (order or "").lower()
    if order not in SORT_ORDERS:
        raise ValueError(f"Invalid order: {order}. Must be 'asc' or 'desc'")
    return {
        "pair": pair.lower(),
        "count": int(count),
        "from_id": from_id,
        "end_id": end_id,
        "order": order,
        "since": to_epoch_seconds(since) if since else None,
        "end": to_epoch_seconds(end) if end else None,
        "order_id": order_id,
    }


def parse_trade_history(raw: Any, pair: str, order: str,
                        since: Optional[TimeInput] = None,
                        end: Optional[TimeInput] = None) -> TradeHistory:
    data = require_mapping(raw, "return")
    base, quote = split_pair(pair)
    fills = []
    for entry in require_list(data.get("trades"), "trades"):
        entry = require_mapping(entry, "trades[]")
        fills.append(TradeFill(
            trade_id=entry.get("trade_id"),
            order_id=entry.get("order_id"),
            type=_upper(entry.get("type")),
            amount=resolve_amount(entry, HISTORY_AMOUNT, base=base, quote=quote),
            price=resolve_amount(entry, HISTORY_PRICE, base=base, quote=quote),
            fee=resolve_amount(entry, HISTORY_FEE, base=base, quote=quote),
            trade_time=entry.get("trade_time"),
            client_order_id=entry.get("client_order_id"),
        ))
    return TradeHistory(pair=pair.lower(), order=order, since=since, end=end, trades=fills)


async def trade_history(
    credentials: IndodaxCredentials,
    pair: str,
    count: Any = 1000,
    from_id: Any = None,
    end_id: Any = None,
    order: str = "desc",
    since: Optional[TimeInput] = None,
    end: Optional[TimeInput] = None,
    order_id: Any = None,
    api_url: Optional[str] = None
) -> OperationResult[TradeHistory]:
    """
    Fetch executed trades for a pair.

    ``since`` and ``end`` accept datetimes, dates or ISO strings and are sent
    as epoch seconds. Unset filters are left out of the request.
    """
    async def fetch() -> TradeHistory:
        params = build_trade_history_params(pair, count, from_id, end_id, order, since, end, order_id)
        raw = await call_private_api("tradeHistory", params, credentials, api_url=api_url)
        return parse_trade_history(raw, pair, params["order"], since, end)

    return await run_operation("tradeHistory", TRADE_HISTORY_FAILURE, fetch)


@dataclass
class OpenOrder:
    order_id: Any
    client_order_id: Any
    submit_time: Any
    type: str
    price: Amount
    amount: Amount
    remaining: Amount
    order_type: Optional[str] = None


@dataclass
class OpenOrders:
    orders: Dict[str, List[OpenOrder]] = field(default_factory=dict)
    updated_at: str = field(default_factory=format_now)

    @property
    def total(self) -> int:
        return sum(len(orders) for orders in self.orders.values())

    def render(self) -> str:
        lines = [
            "Indodax Open Orders",
            f"Updated At: {self.updated_at}",
            f"Total Orders: {self.total}",
            "",
        ]
        if not self.total:
            lines.append("No open orders.")
        for pair, orders in self.orders.items():
            if not orders:
                continue
            lines += [f"Pair: {pair.upper()}", f"Total Orders: {len(orders)}"]
            for index, order in enumerate(orders, start=1):
                lines += [
                    f"Order {index}",
                    f"Order ID: {text_or_placeholder(order.order_id)}",
                    f"Client ID: {text_or_placeholder(order.client_order_id)}",
                    f"Submission Time: {format_timestamp(order.submit_time)}",
                    f"Type: {order.type}",
                    f"Price: {order.price.render()}",
                    f"Order Amount: {order.amount.render()}",
                    f"Remaining: {order.remaining.render()}",
                ]
                if order.order_type:
                    lines.append(f"Order Type: {order.order_type.upper()}")
                lines.append("")
        return "\n".join(lines).strip()


def parse_open_orders(raw: Any, pair: Optional[str] = None) -> OpenOrders:
    """
    Parse either response shape of ``openOrders``.

    With a pair the orders come as a list (``{"orders": [...]}``); without one
    they are grouped by pair (``{"orders": {"btc_idr": [...]}}``, or the
    grouping directly as the return object).
    """
    data = require_mapping(raw, "return")
    orders = data.get("orders", data)
    if isinstance(orders, list):
        if not pair:
            raise ValueError("Open orders were returned as a list but no pair was requested")
        grouped = {pair.lower(): orders}
    else:
        grouped = require_mapping(orders, "orders")

    result: Dict[str, List[OpenOrder]] = {}
    for group_pair, entries in grouped.items():
        base, quote = split_pair(group_pair)
        parsed = []
        for entry in require_list(entries, f"orders.{group_pair}"):
            entry = require_mapping(entry, f"orders.{group_pair}[]")
            parsed.append(OpenOrder(
                order_id=entry.get("order_id"),
                client_order_id=entry.get("client_order_id"),
                submit_time=entry.get("submit_time"),
                type=_upper(entry.get("type")),
                price=resolve_amount(entry, OPEN_ORDER_PRICE, base=base, quote=quote),
                amount=resolve_amount(entry, OPEN_ORDER_AMOUNT, base=base, quote=quote),
                remaining=resolve_amount(entry, OPEN_ORDER_REMAINING, base=base, quote=quote),
                order_type=entry.get("order_type"),
            ))
        result[group_pair.lower()] = parsed
    return OpenOrders(orders=result)


async def open_orders(
    credentials: IndodaxCredentials,
    pair: Optional[str] = None,
    api_url: Optional[str] = None
) -> OperationResult[OpenOrders]:
    """Fetch open orders for one pair, or for every pair when ``pair`` is None."""
    async def fetch() -> OpenOrders:
        params: Dict[str, Any] = {}
        if pair:
            split_pair(pair)
            params["pair"] = pair.lower()
        raw = await call_private_api("openOrders", params, credentials, api_url=api_url)
        return parse_open_orders(raw, pair)

    return await run_operation("openOrders", OPEN_ORDERS_FAILURE, fetch)


@dataclass
class HistoricalOrder:
    order_id: Any
    client_order_id: Any
    type: str
    price: Amount
    submit_time: Any
    finish_time: Any
    status: Any
    amount: Amount
    remaining: Amount


@dataclass
class OrderHistory:
    pair: str
    count: int
    orders: List[HistoricalOrder] = field(default_factory=list)
    updated_at: str = field(default_factory=format_now)

    def render(self) -> str:
        lines = [
            "Indodax Order History",
            f"Updated At: {self.updated_at}",
            f"Total Orders: {len(self.orders)}",
            f"Pair: {self.pair.upper()}",
            f"Displayed Count: {self.count}",
            "",
        ]
        if not self.orders:
            lines.append("No order history.")
        for index, order in enumerate(self.orders, start=1):
            lines += [
                f"Order {index}",
                f"Order ID: {text_or_placeholder(order.order_id)}",
                f"Client ID: {text_or_placeholder(order.client_order_id)}",
                f"Type: {order.type}",
                f"Price: {order.price.render()}",
                f"Submission Time: {format_timestamp(order.submit_time)}",
                f"Completion Time: {_finish_time(order.finish_time)}",
                f"Status: {text_or_placeholder(order.status)}",
                f"Order Amount: {order.amount.render()}",
                f"Remaining: {order.remaining.render()}",
                "",
            ]
        return "\n".join(lines).strip()


def parse_order_history(raw: Any, pair: str, count: int) -> OrderHistory:
    data = require_mapping(raw, "return")
    base, quote = split_pair(pair)
    orders = []
    for entry in require_list(data.get("orders"), "orders"):
        entry = require_mapping(entry, "orders[]")
        orders.append(HistoricalOrder(
            order_id=entry.get("order_id"),
            client_order_id=entry.get("client_order_id"),
            type=_upper(entry.get("type")),
            price=resolve_amount(entry, ORDER_HISTORY_PRICE, base=base, quote=quote),
            submit_time=entry.get("submit_time"),
            finish_time=entry.get("finish_time"),
            status=entry.get("status"),
            amount=resolve_amount(entry, ORDER_HISTORY_AMOUNT, base=base, quote=quote),
            remaining=resolve_amount(entry, ORDER_HISTORY_REMAINING, base=base, quote=quote),
        ))
    return OrderHistory(pair=pair.lower(), count=count, orders=orders)


async def order_history(
    credentials: IndodaxCredentials,
    pair: str,
    count: Any = 1000,
    from_id: Any = None,
    api_url: Optional[str] = None
) -> OperationResult[OrderHistory]:
    """Fetch completed and cancelled orders for a pair, starting at order ``from_id``."""
    async def fetch() -> OrderHistory:
        split_pair(pair)
        params = {"pair": pair.lower(), "count": int(count), "from": from_id}
        raw = await call_private_api("orderHistory", params, credentials, api_url=api_url)
        return parse_order_history(raw, pair, params["count"])

    return await run_operation("orderHistory", ORDER_HISTORY_FAILURE, fetch)


@dataclass
class OrderDetails:
    pair: str
    order_id: Any
    type: str
    price: Amount
    submit_time: Any
    finish_time: Any
    status: Any
    amount: Amount
    remaining: Amount
    refund: Optional[Amount]
    client_order_id: Any
    updated_at: str = field(default_factory=format_now)

    def render(self) -> str:
        lines = [
            "Indodax Order Details",
            f"Updated At: {self.updated_at}",
            f"Order ID: {text_or_placeholder(self.order_id)}",
            f"Pair: {self.pair.upper()}",
            f"Type: {self.type}",
            f"Price: {self.price.render()}",
            f"Submission Time: {format_timestamp(self.submit_time)}",
            f"Completion Time: {_finish_time(self.finish_time)}",
            f"Status: {text_or_placeholder(self.status)}",
            f"Order Amount: {self.amount.render()}",
            f"Remaining: {self.remaining.render()}",
        ]
        if self.refund is not None:
            lines.append(f"Refund Amount: {self.refund.render()}")
        lines.append(f"Client ID: {text_or_placeholder(self.client_order_id)}")
        return "\n".join(lines)


def parse_order_details(raw: Any, pair: str) -> OrderDetails:
    data = require_mapping(raw, "return")
    order = require_mapping(data.get("order"), "order")
    base, quote = split_pair(pair)
    return OrderDetails(
        pair=pair.lower(),
        order_id=order.get("order_id"),
        type=_upper(order.get("type")),
        price=resolve_amount(order, ORDER_PRICE, base=base, quote=quote),
        submit_time=order.get("submit_time"),
        finish_time=order.get("finish_time"),
        status=order.get("status"),
        amount=resolve_amount(order, ORDER_AMOUNT, base=base, quote=quote),
        remaining=resolve_amount(order, ORDER_REMAINING, base=base, quote=quote),
        refund=resolve_amount(order, ORDER_REFUND, default=None, base=base, quote=quote),
        client_order_id=order.get("client_order_id"),
    )


async def get_order(
    credentials: IndodaxCredentials,
    pair: str,
    order_id: Any,
    api_url: Optional[str] = None
) -> OperationResult[OrderDetails]:
    """Look up a single order by id."""
    async def fetch() -> OrderDetails:
        split_pair(pair)
        params = {"pair": pair.lower(), "order_id": int(order_id)}
        raw = await call_private_api("getOrder", params, credentials, api_url=api_url)
        return parse_order_details(raw, pair)

    return await run_operation("getOrder", GET_ORDER_FAILURE, fetch)


@dataclass
class CancellationReceipt:
    pair: str
    order_id: Any
    type: str
    order_type: str
    base_balance: Amount
    quote_balance: Amount
    base_frozen: Amount
    quote_frozen: Amount
    client_order_id: Any
    cancelled_at: str = field(default_factory=format_now)

    def render(self) -> str:
        base = self.base_balance.currency.upper()
        quote = self.quote_balance.currency.upper()
        return "\n".join([
            "Indodax Order Cancellation Report",
            f"Time: {self.cancelled_at}",
            f"Pair: {self.pair.upper()}",
            f"Order ID: {text_or_placeholder(self.order_id)}",
            f"Type: {self.type}",
            f"Order Type: {self.order_type.upper()}",
            f"{base} Balance: {self.base_balance.render()}",
            f"{quote} Balance: {self.quote_balance.render()}",
            f"Frozen {base} Balance: {self.base_frozen.render()}",
            f"Frozen {quote} Balance: {self.quote_frozen.render()}",
            f"Client ID: {text_or_placeholder(self.client_order_id)}",
        ])


def _balance_of(balances: Mapping[str, Any], frozen: Mapping[str, Any], asset: str) -> Dict[str, Amount]:
    free, _ = resolve_field(balances, [asset])
    held, _ = resolve_field(frozen, [asset])
    if held == "0":
        # some responses fold frozen amounts into the balance object
        held, _ = resolve_field(balances, [f"frozen_{asset}"])
    return {"free": Amount(free, asset), "frozen": Amount(held, asset)}


def parse_cancellation(raw: Any, pair: str, side: str, order_type: str) -> CancellationReceipt:
    data = require_mapping(raw, "return")
    order = data.get("order")
    if not isinstance(order, dict):
        order = data
    balances = data.get("balance") if isinstance(data.get("balance"), dict) else {}
    frozen = data.get("frozen") if isinstance(data.get("frozen"), dict) else {}
    base, quote = split_pair(pair)
    base_amounts = _balance_of(balances, frozen, base)
    quote_amounts = _balance_of(balances, frozen, quote)
    return CancellationReceipt(
        pair=pair.lower(),
        order_id=order.get("order_id"),
        type=_upper(order.get("type") or side),
        order_type=order.get("order_type") or order_type,
        base_balance=base_amounts["free"],
        quote_balance=quote_amounts["free"],
        base_frozen=base_amounts["frozen"],
        quote_frozen=quote_amounts["frozen"],
        client_order_id=order.get("client_order_id"),
    )


async def cancel_order(
    credentials: IndodaxCredentials,
    pair: str,
    order_id: Any,
    side: str,
    order_type: str = "limit",
    api_url: Optional[str] = None
) -> OperationResult[CancellationReceipt]:
    """Cancel an open order and report the resulting free and frozen balances."""
    async def fetch() -> CancellationReceipt:
        split_pair(pair)
        params = {
            "pair": pair.lower(),
            "order_id": int(order_id),
            "type": _validate_side(side),
            "order_type": _validate_order_type(order_type),
        }
        logging.info(f"Cancelling {params['type']} order {params['order_id']} on {params['pair']}")
        raw = await call_private_api("cancelOrder", params, credentials, api_url=api_url)
        return parse_cancellation(raw, pair, params["type"], params["order_type"])

    return await run_operation("cancelOrder", CANCEL_ORDER_FAILURE, fetch)
