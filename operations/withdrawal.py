"""
Withdrawal operations: fee lookup, withdrawal to an address and to an Indodax username.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from exchanges.indodax import IndodaxCredentials, call_private_api
from formatters import format_now, format_timestamp, parse_number

from .fields import Amount, require_mapping, text_or_placeholder
from .result import OperationResult, run_operation

WITHDRAW_FEE_FAILURE = "Failed to Retrieve Withdrawal Fee"
WITHDRAW_COIN_FAILURE = "Failed to Process Withdrawal"
WITHDRAW_USERNAME_FAILURE = "Failed to Process Withdrawal to Username"


def _required_text(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"Field '{name}' is required")
    return str(value).strip()


def _withdraw_amount(value: Any) -> float:
    number = parse_number(value)
    if number is None or number <= 0:
        raise ValueError("Field 'withdraw_amount' must be a positive number")
    return float(number)


@dataclass
class WithdrawalFee:
    server_time: Any
    currency: str
    network: Optional[str]
    fee: Amount

    def render(self) -> str:
        lines = [
            "Indodax Withdrawal Fee",
            f"Time: {format_timestamp(self.server_time)}",
            f"Currency: {self.currency.upper()}",
        ]
        if self.network:
            lines.append(f"Network: {self.network.upper()}")
        lines.append(f"Withdrawal Fee: {self.fee.render()}")
        return "\n".join(lines)


def parse_withdrawal_fee(raw: Any, currency: str, network: Optional[str] = None) -> WithdrawalFee:
    data = require_mapping(raw, "return")
    fee_currency = str(data.get("currency") or currency).lower()
    return WithdrawalFee(
        server_time=data.get("server_time"),
        currency=fee_currency,
        network=network,
        fee=Amount(data.get("withdraw_fee", "0"), fee_currency),
    )


async def withdraw_fee(
    credentials: IndodaxCredentials,
    currency: str,
    network: Optional[str] = None,
    api_url: Optional[str] = None
) -> OperationResult[WithdrawalFee]:
    """Look up the withdrawal fee of a currency, optionally on a specific network."""
    async def fetch() -> WithdrawalFee:
        params = {"currency": _required_text(currency, "currency").lower(), "network": network}
        raw = await call_private_api("withdrawFee", params, credentials, api_url=api_url)
        return parse_withdrawal_fee(raw, params["currency"], network)

    return await run_operation("withdrawFee", WITHDRAW_FEE_FAILURE, fetch)


@dataclass
class WithdrawalReceipt:
    currency: str
    network: str
    address: Any
    amount: Amount
    fee: Amount
    submit_time: Any
    request_id: Any
    memo: Optional[str] = None
    created_at: str = field(default_factory=format_now)

    def render(self) -> str:
        lines = [
            "Indodax Asset Withdrawal Report",
            f"Time: {self.created_at}",
            f"Currency: {self.currency.upper()}",
            f"Network: {self.network.upper()}",
            f"Recipient Address: {text_or_placeholder(self.address)}",
            f"Amount: {self.amount.render()}",
            f"Fee: {self.fee.render()}",
            f"Submission Time: {format_timestamp(self.submit_time)}",
            f"Request ID: {text_or_placeholder(self.request_id)}",
        ]
        if self.memo:
            lines.append(f"Memo: {self.memo}")
        return "\n".join(lines)


@dataclass
class UsernameWithdrawalReceipt:
    currency: str
    username: Any
    amount: Amount
    fee: Amount
    submit_time: Any
    request_id: Any
    memo: Optional[str] = None
    created_at: str = field(default_factory=format_now)

    def render(self) -> str:
        lines = [
            "Indodax Withdrawal to Username Report",
            f"Time: {self.created_at}",
            f"Currency: {self.currency.upper()}",
            f"Recipient Username: {text_or_placeholder(self.username)}",
            f"Amount: {self.amount.render()}",
            f"Fee: {self.fee.render()}",
            f"Submission Time: {format_timestamp(self.submit_time)}",
            f"Request ID: {text_or_placeholder(self.request_id)}",
        ]
        if self.memo:
            lines.append(f"Memo: {self.memo}")
        return "\n".join(lines)


def build_withdraw_coin_params(
    currency: str,
    network: str,
    address: str,
    amount: Any,
    request_id: str,
    memo: Optional[str] = None
) -> Dict[str, Any]:
    """Parameters of a withdrawal to an address; a missing memo is left out."""
    return {
        "currency": _required_text(currency, "currency").lower(),
        "network": _required_text(network, "network").lower(),
        "withdraw_address": _required_text(address, "withdraw_address"),
        "withdraw_amount": _withdraw_amount(amount),
        "request_id": _required_text(request_id, "request_id"),
        "withdraw_memo": memo,
    }


def build_withdraw_username_params(
    currency: str,
    amount: Any,
    request_id: str,
    username: str,
    memo: Optional[str] = None
) -> Dict[str, Any]:
    """Parameters of a withdrawal to another Indodax user; a missing memo is left out."""
    return {
        "currency": _required_text(currency, "currency").lower(),
        "withdraw_amount": _withdraw_amount(amount),
        "request_id": _required_text(request_id, "request_id"),
        "withdraw_input_method": "username",
        "withdraw_username": _required_text(username, "withdraw_username"),
        "withdraw_memo": memo,
    }


def _receipt_fields(data: Dict[str, Any], params: Dict[str, Any]) -> Dict[str, Any]:
    currency = str(data.get("withdraw_currency") or params["currency"]).lower()
    return {
        "currency": currency,
        "amount": Amount(data.get("withdraw_amount", params["withdraw_amount"]), currency),
        "fee": Amount(data.get("fee", "0"), currency),
        "submit_time": data.get("submit_time"),
        "request_id": data.get("request_id", params["request_id"]),
        "memo": params.get("withdraw_memo"),
    }


def parse_withdrawal_receipt(raw: Any, params: Dict[str, Any]) -> WithdrawalReceipt:
    data = dict(require_mapping(raw, "return"))
    return WithdrawalReceipt(
        network=params["network"],
        address=data.get("withdraw_address", params["withdraw_address"]),
        **_receipt_fields(data, params),
    )


def parse_username_withdrawal_receipt(raw: Any, params: Dict[str, Any]) -> UsernameWithdrawalReceipt:
    data = dict(require_mapping(raw, "return"))
    return UsernameWithdrawalReceipt(
        username=data.get("withdraw_username", params["withdraw_username"]),
        **_receipt_fields(data, params),
    )


async def withdraw_coin(
    credentials: IndodaxCredentials,
    currency: str,
    network: str,
    address: str,
    amount: Any,
    request_id: str,
    memo: Optional[str] = None,
    api_url: Optional[str] = None
) -> OperationResult[WithdrawalReceipt]:
    """
    Withdraw an asset to an external address.

    Args:
        credentials: API key pair
        currency: Asset to withdraw (e.g. "btc")
        network: Chain to withdraw on (e.g. "erc20")
        address: Recipient address
        amount: Amount of the asset
        request_id: Caller-chosen id the exchange uses to deduplicate requests
        memo: Destination tag / memo, for the assets that need one
        api_url: Override the endpoint (for testing)
    """
    async def fetch() -> WithdrawalReceipt:
        params = build_withdraw_coin_params(currency, network, address, amount, request_id, memo)
        logging.info(f"Withdrawing {params['withdraw_amount']} {params['currency']} "
                     f"on {params['network']} (request_id={params['request_id']})")
        raw = await call_private_api("withdrawCoin", params, credentials, api_url=api_url)
        return parse_withdrawal_receipt(raw, params)

    return await run_operation("withdrawCoin", WITHDRAW_COIN_FAILURE, fetch)


async def withdraw_coin_by_username(
    credentials: IndodaxCredentials,
    currency: str,
    amount: Any,
    request_id: str,
    username: str,
    memo: Optional[str] = None,
    api_url: Optional[str] = None
) -> OperationResult[UsernameWithdrawalReceipt]:
    """Withdraw an asset to another Indodax account identified by username."""
    async def fetch() -> UsernameWithdrawalReceipt:
        params = build_withdraw_username_params(currency, amount, request_id, username, memo)
        logging.info(f"Withdrawing {params['withdraw_amount']} {params['currency']} "
                     f"to username (request_id={params['request_id']})")
        raw = await call_private_api("withdrawCoin", params, credentials, api_url=api_url)
        return parse_username_withdrawal_receipt(raw, params)

    return await run_operation("withdrawCoin", WITHDRAW_USERNAME_FAILURE, fetch)
