"""
Account operations: account status (getInfo) and transaction history (transHistory).
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from exchanges.indodax import IndodaxCredentials, call_private_api
from formatters import (
    format_crypto,
    format_idr,
    format_timestamp,
    mask_email,
    parse_number,
)

from .fields import (
    TRANSACTION_FEE,
    TRANSACTION_NET,
    TRANSACTION_TOTAL,
    Amount,
    require_list,
    require_mapping,
    resolve_amount,
    text_or_placeholder,
)
from .result import OperationResult, run_operation

GET_INFO_FAILURE = "Failed to Retrieve Account Data"
TRANS_HISTORY_FAILURE = "Failed to Retrieve Transaction History"


def _positive_balances(balances: Any) -> Dict[str, Any]:
    """Keep only assets whose balance parses to a positive number."""
    if not isinstance(balances, dict):
        return {}
    result: Dict[str, Any] = {}
    for asset, amount in balances.items():
        number = parse_number(amount)
        if number is not None and number > 0:
            result[asset] = amount
    return result


def _is_enabled(flag: Any) -> bool:
    """JSON booleans or numeric flags (1, "1"); "0" counts as disabled."""
    if isinstance(flag, bool):
        return flag
    return bool(parse_number(flag))


def _render_balances(balances: Mapping[str, Any], empty_text: str) -> List[str]:
    if not balances:
        return [empty_text]
    lines = []
    for asset, amount in balances.items():
        if asset.lower() == "idr":
            lines.append(f"{asset.upper()}: {format_idr(amount)}")
        else:
            lines.append(f"{asset.upper()}: {format_crypto(amount)}")
    return lines


@dataclass
class AccountStatus:
    server_time: Any
    name: Optional[str]
    email: str
    user_id: Any
    verification_status: Any
    two_factor_enabled: bool
    withdrawal_enabled: bool
    active_balances: Dict[str, Any] = field(default_factory=dict)
    held_balances: Dict[str, Any] = field(default_factory=dict)

    def render(self) -> str:
        lines = [
            f"Account Status - {format_timestamp(self.server_time)}",
            "",
            f"Name: {self.name or 'Not available'}",
            f"Email: {self.email}",
            f"User ID: {text_or_placeholder(self.user_id)}",
            f"Verification Status: {text_or_placeholder(self.verification_status)}",
            f"2FA: {'Active' if self.two_factor_enabled else 'Inactive'}",
            f"Withdrawal: {'Active' if self.withdrawal_enabled else 'Inactive'}",
            "",
            "Active Balance",
        ]
        lines += _render_balances(self.active_balances, "No active balance.")
        lines += ["", "Held Balance"]
        lines += _render_balances(self.held_balances, "No held balance.")
        return "\n".join(lines)


def parse_account_status(raw: Any) -> AccountStatus:
    data = require_mapping(raw, "return")
    return AccountStatus(
        server_time=data.get("server_time"),
        name=data.get("name"),
        email=mask_email(data.get("email")),
        user_id=data.get("user_id"),
        verification_status=data.get("verification_status"),
        two_factor_enabled=bool(data.get("gauth_enable")),
        withdrawal_enabled=_is_enabled(data.get("withdraw_status")),
        active_balances=_positive_balances(data.get("balance")),
        held_balances=_positive_balances(data.get("balance_hold")),
    )


async def get_info(
    credentials: IndodaxCredentials,
    api_url: Optional[str] = None
) -> OperationResult[AccountStatus]:
    """Fetch account status and balances."""
    async def fetch() -> AccountStatus:
        raw = await call_private_api("getInfo", {}, credentials, api_url=api_url)
        return parse_account_status(raw)

    return await run_operation("getInfo", GET_INFO_FAILURE, fetch)


@dataclass
class Transaction:
    status: Any
    type: str
    total: Amount
    fee: Amount
    net: Amount
    submit_time: Any
    success_time: Any
    reference_id: Any
    tx: Any


@dataclass
class TransactionHistory:
    start: str
    end: str
    withdrawals: Dict[str, List[Transaction]] = field(default_factory=dict)
    deposits: Dict[str, List[Transaction]] = field(default_factory=dict)

    def render(self) -> str:
        lines = [
            "Indodax Transaction History",
            f"Period: {self.start} to {self.end}",
            "",
            "Withdrawal History",
        ]
        lines += self._render_group(self.withdrawals, "Withdrawal ID", True)
        if not any(self.withdrawals.values()):
            lines += ["No withdrawal history.", ""]

        lines.append("Deposit History")
        lines += self._render_group(self.deposits, "Deposit ID", False)
        if not any(self.deposits.values()):
            lines.append("No deposit history.")
        return "\n".join(lines).strip()

    @staticmethod
    def _render_group(groups: Dict[str, List[Transaction]], id_label: str,
                      with_submission: bool) -> List[str]:
        lines: List[str] = []
        for currency, transactions in groups.items():
            if not transactions:
                continue
            lines.append(f"{currency.upper()}:")
            for tx in transactions:
                lines.append(f"Status: {text_or_placeholder(tx.status)}")
                lines.append(f"Type: {tx.type}")
                lines.append(f"Total Amount: {tx.total.render()}")
                lines.append(f"Fee: {tx.fee.render()}")
                lines.append(f"Net Amount: {tx.net.render()}")
                if with_submission:
                    lines.append(f"Submission Time: {format_timestamp(tx.submit_time)}")
                lines.append(f"Completion Time: {format_timestamp(tx.success_time)}")
                lines.append(f"{id_label}: {text_or_placeholder(tx.reference_id)}")
                lines.append(f"Transaction ID: {text_or_placeholder(tx.tx)}")
                lines.append("")
        return lines


def _parse_transactions(groups: Any, field_name: str, id_key: str,
                        default_type: str) -> Dict[str, List[Transaction]]:
    if groups is None:
        return {}
    result: Dict[str, List[Transaction]] = {}
    for currency, entries in require_mapping(groups, field_name).items():
        currency = currency.lower()
        parsed = []
        for entry in require_list(entries, f"{field_name}.{currency}"):
            entry = require_mapping(entry, f"{field_name}.{currency}[]")
            parsed.append(Transaction(
                status=entry.get("status"),
                type=entry.get("type") or default_type,
                total=resolve_amount(entry, TRANSACTION_TOTAL, currency=currency),
                fee=resolve_amount(entry, TRANSACTION_FEE, currency=currency),
                net=resolve_amount(entry, TRANSACTION_NET, currency=currency),
                submit_time=entry.get("submit_time"),
                success_time=entry.get("success_time"),
                reference_id=entry.get(id_key),
                tx=entry.get("tx"),
            ))
        result[currency] = parsed
    return result


def parse_transaction_history(raw: Any, start: str, end: str) -> TransactionHistory:
    data = require_mapping(raw, "return")
    return TransactionHistory(
        start=start,
        end=end,
        withdrawals=_parse_transactions(data.get("withdraw"), "withdraw", "withdraw_id", "-"),
        deposits=_parse_transactions(data.get("deposit"), "deposit", "deposit_id", "Direct"),
    )


def _date_param(value: Union[str, date, datetime]) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


async def trans_history(
    credentials: IndodaxCredentials,
    start: Union[str, date, datetime],
    end: Union[str, date, datetime],
    api_url: Optional[str] = None
) -> OperationResult[TransactionHistory]:
    """
    Fetch withdrawal and deposit history.

    Args:
        credentials: API key pair
        start: First day of the period (date or YYYY-MM-DD)
        end: Last day of the period (date or YYYY-MM-DD)
        api_url: Override the endpoint (for testing)
    """
    async def fetch() -> TransactionHistory:
        start_param, end_param = _date_param(start), _date_param(end)
        logging.info(f"Fetching transaction history {start_param} to {end_param}")
        raw = await call_private_api(
            "transHistory", {"start": start_param, "end": end_param}, credentials, api_url=api_url
        )
        return parse_transaction_history(raw, start_param, end_param)

    return await run_operation("transHistory", TRANS_HISTORY_FAILURE, fetch)
