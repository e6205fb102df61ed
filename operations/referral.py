"""
Referral program operations: downline listing, downline check and voucher creation.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from exchanges.indodax import IndodaxCredentials, call_private_api
from formatters import format_idr, format_now, format_timestamp

from .fields import require_list, require_mapping, text_or_placeholder
from .result import OperationResult, run_operation

LIST_DOWNLINE_FAILURE = "Failed to Retrieve Downline List"
CHECK_DOWNLINE_FAILURE = "Failed to Check Downline"
CREATE_VOUCHER_FAILURE = "Failed to Create Voucher"


def _yes_no(value: Any) -> str:
    return "Yes" if value else "No"


@dataclass
class Downline:
    username: Any
    email: Any
    email_verified: bool
    id_verified: bool
    registration_date: Any
    start: Any
    end: Any


@dataclass
class DownlinePage:
    current_page: Any
    total_page: Any
    total_data: Any
    data_per_page: Any
    downlines: List[Downline] = field(default_factory=list)
    created_at: str = field(default_factory=format_now)

    def render(self) -> str:
        lines = [
            "Indodax Downline List",
            f"Time: {self.created_at}",
            f"Page: {text_or_placeholder(self.current_page)}",
            f"Total Pages: {text_or_placeholder(self.total_page)}",
            f"Total Data: {text_or_placeholder(self.total_data)}",
            f"Data per Page: {text_or_placeholder(self.data_per_page)}",
            f"Downline Count: {len(self.downlines)}",
            "",
        ]
        if not self.downlines:
            lines.append("No downlines.")
        for index, downline in enumerate(self.downlines, start=1):
            lines += [
                f"Downline {index}",
                f"Username: {text_or_placeholder(downline.username)}",
                f"Email: {text_or_placeholder(downline.email)}",
                f"Email Verification: {_yes_no(downline.email_verified)} "
                f"({format_timestamp(downline.registration_date)})",
                f"Identity Verification: {_yes_no(downline.id_verified)}",
                f"Start: {downline.start or 'N/A'}",
                f"End: {downline.end or 'N/A'}",
                "",
            ]
        return "\n".join(lines).strip()


def parse_downline_page(raw: Any) -> DownlinePage:
    data = require_mapping(raw, "return")
    downlines = []
    for entry in require_list(data.get("data", []), "data"):
        entry = require_mapping(entry, "data[]")
        downlines.append(Downline(
            username=entry.get("username"),
            email=entry.get("email"),
            email_verified=bool(entry.get("email_verified")),
            id_verified=bool(entry.get("id_verified")),
            registration_date=entry.get("registration_date"),
            start=entry.get("start"),
            end=entry.get("end"),
        ))
    return DownlinePage(
        current_page=data.get("current_page"),
        total_page=data.get("total_page"),
        total_data=data.get("total_data"),
        data_per_page=data.get("data_per_page"),
        downlines=downlines,
    )


async def list_downline(
    credentials: IndodaxCredentials,
    page: Any = 1,
    limit: Any = 10,
    api_url: Optional[str] = None
) -> OperationResult[DownlinePage]:
    """List referred users, one page at a time."""
    async def fetch() -> DownlinePage:
        params = {"page": int(page), "limit": int(limit)}
        raw = await call_private_api("listDownline", params, credentials, api_url=api_url)
        return parse_downline_page(raw)

    return await run_operation("listDownline", LIST_DOWNLINE_FAILURE, fetch)


@dataclass
class DownlineCheck:
    email: str
    is_downline: bool
    checked_at: str = field(default_factory=format_now)

    def render(self) -> str:
        status = ("Yes (Email is in your downline)" if self.is_downline
                  else "No (Email is not in your downline)")
        return "\n".join([
            "Indodax Downline Check",
            f"Time: {self.checked_at}",
            f"Email: {self.email}",
            f"Downline Status: {status}",
        ])


async def check_downline(
    credentials: IndodaxCredentials,
    email: str,
    api_url: Optional[str] = None
) -> OperationResult[DownlineCheck]:
    """Check whether an email address belongs to one of your downlines."""
    async def fetch() -> DownlineCheck:
        if not email:
            raise ValueError("Field 'email' is required")
        raw = await call_private_api("checkDownline", {"email": email}, credentials, api_url=api_url)
        data = require_mapping(raw, "return")
        return DownlineCheck(email=email, is_downline=bool(data.get("is_downline")))

    return await run_operation("checkDownline", CHECK_DOWNLINE_FAILURE, fetch)


@dataclass
class VoucherReceipt:
    amount: Any
    to_email: Any
    voucher: Any
    submit_time: Any
    created_at: str = field(default_factory=format_now)

    def render(self) -> str:
        return "\n".join([
            "Indodax Voucher Creation Report",
            f"Time: {self.created_at}",
            f"Voucher Amount: {format_idr(self.amount)}",
            f"Recipient Email: {text_or_placeholder(self.to_email)}",
            f"Voucher Code: {text_or_placeholder(self.voucher)}",
            f"Creation Time: {format_timestamp(self.submit_time)}",
        ])


async def create_voucher(
    credentials: IndodaxCredentials,
    amount: Any,
    to_email: str,
    api_url: Optional[str] = None
) -> OperationResult[VoucherReceipt]:
    """Create an IDR voucher for the given recipient."""
    async def fetch() -> VoucherReceipt:
        params = {"amount": int(amount), "to_email": to_email}
        raw = await call_private_api("createVoucher", params, credentials, api_url=api_url)
        data = require_mapping(raw, "return")
        return VoucherReceipt(
            amount=data.get("amount", params["amount"]),
            to_email=data.get("to_email", to_email),
            voucher=data.get("voucher"),
            submit_time=data.get("submit_time"),
        )

    return await run_operation("createVoucher", CREATE_VOUCHER_FAILURE, fetch)
