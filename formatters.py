"""
Formatting helpers shared by the operation reports.

IDR amounts are shown in Indonesian currency notation without decimals, every
other asset with exactly 8 decimals, and exchange timestamps (epoch seconds)
in local date-time.
"""
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional, Union

PLACEHOLDER = "-"
CRYPTO_DECIMALS = 8
DATETIME_FORMAT = "%d/%m/%Y, %H.%M.%S"
DATE_FORMAT = "%d/%m/%Y"


def parse_number(value: Any) -> Optional[Decimal]:
    """
    Parse an API number (usually sent as a string) into a Decimal.

    Returns None for missing, empty or non-numeric values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = repr(value)
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def format_idr(value: Any) -> str:
    """
    Format an amount as Indonesian Rupiah.

    Examples:
        >>> format_idr(1000000)
        'Rp1.000.000'
        >>> format_idr("2500.6")
        'Rp2.501'
    """
    number = parse_number(value)
    if number is None:
        return PLACEHOLDER
    rounded = int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    grouped = f"{abs(rounded):,}".replace(",", ".")
    return f"-Rp{grouped}" if rounded < 0 else f"Rp{grouped}"


def format_crypto(value: Any) -> str:
    """
    Format an asset amount with exactly 8 decimals.

    Examples:
        >>> format_crypto(0.1)
        '0.10000000'
    """
    number = parse_number(value)
    if number is None:
        return PLACEHOLDER
    quantum = Decimal(1).scaleb(-CRYPTO_DECIMALS)
    return f"{number.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def format_amount(value: Any, currency: str) -> str:
    """Format an amount according to the currency it is denominated in."""
    if currency.lower() == "idr":
        return format_idr(value)
    return f"{format_crypto(value)} {currency.upper()}"


def format_datetime(moment: datetime) -> str:
    return moment.strftime(DATETIME_FORMAT)


def format_timestamp(epoch_seconds: Any) -> str:
    """Render an exchange timestamp (epoch seconds) as local date-time."""
    number = parse_number(epoch_seconds)
    if number is None:
        return PLACEHOLDER
    try:
        moment = datetime.fromtimestamp(int(number * 1000) / 1000)
    except (OverflowError, OSError, ValueError):
        return PLACEHOLDER
    return format_datetime(moment)


def format_date(value: Union[int, float, str, date, datetime]) -> str:
    """Render a user-supplied date (epoch seconds, date or ISO string) as a local date."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value).strftime(DATE_FORMAT)
    if isinstance(value, (date, datetime)):
        return value.strftime(DATE_FORMAT)
    try:
        return datetime.fromisoformat(value).strftime(DATE_FORMAT)
    except ValueError:
        return str(value)


def to_epoch_seconds(value: Union[int, float, str, date, datetime]) -> int:
    """
    Convert a user-supplied point in time into epoch seconds.

    Numbers and all-digit strings are taken as epoch seconds already.
    Date-only values (``date`` objects or ``YYYY-MM-DD`` strings) mean
    midnight UTC; naive datetimes are local time.

    Raises:
        ValueError: If a string is not ISO-8601
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid point in time: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        if len(text) == 10:
            value = date.fromisoformat(text)
        else:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return int(value.timestamp())


def mask_email(email: Optional[str]) -> str:
    """
    Mask an email address for display.

    The name keeps its first character when it is two characters or shorter
    and its first two otherwise. The domain label keeps its first and last
    character.

    Examples:
        >>> mask_email("ab@domain.com")
        'a*@d****n.com'
        >>> mask_email("johndoe@gmail.com")
        'jo*****@g***l.com'
    """
    if not email or "@" not in email:
        return PLACEHOLDER
    name, domain = email.split("@", 1)
    if len(name) <= 2:
        masked_name = name[:1] + "*" * max(0, len(name) - 1)
    else:
        masked_name = name[:2] + "*" * (len(name) - 2)

    label, _, extension = domain.partition(".")
    if len(label) <= 1:
        masked_label = label
    else:
        masked_label = label[0] + "*" * (len(label) - 2) + label[-1]

    masked_domain = f"{masked_label}.{extension}" if extension else masked_label
    return f"{masked_name}@{masked_domain}"


def format_now() -> str:
    """Current local time, for the "Time"/"Updated At" line of reports."""
    return format_datetime(datetime.now())
