"""
Currency, number and date formatting for documents and messages.
Project: Dealer Console

Pure functions: vi-VN currency strings, Vietnamese amounts in words,
dates and Vietnamese labels for enum values.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

Number = Union[int, float, Decimal, str]

NOT_AVAILABLE = "N/A"

_DIGITS = ("không", "một", "hai", "ba", "bốn", "năm", "sáu", "bảy", "tám", "chín")

# Group scales read above the unit group, lowest first
_SCALES = ("", "nghìn", "triệu")

PAYMENT_METHOD_LABELS = {
    "cash": "Tiền mặt",
    "bank": "Chuyển khoản",
    "qr": "QR Code",
    "card": "Thẻ",
    "installment": "Trả góp",
}

ORDER_STATUS_LABELS = {
    "pending": "Chờ xác nhận",
    "confirmed": "Đã xác nhận",
    "halfPayment": "Đã đặt cọc",
    "deposit_paid": "Đã đặt cọc",
    "fullyPayment": "Đã thanh toán",
    "fully_paid": "Đã thanh toán đủ",
    "waiting_vehicle_request": "Chờ yêu cầu xe",
    "vehicle_ready": "Xe sẵn sàng",
    "delivered": "Đã giao",
    "completed": "Hoàn thành",
    "closed": "Đã đóng",
    "cancelled": "Đã hủy",
}


def to_vnd(amount: Optional[Number]) -> int:
    """Rounds an amount half-up to whole dong. None and garbage become 0."""
    if amount is None:
        return 0
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return 0
    if not value.is_finite():
        return 0
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_number(amount: Optional[Number]) -> str:
    """1500000 -> '1.500.000'"""
    value = to_vnd(amount)
    sign = "-" if value < 0 else ""
    return sign + f"{abs(value):,}".replace(",", ".")


def format_currency(amount: Optional[Number]) -> str:
    """
    Formats an amount the way vi-VN renders VND.

    Examples:
        >>> format_currency(1500000)
        '1.500.000 ₫'
    """
    return f"{format_number(amount)} ₫"


def _read_triple(number: int, full: bool) -> list[str]:
    """
    Reads a 0-999 group.

    full=True when a higher group precedes this one, so that
    inner groups are read with their hundreds ("không trăm linh năm").
    """
    hundreds, rest = divmod(number, 100)
    tens, units = divmod(rest, 10)
    words: list[str] = []

    if full or hundreds > 0:
        words += [_DIGITS[hundreds], "trăm"]

    if tens == 0:
        if units > 0:
            if words:
                words.append("linh")
            words.append(_DIGITS[units])
        return words

    if tens == 1:
        words.append("mười")
        if units == 5:
            words.append("lăm")
        elif units > 0:
            words.append(_DIGITS[units])
        return words

    words += [_DIGITS[tens], "mươi"]
    if units == 1:
        words.append("mốt")
    elif units == 5:
        words.append("lăm")
    elif units > 0:
        words.append(_DIGITS[units])
    return words


def _read_below_billion(number: int, full: bool) -> list[str]:
    groups = []
    while number > 0:
        number, group = divmod(number, 1000)
        groups.append(group)

    words: list[str] = []
    for index in range(len(groups) - 1, -1, -1):
        group = groups[index]
        if group == 0:
            continue
        words += _read_triple(group, full or bool(words))
        if _SCALES[index]:
            words.append(_SCALES[index])
    return words


def _read_number(number: int, full: bool = False) -> list[str]:
    billions, rest = divmod(number, 1_000_000_000)
    words: list[str] = []
    if billions > 0:
        # Thousands of billions read as "nghìn tỷ", recursively
        words += _read_number(billions, full)
        words.append("tỷ")
    if rest > 0:
        words += _read_below_billion(rest, full or bool(words))
    return words


def amount_to_words(amount: Optional[Number]) -> str:
    """
    Spells a VND amount in Vietnamese.

    Examples:
        >>> amount_to_words(0)
        'không đồng'
        >>> amount_to_words(1500000)
        'một triệu năm trăm nghìn đồng'
        >>> amount_to_words(21)
        'hai mươi mốt đồng'
    """
    value = to_vnd(amount)
    if value == 0:
        return "không đồng"

    words = _read_number(abs(value))
    if value < 0:
        words.insert(0, "âm")
    return " ".join(words + ["đồng"])


def _coerce_datetime(value: Union[str, date, datetime, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def format_date(value: Union[str, date, datetime, None]) -> str:
    """dd/mm/yyyy, or N/A when the value is missing or unparsable."""
    parsed = _coerce_datetime(value)
    if parsed is None:
        return NOT_AVAILABLE
    return parsed.strftime("%d/%m/%Y")


def format_datetime(value: Union[str, date, datetime, None]) -> str:
    """HH:MM dd/mm/yyyy, or N/A."""
    parsed = _coerce_datetime(value)
    if parsed is None:
        return NOT_AVAILABLE
    return parsed.strftime("%H:%M %d/%m/%Y")


def payment_method_label(method: Optional[str]) -> str:
    if not method:
        return NOT_AVAILABLE
    return PAYMENT_METHOD_LABELS.get(str(method), str(method))


def order_status_label(status: Optional[str]) -> str:
    if not status:
        return NOT_AVAILABLE
    return ORDER_STATUS_LABELS.get(str(status), str(status))
