"""
Operator-facing messages
Project: Dealer Console

Backend error messages are matched against known substrings and replaced
by specific Vietnamese messages; anything unknown is shown verbatim.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dealer_console.utils.formatting import format_currency, order_status_label


class PaymentErrorKind(str, Enum):
    INSUFFICIENT_STOCK = "insufficient_stock"
    WRONG_STATUS = "wrong_status"
    MISSING_COLOR = "missing_color"
    EXCEEDS_REMAINING = "exceeds_remaining"
    ALREADY_PAID = "already_paid"
    VEHICLE_NOT_READY = "vehicle_not_ready"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TranslatedError:
    kind: PaymentErrorKind
    message: str


# First match wins: more specific patterns come first
_PATTERNS: tuple[tuple[tuple[str, ...], PaymentErrorKind, str], ...] = (
    (
        ("insufficient stock", "không đủ hàng", "hết hàng"),
        PaymentErrorKind.INSUFFICIENT_STOCK,
        "Đại lý không đủ hàng trong kho. Hệ thống đang tạo yêu cầu xe từ hãng.",
    ),
    (
        ("already fully paid", "fully paid", "đã thanh toán đủ"),
        PaymentErrorKind.ALREADY_PAID,
        "Đơn hàng đã được thanh toán đủ.",
    ),
    (
        ("exceeds remaining", "exceed", "vượt quá"),
        PaymentErrorKind.EXCEEDS_REMAINING,
        "Số tiền thanh toán vượt quá số tiền còn lại của đơn hàng.",
    ),
    (
        ("vehicle not ready", "vehicle_ready", "chưa sẵn sàng"),
        PaymentErrorKind.VEHICLE_NOT_READY,
        "Xe chưa sẵn sàng. Vui lòng đánh dấu xe sẵn sàng trước khi thanh toán phần còn lại.",
    ),
    (
        ("color", "màu"),
        PaymentErrorKind.MISSING_COLOR,
        "Vui lòng chọn màu xe cho tất cả sản phẩm trước khi đặt cọc.",
    ),
    (
        ("status", "trạng thái"),
        PaymentErrorKind.WRONG_STATUS,
        "Trạng thái đơn hàng không cho phép thực hiện thanh toán này.",
    ),
)


def translate_payment_error(message: Optional[str]) -> TranslatedError:
    """
    Maps a backend message to a known error kind and a localized message.

    Examples:
        >>> translate_payment_error("Insufficient stock for vehicle VF8").kind
        <PaymentErrorKind.INSUFFICIENT_STOCK: 'insufficient_stock'>
    """
    text = (message or "").strip()
    lowered = text.lower()
    for needles, kind, localized in _PATTERNS:
        if any(needle in lowered for needle in needles):
            return TranslatedError(kind, localized)
    return TranslatedError(
        PaymentErrorKind.UNKNOWN,
        text or "Có lỗi xảy ra khi xử lý thanh toán",
    )


# -------------------------------------------------------------------
# Local guard messages
# -------------------------------------------------------------------

def dealership_mismatch() -> str:
    return (
        "Bạn không có quyền thanh toán cho đơn hàng này. "
        "Đơn hàng thuộc về dealership khác."
    )


def status_required(required: str, current: str, action: str) -> str:
    return (
        f"Chỉ có thể {action} khi đơn hàng ở trạng thái '{required}' "
        f"({order_status_label(required)}). Trạng thái hiện tại: '{current}' "
        f"({order_status_label(current)})."
    )


def vehicle_not_ready() -> str:
    return (
        "Đơn hàng đã đặt cọc nhưng xe chưa được đánh dấu sẵn sàng. "
        "Vui lòng đánh dấu xe sẵn sàng (vehicle_ready) trước khi thanh toán phần còn lại."
    )


def deposit_already_paid() -> str:
    return "Đơn hàng đã có thanh toán. Vui lòng sử dụng chức năng thanh toán phần còn lại."


def deposit_required_first() -> str:
    return "Đơn hàng chưa có tiền đặt cọc. Vui lòng đặt cọc trước."


def deposit_percent_out_of_range(minimum, maximum) -> str:
    return f"Tỷ lệ đặt cọc phải nằm trong khoảng {minimum:g}% - {maximum:g}%."


def amount_exceeds_remaining(remaining) -> str:
    return f"Số tiền không được vượt quá {format_currency(remaining)}"


def already_fully_paid() -> str:
    return "Đơn hàng đã được thanh toán đủ."


# -------------------------------------------------------------------
# Outcome messages
# -------------------------------------------------------------------

DEPOSIT_RESERVED = "Đặt cọc thành công! Xe đã được giữ từ kho đại lý."
DEPOSIT_RESTOCK_REQUESTED = (
    "Đặt cọc thành công! Đại lý chưa có xe, yêu cầu nhập xe từ hãng đã được tạo."
)
STOCK_SHORTAGE_WARNING = (
    "Đại lý không đủ hàng trong kho. Đang kiểm tra lại trạng thái đơn hàng..."
)
STOCK_CHECK_BACK_LATER = (
    "Chưa xác nhận được trạng thái đơn hàng. Vui lòng kiểm tra lại sau ít phút."
)
FINAL_PAYMENT_SUCCESS = "Thanh toán đã được ghi nhận thành công!"
FULLY_PAID_CONTRACT_READY = "Đơn hàng đã được thanh toán đủ! Hợp đồng đã được tạo."
CONTRACT_FAILED_AFTER_PAYMENT = (
    "Thanh toán thành công nhưng không thể tạo hợp đồng. Vui lòng thử lại sau."
)
CONTRACT_NOT_AVAILABLE = "Chỉ có thể xuất hợp đồng khi đơn hàng đã được thanh toán đủ."
ORDER_RELOAD_FAILED = (
    "Thanh toán đã được ghi nhận nhưng chưa tải lại được đơn hàng. "
    "Vui lòng tải lại trang trước khi thao tác tiếp."
)
