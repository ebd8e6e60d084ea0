"""
Custom exceptions for the application.
Project: Dealer Console

Domain-specific exceptions, converted to HTTP responses in one place
(see the AppException handler in main.py).

NOTE: BusinessValidationError is deliberately distinct from pydantic.ValidationError.
- pydantic.ValidationError: malformed input (handled by FastAPI -> 422)
- BusinessValidationError: a business precondition does not hold (our handler -> 422)
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "BusinessValidationError",
    "OrderStatusError",
    "VehicleNotReadyError",
    "PaymentAmountError",
    "ConflictError",
    "AuthenticationError",
    "AuthorizationError",
    "UpstreamError",
    "UpstreamUnavailableError",
    "DocumentGenerationError",
]


class AppException(Exception):
    """
    Base exception for the application.

    Every custom exception inherits from this class.

    Attributes:
        status_code: HTTP status code returned to the client
        error_code: Stable error identifier for the frontend
        detail: Human readable message, already localized
        extra: Additional data for the frontend
    """

    # Default values - overridden in subclasses
    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Args:
            detail: Error message
            error_code: Stable identifier (default: the class one)
            extra: Additional data for the frontend (default: None)
        """
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)


class NotFoundError(AppException):
    """Raised when a resource does not exist upstream."""

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Không tìm thấy dữ liệu",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BusinessValidationError(ValueError, AppException):
    """
    Raised when a business precondition is violated.

    Inherits from ValueError so that it can be raised from pydantic validators.

    Examples:
        - "Đơn hàng phải ở trạng thái 'pending' để đặt cọc"
        - "Tỷ lệ đặt cọc phải nằm trong khoảng 10% - 30%"
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"

    def __init__(
        self,
        detail: str = "Dữ liệu không hợp lệ",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # Call AppException.__init__ directly to skip ValueError
        AppException.__init__(self, detail, error_code, extra)


class OrderStatusError(BusinessValidationError):
    """The order is not in the status required by the requested payment phase."""

    error_code: str = "ORDER_STATUS_INVALID"

    def __init__(
        self,
        detail: str,
        required_status: Optional[str] = None,
        current_status: Optional[str] = None,
    ) -> None:
        super().__init__(
            detail,
            extra={
                "required_status": required_status,
                "current_status": current_status,
            },
        )


class VehicleNotReadyError(OrderStatusError):
    """
    Final payment attempted while the deposit is paid but the vehicle
    has not been marked ready yet.
    """

    error_code: str = "VEHICLE_NOT_READY"


class PaymentAmountError(BusinessValidationError):
    """Deposit percentage or payment amount outside the accepted bounds."""

    error_code: str = "PAYMENT_AMOUNT_INVALID"


class ConflictError(AppException):
    """
    Raised when the operation cannot run because of the current state
    of the resource (already fully paid, amount exceeds remaining, ...).
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "Xung đột trạng thái",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class AuthenticationError(AppException):
    """Missing, malformed or expired bearer token."""

    status_code: int = 401
    error_code: str = "UNAUTHENTICATED"

    def __init__(
        self,
        detail: str = "Phiên đăng nhập đã hết hạn. Vui lòng đăng nhập lại.",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class AuthorizationError(AppException):
    """
    Raised when the caller may not act on the resource.

    Examples:
        - a dealer staff member paying for an order of another dealership
    """

    status_code: int = 403
    error_code: str = "FORBIDDEN"

    def __init__(
        self,
        detail: str = "Bạn không có quyền thực hiện thao tác này",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class UpstreamError(AppException):
    """
    The dealership API answered with an error.

    `upstream_message` keeps the original backend message verbatim,
    `detail` holds the localized message shown to the operator.
    """

    status_code: int = 502
    error_code: str = "UPSTREAM_ERROR"

    def __init__(
        self,
        detail: str,
        upstream_status: Optional[int] = None,
        upstream_message: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
        self.upstream_status = upstream_status
        self.upstream_message = upstream_message if upstream_message is not None else detail
        # Client errors are passed through, server errors become 502
        if upstream_status is not None and 400 <= upstream_status < 500:
            self.status_code = upstream_status


class UpstreamUnavailableError(UpstreamError):
    """The dealership API could not be reached (connection error or timeout)."""

    status_code: int = 503
    error_code: str = "UPSTREAM_UNAVAILABLE"

    def __init__(self, detail: str = "Không thể kết nối tới máy chủ. Vui lòng thử lại sau.") -> None:
        super().__init__(detail)


class DocumentGenerationError(AppException):
    """Rendering of a contract or quotation PDF failed."""

    status_code: int = 500
    error_code: str = "DOCUMENT_GENERATION_FAILED"

    def __init__(
        self,
        detail: str = "Không thể tạo tài liệu PDF",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
