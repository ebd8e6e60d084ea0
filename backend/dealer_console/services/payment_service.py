"""
Service Layer for the payment lifecycle
Project: Dealer Console

Two payment phases run against an order:
- deposit (first payment, order pending): a percentage of the contract value
- final payment (vehicle ready): always the whole remaining balance

Local guards run before any upstream call, in this order:
1. dealership ownership (dealer-scoped roles only)
2. order status for the phase being attempted
3. amount bounds

A final payment that leaves the order fully paid triggers contract
generation once; a failed contract never undoes the payment.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Awaitable, Callable, Iterator, Optional, Union

from pydantic import ValidationError

from dealer_console.core.config import settings
from dealer_console.core.exceptions import (
    AppException,
    AuthorizationError,
    BusinessValidationError,
    ConflictError,
    OrderStatusError,
    PaymentAmountError,
    UpstreamError,
    VehicleNotReadyError,
)
from dealer_console.schemas.document import GeneratedDocument
from dealer_console.schemas.order import (
    Order,
    OrderStatus,
    is_deposit_status,
    is_fully_paid_status,
)
from dealer_console.schemas.payment import (
    DepositOutcome,
    DepositRequest,
    DepositResult,
    FinalPaymentOutcome,
    FinalPaymentRequest,
    GeneratedDocumentInfo,
    Payment,
    PaymentSummary,
)
from dealer_console.schemas.token import CurrentUser
from dealer_console.services import messages
from dealer_console.services.api_client import DealerApiClient
from dealer_console.services.enrichment_service import ContractDataResolver
from dealer_console.services.messages import PaymentErrorKind, translate_payment_error
from dealer_console.services.pdf_service import PdfService
from dealer_console.services.read_services import PaymentHistoryService

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]
SleepFunc = Callable[[float], Awaitable[Any]]


# -------------------------------------------------------------------
# Amounts
# -------------------------------------------------------------------

def compute_deposit_amount(total_amount: Number, percent: Number) -> Decimal:
    """round(total * percent / 100), half-up, in whole dong."""
    amount = Decimal(str(total_amount)) * Decimal(str(percent)) / Decimal("100")
    return amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def compute_payment_progress(total_amount: Decimal, paid_amount: Decimal) -> int:
    """Paid share in whole percent, 0 for an empty order, never above 100."""
    if total_amount <= 0:
        return 0
    if paid_amount >= total_amount:
        return 100
    progress = (paid_amount / total_amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    # 99.6% is not fully paid
    return min(int(progress), 99)


# -------------------------------------------------------------------
# Stock re-check policy
# -------------------------------------------------------------------

@dataclass
class StockRecheckPolicy:
    """
    Bounded re-fetch of the order after an "insufficient stock" deposit.

    Attempt n waits initial_delay * backoff ** n seconds before re-fetching.
    """

    attempts: int = 1
    initial_delay: float = 3.0
    backoff: float = 2.0
    sleep: SleepFunc = field(default=asyncio.sleep, repr=False)

    @classmethod
    def from_settings(cls) -> "StockRecheckPolicy":
        return cls(
            attempts=settings.stock_recheck_attempts,
            initial_delay=settings.stock_recheck_delay_seconds,
            backoff=settings.stock_recheck_backoff,
        )

    def delays(self) -> Iterator[float]:
        delay = self.initial_delay
        for _ in range(self.attempts):
            yield delay
            delay *= self.backoff


def _stock_settled(status: str) -> bool:
    """The deposit went through once the order left pending."""
    return status not in (OrderStatus.PENDING.value, OrderStatus.CANCELLED.value)


def _deposit_result(order: Order, has_stock: Optional[bool]) -> DepositResult:
    if has_stock is None:
        has_stock = order.status != OrderStatus.WAITING_VEHICLE_REQUEST.value
    return DepositResult.RESERVED if has_stock else DepositResult.RESTOCK_REQUESTED


def _document_info(document: GeneratedDocument) -> GeneratedDocumentInfo:
    return GeneratedDocumentInfo(
        filename=document.filename,
        media_type=document.media_type,
        size_bytes=document.size,
        content_base64=base64.b64encode(document.content).decode("ascii"),
    )


def translate_upstream_error(error: UpstreamError) -> AppException:
    """
    The local error matching an upstream payment failure, with the
    localized message. Unknown messages keep the upstream error type.
    """
    translated = translate_payment_error(error.upstream_message)
    kind = translated.kind
    if kind == PaymentErrorKind.WRONG_STATUS:
        return OrderStatusError(translated.message)
    if kind == PaymentErrorKind.VEHICLE_NOT_READY:
        return VehicleNotReadyError(
            translated.message,
            required_status=OrderStatus.VEHICLE_READY.value,
        )
    if kind == PaymentErrorKind.MISSING_COLOR:
        return BusinessValidationError(translated.message, error_code="MISSING_COLOR")
    if kind in (PaymentErrorKind.EXCEEDS_REMAINING, PaymentErrorKind.ALREADY_PAID):
        return ConflictError(translated.message, error_code=kind.value.upper())
    return UpstreamError(
        translated.message,
        upstream_status=error.upstream_status,
        upstream_message=error.upstream_message,
    )


# -------------------------------------------------------------------
# Service
# -------------------------------------------------------------------

class PaymentLifecycleService:
    """
    Deposit and final payment of an order, plus the contract that follows.

    Implements:
    - payment summary derived from the order (amounts, progress, actions)
    - deposit with stock shortage recovery (bounded re-check of the order)
    - final payment of the whole remaining balance
    - contract generation after the order becomes fully paid
    """

    def __init__(
        self,
        client: DealerApiClient,
        pdf_service: Optional[PdfService] = None,
        resolver: Optional[ContractDataResolver] = None,
        policy: Optional[StockRecheckPolicy] = None,
        deposit_min_percent: Optional[Number] = None,
        deposit_max_percent: Optional[Number] = None,
        dealer_scoped_roles: Optional[list[str]] = None,
    ):
        self.client = client
        self.pdf_service = pdf_service or PdfService()
        self.resolver = resolver or ContractDataResolver(client)
        self.policy = policy or StockRecheckPolicy.from_settings()
        self.payments = PaymentHistoryService(client)
        self.deposit_min_percent = Decimal(
            str(deposit_min_percent if deposit_min_percent is not None else settings.deposit_min_percent)
        )
        self.deposit_max_percent = Decimal(
            str(deposit_max_percent if deposit_max_percent is not None else settings.deposit_max_percent)
        )
        self.dealer_scoped_roles = frozenset(
            dealer_scoped_roles if dealer_scoped_roles is not None else settings.dealer_scoped_roles
        )

    # -------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------

    def summarize(self, order: Order) -> PaymentSummary:
        """Amounts and available actions for an order; recomputed on every call."""
        progress = compute_payment_progress(order.final_amount, order.paid_amount)
        is_first_payment = order.paid_amount == 0
        return PaymentSummary(
            order_id=order.id,
            order_code=order.code,
            status=order.status,
            total_amount=order.final_amount,
            paid_amount=order.paid_amount,
            remaining_amount=order.remaining_amount,
            payment_progress=progress,
            is_first_payment=is_first_payment,
            can_deposit=is_first_payment and order.status == OrderStatus.PENDING.value,
            can_final_payment=(
                not is_first_payment
                and progress < 100
                and order.status == OrderStatus.VEHICLE_READY.value
            ),
            deposit_min_percent=self.deposit_min_percent,
            deposit_max_percent=self.deposit_max_percent,
        )

    def compute_deposit_amount(self, total_amount: Number, percent: Number) -> Decimal:
        return compute_deposit_amount(total_amount, percent)

    # -------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------

    def check_dealership(self, order: Order, user: CurrentUser) -> None:
        """
        Dealer-scoped roles may only act on orders of their own dealership.
        An operator without a dealership claim matches no order.
        """
        if user.role not in self.dealer_scoped_roles:
            return
        order_dealership = order.dealership_ref_id
        if not user.dealership_id or user.dealership_id != order_dealership:
            logger.info(
                f"Access refused: user {user.id} (dealership {user.dealership_id}) "
                f"on order {order.id} of dealership {order_dealership}"
            )
            raise AuthorizationError(
                messages.dealership_mismatch(),
                error_code="DEALERSHIP_MISMATCH",
            )

    def check_deposit_allowed(self, order: Order) -> None:
        if order.status != OrderStatus.PENDING.value:
            logger.info(f"Deposit refused: order {order.id} is {order.status}")
            raise OrderStatusError(
                messages.status_required(OrderStatus.PENDING.value, order.status, "đặt cọc"),
                required_status=OrderStatus.PENDING.value,
                current_status=order.status,
            )
        if order.paid_amount > 0:
            raise OrderStatusError(
                messages.deposit_already_paid(),
                required_status=OrderStatus.PENDING.value,
                current_status=order.status,
            )

    def check_deposit_amount(self, order: Order, percent: Decimal) -> Decimal:
        """Validates the percentage and returns the deposit amount."""
        if not (self.deposit_min_percent <= percent <= self.deposit_max_percent):
            raise PaymentAmountError(
                messages.deposit_percent_out_of_range(
                    self.deposit_min_percent, self.deposit_max_percent
                ),
                extra={
                    "deposit_percent": str(percent),
                    "min_percent": str(self.deposit_min_percent),
                    "max_percent": str(self.deposit_max_percent),
                },
            )
        amount = compute_deposit_amount(order.final_amount, percent)
        if amount <= 0:
            raise PaymentAmountError("Giá trị đơn hàng không hợp lệ để đặt cọc")
        if amount > order.remaining_amount:
            raise PaymentAmountError(messages.amount_exceeds_remaining(order.remaining_amount))
        return amount

    def check_final_payment_allowed(self, order: Order) -> None:
        required = OrderStatus.VEHICLE_READY.value
        if is_deposit_status(order.status):
            logger.info(f"Final payment refused: vehicle of order {order.id} not ready")
            raise VehicleNotReadyError(
                messages.vehicle_not_ready(),
                required_status=required,
                current_status=order.status,
            )
        if order.status != required:
            logger.info(f"Final payment refused: order {order.id} is {order.status}")
            raise OrderStatusError(
                messages.status_required(required, order.status, "thanh toán phần còn lại"),
                required_status=required,
                current_status=order.status,
            )
        if order.paid_amount == 0:
            raise OrderStatusError(
                messages.deposit_required_first(),
                required_status=OrderStatus.PENDING.value,
                current_status=order.status,
            )

    def check_remaining(self, order: Order) -> Decimal:
        if order.remaining_amount <= 0:
            raise ConflictError(messages.already_fully_paid(), error_code="ALREADY_PAID")
        return order.remaining_amount

    # -------------------------------------------------------------------
    # Deposit
    # -------------------------------------------------------------------

    async def _reload_payments(self, order_id: str) -> list[Payment]:
        try:
            page = await self.payments.list_for_order(order_id)
        except AppException as e:
            logger.warning(f"Could not reload payments of order {order_id}: {e.detail}")
            return []
        return page.items

    async def _parse_payment_result(
        self,
        order: Order,
        data: dict[str, Any],
        warnings: list[str],
    ) -> Order:
        """
        Updated order from a payment response, re-fetched when the response has none.

        The payment is already recorded at this point: when the re-fetch fails
        the pre-call order is returned and a warning is added.
        """
        raw_order = data.get("order")
        if isinstance(raw_order, dict) and raw_order:
            try:
                return Order.model_validate(raw_order)
            except ValidationError as e:
                logger.warning(f"Unreadable order in payment response of {order.id}: {e.error_count()} errors")
        try:
            return await self.client.get_order(order.id)
        except AppException as e:
            logger.warning(f"Payment on order {order.id} recorded, reload failed: {e.detail}")
            warnings.append(messages.ORDER_RELOAD_FAILED)
            return order

    async def _recheck_stock(self, order: Order) -> Optional[Order]:
        """Re-fetches the order until it leaves pending; None when it never does."""
        for attempt, delay in enumerate(self.policy.delays(), start=1):
            await self.policy.sleep(delay)
            try:
                fresh = await self.client.get_order(order.id)
            except AppException as e:
                logger.warning(f"Stock re-check {attempt} of order {order.id} failed: {e.detail}")
                continue
            logger.info(f"Stock re-check {attempt} of order {order.id}: status {fresh.status}")
            if _stock_settled(fresh.status):
                return fresh
        return None

    async def submit_deposit(
        self,
        order: Order,
        request: DepositRequest,
        user: CurrentUser,
    ) -> DepositOutcome:
        """
        Submits the deposit of a pending order.

        Args:
            order: Current order (freshly fetched)
            request: Percentage, method and notes
            user: Operator taking the payment

        Returns:
            DepositOutcome: reserved, restock_requested, or pending_check
            when a stock shortage could not be confirmed yet

        Raises:
            AuthorizationError: Order of another dealership
            OrderStatusError: Order not pending or already paid
            PaymentAmountError: Percentage outside the bounds
            UpstreamError: Rejected by the dealership API
        """
        self.check_dealership(order, user)
        self.check_deposit_allowed(order)
        amount = self.check_deposit_amount(order, request.deposit_percent)

        logger.info(
            f"Deposit of {amount} ({request.deposit_percent}%) on order {order.id} "
            f"by user {user.id} via {request.method.value}"
        )

        try:
            data = await self.client.pay_deposit(
                order.id,
                deposit_amount=amount,
                payment_method=request.method.value,
                notes=request.notes,
            )
        except UpstreamError as e:
            translated = translate_payment_error(e.upstream_message)
            if translated.kind != PaymentErrorKind.INSUFFICIENT_STOCK:
                raise translate_upstream_error(e) from e
            logger.warning(f"Insufficient stock for deposit on order {order.id}: {e.upstream_message}")
            return await self._recover_stock_shortage(order, amount)

        warnings: list[str] = []
        updated = await self._parse_payment_result(order, data, warnings)
        has_stock = data.get("has_stock")
        if has_stock is not None:
            has_stock = bool(has_stock)
        result = _deposit_result(updated, has_stock)
        logger.info(f"Deposit on order {order.id} recorded: {result.value}, status {updated.status}")

        return DepositOutcome(
            result=result,
            message=(
                messages.DEPOSIT_RESERVED
                if result == DepositResult.RESERVED
                else messages.DEPOSIT_RESTOCK_REQUESTED
            ),
            warnings=warnings,
            deposit_amount=amount,
            has_stock=has_stock,
            order=updated,
            payments=await self._reload_payments(order.id),
        )

    async def _recover_stock_shortage(self, order: Order, amount: Decimal) -> DepositOutcome:
        warnings = [messages.STOCK_SHORTAGE_WARNING]
        fresh = await self._recheck_stock(order)
        if fresh is None:
            return DepositOutcome(
                result=DepositResult.PENDING_CHECK,
                message=messages.STOCK_CHECK_BACK_LATER,
                warnings=warnings,
                deposit_amount=amount,
                has_stock=False,
                order=order,
            )

        result = _deposit_result(fresh, None)
        return DepositOutcome(
            result=result,
            message=(
                messages.DEPOSIT_RESERVED
                if result == DepositResult.RESERVED
                else messages.DEPOSIT_RESTOCK_REQUESTED
            ),
            warnings=warnings,
            deposit_amount=amount,
            has_stock=result == DepositResult.RESERVED,
            order=fresh,
            payments=await self._reload_payments(order.id),
        )

    # -------------------------------------------------------------------
    # Final payment
    # -------------------------------------------------------------------

    async def submit_final_payment(
        self,
        order: Order,
        request: FinalPaymentRequest,
        user: CurrentUser,
    ) -> FinalPaymentOutcome:
        """
        Pays the remaining balance of an order whose vehicle is ready.

        When the returned order is fully paid the contract is generated
        right away; a contract failure is reported in the outcome
        (contract_error) and the payment stands.

        Raises:
            AuthorizationError: Order of another dealership
            VehicleNotReadyError: Deposit paid, vehicle not marked ready
            OrderStatusError: Any other status than vehicle_ready, or no deposit
            ConflictError: Nothing left to pay
            UpstreamError: Rejected by the dealership API
        """
        self.check_dealership(order, user)
        self.check_final_payment_allowed(order)
        charged = self.check_remaining(order)

        logger.info(
            f"Final payment of {charged} on order {order.id} by user {user.id} via {request.method.value}"
        )

        try:
            data = await self.client.pay_final(
                order.id,
                payment_method=request.method.value,
                notes=request.notes,
            )
        except UpstreamError as e:
            raise translate_upstream_error(e) from e

        warnings: list[str] = []
        updated = await self._parse_payment_result(order, data, warnings)
        fully_paid = is_fully_paid_status(updated.status)

        outcome = FinalPaymentOutcome(
            message=messages.FINAL_PAYMENT_SUCCESS,
            warnings=warnings,
            charged_amount=charged,
            order=updated,
            fully_paid=fully_paid,
            payments=await self._reload_payments(order.id),
        )

        if fully_paid:
            try:
                document = await self.generate_contract(updated, order.dealership or order.dealership_id)
            except Exception as e:
                # The payment is recorded: any failure here only costs the contract
                if isinstance(e, AppException):
                    error = e.detail
                    logger.error(f"Contract generation failed after payment of order {order.id}: {error}")
                else:
                    error = str(e) or e.__class__.__name__
                    logger.error(
                        f"Unexpected error generating the contract of order {order.id}: {error}",
                        exc_info=True,
                    )
                outcome.contract_error = error
                outcome.message = messages.CONTRACT_FAILED_AFTER_PAYMENT
                outcome.warnings.append(messages.CONTRACT_FAILED_AFTER_PAYMENT)
            else:
                outcome.contract = _document_info(document)
                outcome.message = messages.FULLY_PAID_CONTRACT_READY

        return outcome

    # -------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------

    async def generate_contract(
        self,
        order: Order,
        dealership_override: Optional[Union[str, dict[str, Any]]] = None,
    ) -> GeneratedDocument:
        """
        Resolves the contract data of a fully paid order and renders the PDF.

        Raises:
            OrderStatusError: The order is not fully paid
            DocumentGenerationError: Rendering failed
        """
        if not is_fully_paid_status(order.status):
            raise OrderStatusError(
                messages.CONTRACT_NOT_AVAILABLE,
                required_status=OrderStatus.FULLY_PAID.value,
                current_status=order.status,
            )
        data = await self.resolver.resolve(order, dealership_override=dealership_override)
        # WeasyPrint is CPU bound and synchronous
        return await asyncio.to_thread(self.pdf_service.generate_contract_pdf, data)
