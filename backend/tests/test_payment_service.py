"""
Unit tests for PaymentLifecycleService.

The dealership API is an AsyncMock: every test checks both the outcome
and whether the payment call was issued at all.
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from conftest import make_order, make_order_data
from dealer_console.core.exceptions import (
    AuthorizationError,
    BusinessValidationError,
    ConflictError,
    DocumentGenerationError,
    NotFoundError,
    OrderStatusError,
    PaymentAmountError,
    UpstreamError,
    UpstreamUnavailableError,
    VehicleNotReadyError,
)
from dealer_console.core.security import normalize_role
from dealer_console.schemas.payment import (
    DepositRequest,
    DepositResult,
    FinalPaymentRequest,
    PaymentMethod,
)
from dealer_console.schemas.token import CurrentUser
from dealer_console.services import messages
from dealer_console.services.payment_service import (
    StockRecheckPolicy,
    compute_deposit_amount,
    compute_payment_progress,
)


def deposit_request(percent="20", method=PaymentMethod.BANK) -> DepositRequest:
    return DepositRequest(deposit_percent=Decimal(percent), method=method)


# ============================================================
# Tests for derived state
# ============================================================


class TestPaymentSummary:
    """Amounts and actions derived from the order."""

    def test_fresh_order_offers_deposit_only(self, payment_service, pending_order):
        summary = payment_service.summarize(pending_order)

        assert summary.payment_progress == 0
        assert summary.is_first_payment is True
        assert summary.can_deposit is True
        assert summary.can_final_payment is False
        assert summary.remaining_amount == Decimal("1000000000")

    def test_vehicle_ready_order_offers_final_payment(self, payment_service, vehicle_ready_order):
        summary = payment_service.summarize(vehicle_ready_order)

        assert summary.payment_progress == 20
        assert summary.is_first_payment is False
        assert summary.can_deposit is False
        assert summary.can_final_payment is True
        assert summary.paid_amount + summary.remaining_amount == summary.total_amount

    def test_deposit_bounds_are_reported(self, payment_service, pending_order):
        summary = payment_service.summarize(pending_order)

        assert summary.deposit_min_percent == Decimal("10")
        assert summary.deposit_max_percent == Decimal("30")

    def test_progress_is_zero_for_empty_order(self):
        assert compute_payment_progress(Decimal("0"), Decimal("0")) == 0

    def test_progress_reaches_100_only_when_fully_paid(self):
        """99.99% paid still shows 99."""
        total = Decimal("1000000000")

        assert compute_payment_progress(total, Decimal("999999999")) == 99
        assert compute_payment_progress(total, total) == 100

    def test_progress_rounds_half_up(self):
        assert compute_payment_progress(Decimal("200"), Decimal("49")) == 25


class TestDepositAmount:
    """round(total * percent / 100)"""

    def test_twenty_percent_of_one_billion(self):
        assert compute_deposit_amount(1_000_000_000, 20) == Decimal("200000000")

    def test_rounds_half_up(self):
        assert compute_deposit_amount(1_000_005, 10) == Decimal("100001")

    def test_fractional_percent(self):
        assert compute_deposit_amount(1_000_000, Decimal("12.5")) == Decimal("125000")


# ============================================================
# Tests for the deposit
# ============================================================


class TestSubmitDeposit:
    """Deposit on a pending order."""

    @pytest.mark.asyncio
    async def test_deposit_on_fresh_order(self, payment_service, mock_api, pending_order, dealer_staff):
        """20% of 1.000.000.000 is sent as 200.000.000; the order is no longer a first payment."""
        mock_api.pay_deposit.return_value = {
            "order": make_order_data(status="deposit_paid", paid_amount=200_000_000),
            "has_stock": True,
        }

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        mock_api.pay_deposit.assert_awaited_once_with(
            "order-001",
            deposit_amount=Decimal("200000000"),
            payment_method="bank",
            notes=None,
        )
        assert outcome.result == DepositResult.RESERVED
        assert outcome.message == messages.DEPOSIT_RESERVED
        assert outcome.deposit_amount == Decimal("200000000")
        assert outcome.has_stock is True

        summary = payment_service.summarize(outcome.order)
        assert summary.is_first_payment is False
        assert outcome.order.paid_amount + outcome.order.remaining_amount == outcome.order.final_amount

    @pytest.mark.asyncio
    async def test_deposit_without_stock_requests_restock(
        self, payment_service, mock_api, pending_order, dealer_staff
    ):
        mock_api.pay_deposit.return_value = {
            "order": make_order_data(status="waiting_vehicle_request", paid_amount=200_000_000),
            "has_stock": False,
        }

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        assert outcome.result == DepositResult.RESTOCK_REQUESTED
        assert outcome.message == messages.DEPOSIT_RESTOCK_REQUESTED
        assert outcome.message != messages.DEPOSIT_RESERVED

    @pytest.mark.asyncio
    async def test_order_is_refetched_when_response_has_none(
        self, payment_service, mock_api, pending_order, dealer_staff
    ):
        mock_api.pay_deposit.return_value = {"has_stock": True}
        mock_api.get_order.return_value = make_order(status="deposit_paid", paid_amount=200_000_000)

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        mock_api.get_order.assert_awaited_once_with("order-001")
        assert outcome.order.status == "deposit_paid"
        assert outcome.warnings == []

    @pytest.mark.asyncio
    async def test_reload_failure_after_deposit_is_a_warning(
        self, payment_service, mock_api, pending_order, dealer_staff
    ):
        mock_api.pay_deposit.return_value = {"has_stock": True}
        mock_api.get_order.side_effect = UpstreamUnavailableError()

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        mock_api.pay_deposit.assert_awaited_once()
        assert outcome.result == DepositResult.RESERVED
        assert outcome.deposit_amount == Decimal("200000000")
        assert messages.ORDER_RELOAD_FAILED in outcome.warnings

    @pytest.mark.asyncio
    async def test_payment_history_is_reloaded(self, payment_service, mock_api, pending_order, dealer_staff):
        mock_api.pay_deposit.return_value = {
            "order": make_order_data(status="deposit_paid", paid_amount=200_000_000),
            "has_stock": True,
        }
        mock_api.get.return_value = {
            "success": True,
            "data": [{"_id": "pay-001", "order_id": "order-001", "amount": 200_000_000, "method": "bank"}],
        }

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        mock_api.get.assert_awaited_with("/api/payments/order/order-001")
        assert [p.id for p in outcome.payments] == ["pay-001"]

    @pytest.mark.asyncio
    async def test_history_reload_failure_does_not_fail_the_deposit(
        self, payment_service, mock_api, pending_order, dealer_staff
    ):
        mock_api.pay_deposit.return_value = {
            "order": make_order_data(status="deposit_paid", paid_amount=200_000_000),
            "has_stock": True,
        }
        mock_api.get.side_effect = NotFoundError("not found")

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        assert outcome.result == DepositResult.RESERVED
        assert outcome.payments == []


class TestDepositGuards:
    """Guards run before any upstream call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status",
        ["confirmed", "deposit_paid", "halfPayment", "waiting_vehicle_request",
         "vehicle_ready", "fully_paid", "delivered", "cancelled"],
    )
    @pytest.mark.parametrize("method", list(PaymentMethod))
    async def test_rejected_unless_pending(self, payment_service, mock_api, dealer_staff, status, method):
        order = make_order(status=status)

        with pytest.raises(OrderStatusError) as exc_info:
            await payment_service.submit_deposit(order, deposit_request(method=method), dealer_staff)

        assert exc_info.value.extra["required_status"] == "pending"
        assert "pending" in exc_info.value.detail
        mock_api.pay_deposit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejected_when_already_paid(self, payment_service, mock_api, dealer_staff):
        order = make_order(status="pending", paid_amount=100_000_000)

        with pytest.raises(OrderStatusError):
            await payment_service.submit_deposit(order, deposit_request(), dealer_staff)

        mock_api.pay_deposit.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("percent", ["0", "5", "9.99", "30.01", "31", "100"])
    async def test_percent_out_of_bounds(self, payment_service, mock_api, pending_order, dealer_staff, percent):
        with pytest.raises(PaymentAmountError) as exc_info:
            await payment_service.submit_deposit(pending_order, deposit_request(percent), dealer_staff)

        assert "10% - 30%" in exc_info.value.detail
        mock_api.pay_deposit.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("percent, expected", [("10", "100000000"), ("30", "300000000")])
    async def test_boundary_percents_accepted(
        self, payment_service, mock_api, pending_order, dealer_staff, percent, expected
    ):
        mock_api.pay_deposit.return_value = {
            "order": make_order_data(status="deposit_paid", paid_amount=int(expected)),
            "has_stock": True,
        }

        await payment_service.submit_deposit(pending_order, deposit_request(percent), dealer_staff)

        assert mock_api.pay_deposit.await_args.kwargs["deposit_amount"] == Decimal(expected)

    @pytest.mark.asyncio
    async def test_other_dealership_is_refused(self, payment_service, mock_api, pending_order, other_dealer_staff):
        with pytest.raises(AuthorizationError) as exc_info:
            await payment_service.submit_deposit(pending_order, deposit_request(), other_dealer_staff)

        assert exc_info.value.error_code == "DEALERSHIP_MISMATCH"
        mock_api.pay_deposit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_operator_without_dealership_is_refused(self, payment_service, mock_api):
        """A role label the console does not know falls back to dealer_staff."""
        user = CurrentUser(
            id="user-004",
            role=normalize_role("Some New Role"),
            dealership_id=None,
            token="token-unknown",
        )
        order = make_order(dealership_id="dealer-999")

        with pytest.raises(AuthorizationError) as exc_info:
            await payment_service.submit_deposit(order, deposit_request(), user)

        assert exc_info.value.error_code == "DEALERSHIP_MISMATCH"
        mock_api.pay_deposit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_order_without_dealership_is_refused_to_dealer_staff(
        self, payment_service, mock_api, dealer_staff
    ):
        order = make_order(dealership_id=None)

        with pytest.raises(AuthorizationError):
            await payment_service.submit_deposit(order, deposit_request(), dealer_staff)

        mock_api.pay_deposit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dealership_is_checked_before_status(self, payment_service, mock_api, other_dealer_staff):
        """Wrong dealership and wrong status: the dealership error wins."""
        order = make_order(status="vehicle_ready")

        with pytest.raises(AuthorizationError):
            await payment_service.submit_deposit(order, deposit_request("50"), other_dealer_staff)

        mock_api.pay_deposit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_is_checked_before_amount(self, payment_service, mock_api, dealer_staff):
        order = make_order(status="confirmed")

        with pytest.raises(OrderStatusError):
            await payment_service.submit_deposit(order, deposit_request("50"), dealer_staff)

    @pytest.mark.asyncio
    async def test_populated_dealership_reference_is_matched(self, payment_service, mock_api, dealer_staff):
        order = make_order(dealership_id={"_id": "dealer-001", "name": "Đại lý Quận 1"})
        mock_api.pay_deposit.return_value = {
            "order": make_order_data(status="deposit_paid", paid_amount=200_000_000),
            "has_stock": True,
        }

        outcome = await payment_service.submit_deposit(order, deposit_request(), dealer_staff)

        assert outcome.result == DepositResult.RESERVED

    @pytest.mark.asyncio
    async def test_manufacturer_staff_is_not_dealer_scoped(self, payment_service, mock_api, evm_staff):
        order = make_order(dealership_id="dealer-999")
        mock_api.pay_deposit.return_value = {
            "order": make_order_data(status="deposit_paid", paid_amount=200_000_000),
            "has_stock": True,
        }

        await payment_service.submit_deposit(order, deposit_request(), evm_staff)

        mock_api.pay_deposit.assert_awaited_once()


class TestStockShortage:
    """Upstream "Insufficient stock" answers are recovered by re-checking the order."""

    @pytest.fixture
    def shortage(self, mock_api):
        mock_api.pay_deposit.side_effect = UpstreamError(
            "Insufficient stock for vehicle VF8",
            upstream_status=400,
        )
        return mock_api

    @pytest.mark.asyncio
    async def test_advanced_status_is_a_success(
        self, payment_service, shortage, mock_sleep, pending_order, dealer_staff
    ):
        shortage.get_order.return_value = make_order(
            status="waiting_vehicle_request", paid_amount=200_000_000
        )

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        mock_sleep.assert_awaited_once_with(3.0)
        shortage.get_order.assert_awaited_once_with("order-001")
        assert outcome.result == DepositResult.RESTOCK_REQUESTED
        assert outcome.order.status == "waiting_vehicle_request"
        assert messages.STOCK_SHORTAGE_WARNING in outcome.warnings

    @pytest.mark.asyncio
    async def test_unchanged_status_asks_to_check_back(
        self, payment_service, shortage, pending_order, dealer_staff
    ):
        shortage.get_order.return_value = make_order(status="pending")

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        assert outcome.result == DepositResult.PENDING_CHECK
        assert outcome.message == messages.STOCK_CHECK_BACK_LATER
        assert messages.STOCK_SHORTAGE_WARNING in outcome.warnings

    @pytest.mark.asyncio
    async def test_failed_recheck_asks_to_check_back(
        self, payment_service, shortage, pending_order, dealer_staff
    ):
        shortage.get_order.side_effect = UpstreamError("Service unavailable", upstream_status=503)

        outcome = await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        assert outcome.result == DepositResult.PENDING_CHECK

    @pytest.mark.asyncio
    async def test_recheck_stops_at_first_advanced_status(
        self, mock_api, mock_pdf_service, shortage, pending_order, dealer_staff
    ):
        from dealer_console.services.payment_service import PaymentLifecycleService

        sleep = AsyncMock()
        service = PaymentLifecycleService(
            mock_api,
            pdf_service=mock_pdf_service,
            policy=StockRecheckPolicy(attempts=3, initial_delay=1.0, backoff=2.0, sleep=sleep),
        )
        shortage.get_order.side_effect = [
            make_order(status="pending"),
            make_order(status="deposit_paid", paid_amount=200_000_000),
        ]

        outcome = await service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]
        assert outcome.result == DepositResult.RESERVED

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(
        self, payment_service, mock_api, mock_sleep, pending_order, dealer_staff
    ):
        mock_api.pay_deposit.side_effect = UpstreamError(
            "Please select a color for every item", upstream_status=400
        )

        with pytest.raises(BusinessValidationError) as exc_info:
            await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        assert exc_info.value.error_code == "MISSING_COLOR"
        mock_sleep.assert_not_awaited()
        mock_api.get_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_errors_keep_the_backend_message(
        self, payment_service, mock_api, pending_order, dealer_staff
    ):
        mock_api.pay_deposit.side_effect = UpstreamError("Database write failed", upstream_status=500)

        with pytest.raises(UpstreamError) as exc_info:
            await payment_service.submit_deposit(pending_order, deposit_request(), dealer_staff)

        assert exc_info.value.detail == "Database write failed"
        assert exc_info.value.status_code == 502


class TestStockRecheckPolicy:
    def test_delays_grow_by_backoff(self):
        policy = StockRecheckPolicy(attempts=3, initial_delay=1.5, backoff=2.0)

        assert list(policy.delays()) == [1.5, 3.0, 6.0]

    def test_single_fixed_wait_by_default(self):
        assert list(StockRecheckPolicy().delays()) == [3.0]

    def test_zero_attempts_never_waits(self):
        assert list(StockRecheckPolicy(attempts=0).delays()) == []


# ============================================================
# Tests for the final payment
# ============================================================


class TestSubmitFinalPayment:
    """Final payment of the whole remaining balance."""

    @pytest.fixture
    def fully_paid_response(self, mock_api):
        mock_api.pay_final.return_value = {
            "order": make_order_data(status="fully_paid", paid_amount=1_000_000_000),
        }
        return mock_api

    @pytest.mark.asyncio
    async def test_final_payment_generates_contract(
        self, payment_service, fully_paid_response, mock_pdf_service, vehicle_ready_order, dealer_staff
    ):
        outcome = await payment_service.submit_final_payment(
            vehicle_ready_order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
        )

        fully_paid_response.pay_final.assert_awaited_once_with(
            "order-001", payment_method="cash", notes=None
        )
        assert outcome.charged_amount == Decimal("800000000")
        assert outcome.fully_paid is True
        assert outcome.order.paid_amount == outcome.order.final_amount
        assert payment_service.summarize(outcome.order).payment_progress == 100

        mock_pdf_service.generate_contract_pdf.assert_called_once()
        assert outcome.contract.filename == "Hop-dong-ORD-2024-001.pdf"
        assert outcome.contract_error is None
        assert outcome.message == messages.FULLY_PAID_CONTRACT_READY

    @pytest.mark.asyncio
    async def test_contract_failure_keeps_the_payment(
        self, payment_service, fully_paid_response, mock_pdf_service, vehicle_ready_order, dealer_staff
    ):
        mock_pdf_service.generate_contract_pdf.side_effect = DocumentGenerationError("PDF engine crashed")

        outcome = await payment_service.submit_final_payment(
            vehicle_ready_order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
        )

        assert outcome.fully_paid is True
        assert outcome.order.status == "fully_paid"
        assert outcome.contract is None
        assert outcome.contract_error == "PDF engine crashed"
        assert outcome.message == messages.CONTRACT_FAILED_AFTER_PAYMENT

    @pytest.mark.asyncio
    async def test_unexpected_contract_error_keeps_the_payment(
        self, payment_service, fully_paid_response, mock_pdf_service, vehicle_ready_order, dealer_staff
    ):
        mock_pdf_service.generate_contract_pdf.side_effect = KeyError("buyer")

        outcome = await payment_service.submit_final_payment(
            vehicle_ready_order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
        )

        assert outcome.fully_paid is True
        assert outcome.contract is None
        assert outcome.contract_error
        assert messages.CONTRACT_FAILED_AFTER_PAYMENT in outcome.warnings

    @pytest.mark.asyncio
    async def test_reload_failure_after_payment_is_a_warning(
        self, payment_service, mock_api, mock_pdf_service, vehicle_ready_order, dealer_staff
    ):
        mock_api.pay_final.return_value = {}
        mock_api.get_order.side_effect = UpstreamError("boom", upstream_status=500)

        outcome = await payment_service.submit_final_payment(
            vehicle_ready_order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
        )

        mock_api.pay_final.assert_awaited_once()
        assert outcome.charged_amount == Decimal("800000000")
        assert outcome.order.id == "order-001"
        assert messages.ORDER_RELOAD_FAILED in outcome.warnings
        mock_pdf_service.generate_contract_pdf.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_contract_when_not_fully_paid(
        self, payment_service, mock_api, mock_pdf_service, vehicle_ready_order, dealer_staff
    ):
        mock_api.pay_final.return_value = {
            "order": make_order_data(status="vehicle_ready", paid_amount=900_000_000),
        }

        outcome = await payment_service.submit_final_payment(
            vehicle_ready_order, FinalPaymentRequest(method=PaymentMethod.BANK), dealer_staff
        )

        assert outcome.fully_paid is False
        assert outcome.contract is None
        mock_pdf_service.generate_contract_pdf.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["deposit_paid", "halfPayment"])
    async def test_vehicle_not_ready(self, payment_service, mock_api, dealer_staff, status):
        order = make_order(status=status, paid_amount=200_000_000)

        with pytest.raises(VehicleNotReadyError) as exc_info:
            await payment_service.submit_final_payment(
                order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
            )

        assert exc_info.value.error_code == "VEHICLE_NOT_READY"
        assert exc_info.value.detail == messages.vehicle_not_ready()
        mock_api.pay_final.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", ["pending", "confirmed", "waiting_vehicle_request", "fully_paid", "cancelled"]
    )
    async def test_generic_status_mismatch(self, payment_service, mock_api, dealer_staff, status):
        order = make_order(status=status, paid_amount=200_000_000)

        with pytest.raises(OrderStatusError) as exc_info:
            await payment_service.submit_final_payment(
                order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
            )

        assert not isinstance(exc_info.value, VehicleNotReadyError)
        assert exc_info.value.extra["required_status"] == "vehicle_ready"
        assert exc_info.value.detail != messages.vehicle_not_ready()
        mock_api.pay_final.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_a_deposit(self, payment_service, mock_api, dealer_staff):
        order = make_order(status="vehicle_ready", paid_amount=0)

        with pytest.raises(OrderStatusError):
            await payment_service.submit_final_payment(
                order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
            )

        mock_api.pay_final.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nothing_left_to_pay(self, payment_service, mock_api, dealer_staff):
        order = make_order(status="vehicle_ready", paid_amount=1_000_000_000)

        with pytest.raises(ConflictError):
            await payment_service.submit_final_payment(
                order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
            )

        mock_api.pay_final.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_dealership_is_refused(
        self, payment_service, mock_api, vehicle_ready_order, other_dealer_staff
    ):
        with pytest.raises(AuthorizationError):
            await payment_service.submit_final_payment(
                vehicle_ready_order, FinalPaymentRequest(method=PaymentMethod.CASH), other_dealer_staff
            )

        mock_api.pay_final.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_already_paid_is_a_conflict(
        self, payment_service, mock_api, vehicle_ready_order, dealer_staff
    ):
        mock_api.pay_final.side_effect = UpstreamError("Order is already fully paid", upstream_status=400)

        with pytest.raises(ConflictError) as exc_info:
            await payment_service.submit_final_payment(
                vehicle_ready_order, FinalPaymentRequest(method=PaymentMethod.CASH), dealer_staff
            )

        assert exc_info.value.detail == "Đơn hàng đã được thanh toán đủ."


class TestGenerateContract:
    @pytest.mark.asyncio
    async def test_only_for_fully_paid_orders(self, payment_service, vehicle_ready_order):
        with pytest.raises(OrderStatusError) as exc_info:
            await payment_service.generate_contract(vehicle_ready_order)

        assert exc_info.value.detail == messages.CONTRACT_NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_enrichment_failure_still_produces_the_contract(
        self, payment_service, mock_api, mock_pdf_service, fully_paid_order
    ):
        mock_api.get_customer.side_effect = UpstreamError("boom", upstream_status=500)
        mock_api.get_dealership.side_effect = NotFoundError("missing")

        document = await payment_service.generate_contract(fully_paid_order)

        assert document.filename == "Hop-dong-ORD-2024-001.pdf"
        data = mock_pdf_service.generate_contract_pdf.call_args.args[0]
        assert data.customer.name == "Nguyễn Văn An"
        assert data.customer.address == "N/A"
        assert data.dealership.tax_code == "N/A"
