"""
Unit tests for BankProfileService.
"""

import pytest

from dealer_console.core.exceptions import BusinessValidationError, ConflictError, NotFoundError
from dealer_console.schemas.bank_profile import BankProfileCreate, BankProfileStatus
from dealer_console.services.bank_profile_service import BankProfileService, check_status_transition


def profile_body(status="pending", **overrides):
    data = {
        "_id": "bp-001",
        "customer_id": "cust-001",
        "order_id": {"_id": "order-001"},
        "bank_name": "Vietcombank",
        "account_number": "0123456789",
        "account_holder": "NGUYEN VAN AN",
        "status": status,
    }
    data.update(overrides)
    return {"success": True, "data": data}


@pytest.fixture
def create_data():
    return BankProfileCreate(
        customer_id="cust-001",
        order_id="order-001",
        bank_name="Vietcombank",
        account_number="0123456789",
        account_holder="NGUYEN VAN AN",
    )


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "current, target",
        [
            ("pending", "submitted"),
            ("submitted", "under_review"),
            ("under_review", "approved"),
            ("approved", "funded"),
            ("pending", "under_review"),
            ("submitted", "rejected"),
            ("under_review", "canceled"),
        ],
    )
    def test_allowed(self, current, target):
        check_status_transition(BankProfileStatus(current), BankProfileStatus(target))

    @pytest.mark.parametrize(
        "current, target",
        [
            ("submitted", "pending"),
            ("under_review", "submitted"),
        ],
    )
    def test_cannot_move_backwards(self, current, target):
        with pytest.raises(BusinessValidationError) as exc_info:
            check_status_transition(BankProfileStatus(current), BankProfileStatus(target))

        assert exc_info.value.error_code == "BANK_PROFILE_STATUS_BACKWARDS"

    @pytest.mark.parametrize(
        "current, target",
        [
            ("approved", "under_review"),
            ("approved", "rejected"),
            ("funded", "canceled"),
            ("rejected", "submitted"),
            ("canceled", "pending"),
        ],
    )
    def test_closed_profiles_are_frozen(self, current, target):
        with pytest.raises(BusinessValidationError) as exc_info:
            check_status_transition(BankProfileStatus(current), BankProfileStatus(target))

        assert exc_info.value.error_code == "BANK_PROFILE_LOCKED"

    def test_same_status_is_refused(self):
        with pytest.raises(BusinessValidationError):
            check_status_transition(BankProfileStatus.SUBMITTED, BankProfileStatus.SUBMITTED)


class TestBankProfileService:
    @pytest.mark.asyncio
    async def test_create(self, mock_api, create_data):
        mock_api.get.side_effect = NotFoundError()
        mock_api.post.return_value = profile_body()

        profile = await BankProfileService(mock_api).create(create_data)

        mock_api.get.assert_awaited_once_with("/api/bank-profiles/order/order-001")
        path = mock_api.post.await_args.args[0]
        payload = mock_api.post.await_args.kwargs["json"]
        assert path == "/api/bank-profiles"
        assert payload["bank_name"] == "Vietcombank"
        assert "branch" not in payload
        assert profile.order_id == "order-001"
        assert profile.status == BankProfileStatus.PENDING

    @pytest.mark.asyncio
    async def test_one_profile_per_order(self, mock_api, create_data):
        mock_api.get.side_effect = None
        mock_api.get.return_value = profile_body()

        with pytest.raises(ConflictError) as exc_info:
            await BankProfileService(mock_api).create(create_data)

        assert exc_info.value.extra == {"bank_profile_id": "bp-001"}
        mock_api.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_status(self, mock_api):
        mock_api.get.return_value = profile_body("submitted")
        mock_api.put.return_value = profile_body("under_review")

        profile = await BankProfileService(mock_api).update_status(
            "bp-001", BankProfileStatus.UNDER_REVIEW, notes="Đã nhận hồ sơ"
        )

        mock_api.put.assert_awaited_once_with(
            "/api/bank-profiles/bp-001/status",
            json={"status": "under_review", "notes": "Đã nhận hồ sơ"},
        )
        assert profile.status == BankProfileStatus.UNDER_REVIEW

    @pytest.mark.asyncio
    async def test_approved_profile_is_locked(self, mock_api):
        mock_api.get.return_value = profile_body("approved")

        with pytest.raises(BusinessValidationError):
            await BankProfileService(mock_api).update_status("bp-001", BankProfileStatus.SUBMITTED)

        mock_api.put.assert_not_awaited()
