"""
Service Layer for bank (installment financing) profiles
Project: Dealer Console
"""

import logging
from typing import Optional

from dealer_console.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NotFoundError,
)
from dealer_console.schemas.bank_profile import (
    EXIT_STATUSES,
    LOCKED_STATUSES,
    PIPELINE_ORDER,
    BankProfile,
    BankProfileCreate,
    BankProfileStatus,
)
from dealer_console.services.api_client import DealerApiClient, unwrap_entity

logger = logging.getLogger(__name__)


def check_status_transition(current: BankProfileStatus, target: BankProfileStatus) -> None:
    """
    Validates a status change.

    Rules:
    - approved, funded, rejected and canceled profiles are frozen,
      except approved -> funded
    - along the pipeline a profile only moves forward
    - rejected/canceled are reachable from any open status

    Raises:
        BusinessValidationError: The transition is not allowed
    """
    if current == target:
        raise BusinessValidationError(
            f"Hồ sơ ngân hàng đã ở trạng thái '{current.value}'",
            error_code="BANK_PROFILE_STATUS_UNCHANGED",
        )

    if current in LOCKED_STATUSES:
        if current == BankProfileStatus.APPROVED and target == BankProfileStatus.FUNDED:
            return
        raise BusinessValidationError(
            f"Hồ sơ ngân hàng ở trạng thái '{current.value}' không thể thay đổi",
            error_code="BANK_PROFILE_LOCKED",
            extra={"current_status": current.value, "target_status": target.value},
        )

    if target in EXIT_STATUSES:
        return

    if PIPELINE_ORDER[target] < PIPELINE_ORDER[current]:
        raise BusinessValidationError(
            f"Không thể chuyển hồ sơ từ '{current.value}' về '{target.value}'",
            error_code="BANK_PROFILE_STATUS_BACKWARDS",
            extra={"current_status": current.value, "target_status": target.value},
        )


class BankProfileService:
    """
    Bank profiles of installment orders.

    One profile per order; the status follows
    pending -> submitted -> under_review -> approved -> funded.
    """

    def __init__(self, client: DealerApiClient):
        self.client = client

    async def get(self, profile_id: str) -> BankProfile:
        body = await self.client.get(f"/api/bank-profiles/{profile_id}")
        return BankProfile.model_validate(unwrap_entity(body, "bankProfile"))

    async def find_by_order(self, order_id: str) -> Optional[BankProfile]:
        try:
            return await self.get_by_order(order_id)
        except NotFoundError:
            return None

    async def get_by_order(self, order_id: str) -> BankProfile:
        body = await self.client.get(f"/api/bank-profiles/order/{order_id}")
        return BankProfile.model_validate(unwrap_entity(body, "bankProfile"))

    async def create(self, data: BankProfileCreate) -> BankProfile:
        """
        Creates the bank profile of an order.

        Raises:
            ConflictError: The order already has a profile
        """
        existing = await self.find_by_order(data.order_id)
        if existing is not None:
            raise ConflictError(
                f"Đơn hàng đã có hồ sơ ngân hàng ({existing.bank_name or existing.id})",
                error_code="BANK_PROFILE_EXISTS",
                extra={"bank_profile_id": existing.id},
            )

        body = await self.client.post(
            "/api/bank-profiles",
            json=data.model_dump(mode="json", exclude_none=True),
        )
        profile = BankProfile.model_validate(unwrap_entity(body, "bankProfile"))
        logger.info(f"Bank profile {profile.id} created for order {data.order_id}")
        return profile

    async def update_status(
        self,
        profile_id: str,
        status: BankProfileStatus,
        notes: Optional[str] = None,
    ) -> BankProfile:
        current = await self.get(profile_id)
        check_status_transition(current.status, status)

        payload = {"status": status.value}
        if notes:
            payload["notes"] = notes
        body = await self.client.put(f"/api/bank-profiles/{profile_id}/status", json=payload)
        profile = BankProfile.model_validate(unwrap_entity(body, "bankProfile"))
        logger.info(f"Bank profile {profile_id}: {current.status.value} -> {status.value}")
        return profile
