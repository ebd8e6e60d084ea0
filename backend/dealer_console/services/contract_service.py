"""
Service Layer for contract records
Project: Dealer Console

Contract record of an order as kept by the backend, and the scans of the
contract signed by the customer (upload and removal).
"""

import logging
from typing import Optional

from dealer_console.core.config import settings
from dealer_console.core.exceptions import BusinessValidationError
from dealer_console.schemas.contract import ContractInfo
from dealer_console.services.api_client import DealerApiClient, unwrap_entity

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"


def check_signed_contract_file(
    content_type: Optional[str],
    size: int,
    max_bytes: Optional[int] = None,
) -> None:
    """
    A signed contract is an image or a PDF, non-empty and below the size limit.

    Raises:
        BusinessValidationError: wrong type, empty or too large
    """
    max_bytes = max_bytes or settings.signed_contract_max_bytes
    content_type = (content_type or "").lower()
    if not (content_type.startswith("image/") or content_type == PDF_MEDIA_TYPE):
        raise BusinessValidationError(
            "Chỉ chấp nhận file ảnh (JPG, PNG) hoặc PDF",
            error_code="SIGNED_CONTRACT_INVALID_TYPE",
            extra={"content_type": content_type or None},
        )
    if size <= 0:
        raise BusinessValidationError("File hợp đồng trống", error_code="SIGNED_CONTRACT_EMPTY")
    if size >= max_bytes:
        raise BusinessValidationError(
            f"File phải nhỏ hơn {max_bytes // (1024 * 1024)}MB!",
            error_code="SIGNED_CONTRACT_TOO_LARGE",
            extra={"size_bytes": size, "max_bytes": max_bytes},
        )


class ContractRecordService:
    """Contract record of an order and its signed scans."""

    def __init__(self, client: DealerApiClient):
        self.client = client

    async def get_info(self, order_id: str) -> ContractInfo:
        body = await self.client.get(f"/api/contracts/orders/{order_id}")
        return ContractInfo.model_validate(unwrap_entity(body, "contract"))

    async def upload_signed(
        self,
        order_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str],
    ) -> ContractInfo:
        """
        Forwards the scan of the signed contract as multipart form field "contract".

        Raises:
            BusinessValidationError: the file is refused before any upstream call
        """
        check_signed_contract_file(content_type, len(content))
        logger.info(f"Uploading signed contract of order {order_id}: {filename} ({len(content)} bytes)")
        body = await self.client.post(
            f"/api/contracts/orders/{order_id}/upload",
            files={"contract": (filename, content, content_type)},
        )
        return ContractInfo.model_validate(unwrap_entity(body, "contract"))

    async def delete_signed(self, order_id: str, signed_contract_url: str) -> ContractInfo:
        logger.info(f"Removing signed contract of order {order_id}: {signed_contract_url}")
        body = await self.client.delete(
            f"/api/contracts/orders/{order_id}",
            json={"signed_contract_url": signed_contract_url},
        )
        if body is None:
            return await self.get_info(order_id)
        return ContractInfo.model_validate(unwrap_entity(body, "contract"))
