"""
Service Layer for contract data enrichment
Project: Dealer Console

Orders reference their customer and dealership either by id or by a
(partially) populated object whose field names vary between backend
versions. This module normalizes those references, fetches the full
records when the embedded ones miss address/contact data, and maps the
result to the fully resolved ContractPDFData / QuotePDFData.

Enrichment never raises for missing data: failed lookups are logged and
unresolved fields render as "N/A".
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional, Sequence, Union

from dealer_console.core.config import settings
from dealer_console.core.exceptions import AppException
from dealer_console.schemas.document import (
    NOT_AVAILABLE,
    ContractLineItem,
    ContractParty,
    ContractPDFData,
    QuotePDFData,
)
from dealer_console.schemas.order import Order, OrderItem
from dealer_console.services.api_client import DealerApiClient
from dealer_console.utils.formatting import format_date, payment_method_label

logger = logging.getLogger(__name__)

Path = tuple[str, ...]


# -------------------------------------------------------------------
# References
# -------------------------------------------------------------------

@dataclass(frozen=True)
class EntityRef:
    """
    A customer/dealership reference: an id, resolved data, or both.

    `data is None` means the reference is a bare id.
    """

    ref_id: Optional[str] = None
    data: Optional[dict[str, Any]] = None

    @property
    def is_resolved(self) -> bool:
        return self.data is not None


def to_reference(*candidates: Union[str, dict[str, Any], None]) -> EntityRef:
    """
    Normalizes the first usable candidate into an EntityRef.

    Strings are ids, dicts are populated objects (their `_id`/`id` is the id).
    A later populated candidate fills the data of an earlier bare id.
    """
    ref_id: Optional[str] = None
    data: Optional[dict[str, Any]] = None
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            ref_id = ref_id or candidate
        elif isinstance(candidate, dict) and candidate:
            data = data or candidate
            embedded_id = candidate.get("_id") or candidate.get("id")
            if embedded_id and not ref_id:
                ref_id = str(embedded_id)
    return EntityRef(ref_id=ref_id, data=data)


# -------------------------------------------------------------------
# Field extraction tables
# -------------------------------------------------------------------

# Each field lists the paths tried in order; the first non-empty wins
DEALERSHIP_FIELDS: dict[str, Sequence[Path]] = {
    "name": (("company_name",), ("name",)),
    "address": (("address",),),
    "phone": (("contact", "phone"), ("phone",)),
    "email": (("contact", "email"), ("email",)),
    "tax_code": (("tax_code",), ("mst",)),
    "representative": (("legal_representative",), ("representative",)),
}

CUSTOMER_FIELDS: dict[str, Sequence[Path]] = {
    "name": (("full_name",), ("name",)),
    "address": (("address",),),
    "phone": (("phone",), ("contact", "phone")),
    "email": (("email",), ("contact", "email")),
    "id_number": (("id_number",), ("citizen_id",), ("cccd",)),
}

ADDRESS_PARTS: Path = ("street", "ward", "district", "city")


def _lookup(data: dict[str, Any], path: Path) -> Any:
    value: Any = data
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def extract_field(
    data: Optional[dict[str, Any]],
    paths: Sequence[Path],
    default: Optional[str] = NOT_AVAILABLE,
) -> Any:
    """First non-empty value along `paths`, else `default`."""
    if not data:
        return default
    for path in paths:
        value = _lookup(data, path)
        if value not in (None, "", {}, []):
            return value
    return default


def flatten_address(value: Any) -> str:
    """
    Address as a single line.

    Accepts {full_address}, {street, ward, district, city} or a plain string.
    """
    if isinstance(value, str):
        return value.strip() or NOT_AVAILABLE
    if isinstance(value, dict):
        full = value.get("full_address")
        if isinstance(full, str) and full.strip():
            return full.strip()
        parts = [str(value[p]).strip() for p in ADDRESS_PARTS if value.get(p)]
        if parts:
            return ", ".join(parts)
    return NOT_AVAILABLE


def _text(value: Any) -> str:
    if value in (None, ""):
        return NOT_AVAILABLE
    return str(value)


def _needs_dealership_fetch(data: Optional[dict[str, Any]]) -> bool:
    """A dealership record is incomplete when address, contact and tax code are all missing."""
    if not data:
        return True
    return not data.get("address") and not data.get("contact") and not data.get("tax_code")


def _needs_customer_fetch(data: Optional[dict[str, Any]]) -> bool:
    if not data:
        return True
    return not data.get("address")


# -------------------------------------------------------------------
# Parties
# -------------------------------------------------------------------

def build_dealership_party(data: Optional[dict[str, Any]]) -> ContractParty:
    fields = DEALERSHIP_FIELDS
    return ContractParty(
        name=_text(extract_field(data, fields["name"], settings.default_dealership_name)),
        address=flatten_address(extract_field(data, fields["address"], None)),
        phone=_text(extract_field(data, fields["phone"])),
        email=_text(extract_field(data, fields["email"])),
        tax_code=_text(extract_field(data, fields["tax_code"])),
        representative=_text(
            extract_field(data, fields["representative"], settings.default_representative)
        ),
    )


def build_customer_party(data: Optional[dict[str, Any]]) -> ContractParty:
    fields = CUSTOMER_FIELDS
    return ContractParty(
        name=_text(extract_field(data, fields["name"])),
        address=flatten_address(extract_field(data, fields["address"], None)),
        phone=_text(extract_field(data, fields["phone"])),
        email=_text(extract_field(data, fields["email"])),
        id_number=_text(extract_field(data, fields["id_number"])),
    )


def _merge(fetched: Optional[dict[str, Any]], embedded: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Fetched values take precedence, embedded ones fill the gaps."""
    if not fetched:
        return embedded
    if not embedded:
        return fetched
    merged = dict(embedded)
    merged.update({k: v for k, v in fetched.items() if v not in (None, "")})
    return merged


# -------------------------------------------------------------------
# Line items
# -------------------------------------------------------------------

def _item_unit_price(item: OrderItem) -> Decimal:
    """Vehicle unit price; derived from the line total when the backend omits it."""
    if item.vehicle_price is not None:
        return item.vehicle_price
    quantity = item.quantity or 1
    extras = sum((opt.price for opt in item.options), Decimal("0")) * quantity
    extras += sum((acc.price * acc.quantity for acc in item.accessories), Decimal("0"))
    base = item.final_amount + item.discount - extras
    return max(base, Decimal("0")) / quantity


def _vehicle_name(item: OrderItem) -> str:
    if item.vehicle_name:
        return item.vehicle_name
    if isinstance(item.vehicle_id, dict):
        return item.vehicle_id.get("name") or item.vehicle_id.get("model") or "Xe"
    return "Xe"


def build_line_items(items: Sequence[OrderItem], include_discounts: bool = True) -> list[ContractLineItem]:
    """
    One vehicle row per item, then its options (per vehicle) and accessories,
    and a negative discount row when the item is discounted.
    """
    lines: list[ContractLineItem] = []
    for item in items:
        lines.append(
            ContractLineItem(
                description=_vehicle_name(item),
                detail=f"Màu: {item.color}" if item.color else None,
                quantity=item.quantity,
                unit_price=_item_unit_price(item),
            )
        )
        for option in item.options:
            lines.append(
                ContractLineItem(
                    description=f"Tùy chọn: {option.name or NOT_AVAILABLE}",
                    unit="Gói",
                    quantity=item.quantity,
                    unit_price=option.price,
                )
            )
        for accessory in item.accessories:
            lines.append(
                ContractLineItem(
                    description=f"Phụ kiện: {accessory.name or NOT_AVAILABLE}",
                    unit="Cái",
                    quantity=accessory.quantity,
                    unit_price=accessory.price,
                )
            )
        if include_discounts and item.discount > 0:
            lines.append(
                ContractLineItem(
                    description=f"Giảm giá ({_vehicle_name(item)})",
                    unit="",
                    quantity=1,
                    unit_price=-item.discount,
                )
            )
    return lines


# -------------------------------------------------------------------
# Mapping
# -------------------------------------------------------------------

def _delivery_fields(order: Order) -> tuple[Optional[str], Optional[str]]:
    delivery = order.delivery or {}
    address = delivery.get("delivery_address")
    date_value = delivery.get("scheduled_date")
    flat = flatten_address(address) if address else NOT_AVAILABLE
    return (
        flat if flat != NOT_AVAILABLE else None,
        format_date(date_value) if date_value else None,
    )


def map_order_to_contract_pdf(
    order: Order,
    customer: Optional[dict[str, Any]] = None,
    dealership: Optional[dict[str, Any]] = None,
    location: Optional[str] = None,
) -> ContractPDFData:
    """
    Maps an order (plus optionally fetched customer/dealership records)
    to ContractPDFData. Pure; every missing field becomes "N/A".
    """
    customer_ref = to_reference(order.customer_id, order.customer)
    dealership_ref = to_reference(order.dealership_id, order.dealership)

    delivery_address, delivery_date = _delivery_fields(order)

    return ContractPDFData(
        contract_code=order.code or order.id,
        order_code=order.code or NOT_AVAILABLE,
        location=location or settings.contract_location,
        customer=build_customer_party(_merge(customer, customer_ref.data)),
        dealership=build_dealership_party(_merge(dealership, dealership_ref.data)),
        items=build_line_items(order.items),
        total_amount=order.final_amount,
        paid_amount=order.paid_amount,
        remaining_amount=order.remaining_amount,
        payment_method=payment_method_label(order.payment_method),
        delivery_address=delivery_address,
        delivery_date=delivery_date,
        notes=order.notes,
    )


def map_quote_to_quote_pdf(
    quote: dict[str, Any],
    customer: Optional[dict[str, Any]] = None,
    dealership: Optional[dict[str, Any]] = None,
    today: Optional[date] = None,
) -> QuotePDFData:
    """Maps a quote record to QuotePDFData (no payment data)."""
    items = [OrderItem.model_validate(raw) for raw in quote.get("items") or []]
    customer_ref = to_reference(quote.get("customer_id"), quote.get("customer"))
    dealership_ref = to_reference(quote.get("dealership_id"), quote.get("dealership"))

    valid_until = quote.get("endDate") or quote.get("valid_to")
    if valid_until:
        valid_label = format_date(valid_until)
    else:
        valid_label = format_date((today or date.today()) + timedelta(days=settings.quote_validity_days))

    discount = sum((item.discount for item in items), Decimal("0"))
    lines = build_line_items(items, include_discounts=False)
    total = quote.get("final_amount")
    if total is None:
        total = sum((line.line_total for line in lines), Decimal("0")) - discount

    return QuotePDFData(
        quote_code=quote.get("code") or str(quote.get("_id") or NOT_AVAILABLE),
        customer=build_customer_party(_merge(customer, customer_ref.data)),
        dealership=build_dealership_party(_merge(dealership, dealership_ref.data)),
        items=lines,
        discount_amount=discount,
        total_amount=Decimal(str(total)),
        valid_until=valid_label,
        notes=quote.get("notes"),
    )


# -------------------------------------------------------------------
# Resolver
# -------------------------------------------------------------------

class ContractDataResolver:
    """
    Guarantees fully populated party data before document generation.

    Implements:
    - dealership id precedence: explicit override, string dealership_id,
      populated object id
    - fetch of the dealership when address, contact and tax code are all missing
    - fetch of the customer when the address is missing
    - fetched records preferred, embedded data as fallback
    """

    def __init__(self, client: DealerApiClient):
        self.client = client

    async def _fetch(self, kind: str, ref_id: Optional[str]) -> Optional[dict[str, Any]]:
        if not ref_id:
            return None
        fetcher = self.client.get_dealership if kind == "dealership" else self.client.get_customer
        try:
            return await fetcher(ref_id)
        except AppException as e:
            logger.warning(f"Could not fetch {kind} {ref_id} for contract data: {e.detail}")
            return None

    async def fetch_parties(
        self,
        customer_ref: EntityRef,
        dealership_ref: EntityRef,
    ) -> tuple[Optional[dict[str, Any]], Optional[dict[str, Any]]]:
        dealership = None
        if _needs_dealership_fetch(dealership_ref.data):
            dealership = await self._fetch("dealership", dealership_ref.ref_id)

        customer = None
        if _needs_customer_fetch(customer_ref.data):
            customer = await self._fetch("customer", customer_ref.ref_id)

        return customer, dealership

    async def resolve(
        self,
        order: Order,
        dealership_override: Optional[Union[str, dict[str, Any]]] = None,
    ) -> ContractPDFData:
        """
        Resolves customer and dealership data for an order.

        Args:
            order: Order as returned by the API (partial references allowed)
            dealership_override: Dealership id or record already known to the caller

        Returns:
            ContractPDFData, complete; fetch failures degrade to "N/A" fields
        """
        dealership_ref = to_reference(
            dealership_override,
            order.dealership_id if isinstance(order.dealership_id, str) else None,
            order.dealership_id if isinstance(order.dealership_id, dict) else None,
            order.dealership,
        )
        customer_ref = to_reference(order.customer_id, order.customer)

        customer, dealership = await self.fetch_parties(customer_ref, dealership_ref)

        data = map_order_to_contract_pdf(order, customer=customer, dealership=dealership)
        if dealership_ref.data is not None and dealership is None:
            # Override data the order itself does not embed
            data.dealership = build_dealership_party(dealership_ref.data)
        return data

    async def resolve_quote(self, quote: dict[str, Any]) -> QuotePDFData:
        customer_ref = to_reference(quote.get("customer_id"), quote.get("customer"))
        dealership_ref = to_reference(quote.get("dealership_id"), quote.get("dealership"))
        customer, dealership = await self.fetch_parties(customer_ref, dealership_ref)
        return map_quote_to_quote_pdf(quote, customer=customer, dealership=dealership)
