"""
HTTP client for the dealership REST API
Project: Dealer Console

Thin async wrapper around httpx. Every call forwards the operator's
bearer token, unwraps the backend's {success, message, data} envelope
and converts failures into the application's exceptions.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

import httpx

from dealer_console.core.config import settings
from dealer_console.core.exceptions import (
    NotFoundError,
    UpstreamError,
    UpstreamUnavailableError,
)
from dealer_console.schemas.order import Order

logger = logging.getLogger(__name__)


def create_http_client(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Builds the shared httpx client (one per application)."""
    return httpx.AsyncClient(
        base_url=base_url or settings.upstream_base_url,
        timeout=timeout or settings.upstream_timeout_seconds,
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        transport=transport,
    )


def unwrap_data(body: Any) -> Any:
    """
    Returns the payload of a {success, message, data} envelope,
    or the body itself when it is not wrapped.
    """
    if isinstance(body, dict) and "data" in body and ("success" in body or "message" in body):
        return body["data"]
    return body


def unwrap_entity(body: Any, key: str) -> dict[str, Any]:
    """Unwraps the envelope and an optional {key: {...}} level (e.g. {"order": {...}})."""
    data = unwrap_data(body)
    if isinstance(data, dict) and isinstance(data.get(key), dict):
        return data[key]
    if not isinstance(data, dict):
        raise UpstreamError(f"Phản hồi không hợp lệ từ máy chủ ({key})")
    return data


def extract_error_message(response: httpx.Response) -> str:
    """The backend error message: message, detail or error field, else the raw text."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class DealerApiClient:
    """
    Client for the dealership API, bound to one operator's token.

    Instances are cheap: they share the application's httpx.AsyncClient.
    """

    def __init__(self, http: httpx.AsyncClient, token: Optional[str] = None):
        self.http = http
        self.token = token

    def with_token(self, token: Optional[str]) -> "DealerApiClient":
        return DealerApiClient(self.http, token)

    # -------------------------------------------------------------------
    # Generic verbs
    # -------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[Any] = None,
        files: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Performs a call and returns the decoded JSON body.

        Raises:
            NotFoundError: 404
            UpstreamError: any other non-2xx answer, with the backend message
            UpstreamUnavailableError: connection failure or timeout
        """
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug(f"API request: {method} {path}")
        try:
            response = await self.http.request(
                method,
                path,
                params=params,
                json=_jsonable(json) if json is not None else None,
                files=files,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            logger.warning(f"API timeout: {method} {path}: {e}")
            raise UpstreamUnavailableError("Máy chủ phản hồi quá lâu. Vui lòng thử lại sau.") from e
        except httpx.TransportError as e:
            logger.warning(f"API unreachable: {method} {path}: {e}")
            raise UpstreamUnavailableError() from e

        logger.debug(f"API response: {response.status_code} {method} {path}")

        if response.is_success:
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise UpstreamError("Phản hồi không hợp lệ từ máy chủ") from e

        message = extract_error_message(response)
        logger.info(f"API error: {response.status_code} {method} {path}: {message}")
        if response.status_code == 404:
            raise NotFoundError(message)
        raise UpstreamError(message, upstream_status=response.status_code, upstream_message=message)

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Optional[Any] = None,
        files: Optional[dict[str, Any]] = None,
    ) -> Any:
        return await self.request("POST", path, json=json, files=files)

    async def put(self, path: str, json: Optional[Any] = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str, json: Optional[Any] = None) -> Any:
        return await self.request("DELETE", path, json=json)

    # -------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------

    async def get_order(self, order_id: str) -> Order:
        body = await self.get(f"/api/orders/{order_id}")
        return Order.model_validate(unwrap_entity(body, "order"))

    async def get_customer(self, customer_id: str) -> dict[str, Any]:
        body = await self.get(f"/api/customers/{customer_id}")
        return unwrap_entity(body, "customer")

    async def get_dealership(self, dealership_id: str) -> dict[str, Any]:
        body = await self.get(f"/api/dealerships/{dealership_id}")
        return unwrap_entity(body, "dealership")

    async def get_quote(self, quote_id: str) -> dict[str, Any]:
        body = await self.get(f"/api/quotes/{quote_id}")
        return unwrap_entity(body, "quote")

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------

    async def pay_deposit(
        self,
        order_id: str,
        deposit_amount: Decimal,
        payment_method: str,
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        """POST /api/orders/{id}/deposit; returns the unwrapped data (order + has_stock)."""
        body = await self.post(
            f"/api/orders/{order_id}/deposit",
            json={
                "deposit_amount": deposit_amount,
                "payment_method": payment_method,
                "notes": notes,
            },
        )
        data = unwrap_data(body)
        return data if isinstance(data, dict) else {}

    async def pay_final(
        self,
        order_id: str,
        payment_method: str,
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        """POST /api/orders/{id}/final-payment; the backend charges the remaining balance."""
        body = await self.post(
            f"/api/orders/{order_id}/final-payment",
            json={"payment_method": payment_method, "notes": notes},
        )
        data = unwrap_data(body)
        return data if isinstance(data, dict) else {}
