"""
FastAPI router for quotations
Project: Dealer Console
"""

import asyncio
import logging

from fastapi import APIRouter, Path, Response

from dealer_console.api.v1.orders import pdf_response
from dealer_console.core.deps import ApiClient, PdfServiceDep, ResolverDep

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/quotes",
    tags=["Báo giá"],
)


@router.get(
    "/{quote_id}/pdf",
    name="quote_pdf",
    summary="Quotation PDF",
    description="Pre-sale quotation as a PDF download (no payment or signature sections).",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_quote(
    client: ApiClient,
    resolver: ResolverDep,
    pdf_service: PdfServiceDep,
    quote_id: str = Path(..., description="Quote id"),
) -> Response:
    quote = await client.get_quote(quote_id)
    data = await resolver.resolve_quote(quote)
    document = await asyncio.to_thread(pdf_service.generate_quote_pdf, data)
    return pdf_response(document)
