"""
PDF generation service with WeasyPrint + Jinja2
Project: Dealer Console
"""

import logging
import os
from datetime import date
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from dealer_console.core.exceptions import DocumentGenerationError
from dealer_console.schemas.document import ContractPDFData, GeneratedDocument, QuotePDFData
from dealer_console.utils.formatting import (
    amount_to_words,
    format_currency,
    format_date,
    format_number,
)

logger = logging.getLogger(__name__)

# Templates folder path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TEMPLATES_DIR = os.path.join(BASE_DIR, "templates")
STYLESHEET = "document_style.css"


# Lazy import of weasyprint to avoid startup errors if system libraries aren't available
def _get_weasyprint():
    """Lazy import of weasyprint to handle missing Pango/GTK libraries gracefully."""
    try:
        from weasyprint import CSS, HTML
        return HTML, CSS
    except OSError as e:
        raise RuntimeError(
            "WeasyPrint dependencies not found. Please install Pango: "
            "apt-get install libpango-1.0-0 libpangoft2-1.0-0"
        ) from e


def _safe_code(code: str) -> str:
    """Code usable in a filename."""
    cleaned = "".join(c if c.isalnum() or c in "-_" else "-" for c in (code or "").strip())
    return cleaned.strip("-") or "N-A"


def contract_filename(code: str) -> str:
    return f"Hop-dong-{_safe_code(code)}.pdf"


def quote_filename(code: str) -> str:
    return f"Bao-gia-{_safe_code(code)}.pdf"


class PdfService:
    """
    Renders contracts and quotations from HTML/CSS templates.
    The caller passes fully resolved *PDFData (see enrichment_service).
    """

    def __init__(self, templates_dir: Optional[str] = None):
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["currency"] = format_currency
        self.env.filters["number"] = format_number
        self.env.filters["words"] = amount_to_words

    def _context(self, today: Optional[date]) -> dict[str, Any]:
        today = today or date.today()
        return {
            "today": today,
            "today_label": format_date(today),
            "day": f"{today.day:02d}",
            "month": f"{today.month:02d}",
            "year": today.year,
        }

    def render_contract_html(self, data: ContractPDFData, today: Optional[date] = None) -> str:
        """
        Renders the sales contract HTML.

        Pure function of `data` and `today`.
        """
        template = self.env.get_template("contract_template.html")
        context = self._context(today)
        context.update(
            {
                "contract": data,
                "buyer": data.customer,
                "seller": data.dealership,
                "amount_in_words": amount_to_words(data.total_amount),
            }
        )
        return template.render(context)

    def render_quote_html(self, data: QuotePDFData, today: Optional[date] = None) -> str:
        template = self.env.get_template("quote_template.html")
        context = self._context(today)
        context.update(
            {
                "quote": data,
                "customer": data.customer,
                "dealership": data.dealership,
                "amount_in_words": amount_to_words(data.total_amount),
            }
        )
        return template.render(context)

    def _write_pdf(self, html_out: str) -> bytes:
        try:
            HTML, CSS = _get_weasyprint()
        except RuntimeError as e:
            logger.error(f"PDF engine not available: {e}")
            raise DocumentGenerationError(
                "Không thể tạo file PDF: thiếu thư viện hệ thống"
            ) from e

        css = CSS(filename=os.path.join(self.templates_dir, STYLESHEET))
        try:
            return HTML(string=html_out, base_url=self.templates_dir).write_pdf(stylesheets=[css])
        except Exception as e:
            logger.exception("PDF rendering failed")
            raise DocumentGenerationError(f"Không thể tạo file PDF: {e}") from e

    def generate_contract_pdf(
        self, data: ContractPDFData, today: Optional[date] = None
    ) -> GeneratedDocument:
        """
        Generates the PDF of a sales contract.

        Args:
            data: Resolved contract data
            today: Date printed in the header (defaults to today)

        Returns:
            GeneratedDocument named Hop-dong-<code>.pdf
        """
        html_out = self.render_contract_html(data, today)
        pdf_bytes = self._write_pdf(html_out)
        logger.info(f"Contract PDF generated: {data.contract_code} ({len(pdf_bytes)} bytes)")
        return GeneratedDocument(filename=contract_filename(data.contract_code), content=pdf_bytes)

    def generate_quote_pdf(
        self, data: QuotePDFData, today: Optional[date] = None
    ) -> GeneratedDocument:
        html_out = self.render_quote_html(data, today)
        pdf_bytes = self._write_pdf(html_out)
        logger.info(f"Quote PDF generated: {data.quote_code} ({len(pdf_bytes)} bytes)")
        return GeneratedDocument(filename=quote_filename(data.quote_code), content=pdf_bytes)


__all__ = [
    "PdfService",
    "contract_filename",
    "quote_filename",
]
