"""
Unit tests for PdfService.

HTML rendering runs on the real templates; WeasyPrint is patched out.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from dealer_console.core.exceptions import DocumentGenerationError
from dealer_console.schemas.document import (
    ContractLineItem,
    ContractParty,
    ContractPDFData,
    QuotePDFData,
)
from dealer_console.services.pdf_service import PdfService, contract_filename, quote_filename

TODAY = date(2024, 5, 20)


@pytest.fixture
def pdf_service():
    return PdfService()


@pytest.fixture
def contract_data() -> ContractPDFData:
    return ContractPDFData(
        contract_code="ORD-2024-001",
        order_code="ORD-2024-001",
        location="Thành phố Hồ Chí Minh",
        customer=ContractParty(name="Nguyễn Văn An", phone="0901234567"),
        dealership=ContractParty(name="Đại lý Quận 1", tax_code="0301234567", representative="Lê Văn Cường"),
        items=[
            ContractLineItem(description="VinFast VF8 Plus", detail="Màu: Trắng", unit_price=Decimal("1000000000")),
            ContractLineItem(description="Phụ kiện: Thảm sàn", unit="Cái", quantity=2, unit_price=Decimal("1500000")),
        ],
        total_amount=Decimal("1003000000"),
        paid_amount=Decimal("1003000000"),
        remaining_amount=Decimal("0"),
        payment_method="Tiền mặt",
    )


@pytest.fixture
def fake_weasyprint():
    html_cls = MagicMock(name="HTML")
    html_cls.return_value.write_pdf.return_value = b"%PDF-1.7 fake"
    css_cls = MagicMock(name="CSS")
    with patch(
        "dealer_console.services.pdf_service._get_weasyprint",
        return_value=(html_cls, css_cls),
    ):
        yield html_cls, css_cls


class TestFilenames:
    def test_contract_filename(self):
        assert contract_filename("ORD-2024-001") == "Hop-dong-ORD-2024-001.pdf"

    def test_quote_filename(self):
        assert quote_filename("BG-7") == "Bao-gia-BG-7.pdf"

    def test_unsafe_characters_are_replaced(self):
        assert contract_filename("ORD/2024 01") == "Hop-dong-ORD-2024-01.pdf"


class TestRenderContract:
    def test_contains_parties_and_totals(self, pdf_service, contract_data):
        html = pdf_service.render_contract_html(contract_data, today=TODAY)

        assert "Nguyễn Văn An" in html
        assert "Đại lý Quận 1" in html
        assert "0301234567" in html
        assert "1.003.000.000" in html
        assert "một tỷ không trăm linh ba triệu đồng" in html
        assert "ngày 20 tháng 05 năm 2024" in html

    def test_legal_articles(self, pdf_service, contract_data):
        html = pdf_service.render_contract_html(contract_data, today=TODAY)

        for heading in ("Giao nhận xe", "Bảo hành", "Chuyển giao rủi ro", "Bảo vệ dữ liệu cá nhân", "Điều khoản chung"):
            assert heading in html

    def test_missing_values_render_na(self, pdf_service):
        html = pdf_service.render_contract_html(ContractPDFData(contract_code="X-1"), today=TODAY)

        assert "N/A" in html

    def test_same_input_same_content(self, pdf_service, contract_data):
        first = pdf_service.render_contract_html(contract_data, today=TODAY)
        second = pdf_service.render_contract_html(contract_data.model_copy(deep=True), today=TODAY)

        assert first == second

    def test_values_are_escaped(self, pdf_service):
        data = ContractPDFData(contract_code="X-1", customer=ContractParty(name="<b>An</b>"))

        html = pdf_service.render_contract_html(data, today=TODAY)

        assert "&lt;b&gt;An&lt;/b&gt;" in html


class TestRenderQuote:
    def test_quote_has_no_payment_or_signature(self, pdf_service):
        data = QuotePDFData(
            quote_code="BG-001",
            items=[ContractLineItem(description="VinFast VF5", unit_price=Decimal("500000000"))],
            discount_amount=Decimal("20000000"),
            total_amount=Decimal("480000000"),
            valid_until="30/06/2024",
        )

        html = pdf_service.render_quote_html(data, today=TODAY)

        assert "BG-001" in html
        assert "500.000.000" in html
        assert "480.000.000" in html
        assert "30/06/2024" in html
        assert "Đã thanh toán" not in html
        assert "Đại diện Bên A" not in html


class TestGeneratePdf:
    def test_contract_document(self, pdf_service, contract_data, fake_weasyprint):
        html_cls, css_cls = fake_weasyprint

        document = pdf_service.generate_contract_pdf(contract_data, today=TODAY)

        assert document.filename == "Hop-dong-ORD-2024-001.pdf"
        assert document.content == b"%PDF-1.7 fake"
        assert document.media_type == "application/pdf"
        css_cls.assert_called_once()
        assert "Nguyễn Văn An" in html_cls.call_args.kwargs["string"]

    def test_quote_document(self, pdf_service, fake_weasyprint):
        document = pdf_service.generate_quote_pdf(QuotePDFData(quote_code="BG-001"), today=TODAY)

        assert document.filename == "Bao-gia-BG-001.pdf"

    def test_render_failure(self, pdf_service, contract_data, fake_weasyprint):
        html_cls, _ = fake_weasyprint
        html_cls.return_value.write_pdf.side_effect = ValueError("bad font")

        with pytest.raises(DocumentGenerationError):
            pdf_service.generate_contract_pdf(contract_data, today=TODAY)

    def test_missing_engine(self, pdf_service, contract_data):
        with patch(
            "dealer_console.services.pdf_service._get_weasyprint",
            side_effect=RuntimeError("WeasyPrint dependencies not found"),
        ):
            with pytest.raises(DocumentGenerationError):
                pdf_service.generate_contract_pdf(contract_data, today=TODAY)
