"""Unit tests for sales record entities."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.core.entities import SalesRecord, SalesRecordChanges
from src.core.entities.sales_record import normalize_price, to_naive_utc


class TestNormalizePrice:
    """Tests for normalize_price()."""

    def test_float_keeps_its_decimal_form(self):
        assert normalize_price(2.55) == Decimal("2.55")

    def test_rounds_half_up(self):
        assert normalize_price("2.555") == Decimal("2.56")
        assert normalize_price("2.554") == Decimal("2.55")

    def test_integer_gets_two_places(self):
        assert str(normalize_price(3)) == "3.00"

    def test_rejects_non_numeric(self):
        with pytest.raises(ValueError):
            normalize_price("abc")

    def test_rejects_infinity(self):
        with pytest.raises(ValueError):
            normalize_price("Infinity")

    @pytest.mark.parametrize("value", ["1e30", 1e30, 10**30, "-1e9"])
    def test_rejects_huge_magnitudes(self, value):
        with pytest.raises(ValueError, match="exceeds"):
            normalize_price(value)

    def test_largest_price_passes(self):
        assert normalize_price("99999999.99") == Decimal("99999999.99")


class TestToNaiveUtc:
    """Tests for to_naive_utc()."""

    def test_naive_is_unchanged(self):
        value = datetime(2010, 12, 1, 8, 26)
        assert to_naive_utc(value) == value

    def test_aware_is_shifted_to_utc(self):
        value = datetime(2010, 12, 1, 10, 26, tzinfo=timezone(timedelta(hours=2)))
        result = to_naive_utc(value)
        assert result == datetime(2010, 12, 1, 8, 26)
        assert result.tzinfo is None


class TestSalesRecord:
    """Tests for SalesRecord entity."""

    def test_rejects_quantity_beyond_integer_column(self):
        with pytest.raises(ValidationError):
            SalesRecord(
                invoice_no="536365",
                stock_code="85123A",
                quantity=10**20,
                invoice_date=datetime(2010, 12, 1, 8, 26),
                unit_price="2.55",
                country="United Kingdom",
            )

    def test_accepts_camel_case_aliases(self):
        record = SalesRecord(
            invoiceNo="536365",
            stockCode="85123A",
            quantity=6,
            invoiceDate=datetime(2010, 12, 1, 8, 26, tzinfo=UTC),
            unitPrice="2.55",
            country="United Kingdom",
        )
        assert record.invoice_no == "536365"
        assert record.invoice_date.tzinfo is None
        assert record.customer_id is None

    def test_to_api_uses_camel_case_and_price_string(self, sample_record: SalesRecord):
        data = sample_record.to_api()

        assert data == {
            "invoiceNo": "536365",
            "stockCode": "85123A",
            "description": "WHITE HANGING HEART T-LIGHT HOLDER",
            "quantity": 6,
            "invoiceDate": "2010-12-01T08:26:00",
            "unitPrice": "2.55",
            "customerId": 17850,
            "country": "United Kingdom",
        }

    def test_price_is_quantized(self, sample_record: SalesRecord):
        record = sample_record.model_copy(update={"unit_price": normalize_price("4")})
        assert record.to_api()["unitPrice"] == "4.00"

    def test_invoice_no_too_long(self):
        with pytest.raises(ValidationError):
            SalesRecord(
                invoice_no="X" * 21,
                stock_code="85123A",
                quantity=1,
                invoice_date=datetime(2010, 12, 1),
                unit_price="1.00",
                country="United Kingdom",
            )

    def test_price_out_of_range(self):
        with pytest.raises(ValidationError):
            SalesRecord(
                invoice_no="536365",
                stock_code="85123A",
                quantity=1,
                invoice_date=datetime(2010, 12, 1),
                unit_price="100000000.00",
                country="United Kingdom",
            )

    def test_negative_quantity_allowed(self):
        """Returns are recorded as negative quantities."""
        record = SalesRecord(
            invoice_no="C536379",
            stock_code="D",
            quantity=-1,
            invoice_date=datetime(2010, 12, 1, 9, 41),
            unit_price="27.50",
            country="United Kingdom",
        )
        assert record.quantity == -1


class TestSalesRecordChanges:
    """Tests for SalesRecordChanges."""

    def test_only_set_fields_are_changed(self):
        changes = SalesRecordChanges(quantity=10)
        assert changes.changed_fields == {"quantity": 10}

    def test_explicit_none_is_kept(self):
        changes = SalesRecordChanges(customer_id=None)
        assert changes.changed_fields == {"customer_id": None}

    def test_price_quantized(self):
        changes = SalesRecordChanges(unitPrice="1.005")
        assert changes.changed_fields == {"unit_price": Decimal("1.01")}
