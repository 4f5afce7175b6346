"""Tests for pattern based extraction of verification page content."""

import re
from decimal import Decimal

import pytest

from expendita.suf.patterns import (
    DEFAULT_PATTERNS,
    ExtractionPatterns,
    clean_text,
    extract_items,
    extract_merchant,
    extract_timestamp,
    extract_total,
    parse_page,
)


class TestMerchant:
    def test_anchor_after_header_and_tax_id(self, journal_text):
        assert extract_merchant(journal_text) == "LC WAIKIKI Retail RS d.o.o."

    def test_label_on_next_line(self):
        text = "Предузеће:\nLC WAIKIKI Retail RS d.o.o.\nМесто продаје: Ушће\n"
        assert extract_merchant(text) == "LC WAIKIKI Retail RS d.o.o."

    def test_label_on_same_line(self):
        assert extract_merchant("Предузеће: Maxi d.o.o.\n") == "Maxi d.o.o."

    def test_header_without_tax_id_line(self):
        assert extract_merchant("ФИСКАЛНИ РАЧУН\nLC\n") == ""

    def test_not_found(self):
        assert extract_merchant("nothing here") == ""


class TestTotal:
    def test_amount_after_label(self):
        text = "Укупан износ:                   2.184,00"
        assert extract_total(text) == Decimal("2184.00")

    def test_first_total_wins_over_tax_total(self, journal_text):
        assert extract_total(journal_text) == Decimal("2184.00")

    def test_amount_due_fallback(self):
        assert extract_total("За уплату:   1.500,00\n") == Decimal("1500.00")

    def test_not_found_is_zero(self):
        assert extract_total("Картица: 100,00") == Decimal(0)


class TestTimestamp:
    def test_fiscal_time(self, journal_text):
        assert extract_timestamp(journal_text) == "17.1.2026. 13:56:17"

    def test_not_found(self):
        assert extract_timestamp("ПФР број рачуна: X") == ""


class TestItems:
    def test_rows_from_specification_table(self, items_html):
        items = extract_items(items_html)

        assert [i.name for i in items] == ["Мајица (Ком)", "Банане /KG"]
        assert items[0].quantity == Decimal("2")
        assert items[0].total_price == Decimal("1998.00")
        assert items[1].quantity == Decimal("0.345")
        assert items[1].total_price == Decimal("51.75")

    def test_header_row_ignored(self, items_html):
        assert all(i.name != "Назив" for i in extract_items(items_html))

    def test_empty_html(self):
        assert extract_items("") == []

    def test_no_table(self):
        assert extract_items("<html><body><p>Loading</p></body></html>") == []

    def test_negative_row_skipped(self):
        html = (
            "<div id='collapse-specs'><table><tbody>"
            "<tr><td>Povrat</td><td>10,00</td><td>1</td><td>-10,00</td></tr>"
            "</tbody></table></div>"
        )
        assert extract_items(html) == []

    def test_custom_columns_and_selector(self):
        patterns = ExtractionPatterns(
            items_row_selector="table.items tr",
            name_column=1,
            quantity_column=0,
            total_column=2,
        )
        html = (
            "<table class='items'>"
            "<tr><td>3</td><td>Jaja</td><td>45,00</td></tr>"
            "</table>"
        )

        items = extract_items(html, patterns)

        assert len(items) == 1
        assert items[0].name == "Jaja"
        assert items[0].quantity == Decimal("3")
        assert items[0].total_price == Decimal("45.00")


class TestParsePage:
    def test_all_fields(self, journal_text, items_html):
        fields = parse_page(journal_text, items_html)

        assert fields.merchant == "LC WAIKIKI Retail RS d.o.o."
        assert fields.total == Decimal("2184.00")
        assert fields.timestamp == "17.1.2026. 13:56:17"
        assert len(fields.items) == 2
        assert not fields.is_empty

    def test_windows_line_endings(self, journal_text):
        fields = parse_page(journal_text.replace("\n", "\r\n"))
        assert fields.merchant == "LC WAIKIKI Retail RS d.o.o."
        assert fields.timestamp == "17.1.2026. 13:56:17"

    def test_nothing_matches(self):
        fields = parse_page("Страница није пронађена", "")
        assert fields.is_empty


def test_clean_text():
    assert clean_text("a\r\nb\rc\xa0d") == "a\nb\nc d"


class TestExtractionPatterns:
    def test_from_dict_overrides_and_ignores_unknown(self):
        patterns = ExtractionPatterns.from_dict(
            {
                "total_labels": [r"Total:\s*(?P<amount>[\d.,]+)"],
                "quantity_column": 1,
                "unknown": True,
            }
        )

        assert patterns.total_labels == (r"Total:\s*(?P<amount>[\d.,]+)",)
        assert patterns.quantity_column == 1
        assert patterns.merchant_label == DEFAULT_PATTERNS.merchant_label
        assert extract_total("Total: 12,50", patterns) == Decimal("12.50")

    def test_from_empty_dict_is_default(self):
        assert ExtractionPatterns.from_dict({}) == DEFAULT_PATTERNS

    def test_single_total_label_string(self):
        patterns = ExtractionPatterns.from_dict(
            {"total_labels": r"Total:\s*(?P<amount>[\d.,]+)"}
        )

        assert patterns.total_labels == (r"Total:\s*(?P<amount>[\d.,]+)",)
        assert extract_total("Total: 12,50", patterns) == Decimal("12.50")

    def test_invalid_total_labels(self):
        with pytest.raises(ValueError, match="total_labels"):
            ExtractionPatterns.from_dict({"total_labels": 5})

    def test_broken_pattern_fails_early(self):
        with pytest.raises(re.error):
            ExtractionPatterns.from_dict({"merchant_anchor": "("})
