# tests/test_exports.py
"""
Tests for distribution schedule exports.
"""

import io
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from cashiering.commands import declare_distribution
from cashiering.exports import (
    DISTRIBUTION_EXPORT_COLUMNS,
    ExportFormat,
    create_export_response,
    export_to_csv,
    export_to_excel,
    export_to_txt,
    format_value,
    prepare_distribution_export_data,
)
from cashiering.types import Claim


@pytest.fixture
def declaration(db):
    result = declare_distribution(
        case_id="CASE-001",
        distribution_type="unsecured",
        sum_to_distribute=Decimal("100"),
        claims=[Claim("Acme Supplies Ltd", "1"), Claim("Beta Ltd", "1"), Claim("Gamma Ltd", "1")],
        declared_date=date(2024, 10, 1),
    )
    return result.data


class TestFormatValue:

    def test_money_has_thousands_separator(self):
        assert format_value(Decimal("1234567.5")) == "1,234,567.50"

    def test_dates_are_british(self):
        assert format_value(date(2024, 10, 1)) == "01/10/2024"

    def test_none_is_blank(self):
        assert format_value(None) == ""


@pytest.mark.django_db
class TestDistributionExport:

    def test_rows_and_totals(self, declaration):
        data = prepare_distribution_export_data(declaration)

        assert [row["claim_name"] for row in data] == ["Acme Supplies Ltd", "Beta Ltd", "Gamma Ltd", "Total"]
        assert data[0]["payable_amount"] == Decimal("33.34")
        assert data[0]["distribution_amount"] == Decimal("33.33")
        assert data[-1]["payable_amount"] == Decimal("100.00")
        assert data[-1]["is_total"] is True

    def test_csv(self, declaration):
        content = export_to_csv(prepare_distribution_export_data(declaration), DISTRIBUTION_EXPORT_COLUMNS)

        lines = content.splitlines()
        assert lines[1] == 'Acme Supplies Ltd,Unsecured,1.00,33.33,33.34'
        assert lines[-1] == "Total,,3.00,100.00,100.00"

    def test_txt_right_aligns_numbers(self, declaration):
        content = export_to_txt(prepare_distribution_export_data(declaration), DISTRIBUTION_EXPORT_COLUMNS)

        lines = content.splitlines()
        assert lines[0].startswith("Creditor")
        assert lines[-1].endswith("100.00")
        assert set(lines[-2].replace(" ", "")) == {"="}

    def test_excel(self, declaration):
        content = export_to_excel(
            prepare_distribution_export_data(declaration),
            DISTRIBUTION_EXPORT_COLUMNS,
            title="Unsecured Distribution",
            subtitle="Declared 01/10/2024",
        )

        ws = load_workbook(io.BytesIO(content)).active
        assert ws.cell(row=1, column=1).value == "Unsecured Distribution"
        assert ws.cell(row=4, column=1).value == "Creditor"
        assert ws.cell(row=5, column=1).value == "Acme Supplies Ltd"
        assert ws.cell(row=5, column=5).value == Decimal("33.34") or ws.cell(row=5, column=5).value == 33.34

    def test_response_headers(self, declaration):
        response = create_export_response(
            prepare_distribution_export_data(declaration),
            DISTRIBUTION_EXPORT_COLUMNS,
            format=ExportFormat.EXCEL,
            filename="schedule",
        )

        assert response["Content-Type"] == ExportFormat.CONTENT_TYPES[ExportFormat.EXCEL]
        assert response["Content-Disposition"] == 'attachment; filename="schedule.xlsx"'

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            create_export_response([], DISTRIBUTION_EXPORT_COLUMNS, format="pdf", filename="x")
