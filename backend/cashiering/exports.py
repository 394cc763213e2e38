"""
Export utilities for cashiering reports.
Supports Excel (.xlsx), CSV (.csv), and Text (.txt) formats.
"""
import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter


class ExportFormat:
    EXCEL = 'xlsx'
    CSV = 'csv'
    TXT = 'txt'

    CHOICES = [EXCEL, CSV, TXT]
    CONTENT_TYPES = {
        EXCEL: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        CSV: 'text/csv',
        TXT: 'text/plain',
    }


def format_value(value: Any) -> str:
    """Format a value for export."""
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.strftime('%Y-%m-%d %H:%M:%S')
    if isinstance(value, date):
        return value.strftime('%d/%m/%Y')
    if isinstance(value, Decimal):
        return f"{value:,.2f}"
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    return str(value)


def export_to_excel(
    data: list[dict],
    columns: list[dict],
    title: str = 'Export',
    subtitle: str = '',
    sheet_name: str = 'Data',
) -> bytes:
    """
    Export data to Excel format.

    Args:
        data: List of dictionaries containing the data
        columns: List of column definitions with 'key', 'header', and optional 'width'
        title: Title for the export (used in header row)
        subtitle: Second heading line (rate, declaration date)
        sheet_name: Name of the worksheet

    Returns:
        Bytes of the Excel file
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name

    header_font = Font(bold=True, color='FFFFFF')
    header_fill = PatternFill(start_color='4472C4', end_color='4472C4', fill_type='solid')
    header_alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
    thin_border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(columns))
    title_cell = ws.cell(row=1, column=1, value=title)
    title_cell.font = Font(bold=True, size=14)
    title_cell.alignment = Alignment(horizontal='center')

    ws.merge_cells(start_row=2, start_column=1, end_row=2, end_column=len(columns))
    subtitle_cell = ws.cell(row=2, column=1, value=subtitle)
    subtitle_cell.alignment = Alignment(horizontal='center')
    subtitle_cell.font = Font(italic=True, size=10, color='666666')

    header_row = 4
    for col_idx, col in enumerate(columns, 1):
        cell = ws.cell(row=header_row, column=col_idx, value=col['header'])
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = thin_border
        ws.column_dimensions[get_column_letter(col_idx)].width = col.get('width', 15)

    for row_idx, row_data in enumerate(data, header_row + 1):
        is_total = row_data.get('is_total', False)
        for col_idx, col in enumerate(columns, 1):
            value = row_data.get(col['key'], '')
            # Numbers stay numeric so the schedule can be summed in Excel.
            if col.get('numeric') and isinstance(value, Decimal):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.number_format = '#,##0.00'
            else:
                cell = ws.cell(row=row_idx, column=col_idx, value=format_value(value))
            cell.border = thin_border
            if is_total:
                cell.font = Font(bold=True)
            if col.get('numeric'):
                cell.alignment = Alignment(horizontal='right')

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()


def export_to_csv(
    data: list[dict],
    columns: list[dict],
    delimiter: str = ',',
) -> str:
    """
    Export data to CSV format.

    Args:
        data: List of dictionaries containing the data
        columns: List of column definitions with 'key' and 'header'
        delimiter: CSV delimiter character

    Returns:
        CSV string
    """
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)

    writer.writerow([col['header'] for col in columns])
    for row_data in data:
        writer.writerow([format_value(row_data.get(col['key'], '')) for col in columns])

    return output.getvalue()


def export_to_txt(
    data: list[dict],
    columns: list[dict],
    separator: str = '  ',
) -> str:
    """
    Export data to fixed-width text.

    Numeric columns are right-aligned; a rule separates the totals row.
    """
    col_widths = []
    for col in columns:
        width = max(col.get('width', 0), len(col['header']))
        for row_data in data:
            width = max(width, len(format_value(row_data.get(col['key'], ''))))
        col_widths.append(min(width, 50))

    def render(row_data):
        parts = []
        for idx, col in enumerate(columns):
            value = format_value(row_data.get(col['key'], ''))
            if len(value) > col_widths[idx]:
                value = value[:col_widths[idx] - 3] + '...'
            parts.append(value.rjust(col_widths[idx]) if col.get('numeric') else value.ljust(col_widths[idx]))
        return separator.join(parts).rstrip()

    lines = [
        render({col['key']: col['header'] for col in columns}),
        separator.join('-' * width for width in col_widths),
    ]
    for row_data in data:
        if row_data.get('is_total'):
            lines.append(separator.join('=' * width for width in col_widths))
        lines.append(render(row_data))

    return '\n'.join(lines)


def create_export_response(
    data: list[dict],
    columns: list[dict],
    format: str,
    filename: str,
    title: str = 'Export',
    subtitle: str = '',
) -> HttpResponse:
    """
    Create an HTTP response with the exported file.

    Args:
        data: List of dictionaries containing the data
        columns: List of column definitions
        format: Export format (xlsx, csv, txt)
        filename: Base filename (without extension)
        title: Title for Excel export
        subtitle: Second heading line for Excel export

    Returns:
        HttpResponse with the file content
    """
    if format not in ExportFormat.CHOICES:
        raise ValueError(f"Invalid format: {format}. Must be one of {ExportFormat.CHOICES}")

    content_type = ExportFormat.CONTENT_TYPES[format]
    full_filename = f"{filename}.{format}"

    if format == ExportFormat.EXCEL:
        content = export_to_excel(data, columns, title=title, subtitle=subtitle)
        response = HttpResponse(content, content_type=content_type)
    elif format == ExportFormat.CSV:
        content = export_to_csv(data, columns)
        response = HttpResponse(content, content_type=content_type)
        response.charset = 'utf-8-sig'  # BOM for Excel compatibility
    else:  # TXT
        content = export_to_txt(data, columns)
        response = HttpResponse(content, content_type=content_type)

    response['Content-Disposition'] = f'attachment; filename="{full_filename}"'
    return response


# =============================================================================
# Distribution Schedule Export Configuration
# =============================================================================

DISTRIBUTION_EXPORT_COLUMNS = [
    {'key': 'claim_name', 'header': 'Creditor', 'width': 35},
    {'key': 'creditor_type', 'header': 'Class', 'width': 22},
    {'key': 'claim_amount', 'header': 'Agreed Claim', 'width': 16, 'numeric': True},
    {'key': 'distribution_amount', 'header': 'Distribution', 'width': 16, 'numeric': True},
    {'key': 'payable_amount', 'header': 'Payable', 'width': 16, 'numeric': True},
]


def distribution_export_title(declaration) -> str:
    return f"{declaration.get_distribution_type_display()} Distribution - Case {declaration.case_id}"


def distribution_export_subtitle(declaration) -> str:
    return (
        f"Declared {declaration.declared_date:%d/%m/%Y} at {declaration.dividend_rate_label}. "
        f"Net distribution {format_value(declaration.net_distribution)} "
        f"on claims of {format_value(declaration.total_claims)}."
    )


def prepare_distribution_export_data(declaration) -> list[dict]:
    """Prepare a declaration's per-claim schedule for export, with a totals row."""
    data = []
    total_claims = Decimal('0.00')
    total_payable = Decimal('0.00')
    for row in declaration.per_claim_distributions:
        claim_amount = Decimal(row['claim_amount'])
        payable = Decimal(row['payable_amount'])
        total_claims += claim_amount
        total_payable += payable
        data.append({
            'claim_name': row['claim_name'],
            'creditor_type': row.get('creditor_type', declaration.distribution_type).replace('_', ' ').title(),
            'claim_amount': claim_amount,
            'distribution_amount': Decimal(row['distribution_amount']).quantize(Decimal('0.01')),
            'payable_amount': payable,
        })
    data.append({
        'claim_name': 'Total',
        'creditor_type': '',
        'claim_amount': total_claims,
        'distribution_amount': Decimal(declaration.net_distribution),
        'payable_amount': total_payable,
        'is_total': True,
    })
    return data
