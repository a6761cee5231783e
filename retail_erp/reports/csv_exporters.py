"""
CSV exporters for reports.

Exporters turn a report dict into CSV text for spreadsheet tools.
"""
import csv
from decimal import Decimal
from io import StringIO


class BaseCSVExporter:
    content_type = 'text/csv'
    file_extension = 'csv'

    @staticmethod
    def _format_value(value):
        if value is None:
            return ''
        if isinstance(value, Decimal):
            return f'{value:.2f}'
        return str(value)

    @staticmethod
    def _write_section_header(writer, title):
        writer.writerow([])
        writer.writerow([title])


class FinancialReportCSVExporter(BaseCSVExporter):
    """Title row, one row per transaction type, the profit row, then the daily breakdown"""

    ROWS = [
        ('Sales', 'sales'),
        ('Purchases', 'purchases'),
        ('Expenses', 'expenses'),
        ('Income', 'income'),
        ('Refunds', 'refunds'),
        ('Net Profit', 'profit'),
    ]

    def export(self, data, branch_name=None):
        output = StringIO()
        writer = csv.writer(output)

        writer.writerow([
            f"Financial Report - {branch_name or 'All branches'} - "
            f"{data['date_from']} to {data['date_to']}"
        ])
        writer.writerow([])
        writer.writerow(['Transaction Type', 'Amount'])
        for label, key in self.ROWS:
            writer.writerow([label, self._format_value(data[key])])

        self._write_section_header(writer, 'Daily Breakdown')
        writer.writerow(['Date', 'Amount'])
        for day in data['daily']:
            writer.writerow([self._format_value(day['date']), self._format_value(day['amount'])])

        return output.getvalue()
