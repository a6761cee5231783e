"""
Tests for dashboards, the financial report, its CSV export and sales analytics
"""
import csv
from datetime import date, timedelta
from decimal import Decimal
from io import StringIO
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from . import services
from .csv_exporters import FinancialReportCSVExporter


class PeriodTests(TestCase):
    def test_financial_periods(self):
        reference = date(2024, 5, 17)
        self.assertEqual(services.financial_period('monthly', reference=reference),
                         (date(2024, 5, 1), date(2024, 5, 31)))
        self.assertEqual(services.financial_period('quarterly', reference=reference),
                         (date(2024, 3, 1), date(2024, 5, 31)))
        self.assertEqual(services.financial_period('yearly', reference=reference),
                         (date(2023, 6, 1), date(2024, 5, 31)))

    def test_custom_period(self):
        self.assertEqual(
            services.financial_period('custom', date(2024, 1, 1), date(2024, 1, 31)),
            (date(2024, 1, 1), date(2024, 1, 31)),
        )
        with self.assertRaises(ValueError):
            services.financial_period('custom', date(2024, 2, 1), date(2024, 1, 1))
        with self.assertRaises(ValueError):
            services.financial_period('custom')

    def test_unknown_period(self):
        with self.assertRaises(ValueError):
            services.financial_period('weekly')

    def test_analytics_periods(self):
        reference = date(2024, 3, 31)
        self.assertEqual(services.analytics_period('week', reference), (date(2024, 3, 24), reference))
        self.assertEqual(services.analytics_period('month', reference), (date(2024, 3, 1), date(2024, 3, 31)))
        self.assertEqual(services.analytics_period('quarter', reference), (date(2023, 12, 31), reference))
        self.assertEqual(services.analytics_period('year', reference), (date(2023, 3, 31), reference))

    def test_months_ago_clamps_day(self):
        self.assertEqual(services.months_ago(date(2024, 5, 31), 3), date(2024, 2, 29))

    def test_sales_growth(self):
        trend = [{'amount': Decimal('100')}, {'amount': Decimal('100')},
                 {'amount': Decimal('150')}, {'amount': Decimal('150')}]
        self.assertEqual(services.sales_growth(trend), 50.0)
        self.assertEqual(services.sales_growth(trend[:1]), 0.0)
        self.assertEqual(services.sales_growth([{'amount': Decimal('0')}, {'amount': Decimal('10')}]), 0.0)


class FinancialReportTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch(name='Main Street')
        self.other_branch = TestDataFactory.create_branch()
        self.accountant = TestDataFactory.create_accountant(branch=self.branch)
        now = timezone.now()
        TestDataFactory.create_transaction(self.branch, 'sale', Decimal('500.00'), transaction_date=now)
        TestDataFactory.create_transaction(self.branch, 'income', Decimal('50.00'), transaction_date=now)
        TestDataFactory.create_transaction(self.branch, 'purchase', Decimal('200.00'), transaction_date=now)
        TestDataFactory.create_transaction(self.branch, 'expense', Decimal('75.00'), transaction_date=now)
        TestDataFactory.create_transaction(self.branch, 'refund', Decimal('25.00'), transaction_date=now)
        TestDataFactory.create_transaction(self.other_branch, 'sale', Decimal('999.00'), transaction_date=now)
        self.client.authenticate_user(self.accountant)

    def test_report_sums_by_type(self):
        today = timezone.localdate()
        report = services.financial_report(today, today, self.branch.id)
        self.assertEqual(report['sales'], Decimal('500.00'))
        self.assertEqual(report['purchases'], Decimal('200.00'))
        self.assertEqual(report['profit'], Decimal('250.00'))
        self.assertEqual(report['daily'], [{'date': today, 'amount': Decimal('250.00')}])

    def test_report_all_branches(self):
        today = timezone.localdate()
        report = services.financial_report(today, today)
        self.assertEqual(report['sales'], Decimal('1499.00'))

    def test_report_endpoint_defaults_to_own_branch(self):
        response = self.client.get('/api/v1/reports/financial/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['branch'], self.branch.id)
        self.assertEqual(response.data['sales'], Decimal('500.00'))

    def test_report_other_branch_refused(self):
        response = self.client.get('/api/v1/reports/financial/', {'branch': self.other_branch.id})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_bad_custom_range(self):
        response = self.client.get('/api/v1/reports/financial/', {
            'period': 'custom', 'date_from': '2024-02-01', 'date_to': '2024-01-01',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_date(self):
        response = self.client.get('/api/v1/reports/financial/', {
            'period': 'custom', 'date_from': 'yesterday', 'date_to': '2024-01-01',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_csv_export(self):
        response = self.client.get('/api/v1/reports/financial/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn(f'financial_report_{timezone.localdate():%Y-%m-%d}.csv', response['Content-Disposition'])

        rows = list(csv.reader(StringIO(response.content.decode('utf-8'))))
        self.assertTrue(rows[0][0].startswith('Financial Report - Main Street - '))
        self.assertIn(['Sales', '500.00'], rows)
        self.assertIn(['Net Profit', '250.00'], rows)
        self.assertIn(['Daily Breakdown'], rows)

    def test_unknown_role_cannot_view_reports(self):
        user = TestDataFactory.create_user(role='cashier')
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/reports/financial/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CSVExporterTests(TestCase):
    def test_quotes_branch_names_with_commas(self):
        report = {
            'date_from': date(2024, 1, 1), 'date_to': date(2024, 1, 31),
            'sales': Decimal('10'), 'purchases': Decimal('0'), 'expenses': Decimal('0'),
            'income': Decimal('0'), 'refunds': Decimal('0'), 'profit': Decimal('10'),
            'daily': [{'date': date(2024, 1, 5), 'amount': Decimal('10')}],
        }
        output = FinancialReportCSVExporter().export(report, branch_name='North, East')
        rows = list(csv.reader(StringIO(output)))
        self.assertEqual(rows[0], ['Financial Report - North, East - 2024-01-01 to 2024-01-31'])
        self.assertEqual(rows[-1], ['2024-01-05', '10.00'])

    def test_all_branches_title(self):
        report = {
            'date_from': date(2024, 1, 1), 'date_to': date(2024, 1, 31),
            'sales': Decimal('0'), 'purchases': Decimal('0'), 'expenses': Decimal('0'),
            'income': Decimal('0'), 'refunds': Decimal('0'), 'profit': Decimal('0'), 'daily': [],
        }
        output = FinancialReportCSVExporter().export(report)
        self.assertTrue(output.startswith('Financial Report - All branches - '))


class SalesAnalyticsTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.manager = TestDataFactory.create_branch_manager(branch=self.branch)
        now = timezone.now()
        TestDataFactory.create_transaction(self.branch, 'sale', Decimal('30.00'), transaction_date=now)
        TestDataFactory.create_transaction(self.branch, 'sale', Decimal('10.00'), transaction_date=now)
        TestDataFactory.create_transaction(self.branch, 'expense', Decimal('5.00'), transaction_date=now)
        self.client.authenticate_user(self.manager)

    def test_week_analytics(self):
        response = self.client.get('/api/v1/reports/sales-analytics/', {'period': 'week'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_sales'], Decimal('40.00'))
        self.assertEqual(response.data['transaction_count'], 2)
        self.assertEqual(response.data['average_order_value'], Decimal('20.00'))
        self.assertEqual(response.data['growth'], 0.0)

    def test_unknown_period(self):
        response = self.client.get('/api/v1/reports/sales-analytics/', {'period': 'decade'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DashboardTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.other_branch = TestDataFactory.create_branch()
        TestDataFactory.create_inventory(self.branch, quantity=3)
        TestDataFactory.create_inventory(self.branch, quantity=0)
        TestDataFactory.create_inventory(self.branch, quantity=100)
        TestDataFactory.create_transfer(self.other_branch, self.branch)
        TestDataFactory.create_transaction(self.branch, 'sale', Decimal('80.00'))

    def test_general_manager_dashboard(self):
        gm = TestDataFactory.create_general_manager(branch=self.branch)
        self.client.authenticate_user(gm)
        response = self.client.get('/api/v1/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['dashboard'], 'general_manager')
        self.assertEqual(response.data['total_branches'], 2)
        self.assertEqual(response.data['low_stock_items'], 2)
        self.assertEqual(response.data['month_sales'], Decimal('80.00'))
        self.assertEqual(response.data['profile']['email'], gm.email)

    def test_branch_manager_dashboard(self):
        manager = TestDataFactory.create_branch_manager(branch=self.branch)
        self.client.authenticate_user(manager)
        response = self.client.get('/api/v1/dashboard/')
        self.assertEqual(response.data['dashboard'], 'branch_manager')
        self.assertEqual(response.data['total_products'], 3)
        self.assertEqual(response.data['low_stock_items'], 1)
        self.assertEqual(response.data['out_of_stock_items'], 1)
        self.assertEqual(response.data['pending_transfers'], 1)
        self.assertEqual(response.data['today_sales'], Decimal('80.00'))

    def test_accountant_dashboard(self):
        accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(accountant)
        response = self.client.get('/api/v1/dashboard/')
        self.assertEqual(response.data['dashboard'], 'accountant')
        self.assertEqual(len(response.data['recent_transactions']), 1)

    def test_unknown_role_gets_generic_dashboard(self):
        user = TestDataFactory.create_user(role='cashier')
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/dashboard/')
        self.assertEqual(response.data['dashboard'], 'generic')
        self.assertNotIn('total_branches', response.data)
