"""
Tests for financial transactions and invoices
"""
from datetime import timedelta
from decimal import Decimal
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from retail_erp.core.models import AuditLog
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import FinancialTransaction
from .services import invoice_total, sum_by_type


class TransactionServiceTests(TestCase):
    def test_sum_by_type(self):
        branch = TestDataFactory.create_branch()
        TestDataFactory.create_transaction(branch, 'sale', Decimal('100.00'))
        TestDataFactory.create_transaction(branch, 'sale', Decimal('50.25'))
        TestDataFactory.create_transaction(branch, 'expense', Decimal('20.00'))

        totals = sum_by_type(FinancialTransaction.objects.all())
        self.assertEqual(totals['sale'], Decimal('150.25'))
        self.assertEqual(totals['expense'], Decimal('20.00'))
        self.assertEqual(totals['refund'], Decimal('0'))

    def test_invoice_total_applies_discount_per_unit(self):
        items = [
            {'quantity': 3, 'price': Decimal('10.00'), 'discount': Decimal('1.00')},
            {'quantity': 2, 'price': Decimal('4.50')},
        ]
        self.assertEqual(invoice_total(items), Decimal('36.00'))


class TransactionEndpointTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.other_branch = TestDataFactory.create_branch()
        self.accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.gm = TestDataFactory.create_general_manager(branch=self.branch)
        self.url = '/api/v1/transactions/'

    def test_record_transaction(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.post(self.url, {
            'branch': self.branch.id,
            'transaction_type': 'expense',
            'amount': '45.10',
            'description': 'Electricity',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        txn = FinancialTransaction.objects.get(pk=response.data['id'])
        self.assertEqual(txn.created_by, self.accountant)
        self.assertEqual(txn.amount, Decimal('45.10'))
        self.assertTrue(AuditLog.objects.filter(action='transaction_create', object_id=str(txn.id)).exists())

    def test_amount_must_be_positive(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.post(self.url, {
            'branch': self.branch.id, 'transaction_type': 'sale', 'amount': '0',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_type_rejected(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.post(self.url, {
            'branch': self.branch.id, 'transaction_type': 'gift', 'amount': '5.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_record_for_other_branch(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.post(self.url, {
            'branch': self.other_branch.id, 'transaction_type': 'sale', 'amount': '5.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_newest_first_and_filtered(self):
        now = timezone.now()
        older = TestDataFactory.create_transaction(self.branch, 'sale', transaction_date=now - timedelta(days=3))
        newer = TestDataFactory.create_transaction(self.branch, 'expense', transaction_date=now)
        TestDataFactory.create_transaction(self.other_branch, 'sale')
        self.client.authenticate_user(self.accountant)

        response = self.client.get(self.url)
        self.assertEqual([t['id'] for t in response.data], [newer.id, older.id])

        response = self.client.get(self.url, {'type': 'sale'})
        self.assertEqual([t['id'] for t in response.data], [older.id])

        response = self.client.get(self.url, {'limit': 1})
        self.assertEqual(len(response.data), 1)

    def test_date_range_filter(self):
        now = timezone.now()
        TestDataFactory.create_transaction(self.branch, 'sale', transaction_date=now - timedelta(days=40))
        recent = TestDataFactory.create_transaction(self.branch, 'sale', transaction_date=now)
        self.client.authenticate_user(self.accountant)
        response = self.client.get(self.url, {
            'date_from': (now - timedelta(days=7)).date().isoformat(),
            'date_to': now.date().isoformat(),
        })
        self.assertEqual([t['id'] for t in response.data], [recent.id])

    def test_general_manager_reads_any_branch(self):
        TestDataFactory.create_transaction(self.other_branch, 'income')
        self.client.authenticate_user(self.gm)
        response = self.client.get(self.url, {'branch': self.other_branch.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_only_general_manager_deletes(self):
        txn = TestDataFactory.create_transaction(self.branch, 'sale')
        self.client.authenticate_user(self.accountant)
        response = self.client.delete(f'{self.url}{txn.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.gm)
        response = self.client.delete(f'{self.url}{txn.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(FinancialTransaction.objects.filter(pk=txn.pk).exists())


class InvoiceTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.product = TestDataFactory.create_product(price=Decimal('10.00'))
        self.stock = TestDataFactory.create_inventory(self.branch, self.product, quantity=20)
        self.url = '/api/v1/invoices/'
        self.client.authenticate_user(self.accountant)

    def test_sale_invoice_records_transaction_and_decrements_stock(self):
        response = self.client.post(self.url, {
            'branch': self.branch.id,
            'invoice_type': 'sale',
            'customer_name': 'Acme Ltd',
            'notes': 'Net 30',
            'items': [{'product': self.product.id, 'quantity': 3, 'price': '10.00', 'discount': '1.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data['total']), Decimal('27.00'))
        self.assertEqual(response.data['inventory_updated'], [self.stock.id])

        txn = FinancialTransaction.objects.get(pk=response.data['transaction']['id'])
        self.assertEqual(txn.transaction_type, 'sale')
        self.assertEqual(txn.description, 'Sale invoice - Acme Ltd')
        self.assertTrue(txn.reference_number.startswith('INV-'))

        self.stock.refresh_from_db()
        self.assertEqual(self.stock.quantity, 17)

    def test_purchase_invoice_leaves_stock(self):
        response = self.client.post(self.url, {
            'branch': self.branch.id,
            'invoice_type': 'purchase',
            'items': [{'product': self.product.id, 'quantity': 5, 'price': '6.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['transaction']['description'], 'Purchase invoice - Customer')
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.quantity, 20)

    def test_sale_of_unstocked_product_still_recorded(self):
        product = TestDataFactory.create_product()
        response = self.client.post(self.url, {
            'branch': self.branch.id,
            'invoice_type': 'sale',
            'items': [{'product': product.id, 'quantity': 1, 'price': '2.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['inventory_updated'], [])

    def test_items_required(self):
        response = self.client.post(self.url, {
            'branch': self.branch.id, 'invoice_type': 'sale', 'items': [],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_expense_is_not_an_invoice_type(self):
        response = self.client.post(self.url, {
            'branch': self.branch.id,
            'invoice_type': 'expense',
            'items': [{'product': self.product.id, 'quantity': 1, 'price': '2.00'}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_and_detail(self):
        TestDataFactory.create_transaction(self.branch, 'sale', reference_number='POS-1')
        invoice = TestDataFactory.create_transaction(self.branch, 'sale', reference_number='INV-1')
        response = self.client.get(self.url)
        self.assertEqual([t['id'] for t in response.data], [invoice.id])

        response = self.client.get(f'{self.url}{invoice.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reference_number'], 'INV-1')
