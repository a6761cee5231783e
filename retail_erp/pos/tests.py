"""
Tests for the point-of-sale cart and checkout
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from retail_erp.accounting.models import FinancialTransaction
from retail_erp.core.exceptions import CheckoutError
from retail_erp.core.models import AuditLog
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from retail_erp.notifications.models import Notification
from . import services


class CartTests(TestCase):
    def setUp(self):
        self.branch = TestDataFactory.create_branch()
        self.pen = TestDataFactory.create_product(name='Pen', price=Decimal('1.50'))
        self.pad = TestDataFactory.create_product(name='Pad', price=Decimal('4.00'))
        TestDataFactory.create_inventory(self.branch, self.pen, quantity=10)
        TestDataFactory.create_inventory(self.branch, self.pad, quantity=2)

    def test_cart_total(self):
        lines = [{'product': self.pen, 'quantity': 4}, {'product': self.pad, 'quantity': 2}]
        self.assertEqual(services.cart_total(lines), Decimal('14.00'))
        self.assertEqual(services.cart_total([]), Decimal('0'))

    def test_quote_change(self):
        lines = [{'product': self.pen, 'quantity': 2}]
        result = services.quote(lines, Decimal('5.00'))
        self.assertTrue(result['can_confirm'])
        self.assertEqual(result['change'], Decimal('2.00'))

        result = services.quote(lines, Decimal('2.99'))
        self.assertFalse(result['can_confirm'])
        self.assertIsNone(result['change'])

    def test_empty_cart_refused(self):
        with self.assertRaisesMessage(CheckoutError, 'Cart is empty'):
            services.validate_cart(self.branch.id, [], Decimal('10.00'))

    def test_quantity_capped_by_stock_across_lines(self):
        lines = [{'product': self.pad, 'quantity': 1}, {'product': self.pad, 'quantity': 2}]
        with self.assertRaisesMessage(CheckoutError, 'Only 2 of Pad in stock'):
            services.validate_cart(self.branch.id, lines, Decimal('100.00'))

    def test_product_not_stocked_at_branch(self):
        other = TestDataFactory.create_product(name='Stapler')
        with self.assertRaisesMessage(CheckoutError, 'Only 0 of Stapler in stock'):
            services.validate_cart(self.branch.id, [{'product': other, 'quantity': 1}], Decimal('100.00'))

    def test_underpayment_refused(self):
        lines = [{'product': self.pad, 'quantity': 2}]
        with self.assertRaisesMessage(CheckoutError, 'Payment amount must be at least 8.00'):
            services.validate_cart(self.branch.id, lines, Decimal('7.99'))


class POSEndpointTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.cashier = TestDataFactory.create_branch_manager(branch=self.branch)
        self.product = TestDataFactory.create_product(name='Mug', sku='MUG-1', price=Decimal('10.00'))
        self.stock = TestDataFactory.create_inventory(self.branch, self.product, quantity=20)
        self.empty = TestDataFactory.create_inventory(self.branch, quantity=0)
        self.client.authenticate_user(self.cashier)

    def test_products_in_stock_only(self):
        response = self.client.get('/api/v1/pos/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['product_id'] for p in response.data], [self.product.id])
        self.assertEqual(response.data[0]['quantity'], 20)

    def test_products_search(self):
        response = self.client.get('/api/v1/pos/products/', {'search': 'mug-'})
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/pos/products/', {'search': 'kettle'})
        self.assertEqual(response.data, [])

    def test_products_need_a_branch(self):
        gm = TestDataFactory.create_general_manager()
        self.client.authenticate_user(gm)
        response = self.client.get('/api/v1/pos/products/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_accountant_cannot_use_pos(self):
        accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(accountant)
        response = self.client.get('/api/v1/pos/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_quote(self):
        response = self.client.post('/api/v1/pos/quote/', {
            'items': [{'product': self.product.id, 'quantity': 2}],
            'payment_amount': '25.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], '20.00')
        self.assertTrue(response.data['can_confirm'])
        self.assertEqual(response.data['change'], '5.00')

    def test_checkout(self):
        response = self.client.post('/api/v1/pos/checkout/', {
            'customer_name': 'Walk-in',
            'items': [{'product': self.product.id, 'quantity': 2}],
            'payment_amount': '50.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total'], '20.00')
        self.assertEqual(response.data['change'], '30.00')
        self.assertTrue(response.data['reference_number'].startswith('POS-'))

        txn = FinancialTransaction.objects.get(pk=response.data['transaction_id'])
        self.assertEqual(txn.transaction_type, 'sale')
        self.assertEqual(txn.amount, Decimal('20.00'))
        self.assertEqual(txn.description, 'Sale to Walk-in - 2 items')
        self.assertEqual(txn.branch, self.branch)

        self.stock.refresh_from_db()
        self.assertEqual(self.stock.quantity, 18)
        self.assertTrue(AuditLog.objects.filter(action='pos_checkout').exists())

    def test_checkout_underpaid_writes_nothing(self):
        response = self.client.post('/api/v1/pos/checkout/', {
            'items': [{'product': self.product.id, 'quantity': 2}],
            'payment_amount': '19.99',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(FinancialTransaction.objects.exists())
        self.stock.refresh_from_db()
        self.assertEqual(self.stock.quantity, 20)

    def test_checkout_over_stock_refused(self):
        response = self.client.post('/api/v1/pos/checkout/', {
            'items': [{'product': self.product.id, 'quantity': 21}],
            'payment_amount': '500.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Only 20 of Mug in stock')

    def test_empty_cart_refused(self):
        response = self.client.post('/api/v1/pos/checkout/', {'items': [], 'payment_amount': '5.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cart is empty')

    def test_checkout_into_low_stock_notifies_managers(self):
        self.client.post('/api/v1/pos/checkout/', {
            'items': [{'product': self.product.id, 'quantity': 15}],
            'payment_amount': '150.00',
        }, format='json')
        self.assertTrue(Notification.objects.filter(user=self.cashier, type='low_stock').exists())

    def test_checkout_at_other_branch_refused(self):
        other = TestDataFactory.create_branch()
        response = self.client.post('/api/v1/pos/checkout/', {
            'branch': other.id,
            'items': [{'product': self.product.id, 'quantity': 1}],
            'payment_amount': '10.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
