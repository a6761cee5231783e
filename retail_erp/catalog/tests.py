"""
Tests for the product catalog
"""
from decimal import Decimal
from django.test import TestCase
from rest_framework import status
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from retail_erp.inventory.models import Inventory
from .models import Product


class ProductCreateTests(TestCase):
    """Creating a product also creates its opening inventory row"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.manager = TestDataFactory.create_branch_manager(branch=self.branch)
        self.accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.url = '/api/v1/products/'

    def test_create_makes_exactly_one_inventory_row(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post(self.url, {
            'name': 'Widget',
            'sku': 'W-1',
            'price': '12.50',
            'cost': '7.00',
            'branch': self.branch.id,
            'quantity': 40,
            'min_quantity': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        product = Product.objects.get(sku='W-1')
        rows = Inventory.objects.filter(product=product)
        self.assertEqual(rows.count(), 1)
        row = rows.get()
        self.assertEqual(row.branch, self.branch)
        self.assertEqual(row.quantity, 40)
        self.assertEqual(row.min_quantity, 5)
        self.assertEqual(response.data['inventory']['quantity'], 40)

    def test_cannot_create_stock_at_another_branch(self):
        """The opening inventory row must be at the manager's own branch"""
        other_branch = TestDataFactory.create_branch()
        self.client.authenticate_user(self.manager)
        response = self.client.post(self.url, {
            'name': 'Elsewhere',
            'price': '2.00',
            'branch': other_branch.id,
            'quantity': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Product.objects.filter(name='Elsewhere').exists())
        self.assertFalse(Inventory.objects.filter(branch=other_branch).exists())

    def test_quantity_defaults_to_zero(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post(self.url, {
            'name': 'Gadget',
            'price': '3.00',
            'branch': self.branch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        row = Inventory.objects.get(product_id=response.data['id'])
        self.assertEqual(row.quantity, 0)
        self.assertIsNone(row.min_quantity)

    def test_blank_sku_stored_as_null(self):
        self.client.authenticate_user(self.manager)
        for name in ('First', 'Second'):
            response = self.client.post(self.url, {
                'name': name, 'sku': '', 'price': '1.00', 'branch': self.branch.id,
            }, format='json')
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Product.objects.filter(sku__isnull=True).count(), 2)

    def test_branch_required(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post(self.url, {'name': 'Orphan', 'price': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Product.objects.filter(name='Orphan').exists())

    def test_accountant_cannot_create(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.post(self.url, {
            'name': 'Denied', 'price': '1.00', 'branch': self.branch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Product.objects.filter(name='Denied').exists())


class ProductListTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.other_branch = TestDataFactory.create_branch()
        self.manager = TestDataFactory.create_branch_manager(branch=self.branch)
        self.apple = TestDataFactory.create_product(name='Apple Juice', sku='AJ-1')
        self.bread = TestDataFactory.create_product(name='Bread', sku='BR-1')
        TestDataFactory.create_inventory(self.branch, self.apple, quantity=3)
        TestDataFactory.create_inventory(self.other_branch, self.bread, quantity=100)
        self.client.authenticate_user(self.manager)

    def test_list_ordered_by_name(self):
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['name'] for p in response.data], ['Apple Juice', 'Bread'])

    def test_search_by_name_or_sku(self):
        response = self.client.get('/api/v1/products/', {'search': 'br-'})
        self.assertEqual([p['name'] for p in response.data], ['Bread'])
        response = self.client.get('/api/v1/products/', {'search': 'juice'})
        self.assertEqual([p['name'] for p in response.data], ['Apple Juice'])

    def test_filter_by_branch(self):
        response = self.client.get('/api/v1/products/', {'branch': self.other_branch.id})
        self.assertEqual([p['name'] for p in response.data], ['Bread'])

    def test_low_stock_filter(self):
        response = self.client.get('/api/v1/products/', {'low_stock': 'true'})
        self.assertEqual([p['name'] for p in response.data], ['Apple Juice'])


class ProductDetailTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.manager = TestDataFactory.create_branch_manager(branch=self.branch)
        self.product = TestDataFactory.create_product(name='Lamp')
        self.url = f'/api/v1/products/{self.product.id}/'

    def test_update_price(self):
        self.client.authenticate_user(self.manager)
        response = self.client.patch(self.url, {'price': '19.99'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.price, Decimal('19.99'))

    def test_accountant_cannot_delete(self):
        accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(accountant)
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete(self):
        self.client.authenticate_user(self.manager)
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=self.product.pk).exists())
