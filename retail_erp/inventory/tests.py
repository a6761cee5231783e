"""
Tests for branch inventory and the inventory transfer workflow
"""
from django.test import TestCase, override_settings
from rest_framework import status
from retail_erp.core.models import AuditLog
from retail_erp.core.session import session_from_user
from retail_erp.core.exceptions import TransferTransitionError, TransferPermissionError
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from retail_erp.notifications.models import Notification
from .models import Inventory, InventoryTransfer
from . import services


class InventoryModelTests(TestCase):
    def setUp(self):
        self.branch = TestDataFactory.create_branch()

    @override_settings(LOW_STOCK_THRESHOLD=10)
    def test_default_threshold(self):
        row = TestDataFactory.create_inventory(self.branch, quantity=10)
        self.assertTrue(row.is_low_stock)
        row.quantity = 11
        self.assertFalse(row.is_low_stock)

    def test_own_threshold_wins(self):
        row = TestDataFactory.create_inventory(self.branch, quantity=15, min_quantity=20)
        self.assertTrue(row.is_low_stock)
        row.min_quantity = 5
        self.assertFalse(row.is_low_stock)

    def test_decrement_stock(self):
        row = TestDataFactory.create_inventory(self.branch, quantity=8)
        updated = services.decrement_stock(self.branch.id, row.product_id, 3)
        self.assertEqual(updated.quantity, 5)

    def test_decrement_missing_row(self):
        product = TestDataFactory.create_product()
        self.assertIsNone(services.decrement_stock(self.branch.id, product.id, 1))


class InventoryEndpointTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.other_branch = TestDataFactory.create_branch()
        self.manager = TestDataFactory.create_branch_manager(branch=self.branch)
        self.gm = TestDataFactory.create_general_manager(branch=self.branch)
        self.row = TestDataFactory.create_inventory(self.branch, quantity=4)
        TestDataFactory.create_inventory(self.other_branch, quantity=80)

    def test_list_defaults_to_own_branch(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r['id'] for r in response.data], [self.row.id])
        self.assertTrue(response.data[0]['is_low_stock'])

    def test_branch_manager_cannot_read_other_branch(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/inventory/', {'branch': self.other_branch.id})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_general_manager_reads_any_branch(self):
        self.client.authenticate_user(self.gm)
        response = self.client.get('/api/v1/inventory/', {'branch': self.other_branch.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['quantity'], 80)

    def test_accountant_has_no_inventory_access(self):
        accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(accountant)
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_low_stock_list(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/inventory/low-stock/')
        self.assertEqual([r['id'] for r in response.data], [self.row.id])

    def test_stock_update_creates_then_updates(self):
        product = TestDataFactory.create_product()
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/inventory/stock/', {
            'branch': self.branch.id, 'product': product.id, 'quantity': 30,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/v1/inventory/stock/', {
            'branch': self.branch.id, 'product': product.id, 'min_quantity': 35,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        row = Inventory.objects.get(branch=self.branch, product=product)
        self.assertEqual(row.quantity, 30)
        self.assertEqual(row.min_quantity, 35)
        self.assertTrue(AuditLog.objects.filter(action='stock_update').exists())

    def test_stock_update_requires_a_value(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/inventory/stock/', {
            'branch': self.branch.id, 'product': self.row.product_id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_product_inventory_across_branches(self):
        self.client.authenticate_user(self.manager)
        TestDataFactory.create_inventory(self.other_branch, self.row.product, quantity=9)
        response = self.client.get(f'/api/v1/products/{self.row.product_id}/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)


class TransferRequestTests(TestCase):
    """Requesting stock from another branch"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.source = TestDataFactory.create_branch(name='Source')
        self.destination = TestDataFactory.create_branch(name='Destination')
        self.requester = TestDataFactory.create_branch_manager(branch=self.destination)
        self.colleague = TestDataFactory.create_branch_manager(branch=self.destination)
        self.product = TestDataFactory.create_product()
        self.url = '/api/v1/inventory/transfers/'

    def test_request_transfer(self):
        self.client.authenticate_user(self.requester)
        response = self.client.post(self.url, {
            'from_branch': self.source.id,
            'notes': 'Weekend restock',
            'items': [{'product': self.product.id, 'quantity': 6}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['to_branch'], self.destination.id)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['allowed_actions'], ['approve', 'reject'])

        transfer = InventoryTransfer.objects.get(pk=response.data['id'])
        self.assertEqual(transfer.requested_by, self.requester)
        self.assertEqual(transfer.items.get().quantity, 6)

    def test_other_destination_managers_notified(self):
        self.client.authenticate_user(self.requester)
        self.client.post(self.url, {
            'from_branch': self.source.id,
            'items': [{'product': self.product.id, 'quantity': 1}],
        }, format='json')
        self.assertEqual(Notification.objects.filter(user=self.colleague, type='transfer').count(), 1)
        self.assertFalse(Notification.objects.filter(user=self.requester).exists())

    def test_same_branch_refused(self):
        self.client.authenticate_user(self.requester)
        response = self.client.post(self.url, {
            'from_branch': self.destination.id,
            'items': [{'product': self.product.id, 'quantity': 1}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_cannot_request_into_another_branch(self):
        """A branch manager only requests stock into their own branch"""
        third = TestDataFactory.create_branch(name='Third')
        self.client.authenticate_user(self.requester)
        response = self.client.post(self.url, {
            'from_branch': self.source.id,
            'to_branch': third.id,
            'items': [{'product': self.product.id, 'quantity': 2}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(InventoryTransfer.objects.exists())
        self.assertFalse(Notification.objects.exists())

    def test_items_required(self):
        self.client.authenticate_user(self.requester)
        response = self.client.post(self.url, {'from_branch': self.source.id, 'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quantity_must_be_positive(self):
        self.client.authenticate_user(self.requester)
        response = self.client.post(self.url, {
            'from_branch': self.source.id,
            'items': [{'product': self.product.id, 'quantity': 0}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_by_direction(self):
        incoming = TestDataFactory.create_transfer(self.source, self.destination, requested_by=self.requester)
        outgoing = TestDataFactory.create_transfer(self.destination, self.source)
        self.client.authenticate_user(self.requester)

        response = self.client.get(self.url, {'direction': 'incoming'})
        self.assertEqual([t['id'] for t in response.data], [incoming.id])
        response = self.client.get(self.url, {'direction': 'outgoing'})
        self.assertEqual([t['id'] for t in response.data], [outgoing.id])
        response = self.client.get(self.url)
        self.assertEqual(len(response.data), 2)

    def test_invalid_direction(self):
        self.client.authenticate_user(self.requester)
        response = self.client.get(self.url, {'direction': 'sideways'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class TransferTransitionTests(TestCase):
    """pending -> approved | rejected, approved -> completed"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.source = TestDataFactory.create_branch(name='Source')
        self.destination = TestDataFactory.create_branch(name='Destination')
        self.requester = TestDataFactory.create_branch_manager(branch=self.destination)
        self.approver = TestDataFactory.create_branch_manager(branch=self.destination)
        self.source_manager = TestDataFactory.create_branch_manager(branch=self.source)
        self.gm = TestDataFactory.create_general_manager(branch=self.source)
        self.product = TestDataFactory.create_product()
        self.stock = TestDataFactory.create_inventory(self.source, self.product, quantity=50)
        self.transfer = TestDataFactory.create_transfer(
            self.source, self.destination, requested_by=self.requester, items=[(self.product, 5)],
        )

    def url(self, action):
        return f'/api/v1/inventory/transfers/{self.transfer.id}/{action}/'

    def test_destination_manager_approves(self):
        self.client.authenticate_user(self.approver)
        response = self.client.post(self.url('approve'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')
        self.assertEqual(response.data['allowed_actions'], [])

        self.transfer.refresh_from_db()
        self.assertEqual(self.transfer.approved_by, self.approver)
        self.assertTrue(Notification.objects.filter(user=self.requester, title='Transfer approved').exists())
        self.assertTrue(AuditLog.objects.filter(action='transfer_approve').exists())

    def test_destination_manager_rejects(self):
        self.client.authenticate_user(self.approver)
        response = self.client.post(self.url('reject'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'rejected')
        self.assertTrue(Notification.objects.filter(user=self.requester, title='Transfer rejected').exists())

    def test_source_manager_cannot_approve(self):
        self.client.authenticate_user(self.source_manager)
        response = self.client.post(self.url('approve'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.transfer.refresh_from_db()
        self.assertEqual(self.transfer.status, 'pending')

    def test_general_manager_cannot_approve(self):
        self.client.authenticate_user(self.gm)
        response = self.client.post(self.url('approve'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_second_decision_conflicts(self):
        self.client.authenticate_user(self.approver)
        self.client.post(self.url('approve'))
        response = self.client.post(self.url('reject'))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.transfer.refresh_from_db()
        self.assertEqual(self.transfer.status, 'approved')

    def test_general_manager_completes_approved_transfer(self):
        self.client.authenticate_user(self.approver)
        self.client.post(self.url('approve'))

        self.client.authenticate_user(self.gm)
        detail = self.client.get(f'/api/v1/inventory/transfers/{self.transfer.id}/')
        self.assertEqual(detail.data['allowed_actions'], ['complete'])

        response = self.client.post(self.url('complete'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'completed')
        self.assertIsNotNone(response.data['completion_date'])

        self.stock.refresh_from_db()
        self.assertEqual(self.stock.quantity, 50)

    def test_cannot_complete_pending(self):
        self.client.authenticate_user(self.gm)
        response = self.client.post(self.url('complete'))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_cannot_complete_rejected(self):
        session = session_from_user(self.approver)
        services.reject_transfer(session, self.transfer)
        with self.assertRaises(TransferTransitionError):
            services.complete_transfer(session_from_user(self.gm), self.transfer)

    def test_branch_manager_cannot_complete(self):
        session = session_from_user(self.approver)
        services.approve_transfer(session, self.transfer)
        with self.assertRaises(TransferPermissionError):
            services.complete_transfer(session, self.transfer)

    def test_allowed_actions_per_viewer(self):
        self.client.authenticate_user(self.approver)
        response = self.client.get(f'/api/v1/inventory/transfers/{self.transfer.id}/')
        self.assertEqual(response.data['allowed_actions'], ['approve', 'reject'])

        self.client.authenticate_user(self.source_manager)
        response = self.client.get(f'/api/v1/inventory/transfers/{self.transfer.id}/')
        self.assertEqual(response.data['allowed_actions'], [])

    def test_detail_hidden_from_unrelated_branch(self):
        """Only the two branches involved, or a general manager, can read a transfer"""
        outsider = TestDataFactory.create_branch_manager(branch=TestDataFactory.create_branch())
        self.client.authenticate_user(outsider)
        response = self.client.get(f'/api/v1/inventory/transfers/{self.transfer.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.gm)
        response = self.client.get(f'/api/v1/inventory/transfers/{self.transfer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
