"""
Tests for notifications and the polling endpoint
"""
from datetime import timedelta
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Notification
from .services import notify_branch_managers, target_for


class NotificationServiceTests(TestCase):
    def test_target_for_known_types(self):
        self.assertEqual(target_for('inventory_transfer', 7), '/inventory/transfers/7')
        self.assertEqual(target_for('low_stock', 3), '/inventory/products?lowStock=true')
        self.assertIsNone(target_for('something_else', 1))
        self.assertIsNone(target_for(None, None))

    def test_notify_branch_managers_only(self):
        branch = TestDataFactory.create_branch()
        manager = TestDataFactory.create_branch_manager(branch=branch)
        TestDataFactory.create_branch_manager(branch=branch, is_active=False)
        TestDataFactory.create_accountant(branch=branch)
        TestDataFactory.create_branch_manager()

        created = notify_branch_managers(branch, 'Heads up', 'Something happened')
        self.assertEqual([n.user for n in created], [manager])


class NotificationEndpointTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_branch_manager()
        self.other = TestDataFactory.create_branch_manager()
        self.first = TestDataFactory.create_notification(self.user, title='First')
        self.second = TestDataFactory.create_notification(
            self.user, title='Second', reference_type='inventory_transfer', reference_id='12',
        )
        TestDataFactory.create_notification(self.user, title='Old news', read=True)
        TestDataFactory.create_notification(self.other, title='Not mine')
        self.client.authenticate_user(self.user)

    def test_list_own_with_unread_count(self):
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['unread_count'], 2)
        titles = {n['title'] for n in response.data['results']}
        self.assertEqual(titles, {'First', 'Second', 'Old news'})

    def test_target_included(self):
        response = self.client.get('/api/v1/notifications/')
        by_title = {n['title']: n for n in response.data['results']}
        self.assertEqual(by_title['Second']['target'], '/inventory/transfers/12')
        self.assertIsNone(by_title['First']['target'])

    def test_unread_only(self):
        response = self.client.get('/api/v1/notifications/', {'unread': 'true'})
        self.assertEqual(len(response.data['results']), 2)

    def test_since_returns_newer_only(self):
        cutoff = timezone.now()
        Notification.objects.filter(pk=self.first.pk).update(created_at=cutoff - timedelta(minutes=5))
        Notification.objects.filter(pk=self.second.pk).update(created_at=cutoff + timedelta(minutes=5))
        Notification.objects.filter(user=self.user, title='Old news').update(created_at=cutoff - timedelta(hours=1))

        response = self.client.get('/api/v1/notifications/', {'since': cutoff.isoformat()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n['title'] for n in response.data['results']], ['Second'])

    def test_invalid_since(self):
        response = self.client.get('/api/v1/notifications/', {'since': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_read(self):
        response = self.client.post(f'/api/v1/notifications/{self.first.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertTrue(self.first.read)

    def test_cannot_mark_someone_elses(self):
        theirs = Notification.objects.get(title='Not mine')
        response = self.client.post(f'/api/v1/notifications/{theirs.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        response = self.client.post('/api/v1/notifications/read-all/')
        self.assertEqual(response.data['updated'], 2)
        self.assertFalse(Notification.objects.filter(user=self.user, read=False).exists())
        self.assertTrue(Notification.objects.filter(user=self.other, read=False).exists())

    def test_create(self):
        response = self.client.post('/api/v1/notifications/', {
            'user': self.other.id,
            'title': 'Hello',
            'message': 'Welcome aboard',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Notification.objects.filter(user=self.other, title='Hello').exists())
