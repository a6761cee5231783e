"""
Tests for branch endpoints and the branch list cache
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from retail_erp.core.cache_utils import get_cached_branch_list, get_branch_list_cache_key
from retail_erp.core.models import AuditLog
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from .models import Branch


class BranchListTests(TestCase):
    """Listing and creating branches"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch(name='Downtown')
        self.gm = TestDataFactory.create_general_manager(branch=self.branch)
        self.manager = TestDataFactory.create_branch_manager(branch=self.branch)

    def test_any_authenticated_user_can_list(self):
        self.client.authenticate_user(self.manager)
        response = self.client.get('/api/v1/branches/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([b['name'] for b in response.data], ['Downtown'])

    def test_unauthenticated_list_refused(self):
        response = self.client.get('/api/v1/branches/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_is_cached(self):
        self.client.authenticate_user(self.manager)
        self.client.get('/api/v1/branches/')
        cached = get_cached_branch_list()
        self.assertIsNotNone(cached)
        self.assertEqual(cached[0]['name'], 'Downtown')

    def test_cache_invalidated_on_save(self):
        """Saving a branch drops the cached list"""
        self.client.authenticate_user(self.manager)
        self.client.get('/api/v1/branches/')
        TestDataFactory.create_branch(name='Uptown')
        self.assertIsNone(cache.get(get_branch_list_cache_key()))

        response = self.client.get('/api/v1/branches/')
        self.assertEqual(len(response.data), 2)

    def test_general_manager_creates_branch(self):
        self.client.authenticate_user(self.gm)
        response = self.client.post('/api/v1/branches/', {
            'name': 'Harbour',
            'address': '1 Quay Street',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Branch.objects.filter(name='Harbour').exists())
        self.assertTrue(AuditLog.objects.filter(model_name='Branch', action='create').exists())

    def test_branch_manager_cannot_create(self):
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/branches/', {'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Only general managers can create branches')

    def test_name_required(self):
        self.client.authenticate_user(self.gm)
        response = self.client.post('/api/v1/branches/', {'address': 'Somewhere'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class BranchDetailTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch(name='Downtown')
        self.gm = TestDataFactory.create_general_manager(branch=self.branch)
        self.accountant = TestDataFactory.create_accountant(branch=self.branch)
        self.url = f'/api/v1/branches/{self.branch.id}/'

    def test_retrieve(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Downtown')

    def test_retrieve_missing(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.get('/api/v1/branches/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_by_general_manager(self):
        self.client.authenticate_user(self.gm)
        response = self.client.patch(self.url, {'phone': '555-0100'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.branch.refresh_from_db()
        self.assertEqual(self.branch.phone, '555-0100')

    def test_update_by_accountant_refused(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.patch(self.url, {'phone': '555-0100'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete(self):
        other = TestDataFactory.create_branch(name='Closing')
        self.client.authenticate_user(self.gm)
        response = self.client.delete(f'/api/v1/branches/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Branch.objects.filter(pk=other.pk).exists())
