"""
Tests for users, the capability gate, sessions, general manager bootstrap
and audit logs
"""
from types import SimpleNamespace
from io import StringIO
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from rest_framework import status
from retail_erp.core import capabilities
from retail_erp.core.capabilities import (
    ACCOUNTANT, BRANCH_MANAGER, GENERAL_MANAGER, NAVIGATION,
    navigation_for, dashboard_for, resolve_capabilities, transfer_actions,
)
from retail_erp.core.exceptions import BootstrapError
from retail_erp.core.models import User, AuditLog
from retail_erp.core.services import bootstrap_general_manager, provision_user, has_general_manager
from retail_erp.core.session import Session, session_from_user
from retail_erp.core.test_utils import TestDataFactory, AuthenticatedAPIClient, TEST_PASSWORD


def make_session(role, branch_id=None, user_id=1):
    return Session(
        user_id=user_id,
        email='someone@test.com',
        full_name='Someone',
        role=role,
        branch_id=branch_id,
        capabilities=resolve_capabilities(role),
    )


class CapabilityTests(TestCase):
    """Role to capability, navigation and dashboard resolution"""

    def test_roles_do_not_inherit(self):
        """A general manager has no capability that is only listed for other roles"""
        self.assertIn(capabilities.DECIDE_TRANSFERS, resolve_capabilities(BRANCH_MANAGER))
        self.assertNotIn(capabilities.DECIDE_TRANSFERS, resolve_capabilities(GENERAL_MANAGER))
        self.assertNotIn(capabilities.VIEW_INVENTORY, resolve_capabilities(ACCOUNTANT))

    def test_unknown_role_has_no_capabilities(self):
        self.assertEqual(resolve_capabilities('cashier'), frozenset())
        self.assertEqual(resolve_capabilities(None), frozenset())

    def test_navigation_never_includes_entries_outside_allowed_roles(self):
        for role in (ACCOUNTANT, BRANCH_MANAGER, GENERAL_MANAGER, 'cashier', None):
            keys = {item['key'] for item in navigation_for(role)}
            for item in NAVIGATION:
                if item.roles is not None and role not in item.roles:
                    self.assertNotIn(item.key, keys, f'{item.key} leaked to {role}')

    def test_navigation_per_role(self):
        self.assertEqual(
            [i['key'] for i in navigation_for(ACCOUNTANT)],
            ['dashboard', 'accounting', 'settings', 'help', 'logout'],
        )
        self.assertEqual(
            [i['key'] for i in navigation_for(BRANCH_MANAGER)],
            ['dashboard', 'accounting', 'inventory', 'settings', 'help', 'logout'],
        )
        self.assertEqual(
            [i['key'] for i in navigation_for(GENERAL_MANAGER)],
            ['dashboard', 'accounting', 'inventory', 'users', 'settings', 'help', 'logout'],
        )

    def test_unknown_role_only_sees_unrestricted_entries(self):
        self.assertEqual(
            [i['key'] for i in navigation_for('cashier')],
            ['dashboard', 'settings', 'help', 'logout'],
        )

    def test_dashboard_for(self):
        self.assertEqual(dashboard_for(GENERAL_MANAGER), 'general_manager')
        self.assertEqual(dashboard_for(BRANCH_MANAGER), 'branch_manager')
        self.assertEqual(dashboard_for(ACCOUNTANT), 'accountant')
        self.assertEqual(dashboard_for('cashier'), 'generic')


class TransferActionTests(TestCase):
    """Which transfer actions each role may perform"""

    def transfer(self, status, to_branch_id=2):
        return SimpleNamespace(status=status, to_branch_id=to_branch_id, from_branch_id=1)

    def test_destination_branch_manager_can_decide_pending(self):
        session = make_session(BRANCH_MANAGER, branch_id=2)
        self.assertEqual(transfer_actions(session, self.transfer('pending')), {'approve', 'reject'})

    def test_other_branch_manager_gets_nothing(self):
        session = make_session(BRANCH_MANAGER, branch_id=1)
        self.assertEqual(transfer_actions(session, self.transfer('pending')), set())

    def test_non_pending_transfers_offer_no_decision(self):
        session = make_session(BRANCH_MANAGER, branch_id=2)
        for status_value in ('approved', 'rejected', 'completed'):
            self.assertEqual(transfer_actions(session, self.transfer(status_value)), set())

    def test_general_manager_completes_approved_only(self):
        session = make_session(GENERAL_MANAGER, branch_id=2)
        self.assertEqual(transfer_actions(session, self.transfer('pending')), set())
        self.assertEqual(transfer_actions(session, self.transfer('approved')), {'complete'})

    def test_accountant_gets_nothing(self):
        session = make_session(ACCOUNTANT, branch_id=2)
        self.assertEqual(transfer_actions(session, self.transfer('pending')), set())

    def test_no_session(self):
        self.assertEqual(transfer_actions(None, self.transfer('pending')), set())


class SessionTests(TestCase):
    def test_session_from_user(self):
        branch = TestDataFactory.create_branch()
        user = TestDataFactory.create_accountant(branch=branch)
        session = session_from_user(user)
        self.assertEqual(session.role, ACCOUNTANT)
        self.assertEqual(session.branch_id, branch.id)
        self.assertTrue(session.can(capabilities.VIEW_ACCOUNTING))

    @override_settings(DEFAULT_USER_ROLE='accountant')
    def test_missing_role_falls_back_to_default(self):
        user = TestDataFactory.create_user(role=None)
        self.assertEqual(session_from_user(user).role, ACCOUNTANT)


class GeneralManagerBootstrapTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.url = '/api/v1/setup/general-manager/'

    def test_status_without_general_manager(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['has_general_manager'])

    @override_settings(INITIAL_GENERAL_MANAGER_EMAIL='boss@test.com')
    def test_bootstrap_creates_general_manager(self):
        response = self.client.post(self.url, {
            'password': TEST_PASSWORD,
            'full_name': 'The Boss',
            'branch_id': self.branch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='boss@test.com')
        self.assertEqual(user.role, GENERAL_MANAGER)
        self.assertEqual(user.branch, self.branch)
        self.assertTrue(user.check_password(TEST_PASSWORD))
        self.assertTrue(AuditLog.objects.filter(action='general_manager_bootstrap').exists())

    def test_bootstrap_refused_once_general_manager_exists(self):
        TestDataFactory.create_general_manager(branch=self.branch)
        response = self.client.post(self.url, {
            'email': 'second@test.com',
            'password': TEST_PASSWORD,
            'full_name': 'Second Boss',
            'branch_id': self.branch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'A general manager already exists')
        self.assertFalse(User.objects.filter(email='second@test.com').exists())

    def test_bootstrap_missing_fields(self):
        response = self.client.post(self.url, {'full_name': 'No Password'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Missing required fields')

    def test_service_refuses_second_general_manager(self):
        bootstrap_general_manager(TEST_PASSWORD, 'First', self.branch.id, email='first@test.com')
        self.assertTrue(has_general_manager())
        with self.assertRaises(BootstrapError):
            bootstrap_general_manager(TEST_PASSWORD, 'Second', self.branch.id, email='second@test.com')

    def test_management_command(self):
        out = StringIO()
        call_command('create_initial_general_manager', '--password', TEST_PASSWORD,
                     '--full-name', 'Command Boss', '--email', 'cmd@test.com', stdout=out)
        self.assertIn('cmd@test.com', out.getvalue())
        self.assertTrue(User.objects.filter(email='cmd@test.com', role=GENERAL_MANAGER).exists())

        with self.assertRaises(CommandError):
            call_command('create_initial_general_manager', '--password', TEST_PASSWORD,
                         '--full-name', 'Again', '--email', 'again@test.com', stdout=StringIO())


class AuthTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()

    def test_login_with_email(self):
        user = TestDataFactory.create_branch_manager(branch=self.branch)
        response = self.client.post('/api/v1/auth/login/', {
            'email': user.email,
            'password': TEST_PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_inactive_user_cannot_login(self):
        user = TestDataFactory.create_branch_manager(branch=self.branch, is_active=False)
        response = self.client.post('/api/v1/auth/login/', {
            'email': user.email,
            'password': TEST_PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register_as_accountant(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'new@test.com',
            'password': TEST_PASSWORD,
            'password_confirm': TEST_PASSWORD,
            'full_name': 'New Accountant',
            'role': ACCOUNTANT,
            'branch': self.branch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], ACCOUNTANT)
        self.assertIn('access', response.data)

    def test_register_cannot_choose_general_manager(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'sneaky@test.com',
            'password': TEST_PASSWORD,
            'password_confirm': TEST_PASSWORD,
            'full_name': 'Sneaky',
            'role': GENERAL_MANAGER,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='sneaky@test.com').exists())

    def test_me_returns_capabilities_and_navigation(self):
        user = TestDataFactory.create_branch_manager(branch=self.branch)
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], BRANCH_MANAGER)
        self.assertEqual(response.data['dashboard'], 'branch_manager')
        self.assertIn(capabilities.USE_POS, response.data['capabilities'])
        keys = [item['key'] for item in response.data['navigation']]
        self.assertIn('inventory', keys)
        self.assertNotIn('users', keys)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_own_profile(self):
        user = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(user)
        response = self.client.patch('/api/v1/auth/me/', {'full_name': 'Renamed', 'role': GENERAL_MANAGER},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.full_name, 'Renamed')
        self.assertEqual(user.role, ACCOUNTANT)

    def test_change_password(self):
        user = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/auth/password/', {
            'current_password': 'wrong-password',
            'new_password': 'An0ther-Strong-Pass',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/auth/password/', {
            'current_password': TEST_PASSWORD,
            'new_password': 'An0ther-Strong-Pass',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.check_password('An0ther-Strong-Pass'))


class UserManagementTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.gm = TestDataFactory.create_general_manager(branch=self.branch)

    def test_general_manager_provisions_user(self):
        self.client.authenticate_user(self.gm)
        response = self.client.post('/api/v1/users/', {
            'email': 'bm@test.com',
            'password': TEST_PASSWORD,
            'full_name': 'Branch Boss',
            'role': BRANCH_MANAGER,
            'branch': self.branch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='bm@test.com')
        self.assertEqual(user.role, BRANCH_MANAGER)
        self.assertEqual(user.branch, self.branch)

    def test_second_general_manager_refused(self):
        self.client.authenticate_user(self.gm)
        response = self.client.post('/api/v1/users/', {
            'email': 'gm2@test.com',
            'password': TEST_PASSWORD,
            'full_name': 'Another GM',
            'role': GENERAL_MANAGER,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        with self.assertRaises(BootstrapError):
            provision_user('gm3@test.com', TEST_PASSWORD, 'GM3', GENERAL_MANAGER)

    def test_branch_manager_cannot_manage_users(self):
        bm = TestDataFactory.create_branch_manager(branch=self.branch)
        self.client.authenticate_user(bm)
        self.assertEqual(self.client.get('/api/v1/users/').status_code, status.HTTP_403_FORBIDDEN)

    def test_list_users(self):
        TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(self.gm)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertEqual(response.data[0]['branch_name'], self.branch.name)

    def test_update_role_and_branch(self):
        other_branch = TestDataFactory.create_branch()
        user = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(self.gm)
        response = self.client.patch(f'/api/v1/users/{user.id}/', {
            'role': BRANCH_MANAGER,
            'branch': other_branch.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.role, BRANCH_MANAGER)
        self.assertEqual(user.branch, other_branch)

    def test_cannot_delete_self(self):
        self.client.authenticate_user(self.gm)
        response = self.client.delete(f'/api/v1/users/{self.gm.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.gm.pk).exists())

    def test_delete_user(self):
        user = TestDataFactory.create_accountant(branch=self.branch)
        self.client.authenticate_user(self.gm)
        response = self.client.delete(f'/api/v1/users/{user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=user.pk).exists())


class AuditLogTests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.branch = TestDataFactory.create_branch()
        self.gm = TestDataFactory.create_general_manager(branch=self.branch)
        self.accountant = TestDataFactory.create_accountant(branch=self.branch)
        AuditLog.objects.create(user=self.gm, action='create', model_name='Branch', object_id='1')
        AuditLog.objects.create(user=self.accountant, action='transaction_create',
                                model_name='FinancialTransaction', object_id='2')

    def test_general_manager_sees_all(self):
        self.client.authenticate_user(self.gm)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_others_see_own(self):
        self.client.authenticate_user(self.accountant)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['action'], 'transaction_create')

    def test_filter_by_action(self):
        self.client.authenticate_user(self.gm)
        response = self.client.get('/api/v1/audit-logs/', {'action': 'create'})
        self.assertEqual(len(response.data), 1)
