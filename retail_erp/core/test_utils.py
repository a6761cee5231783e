"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from retail_erp.accounting.models import FinancialTransaction
from retail_erp.branches.models import Branch
from retail_erp.catalog.models import Product
from retail_erp.inventory.models import Inventory, InventoryTransfer, InventoryTransferItem
from retail_erp.notifications.models import Notification
from decimal import Decimal
from django.utils import timezone
import random
import string

User = get_user_model()

TEST_PASSWORD = 'Str0ng-Test-Pass!'


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_branch(name=None, address=None):
        """Create a test branch"""
        if not name:
            name = f'Branch_{TestDataFactory.random_string(6)}'
        return Branch.objects.create(
            name=name,
            address=address or f'Test Address {name}',
            phone='1234567890'
        )

    @staticmethod
    def create_user(role=None, branch=None, email=None, password=TEST_PASSWORD, full_name=None, is_active=True):
        """Create a test user with a role and home branch"""
        username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            full_name=full_name or username,
            role=role,
            branch=branch,
            is_active=is_active,
        )
        return user

    @staticmethod
    def create_general_manager(branch=None, **kwargs):
        return TestDataFactory.create_user(role=User.ROLE_GENERAL_MANAGER, branch=branch, **kwargs)

    @staticmethod
    def create_branch_manager(branch=None, **kwargs):
        if branch is None:
            branch = TestDataFactory.create_branch()
        return TestDataFactory.create_user(role=User.ROLE_BRANCH_MANAGER, branch=branch, **kwargs)

    @staticmethod
    def create_accountant(branch=None, **kwargs):
        return TestDataFactory.create_user(role=User.ROLE_ACCOUNTANT, branch=branch, **kwargs)

    @staticmethod
    def create_product(name=None, sku=None, price=None, cost=None):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU_{TestDataFactory.random_string(8)}'
        return Product.objects.create(
            name=name,
            sku=sku,
            price=price if price is not None else Decimal('10.00'),
            cost=cost if cost is not None else Decimal('6.00'),
        )

    @staticmethod
    def create_inventory(branch, product=None, quantity=50, min_quantity=None):
        """Create an inventory row (and a product when none is given)"""
        if product is None:
            product = TestDataFactory.create_product()
        return Inventory.objects.create(
            branch=branch,
            product=product,
            quantity=quantity,
            min_quantity=min_quantity,
        )

    @staticmethod
    def create_transaction(branch, transaction_type='sale', amount=None, user=None, transaction_date=None,
                           reference_number=None):
        """Create a financial transaction"""
        return FinancialTransaction.objects.create(
            branch=branch,
            transaction_type=transaction_type,
            amount=amount if amount is not None else Decimal('100.00'),
            description=f'Test {transaction_type}',
            reference_number=reference_number,
            transaction_date=transaction_date or timezone.now(),
            created_by=user,
        )

    @staticmethod
    def create_transfer(from_branch, to_branch, requested_by=None, status='pending', items=None):
        """Create a transfer; ``items`` is a list of (product, quantity)"""
        transfer = InventoryTransfer.objects.create(
            from_branch=from_branch,
            to_branch=to_branch,
            status=status,
            requested_by=requested_by,
        )
        if items is None:
            items = [(TestDataFactory.create_product(), 5)]
        for product, quantity in items:
            InventoryTransferItem.objects.create(transfer=transfer, product=product, quantity=quantity)
        return transfer

    @staticmethod
    def create_notification(user, title=None, read=False, reference_type=None, reference_id=None):
        return Notification.objects.create(
            user=user,
            title=title or f'Notice {TestDataFactory.random_string(4)}',
            message='Test notification',
            read=read,
            reference_type=reference_type,
            reference_id=reference_id,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
