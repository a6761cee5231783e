from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model: login by email, one role, optional home branch"""
    ROLE_ACCOUNTANT = 'accountant'
    ROLE_BRANCH_MANAGER = 'branch_manager'
    ROLE_GENERAL_MANAGER = 'general_manager'

    ROLE_CHOICES = [
        (ROLE_ACCOUNTANT, 'Accountant'),
        (ROLE_BRANCH_MANAGER, 'Branch Manager'),
        (ROLE_GENERAL_MANAGER, 'General Manager'),
    ]

    email = models.EmailField(unique=True)
    full_name = models.CharField(max_length=200, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, blank=True, null=True, db_index=True)
    branch = models.ForeignKey('branches.Branch', on_delete=models.SET_NULL, null=True, blank=True, related_name='users')
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self):
        return self.full_name or self.email

    class Meta:
        db_table = 'users'


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('stock_update', 'Stock Updated'),
        ('transaction_create', 'Transaction Created'),
        ('invoice_create', 'Invoice Created'),
        ('pos_checkout', 'POS Checkout'),
        ('transfer_create', 'Transfer Requested'),
        ('transfer_approve', 'Transfer Approved'),
        ('transfer_reject', 'Transfer Rejected'),
        ('transfer_complete', 'Transfer Completed'),
        ('user_provision', 'User Provisioned'),
        ('general_manager_bootstrap', 'General Manager Bootstrapped'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, branch name)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., POS-1700000000000)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_ref_idx'),
        ]
