from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .capabilities import ACCOUNTANT, BRANCH_MANAGER, ROLES
from .models import User, AuditLog

SELF_REGISTER_ROLES = (ACCOUNTANT, BRANCH_MANAGER)


class UserSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'full_name', 'role', 'branch', 'branch_name', 'phone',
                  'is_active', 'created_at', 'updated_at']
        read_only_fields = ['username', 'email', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    """Self-registration. The general manager role is never available here."""
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=SELF_REGISTER_ROLES)

    class Meta:
        model = User
        fields = ['email', 'password', 'password_confirm', 'full_name', 'role', 'branch', 'phone']

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        return attrs


class UserProvisionSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    full_name = serializers.CharField(max_length=200)
    role = serializers.ChoiceField(choices=ROLES)
    branch = serializers.IntegerField(required=False, allow_null=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)


class UserUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['full_name', 'role', 'branch', 'phone', 'is_active']


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['full_name', 'phone']


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(write_only=True, validators=[validate_password])


class GeneralManagerBootstrapSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField(required=False, allow_blank=True, write_only=True)
    full_name = serializers.CharField(required=False, allow_blank=True)
    branch_id = serializers.IntegerField(required=False, allow_null=True)


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']
