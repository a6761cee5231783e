from rest_framework import serializers
from django.contrib.auth import get_user_model
from .models import Notification
from .services import target_for

User = get_user_model()


class NotificationSerializer(serializers.ModelSerializer):
    target = serializers.SerializerMethodField()

    class Meta:
        model = Notification
        fields = ['id', 'user', 'title', 'message', 'type', 'read', 'reference_id', 'reference_type',
                  'target', 'created_at']
        read_only_fields = ['read', 'created_at']

    def get_target(self, obj):
        return target_for(obj.reference_type, obj.reference_id)
