from django.db import models


class Notification(models.Model):
    TYPE_INFO = 'info'
    TYPE_TRANSFER = 'transfer'
    TYPE_LOW_STOCK = 'low_stock'
    TYPE_INVOICE = 'invoice'

    TYPE_CHOICES = [
        (TYPE_INFO, 'Info'),
        (TYPE_TRANSFER, 'Transfer'),
        (TYPE_LOW_STOCK, 'Low Stock'),
        (TYPE_INVOICE, 'Invoice'),
    ]

    user = models.ForeignKey('core.User', on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, default=TYPE_INFO)
    read = models.BooleanField(default=False)
    reference_id = models.CharField(max_length=100, blank=True, null=True)
    reference_type = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.title} -> {self.user}"

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'read'], name='idx_notifications_user_read'),
        ]
