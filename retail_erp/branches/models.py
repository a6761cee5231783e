from django.db import models


class Branch(models.Model):
    """Physical store locations, each owning its inventory and transactions"""
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True, null=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'branches'
        verbose_name_plural = 'branches'
        ordering = ['-created_at']
