"""
Cache invalidation signals
Drop the cached branch list whenever a branch changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from retail_erp.core.cache_utils import invalidate_branch_list_cache
from .models import Branch


@receiver(post_save, sender=Branch)
def invalidate_branch_cache_on_save(sender, instance, **kwargs):
    invalidate_branch_list_cache()


@receiver(post_delete, sender=Branch)
def invalidate_branch_cache_on_delete(sender, instance, **kwargs):
    invalidate_branch_list_cache()
