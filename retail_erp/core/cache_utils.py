"""
Cache keys and helpers shared by the apps.
Backed by Redis through django-redis when REDIS_URL is set.
"""
import logging

from django.conf import settings
from django.core.cache import cache

logger = logging.getLogger('retail_erp.core')

BRANCH_LIST_KEY = 'branch_list'


def get_branch_list_cache_key():
    return BRANCH_LIST_KEY


def get_cached_branch_list():
    data = cache.get(get_branch_list_cache_key())
    if data is not None:
        logger.debug("Cache HIT for branch list")
    else:
        logger.debug("Cache MISS for branch list")
    return data


def cache_branch_list(data, ttl=None):
    if ttl is None:
        ttl = settings.BRANCH_LIST_CACHE_TTL
    cache.set(get_branch_list_cache_key(), data, ttl)
    logger.debug(f"Cached branch list ({len(data)} branches)")


def invalidate_branch_list_cache():
    try:
        cache.delete(get_branch_list_cache_key())
        logger.info("Invalidated branch list cache")
    except Exception as e:
        logger.warning(f"Could not invalidate branch list cache: {str(e)}")
