"""
Cache invalidation signals
Drop cached dashboard figures when the data behind them changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from allevapp.core.cache_utils import invalidate_prefix
from allevapp.farms.models import Equipment
from .models import Report

DASHBOARD_CACHE_PREFIX = 'dashboard'


@receiver([post_save, post_delete], sender=Report)
@receiver([post_save, post_delete], sender=Equipment)
def invalidate_dashboard_cache(sender, **kwargs):
    invalidate_prefix(DASHBOARD_CACHE_PREFIX)
