"""
Cache invalidation signals
Drop cached creator listings whenever the data behind them changes
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging

from marketplace.catalog.models import Package
from marketplace.core.cache_utils import invalidate_creators_cache
from .models import CreatorProfile, SocialMediaAccount, PortfolioItem

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=CreatorProfile)
@receiver([post_save, post_delete], sender=SocialMediaAccount)
@receiver([post_save, post_delete], sender=PortfolioItem)
@receiver([post_save, post_delete], sender=Package)
def invalidate_creator_listings(sender, instance, **kwargs):
    logger.debug(f"{sender.__name__} {instance.pk} changed, invalidating creator listings")
    invalidate_creators_cache()
