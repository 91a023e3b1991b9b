from django.db import models
from decimal import Decimal

from marketplace.core.conf import get_setting
from marketplace.profiles.models import CreatorProfile


def default_currency():
    return get_setting('DEFAULT_CURRENCY')


class Package(models.Model):
    """A fixed-price service offered by a creator"""
    TYPE_CHOICES = [
        ('predefined', 'Predefined'),
        ('custom', 'Custom'),
    ]

    creator = models.ForeignKey(CreatorProfile, on_delete=models.CASCADE, related_name='packages')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    platform = models.CharField(max_length=20, blank=True)
    content_type = models.CharField(max_length=50, blank=True)
    quantity = models.PositiveIntegerField(default=1, help_text="Number of content pieces delivered")
    revisions = models.PositiveIntegerField(default=1, help_text="Revisions included in the price")
    delivery_days = models.PositiveIntegerField(null=True, blank=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default=default_currency)
    deliverables = models.JSONField(default=list, blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='predefined')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'packages'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['creator', 'is_active'], name='packages_creator_active_idx'),
            models.Index(fields=['platform'], name='packages_platform_idx'),
        ]

    def __str__(self):
        return self.title
