from django.conf import settings
from django.db import models
from django.utils import timezone
from decimal import Decimal

from marketplace.catalog.models import Package, default_currency
from marketplace.profiles.models import BrandProfile, CreatorProfile


class CartItem(models.Model):
    """A package a brand intends to buy, persisted between sessions"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cart_items')
    package = models.ForeignKey(Package, on_delete=models.CASCADE, related_name='cart_items')
    quantity = models.PositiveIntegerField(default=1)
    delivery_time = models.PositiveIntegerField(null=True, blank=True, help_text="Requested delivery time in days")
    additional_instructions = models.TextField(blank=True)
    references = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'cart_items'
        ordering = ['created_at']
        unique_together = [['user', 'package']]

    def __str__(self):
        return f"{self.package} x {self.quantity}"

    def get_line_total(self):
        return self.package.price * self.quantity


class Order(models.Model):
    """A collaboration: one package bought by a brand from a creator"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('accepted', 'Accepted'),
        ('review', 'In Review'),
        ('revision', 'Revision Requested'),
        ('price_revision_pending', 'Price Revision Pending'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    ACTIVE_STATUSES = ['pending', 'accepted', 'review', 'revision', 'price_revision_pending']

    order_number = models.CharField(max_length=50, unique=True)
    package = models.ForeignKey(Package, on_delete=models.RESTRICT, related_name='orders')
    brand = models.ForeignKey(BrandProfile, on_delete=models.CASCADE, related_name='orders')
    creator = models.ForeignKey(CreatorProfile, on_delete=models.CASCADE, related_name='orders')
    quantity = models.PositiveIntegerField(default=1)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default=default_currency)
    status = models.CharField(max_length=30, choices=STATUS_CHOICES, default='pending')
    order_date = models.DateTimeField(default=timezone.now)
    delivery_time = models.PositiveIntegerField(null=True, blank=True)
    additional_instructions = models.TextField(blank=True)
    references = models.JSONField(default=list, blank=True)
    deliverables = models.JSONField(default=list, blank=True)
    submission_note = models.TextField(blank=True)
    rejection_message = models.TextField(blank=True)
    revision_count = models.PositiveIntegerField(default=0)
    revision_requirements = models.TextField(blank=True)
    price_revision_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    price_revision_reason = models.TextField(blank=True)
    chat_enabled = models.BooleanField(default=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'orders'
        ordering = ['-order_date']
        indexes = [
            models.Index(fields=['status'], name='orders_status_idx'),
            models.Index(fields=['brand', 'creator', 'package', 'status'], name='orders_duplicate_check_idx'),
            models.Index(fields=['-order_date'], name='orders_date_idx'),
        ]

    def __str__(self):
        return self.order_number

    @property
    def is_active(self):
        return self.status in self.ACTIVE_STATUSES

    @property
    def revisions_remaining(self):
        return max(self.package.revisions - self.revision_count, 0)


class OrderStatusHistory(models.Model):
    """One row per order status transition"""
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    action = models.CharField(max_length=50)
    from_status = models.CharField(max_length=30)
    to_status = models.CharField(max_length=30)
    changed_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='order_status_changes')
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_status_history'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.order.order_number}: {self.from_status} -> {self.to_status}"
