from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Marketplace account: a brand, a creator, or a support agent"""
    USER_TYPE_CHOICES = [
        ('brand', 'Brand'),
        ('creator', 'Creator'),
        ('admin', 'Agent'),
        ('super_admin', 'Super Admin'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('pending', 'Pending'),
        ('suspended', 'Suspended'),
    ]

    AUTH_PROVIDER_CHOICES = [
        ('phone', 'Phone'),
        ('google', 'Google'),
        ('password', 'Password'),
    ]

    AGENT_STATUS_CHOICES = [
        ('available', 'Available'),
        ('busy', 'Busy'),
        ('away', 'Away'),
        ('offline', 'Offline'),
    ]

    name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=20, unique=True, blank=True, null=True)
    user_type = models.CharField(max_length=20, choices=USER_TYPE_CHOICES, default='creator')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    auth_provider = models.CharField(max_length=20, choices=AUTH_PROVIDER_CHOICES, default='phone')
    phone_verified = models.BooleanField(default=False)
    email_verified = models.BooleanField(default=False)
    onboarding_step = models.PositiveSmallIntegerField(default=0)
    onboarding_completed = models.BooleanField(default=False)
    profile_image_url = models.URLField(max_length=500, blank=True)
    agent_status = models.CharField(max_length=20, choices=AGENT_STATUS_CHOICES, default='offline')
    is_online = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'
        indexes = [
            models.Index(fields=['user_type', 'status'], name='users_type_status_idx'),
        ]

    def __str__(self):
        return self.name or self.email or self.phone or self.username

    @property
    def is_brand(self):
        return self.user_type == 'brand'

    @property
    def is_creator(self):
        return self.user_type == 'creator'

    @property
    def is_agent(self):
        return self.user_type in ('admin', 'super_admin')

    @property
    def is_super_admin(self):
        return self.user_type == 'super_admin'

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username


class PhoneVerification(models.Model):
    """One-time code sent to a phone number for passwordless sign-in"""
    phone = models.CharField(max_length=20, db_index=True)
    code = models.CharField(max_length=6)
    expires_at = models.DateTimeField()
    verified_at = models.DateTimeField(null=True, blank=True)
    attempts = models.PositiveSmallIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'phone_verifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['phone', '-created_at'], name='phone_verif_phone_idx'),
        ]

    def __str__(self):
        return f"{self.phone} ({'verified' if self.verified_at else 'pending'})"


class AuditLog(models.Model):
    """Audit log for critical operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('login', 'Login'),
        ('user_delete', 'Account Deleted'),
        ('cart_add', 'Add to Cart'),
        ('cart_update', 'Cart Update'),
        ('cart_remove', 'Remove from Cart'),
        ('cart_clear', 'Cart Cleared'),
        ('order_checkout', 'Order Checkout'),
        ('order_transition', 'Order Status Changed'),
        ('ticket_status', 'Ticket Status Changed'),
        ('ticket_reassign', 'Ticket Reassigned'),
        ('agent_create', 'Agent Created'),
        ('agent_status', 'Agent Status Changed'),
        ('kyc_submit', 'KYC Submitted'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., package title, order number)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number, ticket number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='audit_logs_created_idx'),
            models.Index(fields=['action'], name='audit_logs_action_idx'),
            models.Index(fields=['model_name'], name='audit_logs_model_idx'),
            models.Index(fields=['object_reference'], name='audit_logs_reference_idx'),
        ]
