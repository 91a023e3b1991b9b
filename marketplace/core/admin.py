from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, PhoneVerification, AuditLog


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['username', 'name', 'email', 'phone', 'user_type', 'status', 'agent_status', 'date_joined']
    list_filter = ['user_type', 'status', 'auth_provider', 'agent_status', 'is_staff']
    search_fields = ['username', 'name', 'email', 'phone']
    ordering = ['-date_joined']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Marketplace', {'fields': (
            'name', 'phone', 'user_type', 'status', 'auth_provider', 'phone_verified',
            'email_verified', 'onboarding_step', 'onboarding_completed', 'profile_image_url',
            'agent_status', 'is_online',
        )}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Marketplace', {'fields': ('name', 'phone', 'user_type')}),
    )


@admin.register(PhoneVerification)
class PhoneVerificationAdmin(admin.ModelAdmin):
    list_display = ['phone', 'expires_at', 'verified_at', 'attempts', 'created_at']
    search_fields = ['phone']
    ordering = ['-created_at']
    readonly_fields = ['phone', 'code', 'expires_at', 'verified_at', 'attempts', 'created_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['user', 'action', 'model_name', 'object_id', 'object_reference', 'ip_address', 'created_at']
    list_filter = ['action', 'model_name', 'created_at']
    search_fields = ['user__username', 'user__name', 'model_name', 'object_id', 'object_reference']
    ordering = ['-created_at']
    readonly_fields = ['user', 'action', 'model_name', 'object_id', 'object_name', 'object_reference', 'changes', 'ip_address', 'created_at']
