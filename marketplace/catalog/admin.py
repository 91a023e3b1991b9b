from django.contrib import admin
from .models import Package


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ['title', 'creator', 'platform', 'content_type', 'price', 'currency', 'type', 'is_active', 'created_at']
    list_filter = ['platform', 'type', 'is_active', 'currency']
    search_fields = ['title', 'description', 'creator__user__name']
    readonly_fields = ['created_at', 'updated_at']
