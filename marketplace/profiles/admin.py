from django.contrib import admin
from .models import CreatorProfile, BrandProfile, SocialMediaAccount, PortfolioItem, KYC, Campaign


class SocialMediaAccountInline(admin.TabularInline):
    model = SocialMediaAccount
    extra = 0


@admin.register(CreatorProfile)
class CreatorProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'location_city', 'rating', 'total_collaborations', 'verified', 'featured', 'created_at']
    list_filter = ['verified', 'featured', 'gender']
    search_fields = ['user__name', 'user__email', 'user__phone', 'location_city']
    inlines = [SocialMediaAccountInline]
    readonly_fields = ['created_at', 'updated_at']


@admin.register(BrandProfile)
class BrandProfileAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'user', 'industry', 'business_type', 'verified', 'created_at']
    list_filter = ['business_type', 'verified']
    search_fields = ['company_name', 'user__name', 'user__email', 'industry']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(PortfolioItem)
class PortfolioItemAdmin(admin.ModelAdmin):
    list_display = ['title', 'creator', 'brand', 'media_type', 'platform', 'created_at']
    list_filter = ['media_type', 'platform']
    search_fields = ['title', 'file_name']


@admin.register(KYC)
class KYCAdmin(admin.ModelAdmin):
    list_display = ['creator', 'document_type', 'status', 'submitted_at', 'verified_at']
    list_filter = ['document_type', 'status']
    search_fields = ['creator__user__name', 'document_number']


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ['title', 'brand', 'budget_min', 'budget_max', 'status', 'created_at']
    list_filter = ['status']
    search_fields = ['title', 'brand__company_name']
