from django.conf import settings
from django.db import models
from decimal import Decimal


PLATFORM_CHOICES = [
    ('youtube', 'YouTube'),
    ('instagram', 'Instagram'),
    ('tiktok', 'TikTok'),
    ('twitter', 'Twitter'),
    ('facebook', 'Facebook'),
]

GENDER_CHOICES = [
    ('Male', 'Male'),
    ('Female', 'Female'),
    ('Other', 'Other'),
]


class CreatorProfile(models.Model):
    """Public profile of a content creator"""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='creator_profile')
    bio = models.TextField(blank=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    location_city = models.CharField(max_length=100, blank=True)
    location_state = models.CharField(max_length=100, blank=True)
    location_pincode = models.CharField(max_length=10, blank=True)
    content_categories = models.JSONField(default=list, blank=True)
    languages = models.JSONField(default=list, blank=True)
    platforms = models.JSONField(default=list, blank=True)
    interests = models.JSONField(default=list, blank=True)
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=Decimal('0.00'))
    total_collaborations = models.PositiveIntegerField(default=0)
    average_response_time = models.CharField(max_length=50, blank=True)
    verified = models.BooleanField(default=False)
    featured = models.BooleanField(default=False)
    cover_image_url = models.URLField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'creator_profiles'
        ordering = ['-featured', '-rating', 'id']

    def __str__(self):
        return f"Creator: {self.user}"

    @property
    def primary_platform(self):
        """Platform of the largest social account, falling back to instagram"""
        accounts = sorted(self.social_accounts.all(), key=lambda a: a.follower_count, reverse=True)
        if accounts:
            return accounts[0].platform
        return 'instagram'


class BrandProfile(models.Model):
    """Company profile of a brand buying creator packages"""
    BUSINESS_TYPE_CHOICES = [
        ('SME', 'SME'),
        ('Startup', 'Startup'),
        ('Enterprise', 'Enterprise'),
    ]

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='brand_profile')
    company_name = models.CharField(max_length=255, blank=True)
    industry = models.CharField(max_length=100, blank=True)
    industries = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True)
    languages = models.JSONField(default=list, blank=True)
    role_in_organization = models.CharField(max_length=100, blank=True)
    business_type = models.CharField(max_length=20, choices=BUSINESS_TYPE_CHOICES, blank=True)
    website_url = models.CharField(max_length=500, blank=True)
    location_city = models.CharField(max_length=100, blank=True)
    location_state = models.CharField(max_length=100, blank=True)
    location_pincode = models.CharField(max_length=10, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    logo_url = models.URLField(max_length=500, blank=True)
    verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'brand_profiles'

    def __str__(self):
        return self.company_name or f"Brand: {self.user}"


class SocialMediaAccount(models.Model):
    """A creator's account on one social platform"""
    creator = models.ForeignKey(CreatorProfile, on_delete=models.CASCADE, related_name='social_accounts')
    platform = models.CharField(max_length=20, choices=PLATFORM_CHOICES)
    username = models.CharField(max_length=100)
    profile_url = models.CharField(max_length=500, blank=True)
    follower_count = models.PositiveIntegerField(default=0)
    engagement_rate = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    avg_views = models.PositiveIntegerField(default=0)
    verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'social_media_accounts'
        unique_together = [['creator', 'platform', 'username']]
        indexes = [
            models.Index(fields=['platform'], name='social_platform_idx'),
        ]

    def __str__(self):
        return f"{self.platform}:{self.username}"


class PortfolioItem(models.Model):
    """Showcase media uploaded by a creator or a brand"""
    MEDIA_TYPE_CHOICES = [
        ('image', 'Image'),
        ('video', 'Video'),
        ('text', 'Text'),
    ]

    creator = models.ForeignKey(CreatorProfile, on_delete=models.CASCADE, null=True, blank=True, related_name='portfolio_items')
    brand = models.ForeignKey(BrandProfile, on_delete=models.CASCADE, null=True, blank=True, related_name='portfolio_items')
    title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    media_url = models.URLField(max_length=500)
    media_type = models.CharField(max_length=10, choices=MEDIA_TYPE_CHOICES)
    file_name = models.CharField(max_length=255)
    file_size = models.PositiveIntegerField()
    mime_type = models.CharField(max_length=100)
    platform = models.CharField(max_length=20, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'portfolio_items'
        ordering = ['-created_at']

    def __str__(self):
        return self.title or self.file_name


class KYC(models.Model):
    """Identity documents submitted by a creator before payouts"""
    DOCUMENT_TYPE_CHOICES = [
        ('AADHAAR', 'Aadhaar'),
        ('PAN', 'PAN'),
        ('EKYC', 'eKYC'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('verified', 'Verified'),
        ('rejected', 'Rejected'),
    ]

    creator = models.OneToOneField(CreatorProfile, on_delete=models.CASCADE, related_name='kyc')
    document_type = models.CharField(max_length=10, choices=DOCUMENT_TYPE_CHOICES)
    document_number = models.CharField(max_length=50, blank=True)
    front_image_url = models.URLField(max_length=500, blank=True)
    back_image_url = models.URLField(max_length=500, blank=True)
    aadhaar_data = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    rejection_reason = models.TextField(blank=True)
    submitted_at = models.DateTimeField(auto_now=True)
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'kyc'
        verbose_name = 'KYC'
        verbose_name_plural = 'KYC'

    def __str__(self):
        return f"KYC {self.document_type} for {self.creator}"


class Campaign(models.Model):
    """A brand's brief for creators"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('paused', 'Paused'),
        ('completed', 'Completed'),
    ]

    brand = models.ForeignKey(BrandProfile, on_delete=models.CASCADE, related_name='campaigns')
    title = models.CharField(max_length=255)
    description = models.TextField()
    budget_min = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    budget_max = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    campaign_type = models.CharField(max_length=50, blank=True)
    content_guidelines = models.TextField(blank=True)
    requirements = models.TextField(blank=True)
    target_audience = models.TextField(blank=True)
    target_demographics = models.JSONField(default=dict, blank=True)
    duration = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'campaigns'
        ordering = ['-created_at']

    def __str__(self):
        return self.title
