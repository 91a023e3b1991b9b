"""
URL configuration for the marketplace project.

Every app mounts its function views under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Creator Marketplace Admin Panel"
admin.site.site_title = "Creator Marketplace Admin Portal"
admin.site.index_title = "Welcome to the Creator Marketplace Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('marketplace.core.urls')),
    path('api/v1/', include('marketplace.profiles.urls')),
    path('api/v1/', include('marketplace.catalog.urls')),
    path('api/v1/', include('marketplace.orders.urls')),
    path('api/v1/', include('marketplace.support.urls')),
]
