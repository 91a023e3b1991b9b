from django.urls import path
from . import views

urlpatterns = [
    path('profile/', views.my_profile, name='my-profile'),
    path('profile/industries/', views.industry_list, name='industry-list'),
    path('profile/update-basic-info/', views.update_basic_info, name='update-basic-info'),
    path('profile/update-preferences/', views.update_preferences, name='update-preferences'),
    path('profile/create-portfolio/', views.create_portfolio, name='create-portfolio'),
    path('profile/submit-kyc/', views.submit_kyc, name='submit-kyc'),
    path('profile/create-campaign/', views.create_campaign, name='create-campaign'),
    path('profile/creator/<int:pk>/', views.creator_detail, name='creator-detail'),

    # Creator discovery
    path('profile/creators/', views.creator_list, name='creator-list'),
    path('profile/creators/<str:platform>/', views.creator_list_by_platform, name='creator-list-by-platform'),
    path('profile/creators/<str:platform>/<int:pk>/', views.creator_detail_by_platform, name='creator-detail-by-platform'),
]
