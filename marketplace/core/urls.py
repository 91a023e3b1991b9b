from django.urls import path
from .views import (
    CustomTokenObtainPairView, CustomTokenRefreshView,
    send_phone_verification_code, verify_phone_code, google_login,
    user_me, update_name, check_user_exists, delete_user,
    audit_log_list, audit_log_detail,
    global_search
)

urlpatterns = [
    # Auth endpoints
    path('auth/send-phone-verification-code/', send_phone_verification_code, name='send-phone-verification-code'),
    path('auth/verify-phone-code/', verify_phone_code, name='verify-phone-code'),
    path('auth/google/', google_login, name='google-login'),
    path('auth/login/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', user_me, name='user-me'),
    path('auth/update-name/', update_name, name='update-name'),
    path('auth/check-user-exists/', check_user_exists, name='check-user-exists'),
    path('auth/delete-user/', delete_user, name='delete-user'),

    # AuditLog endpoints
    path('audit-logs/', audit_log_list, name='audit-log-list'),
    path('audit-logs/<int:pk>/', audit_log_detail, name='audit-log-detail'),

    # Global search endpoint
    path('search/', global_search, name='global-search'),
]
