from django.urls import path
from . import views

urlpatterns = [
    path('packages/', views.package_list_create, name='package-list-create'),
    path('packages/mine/', views.my_packages, name='my-packages'),
    path('packages/<int:pk>/', views.package_detail, name='package-detail'),
]
