from django.urls import path
from . import views

urlpatterns = [
    # Cart
    path('cart/', views.cart_list, name='cart-list'),
    path('cart/add/', views.cart_add, name='cart-add'),
    path('cart/items/<int:item_id>/', views.cart_item_detail, name='cart-item-detail'),
    path('cart/clear/', views.cart_clear, name='cart-clear'),
    path('cart/sync/', views.cart_sync, name='cart-sync'),

    # Orders
    path('orders/checkout/', views.order_checkout, name='order-checkout'),
    path('orders/', views.order_list, name='order-list'),
    path('orders/<int:pk>/', views.order_detail, name='order-detail'),
    path('orders/<int:pk>/accept/', views.order_accept, name='order-accept'),
    path('orders/<int:pk>/reject/', views.order_reject, name='order-reject'),
    path('orders/<int:pk>/cancel/', views.order_cancel, name='order-cancel'),
    path('orders/<int:pk>/deliverables/', views.order_submit_deliverables, name='order-deliverables'),
    path('orders/<int:pk>/approve/', views.order_approve, name='order-approve'),
    path('orders/<int:pk>/request-revision/', views.order_request_revision, name='order-request-revision'),
    path('orders/<int:pk>/price-revision/', views.order_price_revision, name='order-price-revision'),
    path('orders/<int:pk>/price-revision/approve/', views.order_price_revision_approve, name='order-price-revision-approve'),
    path('orders/<int:pk>/price-revision/decline/', views.order_price_revision_decline, name='order-price-revision-decline'),
    path('orders/<int:pk>/history/', views.order_history, name='order-history'),
    path('orders/<int:pk>/chat/', views.order_chat, name='order-chat'),
    path('orders/<int:pk>/enable-chat/', views.order_enable_chat, name='order-enable-chat'),
]
