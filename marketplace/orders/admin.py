from django.contrib import admin
from .models import CartItem, Order, OrderStatusHistory


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ['action', 'from_status', 'to_status', 'changed_by', 'note', 'created_at']
    can_delete = False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'package', 'brand', 'creator', 'quantity', 'total_amount', 'currency', 'status', 'order_date']
    list_filter = ['status', 'currency', 'chat_enabled', 'order_date']
    search_fields = ['order_number', 'package__title', 'brand__company_name', 'creator__user__name']
    readonly_fields = ['order_number', 'order_date', 'created_at', 'updated_at']
    inlines = [OrderStatusHistoryInline]


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ['user', 'package', 'quantity', 'delivery_time', 'updated_at']
    search_fields = ['user__email', 'package__title']
