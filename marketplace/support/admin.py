from django.contrib import admin
from .models import Ticket, TicketMessage


class TicketMessageInline(admin.TabularInline):
    model = TicketMessage
    extra = 0
    fields = ['sender', 'sender_role', 'channel_type', 'message_type', 'message_text', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ['ticket_number', 'order', 'agent', 'status', 'created_at', 'resolved_at']
    list_filter = ['status', 'created_at']
    search_fields = ['ticket_number', 'order__order_number', 'agent__email']
    readonly_fields = ['ticket_number', 'stream_channel_id', 'created_at', 'updated_at']
    inlines = [TicketMessageInline]


@admin.register(TicketMessage)
class TicketMessageAdmin(admin.ModelAdmin):
    list_display = ['ticket', 'sender', 'sender_role', 'channel_type', 'message_type', 'created_at']
    list_filter = ['sender_role', 'channel_type', 'message_type']
    search_fields = ['ticket__ticket_number', 'message_text']
