from django.conf import settings
from django.db import models

from marketplace.orders.models import Order


class Ticket(models.Model):
    """Support conversation attached to an order and handled by one agent"""
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('in_progress', 'In Progress'),
        ('resolved', 'Resolved'),
        ('closed', 'Closed'),
    ]

    ticket_number = models.CharField(max_length=50, unique=True)
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name='ticket')
    agent = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_tickets')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    stream_channel_id = models.CharField(max_length=100, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'tickets'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['agent', 'status'], name='tickets_agent_status_idx'),
            models.Index(fields=['-created_at'], name='tickets_created_idx'),
        ]

    def __str__(self):
        return self.ticket_number


class TicketMessage(models.Model):
    """A chat message inside a ticket"""
    SENDER_ROLE_CHOICES = [
        ('brand', 'Brand'),
        ('creator', 'Creator'),
        ('agent', 'Agent'),
        ('system', 'System'),
    ]

    CHANNEL_CHOICES = [
        ('brand_agent', 'Brand - Agent'),
        ('creator_agent', 'Creator - Agent'),
    ]

    MESSAGE_TYPE_CHOICES = [
        ('text', 'Text'),
        ('file', 'File'),
        ('system', 'System'),
    ]

    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='ticket_messages')
    sender_role = models.CharField(max_length=10, choices=SENDER_ROLE_CHOICES)
    channel_type = models.CharField(max_length=20, choices=CHANNEL_CHOICES, blank=True, help_text="Empty for system messages visible on both channels")
    message_type = models.CharField(max_length=10, choices=MESSAGE_TYPE_CHOICES, default='text')
    message_text = models.TextField(blank=True)
    file_url = models.URLField(max_length=500, blank=True)
    file_name = models.CharField(max_length=255, blank=True)
    client_message_id = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'ticket_messages'
        ordering = ['id']
        indexes = [
            models.Index(fields=['ticket', 'id'], name='ticket_msgs_feed_idx'),
            models.Index(fields=['sender', 'client_message_id'], name='ticket_msgs_client_id_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['ticket', 'sender', 'client_message_id'],
                condition=~models.Q(client_message_id=''),
                name='ticket_msgs_client_id_uniq',
            ),
        ]

    def __str__(self):
        return f"{self.ticket.ticket_number} #{self.id} ({self.sender_role})"
