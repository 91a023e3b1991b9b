from django.urls import path
from . import views

urlpatterns = [
    # Tickets
    path('tickets/', views.ticket_list, name='ticket-list'),
    path('tickets/order/<int:order_id>/', views.ticket_by_order, name='ticket-by-order'),
    path('tickets/<int:pk>/', views.ticket_detail, name='ticket-detail'),
    path('tickets/<int:pk>/status/', views.ticket_update_status, name='ticket-update-status'),
    path('tickets/<int:pk>/reassign/', views.ticket_reassign, name='ticket-reassign'),
    path('tickets/<int:pk>/messages/', views.ticket_messages, name='ticket-messages'),

    # Agents
    path('agents/me/status/', views.agent_update_my_status, name='agent-my-status'),
    path('admin/agents/', views.agent_list_create, name='agent-list-create'),
    path('admin/agents/stats/', views.agent_stats, name='agent-stats'),
    path('admin/agents/<int:pk>/', views.agent_detail, name='agent-detail'),
    path('admin/agents/<int:pk>/status/', views.agent_update_status, name='agent-update-status'),

    # Chat
    path('chat/token/', views.chat_token, name='chat-token'),
]
