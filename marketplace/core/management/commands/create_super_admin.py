"""
Management command to create a super admin
Usage: python manage.py create_super_admin <email> <name> [--password PASSWORD]
"""
from .create_agent import Command as CreateAgentCommand


class Command(CreateAgentCommand):
    help = 'Create a super admin account that manages agents and reassigns tickets'
    user_type = 'super_admin'
    label = 'Super admin'
