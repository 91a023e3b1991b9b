"""
Management command to create a support agent
Usage: python manage.py create_agent <email> <name> [--password PASSWORD]
"""
from django.core.management.base import BaseCommand, CommandError

from marketplace.core.accounts import create_staff_account, AccountExists


class Command(BaseCommand):
    help = 'Create a support agent account that receives tickets round-robin'
    user_type = 'admin'
    label = 'Agent'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str, help='Agent email')
        parser.add_argument('name', type=str, help='Agent display name')
        parser.add_argument('--password', type=str, help='Password for email/password login (Google sign-in only when omitted)')
        parser.add_argument('--phone', type=str, help='Phone number')

    def handle(self, *args, **options):
        try:
            user = create_staff_account(
                options['email'].strip(),
                options['name'].strip(),
                user_type=self.user_type,
                password=options.get('password'),
                phone=options.get('phone'),
            )
        except AccountExists as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(f'✓ {self.label} created: {user.name} <{user.email}> (id {user.id})'))
        if not options.get('password'):
            self.stdout.write('  No password set; the account signs in with Google.')
