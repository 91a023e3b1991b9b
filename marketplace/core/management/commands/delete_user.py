"""
Management command to delete a user and all of their data
Usage: python manage.py delete_user <email> [--confirm]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from marketplace.core.accounts import collect_user_data, delete_user_account

User = get_user_model()


class Command(BaseCommand):
    help = 'Delete a user by email together with their profiles, packages, orders and tickets'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str, help='Email of the user to delete')
        parser.add_argument(
            '--confirm',
            action='store_true',
            help='Skip confirmation prompt',
        )

    def handle(self, *args, **options):
        email = options['email'].strip()
        user = User.objects.filter(email__iexact=email).first()
        if not user:
            raise CommandError(f'User with email {email} not found')

        self.stdout.write(f'User {user.id}: {user.display_name} <{user.email}> ({user.user_type})')
        for label, count in collect_user_data(user).items():
            self.stdout.write(f'  - {label.replace("_", " ").title()}: {count}')
        self.stdout.write('')

        if not options['confirm']:
            self.stdout.write(self.style.WARNING('⚠️  WARNING: This permanently deletes the user and everything above.'))
            confirm = input('Type "YES" to confirm: ')
            if confirm != 'YES':
                self.stdout.write(self.style.ERROR('Operation cancelled.'))
                return

        delete_user_account(user)
        self.stdout.write(self.style.SUCCESS(f'✅ User {email} deleted'))
