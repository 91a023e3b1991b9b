"""
Management command to look up a user by email and show what belongs to them
Usage: python manage.py find_user <email>
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from marketplace.core.accounts import collect_user_data

User = get_user_model()


class Command(BaseCommand):
    help = 'Find a user by email and print their account, profiles and related record counts'

    def add_arguments(self, parser):
        parser.add_argument('email', type=str, help='Email address to look up')

    def handle(self, *args, **options):
        email = options['email'].strip()
        user = User.objects.filter(email__iexact=email).first()
        if not user:
            raise CommandError(f'User with email {email} not found')

        self.stdout.write(self.style.SUCCESS(f'✓ Found user {user.id}'))
        self.stdout.write(f'  Name: {user.name or "-"}')
        self.stdout.write(f'  Email: {user.email}')
        self.stdout.write(f'  Phone: {user.phone or "-"}')
        self.stdout.write(f'  Type: {user.get_user_type_display()} ({user.user_type})')
        self.stdout.write(f'  Status: {user.status}')
        self.stdout.write(f'  Auth provider: {user.auth_provider}')
        self.stdout.write(f'  Onboarding: step {user.onboarding_step}, completed={user.onboarding_completed}')
        self.stdout.write(f'  Created: {user.created_at:%Y-%m-%d %H:%M}')
        self.stdout.write(f'  Last login: {user.last_login:%Y-%m-%d %H:%M}' if user.last_login else '  Last login: never')

        creator = getattr(user, 'creator_profile', None)
        if creator:
            self.stdout.write('')
            self.stdout.write('Creator profile:')
            self.stdout.write(f'  Id: {creator.id}')
            self.stdout.write(f'  Location: {", ".join(p for p in [creator.location_city, creator.location_state] if p) or "-"}')
            self.stdout.write(f'  Categories: {", ".join(creator.content_categories or []) or "-"}')
            self.stdout.write(f'  Social accounts: {creator.social_accounts.count()}')

        brand = getattr(user, 'brand_profile', None)
        if brand:
            self.stdout.write('')
            self.stdout.write('Brand profile:')
            self.stdout.write(f'  Id: {brand.id}')
            self.stdout.write(f'  Company: {brand.company_name or "-"}')
            self.stdout.write(f'  Industry: {brand.industry or "-"}')

        self.stdout.write('')
        self.stdout.write('Related records:')
        for label, count in collect_user_data(user).items():
            self.stdout.write(f'  - {label.replace("_", " ").title()}: {count}')
