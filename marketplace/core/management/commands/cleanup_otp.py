"""
Management command to remove phone verification codes
Usage: python manage.py cleanup_otp [--all]
"""
from django.core.management.base import BaseCommand
from django.db.models import Q
from django.utils import timezone

from marketplace.core.models import PhoneVerification


class Command(BaseCommand):
    help = 'Delete expired or already used phone verification codes'

    def add_arguments(self, parser):
        parser.add_argument(
            '--all',
            action='store_true',
            help='Delete every verification code, including ones still valid',
        )

    def handle(self, *args, **options):
        self.stdout.write('🧹 Cleaning up phone verification codes...')

        if options['all']:
            records = PhoneVerification.objects.all()
        else:
            records = PhoneVerification.objects.filter(
                Q(expires_at__lt=timezone.now()) | Q(verified_at__isnull=False)
            )
        deleted, _ = records.delete()
        self.stdout.write(self.style.SUCCESS(f'✅ Deleted {deleted} verification code(s)'))

        remaining = PhoneVerification.objects.order_by('-created_at')[:10]
        if remaining:
            self.stdout.write('Remaining codes:')
            now = timezone.now()
            for record in remaining:
                seconds_left = int((record.expires_at - now).total_seconds())
                self.stdout.write(f'  - {record.phone}: expires in {seconds_left}s')
