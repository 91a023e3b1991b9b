"""
Management command to rewrite currency codes on packages and orders
Usage: python manage.py migrate_currency <from> <to>
"""
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from marketplace.catalog.models import Package
from marketplace.orders.models import Order


class Command(BaseCommand):
    help = 'Replace one currency code with another on all packages and orders (e.g. USD INR)'

    def add_arguments(self, parser):
        parser.add_argument('from_currency', type=str, help='Currency code to replace')
        parser.add_argument('to_currency', type=str, help='New currency code')

    def handle(self, *args, **options):
        from_currency = options['from_currency'].strip().upper()
        to_currency = options['to_currency'].strip().upper()
        for code in (from_currency, to_currency):
            if len(code) != 3 or not code.isalpha():
                raise CommandError(f'Invalid currency code: {code}')
        if from_currency == to_currency:
            raise CommandError('Source and target currency are the same')

        self.stdout.write(f'🔄 Migrating currency from {from_currency} to {to_currency}...')
        with transaction.atomic():
            packages = Package.objects.filter(currency=from_currency).update(currency=to_currency)
            orders = Order.objects.filter(currency=from_currency).update(currency=to_currency)

        self.stdout.write(self.style.SUCCESS(f'✅ Updated {packages} package(s)'))
        self.stdout.write(self.style.SUCCESS(f'✅ Updated {orders} order(s)'))
