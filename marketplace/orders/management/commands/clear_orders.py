"""
Management command to clear Orders, Tickets and chat messages from database
Usage: python manage.py clear_orders [--confirm]
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from marketplace.orders.models import Order, OrderStatusHistory
from marketplace.support.models import Ticket, TicketMessage


class Command(BaseCommand):
    help = 'Clear Orders, Tickets and Ticket Messages (users, profiles and packages are kept)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--confirm',
            action='store_true',
            help='Skip confirmation prompt',
        )

    def handle(self, *args, **options):
        if not options['confirm']:
            self.stdout.write(self.style.WARNING(
                '⚠️  WARNING: This will delete ALL:'
            ))
            self.stdout.write('  - Ticket messages')
            self.stdout.write('  - Tickets')
            self.stdout.write('  - Orders (and their status history)')
            self.stdout.write('')

            confirm = input('Type "YES" to confirm: ')
            if confirm != 'YES':
                self.stdout.write(self.style.ERROR('Operation cancelled.'))
                return

        self.stdout.write('Starting order cleanup...')

        with transaction.atomic():
            message_count = TicketMessage.objects.count()
            ticket_count = Ticket.objects.count()
            order_count = Order.objects.count()

            self.stdout.write('\nFound:')
            self.stdout.write(f'  - Ticket Messages: {message_count}')
            self.stdout.write(f'  - Tickets: {ticket_count}')
            self.stdout.write(f'  - Orders: {order_count}')
            self.stdout.write('')

            # Children before parents
            self.stdout.write('Deleting Ticket Messages...')
            TicketMessage.objects.all().delete()
            self.stdout.write(self.style.SUCCESS('  ✓ Ticket Messages deleted'))

            self.stdout.write('Deleting Tickets...')
            Ticket.objects.all().delete()
            self.stdout.write(self.style.SUCCESS('  ✓ Tickets deleted'))

            self.stdout.write('Deleting Order Status History...')
            OrderStatusHistory.objects.all().delete()
            self.stdout.write(self.style.SUCCESS('  ✓ Order Status History deleted'))

            self.stdout.write('Deleting Orders...')
            Order.objects.all().delete()
            self.stdout.write(self.style.SUCCESS('  ✓ Orders deleted'))

        self.stdout.write('')
        self.stdout.write(self.style.SUCCESS('✅ Order cleanup completed successfully!'))
        self.stdout.write(f'  - {order_count} Orders')
        self.stdout.write(f'  - {ticket_count} Tickets')
        self.stdout.write(f'  - {message_count} Ticket Messages')
