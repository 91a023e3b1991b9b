"""
Management command to follow a ticket's chat from the terminal
Usage: python manage.py poll_ticket <ticket_id> <email> [--base-url URL] [--interval 3] [--max-polls N]
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from marketplace.core.views import issue_tokens
from marketplace.support.sync import TicketPoller, POLL_INTERVAL_SECONDS

User = get_user_model()


class Command(BaseCommand):
    help = 'Poll a ticket message feed as the given user and print new messages'

    def add_arguments(self, parser):
        parser.add_argument('ticket_id', type=int, help='Ticket id')
        parser.add_argument('email', type=str, help='Email of the user to read the ticket as')
        parser.add_argument('--base-url', default='http://localhost:8000', help='API server base URL')
        parser.add_argument('--channel', choices=['brand_agent', 'creator_agent'], help='Channel filter (agents only)')
        parser.add_argument('--interval', type=float, default=POLL_INTERVAL_SECONDS, help='Seconds between polls')
        parser.add_argument('--max-polls', type=int, help='Stop after this many polls')

    def handle(self, *args, **options):
        user = User.objects.filter(email__iexact=options['email']).first()
        if not user:
            raise CommandError(f"User with email {options['email']} not found")

        token = issue_tokens(user)['access']
        poller = TicketPoller(
            options['base_url'],
            options['ticket_id'],
            token,
            interval=options['interval'],
            channel=options.get('channel'),
            on_new=self.print_messages,
        )

        self.stdout.write(f"Polling ticket {options['ticket_id']} as {user.email} every {options['interval']}s (Ctrl+C to stop)")
        poller.reconnect()
        self.print_messages(poller.reconciler.messages)
        try:
            poller.run(max_polls=options.get('max_polls'))
        except KeyboardInterrupt:
            poller.stop()
        self.stdout.write(self.style.SUCCESS(f"Stopped. {len(poller.reconciler.messages)} message(s) seen."))

    def print_messages(self, messages):
        for message in messages:
            timestamp = message.created_at.strftime('%Y-%m-%d %H:%M:%S') if message.created_at else '-'
            self.stdout.write(f"[{timestamp}] {message.sender_name or message.sender_role}: {message.text}")
