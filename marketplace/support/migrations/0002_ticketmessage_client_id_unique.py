# Generated manually
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('support', '0001_initial'),
    ]

    operations = [
        migrations.AddConstraint(
            model_name='ticketmessage',
            constraint=models.UniqueConstraint(
                condition=models.Q(('client_message_id', ''), _negated=True),
                fields=('ticket', 'sender', 'client_message_id'),
                name='ticket_msgs_client_id_uniq',
            ),
        ),
    ]
