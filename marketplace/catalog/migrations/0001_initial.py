# Generated manually
import django.db.models.deletion
import marketplace.catalog.models
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('profiles', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Package',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('platform', models.CharField(blank=True, max_length=20)),
                ('content_type', models.CharField(blank=True, max_length=50)),
                ('quantity', models.PositiveIntegerField(default=1, help_text='Number of content pieces delivered')),
                ('revisions', models.PositiveIntegerField(default=1, help_text='Revisions included in the price')),
                ('delivery_days', models.PositiveIntegerField(blank=True, null=True)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('currency', models.CharField(default=marketplace.catalog.models.default_currency, max_length=3)),
                ('deliverables', models.JSONField(blank=True, default=list)),
                ('type', models.CharField(choices=[('predefined', 'Predefined'), ('custom', 'Custom')], default='predefined', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('creator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='packages', to='profiles.creatorprofile')),
            ],
            options={
                'db_table': 'packages',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['creator', 'is_active'], name='packages_creator_active_idx'),
                    models.Index(fields=['platform'], name='packages_platform_idx'),
                ],
            },
        ),
    ]
