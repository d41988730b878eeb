# Generated manually

from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('dtf', 'DTF'), ('uv', 'UV'), ('embroidery', 'Embroidery'), ('laser', 'Laser'), ('other', 'Other')], default='other', max_length=20)),
                ('sku', models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ('base_price', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12)),
                ('cost_price', models.DecimalField(decimal_places=3, default=Decimal('0.000'), max_digits=12)),
                ('tva_rate', models.DecimalField(decimal_places=2, default=Decimal('19.00'), max_digits=5)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='products', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['name'],
            },
        ),
    ]
