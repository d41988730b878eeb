# Generated manually

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Expense',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(choices=[('Loyer', 'Loyer'), ('Electricite', 'Electricite'), ('Internet', 'Internet'), ('Transport', 'Transport'), ('Matiere premiere', 'Matiere premiere'), ('Equipement', 'Equipement'), ('Salaires', 'Salaires'), ('Marketing', 'Marketing'), ('Fournitures', 'Fournitures'), ('Maintenance', 'Maintenance'), ('Assurance', 'Assurance'), ('Autre', 'Autre')], default='Autre', max_length=50)),
                ('description', models.CharField(max_length=255)),
                ('amount', models.DecimalField(decimal_places=3, max_digits=12)),
                ('expense_date', models.DateField(default=django.utils.timezone.localdate)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('receipt_url', models.URLField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='expenses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'expenses',
                'ordering': ['-expense_date', '-created_at'],
                'indexes': [
                    models.Index(fields=['-expense_date'], name='idx_expense_date'),
                    models.Index(fields=['category'], name='idx_expense_category'),
                ],
            },
        ),
    ]
