import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('farms', '0001_initial'),
        ('parties', '0001_initial'),
        ('quotes', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='OrderSequence',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company', models.CharField(max_length=200)),
                ('scope', models.CharField(choices=[('order', 'Order'), ('project', 'Project')], default='order', max_length=20)),
                ('last_number', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'order_sequences',
                'constraints': [
                    models.UniqueConstraint(fields=('company', 'scope'), name='uniq_order_sequence_company_scope'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OrderConfirmation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(max_length=50, unique=True)),
                ('company', models.CharField(max_length=200)),
                ('sequential_number', models.PositiveIntegerField()),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('order_date', models.DateField()),
                ('delivery_date', models.DateField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('status', models.CharField(choices=[('pending', 'In Attesa'), ('confirmed', 'Confermato'), ('delivered', 'Consegnato'), ('cancelled', 'Annullato')], default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders_created', to=settings.AUTH_USER_MODEL)),
                ('farm', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='farms.farm')),
                ('quote', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='order_confirmation', to='quotes.quote')),
                ('supplier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='orders', to='parties.supplier')),
            ],
            options={
                'db_table': 'order_confirmations',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(fields=('company', 'sequential_number'), name='uniq_order_company_sequence'),
                ],
                'indexes': [
                    models.Index(fields=['status'], name='idx_order_status'),
                    models.Index(fields=['company', '-sequential_number'], name='idx_order_company_seq'),
                ],
            },
        ),
    ]
