import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('investors', '0001_initial'),
        ('units', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Transaction',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('transaction_code', models.CharField(max_length=30, unique=True)),
                ('buy_date', models.DateField()),
                ('buy_price', models.DecimalField(decimal_places=2, max_digits=15, validators=[MinValueValidator(Decimal('0.01'))])),
                ('initial_investor_capital', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True, validators=[MinValueValidator(Decimal('0'))])),
                ('initial_manager_capital', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True, validators=[MinValueValidator(Decimal('0'))])),
                ('sell_date', models.DateField(blank=True, null=True)),
                ('sell_price', models.DecimalField(blank=True, decimal_places=2, max_digits=15, null=True)),
                ('status', models.CharField(choices=[('on_process', 'On Process'), ('completed', 'Completed')], default='on_process', max_length=20)),
                ('profit_status', models.CharField(blank=True, choices=[('profit', 'Profit'), ('loss', 'Loss'), ('break_even', 'Break Even')], max_length=20, null=True)),
                ('payment_status', models.CharField(choices=[('unpaid', 'Unpaid'), ('partial', 'Partial'), ('paid', 'Paid')], default='unpaid', max_length=20)),
                ('loss_bearer', models.CharField(blank=True, choices=[('investor', 'Investor'), ('manager', 'Manager'), ('shared', 'Shared')], max_length=20, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='transactions', to='units.unit')),
            ],
            options={
                'db_table': 'transactions',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['status', 'created_at'], name='trx_status_created_idx'),
                    models.Index(fields=['unit', 'status'], name='trx_unit_status_idx'),
                    models.Index(fields=['payment_status'], name='trx_payment_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('status', 'on_process')), fields=('unit',), name='unique_active_transaction_per_unit'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Cost',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('cost_type', models.CharField(choices=[('inspection', 'Inspection'), ('transport', 'Transport'), ('meal', 'Meal'), ('toll', 'Toll'), ('ads', 'Advertising'), ('repair', 'Repair'), ('gas', 'Fuel'), ('parking', 'Parking'), ('stamp_duty', 'Stamp Duty'), ('broker', 'Broker Fee'), ('other', 'Other')], default='other', max_length=20)),
                ('payer', models.CharField(choices=[('investor', 'Investor'), ('manager', 'Manager')], max_length=20)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=15, validators=[MinValueValidator(Decimal('0'))])),
                ('description', models.CharField(blank=True, max_length=500)),
                ('date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('transaction', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='costs', to='transactions.transaction')),
            ],
            options={
                'db_table': 'costs',
                'ordering': ['date', 'created_at'],
                'indexes': [
                    models.Index(fields=['transaction', 'payer'], name='costs_trx_payer_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(check=models.Q(('amount__gte', 0)), name='cost_amount_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ProfitSharing',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('total_capital_investor', models.DecimalField(decimal_places=2, max_digits=15)),
                ('total_capital_manager', models.DecimalField(decimal_places=2, max_digits=15)),
                ('total_capital', models.DecimalField(decimal_places=2, max_digits=15)),
                ('net_margin', models.DecimalField(decimal_places=2, max_digits=15)),
                ('investor_share_percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('manager_share_percentage', models.DecimalField(decimal_places=2, max_digits=5)),
                ('investor_profit_amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('manager_profit_amount', models.DecimalField(decimal_places=2, max_digits=15)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('transaction', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profit_sharing', to='transactions.transaction')),
            ],
            options={
                'db_table': 'profit_sharings',
            },
        ),
        migrations.CreateModel(
            name='PaymentHistory',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=15, validators=[MinValueValidator(Decimal('0.01'))])),
                ('payment_date', models.DateField()),
                ('method', models.CharField(choices=[('transfer', 'Bank Transfer'), ('cash', 'Cash')], max_length=20)),
                ('proof_image_url', models.URLField(blank=True, max_length=500)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('investor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payment_histories', to='investors.investor')),
                ('transaction', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payment_histories', to='transactions.transaction')),
            ],
            options={
                'db_table': 'payment_histories',
                'ordering': ['payment_date', 'created_at'],
                'indexes': [
                    models.Index(fields=['transaction', 'payment_date'], name='payments_trx_date_idx'),
                    models.Index(fields=['investor', 'payment_date'], name='payments_investor_date_idx'),
                ],
            },
        ),
    ]
