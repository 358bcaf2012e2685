import uuid
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('investors', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Unit',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('code', models.CharField(max_length=30, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('plate_number', models.CharField(max_length=20)),
                ('status', models.CharField(choices=[('available', 'Available'), ('sold', 'Sold'), ('maintenance', 'Maintenance')], default='available', max_length=20)),
                ('image_url', models.URLField(blank=True, max_length=500)),
                ('tax_due_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('investor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='units', to='investors.investor')),
            ],
            options={
                'db_table': 'units',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['investor', 'status'], name='units_investor_status_idx'),
                    models.Index(fields=['status', 'tax_due_date'], name='units_status_tax_due_idx'),
                ],
            },
        ),
    ]
