import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ActivityLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('action', models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete')], max_length=20)),
                ('entity', models.CharField(choices=[('unit', 'Unit'), ('transaction', 'Transaction'), ('investor', 'Investor'), ('cost', 'Cost'), ('payment', 'Payment')], max_length=20)),
                ('entity_id', models.CharField(max_length=64)),
                ('details', models.TextField(blank=True)),
                ('user_name', models.CharField(default='System', max_length=150)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activity_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'activity_logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['entity', 'entity_id'], name='activity_entity_idx'),
                    models.Index(fields=['created_at'], name='activity_created_idx'),
                ],
            },
        ),
    ]
