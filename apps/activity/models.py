from django.conf import settings
from django.db import models
import uuid


class ActivityAction(models.TextChoices):
    CREATE = 'create', 'Create'
    UPDATE = 'update', 'Update'
    DELETE = 'delete', 'Delete'


class ActivityEntity(models.TextChoices):
    UNIT = 'unit', 'Unit'
    TRANSACTION = 'transaction', 'Transaction'
    INVESTOR = 'investor', 'Investor'
    COST = 'cost', 'Cost'
    PAYMENT = 'payment', 'Payment'


class ActivityLog(models.Model):
    """Who changed what, written after successful mutations."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    action = models.CharField(max_length=20, choices=ActivityAction.choices)
    entity = models.CharField(max_length=20, choices=ActivityEntity.choices)
    entity_id = models.CharField(max_length=64)
    details = models.TextField(blank=True)
    
    # Null when the change was made by the system
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='activity_logs'
    )
    user_name = models.CharField(max_length=150, default='System')
    
    created_at = models.DateTimeField(auto_now_add=True)
    
    class Meta:
        db_table = 'activity_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['entity', 'entity_id'], name='activity_entity_idx'),
            models.Index(fields=['created_at'], name='activity_created_idx'),
        ]
    
    def __str__(self):
        return f"{self.user_name} {self.action} {self.entity} {self.entity_id}"
