from django.db import models
import uuid


class UnitStatus(models.TextChoices):
    AVAILABLE = 'available', 'Available'
    SOLD = 'sold', 'Sold'
    MAINTENANCE = 'maintenance', 'Maintenance'


class Unit(models.Model):
    """A vehicle bought with an investor's capital and resold by the manager."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=200)
    plate_number = models.CharField(max_length=20)
    
    investor = models.ForeignKey(
        'investors.Investor',
        on_delete=models.PROTECT,
        related_name='units'
    )
    
    status = models.CharField(
        max_length=20,
        choices=UnitStatus.choices,
        default=UnitStatus.AVAILABLE
    )
    
    image_url = models.URLField(max_length=500, blank=True)
    # Annual vehicle tax due date, used for reminders
    tax_due_date = models.DateField(null=True, blank=True)
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'units'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['investor', 'status'], name='units_investor_status_idx'),
            models.Index(fields=['status', 'tax_due_date'], name='units_status_tax_due_idx'),
        ]
    
    def __str__(self):
        return f"{self.code} - {self.name} ({self.plate_number})"
