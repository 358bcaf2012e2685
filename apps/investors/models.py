from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from decimal import Decimal
import uuid


class Investor(models.Model):
    """A funding party whose capital buys vehicle units."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    name = models.CharField(max_length=200)
    # Phone number (WhatsApp) or e-mail used for notifications
    contact_info = models.CharField(max_length=200, blank=True)
    bank_account_details = models.CharField(max_length=300, blank=True)
    notes = models.TextField(blank=True)
    
    # Investor's default share of the net margin; the manager gets the rest
    margin_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('50.00'),
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))]
    )
    
    # Optional login account for the investor dashboard
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='investor_profile'
    )
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'investors'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['name'], name='investors_name_idx'),
        ]
    
    def __str__(self):
        return self.name

    @property
    def manager_percentage(self):
        return Decimal('100') - self.margin_percentage
