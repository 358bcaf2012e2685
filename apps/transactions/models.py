from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q, Sum
from decimal import Decimal
import uuid


MONEY_DIGITS = 15
MONEY_PLACES = 2


class TransactionStatus(models.TextChoices):
    ON_PROCESS = 'on_process', 'On Process'
    COMPLETED = 'completed', 'Completed'


class ProfitStatus(models.TextChoices):
    PROFIT = 'profit', 'Profit'
    LOSS = 'loss', 'Loss'
    BREAK_EVEN = 'break_even', 'Break Even'


class PaymentStatus(models.TextChoices):
    UNPAID = 'unpaid', 'Unpaid'
    PARTIAL = 'partial', 'Partial'
    PAID = 'paid', 'Paid'


class LossBearer(models.TextChoices):
    INVESTOR = 'investor', 'Investor'
    MANAGER = 'manager', 'Manager'
    SHARED = 'shared', 'Shared'


class Payer(models.TextChoices):
    INVESTOR = 'investor', 'Investor'
    MANAGER = 'manager', 'Manager'


class CostType(models.TextChoices):
    INSPECTION = 'inspection', 'Inspection'
    TRANSPORT = 'transport', 'Transport'
    MEAL = 'meal', 'Meal'
    TOLL = 'toll', 'Toll'
    ADS = 'ads', 'Advertising'
    REPAIR = 'repair', 'Repair'
    GAS = 'gas', 'Fuel'
    PARKING = 'parking', 'Parking'
    STAMP_DUTY = 'stamp_duty', 'Stamp Duty'
    BROKER = 'broker', 'Broker Fee'
    OTHER = 'other', 'Other'


class PaymentMethod(models.TextChoices):
    TRANSFER = 'transfer', 'Bank Transfer'
    CASH = 'cash', 'Cash'


def money_field(**kwargs):
    return models.DecimalField(max_digits=MONEY_DIGITS, decimal_places=MONEY_PLACES, **kwargs)


class Transaction(models.Model):
    """One buy-then-sell cycle for a unit."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    transaction_code = models.CharField(max_length=30, unique=True)
    
    unit = models.ForeignKey(
        'units.Unit',
        on_delete=models.PROTECT,
        related_name='transactions'
    )
    
    # Purchase
    buy_date = models.DateField()
    buy_price = money_field(validators=[MinValueValidator(Decimal('0.01'))])
    
    # Capital overrides; investor defaults to buy_price, manager to zero
    initial_investor_capital = money_field(
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )
    initial_manager_capital = money_field(
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )
    
    # Sale
    sell_date = models.DateField(null=True, blank=True)
    sell_price = money_field(null=True, blank=True)
    
    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.ON_PROCESS
    )
    profit_status = models.CharField(
        max_length=20,
        choices=ProfitStatus.choices,
        null=True,
        blank=True
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.UNPAID
    )
    # Informational only, not used by any calculation
    loss_bearer = models.CharField(
        max_length=20,
        choices=LossBearer.choices,
        null=True,
        blank=True
    )
    
    notes = models.TextField(blank=True)
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'transactions'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['unit'],
                condition=Q(status=TransactionStatus.ON_PROCESS),
                name='unique_active_transaction_per_unit',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'created_at'], name='trx_status_created_idx'),
            models.Index(fields=['unit', 'status'], name='trx_unit_status_idx'),
            models.Index(fields=['payment_status'], name='trx_payment_status_idx'),
        ]
    
    def __str__(self):
        return f"{self.transaction_code} ({self.get_status_display()})"

    @property
    def is_completed(self):
        return self.status == TransactionStatus.COMPLETED

    def get_total_paid(self):
        """Sum of every payout recorded against this transaction."""
        return self.payment_histories.aggregate(
            total=Sum('amount')
        )['total'] or Decimal('0.00')


class Cost(models.Model):
    """An operational expense attributed to the investor or the manager."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name='costs'
    )
    cost_type = models.CharField(
        max_length=20,
        choices=CostType.choices,
        default=CostType.OTHER
    )
    payer = models.CharField(max_length=20, choices=Payer.choices)
    amount = money_field(validators=[MinValueValidator(Decimal('0'))])
    description = models.CharField(max_length=500, blank=True)
    date = models.DateField(null=True, blank=True)
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'costs'
        ordering = ['date', 'created_at']
        constraints = [
            models.CheckConstraint(
                check=Q(amount__gte=0),
                name='cost_amount_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['transaction', 'payer'], name='costs_trx_payer_idx'),
        ]
    
    def __str__(self):
        return f"{self.get_cost_type_display()} {self.amount} ({self.get_payer_display()})"


class ProfitSharing(models.Model):
    """Capital and profit split snapshot taken when a transaction completes."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    transaction = models.OneToOneField(
        Transaction,
        on_delete=models.CASCADE,
        related_name='profit_sharing'
    )
    
    total_capital_investor = money_field()
    total_capital_manager = money_field()
    total_capital = money_field()
    net_margin = money_field()
    
    investor_share_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    manager_share_percentage = models.DecimalField(max_digits=5, decimal_places=2)
    
    investor_profit_amount = money_field()
    manager_profit_amount = money_field()
    
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        db_table = 'profit_sharings'
    
    def __str__(self):
        return (
            f"{self.transaction.transaction_code}: margin {self.net_margin} "
            f"({self.investor_share_percentage}/{self.manager_share_percentage})"
        )


class PaymentHistory(models.Model):
    """A payout made to the investor against a transaction's profit."""
    
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name='payment_histories'
    )
    investor = models.ForeignKey(
        'investors.Investor',
        on_delete=models.PROTECT,
        related_name='payment_histories'
    )
    
    amount = money_field(validators=[MinValueValidator(Decimal('0.01'))])
    payment_date = models.DateField()
    method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    proof_image_url = models.URLField(max_length=500, blank=True)
    notes = models.TextField(blank=True)
    
    created_at = models.DateTimeField(auto_now_add=True)
    
    class Meta:
        db_table = 'payment_histories'
        ordering = ['payment_date', 'created_at']
        indexes = [
            models.Index(fields=['transaction', 'payment_date'], name='payments_trx_date_idx'),
            models.Index(fields=['investor', 'payment_date'], name='payments_investor_date_idx'),
        ]
    
    def __str__(self):
        return f"{self.amount} to {self.investor.name} on {self.payment_date}"
