from decimal import Decimal

from rest_framework import serializers

from apps.units.serializers import UnitMinimalSerializer
from .models import (
    Transaction,
    TransactionStatus,
    ProfitStatus,
    PaymentStatus,
    LossBearer,
    Payer,
    CostType,
    PaymentMethod,
    Cost,
    ProfitSharing,
    PaymentHistory,
)
from .services.calculations import aggregate_costs


HUNDRED = Decimal('100')


def money(**kwargs):
    return serializers.DecimalField(max_digits=15, decimal_places=2, **kwargs)


def percentage(**kwargs):
    return serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        min_value=Decimal('0'),
        max_value=HUNDRED,
        **kwargs
    )


def validate_share_pair(attrs):
    """Both shares given must add up to exactly 100."""
    investor = attrs.get('investor_share_percentage')
    manager = attrs.get('manager_share_percentage')
    if investor is not None and manager is not None and investor + manager != HUNDRED:
        raise serializers.ValidationError({
            'manager_share_percentage': 'Investor and manager shares must sum to 100'
        })
    return attrs


# =============================================================================
# Input Serializers
# =============================================================================

class TransactionFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for transaction filtering.

    Query Parameters:
        status (str): Filter by lifecycle status
        payment_status (str): Filter by payment status
        profit_status (str): Filter by profit status
        unit (UUID): Filter by unit ID
        investor (UUID): Filter by the unit's investor
        search (str): Match transaction code, unit code or unit name
        date_from (date): Bought on or after this date
        date_to (date): Bought on or before this date
    """

    status = serializers.ChoiceField(choices=TransactionStatus.choices, required=False)
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, required=False)
    profit_status = serializers.ChoiceField(choices=ProfitStatus.choices, required=False)
    unit = serializers.UUIDField(required=False)
    investor = serializers.UUIDField(required=False)
    search = serializers.CharField(max_length=100, required=False, allow_blank=True)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        """Validate date range."""
        date_from = attrs.get('date_from')
        date_to = attrs.get('date_to')

        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({
                'date_to': 'End date must be after start date'
            })

        return attrs


class TransactionCreateSerializer(serializers.Serializer):
    """
    Validate input for opening a transaction.

    Fields:
        unit (UUID): Unit being bought
        transaction_code (str): Optional, generated when omitted
        buy_date (date): Purchase date
        buy_price (decimal): Purchase price, must be positive
        initial_investor_capital (decimal): Optional investor capital override
        initial_manager_capital (decimal): Optional manager capital override
        notes (str): Optional free text
    """

    unit = serializers.UUIDField()
    transaction_code = serializers.CharField(max_length=30, required=False, allow_blank=True)
    buy_date = serializers.DateField()
    buy_price = money(min_value=Decimal('0.01'))
    initial_investor_capital = money(min_value=Decimal('0'), required=False, allow_null=True)
    initial_manager_capital = money(min_value=Decimal('0'), required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate_transaction_code(self, value):
        return value.strip()


class TransactionUpdateSerializer(serializers.Serializer):
    """
    Validate input for editing a transaction.

    Every field is optional; only the fields sent are changed. ``status``
    moves the transaction through its lifecycle, using the sell data and
    shares sent alongside it.
    """

    transaction_code = serializers.CharField(max_length=30, required=False)
    buy_date = serializers.DateField(required=False)
    buy_price = money(min_value=Decimal('0.01'), required=False)
    initial_investor_capital = money(min_value=Decimal('0'), required=False, allow_null=True)
    initial_manager_capital = money(min_value=Decimal('0'), required=False, allow_null=True)
    sell_date = serializers.DateField(required=False, allow_null=True)
    sell_price = money(min_value=Decimal('0.01'), required=False, allow_null=True)
    loss_bearer = serializers.ChoiceField(choices=LossBearer.choices, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=TransactionStatus.choices, required=False)
    investor_share_percentage = percentage(required=False)
    manager_share_percentage = percentage(required=False)

    def validate_transaction_code(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Transaction code can't be empty")
        return value

    def validate(self, attrs):
        return validate_share_pair(attrs)


class FinalizeSaleSerializer(serializers.Serializer):
    """
    Validate input for recording a sale.

    Fields:
        sell_date (date): Sale date
        sell_price (decimal): Sale price, must be positive
        investor_share_percentage (decimal): Optional, 0-100
        manager_share_percentage (decimal): Optional, 0-100
        loss_bearer (str): Optional, informational only
        notes (str): Optional free text
    """

    sell_date = serializers.DateField()
    sell_price = money(min_value=Decimal('0.01'))
    investor_share_percentage = percentage(required=False, allow_null=True)
    manager_share_percentage = percentage(required=False, allow_null=True)
    loss_bearer = serializers.ChoiceField(choices=LossBearer.choices, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        return validate_share_pair(attrs)


class UpdateSharesSerializer(serializers.Serializer):
    """Validate input for changing the profit split of a sold transaction."""

    investor_share_percentage = percentage(required=False)
    manager_share_percentage = percentage(required=False)

    def validate(self, attrs):
        if 'investor_share_percentage' not in attrs and 'manager_share_percentage' not in attrs:
            raise serializers.ValidationError(
                'Provide investor_share_percentage, manager_share_percentage or both'
            )
        return validate_share_pair(attrs)


class PaymentCreateSerializer(serializers.Serializer):
    """
    Validate input for recording a payout.

    Fields:
        amount (decimal): Amount paid, must be positive
        payment_date (date): Date of the payout
        method (str): transfer or cash
        proof_image_url (str): Optional link to a transfer receipt
        notes (str): Optional free text
    """

    amount = money(min_value=Decimal('0.01'))
    payment_date = serializers.DateField()
    method = serializers.ChoiceField(choices=PaymentMethod.choices)
    proof_image_url = serializers.URLField(max_length=500, required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class CostInputSerializer(serializers.Serializer):
    """
    Validate input for adding or editing a cost.

    Use with ``partial=True`` for edits.
    """

    cost_type = serializers.ChoiceField(choices=CostType.choices, default=CostType.OTHER)
    payer = serializers.ChoiceField(choices=Payer.choices)
    amount = money(min_value=Decimal('0'))
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    date = serializers.DateField(required=False, allow_null=True)


# =============================================================================
# Output Serializers
# =============================================================================

class CostSerializer(serializers.ModelSerializer):
    """Serializer for costs."""

    class Meta:
        model = Cost
        fields = [
            'id',
            'transaction',
            'cost_type',
            'payer',
            'amount',
            'description',
            'date',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ProfitSharingSerializer(serializers.ModelSerializer):
    """Serializer for the profit split snapshot."""

    class Meta:
        model = ProfitSharing
        fields = [
            'id',
            'total_capital_investor',
            'total_capital_manager',
            'total_capital',
            'net_margin',
            'investor_share_percentage',
            'manager_share_percentage',
            'investor_profit_amount',
            'manager_profit_amount',
            'updated_at',
        ]
        read_only_fields = fields


class PaymentHistorySerializer(serializers.ModelSerializer):
    """Serializer for payouts."""

    investor_name = serializers.CharField(source='investor.name', read_only=True)

    class Meta:
        model = PaymentHistory
        fields = [
            'id',
            'transaction',
            'investor',
            'investor_name',
            'amount',
            'payment_date',
            'method',
            'proof_image_url',
            'notes',
            'created_at',
        ]
        read_only_fields = fields


class TransactionListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for transaction lists."""

    unit = UnitMinimalSerializer(read_only=True)

    class Meta:
        model = Transaction
        fields = [
            'id',
            'transaction_code',
            'unit',
            'buy_date',
            'buy_price',
            'sell_date',
            'sell_price',
            'status',
            'profit_status',
            'payment_status',
            'created_at',
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    """Detailed transaction with costs, profit sharing and payouts."""

    unit = UnitMinimalSerializer(read_only=True)
    costs = CostSerializer(many=True, read_only=True)
    payment_histories = PaymentHistorySerializer(many=True, read_only=True)
    profit_sharing = serializers.SerializerMethodField()
    cost_totals = serializers.SerializerMethodField()

    class Meta:
        model = Transaction
        fields = [
            'id',
            'transaction_code',
            'unit',
            'buy_date',
            'buy_price',
            'initial_investor_capital',
            'initial_manager_capital',
            'sell_date',
            'sell_price',
            'status',
            'profit_status',
            'payment_status',
            'loss_bearer',
            'notes',
            'cost_totals',
            'costs',
            'profit_sharing',
            'payment_histories',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_profit_sharing(self, obj):
        profit_sharing = getattr(obj, 'profit_sharing', None)
        if profit_sharing is None:
            return None
        return ProfitSharingSerializer(profit_sharing).data

    def get_cost_totals(self, obj):
        totals = aggregate_costs(obj.costs.all())
        return {
            'investor_costs': str(totals.investor_costs),
            'manager_costs': str(totals.manager_costs),
            'total_costs': str(totals.total_costs),
        }


class PaymentResultSerializer(serializers.Serializer):
    payment = PaymentHistorySerializer(read_only=True)
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, read_only=True)
    total_paid = money(read_only=True)


class PaymentSummarySerializer(serializers.Serializer):
    investor_should_receive = money(read_only=True)
    total_paid = money(read_only=True)
    remaining = money(read_only=True)
    payment_status = serializers.ChoiceField(choices=PaymentStatus.choices, read_only=True)
