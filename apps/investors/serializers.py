from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Investor

User = get_user_model()


# =============================================================================
# Input Serializers
# =============================================================================

class InvestorFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for investor filtering.

    Query Parameters:
        search (str): Match name or contact info
    """

    search = serializers.CharField(max_length=100, required=False, allow_blank=True)


# =============================================================================
# Output Serializers
# =============================================================================

class InvestorMinimalSerializer(serializers.ModelSerializer):
    """Minimal investor info for nested serialization."""

    class Meta:
        model = Investor
        fields = ['id', 'name', 'margin_percentage']
        read_only_fields = fields


class InvestorSerializer(serializers.ModelSerializer):
    """Main serializer for investors."""

    manager_percentage = serializers.DecimalField(
        max_digits=5,
        decimal_places=2,
        read_only=True
    )
    user = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.all(),
        required=False,
        allow_null=True
    )
    user_email = serializers.EmailField(source='user.email', read_only=True)

    class Meta:
        model = Investor
        fields = [
            'id',
            'name',
            'contact_info',
            'bank_account_details',
            'notes',
            'margin_percentage',
            'manager_percentage',
            'user',
            'user_email',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'manager_percentage', 'user_email', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name can't be empty")
        return value

    def validate_contact_info(self, value):
        return value.strip()

    def validate_user(self, value):
        """Only investor accounts can be linked, one profile per account."""
        if value is None:
            return value
        if value.is_admin_role:
            raise serializers.ValidationError("Admin accounts can't be linked to an investor")

        linked = Investor.objects.filter(user=value)
        if self.instance is not None:
            linked = linked.exclude(pk=self.instance.pk)
        if linked.exists():
            raise serializers.ValidationError("This account is already linked to another investor")
        return value
