from rest_framework import serializers
from .models import Unit, UnitStatus


# =============================================================================
# Input Serializers
# =============================================================================

class UnitFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for unit filtering.

    Query Parameters:
        status (str): Filter by unit status
        investor (UUID): Filter by investor ID
        search (str): Match code, name or plate number
    """

    status = serializers.ChoiceField(choices=UnitStatus.choices, required=False)
    investor = serializers.UUIDField(required=False)
    search = serializers.CharField(max_length=100, required=False, allow_blank=True)


# =============================================================================
# Output Serializers
# =============================================================================

class UnitMinimalSerializer(serializers.ModelSerializer):
    """Minimal unit info for nested serialization."""

    investor_name = serializers.CharField(source='investor.name', read_only=True)

    class Meta:
        model = Unit
        fields = ['id', 'code', 'name', 'plate_number', 'status', 'investor', 'investor_name']
        read_only_fields = fields


class UnitSerializer(serializers.ModelSerializer):
    """Main serializer for units."""

    investor_name = serializers.CharField(source='investor.name', read_only=True)

    class Meta:
        model = Unit
        fields = [
            'id',
            'code',
            'name',
            'plate_number',
            'investor',
            'investor_name',
            'status',
            'image_url',
            'tax_due_date',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'investor_name', 'created_at', 'updated_at']

    def validate_code(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Code can't be empty")
        return value

    def validate_plate_number(self, value):
        return value.strip().upper()


class NextCodeSerializer(serializers.Serializer):
    code = serializers.CharField(read_only=True)
