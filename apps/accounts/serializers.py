from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Basic user serializer for profile display."""
    
    investor_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'display_name',
            'role',
            'investor_id',
            'created_at',
            'last_login',
        ]
        read_only_fields = fields

    def get_investor_id(self, obj):
        investor = getattr(obj, 'investor_profile', None)
        return str(investor.id) if investor else None


class UserLoginSerializer(serializers.Serializer):
    """Serializer for user login."""
    
    email = serializers.EmailField(required=True)
    password = serializers.CharField(
        required=True,
        write_only=True,
        style={'input_type': 'password'}
    )
