from rest_framework import serializers

from .models import ActivityLog, ActivityAction, ActivityEntity


class ActivityFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for activity log filtering.

    Query Parameters:
        action (str): create, update or delete
        entity (str): Entity type
        entity_id (str): Identifier of one record
        user (UUID): Acting user
    """

    action = serializers.ChoiceField(choices=ActivityAction.choices, required=False)
    entity = serializers.ChoiceField(choices=ActivityEntity.choices, required=False)
    entity_id = serializers.CharField(max_length=64, required=False)
    user = serializers.UUIDField(required=False)


class ActivityLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ActivityLog
        fields = ['id', 'action', 'entity', 'entity_id', 'details', 'user', 'user_name', 'created_at']
        read_only_fields = fields
