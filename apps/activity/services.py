"""
Activity logging service.

Records are written after the originating mutation has committed. A
failure to write the log entry is logged and swallowed so it can never
turn a successful change into an error.
"""

import logging

from django.db import DatabaseError, transaction

from .models import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(*, action, entity, entity_id, details='', user=None):
    """
    Write one ActivityLog row.

    Args:
        action: ActivityAction value
        entity: ActivityEntity value
        entity_id: Identifier of the changed record
        details: Human readable description
        user: Acting user, or None for system changes

    Returns:
        The created ActivityLog, or None if the write failed
    """
    if user is not None and getattr(user, 'is_authenticated', False):
        acting_user = user
        user_name = user.get_display_name()
    else:
        acting_user = None
        user_name = 'System'

    try:
        with transaction.atomic():
            return ActivityLog.objects.create(
                action=action,
                entity=entity,
                entity_id=str(entity_id),
                details=details,
                user=acting_user,
                user_name=user_name,
            )
    except DatabaseError:
        logger.exception("Failed to log %s %s %s", action, entity, entity_id)
        return None


def log_activity_on_commit(**kwargs):
    """Schedule log_activity to run once the current transaction commits."""
    transaction.on_commit(lambda: log_activity(**kwargs), robust=True)
