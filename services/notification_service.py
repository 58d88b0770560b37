from flask import current_app

from extensions import db
from models.notification import Notification, ParticipantTypeEnum


def _participant_type(value):
    if value is None or isinstance(value, ParticipantTypeEnum):
        return value
    return ParticipantTypeEnum(value)


def create_notification(recipient_id, recipient_type, type, title='', body='', sender_id=None,
                        sender_type=None, related_id=None, data=None, commit=True):
    """
    Stores an in-app notification.

    Args:
        recipient_id (int): Id of the brand, influencer or admin receiving it.
        recipient_type (str or ParticipantTypeEnum): 'brand', 'influencer', 'admin' or 'system'.
        type (str): Event name, e.g. 'application_received'.
        commit (bool): Set to False when the caller commits as part of a larger transaction.

    Raises:
        ValueError: If recipient_id, recipient_type or type is missing.
    """
    if not recipient_id or not recipient_type or not type:
        raise ValueError('recipient_id, recipient_type and type are required')

    notification = Notification(
        recipient_id=recipient_id,
        recipient_type=_participant_type(recipient_type),
        sender_id=sender_id,
        sender_type=_participant_type(sender_type),
        type=type,
        title=title or '',
        body=body or '',
        related_id=related_id,
        data=data or {},
        read=False,
    )
    db.session.add(notification)
    if commit:
        db.session.commit()
    current_app.logger.info(f"Notification '{type}' queued for {notification.recipient_type.value} {recipient_id}")
    return notification


def get_notifications(recipient_id, recipient_type, limit=None):
    """Latest notifications for an account, newest first, with the unread count."""
    limit = limit or current_app.config.get('NOTIFICATION_FETCH_LIMIT', 100)
    recipient_type = _participant_type(recipient_type)
    base = Notification.query.filter_by(recipient_id=recipient_id, recipient_type=recipient_type)
    notifications = base.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()
    unread_count = base.filter_by(read=False).count()
    return notifications, unread_count


def mark_read(recipient_id, recipient_type, ids):
    """
    Marks the given notifications as read. Ids that belong to another account are ignored.

    Returns:
        int: Number of notifications updated.
    """
    updated = Notification.query.filter(
        Notification.id.in_(ids),
        Notification.recipient_id == recipient_id,
        Notification.recipient_type == _participant_type(recipient_type),
    ).update({Notification.read: True}, synchronize_session=False)
    db.session.commit()
    return updated


def mark_all_read(recipient_id, recipient_type):
    """Marks every unread notification of the account as read and returns how many changed."""
    updated = Notification.query.filter_by(
        recipient_id=recipient_id, recipient_type=_participant_type(recipient_type), read=False,
    ).update({Notification.read: True}, synchronize_session=False)
    db.session.commit()
    return updated
