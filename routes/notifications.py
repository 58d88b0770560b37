from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from services import notification_service
from utils.decorators import role_required
from utils.errors import ServiceError
from utils.helpers import get_json_body

notifications_bp = Blueprint('notifications', __name__, url_prefix='/notifications')


@notifications_bp.route('/')
@login_required
@role_required('brand', 'influencer', 'admin')
def list_notifications():
    notifications, unread_count = notification_service.get_notifications(current_user.id, current_user.role)
    return jsonify({
        'success': True,
        'notifications': [notification.to_dict() for notification in notifications],
        'unread_count': unread_count,
    })


@notifications_bp.route('/mark-read', methods=['POST'])
@login_required
@role_required('brand', 'influencer', 'admin')
def mark_read():
    """Body: `ids` (list of notification ids) or a single `id`."""
    data = get_json_body()
    ids = data.get('ids')
    if not ids and data.get('id') is not None:
        ids = [data['id']]
    if not ids or not isinstance(ids, list):
        raise ServiceError('No ids provided')
    try:
        ids = [int(notification_id) for notification_id in ids]
    except (TypeError, ValueError):
        raise ServiceError('Invalid notification id')
    updated = notification_service.mark_read(current_user.id, current_user.role, ids)
    return jsonify({'success': True, 'updated': updated})


@notifications_bp.route('/mark-all-read', methods=['POST'])
@login_required
@role_required('brand', 'influencer', 'admin')
def mark_all_read():
    updated = notification_service.mark_all_read(current_user.id, current_user.role)
    return jsonify({'success': True, 'message': 'All notifications marked as read', 'updated': updated})
