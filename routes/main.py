from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from services import admin_service
from utils.helpers import get_json_body

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    return jsonify({'success': True, 'name': 'CollabSync API', 'status': 'ok'})


@main_bp.route('/feedback', methods=['POST'])
@login_required
def submit_feedback():
    """Any logged-in account can send feedback (type, subject, message) to the admins."""
    feedback = admin_service.submit_feedback(current_user, get_json_body())
    return jsonify({'success': True, 'message': 'Feedback submitted successfully', 'feedback': feedback.to_dict()}), 201
