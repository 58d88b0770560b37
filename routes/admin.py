from flask import Blueprint, jsonify, request, current_app
from flask_login import login_user, logout_user, current_user

from forms import AdminLoginForm, AdminPasswordResetForm
from services import admin_service
from utils.errors import ServiceError
from utils.helpers import get_json_body, validate_form, parse_date_range, date_range_bounds

# Blueprint for the back office. Everything except login requires an admin session.
admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

PUBLIC_ENDPOINTS = ('admin.login',)


@admin_bp.before_request
def require_admin():
    if request.endpoint in PUBLIC_ENDPOINTS:
        return None
    if not current_user.is_authenticated:
        raise ServiceError('Authentication required', 401)
    if current_user.role != 'admin':
        raise ServiceError('Admin access required', 403)
    return None


@admin_bp.route('/login', methods=['POST'])
def login():
    form = validate_form(AdminLoginForm())
    admin = admin_service.authenticate_admin(form.username.data, form.password.data)
    login_user(admin)
    return jsonify({'success': True, 'admin': admin.to_dict(), 'redirect_to': '/admin/dashboard'})


@admin_bp.route('/logout', methods=['POST'])
def logout():
    username = current_user.username
    logout_user()
    current_app.logger.info(f"Admin {username} logged out.")
    return jsonify({'success': True, 'message': 'Logged out successfully'})


@admin_bp.route('/dashboard')
def dashboard():
    return jsonify(dict(admin_service.dashboard(), success=True))


# --- Analytics ---

def _requested_range():
    """
    Reads the optional `date_range` query parameter (last_7_days, last_30_days, all_time or
    custom with start_date/end_date). Without it the analytics cover all time.
    """
    start_date, end_date, error = parse_date_range(request.args, default_range_str='all_time')
    if error:
        error_message, status_code = error
        current_app.logger.warning(f"Bad request to {request.path}: {error_message.get('error')} (Params: {request.args})")
        raise ServiceError(error_message['error'], status_code)
    return date_range_bounds(start_date, end_date)


@admin_bp.route('/brand-analytics')
def brand_analytics():
    return jsonify(dict(admin_service.brand_analytics(*_requested_range()), success=True))


@admin_bp.route('/influencer-analytics')
def influencer_analytics():
    return jsonify(dict(admin_service.influencer_analytics(*_requested_range()), success=True))


@admin_bp.route('/campaign-analytics')
def campaign_analytics():
    return jsonify(dict(admin_service.campaign_analytics(*_requested_range()), success=True))


# --- User management ---

@admin_bp.route('/user_management')
def user_management():
    return jsonify(dict(admin_service.user_management(), success=True))


@admin_bp.route('/user_management/approve/<user_type>/<int:account_id>', methods=['POST'])
def approve_user(user_type, account_id):
    account = admin_service.approve_user(user_type, account_id)
    return jsonify({'success': True, 'message': f'{user_type.capitalize()} verified successfully',
                    user_type: account.to_dict()})


@admin_bp.route('/user_management/brand/<int:brand_id>')
def brand_detail(brand_id):
    return jsonify(dict(admin_service.brand_detail(brand_id), success=True))


@admin_bp.route('/user_management/influencer/<int:influencer_id>')
def influencer_detail(influencer_id):
    return jsonify(dict(admin_service.influencer_detail(influencer_id), success=True))


# --- Collaboration monitoring ---

@admin_bp.route('/collaboration_monitoring')
def collaboration_monitoring():
    return jsonify({'success': True, 'collaborations': admin_service.collaborations()})


@admin_bp.route('/collaboration_monitoring/<int:collab_id>')
def collaboration_detail(collab_id):
    return jsonify({'success': True, 'collaboration': admin_service.collaboration_detail(collab_id)})


# --- Payment verification ---

@admin_bp.route('/payment_verification')
def payment_verification():
    return jsonify({'success': True, 'payments': admin_service.payments()})


@admin_bp.route('/payment_verification/<int:payment_id>')
def payment_detail(payment_id):
    return jsonify({'success': True, 'payment': admin_service.payment_detail(payment_id)})


@admin_bp.route('/payment_verification/update/<int:payment_id>', methods=['POST'])
def update_payment(payment_id):
    payment = admin_service.update_payment_status(payment_id, get_json_body().get('status'))
    return jsonify({'success': True, 'message': 'Payment status updated', 'payment': payment.to_dict()})


# --- Feedback moderation ---

@admin_bp.route('/feedback_and_moderation')
def feedback_list():
    return jsonify({'success': True, 'feedback': admin_service.feedback_list()})


@admin_bp.route('/feedback_and_moderation/<int:feedback_id>')
def feedback_detail(feedback_id):
    return jsonify({'success': True, 'feedback': admin_service.feedback_detail(feedback_id)})


@admin_bp.route('/feedback_and_moderation/update/<int:feedback_id>', methods=['POST'])
def update_feedback(feedback_id):
    feedback = admin_service.update_feedback_status(feedback_id, get_json_body().get('status'))
    return jsonify({'success': True, 'message': 'Feedback status updated', 'feedback': feedback.to_dict()})


# --- Customers and orders ---

@admin_bp.route('/customers')
def customers():
    return jsonify({'success': True, 'customers': admin_service.customers()})


@admin_bp.route('/customers/analytics')
def customer_analytics():
    return jsonify(dict(admin_service.customer_analytics(), success=True))


@admin_bp.route('/customers/<int:customer_id>')
def customer_detail(customer_id):
    return jsonify(dict(admin_service.customer_detail(customer_id), success=True))


@admin_bp.route('/customers/<int:customer_id>/status', methods=['POST'])
def update_customer_status(customer_id):
    data = get_json_body()
    customer = admin_service.update_customer_status(customer_id, data.get('status'), data.get('notes'))
    return jsonify({'success': True, 'message': 'Customer status updated', 'customer': customer.to_dict()})


@admin_bp.route('/orders')
def orders():
    return jsonify({'success': True, 'orders': admin_service.orders()})


# --- Settings ---

@admin_bp.route('/settings')
def settings():
    return jsonify({'success': True, 'admin': current_user.to_dict()})


@admin_bp.route('/reset-password', methods=['POST'])
def reset_password():
    form = validate_form(AdminPasswordResetForm())
    admin_service.reset_password(current_user, form.current_password.data, form.new_password.data)
    return jsonify({'success': True, 'message': 'Password updated successfully'})


# --- Notifications ---

@admin_bp.route('/notifications')
def notifications():
    return jsonify(dict(admin_service.generate_notifications(current_user), success=True))


@admin_bp.route('/notifications/mark-all-read', methods=['POST'])
def mark_all_notifications_read():
    updated = admin_service.mark_all_notifications_read(current_user)
    return jsonify({'success': True, 'message': 'All notifications marked as read', 'updated': updated})
