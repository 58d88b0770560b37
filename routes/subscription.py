from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from services import subscription_service
from utils.decorators import role_required
from utils.errors import ServiceError
from utils.helpers import get_json_body

# Blueprint for plan selection, payments and subscription management.
# Plan selection and payment also serve accounts that just signed up and are not logged in
# yet; those requests identify the account with user_id/user_type and are only accepted until
# the account holds its first subscription.
subscription_bp = Blueprint('subscription', __name__, url_prefix='/subscription')


def _subscriber(data):
    """
    Resolves (user_id, user_type) for the request: the logged-in brand or influencer, or
    the explicit identifiers sent by the post-signup flow for an account without a plan yet.
    """
    if current_user.is_authenticated and current_user.role in ('brand', 'influencer'):
        return current_user.id, current_user.role
    user_id, user_type = data.get('user_id'), data.get('user_type')
    if not user_id or not user_type:
        raise ServiceError('Missing required parameters')
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise ServiceError('Invalid user id')
    subscription_service.ensure_awaiting_first_plan(user_id, user_type)
    return user_id, user_type


@subscription_bp.route('/plans')
def plans():
    """
    Lists active plans for a user type, cheapest first.

    Query Parameters:
        user_type (str): 'brand' or 'influencer'. Defaults to the logged-in account's role.
    """
    user_type = request.args.get('user_type')
    if not user_type and current_user.is_authenticated:
        user_type = current_user.role
    if user_type not in ('brand', 'influencer'):
        raise ServiceError('Invalid user type')
    plan_list = subscription_service.get_plans_for_user_type(user_type)
    return jsonify({'success': True, 'user_type': user_type, 'plans': [plan.to_dict() for plan in plan_list]})


@subscription_bp.route('/subscribe', methods=['POST'])
@login_required
@role_required('brand', 'influencer')
def subscribe():
    data = get_json_body()
    result = subscription_service.subscribe(current_user.id, current_user.role, data.get('plan_id'),
                                            data.get('billing_cycle', 'monthly'))
    return jsonify(dict(result, success=True))


@subscription_bp.route('/select-after-signup', methods=['POST'])
def select_after_signup():
    data = get_json_body()
    result = subscription_service.subscribe_after_signup(
        data.get('user_id'), data.get('user_type'), data.get('plan_id'), data.get('billing_cycle'))
    return jsonify(dict(result, success=True))


@subscription_bp.route('/payment')
def payment_page():
    """Payment page data: the selected plan and, for a signed-in account, its masked saved card."""
    user_id, user_type = _subscriber(request.args)
    plan_id = request.args.get('plan_id')
    if not plan_id:
        raise ServiceError('Missing required parameters')
    details = subscription_service.get_payment_page_details(
        user_id, user_type, plan_id, request.args.get('billing_cycle', 'monthly'),
        include_saved_card=current_user.is_authenticated and current_user.role in ('brand', 'influencer'))
    return jsonify(dict(details, success=True, user_id=user_id, user_type=user_type))


@subscription_bp.route('/process-payment', methods=['POST'])
def process_payment():
    data = get_json_body()
    user_id, user_type = _subscriber(data)
    result = subscription_service.process_payment(
        user_id, user_type, data.get('plan_id'), data.get('billing_cycle'), data.get('amount'), data.get('card_data'))
    return jsonify(dict(result, success=True, message='Payment successful'))


@subscription_bp.route('/payment-success')
def payment_success():
    transaction_id = request.args.get('transaction_id')
    if not transaction_id:
        raise ServiceError('Transaction ID is required')
    return jsonify(dict(subscription_service.get_payment_success_details(transaction_id), success=True))


@subscription_bp.route('/manage')
@login_required
@role_required('brand', 'influencer')
def manage():
    overview = subscription_service.get_management_overview(current_user.id, current_user.role)
    return jsonify(dict(overview, success=True))


@subscription_bp.route('/check-expiry')
@login_required
@role_required('brand', 'influencer')
def check_expiry():
    result = subscription_service.check_subscription_expiry(current_user.id, current_user.role)
    subscription = result['subscription']
    result['subscription'] = subscription.to_dict() if subscription else None
    return jsonify(dict(result, success=True))


@subscription_bp.route('/limits')
@login_required
@role_required('brand', 'influencer')
def limits():
    return jsonify({
        'success': True,
        'limits': subscription_service.get_subscription_limits_with_usage(current_user.id, current_user.role),
    })


@subscription_bp.route('/recalculate', methods=['POST'])
@login_required
@role_required('brand', 'influencer')
def recalculate():
    subscription = subscription_service.recalculate_usage(current_user.id, current_user.role)
    current_app.logger.info(f"Usage recalculated for {current_user.role} {current_user.id}.")
    return jsonify({
        'success': True,
        'subscription': subscription.to_dict() if subscription else None,
        'limits': subscription_service.get_subscription_limits_with_usage(current_user.id, current_user.role),
    })
