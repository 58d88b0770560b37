from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user, logout_user

from services import campaign_service, content_service, message_service, offer_service, profile_service
from utils.decorators import role_required, verified_required, subscription_limit_required
from utils.errors import ServiceError
from utils.helpers import get_json_body

# Blueprint for the brand area: dashboard, profile, campaigns, collaboration requests,
# content review, offers and messages.
brand_bp = Blueprint('brand', __name__, url_prefix='/brand')


@brand_bp.before_request
@login_required
@role_required('brand')
def require_brand():
    """Every brand route needs a logged-in brand account."""


@brand_bp.route('/home')
def home():
    return jsonify(dict(campaign_service.brand_dashboard(current_user), success=True))


# --- Profile ---

@brand_bp.route('/profile')
def profile():
    return jsonify({'success': True, 'brand': current_user.to_dict()})


@brand_bp.route('/profile/update', methods=['POST'])
def update_profile():
    brand = profile_service.update_brand_profile(current_user, get_json_body())
    return jsonify({'success': True, 'message': 'Profile updated successfully', 'brand': brand.to_dict()})


@brand_bp.route('/profile/delete', methods=['POST'])
def delete_profile():
    brand = current_user._get_current_object()
    profile_service.delete_brand_account(brand)
    logout_user()
    return jsonify({'success': True, 'message': 'Account deleted successfully', 'redirect_to': '/'})


# --- Campaigns ---

@brand_bp.route('/campaigns/create', methods=['POST'])
@verified_required
@subscription_limit_required('create_campaign')
def create_campaign():
    campaign = campaign_service.create_campaign(current_user, get_json_body())
    return jsonify({
        'success': True,
        'message': 'Campaign created successfully',
        'campaign': campaign.to_dict(include_metrics=True),
        'products': [product.to_dict() for product in campaign.products],
    }), 201


@brand_bp.route('/campaigns/<int:campaign_id>/activate', methods=['POST'])
def activate_campaign(campaign_id):
    campaign = campaign_service.activate_campaign(current_user, campaign_id)
    return jsonify({'success': True, 'message': 'Campaign activated', 'campaign': campaign.to_dict()})


@brand_bp.route('/campaigns/<int:campaign_id>/details')
def campaign_details(campaign_id):
    return jsonify(dict(campaign_service.campaign_details(current_user, campaign_id), success=True))


@brand_bp.route('/campaigns/<int:campaign_id>/end', methods=['POST'])
def end_campaign(campaign_id):
    campaign = campaign_service.end_campaign(current_user, campaign_id)
    return jsonify({'success': True, 'message': 'Campaign ended successfully',
                    'campaign': campaign.to_dict(include_metrics=True)})


@brand_bp.route('/campaigns/draft-list')
def draft_list():
    return jsonify({'success': True, 'campaigns': campaign_service.draft_campaigns(current_user)})


@brand_bp.route('/campaigns/history')
def campaign_history():
    return jsonify({'success': True, 'campaigns': campaign_service.campaign_history(current_user)})


@brand_bp.route('/campaigns/<int:campaign_id>/products', methods=['GET', 'POST'])
def campaign_products(campaign_id):
    """GET lists the campaign's products; POST adds the products in the body's `products` list."""
    if request.method == 'GET':
        return jsonify({'success': True, 'products': campaign_service.list_products(current_user, campaign_id)})
    products = campaign_service.add_products(current_user, campaign_id, get_json_body().get('products'))
    return jsonify({'success': True, 'message': 'Products added successfully',
                    'products': [product.to_dict() for product in products]}), 201


# --- Invitations and requests ---

@brand_bp.route('/invite-influencer', methods=['POST'])
@verified_required
@subscription_limit_required('connect_influencer')
def invite_influencer():
    data = get_json_body()
    if not data.get('campaign_id') or not data.get('influencer_id'):
        raise ServiceError('Campaign ID and influencer ID are required')
    collaboration = campaign_service.invite_influencer(current_user, data['campaign_id'], data['influencer_id'])
    return jsonify({'success': True, 'message': 'Invitation sent successfully',
                    'collaboration': collaboration.to_dict()}), 201


@brand_bp.route('/received-requests')
def received_requests():
    return jsonify({'success': True, 'requests': campaign_service.received_requests(current_user)})


@brand_bp.route('/requests/<int:collab_id>/decline', methods=['POST'])
def decline_request(collab_id):
    collaboration = campaign_service.decline_request(current_user, collab_id)
    return jsonify({'success': True, 'message': 'Request declined', 'collaboration': collaboration.to_dict()})


@brand_bp.route('/requests/<int:collab_id>/transaction', methods=['POST'])
def accept_request(collab_id):
    collaboration = campaign_service.accept_request_with_payment(current_user, collab_id, get_json_body())
    return jsonify({
        'success': True,
        'message': 'Request accepted and payment recorded',
        'collaboration': collaboration.to_dict(include_campaign=True),
    })


@brand_bp.route('/collaborations/<int:collab_id>/messages', methods=['GET', 'POST'])
def collaboration_messages(collab_id):
    """GET returns the thread, oldest first; POST sends the body's `message`."""
    if request.method == 'GET':
        return jsonify({'success': True, 'messages': message_service.get_thread(current_user, collab_id)})
    message = message_service.send_message(current_user, collab_id, get_json_body().get('message'))
    return jsonify({'success': True, 'message': 'Message sent', 'sent': message.to_dict()}), 201


# --- Content review ---

@brand_bp.route('/content/pending')
def pending_content():
    return jsonify({'success': True, 'content': content_service.pending_content(current_user)})


@brand_bp.route('/campaigns/<int:campaign_id>/pending-content')
def campaign_pending_content(campaign_id):
    return jsonify(dict(content_service.campaign_pending_content(current_user, campaign_id), success=True))


@brand_bp.route('/content/<int:content_id>/review', methods=['POST'])
def review_content(content_id):
    """Body: `action` ('approve' or 'reject') and optional `feedback`."""
    content = content_service.review_content(current_user, content_id, get_json_body())
    return jsonify({'success': True, 'message': f'Content {content.status.value} successfully',
                    'content': content.to_dict()})


# --- Offers ---

@brand_bp.route('/offers')
def offers():
    return jsonify({'success': True, 'offers': offer_service.brand_offers(current_user)})


@brand_bp.route('/offers/create', methods=['POST'])
@verified_required
def create_offer():
    offer = offer_service.create_offer(current_user, get_json_body())
    return jsonify({'success': True, 'message': 'Offer created successfully', 'offer': offer.to_dict()}), 201


@brand_bp.route('/offers/<int:offer_id>/cancel', methods=['POST'])
def cancel_offer(offer_id):
    offer = offer_service.cancel_offer(current_user, offer_id)
    return jsonify({'success': True, 'message': 'Offer cancelled', 'offer': offer.to_dict()})
