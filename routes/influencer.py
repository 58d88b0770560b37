from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user, logout_user

from services import collaboration_service, content_service, message_service, profile_service
from utils.decorators import role_required, verified_required, subscription_limit_required
from utils.helpers import get_json_body

# Blueprint for the influencer area: dashboard, profile, campaign discovery, collaborations
# and campaign content.
influencer_bp = Blueprint('influencer', __name__, url_prefix='/influencer')


@influencer_bp.before_request
@login_required
@role_required('influencer')
def require_influencer():
    """Every influencer route needs a logged-in influencer account."""


@influencer_bp.route('/home')
def home():
    return jsonify(dict(collaboration_service.influencer_dashboard(current_user), success=True))


# --- Profile ---

@influencer_bp.route('/profile')
def profile():
    return jsonify({'success': True, 'influencer': current_user.to_dict()})


@influencer_bp.route('/profile/update', methods=['POST'])
def update_profile():
    influencer = profile_service.update_influencer_profile(current_user, get_json_body())
    return jsonify({'success': True, 'message': 'Profile updated successfully', 'influencer': influencer.to_dict()})


@influencer_bp.route('/profile/delete', methods=['POST'])
def delete_profile():
    influencer = current_user._get_current_object()
    profile_service.delete_influencer_account(influencer)
    logout_user()
    return jsonify({'success': True, 'message': 'Account deleted successfully', 'redirect_to': '/'})


# --- Campaign discovery ---

@influencer_bp.route('/campaigns/explore')
def explore():
    """
    Query Parameters:
        search (str, optional): Matches campaign title or description.
        channel (str, optional): Required channel, e.g. 'Instagram'.
    """
    campaigns = collaboration_service.explore_campaigns(
        current_user, search=request.args.get('search'), channel=request.args.get('channel'))
    return jsonify({'success': True, 'campaigns': campaigns})


@influencer_bp.route('/campaigns/<int:campaign_id>')
def campaign_detail(campaign_id):
    return jsonify(dict(collaboration_service.explore_campaign_detail(current_user, campaign_id), success=True))


@influencer_bp.route('/campaigns/<int:campaign_id>/apply', methods=['POST'])
@verified_required
@subscription_limit_required('connect_brand')
def apply(campaign_id):
    collaboration = collaboration_service.apply_to_campaign(
        current_user, campaign_id, message=get_json_body().get('message'))
    return jsonify({'success': True, 'message': 'Application submitted successfully',
                    'collaboration': collaboration.to_dict()})


@influencer_bp.route('/campaigns/history')
def history():
    return jsonify({'success': True, 'collaborations': collaboration_service.collaboration_history(current_user)})


# --- Invites and requests ---

@influencer_bp.route('/invites/<int:collab_id>/accept', methods=['POST'])
def accept_invite(collab_id):
    collaboration = collaboration_service.accept_invite(current_user, collab_id)
    return jsonify({'success': True, 'message': 'Invite accepted', 'collaboration': collaboration.to_dict()})


@influencer_bp.route('/invites/<int:collab_id>/decline', methods=['POST'])
def decline_invite(collab_id):
    collaboration = collaboration_service.decline_invite(current_user, collab_id)
    return jsonify({'success': True, 'message': 'Invite declined', 'collaboration': collaboration.to_dict()})


@influencer_bp.route('/requests/<int:collab_id>/cancel', methods=['POST'])
def cancel_request(collab_id):
    collaboration = collaboration_service.cancel_request(current_user, collab_id)
    return jsonify({'success': True, 'message': 'Request cancelled', 'collaboration': collaboration.to_dict()})


@influencer_bp.route('/invite-brand', methods=['POST'])
@verified_required
@subscription_limit_required('connect_brand')
def invite_brand():
    collaboration = collaboration_service.invite_brand(current_user, get_json_body())
    return jsonify({'success': True, 'message': 'Collaboration request sent to brand',
                    'collaboration': collaboration.to_dict(include_campaign=True)}), 201


@influencer_bp.route('/collaborations/<int:collab_id>/progress', methods=['POST'])
def update_progress(collab_id):
    collaboration = collaboration_service.update_progress(current_user, collab_id, get_json_body())
    return jsonify({'success': True, 'message': 'Progress updated successfully',
                    'collaboration': collaboration.to_dict()})


@influencer_bp.route('/collaborations/<int:collab_id>/messages', methods=['GET', 'POST'])
def collaboration_messages(collab_id):
    """GET returns the thread, oldest first; POST sends the body's `message`."""
    if request.method == 'GET':
        return jsonify({'success': True, 'messages': message_service.get_thread(current_user, collab_id)})
    message = message_service.send_message(current_user, collab_id, get_json_body().get('message'))
    return jsonify({'success': True, 'message': 'Message sent', 'sent': message.to_dict()}), 201


# --- Campaign content ---

@influencer_bp.route('/content/submit', methods=['POST'])
def submit_content():
    content = content_service.submit_content(current_user, get_json_body())
    return jsonify({'success': True, 'message': 'Content submitted for review', 'content': content.to_dict()}), 201


@influencer_bp.route('/content')
def my_content():
    """
    Query Parameters:
        status (str, optional): submitted, approved, rejected or published.
    """
    return jsonify({'success': True,
                    'content': content_service.influencer_content(current_user, request.args.get('status'))})


@influencer_bp.route('/content/<int:content_id>/publish', methods=['POST'])
def publish_content(content_id):
    content = content_service.publish_content(current_user, content_id, get_json_body())
    return jsonify({'success': True, 'message': 'Content published', 'content': content.to_dict()})
