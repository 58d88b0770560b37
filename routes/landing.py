from flask import Blueprint, jsonify

from forms import BrandSignupForm, InfluencerSignupForm
from services import landing_service
from utils.helpers import validate_form

# Public landing-page endpoints: showcase listings and brand/influencer signup.
landing_bp = Blueprint('landing', __name__)


@landing_bp.route('/api/brands')
def list_brands():
    return jsonify({'success': True, 'brands': landing_service.list_public_brands()})


@landing_bp.route('/api/influencers')
def list_influencers():
    return jsonify({'success': True, 'influencers': landing_service.list_public_influencers()})


@landing_bp.route('/signup-form-brand', methods=['POST'])
def signup_brand():
    """
    Registers an unverified brand. The response points the client at plan selection;
    an admin has to verify the brand before it can create campaigns.
    """
    form = validate_form(BrandSignupForm())
    brand, redirect_to = landing_service.signup_brand(
        brand_name=form.brand_name.data,
        email=form.email.data,
        password=form.password.data,
        industry=form.industry.data,
        phone=form.phone.data,
        website=form.website.data,
        total_audience=form.total_audience.data or 0,
    )
    return jsonify({
        'success': True,
        'message': 'Brand registered successfully',
        'brand_id': brand.id,
        'redirect_to': redirect_to,
    }), 201


@landing_bp.route('/signup-form-influencer', methods=['POST'])
def signup_influencer():
    form = validate_form(InfluencerSignupForm())
    influencer, redirect_to = landing_service.signup_influencer(
        full_name=form.full_name.data,
        email=form.email.data,
        password=form.password.data,
        platform=form.platform.data,
        social_handle=form.social_handle.data,
        audience=form.audience.data,
        niche=form.niche.data,
        phone=form.phone.data,
    )
    return jsonify({
        'success': True,
        'message': 'Influencer registered successfully',
        'influencer_id': influencer.id,
        'redirect_to': redirect_to,
    }), 201
