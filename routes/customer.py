from flask import Blueprint, jsonify, request, session
from flask_login import login_required, current_user

from services import content_service, offer_service, storefront_service, profile_service
from utils.decorators import role_required
from utils.helpers import get_json_body

# Blueprint for the customer storefront. Browsing, the cart and checkout are public;
# only the order history needs a logged-in customer.
customer_bp = Blueprint('customer', __name__, url_prefix='/customer')

CART_SESSION_KEY = 'cart'


@customer_bp.route('/')
def storefront():
    return jsonify({'success': True, 'campaigns': storefront_service.storefront_home()})


@customer_bp.route('/campaign/<int:campaign_id>/shop')
def campaign_shop(campaign_id):
    return jsonify(dict(storefront_service.campaign_shop(campaign_id), success=True))


@customer_bp.route('/product/<int:product_id>')
def product_detail(product_id):
    return jsonify({'success': True, 'product': storefront_service.product_detail(product_id)})


# --- Cart (kept in the Flask session) ---

@customer_bp.route('/cart')
def cart():
    return jsonify(dict(storefront_service.get_cart(session.get(CART_SESSION_KEY, [])), success=True))


@customer_bp.route('/cart/add', methods=['POST'])
def add_to_cart():
    data = get_json_body()
    session[CART_SESSION_KEY] = storefront_service.add_to_cart(
        session.get(CART_SESSION_KEY, []), data.get('product_id'), data.get('quantity', 1))
    return jsonify(dict(storefront_service.get_cart(session[CART_SESSION_KEY]),
                        success=True, message='Product added to cart'))


@customer_bp.route('/cart/remove', methods=['POST'])
def remove_from_cart():
    session[CART_SESSION_KEY] = storefront_service.remove_from_cart(
        session.get(CART_SESSION_KEY, []), get_json_body().get('product_id'))
    return jsonify(dict(storefront_service.get_cart(session[CART_SESSION_KEY]),
                        success=True, message='Product removed from cart'))


@customer_bp.route('/checkout', methods=['POST'])
def checkout():
    """
    Pays for the cart. The cart is taken from the body's `cart` list when present,
    otherwise from the session, and is cleared after a successful payment.
    """
    data = get_json_body()
    cart_lines = data.get('cart') or session.get(CART_SESSION_KEY, [])
    customer_info = data.get('customer_info')
    if not customer_info and current_user.is_authenticated and current_user.role == 'customer':
        customer_info = {'name': current_user.name, 'email': current_user.email, 'phone': current_user.phone}
    order, message = storefront_service.checkout(
        cart_lines, customer_info, shipping_address=data.get('shipping_address'),
        referral_code=data.get('referral_code'))
    session.pop(CART_SESSION_KEY, None)
    return jsonify({'success': True, 'message': message, 'order': order.to_dict()}), 201


@customer_bp.route('/orders')
@login_required
@role_required('customer')
def orders():
    return jsonify({'success': True, 'orders': storefront_service.customer_orders(current_user)})


@customer_bp.route('/rankings')
def rankings():
    """
    Query Parameters:
        brand_sort (str, optional): revenue, completed_campaigns or rating.
        influencer_sort (str, optional): total_followers, avg_engagement_rate or completed_campaigns.
    """
    result = storefront_service.rankings(
        brand_sort=request.args.get('brand_sort', 'revenue'),
        influencer_sort=request.args.get('influencer_sort', 'total_followers'))
    return jsonify(dict(result, success=True))


# --- Public profiles ---

@customer_bp.route('/brand/<int:brand_id>/profile')
def brand_profile(brand_id):
    return jsonify(dict(profile_service.public_brand_profile(brand_id), success=True))


@customer_bp.route('/influencer/<int:influencer_id>/profile')
def influencer_profile(influencer_id):
    return jsonify(dict(profile_service.public_influencer_profile(influencer_id), success=True))


# --- Campaign content and offers ---

@customer_bp.route('/campaign/<int:campaign_id>/content')
def campaign_content(campaign_id):
    """
    Query Parameters:
        page (int, optional): Defaults to 1.
        limit (int, optional): Page size, defaults to 20.
    """
    result = content_service.published_content(campaign_id, page=request.args.get('page', 1),
                                                per_page=request.args.get('limit', content_service.CONTENT_PAGE_SIZE))
    return jsonify(dict(result, success=True))


@customer_bp.route('/offers')
def offers():
    return jsonify({'success': True, 'offers': offer_service.active_offers()})


@customer_bp.route('/offers/<int:offer_id>')
def offer_detail(offer_id):
    return jsonify({'success': True, 'offer': offer_service.offer_detail(offer_id)})
