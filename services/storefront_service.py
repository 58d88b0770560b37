"""
Customer storefront: browsing campaign products, the session cart, checkout and rankings.

The cart is a plain list of {"product_id", "quantity"} dicts; the routes keep it in the
Flask session and pass it in and out of these functions.
"""
from datetime import datetime
import random
import string

from flask import current_app
from sqlalchemy import func

from extensions import db
from models.brand import Brand
from models.campaign import Campaign, CampaignStatusEnum
from models.collaboration import Collaboration, CollaborationStatusEnum
from models.customer import Customer, CustomerStatusEnum
from models.influencer import Influencer
from models.order import Order, OrderItem, OrderStatusEnum
from models.product import Product, ProductStatusEnum
from models.account import AccountStatusEnum
from utils.errors import ServiceError
from utils.helpers import round_to

BRAND_RANKINGS = ('revenue', 'completed_campaigns', 'rating')
INFLUENCER_RANKINGS = ('total_followers', 'avg_engagement_rate', 'completed_campaigns')
RANKING_LIMIT = 10


def _active_products(campaign):
    return campaign.products.filter_by(status=ProductStatusEnum.ACTIVE).all()


def storefront_home():
    campaigns = Campaign.query.filter_by(status=CampaignStatusEnum.ACTIVE).order_by(Campaign.created_at.desc()).all()
    results = []
    for campaign in campaigns:
        data = campaign.to_dict()
        data['brand'] = campaign.brand.to_summary() if campaign.brand else None
        data['products'] = [product.to_dict() for product in _active_products(campaign)]
        results.append(data)
    return results


def campaign_shop(campaign_id):
    campaign = Campaign.query.filter_by(id=campaign_id, status=CampaignStatusEnum.ACTIVE).first()
    if campaign is None:
        raise ServiceError('Campaign not found', 404)
    influencers = [collab.influencer.to_summary()
                   for collab in campaign.collaborations.filter_by(status=CollaborationStatusEnum.ACTIVE)]
    return {
        'campaign': campaign.to_dict(),
        'brand': campaign.brand.to_summary() if campaign.brand else None,
        'products': [product.to_dict() for product in _active_products(campaign)],
        'influencers': influencers,
    }


def product_detail(product_id):
    product = db.session.get(Product, product_id)
    if product is None or product.status == ProductStatusEnum.DISCONTINUED:
        raise ServiceError('Product not found', 404)
    data = product.to_dict()
    data['campaign'] = product.campaign.to_dict() if product.campaign else None
    data['brand'] = product.brand.to_summary() if product.brand else None
    return data


# --- Cart ---

def _merge_lines(cart):
    """Collapses duplicate product lines, keeping the first-seen order."""
    merged = {}
    for line in cart or []:
        try:
            product_id, quantity = int(line['product_id']), int(line['quantity'])
        except (KeyError, TypeError, ValueError):
            raise ServiceError('Invalid cart item')
        if quantity < 1:
            raise ServiceError('Invalid quantity')
        merged[product_id] = merged.get(product_id, 0) + quantity
    return merged


def _totals(subtotal):
    rate = current_app.config.get('STOREFRONT_SHIPPING_RATE', 0.05)
    subtotal = round_to(subtotal)
    shipping = round_to(subtotal * rate)
    return subtotal, shipping, round_to(subtotal + shipping)


def get_cart(cart):
    lines = []
    running = 0.0
    for product_id, quantity in _merge_lines(cart).items():
        product = db.session.get(Product, product_id)
        if product is None:
            continue
        line_total = round_to(product.campaign_price * quantity)
        running += line_total
        lines.append({
            'product_id': product.id,
            'name': product.name,
            'image': product.primary_image,
            'campaign_price': product.campaign_price,
            'original_price': product.original_price,
            'quantity': quantity,
            'line_total': line_total,
            'available_quantity': product.available_quantity,
        })
    subtotal, shipping, total = _totals(running)
    return {'items': lines, 'subtotal': subtotal, 'shipping': shipping, 'total': total}


def add_to_cart(cart, product_id, quantity=1):
    """Returns the updated cart; raises ServiceError when the product or stock is not available."""
    if product_id in (None, ''):
        raise ServiceError('Product ID is required')
    try:
        product_id = int(product_id)
    except (TypeError, ValueError):
        raise ServiceError('Product not available')
    product = db.session.get(Product, product_id)
    if product is None or product.status != ProductStatusEnum.ACTIVE:
        raise ServiceError('Product not available')
    if isinstance(quantity, bool):
        raise ServiceError('Invalid quantity')
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        raise ServiceError('Invalid quantity')
    if quantity < 1:
        raise ServiceError('Invalid quantity')

    merged = _merge_lines(cart)
    in_cart = merged.get(product_id, 0)
    available = product.available_quantity - in_cart
    if quantity > available:
        raise ServiceError(f'Insufficient stock. Only {max(0, available)} left')
    merged[product_id] = in_cart + quantity
    return [{'product_id': pid, 'quantity': qty} for pid, qty in merged.items()]


def remove_from_cart(cart, product_id):
    try:
        product_id = int(product_id)
    except (TypeError, ValueError):
        raise ServiceError('Product ID is required')
    return [line for line in cart or [] if int(line.get('product_id', 0)) != product_id]


def _generate_payment_id():
    suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=8))
    return f'PAY-{datetime.utcnow():%Y%m%d%H%M%S}-{suffix}'


def _referring_influencer(referral_code, campaign_ids):
    """Influencer whose username matches the code and who is active in one of the campaigns."""
    if not referral_code:
        return None
    influencer = Influencer.query.filter(func.lower(Influencer.username) == referral_code.strip().lower()).first()
    if influencer is None:
        return None
    active = Collaboration.query.filter(
        Collaboration.influencer_id == influencer.id,
        Collaboration.campaign_id.in_(campaign_ids),
        Collaboration.status == CollaborationStatusEnum.ACTIVE,
    ).first()
    return influencer if active else None


def checkout(cart, customer_info, shipping_address=None, referral_code=None):
    """
    Validates the cart against live stock, records a paid Order, updates product sales and
    upserts the Customer by email.

    Returns:
        tuple: (Order, message)
    """
    merged = _merge_lines(cart)
    if not merged:
        raise ServiceError('Cart is empty')
    customer_info = customer_info if isinstance(customer_info, dict) else {}
    name = (customer_info.get('name') or '').strip()
    email = (customer_info.get('email') or '').strip().lower()
    if not name or not email:
        raise ServiceError('Customer name and email are required')
    existing_customer = Customer.query.filter_by(email=email).first()
    if existing_customer is not None and existing_customer.status == CustomerStatusEnum.SUSPENDED:
        current_app.logger.warning(f"Checkout refused for suspended customer {email}.")
        raise ServiceError('Your account has been suspended', 403, admin_notes=existing_customer.admin_notes)

    products = {}
    for product_id, quantity in merged.items():
        product = db.session.get(Product, product_id)
        if (product is None or product.status != ProductStatusEnum.ACTIVE
                or product.campaign is None or product.campaign.status != CampaignStatusEnum.ACTIVE):
            raise ServiceError('One or more products unavailable')
        if product.available_quantity < quantity:
            raise ServiceError('Insufficient stock for some items')
        products[product_id] = product

    running = sum(products[pid].campaign_price * qty for pid, qty in merged.items())
    subtotal, shipping, total = _totals(running)
    delivery_days = max((p.estimated_delivery_days for p in products.values() if p.estimated_delivery_days),
                        default=current_app.config.get('DEFAULT_DELIVERY_DAYS', 5))
    influencer = _referring_influencer(referral_code, {p.campaign_id for p in products.values()})

    try:
        order = Order(
            customer_name=name,
            customer_email=email,
            customer_phone=customer_info.get('phone'),
            subtotal=subtotal,
            shipping_cost=shipping,
            total_amount=total,
            status=OrderStatusEnum.PAID,
            payment_id=_generate_payment_id(),
            shipping_address=shipping_address,
            delivery_days=delivery_days,
            referral_code=referral_code,
            influencer_id=influencer.id if influencer else None,
        )
        commission = 0.0
        for product_id, quantity in merged.items():
            product = products[product_id]
            line_total = round_to(product.campaign_price * quantity)
            order.items.append(OrderItem(product_id=product.id, product_name=product.name, quantity=quantity,
                                         price_at_purchase=product.campaign_price, subtotal=line_total))
            product.sold_quantity = (product.sold_quantity or 0) + quantity
            if product.sold_quantity >= product.target_quantity:
                product.status = ProductStatusEnum.OUT_OF_STOCK
            if influencer is not None:
                commission += line_total * (product.campaign.commission_rate or 0) / 100
        order.commission_amount = round_to(commission)

        customer = existing_customer
        if customer is None:
            customer = Customer(email=email, name=name)
            db.session.add(customer)
        customer.name = name
        if customer_info.get('phone'):
            customer.phone = customer_info['phone']
        customer.total_purchases = (customer.total_purchases or 0) + sum(merged.values())
        customer.total_spent = round_to((customer.total_spent or 0) + total)
        customer.last_purchase_date = datetime.utcnow()
        db.session.flush()
        order.customer_id = customer.id
        db.session.add(order)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Checkout failed for {email}: {e}", exc_info=True)
        raise

    current_app.logger.info(f"Order {order.id} paid by {email}: total {total}, {sum(merged.values())} item(s).")
    return order, f'Payment completed successfully! Order will be delivered in {delivery_days} days.'


def customer_orders(customer):
    return [order.to_dict() for order in customer.orders.order_by(Order.created_at.desc(), Order.id.desc()).all()]


def rankings(brand_sort='revenue', influencer_sort='total_followers'):
    if brand_sort not in BRAND_RANKINGS:
        brand_sort = 'revenue'
    if influencer_sort not in INFLUENCER_RANKINGS:
        influencer_sort = 'total_followers'

    revenue = func.coalesce(func.sum(Product.sold_quantity * Product.campaign_price), 0)
    brand_rows = db.session.query(Brand, revenue.label('revenue')) \
        .outerjoin(Product, Product.brand_id == Brand.id) \
        .filter(Brand.status == AccountStatusEnum.ACTIVE) \
        .group_by(Brand.id)
    if brand_sort == 'revenue':
        brand_rows = brand_rows.order_by(revenue.desc())
    elif brand_sort == 'rating':
        brand_rows = brand_rows.order_by(Brand.avg_campaign_rating.desc())
    else:
        brand_rows = brand_rows.order_by(Brand.completed_campaigns.desc())

    brands = []
    for rank, (brand, brand_revenue) in enumerate(brand_rows.limit(RANKING_LIMIT).all(), start=1):
        entry = brand.to_summary()
        entry.update({'rank': rank, 'revenue': round_to(brand_revenue), 'rating': brand.avg_campaign_rating})
        brands.append(entry)

    influencer_rows = Influencer.query.filter_by(status=AccountStatusEnum.ACTIVE) \
        .order_by(getattr(Influencer, influencer_sort).desc()).limit(RANKING_LIMIT).all()
    influencers = [dict(influencer.to_summary(), rank=rank) for rank, influencer in enumerate(influencer_rows, start=1)]
    return {'brands': brands, 'influencers': influencers, 'brand_sort': brand_sort, 'influencer_sort': influencer_sort}
