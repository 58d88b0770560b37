"""
Brand-side campaign workflow: creating campaigns with their products, inviting influencers,
answering collaboration requests (with payment), activating and ending campaigns.

Verification and subscription-limit checks happen in the route decorators before these
functions run.
"""
import math
from datetime import datetime

from flask import current_app

from extensions import db
from models.campaign import (Campaign, CampaignMetrics, CampaignPayment, CampaignStatusEnum,
                             CampaignPaymentStatusEnum, CampaignPaymentMethodEnum, CAMPAIGN_CHANNELS)
from models.collaboration import Collaboration, CollaborationStatusEnum
from models.influencer import Influencer
from models.product import Product, ProductStatusEnum
from services import message_service, subscription_service
from services.notification_service import create_notification
from utils.errors import ServiceError
from utils.helpers import require_fields, parse_datetime, parse_float, parse_int, round_to, round_percent

PENDING_REQUEST_STATUSES = (CollaborationStatusEnum.REQUEST, CollaborationStatusEnum.INFLUENCER_INVITE)
PRODUCT_FIELDS = ('name', 'category', 'original_price', 'campaign_price', 'description', 'target_quantity')
MAX_CAMPAIGN_DAYS = 365


def campaign_duration_days(start_date, end_date):
    """Inclusive length in days: a campaign starting and ending on the same day lasts 1 day."""
    return math.ceil((end_date - start_date).total_seconds() / 86400) + 1


def validate_channels(channels):
    if not isinstance(channels, list) or not channels:
        raise ServiceError('At least one required channel must be selected')
    invalid = [channel for channel in channels if channel not in CAMPAIGN_CHANNELS]
    if invalid:
        raise ServiceError(f"Invalid channel(s): {', '.join(map(str, invalid))}")
    return channels


def normalize_images(images):
    """Accepts a list of URLs or {url, alt, is_primary} dicts; the first image is primary by default."""
    normalized = []
    for image in images or []:
        if isinstance(image, str):
            image = {'url': image}
        if not isinstance(image, dict) or not image.get('url'):
            continue
        normalized.append({'url': image['url'], 'alt': image.get('alt', ''), 'is_primary': bool(image.get('is_primary'))})
    if normalized and not any(image['is_primary'] for image in normalized):
        normalized[0]['is_primary'] = True
    return normalized


def validate_product(data, allow_equal_price=False):
    """
    Validates one product payload and returns the column values for a Product.

    Args:
        allow_equal_price (bool): Influencer pitches let the campaign price equal the original
                                  price and be 0; brand-created products need a real discount.
    """
    if not isinstance(data, dict):
        raise ServiceError('Invalid product data')
    require_fields(data, PRODUCT_FIELDS, message=f"Each product needs {', '.join(PRODUCT_FIELDS)}")

    original_price = parse_float(data['original_price'], 'original price')
    campaign_price = parse_float(data['campaign_price'], 'campaign price')
    target_quantity = parse_int(data['target_quantity'], 'target quantity')

    if allow_equal_price:
        if original_price <= 0 or not 0 <= campaign_price <= original_price:
            raise ServiceError('Campaign price must be between 0 and the original price')
    else:
        if original_price <= 0 or campaign_price <= 0:
            raise ServiceError('Product prices must be greater than 0')
        if campaign_price >= original_price:
            raise ServiceError('Campaign price must be lower than the original price')
    if target_quantity < 0:
        raise ServiceError('Target quantity cannot be negative')

    delivery_days = data.get('estimated_delivery_days')
    return {
        'name': str(data['name']).strip()[:100],
        'category': str(data['category']).strip()[:50],
        'description': str(data['description']).strip()[:1000],
        'original_price': round_to(original_price),
        'campaign_price': round_to(campaign_price),
        'discount_percentage': round_percent((original_price - campaign_price) / original_price * 100),
        'target_quantity': target_quantity,
        'images': normalize_images(data.get('images')),
        'tags': [str(tag) for tag in data.get('tags') or []],
        'is_digital': bool(data.get('is_digital', False)),
        'estimated_delivery_days': parse_int(delivery_days, 'estimated delivery days') if delivery_days not in (None, '') else None,
    }


def _owned_campaign(brand, campaign_id, message='Campaign not found'):
    campaign = Campaign.query.filter_by(id=campaign_id, brand_id=brand.id).first()
    if campaign is None:
        raise ServiceError(message, 404)
    return campaign


def _pending_request(brand, collab_id):
    collaboration = Collaboration.query.join(Campaign, Collaboration.campaign_id == Campaign.id).filter(
        Collaboration.id == collab_id,
        Campaign.brand_id == brand.id,
        Collaboration.status.in_(PENDING_REQUEST_STATUSES),
    ).first()
    if collaboration is None:
        raise ServiceError('Request not found or already processed', 404)
    return collaboration


def _notify_influencer(brand, collaboration, type, title, body):
    create_notification(
        recipient_id=collaboration.influencer_id, recipient_type='influencer', type=type,
        title=title, body=body, sender_id=brand.id, sender_type='brand',
        related_id=collaboration.id, data={'campaign_id': collaboration.campaign_id}, commit=False,
    )


# --- Dashboard and listings ---

def brand_dashboard(brand):
    active = brand.campaigns.filter_by(status=CampaignStatusEnum.ACTIVE) \
        .order_by(Campaign.created_at.desc()).all()
    completed = brand.campaigns.filter_by(status=CampaignStatusEnum.COMPLETED) \
        .order_by(Campaign.end_date.desc()).limit(5).all()
    requests = Collaboration.query.join(Campaign, Collaboration.campaign_id == Campaign.id).filter(
        Campaign.brand_id == brand.id, Collaboration.status == CollaborationStatusEnum.REQUEST
    ).order_by(Collaboration.created_at.desc()).all()

    expiry = subscription_service.check_subscription_expiry(brand.id, 'brand')
    subscription = subscription_service.get_user_subscription(brand.id, 'brand')
    return {
        'brand': brand.to_summary(),
        'active_campaigns': [campaign.to_dict(include_metrics=True) for campaign in active],
        'incoming_requests': [collab.to_dict(include_campaign=True, include_influencer=True) for collab in requests],
        'recent_completed_campaigns': [campaign.to_dict(include_metrics=True) for campaign in completed],
        'subscription': {
            'current': subscription.to_dict() if subscription else None,
            'needs_renewal': expiry['needs_renewal'],
            'expired': expiry['expired'],
            'message': expiry.get('message'),
            'limits': subscription_service.get_subscription_limits_with_usage(brand.id, 'brand'),
        },
    }


def campaign_details(brand, campaign_id):
    campaign = _owned_campaign(brand, campaign_id)
    return {
        'campaign': campaign.to_dict(include_metrics=True),
        'collaborations': [collab.to_dict(include_influencer=True) for collab in campaign.collaborations],
        'products': [product.to_dict() for product in campaign.products],
    }


def draft_campaigns(brand):
    """Campaigns still open for applications, offered as targets for invites."""
    campaigns = brand.campaigns.filter_by(status=CampaignStatusEnum.REQUEST).order_by(Campaign.created_at.desc()).all()
    return [campaign.to_dict() for campaign in campaigns]


def received_requests(brand):
    collaborations = Collaboration.query.join(Campaign, Collaboration.campaign_id == Campaign.id).filter(
        Campaign.brand_id == brand.id, Collaboration.status.in_(PENDING_REQUEST_STATUSES)
    ).order_by(Collaboration.created_at.desc()).all()
    return [dict(collab.to_dict(include_campaign=True, include_influencer=True),
                 latest_message=message_service.latest_message(collab)) for collab in collaborations]


def campaign_history(brand):
    campaigns = brand.campaigns.filter(
        Campaign.status.in_([CampaignStatusEnum.COMPLETED, CampaignStatusEnum.CANCELLED])
    ).order_by(Campaign.updated_at.desc()).all()
    return [campaign.to_dict(include_metrics=True) for campaign in campaigns]


# --- Campaign lifecycle ---

def create_campaign(brand, data):
    """
    Creates a campaign in REQUEST status together with its products and an empty metrics row,
    and counts it against the brand's plan.
    """
    require_fields(data, ('title', 'description', 'start_date', 'end_date', 'budget', 'required_channels'))
    products_data = data.get('products')
    if not isinstance(products_data, list) or not products_data:
        raise ServiceError('At least one product is required')

    title = str(data['title']).strip()
    description = str(data['description']).strip()
    objectives = data.get('objectives')
    if len(title) > 100:
        raise ServiceError('Title cannot exceed 100 characters')
    if len(description) > 1000:
        raise ServiceError('Description cannot exceed 1000 characters')
    if objectives and len(objectives) > 500:
        raise ServiceError('Objectives cannot exceed 500 characters')

    start_date = parse_datetime(data['start_date'], 'start date')
    end_date = parse_datetime(data['end_date'], 'end date')
    duration = campaign_duration_days(start_date, end_date)
    if end_date < start_date or duration <= 0:
        raise ServiceError('End date must be after start date')

    budget = parse_float(data['budget'], 'budget')
    if budget < 0:
        raise ServiceError('Budget cannot be negative')
    commission_rate = parse_float(data.get('commission_rate', 0), 'commission rate')
    if not 0 <= commission_rate <= 100:
        raise ServiceError('Commission rate must be between 0 and 100')
    required_influencers = parse_int(data.get('required_influencers', 1), 'required influencers')
    if required_influencers < 1:
        raise ServiceError('At least one influencer is required')

    products = [validate_product(product) for product in products_data]

    campaign = Campaign(
        brand_id=brand.id,
        title=title,
        description=description,
        status=CampaignStatusEnum.REQUEST,
        start_date=start_date,
        end_date=end_date,
        duration=duration,
        required_influencers=required_influencers,
        budget=budget,
        commission_rate=commission_rate,
        target_audience=data.get('target_audience'),
        required_channels=validate_channels(data['required_channels']),
        min_followers=parse_int(data.get('min_followers', 0), 'minimum followers'),
        objectives=objectives,
        deliverables=data.get('deliverables') or [],
    )
    try:
        db.session.add(campaign)
        db.session.flush()
        for product_values in products:
            db.session.add(Product(brand_id=brand.id, campaign_id=campaign.id, created_by=brand.id, **product_values))
        db.session.add(CampaignMetrics(campaign_id=campaign.id, brand_id=brand.id))
        subscription_service.update_usage(brand.id, 'brand', commit=False, campaigns_used=1)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating campaign for brand {brand.id}: {e}", exc_info=True)
        raise
    current_app.logger.info(f"Brand {brand.id} created campaign {campaign.id} ('{campaign.title}') with {len(products)} product(s).")
    return campaign


def add_products(brand, campaign_id, products_data):
    campaign = _owned_campaign(brand, campaign_id)
    if campaign.status in (CampaignStatusEnum.COMPLETED, CampaignStatusEnum.CANCELLED):
        raise ServiceError('Cannot add products to a finished campaign')
    if not isinstance(products_data, list) or not products_data:
        raise ServiceError('At least one product is required')
    products = [Product(brand_id=brand.id, campaign_id=campaign.id, created_by=brand.id, **validate_product(data))
                for data in products_data]
    db.session.add_all(products)
    db.session.commit()
    return products


def list_products(brand, campaign_id):
    campaign = _owned_campaign(brand, campaign_id)
    return [product.to_dict() for product in campaign.products]


def activate_campaign(brand, campaign_id, now=None):
    campaign = _owned_campaign(brand, campaign_id)
    now = now or datetime.utcnow()
    accepted = campaign.collaborations.filter_by(status=CollaborationStatusEnum.ACTIVE).count()
    if accepted == 0:
        raise ServiceError('Cannot activate: no accepted influencers yet.')
    if campaign.start_date and campaign.start_date > now:
        raise ServiceError('Cannot activate before the campaign start date.')
    campaign.status = CampaignStatusEnum.ACTIVE
    db.session.commit()
    current_app.logger.info(f"Campaign {campaign.id} activated by brand {brand.id}.")
    return campaign


def end_campaign(brand, campaign_id):
    """Completes an active campaign, computing revenue and ROI from product sales."""
    campaign = Campaign.query.filter_by(id=campaign_id, brand_id=brand.id, status=CampaignStatusEnum.ACTIVE).first()
    if campaign is None:
        raise ServiceError('Campaign not found or already completed', 404)

    revenue = round_to(sum((product.sold_quantity or 0) * (product.campaign_price or 0) for product in campaign.products))
    roi = round_to(revenue / campaign.budget) if campaign.budget else 0

    metrics = campaign.metrics
    if metrics is None:
        metrics = CampaignMetrics(campaign_id=campaign.id, brand_id=brand.id)
        db.session.add(metrics)
    metrics.revenue = revenue
    metrics.roi = roi
    metrics.progress = 100

    campaign.status = CampaignStatusEnum.COMPLETED
    campaign.end_date = datetime.utcnow()
    brand.completed_campaigns = (brand.completed_campaigns or 0) + 1
    for collaboration in campaign.collaborations.filter_by(status=CollaborationStatusEnum.ACTIVE).all():
        collaboration.status = CollaborationStatusEnum.COMPLETED
        collaboration.influencer.completed_campaigns = (collaboration.influencer.completed_campaigns or 0) + 1
    db.session.commit()
    current_app.logger.info(f"Campaign {campaign.id} ended by brand {brand.id}: revenue {revenue}, roi {roi}.")
    return campaign


# --- Invitations and requests ---

def invite_influencer(brand, campaign_id, influencer_id):
    campaign = Campaign.query.filter_by(id=campaign_id, brand_id=brand.id).first()
    if campaign is None or campaign.status != CampaignStatusEnum.REQUEST:
        raise ServiceError('Campaign not found or not open for invitations', 404)
    influencer = db.session.get(Influencer, influencer_id)
    if influencer is None:
        raise ServiceError('Influencer not found', 404)
    if Collaboration.query.filter_by(campaign_id=campaign.id, influencer_id=influencer.id).first():
        raise ServiceError('Influencer already invited to this campaign')

    collaboration = Collaboration(campaign_id=campaign.id, influencer_id=influencer.id,
                                  status=CollaborationStatusEnum.BRAND_INVITE)
    db.session.add(collaboration)
    db.session.flush()
    _notify_influencer(brand, collaboration, 'invite_received', 'New campaign invitation',
                       f"{brand.display} invited you to join '{campaign.title}'.")
    db.session.commit()
    current_app.logger.info(f"Brand {brand.id} invited influencer {influencer.id} to campaign {campaign.id}.")
    return collaboration


def decline_request(brand, collab_id):
    collaboration = _pending_request(brand, collab_id)
    collaboration.status = CollaborationStatusEnum.CANCELLED
    campaign = collaboration.campaign
    if campaign.status == CampaignStatusEnum.INFLUENCER_INVITE:
        campaign.status = CampaignStatusEnum.CANCELLED
    _notify_influencer(brand, collaboration, 'request_declined', 'Request declined',
                       f"{brand.display} declined your request for '{campaign.title}'.")
    db.session.commit()
    current_app.logger.info(f"Brand {brand.id} declined collaboration {collaboration.id}.")
    return collaboration


def _complete_pitched_campaign(campaign, data, now):
    """Fills in the details the brand supplies when accepting an influencer's pitch."""
    require_fields(data, ('objectives', 'start_date', 'end_date', 'target_audience'))
    start_date = parse_datetime(data['start_date'], 'start date')
    end_date = parse_datetime(data['end_date'], 'end date')
    if start_date.date() < now.date():
        raise ServiceError('Start date cannot be in the past')
    if end_date <= start_date:
        raise ServiceError('End date must be after start date')
    duration = campaign_duration_days(start_date, end_date)
    if duration > MAX_CAMPAIGN_DAYS:
        raise ServiceError(f'Campaign duration cannot exceed {MAX_CAMPAIGN_DAYS} days')
    if len(data['objectives']) > 500:
        raise ServiceError('Objectives cannot exceed 500 characters')

    product_data = dict(data.get('product') or {})
    product_data.setdefault('name', campaign.product_name)
    product_values = validate_product(product_data, allow_equal_price=True)

    campaign.objectives = data['objectives']
    campaign.target_audience = data['target_audience']
    campaign.start_date = start_date
    campaign.end_date = end_date
    campaign.duration = duration
    campaign.status = CampaignStatusEnum.ACTIVE

    # Replace the placeholder created with the pitch, or create the product if it is gone.
    product = campaign.products.filter_by(status=ProductStatusEnum.INACTIVE).first()
    if product is None:
        product = Product(brand_id=campaign.brand_id, campaign_id=campaign.id, created_by=campaign.brand_id)
        db.session.add(product)
    for key, value in product_values.items():
        setattr(product, key, value)
    product.status = ProductStatusEnum.ACTIVE
    if campaign.metrics is None:
        db.session.add(CampaignMetrics(campaign_id=campaign.id, brand_id=campaign.brand_id))


def accept_request_with_payment(brand, collab_id, data, now=None):
    """
    Accepts an application or pitch and records the brand's payment to the influencer,
    all in one transaction.
    """
    now = now or datetime.utcnow()
    collaboration = _pending_request(brand, collab_id)
    if data.get('amount') in (None, '') or not data.get('payment_method'):
        raise ServiceError('Amount and payment method are required')
    amount = parse_float(data['amount'], 'amount')
    if amount <= 0:
        raise ServiceError('Amount must be greater than 0')
    if data['payment_method'] not in ('credit_card', 'bank_transfer'):
        raise ServiceError('Invalid payment method')

    campaign = collaboration.campaign
    try:
        if campaign.status == CampaignStatusEnum.INFLUENCER_INVITE:
            _complete_pitched_campaign(campaign, data, now)

        db.session.add(CampaignPayment(
            campaign_id=campaign.id,
            brand_id=brand.id,
            influencer_id=collaboration.influencer_id,
            amount=round(amount, 2),
            status=CampaignPaymentStatusEnum.COMPLETED,
            payment_date=now,
            payment_method=CampaignPaymentMethodEnum(data['payment_method']),
        ))
        collaboration.status = CollaborationStatusEnum.ACTIVE
        if not collaboration.deliverables:
            collaboration.deliverables = [
                {'title': item.get('task', ''), 'description': item.get('description', ''),
                 'status': 'pending', 'due_date': item.get('due_date'), 'completed': False}
                for item in campaign.deliverables or [] if isinstance(item, dict)
            ]
        subscription_service.update_usage(brand.id, 'brand', commit=False, influencers_connected=1)
        _notify_influencer(brand, collaboration, 'request_accepted', 'Request accepted',
                           f"{brand.display} accepted your collaboration on '{campaign.title}'.")
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error accepting collaboration {collab_id} for brand {brand.id}: {e}", exc_info=True)
        raise
    current_app.logger.info(f"Brand {brand.id} accepted collaboration {collaboration.id} with payment {amount}.")
    return collaboration
