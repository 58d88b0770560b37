"""Own-profile editing and deletion for brands and influencers, plus public profile views."""
import re

from flask import current_app

from extensions import db
from models.campaign import Campaign, CampaignPayment, CampaignStatusEnum
from models.collaboration import Collaboration, CollaborationStatusEnum
from models.content import CampaignContent
from models.message import Message
from models.notification import Notification, ParticipantTypeEnum
from models.offer import Offer
from models.order import Order, OrderItem
from models.payment_history import PaymentHistory
from models.product import Product
from models.brand import Brand
from models.influencer import Influencer
from models.subscription_plan import SubscriberTypeEnum
from models.user_subscription import UserSubscription
from utils.errors import ServiceError

WEBSITE_PATTERN = re.compile(r'^https?://[^\s/$.?#][^\s]*$', re.IGNORECASE)
TARGET_GENDERS = ('Male', 'Female', 'All')

BRAND_TEXT_FIELDS = {
    'display_name': 50, 'bio': 500, 'description': 1000, 'phone': 20, 'industry': 100,
    'location': 100, 'website': 255, 'mission': 500, 'tagline': 200, 'logo_url': 255,
    'banner_url': 255, 'target_age_range': 20,
}
INFLUENCER_TEXT_FIELDS = {
    'display_name': 50, 'bio': 500, 'phone': 20, 'niche': 100, 'location': 100, 'website': 255,
    'profile_pic_url': 255, 'banner_url': 255, 'social_handle': 100,
}
LABELS = {'bio': 'Bio', 'description': 'Description', 'mission': 'Mission', 'tagline': 'Tagline'}


def _apply_text_fields(account, data, limits):
    for field, max_length in limits.items():
        if field not in data:
            continue
        value = data[field]
        if value is not None:
            value = str(value).strip()
            if len(value) > max_length:
                label = LABELS.get(field, field.replace('_', ' ').capitalize())
                raise ServiceError(f'{label} cannot exceed {max_length} characters')
        if field == 'website' and value and not WEBSITE_PATTERN.match(value):
            raise ServiceError('Please enter a valid website URL')
        setattr(account, field, value or None)


def _list_field(data, field):
    value = data[field]
    if not isinstance(value, list):
        raise ServiceError(f"{field.replace('_', ' ').capitalize()} must be a list")
    return value


def update_brand_profile(brand, data):
    _apply_text_fields(brand, data, BRAND_TEXT_FIELDS)
    for field in ('categories', 'target_interests'):
        if field in data:
            setattr(brand, field, [str(item) for item in _list_field(data, field)])
    if 'social_links' in data:
        links = []
        for link in _list_field(data, 'social_links'):
            if not isinstance(link, dict) or not link.get('platform'):
                raise ServiceError('Each social link needs a platform')
            links.append({'platform': link['platform'], 'url': link.get('url', ''),
                          'followers': int(link.get('followers') or 0)})
        brand.social_links = links
    if 'target_gender' in data:
        if data['target_gender'] not in TARGET_GENDERS:
            raise ServiceError('Target gender must be Male, Female or All')
        brand.target_gender = data['target_gender']
    if 'total_audience' in data:
        try:
            brand.total_audience = max(0, int(data['total_audience']))
        except (TypeError, ValueError):
            raise ServiceError('Invalid total audience')
    db.session.commit()
    current_app.logger.info(f"Brand {brand.id} updated its profile.")
    return brand


def update_influencer_profile(influencer, data):
    _apply_text_fields(influencer, data, INFLUENCER_TEXT_FIELDS)
    for field in ('categories', 'languages'):
        if field in data:
            setattr(influencer, field, [str(item) for item in _list_field(data, field)])
    if 'platforms' in data:
        platforms = []
        for entry in _list_field(data, 'platforms'):
            if not isinstance(entry, dict) or not entry.get('platform'):
                raise ServiceError('Each platform entry needs a platform name')
            try:
                followers = max(0, int(entry.get('followers') or 0))
            except (TypeError, ValueError):
                raise ServiceError('Invalid follower count')
            platforms.append({'platform': entry['platform'], 'handle': entry.get('handle', ''), 'followers': followers})
        influencer.platforms = platforms
        influencer.total_followers = sum(entry['followers'] for entry in platforms)
    db.session.commit()
    current_app.logger.info(f"Influencer {influencer.id} updated its profile.")
    return influencer


def _delete_subscriptions(user_id, subscriber_type):
    subscription_ids = [s.id for s in UserSubscription.query.filter_by(user_id=user_id, user_type=subscriber_type)]
    if subscription_ids:
        # Payment records are kept for bookkeeping; only the link to the subscription goes.
        PaymentHistory.query.filter(PaymentHistory.subscription_id.in_(subscription_ids)) \
            .update({PaymentHistory.subscription_id: None}, synchronize_session=False)
    UserSubscription.query.filter_by(user_id=user_id, user_type=subscriber_type).delete(synchronize_session=False)


def _delete_notifications(recipient_id, participant_type):
    Notification.query.filter_by(recipient_id=recipient_id, recipient_type=participant_type) \
        .delete(synchronize_session=False)


def delete_brand_account(brand):
    """Deletes the brand with its subscriptions, campaigns, products, collaborations and offers."""
    brand_id, email = brand.id, brand.email
    try:
        _delete_subscriptions(brand_id, SubscriberTypeEnum.BRAND)
        _delete_notifications(brand_id, ParticipantTypeEnum.BRAND)
        product_ids = [p.id for p in Product.query.filter_by(brand_id=brand_id)]
        if product_ids:
            OrderItem.query.filter(OrderItem.product_id.in_(product_ids)) \
                .update({OrderItem.product_id: None}, synchronize_session=False)
        for campaign in Campaign.query.filter_by(brand_id=brand_id).all():
            db.session.delete(campaign) # Cascades to everything hanging off the campaign.
        Product.query.filter_by(brand_id=brand_id).delete(synchronize_session=False)
        Offer.query.filter_by(brand_id=brand_id).delete(synchronize_session=False)
        db.session.delete(brand)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting brand {brand_id}: {e}", exc_info=True)
        raise
    current_app.logger.info(f"Brand account {email} (id {brand_id}) deleted.")


def delete_influencer_account(influencer):
    """Deletes the influencer with its subscriptions, collaborations, content and messages."""
    influencer_id, email = influencer.id, influencer.email
    try:
        _delete_subscriptions(influencer_id, SubscriberTypeEnum.INFLUENCER)
        _delete_notifications(influencer_id, ParticipantTypeEnum.INFLUENCER)
        CampaignContent.query.filter_by(influencer_id=influencer_id).delete(synchronize_session=False)
        Message.query.filter_by(influencer_id=influencer_id).delete(synchronize_session=False)
        Collaboration.query.filter_by(influencer_id=influencer_id).delete(synchronize_session=False)
        CampaignPayment.query.filter_by(influencer_id=influencer_id).delete(synchronize_session=False)
        Order.query.filter_by(influencer_id=influencer_id) \
            .update({Order.influencer_id: None}, synchronize_session=False)
        db.session.delete(influencer)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error deleting influencer {influencer_id}: {e}", exc_info=True)
        raise
    current_app.logger.info(f"Influencer account {email} (id {influencer_id}) deleted.")


def public_brand_profile(brand_id):
    brand = db.session.get(Brand, brand_id)
    if brand is None:
        raise ServiceError('Brand not found', 404)
    data = brand.to_summary()
    data.update({
        'bio': brand.bio, 'description': brand.description, 'website': brand.website,
        'mission': brand.mission, 'tagline': brand.tagline, 'banner_url': brand.banner_url,
        'categories': brand.categories or [], 'social_links': brand.social_links or [],
    })
    campaigns = brand.campaigns.filter_by(status=CampaignStatusEnum.ACTIVE).order_by(Campaign.created_at.desc()).all()
    return {'brand': data, 'active_campaigns': [campaign.to_dict() for campaign in campaigns]}


def public_influencer_profile(influencer_id):
    influencer = db.session.get(Influencer, influencer_id)
    if influencer is None:
        raise ServiceError('Influencer not found', 404)
    data = influencer.to_summary()
    data.update({
        'bio': influencer.bio, 'categories': influencer.categories or [], 'languages': influencer.languages or [],
        'location': influencer.location, 'platforms': influencer.platforms or [], 'rating': influencer.rating,
    })
    collaborations = influencer.collaborations.filter_by(status=CollaborationStatusEnum.ACTIVE).all()
    return {
        'influencer': data,
        'active_collaborations': [
            {'collaboration_id': c.id, 'campaign': c.campaign.to_dict(),
             'brand': c.campaign.brand.to_summary() if c.campaign.brand else None}
            for c in collaborations
        ],
    }
