"""
Influencer-side collaboration workflow: exploring campaigns, applying, answering brand
invites, pitching campaigns to brands and reporting progress.
"""
from flask import current_app
from sqlalchemy import or_

from extensions import db
from models.brand import Brand
from models.campaign import Campaign, CampaignMetrics, CampaignStatusEnum
from models.collaboration import Collaboration, CollaborationStatusEnum
from models.product import Product, ProductStatusEnum
from services import message_service, subscription_service
from services.campaign_service import validate_channels
from services.notification_service import create_notification
from utils.errors import ServiceError
from utils.helpers import require_fields, parse_float, round_percent

OPEN_CAMPAIGN_STATUSES = (CampaignStatusEnum.REQUEST, CampaignStatusEnum.ACTIVE)


def _own_collaboration(influencer, collab_id, status, message):
    collaboration = Collaboration.query.filter_by(id=collab_id, influencer_id=influencer.id, status=status).first()
    if collaboration is None:
        raise ServiceError(message, 404)
    return collaboration


def _notify_brand(influencer, collaboration, type, title, body):
    create_notification(
        recipient_id=collaboration.campaign.brand_id, recipient_type='brand', type=type,
        title=title, body=body, sender_id=influencer.id, sender_type='influencer',
        related_id=collaboration.id, data={'campaign_id': collaboration.campaign_id}, commit=False,
    )


def influencer_dashboard(influencer):
    def by_status(*statuses):
        return influencer.collaborations.filter(Collaboration.status.in_(statuses)) \
            .order_by(Collaboration.updated_at.desc()).all()

    completed = influencer.collaborations.filter_by(status=CollaborationStatusEnum.COMPLETED) \
        .order_by(Collaboration.updated_at.desc()).limit(5).all()
    expiry = subscription_service.check_subscription_expiry(influencer.id, 'influencer')
    subscription = subscription_service.get_user_subscription(influencer.id, 'influencer')
    return {
        'influencer': influencer.to_summary(),
        'active_collaborations': [c.to_dict(include_campaign=True) for c in by_status(CollaborationStatusEnum.ACTIVE)],
        'brand_invites': [c.to_dict(include_campaign=True) for c in by_status(CollaborationStatusEnum.BRAND_INVITE)],
        'sent_requests': [c.to_dict(include_campaign=True) for c in by_status(CollaborationStatusEnum.REQUEST,
                                                                              CollaborationStatusEnum.INFLUENCER_INVITE)],
        'recent_completed': [c.to_dict(include_campaign=True) for c in completed],
        'subscription': {
            'current': subscription.to_dict() if subscription else None,
            'needs_renewal': expiry['needs_renewal'],
            'expired': expiry['expired'],
            'message': expiry.get('message'),
            'limits': subscription_service.get_subscription_limits_with_usage(influencer.id, 'influencer'),
        },
    }


def explore_campaigns(influencer, search=None, channel=None):
    """Open campaigns the influencer has no collaboration record for."""
    joined = db.session.query(Collaboration.campaign_id).filter(Collaboration.influencer_id == influencer.id)
    query = Campaign.query.filter(Campaign.status.in_(OPEN_CAMPAIGN_STATUSES), ~Campaign.id.in_(joined))
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(Campaign.title.ilike(pattern), Campaign.description.ilike(pattern)))
    campaigns = query.order_by(Campaign.created_at.desc()).all()
    if channel:
        # required_channels is a JSON list; filtered here to stay portable across databases.
        wanted = channel.lower()
        campaigns = [c for c in campaigns if wanted in [ch.lower() for ch in c.required_channels or []]]
    results = []
    for campaign in campaigns:
        data = campaign.to_dict()
        data['brand'] = campaign.brand.to_summary() if campaign.brand else None
        data['product_count'] = campaign.products.filter_by(status=ProductStatusEnum.ACTIVE).count()
        results.append(data)
    return results


def explore_campaign_detail(influencer, campaign_id):
    campaign = Campaign.query.filter(Campaign.id == campaign_id, Campaign.status.in_(OPEN_CAMPAIGN_STATUSES)).first()
    if campaign is None:
        raise ServiceError('Campaign not found', 404)
    existing = Collaboration.query.filter_by(campaign_id=campaign.id, influencer_id=influencer.id).first()
    return {
        'campaign': campaign.to_dict(),
        'brand': campaign.brand.to_summary() if campaign.brand else None,
        'products': [p.to_dict() for p in campaign.products.filter_by(status=ProductStatusEnum.ACTIVE)],
        'collaboration_status': existing.status.value if existing else None,
    }


def apply_to_campaign(influencer, campaign_id, message=None):
    campaign = Campaign.query.filter(Campaign.id == campaign_id, Campaign.status.in_(OPEN_CAMPAIGN_STATUSES)).first()
    if campaign is None:
        raise ServiceError('Campaign not found or not accepting applications', 404)

    existing = Collaboration.query.filter_by(campaign_id=campaign.id, influencer_id=influencer.id).first()
    if existing is not None:
        if existing.status == CollaborationStatusEnum.REQUEST:
            existing.status = CollaborationStatusEnum.ACTIVE
            subscription_service.update_usage(influencer.id, 'influencer', commit=False, campaigns_used=1)
            db.session.commit()
            current_app.logger.info(f"Influencer {influencer.id} joined campaign {campaign.id} from a pending request.")
            return existing
        if existing.status == CollaborationStatusEnum.ACTIVE:
            raise ServiceError('You are already active in this campaign')
        raise ServiceError('You have already applied to this campaign')

    if message and len(message) > 500:
        raise ServiceError('Message cannot exceed 500 characters')
    collaboration = Collaboration(campaign_id=campaign.id, influencer_id=influencer.id,
                                  status=CollaborationStatusEnum.REQUEST, message=message)
    db.session.add(collaboration)
    db.session.flush()
    if message:
        message_service.record_message(collaboration, 'influencer', message)
    subscription_service.update_usage(influencer.id, 'influencer', commit=False, brands_connected=1)
    _notify_brand(influencer, collaboration, 'application_received', 'New application',
                  f"{influencer.display} applied to '{campaign.title}'.")
    db.session.commit()
    current_app.logger.info(f"Influencer {influencer.id} applied to campaign {campaign.id}.")
    return collaboration


def accept_invite(influencer, collab_id):
    collaboration = _own_collaboration(influencer, collab_id, CollaborationStatusEnum.BRAND_INVITE,
                                       'Invite not found or already processed')
    collaboration.status = CollaborationStatusEnum.REQUEST
    _notify_brand(influencer, collaboration, 'invite_accepted', 'Invitation accepted',
                  f"{influencer.display} accepted your invitation to '{collaboration.campaign.title}'.")
    db.session.commit()
    return collaboration


def decline_invite(influencer, collab_id):
    collaboration = _own_collaboration(influencer, collab_id, CollaborationStatusEnum.BRAND_INVITE,
                                       'Invite not found or already processed')
    collaboration.status = CollaborationStatusEnum.CANCELLED
    _notify_brand(influencer, collaboration, 'invite_declined', 'Invitation declined',
                  f"{influencer.display} declined your invitation to '{collaboration.campaign.title}'.")
    db.session.commit()
    return collaboration


def cancel_request(influencer, collab_id):
    """Withdraws a campaign pitch that the brand has not answered yet."""
    collaboration = _own_collaboration(influencer, collab_id, CollaborationStatusEnum.INFLUENCER_INVITE,
                                       'Request not found or already processed')
    campaign = collaboration.campaign
    if campaign.status != CampaignStatusEnum.INFLUENCER_INVITE:
        raise ServiceError('Campaign is no longer accepting requests')
    collaboration.status = CollaborationStatusEnum.CANCELLED
    campaign.status = CampaignStatusEnum.CANCELLED
    db.session.commit()
    current_app.logger.info(f"Influencer {influencer.id} cancelled pitch {collaboration.id}.")
    return collaboration


def invite_brand(influencer, data):
    """
    Pitches a campaign idea to a brand. The campaign is created in INFLUENCER_INVITE status
    with a placeholder product; the brand completes both when accepting.
    """
    require_fields(data, ('brand_id', 'title', 'description', 'budget', 'product_name', 'required_channels'))
    brand = db.session.get(Brand, int(data['brand_id'])) if str(data['brand_id']).isdigit() else None
    if brand is None:
        raise ServiceError('Brand not found', 404)
    budget = parse_float(data['budget'], 'budget')
    if budget < 0:
        raise ServiceError('Budget cannot be negative')
    title = str(data['title']).strip()
    description = str(data['description']).strip()
    if len(title) > 100:
        raise ServiceError('Title cannot exceed 100 characters')
    if len(description) > 1000:
        raise ServiceError('Description cannot exceed 1000 characters')
    product_name = str(data['product_name']).strip()[:100]
    message = str(data['message']).strip() if data.get('message') else None
    if message and len(message) > 500:
        raise ServiceError('Message cannot exceed 500 characters')

    try:
        campaign = Campaign(
            brand_id=brand.id,
            title=title,
            description=description,
            status=CampaignStatusEnum.INFLUENCER_INVITE,
            budget=budget,
            required_channels=validate_channels(data['required_channels']),
            min_followers=int(0.5 * (influencer.total_followers or 0)),
            product_name=product_name,
            required_influencers=1,
            duration=0,
        )
        db.session.add(campaign)
        db.session.flush()
        db.session.add(Product(brand_id=brand.id, campaign_id=campaign.id, name=product_name,
                               category='Uncategorized', status=ProductStatusEnum.INACTIVE))
        collaboration = Collaboration(campaign_id=campaign.id, influencer_id=influencer.id,
                                      status=CollaborationStatusEnum.INFLUENCER_INVITE, message=message)
        db.session.add(collaboration)
        db.session.flush()
        if message:
            message_service.record_message(collaboration, 'influencer', message)
        subscription_service.update_usage(influencer.id, 'influencer', commit=False, brands_connected=1)
        _notify_brand(influencer, collaboration, 'invite_sent', 'New campaign proposal',
                      f"{influencer.display} proposed the campaign '{campaign.title}'.")
        db.session.commit()
    except ServiceError:
        db.session.rollback()
        raise
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error creating pitch from influencer {influencer.id} to brand {brand.id}: {e}", exc_info=True)
        raise
    current_app.logger.info(f"Influencer {influencer.id} pitched campaign {campaign.id} to brand {brand.id}.")
    return collaboration


def _parse_progress(value):
    if isinstance(value, bool):
        raise ServiceError('Invalid progress value')
    try:
        progress = int(value)
    except (TypeError, ValueError):
        raise ServiceError('Invalid progress value')
    if isinstance(value, float) and value != progress:
        raise ServiceError('Invalid progress value')
    if not 0 <= progress <= 100:
        raise ServiceError('Invalid progress value')
    return progress


def refresh_campaign_progress(campaign, metrics=None):
    """Sets the campaign's progress to the average over its active collaborations."""
    metrics = metrics or campaign.metrics
    if metrics is None:
        metrics = CampaignMetrics(campaign_id=campaign.id, brand_id=campaign.brand_id)
        db.session.add(metrics)
    db.session.flush()
    progresses = [c.progress or 0 for c in campaign.collaborations.filter_by(status=CollaborationStatusEnum.ACTIVE)]
    metrics.progress = round_percent(sum(progresses) / len(progresses)) if progresses else 0
    return metrics


def update_progress(influencer, collab_id, data):
    """
    Records progress on an active collaboration, either from a deliverables checklist or an
    explicit percentage, plus any reported campaign metrics.
    """
    collaboration = _own_collaboration(influencer, collab_id, CollaborationStatusEnum.ACTIVE,
                                       'Collaboration not found')

    checklist = data.get('deliverables_checklist')
    if isinstance(checklist, list):
        total = len(checklist)
        done = sum(1 for item in checklist if isinstance(item, dict) and item.get('completed'))
        collaboration.progress = round_percent(done / total * 100) if total else 0
        collaboration.deliverables = checklist
    else:
        if data.get('progress') in (None, ''):
            raise ServiceError('Progress is required')
        collaboration.progress = _parse_progress(data['progress'])

    campaign = collaboration.campaign
    metrics = campaign.metrics
    if metrics is None:
        metrics = CampaignMetrics(campaign_id=campaign.id, brand_id=campaign.brand_id)
        db.session.add(metrics)
    for field, cast in CampaignMetrics.REPORTABLE_FIELDS.items():
        if data.get(field) in (None, ''):
            continue
        try:
            value = cast(data[field])
        except (TypeError, ValueError):
            raise ServiceError(f'Invalid {field.replace("_", " ")}')
        setattr(metrics, field, value)
        if hasattr(collaboration, field):
            setattr(collaboration, field, value)

    refresh_campaign_progress(campaign, metrics)
    _notify_brand(influencer, collaboration, 'progress_updated', 'Progress updated',
                  f"{influencer.display} is {collaboration.progress}% done on '{campaign.title}'.")
    db.session.commit()
    return collaboration


def collaboration_history(influencer):
    collaborations = influencer.collaborations.filter_by(status=CollaborationStatusEnum.COMPLETED) \
        .order_by(Collaboration.updated_at.desc()).all()
    return [c.to_dict(include_campaign=True) for c in collaborations]
