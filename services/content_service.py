"""
Campaign content: influencers submit posts against their deliverables, brands approve or
reject them, influencers publish approved posts and customers browse what went live.
"""
from datetime import datetime

from flask import current_app

from extensions import db
from models.campaign import Campaign, CampaignStatusEnum, CAMPAIGN_CHANNELS
from models.collaboration import Collaboration, CollaborationStatusEnum
from models.content import CampaignContent, ContentStatusEnum
from models.product import Product, ProductStatusEnum
from services.collaboration_service import refresh_campaign_progress
from services.notification_service import create_notification
from utils.errors import ServiceError
from utils.helpers import require_fields, parse_datetime, parse_int, round_percent

REVIEW_ACTIONS = {'approve': ContentStatusEnum.APPROVED, 'reject': ContentStatusEnum.REJECTED}
# Deliverables in these states count towards collaboration progress.
DONE_DELIVERABLE_STATUSES = ('approved', 'published')
# A deliverable can take new content only while nothing is under review or live for it.
OPEN_DELIVERABLE_STATUSES = ('pending', 'rejected')
MAX_CAPTION_LENGTH = 2200
MAX_FEEDBACK_LENGTH = 1000
CONTENT_PAGE_SIZE = 20


def _update_deliverable(collaboration, index, **changes):
    # Reassigning a copied list is what marks the JSON column as changed.
    deliverables = [dict(item) for item in collaboration.deliverables or []]
    deliverables[index].update(changes)
    collaboration.deliverables = deliverables
    return deliverables[index]


def _validate_platforms(platforms):
    if not isinstance(platforms, list) or not platforms:
        raise ServiceError('Select at least one platform')
    invalid = [platform for platform in platforms if platform not in CAMPAIGN_CHANNELS]
    if invalid:
        raise ServiceError(f"Invalid platform(s): {', '.join(map(str, invalid))}")
    return platforms


def _validate_media_urls(media_urls):
    if not isinstance(media_urls, list) or not media_urls:
        raise ServiceError('Media files are required')
    if not all(isinstance(url, str) and url.strip() for url in media_urls):
        raise ServiceError('Invalid media URL')
    return [url.strip() for url in media_urls]


# --- Influencer side ---

def submit_content(influencer, data, now=None):
    """
    Submits a post for brand review on an active campaign the influencer is collaborating on.

    Args:
        data (dict): campaign_id, content_type, platforms, caption, product_id and media_urls
            are required. deliverable_index ties the post to one of the collaboration's
            deliverables; scheduled_at and special_instructions are optional.

    Raises:
        ServiceError: On missing fields, an inactive campaign, a product outside the campaign,
            or a deliverable that is already under review.
    """
    now = now or datetime.utcnow()
    require_fields(data, ('campaign_id', 'content_type', 'platforms', 'caption', 'product_id'),
                   message='Missing required fields')
    media_urls = _validate_media_urls(data.get('media_urls'))
    platforms = _validate_platforms(data['platforms'])
    caption = str(data['caption']).strip()
    if len(caption) > MAX_CAPTION_LENGTH:
        raise ServiceError(f'Caption cannot exceed {MAX_CAPTION_LENGTH} characters')

    campaign_id = parse_int(data['campaign_id'], 'campaign id')
    campaign = Campaign.query.filter_by(id=campaign_id, status=CampaignStatusEnum.ACTIVE).first()
    if campaign is None:
        raise ServiceError('Campaign not found or not active', 404)
    collaboration = Collaboration.query.filter_by(campaign_id=campaign.id, influencer_id=influencer.id,
                                                  status=CollaborationStatusEnum.ACTIVE).first()
    if collaboration is None:
        raise ServiceError('You are not an active collaborator on this campaign', 403)
    product = Product.query.filter_by(id=parse_int(data['product_id'], 'product id'), campaign_id=campaign.id,
                                      status=ProductStatusEnum.ACTIVE).first()
    if product is None:
        raise ServiceError('Product not found or not available for this campaign', 404)

    index = None
    deliverable_title = None
    if data.get('deliverable_index') not in (None, ''):
        index = parse_int(data['deliverable_index'], 'deliverable')
        deliverables = collaboration.deliverables or []
        if not 0 <= index < len(deliverables):
            raise ServiceError('Deliverable not found', 404)
        if deliverables[index].get('status', 'pending') not in OPEN_DELIVERABLE_STATUSES:
            raise ServiceError('This deliverable already has content under review or published')
        deliverable_title = deliverables[index].get('title') or 'Deliverable'
        _update_deliverable(collaboration, index, status='submitted', submitted_at=now.isoformat(),
                            content_url=media_urls[0], deliverable_type=str(data['content_type']))

    content = CampaignContent(
        campaign_id=campaign.id,
        influencer_id=influencer.id,
        collaboration_id=collaboration.id,
        product_id=product.id,
        deliverable_index=index,
        deliverable_title=deliverable_title,
        content_type=str(data['content_type']).strip()[:50],
        platforms=platforms,
        caption=caption,
        media_urls=media_urls,
        special_instructions=(str(data['special_instructions']).strip()[:500]
                              if data.get('special_instructions') else None),
        scheduled_at=parse_datetime(data['scheduled_at'], 'scheduled date') if data.get('scheduled_at') else None,
        status=ContentStatusEnum.SUBMITTED,
    )
    db.session.add(content)
    db.session.flush()
    create_notification(
        recipient_id=campaign.brand_id, recipient_type='brand', type='content_submitted',
        title='Content submitted for review',
        body=f"{influencer.display} submitted content for '{campaign.title}'.",
        sender_id=influencer.id, sender_type='influencer', related_id=collaboration.id,
        data={'campaign_id': campaign.id, 'content_id': content.id}, commit=False,
    )
    db.session.commit()
    current_app.logger.info(f"Influencer {influencer.id} submitted content {content.id} for campaign {campaign.id}.")
    return content


def influencer_content(influencer, status=None):
    query = CampaignContent.query.filter_by(influencer_id=influencer.id)
    if status:
        try:
            query = query.filter_by(status=ContentStatusEnum(status))
        except ValueError:
            raise ServiceError('Invalid content status')
    return [content.to_dict() for content in query.order_by(CampaignContent.created_at.desc()).all()]


def publish_content(influencer, content_id, data, now=None):
    """Marks approved content as live on social media and tells the brand."""
    now = now or datetime.utcnow()
    content = CampaignContent.query.filter_by(id=content_id, influencer_id=influencer.id).first()
    if content is None:
        raise ServiceError('Content not found', 404)
    if content.status != ContentStatusEnum.APPROVED:
        raise ServiceError('Only approved content can be published')
    url = str(data.get('external_post_url') or '').strip()
    if not url:
        raise ServiceError('External post URL is required when publishing content')
    if not url.lower().startswith(('http://', 'https://')):
        raise ServiceError('Please enter a valid post URL')

    content.status = ContentStatusEnum.PUBLISHED
    content.external_post_url = url[:255]
    content.published_at = now
    collaboration = content.collaboration
    if content.deliverable_index is not None and collaboration is not None \
            and content.deliverable_index < len(collaboration.deliverables or []):
        _update_deliverable(collaboration, content.deliverable_index, status='published', content_url=url)
    create_notification(
        recipient_id=content.campaign.brand_id, recipient_type='brand', type='content_published',
        title='Content published',
        body=f"{influencer.display} published content for '{content.campaign.title}'.",
        sender_id=influencer.id, sender_type='influencer', related_id=content.collaboration_id,
        data={'campaign_id': content.campaign_id, 'content_id': content.id}, commit=False,
    )
    db.session.commit()
    current_app.logger.info(f"Influencer {influencer.id} published content {content.id}.")
    return content


# --- Brand side ---

def _brand_campaign(brand, campaign_id):
    campaign = Campaign.query.filter_by(id=campaign_id, brand_id=brand.id).first()
    if campaign is None:
        raise ServiceError('Campaign not found', 404)
    return campaign


def pending_content(brand):
    """Submitted content awaiting review across all of the brand's campaigns."""
    contents = CampaignContent.query.join(Campaign, CampaignContent.campaign_id == Campaign.id).filter(
        Campaign.brand_id == brand.id, CampaignContent.status == ContentStatusEnum.SUBMITTED
    ).order_by(CampaignContent.created_at.desc()).all()
    return [content.to_dict(include_influencer=True) for content in contents]


def campaign_pending_content(brand, campaign_id):
    """Submitted and approved-but-unpublished content for one campaign."""
    campaign = _brand_campaign(brand, campaign_id)

    def by_status(status):
        contents = campaign.contents.filter_by(status=status).order_by(CampaignContent.created_at.desc()).all()
        return [content.to_dict(include_influencer=True) for content in contents]

    submitted = by_status(ContentStatusEnum.SUBMITTED)
    approved = by_status(ContentStatusEnum.APPROVED)
    return {'submitted': submitted, 'approved': approved, 'total_pending': len(submitted) + len(approved)}


def review_content(brand, content_id, data, now=None):
    """
    Approves or rejects submitted content. When the content belongs to a deliverable, the
    deliverable follows the decision and the collaboration's progress becomes the share of
    approved or published deliverables.

    Raises:
        ServiceError: On an unknown action, content outside the brand's campaigns, or
            content that was already reviewed.
    """
    now = now or datetime.utcnow()
    new_status = REVIEW_ACTIONS.get(data.get('action'))
    if new_status is None:
        raise ServiceError('Invalid action. Use "approve" or "reject"')
    content = CampaignContent.query.join(Campaign, CampaignContent.campaign_id == Campaign.id).filter(
        CampaignContent.id == content_id, Campaign.brand_id == brand.id).first()
    if content is None:
        raise ServiceError('Content not found', 404)
    if content.status != ContentStatusEnum.SUBMITTED:
        raise ServiceError('Content has already been reviewed')
    feedback = str(data.get('feedback') or '').strip()
    if len(feedback) > MAX_FEEDBACK_LENGTH:
        raise ServiceError(f'Feedback cannot exceed {MAX_FEEDBACK_LENGTH} characters')

    content.status = new_status
    content.brand_feedback = feedback or None
    content.reviewed_at = now

    collaboration = content.collaboration
    if content.deliverable_index is not None and collaboration is not None \
            and content.deliverable_index < len(collaboration.deliverables or []):
        approved = new_status == ContentStatusEnum.APPROVED
        _update_deliverable(collaboration, content.deliverable_index, status='approved' if approved else 'rejected',
                            completed=approved, review_feedback=feedback or None, reviewed_at=now.isoformat())
        done = sum(1 for item in collaboration.deliverables if item.get('status') in DONE_DELIVERABLE_STATUSES)
        collaboration.progress = round_percent(done / len(collaboration.deliverables) * 100)
        refresh_campaign_progress(content.campaign)

    action = 'approved' if new_status == ContentStatusEnum.APPROVED else 'rejected'
    about = f' for "{content.deliverable_title}"' if content.deliverable_title else ''
    create_notification(
        recipient_id=content.influencer_id, recipient_type='influencer', type=f'content_{action}',
        title=f'Content {action}',
        body=f"Your content{about} has been {action}. {feedback}".strip(),
        sender_id=brand.id, sender_type='brand', related_id=content.collaboration_id,
        data={'campaign_id': content.campaign_id, 'content_id': content.id}, commit=False,
    )
    db.session.commit()
    current_app.logger.info(f"Brand {brand.id} {action} content {content.id}.")
    return content


# --- Customer side ---

def published_content(campaign_id, page=1, per_page=CONTENT_PAGE_SIZE):
    """Published posts for a campaign, newest first, one page at a time."""
    if db.session.get(Campaign, campaign_id) is None:
        raise ServiceError('Campaign not found', 404)
    page = max(parse_int(page, 'page'), 1)
    per_page = min(max(parse_int(per_page, 'page size'), 1), 100)
    pagination = CampaignContent.query.filter_by(campaign_id=campaign_id, status=ContentStatusEnum.PUBLISHED) \
        .order_by(CampaignContent.published_at.desc()) \
        .paginate(page=page, per_page=per_page, error_out=False)
    return {
        'content': [content.to_dict(include_influencer=True) for content in pagination.items],
        'pagination': {'page': page, 'limit': per_page, 'total': pagination.total, 'pages': pagination.pages},
    }
