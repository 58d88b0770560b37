import enum
from datetime import datetime
from extensions import db


class ContentStatusEnum(enum.Enum):
    """SUBMITTED -> APPROVED or REJECTED by the brand; APPROVED -> PUBLISHED by the influencer."""
    SUBMITTED = 'submitted'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    PUBLISHED = 'published'


class CampaignContent(db.Model):
    """
    A post an influencer drafts for a campaign. It may be tied to one entry of the
    collaboration's deliverables list through `deliverable_index`; reviewing the content
    moves that deliverable along with it.
    """
    __tablename__ = 'campaign_contents'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    influencer_id = db.Column(db.Integer, db.ForeignKey('influencers.id'), nullable=False, index=True)
    collaboration_id = db.Column(db.Integer, db.ForeignKey('collaborations.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=True)
    deliverable_index = db.Column(db.Integer, nullable=True) # Position in collaboration.deliverables.
    deliverable_title = db.Column(db.String(100), nullable=True)

    content_type = db.Column(db.String(50), nullable=False) # e.g. 'post', 'reel', 'story'
    platforms = db.Column(db.JSON, nullable=False, default=list)
    caption = db.Column(db.String(2200), nullable=False)
    media_urls = db.Column(db.JSON, nullable=False, default=list)
    special_instructions = db.Column(db.String(500), nullable=True)
    scheduled_at = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.Enum(ContentStatusEnum), nullable=False, default=ContentStatusEnum.SUBMITTED, index=True)
    brand_feedback = db.Column(db.String(1000), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    external_post_url = db.Column(db.String(255), nullable=True)
    published_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    influencer = db.relationship('Influencer')
    product = db.relationship('Product')
    collaboration = db.relationship('Collaboration')

    def to_dict(self, include_influencer=False):
        data = {
            'id': self.id,
            'campaign_id': self.campaign_id,
            'campaign_title': self.campaign.title if self.campaign else None,
            'influencer_id': self.influencer_id,
            'collaboration_id': self.collaboration_id,
            'product': self.product.to_dict() if self.product else None,
            'deliverable_index': self.deliverable_index,
            'deliverable_title': self.deliverable_title,
            'content_type': self.content_type,
            'platforms': self.platforms or [],
            'caption': self.caption,
            'media_urls': self.media_urls or [],
            'special_instructions': self.special_instructions,
            'scheduled_at': self.scheduled_at.isoformat() if self.scheduled_at else None,
            'status': self.status.value,
            'brand_feedback': self.brand_feedback,
            'reviewed_at': self.reviewed_at.isoformat() if self.reviewed_at else None,
            'external_post_url': self.external_post_url,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_influencer and self.influencer is not None:
            data['influencer'] = self.influencer.to_summary()
        return data
