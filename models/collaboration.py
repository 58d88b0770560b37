import enum
from datetime import datetime
from extensions import db


class CollaborationStatusEnum(enum.Enum):
    """
    REQUEST: influencer applied (or accepted a brand invite) and awaits the brand.
    BRAND_INVITE: brand invited the influencer, awaiting the influencer's answer.
    INFLUENCER_INVITE: influencer pitched a campaign to the brand.
    """
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    REQUEST = 'request'
    BRAND_INVITE = 'brand-invite'
    INFLUENCER_INVITE = 'influencer-invite'


class Collaboration(db.Model):
    """
    Tracks one influencer's participation in one campaign.
    A unique constraint keeps a single record per (campaign, influencer) pair;
    re-applying moves the existing record through its states instead of duplicating it.
    """
    __tablename__ = 'collaborations'
    __table_args__ = (
        db.UniqueConstraint('campaign_id', 'influencer_id', name='_campaign_influencer_uc'),
    )

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    influencer_id = db.Column(db.Integer, db.ForeignKey('influencers.id'), nullable=False, index=True)
    status = db.Column(db.Enum(CollaborationStatusEnum), nullable=False, default=CollaborationStatusEnum.REQUEST, index=True)

    progress = db.Column(db.Integer, nullable=False, default=0) # 0-100
    engagement_rate = db.Column(db.Float, nullable=False, default=0.0)
    reach = db.Column(db.Integer, nullable=False, default=0)
    clicks = db.Column(db.Integer, nullable=False, default=0)
    conversions = db.Column(db.Integer, nullable=False, default=0)
    revenue = db.Column(db.Float, nullable=False, default=0.0)
    commission_earned = db.Column(db.Float, nullable=False, default=0.0)
    timeliness_score = db.Column(db.Float, nullable=False, default=0.0)
    # List of {"title", "description", "status", "due_date", "completed"}.
    deliverables = db.Column(db.JSON, nullable=False, default=list)
    message = db.Column(db.String(500), nullable=True) # Note attached to an application.

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self, include_campaign=False, include_influencer=False):
        data = {
            'id': self.id,
            'campaign_id': self.campaign_id,
            'influencer_id': self.influencer_id,
            'status': self.status.value,
            'progress': self.progress,
            'engagement_rate': self.engagement_rate,
            'reach': self.reach,
            'clicks': self.clicks,
            'conversions': self.conversions,
            'revenue': self.revenue,
            'commission_earned': self.commission_earned,
            'timeliness_score': self.timeliness_score,
            'deliverables': self.deliverables or [],
            'message': self.message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_campaign and self.campaign is not None:
            data['campaign'] = self.campaign.to_dict()
            data['brand'] = self.campaign.brand.to_summary() if self.campaign.brand else None
        if include_influencer and self.influencer is not None:
            data['influencer'] = self.influencer.to_summary()
        return data

    def __repr__(self):
        return f'<Collaboration campaign={self.campaign_id} influencer={self.influencer_id} {self.status.value}>'
