import enum
from datetime import datetime
from extensions import db

# Channels a campaign may require.
CAMPAIGN_CHANNELS = ('Instagram', 'YouTube', 'TikTok', 'Facebook', 'Twitter', 'LinkedIn')


class CampaignStatusEnum(enum.Enum):
    """
    Campaign lifecycle.

    REQUEST: created by a brand and open for applications.
    INFLUENCER_INVITE: pitched by an influencer; the brand still has to complete dates,
    objectives and product before it turns ACTIVE.
    """
    ACTIVE = 'active'
    COMPLETED = 'completed'
    DRAFT = 'draft'
    CANCELLED = 'cancelled'
    REQUEST = 'request'
    BRAND_INVITE = 'brand-invite'
    INFLUENCER_INVITE = 'influencer-invite'


class CampaignPaymentStatusEnum(enum.Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


class CampaignPaymentMethodEnum(enum.Enum):
    BANK_TRANSFER = 'bank_transfer'
    CREDIT_CARD = 'credit_card'
    PAYPAL = 'paypal'
    OTHER = 'other'


class Campaign(db.Model):
    """A brand campaign that influencers join through collaborations."""
    __tablename__ = 'campaigns'

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey('brands.id'), nullable=False, index=True)
    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(1000), nullable=False, default='')
    status = db.Column(db.Enum(CampaignStatusEnum), nullable=False, default=CampaignStatusEnum.REQUEST, index=True)

    start_date = db.Column(db.DateTime, nullable=True) # Unset while an influencer pitch is pending.
    end_date = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Integer, nullable=False, default=0) # Days, inclusive of both ends.

    required_influencers = db.Column(db.Integer, nullable=False, default=1)
    budget = db.Column(db.Float, nullable=False, default=0.0)
    commission_rate = db.Column(db.Float, nullable=False, default=0.0) # Percent, 0-100.
    target_audience = db.Column(db.String(255), nullable=True)
    required_channels = db.Column(db.JSON, nullable=False, default=list)
    min_followers = db.Column(db.Integer, nullable=False, default=0)
    objectives = db.Column(db.String(500), nullable=True)
    # List of {"task", "description", "platform", "num_posts", "due_date"}.
    deliverables = db.Column(db.JSON, nullable=False, default=list)
    product_name = db.Column(db.String(100), nullable=True) # Set on influencer pitches.

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    metrics = db.relationship('CampaignMetrics', backref='campaign', uselist=False, cascade='all, delete-orphan')
    collaborations = db.relationship('Collaboration', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')
    products = db.relationship('Product', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')
    payments = db.relationship('CampaignPayment', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')
    contents = db.relationship('CampaignContent', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')
    messages = db.relationship('Message', backref='campaign', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self, include_metrics=False):
        data = {
            'id': self.id,
            'brand_id': self.brand_id,
            'title': self.title,
            'description': self.description,
            'status': self.status.value,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'duration': self.duration,
            'required_influencers': self.required_influencers,
            'budget': self.budget,
            'commission_rate': self.commission_rate,
            'target_audience': self.target_audience,
            'required_channels': self.required_channels or [],
            'min_followers': self.min_followers,
            'objectives': self.objectives,
            'deliverables': self.deliverables or [],
            'product_name': self.product_name,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_metrics:
            data['metrics'] = self.metrics.to_dict() if self.metrics else None
        return data

    def __repr__(self):
        return f'<Campaign {self.id} {self.title!r} {self.status.value}>'


class CampaignMetrics(db.Model):
    """Aggregate performance figures for one campaign."""
    __tablename__ = 'campaign_metrics'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, unique=True)
    brand_id = db.Column(db.Integer, db.ForeignKey('brands.id'), nullable=False, index=True)

    progress = db.Column(db.Integer, nullable=False, default=0)
    performance_score = db.Column(db.Float, nullable=False, default=0.0)
    engagement_rate = db.Column(db.Float, nullable=False, default=0.0)
    reach = db.Column(db.Integer, nullable=False, default=0)
    conversion_rate = db.Column(db.Float, nullable=False, default=0.0)
    clicks = db.Column(db.Integer, nullable=False, default=0)
    conversions = db.Column(db.Integer, nullable=False, default=0)
    impressions = db.Column(db.Integer, nullable=False, default=0)
    revenue = db.Column(db.Float, nullable=False, default=0.0)
    roi = db.Column(db.Float, nullable=False, default=0.0)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Fields an influencer progress update may set, with the type each is coerced to.
    REPORTABLE_FIELDS = {
        'reach': int,
        'clicks': int,
        'conversions': int,
        'impressions': int,
        'performance_score': float,
        'engagement_rate': float,
        'conversion_rate': float,
        'revenue': float,
        'roi': float,
    }

    def to_dict(self):
        data = {field: getattr(self, field) for field in self.REPORTABLE_FIELDS}
        data['progress'] = self.progress
        return data


class CampaignPayment(db.Model):
    """Payment a brand makes to an influencer when accepting a collaboration request."""
    __tablename__ = 'campaign_payments'

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    brand_id = db.Column(db.Integer, db.ForeignKey('brands.id'), nullable=False, index=True)
    influencer_id = db.Column(db.Integer, db.ForeignKey('influencers.id'), nullable=False, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(db.Enum(CampaignPaymentStatusEnum), nullable=False, default=CampaignPaymentStatusEnum.PENDING, index=True)
    payment_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    payment_method = db.Column(db.Enum(CampaignPaymentMethodEnum), nullable=False, default=CampaignPaymentMethodEnum.OTHER)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    brand = db.relationship('Brand')
    influencer = db.relationship('Influencer')

    def to_dict(self):
        return {
            'id': self.id,
            'campaign_id': self.campaign_id,
            'campaign_title': self.campaign.title if self.campaign else None,
            'brand_id': self.brand_id,
            'brand_name': self.brand.brand_name if self.brand else None,
            'influencer_id': self.influencer_id,
            'influencer_name': self.influencer.display if self.influencer else None,
            'amount': float(self.amount or 0),
            'status': self.status.value,
            'payment_date': self.payment_date.isoformat() if self.payment_date else None,
            'payment_method': self.payment_method.value,
        }
