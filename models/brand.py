from datetime import datetime
from extensions import db
from .account import AccountMixin, AccountStatusEnum


class Brand(db.Model, AccountMixin):
    """
    A brand account. Brands create campaigns, invite influencers and sell campaign
    products through the storefront. New brands start unverified; an admin approves them
    before they can create campaigns or send invites.
    """
    __tablename__ = 'brands'
    role = 'brand'

    # --- Identity ---
    id = db.Column(db.Integer, primary_key=True)
    brand_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True) # Stored lowercased.
    password_hash = db.Column(db.String(128), nullable=False)
    username = db.Column(db.String(30), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(50), nullable=True)

    # --- Profile ---
    bio = db.Column(db.String(500), nullable=True)
    description = db.Column(db.String(1000), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    industry = db.Column(db.String(100), nullable=True)
    location = db.Column(db.String(100), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    mission = db.Column(db.String(500), nullable=True)
    tagline = db.Column(db.String(200), nullable=True)
    logo_url = db.Column(db.String(255), nullable=True)
    banner_url = db.Column(db.String(255), nullable=True)
    categories = db.Column(db.JSON, nullable=False, default=list)
    # List of {"platform": ..., "url": ..., "followers": ...}.
    social_links = db.Column(db.JSON, nullable=False, default=list)

    # --- Target audience ---
    target_age_range = db.Column(db.String(20), nullable=True) # e.g. "18-34"
    target_gender = db.Column(db.String(10), nullable=True)    # Male, Female or All
    target_interests = db.Column(db.JSON, nullable=False, default=list)
    total_audience = db.Column(db.Integer, nullable=False, default=0)

    # --- Standing ---
    verified = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.Enum(AccountStatusEnum), nullable=False, default=AccountStatusEnum.ACTIVE)
    completed_campaigns = db.Column(db.Integer, nullable=False, default=0)
    avg_campaign_rating = db.Column(db.Float, nullable=False, default=0.0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    campaigns = db.relationship('Campaign', backref='brand', lazy='dynamic')

    @property
    def display(self):
        return self.display_name or self.brand_name

    def to_summary(self):
        """Public card used by landing pages, rankings and nested listings."""
        return {
            'id': self.id,
            'brand_name': self.brand_name,
            'display_name': self.display,
            'username': self.username,
            'industry': self.industry,
            'location': self.location,
            'logo_url': self.logo_url,
            'verified': self.verified,
            'completed_campaigns': self.completed_campaigns,
        }

    def to_dict(self):
        data = self.to_summary()
        data.update({
            'email': self.email,
            'bio': self.bio,
            'description': self.description,
            'phone': self.phone,
            'website': self.website,
            'mission': self.mission,
            'tagline': self.tagline,
            'banner_url': self.banner_url,
            'categories': self.categories or [],
            'social_links': self.social_links or [],
            'target_age_range': self.target_age_range,
            'target_gender': self.target_gender,
            'target_interests': self.target_interests or [],
            'total_audience': self.total_audience,
            'status': self.status.value,
            'avg_campaign_rating': self.avg_campaign_rating,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        })
        return data

    def __repr__(self):
        return f'<Brand {self.email}>'
