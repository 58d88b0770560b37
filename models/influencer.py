from datetime import datetime
from extensions import db
from .account import AccountMixin, AccountStatusEnum

# Platforms accepted at signup (lowercase, as submitted by the landing form).
SIGNUP_PLATFORMS = ('instagram', 'youtube', 'tiktok', 'facebook', 'twitter', 'linkedin')


class Influencer(db.Model, AccountMixin):
    """
    An influencer account. Influencers apply to brand campaigns, accept brand invites,
    pitch their own campaign ideas to brands and report collaboration progress.
    """
    __tablename__ = 'influencers'
    role = 'influencer'

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)
    username = db.Column(db.String(30), unique=True, nullable=False, index=True)
    display_name = db.Column(db.String(50), nullable=True)

    bio = db.Column(db.String(500), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    niche = db.Column(db.String(100), nullable=True)
    categories = db.Column(db.JSON, nullable=False, default=list)
    languages = db.Column(db.JSON, nullable=False, default=list)
    location = db.Column(db.String(100), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    profile_pic_url = db.Column(db.String(255), nullable=True)
    banner_url = db.Column(db.String(255), nullable=True)

    # List of {"platform": ..., "handle": ..., "followers": ...}.
    platforms = db.Column(db.JSON, nullable=False, default=list)
    social_handle = db.Column(db.String(100), nullable=True)

    # --- Analytics ---
    total_followers = db.Column(db.Integer, nullable=False, default=0)
    avg_engagement_rate = db.Column(db.Float, nullable=False, default=0.0)
    monthly_earnings = db.Column(db.Float, nullable=False, default=0.0)
    rating = db.Column(db.Float, nullable=False, default=0.0)

    verified = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(db.Enum(AccountStatusEnum), nullable=False, default=AccountStatusEnum.ACTIVE)
    completed_campaigns = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    collaborations = db.relationship('Collaboration', backref='influencer', lazy='dynamic')

    @property
    def display(self):
        return self.display_name or self.full_name

    def to_summary(self):
        return {
            'id': self.id,
            'full_name': self.full_name,
            'display_name': self.display,
            'username': self.username,
            'niche': self.niche,
            'profile_pic_url': self.profile_pic_url,
            'total_followers': self.total_followers,
            'avg_engagement_rate': self.avg_engagement_rate,
            'verified': self.verified,
            'completed_campaigns': self.completed_campaigns,
        }

    def to_dict(self):
        data = self.to_summary()
        data.update({
            'email': self.email,
            'bio': self.bio,
            'phone': self.phone,
            'categories': self.categories or [],
            'languages': self.languages or [],
            'location': self.location,
            'website': self.website,
            'banner_url': self.banner_url,
            'platforms': self.platforms or [],
            'social_handle': self.social_handle,
            'monthly_earnings': self.monthly_earnings,
            'rating': self.rating,
            'status': self.status.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        })
        return data

    def __repr__(self):
        return f'<Influencer {self.email}>'
