import enum
from datetime import datetime
from extensions import db


class OfferStatusEnum(enum.Enum):
    ACTIVE = 'active'
    EXPIRED = 'expired'
    CANCELLED = 'cancelled'


class Offer(db.Model):
    """A brand-wide discount shown to storefront customers between start_date and end_date."""
    __tablename__ = 'offers'

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey('brands.id'), nullable=False, index=True)
    description = db.Column(db.String(500), nullable=False)
    offer_percentage = db.Column(db.Float, nullable=False) # 0-100
    eligibility = db.Column(db.String(200), nullable=True)
    offer_details = db.Column(db.String(500), nullable=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.Enum(OfferStatusEnum), nullable=False, default=OfferStatusEnum.ACTIVE, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    brand = db.relationship('Brand')

    def to_dict(self):
        return {
            'id': self.id,
            'brand_id': self.brand_id,
            'brand': self.brand.to_summary() if self.brand else None,
            'description': self.description,
            'offer_percentage': self.offer_percentage,
            'eligibility': self.eligibility,
            'offer_details': self.offer_details,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'status': self.status.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
