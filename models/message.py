from datetime import datetime
from extensions import db
from .notification import ParticipantTypeEnum


class Message(db.Model):
    """One message in the thread between a brand and an influencer about a campaign."""
    __tablename__ = 'messages'

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey('brands.id'), nullable=False, index=True)
    influencer_id = db.Column(db.Integer, db.ForeignKey('influencers.id'), nullable=False, index=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    sender_type = db.Column(db.Enum(ParticipantTypeEnum), nullable=False)
    message = db.Column(db.String(1000), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'brand_id': self.brand_id,
            'influencer_id': self.influencer_id,
            'campaign_id': self.campaign_id,
            'sender_type': self.sender_type.value,
            'message': self.message,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
