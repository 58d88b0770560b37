import enum
from datetime import datetime
from extensions import db


class ParticipantTypeEnum(enum.Enum):
    """Who sends or receives a notification."""
    BRAND = 'brand'
    INFLUENCER = 'influencer'
    ADMIN = 'admin'
    SYSTEM = 'system'


class Notification(db.Model):
    """In-app notification, e.g. 'application_received' or 'invite_accepted'."""
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    recipient_id = db.Column(db.Integer, nullable=False, index=True)
    recipient_type = db.Column(db.Enum(ParticipantTypeEnum), nullable=False, index=True)
    sender_id = db.Column(db.Integer, nullable=True)
    sender_type = db.Column(db.Enum(ParticipantTypeEnum), nullable=True)
    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(200), nullable=False, default='')
    body = db.Column(db.String(1000), nullable=False, default='')
    related_id = db.Column(db.Integer, nullable=True) # Usually a collaboration id.
    data = db.Column(db.JSON, nullable=False, default=dict)
    read = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'recipient_id': self.recipient_id,
            'recipient_type': self.recipient_type.value,
            'sender_id': self.sender_id,
            'sender_type': self.sender_type.value if self.sender_type else None,
            'type': self.type,
            'title': self.title,
            'body': self.body,
            'related_id': self.related_id,
            'data': self.data or {},
            'read': self.read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
