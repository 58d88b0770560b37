import enum
from datetime import datetime
from extensions import db


class FeedbackTypeEnum(enum.Enum):
    COMPLAINT = 'complaint'
    SUGGESTION = 'suggestion'
    BUG_REPORT = 'bug_report'
    GENERAL = 'general'


class FeedbackStatusEnum(enum.Enum):
    PENDING = 'pending'
    REVIEWED = 'reviewed'
    RESOLVED = 'resolved'


class Feedback(db.Model):
    """User-submitted feedback, moderated from the admin panel."""
    __tablename__ = 'feedback'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False)
    user_name = db.Column(db.String(100), nullable=True)
    user_type = db.Column(db.String(20), nullable=False) # brand, influencer, customer or admin
    type = db.Column(db.Enum(FeedbackTypeEnum), nullable=False, default=FeedbackTypeEnum.GENERAL)
    subject = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    status = db.Column(db.Enum(FeedbackStatusEnum), nullable=False, default=FeedbackStatusEnum.PENDING, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_name': self.user_name,
            'user_type': self.user_type,
            'type': self.type.value,
            'subject': self.subject,
            'message': self.message,
            'status': self.status.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
