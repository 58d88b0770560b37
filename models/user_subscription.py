import enum
import math
from datetime import datetime
from extensions import db # Import the SQLAlchemy instance.
from .subscription_plan import SubscriberTypeEnum


class SubscriptionStatusEnum(enum.Enum):
    """
    Enumeration for the possible statuses of an account's subscription.
    An account has at most one ACTIVE subscription; older ones are EXPIRED when replaced.
    """
    ACTIVE = 'active'
    CANCELLED = 'cancelled'
    EXPIRED = 'expired'     # end_date passed, or superseded by a newer subscription.
    PENDING = 'pending'     # Created but awaiting payment.


class BillingCycleEnum(enum.Enum):
    MONTHLY = 'monthly'
    YEARLY = 'yearly'

    @property
    def days(self):
        """Length of one billing period in days."""
        return 365 if self is BillingCycleEnum.YEARLY else 30


class UserSubscription(db.Model):
    """
    A brand's or influencer's subscription to a SubscriptionPlan.

    Besides the lifecycle dates and status, it meters usage against the plan limits:
    campaigns created, influencers connected (brands) and brands connected (influencers).
    user_id is not a foreign key because it refers to either the brands or the influencers
    table depending on user_type.
    """
    __tablename__ = 'user_subscriptions'

    id = db.Column(db.Integer, primary_key=True)

    # --- Owner and Plan ---
    user_id = db.Column(db.Integer, nullable=False, index=True)
    user_type = db.Column(db.Enum(SubscriberTypeEnum), nullable=False, index=True)
    plan_id = db.Column(db.Integer, db.ForeignKey('subscription_plans.id'), nullable=False, index=True)

    # --- Lifecycle ---
    status = db.Column(db.Enum(SubscriptionStatusEnum), nullable=False, default=SubscriptionStatusEnum.PENDING, index=True)
    billing_cycle = db.Column(db.Enum(BillingCycleEnum), nullable=False, default=BillingCycleEnum.MONTHLY)
    start_date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    end_date = db.Column(db.DateTime, nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0) # Amount paid for this period.
    auto_renew = db.Column(db.Boolean, nullable=False, default=False)

    # --- Usage metering ---
    campaigns_used = db.Column(db.Integer, nullable=False, default=0)
    influencers_connected = db.Column(db.Integer, nullable=False, default=0)
    brands_connected = db.Column(db.Integer, nullable=False, default=0)
    storage_used_gb = db.Column(db.Float, nullable=False, default=0.0)
    uploads_this_month = db.Column(db.Integer, nullable=False, default=0)

    # --- Timestamps ---
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    plan = db.relationship('SubscriptionPlan')
    payments = db.relationship('PaymentHistory', backref='subscription', lazy='dynamic')

    # Usage counters that update_usage() is allowed to increment.
    USAGE_FIELDS = ('campaigns_used', 'influencers_connected', 'brands_connected',
                    'storage_used_gb', 'uploads_this_month')

    def is_past_end(self, now=None):
        now = now or datetime.utcnow()
        return self.end_date is not None and self.end_date < now

    def days_until_expiry(self, now=None):
        """Whole days left, rounded up (a subscription ending in 2.1 days has 3 days left)."""
        now = now or datetime.utcnow()
        return math.ceil((self.end_date - now).total_seconds() / 86400)

    def usage_dict(self):
        return {field: getattr(self, field) for field in self.USAGE_FIELDS}

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user_type': self.user_type.value,
            'plan': self.plan.to_dict() if self.plan else None,
            'status': self.status.value,
            'billing_cycle': self.billing_cycle.value,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'amount': float(self.amount or 0),
            'auto_renew': self.auto_renew,
            'usage': self.usage_dict(),
        }

    def __repr__(self):
        return f'<UserSubscription {self.user_type.value}:{self.user_id} - Plan {self.plan_id} - Status {self.status.value}>'
