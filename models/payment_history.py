import enum
from datetime import datetime
from extensions import db
from .subscription_plan import SubscriberTypeEnum


class PaymentStatusEnum(enum.Enum):
    SUCCESS = 'success'
    FAILED = 'failed'
    PENDING = 'pending'
    REFUNDED = 'refunded'


class PaymentMethodEnum(enum.Enum):
    CREDIT_CARD = 'credit_card'
    PAYPAL = 'paypal'
    BANK_TRANSFER = 'bank_transfer'
    STRIPE = 'stripe'


class PaymentHistory(db.Model):
    """
    One subscription payment attempt.

    Card details are kept for prefilling the next payment: last four digits, brand and
    expiry in clear, the full number only Fernet-encrypted (see utils.security).
    """
    __tablename__ = 'payment_history'

    id = db.Column(db.Integer, primary_key=True)
    subscription_id = db.Column(db.Integer, db.ForeignKey('user_subscriptions.id'), nullable=True, index=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    user_type = db.Column(db.Enum(SubscriberTypeEnum), nullable=False)

    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(3), nullable=False, default='USD')
    status = db.Column(db.Enum(PaymentStatusEnum), nullable=False, default=PaymentStatusEnum.PENDING, index=True)
    payment_method = db.Column(db.Enum(PaymentMethodEnum), nullable=False, default=PaymentMethodEnum.CREDIT_CARD)
    transaction_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    payment_gateway = db.Column(db.String(30), nullable=False, default='simulated')
    gateway_payment_id = db.Column(db.String(100), nullable=True)
    description = db.Column(db.String(255), nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    billing_address = db.Column(db.JSON, nullable=True)

    # --- Card details ---
    card_name = db.Column(db.String(100), nullable=True)
    card_last4 = db.Column(db.String(4), nullable=True)
    card_brand = db.Column(db.String(30), nullable=True)
    card_expiry_month = db.Column(db.Integer, nullable=True)
    card_expiry_year = db.Column(db.Integer, nullable=True)
    encrypted_card_number = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'subscription_id': self.subscription_id,
            'amount': float(self.amount or 0),
            'currency': self.currency,
            'status': self.status.value,
            'payment_method': self.payment_method.value,
            'transaction_id': self.transaction_id,
            'payment_gateway': self.payment_gateway,
            'description': self.description,
            'paid_at': self.paid_at.isoformat() if self.paid_at else None,
            'card': {
                'name': self.card_name,
                'last4': self.card_last4,
                'brand': self.card_brand,
                'expiry_month': self.card_expiry_month,
                'expiry_year': self.card_expiry_year,
            },
        }

    def __repr__(self):
        return f'<PaymentHistory {self.transaction_id} {self.status.value}>'
