import enum
from datetime import datetime
from extensions import db


class OrderStatusEnum(enum.Enum):
    PENDING = 'pending'
    PAID = 'paid'
    SHIPPED = 'shipped'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


class AttributionStatusEnum(enum.Enum):
    """Whether the referring influencer's commission has been settled."""
    PENDING = 'pending'
    PAID = 'paid'
    CANCELLED = 'cancelled'


class Order(db.Model):
    """A storefront checkout. Line items are stored in OrderItem."""
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=True, index=True)
    customer_name = db.Column(db.String(100), nullable=False)
    customer_email = db.Column(db.String(120), nullable=False, index=True)
    customer_phone = db.Column(db.String(20), nullable=True)

    subtotal = db.Column(db.Float, nullable=False, default=0.0)
    shipping_cost = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.Enum(OrderStatusEnum), nullable=False, default=OrderStatusEnum.PENDING, index=True)
    payment_id = db.Column(db.String(64), nullable=True)
    shipping_address = db.Column(db.JSON, nullable=True)
    delivery_days = db.Column(db.Integer, nullable=True)

    # --- Influencer attribution ---
    referral_code = db.Column(db.String(50), nullable=True)
    influencer_id = db.Column(db.Integer, db.ForeignKey('influencers.id'), nullable=True)
    commission_amount = db.Column(db.Float, nullable=False, default=0.0)
    attribution_status = db.Column(db.Enum(AttributionStatusEnum), nullable=False, default=AttributionStatusEnum.PENDING)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = db.relationship('OrderItem', backref='order', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'customer_email': self.customer_email,
            'items': [item.to_dict() for item in self.items],
            'subtotal': self.subtotal,
            'shipping_cost': self.shipping_cost,
            'total_amount': self.total_amount,
            'status': self.status.value,
            'payment_id': self.payment_id,
            'delivery_days': self.delivery_days,
            'referral_code': self.referral_code,
            'influencer_id': self.influencer_id,
            'commission_amount': self.commission_amount,
            'attribution_status': self.attribution_status.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class OrderItem(db.Model):
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id'), nullable=True)
    product_name = db.Column(db.String(100), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price_at_purchase = db.Column(db.Float, nullable=False)
    subtotal = db.Column(db.Float, nullable=False)

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'quantity': self.quantity,
            'price_at_purchase': self.price_at_purchase,
            'subtotal': self.subtotal,
        }
