import enum
from datetime import datetime
from extensions import db
from .account import AccountMixin


class CustomerStatusEnum(enum.Enum):
    ACTIVE = 'active'
    SUSPENDED = 'suspended' # Set by an admin; sign-in is refused with the admin notes.


class Customer(db.Model, AccountMixin):
    """
    A storefront customer.

    Rows are created either by signup (with a password) or implicitly by guest checkout,
    which upserts by email and leaves password_hash empty. Purchase totals accumulate on
    every checkout.
    """
    __tablename__ = 'customers'
    role = 'customer'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=True) # Null for guest-checkout customers.
    phone = db.Column(db.String(20), nullable=True)

    total_purchases = db.Column(db.Integer, nullable=False, default=0)
    total_spent = db.Column(db.Float, nullable=False, default=0.0)
    last_purchase_date = db.Column(db.DateTime, nullable=True)

    status = db.Column(db.Enum(CustomerStatusEnum), nullable=False, default=CustomerStatusEnum.ACTIVE)
    admin_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    orders = db.relationship('Order', backref='customer', lazy='dynamic')

    @property
    def display(self):
        return self.name

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'total_purchases': self.total_purchases,
            'total_spent': self.total_spent,
            'last_purchase_date': self.last_purchase_date.isoformat() if self.last_purchase_date else None,
            'status': self.status.value,
            'admin_notes': self.admin_notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Customer {self.email}>'
