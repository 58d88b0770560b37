import enum
from extensions import db # Import the SQLAlchemy instance from extensions.

UNLIMITED = -1 # Sentinel used by the max_* features.


class SubscriberTypeEnum(enum.Enum):
    """Account types that can hold a subscription."""
    BRAND = 'brand'
    INFLUENCER = 'influencer'


class SubscriptionPlan(db.Model):
    """
    Represents a subscription tier (Free, Basic or Premium) offered to one account type.

    Limits and feature flags are kept in the `features` JSON column:
        max_campaigns, max_influencers, max_brands  -> int, -1 means unlimited (default)
        analytics, advanced_analytics, priority_support,
        custom_branding, collaboration_tools        -> bool (default False)
    """
    __tablename__ = 'subscription_plans'
    __table_args__ = (
        db.UniqueConstraint('name', 'user_type', name='_plan_name_user_type_uc'),
    )

    # --- Plan Identification and Details ---
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), nullable=False) # Free, Basic or Premium.
    user_type = db.Column(db.Enum(SubscriberTypeEnum), nullable=False, index=True)
    price_monthly = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    price_yearly = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    description = db.Column(db.String(255), nullable=True)

    # --- Features ---
    features = db.Column(db.JSON, nullable=False, default=dict)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_default = db.Column(db.Boolean, nullable=False, default=False) # The plan new accounts fall back to.
    popular_badge = db.Column(db.Boolean, nullable=False, default=False)

    def feature(self, key):
        """
        Reads one feature value with its schema default applied.

        Args:
            key (str): Feature name, e.g. 'max_campaigns' or 'advanced_analytics'.

        Returns:
            int or bool: -1 for missing max_* limits, False for missing flags.
        """
        features = self.features or {}
        if key.startswith('max_'):
            return int(features.get(key, UNLIMITED))
        return bool(features.get(key, False))

    def price_for(self, billing_cycle):
        """Returns the price as a float for 'monthly' or 'yearly'."""
        price = self.price_yearly if billing_cycle == 'yearly' else self.price_monthly
        return float(price or 0)

    def is_paid(self, billing_cycle):
        return self.price_for(billing_cycle) > 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'user_type': self.user_type.value,
            'price': {
                'monthly': float(self.price_monthly or 0),
                'yearly': float(self.price_yearly or 0),
            },
            'features': {
                'max_campaigns': self.feature('max_campaigns'),
                'max_influencers': self.feature('max_influencers'),
                'max_brands': self.feature('max_brands'),
                'analytics': self.feature('analytics'),
                'advanced_analytics': self.feature('advanced_analytics'),
                'priority_support': self.feature('priority_support'),
                'custom_branding': self.feature('custom_branding'),
                'collaboration_tools': self.feature('collaboration_tools'),
            },
            'description': self.description,
            'is_default': self.is_default,
            'popular_badge': self.popular_badge,
        }

    def __repr__(self):
        return f'<SubscriptionPlan {self.name} ({self.user_type.value}) - {self.price_monthly}>'
