import enum
from datetime import datetime
from extensions import db


class ProductStatusEnum(enum.Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    OUT_OF_STOCK = 'out_of_stock'
    DISCONTINUED = 'discontinued'


class Product(db.Model):
    """
    A product sold at a campaign price during a campaign.
    Stock is expressed as target_quantity minus sold_quantity.
    """
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    brand_id = db.Column(db.Integer, db.ForeignKey('brands.id'), nullable=False, index=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey('campaigns.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(1000), nullable=False, default='')
    images = db.Column(db.JSON, nullable=False, default=list) # [{"url", "alt", "is_primary"}]

    original_price = db.Column(db.Float, nullable=False, default=0.0)
    campaign_price = db.Column(db.Float, nullable=False, default=0.0)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(50), nullable=False, default='')
    tags = db.Column(db.JSON, nullable=False, default=list)

    target_quantity = db.Column(db.Integer, nullable=False, default=0)
    sold_quantity = db.Column(db.Integer, nullable=False, default=0)
    is_digital = db.Column(db.Boolean, nullable=False, default=False)
    estimated_delivery_days = db.Column(db.Integer, nullable=True)

    status = db.Column(db.Enum(ProductStatusEnum), nullable=False, default=ProductStatusEnum.ACTIVE, index=True)
    created_by = db.Column(db.Integer, nullable=True) # Brand id of the creator.

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    brand = db.relationship('Brand')

    @property
    def available_quantity(self):
        return max(0, (self.target_quantity or 0) - (self.sold_quantity or 0))

    @property
    def primary_image(self):
        for image in self.images or []:
            if image.get('is_primary'):
                return image.get('url')
        return (self.images or [{}])[0].get('url') if self.images else None

    def to_dict(self):
        return {
            'id': self.id,
            'brand_id': self.brand_id,
            'campaign_id': self.campaign_id,
            'name': self.name,
            'description': self.description,
            'images': self.images or [],
            'primary_image': self.primary_image,
            'original_price': self.original_price,
            'campaign_price': self.campaign_price,
            'discount_percentage': self.discount_percentage,
            'category': self.category,
            'tags': self.tags or [],
            'target_quantity': self.target_quantity,
            'sold_quantity': self.sold_quantity,
            'available_quantity': self.available_quantity,
            'is_digital': self.is_digital,
            'estimated_delivery_days': self.estimated_delivery_days,
            'status': self.status.value,
        }

    def __repr__(self):
        return f'<Product {self.id} {self.name!r}>'
