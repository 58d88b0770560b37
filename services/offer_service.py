"""Brand offers: discounts a brand runs for a date window and customers browse on the storefront."""
from datetime import datetime

from flask import current_app

from extensions import db
from models.offer import Offer, OfferStatusEnum
from utils.errors import ServiceError
from utils.helpers import require_fields, parse_datetime, parse_float

TEXT_LIMITS = {'description': 500, 'eligibility': 200, 'offer_details': 500}
LABELS = {'description': 'Description', 'eligibility': 'Eligibility', 'offer_details': 'Offer details'}


def expire_offers(now=None):
    """Moves ACTIVE offers whose end_date has passed to EXPIRED. Returns how many changed."""
    now = now or datetime.utcnow()
    count = Offer.query.filter(Offer.status == OfferStatusEnum.ACTIVE, Offer.end_date < now) \
        .update({Offer.status: OfferStatusEnum.EXPIRED}, synchronize_session=False)
    if count:
        db.session.commit()
        current_app.logger.info(f"Expired {count} offer(s).")
    return count


def create_offer(brand, data, now=None):
    now = now or datetime.utcnow()
    require_fields(data, ('description', 'offer_percentage', 'start_date', 'end_date'))
    percentage = parse_float(data['offer_percentage'], 'offer percentage')
    if not 0 <= percentage <= 100:
        raise ServiceError('Offer percentage must be between 0 and 100')
    start_date = parse_datetime(data['start_date'], 'start date')
    end_date = parse_datetime(data['end_date'], 'end date')
    if end_date <= start_date:
        raise ServiceError('End date must be after start date')
    if end_date <= now:
        raise ServiceError('End date must be in the future')

    values = {}
    for field, max_length in TEXT_LIMITS.items():
        value = str(data.get(field) or '').strip() or None
        if value and len(value) > max_length:
            raise ServiceError(f'{LABELS[field]} cannot exceed {max_length} characters')
        values[field] = value

    offer = Offer(brand_id=brand.id, offer_percentage=percentage, start_date=start_date, end_date=end_date,
                  status=OfferStatusEnum.ACTIVE, **values)
    db.session.add(offer)
    db.session.commit()
    current_app.logger.info(f"Brand {brand.id} created offer {offer.id} ({percentage}% off).")
    return offer


def brand_offers(brand, now=None):
    expire_offers(now)
    offers = Offer.query.filter_by(brand_id=brand.id).order_by(Offer.created_at.desc()).all()
    return [offer.to_dict() for offer in offers]


def cancel_offer(brand, offer_id):
    offer = Offer.query.filter_by(id=offer_id, brand_id=brand.id).first()
    if offer is None:
        raise ServiceError('Offer not found', 404)
    if offer.status != OfferStatusEnum.ACTIVE:
        raise ServiceError('Only active offers can be cancelled')
    offer.status = OfferStatusEnum.CANCELLED
    db.session.commit()
    current_app.logger.info(f"Brand {brand.id} cancelled offer {offer.id}.")
    return offer


def active_offers(now=None):
    """Offers customers can use right now, best discount first."""
    now = now or datetime.utcnow()
    expire_offers(now)
    offers = Offer.query.filter(Offer.status == OfferStatusEnum.ACTIVE, Offer.start_date <= now) \
        .order_by(Offer.offer_percentage.desc(), Offer.end_date).all()
    return [offer.to_dict() for offer in offers]


def offer_detail(offer_id):
    offer = db.session.get(Offer, offer_id)
    if offer is None:
        raise ServiceError('Offer not found', 404)
    return offer.to_dict()
