from datetime import datetime, timedelta
import pytest
from models import Offer, OfferStatusEnum
from services import offer_service
from tests.conftest import make_brand, login


def offer_body(**overrides):
    now = datetime.utcnow()
    body = {'description': 'Summer sale', 'offer_percentage': 15, 'eligibility': 'New customers',
            'start_date': (now - timedelta(days=1)).isoformat(), 'end_date': (now + timedelta(days=10)).isoformat()}
    body.update(overrides)
    return body


def add_offer(brand, start, end, percentage=10, status=OfferStatusEnum.ACTIVE):
    from extensions import db
    offer = Offer(brand_id=brand.id, description=f'{percentage}% off', offer_percentage=percentage,
                  start_date=start, end_date=end, status=status)
    db.session.add(offer)
    db.session.commit()
    return offer


@pytest.fixture
def brand_client(client):
    brand = make_brand()
    login(client, brand.email)
    return client, brand


def test_create_and_cancel_offer(brand_client, db):
    client, brand = brand_client
    response = client.post('/brand/offers/create', json=offer_body())
    assert response.status_code == 201
    offer = response.get_json()['offer']
    assert offer['offer_percentage'] == 15
    assert offer['brand']['id'] == brand.id

    assert [o['id'] for o in client.get('/brand/offers').get_json()['offers']] == [offer['id']]
    response = client.post(f"/brand/offers/{offer['id']}/cancel")
    assert response.get_json()['offer']['status'] == 'cancelled'
    response = client.post(f"/brand/offers/{offer['id']}/cancel")
    assert response.get_json()['error']['message'] == 'Only active offers can be cancelled'

@pytest.mark.parametrize("overrides, message", [
    ({'description': ''}, 'Missing required fields: description'),
    ({'offer_percentage': 120}, 'Offer percentage must be between 0 and 100'),
    ({'offer_percentage': 'lots'}, 'Invalid offer percentage'),
    ({'end_date': '2000-01-01'}, 'End date must be after start date'),
    ({'eligibility': 'x' * 201}, 'Eligibility cannot exceed 200 characters'),
])
def test_create_offer_validation(brand_client, overrides, message):
    client, _ = brand_client
    response = client.post('/brand/offers/create', json=offer_body(**overrides))
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == message

def test_unverified_brand_cannot_create_offers(client, db):
    make_brand(verified=False)
    login(client, 'brand@example.com')
    response = client.post('/brand/offers/create', json=offer_body())
    assert response.get_json()['error']['message'] == 'Your account is not verified. Please wait for verification.'

def test_customer_sees_only_running_offers(client, db):
    brand = make_brand()
    now = datetime.utcnow()
    running = add_offer(brand, now - timedelta(days=1), now + timedelta(days=1), percentage=30)
    add_offer(brand, now + timedelta(days=2), now + timedelta(days=5)) # Not started
    ended = add_offer(brand, now - timedelta(days=5), now - timedelta(days=1))
    add_offer(brand, now - timedelta(days=1), now + timedelta(days=1), status=OfferStatusEnum.CANCELLED)

    offers = client.get('/customer/offers').get_json()['offers']
    assert [o['id'] for o in offers] == [running.id]
    db.session.expire_all()
    assert db.session.get(Offer, ended.id).status == OfferStatusEnum.EXPIRED

    assert client.get(f'/customer/offers/{running.id}').get_json()['offer']['offer_percentage'] == 30
    response = client.get('/customer/offers/999')
    assert response.status_code == 404
    assert response.get_json()['error']['message'] == 'Offer not found'

def test_expire_offers_counts_changes(db, app_context):
    brand = make_brand()
    now = datetime.utcnow()
    add_offer(brand, now - timedelta(days=5), now - timedelta(days=1))
    assert offer_service.expire_offers(now) == 1
    assert offer_service.expire_offers(now) == 0
