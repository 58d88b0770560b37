from datetime import datetime, timedelta
import pytest
from models import (Campaign, CampaignStatusEnum, CampaignPayment, Collaboration, CollaborationStatusEnum,
                    Notification, Product, ProductStatusEnum, UserSubscription, SubscriptionStatusEnum)
from tests.conftest import (make_brand, make_influencer, make_campaign, make_product, make_collaboration, login)

PRODUCT = {'name': 'Sunglasses', 'category': 'Accessories', 'original_price': 50, 'campaign_price': 40,
           'description': 'UV400 lenses', 'target_quantity': 20, 'images': ['https://cdn.example.com/a.png']}


def campaign_payload(**overrides):
    start = datetime.utcnow() + timedelta(days=1)
    payload = {
        'title': 'Summer Launch', 'description': 'Promote the summer line',
        'start_date': start.isoformat(), 'end_date': (start + timedelta(days=29)).isoformat(),
        'budget': 1500, 'commission_rate': 10, 'required_channels': ['Instagram', 'TikTok'],
        'products': [PRODUCT],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def brand_client(client, plans):
    brand = make_brand()
    login(client, brand.email)
    return client, brand


def test_brand_routes_reject_other_roles(client, plans):
    make_influencer()
    login(client, 'influencer@example.com')
    response = client.get('/brand/home')
    assert response.status_code == 403
    assert response.get_json()['error']['code'] == 'authorization'

def test_brand_routes_require_login(client):
    assert client.get('/brand/home').status_code == 401

def test_create_campaign(brand_client, db):
    client, brand = brand_client
    response = client.post('/brand/campaigns/create', json=campaign_payload())
    assert response.status_code == 201
    data = response.get_json()
    assert data['campaign']['status'] == 'request'
    assert data['campaign']['duration'] == 30
    assert data['campaign']['metrics']['progress'] == 0
    product = data['products'][0]
    assert product['discount_percentage'] == 20
    assert product['images'] == [{'url': 'https://cdn.example.com/a.png', 'alt': '', 'is_primary': True}]

    subscription = UserSubscription.query.filter_by(user_id=brand.id, status=SubscriptionStatusEnum.ACTIVE).one()
    assert subscription.campaigns_used == 1

def test_discount_percentage_rounds_halves_up(brand_client, db):
    client, _ = brand_client
    response = client.post('/brand/campaigns/create', json=campaign_payload(
        products=[dict(PRODUCT, original_price=8, campaign_price=7)]))
    assert response.get_json()['products'][0]['discount_percentage'] == 13 # 12.5%

@pytest.mark.parametrize("overrides, message", [
    ({'products': []}, 'At least one product is required'),
    ({'required_channels': ['MySpace']}, 'Invalid channel(s): MySpace'),
    ({'budget': -5}, 'Budget cannot be negative'),
    ({'commission_rate': 150}, 'Commission rate must be between 0 and 100'),
    ({'products': [dict(PRODUCT, campaign_price=60)]}, 'Campaign price must be lower than the original price'),
    ({'title': 'x' * 101}, 'Title cannot exceed 100 characters'),
])
def test_create_campaign_validation(brand_client, overrides, message):
    client, _ = brand_client
    response = client.post('/brand/campaigns/create', json=campaign_payload(**overrides))
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == message
    assert Campaign.query.count() == 0

def test_create_campaign_requires_verification(client, plans):
    make_brand(verified=False)
    login(client, 'brand@example.com')
    response = client.post('/brand/campaigns/create', json=campaign_payload())
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Your account is not verified. Please wait for verification.'

def test_create_campaign_respects_plan_limit(brand_client):
    client, _ = brand_client
    for _ in range(2):
        assert client.post('/brand/campaigns/create', json=campaign_payload()).status_code == 201
    response = client.post('/brand/campaigns/create', json=campaign_payload())
    assert response.status_code == 400
    data = response.get_json()
    assert data['error']['message'].startswith('Campaign limit reached: You have reached your limit of 2')
    assert data['show_upgrade_link'] is True

def test_add_and_list_products(brand_client, db):
    client, brand = brand_client
    campaign = make_campaign(brand)
    response = client.post(f'/brand/campaigns/{campaign.id}/products',
                           json={'products': [dict(PRODUCT, name='Hat', original_price=30, campaign_price=24)]})
    assert response.status_code == 201
    products = client.get(f'/brand/campaigns/{campaign.id}/products').get_json()['products']
    assert [product['name'] for product in products] == ['Hat']

def test_campaign_details_of_other_brand_not_found(brand_client, db):
    client, _ = brand_client
    other = make_brand(email='other@example.com')
    campaign = make_campaign(other)
    response = client.get(f'/brand/campaigns/{campaign.id}/details')
    assert response.status_code == 404
    assert response.get_json()['error']['message'] == 'Campaign not found'

def test_invite_influencer(brand_client, db):
    client, brand = brand_client
    campaign = make_campaign(brand)
    influencer = make_influencer()
    response = client.post('/brand/invite-influencer', json={'campaign_id': campaign.id, 'influencer_id': influencer.id})
    assert response.status_code == 201
    assert response.get_json()['collaboration']['status'] == 'brand-invite'

    notification = Notification.query.one()
    assert notification.recipient_id == influencer.id
    assert notification.type == 'invite_received'

    again = client.post('/brand/invite-influencer', json={'campaign_id': campaign.id, 'influencer_id': influencer.id})
    assert again.get_json()['error']['message'] == 'Influencer already invited to this campaign'

def test_invite_influencer_missing_ids(brand_client):
    client, _ = brand_client
    response = client.post('/brand/invite-influencer', json={'campaign_id': 1})
    assert response.get_json()['error']['message'] == 'Campaign ID and influencer ID are required'

def test_accept_request_with_payment(brand_client, db):
    client, brand = brand_client
    campaign = make_campaign(brand, deliverables=[{'task': 'Post reel', 'description': '30s reel', 'due_date': None}])
    influencer = make_influencer()
    collaboration = make_collaboration(campaign, influencer, status=CollaborationStatusEnum.REQUEST)

    assert len(client.get('/brand/received-requests').get_json()['requests']) == 1

    response = client.post(f'/brand/requests/{collaboration.id}/transaction',
                           json={'amount': 250, 'payment_method': 'bank_transfer'})
    assert response.status_code == 200
    data = response.get_json()
    assert data['collaboration']['status'] == 'active'
    assert data['collaboration']['deliverables'][0]['title'] == 'Post reel'
    assert CampaignPayment.query.one().amount == 250
    assert Notification.query.filter_by(type='request_accepted').count() == 1

    again = client.post(f'/brand/requests/{collaboration.id}/transaction',
                        json={'amount': 250, 'payment_method': 'bank_transfer'})
    assert again.status_code == 404

@pytest.mark.parametrize("body, message", [
    ({}, 'Amount and payment method are required'),
    ({'amount': 0, 'payment_method': 'credit_card'}, 'Amount must be greater than 0'),
    ({'amount': 10, 'payment_method': 'cash'}, 'Invalid payment method'),
])
def test_accept_request_validation(brand_client, db, body, message):
    client, brand = brand_client
    collaboration = make_collaboration(make_campaign(brand), make_influencer(), status=CollaborationStatusEnum.REQUEST)
    response = client.post(f'/brand/requests/{collaboration.id}/transaction', json=body)
    assert response.get_json()['error']['message'] == message

def test_accept_influencer_pitch_completes_campaign(brand_client, db):
    client, brand = brand_client
    campaign = make_campaign(brand, status=CampaignStatusEnum.INFLUENCER_INVITE, product_name='Trail Shoes')
    make_product(campaign, status=ProductStatusEnum.INACTIVE, original_price=0.01, campaign_price=0)
    collaboration = make_collaboration(campaign, make_influencer(), status=CollaborationStatusEnum.INFLUENCER_INVITE)

    start = datetime.utcnow() + timedelta(days=2)
    response = client.post(f'/brand/requests/{collaboration.id}/transaction', json={
        'amount': 400, 'payment_method': 'credit_card', 'objectives': 'Drive launch sales',
        'target_audience': 'Runners', 'start_date': start.isoformat(),
        'end_date': (start + timedelta(days=13)).isoformat(),
        'product': {'category': 'Shoes', 'original_price': 120, 'campaign_price': 120,
                    'description': 'Lightweight', 'target_quantity': 50},
    })
    assert response.status_code == 200
    db.session.expire_all()
    assert campaign.status == CampaignStatusEnum.ACTIVE
    product = Product.query.filter_by(campaign_id=campaign.id).one()
    assert product.name == 'Trail Shoes'
    assert product.status == ProductStatusEnum.ACTIVE
    assert product.discount_percentage == 0

def test_decline_pitch_cancels_campaign(brand_client, db):
    client, brand = brand_client
    campaign = make_campaign(brand, status=CampaignStatusEnum.INFLUENCER_INVITE)
    collaboration = make_collaboration(campaign, make_influencer(), status=CollaborationStatusEnum.INFLUENCER_INVITE)
    response = client.post(f'/brand/requests/{collaboration.id}/decline')
    assert response.get_json()['collaboration']['status'] == 'cancelled'
    db.session.expire_all()
    assert campaign.status == CampaignStatusEnum.CANCELLED

def test_activate_campaign_requires_accepted_influencer(brand_client, db):
    client, brand = brand_client
    campaign = make_campaign(brand)
    response = client.post(f'/brand/campaigns/{campaign.id}/activate')
    assert response.get_json()['error']['message'] == 'Cannot activate: no accepted influencers yet.'

    make_collaboration(campaign, make_influencer())
    response = client.post(f'/brand/campaigns/{campaign.id}/activate')
    assert response.get_json()['campaign']['status'] == 'active'

def test_end_campaign_computes_revenue_and_roi(brand_client, db):
    client, brand = brand_client
    campaign = make_campaign(brand, status=CampaignStatusEnum.ACTIVE, budget=200)
    make_product(campaign, sold_quantity=5) # 5 * 40
    influencer = make_influencer()
    make_collaboration(campaign, influencer)

    response = client.post(f'/brand/campaigns/{campaign.id}/end')
    assert response.status_code == 200
    metrics = response.get_json()['campaign']['metrics']
    assert metrics['revenue'] == 200
    assert metrics['roi'] == 1
    assert metrics['progress'] == 100

    db.session.expire_all()
    assert Collaboration.query.one().status == CollaborationStatusEnum.COMPLETED
    assert influencer.completed_campaigns == 1
    assert brand.completed_campaigns == 1
    history = client.get('/brand/campaigns/history').get_json()['campaigns']
    assert [item['id'] for item in history] == [campaign.id]

    assert client.post(f'/brand/campaigns/{campaign.id}/end').status_code == 404

def test_brand_home(brand_client, db):
    client, brand = brand_client
    make_campaign(brand, status=CampaignStatusEnum.ACTIVE)
    data = client.get('/brand/home').get_json()
    assert len(data['active_campaigns']) == 1
    assert data['subscription']['current']['plan']['name'] == 'Free'
    assert data['subscription']['expired'] is False
