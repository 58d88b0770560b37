import re
from models import Brand, Influencer, AccountStatusEnum
from tests.conftest import make_brand, make_influencer

BRAND_PAYLOAD = {
    'brand_name': 'Acme', 'email': 'Hello@Acme.io', 'password': 'password123',
    'industry': 'Retail', 'phone': '555-0100', 'website': 'https://acme.io', 'total_audience': 5000,
}
INFLUENCER_PAYLOAD = {
    'full_name': 'Jane Doe', 'email': 'jane.doe@example.com', 'password': 'password123',
    'platform': 'Instagram', 'social_handle': '@janedoe', 'audience': 25000,
    'niche': 'Fashion', 'phone': '555-0101',
}


def test_public_lists_empty_return_404(client):
    response = client.get('/api/brands')
    assert response.status_code == 404
    assert response.get_json()['error']['message'] == 'No brands found'
    assert client.get('/api/influencers').get_json()['error']['message'] == 'No influencers found'

def test_public_lists_prefer_active_accounts(client, db):
    make_brand(email='active@example.com')
    make_brand(email='inactive@example.com', brand_name='Sleepy', status=AccountStatusEnum.INACTIVE)
    brands = client.get('/api/brands').get_json()['brands']
    assert [brand['username'] for brand in brands] == ['active']

    make_influencer(status=AccountStatusEnum.INACTIVE)
    influencers = client.get('/api/influencers').get_json()['influencers']
    assert len(influencers) == 1 # Falls back to every influencer when none is active.

def test_signup_brand(client, db):
    response = client.post('/signup-form-brand', json=BRAND_PAYLOAD)
    assert response.status_code == 201
    data = response.get_json()
    brand = db.session.get(Brand, data['brand_id'])
    assert brand.email == 'hello@acme.io'
    assert brand.verified is False
    assert re.fullmatch(r'hello_\d{4}', brand.username)
    assert data['redirect_to'] == f'/subscription/plans?user_type=brand&user_id={brand.id}'

def test_signup_brand_duplicate_email_across_roles(client, db):
    make_influencer(email='hello@acme.io')
    response = client.post('/signup-form-brand', json=BRAND_PAYLOAD)
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Email already exists'

def test_signup_influencer(client, db):
    response = client.post('/signup-form-influencer', json=INFLUENCER_PAYLOAD)
    assert response.status_code == 201
    influencer = db.session.get(Influencer, response.get_json()['influencer_id'])
    assert influencer.total_followers == 25000
    assert influencer.platforms == [{'platform': 'instagram', 'handle': '@janedoe', 'followers': 25000}]
    assert re.fullmatch(r'janedoe_\d{4}', influencer.username)

def test_signup_influencer_invalid_platform(client, db):
    response = client.post('/signup-form-influencer', json=dict(INFLUENCER_PAYLOAD, platform='myspace'))
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Please select a valid social media platform'
