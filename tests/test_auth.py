import pytest
from models import Customer, CustomerStatusEnum
from tests.conftest import make_brand, make_influencer, make_customer, login, PASSWORD


@pytest.mark.parametrize("factory, redirect_to", [
    (make_brand, '/brand/home'),
    (make_influencer, '/influencer/home'),
    (make_customer, '/customer'),
])
def test_signin_each_role(client, factory, redirect_to):
    account = factory(email='someone@example.com')
    response = login(client, 'SomeOne@Example.com')
    assert response.status_code == 200
    data = response.get_json()
    assert data['success'] is True
    assert data['redirect_to'] == redirect_to
    assert data['user']['id'] == account.id

    me = client.get('/auth/me').get_json()
    assert me['user']['role'] == account.role

def test_signin_invalid_password(client):
    make_brand()
    response = login(client, 'brand@example.com', 'wrong-password')
    assert response.status_code == 400
    data = response.get_json()
    assert data['success'] is False
    assert data['error']['message'] == 'Invalid email or password'

def test_signin_suspended_customer(client, db):
    make_customer(status=CustomerStatusEnum.SUSPENDED, admin_notes='Chargeback abuse')
    response = login(client, 'customer@example.com')
    assert response.status_code == 403
    data = response.get_json()
    assert data['error']['message'] == 'Your account has been suspended'
    assert data['admin_notes'] == 'Chargeback abuse'

def test_signin_validation_error(client):
    response = client.post('/auth/signin', json={'email': 'not-an-email', 'password': PASSWORD})
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Invalid email address.'

def test_customer_signup_and_duplicate(client, db):
    payload = {'name': 'Carl', 'email': 'Carl@Example.com', 'password': PASSWORD, 'phone': '555-0102'}
    response = client.post('/auth/signup', json=payload)
    assert response.status_code == 201
    assert Customer.query.filter_by(email='carl@example.com').one().phone == '555-0102'

    response = client.post('/auth/signup', json=payload)
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Email already registered'

def test_logout_and_me_requires_login(client):
    make_customer()
    login(client, 'customer@example.com')
    assert client.post('/auth/logout').status_code == 200
    response = client.get('/auth/me')
    assert response.status_code == 401
    assert response.get_json()['error']['code'] == 'authentication'
