import pytest
from models import PaymentHistory, PaymentStatusEnum, UserSubscription, SubscriptionStatusEnum
from tests.conftest import make_brand, make_influencer, make_customer, login

CARD = {'card_number': '4242 4242 4242 4242', 'card_name': 'Acme Inc', 'expiry_date': '12/30', 'cvv': '123'}


def test_plans_requires_known_user_type(client, plans):
    response = client.get('/subscription/plans?user_type=customer')
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Invalid user type'

def test_plans_for_logged_in_influencer(client, plans):
    make_influencer()
    login(client, 'influencer@example.com')
    data = client.get('/subscription/plans').get_json()
    assert data['user_type'] == 'influencer'
    assert [plan['name'] for plan in data['plans']] == ['Free', 'Basic', 'Premium']

def test_select_after_signup_free_plan(client, plans):
    brand = make_brand(verified=False)
    free = plans[('brand', 'Free')]
    response = client.post('/subscription/select-after-signup', json={
        'user_id': brand.id, 'user_type': 'brand', 'plan_id': free.id, 'billing_cycle': 'monthly'})
    assert response.status_code == 200
    data = response.get_json()
    assert data['requires_payment'] is False
    assert data['redirect_to'] == '/auth/signin'
    assert UserSubscription.query.filter_by(user_id=brand.id, status=SubscriptionStatusEnum.ACTIVE).count() == 1

def test_select_after_signup_paid_plan_redirects_to_payment(client, plans):
    brand = make_brand(verified=False)
    basic = plans[('brand', 'Basic')]
    data = client.post('/subscription/select-after-signup', json={
        'user_id': brand.id, 'user_type': 'brand', 'plan_id': basic.id, 'billing_cycle': 'yearly'}).get_json()
    assert data['requires_payment'] is True
    assert data['redirect_to'] == (f'/subscription/payment?user_id={brand.id}&user_type=brand'
                                   f'&plan_id={basic.id}&billing_cycle=yearly')

def test_select_after_signup_missing_parameters(client, plans):
    response = client.post('/subscription/select-after-signup', json={'user_type': 'brand'})
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Missing required parameters'

def test_subscribe_requires_brand_or_influencer(client, plans):
    make_customer()
    login(client, 'customer@example.com')
    response = client.post('/subscription/subscribe', json={'plan_id': plans[('brand', 'Basic')].id})
    assert response.status_code == 403

def test_subscribe_to_current_free_plan_rejected(client, plans):
    brand = make_brand()
    login(client, brand.email)
    client.get('/subscription/manage') # Puts the brand on the Free plan.
    response = client.post('/subscription/subscribe', json={'plan_id': plans[('brand', 'Free')].id})
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'You already have this plan active'

def test_payment_flow_for_logged_in_brand(client, plans):
    brand = make_brand()
    login(client, brand.email)
    basic = plans[('brand', 'Basic')]

    page = client.get(f'/subscription/payment?plan_id={basic.id}').get_json()
    assert page['amount'] == 29
    assert page['saved_card'] is None
    assert page['user_type'] == 'brand'

    response = client.post('/subscription/process-payment', json={
        'plan_id': basic.id, 'billing_cycle': 'monthly', 'amount': 29, 'card_data': CARD})
    assert response.status_code == 200
    data = response.get_json()
    assert data['message'] == 'Payment successful'
    assert data['subscription']['plan']['name'] == 'Basic'

    success = client.get(data['redirect_to']).get_json()
    assert success['plan_name'] == 'Basic'
    assert success['features'] == ['5 Campaigns', '10 Influencer Connections']

    page = client.get(f'/subscription/payment?plan_id={plans[("brand", "Premium")].id}').get_json()
    assert page['saved_card']['last4'] == '4242'
    assert page['saved_card']['card_number'] == '**** **** **** 4242'
    assert page['saved_card']['expiry_date'] == '12/30'

def _paid_brand(client, plans):
    """A brand that paid for Premium, then signed out."""
    brand = make_brand()
    login(client, brand.email)
    premium = plans[('brand', 'Premium')]
    client.post('/subscription/process-payment', json={
        'plan_id': premium.id, 'billing_cycle': 'monthly', 'amount': 99, 'card_data': CARD})
    client.post('/auth/logout')
    return brand

def test_anonymous_select_after_signup_cannot_replace_paid_plan(client, plans):
    brand = _paid_brand(client, plans)
    response = client.post('/subscription/select-after-signup', json={
        'user_id': brand.id, 'user_type': 'brand', 'plan_id': plans[('brand', 'Free')].id,
        'billing_cycle': 'monthly'})
    assert response.status_code == 403
    assert response.get_json()['error']['message'] == 'Please sign in to change your subscription'
    active = UserSubscription.query.filter_by(user_id=brand.id, status=SubscriptionStatusEnum.ACTIVE).one()
    assert active.plan.name == 'Premium'

def test_anonymous_payment_page_hides_saved_card(client, plans):
    brand = _paid_brand(client, plans)
    premium = plans[('brand', 'Premium')]
    response = client.get(f'/subscription/payment?user_id={brand.id}&user_type=brand&plan_id={premium.id}')
    assert response.status_code == 403
    assert '4242424242424242' not in response.get_data(as_text=True)

    fresh = make_brand(email='fresh@example.com')
    page = client.get(f'/subscription/payment?user_id={fresh.id}&user_type=brand&plan_id={premium.id}').get_json()
    assert page['amount'] == 99
    assert page['saved_card'] is None

def test_anonymous_payment_for_unknown_account(client, plans):
    response = client.post('/subscription/process-payment', json={
        'user_id': 999, 'user_type': 'brand', 'plan_id': plans[('brand', 'Basic')].id,
        'billing_cycle': 'monthly', 'amount': 29, 'card_data': CARD})
    assert response.status_code == 404
    assert PaymentHistory.query.count() == 0

def test_process_payment_declined(client, plans):
    influencer = make_influencer()
    basic = plans[('influencer', 'Basic')]
    response = client.post('/subscription/process-payment', json={
        'user_id': influencer.id, 'user_type': 'influencer', 'plan_id': basic.id, 'billing_cycle': 'monthly',
        'amount': 19, 'card_data': dict(CARD, card_number='4000000000000002')})
    assert response.status_code == 400
    data = response.get_json()
    assert data['error']['message'] == 'Card declined'
    payment = PaymentHistory.query.filter_by(transaction_id=data['transaction_id']).one()
    assert payment.status == PaymentStatusEnum.FAILED

def test_process_payment_without_account(client, plans):
    response = client.post('/subscription/process-payment', json={'plan_id': 1, 'card_data': CARD})
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Missing required parameters'

@pytest.mark.parametrize("query, status, message", [
    ('', 400, 'Transaction ID is required'),
    ('?transaction_id=txn_missing', 404, 'Payment not found'),
])
def test_payment_success_errors(client, query, status, message):
    response = client.get(f'/subscription/payment-success{query}')
    assert response.status_code == status
    assert response.get_json()['error']['message'] == message

def test_manage_limits_and_expiry(client, plans):
    brand = make_brand()
    login(client, brand.email)
    overview = client.get('/subscription/manage').get_json()
    assert overview['subscription']['plan']['name'] == 'Free'
    assert overview['payments'] == []

    limits = client.get('/subscription/limits').get_json()['limits']
    assert limits['campaigns'] == {'limit': 2, 'used': 0, 'remaining': 2}

    expiry = client.get('/subscription/check-expiry').get_json()
    assert expiry['expired'] is False
    assert expiry['subscription']['status'] == 'active'

    recalculated = client.post('/subscription/recalculate').get_json()
    assert recalculated['limits']['collaborations']['used'] == 0
