from datetime import datetime, timedelta
import pytest
from models import (Admin, Brand, CampaignPayment, CampaignPaymentStatusEnum, CampaignPaymentMethodEnum,
                    CampaignStatusEnum, CollaborationStatusEnum, Feedback, Order, OrderItem, OrderStatusEnum,
                    SubscriptionPlan)
from services import admin_service
from services.notification_service import create_notification
from utils.errors import ServiceError
from tests.conftest import (make_admin, make_brand, make_influencer, make_customer, make_campaign, make_product,
                            make_collaboration, login, login_admin, PASSWORD)


@pytest.fixture
def admin_client(client):
    make_admin()
    login_admin(client)
    return client


def add_payment(campaign, influencer, amount, payment_date, status=CampaignPaymentStatusEnum.COMPLETED):
    from extensions import db
    payment = CampaignPayment(campaign_id=campaign.id, brand_id=campaign.brand_id, influencer_id=influencer.id,
                              amount=amount, status=status, payment_date=payment_date,
                              payment_method=CampaignPaymentMethodEnum.BANK_TRANSFER)
    db.session.add(payment)
    db.session.commit()
    return payment


def test_admin_login_and_logout(client):
    make_admin()
    response = login_admin(client)
    assert response.status_code == 200
    assert response.get_json()['admin']['username'] == 'admin'
    assert client.post('/admin/logout').status_code == 200
    assert client.get('/admin/dashboard').status_code == 401

def test_admin_login_invalid_credentials(client):
    make_admin()
    response = login_admin(client, password='wrong-password')
    assert response.status_code == 401
    assert response.get_json()['error']['message'] == 'Invalid credentials'

def test_admin_area_rejects_other_accounts(client):
    make_brand()
    login(client, 'brand@example.com')
    response = client.get('/admin/dashboard')
    assert response.status_code == 403
    assert response.get_json()['error']['message'] == 'Admin access required'

def test_dashboard_revenue_growth(admin_client, db, plans):
    now = datetime.utcnow()
    brand = make_brand()
    influencer = make_influencer()
    campaign = make_campaign(brand)
    make_product(campaign, sold_quantity=4)
    make_collaboration(campaign, influencer)
    this_month = now.replace(day=1, hour=12)
    last_month = this_month - timedelta(days=15)
    add_payment(campaign, influencer, 300, this_month)
    add_payment(campaign, influencer, 200, last_month)
    add_payment(campaign, influencer, 999, this_month, status=CampaignPaymentStatusEnum.FAILED)

    data = admin_client.get('/admin/dashboard').get_json()
    assert data['counts'] == {'admins': 1, 'brands': 1, 'influencers': 1, 'customers': 0}
    assert data['collaborations']['active'] == 1
    assert data['revenue']['total'] == 500
    assert data['revenue']['current_month'] == 300
    assert data['revenue']['previous_month'] == 200
    assert data['revenue']['growth_percent'] == 50
    assert data['products']['total_sold_quantity'] == 4
    assert len(data['recent_transactions']) == 3

def test_month_bounds_wrap_the_year():
    previous_start, current_start, next_start = admin_service._month_bounds(datetime(2024, 1, 15))
    assert previous_start == datetime(2023, 12, 1)
    assert current_start == datetime(2024, 1, 1)
    assert next_start == datetime(2024, 2, 1)

def test_analytics_date_range(admin_client, db):
    make_brand()
    make_brand(email='old@example.com', created_at=datetime.utcnow() - timedelta(days=60))
    assert admin_client.get('/admin/brand-analytics').get_json()['total_brands'] == 2
    assert admin_client.get('/admin/brand-analytics?date_range=last_30_days').get_json()['total_brands'] == 1

    response = admin_client.get('/admin/campaign-analytics?date_range=custom&start_date=2024-02-01')
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Custom date range requires start_date and end_date.'

def test_analytics_top_lists_follow_date_range(admin_client, db):
    make_brand(brand_name='Fresh', completed_campaigns=1)
    make_brand(email='old@example.com', brand_name='Veteran', completed_campaigns=40,
               created_at=datetime.utcnow() - timedelta(days=60))
    make_influencer(avg_engagement_rate=2.0)
    make_influencer(email='star@example.com', total_followers=900000, avg_engagement_rate=9.0,
                    created_at=datetime.utcnow() - timedelta(days=60))

    brands = admin_client.get('/admin/brand-analytics?date_range=last_30_days').get_json()
    assert [b['brand_name'] for b in brands['top_by_completed_campaigns']] == ['Fresh']
    assert [b['brand_name'] for b in brands['top_by_revenue']] == ['Fresh']
    influencers = admin_client.get('/admin/influencer-analytics?date_range=last_30_days').get_json()
    assert [i['username'] for i in influencers['top_by_followers']] == ['influencer']
    assert influencers['average_engagement_rate'] == 2.0

    everyone = admin_client.get('/admin/brand-analytics').get_json()
    assert everyone['top_by_completed_campaigns'][0]['brand_name'] == 'Veteran'

def test_campaign_and_influencer_analytics(admin_client, db):
    brand = make_brand()
    make_campaign(brand, budget=100)
    make_campaign(brand, budget=300, status=CampaignStatusEnum.ACTIVE)
    make_influencer(avg_engagement_rate=4.5)
    campaigns = admin_client.get('/admin/campaign-analytics').get_json()
    assert campaigns['status_distribution'] == {'request': 1, 'active': 1}
    assert campaigns['average_budget'] == 200
    influencers = admin_client.get('/admin/influencer-analytics').get_json()
    assert influencers['average_engagement_rate'] == 4.5

def test_notifications_when_nothing_is_pending(admin_client, db):
    data = admin_client.get('/admin/notifications').get_json()
    assert [a['title'] for a in data['alerts']] == ['All caught up!']
    assert data['alerts'][0]['read'] is True
    assert data['unread_count'] == 0

def test_notifications_from_pending_work(admin_client, db):
    brand = make_brand()
    influencer = make_influencer()
    make_influencer(email='old@example.com', created_at=datetime.utcnow() - timedelta(days=90))
    campaign = make_campaign(brand)
    make_collaboration(campaign, influencer, status=CollaborationStatusEnum.REQUEST)
    add_payment(campaign, influencer, 80, datetime.utcnow(), status=CampaignPaymentStatusEnum.PENDING)
    add_payment(campaign, influencer, 90, datetime.utcnow(), status=CampaignPaymentStatusEnum.PENDING)

    data = admin_client.get('/admin/notifications').get_json()
    assert [(a['type'], a['priority'], a['message']) for a in data['alerts']] == [
        ('collaboration', 'high', '1 collaboration request is pending approval'),
        ('payment', 'medium', '2 payments require verification'),
        ('user', 'low', '2 new users registered this month'),
    ]
    assert data['unread_count'] == 3

def test_mark_all_admin_notifications_read(admin_client, db):
    admin = Admin.query.one()
    create_notification(admin.id, 'admin', 'feedback_received', title='New feedback')
    data = admin_client.get('/admin/notifications').get_json()
    assert data['alerts'] == []
    assert data['notifications'][0]['title'] == 'New feedback'
    assert data['unread_count'] == 1

    response = admin_client.post('/admin/notifications/mark-all-read')
    assert response.get_json()['message'] == 'All notifications marked as read'
    assert response.get_json()['updated'] == 1
    assert admin_client.get('/admin/notifications').get_json()['unread_count'] == 0

def test_approve_users(admin_client, db):
    brand = make_brand(verified=False)
    influencer = make_influencer(verified=False)
    overview = admin_client.get('/admin/user_management').get_json()
    assert [b['id'] for b in overview['unverified_brands']] == [brand.id]

    response = admin_client.post(f'/admin/user_management/approve/brand/{brand.id}')
    assert response.get_json()['brand']['verified'] is True
    admin_client.post(f'/admin/user_management/approve/influencer/{influencer.id}')
    overview = admin_client.get('/admin/user_management').get_json()
    assert overview['unverified_brands'] == [] and overview['unverified_influencers'] == []

@pytest.mark.parametrize("path, status, message", [
    ('/admin/user_management/approve/customer/1', 400, 'Invalid user type'),
    ('/admin/user_management/approve/brand/999', 404, 'Brand not found'),
    ('/admin/user_management/influencer/999', 404, 'Influencer not found'),
])
def test_approve_user_errors(admin_client, path, status, message):
    response = admin_client.post(path) if 'approve' in path else admin_client.get(path)
    assert response.status_code == status
    assert response.get_json()['error']['message'] == message

def test_account_details(admin_client, db):
    brand = make_brand()
    influencer = make_influencer()
    campaign = make_campaign(brand)
    collaboration = make_collaboration(campaign, influencer)
    add_payment(campaign, influencer, 150, datetime.utcnow())

    assert len(admin_client.get(f'/admin/user_management/brand/{brand.id}').get_json()['campaigns']) == 1
    assert len(admin_client.get(f'/admin/user_management/influencer/{influencer.id}').get_json()['collaborations']) == 1
    assert len(admin_client.get('/admin/collaboration_monitoring').get_json()['collaborations']) == 1
    detail = admin_client.get(f'/admin/collaboration_monitoring/{collaboration.id}').get_json()['collaboration']
    assert detail['payments'][0]['amount'] == 150
    assert admin_client.get('/admin/collaboration_monitoring/999').status_code == 404

def test_payment_verification(admin_client, db):
    brand = make_brand()
    influencer = make_influencer()
    payment = add_payment(make_campaign(brand), influencer, 80, datetime.utcnow(),
                          status=CampaignPaymentStatusEnum.PENDING)
    assert admin_client.get('/admin/payment_verification').get_json()['payments'][0]['status'] == 'pending'
    response = admin_client.post(f'/admin/payment_verification/update/{payment.id}', json={'status': 'completed'})
    assert response.get_json()['payment']['status'] == 'completed'
    response = admin_client.post(f'/admin/payment_verification/update/{payment.id}', json={'status': 'refunded'})
    assert response.get_json()['error']['message'] == 'Invalid payment status'
    assert admin_client.get('/admin/payment_verification/999').status_code == 404

def test_feedback_flow(client, db):
    make_influencer()
    login(client, 'influencer@example.com')
    response = client.post('/feedback', json={'type': 'bug_report', 'subject': 'Broken chart', 'message': 'It is empty'})
    assert response.status_code == 201
    feedback = response.get_json()['feedback']
    assert feedback['user_type'] == 'influencer'
    assert feedback['status'] == 'pending'

    response = client.post('/feedback', json={'type': 'rant', 'subject': 'x', 'message': 'y'})
    assert response.get_json()['error']['message'] == 'Invalid feedback type'
    response = client.post('/feedback', json={'type': 'general'})
    assert response.get_json()['error']['message'] == 'Type, subject and message are required'

    client.post('/auth/logout')
    make_admin()
    login_admin(client)
    assert len(client.get('/admin/feedback_and_moderation').get_json()['feedback']) == 1
    response = client.post(f"/admin/feedback_and_moderation/update/{feedback['id']}", json={'status': 'resolved'})
    assert response.get_json()['feedback']['status'] == 'resolved'
    response = client.post(f"/admin/feedback_and_moderation/update/{feedback['id']}", json={'status': 'ignored'})
    assert response.get_json()['error']['message'] == 'Invalid feedback status'
    assert Feedback.query.count() == 1

def test_feedback_requires_login(client):
    assert client.post('/feedback', json={}).status_code == 401

def test_customer_management(admin_client, db):
    customer = make_customer(total_spent=120.0)
    guest_order = Order(customer_name='Carl', customer_email=customer.email, subtotal=100, shipping_cost=5,
                        total_amount=105, status=OrderStatusEnum.PAID, payment_id='PAY-1', delivery_days=5)
    guest_order.items.append(OrderItem(product_name='Hat', quantity=1, price_at_purchase=100, subtotal=100))
    db.session.add(guest_order)
    db.session.commit()

    detail = admin_client.get(f'/admin/customers/{customer.id}').get_json()
    assert [o['payment_id'] for o in detail['orders']] == ['PAY-1'] # Matched by email.
    assert len(admin_client.get('/admin/orders').get_json()['orders']) == 1

    response = admin_client.post(f'/admin/customers/{customer.id}/status',
                                 json={'status': 'suspended', 'notes': 'Chargeback abuse'})
    assert response.get_json()['customer']['admin_notes'] == 'Chargeback abuse'
    analytics = admin_client.get('/admin/customers/analytics').get_json()
    assert analytics['suspended_customers'] == 1
    assert analytics['total_spent'] == 120
    assert analytics['total_orders'] == 1

    response = admin_client.post(f'/admin/customers/{customer.id}/status', json={'status': 'banned'})
    assert response.get_json()['error']['message'] == 'Invalid customer status'

def test_settings_and_reset_password(admin_client, db):
    assert admin_client.get('/admin/settings').get_json()['admin']['role'] == 'admin'
    body = {'current_password': 'wrong-password', 'new_password': 'new-password-1', 'confirm_password': 'new-password-1'}
    response = admin_client.post('/admin/reset-password', json=body)
    assert response.get_json()['error']['message'] == 'Current password is incorrect'

    response = admin_client.post('/admin/reset-password', json=dict(body, current_password=PASSWORD))
    assert response.status_code == 200
    assert Admin.query.one().check_password('new-password-1')


# --- CLI ---

def test_create_admin_command(app, db):
    runner = app.test_cli_runner()
    result = runner.invoke(args=['create-admin', '--username', 'root', '--password', 'sup3r-secret'])
    assert result.exit_code == 0
    assert 'Admin root created.' in result.output
    result = runner.invoke(args=['create-admin', '--username', 'root', '--password', 'sup3r-secret'])
    assert result.exit_code != 0
    assert 'Admin root already exists' in result.output

def test_seed_and_expire_commands(app, db):
    runner = app.test_cli_runner()
    assert 'Seeded 6 plan(s).' in runner.invoke(args=['seed-plans']).output
    assert SubscriptionPlan.query.count() == 6
    assert 'Expired 0 subscription(s).' in runner.invoke(args=['expire-subscriptions']).output

def test_create_admin_service_validation(db):
    with pytest.raises(ServiceError, match='Username and password are required'):
        admin_service.create_admin('', '')
    admin = admin_service.create_admin('mod', 'password123', role='moderator')
    assert admin.to_dict()['role'] == 'moderator'
    assert Brand.query.count() == 0
