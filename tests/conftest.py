import pytest
from flask import g, request_started
from datetime import datetime, timedelta
from app import create_app
from config import Config
from extensions import db as _db # Alias to avoid fixture name conflict
from models import (Admin, Brand, Influencer, Customer, Campaign, CampaignMetrics, CampaignStatusEnum,
                    Collaboration, CollaborationStatusEnum, Product, ProductStatusEnum)
from services import subscription_service

PASSWORD = 'password123'


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:' # Use in-memory SQLite for tests
    WTF_CSRF_ENABLED = False # Disable CSRF for form testing convenience
    SECRET_KEY = 'test-secret-key-for-forms' # Flask-Login and the storefront cart need a session
    # Fixed, valid Fernet key (URL-safe base64 of 32 bytes) so card encryption is deterministic to set up.
    FERNET_KEY = b'dGVzdC1mZXJuZXQta2V5LWZvci1jb2xsYWJzeW5jISE='
    PAYMENT_GATEWAY = 'simulated'
    PAYMENT_SIMULATION_DELAY = 0 # The simulated gateway answers immediately
    LOG_LEVEL = 'WARNING'


@pytest.fixture(scope='session')
def app():
    """
    Session-wide test Flask application.
    Ensures the app is created once per test session with TestConfig.
    """
    app_instance = create_app(config_class=TestConfig)

    # Test-client requests reuse the `db` fixture's app context, so Flask-Login's
    # per-context user cache (g._login_user) would leak between clients. Clear it
    # when each request starts so the user is loaded from that client's session.
    def _reset_login_cache(sender, **extra):
        g.pop('_login_user', None)

    request_started.connect(_reset_login_cache, app_instance, weak=False)
    return app_instance


@pytest.fixture(scope='function')
def app_context(app):
    """
    Function-scoped application context.
    Pushes an app context before each test that needs it and pops it afterwards.
    """
    with app.app_context():
        yield


@pytest.fixture(scope='function')
def db(app_context):
    """
    Function-scoped database fixture.
    Creates all database tables before each test and drops them afterwards,
    so every test starts from a clean database.
    """
    _db.create_all()
    yield _db
    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope='function')
def client(app, db):
    """
    Test client with its own cookie jar, so logins and the session cart do not leak
    between tests.
    """
    return app.test_client()


@pytest.fixture
def plans(db):
    """Seeds the default plans and returns them keyed by (user_type, name)."""
    subscription_service.seed_default_plans()
    from models import SubscriptionPlan
    return {(plan.user_type.value, plan.name): plan for plan in SubscriptionPlan.query.all()}


# --- Factories ---

def make_brand(email='brand@example.com', verified=True, **kwargs):
    brand = Brand(brand_name=kwargs.pop('brand_name', 'Acme'), email=email,
                  username=kwargs.pop('username', email.split('@')[0]), industry='Retail',
                  phone='555-0100', verified=verified, **kwargs)
    brand.set_password(PASSWORD)
    _db.session.add(brand)
    _db.session.commit()
    return brand


def make_influencer(email='influencer@example.com', verified=True, **kwargs):
    influencer = Influencer(full_name=kwargs.pop('full_name', 'Jane Doe'), email=email,
                            username=kwargs.pop('username', email.split('@')[0]), niche='Fashion',
                            phone='555-0101', total_followers=kwargs.pop('total_followers', 10000),
                            verified=verified, **kwargs)
    influencer.set_password(PASSWORD)
    _db.session.add(influencer)
    _db.session.commit()
    return influencer


def make_customer(email='customer@example.com', **kwargs):
    customer = Customer(name=kwargs.pop('name', 'Carl Customer'), email=email, **kwargs)
    customer.set_password(PASSWORD)
    _db.session.add(customer)
    _db.session.commit()
    return customer


def make_admin(username='admin', password=PASSWORD):
    admin = Admin(username=username, email=f'{username}@collabsync.test')
    admin.set_password(password)
    _db.session.add(admin)
    _db.session.commit()
    return admin


def make_campaign(brand, status=CampaignStatusEnum.REQUEST, **kwargs):
    start = kwargs.pop('start_date', datetime.utcnow() - timedelta(days=1))
    end = kwargs.pop('end_date', datetime.utcnow() + timedelta(days=29))
    campaign = Campaign(brand_id=brand.id, title=kwargs.pop('title', 'Summer Launch'),
                        description='Promote the summer line', status=status, start_date=start, end_date=end,
                        duration=(end - start).days + 1, budget=kwargs.pop('budget', 1000.0),
                        required_channels=kwargs.pop('required_channels', ['Instagram']), **kwargs)
    campaign.metrics = CampaignMetrics(brand_id=brand.id)
    _db.session.add(campaign)
    _db.session.commit()
    return campaign


def make_product(campaign, **kwargs):
    product = Product(brand_id=campaign.brand_id, campaign_id=campaign.id, created_by=campaign.brand_id,
                      name=kwargs.pop('name', 'Sunglasses'), category='Accessories', description='UV400',
                      original_price=kwargs.pop('original_price', 50.0), campaign_price=kwargs.pop('campaign_price', 40.0),
                      discount_percentage=20, target_quantity=kwargs.pop('target_quantity', 10),
                      status=kwargs.pop('status', ProductStatusEnum.ACTIVE), **kwargs)
    _db.session.add(product)
    _db.session.commit()
    return product


def make_collaboration(campaign, influencer, status=CollaborationStatusEnum.ACTIVE, **kwargs):
    collaboration = Collaboration(campaign_id=campaign.id, influencer_id=influencer.id, status=status, **kwargs)
    _db.session.add(collaboration)
    _db.session.commit()
    return collaboration


def login(client, email, password=PASSWORD):
    """Signs in a brand, influencer or customer through the API and returns the response."""
    return client.post('/auth/signin', json={'email': email, 'password': password})


def login_admin(client, username='admin', password=PASSWORD):
    return client.post('/admin/login', json={'username': username, 'password': password})
