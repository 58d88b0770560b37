"""
Back-office operations: admin authentication, dashboard aggregates, analytics, account
approval, payment and feedback moderation, customer management, back-office notifications
and the feedback inbox.
"""
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from extensions import db
from models.admin import Admin, AdminRoleEnum
from models.brand import Brand
from models.campaign import Campaign, CampaignMetrics, CampaignPayment, CampaignPaymentStatusEnum
from models.collaboration import Collaboration, CollaborationStatusEnum
from models.customer import Customer, CustomerStatusEnum
from models.feedback import Feedback, FeedbackStatusEnum, FeedbackTypeEnum
from models.influencer import Influencer
from models.order import Order
from models.product import Product
from services.notification_service import get_notifications, mark_all_read
from services.subscription_service import get_subscription_analytics
from utils.errors import ServiceError
from utils.helpers import round_to, require_fields

TOP_LIST_SIZE = 5
PENDING_COLLABORATION_STATUSES = (CollaborationStatusEnum.REQUEST, CollaborationStatusEnum.BRAND_INVITE,
                                  CollaborationStatusEnum.INFLUENCER_INVITE)


def authenticate_admin(username, password):
    admin = Admin.query.filter_by(username=(username or '').strip()).first()
    if admin is None or not admin.check_password(password):
        current_app.logger.warning(f"Failed admin login for username: {username}")
        raise ServiceError('Invalid credentials', 401)
    current_app.logger.info(f"Admin {admin.username} logged in.")
    return admin


def create_admin(username, password, email=None, role='admin'):
    """Creates an admin account (used by the create-admin CLI command)."""
    if not username or not password:
        raise ServiceError('Username and password are required')
    if Admin.query.filter_by(username=username).first():
        raise ServiceError(f'Admin {username} already exists')
    admin = Admin(username=username, email=email, admin_role=AdminRoleEnum(role))
    admin.set_password(password)
    db.session.add(admin)
    db.session.commit()
    current_app.logger.info(f"Admin account created: {username}")
    return admin


def reset_password(admin, current_password, new_password):
    if not admin.check_password(current_password):
        raise ServiceError('Current password is incorrect')
    admin.set_password(new_password)
    db.session.commit()
    current_app.logger.info(f"Admin {admin.username} changed their password.")


# --- Dashboard ---

def _month_start(year, month):
    return datetime(year, month, 1)


def _month_bounds(now):
    current_start = _month_start(now.year, now.month)
    next_start = _month_start(now.year + (now.month == 12), now.month % 12 + 1)
    previous_start = _month_start(now.year - (now.month == 1), (now.month - 2) % 12 + 1)
    return previous_start, current_start, next_start


def _completed_payment_total(start=None, end=None):
    query = db.session.query(func.coalesce(func.sum(CampaignPayment.amount), 0)) \
        .filter(CampaignPayment.status == CampaignPaymentStatusEnum.COMPLETED)
    if start is not None:
        query = query.filter(CampaignPayment.payment_date >= start, CampaignPayment.payment_date < end)
    return float(query.scalar() or 0)


def dashboard(now=None):
    now = now or datetime.utcnow()
    previous_start, current_start, next_start = _month_bounds(now)
    current_revenue = _completed_payment_total(current_start, next_start)
    previous_revenue = _completed_payment_total(previous_start, current_start)
    growth = (current_revenue - previous_revenue) / previous_revenue * 100 if previous_revenue > 0 else 0

    avg_deal = db.session.query(func.avg(CampaignPayment.amount)) \
        .filter(CampaignPayment.status == CampaignPaymentStatusEnum.COMPLETED).scalar()
    sold, avg_price, product_count = db.session.query(
        func.coalesce(func.sum(Product.sold_quantity), 0), func.avg(Product.campaign_price), func.count(Product.id)
    ).one()
    recent = CampaignPayment.query.order_by(CampaignPayment.payment_date.desc(), CampaignPayment.id.desc()) \
        .limit(5).all()

    def collab_count(status):
        return Collaboration.query.filter_by(status=status).count()

    return {
        'counts': {
            'admins': Admin.query.count(),
            'brands': Brand.query.count(),
            'influencers': Influencer.query.count(),
            'customers': Customer.query.count(),
        },
        'collaborations': {
            'active': collab_count(CollaborationStatusEnum.ACTIVE),
            'completed': collab_count(CollaborationStatusEnum.COMPLETED),
            'pending': Collaboration.query.filter(Collaboration.status.in_(PENDING_COLLABORATION_STATUSES)).count(),
        },
        'revenue': {
            'total': round_to(_completed_payment_total(), 2),
            'current_month': round_to(current_revenue, 2),
            'previous_month': round_to(previous_revenue, 2),
            'growth_percent': round_to(growth, 2),
            'average_deal_size': round_to(avg_deal or 0, 2),
        },
        'products': {
            'total_sold_quantity': int(sold or 0),
            'average_campaign_price': round_to(avg_price or 0),
            'total_products': product_count,
        },
        'recent_transactions': [payment.to_dict() for payment in recent],
        'subscriptions': get_subscription_analytics(),
    }


# --- Analytics ---

def _in_range(query, column, start, end):
    if start is not None:
        query = query.filter(column >= start, column < end)
    return query


def brand_analytics(start=None, end=None):
    """Brand counts and top lists, limited to brands that signed up in [start, end)."""
    brands = _in_range(Brand.query, Brand.created_at, start, end)
    revenue = func.coalesce(func.sum(CampaignMetrics.revenue), 0)
    top_revenue = _in_range(db.session.query(Brand, revenue.label('revenue')), Brand.created_at, start, end) \
        .outerjoin(CampaignMetrics, CampaignMetrics.brand_id == Brand.id) \
        .group_by(Brand.id).order_by(revenue.desc()).limit(TOP_LIST_SIZE).all()
    return {
        'total_brands': brands.count(),
        'verified_brands': brands.filter(Brand.verified.is_(True)).count(),
        'top_by_completed_campaigns': [b.to_summary() for b in
                                       brands.order_by(Brand.completed_campaigns.desc()).limit(TOP_LIST_SIZE)],
        'top_by_revenue': [dict(brand.to_summary(), revenue=round_to(value)) for brand, value in top_revenue],
    }


def influencer_analytics(start=None, end=None):
    """Influencer counts, engagement and top lists, limited to influencers that signed up in [start, end)."""
    influencers = _in_range(Influencer.query, Influencer.created_at, start, end)
    avg_engagement = _in_range(db.session.query(func.avg(Influencer.avg_engagement_rate)),
                               Influencer.created_at, start, end).scalar()
    return {
        'total_influencers': influencers.count(),
        'verified_influencers': influencers.filter(Influencer.verified.is_(True)).count(),
        'average_engagement_rate': round_to(avg_engagement or 0, 2),
        'top_by_followers': [i.to_summary() for i in
                             influencers.order_by(Influencer.total_followers.desc()).limit(TOP_LIST_SIZE)],
        'top_by_engagement': [i.to_summary() for i in
                              influencers.order_by(Influencer.avg_engagement_rate.desc()).limit(TOP_LIST_SIZE)],
    }


def campaign_analytics(start=None, end=None):
    base = _in_range(db.session.query(Campaign), Campaign.created_at, start, end)
    distribution = _in_range(db.session.query(Campaign.status, func.count(Campaign.id)), Campaign.created_at, start, end) \
        .group_by(Campaign.status).all()
    avg_budget = _in_range(db.session.query(func.avg(Campaign.budget)), Campaign.created_at, start, end).scalar()
    top = _in_range(Campaign.query.join(CampaignMetrics), Campaign.created_at, start, end) \
        .order_by(CampaignMetrics.revenue.desc()).limit(TOP_LIST_SIZE).all()
    return {
        'total_campaigns': base.count(),
        'status_distribution': {status.value: count for status, count in distribution},
        'average_budget': round_to(avg_budget or 0, 2),
        'top_by_revenue': [campaign.to_dict(include_metrics=True) for campaign in top],
    }


# --- User management ---

def user_management():
    def split(model):
        accounts = model.query.order_by(model.created_at.desc()).all()
        return ([a.to_dict() for a in accounts if not a.verified], [a.to_dict() for a in accounts if a.verified])

    unverified_brands, verified_brands = split(Brand)
    unverified_influencers, verified_influencers = split(Influencer)
    return {
        'unverified_brands': unverified_brands,
        'verified_brands': verified_brands,
        'unverified_influencers': unverified_influencers,
        'verified_influencers': verified_influencers,
    }


def _account(user_type, account_id):
    model = {'brand': Brand, 'influencer': Influencer}.get(user_type)
    if model is None:
        raise ServiceError('Invalid user type')
    account = db.session.get(model, account_id)
    if account is None:
        raise ServiceError(f'{user_type.capitalize()} not found', 404)
    return account


def approve_user(user_type, account_id):
    account = _account(user_type, account_id)
    account.verified = True
    db.session.commit()
    current_app.logger.info(f"{user_type.capitalize()} {account_id} verified by admin.")
    return account


def brand_detail(brand_id):
    brand = _account('brand', brand_id)
    return {'brand': brand.to_dict(),
            'campaigns': [c.to_dict(include_metrics=True) for c in brand.campaigns.order_by(Campaign.created_at.desc())]}


def influencer_detail(influencer_id):
    influencer = _account('influencer', influencer_id)
    return {'influencer': influencer.to_dict(),
            'collaborations': [c.to_dict(include_campaign=True) for c in influencer.collaborations]}


# --- Collaboration monitoring ---

def collaborations():
    rows = Collaboration.query.order_by(Collaboration.created_at.desc()).all()
    return [c.to_dict(include_campaign=True, include_influencer=True) for c in rows]


def collaboration_detail(collab_id):
    collaboration = db.session.get(Collaboration, collab_id)
    if collaboration is None:
        raise ServiceError('Collaboration not found', 404)
    data = collaboration.to_dict(include_campaign=True, include_influencer=True)
    data['payments'] = [p.to_dict() for p in CampaignPayment.query.filter_by(
        campaign_id=collaboration.campaign_id, influencer_id=collaboration.influencer_id)]
    return data


# --- Payment verification ---

def payments():
    return [p.to_dict() for p in CampaignPayment.query.order_by(CampaignPayment.payment_date.desc()).all()]


def payment_detail(payment_id):
    payment = db.session.get(CampaignPayment, payment_id)
    if payment is None:
        raise ServiceError('Payment not found', 404)
    return payment.to_dict()


def update_payment_status(payment_id, status):
    payment = db.session.get(CampaignPayment, payment_id)
    if payment is None:
        raise ServiceError('Payment not found', 404)
    try:
        payment.status = CampaignPaymentStatusEnum(status)
    except ValueError:
        raise ServiceError('Invalid payment status')
    db.session.commit()
    current_app.logger.info(f"Campaign payment {payment_id} set to {status}.")
    return payment


# --- Notifications ---

NEW_ACCOUNT_WINDOW_DAYS = 30


def _plural(count, singular, plural):
    return singular if count == 1 else plural


def generate_notifications(admin, now=None):
    """
    Back-office alerts built from what currently needs attention, followed by the admin's
    stored notifications. With nothing pending a single 'All caught up!' entry is returned.
    """
    now = now or datetime.utcnow()
    pending_collabs = Collaboration.query.filter(Collaboration.status.in_(PENDING_COLLABORATION_STATUSES)).count()
    pending_payments = CampaignPayment.query.filter_by(status=CampaignPaymentStatusEnum.PENDING).count()
    since = now - timedelta(days=NEW_ACCOUNT_WINDOW_DAYS)
    new_accounts = Brand.query.filter(Brand.created_at >= since).count() \
        + Influencer.query.filter(Influencer.created_at >= since).count()

    alerts = []
    if pending_collabs:
        alerts.append({
            'type': 'collaboration', 'title': 'New Collaboration Request', 'priority': 'high',
            'message': f"{pending_collabs} collaboration {_plural(pending_collabs, 'request is', 'requests are')} "
                       f"pending approval",
        })
    if pending_payments:
        alerts.append({
            'type': 'payment', 'title': 'Payment Verification Needed', 'priority': 'medium',
            'message': f"{pending_payments} {_plural(pending_payments, 'payment requires', 'payments require')} "
                       f"verification",
        })
    if new_accounts:
        alerts.append({
            'type': 'user', 'title': 'New User Registrations', 'priority': 'low',
            'message': f"{new_accounts} new {_plural(new_accounts, 'user', 'users')} registered this month",
        })
    for alert in alerts:
        alert.update(read=False, timestamp=now.isoformat())

    stored, unread_count = get_notifications(admin.id, 'admin')
    if not alerts and not stored:
        alerts.append({'type': 'info', 'title': 'All caught up!', 'message': 'No pending actions required',
                       'priority': 'low', 'read': True, 'timestamp': now.isoformat()})
    return {
        'alerts': alerts,
        'notifications': [notification.to_dict() for notification in stored],
        'unread_count': len([alert for alert in alerts if not alert['read']]) + unread_count,
    }


def mark_all_notifications_read(admin):
    updated = mark_all_read(admin.id, 'admin')
    current_app.logger.info(f"Admin {admin.username} marked {updated} notification(s) as read.")
    return updated


# --- Feedback ---

def submit_feedback(account, data):
    require_fields(data, ('type', 'subject', 'message'), message='Type, subject and message are required')
    try:
        feedback_type = FeedbackTypeEnum(data['type'])
    except ValueError:
        raise ServiceError('Invalid feedback type')
    subject = str(data['subject']).strip()
    if len(subject) > 200:
        raise ServiceError('Subject cannot exceed 200 characters')
    feedback = Feedback(user_id=account.id, user_name=account.display, user_type=account.role,
                        type=feedback_type, subject=subject, message=str(data['message']).strip())
    db.session.add(feedback)
    db.session.commit()
    current_app.logger.info(f"Feedback {feedback.id} submitted by {account.role} {account.id}.")
    return feedback


def feedback_list():
    return [f.to_dict() for f in Feedback.query.order_by(Feedback.created_at.desc()).all()]


def feedback_detail(feedback_id):
    feedback = db.session.get(Feedback, feedback_id)
    if feedback is None:
        raise ServiceError('Feedback not found', 404)
    return feedback.to_dict()


def update_feedback_status(feedback_id, status):
    feedback = db.session.get(Feedback, feedback_id)
    if feedback is None:
        raise ServiceError('Feedback not found', 404)
    try:
        feedback.status = FeedbackStatusEnum(status)
    except ValueError:
        raise ServiceError('Invalid feedback status')
    db.session.commit()
    return feedback


# --- Customers and orders ---

def customers():
    return [c.to_dict() for c in Customer.query.order_by(Customer.created_at.desc()).all()]


def customer_detail(customer_id):
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise ServiceError('Customer not found', 404)
    orders = Order.query.filter(
        (Order.customer_id == customer.id) | (Order.customer_email == customer.email)
    ).order_by(Order.created_at.desc()).all()
    return {'customer': customer.to_dict(), 'orders': [o.to_dict() for o in orders]}


def customer_analytics():
    total = Customer.query.count()
    active = Customer.query.filter_by(status=CustomerStatusEnum.ACTIVE).count()
    spent, avg_spent = db.session.query(func.coalesce(func.sum(Customer.total_spent), 0),
                                        func.avg(Customer.total_spent)).one()
    top = Customer.query.order_by(Customer.total_spent.desc()).limit(TOP_LIST_SIZE).all()
    return {
        'total_customers': total,
        'active_customers': active,
        'suspended_customers': total - active,
        'total_spent': round_to(spent),
        'average_spent': round_to(avg_spent or 0),
        'total_orders': Order.query.count(),
        'top_customers': [c.to_dict() for c in top],
    }


def update_customer_status(customer_id, status, notes=None):
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise ServiceError('Customer not found', 404)
    try:
        customer.status = CustomerStatusEnum(status)
    except ValueError:
        raise ServiceError('Invalid customer status')
    if notes is not None:
        customer.admin_notes = notes
    db.session.commit()
    current_app.logger.info(f"Customer {customer_id} status set to {status}.")
    return customer


def orders():
    return [o.to_dict() for o in Order.query.order_by(Order.created_at.desc(), Order.id.desc()).all()]
