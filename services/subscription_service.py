"""
Subscription lifecycle: plan catalogue, usage metering against plan limits, expiry handling
and plan changes (free switches and paid checkouts through the payment gateway).

Functions take the account as (user_id, user_type) because brands and influencers live in
separate tables. user_type may be given as 'brand' / 'influencer' or as SubscriberTypeEnum.
"""
from datetime import datetime, timedelta

from cryptography.fernet import InvalidToken
from flask import current_app
from sqlalchemy import func, distinct

from extensions import db
from models.subscription_plan import SubscriptionPlan, SubscriberTypeEnum, UNLIMITED
from models.user_subscription import UserSubscription, SubscriptionStatusEnum, BillingCycleEnum
from models.payment_history import PaymentHistory, PaymentStatusEnum, PaymentMethodEnum
from models.brand import Brand
from models.campaign import Campaign
from models.collaboration import Collaboration
from models.influencer import Influencer
from services.payment_gateway import get_payment_gateway, detect_card_brand, generate_transaction_id
from utils.errors import ServiceError
from utils.security import encrypt_card_number, decrypt_card_number, card_last4, normalize_card_number, mask_card_number

# Limit reported when an account has no usable subscription or plan.
FALLBACK_LIMIT = 2

DEFAULT_PLANS = [
    {
        'name': 'Free', 'user_type': SubscriberTypeEnum.BRAND,
        'price_monthly': 0, 'price_yearly': 0, 'is_default': True,
        'description': 'Get started with a couple of campaigns.',
        'features': {'max_campaigns': 2, 'max_influencers': 2, 'analytics': True, 'collaboration_tools': True},
    },
    {
        'name': 'Basic', 'user_type': SubscriberTypeEnum.BRAND,
        'price_monthly': 29, 'price_yearly': 290, 'popular_badge': True,
        'description': 'For growing brands running regular campaigns.',
        'features': {'max_campaigns': 5, 'max_influencers': 10, 'analytics': True, 'collaboration_tools': True},
    },
    {
        'name': 'Premium', 'user_type': SubscriberTypeEnum.BRAND,
        'price_monthly': 99, 'price_yearly': 990,
        'description': 'Unlimited campaigns and influencer connections.',
        'features': {'max_campaigns': UNLIMITED, 'max_influencers': UNLIMITED, 'analytics': True,
                     'advanced_analytics': True, 'priority_support': True, 'custom_branding': True,
                     'collaboration_tools': True},
    },
    {
        'name': 'Free', 'user_type': SubscriberTypeEnum.INFLUENCER,
        'price_monthly': 0, 'price_yearly': 0, 'is_default': True,
        'description': 'Connect with your first brands.',
        'features': {'max_brands': 2},
    },
    {
        'name': 'Basic', 'user_type': SubscriberTypeEnum.INFLUENCER,
        'price_monthly': 19, 'price_yearly': 190, 'popular_badge': True,
        'description': 'More brand connections for active creators.',
        'features': {'max_brands': 5, 'analytics': True},
    },
    {
        'name': 'Premium', 'user_type': SubscriberTypeEnum.INFLUENCER,
        'price_monthly': 49, 'price_yearly': 490,
        'description': 'Unlimited brand connections and advanced analytics.',
        'features': {'max_brands': UNLIMITED, 'analytics': True, 'advanced_analytics': True,
                     'priority_support': True, 'custom_branding': True},
    },
]

EXPIRED_REASON = 'Your subscription has expired. Please renew your subscription to continue.'


def _subscriber_type(user_type):
    if isinstance(user_type, SubscriberTypeEnum):
        return user_type
    try:
        return SubscriberTypeEnum(user_type)
    except ValueError:
        raise ServiceError('Invalid user type')


def _billing_cycle(billing_cycle):
    if isinstance(billing_cycle, BillingCycleEnum):
        return billing_cycle
    try:
        return BillingCycleEnum(billing_cycle)
    except ValueError:
        raise ServiceError('Invalid billing cycle')


def _active_query(user_id, user_type):
    return UserSubscription.query.filter_by(
        user_id=user_id, user_type=_subscriber_type(user_type), status=SubscriptionStatusEnum.ACTIVE
    ).order_by(UserSubscription.created_at.desc(), UserSubscription.id.desc())


def _payment_url(user_id, user_type, plan_id, billing_cycle):
    return (f'/subscription/payment?user_id={user_id}&user_type={_subscriber_type(user_type).value}'
            f'&plan_id={plan_id}&billing_cycle={_billing_cycle(billing_cycle).value}')


# --- Plans ---

def seed_default_plans():
    """
    Inserts DEFAULT_PLANS when the plan table is empty.

    Returns:
        int: Number of plans inserted (0 when plans already exist).
    """
    if SubscriptionPlan.query.count() > 0:
        return 0
    for plan_data in DEFAULT_PLANS:
        db.session.add(SubscriptionPlan(**plan_data))
    db.session.commit()
    current_app.logger.info(f"Seeded {len(DEFAULT_PLANS)} default subscription plans.")
    return len(DEFAULT_PLANS)


def get_plans_for_user_type(user_type):
    """Active plans for brands or influencers, cheapest first."""
    subscriber_type = _subscriber_type(user_type)
    seed_default_plans()
    return SubscriptionPlan.query.filter_by(user_type=subscriber_type, is_active=True) \
        .order_by(SubscriptionPlan.price_monthly.asc()).all()


def get_plan(plan_id):
    try:
        plan_id = int(plan_id)
    except (TypeError, ValueError):
        raise ServiceError('Invalid plan selected')
    plan = db.session.get(SubscriptionPlan, plan_id)
    if plan is None or not plan.is_active:
        raise ServiceError('Invalid plan selected')
    return plan


def get_free_plan(user_type):
    subscriber_type = _subscriber_type(user_type)
    seed_default_plans()
    return SubscriptionPlan.query.filter_by(user_type=subscriber_type, name='Free').first()


# --- Subscriptions ---

def calculate_end_date(start_date, billing_cycle):
    """start + 30 days for monthly, + 365 days for yearly."""
    return start_date + timedelta(days=_billing_cycle(billing_cycle).days)


def create_subscription(user_id, user_type, plan, billing_cycle='monthly', amount=0, start_date=None):
    """
    Adds an ACTIVE subscription with zeroed usage to the session. The caller commits.
    """
    cycle = _billing_cycle(billing_cycle)
    start_date = start_date or datetime.utcnow()
    subscription = UserSubscription(
        user_id=user_id,
        user_type=_subscriber_type(user_type),
        plan_id=plan.id,
        status=SubscriptionStatusEnum.ACTIVE,
        billing_cycle=cycle,
        start_date=start_date,
        end_date=calculate_end_date(start_date, cycle),
        amount=amount,
        campaigns_used=0,
        influencers_connected=0,
        brands_connected=0,
        storage_used_gb=0.0,
        uploads_this_month=0,
    )
    db.session.add(subscription)
    db.session.flush()
    current_app.logger.info(
        f"Subscription created for {subscription.user_type.value} {user_id}: plan {plan.name}, "
        f"{cycle.value}, ends {subscription.end_date:%Y-%m-%d}")
    return subscription


def create_default_free_subscription(user_id, user_type):
    """Puts the account on the Free plan (monthly, amount 0). Returns None if no Free plan exists."""
    plan = get_free_plan(user_type)
    if plan is None:
        current_app.logger.error(f"No Free plan configured for {_subscriber_type(user_type).value} accounts.")
        return None
    subscription = create_subscription(user_id, user_type, plan, BillingCycleEnum.MONTHLY, amount=0)
    db.session.commit()
    return subscription


def _expire(subscriptions):
    for subscription in subscriptions:
        subscription.status = SubscriptionStatusEnum.EXPIRED


def get_user_subscription(user_id, user_type):
    """
    Returns the account's current subscription.

    The newest ACTIVE subscription wins and any older ACTIVE duplicates are expired. An
    ACTIVE subscription past its end_date is expired on the spot. Without an active one, the
    newest EXPIRED subscription is returned; an account with no subscriptions at all is
    put on the Free plan.
    """
    subscriber_type = _subscriber_type(user_type)
    active = _active_query(user_id, subscriber_type).all()
    if active:
        current, duplicates = active[0], active[1:]
        changed = bool(duplicates)
        _expire(duplicates)
        if current.is_past_end():
            _expire([current])
            changed = True
        if changed:
            db.session.commit()
        if current.status == SubscriptionStatusEnum.ACTIVE:
            return current

    expired = UserSubscription.query.filter_by(
        user_id=user_id, user_type=subscriber_type, status=SubscriptionStatusEnum.EXPIRED
    ).order_by(UserSubscription.created_at.desc(), UserSubscription.id.desc()).first()
    if expired:
        return expired

    return create_default_free_subscription(user_id, subscriber_type)


def check_subscription_limit(user_id, user_type, action):
    """
    Checks whether the account's plan allows one more `action`.

    Args:
        action (str): 'create_campaign', 'connect_influencer' or 'connect_brand'.
                      Unknown actions are always allowed.

    Returns:
        dict: {'allowed': bool, 'reason': str or None, 'redirect_to_payment': bool}
    """
    subscription = get_user_subscription(user_id, user_type)
    if subscription is None:
        return {'allowed': False, 'reason': 'No subscription found. Please contact support.', 'redirect_to_payment': False}

    if subscription.status == SubscriptionStatusEnum.EXPIRED or subscription.is_past_end():
        if subscription.status != SubscriptionStatusEnum.EXPIRED:
            subscription.status = SubscriptionStatusEnum.EXPIRED
            db.session.commit()
        return {'allowed': False, 'reason': EXPIRED_REASON, 'redirect_to_payment': True}

    plan = subscription.plan
    checks = {
        'create_campaign': ('max_campaigns', subscription.campaigns_used, 'campaigns'),
        'connect_influencer': ('max_influencers', subscription.influencers_connected, 'influencer connections'),
        'connect_brand': ('max_brands', subscription.brands_connected, 'brand connections'),
    }
    if action not in checks or plan is None:
        return {'allowed': True, 'reason': None, 'redirect_to_payment': False}

    feature_key, used, label = checks[action]
    limit = plan.feature(feature_key)
    if limit == UNLIMITED or (used or 0) < limit:
        return {'allowed': True, 'reason': None, 'redirect_to_payment': False}
    return {'allowed': False, 'reason': f'You have reached your limit of {limit} {label}', 'redirect_to_payment': False}


def update_usage(user_id, user_type, commit=True, **increments):
    """
    Increments usage counters on the active subscription, e.g. update_usage(1, 'brand', campaigns_used=1).

    Returns:
        UserSubscription or None: None when the account has no active subscription.
    """
    subscription = _active_query(user_id, user_type).first()
    if subscription is None:
        return None
    for field, delta in increments.items():
        if field not in UserSubscription.USAGE_FIELDS:
            raise ValueError(f"Unknown usage field: {field}")
        setattr(subscription, field, (getattr(subscription, field) or 0) + delta)
    if commit:
        db.session.commit()
    return subscription


def check_and_expire_subscriptions(now=None):
    """
    Marks every ACTIVE subscription whose end_date has passed as EXPIRED.

    Returns:
        int: Number of subscriptions expired.
    """
    now = now or datetime.utcnow()
    count = UserSubscription.query.filter(
        UserSubscription.status == SubscriptionStatusEnum.ACTIVE,
        UserSubscription.end_date < now,
    ).update({UserSubscription.status: SubscriptionStatusEnum.EXPIRED}, synchronize_session=False)
    db.session.commit()
    if count:
        current_app.logger.info(f"Expired {count} subscription(s) past their end date.")
    return count or 0


def check_subscription_expiry(user_id, user_type, now=None):
    """
    Reports whether the account's active subscription has expired or is due for renewal.
    An expired subscription is replaced by the Free plan.

    Returns:
        dict: expired, needs_renewal, subscription and, where relevant,
              days_until_expiry and message.
    """
    now = now or datetime.utcnow()
    active = _active_query(user_id, user_type).all()
    if not active:
        return {'expired': False, 'needs_renewal': False, 'subscription': None}

    subscription, duplicates = active[0], active[1:]
    _expire(duplicates)

    if now > subscription.end_date:
        subscription.status = SubscriptionStatusEnum.EXPIRED
        db.session.commit()
        current_app.logger.info(
            f"Subscription {subscription.id} of {subscription.user_type.value} {user_id} expired; moving to Free plan.")
        free_subscription = create_default_free_subscription(user_id, user_type)
        return {
            'expired': True,
            'needs_renewal': True,
            'subscription': free_subscription,
            'message': ('Your subscription has expired. You have been moved to the free plan. '
                        'Please renew to continue enjoying premium benefits.'),
        }

    if duplicates:
        db.session.commit()

    days_left = subscription.days_until_expiry(now)
    window = current_app.config.get('SUBSCRIPTION_RENEWAL_WINDOW_DAYS', 7)
    needs_renewal = 0 < days_left <= window
    result = {
        'expired': False,
        'needs_renewal': needs_renewal,
        'days_until_expiry': days_left,
        'subscription': subscription,
    }
    if needs_renewal:
        result['message'] = (f"Your subscription expires in {days_left} day(s). "
                             "Please renew to continue enjoying premium benefits.")
    return result


def _limit_entry(limit, used):
    if limit == UNLIMITED:
        return {'limit': 'Unlimited', 'used': used, 'remaining': 'Unlimited'}
    return {'limit': limit, 'used': used, 'remaining': max(0, limit - used)}


def get_subscription_limits_with_usage(user_id, user_type):
    """
    Returns {'campaigns': {limit, used, remaining}, 'collaborations': {...}}.
    Collaborations count influencer connections for brands and brand connections for influencers.
    """
    subscriber_type = _subscriber_type(user_type)
    subscription = get_user_subscription(user_id, subscriber_type)
    if subscription is None or subscription.plan is None:
        fallback = {'limit': FALLBACK_LIMIT, 'used': 0, 'remaining': FALLBACK_LIMIT}
        return {'campaigns': dict(fallback), 'collaborations': dict(fallback)}

    plan = subscription.plan
    if subscriber_type == SubscriberTypeEnum.BRAND:
        collaborations = _limit_entry(plan.feature('max_influencers'), subscription.influencers_connected or 0)
    else:
        collaborations = _limit_entry(plan.feature('max_brands'), subscription.brands_connected or 0)
    return {
        'campaigns': _limit_entry(plan.feature('max_campaigns'), subscription.campaigns_used or 0),
        'collaborations': collaborations,
    }


def recalculate_usage(user_id, user_type):
    """Recomputes the usage counters of the current subscription from campaigns and collaborations."""
    subscriber_type = _subscriber_type(user_type)
    subscription = get_user_subscription(user_id, subscriber_type)
    if subscription is None:
        return None

    if subscriber_type == SubscriberTypeEnum.BRAND:
        subscription.campaigns_used = Campaign.query.filter_by(brand_id=user_id).count()
        subscription.influencers_connected = db.session.query(func.count(distinct(Collaboration.influencer_id))) \
            .join(Campaign, Collaboration.campaign_id == Campaign.id) \
            .filter(Campaign.brand_id == user_id).scalar() or 0
    else:
        subscription.campaigns_used = db.session.query(func.count(distinct(Collaboration.campaign_id))) \
            .filter(Collaboration.influencer_id == user_id).scalar() or 0
        subscription.brands_connected = db.session.query(func.count(distinct(Campaign.brand_id))) \
            .join(Collaboration, Collaboration.campaign_id == Campaign.id) \
            .filter(Collaboration.influencer_id == user_id).scalar() or 0
    db.session.commit()
    current_app.logger.info(f"Recalculated usage for {subscriber_type.value} {user_id}: {subscription.usage_dict()}")
    return subscription


def get_subscription_analytics():
    """Active subscription count, revenue from successful payments and plan distribution."""
    total_active = UserSubscription.query.filter_by(status=SubscriptionStatusEnum.ACTIVE).count()
    total_revenue = db.session.query(func.coalesce(func.sum(PaymentHistory.amount), 0)) \
        .filter(PaymentHistory.status == PaymentStatusEnum.SUCCESS).scalar()
    rows = db.session.query(SubscriptionPlan.name, SubscriptionPlan.user_type, func.count(UserSubscription.id)) \
        .join(UserSubscription, UserSubscription.plan_id == SubscriptionPlan.id) \
        .filter(UserSubscription.status == SubscriptionStatusEnum.ACTIVE) \
        .group_by(SubscriptionPlan.name, SubscriptionPlan.user_type).all()
    return {
        'total_active_subscriptions': total_active,
        'total_revenue': float(total_revenue or 0),
        'plan_distribution': [
            {'plan': name, 'user_type': user_type.value, 'count': count} for name, user_type, count in rows
        ],
    }


# --- Plan changes ---

def ensure_awaiting_first_plan(user_id, user_type):
    """
    Guards the post-signup flow, which runs before the account has logged in. It is only open
    to an existing brand or influencer that has never held a subscription; every later plan
    change needs a login.
    """
    subscriber_type = _subscriber_type(user_type)
    model = Brand if subscriber_type == SubscriberTypeEnum.BRAND else Influencer
    if db.session.get(model, user_id) is None:
        raise ServiceError('Account not found', 404)
    if UserSubscription.query.filter_by(user_id=user_id, user_type=subscriber_type).first() is not None:
        current_app.logger.warning(f"Rejected anonymous plan change for {subscriber_type.value} {user_id}.")
        raise ServiceError('Please sign in to change your subscription', 403)


def subscribe(user_id, user_type, plan_id, billing_cycle='monthly'):
    """
    Switches the account to `plan_id`. Paid plans are not activated here: the result points
    the client to the payment page instead.
    """
    plan = get_plan(plan_id)
    subscriber_type = _subscriber_type(user_type)
    cycle = _billing_cycle(billing_cycle)
    if plan.user_type != subscriber_type:
        raise ServiceError('Invalid plan selected')

    if plan.is_paid(cycle.value):
        return {
            'redirect_to_payment': True,
            'payment_url': _payment_url(user_id, subscriber_type, plan.id, cycle),
            'plan': plan.to_dict(),
        }

    current = _active_query(user_id, subscriber_type).first()
    if current is not None and current.plan_id == plan.id:
        raise ServiceError('You already have this plan active')

    if current is not None:
        current.status = SubscriptionStatusEnum.EXPIRED
    subscription = create_subscription(user_id, subscriber_type, plan, cycle, amount=0)
    db.session.commit()
    return {'redirect_to_payment': False, 'subscription': subscription.to_dict()}


def subscribe_after_signup(user_id, user_type, plan_id, billing_cycle):
    """Plan selection right after landing-page signup. Free plans activate immediately."""
    if not all([user_id, user_type, plan_id, billing_cycle]):
        raise ServiceError('Missing required parameters')
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise ServiceError('Invalid user id')
    ensure_awaiting_first_plan(user_id, user_type)
    plan = get_plan(plan_id)
    subscriber_type = _subscriber_type(user_type)
    cycle = _billing_cycle(billing_cycle)
    if plan.user_type != subscriber_type:
        raise ServiceError('Invalid plan selected')

    if plan.is_paid(cycle.value):
        return {'redirect_to': _payment_url(user_id, subscriber_type, plan.id, cycle), 'requires_payment': True}

    create_subscription(user_id, subscriber_type, plan, cycle, amount=0)
    db.session.commit()
    return {'redirect_to': '/auth/signin', 'requires_payment': False}


def _parse_expiry(expiry_date):
    """'MM/YY' or 'MM/YYYY' -> (month, year). Raises ServiceError on bad input."""
    try:
        month_text, year_text = str(expiry_date).split('/')
        month, year = int(month_text), int(year_text)
    except (TypeError, ValueError):
        raise ServiceError('Invalid card information')
    if year < 100:
        year += 2000
    if not 1 <= month <= 12:
        raise ServiceError('Invalid card information')
    return month, year


def _last_successful_payment(user_id, subscriber_type):
    return PaymentHistory.query.filter_by(
        user_id=user_id, user_type=subscriber_type, status=PaymentStatusEnum.SUCCESS
    ).order_by(PaymentHistory.created_at.desc(), PaymentHistory.id.desc()).first()


def _card_expiry(payment):
    if not (payment.card_expiry_month and payment.card_expiry_year):
        return None
    return f'{payment.card_expiry_month:02d}/{payment.card_expiry_year % 100:02d}'


def _saved_card_data(user_id, subscriber_type):
    """Card fields of the last successful payment, decrypted for a repeat charge."""
    payment = _last_successful_payment(user_id, subscriber_type)
    if payment is None or not payment.encrypted_card_number:
        raise ServiceError('No saved card found')
    try:
        card_number = decrypt_card_number(payment.encrypted_card_number)
    except (InvalidToken, ValueError):
        current_app.logger.warning(f"Could not decrypt saved card on payment {payment.transaction_id}")
        raise ServiceError('Saved card is no longer available. Please enter your card details.')
    return {'card_number': card_number, 'card_name': payment.card_name, 'expiry_date': _card_expiry(payment)}


def process_payment(user_id, user_type, plan_id, billing_cycle, amount, card_data):
    """
    Charges the card and, on success, replaces the active subscription with the paid plan.
    Every attempt is written to PaymentHistory; a decline raises a 400 ServiceError with the
    gateway's message. card_data may ask for the last saved card with use_saved_card plus a cvv.
    """
    if not all([user_id, user_type, plan_id, billing_cycle, amount, card_data]) or not isinstance(card_data, dict):
        raise ServiceError('Missing required payment information')

    if card_data.get('use_saved_card'):
        card_data = dict(card_data, **_saved_card_data(user_id, _subscriber_type(user_type)))
    uses_payment_method = bool(card_data.get('payment_method'))
    if not uses_payment_method and not all(card_data.get(k) for k in ('card_number', 'card_name', 'expiry_date', 'cvv')):
        raise ServiceError('Invalid card information')

    plan = get_plan(plan_id)
    subscriber_type = _subscriber_type(user_type)
    cycle = _billing_cycle(billing_cycle)
    try:
        amount = round(float(amount), 2)
    except (TypeError, ValueError):
        raise ServiceError('Missing required payment information')

    expiry_month, expiry_year = (None, None)
    if card_data.get('expiry_date'):
        expiry_month, expiry_year = _parse_expiry(card_data['expiry_date'])

    card_number = normalize_card_number(card_data.get('card_number'))
    transaction_id = generate_transaction_id()
    gateway = get_payment_gateway()
    payment = PaymentHistory(
        user_id=user_id,
        user_type=subscriber_type,
        amount=amount,
        currency=current_app.config.get('PAYMENT_CURRENCY', 'USD'),
        payment_method=PaymentMethodEnum.STRIPE if uses_payment_method else PaymentMethodEnum.CREDIT_CARD,
        transaction_id=transaction_id,
        payment_gateway=gateway.name,
        description=f'{plan.name} Plan - {cycle.value} subscription',
        billing_address=card_data.get('billing_address'),
        card_name=card_data.get('card_name'),
        card_last4=card_last4(card_number),
        card_brand=detect_card_brand(card_number) if card_number else None,
        card_expiry_month=expiry_month,
        card_expiry_year=expiry_year,
        encrypted_card_number=encrypt_card_number(card_number),
    )

    result = gateway.charge(card_data, amount)
    if not result.success:
        payment.status = PaymentStatusEnum.FAILED
        db.session.add(payment)
        db.session.commit()
        current_app.logger.warning(
            f"Payment {transaction_id} declined for {subscriber_type.value} {user_id}: {result.message}")
        raise ServiceError(result.message, transaction_id=transaction_id)

    try:
        current = _active_query(user_id, subscriber_type).all()
        _expire(current)
        subscription = create_subscription(user_id, subscriber_type, plan, cycle, amount=amount)
        payment.subscription_id = subscription.id
        payment.status = PaymentStatusEnum.SUCCESS
        payment.gateway_payment_id = result.payment_id
        payment.paid_at = datetime.utcnow()
        db.session.add(payment)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(
            f"Payment {transaction_id} charged but subscription could not be saved: {e}", exc_info=True)
        raise ServiceError('Payment processing failed. Please contact support.', 500, transaction_id=transaction_id)

    current_app.logger.info(
        f"Payment {transaction_id} succeeded for {subscriber_type.value} {user_id}: {plan.name} {cycle.value} ({amount})")
    return {
        'transaction_id': transaction_id,
        'subscription': subscription.to_dict(),
        'redirect_to': f'/subscription/payment-success?transaction_id={transaction_id}',
    }


def get_payment_page_details(user_id, user_type, plan_id, billing_cycle, include_saved_card=False):
    """
    Selected plan plus, for the signed-in owner, the card of the last successful payment so the
    form can be prefilled. The saved card is masked; the full number never leaves the server.
    """
    plan = get_plan(plan_id)
    subscriber_type = _subscriber_type(user_type)
    cycle = _billing_cycle(billing_cycle)

    last_payment = _last_successful_payment(user_id, subscriber_type)
    saved_card = None
    if include_saved_card and last_payment is not None and last_payment.card_last4:
        saved_card = {
            'card_number': mask_card_number(last_payment.card_last4),
            'card_name': last_payment.card_name,
            'expiry_date': _card_expiry(last_payment),
            'card_brand': last_payment.card_brand,
            'last4': last_payment.card_last4,
        }

    return {
        'plan': plan.to_dict(),
        'billing_cycle': cycle.value,
        'amount': plan.price_for(cycle.value),
        'saved_card': saved_card,
    }


def plan_feature_list(plan):
    """Human readable feature bullets shown after a successful payment."""
    features = []
    for key, label in (('max_campaigns', 'Campaigns'),
                       ('max_influencers', 'Influencer Connections'),
                       ('max_brands', 'Brand Connections')):
        if key not in (plan.features or {}):
            continue
        limit = plan.feature(key)
        if limit == UNLIMITED:
            features.append(f'Unlimited {label}')
        elif limit > 2: # Free-tier limits are not advertised.
            features.append(f'{limit} {label}')
    if plan.feature('advanced_analytics'):
        features.append('Advanced Analytics')
    if plan.feature('priority_support'):
        features.append('Priority Support')
    if plan.feature('custom_branding'):
        features.append('Custom Branding')
    return features


def get_payment_success_details(transaction_id):
    payment = PaymentHistory.query.filter_by(transaction_id=transaction_id).first()
    if payment is None or payment.subscription is None:
        raise ServiceError('Payment not found', 404)
    subscription = payment.subscription
    return {
        'plan_name': subscription.plan.name,
        'billing_cycle': subscription.billing_cycle.value,
        'amount': float(payment.amount),
        'transaction_id': payment.transaction_id,
        'features': plan_feature_list(subscription.plan),
    }


def get_management_overview(user_id, user_type):
    subscription = get_user_subscription(user_id, user_type)
    payments = PaymentHistory.query.filter_by(user_id=user_id, user_type=_subscriber_type(user_type)) \
        .order_by(PaymentHistory.created_at.desc(), PaymentHistory.id.desc()).limit(10).all()
    return {
        'subscription': subscription.to_dict() if subscription else None,
        'plans': [plan.to_dict() for plan in get_plans_for_user_type(user_type)],
        'limits': get_subscription_limits_with_usage(user_id, user_type),
        'payments': [payment.to_dict() for payment in payments],
    }


# Messages used when a limit check fails, keyed by action.
LIMIT_MESSAGES = {
    'create_campaign': ('Campaign limit reached', 'Please upgrade your plan to create more campaigns.'),
    'connect_influencer': ('Influencer connection limit reached', 'Please upgrade your plan to connect with more influencers.'),
    'connect_brand': ('Brand connection limit reached', 'Please upgrade your plan to connect with more brands.'),
}


def enforce_subscription_limit(user_id, user_type, action):
    """
    Raises a ServiceError when the account may not perform `action`.
    An expired subscription yields 403 with redirect_to_payment; an exhausted limit yields
    400 with show_upgrade_link.
    """
    check = check_subscription_limit(user_id, user_type, action)
    if check['allowed']:
        return check
    current_app.logger.warning(f"Limit check '{action}' failed for {_subscriber_type(user_type).value} {user_id}: {check['reason']}")
    if check['redirect_to_payment']:
        raise ServiceError(check['reason'], 403, redirect_to_payment=True)
    label, hint = LIMIT_MESSAGES.get(action, ('Limit reached', 'Please upgrade your plan.'))
    raise ServiceError(f"{label}: {check['reason']}. {hint}", 400, show_upgrade_link=True)
