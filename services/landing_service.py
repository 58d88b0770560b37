import random
import re

from flask import current_app

from extensions import db
from models.account import AccountStatusEnum
from models.brand import Brand
from models.influencer import Influencer, SIGNUP_PLATFORMS
from utils.errors import ServiceError


def _public_list(model, not_found_message):
    accounts = model.query.filter_by(status=AccountStatusEnum.ACTIVE).order_by(model.created_at.desc()).all()
    if not accounts:
        accounts = model.query.order_by(model.created_at.desc()).all()
    if not accounts:
        raise ServiceError(not_found_message, 404)
    return [account.to_summary() for account in accounts]


def list_public_brands():
    return _public_list(Brand, 'No brands found')


def list_public_influencers():
    return _public_list(Influencer, 'No influencers found')


def generate_username(email, model):
    """
    Builds a unique username from the email's local part: lowercase alphanumerics plus
    '_' and four random digits, e.g. 'janedoe_4821'.
    """
    base = re.sub(r'[^a-z0-9]', '', email.split('@')[0].lower())[:25] or 'user'
    while True:
        candidate = f'{base}_{random.randint(0, 9999):04d}'
        if not model.query.filter_by(username=candidate).first():
            return candidate


def _ensure_email_free(email):
    if Brand.query.filter_by(email=email).first() or Influencer.query.filter_by(email=email).first():
        raise ServiceError('Email already exists')


def signup_brand(brand_name, email, password, industry, phone, website=None, total_audience=0):
    """Creates an unverified, active brand. Returns (brand, redirect path for plan selection)."""
    email = email.strip().lower()
    _ensure_email_free(email)
    brand = Brand(
        brand_name=brand_name.strip(),
        email=email,
        username=generate_username(email, Brand),
        industry=industry,
        phone=phone,
        website=website or None,
        total_audience=int(total_audience or 0),
        verified=False,
        status=AccountStatusEnum.ACTIVE,
    )
    brand.set_password(password)
    db.session.add(brand)
    db.session.commit()
    current_app.logger.info(f"New brand signed up: {brand.email} (id {brand.id})")
    return brand, f'/subscription/plans?user_type=brand&user_id={brand.id}'


def signup_influencer(full_name, email, password, platform, social_handle, audience, niche, phone):
    """Creates an unverified, active influencer with its primary platform entry."""
    platform = (platform or '').strip().lower()
    if platform not in SIGNUP_PLATFORMS:
        raise ServiceError('Please select a valid social media platform')
    email = email.strip().lower()
    _ensure_email_free(email)
    followers = int(audience or 0)
    influencer = Influencer(
        full_name=full_name.strip(),
        email=email,
        username=generate_username(email, Influencer),
        platforms=[{'platform': platform, 'handle': social_handle, 'followers': followers}],
        social_handle=social_handle,
        total_followers=followers,
        niche=niche,
        phone=phone,
        verified=False,
        status=AccountStatusEnum.ACTIVE,
    )
    influencer.set_password(password)
    db.session.add(influencer)
    db.session.commit()
    current_app.logger.info(f"New influencer signed up: {influencer.email} (id {influencer.id})")
    return influencer, f'/subscription/plans?user_type=influencer&user_id={influencer.id}'
