from flask import Blueprint, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy.exc import IntegrityError

from forms import SignInForm, CustomerSignupForm
from models.brand import Brand
from models.influencer import Influencer
from models.customer import Customer, CustomerStatusEnum
from extensions import db
from utils.errors import ServiceError
from utils.helpers import validate_form

# Blueprint for sign-in, customer signup and session routes.
# Brand and influencer signup live on the landing blueprint; admins sign in under /admin.
auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

# Where each role lands after signing in.
HOME_PATHS = {
    'brand': '/brand/home',
    'influencer': '/influencer/home',
    'customer': '/customer',
    'admin': '/admin/dashboard',
}


def account_summary(account):
    """Minimal identity payload returned by sign-in and /auth/me."""
    return {
        'id': account.id,
        'role': account.role,
        'name': account.display,
        'email': getattr(account, 'email', None),
        'verified': getattr(account, 'verified', None),
    }


@auth_bp.route('/signin', methods=['POST'])
def signin():
    """
    Signs in a brand, influencer or customer.
    The email is looked up in brands, then influencers, then customers.
    """
    form = validate_form(SignInForm())
    email = form.email.data.strip().lower()

    account = (Brand.query.filter_by(email=email).first()
               or Influencer.query.filter_by(email=email).first()
               or Customer.query.filter_by(email=email).first())

    if account is None or not account.check_password(form.password.data):
        current_app.logger.warning(f"Failed sign-in attempt for email: {email}")
        raise ServiceError('Invalid email or password')

    if account.role == 'customer' and account.status == CustomerStatusEnum.SUSPENDED:
        current_app.logger.warning(f"Suspended customer {email} tried to sign in.")
        raise ServiceError('Your account has been suspended', 403, admin_notes=account.admin_notes)

    login_user(account, remember=form.remember_me.data)
    current_app.logger.info(f"{account.role.capitalize()} {email} signed in.")
    return jsonify({'success': True, 'user': account_summary(account), 'redirect_to': HOME_PATHS[account.role]})


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Registers a customer account and signs it in."""
    form = validate_form(CustomerSignupForm())
    customer = Customer(name=form.name.data.strip(), email=form.email.data.strip().lower(), phone=form.phone.data or None)
    customer.set_password(form.password.data)
    try:
        db.session.add(customer)
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent signup for the same email.
        db.session.rollback()
        current_app.logger.warning(f"Customer signup failed for {customer.email}: email already exists (IntegrityError).")
        raise ServiceError('Email already registered')

    login_user(customer)
    current_app.logger.info(f"New customer registered: {customer.email}")
    return jsonify({'success': True, 'user': account_summary(customer), 'redirect_to': HOME_PATHS['customer']}), 201


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    account_id = current_user.get_id() # Captured before the session is cleared.
    logout_user()
    current_app.logger.info(f"Account {account_id} logged out.")
    return jsonify({'success': True, 'message': 'Logged out successfully'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'success': True, 'user': account_summary(current_user)})
