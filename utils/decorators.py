from functools import wraps
from flask_login import current_user

from services.subscription_service import enforce_subscription_limit
from utils.errors import ServiceError


def role_required(*roles):
    """
    Decorator restricting a view to accounts of the given roles ('brand', 'influencer',
    'customer', 'admin'). Apply it below @login_required.
    Other roles get a 403 JSON error.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise ServiceError('Authentication required', 401)
            if current_user.role not in roles:
                raise ServiceError('You do not have permission to access this resource', 403)
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def verified_required(f):
    """Rejects brands and influencers an admin has not verified yet."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not getattr(current_user, 'verified', False):
            raise ServiceError('Your account is not verified. Please wait for verification.')
        return f(*args, **kwargs)
    return decorated_function


def subscription_limit_required(action):
    """
    Decorator that runs the subscription limit check for `action` ('create_campaign',
    'connect_influencer' or 'connect_brand') before the view.
    An expired subscription is answered with 403 and redirect_to_payment; a reached limit
    with 400 and show_upgrade_link.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            enforce_subscription_limit(current_user.id, current_user.role, action)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
