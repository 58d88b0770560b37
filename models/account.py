import enum
import bcrypt
from flask_login import UserMixin # For Flask-Login integration (e.g., current_user).


class AccountStatusEnum(enum.Enum):
    """Lifecycle status shared by brand and influencer accounts."""
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'


class AccountMixin(UserMixin):
    """
    Behaviour shared by every account model (Brand, Influencer, Customer, Admin).

    Each concrete model sets a class-level `role` string. The role is embedded in the
    session identifier so a single Flask-Login user_loader can resolve the right table,
    since the four account types live in separate tables with independent primary keys.
    UserMixin provides the remaining defaults required by Flask-Login (is_authenticated, ...).
    """
    role = None # Overridden by each account model ('brand', 'influencer', 'customer', 'admin').

    def get_id(self):
        """
        Returns the identifier Flask-Login stores in the session.

        Returns:
            str: "<role>:<primary key>", e.g. "brand:12".
        """
        return f'{self.role}:{self.id}'

    def set_password(self, password):
        """
        Hashes the provided password and stores it in `password_hash`.

        Args:
            password (str): The plain-text password to hash.
        """
        # bcrypt generates the salt itself; the hash is stored as a UTF-8 string.
        self.password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')

    def check_password(self, password):
        """
        Verifies if the provided password matches the stored hashed password.

        Returns:
            bool: True if the password matches. False if it does not, or if the account
                  has no password (customers created through guest checkout).
        """
        if self.password_hash and password:
            return bcrypt.checkpw(password.encode('utf-8'), self.password_hash.encode('utf-8'))
        return False

    @property
    def display(self):
        """Human readable name used in notifications and listings."""
        return getattr(self, 'email', None) or str(self.id)


def load_account(session_id):
    """
    Resolves a "<role>:<id>" session identifier back to its account row.

    Args:
        session_id (str): Value previously returned by AccountMixin.get_id().

    Returns:
        The Brand, Influencer, Customer or Admin instance, or None when the identifier is
        malformed or the row no longer exists.
    """
    from .brand import Brand
    from .influencer import Influencer
    from .customer import Customer
    from .admin import Admin

    models_by_role = {
        'brand': Brand,
        'influencer': Influencer,
        'customer': Customer,
        'admin': Admin,
    }
    role, _, raw_id = (session_id or '').partition(':')
    model = models_by_role.get(role)
    if model is None or not raw_id.isdigit():
        return None
    from extensions import db
    return db.session.get(model, int(raw_id))
