import enum
from datetime import datetime
from extensions import db
from .account import AccountMixin


class AdminRoleEnum(enum.Enum):
    ADMIN = 'admin'
    MODERATOR = 'moderator'
    STAFF = 'staff'


class Admin(db.Model, AccountMixin):
    """Back-office operator. Logs in with a username rather than an email."""
    __tablename__ = 'admins'
    role = 'admin'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=True)
    password_hash = db.Column(db.String(128), nullable=False)
    admin_role = db.Column(db.Enum(AdminRoleEnum), nullable=False, default=AdminRoleEnum.ADMIN)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def display(self):
        return self.username

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.admin_role.value,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Admin {self.username}>'
