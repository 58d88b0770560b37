from flask_sqlalchemy import SQLAlchemy # ORM for database interactions.
from flask_login import LoginManager    # Manages account sessions for brands, influencers, customers and admins.
from flask_migrate import Migrate       # Alembic migrations bound to the app and db.

# Initialized without an app; bound in create_app() via init_app().
db = SQLAlchemy()

# Session handling for every account type. The user_loader in app.py decodes
# the "<role>:<id>" session identifier produced by AccountMixin.get_id().
login_manager = LoginManager()

migrate = Migrate()
