import os # Standard library for operating system interactions (e.g., creating directories).
import click # Option parsing for the Flask CLI commands.
import stripe # Stripe Python library, used when PAYMENT_GATEWAY is 'stripe'.
from flask import Flask # The main Flask class.
from config import Config # Import the application's configuration class.
from extensions import db, login_manager, migrate # Import initialized extensions.
from models import load_account # Resolves "<role>:<id>" session identifiers for the user_loader.
from utils.errors import ServiceError, register_error_handlers


# Application Factory Function
def create_app(config_class=Config):
    """
    Application factory for creating and configuring the Flask app.

    Args:
        config_class: Configuration object to load. Tests pass a TestConfig subclass.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    # Log level comes from LOG_LEVEL (DEBUG, INFO, WARNING, ...).
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Stripe is only called when the Stripe gateway is selected; the key is still set globally
    # so ad-hoc calls from the shell work.
    stripe.api_key = app.config.get('STRIPE_SECRET_KEY')

    # --- Initialize Flask Extensions ---
    db.init_app(app)
    migrate.init_app(app, db) # Links the app and SQLAlchemy DB instance to the migration engine.
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(session_id):
        """Loads a brand, influencer, customer or admin from its "<role>:<id>" session id."""
        return load_account(session_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        # The API has no login page to redirect to; answer with the standard JSON error.
        raise ServiceError('Authentication required', 401)

    # Ensure the instance folder exists.
    try:
        os.makedirs(app.instance_path)
    except OSError:
        pass # Folder already exists.

    # --- Import and Register Blueprints ---
    from routes.auth import auth_bp
    from routes.landing import landing_bp
    from routes.subscription import subscription_bp
    from routes.brand import brand_bp
    from routes.influencer import influencer_bp
    from routes.customer import customer_bp
    from routes.notifications import notifications_bp
    from routes.admin import admin_bp
    from routes.main import main_bp

    app.register_blueprint(auth_bp)          # /auth/...
    app.register_blueprint(landing_bp)       # /api/brands, /signup-form-* ...
    app.register_blueprint(subscription_bp)  # /subscription/...
    app.register_blueprint(brand_bp)         # /brand/...
    app.register_blueprint(influencer_bp)    # /influencer/...
    app.register_blueprint(customer_bp)      # /customer/...
    app.register_blueprint(notifications_bp) # /notifications/...
    app.register_blueprint(admin_bp)         # /admin/...
    app.register_blueprint(main_bp)          # / and /feedback

    register_error_handlers(app)
    register_commands(app)

    app.logger.info(f"CollabSync app created (payment gateway: {app.config.get('PAYMENT_GATEWAY')}).")
    return app


def register_commands(app):
    """Flask CLI commands: `flask seed-plans`, `flask expire-subscriptions`, `flask create-admin`."""
    from services import subscription_service, admin_service

    @app.cli.command('seed-plans')
    def seed_plans():
        """Insert the default subscription plans if the plan table is empty."""
        created = subscription_service.seed_default_plans()
        click.echo(f'Seeded {created} plan(s).')

    @app.cli.command('expire-subscriptions')
    def expire_subscriptions():
        """Mark every active subscription past its end date as expired."""
        count = subscription_service.check_and_expire_subscriptions()
        click.echo(f'Expired {count} subscription(s).')

    @app.cli.command('create-admin')
    @click.option('--username', default=None, help='Defaults to ADMIN_USERNAME.')
    @click.option('--password', default=None, help='Defaults to ADMIN_PASSWORD.')
    @click.option('--email', default=None, help='Defaults to ADMIN_EMAIL.')
    def create_admin(username, password, email):
        """Create an admin account."""
        try:
            admin = admin_service.create_admin(
                username or app.config.get('ADMIN_USERNAME'),
                password or app.config.get('ADMIN_PASSWORD'),
                email or app.config.get('ADMIN_EMAIL'),
            )
        except ServiceError as e:
            raise click.ClickException(e.message)
        click.echo(f'Admin {admin.username} created.')


# This block allows running the Flask development server directly using `python app.py`.
if __name__ == '__main__':
    app = create_app()
    app.run(debug=True)
