"""
TurfBook - Turf booking and payment reconciliation service
Flask application factory and initialization
"""

import os
import sqlite3
import click
import logging
from flask import Flask, g
from flask_wtf.csrf import CSRFError
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db

from utils.api_response import api_error, api_exception
from utils.errors import BookingError, StorageError
from utils.messages import get_message


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    config_class = config[config_name]
    if config_name == 'production':
        config_class.validate()
    app.config.from_object(config_class)

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    from blueprints.turf.services.payment_gateway import init_payment_gateway

    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)
    # Payment gateway client (app.extensions['payment_gateway'])
    init_payment_gateway(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.admin.routes import admin_bp
    from blueprints.turf import turf_bp

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(admin_bp, url_prefix='/admin')
    app.register_blueprint(turf_bp, url_prefix='/api')

    @app.route('/health')
    def health():
        """Liveness probe."""
        from utils.api_response import api_success
        return api_success(data={
            'app': app.config.get('APP_NAME', 'TurfBook'),
            'version': app.config.get('APP_VERSION', '1.0.0')
        })


def register_error_handlers(app):
    """Register error handlers. Every error is answered with the JSON envelope."""

    @app.errorhandler(BookingError)
    def booking_error(error):
        """Business and upstream errors carry their own status and message."""
        if isinstance(error, StorageError):
            app.logger.error('Storage error: %s', error.message, exc_info=True)
            return api_error(get_message('internal_error'), status=500)
        if error.status_code >= 500:
            app.logger.error('%s: %s', type(error).__name__, error.message)
        return api_exception(error)

    @app.errorhandler(sqlite3.Error)
    def database_error(error):
        """Database failures are logged in full and reported opaquely."""
        db = g.get('db')
        if db:
            db.rollback()
        app.logger.error('Database error', exc_info=error)
        return api_error(get_message('internal_error'), status=500)

    @app.errorhandler(CSRFError)
    def csrf_error(error):
        """Handle missing or invalid CSRF tokens."""
        return api_error(error.description, status=400)

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error(get_message('not_found'), status=404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors."""
        return api_error(get_message('method_not_allowed'), status=405)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        return api_error(get_message('internal_error'), status=500)


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-operator')
    @click.argument('username')
    @click.argument('email')
    @click.option('--full-name', default=None, help='Display name')
    @click.password_option()
    def create_operator_command(username, email, full_name, password):
        """Create a new operator account."""
        from models.user import create_user

        with app.app_context():
            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    full_name=full_name
                )
                click.echo(f'Operator created successfully! ID: {user_id}')
            except sqlite3.IntegrityError:
                click.echo('Error creating operator: username or email already exists', err=True)

    @app.cli.command('expire-bookings')
    @click.option('--minutes', type=int, default=None,
                  help='Hold time in minutes (default BOOKING_HOLD_MINUTES)')
    def expire_bookings_command(minutes):
        """Fail online bookings left unpaid longer than the hold time."""
        from models.booking import expire_stale_bookings

        with app.app_context():
            expired = expire_stale_bookings(hold_minutes=minutes)
        click.echo(f'Expired {expired} booking(s)')


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/turfbook.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s %(name)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)

        # Module loggers (logging.getLogger(__name__)) propagate to root
        root_logger = logging.getLogger()
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('TurfBook startup')
    elif not app.testing:
        # Development logging
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
