"""AgriLinker Flask Application Factory."""
import logging
import logging.config

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from werkzeug.exceptions import HTTPException
from config import config

db = SQLAlchemy()
login_manager = LoginManager()

logger = logging.getLogger(__name__)


def configure_logging(level):
    """Configure console logging for the application and its modules."""
    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'verbose': {
                'format': '{levelname} {asctime} {name} {message}',
                'style': '{',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'verbose',
            },
        },
        'loggers': {
            'agrilinker': {
                'handlers': ['console'],
                'level': level,
                'propagate': True,
            },
        },
    })


def create_app(config_name='default', overrides=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)

    configure_logging(app.config['LOG_LEVEL'])

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # Registers the bearer-token loader and the 401 handler
    from agrilinker import security  # noqa: F401

    # Register blueprints
    from agrilinker.routes.main import main_bp
    from agrilinker.routes.accounts import accounts_bp
    from agrilinker.routes.products import products_bp
    from agrilinker.routes.cart import cart_bp
    from agrilinker.routes.orders import orders_bp
    from agrilinker.routes.reviews import reviews_bp
    from agrilinker.routes.loans import loans_bp
    from agrilinker.routes.farmers import farmers_bp
    from agrilinker.routes.admin import admin_bp
    from agrilinker.routes.recommendation import recommendation_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(accounts_bp)
    app.register_blueprint(products_bp, url_prefix='/api')
    app.register_blueprint(cart_bp, url_prefix='/api/cart')
    app.register_blueprint(orders_bp, url_prefix='/api')
    app.register_blueprint(reviews_bp, url_prefix='/api/rating-review')
    app.register_blueprint(loans_bp, url_prefix='/api')
    app.register_blueprint(farmers_bp, url_prefix='/api/farmers')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
    app.register_blueprint(recommendation_bp, url_prefix='/api/crop-recommendation')

    register_error_handlers(app)

    from agrilinker.cli import register_commands
    register_commands(app)

    # Create database tables
    with app.app_context():
        db.create_all()

    return app


def register_error_handlers(app):
    """Render every error as the JSON shape the client expects."""
    from agrilinker.errors import MarketplaceError

    @app.errorhandler(MarketplaceError)
    def marketplace_error(error):
        """Handle domain errors raised by services and routes."""
        db.session.rollback()
        logger.warning('%s: %s', error.__class__.__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        """Handle 404, 405, 413 and friends."""
        return jsonify({'success': False, 'message': error.description}), error.code

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors - internal server error."""
        db.session.rollback()  # Rollback any pending database transactions
        original = getattr(error, 'original_exception', None) or error
        logger.error('Unhandled error: %s', original, exc_info=original)
        return jsonify({'success': False, 'message': 'Internal server error'}), 500
