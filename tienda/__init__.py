"""Flask application factory."""
import os
import traceback

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError

from tienda.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize CSRF protection
    CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'La sesión ha expirado. Recargá la página.'}), 400

    # Sentry error tracking in production
    if os.getenv('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Flask-Mail for order notifications
    from tienda.services.notification_service import init_mail
    init_mail(app)

    # Initialize database
    init_db(app)

    # Identity resolved upstream (user id, admin flag)
    from tienda.middleware import load_identity

    @app.before_request
    def before_request_handler():
        load_identity()

    # Error Handlers
    from tienda.exceptions import TiendaError

    @app.errorhandler(TiendaError)
    def handle_tienda_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"TiendaError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"TiendaError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from tienda.blueprints.cart import cart_bp
    from tienda.blueprints.checkout import checkout_bp
    from tienda.blueprints.orders import orders_bp
    from tienda.blueprints.stock import stock_bp

    app.register_blueprint(cart_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(stock_bp)

    # Register CLI commands
    from tienda.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
