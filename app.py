# app.py
import logging

from flask import Flask, render_template
from werkzeug.exceptions import HTTPException

from auth import load_principal
from config import Config, validate_secret_key
from errors import NotFound
from models import db, init_db
from oauth import GoogleIdentityProvider
from payments import PaymentProxy
from routes import register_blueprints

logger = logging.getLogger(__name__)


def configure_logging(app):
    logging.basicConfig(
        level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s in %(module)s: %(message)s",
    )
    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return render_template('errors/404.html', title='not found'), 404

    @app.errorhandler(NotFound)
    def missing_record(e):
        logger.info("Not found: %s", e)
        return render_template('errors/404.html', title='not found'), 404

    @app.errorhandler(Exception)
    def server_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception("Unhandled error")
        db.session.rollback()
        return render_template('errors/500.html', title='error'), 500


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    configure_logging(app)
    validate_secret_key(app.config)

    init_db(app)
    app.extensions['identity_provider'] = GoogleIdentityProvider.from_config(app.config)
    app.extensions['payment_proxy'] = PaymentProxy.from_config(app.config)

    app.before_request(load_principal)
    register_blueprints(app)
    register_error_handlers(app)
    return app


# -----------------
# App start
# -----------------
if __name__ == "__main__":
    create_app().run(debug=True)
