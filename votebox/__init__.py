# votebox/__init__.py

import atexit
import logging

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from votebox.assistant.gemini_client import GeminiClient
from votebox.audit.audit_logger import AuditLogger
from votebox.config import Config
from votebox.database import close_db, db, init_db
from votebox.encryption.password_hashing import PasswordHashingService
from votebox.errors import register_error_handlers
from votebox.extensions import jwt, limiter, migrate, token_manager

__version__ = "1.0.0"


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_object(config or Config())
    configure_logging(app)

    # Fix proxy headers for HTTPS
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    # Initialize extensions
    init_db(app)  # datastore handle, waits until the database answers
    migrate.init_app(app, db)  # DB migrations
    jwt.init_app(app)
    token_manager.init_app(app)
    limiter.init_app(app)

    app.extensions['votebox.passwords'] = PasswordHashingService.from_config(app.config)
    app.extensions['votebox.audit'] = AuditLogger(
        log_dir=app.config['AUDIT_LOG_DIR'],
        signing_key_path=app.config.get('AUDIT_SIGNING_KEY'),
    )
    app.extensions['votebox.assistant'] = GeminiClient.from_config(app.config)

    register_error_handlers(app)

    from votebox.routes import register_blueprints
    register_blueprints(app)

    from votebox.cli import register_commands
    register_commands(app)

    if not app.testing:
        atexit.register(close_db, app)
    return app
