# votebox/extensions.py

from flask import current_app, jsonify
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from votebox.errors import ExpiredToken, InvalidToken, MissingToken
from votebox.security.token_manager import TokenManager

jwt = JWTManager()
migrate = Migrate()
limiter = Limiter(key_func=get_remote_address, default_limits=["10000/hour"])
token_manager = TokenManager()


def _auth_failure(error):
    return jsonify(error.to_dict()), error.status_code


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return _auth_failure(ExpiredToken())


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    return _auth_failure(InvalidToken())


@jwt.unauthorized_loader
def missing_token_callback(reason):
    return _auth_failure(MissingToken())


def get_password_service():
    return current_app.extensions['votebox.passwords']


def get_audit_logger():
    return current_app.extensions['votebox.audit']


def get_assistant():
    return current_app.extensions['votebox.assistant']
