# votebox/routes/user.py

from flask import Blueprint, current_app, jsonify, request

from votebox.authentication.rbac import Permission, current_identity, require_permission
from votebox.database import db
from votebox.errors import InvalidCredentials, ValidationError
from votebox.extensions import get_audit_logger, get_password_service, limiter, token_manager
from votebox.security.input_validator import InputValidator
from votebox.services import AccountService

user_bp = Blueprint('user', __name__)
validator = InputValidator()


def _accounts():
    return AccountService(db.session, get_password_service(), token_manager)


@user_bp.route('/signup', methods=['POST'])
@limiter.limit("20/hour")
def signup():
    data = validator.validate_signup(request.get_json(silent=True))
    voter, token = _accounts().signup(data)
    get_audit_logger().log_security_event('signup', {'role': voter.role.value}, user_id=voter.id)
    current_app.logger.info(f"Voter signed up: {voter.id}")
    return jsonify({'response': voter.to_dict(), 'token': token}), 201


@user_bp.route('/login', methods=['POST'])
@limiter.limit("10/minute")
def login():
    payload = request.get_json(silent=True) or {}
    national_id = payload.get('aadharCardNumber')
    try:
        voter, token = _accounts().login(national_id, payload.get('password'))
    except (InvalidCredentials, ValidationError):
        get_audit_logger().log_security_event('failed_login', {'ip': request.remote_addr})
        raise
    get_audit_logger().log_security_event('successful_login', {'role': voter.role.value}, user_id=voter.id)
    return jsonify({'token': token})


@user_bp.route('/profile', methods=['GET'])
@require_permission(Permission.VIEW_OWN_PROFILE)
def profile():
    voter = _accounts().profile(current_identity())
    return jsonify({'user': voter.to_dict()})


@user_bp.route('/profile/password', methods=['PUT'])
@require_permission(Permission.VIEW_OWN_PROFILE)
def change_password():
    payload = request.get_json(silent=True) or {}
    identity = current_identity()
    _accounts().change_password(identity, payload.get('currentPassword'), payload.get('newPassword'))
    get_audit_logger().log_security_event('password_changed', {}, user_id=identity.voter_id)
    return jsonify({'message': 'Password updated'})
