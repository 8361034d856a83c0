# votebox/routes/election.py

from flask import Blueprint, jsonify, request

from votebox.authentication.rbac import Permission, current_identity, require_permission
from votebox.database import db
from votebox.errors import ValidationError
from votebox.extensions import get_audit_logger
from votebox.security.input_validator import InputValidator
from votebox.services import ElectionService, ResultsService

election_bp = Blueprint('election', __name__)
validator = InputValidator()


def _elections():
    return ElectionService(db.session)


def _audit(event_type, election_id, identity, **extra):
    get_audit_logger().log_security_event(event_type, {'election_id': election_id, **extra}, user_id=identity.voter_id)


@election_bp.route('', methods=['GET'])
def list_elections():
    return jsonify([e.to_dict() for e in _elections().list()])


@election_bp.route('/status/active', methods=['GET'])
def list_active_elections():
    return jsonify([e.to_dict() for e in _elections().list_active()])


@election_bp.route('/<int:election_id>', methods=['GET'])
def get_election(election_id):
    return jsonify(_elections().get(election_id).to_dict())


@election_bp.route('', methods=['POST'])
@require_permission(Permission.MANAGE_ELECTIONS)
def create_election():
    identity = current_identity()
    data = validator.validate_election(request.get_json(silent=True))
    election = _elections().create(identity, data)
    _audit('election_created', election.id, identity)
    return jsonify(election.to_dict()), 201


@election_bp.route('/<int:election_id>', methods=['PUT'])
@require_permission(Permission.MANAGE_ELECTIONS)
def update_election(election_id):
    identity = current_identity()
    data = validator.validate_election(request.get_json(silent=True), partial=True)
    election = _elections().update(identity, election_id, data)
    _audit('election_updated', election_id, identity)
    return jsonify(election.to_dict())


@election_bp.route('/<int:election_id>/start', methods=['POST'])
@require_permission(Permission.MANAGE_ELECTIONS)
def start_election(election_id):
    identity = current_identity()
    election = _elections().start(identity, election_id)
    _audit('election_started', election_id, identity)
    return jsonify({'message': 'Election started successfully', 'election': election.to_dict()})


@election_bp.route('/<int:election_id>/end', methods=['POST'])
@require_permission(Permission.MANAGE_ELECTIONS)
def end_election(election_id):
    identity = current_identity()
    election = _elections().end(identity, election_id)
    _audit('election_ended', election_id, identity)
    return jsonify({'message': 'Election ended successfully', 'election': election.to_dict()})


@election_bp.route('/<int:election_id>/cancel', methods=['POST'])
@require_permission(Permission.MANAGE_ELECTIONS)
def cancel_election(election_id):
    identity = current_identity()
    election = _elections().cancel(identity, election_id)
    _audit('election_cancelled', election_id, identity)
    return jsonify({'message': 'Election cancelled successfully', 'election': election.to_dict()})


@election_bp.route('/<int:election_id>/candidates', methods=['POST'])
@require_permission(Permission.MANAGE_ELECTIONS)
def add_candidates(election_id):
    identity = current_identity()
    payload = request.get_json(silent=True) or {}
    candidate_ids = payload.get('candidateIds')
    if not candidate_ids:
        raise ValidationError("candidateIds array is required")
    candidate_ids = validator.parse_id_list(candidate_ids, 'candidateIds')
    election = _elections().add_candidates(identity, election_id, candidate_ids)
    _audit('election_candidates_added', election_id, identity, candidate_ids=candidate_ids)
    return jsonify({'message': 'Candidates added successfully', 'election': election.to_dict()})


@election_bp.route('/<int:election_id>/candidates/<int:candidate_id>', methods=['DELETE'])
@require_permission(Permission.MANAGE_ELECTIONS)
def remove_candidate(election_id, candidate_id):
    identity = current_identity()
    election = _elections().remove_candidate(identity, election_id, candidate_id)
    _audit('election_candidate_removed', election_id, identity, candidate_id=candidate_id)
    return jsonify({'message': 'Candidate removed successfully', 'election': election.to_dict()})


@election_bp.route('/<int:election_id>', methods=['DELETE'])
@require_permission(Permission.MANAGE_ELECTIONS)
def delete_election(election_id):
    identity = current_identity()
    _elections().delete(identity, election_id)
    _audit('election_deleted', election_id, identity)
    return jsonify({'message': 'Election deleted successfully'})


@election_bp.route('/<int:election_id>/results', methods=['GET'])
def election_results(election_id):
    report = ResultsService(db.session).election_results(election_id)
    report['results'] = [entry.to_dict() for entry in report['results']]
    return jsonify(report)
