# votebox/routes/candidate.py

from flask import Blueprint, current_app, jsonify, request

from votebox.authentication.rbac import Permission, current_identity, identity_required, require_permission
from votebox.database import db
from votebox.errors import AdminCannotVote, AlreadyVoted
from votebox.extensions import get_audit_logger, limiter
from votebox.security.input_validator import InputValidator
from votebox.services import CandidateService, ResultsService, VotingService

candidate_bp = Blueprint('candidate', __name__)
validator = InputValidator()


@candidate_bp.route('', methods=['GET'])
def list_candidates():
    candidates = CandidateService(db.session).list()
    return jsonify([c.to_dict() for c in candidates])


@candidate_bp.route('', methods=['POST'])
@require_permission(Permission.MANAGE_CANDIDATES)
def create_candidate():
    identity = current_identity()
    data = validator.validate_candidate(request.get_json(silent=True))
    candidate = CandidateService(db.session).create(identity, data)
    get_audit_logger().log_security_event('candidate_created', {'candidate_id': candidate.id}, user_id=identity.voter_id)
    return jsonify({'response': candidate.to_dict()}), 201


@candidate_bp.route('/<int:candidate_id>', methods=['PUT'])
@require_permission(Permission.MANAGE_CANDIDATES)
def update_candidate(candidate_id):
    identity = current_identity()
    data = validator.validate_candidate(request.get_json(silent=True), partial=True)
    candidate = CandidateService(db.session).update(identity, candidate_id, data)
    get_audit_logger().log_security_event('candidate_updated', {'candidate_id': candidate_id}, user_id=identity.voter_id)
    return jsonify({'response': candidate.to_dict()})


@candidate_bp.route('/<int:candidate_id>', methods=['DELETE'])
@require_permission(Permission.MANAGE_CANDIDATES)
def delete_candidate(candidate_id):
    identity = current_identity()
    CandidateService(db.session).delete(identity, candidate_id)
    get_audit_logger().log_security_event('candidate_deleted', {'candidate_id': candidate_id}, user_id=identity.voter_id)
    return jsonify({'message': 'Candidate deleted'})


# GET mutates state here. Kept because existing clients vote with GET;
# new clients should POST.
@candidate_bp.route('/vote/<int:candidate_id>', methods=['GET', 'POST'])
@limiter.limit("5/minute")
@identity_required
def vote(candidate_id):
    # the voter is always the token subject, never a payload field
    identity = current_identity()
    audit_logger = get_audit_logger()
    try:
        receipt = VotingService(db.session).cast_vote(identity.voter_id, candidate_id)
    except AlreadyVoted:
        audit_logger.log_security_event('duplicate_vote_attempt', {'candidate_id': candidate_id}, user_id=identity.voter_id)
        raise
    except AdminCannotVote:
        audit_logger.log_security_event('admin_vote_attempt', {'candidate_id': candidate_id}, user_id=identity.voter_id)
        raise
    audit_logger.log_security_event('vote_cast', {'candidate_id': candidate_id}, user_id=identity.voter_id)
    current_app.logger.info(f"Vote recorded for candidate {candidate_id}")
    return jsonify({
        'message': 'Vote recorded successfully',
        'candidateId': receipt.candidate_id,
        'voteCount': receipt.new_count,
    })


@candidate_bp.route('/vote/count', methods=['GET'])
def vote_count():
    entries = ResultsService(db.session).tally()
    return jsonify([
        {
            'candidateId': e.candidate_id,
            'name': e.name,
            'party': e.party,
            'count': e.votes,
            'percentage': e.percentage,
        }
        for e in entries
    ])
