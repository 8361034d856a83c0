# votebox/services/elections.py

"""Election lifecycle: draft -> active -> completed, with cancelled as an
alternative terminal state.

Status only changes through an explicit admin call. ``is_active`` and
``can_start`` consult the clock for read-time semantics, but an election
whose window has passed keeps reporting ``active`` until an admin ends it.
"""

import logging

from sqlalchemy import func, select

from votebox.authentication.rbac import require_admin
from votebox.database import storage_guard
from votebox.database.models import Candidate, Election, ElectionCandidate, ElectionStatus, utcnow
from votebox.errors import (
    AlreadyCompleted,
    CandidateNotFound,
    ElectionActive,
    ElectionCompleted,
    ElectionNotCancellable,
    ElectionNotFound,
    ElectionNotStartable,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _unique(ids):
    seen = set()
    return [i for i in ids if not (i in seen or seen.add(i))]


class ElectionService:
    def __init__(self, session, clock=utcnow):
        self.session = session
        self.clock = clock

    # Reads

    def list(self):
        with storage_guard(self.session):
            return self.session.scalars(
                select(Election).order_by(Election.created_at.desc(), Election.id.desc())
            ).all()

    def list_active(self):
        now = self.clock()
        with storage_guard(self.session):
            return self.session.scalars(
                select(Election)
                .where(
                    Election.status == ElectionStatus.ACTIVE,
                    Election.start_date <= now,
                    Election.end_date >= now,
                )
                .order_by(Election.start_date.asc(), Election.id.asc())
            ).all()

    def get(self, election_id):
        with storage_guard(self.session):
            election = self.session.get(Election, election_id)
        if election is None:
            raise ElectionNotFound()
        return election

    # Administration

    def create(self, identity, data):
        require_admin(identity)
        start, end = data.get('start_date'), data.get('end_date')
        if not data.get('title') or start is None or end is None:
            raise ValidationError("Title, start date, and end date are required")
        if end <= start:
            raise ValidationError("End date must be after start date")

        with storage_guard(self.session):
            candidate_ids = _unique(data.get('candidate_ids') or [])
            self._ensure_candidates_exist(candidate_ids)
            election = Election(
                title=data['title'],
                description=data.get('description'),
                start_date=start,
                end_date=end,
                status=ElectionStatus.DRAFT,
                created_by=identity.voter_id,
                entries=[ElectionCandidate(candidate_id=cid) for cid in candidate_ids],
            )
            self.session.add(election)
            self._commit()
        logger.info("Election created: %s", election.id)
        return election

    def update(self, identity, election_id, data):
        require_admin(identity)
        if 'status' in data:
            raise ValidationError("Status changes go through start, end or cancel")
        election = self.get(election_id)
        self._ensure_modifiable(election)

        start = data.get('start_date', election.start_date)
        end = data.get('end_date', election.end_date)
        if end <= start:
            raise ValidationError("End date must be after start date")

        with storage_guard(self.session):
            if 'candidate_ids' in data:
                candidate_ids = _unique(data['candidate_ids'])
                self._ensure_candidates_exist(candidate_ids)
                keep = [e for e in election.entries if e.candidate_id in candidate_ids]
                known = {e.candidate_id for e in keep}
                election.entries = keep + [
                    ElectionCandidate(candidate_id=cid) for cid in candidate_ids if cid not in known
                ]
            if 'title' in data:
                election.title = data['title']
            if 'description' in data:
                election.description = data['description']
            election.start_date = start
            election.end_date = end
            self._commit()
        logger.info("Election updated: %s", election_id)
        return election

    def start(self, identity, election_id):
        require_admin(identity)
        election = self.get(election_id)
        if not election.can_start(self.clock()):
            raise ElectionNotStartable()
        return self._transition(election, ElectionStatus.ACTIVE)

    def end(self, identity, election_id):
        require_admin(identity)
        election = self.get(election_id)
        if election.status == ElectionStatus.COMPLETED:
            raise AlreadyCompleted()
        return self._transition(election, ElectionStatus.COMPLETED)

    def cancel(self, identity, election_id):
        require_admin(identity)
        election = self.get(election_id)
        if election.status not in (ElectionStatus.DRAFT, ElectionStatus.ACTIVE):
            raise ElectionNotCancellable()
        return self._transition(election, ElectionStatus.CANCELLED)

    def add_candidates(self, identity, election_id, candidate_ids):
        require_admin(identity)
        if not candidate_ids:
            raise ValidationError("candidateIds array is required")
        election = self.get(election_id)
        self._ensure_modifiable(election)

        with storage_guard(self.session):
            requested = _unique(candidate_ids)
            self._ensure_candidates_exist(requested)
            existing = set(election.candidate_ids)
            for cid in requested:
                if cid not in existing:
                    election.entries.append(ElectionCandidate(candidate_id=cid))
            self._commit()
        return election

    def remove_candidate(self, identity, election_id, candidate_id):
        require_admin(identity)
        election = self.get(election_id)
        self._ensure_modifiable(election)
        if candidate_id not in election.candidate_ids:
            raise CandidateNotFound("Candidate is not part of this election")

        with storage_guard(self.session):
            election.entries = [e for e in election.entries if e.candidate_id != candidate_id]
            self._commit()
        return election

    def delete(self, identity, election_id):
        require_admin(identity)
        election = self.get(election_id)
        if election.status == ElectionStatus.ACTIVE:
            raise ElectionActive()
        with storage_guard(self.session):
            self.session.delete(election)
            self._commit()
        logger.info("Election deleted: %s", election_id)

    # Helpers

    def _transition(self, election, status):
        previous = election.status
        with storage_guard(self.session):
            election.status = status
            self._commit()
        logger.info("Election %s: %s -> %s", election.id, previous.value, status.value)
        return election

    def _ensure_modifiable(self, election):
        if election.is_terminal:
            raise ElectionCompleted(f"Cannot modify {election.status.value} elections")

    def _ensure_candidates_exist(self, candidate_ids):
        if not candidate_ids:
            return
        found = self.session.scalar(
            select(func.count(Candidate.id)).where(Candidate.id.in_(candidate_ids))
        )
        if found != len(set(candidate_ids)):
            raise ValidationError("One or more candidate IDs are invalid")

    def _commit(self):
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
