# votebox/services/candidates.py

import logging

from sqlalchemy import delete, select

from votebox.authentication.rbac import require_admin
from votebox.database import storage_guard
from votebox.database.models import Candidate, ElectionCandidate
from votebox.errors import CandidateNotFound

logger = logging.getLogger(__name__)


class CandidateService:
    def __init__(self, session):
        self.session = session

    def list(self):
        with storage_guard(self.session):
            return self.session.scalars(
                select(Candidate).order_by(Candidate.vote_count.desc(), Candidate.id.asc())
            ).all()

    def get(self, candidate_id):
        with storage_guard(self.session):
            candidate = self.session.get(Candidate, candidate_id)
        if candidate is None:
            raise CandidateNotFound()
        return candidate

    def create(self, identity, data):
        require_admin(identity)
        # vote_count is never taken from input
        candidate = Candidate(name=data['name'], party=data['party'], age=data['age'], vote_count=0)
        with storage_guard(self.session):
            self.session.add(candidate)
            self.session.commit()
        logger.info("Candidate created: %s", candidate.id)
        return candidate

    def update(self, identity, candidate_id, data):
        require_admin(identity)
        candidate = self.get(candidate_id)
        with storage_guard(self.session):
            for field in ('name', 'party', 'age'):
                if field in data:
                    setattr(candidate, field, data[field])
            self.session.commit()
        logger.info("Candidate updated: %s", candidate_id)
        return candidate

    def delete(self, identity, candidate_id):
        require_admin(identity)
        candidate = self.get(candidate_id)
        with storage_guard(self.session):
            # elections referencing the candidate simply drop it
            self.session.execute(delete(ElectionCandidate).where(ElectionCandidate.candidate_id == candidate.id))
            self.session.delete(candidate)
            self.session.commit()
        logger.info("Candidate deleted: %s", candidate_id)
