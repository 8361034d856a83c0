# votebox/services/voting.py

"""Casting a ballot.

A vote is two mutations that must land together: the voter's one-shot
``has_voted`` flag flips false -> true, and the chosen candidate's
counter goes up by one. Both happen in a single transaction, and the
flag flip is a conditional ``UPDATE ... WHERE has_voted = false`` so the
database, not this process, decides which of two racing requests wins.
Reading the voter first and then writing unconditionally would let two
requests both see ``has_voted = false`` and both count.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select, update

from votebox.authentication.rbac import Role
from votebox.database import storage_guard
from votebox.database.models import Candidate, Election, ElectionCandidate, ElectionStatus, Voter
from votebox.errors import AdminCannotVote, AlreadyVoted, CandidateNotFound, VoterNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteReceipt:
    voter_id: int
    candidate_id: int
    new_count: int


class VotingService:
    def __init__(self, session):
        self.session = session

    def cast_vote(self, voter_id, candidate_id):
        """Record one vote from ``voter_id`` for ``candidate_id``.

        Preconditions are checked in order and each has its own failure:
        VoterNotFound, AdminCannotVote, AlreadyVoted, CandidateNotFound.
        A concurrent request that passes the checks but loses the
        conditional write also gets AlreadyVoted. Nothing is written
        unless both the flag and the counter are.
        """
        with storage_guard(self.session):
            voter = self.session.get(Voter, voter_id)
            if voter is None:
                raise VoterNotFound()
            if voter.role is Role.ADMIN:
                raise AdminCannotVote()
            if voter.has_voted:
                raise AlreadyVoted()
            if self.session.get(Candidate, candidate_id) is None:
                raise CandidateNotFound()

            try:
                new_count = self._apply_vote(voter_id, candidate_id)
                self.session.commit()
            except Exception:
                self.session.rollback()
                raise

        logger.info("Vote counted for candidate %s (now %d)", candidate_id, new_count)
        return VoteReceipt(voter_id=voter_id, candidate_id=candidate_id, new_count=new_count)

    def _apply_vote(self, voter_id, candidate_id):
        claimed = self.session.execute(
            update(Voter)
            .where(
                Voter.id == voter_id,
                Voter.role == Role.VOTER,
                Voter.has_voted.is_(False),
            )
            .values(has_voted=True)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            raise AlreadyVoted()

        counted = self.session.execute(
            update(Candidate)
            .where(Candidate.id == candidate_id)
            .values(vote_count=Candidate.vote_count + 1)
            .execution_options(synchronize_session=False)
        )
        if counted.rowcount != 1:
            # deleted between the precondition check and the write
            raise CandidateNotFound()

        self.session.execute(
            update(Election)
            .where(
                Election.status == ElectionStatus.ACTIVE,
                Election.id.in_(
                    select(ElectionCandidate.election_id).where(ElectionCandidate.candidate_id == candidate_id)
                ),
            )
            .values(total_votes=Election.total_votes + 1)
            .execution_options(synchronize_session=False)
        )

        return self.session.execute(
            select(Candidate.vote_count).where(Candidate.id == candidate_id)
        ).scalar_one()

    def has_voted(self, voter_id):
        with storage_guard(self.session):
            flag = self.session.execute(
                select(Voter.has_voted).where(Voter.id == voter_id)
            ).scalar_one_or_none()
        if flag is None:
            raise VoterNotFound()
        return flag
