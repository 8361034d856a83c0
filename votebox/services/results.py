# votebox/services/results.py

from dataclasses import asdict, dataclass

from sqlalchemy import select

from votebox.database import storage_guard
from votebox.database.models import Candidate
from votebox.services.elections import ElectionService


@dataclass(frozen=True)
class TallyEntry:
    candidate_id: int
    name: str
    party: str
    age: int
    votes: int
    percentage: float

    def to_dict(self):
        data = asdict(self)
        data["candidateId"] = data.pop("candidate_id")
        return data


def rank(candidates):
    """Rank candidates by votes, ties by id, annotating each with its share."""
    total = sum(c.vote_count for c in candidates)
    ordered = sorted(candidates, key=lambda c: (-c.vote_count, c.id))
    entries = [
        TallyEntry(
            candidate_id=c.id,
            name=c.name,
            party=c.party,
            age=c.age,
            votes=c.vote_count,
            percentage=round(c.vote_count / total * 100, 2) if total > 0 else 0,
        )
        for c in ordered
    ]
    return total, entries


class ResultsService:
    def __init__(self, session):
        self.session = session

    def tally(self, election_id=None):
        """Ranked, percentage-annotated counts, globally or for one election."""
        if election_id is not None:
            return self.election_results(election_id)["results"]
        with storage_guard(self.session):
            candidates = self.session.scalars(select(Candidate)).all()
        _, entries = rank(candidates)
        return entries

    def election_results(self, election_id):
        election = ElectionService(self.session).get(election_id)
        total, entries = rank(election.candidates)
        return {
            "election": election.to_dict(include_candidates=False),
            "totalVotes": total,
            "results": entries,
        }
