# tests/test_results.py

import pytest

from votebox.database import db
from votebox.errors import ElectionNotFound
from votebox.services import ResultsService


@pytest.fixture
def results(app):
    return ResultsService(db.session)


def test_global_tally_ranks_and_annotates(results, make_candidate):
    a = make_candidate(party='Red', votes=1)
    b = make_candidate(party='Blue', votes=2)
    c = make_candidate(party='Green', votes=1)

    entries = results.tally()

    assert [e.candidate_id for e in entries] == [b.id, a.id, c.id]
    assert [e.votes for e in entries] == [2, 1, 1]
    assert [e.percentage for e in entries] == [50.0, 25.0, 25.0]
    assert entries[0].party == 'Blue'


def test_percentages_sum_to_hundred(results, make_candidate):
    for votes in (1, 1, 1):
        make_candidate(votes=votes)
    entries = results.tally()
    assert [e.percentage for e in entries] == [33.33, 33.33, 33.33]
    assert sum(e.percentage for e in entries) == pytest.approx(100, abs=0.05)


def test_zero_votes_reports_zero_percent(results, make_candidate):
    make_candidate()
    make_candidate()
    entries = results.tally()
    assert all(e.percentage == 0 for e in entries)
    assert all(e.votes == 0 for e in entries)


def test_empty_tally(results):
    assert results.tally() == []


def test_tie_break_is_stable(results, make_candidate):
    ids = [make_candidate(votes=3).id for _ in range(4)]
    assert [e.candidate_id for e in results.tally()] == ids
    assert [e.candidate_id for e in results.tally()] == ids


def test_election_scope(results, make_candidate, make_election):
    inside = make_candidate(votes=3)
    also_inside = make_candidate(votes=1)
    make_candidate(votes=100)
    election = make_election(candidates=[also_inside, inside])

    report = results.election_results(election.id)

    assert report['totalVotes'] == 4
    assert report['election']['id'] == election.id
    assert [e.candidate_id for e in report['results']] == [inside.id, also_inside.id]
    assert [e.percentage for e in report['results']] == [75.0, 25.0]
    assert [e.candidate_id for e in results.tally(election.id)] == [inside.id, also_inside.id]


def test_election_scope_without_candidates(results, make_election):
    report = results.election_results(make_election().id)
    assert report['totalVotes'] == 0
    assert report['results'] == []


def test_unknown_election(results):
    with pytest.raises(ElectionNotFound):
        results.election_results(9999)
