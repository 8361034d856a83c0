# tests/test_elections.py

from datetime import timedelta

import pytest
from sqlalchemy import insert

from votebox.authentication.rbac import Identity, Role
from votebox.database import db
from votebox.database.models import Candidate, Election, ElectionCandidate, ElectionStatus, utcnow
from votebox.errors import (
    AlreadyCompleted,
    CandidateNotFound,
    ElectionActive,
    ElectionCompleted,
    ElectionNotCancellable,
    ElectionNotFound,
    ElectionNotStartable,
    Forbidden,
    IntegrityConflict,
    ValidationError,
)
from votebox.services import ElectionService


@pytest.fixture
def elections(app):
    return ElectionService(db.session)


@pytest.fixture
def voter_identity(voter):
    return Identity(voter_id=voter.id, role=Role.VOTER)


def _window(start_hours=-1, end_hours=24):
    now = utcnow()
    return now + timedelta(hours=start_hours), now + timedelta(hours=end_hours)


def test_create_draft_election(elections, admin_identity, make_candidate):
    c1, c2 = make_candidate(), make_candidate()
    start, end = _window()
    election = elections.create(admin_identity, {
        'title': 'Mayor', 'description': 'City race', 'start_date': start, 'end_date': end,
        'candidate_ids': [c2.id, c1.id, c2.id],
    })
    assert election.status is ElectionStatus.DRAFT
    assert election.candidate_ids == [c2.id, c1.id]
    assert election.created_by == admin_identity.voter_id
    assert election.total_votes == 0


def test_create_requires_end_after_start(elections, admin_identity):
    start, _ = _window()
    with pytest.raises(ValidationError):
        elections.create(admin_identity, {'title': 'Bad', 'start_date': start, 'end_date': start})


def test_create_rejects_unknown_candidates(elections, admin_identity, make_candidate):
    start, end = _window()
    with pytest.raises(ValidationError):
        elections.create(admin_identity, {
            'title': 'Bad', 'start_date': start, 'end_date': end, 'candidate_ids': [make_candidate().id, 9999],
        })
    assert db.session.query(Election).count() == 0


def test_admin_guard_runs_first(elections, voter_identity):
    # non-admin is refused even for an election that does not exist
    for call in (
        lambda: elections.start(voter_identity, 9999),
        lambda: elections.end(voter_identity, 9999),
        lambda: elections.cancel(voter_identity, 9999),
        lambda: elections.delete(voter_identity, 9999),
        lambda: elections.update(voter_identity, 9999, {}),
        lambda: elections.add_candidates(voter_identity, 9999, [1]),
        lambda: elections.remove_candidate(voter_identity, 9999, 1),
        lambda: elections.create(voter_identity, {}),
    ):
        with pytest.raises(Forbidden):
            call()


def test_start_requires_candidates(elections, admin_identity, make_election, make_candidate):
    election = make_election()
    with pytest.raises(ElectionNotStartable):
        elections.start(admin_identity, election.id)

    elections.add_candidates(admin_identity, election.id, [make_candidate().id])
    started = elections.start(admin_identity, election.id)
    assert started.status is ElectionStatus.ACTIVE


def test_start_requires_window(elections, admin_identity, make_election, make_candidate):
    candidate = make_candidate()
    future = make_election(candidates=[candidate], start_offset=timedelta(hours=1), end_offset=timedelta(days=1))
    past = make_election(candidates=[candidate], start_offset=timedelta(days=-2), end_offset=timedelta(days=-1))
    for election in (future, past):
        with pytest.raises(ElectionNotStartable):
            elections.start(admin_identity, election.id)


def test_start_only_from_draft(elections, admin_identity, make_election, make_candidate):
    election = make_election(status=ElectionStatus.ACTIVE, candidates=[make_candidate()])
    with pytest.raises(ElectionNotStartable):
        elections.start(admin_identity, election.id)


def test_end_twice(elections, admin_identity, make_election, make_candidate):
    election = make_election(status=ElectionStatus.ACTIVE, candidates=[make_candidate()])
    assert elections.end(admin_identity, election.id).status is ElectionStatus.COMPLETED
    with pytest.raises(AlreadyCompleted):
        elections.end(admin_identity, election.id)


def test_end_from_draft(elections, admin_identity, make_election):
    election = make_election()
    assert elections.end(admin_identity, election.id).status is ElectionStatus.COMPLETED


def test_expired_window_stays_active_until_ended(elections, admin_identity, make_election, make_candidate):
    election = make_election(
        status=ElectionStatus.ACTIVE, candidates=[make_candidate()],
        start_offset=timedelta(days=-3), end_offset=timedelta(days=-1),
    )
    reloaded = elections.get(election.id)
    assert reloaded.status is ElectionStatus.ACTIVE
    assert reloaded.is_active() is False
    assert elections.list_active() == []


def test_list_active(elections, make_election, make_candidate):
    candidate = make_candidate()
    running = make_election(status=ElectionStatus.ACTIVE, candidates=[candidate])
    make_election(status=ElectionStatus.DRAFT, candidates=[candidate])
    assert [e.id for e in elections.list_active()] == [running.id]


def test_completed_election_is_frozen(elections, admin_identity, make_election, make_candidate):
    candidate = make_candidate()
    election = make_election(status=ElectionStatus.COMPLETED, candidates=[candidate])
    with pytest.raises(ElectionCompleted):
        elections.update(admin_identity, election.id, {'title': 'Renamed'})
    with pytest.raises(ElectionCompleted):
        elections.add_candidates(admin_identity, election.id, [make_candidate().id])
    with pytest.raises(ElectionCompleted):
        elections.remove_candidate(admin_identity, election.id, candidate.id)


def test_cancelled_election_is_frozen(elections, admin_identity, make_election, make_candidate):
    election = make_election(candidates=[make_candidate()])
    assert elections.cancel(admin_identity, election.id).status is ElectionStatus.CANCELLED
    with pytest.raises(ElectionCompleted):
        elections.update(admin_identity, election.id, {'title': 'Renamed'})
    with pytest.raises(ElectionNotCancellable):
        elections.cancel(admin_identity, election.id)
    with pytest.raises(ElectionNotStartable):
        elections.start(admin_identity, election.id)


def test_update_checks_dates_against_other_bound(elections, admin_identity, make_election):
    election = make_election()
    end = election.end_date
    with pytest.raises(ValidationError):
        elections.update(admin_identity, election.id, {'start_date': end + timedelta(hours=1)})
    with pytest.raises(ValidationError):
        elections.update(admin_identity, election.id, {'end_date': election.start_date})

    moved = elections.update(admin_identity, election.id, {
        'start_date': end + timedelta(days=1), 'end_date': end + timedelta(days=2),
    })
    assert moved.start_date == end + timedelta(days=1)


def test_update_fields_and_candidates(elections, admin_identity, make_election, make_candidate):
    c1, c2, c3 = make_candidate(), make_candidate(), make_candidate()
    election = make_election(candidates=[c1, c2])
    updated = elections.update(admin_identity, election.id, {
        'title': 'By-election', 'description': None, 'candidate_ids': [c2.id, c3.id],
    })
    assert updated.title == 'By-election'
    assert updated.description is None
    assert updated.candidate_ids == [c2.id, c3.id]


def test_update_rejects_status(elections, admin_identity, make_election):
    election = make_election()
    with pytest.raises(ValidationError):
        elections.update(admin_identity, election.id, {'status': 'active'})


def test_add_candidates_deduplicates(elections, admin_identity, make_election, make_candidate):
    c1, c2 = make_candidate(), make_candidate()
    election = make_election(candidates=[c1])
    updated = elections.add_candidates(admin_identity, election.id, [c1.id, c2.id, c2.id])
    assert updated.candidate_ids == [c1.id, c2.id]


def test_add_candidates_validates_before_mutating(elections, admin_identity, make_election, make_candidate):
    c1 = make_candidate()
    election = make_election()
    with pytest.raises(ValidationError):
        elections.add_candidates(admin_identity, election.id, [c1.id, 9999])
    db.session.expire_all()
    assert elections.get(election.id).candidate_ids == []


def test_add_candidates_concurrent_duplicate_is_a_conflict(elections, admin_identity, make_election, make_candidate):
    c1 = make_candidate()
    election = make_election()
    assert election.candidate_ids == []

    # another request adds the same candidate after this session loaded the election
    with db.engine.begin() as conn:
        conn.execute(insert(ElectionCandidate.__table__).values(election_id=election.id, candidate_id=c1.id))

    with pytest.raises(IntegrityConflict) as excinfo:
        elections.add_candidates(admin_identity, election.id, [c1.id])
    assert excinfo.value.status_code == 400
    db.session.expire_all()
    assert elections.get(election.id).candidate_ids == [c1.id]


def test_remove_candidate(elections, admin_identity, make_election, make_candidate):
    c1, c2 = make_candidate(), make_candidate()
    election = make_election(candidates=[c1, c2])
    assert elections.remove_candidate(admin_identity, election.id, c1.id).candidate_ids == [c2.id]
    with pytest.raises(CandidateNotFound):
        elections.remove_candidate(admin_identity, election.id, c1.id)
    # the candidate itself is untouched
    assert db.session.get(Candidate, c1.id) is not None


def test_delete_guards_active(elections, admin_identity, make_election, make_candidate):
    active = make_election(status=ElectionStatus.ACTIVE, candidates=[make_candidate()])
    with pytest.raises(ElectionActive):
        elections.delete(admin_identity, active.id)

    for status in (ElectionStatus.DRAFT, ElectionStatus.COMPLETED, ElectionStatus.CANCELLED):
        election = make_election(status=status)
        elections.delete(admin_identity, election.id)
        with pytest.raises(ElectionNotFound):
            elections.get(election.id)


def test_clock_is_injectable(admin_identity, make_election, make_candidate):
    election = make_election(candidates=[make_candidate()], start_offset=timedelta(days=2), end_offset=timedelta(days=3))
    later = ElectionService(db.session, clock=lambda: utcnow() + timedelta(days=2, hours=1))
    assert later.start(admin_identity, election.id).status is ElectionStatus.ACTIVE
