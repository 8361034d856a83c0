# tests/conftest.py

import itertools
from datetime import timedelta

import pytest

from votebox import create_app
from votebox.authentication.rbac import Identity, Role
from votebox.config import TestingConfig
from votebox.database import db
from votebox.database.models import Candidate, Election, ElectionCandidate, ElectionStatus, Voter, utcnow
from votebox.extensions import get_password_service, token_manager

PASSWORD = "StrongPass123!"


@pytest.fixture
def app(tmp_path):
    # file-backed so worker threads share one database
    config = TestingConfig(
        database_url=f"sqlite:///{tmp_path / 'votebox.db'}",
        audit_log_dir=str(tmp_path / 'logs'),
    )
    app = create_app(config)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def make_voter(app):
    counter = itertools.count(1)

    def _make(role=Role.VOTER, has_voted=False, password=PASSWORD):
        n = next(counter)
        voter = Voter(
            national_id=f"{n:012d}",
            name=f"Voter {n}",
            age=30,
            address=f"{n} Main Street",
            role=role,
            password_hash=get_password_service().hash_password(password),
            has_voted=has_voted,
        )
        db.session.add(voter)
        db.session.commit()
        return voter
    return _make


@pytest.fixture
def voter(make_voter):
    return make_voter()


@pytest.fixture
def admin(make_voter):
    return make_voter(role=Role.ADMIN)


@pytest.fixture
def admin_identity(admin):
    return Identity(voter_id=admin.id, role=Role.ADMIN)


@pytest.fixture
def make_candidate(app):
    counter = itertools.count(1)

    def _make(name=None, party=None, votes=0):
        n = next(counter)
        candidate = Candidate(name=name or f"Candidate {n}", party=party or f"Party {n}", age=45, vote_count=votes)
        db.session.add(candidate)
        db.session.commit()
        return candidate
    return _make


@pytest.fixture
def make_election(app, admin):
    def _make(status=ElectionStatus.DRAFT, candidates=(), start_offset=timedelta(hours=-1), end_offset=timedelta(days=1)):
        now = utcnow()
        election = Election(
            title="General Election",
            description="National ballot",
            start_date=now + start_offset,
            end_date=now + end_offset,
            status=status,
            created_by=admin.id,
            entries=[ElectionCandidate(candidate_id=c.id) for c in candidates],
        )
        db.session.add(election)
        db.session.commit()
        return election
    return _make


def auth_header(voter):
    return {"Authorization": f"Bearer {token_manager.generate_token(voter)}"}
